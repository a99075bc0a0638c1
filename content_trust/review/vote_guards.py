"""Hardening hooks applied to reviewer votes before they are tallied.

A guard takes the weighted votes for one item and returns them with
adjusted weights. Guards run in order; a vote whose weight drops to zero
no longer counts towards the minimum vote count.

Built-in guards:
- DuplicateJustificationGuard: near-identical justifications from
  different reviewers count once
- BurstGuard: votes beyond a count inside a short time window are damped
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Callable

from rapidfuzz import fuzz

from content_trust.data_management.schemas import ReviewVote


@dataclass
class WeightedVote:
    vote: ReviewVote
    weight: float


VoteGuard = Callable[[list[WeightedVote]], list[WeightedVote]]


class DuplicateJustificationGuard:
    """Zero the weight of votes whose justification copies an earlier vote's."""

    def __init__(self, similarity: float = 0.95):
        self.similarity = similarity

    @staticmethod
    def _normalize(text: str) -> str:
        return " ".join(text.lower().split())

    def __call__(self, votes: list[WeightedVote]) -> list[WeightedVote]:
        ordered = sorted(votes, key=lambda wv: wv.vote.created_at)
        seen: list[str] = []
        result = []
        for wv in ordered:
            text = self._normalize(wv.vote.justification)
            duplicate = any(
                text == prior or fuzz.ratio(text, prior) / 100.0 >= self.similarity
                for prior in seen
            )
            if duplicate:
                result.append(WeightedVote(wv.vote, 0.0))
            else:
                seen.append(text)
                result.append(wv)
        return result


class BurstGuard:
    """
    Damp votes arriving faster than ``max_votes`` per ``window_s`` seconds.

    Attributes:
        max_votes: Votes allowed at full weight within one window
        window_s: Sliding window length in seconds
        damping: Weight multiplier for votes over the limit
    """

    def __init__(self, max_votes: int = 20, window_s: float = 60.0, damping: float = 0.25):
        self.max_votes = max_votes
        self.window = timedelta(seconds=window_s)
        self.damping = damping

    def __call__(self, votes: list[WeightedVote]) -> list[WeightedVote]:
        ordered = sorted(votes, key=lambda wv: wv.vote.created_at)
        result = []
        start = 0
        for i, wv in enumerate(ordered):
            while wv.vote.created_at - ordered[start].vote.created_at > self.window:
                start += 1
            if i - start >= self.max_votes:
                result.append(WeightedVote(wv.vote, wv.weight * self.damping))
            else:
                result.append(wv)
        return result


def default_guards() -> list[VoteGuard]:
    return [DuplicateJustificationGuard()]
