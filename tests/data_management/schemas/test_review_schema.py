"""Tests for review vote validation and reputation profiles.

Tests cover:
- Source count bounds and empty entries
- Justification length bounds (after stripping)
- Reputation history cap
"""

import pytest
from pydantic import ValidationError

from content_trust.data_management.schemas import (
    ReputationEvent,
    ReputationProfile,
    ReviewAction,
    ReviewVote,
)

JUSTIFICATION = "The cited WHO review contradicts this claim directly."


def _vote(**overrides) -> ReviewVote:
    fields = dict(
        content_id="post-1",
        reviewer_id="rev-1",
        action="invalidate",
        sources=["https://who.int/review"],
        justification=JUSTIFICATION,
    )
    fields.update(overrides)
    return ReviewVote(**fields)


class TestReviewVote:
    def test_valid_vote(self):
        vote = _vote()
        assert vote.action == ReviewAction.INVALIDATE
        assert vote.sources == ["https://who.int/review"]

    def test_no_sources_rejected(self):
        with pytest.raises(ValidationError):
            _vote(sources=[])

    def test_too_many_sources_rejected(self):
        with pytest.raises(ValidationError):
            _vote(sources=[f"https://example.com/{i}" for i in range(11)])

    def test_ten_sources_accepted(self):
        assert len(_vote(sources=[f"https://example.com/{i}" for i in range(10)]).sources) == 10

    def test_blank_source_rejected(self):
        with pytest.raises(ValidationError):
            _vote(sources=["https://who.int", "  "])

    def test_short_justification_rejected(self):
        with pytest.raises(ValidationError):
            _vote(justification="too short")

    def test_padding_does_not_count(self):
        with pytest.raises(ValidationError):
            _vote(justification="   short but padded   " + " " * 30)

    def test_long_justification_rejected(self):
        with pytest.raises(ValidationError):
            _vote(justification="x" * 501)

    def test_unknown_action_rejected(self):
        with pytest.raises(ValidationError):
            _vote(action="abstain")


class TestReputationProfile:
    def test_default_score(self):
        assert ReputationProfile(user_id="u").score == 65.0

    def test_history_capped(self):
        profile = ReputationProfile(user_id="u")
        for i in range(25):
            profile.record(ReputationEvent(kind="content_clean", delta=1, score_after=i))
        assert len(profile.history) == 20
        assert profile.history[-1].score_after == 24
