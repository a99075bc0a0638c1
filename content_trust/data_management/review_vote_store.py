"""Append-only reviewer vote storage.

One vote per (reviewer_id, content_id, content_fingerprint): an edited item
is a new review round and earlier votes do not count toward it. Votes are
never edited or deleted.
"""

import asyncio
from typing import Optional

import structlog

from content_trust.data_management.schemas import ReviewVote
from content_trust.review.errors import DuplicateVoteError


class ReviewVoteStore:
    """Votes grouped by content_id, with a uniqueness index."""

    def __init__(self) -> None:
        self._votes: dict[str, list[ReviewVote]] = {}
        self._index: set[tuple[str, str, Optional[str]]] = set()  # (reviewer_id, content_id, fingerprint)
        self._lock = asyncio.Lock()
        self._logger = structlog.get_logger().bind(component="ReviewVoteStore")

    async def append(self, vote: ReviewVote) -> None:
        """Store a vote.

        Raises:
            DuplicateVoteError: If the reviewer already voted on this version of the item.
        """
        key = (vote.reviewer_id, vote.content_id, vote.content_fingerprint)
        async with self._lock:
            if key in self._index:
                raise DuplicateVoteError(
                    f"reviewer {vote.reviewer_id} already voted on {vote.content_id}"
                )
            self._index.add(key)
            self._votes.setdefault(vote.content_id, []).append(vote)
            self._logger.debug(
                "vote_appended",
                content_id=vote.content_id,
                reviewer_id=vote.reviewer_id,
                action=vote.action.value,
            )

    async def list_for_content(
        self,
        content_id: str,
        fingerprint: Optional[str] = None,
    ) -> list[ReviewVote]:
        """Votes on an item, restricted to one content version when ``fingerprint`` is given."""
        async with self._lock:
            votes = self._votes.get(content_id, [])
            if fingerprint is not None:
                votes = [v for v in votes if v.content_fingerprint == fingerprint]
            return list(votes)

    async def has_voted(
        self,
        reviewer_id: str,
        content_id: str,
        fingerprint: Optional[str] = None,
    ) -> bool:
        async with self._lock:
            return (reviewer_id, content_id, fingerprint) in self._index

    async def count(self, content_id: str, fingerprint: Optional[str] = None) -> int:
        return len(await self.list_for_content(content_id, fingerprint))
