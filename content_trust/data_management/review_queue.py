"""Queues for items awaiting reviewer consensus or human moderation.

Two named queues:
- review: needs_review items open to reputation-weighted reviewer votes
- moderation: items escalated to human moderators (stale reviews,
  policy escalations)

Enqueueing is idempotent; an item appears at most once per queue.
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional

import structlog

REVIEW_QUEUE = "review"
MODERATION_QUEUE = "moderation"


class ReviewQueue:
    """Ordered, de-duplicated queues of content ids with enqueue timestamps."""

    def __init__(self) -> None:
        self._queues: dict[str, dict[str, datetime]] = {
            REVIEW_QUEUE: {},
            MODERATION_QUEUE: {},
        }
        self._lock = asyncio.Lock()
        self._logger = structlog.get_logger().bind(component="ReviewQueue")

    async def enqueue(
        self,
        content_id: str,
        queue: str = REVIEW_QUEUE,
        at: Optional[datetime] = None,
    ) -> bool:
        """Add an item. Returns False if it was already queued."""
        async with self._lock:
            entries = self._queues.setdefault(queue, {})
            if content_id in entries:
                return False
            entries[content_id] = at or datetime.now(timezone.utc)
            self._logger.info("item_enqueued", content_id=content_id, queue=queue)
            return True

    async def remove(self, content_id: str, queue: str = REVIEW_QUEUE) -> bool:
        async with self._lock:
            return self._queues.get(queue, {}).pop(content_id, None) is not None

    async def contains(self, content_id: str, queue: str = REVIEW_QUEUE) -> bool:
        async with self._lock:
            return content_id in self._queues.get(queue, {})

    async def list(self, queue: str = REVIEW_QUEUE) -> list[tuple[str, datetime]]:
        """Entries oldest first."""
        async with self._lock:
            return sorted(self._queues.get(queue, {}).items(), key=lambda kv: kv[1])
