"""Reply storage indexed by parent content id."""

import asyncio
from typing import Optional

import structlog

from content_trust.data_management.schemas import ContentItem, ContentKind


class CommentStore:
    """In-memory reply store.

    Data structure:
    {
        parent_id: [ContentItem(kind=reply), ...],
        ...
    }
    """

    def __init__(self) -> None:
        self._replies: dict[str, list[ContentItem]] = {}
        self._lock = asyncio.Lock()
        self._logger = structlog.get_logger().bind(component="CommentStore")

    async def add(self, reply: ContentItem) -> None:
        """Store a reply under its parent.

        Raises:
            ValueError: If the item is not a reply or has no parent_id.
        """
        if reply.kind != ContentKind.REPLY or not reply.parent_id:
            raise ValueError("only replies with a parent_id can be stored")
        async with self._lock:
            thread = self._replies.setdefault(reply.parent_id, [])
            thread[:] = [r for r in thread if r.id != reply.id]
            thread.append(reply.model_copy(deep=True))
            thread.sort(key=lambda r: r.created_at)
            self._logger.debug("reply_saved", reply_id=reply.id, parent_id=reply.parent_id)

    async def list_by_parent(
        self,
        parent_id: str,
        limit: Optional[int] = None,
    ) -> list[ContentItem]:
        """Replies to ``parent_id``, oldest first, at most ``limit`` of them."""
        async with self._lock:
            thread = self._replies.get(parent_id, [])
            selected = thread if limit is None else thread[:limit]
            return [r.model_copy(deep=True) for r in selected]
