"""Content item storage with status compare-and-set.

Follows the same patterns as the other stores:
- O(1) lookup by content_id
- Thread-safe operations with asyncio locks
- Optional JSON persistence

publish_status is written in two places only: apply_insights() (the
pipeline's single write-back) and compare_and_set_status() (review
consensus). Both run under the store lock, so a status write never
interleaves with another.

Usage:
    from content_trust.data_management.content_store import ContentStore

    store = ContentStore()
    await store.add(ContentItem(id="post-1", author_id="u1", text="..."))
    item = await store.get("post-1")
"""

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import structlog

from content_trust.data_management.schemas import (
    ContentInsights,
    ContentItem,
    PublishStatus,
)


class ContentStore:
    """Storage for content items keyed by id.

    Reads return deep copies so callers can never mutate stored state
    outside the lock.
    """

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        """Initialize ContentStore.

        Args:
            persistence_path: Optional path to JSON file for persistence.
                            If None, storage is memory-only.
        """
        self._items: dict[str, ContentItem] = {}
        self._lock = asyncio.Lock()
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self._logger = structlog.get_logger().bind(component="ContentStore")

        if self._persistence_path and self._persistence_path.exists():
            self._load_from_file()

    async def add(self, item: ContentItem) -> None:
        """Insert or replace a content item."""
        async with self._lock:
            self._items[item.id] = item.model_copy(deep=True)
            self._logger.debug("content_saved", content_id=item.id, kind=item.kind.value)
            if self._persistence_path:
                self._save_to_file()

    async def get(self, content_id: str) -> Optional[ContentItem]:
        """Get a content item by id.

        Returns:
            ContentItem copy if found, None otherwise.
        """
        async with self._lock:
            item = self._items.get(content_id)
            return item.model_copy(deep=True) if item else None

    async def get_many(self, content_ids: list[str]) -> list[ContentItem]:
        """Get several items, silently skipping unknown ids."""
        async with self._lock:
            return [
                self._items[cid].model_copy(deep=True)
                for cid in content_ids
                if cid in self._items
            ]

    async def list_by_status(self, status: PublishStatus) -> list[ContentItem]:
        async with self._lock:
            return [
                item.model_copy(deep=True)
                for item in self._items.values()
                if item.publish_status == status
            ]

    async def apply_insights(self, content_id: str, insights: ContentInsights) -> ContentItem:
        """Write all pipeline-derived fields in one update.

        Idempotent: applying the same insights twice leaves the item in the
        same state (apart from insights_updated_at). Clears any earlier
        moderation escalation.

        Raises:
            LookupError: If the item does not exist.
        """
        async with self._lock:
            item = self._items.get(content_id)
            if item is None:
                raise LookupError(f"content item {content_id} not found")

            now = datetime.now(timezone.utc)
            if item.publish_status != insights.fact_check_status:
                item.status_changed_at = now
            item.claims = list(insights.claims)
            item.fact_checks = list(insights.fact_checks)
            item.publish_status = insights.fact_check_status
            item.value_score = insights.value_score
            item.explanation = insights.explanation
            item.discussion_quality = insights.discussion_quality
            item.insights_updated_at = now
            # a re-evaluated item starts a fresh review wait
            item.review_escalated_at = None

            self._logger.info(
                "insights_applied",
                content_id=content_id,
                status=insights.fact_check_status.value,
                claims=len(insights.claims),
            )

            if self._persistence_path:
                self._save_to_file()
            return item.model_copy(deep=True)

    async def compare_and_set_status(
        self,
        content_id: str,
        expected: PublishStatus,
        new: PublishStatus,
    ) -> bool:
        """Set publish_status only if it still equals ``expected``.

        Returns:
            True if the status was written, False if the item is missing or
            its status changed concurrently.
        """
        async with self._lock:
            item = self._items.get(content_id)
            if item is None or item.publish_status != expected:
                self._logger.info(
                    "status_cas_rejected",
                    content_id=content_id,
                    expected=expected.value,
                    actual=item.publish_status.value if item and item.publish_status else None,
                )
                return False

            item.publish_status = new
            item.status_changed_at = datetime.now(timezone.utc)
            self._logger.info(
                "status_changed",
                content_id=content_id,
                previous=expected.value,
                status=new.value,
            )
            if self._persistence_path:
                self._save_to_file()
            return True

    async def mark_review_escalated(
        self,
        content_id: str,
        at: Optional[datetime] = None,
    ) -> bool:
        """Stamp a needs_review item as handed to human moderation.

        Returns:
            True if stamped, False if missing, not needs_review, or already escalated.
        """
        async with self._lock:
            item = self._items.get(content_id)
            if (
                item is None
                or item.publish_status != PublishStatus.NEEDS_REVIEW
                or item.review_escalated_at is not None
            ):
                return False
            item.review_escalated_at = at or datetime.now(timezone.utc)
            if self._persistence_path:
                self._save_to_file()
            return True

    def _save_to_file(self) -> None:
        """Save to JSON file (synchronous)."""
        if not self._persistence_path:
            return
        try:
            self._persistence_path.parent.mkdir(parents=True, exist_ok=True)
            data: dict[str, Any] = {
                cid: item.model_dump(mode="json") for cid, item in self._items.items()
            }
            with open(self._persistence_path, "w") as f:
                json.dump(data, f, indent=2, default=str)
        except OSError as e:
            self._logger.error("persistence_failed", error=str(e))

    def _load_from_file(self) -> None:
        """Load items from JSON file (synchronous)."""
        try:
            with open(self._persistence_path, "r") as f:
                data = json.load(f)
            self._items = {cid: ContentItem.model_validate(raw) for cid, raw in data.items()}
            self._logger.info("content_loaded", items=len(self._items))
        except (OSError, ValueError) as e:
            self._logger.error("load_failed", error=str(e))
            self._items = {}
