"""Tests for ContentStore, CommentStore and ReviewQueue.

Tests cover:
- Deep-copy reads (callers cannot mutate stored state)
- Insights write-back, status_changed_at stamping
- Status compare-and-set under concurrency
- Review escalation stamping, cleared when insights are re-applied
- JSON persistence round trip
- Replies by parent, queue de-duplication
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from content_trust.data_management import CommentStore, ContentStore, ReviewQueue
from content_trust.data_management.review_queue import MODERATION_QUEUE, REVIEW_QUEUE
from content_trust.data_management.schemas import (
    Claim,
    ContentInsights,
    ContentKind,
    PublishStatus,
)


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def store() -> ContentStore:
    return ContentStore()


@pytest.fixture
def review_insights() -> ContentInsights:
    return ContentInsights(
        claims=[Claim(id="post-1-c1", text="Rates will double")],
        fact_check_status=PublishStatus.NEEDS_REVIEW,
    )


class TestContentStore:
    @pytest.mark.asyncio
    async def test_reads_are_copies(self, store, make_item):
        await store.add(make_item(text="original"))
        fetched = await store.get("post-1")
        fetched.text = "mutated"
        assert (await store.get("post-1")).text == "original"

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        assert await store.get("nope") is None

    @pytest.mark.asyncio
    async def test_apply_insights(self, store, make_item, review_insights):
        await store.add(make_item(text="Rates will double"))
        item = await store.apply_insights("post-1", review_insights)
        assert item.publish_status == PublishStatus.NEEDS_REVIEW
        assert item.claims[0].id == "post-1-c1"
        assert item.status_changed_at is not None
        assert item.insights_updated_at is not None

    @pytest.mark.asyncio
    async def test_apply_insights_missing_item(self, store, review_insights):
        with pytest.raises(LookupError):
            await store.apply_insights("nope", review_insights)

    @pytest.mark.asyncio
    async def test_same_status_keeps_changed_at(self, store, make_item, review_insights):
        await store.add(make_item(text="x"))
        first = await store.apply_insights("post-1", review_insights)
        second = await store.apply_insights("post-1", review_insights)
        assert second.status_changed_at == first.status_changed_at

    @pytest.mark.asyncio
    async def test_compare_and_set(self, store, make_item, review_insights):
        await store.add(make_item(text="x"))
        await store.apply_insights("post-1", review_insights)

        assert await store.compare_and_set_status("post-1", PublishStatus.NEEDS_REVIEW, PublishStatus.CLEAN)
        assert not await store.compare_and_set_status("post-1", PublishStatus.NEEDS_REVIEW, PublishStatus.BLOCKED)
        assert (await store.get("post-1")).publish_status == PublishStatus.CLEAN

    @pytest.mark.asyncio
    async def test_concurrent_compare_and_set_single_winner(self, store, make_item, review_insights):
        await store.add(make_item(text="x"))
        await store.apply_insights("post-1", review_insights)

        results = await asyncio.gather(
            store.compare_and_set_status("post-1", PublishStatus.NEEDS_REVIEW, PublishStatus.CLEAN),
            store.compare_and_set_status("post-1", PublishStatus.NEEDS_REVIEW, PublishStatus.BLOCKED),
        )
        assert sorted(results) == [False, True]

    @pytest.mark.asyncio
    async def test_mark_review_escalated_once(self, store, make_item, review_insights):
        await store.add(make_item(text="x"))
        await store.apply_insights("post-1", review_insights)
        assert await store.mark_review_escalated("post-1")
        assert not await store.mark_review_escalated("post-1")

    @pytest.mark.asyncio
    async def test_reapplied_insights_clear_escalation(self, store, make_item, review_insights):
        await store.add(make_item(text="x"))
        await store.apply_insights("post-1", review_insights)
        await store.mark_review_escalated("post-1")

        item = await store.apply_insights("post-1", review_insights)
        assert item.review_escalated_at is None
        assert await store.mark_review_escalated("post-1")

    @pytest.mark.asyncio
    async def test_list_by_status(self, store, make_item, review_insights):
        await store.add(make_item("post-1", text="x"))
        await store.add(make_item("post-2", text="y"))
        await store.apply_insights("post-1", review_insights)
        items = await store.list_by_status(PublishStatus.NEEDS_REVIEW)
        assert [i.id for i in items] == ["post-1"]

    @pytest.mark.asyncio
    async def test_persistence_round_trip(self, tmp_path, make_item, review_insights):
        path = tmp_path / "content.json"
        store = ContentStore(persistence_path=str(path))
        await store.add(make_item(text="persist me"))
        await store.apply_insights("post-1", review_insights)

        reloaded = ContentStore(persistence_path=str(path))
        item = await reloaded.get("post-1")
        assert item.text == "persist me"
        assert item.publish_status == PublishStatus.NEEDS_REVIEW
        assert item.claims[0].text == "Rates will double"


class TestCommentStore:
    @pytest.mark.asyncio
    async def test_replies_ordered_and_limited(self, make_item):
        comments = CommentStore()
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        for i in (3, 1, 2):
            await comments.add(
                make_item(
                    f"reply-{i}",
                    text=f"reply {i}",
                    kind=ContentKind.REPLY,
                    parent_id="post-1",
                    created_at=base + timedelta(minutes=i),
                )
            )
        replies = await comments.list_by_parent("post-1", limit=2)
        assert [r.id for r in replies] == ["reply-1", "reply-2"]

    @pytest.mark.asyncio
    async def test_non_reply_rejected(self, make_item):
        with pytest.raises(ValueError):
            await CommentStore().add(make_item(text="top-level post"))


class TestReviewQueue:
    @pytest.mark.asyncio
    async def test_enqueue_idempotent(self):
        queue = ReviewQueue()
        assert await queue.enqueue("post-1")
        assert not await queue.enqueue("post-1")
        assert [cid for cid, _ in await queue.list()] == ["post-1"]

    @pytest.mark.asyncio
    async def test_queues_independent(self):
        queue = ReviewQueue()
        await queue.enqueue("post-1", MODERATION_QUEUE)
        assert await queue.contains("post-1", MODERATION_QUEUE)
        assert not await queue.contains("post-1", REVIEW_QUEUE)
        assert await queue.remove("post-1", MODERATION_QUEUE)
        assert not await queue.remove("post-1", MODERATION_QUEUE)
