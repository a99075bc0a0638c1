"""Tests for CheckpointStore lease semantics.

Tests cover:
- First acquisition, DONE for unchanged finished items
- Busy lease reported as IN_PROGRESS, stale lease taken over
- Completed stages kept on takeover, reset on content change
- Writes rejected once the lease is lost
- Resumable listing, deletion and persistence round trip
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from content_trust.data_management import CheckpointStore, LeaseStatus
from content_trust.data_management.schemas import PipelineStage

FP = "fingerprint-a"


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def store() -> CheckpointStore:
    return CheckpointStore()


class TestAcquire:
    @pytest.mark.asyncio
    async def test_first_acquire(self, store):
        status, checkpoint = await store.acquire("post-1", FP, "worker-a")
        assert status == LeaseStatus.ACQUIRED
        assert checkpoint.owner_id == "worker-a"
        assert checkpoint.stage is None

    @pytest.mark.asyncio
    async def test_busy_lease(self, store):
        await store.acquire("post-1", FP, "worker-a")
        status, checkpoint = await store.acquire("post-1", FP, "worker-b")
        assert status == LeaseStatus.IN_PROGRESS
        assert checkpoint.owner_id == "worker-a"

    @pytest.mark.asyncio
    async def test_concurrent_acquire_single_owner(self, store):
        results = await asyncio.gather(
            *(store.acquire("post-1", FP, f"worker-{i}") for i in range(5))
        )
        statuses = [status for status, _ in results]
        assert statuses.count(LeaseStatus.ACQUIRED) == 1
        assert statuses.count(LeaseStatus.IN_PROGRESS) == 4

    @pytest.mark.asyncio
    async def test_stale_lease_taken_over_keeps_stages(self, store):
        await store.acquire("post-1", FP, "worker-a")
        await store.save_stage("post-1", "worker-a", PipelineStage.CLAIMS, {"claims": []})

        later = datetime.now(timezone.utc) + timedelta(hours=1)
        status, checkpoint = await store.acquire("post-1", FP, "worker-b", stale_after=60, now=later)
        assert status == LeaseStatus.ACQUIRED
        assert checkpoint.owner_id == "worker-b"
        assert checkpoint.stage == PipelineStage.CLAIMS

    @pytest.mark.asyncio
    async def test_content_change_resets(self, store):
        await store.acquire("post-1", FP, "worker-a")
        await store.save_stage("post-1", "worker-a", PipelineStage.CLAIMS, {"claims": []})
        await store.release("post-1", "worker-a")

        status, checkpoint = await store.acquire("post-1", "fingerprint-b", "worker-a")
        assert status == LeaseStatus.ACQUIRED
        assert checkpoint.stage is None
        assert checkpoint.partial_result == {}

    @pytest.mark.asyncio
    async def test_done_unchanged(self, store):
        await store.acquire("post-1", FP, "worker-a")
        await store.complete("post-1", "worker-a", {"decision": {"status": "clean"}})

        status, checkpoint = await store.acquire("post-1", FP, "worker-b")
        assert status == LeaseStatus.DONE
        assert checkpoint.partial_result["decision"]["status"] == "clean"

    @pytest.mark.asyncio
    async def test_done_but_edited_restarts(self, store):
        await store.acquire("post-1", FP, "worker-a")
        await store.complete("post-1", "worker-a", {})
        status, checkpoint = await store.acquire("post-1", "fingerprint-b", "worker-b")
        assert status == LeaseStatus.ACQUIRED
        assert not checkpoint.is_done


class TestWrites:
    @pytest.mark.asyncio
    async def test_lost_lease_rejects_writes(self, store):
        await store.acquire("post-1", FP, "worker-a")
        later = datetime.now(timezone.utc) + timedelta(hours=1)
        await store.acquire("post-1", FP, "worker-b", stale_after=60, now=later)

        assert not await store.save_stage("post-1", "worker-a", PipelineStage.PRECHECK, {})
        assert not await store.complete("post-1", "worker-a", {})
        assert await store.save_stage("post-1", "worker-b", PipelineStage.PRECHECK, {})

    @pytest.mark.asyncio
    async def test_complete_releases_lease(self, store):
        await store.acquire("post-1", FP, "worker-a")
        assert await store.complete("post-1", "worker-a", {})
        checkpoint = await store.get("post-1")
        assert checkpoint.is_done
        assert checkpoint.owner_id is None
        assert checkpoint.completed_at is not None


class TestResumable:
    @pytest.mark.asyncio
    async def test_released_and_stale_listed(self, store):
        await store.acquire("released", FP, "worker-a")
        await store.release("released", "worker-a")
        await store.acquire("held", FP, "worker-a")
        await store.acquire("done", FP, "worker-a")
        await store.complete("done", "worker-a", {})

        assert await store.list_resumable() == ["released"]

        later = datetime.now(timezone.utc) + timedelta(hours=2)
        assert sorted(await store.list_resumable(stale_after=60, now=later)) == ["held", "released"]

    @pytest.mark.asyncio
    async def test_persistence_round_trip(self, tmp_path):
        path = tmp_path / "checkpoints.json"
        store = CheckpointStore(persistence_path=str(path))
        await store.acquire("post-1", FP, "worker-a")
        await store.save_stage("post-1", "worker-a", PipelineStage.FACTCHECK, {"claims": [1]})

        reloaded = CheckpointStore(persistence_path=str(path))
        checkpoint = await reloaded.get("post-1")
        assert checkpoint.stage == PipelineStage.FACTCHECK
        assert checkpoint.partial_result == {"claims": [1]}
        assert not path.with_suffix(".json.tmp").exists()

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.acquire("post-1", FP, "worker-a")

        assert await store.delete("post-1") is True
        assert await store.get("post-1") is None
        assert await store.delete("post-1") is False
