"""Durable per-item pipeline checkpoints with a mutual-exclusion lease.

One checkpoint per content item, overwritten as stages complete. The
checkpoint doubles as a lease: acquire() is an atomic test-and-set under
the store lock, so at most one worker runs the pipeline for an item at a
time. A lease whose updated_at is older than ``stale_after`` seconds
belongs to a crashed worker and may be taken over.

Usage:
    store = CheckpointStore(persistence_path="data/checkpoints.json")
    status, checkpoint = await store.acquire("post-1", fingerprint, owner_id)
    if status == LeaseStatus.ACQUIRED:
        await store.save_stage("post-1", owner_id, PipelineStage.PRECHECK, partial)
"""

import asyncio
import json
import os
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import structlog

from content_trust.data_management.schemas import PipelineCheckpoint, PipelineStage


class LeaseStatus(str, Enum):
    """Outcome of a lease acquisition attempt."""

    ACQUIRED = "acquired"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class CheckpointStore:
    """Lock-guarded checkpoint storage keyed by content_id."""

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        """Initialize CheckpointStore.

        Args:
            persistence_path: Optional path to JSON file for persistence.
                            If None, storage is memory-only.
        """
        self._checkpoints: dict[str, PipelineCheckpoint] = {}
        self._lock = asyncio.Lock()
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self._logger = structlog.get_logger().bind(component="CheckpointStore")

        if self._persistence_path and self._persistence_path.exists():
            self._load_from_file()

    async def acquire(
        self,
        content_id: str,
        fingerprint: str,
        owner_id: str,
        stale_after: float = 1800.0,
        now: Optional[datetime] = None,
    ) -> tuple[LeaseStatus, PipelineCheckpoint]:
        """Atomically claim the pipeline lease for an item.

        Rules:
        - no checkpoint: create one, ACQUIRED
        - done with the same fingerprint: DONE (nothing to do)
        - held by another owner and not stale: IN_PROGRESS
        - otherwise: take over. Completed stages are kept when the
          fingerprint matches; an edited item starts from scratch.

        Returns:
            (LeaseStatus, checkpoint copy)
        """
        now = now or datetime.now(timezone.utc)
        async with self._lock:
            existing = self._checkpoints.get(content_id)

            if existing is None:
                checkpoint = PipelineCheckpoint(
                    content_id=content_id,
                    content_fingerprint=fingerprint,
                    owner_id=owner_id,
                    started_at=now,
                    updated_at=now,
                )
                self._store(checkpoint)
                self._logger.debug("lease_acquired", content_id=content_id, owner_id=owner_id)
                return LeaseStatus.ACQUIRED, checkpoint.model_copy(deep=True)

            if existing.is_done and existing.content_fingerprint == fingerprint:
                return LeaseStatus.DONE, existing.model_copy(deep=True)

            held_elsewhere = existing.owner_id is not None and existing.owner_id != owner_id
            if held_elsewhere and not self._is_stale(existing, stale_after, now):
                self._logger.info(
                    "lease_busy",
                    content_id=content_id,
                    holder=existing.owner_id,
                    stage=existing.stage.value if existing.stage else None,
                )
                return LeaseStatus.IN_PROGRESS, existing.model_copy(deep=True)

            if existing.content_fingerprint != fingerprint or existing.is_done:
                checkpoint = PipelineCheckpoint(
                    content_id=content_id,
                    content_fingerprint=fingerprint,
                    owner_id=owner_id,
                    started_at=now,
                    updated_at=now,
                )
                self._logger.info("checkpoint_reset", content_id=content_id, reason="content_changed")
            else:
                checkpoint = existing.model_copy(
                    update={"owner_id": owner_id, "updated_at": now}, deep=True
                )
                if held_elsewhere:
                    self._logger.warning(
                        "stale_lease_taken_over",
                        content_id=content_id,
                        previous_owner=existing.owner_id,
                        stage=existing.stage.value if existing.stage else None,
                    )

            self._store(checkpoint)
            return LeaseStatus.ACQUIRED, checkpoint.model_copy(deep=True)

    async def save_stage(
        self,
        content_id: str,
        owner_id: str,
        stage: PipelineStage,
        partial_result: dict[str, Any],
    ) -> bool:
        """Record a completed stage. Rejected if the caller no longer holds the lease.

        Returns:
            True if written, False if the lease was lost.
        """
        async with self._lock:
            existing = self._checkpoints.get(content_id)
            if existing is None or existing.owner_id != owner_id:
                self._logger.warning(
                    "lease_lost",
                    content_id=content_id,
                    owner_id=owner_id,
                    holder=existing.owner_id if existing else None,
                )
                return False

            checkpoint = existing.model_copy(
                update={
                    "stage": stage,
                    "partial_result": partial_result,
                    "updated_at": datetime.now(timezone.utc),
                },
                deep=True,
            )
            self._store(checkpoint)
            self._logger.debug("stage_saved", content_id=content_id, stage=stage.value)
            return True

    async def complete(
        self,
        content_id: str,
        owner_id: str,
        partial_result: dict[str, Any],
    ) -> bool:
        """Mark the item done and release the lease in one write."""
        async with self._lock:
            existing = self._checkpoints.get(content_id)
            if existing is None or existing.owner_id != owner_id:
                self._logger.warning("lease_lost", content_id=content_id, owner_id=owner_id)
                return False

            now = datetime.now(timezone.utc)
            checkpoint = existing.model_copy(
                update={
                    "stage": PipelineStage.DONE,
                    "partial_result": partial_result,
                    "owner_id": None,
                    "updated_at": now,
                    "completed_at": now,
                },
                deep=True,
            )
            self._store(checkpoint)
            self._logger.info("checkpoint_completed", content_id=content_id)
            return True

    async def release(self, content_id: str, owner_id: str) -> None:
        """Give up the lease without completing; completed stages are kept for resume."""
        async with self._lock:
            existing = self._checkpoints.get(content_id)
            if existing is not None and existing.owner_id == owner_id:
                self._store(existing.model_copy(update={"owner_id": None}, deep=True))
                self._logger.debug("lease_released", content_id=content_id)

    async def get(self, content_id: str) -> Optional[PipelineCheckpoint]:
        async with self._lock:
            checkpoint = self._checkpoints.get(content_id)
            return checkpoint.model_copy(deep=True) if checkpoint else None

    async def delete(self, content_id: str) -> bool:
        async with self._lock:
            if content_id not in self._checkpoints:
                return False
            del self._checkpoints[content_id]
            if self._persistence_path:
                self._save_to_file()
            return True

    async def list_resumable(
        self,
        stale_after: float = 1800.0,
        now: Optional[datetime] = None,
    ) -> list[str]:
        """Ids of unfinished items that nobody holds or whose lease went stale."""
        now = now or datetime.now(timezone.utc)
        async with self._lock:
            return [
                cid
                for cid, cp in self._checkpoints.items()
                if not cp.is_done
                and (cp.owner_id is None or self._is_stale(cp, stale_after, now))
            ]

    @staticmethod
    def _is_stale(checkpoint: PipelineCheckpoint, stale_after: float, now: datetime) -> bool:
        return now - checkpoint.updated_at > timedelta(seconds=stale_after)

    def _store(self, checkpoint: PipelineCheckpoint) -> None:
        self._checkpoints[checkpoint.content_id] = checkpoint
        if self._persistence_path:
            self._save_to_file()

    def _save_to_file(self) -> None:
        """Save to JSON file via a temp file so a crash never leaves a torn write."""
        if not self._persistence_path:
            return
        try:
            self._persistence_path.parent.mkdir(parents=True, exist_ok=True)
            data = {cid: cp.model_dump(mode="json") for cid, cp in self._checkpoints.items()}
            tmp_path = self._persistence_path.with_suffix(self._persistence_path.suffix + ".tmp")
            with open(tmp_path, "w") as f:
                json.dump(data, f, indent=2, default=str)
            os.replace(tmp_path, self._persistence_path)
        except OSError as e:
            self._logger.error("persistence_failed", error=str(e))

    def _load_from_file(self) -> None:
        try:
            with open(self._persistence_path, "r") as f:
                data = json.load(f)
            self._checkpoints = {
                cid: PipelineCheckpoint.model_validate(raw) for cid, raw in data.items()
            }
            self._logger.info("checkpoints_loaded", checkpoints=len(self._checkpoints))
        except (OSError, ValueError) as e:
            self._logger.error("load_failed", error=str(e))
            self._checkpoints = {}
