"""Reputation profile storage with atomic read-modify-write.

Every mutation goes through update(user_id, fn): the profile is read,
passed to ``fn`` and written back while the store lock is held, so two
concurrent updates for the same user can never lose each other's writes.
"""

import asyncio
from datetime import datetime, timezone
from typing import Callable, Optional

import structlog

from content_trust.data_management.schemas import ReputationProfile


class ReputationStore:
    """In-memory reputation profiles keyed by user_id."""

    def __init__(self) -> None:
        self._profiles: dict[str, ReputationProfile] = {}
        self._lock = asyncio.Lock()
        self._logger = structlog.get_logger().bind(component="ReputationStore")

    async def get(self, user_id: str) -> Optional[ReputationProfile]:
        async with self._lock:
            profile = self._profiles.get(user_id)
            return profile.model_copy(deep=True) if profile else None

    async def get_many(self, user_ids: list[str]) -> dict[str, ReputationProfile]:
        """Profiles for the given users; users without a profile are omitted."""
        async with self._lock:
            return {
                uid: self._profiles[uid].model_copy(deep=True)
                for uid in set(user_ids)
                if uid in self._profiles
            }

    async def put(self, profile: ReputationProfile) -> None:
        async with self._lock:
            self._profiles[profile.user_id] = profile.model_copy(deep=True)

    async def update(
        self,
        user_id: str,
        fn: Callable[[ReputationProfile], None],
    ) -> ReputationProfile:
        """Atomically apply ``fn`` to a user's profile (created on first use).

        ``fn`` mutates the profile in place. It must not await.

        Returns:
            Copy of the updated profile.
        """
        async with self._lock:
            profile = self._profiles.get(user_id)
            working = profile.model_copy(deep=True) if profile else ReputationProfile(user_id=user_id)
            fn(working)
            working.score = max(0.0, min(100.0, working.score))
            working.last_updated = datetime.now(timezone.utc)
            self._profiles[user_id] = working
            self._logger.debug("reputation_updated", user_id=user_id, score=round(working.score, 2))
            return working.model_copy(deep=True)

    async def increment(self, user_id: str, field: str, delta: float) -> ReputationProfile:
        """Atomically add ``delta`` to a numeric profile field."""

        def _apply(profile: ReputationProfile) -> None:
            setattr(profile, field, getattr(profile, field) + delta)

        return await self.update(user_id, _apply)
