"""Reputation engine: author scores from content outcomes, reviewer scores from votes.

Author score after each terminal pipeline result:

    quality     = .3 epistemic + .2 insight + .2 practical + .2 relational + .1 effort
    violation   = 1.0 blocked | 0.4 needs_review | 0, + min(1, 0.25 * confident-false count)
    engagement  = mean thread-quality dimension (0.4 without discussion)
    consistency = min(1, rolling contribution / 5)
    trust       = 0 blocked | 0.3 repeat violations | 0.6 needs_review | 1
    net         = .4 quality + .15 engagement + .1 consistency + .1 trust - .25 min(1, violation)
    score       = round((net + 0.25) * 100)        # net spans [-0.25, 0.75]

Reviewer score moves +1.0 for a vote that matched the final decision and
-1.5 for one that contradicted it.
"""

from typing import Optional

import structlog

from content_trust.agents.sifters.verification.penalty_policy import PenaltyPolicy
from content_trust.config.settings import settings
from content_trust.data_management.reputation_store import ReputationStore
from content_trust.data_management.schemas import (
    DiscussionAnalysis,
    FactCheck,
    PolicyDecision,
    PublishStatus,
    ReputationEvent,
    ReputationProfile,
    ValueVector,
)

QUALITY_WEIGHT = 0.4
VIOLATION_WEIGHT = 0.25
ENGAGEMENT_WEIGHT = 0.15
CONSISTENCY_WEIGHT = 0.1
TRUST_WEIGHT = 0.1

DEFAULT_ENGAGEMENT = 0.4
ROLLING_DECAY = 0.9
CONSISTENCY_SCALE = 5.0

REVIEW_MATCH_DELTA = 1.0
REVIEW_MISMATCH_DELTA = -1.5

MIN_VOTE_WEIGHT = 0.1
MAX_VOTE_WEIGHT = 1.0


class ReputationEngine:
    """Computes and records reputation changes through the ReputationStore."""

    def __init__(
        self,
        store: Optional[ReputationStore] = None,
        policy: Optional[PenaltyPolicy] = None,
        default_reviewer_score: Optional[float] = None,
    ) -> None:
        self.store = store or ReputationStore()
        self.policy = policy or PenaltyPolicy.from_settings()
        self.default_reviewer_score = (
            default_reviewer_score if default_reviewer_score is not None else settings.default_reviewer_score
        )
        self._logger = structlog.get_logger().bind(component="ReputationEngine")

    async def apply_content_outcome(
        self,
        user_id: str,
        content_id: str,
        value: Optional[ValueVector],
        decision: PolicyDecision,
        discussion: Optional[DiscussionAnalysis] = None,
        fact_checks: Optional[list[FactCheck]] = None,
        outcome_key: Optional[str] = None,
    ) -> ReputationProfile:
        """
        Recompute the author's score after a content item reached a terminal result.

        An ``outcome_key`` already present in the author's history is not
        applied again, so a resumed run cannot count the same outcome twice.
        """
        fact_checks = fact_checks or []
        value = value or ValueVector()

        quality = (
            0.3 * value.epistemic
            + 0.2 * value.insight
            + 0.2 * value.practical
            + 0.2 * value.relational
            + 0.1 * value.effort
        )

        violation = {PublishStatus.BLOCKED: 1.0, PublishStatus.NEEDS_REVIEW: 0.4}.get(decision.status, 0.0)
        violation += min(1.0, 0.25 * len(self.policy.confident_false(fact_checks)))

        if discussion is not None and discussion.per_reply_contribution:
            engagement = discussion.thread_quality.average()
        else:
            engagement = DEFAULT_ENGAGEMENT

        skipped = False

        def _apply(profile: ReputationProfile) -> None:
            nonlocal skipped
            if outcome_key and profile.has_outcome(outcome_key):
                skipped = True
                return
            previous = profile.score
            repeat_offender = profile.recent_violations > 0

            profile.rolling_contribution = profile.rolling_contribution * ROLLING_DECAY + value.total
            profile.content_count += 1
            if decision.status == PublishStatus.CLEAN:
                profile.recent_violations = max(0, profile.recent_violations - 1)
            else:
                profile.recent_violations += 1

            consistency = min(1.0, profile.rolling_contribution / CONSISTENCY_SCALE)
            if decision.status == PublishStatus.BLOCKED:
                trust = 0.0
            elif repeat_offender and decision.status != PublishStatus.CLEAN:
                trust = 0.3
            elif decision.status == PublishStatus.NEEDS_REVIEW:
                trust = 0.6
            else:
                trust = 1.0

            net = (
                QUALITY_WEIGHT * quality
                + ENGAGEMENT_WEIGHT * engagement
                + CONSISTENCY_WEIGHT * consistency
                + TRUST_WEIGHT * trust
                - VIOLATION_WEIGHT * min(1.0, violation)
            )
            net = max(-0.25, min(0.75, net))
            profile.score = float(round((net + 0.25) * 100))
            profile.components = {
                "quality": round(quality, 4),
                "violation": round(violation, 4),
                "engagement": round(engagement, 4),
                "consistency": round(consistency, 4),
                "trust": trust,
            }
            profile.record(
                ReputationEvent(
                    kind=f"content_{decision.status.value}",
                    delta=profile.score - previous,
                    score_after=profile.score,
                    reference_id=content_id,
                    outcome_key=outcome_key,
                )
            )

        profile = await self.store.update(user_id, _apply)
        if skipped:
            self._logger.info("author_reputation_already_applied", user_id=user_id, outcome_key=outcome_key)
            return profile
        self._logger.info(
            "author_reputation_updated",
            user_id=user_id,
            content_id=content_id,
            score=profile.score,
            status=decision.status.value,
        )
        return profile

    async def apply_review_outcome(
        self,
        reviewer_id: str,
        content_id: str,
        matched: bool,
    ) -> ReputationProfile:
        """Reward or penalize a reviewer once an item's review is resolved."""
        delta = REVIEW_MATCH_DELTA if matched else REVIEW_MISMATCH_DELTA

        def _apply(profile: ReputationProfile) -> None:
            profile.score = max(0.0, min(100.0, profile.score + delta))
            if matched:
                profile.reviews_matched += 1
            else:
                profile.reviews_contradicted += 1
            profile.record(
                ReputationEvent(
                    kind="review_matched" if matched else "review_contradicted",
                    delta=delta,
                    score_after=profile.score,
                    reference_id=content_id,
                )
            )

        return await self.store.update(reviewer_id, _apply)

    def weight_from_score(self, score: Optional[float]) -> float:
        """Vote weight: score / 100 clamped to [0.1, 1.0]."""
        if score is None:
            score = self.default_reviewer_score
        return max(MIN_VOTE_WEIGHT, min(MAX_VOTE_WEIGHT, score / 100.0))

    async def weight_for(self, user_id: str) -> float:
        profile = await self.store.get(user_id)
        return self.weight_from_score(profile.score if profile else None)

    async def weights_for(self, user_ids: list[str]) -> dict[str, float]:
        profiles = await self.store.get_many(user_ids)
        return {
            uid: self.weight_from_score(profiles[uid].score if uid in profiles else None)
            for uid in user_ids
        }
