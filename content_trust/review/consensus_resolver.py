"""Review consensus: reputation-weighted reviewer votes -> final publish status.

Flow for each submitted vote:
1. Validate at the write boundary (schema, item state, self-review)
2. Append to the vote store (one vote per reviewer per item)
3. Weight votes by reviewer reputation, run vote guards, tally
4. Decide: consensus plus fact checks -> clean | blocked | needs_review
5. Commit with compare-and-set on needs_review; a concurrent resolution
   wins and this one becomes a no-op
6. On a committed terminal status, reward or penalize the voters

Items nobody resolves are escalated to human moderation after a timeout
(escalate_stale_reviews); they stay needs_review and are never published
automatically.

Usage:
    resolver = ReviewConsensusResolver(content_store=store)
    outcome = await resolver.submit_review_vote(
        "post-1", "reviewer-7", "invalidate",
        sources=["https://who.int/..."],
        justification="WHO review of 20 studies finds no such link.",
    )
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from pydantic import ValidationError

from content_trust.agents.sifters.verification.penalty_policy import PenaltyPolicy
from content_trust.config.settings import settings
from content_trust.data_management.content_store import ContentStore
from content_trust.data_management.review_queue import MODERATION_QUEUE, REVIEW_QUEUE, ReviewQueue
from content_trust.data_management.review_vote_store import ReviewVoteStore
from content_trust.data_management.schemas import (
    ConsensusResult,
    FactCheck,
    PublishStatus,
    ResolutionOutcome,
    ReviewAction,
    ReviewVote,
)
from content_trust.policy.policy_resolver import PolicyResolver
from content_trust.review.errors import VoteValidationError
from content_trust.review.reputation_engine import ReputationEngine
from content_trust.review.vote_guards import VoteGuard, WeightedVote, default_guards

# weighted sums of floats drift; an exact 60% split must still count
RATIO_TOLERANCE = 1e-9


class ReviewConsensusResolver:
    """Collects reviewer votes and turns consensus into a final decision."""

    def __init__(
        self,
        content_store: Optional[ContentStore] = None,
        vote_store: Optional[ReviewVoteStore] = None,
        reputation_engine: Optional[ReputationEngine] = None,
        review_queue: Optional[ReviewQueue] = None,
        policy_resolver: Optional[PolicyResolver] = None,
        guards: Optional[list[VoteGuard]] = None,
        policy: Optional[PenaltyPolicy] = None,
        min_votes: Optional[int] = None,
        supermajority: Optional[float] = None,
        contested_override_confidence: Optional[float] = None,
        escalation_after_s: Optional[float] = None,
    ) -> None:
        """Initialize ReviewConsensusResolver.

        Args:
            content_store: Store holding the items under review.
            vote_store: Append-only vote storage.
            reputation_engine: Vote weights and reviewer rewards.
            review_queue: Review and moderation queues.
            policy_resolver: State machine guarding status transitions.
            guards: Vote hardening hooks (default: duplicate justifications).
            policy: Penalty policy shared with the pipeline.
            min_votes: Minimum counted votes for consensus.
            supermajority: Weighted share needed for a crowd decision.
            contested_override_confidence: Confidence needed to override a
                mixed/unknown fact check.
            escalation_after_s: Age after which unresolved items go to moderators.
        """
        self.content_store = content_store or ContentStore()
        self.vote_store = vote_store or ReviewVoteStore()
        self.reputation_engine = reputation_engine or ReputationEngine()
        self.review_queue = review_queue or ReviewQueue()
        self.policy = policy or PenaltyPolicy.from_settings()
        self.policy_resolver = policy_resolver or PolicyResolver(policy=self.policy)
        self.guards = default_guards() if guards is None else guards
        self.min_votes = min_votes if min_votes is not None else settings.consensus_min_votes
        self.supermajority = supermajority if supermajority is not None else settings.consensus_supermajority
        self.contested_override_confidence = (
            contested_override_confidence
            if contested_override_confidence is not None
            else settings.contested_override_confidence
        )
        self.escalation_after = timedelta(
            seconds=escalation_after_s if escalation_after_s is not None else settings.review_escalation_after_s
        )
        self._logger = structlog.get_logger().bind(component="ReviewConsensusResolver")

    async def submit_review_vote(
        self,
        content_id: str,
        reviewer_id: str,
        action: ReviewAction | str,
        sources: list[str],
        justification: str,
    ) -> ResolutionOutcome:
        """
        Record a vote and re-evaluate consensus for the item.

        Raises:
            VoteValidationError: Invalid vote, unknown item, item not in
                needs_review, or the author reviewing their own item.
            DuplicateVoteError: The reviewer already voted on this item.
        """
        try:
            vote = ReviewVote(
                content_id=content_id,
                reviewer_id=reviewer_id,
                action=action,
                sources=sources,
                justification=justification,
            )
        except ValidationError as e:
            raise VoteValidationError(self._describe(e)) from e

        item = await self.content_store.get(content_id)
        if item is None:
            raise VoteValidationError(f"content item {content_id} not found")
        if item.publish_status != PublishStatus.NEEDS_REVIEW:
            raise VoteValidationError(f"content item {content_id} is not awaiting review")
        if item.author_id == reviewer_id:
            raise VoteValidationError("authors cannot review their own content")

        # votes belong to the version of the item the reviewer saw
        vote = vote.model_copy(update={"content_fingerprint": item.fingerprint()})
        await self.vote_store.append(vote)
        self._logger.info(
            "vote_recorded",
            content_id=content_id,
            reviewer_id=reviewer_id,
            action=vote.action.value,
        )
        return await self.resolve(content_id)

    async def get_publish_status(self, content_id: str) -> Optional[PublishStatus]:
        """
        Current publish status.

        Raises:
            LookupError: If the item does not exist.
        """
        item = await self.content_store.get(content_id)
        if item is None:
            raise LookupError(f"content item {content_id} not found")
        return item.publish_status

    async def evaluate_consensus(
        self,
        content_id: str,
        fingerprint: Optional[str] = None,
    ) -> ConsensusResult:
        """
        Reputation-weighted, guarded tally of the votes on the item's current version.

        Raises:
            LookupError: If no fingerprint is given and the item does not exist.
        """
        if fingerprint is None:
            item = await self.content_store.get(content_id)
            if item is None:
                raise LookupError(f"content item {content_id} not found")
            fingerprint = item.fingerprint()
        votes = await self.vote_store.list_for_content(content_id, fingerprint)
        weights = await self.reputation_engine.weights_for([v.reviewer_id for v in votes])
        weighted = [WeightedVote(v, weights[v.reviewer_id]) for v in votes]
        for guard in self.guards:
            weighted = guard(weighted)
        return self.compute_consensus(weighted)

    def compute_consensus(self, weighted: list[WeightedVote]) -> ConsensusResult:
        counted = [wv for wv in weighted if wv.weight > 0]
        validate = sum(wv.weight for wv in counted if wv.vote.action == ReviewAction.VALIDATE)
        invalidate = sum(wv.weight for wv in counted if wv.vote.action == ReviewAction.INVALIDATE)
        total = validate + invalidate

        result = ConsensusResult(
            validate_weight=validate,
            invalidate_weight=invalidate,
            total_weight=total,
            vote_count=len(weighted),
            effective_vote_count=len(counted),
        )
        if total <= 0:
            return result

        result.validate_ratio = validate / total
        result.invalidate_ratio = invalidate / total
        result.confidence = abs(validate - invalidate) / total

        if len(counted) < self.min_votes:
            return result

        if result.validate_ratio >= self.supermajority - RATIO_TOLERANCE:
            result.has_consensus = True
            result.proposed_status = PublishStatus.CLEAN
        elif result.invalidate_ratio >= self.supermajority - RATIO_TOLERANCE:
            result.has_consensus = True
            result.proposed_status = PublishStatus.BLOCKED
        return result

    def decide_final_status(
        self,
        consensus: ConsensusResult,
        fact_checks: list[FactCheck],
    ) -> tuple[PublishStatus, str]:
        """
        Combine crowd consensus with the original fact checks.

        A confident false fact check blocks whatever the crowd decided. A
        mixed/unknown fact check is only overridden to clean by a consensus
        whose confidence reaches the contested-override bar.
        """
        if not consensus.has_consensus:
            if consensus.effective_vote_count < self.min_votes:
                return PublishStatus.NEEDS_REVIEW, "insufficient_votes"
            return PublishStatus.NEEDS_REVIEW, "no_supermajority"

        if self.policy.confident_false(fact_checks):
            return PublishStatus.BLOCKED, "confident_false_fact_check"

        if consensus.proposed_status == PublishStatus.CLEAN:
            contested = any(fc.is_contested for fc in fact_checks)
            if contested and consensus.confidence < self.contested_override_confidence - RATIO_TOLERANCE:
                return PublishStatus.NEEDS_REVIEW, "contested_fact_check_needs_stronger_consensus"
            return PublishStatus.CLEAN, "crowd_validated"
        return PublishStatus.BLOCKED, "crowd_invalidated"

    async def resolve(self, content_id: str) -> ResolutionOutcome:
        """Evaluate consensus and commit a terminal status if one is reached."""
        item = await self.content_store.get(content_id)
        if item is None:
            raise LookupError(f"content item {content_id} not found")

        previous = item.publish_status
        if previous != PublishStatus.NEEDS_REVIEW:
            return ResolutionOutcome(
                content_id=content_id,
                previous_status=previous,
                final_status=previous,
                reason="not_awaiting_review",
            )

        fingerprint = item.fingerprint()
        consensus = await self.evaluate_consensus(content_id, fingerprint)
        status, reason = self.decide_final_status(consensus, item.fact_checks)
        outcome = ResolutionOutcome(
            content_id=content_id,
            previous_status=previous,
            final_status=status,
            reason=reason,
            consensus=consensus,
        )
        if status == PublishStatus.NEEDS_REVIEW:
            return outcome

        self.policy_resolver.validate_transition(previous, status, by_consensus=True)
        applied = await self.content_store.compare_and_set_status(
            content_id, PublishStatus.NEEDS_REVIEW, status
        )
        outcome.applied = applied
        if not applied:
            current = await self.get_publish_status(content_id)
            outcome.final_status = current
            outcome.reason = "resolved_concurrently"
            return outcome

        await self.review_queue.remove(content_id, REVIEW_QUEUE)
        await self.review_queue.remove(content_id, MODERATION_QUEUE)
        await self._settle_reviewers(content_id, fingerprint, status)
        self._logger.info(
            "review_resolved",
            content_id=content_id,
            status=status.value,
            confidence=round(consensus.confidence, 4),
            votes=consensus.vote_count,
        )
        return outcome

    async def _settle_reviewers(self, content_id: str, fingerprint: str, status: PublishStatus) -> None:
        winning = ReviewAction.VALIDATE if status == PublishStatus.CLEAN else ReviewAction.INVALIDATE
        for vote in await self.vote_store.list_for_content(content_id, fingerprint):
            await self.reputation_engine.apply_review_outcome(
                vote.reviewer_id, content_id, matched=vote.action == winning
            )

    async def escalate_stale_reviews(self, now: Optional[datetime] = None) -> list[str]:
        """
        Hand long-unresolved needs_review items to human moderation.

        Items stay needs_review; they are stamped and added to the
        moderation queue once.

        Returns:
            Ids escalated by this call
        """
        now = now or datetime.now(timezone.utc)
        escalated = []
        for item in await self.content_store.list_by_status(PublishStatus.NEEDS_REVIEW):
            if item.review_escalated_at is not None:
                continue
            waiting_since = item.status_changed_at or item.insights_updated_at or item.created_at
            if now - waiting_since < self.escalation_after:
                continue
            if await self.content_store.mark_review_escalated(item.id, now):
                await self.review_queue.enqueue(item.id, MODERATION_QUEUE, at=now)
                escalated.append(item.id)
                self._logger.warning(
                    "review_escalated",
                    content_id=item.id,
                    waiting_hours=round((now - waiting_since).total_seconds() / 3600, 1),
                )
        return escalated

    @staticmethod
    def _describe(error: ValidationError) -> str:
        return "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in error.errors()
        )
