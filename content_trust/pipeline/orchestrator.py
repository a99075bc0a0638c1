"""Content trust pipeline: pre-check -> claims -> fact check -> discussion -> scoring.

Runs every stage for one content item under a checkpoint lease, then writes
all derived fields back in a single update.

Per stage:
- AI path retried with exponential backoff on transient failures and
  timeouts (tenacity), each attempt bounded by a timeout
- on exhausted retries or unavailable inference the agent's fallback runs
  and the stage is recorded as degraded
- completed stages are checkpointed, so a crashed run resumes after the
  last finished stage

Re-processing an unchanged, finished item returns the cached result
without any inference calls.

Usage:
    from content_trust.pipeline import ContentTrustPipeline

    pipeline = ContentTrustPipeline(content_store=store)
    result = await pipeline.process("post-1")
"""

import asyncio
import uuid
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from content_trust.agents.sifters import (
    ClaimExtractionAgent,
    DiscussionAnalyzer,
    ExplanationAgent,
    FactVerifier,
    PenaltyPolicy,
    RiskClassifier,
    ValueScorer,
)
from content_trust.config.settings import settings
from content_trust.data_management.checkpoint_store import CheckpointStore, LeaseStatus
from content_trust.data_management.comment_store import CommentStore
from content_trust.data_management.content_store import ContentStore
from content_trust.data_management.review_queue import MODERATION_QUEUE, REVIEW_QUEUE, ReviewQueue
from content_trust.data_management.schemas import (
    Claim,
    ContentInsights,
    ContentItem,
    DiscussionAnalysis,
    FactCheck,
    PipelineCheckpoint,
    PipelineResult,
    PipelineStage,
    PolicyDecision,
    PreCheckResult,
    PublishStatus,
    ValueVector,
)
from content_trust.llm.errors import TransientInferenceError
from content_trust.policy.policy_resolver import PolicyResolver
from content_trust.review.reputation_engine import ReputationEngine
from content_trust.utils.logging import bind_run_context, clear_run_context

T = TypeVar("T")

LEASE_POLL_INTERVAL_S = 0.05


class LeaseLostError(RuntimeError):
    """Another worker took over the item's lease mid-run."""


class ContentTrustPipeline:
    """Orchestrates the sifter agents for one content item at a time."""

    def __init__(
        self,
        content_store: Optional[ContentStore] = None,
        comment_store: Optional[CommentStore] = None,
        checkpoint_store: Optional[CheckpointStore] = None,
        review_queue: Optional[ReviewQueue] = None,
        reputation_engine: Optional[ReputationEngine] = None,
        risk_classifier: Optional[RiskClassifier] = None,
        claim_extractor: Optional[ClaimExtractionAgent] = None,
        fact_verifier: Optional[FactVerifier] = None,
        discussion_analyzer: Optional[DiscussionAnalyzer] = None,
        value_scorer: Optional[ValueScorer] = None,
        explanation_agent: Optional[ExplanationAgent] = None,
        policy_resolver: Optional[PolicyResolver] = None,
        policy: Optional[PenaltyPolicy] = None,
        max_attempts: Optional[int] = None,
        backoff_base_s: Optional[float] = None,
        backoff_max_s: Optional[float] = None,
        stage_timeout_s: Optional[float] = None,
        stale_after_s: Optional[float] = None,
        lease_wait_s: Optional[float] = None,
    ) -> None:
        """Initialize ContentTrustPipeline.

        Agents left as None are created on first use with the inference
        client from settings.

        Args:
            content_store: Shared content store (write-back target).
            comment_store: Replies, read by the discussion stage.
            checkpoint_store: Per-item progress and lease.
            review_queue: Receives needs_review items.
            reputation_engine: Updates the author's reputation after a run.
            policy: Penalty policy shared by scoring, policy and reputation.
            max_attempts: Attempts per stage before falling back.
            backoff_base_s: Exponential backoff multiplier.
            backoff_max_s: Backoff ceiling.
            stage_timeout_s: Timeout of a single stage attempt.
            stale_after_s: Age after which another worker's lease is taken over.
            lease_wait_s: How long to wait for a busy lease before skipping.
        """
        self.policy = policy or PenaltyPolicy.from_settings()
        self.content_store = content_store or ContentStore(settings.content_store_path)
        self.comment_store = comment_store or CommentStore()
        self.checkpoint_store = checkpoint_store or CheckpointStore(settings.checkpoint_path)
        self.review_queue = review_queue or ReviewQueue()
        self.reputation_engine = reputation_engine or ReputationEngine(policy=self.policy)
        self.policy_resolver = policy_resolver or PolicyResolver(policy=self.policy)

        self._risk_classifier = risk_classifier
        self._claim_extractor = claim_extractor
        self._fact_verifier = fact_verifier
        self._discussion_analyzer = discussion_analyzer
        self._value_scorer = value_scorer
        self._explanation_agent = explanation_agent

        self.max_attempts = max_attempts or settings.stage_max_attempts
        self.backoff_base_s = backoff_base_s if backoff_base_s is not None else settings.stage_backoff_base_s
        self.backoff_max_s = backoff_max_s if backoff_max_s is not None else settings.stage_backoff_max_s
        self.stage_timeout_s = stage_timeout_s or settings.stage_timeout_s
        self.stale_after_s = stale_after_s if stale_after_s is not None else settings.checkpoint_stale_after_s
        self.lease_wait_s = lease_wait_s if lease_wait_s is not None else settings.lease_wait_s

        self.worker_id = str(uuid.uuid4())
        self._logger = structlog.get_logger().bind(component="ContentTrustPipeline")

    # Lazy agent construction

    @property
    def risk_classifier(self) -> RiskClassifier:
        if self._risk_classifier is None:
            self._risk_classifier = RiskClassifier()
        return self._risk_classifier

    @property
    def claim_extractor(self) -> ClaimExtractionAgent:
        if self._claim_extractor is None:
            self._claim_extractor = ClaimExtractionAgent()
        return self._claim_extractor

    @property
    def fact_verifier(self) -> FactVerifier:
        if self._fact_verifier is None:
            self._fact_verifier = FactVerifier()
        return self._fact_verifier

    @property
    def discussion_analyzer(self) -> DiscussionAnalyzer:
        if self._discussion_analyzer is None:
            self._discussion_analyzer = DiscussionAnalyzer()
        return self._discussion_analyzer

    @property
    def value_scorer(self) -> ValueScorer:
        if self._value_scorer is None:
            self._value_scorer = ValueScorer(policy=self.policy)
        return self._value_scorer

    @property
    def explanation_agent(self) -> ExplanationAgent:
        if self._explanation_agent is None:
            self._explanation_agent = ExplanationAgent()
        return self._explanation_agent

    async def process(self, content_id: str) -> PipelineResult:
        """
        Run the pipeline for one item.

        Returns:
            PipelineResult; from_cache=True for an unchanged finished item,
            skipped=True when another worker holds the lease.

        Raises:
            LookupError: If the item does not exist.
        """
        item = await self.content_store.get(content_id)
        if item is None:
            raise LookupError(f"content item {content_id} not found")

        bind_run_context(content_id)
        try:
            status, checkpoint = await self._acquire_lease(item)
            if status == LeaseStatus.DONE:
                self._logger.info("pipeline_cached")
                return self._cached_result(item, checkpoint.partial_result)
            if status == LeaseStatus.IN_PROGRESS:
                return PipelineResult(
                    content_id=content_id,
                    status=item.publish_status,
                    skipped=True,
                    skip_reason="in_progress",
                )

            try:
                return await self._run_stages(item, checkpoint)
            except LeaseLostError:
                self._logger.warning("pipeline_aborted_lease_lost")
                return PipelineResult(
                    content_id=content_id,
                    status=item.publish_status,
                    skipped=True,
                    skip_reason="lease_lost",
                )
            except BaseException:
                await self.checkpoint_store.release(content_id, self.worker_id)
                raise
        finally:
            clear_run_context()

    async def process_many(self, content_ids: list[str]) -> list[PipelineResult]:
        """Process several items concurrently; a failing item does not stop the others."""
        results = await asyncio.gather(
            *(self.process(cid) for cid in content_ids),
            return_exceptions=True,
        )
        processed = []
        for cid, result in zip(content_ids, results):
            if isinstance(result, Exception):
                self._logger.error("pipeline_failed", content_id=cid, error=str(result))
                continue
            if isinstance(result, BaseException):
                raise result
            processed.append(result)
        return processed

    async def resume_stale(self) -> list[PipelineResult]:
        """Resume unfinished items whose lease was released or went stale."""
        ids = await self.checkpoint_store.list_resumable(stale_after=self.stale_after_s)
        if ids:
            self._logger.info("resuming_checkpoints", count=len(ids))
        return await self.process_many(ids)

    async def _acquire_lease(self, item: ContentItem):
        fingerprint = item.fingerprint()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.lease_wait_s
        while True:
            status, checkpoint = await self.checkpoint_store.acquire(
                item.id, fingerprint, self.worker_id, stale_after=self.stale_after_s
            )
            if status != LeaseStatus.IN_PROGRESS or loop.time() >= deadline:
                return status, checkpoint
            await asyncio.sleep(LEASE_POLL_INTERVAL_S)

    async def _run_stages(self, item: ContentItem, checkpoint: PipelineCheckpoint) -> PipelineResult:
        last_stage = checkpoint.stage
        state = dict(checkpoint.partial_result)
        degraded: list[str] = list(state.get("degraded_stages", []))
        if last_stage is not None:
            self._logger.info("pipeline_resumed", stage=last_stage.value)

        quoted = None
        if item.quoted_content_id:
            quoted = await self.content_store.get(item.quoted_content_id)

        # Pre-check
        if checkpoint.has_completed(PipelineStage.PRECHECK):
            precheck = PreCheckResult.model_validate(state["precheck"])
        else:
            precheck = await self._run_stage(
                PipelineStage.PRECHECK,
                lambda: self.risk_classifier.run(item, quoted),
                lambda: self.risk_classifier.fallback(item, quoted),
                lambda: PreCheckResult(
                    needs_fact_check=True,
                    confidence=0.0,
                    reasoning="Pre-check failed; verifying by default",
                ),
                degraded,
            )
            state["precheck"] = precheck.model_dump(mode="json")
            await self._save(item.id, PipelineStage.PRECHECK, state, degraded)

        # Claims
        if checkpoint.has_completed(PipelineStage.CLAIMS):
            claims = [Claim.model_validate(c) for c in state.get("claims", [])]
        else:
            if precheck.needs_fact_check:
                claims = await self._run_stage(
                    PipelineStage.CLAIMS,
                    lambda: self.claim_extractor.run(item, quoted),
                    lambda: self.claim_extractor.fallback(item, quoted),
                    list,
                    degraded,
                )
            else:
                claims = []
            state["claims"] = [c.model_dump(mode="json") for c in claims]
            await self._save(item.id, PipelineStage.CLAIMS, state, degraded)

        # Fact check
        known = quoted.fact_checks if quoted is not None else []
        if checkpoint.has_completed(PipelineStage.FACTCHECK):
            fact_checks = [FactCheck.model_validate(fc) for fc in state.get("fact_checks", [])]
        else:
            if claims:
                fact_checks = await self._run_stage(
                    PipelineStage.FACTCHECK,
                    lambda: self.fact_verifier.run(item, claims, known),
                    lambda: self.fact_verifier.fallback(item, claims, known),
                    lambda: [self.fact_verifier.fallback_check(c) for c in claims],
                    degraded,
                )
            else:
                fact_checks = []
            interim = self.policy_resolver.evaluate(precheck, claims, fact_checks)
            state["fact_checks"] = [fc.model_dump(mode="json") for fc in fact_checks]
            state["interim_decision"] = interim.model_dump(mode="json")
            await self._save(item.id, PipelineStage.FACTCHECK, state, degraded)
            self._logger.info("interim_decision", status=interim.status.value)

        # Discussion
        if checkpoint.has_completed(PipelineStage.DISCUSSION):
            discussion = DiscussionAnalysis.model_validate(state["discussion"])
        else:
            replies = await self.comment_store.list_by_parent(
                item.id, limit=self.discussion_analyzer.max_replies
            )
            if replies:
                discussion = await self._run_stage(
                    PipelineStage.DISCUSSION,
                    lambda: self.discussion_analyzer.run(item, replies),
                    lambda: self.discussion_analyzer.fallback(item, replies),
                    DiscussionAnalyzer.empty,
                    degraded,
                )
            else:
                discussion = DiscussionAnalyzer.empty()
            state["discussion"] = discussion.model_dump(mode="json")
            await self._save(item.id, PipelineStage.DISCUSSION, state, degraded)

        # Scoring
        if checkpoint.has_completed(PipelineStage.SCORING):
            value = ValueVector.model_validate(state["value_score"]) if state.get("value_score") else None
            explanation = state.get("explanation")
        else:
            value = await self._run_stage(
                PipelineStage.SCORING,
                lambda: self.value_scorer.run(item, claims, fact_checks, discussion),
                lambda: self.value_scorer.fallback(item, claims, fact_checks, discussion),
                lambda: None,
                degraded,
            )
            explanation = None
            if value is not None:
                explanation = await self._run_stage(
                    PipelineStage.SCORING,
                    lambda: self.explanation_agent.run(item, value, claims, fact_checks, discussion),
                    lambda: self.explanation_agent.fallback(item, value, claims, fact_checks, discussion),
                    lambda: None,
                    degraded,
                    label="explanation",
                )
            state["value_score"] = value.model_dump(mode="json") if value else None
            state["explanation"] = explanation
            await self._save(item.id, PipelineStage.SCORING, state, degraded)

        decision = self.policy_resolver.resolve_final(
            self.policy_resolver.evaluate(precheck, claims, fact_checks)
        )
        return await self._finish(
            item, precheck, claims, fact_checks, discussion, value, explanation,
            decision, degraded, last_stage, state,
        )

    async def _finish(
        self,
        item: ContentItem,
        precheck: PreCheckResult,
        claims: list[Claim],
        fact_checks: list[FactCheck],
        discussion: DiscussionAnalysis,
        value: Optional[ValueVector],
        explanation: Optional[str],
        decision: PolicyDecision,
        degraded: list[str],
        resumed_from: Optional[PipelineStage],
        state: dict[str, Any],
    ) -> PipelineResult:
        # an item that already has a status is only re-run after an edit
        self.policy_resolver.validate_transition(
            item.publish_status, decision.status, reopen=item.publish_status is not None
        )
        await self.content_store.apply_insights(
            item.id,
            ContentInsights(
                claims=claims,
                fact_checks=fact_checks,
                fact_check_status=decision.status,
                value_score=value,
                explanation=explanation,
                discussion_quality=discussion.thread_quality if discussion.per_reply_contribution else None,
            ),
        )

        if decision.status == PublishStatus.NEEDS_REVIEW:
            await self.review_queue.enqueue(item.id, REVIEW_QUEUE)
        else:
            await self.review_queue.remove(item.id, REVIEW_QUEUE)
        if decision.status == PublishStatus.NEEDS_REVIEW and decision.escalate_to_human:
            await self.review_queue.enqueue(item.id, MODERATION_QUEUE)
        else:
            await self.review_queue.remove(item.id, MODERATION_QUEUE)

        await self.reputation_engine.apply_content_outcome(
            item.author_id,
            item.id,
            value,
            decision,
            discussion,
            fact_checks,
            outcome_key=f"{item.id}:{item.fingerprint()}",
        )

        state["decision"] = decision.model_dump(mode="json")
        state["degraded_stages"] = degraded
        if not await self.checkpoint_store.complete(item.id, self.worker_id, state):
            self._logger.warning("checkpoint_complete_rejected")

        self._logger.info(
            "pipeline_complete",
            status=decision.status.value,
            claims=len(claims),
            degraded=degraded,
        )
        return PipelineResult(
            content_id=item.id,
            status=decision.status,
            precheck=precheck,
            claims=claims,
            fact_checks=fact_checks,
            discussion=discussion,
            value_score=value,
            explanation=explanation,
            decision=decision,
            degraded_stages=degraded,
            resumed_from=resumed_from,
        )

    async def _run_stage(
        self,
        stage: PipelineStage,
        call: Callable[[], Awaitable[T]],
        fallback: Callable[[], T],
        default: Callable[[], T],
        degraded: list[str],
        label: Optional[str] = None,
    ) -> T:
        """
        Run one stage's AI path with retry, degrading to fallback then default.

        Transient failures and timeouts are retried up to max_attempts.
        Any other failure of the AI path goes straight to the fallback, and a
        failing fallback to the stage default, so a stage never raises.
        """
        name = label or stage.value
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=self.backoff_base_s, max=self.backoff_max_s),
                retry=retry_if_exception_type((TransientInferenceError, asyncio.TimeoutError)),
                reraise=True,
            ):
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        self._logger.info(
                            "stage_retry",
                            stage=name,
                            attempt=attempt.retry_state.attempt_number,
                        )
                    return await asyncio.wait_for(call(), timeout=self.stage_timeout_s)
        except Exception as e:
            self._logger.warning(
                "stage_degraded",
                stage=name,
                error_type=type(e).__name__,
                error=str(e),
            )

        degraded.append(name)
        try:
            return fallback()
        except Exception as e:
            self._logger.error(
                "stage_fallback_failed",
                stage=name,
                error_type=type(e).__name__,
                error=str(e),
            )
            return default()

    async def _save(
        self,
        content_id: str,
        stage: PipelineStage,
        state: dict[str, Any],
        degraded: list[str],
    ) -> None:
        state["degraded_stages"] = list(degraded)
        if not await self.checkpoint_store.save_stage(content_id, self.worker_id, stage, state):
            raise LeaseLostError(content_id)

    def _cached_result(self, item: ContentItem, partial: dict[str, Any]) -> PipelineResult:
        decision = partial.get("decision")
        discussion = partial.get("discussion")
        value = partial.get("value_score")
        precheck = partial.get("precheck")
        return PipelineResult(
            content_id=item.id,
            status=item.publish_status,
            precheck=PreCheckResult.model_validate(precheck) if precheck else None,
            claims=item.claims,
            fact_checks=item.fact_checks,
            discussion=DiscussionAnalysis.model_validate(discussion) if discussion else None,
            value_score=ValueVector.model_validate(value) if value else item.value_score,
            explanation=item.explanation,
            decision=PolicyDecision.model_validate(decision) if decision else None,
            degraded_stages=list(partial.get("degraded_stages", [])),
            from_cache=True,
        )
