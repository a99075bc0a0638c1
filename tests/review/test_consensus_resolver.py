"""Tests for ReviewConsensusResolver.

Tests cover:
- Vote validation at the write boundary (schema, state, self-review, duplicates)
- Minimum vote count and supermajority, including an exact weighted 60% split
- Contested fact checks needing stronger consensus
- Confident false fact check overriding crowd validation
- Reviewer settlement and queue cleanup after resolution
- Concurrent resolution with a single winner
- Edited items start a new review round
- Escalation of unresolved items to moderation
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from content_trust.data_management import ContentStore, ReputationStore, ReviewQueue, ReviewVoteStore
from content_trust.data_management.review_queue import MODERATION_QUEUE, REVIEW_QUEUE
from content_trust.data_management.schemas import (
    Claim,
    ContentInsights,
    FactCheck,
    PublishStatus,
    ReviewVote,
)
from content_trust.review.consensus_resolver import ReviewConsensusResolver
from content_trust.review.errors import DuplicateVoteError, VoteValidationError
from content_trust.review.reputation_engine import ReputationEngine
from content_trust.review.vote_guards import DuplicateJustificationGuard

SOURCES = ["https://www.who.int/news-room/fact-sheets"]


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def content_store() -> ContentStore:
    return ContentStore()


@pytest.fixture
def queue() -> ReviewQueue:
    return ReviewQueue()


@pytest.fixture
def reputation() -> ReputationEngine:
    return ReputationEngine(store=ReputationStore(), default_reviewer_score=50.0)


@pytest.fixture
def resolver(content_store, queue, reputation) -> ReviewConsensusResolver:
    return ReviewConsensusResolver(
        content_store=content_store,
        vote_store=ReviewVoteStore(),
        reputation_engine=reputation,
        review_queue=queue,
        guards=[],
        min_votes=50,
        supermajority=0.6,
        contested_override_confidence=0.7,
        escalation_after_s=7 * 24 * 3600,
    )


@pytest.fixture
def pending_item(content_store, queue, make_item):
    """Store a needs_review item whose fact checks are given by the test."""

    async def _pending(verdict: str = "unknown", confidence: float = 0.25, content_id: str = "post-1"):
        await content_store.add(make_item(content_id, text="Rates will double next month."))
        await content_store.apply_insights(
            content_id,
            ContentInsights(
                claims=[Claim(id=f"{content_id}-c1", text="Rates will double next month", domain="finance")],
                fact_checks=[
                    FactCheck(
                        id=f"{content_id}-c1-check",
                        claim_id=f"{content_id}-c1",
                        verdict=verdict,
                        confidence=confidence,
                    )
                ],
                fact_check_status=PublishStatus.NEEDS_REVIEW,
            ),
        )
        await queue.enqueue(content_id, REVIEW_QUEUE)
        return content_id

    return _pending


async def _vote(resolver, reviewer: str, action: str, content_id: str = "post-1"):
    return await resolver.submit_review_vote(
        content_id,
        reviewer,
        action,
        sources=SOURCES,
        justification=f"Reviewer {reviewer} checked the central bank release.",
    )


async def _votes(resolver, action: str, count: int, start: int = 0, content_id: str = "post-1"):
    outcome = None
    for i in range(start, start + count):
        outcome = await _vote(resolver, f"rev-{i}", action, content_id)
    return outcome


class TestVoteValidation:
    @pytest.mark.asyncio
    async def test_missing_sources(self, resolver, pending_item):
        await pending_item()
        with pytest.raises(VoteValidationError, match="sources"):
            await resolver.submit_review_vote(
                "post-1", "rev-1", "invalidate", sources=[], justification="A long enough justification here."
            )

    @pytest.mark.asyncio
    async def test_short_justification(self, resolver, pending_item):
        await pending_item()
        with pytest.raises(VoteValidationError, match="justification"):
            await resolver.submit_review_vote("post-1", "rev-1", "invalidate", sources=SOURCES, justification="too short")

    @pytest.mark.asyncio
    async def test_unknown_action(self, resolver, pending_item):
        await pending_item()
        with pytest.raises(VoteValidationError):
            await resolver.submit_review_vote(
                "post-1", "rev-1", "approve", sources=SOURCES, justification="A long enough justification here."
            )

    @pytest.mark.asyncio
    async def test_unknown_item(self, resolver):
        with pytest.raises(VoteValidationError, match="not found"):
            await _vote(resolver, "rev-1", "validate", content_id="missing")

    @pytest.mark.asyncio
    async def test_item_not_awaiting_review(self, resolver, content_store, make_item):
        await content_store.add(make_item(text="Plain post"))
        with pytest.raises(VoteValidationError, match="not awaiting review"):
            await _vote(resolver, "rev-1", "validate")

    @pytest.mark.asyncio
    async def test_author_cannot_review(self, resolver, pending_item):
        await pending_item()
        with pytest.raises(VoteValidationError, match="own content"):
            await _vote(resolver, "author-1", "validate")

    @pytest.mark.asyncio
    async def test_duplicate_vote(self, resolver, pending_item):
        await pending_item()
        await _vote(resolver, "rev-1", "validate")
        with pytest.raises(DuplicateVoteError):
            await _vote(resolver, "rev-1", "invalidate")
        assert await resolver.vote_store.count("post-1") == 1


class TestConsensus:
    @pytest.mark.asyncio
    async def test_below_minimum_votes(self, resolver, pending_item):
        await pending_item()
        outcome = await _votes(resolver, "invalidate", 49)
        assert outcome.final_status == PublishStatus.NEEDS_REVIEW
        assert outcome.reason == "insufficient_votes"
        assert outcome.consensus.invalidate_ratio == 1.0
        assert not outcome.applied

    @pytest.mark.asyncio
    async def test_fiftieth_vote_blocks(self, resolver, pending_item, queue, reputation):
        await pending_item()
        outcome = await _votes(resolver, "invalidate", 50)

        assert outcome.applied
        assert outcome.final_status == PublishStatus.BLOCKED
        assert outcome.reason == "crowd_invalidated"
        assert outcome.consensus.confidence == pytest.approx(1.0)
        assert await resolver.get_publish_status("post-1") == PublishStatus.BLOCKED
        assert not await queue.contains("post-1", REVIEW_QUEUE)

        profile = await reputation.store.get("rev-0")
        assert profile.score == 66.0
        assert profile.reviews_matched == 1

    @pytest.mark.asyncio
    async def test_split_vote_has_no_supermajority(self, resolver, pending_item):
        await pending_item()
        await _votes(resolver, "validate", 30)
        outcome = await _votes(resolver, "invalidate", 30, start=30)
        assert outcome.final_status == PublishStatus.NEEDS_REVIEW
        assert outcome.reason == "no_supermajority"
        assert outcome.consensus.confidence == pytest.approx(0.0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "majority,minority,expected",
        [
            ("validate", "invalidate", PublishStatus.CLEAN),
            ("invalidate", "validate", PublishStatus.BLOCKED),
        ],
    )
    async def test_exact_weighted_supermajority(
        self, resolver, pending_item, reputation, majority, minority, expected
    ):
        await pending_item(verdict="true", confidence=0.9)
        for i in range(50):
            await reputation.store.increment(f"rev-{i}", "score", 5)

        await _votes(resolver, majority, 30)
        outcome = await _votes(resolver, minority, 20, start=30)

        consensus = outcome.consensus
        assert consensus.total_weight == pytest.approx(50 * 0.7)
        assert max(consensus.validate_ratio, consensus.invalidate_ratio) == pytest.approx(0.6)
        assert consensus.has_consensus
        assert outcome.final_status == expected
        assert outcome.applied

    @pytest.mark.asyncio
    async def test_contested_needs_stronger_consensus(self, resolver, pending_item):
        await pending_item(verdict="mixed", confidence=0.5)
        await _votes(resolver, "invalidate", 10)
        outcome = await _votes(resolver, "validate", 40, start=10)

        assert outcome.consensus.has_consensus
        assert outcome.consensus.confidence == pytest.approx(0.6)
        assert outcome.final_status == PublishStatus.NEEDS_REVIEW
        assert outcome.reason == "contested_fact_check_needs_stronger_consensus"

    @pytest.mark.asyncio
    async def test_weighted_majority_below_contested_bar(self, resolver, pending_item, reputation):
        await pending_item(verdict="mixed", confidence=0.5)
        for i in range(20):
            await reputation.store.increment(f"rev-{i}", "score", -35)
        for i in range(20, 60):
            await reputation.store.increment(f"rev-{i}", "score", 15)

        await _votes(resolver, "invalidate", 20)
        outcome = await _votes(resolver, "validate", 40, start=20)

        consensus = outcome.consensus
        assert consensus.validate_weight == pytest.approx(40 * 0.8)
        assert consensus.invalidate_weight == pytest.approx(20 * 0.3)
        assert consensus.validate_ratio > 0.6
        assert consensus.confidence == pytest.approx(26 / 38)
        assert outcome.final_status == PublishStatus.NEEDS_REVIEW
        assert outcome.reason == "contested_fact_check_needs_stronger_consensus"

    @pytest.mark.asyncio
    async def test_contested_invalidation_needs_no_extra_bar(self, resolver, pending_item):
        await pending_item(verdict="mixed", confidence=0.5)
        await _votes(resolver, "validate", 10)
        outcome = await _votes(resolver, "invalidate", 40, start=10)

        assert outcome.final_status == PublishStatus.BLOCKED
        assert outcome.reason == "crowd_invalidated"

    @pytest.mark.asyncio
    async def test_contested_overridden_by_strong_consensus(self, resolver, pending_item):
        await pending_item(verdict="unknown")
        outcome = await _votes(resolver, "validate", 50)
        assert outcome.final_status == PublishStatus.CLEAN
        assert outcome.reason == "crowd_validated"

    @pytest.mark.asyncio
    async def test_confident_false_beats_crowd_validation(self, resolver, pending_item, reputation):
        await pending_item(verdict="false", confidence=0.9)
        outcome = await _votes(resolver, "validate", 50)

        assert outcome.final_status == PublishStatus.BLOCKED
        assert outcome.reason == "confident_false_fact_check"
        profile = await reputation.store.get("rev-0")
        assert profile.score == 63.5
        assert profile.reviews_contradicted == 1

    @pytest.mark.asyncio
    async def test_votes_after_resolution_rejected(self, resolver, pending_item):
        await pending_item()
        await _votes(resolver, "invalidate", 50)
        with pytest.raises(VoteValidationError):
            await _vote(resolver, "rev-99", "validate")

    @pytest.mark.asyncio
    async def test_reputation_weights_votes(self, resolver, pending_item, reputation):
        await pending_item(verdict="true", confidence=0.9)
        for i in range(20):
            await reputation.store.increment(f"rev-{i}", "score", 35)

        await _votes(resolver, "validate", 20)
        outcome = await _votes(resolver, "invalidate", 30, start=20)

        consensus = outcome.consensus
        assert consensus.validate_weight == pytest.approx(20 * 1.0)
        assert consensus.invalidate_weight == pytest.approx(30 * 0.5)
        assert outcome.final_status == PublishStatus.NEEDS_REVIEW
        assert outcome.reason == "no_supermajority"

    @pytest.mark.asyncio
    async def test_duplicate_guard_drops_copied_votes(self, content_store, queue, reputation, pending_item):
        resolver = ReviewConsensusResolver(
            content_store=content_store,
            reputation_engine=reputation,
            review_queue=queue,
            guards=[DuplicateJustificationGuard()],
            min_votes=3,
        )
        await pending_item()
        for i in range(3):
            await resolver.submit_review_vote(
                "post-1", f"rev-{i}", "invalidate", sources=SOURCES,
                justification="Copied text pasted by a coordinated group.",
            )
        consensus = await resolver.evaluate_consensus("post-1")
        assert consensus.vote_count == 3
        assert consensus.effective_vote_count == 1
        assert not consensus.has_consensus


class TestConcurrentResolution:
    @pytest.mark.asyncio
    async def test_single_winner(self, content_store, queue, reputation, pending_item):
        resolver = ReviewConsensusResolver(
            content_store=content_store,
            reputation_engine=reputation,
            review_queue=queue,
            guards=[],
            min_votes=3,
        )
        await pending_item()
        fingerprint = (await content_store.get("post-1")).fingerprint()
        for i in range(3):
            await resolver.vote_store.append(
                ReviewVote(
                    content_id="post-1",
                    reviewer_id=f"rev-{i}",
                    action="validate",
                    content_fingerprint=fingerprint,
                    sources=SOURCES,
                    justification=f"Independent check number {i} of the figures.",
                )
            )

        outcomes = await asyncio.gather(*(resolver.resolve("post-1") for _ in range(4)))
        applied = [o for o in outcomes if o.applied]
        assert len(applied) == 1
        assert all(o.final_status == PublishStatus.CLEAN for o in outcomes)
        assert (await reputation.store.get("rev-0")).reviews_matched == 1


class TestEscalation:
    @pytest.mark.asyncio
    async def test_fresh_item_not_escalated(self, resolver, pending_item):
        await pending_item()
        assert await resolver.escalate_stale_reviews() == []

    @pytest.mark.asyncio
    async def test_stale_item_escalated_once(self, resolver, pending_item, queue):
        await pending_item()
        later = datetime.now(timezone.utc) + timedelta(days=8)

        assert await resolver.escalate_stale_reviews(now=later) == ["post-1"]
        assert await resolver.escalate_stale_reviews(now=later) == []
        assert await queue.contains("post-1", MODERATION_QUEUE)
        assert await resolver.get_publish_status("post-1") == PublishStatus.NEEDS_REVIEW

    @pytest.mark.asyncio
    async def test_resolution_clears_moderation_queue(self, resolver, pending_item, queue):
        await pending_item()
        await resolver.escalate_stale_reviews(now=datetime.now(timezone.utc) + timedelta(days=8))
        await _votes(resolver, "invalidate", 50)
        assert not await queue.contains("post-1", MODERATION_QUEUE)

    @pytest.mark.asyncio
    async def test_status_of_missing_item(self, resolver):
        with pytest.raises(LookupError):
            await resolver.get_publish_status("missing")


class TestEditedItems:
    @pytest.mark.asyncio
    async def test_votes_on_previous_version_not_counted(self, resolver, pending_item, content_store):
        await pending_item()
        await _votes(resolver, "invalidate", 30)

        item = await content_store.get("post-1")
        await content_store.add(item.model_copy(update={"text": "Rates will triple next month."}))

        outcome = await _votes(resolver, "invalidate", 20, start=30)
        assert outcome.consensus.vote_count == 20
        assert outcome.reason == "insufficient_votes"

        # reviewers of the old text may vote on the new one
        await _vote(resolver, "rev-0", "invalidate")
        assert await resolver.vote_store.count("post-1") == 51

    @pytest.mark.asyncio
    async def test_settlement_only_for_current_version(self, resolver, pending_item, content_store, reputation):
        await pending_item()
        await _vote(resolver, "rev-old", "validate")

        item = await content_store.get("post-1")
        await content_store.add(item.model_copy(update={"text": "Rates will triple next month."}))
        outcome = await _votes(resolver, "invalidate", 50)

        assert outcome.final_status == PublishStatus.BLOCKED
        assert await reputation.store.get("rev-old") is None
