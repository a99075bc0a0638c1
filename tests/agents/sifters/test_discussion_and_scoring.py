"""Tests for DiscussionAnalyzer, ValueScorer and ExplanationAgent.

Tests cover:
- Empty discussion and reply-id filtering
- Heuristic discussion fallback
- Dominant domain selection and weight rows
- Uncertainty cap without fact checks
- False-claim penalty on epistemic and insight
- Model score parsing (nested, flat, capitalized keys)
- Explanation length cap and template fallback
"""

import math

import pytest

from content_trust.agents.sifters import DiscussionAnalyzer, ExplanationAgent, ValueScorer
from content_trust.agents.sifters.scoring.explanation_agent import MAX_EXPLANATION_LENGTH
from content_trust.agents.sifters.scoring.value_scorer import (
    dominant_domain,
    finalize_value_vector,
    weights_for,
)
from content_trust.config.domain_trust import DEFAULT_VALUE_WEIGHTS
from content_trust.config.prompts import (
    DISCUSSION_SCHEMA,
    EXPLANATION_SCHEMA,
    VALUE_SCORING_SCHEMA,
)
from content_trust.data_management.schemas import (
    Claim,
    ContentKind,
    FactCheck,
    ReplyRole,
    ValueVector,
)

DIMS = {"epistemic": 0.8, "insight": 0.6, "practical": 0.5, "relational": 0.4, "effort": 0.7}


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def replies(make_item):
    return [
        make_item(
            f"reply-{i}",
            text=text,
            kind=ContentKind.REPLY,
            parent_id="post-1",
        )
        for i, text in enumerate(
            ["Do you have a source for that?", "Here is the WHO summary of the evidence on this topic."],
            start=1,
        )
    ]


@pytest.fixture
def health_claims() -> list[Claim]:
    return [
        Claim(id="c1", text="Vaccines cause autism", domain="health", risk_level="high"),
        Claim(id="c2", text="Apples are red", domain="general"),
    ]


class TestDiscussionAnalyzer:
    @pytest.mark.asyncio
    async def test_no_replies(self, fake_client, make_item):
        analyzer = DiscussionAnalyzer(inference_client=fake_client)
        analysis = await analyzer.run(make_item(text="post"), [])
        assert analysis.per_reply_contribution == {}
        assert analysis.thread_quality.summary == "No discussion yet."
        assert fake_client.calls == []

    @pytest.mark.asyncio
    async def test_unknown_reply_ids_ignored(self, fake_client, make_item, replies):
        fake_client.on(
            DISCUSSION_SCHEMA,
            {
                "threadQuality": {"informativeness": 0.7, "civility": 0.9, "reasoningDepth": 0.5, "crossPerspective": 0.4, "summary": "Civil."},
                "replies": [
                    {"id": "reply-1", "role": "question", "contribution": {"epistemic": 0.3, "total": 0.3}},
                    {"id": "reply-99", "role": "answer", "contribution": {"epistemic": 0.9}},
                ],
            },
        )
        analyzer = DiscussionAnalyzer(inference_client=fake_client)
        analysis = await analyzer.run(make_item(text="post"), replies)

        assert set(analysis.per_reply_contribution) == {"reply-1"}
        assert analysis.per_reply_contribution["reply-1"].role == ReplyRole.QUESTION
        assert analysis.thread_quality.civility == 0.9
        assert analysis.heuristic is False

    def test_fallback(self, make_item, replies):
        analysis = DiscussionAnalyzer(inference_client=None).fallback(make_item(text="post"), replies)
        assert analysis.heuristic is True
        assert analysis.per_reply_contribution["reply-1"].role == ReplyRole.QUESTION
        assert analysis.thread_quality.summary == "Heuristic assessment of 2 replies."

    @pytest.mark.asyncio
    async def test_reply_cap(self, fake_client, make_item, replies):
        analyzer = DiscussionAnalyzer(max_replies=1, inference_client=None)
        analysis = analyzer.fallback(make_item(text="post"), replies)
        assert len(analysis.per_reply_contribution) == 1


class TestFinalizeValueVector:
    def test_dominant_domain(self, health_claims):
        assert dominant_domain(health_claims) == "health"

    def test_dominant_domain_falls_back_to_topic(self):
        claims = [Claim(id="c", text="x is y", domain="general")]
        assert dominant_domain(claims, topic="Design") == "design"
        assert dominant_domain([]) == "general"

    def test_tie_falls_back_to_topic(self):
        claims = [
            Claim(id="a", text="x is y", domain="health"),
            Claim(id="b", text="y is z", domain="finance"),
        ]
        assert dominant_domain(claims, topic="science") == "science"

    def test_unknown_domain_uses_default_weights(self):
        assert weights_for("cooking") == DEFAULT_VALUE_WEIGHTS

    def test_uncertainty_cap_without_checks(self, health_claims):
        vector = finalize_value_vector(DIMS, health_claims, [])
        assert vector.epistemic == 0.35
        assert "penalty:uncertainty_cap" in vector.drivers

    def test_false_claim_penalty(self, health_claims):
        checks = [FactCheck(id="c1-check", claim_id="c1", verdict="false", confidence=0.9)]
        vector = finalize_value_vector(DIMS, health_claims, checks)
        assert vector.epistemic == pytest.approx(0.8 * 0.75)
        assert vector.insight == pytest.approx(0.6 * (1 - 0.25 * 0.3))
        assert "penalty:false_claims" in vector.drivers

    def test_penalty_capped(self, health_claims):
        checks = [
            FactCheck(id=f"c{i}-check", claim_id=f"c{i}", verdict="false", confidence=0.95) for i in range(6)
        ]
        vector = finalize_value_vector(DIMS, health_claims, checks)
        assert vector.epistemic == pytest.approx(0.8 * 0.2)

    def test_total_is_weighted_and_bounded(self, health_claims):
        checks = [FactCheck(id="c2-check", claim_id="c2", verdict="true", confidence=0.9)]
        vector = finalize_value_vector({**DIMS, "insight": math.nan}, health_claims, checks)
        weights = weights_for("health")
        expected = sum(weights[k] * getattr(vector, k) for k in DIMS)
        assert vector.insight == 0.5
        assert vector.total == pytest.approx(expected)
        assert 0.0 <= vector.total <= 1.0


class TestValueScorer:
    @pytest.mark.asyncio
    async def test_nested_scores(self, fake_client, make_item, health_claims):
        fake_client.on(VALUE_SCORING_SCHEMA, {"scores": {"Epistemic": 0.9, "insight": "0.7"}, "drivers": ["clear sources", 3]})
        checks = [FactCheck(id="c2-check", claim_id="c2", verdict="true", confidence=0.9)]
        vector = await ValueScorer(inference_client=fake_client).run(make_item(text="t"), health_claims, checks)
        assert vector.epistemic == 0.9
        assert vector.insight == 0.7
        assert vector.practical == 0.5
        assert vector.drivers == ["clear sources"]

    @pytest.mark.asyncio
    async def test_malformed_output_uses_heuristic(self, fake_client, make_item):
        vector = await ValueScorer(inference_client=fake_client).run(make_item(text="short post"), [], [])
        assert "heuristic_scoring" in vector.drivers
        assert vector.confidence == 0.5

    def test_fallback_uses_fact_check_mix(self, make_item, health_claims):
        checks = [
            FactCheck(id="c1-check", claim_id="c1", verdict="true", confidence=0.9),
            FactCheck(id="c2-check", claim_id="c2", verdict="true", confidence=0.9),
        ]
        vector = ValueScorer(inference_client=None).fallback(make_item(text="x" * 700), health_claims, checks)
        assert vector.epistemic == pytest.approx(0.9)
        assert vector.effort == pytest.approx(1.0)
        assert "effort:length" in vector.drivers


class TestExplanationAgent:
    @pytest.mark.asyncio
    async def test_explanation_capped(self, fake_client, make_item):
        fake_client.on(EXPLANATION_SCHEMA, {"explanation": "word " * 300})
        text = await ExplanationAgent(inference_client=fake_client).run(make_item(text="t"), ValueVector(), [], [])
        assert len(text) <= MAX_EXPLANATION_LENGTH

    @pytest.mark.asyncio
    async def test_missing_explanation_uses_template(self, fake_client, make_item):
        fake_client.on(EXPLANATION_SCHEMA, {"explanation": "  "})
        text = await ExplanationAgent(inference_client=fake_client).run(
            make_item(text="t"), ValueVector(epistemic=0.4), [], []
        )
        assert text.startswith("Epistemic 0.40")
