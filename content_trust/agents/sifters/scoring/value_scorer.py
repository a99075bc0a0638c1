"""Value scoring: five quality dimensions combined with domain weights.

Raw dimensions come from the model or from a heuristic; both go through
finalize_value_vector(), which owns every numeric guarantee:
- non-finite or non-numeric values become 0.5
- all dimensions clamped to [0, 1]
- no fact checks: epistemic capped at 0.35
- confident-false checks: epistemic *= (1 - p), insight *= (1 - 0.3p),
  p = min(0.8, 0.25 * weighted false count)
- total is the convex combination with the dominant-domain weight row
"""

from collections import Counter
from typing import Any, Optional

from content_trust.agents.base_agent import BaseAgent
from content_trust.agents.sifters.verification.penalty_policy import PenaltyPolicy
from content_trust.config.domain_trust import (
    DEFAULT_VALUE_WEIGHTS,
    DOMAIN_RISK_WEIGHTS,
    VALUE_WEIGHTS,
)
from content_trust.config.prompts import (
    VALUE_SCORING_SCHEMA,
    VALUE_SCORING_SYSTEM_PROMPT,
    VALUE_SCORING_USER_PROMPT,
)
from content_trust.data_management.schemas import (
    VALUE_DIMENSIONS,
    Claim,
    ContentItem,
    DiscussionAnalysis,
    FactCheck,
    ValueVector,
    Verdict,
)
from content_trust.data_management.schemas.validators import coerce_unit
from content_trust.llm.sanitizer import sanitize_for_prompt

UNVERIFIED_EPISTEMIC_CAP = 0.35
MAX_PENALTY = 0.8
PENALTY_PER_FALSE = 0.25
INSIGHT_PENALTY_SHARE = 0.3
DEFAULT_MODEL_CONFIDENCE = 0.7
HEURISTIC_CONFIDENCE = 0.5


def dominant_domain(claims: list[Claim], topic: Optional[str] = None) -> str:
    """
    Risk-weighted most frequent non-general claim domain.

    A tie at the top, or no non-general claims, falls back to the declared
    topic (lowercased) or "general".
    """
    tally: Counter = Counter()
    for claim in claims:
        if claim.domain == "general":
            continue
        tally[claim.domain] += DOMAIN_RISK_WEIGHTS.get(claim.risk_level.value, 1.0)

    ranked = tally.most_common(2)
    if ranked and (len(ranked) == 1 or ranked[0][1] > ranked[1][1]):
        return ranked[0][0]
    return (topic or "general").strip().lower() or "general"


def weights_for(domain: str) -> dict[str, float]:
    return VALUE_WEIGHTS.get(domain, DEFAULT_VALUE_WEIGHTS)


def finalize_value_vector(
    raw_dimensions: dict[str, Any],
    claims: list[Claim],
    fact_checks: list[FactCheck],
    *,
    confidence: Any = DEFAULT_MODEL_CONFIDENCE,
    drivers: Optional[list[str]] = None,
    topic: Optional[str] = None,
    policy: Optional[PenaltyPolicy] = None,
) -> ValueVector:
    """
    Apply coercion, penalties and weighting to raw dimension scores.

    Args:
        raw_dimensions: Mapping of dimension name -> untrusted value
        claims: Claims of the item (for the dominant domain)
        fact_checks: Fact checks of the item (for penalties)
        confidence: Untrusted scorer confidence
        drivers: Explanatory driver strings
        topic: Declared topic used when claims give no dominant domain
        policy: Penalty policy (defaults from settings)

    Returns:
        ValueVector with all fields in [0, 1]
    """
    policy = policy or PenaltyPolicy.from_settings()
    dims = {name: coerce_unit(raw_dimensions.get(name)) for name in VALUE_DIMENSIONS}
    drivers = list(drivers or [])

    if not fact_checks:
        if dims["epistemic"] > UNVERIFIED_EPISTEMIC_CAP:
            dims["epistemic"] = UNVERIFIED_EPISTEMIC_CAP
            drivers.append("penalty:uncertainty_cap")
    else:
        weighted = policy.weighted_false_count(fact_checks)
        penalty = min(MAX_PENALTY, weighted * PENALTY_PER_FALSE)
        if penalty > 0:
            dims["epistemic"] *= 1 - penalty
            dims["insight"] *= 1 - penalty * INSIGHT_PENALTY_SHARE
            drivers.append("penalty:false_claims")

    weights = weights_for(dominant_domain(claims, topic))
    total = sum(weights[name] * dims[name] for name in VALUE_DIMENSIONS)

    return ValueVector(
        **dims,
        total=total,
        confidence=coerce_unit(confidence, default=DEFAULT_MODEL_CONFIDENCE),
        drivers=drivers,
    )


def _lookup(raw: dict, name: str) -> Any:
    for key in (name, name.capitalize(), name.upper()):
        if key in raw:
            return raw[key]
    return None


class ValueScorer(BaseAgent):
    """Produces the item's ValueVector."""

    def __init__(self, policy: Optional[PenaltyPolicy] = None, **kwargs):
        super().__init__(
            name="ValueScorer",
            description="Scores content value across five dimensions",
            **kwargs,
        )
        self.policy = policy or PenaltyPolicy.from_settings()

    async def run(
        self,
        item: ContentItem,
        claims: list[Claim],
        fact_checks: list[FactCheck],
        discussion: Optional[DiscussionAnalysis] = None,
    ) -> ValueVector:
        checks_by_claim = {fc.claim_id: fc for fc in fact_checks}
        claim_lines = []
        for claim in claims:
            fc = checks_by_claim.get(claim.id)
            verdict = f"{fc.verdict.value} ({fc.confidence:.2f})" if fc else "not checked"
            claim_lines.append(f"- [{verdict}] {sanitize_for_prompt(claim.text, max_length=240)}")

        summary = discussion.thread_quality.summary if discussion else ""
        prompt = VALUE_SCORING_USER_PROMPT.format(
            text=sanitize_for_prompt(item.text),
            claims_block="\n".join(claim_lines) or "- none",
            discussion_summary=sanitize_for_prompt(summary, max_length=300) or "none",
        )
        raw = await self._infer_json(prompt, VALUE_SCORING_SCHEMA, system_prompt=VALUE_SCORING_SYSTEM_PROMPT)
        if raw is None:
            return self.fallback(item, claims, fact_checks, discussion)

        scores = raw.get("scores") if isinstance(raw.get("scores"), dict) else raw
        raw_dims = {name: _lookup(scores, name) for name in VALUE_DIMENSIONS}
        drivers = raw.get("drivers") if isinstance(raw.get("drivers"), list) else []
        drivers = [d.strip() for d in drivers if isinstance(d, str) and d.strip()]

        return finalize_value_vector(
            raw_dims,
            claims,
            fact_checks,
            confidence=raw.get("confidence", DEFAULT_MODEL_CONFIDENCE),
            drivers=drivers,
            topic=item.topic,
            policy=self.policy,
        )

    def fallback(
        self,
        item: ContentItem,
        claims: list[Claim],
        fact_checks: list[FactCheck],
        discussion: Optional[DiscussionAnalysis] = None,
    ) -> ValueVector:
        """Heuristic from text length, fact-check mix and discussion quality."""
        length_score = min(1.0, len(item.text or "") / 600)
        drivers = ["heuristic_scoring"]

        if fact_checks:
            true_share = sum(1 for fc in fact_checks if fc.verdict == Verdict.TRUE) / len(fact_checks)
            epistemic = 0.4 + 0.5 * true_share
            drivers.append("fact_check_mix")
        else:
            epistemic = 0.3

        has_discussion = bool(discussion and discussion.per_reply_contribution)
        if has_discussion:
            tq = discussion.thread_quality
            relational = 0.5 * tq.civility + 0.5 * tq.cross_perspective
            insight = 0.25 + 0.3 * length_score + 0.2 * tq.reasoning_depth
            drivers.append("discussion_quality")
        else:
            relational = 0.3
            insight = 0.25 + 0.4 * length_score

        effort = 0.2 + 0.8 * length_score
        if length_score > 0.3:
            drivers.append("effort:length")

        return finalize_value_vector(
            {
                "epistemic": epistemic,
                "insight": insight,
                "practical": 0.2 + 0.3 * length_score,
                "relational": relational,
                "effort": effort,
            },
            claims,
            fact_checks,
            confidence=HEURISTIC_CONFIDENCE,
            drivers=drivers,
            topic=item.topic,
            policy=self.policy,
        )

    def get_capabilities(self) -> list[str]:
        return ["value_scoring"]
