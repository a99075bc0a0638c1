"""Publish-status state machine and policy evaluation.

States: clean, needs_review, blocked. clean and blocked are terminal.

Allowed transitions:
- (unset) -> any            first evaluation
- needs_review -> needs_review   re-evaluation while waiting
- needs_review -> clean | blocked   review consensus only
- clean | blocked -> any    only with reopen=True (content was edited)

evaluate() rules, first match wins:
1. verification not needed -> clean
2. no extractable claims -> clean
3. any confident false verdict -> blocked
4. a claim without a fact check -> needs_review
5. mixed/unknown on a high-risk claim -> needs_review
6. otherwise -> clean
"""

from typing import Optional

from loguru import logger

from content_trust.agents.sifters.verification.penalty_policy import PenaltyPolicy
from content_trust.config.domain_trust import HIGH_RISK_DOMAINS
from content_trust.data_management.schemas import (
    Claim,
    FactCheck,
    PolicyDecision,
    PreCheckResult,
    PublishStatus,
    RiskLevel,
)

TERMINAL_STATUSES = frozenset({PublishStatus.CLEAN, PublishStatus.BLOCKED})


class InvalidTransitionError(ValueError):
    """A publish-status change the state machine does not allow."""


class PolicyResolver:
    """
    Maps pre-check, claims and fact checks to a PolicyDecision.

    Usage:
        resolver = PolicyResolver()
        decision = resolver.evaluate(precheck, claims, fact_checks)
    """

    def __init__(self, policy: Optional[PenaltyPolicy] = None):
        self.policy = policy or PenaltyPolicy.from_settings()
        self.logger = logger.bind(component="PolicyResolver")

    @staticmethod
    def can_transition(
        current: Optional[PublishStatus],
        new: PublishStatus,
        *,
        reopen: bool = False,
        by_consensus: bool = False,
    ) -> bool:
        if current is None or current == new:
            return True
        if current in TERMINAL_STATUSES:
            return reopen
        # current is needs_review
        return by_consensus or reopen

    def validate_transition(
        self,
        current: Optional[PublishStatus],
        new: PublishStatus,
        *,
        reopen: bool = False,
        by_consensus: bool = False,
    ) -> None:
        """
        Raises:
            InvalidTransitionError: If the transition is not allowed
        """
        if not self.can_transition(current, new, reopen=reopen, by_consensus=by_consensus):
            raise InvalidTransitionError(
                f"transition {current.value if current else None} -> {new.value} not allowed"
            )

    def evaluate(
        self,
        precheck: Optional[PreCheckResult],
        claims: list[Claim],
        fact_checks: list[FactCheck],
    ) -> PolicyDecision:
        """Decide publish status for one item. Also used for the interim decision."""
        if precheck is not None and not precheck.needs_fact_check:
            return PolicyDecision(status=PublishStatus.CLEAN, reasons=["Verification not required"])

        if not claims:
            return PolicyDecision(status=PublishStatus.CLEAN, reasons=["No extractable claims"])

        checks = {fc.claim_id: fc for fc in fact_checks}

        false_claims = [c for c in claims if c.id in checks and self.policy.is_confident_false(checks[c.id])]
        if false_claims:
            return PolicyDecision(
                status=PublishStatus.BLOCKED,
                reasons=[f"Claim refuted with high confidence: {c.text}" for c in false_claims],
            )

        unchecked = [c for c in claims if c.id not in checks]
        if unchecked:
            return PolicyDecision(
                status=PublishStatus.NEEDS_REVIEW,
                reasons=[f"Claim not fact-checked: {c.text}" for c in unchecked],
                escalate_to_human=True,
            )

        reasons: list[str] = []
        needs_review = False
        for claim in claims:
            fc = checks[claim.id]
            if not fc.is_contested:
                continue
            if self._is_high_risk(claim):
                needs_review = True
                reasons.append(f"Unresolved {fc.verdict.value} verdict on high-risk claim: {claim.text}")
            else:
                reasons.append(f"Low-risk claim left {fc.verdict.value}: {claim.text}")

        if needs_review:
            return PolicyDecision(status=PublishStatus.NEEDS_REVIEW, reasons=reasons)
        return PolicyDecision(status=PublishStatus.CLEAN, reasons=reasons or ["All claims verified"])

    @staticmethod
    def _is_high_risk(claim: Claim) -> bool:
        return claim.domain in HIGH_RISK_DOMAINS or claim.risk_level == RiskLevel.HIGH

    def resolve_final(self, decision: Optional[PolicyDecision]) -> PolicyDecision:
        """Total failure (no decision at all) defaults to needs_review."""
        if decision is None:
            self.logger.warning("No policy decision produced, defaulting to needs_review")
            return PolicyDecision(
                status=PublishStatus.NEEDS_REVIEW,
                reasons=["Pipeline could not produce a decision"],
                escalate_to_human=True,
            )
        return decision
