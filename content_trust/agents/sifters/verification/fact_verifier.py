"""Fact verifier: one FactCheck per claim, verified concurrently.

Per-claim flow:
1. Reused claim (quoted item already verified) -> copy its fact check
2. Web search for evidence (SearchExecutor), best effort
3. Model check with sanitized claim, context and search results
4. Cited and retrieved evidence scored by EvidenceScorer; low-quality discarded
5. Confidence capped by the evidence ceiling:
   - no surviving evidence: 0.5
   - otherwise 0.6 + 0.4 * best evidence quality

A claim whose model output cannot be parsed, or whose check fails for a
non-transport reason, gets an unknown verdict at confidence 0.25. Transport
failures propagate so the orchestrator can retry the whole stage.

Usage:
    verifier = FactVerifier(inference_client=client)
    checks = await verifier.run(item, claims, known_fact_checks=quoted.fact_checks)
"""

import asyncio
from typing import Optional

from content_trust.agents.base_agent import BaseAgent
from content_trust.agents.sifters.verification.evidence_scorer import EvidenceScorer
from content_trust.agents.sifters.verification.search_executor import SearchExecutor
from content_trust.config.prompts import (
    FACT_CHECK_SCHEMA,
    FACT_CHECK_SYSTEM_PROMPT,
    FACT_CHECK_USER_PROMPT,
)
from content_trust.config.settings import settings
from content_trust.data_management.schemas import (
    Claim,
    ContentItem,
    Evidence,
    FactCheck,
    Verdict,
)
from content_trust.llm.errors import (
    InferenceError,
    InferenceUnavailableError,
    TransientInferenceError,
)
from content_trust.llm.sanitizer import sanitize_for_prompt

FALLBACK_CONFIDENCE = 0.25
FALLBACK_CAVEAT = "Automatic fallback: unable to verify claim"
NO_EVIDENCE_CEILING = 0.5
NO_EVIDENCE_CAVEAT = "No qualifying evidence retained"
NO_SEARCH_RESULTS = "(no search results)"


class FactVerifier(BaseAgent):
    """Verifies claims against evidence with bounded concurrency."""

    def __init__(
        self,
        evidence_scorer: Optional[EvidenceScorer] = None,
        search_executor: Optional[SearchExecutor] = None,
        concurrency: Optional[int] = None,
        **kwargs,
    ):
        """
        Initialize FactVerifier.

        Args:
            evidence_scorer: Domain-trust evidence scorer.
            search_executor: Web search for evidence (disabled without an API key).
            concurrency: Concurrent claim checks (default from settings).
        """
        super().__init__(
            name="FactVerifier",
            description="Checks claims against scored evidence",
            **kwargs,
        )
        self.evidence_scorer = evidence_scorer or EvidenceScorer()
        self.search_executor = search_executor or SearchExecutor(evidence_scorer=self.evidence_scorer)
        self.concurrency = concurrency or settings.verification_concurrency

    async def run(
        self,
        item: ContentItem,
        claims: list[Claim],
        known_fact_checks: Optional[list[FactCheck]] = None,
    ) -> list[FactCheck]:
        """
        Verify all claims, preserving claim order.

        Raises:
            TransientInferenceError: A claim check hit a transport failure
            InferenceUnavailableError: No inference client is configured
        """
        known = {fc.claim_id: fc for fc in known_fact_checks or []}
        if self.inference_client is None and any(c.id not in known for c in claims):
            # fail before any evidence search
            raise InferenceUnavailableError(f"{self.name}: no inference client configured")
        semaphore = asyncio.Semaphore(self.concurrency)

        async def verify_with_semaphore(claim: Claim) -> FactCheck:
            if claim.id in known:
                return known[claim.id].model_copy(deep=True)
            async with semaphore:
                return await self._check_claim(item, claim)

        results = await asyncio.gather(
            *(verify_with_semaphore(c) for c in claims),
            return_exceptions=True,
        )

        checks: list[FactCheck] = []
        for claim, result in zip(claims, results):
            if isinstance(result, (TransientInferenceError, InferenceUnavailableError)):
                raise result
            if isinstance(result, InferenceError):
                self.logger.warning(f"Claim check failed for {claim.id}: {result}")
                checks.append(self.fallback_check(claim))
            elif isinstance(result, BaseException):
                raise result
            else:
                checks.append(result)

        self.logger.info(
            "Claims verified",
            content_id=item.id,
            claims=len(claims),
            reused=sum(1 for c in claims if c.id in known),
        )
        return checks

    def fallback(
        self,
        item: ContentItem,
        claims: list[Claim],
        known_fact_checks: Optional[list[FactCheck]] = None,
    ) -> list[FactCheck]:
        """Unknown-verdict checks for every claim that has no reusable check."""
        known = {fc.claim_id: fc for fc in known_fact_checks or []}
        return [
            known[c.id].model_copy(deep=True) if c.id in known else self.fallback_check(c)
            for c in claims
        ]

    @staticmethod
    def fallback_check(claim: Claim) -> FactCheck:
        return FactCheck(
            id=f"{claim.id}-check",
            claim_id=claim.id,
            verdict=Verdict.UNKNOWN,
            confidence=FALLBACK_CONFIDENCE,
            caveats=[FALLBACK_CAVEAT],
        )

    async def _check_claim(self, item: ContentItem, claim: Claim) -> FactCheck:
        retrieved = await self.search_executor.search_claim(claim)
        prompt = FACT_CHECK_USER_PROMPT.format(
            domain=claim.domain,
            risk=claim.risk_level.value,
            claim_text=sanitize_for_prompt(claim.text, max_length=400),
            context=sanitize_for_prompt(item.text, max_length=800),
            search_results=self._format_results(retrieved),
        )
        raw = await self._infer_json(prompt, FACT_CHECK_SCHEMA, system_prompt=FACT_CHECK_SYSTEM_PROMPT)
        if raw is None:
            return self.fallback_check(claim)

        evidence = self._merge_evidence(self.evidence_scorer.score_all(raw.get("evidence")), retrieved)
        caveats = raw.get("caveats") if isinstance(raw.get("caveats"), list) else []

        check = FactCheck(
            id=f"{claim.id}-check",
            claim_id=claim.id,
            verdict=raw.get("verdict"),
            confidence=raw.get("confidence"),
            evidence=evidence,
            caveats=caveats,
        )
        return self._apply_evidence_ceiling(check)

    @staticmethod
    def _format_results(results: list[Evidence]) -> str:
        if not results:
            return NO_SEARCH_RESULTS
        return "\n".join(
            f"- {sanitize_for_prompt(e.source, max_length=120)} ({e.url}): "
            f"{sanitize_for_prompt(e.snippet, max_length=300)}"
            for e in results
        )

    @staticmethod
    def _merge_evidence(cited: list[Evidence], retrieved: list[Evidence]) -> list[Evidence]:
        """Cited evidence first, then search results the model was shown but did not cite."""
        seen = {e.url for e in cited if e.url}
        return cited + [e for e in retrieved if e.url not in seen]

    @staticmethod
    def _apply_evidence_ceiling(check: FactCheck) -> FactCheck:
        if not check.evidence:
            ceiling = NO_EVIDENCE_CEILING
            caveats = check.caveats + [NO_EVIDENCE_CAVEAT]
        else:
            ceiling = 0.6 + 0.4 * max(e.quality for e in check.evidence)
            caveats = check.caveats
        return check.model_copy(
            update={"confidence": min(check.confidence, ceiling), "caveats": caveats}
        )

    def get_capabilities(self) -> list[str]:
        return ["fact_checking", "evidence_scoring"]
