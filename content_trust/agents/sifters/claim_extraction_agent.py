"""Claim extraction agent: atomic checkable claims from a content item.

Extraction flow:
1. Model extraction with the standard prompt
2. If nothing usable came back, one retry with a strict suffix
3. If still nothing, the sentence-split heuristic

Quoted content:
- If the quoted item already has complete, verified claims they are reused
  as-is and only the new text is sent to the model. New claims that
  near-duplicate a reused claim are dropped.
- Otherwise the quoted text is extracted together with the new text.

Usage:
    agent = ClaimExtractionAgent(inference_client=client)
    claims = await agent.run(item, quoted=quoted_item)
"""

import re
from typing import Any, Optional

from pydantic import ValidationError
from rapidfuzz import fuzz

from content_trust.agents.base_agent import BaseAgent
from content_trust.config.domain_trust import MEDIUM_RISK_TERMS
from content_trust.config.prompts import (
    CLAIM_EXTRACTION_SCHEMA,
    CLAIM_EXTRACTION_SYSTEM_PROMPT,
    CLAIM_EXTRACTION_USER_PROMPT,
    CLAIM_IMAGE_BLOCK,
    CLAIM_QUOTED_BLOCK,
    CLAIM_STRICT_SUFFIX,
)
from content_trust.config.settings import settings
from content_trust.data_management.schemas import (
    Claim,
    ClaimOrigin,
    ClaimType,
    ContentItem,
    RiskLevel,
)
from content_trust.llm.sanitizer import sanitize_for_prompt

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
_FIRST_PERSON = re.compile(r"\b(i|my|me|i'm|i've)\b", re.IGNORECASE)

MIN_SENTENCE_LENGTH = 8
MAX_FALLBACK_CLAIMS = 3
FALLBACK_CONFIDENCE = 0.35
IMAGE_PLACEHOLDER_TEXT = "Image content requires analysis"


class ClaimExtractionAgent(BaseAgent):
    """Extracts Claim records for the pipeline's claims stage."""

    def __init__(self, reuse_similarity: Optional[float] = None, **kwargs):
        """
        Initialize claim extraction agent.

        Args:
            reuse_similarity: Similarity ratio at which a new claim counts
                as a duplicate of a reused quoted claim
        """
        super().__init__(
            name="ClaimExtractionAgent",
            description="Extracts atomic checkable claims from content",
            **kwargs,
        )
        self.reuse_similarity = (
            reuse_similarity if reuse_similarity is not None else settings.claim_reuse_similarity
        )

    async def run(
        self,
        item: ContentItem,
        quoted: Optional[ContentItem] = None,
    ) -> list[Claim]:
        """
        Model-driven extraction with strict retry and heuristic fallback.

        Returns:
            Ordered list of claims (new claims first, then reused quoted claims)
        """
        reuse = self._can_reuse(quoted)
        include_quoted = quoted is not None and not reuse
        prompt = self._build_prompt(item, quoted if include_quoted else None)

        raw = await self._infer_json(
            prompt,
            CLAIM_EXTRACTION_SCHEMA,
            system_prompt=CLAIM_EXTRACTION_SYSTEM_PROMPT,
            image_url=item.image_url,
        )
        claims = self._parse_claims(raw, item.id)

        if not claims:
            self.logger.info("No claims from first pass, retrying with strict prompt", content_id=item.id)
            raw = await self._infer_json(
                prompt + CLAIM_STRICT_SUFFIX,
                CLAIM_EXTRACTION_SCHEMA,
                system_prompt=CLAIM_EXTRACTION_SYSTEM_PROMPT,
                image_url=item.image_url,
            )
            claims = self._parse_claims(raw, item.id)

        if not claims:
            self.logger.info("Strict retry empty, using heuristic claims", content_id=item.id)
            claims = self._heuristic_claims(item, quoted if include_quoted else None)

        return self._merge_reused(claims, quoted if reuse else None)

    def fallback(
        self,
        item: ContentItem,
        quoted: Optional[ContentItem] = None,
    ) -> list[Claim]:
        """Heuristic extraction used when inference is unavailable or failing."""
        reuse = self._can_reuse(quoted)
        claims = self._heuristic_claims(item, None if reuse else quoted)
        return self._merge_reused(claims, quoted if reuse else None)

    def _can_reuse(self, quoted: Optional[ContentItem]) -> bool:
        return quoted is not None and quoted.has_complete_verification()

    def _build_prompt(self, item: ContentItem, quoted: Optional[ContentItem]) -> str:
        quoted_block = ""
        if quoted is not None and quoted.text:
            quoted_block = CLAIM_QUOTED_BLOCK.format(quoted_text=sanitize_for_prompt(quoted.text))
        image_block = ""
        if item.image_text:
            image_block = CLAIM_IMAGE_BLOCK.format(image_text=sanitize_for_prompt(item.image_text))
        return CLAIM_EXTRACTION_USER_PROMPT.format(
            text=sanitize_for_prompt(item.text),
            quoted_block=quoted_block,
            image_block=image_block,
            topic=sanitize_for_prompt(item.topic or "none", max_length=80),
        )

    def _parse_claims(self, raw: Optional[dict], content_id: str) -> list[Claim]:
        """
        Validate raw claim dicts into Claim records.

        Invalid entries (missing text, wrong shape) are skipped with a
        debug log rather than failing the batch.
        """
        if not raw:
            return []
        entries = raw.get("claims", raw.get("items"))
        if not isinstance(entries, list):
            return []

        claims: list[Claim] = []
        seen_ids: set[str] = set()
        for i, entry in enumerate(entries):
            if not isinstance(entry, dict):
                self.logger.debug(f"Skipping non-object claim at index {i}")
                continue
            text = entry.get("text")
            if not isinstance(text, str) or not text.strip():
                self.logger.debug(f"Skipping claim {i} with empty text")
                continue

            claim_id = self._claim_id(content_id, entry.get("id"), len(claims) + 1, seen_ids)
            try:
                claim = Claim(
                    id=claim_id,
                    text=text,
                    type=entry.get("type"),
                    domain=entry.get("domain"),
                    risk_level=entry.get("risk", entry.get("risk_level", entry.get("riskLevel"))),
                    confidence=entry.get("confidence"),
                )
            except ValidationError as e:
                self.logger.debug(f"Skipping invalid claim {i}: {e.error_count()} errors")
                continue
            seen_ids.add(claim_id)
            claims.append(claim)
        return claims

    @staticmethod
    def _claim_id(content_id: str, candidate: Any, position: int, seen: set[str]) -> str:
        if isinstance(candidate, (str, int)) and str(candidate).strip():
            cid = f"{content_id}-{str(candidate).strip()}"
            if cid not in seen:
                return cid
        cid = f"{content_id}-claim-{position}"
        while cid in seen:
            position += 1
            cid = f"{content_id}-claim-{position}"
        return cid

    def _heuristic_claims(
        self,
        item: ContentItem,
        quoted: Optional[ContentItem],
    ) -> list[Claim]:
        """Up to three sentence claims, or an image placeholder claim.

        Sentence claims take the declared topic as their domain.
        """
        text = " ".join(
            part.strip()
            for part in [item.text, item.image_text, quoted.text if quoted else None]
            if part and part.strip()
        )
        sentences = [
            s.strip() for s in _SENTENCE_SPLIT.split(text) if len(s.strip()) >= MIN_SENTENCE_LENGTH
        ][:MAX_FALLBACK_CLAIMS]

        claims = []
        for n, sentence in enumerate(sentences, start=1):
            lowered = sentence.lower()
            claims.append(
                Claim(
                    id=f"{item.id}-claim-{n}",
                    text=sentence,
                    type=ClaimType.EXPERIENCE if _FIRST_PERSON.search(sentence) else ClaimType.FACT,
                    domain=item.topic or "general",
                    risk_level=(
                        RiskLevel.MEDIUM
                        if any(term in lowered for term in MEDIUM_RISK_TERMS)
                        else RiskLevel.LOW
                    ),
                    confidence=FALLBACK_CONFIDENCE,
                )
            )

        if not claims and item.image_url:
            claims.append(
                Claim(
                    id=f"{item.id}-claim-1",
                    text=IMAGE_PLACEHOLDER_TEXT,
                    type=ClaimType.FACT,
                    domain="general",
                    risk_level=RiskLevel.MEDIUM,
                    confidence=0.2,
                )
            )
        return claims

    def _merge_reused(
        self,
        claims: list[Claim],
        quoted: Optional[ContentItem],
    ) -> list[Claim]:
        """Append the quoted item's verified claims, dropping near-duplicate new claims."""
        if quoted is None:
            return claims

        reused = [c.model_copy(update={"origin": ClaimOrigin.QUOTED}) for c in quoted.claims]
        kept = []
        for claim in claims:
            duplicate = any(
                self._similarity(claim.text, r.text) >= self.reuse_similarity for r in reused
            )
            if duplicate:
                self.logger.debug(f"Dropping claim {claim.id}, duplicates a reused quoted claim")
            else:
                kept.append(claim)

        self.logger.info(
            "Reused quoted claims",
            quoted_id=quoted.id,
            reused=len(reused),
            new=len(kept),
        )
        return kept + reused

    @staticmethod
    def _similarity(a: str, b: str) -> float:
        return fuzz.ratio(a.lower().strip(), b.lower().strip()) / 100.0

    def get_capabilities(self) -> list[str]:
        return ["claim_extraction", "quoted_claim_reuse"]
