"""Verification pre-check: decide whether an item needs claim verification.

Two paths produce a PreCheckResult:
- run(): model triage, informed by heuristic signals
- fallback(): heuristic risk score only

Both pass through the same decision rule:
- confidence below the ambiguity threshold -> verify (fail-open)
- high heuristic risk or high-risk keywords -> verify, whatever the model said

Opinion framing never lowers the risk score, so "I think vaccines cause
autism" is checked like "vaccines cause autism".
"""

import re
from typing import Optional

from content_trust.agents.base_agent import BaseAgent
from content_trust.config.domain_trust import (
    AUTHORITY_PATTERNS,
    HIGH_RISK_KEYWORDS,
    HIGH_RISK_TOPICS,
    OPINION_MARKERS,
    STAT_PATTERNS,
)
from content_trust.config.prompts import (
    PRECHECK_QUOTED_BLOCK,
    PRECHECK_SCHEMA,
    PRECHECK_SYSTEM_PROMPT,
    PRECHECK_USER_PROMPT,
)
from content_trust.config.settings import settings
from content_trust.data_management.schemas import ContentItem, ContentType, PreCheckResult
from content_trust.llm.sanitizer import sanitize_for_prompt

_STAT_RE = [re.compile(p, re.IGNORECASE) for p in STAT_PATTERNS]
_AUTHORITY_RE = [re.compile(p, re.IGNORECASE) for p in AUTHORITY_PATTERNS]
_OPINION_RE = [re.compile(p, re.IGNORECASE) for p in OPINION_MARKERS]
_FIRST_PERSON_RE = re.compile(r"\b(i|my|me|i'm|i've)\b", re.IGNORECASE)

LONG_TEXT_WORDS = 25


def _contains_word(text: str, words: list[str], stems: bool = False) -> bool:
    # stems match any word starting with the entry; otherwise an optional plural s
    suffix = "" if stems else r"s?\b"
    return any(re.search(rf"\b{re.escape(w)}{suffix}", text) for w in words)


class RiskClassifier(BaseAgent):
    """
    Pre-check agent producing a PreCheckResult per content item.

    Attributes:
        risk_threshold: Heuristic risk at which verification is required
        ambiguity_threshold: Confidence below which verification is forced
        risk_floor: Heuristic risk that overrides a model "no"
    """

    def __init__(
        self,
        risk_threshold: Optional[float] = None,
        ambiguity_threshold: Optional[float] = None,
        risk_floor: Optional[float] = None,
        **kwargs,
    ):
        super().__init__(
            name="RiskClassifier",
            description="Decides whether content needs claim verification",
            **kwargs,
        )
        self.risk_threshold = risk_threshold if risk_threshold is not None else settings.precheck_risk_threshold
        self.ambiguity_threshold = (
            ambiguity_threshold if ambiguity_threshold is not None else settings.precheck_ambiguity_threshold
        )
        self.risk_floor = risk_floor if risk_floor is not None else settings.precheck_risk_floor

    def compute_risk(
        self,
        item: ContentItem,
        quoted: Optional[ContentItem] = None,
    ) -> tuple[float, list[str]]:
        """
        Heuristic risk score in [0, 1] plus the signals that fired.

        Quoted text is scored together with the item's own text.
        """
        parts = [item.text or "", item.image_text or ""]
        if quoted is not None:
            parts.append(quoted.text or "")
        text = " ".join(p for p in parts if p).strip()
        lowered = text.lower()
        topic = (item.topic or "").lower()

        score = 0.1
        signals: list[str] = []

        if topic and any(t in topic for t in HIGH_RISK_TOPICS):
            score += 0.35
            signals.append("high_risk_topic")
        elif _contains_word(lowered, HIGH_RISK_TOPICS, stems=True):
            score += 0.15
            signals.append("high_risk_topic")

        if any(p.search(text) for p in _STAT_RE):
            score += 0.2
            signals.append("stats_or_numbers")
        if any(p.search(text) for p in _AUTHORITY_RE):
            score += 0.15
            signals.append("authority_cue")
        if _contains_word(lowered, HIGH_RISK_KEYWORDS):
            score += 0.2
            signals.append("high_risk_keywords")

        if len(text) > 200:
            score += 0.1
        elif len(text) < 40:
            score -= 0.05

        if item.image_url:
            score += 0.05
            signals.append("has_image")
        if quoted is not None:
            signals.append("has_quote")
        if any(p.search(text) for p in _OPINION_RE):
            signals.append("opinion_marker")
        if len(text.split()) >= LONG_TEXT_WORDS:
            signals.append("long_text")

        return max(0.0, min(1.0, score)), signals

    @staticmethod
    def is_empty(item: ContentItem, quoted: Optional[ContentItem] = None) -> bool:
        has_quoted_text = quoted is not None and bool((quoted.text or "").strip())
        return not (
            (item.text or "").strip()
            or item.image_url
            or (item.image_text or "").strip()
            or has_quoted_text
        )

    def _empty_result(self) -> PreCheckResult:
        return PreCheckResult(
            needs_fact_check=False,
            confidence=1.0,
            reasoning="Empty content",
            content_type=ContentType.OTHER,
            risk_score=0.0,
        )

    async def run(
        self,
        item: ContentItem,
        quoted: Optional[ContentItem] = None,
    ) -> PreCheckResult:
        """
        Model-driven pre-check.

        Malformed model output falls back to the heuristic inside this
        method. Transport failures propagate to the caller.
        """
        if self.is_empty(item, quoted):
            return self._empty_result()

        risk, signals = self.compute_risk(item, quoted)
        quoted_block = ""
        if quoted is not None and quoted.text:
            quoted_block = PRECHECK_QUOTED_BLOCK.format(quoted_text=sanitize_for_prompt(quoted.text))

        prompt = PRECHECK_USER_PROMPT.format(
            text=sanitize_for_prompt(" ".join(filter(None, [item.text, item.image_text]))),
            quoted_block=quoted_block,
            topic=sanitize_for_prompt(item.topic or "none", max_length=80),
            has_image="yes" if item.image_url else "no",
            signals=", ".join(signals) or "none",
        )
        raw = await self._infer_json(
            prompt,
            PRECHECK_SCHEMA,
            system_prompt=PRECHECK_SYSTEM_PROMPT,
            image_url=item.image_url,
        )
        if raw is None:
            return self.fallback(item, quoted)

        needs = self._parse_bool(raw.get("needsFactCheck", raw.get("needs_fact_check")))
        result = PreCheckResult(
            needs_fact_check=bool(needs),
            # missing decision is treated as no confidence at all
            confidence=raw.get("confidence", 0.0) if needs is not None else 0.0,
            reasoning=str(raw.get("reasoning") or ""),
            content_type=raw.get("contentType", raw.get("content_type")),
            risk_score=risk,
            signals=signals,
        )
        return self._apply_decision_rule(result)

    def fallback(
        self,
        item: ContentItem,
        quoted: Optional[ContentItem] = None,
    ) -> PreCheckResult:
        """Heuristic pre-check used when inference is unavailable or failing."""
        if self.is_empty(item, quoted):
            return self._empty_result()

        risk, signals = self.compute_risk(item, quoted)
        text = " ".join(filter(None, [item.text, quoted.text if quoted else None]))

        if "opinion_marker" in signals:
            content_type = ContentType.OPINION
        elif _FIRST_PERSON_RE.search(text):
            content_type = ContentType.EXPERIENCE
        elif "stats_or_numbers" in signals or "authority_cue" in signals:
            content_type = ContentType.FACTUAL
        else:
            content_type = ContentType.OTHER

        result = PreCheckResult(
            needs_fact_check=risk >= self.risk_threshold,
            confidence=0.65,
            reasoning=f"Heuristic risk score {risk:.2f}",
            content_type=content_type,
            risk_score=risk,
            signals=signals,
            heuristic=True,
        )
        self.logger.debug(
            "Heuristic pre-check",
            risk_score=round(risk, 3),
            needs_fact_check=result.needs_fact_check,
        )
        return self._apply_decision_rule(result)

    def _apply_decision_rule(self, result: PreCheckResult) -> PreCheckResult:
        if result.needs_fact_check:
            return result

        if result.confidence < self.ambiguity_threshold:
            return result.model_copy(
                update={
                    "needs_fact_check": True,
                    "signals": result.signals + ["ambiguous_default_check"],
                }
            )

        if result.risk_score >= self.risk_floor or "high_risk_keywords" in result.signals:
            return result.model_copy(
                update={
                    "needs_fact_check": True,
                    "signals": result.signals + ["risk_floor_override"],
                }
            )
        return result

    @staticmethod
    def _parse_bool(value) -> Optional[bool]:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("true", "yes", "1"):
                return True
            if lowered in ("false", "no", "0"):
                return False
        return None

    def get_capabilities(self) -> list[str]:
        return ["precheck", "risk_scoring"]
