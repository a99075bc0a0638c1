"""Fact check and evidence schemas.

A FactCheck is one-to-one with a Claim. Evidence quality is always set by
the EvidenceScorer from the domain trust table; a quality value supplied by
the model is never used.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from content_trust.data_management.schemas.validators import coerce_choice, coerce_unit


class Verdict(str, Enum):
    """Outcome of checking a claim against evidence."""

    TRUE = "true"
    FALSE = "false"
    MIXED = "mixed"
    UNKNOWN = "unknown"


class Evidence(BaseModel):
    """One piece of supporting or refuting evidence.

    Attributes:
        source: Source label (publication, organization or domain).
        url: Source URL when known.
        snippet: Quoted or summarized text.
        quality: Trust score assigned by the EvidenceScorer.
    """

    source: str = ""
    url: Optional[str] = None
    snippet: str = ""
    quality: float = Field(default=0.0, ge=0.0, le=1.0)

    @field_validator("quality", mode="before")
    @classmethod
    def _clamp_quality(cls, value):
        return coerce_unit(value, default=0.0)


class FactCheck(BaseModel):
    """Verdict and evidence trail for a single claim."""

    id: str
    claim_id: str
    verdict: Verdict = Verdict.UNKNOWN
    confidence: float = Field(default=0.25, ge=0.0, le=1.0)
    evidence: list[Evidence] = Field(default_factory=list)
    caveats: list[str] = Field(default_factory=list)
    checked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("verdict", mode="before")
    @classmethod
    def _coerce_verdict(cls, value):
        return coerce_choice(value, [v.value for v in Verdict], Verdict.UNKNOWN.value)

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value):
        return coerce_unit(value)

    @field_validator("caveats", mode="before")
    @classmethod
    def _clean_caveats(cls, value):
        if not isinstance(value, list):
            return []
        return [str(c).strip() for c in value if str(c or "").strip()]

    def is_confident_false(self, threshold: float) -> bool:
        """True for a false verdict with confidence strictly above ``threshold``."""
        return self.verdict == Verdict.FALSE and self.confidence > threshold

    @property
    def is_contested(self) -> bool:
        """Mixed or unknown verdicts leave the claim unresolved."""
        return self.verdict in (Verdict.MIXED, Verdict.UNKNOWN)
