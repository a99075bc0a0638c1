"""Claim schema - atomic checkable assertions extracted from content.

Claims are immutable once created. Re-extraction produces new claims with
new ids rather than mutating existing ones.

Malformed model output is normalized here rather than rejected:
- unknown type -> fact
- unknown domain -> general
- unknown risk -> low
- confidence clamped to [0, 1], non-numeric -> 0.5
- text longer than 240 characters is truncated
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from content_trust.config.domain_trust import CLAIM_DOMAINS
from content_trust.data_management.schemas.validators import coerce_choice, coerce_unit

MAX_CLAIM_LENGTH = 240


class ClaimType(str, Enum):
    """Nature of the assertion."""

    FACT = "fact"
    OPINION = "opinion"
    EXPERIENCE = "experience"


class RiskLevel(str, Enum):
    """Harm potential if the claim is wrong."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ClaimOrigin(str, Enum):
    """Where the claim text came from."""

    CONTENT = "content"
    QUOTED = "quoted"


class Claim(BaseModel):
    """An atomic, checkable assertion.

    Attributes:
        id: Stable identifier, prefixed with the owning content id.
        text: Claim text, at most 240 characters.
        type: fact, opinion or experience.
        domain: Subject area used for risk and value weighting.
        risk_level: Harm potential of the claim.
        confidence: Extraction confidence.
        origin: Whether the claim comes from the item itself or a quoted item.
    """

    id: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1, max_length=MAX_CLAIM_LENGTH)
    type: ClaimType = ClaimType.FACT
    domain: str = "general"
    risk_level: RiskLevel = RiskLevel.LOW
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    origin: ClaimOrigin = ClaimOrigin.CONTENT
    extracted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "id": "post-1-claim-1",
                    "text": "Vaccines cause autism",
                    "type": "fact",
                    "domain": "health",
                    "risk_level": "high",
                    "confidence": 0.9,
                }
            ]
        },
    }

    @field_validator("text", mode="before")
    @classmethod
    def _truncate_text(cls, value):
        text = " ".join(str(value or "").split())
        return text[:MAX_CLAIM_LENGTH].rstrip()

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value):
        return coerce_choice(value, [t.value for t in ClaimType], ClaimType.FACT.value)

    @field_validator("domain", mode="before")
    @classmethod
    def _normalize_domain(cls, value):
        return coerce_choice(value, CLAIM_DOMAINS, "general")

    @field_validator("risk_level", mode="before")
    @classmethod
    def _normalize_risk(cls, value):
        return coerce_choice(value, [r.value for r in RiskLevel], RiskLevel.LOW.value)

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value):
        return coerce_unit(value)
