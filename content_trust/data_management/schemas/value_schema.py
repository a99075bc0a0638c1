"""Value and discussion schemas.

ValueVector holds the five quality dimensions plus their weighted total.
All numeric fields are coerced to finite values in [0, 1] on construction.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from content_trust.data_management.schemas.validators import coerce_choice, coerce_unit

VALUE_DIMENSIONS = ("epistemic", "insight", "practical", "relational", "effort")


class ValueVector(BaseModel):
    """Multi-dimensional quality score for a content item or reply."""

    epistemic: float = Field(default=0.0, ge=0.0, le=1.0)
    insight: float = Field(default=0.0, ge=0.0, le=1.0)
    practical: float = Field(default=0.0, ge=0.0, le=1.0)
    relational: float = Field(default=0.0, ge=0.0, le=1.0)
    effort: float = Field(default=0.0, ge=0.0, le=1.0)
    total: float = Field(default=0.0, ge=0.0, le=1.0)
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    drivers: list[str] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator(
        "epistemic", "insight", "practical", "relational", "effort", "total", "confidence",
        mode="before",
    )
    @classmethod
    def _coerce_unit(cls, value):
        return coerce_unit(value)

    @field_validator("drivers", mode="before")
    @classmethod
    def _clean_drivers(cls, value):
        if not isinstance(value, list):
            return []
        return [str(d).strip() for d in value if isinstance(d, str) and d.strip()]

    def dimensions(self) -> dict[str, float]:
        """The five scored dimensions, without total or confidence."""
        return {name: getattr(self, name) for name in VALUE_DIMENSIONS}


class ReplyRole(str, Enum):
    """Function a reply plays in its thread."""

    QUESTION = "question"
    ANSWER = "answer"
    EVIDENCE = "evidence"
    OPINION = "opinion"
    MODERATION = "moderation"
    OTHER = "other"


class ThreadQuality(BaseModel):
    """Aggregate quality of a discussion thread."""

    informativeness: float = Field(default=0.0, ge=0.0, le=1.0)
    civility: float = Field(default=0.0, ge=0.0, le=1.0)
    reasoning_depth: float = Field(default=0.0, ge=0.0, le=1.0)
    cross_perspective: float = Field(default=0.0, ge=0.0, le=1.0)
    summary: str = ""

    @field_validator(
        "informativeness", "civility", "reasoning_depth", "cross_perspective",
        mode="before",
    )
    @classmethod
    def _coerce_unit(cls, value):
        return coerce_unit(value, default=0.0)

    def average(self) -> float:
        return (
            self.informativeness + self.civility + self.reasoning_depth + self.cross_perspective
        ) / 4


class ReplyContribution(BaseModel):
    """Role and value of one reply."""

    role: ReplyRole = ReplyRole.OTHER
    contribution: ValueVector = Field(default_factory=ValueVector)

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value):
        return coerce_choice(value, [r.value for r in ReplyRole], ReplyRole.OTHER.value)


class DiscussionAnalysis(BaseModel):
    """Thread quality plus per-reply contributions keyed by reply id."""

    thread_quality: ThreadQuality = Field(default_factory=ThreadQuality)
    per_reply_contribution: dict[str, ReplyContribution] = Field(default_factory=dict)
    heuristic: bool = False
