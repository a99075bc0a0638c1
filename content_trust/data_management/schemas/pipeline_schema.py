"""Pipeline execution schemas: stages, checkpoints, pre-check and results."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from content_trust.data_management.schemas.claim_schema import Claim
from content_trust.data_management.schemas.content_schema import PublishStatus
from content_trust.data_management.schemas.fact_check_schema import FactCheck
from content_trust.data_management.schemas.validators import coerce_choice, coerce_unit
from content_trust.data_management.schemas.value_schema import DiscussionAnalysis, ValueVector


class PipelineStage(str, Enum):
    """Pipeline stages in execution order. A checkpoint names the last completed one."""

    PRECHECK = "precheck"
    CLAIMS = "claims"
    FACTCHECK = "factcheck"
    DISCUSSION = "discussion"
    SCORING = "scoring"
    DONE = "done"

    @classmethod
    def ordered(cls) -> list["PipelineStage"]:
        return [cls.PRECHECK, cls.CLAIMS, cls.FACTCHECK, cls.DISCUSSION, cls.SCORING, cls.DONE]

    def position(self) -> int:
        return PipelineStage.ordered().index(self)


class ContentType(str, Enum):
    FACTUAL = "factual"
    NEWS = "news"
    OPINION = "opinion"
    EXPERIENCE = "experience"
    OTHER = "other"


class PreCheckResult(BaseModel):
    """Decision on whether an item needs claim verification."""

    needs_fact_check: bool
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    reasoning: str = ""
    content_type: ContentType = ContentType.OTHER
    risk_score: float = Field(default=0.0, ge=0.0, le=1.0)
    signals: list[str] = Field(default_factory=list)
    heuristic: bool = False

    @field_validator("confidence", "risk_score", mode="before")
    @classmethod
    def _coerce_unit(cls, value):
        return coerce_unit(value)

    @field_validator("content_type", mode="before")
    @classmethod
    def _normalize_content_type(cls, value):
        return coerce_choice(value, [c.value for c in ContentType], ContentType.OTHER.value)


class PolicyDecision(BaseModel):
    """Publish status with the reasons that produced it."""

    status: PublishStatus
    reasons: list[str] = Field(default_factory=list)
    escalate_to_human: bool = False


class PipelineCheckpoint(BaseModel):
    """Per-item progress record and mutual-exclusion lease.

    One row per content item, overwritten as stages complete. ``owner_id``
    identifies the worker holding the lease; ``updated_at`` is refreshed on
    every stage write so a crashed worker's lease eventually goes stale.
    """

    content_id: str
    stage: Optional[PipelineStage] = None
    partial_result: dict[str, Any] = Field(default_factory=dict)
    content_fingerprint: str = ""
    owner_id: Optional[str] = None
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    def has_completed(self, stage: PipelineStage) -> bool:
        return self.stage is not None and self.stage.position() >= stage.position()

    @property
    def is_done(self) -> bool:
        return self.stage == PipelineStage.DONE


class PipelineResult(BaseModel):
    """Outcome of one process() call."""

    content_id: str
    status: Optional[PublishStatus] = None
    precheck: Optional[PreCheckResult] = None
    claims: list[Claim] = Field(default_factory=list)
    fact_checks: list[FactCheck] = Field(default_factory=list)
    discussion: Optional[DiscussionAnalysis] = None
    value_score: Optional[ValueVector] = None
    explanation: Optional[str] = None
    decision: Optional[PolicyDecision] = None
    degraded_stages: list[str] = Field(default_factory=list)
    resumed_from: Optional[PipelineStage] = None
    from_cache: bool = False
    skipped: bool = False
    skip_reason: Optional[str] = None
