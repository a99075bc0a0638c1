"""Review vote, reputation and consensus schemas.

ReviewVote validation happens at construction, so an invalid vote never
reaches the vote store.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from content_trust.data_management.schemas.content_schema import PublishStatus

MIN_SOURCES = 1
MAX_SOURCES = 10
MIN_JUSTIFICATION = 20
MAX_JUSTIFICATION = 500

REPUTATION_START_SCORE = 65.0
REPUTATION_HISTORY_LIMIT = 20


class ReviewAction(str, Enum):
    VALIDATE = "validate"
    INVALIDATE = "invalidate"


class ReviewVote(BaseModel):
    """A reviewer's vote on a needs_review item. Append-only."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    content_id: str = Field(..., min_length=1)
    reviewer_id: str = Field(..., min_length=1)
    action: ReviewAction
    sources: list[str]
    justification: str
    content_fingerprint: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"frozen": True}

    @field_validator("sources", mode="before")
    @classmethod
    def _validate_sources(cls, value):
        if not isinstance(value, list):
            raise ValueError("sources must be a list")
        cleaned = [str(s).strip() for s in value if s is not None]
        if any(not s for s in cleaned) or len(cleaned) != len(value):
            raise ValueError("sources must not contain empty entries")
        if not MIN_SOURCES <= len(cleaned) <= MAX_SOURCES:
            raise ValueError(f"between {MIN_SOURCES} and {MAX_SOURCES} sources are required")
        return cleaned

    @field_validator("justification", mode="before")
    @classmethod
    def _validate_justification(cls, value):
        text = str(value or "").strip()
        if not MIN_JUSTIFICATION <= len(text) <= MAX_JUSTIFICATION:
            raise ValueError(
                f"justification must be {MIN_JUSTIFICATION}-{MAX_JUSTIFICATION} characters"
            )
        return text


class ReputationEvent(BaseModel):
    """One entry in a user's reputation history."""

    kind: str
    delta: float
    score_after: float
    reference_id: Optional[str] = None
    outcome_key: Optional[str] = None
    at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ReputationProfile(BaseModel):
    """Reputation state for one user."""

    user_id: str
    score: float = Field(default=REPUTATION_START_SCORE, ge=0.0, le=100.0)
    components: dict[str, float] = Field(default_factory=dict)
    rolling_contribution: float = 0.0
    content_count: int = 0
    recent_violations: int = 0
    reviews_matched: int = 0
    reviews_contradicted: int = 0
    history: list[ReputationEvent] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def record(self, event: ReputationEvent) -> None:
        """Append an event, keeping only the most recent entries."""
        self.history.append(event)
        if len(self.history) > REPUTATION_HISTORY_LIMIT:
            self.history = self.history[-REPUTATION_HISTORY_LIMIT:]

    def has_outcome(self, outcome_key: str) -> bool:
        return any(e.outcome_key == outcome_key for e in self.history)


class ConsensusResult(BaseModel):
    """Weighted tally of votes for one item."""

    has_consensus: bool = False
    proposed_status: Optional[PublishStatus] = None
    validate_weight: float = 0.0
    invalidate_weight: float = 0.0
    total_weight: float = 0.0
    vote_count: int = 0
    effective_vote_count: int = 0
    validate_ratio: float = 0.0
    invalidate_ratio: float = 0.0
    confidence: float = 0.0


class ResolutionOutcome(BaseModel):
    """Result of evaluating consensus for one item after a vote."""

    content_id: str
    previous_status: Optional[PublishStatus] = None
    final_status: Optional[PublishStatus] = None
    applied: bool = False
    reason: str = ""
    consensus: ConsensusResult = Field(default_factory=ConsensusResult)
