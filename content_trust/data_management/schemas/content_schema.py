"""Content item schema and the insights payload written back by the pipeline."""

import hashlib
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from content_trust.data_management.schemas.claim_schema import Claim
from content_trust.data_management.schemas.fact_check_schema import FactCheck
from content_trust.data_management.schemas.value_schema import ThreadQuality, ValueVector


class ContentKind(str, Enum):
    POST = "post"
    REPLY = "reply"


class PublishStatus(str, Enum):
    """Publish eligibility of a content item.

    clean and blocked are terminal. needs_review waits for reviewer
    consensus or human moderation.
    """

    CLEAN = "clean"
    NEEDS_REVIEW = "needs_review"
    BLOCKED = "blocked"


class ContentInsights(BaseModel):
    """Everything the pipeline writes back to a content item in one update."""

    claims: list[Claim] = Field(default_factory=list)
    fact_checks: list[FactCheck] = Field(default_factory=list)
    fact_check_status: PublishStatus
    value_score: Optional[ValueVector] = None
    explanation: Optional[str] = None
    discussion_quality: Optional[ThreadQuality] = None


class ContentItem(BaseModel):
    """A user-authored post or reply plus its pipeline-derived fields.

    Attributes:
        id: Content identifier.
        author_id: Authoring user.
        kind: post or reply.
        text: Body text (may be empty for image-only items).
        topic: Declared topic, used as a domain hint.
        image_url: Optional attached image reference.
        image_text: Optional text recognized in the image.
        quoted_content_id: Id of a quoted item, if any.
        parent_id: Parent item for replies.
        publish_status: Set only by the policy resolver or consensus resolver.
    """

    id: str
    author_id: str
    kind: ContentKind = ContentKind.POST
    text: str = ""
    topic: Optional[str] = None
    image_url: Optional[str] = None
    image_text: Optional[str] = None
    quoted_content_id: Optional[str] = None
    parent_id: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    publish_status: Optional[PublishStatus] = None
    claims: list[Claim] = Field(default_factory=list)
    fact_checks: list[FactCheck] = Field(default_factory=list)
    value_score: Optional[ValueVector] = None
    explanation: Optional[str] = None
    discussion_quality: Optional[ThreadQuality] = None
    insights_updated_at: Optional[datetime] = None
    status_changed_at: Optional[datetime] = None
    review_escalated_at: Optional[datetime] = None

    def fingerprint(self) -> str:
        """SHA-256 over the inputs that determine pipeline output.

        An edited item gets a new fingerprint and is reprocessed.
        """
        parts = [
            self.text or "",
            self.image_url or "",
            self.image_text or "",
            self.quoted_content_id or "",
            self.topic or "",
        ]
        return hashlib.sha256("\x1f".join(parts).encode("utf-8")).hexdigest()

    def has_complete_verification(self) -> bool:
        """All claims extracted and each has a fact check."""
        if not self.claims:
            return False
        checked = {fc.claim_id for fc in self.fact_checks}
        return all(claim.id in checked for claim in self.claims)
