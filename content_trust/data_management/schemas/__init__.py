"""Schema package for content trust data structures.

Pydantic models for claims, fact checks, value scores, content items,
pipeline checkpoints and review consensus.

Primary exports:
- Claim: immutable atomic assertion
- FactCheck / Evidence: verdict plus evidence trail per claim
- ValueVector / DiscussionAnalysis: quality scores
- ContentItem / PublishStatus: the item and its publish eligibility
- PipelineCheckpoint / PipelineResult: execution state
- ReviewVote / ReputationProfile / ConsensusResult: review consensus

Usage:
    from content_trust.data_management.schemas import Claim, ClaimType
    claim = Claim(id="post-1-claim-1", text="Coffee improves focus", type=ClaimType.FACT)
"""

from content_trust.data_management.schemas.claim_schema import (
    MAX_CLAIM_LENGTH,
    Claim,
    ClaimOrigin,
    ClaimType,
    RiskLevel,
)
from content_trust.data_management.schemas.fact_check_schema import (
    Evidence,
    FactCheck,
    Verdict,
)
from content_trust.data_management.schemas.value_schema import (
    VALUE_DIMENSIONS,
    DiscussionAnalysis,
    ReplyContribution,
    ReplyRole,
    ThreadQuality,
    ValueVector,
)
from content_trust.data_management.schemas.content_schema import (
    ContentInsights,
    ContentItem,
    ContentKind,
    PublishStatus,
)
from content_trust.data_management.schemas.pipeline_schema import (
    ContentType,
    PipelineCheckpoint,
    PipelineResult,
    PipelineStage,
    PolicyDecision,
    PreCheckResult,
)
from content_trust.data_management.schemas.review_schema import (
    REPUTATION_HISTORY_LIMIT,
    REPUTATION_START_SCORE,
    ConsensusResult,
    ReputationEvent,
    ReputationProfile,
    ResolutionOutcome,
    ReviewAction,
    ReviewVote,
)

__all__ = [
    "MAX_CLAIM_LENGTH",
    "Claim",
    "ClaimOrigin",
    "ClaimType",
    "RiskLevel",
    "Evidence",
    "FactCheck",
    "Verdict",
    "VALUE_DIMENSIONS",
    "DiscussionAnalysis",
    "ReplyContribution",
    "ReplyRole",
    "ThreadQuality",
    "ValueVector",
    "ContentInsights",
    "ContentItem",
    "ContentKind",
    "PublishStatus",
    "ContentType",
    "PipelineCheckpoint",
    "PipelineResult",
    "PipelineStage",
    "PolicyDecision",
    "PreCheckResult",
    "REPUTATION_HISTORY_LIMIT",
    "REPUTATION_START_SCORE",
    "ConsensusResult",
    "ReputationEvent",
    "ReputationProfile",
    "ResolutionOutcome",
    "ReviewAction",
    "ReviewVote",
]
