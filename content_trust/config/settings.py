"""Application settings using Pydantic BaseSettings for environment variable management."""

from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Attributes:
        inference_backend: Which inference adapter to build (gemini, http, none)
        gemini_api_key: Google Gemini API key (optional, required for gemini backend)
        gemini_model: Default Gemini model to use
        inference_url: Endpoint for the generic HTTP inference backend
        inference_api_key: Bearer token for the HTTP inference backend
        inference_timeout_s: Per-request timeout for inference calls
        max_rpm: Maximum inference requests per minute
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log output format (json for production, console for dev)
        stage_max_attempts: Attempts per pipeline stage before falling back
        stage_backoff_base_s: Initial retry delay, doubled per attempt
        stage_timeout_s: Hard timeout for a single stage attempt
        checkpoint_stale_after_s: Age after which a pipeline lease can be taken over
        false_confidence_threshold: Confidence above which a false verdict is decisive
        consensus_min_votes: Minimum reviewer votes before consensus is possible
        consensus_supermajority: Weighted share needed for a crowd decision
        serper_api_key: Web search key for evidence retrieval
    """

    inference_backend: str = Field(
        default="gemini",
        description="Inference adapter: gemini, http or none"
    )
    gemini_api_key: Optional[str] = Field(
        default=None,
        description="Google Gemini API key"
    )
    gemini_model: str = Field(
        default="gemini-2.0-flash",
        description="Default Gemini model identifier"
    )
    inference_url: Optional[str] = Field(
        default=None,
        description="JSON inference endpoint for the http backend"
    )
    inference_api_key: Optional[str] = Field(
        default=None,
        description="Bearer token for the http backend"
    )
    inference_timeout_s: float = Field(
        default=30.0,
        description="Per-request inference timeout in seconds"
    )
    max_rpm: int = Field(
        default=60,
        description="Maximum inference requests per minute"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: json or console"
    )

    # Pipeline execution
    stage_max_attempts: int = Field(
        default=3,
        description="Attempts per stage on transient failures"
    )
    stage_backoff_base_s: float = Field(
        default=1.0,
        description="Initial backoff delay in seconds (doubles per attempt)"
    )
    stage_backoff_max_s: float = Field(
        default=8.0,
        description="Upper bound on a single backoff delay"
    )
    stage_timeout_s: float = Field(
        default=60.0,
        description="Hard timeout for one stage attempt"
    )
    checkpoint_stale_after_s: float = Field(
        default=1800.0,
        description="Lease age after which another worker may take over"
    )
    lease_wait_s: float = Field(
        default=0.0,
        description="How long process() waits for a lease held elsewhere"
    )
    checkpoint_path: Optional[str] = Field(
        default=None,
        description="JSON file for checkpoint persistence (memory-only if unset)"
    )
    content_store_path: Optional[str] = Field(
        default=None,
        description="JSON file for content persistence (memory-only if unset)"
    )

    # Pre-check
    precheck_risk_threshold: float = Field(
        default=0.35,
        description="Heuristic risk score at which verification is required"
    )
    precheck_ambiguity_threshold: float = Field(
        default=0.6,
        description="Pre-check confidence below which verification is forced"
    )
    precheck_risk_floor: float = Field(
        default=0.55,
        description="Heuristic risk that forces verification even if the model disagrees"
    )

    # Claims and verification
    claim_reuse_similarity: float = Field(
        default=0.9,
        description="Similarity at which a new claim duplicates a reused quoted claim"
    )
    verification_concurrency: int = Field(
        default=5,
        description="Concurrent claim verifications per item"
    )
    evidence_discard_threshold: float = Field(
        default=0.1,
        description="Evidence at or below this quality is discarded"
    )
    serper_api_key: Optional[str] = Field(
        default=None,
        description="Serper web search API key (evidence search disabled if unset)"
    )
    search_url: str = Field(
        default="https://google.serper.dev/search",
        description="Web search endpoint used for evidence retrieval"
    )
    search_max_results: int = Field(
        default=5,
        description="Search results kept per query"
    )
    search_max_queries: int = Field(
        default=2,
        description="Search queries issued per claim"
    )
    search_timeout_s: float = Field(
        default=10.0,
        description="Per-request web search timeout in seconds"
    )
    false_confidence_threshold: float = Field(
        default=0.7,
        description="Confidence above which a false verdict counts as confident"
    )
    contested_penalty_weight: float = Field(
        default=0.0,
        description="Penalty weight of mixed/unknown verdicts relative to confident false"
    )
    discussion_max_replies: int = Field(
        default=20,
        description="Maximum replies considered by discussion analysis"
    )

    # Review consensus
    consensus_min_votes: int = Field(
        default=50,
        description="Minimum reviewer votes before consensus is possible"
    )
    consensus_supermajority: float = Field(
        default=0.6,
        description="Weighted vote share needed for a crowd decision"
    )
    contested_override_confidence: float = Field(
        default=0.7,
        description="Consensus confidence needed to override a mixed/unknown fact check"
    )
    default_reviewer_score: float = Field(
        default=50.0,
        description="Reputation assumed for reviewers with no profile"
    )
    review_escalation_after_s: float = Field(
        default=7 * 24 * 3600.0,
        description="Age after which needs_review items go to human moderation"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton instance - import this throughout the application
settings = Settings()
