"""Pipeline orchestration for content items.

- ContentTrustPipeline: pre-check -> claims -> fact check -> discussion
  -> scoring, checkpointed per stage, with a single write-back
"""

from content_trust.pipeline.orchestrator import ContentTrustPipeline, LeaseLostError

__all__ = ["ContentTrustPipeline", "LeaseLostError"]
