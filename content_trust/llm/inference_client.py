"""Inference client interface and backend factory.

Pipeline agents depend only on InferenceClient.infer(); the concrete
backend is chosen from settings.inference_backend.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from loguru import logger

from content_trust.config.settings import settings


class InferenceClient(ABC):
    """Language-model inference service.

    infer() returns either a parsed dict (structured backends) or raw text
    that callers run through extract_json_object(). Implementations raise
    TransientInferenceError for retryable failures.
    """

    @abstractmethod
    async def infer(
        self,
        prompt: str,
        schema: Optional[dict[str, Any]] = None,
        *,
        system_prompt: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> dict | str:
        """Run one inference request."""

    async def aclose(self) -> None:
        """Release transport resources. No-op by default."""


def get_inference_client() -> Optional[InferenceClient]:
    """
    Build the inference client configured in settings.

    Returns:
        InferenceClient, or None when no backend is configured. Agents
        treat None as "inference unavailable" and use their fallbacks.
    """
    backend = settings.inference_backend.lower()

    if backend == "gemini":
        if not settings.gemini_api_key:
            logger.warning("GEMINI_API_KEY not configured, inference disabled")
            return None
        from content_trust.llm.gemini_client import GeminiInferenceClient

        return GeminiInferenceClient()

    if backend == "http":
        if not settings.inference_url:
            logger.warning("INFERENCE_URL not configured, inference disabled")
            return None
        from content_trust.llm.http_client import HttpInferenceClient

        return HttpInferenceClient()

    if backend != "none":
        logger.warning(f"Unknown inference backend '{backend}', inference disabled")
    return None
