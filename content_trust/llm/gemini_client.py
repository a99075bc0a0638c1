"""Gemini inference backend with rate limiting and error mapping."""

import json
from typing import Any, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types.generation_types import BlockedPromptException
from loguru import logger

from content_trust.config.settings import settings
from content_trust.llm.errors import InferenceError, TransientInferenceError
from content_trust.llm.inference_client import InferenceClient
from content_trust.llm.rate_limiter import RateLimiter

# Provider errors worth retrying
_TRANSIENT_ERRORS = (
    google_exceptions.ResourceExhausted,
    google_exceptions.DeadlineExceeded,
    google_exceptions.ServiceUnavailable,
    google_exceptions.InternalServerError,
    google_exceptions.TooManyRequests,
)


class GeminiInferenceClient(InferenceClient):
    """
    Google Gemini inference client.

    Requests JSON output, throttles through a shared RateLimiter and maps
    provider throttling and availability errors to TransientInferenceError.
    Retries are left to the pipeline so that every stage shares one
    retry budget.

    Attributes:
        model_name: Gemini model identifier
        temperature: Sampling temperature
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        temperature: float = 0.2,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        """
        Initialize Gemini client.

        Raises:
            ValueError: If no API key is configured
        """
        api_key = api_key or settings.gemini_api_key
        if not api_key:
            raise ValueError("GEMINI_API_KEY not configured in environment")

        genai.configure(api_key=api_key)
        self.model_name = model_name or settings.gemini_model
        self.temperature = temperature
        self.rate_limiter = rate_limiter or RateLimiter()
        self._models: dict[Optional[str], Any] = {}

        logger.info(f"Gemini client initialized with model {self.model_name}")

    def _model_for(self, system_prompt: Optional[str]):
        if system_prompt not in self._models:
            self._models[system_prompt] = genai.GenerativeModel(
                self.model_name,
                system_instruction=system_prompt,
            )
        return self._models[system_prompt]

    async def infer(
        self,
        prompt: str,
        schema: Optional[dict[str, Any]] = None,
        *,
        system_prompt: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> str:
        """
        Generate a JSON response.

        Args:
            prompt: Fully formatted, sanitized prompt
            schema: JSON schema the answer must follow (embedded in the prompt)
            system_prompt: Optional system instruction
            image_url: Optional image reference appended to the prompt

        Returns:
            Raw response text

        Raises:
            TransientInferenceError: Throttling, timeouts, unavailability
            InferenceError: Blocked prompts and other provider failures
        """
        parts = [prompt]
        if schema:
            parts.append("Respond with JSON matching this schema:\n" + json.dumps(schema))
        if image_url:
            parts.append(f"Attached image: {image_url}")

        await self.rate_limiter.wait()
        try:
            response = await self._model_for(system_prompt).generate_content_async(
                "\n\n".join(parts),
                generation_config=genai.types.GenerationConfig(
                    temperature=self.temperature,
                    response_mime_type="application/json",
                ),
                request_options={"timeout": settings.inference_timeout_s},
            )
            return response.text
        except _TRANSIENT_ERRORS as e:
            logger.warning(f"Gemini transient failure: {e}")
            raise TransientInferenceError(str(e)) from e
        except BlockedPromptException as e:
            logger.error(f"Prompt blocked by safety filters: {e}")
            raise InferenceError(f"prompt blocked: {e}") from e
        except google_exceptions.GoogleAPICallError as e:
            logger.error(f"Gemini request failed: {e}")
            raise InferenceError(f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            # response.text raises ValueError when no candidate was returned
            raise InferenceError(f"empty response: {e}") from e
