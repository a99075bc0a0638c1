"""Generic JSON-over-HTTP inference backend.

Posts {"prompt", "schema", "system_prompt", "image_url"} to a configured
endpoint with a bearer token and expects a JSON body. If the body has an
"output" key its value is returned, otherwise the whole body.
"""

from typing import Any, Optional

import httpx
from loguru import logger

from content_trust.config.settings import settings
from content_trust.llm.errors import (
    InferenceError,
    InferenceUnavailableError,
    TransientInferenceError,
)
from content_trust.llm.inference_client import InferenceClient
from content_trust.llm.rate_limiter import RateLimiter


class HttpInferenceClient(InferenceClient):
    """Bearer-authenticated inference endpoint client."""

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        rate_limiter: Optional[RateLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url or settings.inference_url
        if not self.url:
            raise ValueError("INFERENCE_URL not configured in environment")

        headers = {"Content-Type": "application/json"}
        token = api_key or settings.inference_api_key
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.rate_limiter = rate_limiter or RateLimiter()
        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=timeout or settings.inference_timeout_s,
            transport=transport,
        )
        logger.info(f"HTTP inference client initialized for {self.url}")

    async def infer(
        self,
        prompt: str,
        schema: Optional[dict[str, Any]] = None,
        *,
        system_prompt: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> dict | str:
        payload = {
            "prompt": prompt,
            "schema": schema,
            "system_prompt": system_prompt,
            "image_url": image_url,
        }

        await self.rate_limiter.wait()
        try:
            response = await self._client.post(self.url, json=payload)
        except httpx.TransportError as e:
            raise TransientInferenceError(f"{type(e).__name__}: {e}") from e
        except httpx.HTTPError as e:
            raise InferenceError(f"{type(e).__name__}: {e}") from e

        if response.status_code == 429 or response.status_code >= 500:
            raise TransientInferenceError(f"inference endpoint returned {response.status_code}")
        if response.status_code in (401, 403):
            raise InferenceUnavailableError(f"inference endpoint rejected credentials ({response.status_code})")
        if response.status_code >= 400:
            raise InferenceError(f"inference endpoint returned {response.status_code}")

        try:
            body = response.json()
        except ValueError:
            return response.text

        if isinstance(body, dict) and "output" in body:
            return body["output"]
        return body

    async def aclose(self) -> None:
        await self._client.aclose()
