"""Shared fixtures: a scripted inference client and content factories."""

from typing import Any, Callable, Optional

import pytest

from content_trust.config.settings import settings
from content_trust.data_management.schemas import ContentItem
from content_trust.llm.errors import TransientInferenceError
from content_trust.llm.inference_client import InferenceClient

UNSCRIPTED_RESPONSE = "no structured answer available"


class FakeInferenceClient(InferenceClient):
    """
    Inference client scripted per output schema.

    Each agent passes its own *_SCHEMA dict, so responses are keyed by the
    schema object. A scripted response can be:
    - a dict or str, returned on every call
    - a list, consumed in order (the last entry repeats)
    - a callable taking the prompt
    - an exception instance, raised on every call

    Calls with an unscripted schema get a non-JSON answer, which agents
    treat as malformed output.
    """

    def __init__(self) -> None:
        self._responses: list[tuple[dict, Any]] = []
        self._failures: list[list] = []
        self.calls: list[tuple[Optional[dict], str]] = []

    def on(self, schema: dict, response: Any) -> "FakeInferenceClient":
        self._responses.append((schema, response))
        return self

    def fail(
        self,
        schema: dict,
        times: int,
        error: Callable[[], Exception] = lambda: TransientInferenceError("503 from upstream"),
    ) -> "FakeInferenceClient":
        """Raise ``error()`` for the next ``times`` calls with ``schema``."""
        self._failures.append([schema, times, error])
        return self

    def calls_for(self, schema: dict) -> int:
        return sum(1 for s, _ in self.calls if s is schema)

    async def infer(
        self,
        prompt: str,
        schema: Optional[dict[str, Any]] = None,
        *,
        system_prompt: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> dict | str:
        self.calls.append((schema, prompt))

        for failure in self._failures:
            if failure[0] is schema and failure[1] > 0:
                failure[1] -= 1
                raise failure[2]()

        for scripted_schema, response in self._responses:
            if scripted_schema is not schema:
                continue
            if isinstance(response, BaseException):
                raise response
            if isinstance(response, list):
                return response.pop(0) if len(response) > 1 else response[0]
            if callable(response):
                return response(prompt)
            return response
        return UNSCRIPTED_RESPONSE


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def no_web_search(monkeypatch):
    """Keep evidence search offline unless a test injects its own executor."""
    monkeypatch.setattr(settings, "serper_api_key", None)


@pytest.fixture
def fake_client() -> FakeInferenceClient:
    return FakeInferenceClient()


@pytest.fixture
def make_item() -> Callable[..., ContentItem]:
    def _make(content_id: str = "post-1", text: str = "", **kwargs) -> ContentItem:
        kwargs.setdefault("author_id", "author-1")
        return ContentItem(id=content_id, text=text, **kwargs)

    return _make
