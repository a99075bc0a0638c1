"""Inference clients, prompt sanitization and response parsing."""

from content_trust.llm.errors import (
    InferenceError,
    InferenceUnavailableError,
    TransientInferenceError,
)
from content_trust.llm.inference_client import InferenceClient, get_inference_client

__all__ = [
    "InferenceClient",
    "InferenceError",
    "InferenceUnavailableError",
    "TransientInferenceError",
    "get_inference_client",
]
