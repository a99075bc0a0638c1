"""Inference error taxonomy.

TransientInferenceError is the only failure the pipeline retries. Anything
else raised by an inference call sends the stage straight to its fallback.
"""


class InferenceError(Exception):
    """Base class for inference failures."""


class TransientInferenceError(InferenceError):
    """Rate limiting, timeouts, network errors and 5xx responses."""


class InferenceUnavailableError(InferenceError):
    """No inference backend is configured or it rejected the request permanently."""
