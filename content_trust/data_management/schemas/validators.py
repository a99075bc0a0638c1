"""Shared coercion helpers for schema validators.

Model output is untrusted: numbers may arrive as strings, NaN, infinities
or be missing entirely. These helpers turn any such value into a usable
float in [0, 1] without raising.
"""

import math
from typing import Any


def coerce_unit(value: Any, default: float = 0.5) -> float:
    """Coerce a value to a finite float clamped to [0, 1].

    Non-numeric, NaN and infinite inputs become ``default``.
    """
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return max(0.0, min(1.0, number))


def coerce_choice(value: Any, allowed: list[str], default: str) -> str:
    """Lowercase a string and map anything outside ``allowed`` to ``default``."""
    if value is None:
        return default
    if hasattr(value, "value"):
        value = value.value
    text = str(value).strip().lower()
    return text if text in allowed else default
