"""Value scoring and score explanations."""

from content_trust.agents.sifters.scoring.value_scorer import (
    ValueScorer,
    dominant_domain,
    finalize_value_vector,
    weights_for,
)
from content_trust.agents.sifters.scoring.explanation_agent import ExplanationAgent

__all__ = [
    "ValueScorer",
    "ExplanationAgent",
    "dominant_domain",
    "finalize_value_vector",
    "weights_for",
]
