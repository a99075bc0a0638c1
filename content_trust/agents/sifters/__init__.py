"""Sifter agents: the per-stage workers of the content trust pipeline.

Each agent exposes an AI path (run) and a deterministic fallback.
"""

from content_trust.agents.sifters.risk_classifier import RiskClassifier
from content_trust.agents.sifters.claim_extraction_agent import ClaimExtractionAgent
from content_trust.agents.sifters.verification import EvidenceScorer, FactVerifier, PenaltyPolicy
from content_trust.agents.sifters.discussion_analyzer import DiscussionAnalyzer
from content_trust.agents.sifters.scoring import ExplanationAgent, ValueScorer

__all__ = [
    "RiskClassifier",
    "ClaimExtractionAgent",
    "EvidenceScorer",
    "FactVerifier",
    "PenaltyPolicy",
    "DiscussionAnalyzer",
    "ValueScorer",
    "ExplanationAgent",
]
