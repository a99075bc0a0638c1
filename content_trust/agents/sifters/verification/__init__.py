"""Claim verification: evidence search and scoring, fact checking and penalty policy."""

from content_trust.agents.sifters.verification.evidence_scorer import EvidenceScorer
from content_trust.agents.sifters.verification.fact_verifier import FactVerifier
from content_trust.agents.sifters.verification.penalty_policy import PenaltyPolicy
from content_trust.agents.sifters.verification.query_generator import QueryGenerator, SearchQuery
from content_trust.agents.sifters.verification.search_executor import SearchExecutor

__all__ = [
    "EvidenceScorer",
    "FactVerifier",
    "PenaltyPolicy",
    "QueryGenerator",
    "SearchExecutor",
    "SearchQuery",
]
