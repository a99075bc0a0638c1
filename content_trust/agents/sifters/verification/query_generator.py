"""Search query variants for claim verification.

Up to search_max_queries variants per claim, most authoritative first:
- authority: claim text restricted to the institutions of the claim's domain
- fact_check: quoted claim phrase plus "fact check"
- exact_phrase: quoted claim phrase, to find the original publication

Usage:
    from content_trust.agents.sifters.verification.query_generator import QueryGenerator

    generator = QueryGenerator()
    queries = generator.generate_queries(claim)
"""

import re
from typing import Optional

import structlog
from pydantic import BaseModel, Field

from content_trust.config.domain_trust import AUTHORITY_SITES, DEFAULT_AUTHORITY_SITES
from content_trust.config.settings import settings
from content_trust.data_management.schemas import Claim

MAX_PHRASE_LENGTH = 100

_QUOTES = re.compile(r"[\"“”]")
_WHITESPACE = re.compile(r"\s+")


class SearchQuery(BaseModel):
    """One web search issued to gather evidence for a claim."""

    query: str = Field(..., min_length=1)
    variant_type: str
    claim_id: str
    purpose: str = ""


class QueryGenerator:
    """Builds search query variants for a claim."""

    def __init__(self, max_queries: Optional[int] = None) -> None:
        self.max_queries = max_queries if max_queries is not None else settings.search_max_queries
        self._logger = structlog.get_logger().bind(component="QueryGenerator")

    def generate_queries(self, claim: Claim) -> list[SearchQuery]:
        phrase = self._phrase(claim.text)
        if not phrase:
            return []

        sites = AUTHORITY_SITES.get(claim.domain, DEFAULT_AUTHORITY_SITES)
        queries = [
            SearchQuery(
                query=f"{phrase} " + " OR ".join(f"site:{s}" for s in sites),
                variant_type="authority",
                claim_id=claim.id,
                purpose=f"Find what {claim.domain} institutions say about the claim",
            ),
            SearchQuery(
                query=f'"{phrase}" fact check',
                variant_type="fact_check",
                claim_id=claim.id,
                purpose="Find published fact checks of the claim",
            ),
            SearchQuery(
                query=f'"{phrase}"',
                variant_type="exact_phrase",
                claim_id=claim.id,
                purpose="Find the original publication of the claim",
            ),
        ]
        limited = queries[: self.max_queries]
        self._logger.debug(
            "queries_generated",
            claim_id=claim.id,
            variants=[q.variant_type for q in limited],
        )
        return limited

    @staticmethod
    def _phrase(text: str) -> str:
        cleaned = _WHITESPACE.sub(" ", _QUOTES.sub("", text or "")).strip()
        return cleaned[:MAX_PHRASE_LENGTH].strip()
