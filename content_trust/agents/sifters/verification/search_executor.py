"""Web search for claim evidence using the Serper API.

Runs the QueryGenerator variants for a claim, converts organic results to
Evidence with domain-trust quality from the EvidenceScorer and removes
duplicate URLs across queries.

Search is best effort: without SERPER_API_KEY it returns no results, and a
failed query is logged and contributes nothing. The fact check then relies
on the evidence the model cites itself.

Usage:
    from content_trust.agents.sifters.verification.search_executor import SearchExecutor

    executor = SearchExecutor()
    evidence = await executor.search_claim(claim)
"""

from typing import Any, Optional

import httpx
import structlog

from content_trust.agents.sifters.verification.evidence_scorer import EvidenceScorer
from content_trust.agents.sifters.verification.query_generator import QueryGenerator, SearchQuery
from content_trust.config.settings import settings
from content_trust.data_management.schemas import Claim, Evidence
from content_trust.llm.rate_limiter import RateLimiter


class SearchExecutor:
    """Executes evidence searches for claims."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        max_results: Optional[int] = None,
        timeout: Optional[float] = None,
        query_generator: Optional[QueryGenerator] = None,
        evidence_scorer: Optional[EvidenceScorer] = None,
        rate_limiter: Optional[RateLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize SearchExecutor.

        Args:
            api_key: Serper API key. Falls back to settings (SERPER_API_KEY).
            url: Search endpoint.
            max_results: Organic results kept per query.
            timeout: Per-request timeout in seconds.
            query_generator: Builds the query variants per claim.
            evidence_scorer: Assigns quality and discards untrusted results.
            rate_limiter: Throttles search requests.
            transport: httpx transport override (tests).
        """
        self._api_key = api_key if api_key is not None else settings.serper_api_key
        self._url = url or settings.search_url
        self._max_results = max_results or settings.search_max_results
        self._timeout = timeout or settings.search_timeout_s
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self.query_generator = query_generator or QueryGenerator()
        self.evidence_scorer = evidence_scorer or EvidenceScorer()
        self.rate_limiter = rate_limiter
        self._logger = structlog.get_logger().bind(component="SearchExecutor")

        if not self._api_key:
            self._logger.warning(
                "serper_api_key_not_set",
                msg="SERPER_API_KEY not set, evidence search disabled",
            )

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"X-API-KEY": self._api_key or "", "Content-Type": "application/json"},
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def search_claim(self, claim: Claim) -> list[Evidence]:
        """Run every query variant for a claim; evidence deduplicated by URL."""
        if not self.enabled:
            return []

        evidence: list[Evidence] = []
        seen_urls: set[str] = set()
        for query in self.query_generator.generate_queries(claim):
            for item in await self.execute_query(query):
                if item.url in seen_urls:
                    continue
                seen_urls.add(item.url)
                evidence.append(item)
        return evidence

    async def execute_query(self, query: SearchQuery) -> list[Evidence]:
        """Execute one query and return scored evidence (empty on failure)."""
        if not self.enabled:
            return []

        if self.rate_limiter is not None:
            await self.rate_limiter.wait()

        try:
            response = await self._get_client().post(
                self._url,
                json={"q": query.query, "num": self._max_results},
            )
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self._logger.error(
                "search_failed",
                query=query.query[:80],
                error_type=type(e).__name__,
                error=str(e),
            )
            return []

        organic = body.get("organic", []) if isinstance(body, dict) else []
        raw = [self._to_raw_evidence(r) for r in organic[: self._max_results] if isinstance(r, dict)]
        evidence = [e for e in self.evidence_scorer.score_all(raw) if e.url]

        self._logger.info(
            "search_executed",
            query=query.query[:80],
            variant=query.variant_type,
            results=len(evidence),
        )
        return evidence

    @staticmethod
    def _to_raw_evidence(result: dict[str, Any]) -> dict[str, Any]:
        return {
            "source": result.get("title") or "",
            "url": result.get("link"),
            "snippet": result.get("snippet") or "",
        }

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
