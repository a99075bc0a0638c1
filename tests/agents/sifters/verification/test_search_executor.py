"""Tests for QueryGenerator, SearchExecutor and search-backed fact checks.

Tests cover:
- Query variants per claim domain, quote stripping and the query limit
- Search disabled without an API key (no requests made)
- Organic results scored by domain trust, untrusted sources discarded
- Duplicate URLs across query variants removed
- Failed searches contribute no evidence
- Retrieved evidence lifting the confidence ceiling of a fact check
"""

import json

import httpx
import pytest

from content_trust.agents.sifters import FactVerifier, PenaltyPolicy
from content_trust.agents.sifters.verification import QueryGenerator, SearchExecutor, SearchQuery
from content_trust.config.prompts import FACT_CHECK_SCHEMA
from content_trust.data_management.schemas import Claim, Verdict
from content_trust.llm.errors import InferenceUnavailableError

ORGANIC = {
    "organic": [
        {
            "title": "Vaccines and autism",
            "link": "https://www.who.int/vaccine-safety/autism",
            "snippet": "No evidence links childhood vaccines to autism.",
        },
        {
            "title": "My cousin's story",
            "link": "https://www.reddit.com/r/vaccines/comments/1",
            "snippet": "It happened to us.",
        },
        {
            "title": "Autism and vaccines",
            "link": "https://www.cdc.gov/vaccine-safety/autism",
            "snippet": "Studies have shown no link between vaccines and autism.",
        },
    ]
}


def _executor(handler, **kwargs) -> SearchExecutor:
    return SearchExecutor(api_key="serper-key", transport=httpx.MockTransport(handler), **kwargs)


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def claim() -> Claim:
    return Claim(id="post-1-c1", text='"Vaccines cause autism"', domain="health", risk_level="high")


@pytest.fixture
def requests_seen() -> list[dict]:
    return []


@pytest.fixture
def organic_handler(requests_seen):
    def handler(request: httpx.Request) -> httpx.Response:
        requests_seen.append({"key": request.headers.get("x-api-key"), "body": json.loads(request.content)})
        return httpx.Response(200, json=ORGANIC)

    return handler


class TestQueryGenerator:
    def test_health_claim_targets_health_institutions(self, claim):
        queries = QueryGenerator(max_queries=3).generate_queries(claim)

        assert [q.variant_type for q in queries] == ["authority", "fact_check", "exact_phrase"]
        assert "site:who.int" in queries[0].query
        assert queries[1].query == '"Vaccines cause autism" fact check'
        assert all(q.claim_id == "post-1-c1" for q in queries)

    def test_unknown_domain_uses_wire_services(self):
        claim = Claim(id="c", text="The bridge reopened on Monday", domain="general")
        query = QueryGenerator(max_queries=1).generate_queries(claim)[0]
        assert "site:reuters.com OR site:apnews.com" in query.query

    def test_limit(self, claim):
        assert len(QueryGenerator(max_queries=2).generate_queries(claim)) == 2


class TestSearchExecutor:
    @pytest.mark.asyncio
    async def test_disabled_without_key(self, claim, organic_handler, requests_seen):
        executor = SearchExecutor(api_key="", transport=httpx.MockTransport(organic_handler))
        assert not executor.enabled
        assert await executor.search_claim(claim) == []
        assert requests_seen == []

    @pytest.mark.asyncio
    async def test_results_scored_and_filtered(self, organic_handler, requests_seen):
        executor = _executor(organic_handler)
        query = SearchQuery(query="vaccines autism site:who.int", variant_type="authority", claim_id="c")
        evidence = await executor.execute_query(query)
        await executor.aclose()

        assert [e.url for e in evidence] == [
            "https://www.who.int/vaccine-safety/autism",
            "https://www.cdc.gov/vaccine-safety/autism",
        ]
        assert [e.quality for e in evidence] == [0.95, 0.95]
        assert evidence[0].source == "Vaccines and autism"
        assert requests_seen[0]["key"] == "serper-key"
        assert requests_seen[0]["body"] == {"q": "vaccines autism site:who.int", "num": 5}

    @pytest.mark.asyncio
    async def test_duplicates_across_variants_removed(self, claim, organic_handler, requests_seen):
        executor = _executor(organic_handler, query_generator=QueryGenerator(max_queries=2))
        evidence = await executor.search_claim(claim)
        await executor.aclose()

        assert len(requests_seen) == 2
        assert len(evidence) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "handler",
        [
            lambda request: httpx.Response(500, json={}),
            lambda request: httpx.Response(200, text="<html>not json</html>"),
        ],
    )
    async def test_failed_search_returns_nothing(self, claim, handler):
        executor = _executor(handler)
        assert await executor.search_claim(claim) == []
        await executor.aclose()

    @pytest.mark.asyncio
    async def test_connection_error_returns_nothing(self, claim):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        executor = _executor(handler)
        assert await executor.search_claim(claim) == []
        await executor.aclose()


class TestSearchBackedFactCheck:
    @pytest.mark.asyncio
    async def test_retrieved_evidence_supports_confident_false(
        self, fake_client, claim, organic_handler, make_item
    ):
        fake_client.on(FACT_CHECK_SCHEMA, {"verdict": "false", "confidence": 0.95, "evidence": []})
        verifier = FactVerifier(inference_client=fake_client, search_executor=_executor(organic_handler))

        checks = await verifier.run(make_item(text="Vaccines cause autism."), [claim])

        assert checks[0].verdict == Verdict.FALSE
        assert checks[0].confidence == pytest.approx(0.95)
        assert {e.url for e in checks[0].evidence} == {
            "https://www.who.int/vaccine-safety/autism",
            "https://www.cdc.gov/vaccine-safety/autism",
        }
        assert PenaltyPolicy().is_confident_false(checks[0])

        prompt = fake_client.calls[0][1]
        assert "No evidence links childhood vaccines to autism." in prompt
        assert "reddit.com" not in prompt

    @pytest.mark.asyncio
    async def test_cited_evidence_kept_first(self, fake_client, claim, organic_handler, make_item):
        fake_client.on(
            FACT_CHECK_SCHEMA,
            {
                "verdict": "false",
                "confidence": 0.9,
                "evidence": [{"source": "CDC", "url": "https://www.cdc.gov/vaccine-safety/autism"}],
            },
        )
        verifier = FactVerifier(inference_client=fake_client, search_executor=_executor(organic_handler))
        checks = await verifier.run(make_item(text="x"), [claim])

        assert [e.url for e in checks[0].evidence] == [
            "https://www.cdc.gov/vaccine-safety/autism",
            "https://www.who.int/vaccine-safety/autism",
        ]

    @pytest.mark.asyncio
    async def test_no_client_skips_search(self, claim, organic_handler, requests_seen, make_item):
        verifier = FactVerifier(inference_client=None, search_executor=_executor(organic_handler))
        with pytest.raises(InferenceUnavailableError):
            await verifier.run(make_item(text="x"), [claim])
        assert requests_seen == []
