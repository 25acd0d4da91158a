"""
Tests for the Search Module.
============================

Tests for:
- Strategy query construction and fallback order
- Multi-site fan-out with per-site failures
- Custom Search provider request/response mapping
"""

import httpx
import pytest

from tests.conftest import FakeSearchProvider
from cora_analyzer.shared.schemas import CourseIdentity, SearchResult


def _hit(n: int, site: str = "reddit.com/r/uva") -> SearchResult:
    return SearchResult(title=f"Thread {n}", url=f"https://{site}/t/{n}", display_site=site)


# ─────────────────────────────────────────────────────────────────────────────
# Strategy Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestStrategies:
    """Tests for query builders."""

    def test_queries_with_professor(self, identity):
        from cora_analyzer.search.resolver import DEFAULT_STRATEGIES

        queries = [s.build(identity) for s in DEFAULT_STRATEGIES]

        assert queries == [
            '+"John Smith" CS 1110 Introduction to Programming',
            '+"CS 1110" John Smith Introduction to Programming',
            "CS 1110 John Smith",
        ]

    def test_queries_without_professor(self, identity_without_professor):
        from cora_analyzer.search.resolver import DEFAULT_STRATEGIES

        queries = [s.build(identity_without_professor) for s in DEFAULT_STRATEGIES]

        assert queries[0] is None
        assert queries[1] == '+"CS 2130" Computer Systems and Organization'
        assert queries[2] == "CS 2130 Computer Systems and Organization"

    def test_na_professor_treated_as_missing(self):
        from cora_analyzer.search.resolver import DEFAULT_STRATEGIES

        identity = CourseIdentity(course_number="CS 2130", course_name="CSO", professor_name="N/A")
        queries = [s.build(identity) for s in DEFAULT_STRATEGIES]

        assert queries[0] is None
        assert queries[2] == "CS 2130 CSO"

    def test_course_required_skipped_without_number(self):
        from cora_analyzer.search.resolver import DEFAULT_STRATEGIES

        identity = CourseIdentity(course_name="Computer Systems", professor_name="Jane Doe")
        queries = [s.build(identity) for s in DEFAULT_STRATEGIES]

        assert queries[0] == '+"Jane Doe" Computer Systems'
        assert queries[1] is None
        assert queries[2] == "Jane Doe"


# ─────────────────────────────────────────────────────────────────────────────
# Resolver Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestResolver:
    """Tests for progressive search."""

    @pytest.mark.asyncio
    async def test_stops_at_first_productive_strategy(self, identity):
        from cora_analyzer.search.resolver import SearchResolver

        provider = FakeSearchProvider(
            responses={'+"CS 1110" John Smith Introduction to Programming': [_hit(1), _hit(2)]}
        )
        resolver = SearchResolver(provider)

        results = await resolver.search(identity, "reddit.com/r/uva")

        assert [r.url for r in results] == ["https://reddit.com/r/uva/t/1", "https://reddit.com/r/uva/t/2"]
        assert len(provider.calls) == 2
        assert all(site == "reddit.com/r/uva" for _, site in provider.calls)

    @pytest.mark.asyncio
    async def test_first_strategy_wins(self, identity):
        from cora_analyzer.search.resolver import SearchResolver

        provider = FakeSearchProvider(
            responses={'+"John Smith" CS 1110 Introduction to Programming': [_hit(1)]}
        )

        results = await SearchResolver(provider).search(identity, "reddit.com/r/uva")

        assert len(results) == 1
        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_all_strategies_empty(self, identity):
        from cora_analyzer.search.resolver import SearchResolver

        provider = FakeSearchProvider()

        results = await SearchResolver(provider).search(identity, "reddit.com/r/uva")

        assert results == []
        assert len(provider.calls) == 3

    @pytest.mark.asyncio
    async def test_provider_error_propagates(self, identity):
        from cora_analyzer.search.resolver import SearchResolver
        from cora_analyzer.shared.errors import SearchProviderError

        provider = FakeSearchProvider(error=SearchProviderError("quota exceeded"))

        with pytest.raises(SearchProviderError):
            await SearchResolver(provider).search(identity, "reddit.com/r/uva")

    @pytest.mark.asyncio
    async def test_multiple_sources_reports_failures(self, identity):
        from cora_analyzer.search.resolver import SearchResolver
        from cora_analyzer.shared.errors import SearchProviderError

        class PartlyBroken(FakeSearchProvider):
            async def search(self, query, site):
                if site == "thecourseforum.com":
                    raise SearchProviderError("quota exceeded")
                return [_hit(1, site)]

        outcomes = await SearchResolver(PartlyBroken()).search_multiple_sources(
            identity, ["thecourseforum.com", "reddit.com/r/uva"]
        )

        assert list(outcomes) == ["thecourseforum.com", "reddit.com/r/uva"]
        assert not outcomes["thecourseforum.com"].success
        assert "quota exceeded" in outcomes["thecourseforum.com"].error
        assert outcomes["reddit.com/r/uva"].success
        assert len(outcomes["reddit.com/r/uva"].results) == 1


# ─────────────────────────────────────────────────────────────────────────────
# Provider Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestGoogleCustomSearchProvider:
    """Tests for the live provider against a mock transport."""

    @pytest.mark.asyncio
    async def test_request_and_mapping(self, make_http):
        from cora_analyzer.search.providers import GoogleCustomSearchProvider
        from cora_analyzer.shared.config import SearchConfig

        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "items": [
                        {
                            "title": "CS 1110 review",
                            "link": "https://thecourseforum.com/course/CS/1110",
                            "snippet": "Great intro",
                            "displayLink": "thecourseforum.com",
                        },
                        {"title": "no link"},
                    ]
                },
            )

        provider = GoogleCustomSearchProvider(
            api_key="key-123", engine_id="cx-456", http=make_http(handler), config=SearchConfig()
        )

        results = await provider.search('+"CS 1110"', "thecourseforum.com")

        params = seen[0].url.params
        assert params["key"] == "key-123"
        assert params["cx"] == "cx-456"
        assert params["q"] == '+"CS 1110"'
        assert params["siteSearch"] == "thecourseforum.com"
        assert params["num"] == "5"
        assert len(results) == 1
        assert results[0].url == "https://thecourseforum.com/course/CS/1110"
        assert results[0].display_site == "thecourseforum.com"

    @pytest.mark.asyncio
    async def test_no_items(self, make_http):
        from cora_analyzer.search.providers import GoogleCustomSearchProvider
        from cora_analyzer.shared.config import SearchConfig

        provider = GoogleCustomSearchProvider(
            api_key="k",
            engine_id="cx",
            http=make_http(lambda request: httpx.Response(200, json={"searchInformation": {}})),
            config=SearchConfig(),
        )

        assert await provider.search("CS 1110", "reddit.com/r/uva") == []

    @pytest.mark.asyncio
    async def test_rejection_raises_with_provider_message(self, make_http):
        from cora_analyzer.search.providers import GoogleCustomSearchProvider
        from cora_analyzer.shared.config import SearchConfig
        from cora_analyzer.shared.errors import SearchProviderError

        provider = GoogleCustomSearchProvider(
            api_key="bad",
            engine_id="cx",
            http=make_http(
                lambda request: httpx.Response(400, json={"error": {"message": "API key not valid"}})
            ),
            config=SearchConfig(),
        )

        with pytest.raises(SearchProviderError, match="API key not valid"):
            await provider.search("CS 1110", "reddit.com/r/uva")

    def test_requires_credentials(self):
        from cora_analyzer.search.providers import GoogleCustomSearchProvider

        with pytest.raises(ValueError):
            GoogleCustomSearchProvider(api_key="", engine_id="cx")

    @pytest.mark.asyncio
    async def test_stub_provider_deterministic(self):
        from cora_analyzer.search.providers import StubSearchProvider

        provider = StubSearchProvider()
        first = await provider.search("CS 1110", "reddit.com/r/uva")
        second = await provider.search("CS 1110", "reddit.com/r/uva")

        assert len(first) == 2
        assert first == second
