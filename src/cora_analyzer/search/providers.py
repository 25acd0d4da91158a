"""
Search Providers Module - Web search backends.
==============================================

Implementations:
- GoogleCustomSearchProvider: Custom Search JSON API via RetryingHttpClient
- StubSearchProvider: deterministic results, no network
"""

from abc import ABC, abstractmethod
from typing import Optional

from cora_analyzer.network.http_client import RetryingHttpClient
from cora_analyzer.shared.config import SearchConfig, get_settings
from cora_analyzer.shared.errors import SearchProviderError
from cora_analyzer.shared.logging import get_logger
from cora_analyzer.shared.schemas import SearchResult

logger = get_logger(__name__)


class SearchProvider(ABC):
    """
    Abstract search backend.

    Implementations must provide:
    - search(): Run one query restricted to a site
    """

    @abstractmethod
    async def search(self, query: str, site: str) -> list[SearchResult]:
        """
        Run one site-restricted query.

        Raises:
            SearchProviderError: If the provider call fails
        """
        pass


class GoogleCustomSearchProvider(SearchProvider):
    """
    Google Custom Search JSON API backend.

    Example:
        >>> provider = GoogleCustomSearchProvider(api_key="...", engine_id="...")
        >>> results = await provider.search('CS 2130', "reddit.com/r/uva")
    """

    def __init__(
        self,
        api_key: str,
        engine_id: str,
        http: Optional[RetryingHttpClient] = None,
        config: Optional[SearchConfig] = None,
    ):
        """
        Initialize the provider.

        Args:
            api_key: Custom Search API key
            engine_id: Programmable search engine id (cx)
            http: Request client (created from settings if None)
            config: Search settings (default from config)
        """
        if not api_key or not engine_id:
            raise ValueError("Search API key and engine id are required")

        settings = get_settings()
        self.config = config or settings.search
        self.api_key = api_key
        self.engine_id = engine_id
        self.http = http or RetryingHttpClient(config=settings.http)

    async def search(self, query: str, site: str) -> list[SearchResult]:
        params = {
            "key": self.api_key,
            "cx": self.engine_id,
            "q": query,
            "siteSearch": site,
            "num": self.config.results_per_query,
        }

        result = await self.http.request(self.config.base_url, params=params)
        if not result.success:
            raise SearchProviderError(f"Search failed for {site}: {result.error}")

        try:
            payload = result.json()
        except ValueError as e:
            raise SearchProviderError(f"Invalid search response for {site}: {e}") from e

        items = (payload.get("items") or []) if isinstance(payload, dict) else []
        results = [
            SearchResult(
                title=item.get("title", ""),
                url=item["link"],
                snippet=item.get("snippet", ""),
                display_site=item.get("displayLink", ""),
            )
            for item in items
            if isinstance(item, dict) and item.get("link")
        ]

        logger.debug(f"Search {site!r} q={query!r}: {len(results)} results")
        return results


class StubSearchProvider(SearchProvider):
    """Returns two fixed results per site. Used without credentials."""

    async def search(self, query: str, site: str) -> list[SearchResult]:
        slug = site.replace("/", "-")
        return [
            SearchResult(
                title=f"{query} discussion",
                url=f"https://{site}/stub/{slug}-1",
                snippet=f"Student discussion matching {query}",
                display_site=site,
            ),
            SearchResult(
                title=f"{query} reviews",
                url=f"https://{site}/stub/{slug}-2",
                snippet=f"Course reviews matching {query}",
                display_site=site,
            ),
        ]
