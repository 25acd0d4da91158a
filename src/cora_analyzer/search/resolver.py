"""
Resolver Module - Progressive query strategies per site.
========================================================

Queries are tried from most to least specific, stopping at the first one
that returns anything:

1. professor-required: +"<professor>" <course number> <course name>
2. course-required:    +"<course number>" <professor> <course name>
3. normal:             <course number> <professor or course name>
"""

import asyncio
from dataclasses import dataclass
from typing import Callable, Optional

from cora_analyzer.search.providers import SearchProvider
from cora_analyzer.shared.logging import get_logger
from cora_analyzer.shared.schemas import CourseIdentity, SearchResult, SiteSearchOutcome

logger = get_logger(__name__)

NO_PROFESSOR = "N/A"


def _join(*parts: Optional[str]) -> str:
    return " ".join(p.strip() for p in parts if p and p.strip())


def _professor(identity: CourseIdentity) -> Optional[str]:
    if not identity.has_professor or identity.professor_name.strip() == NO_PROFESSOR:
        return None
    return identity.professor_name.strip()


def _professor_required(identity: CourseIdentity) -> Optional[str]:
    professor = _professor(identity)
    if professor is None:
        return None
    return _join(f'+"{professor}"', identity.course_number, identity.course_name)


def _course_required(identity: CourseIdentity) -> Optional[str]:
    if not identity.course_number.strip():
        return None
    return _join(
        f'+"{identity.course_number.strip()}"', _professor(identity), identity.course_name
    )


def _normal(identity: CourseIdentity) -> Optional[str]:
    professor = _professor(identity)
    query = _join(identity.course_number, professor, None if professor else identity.course_name)
    return query or None


@dataclass(frozen=True)
class SearchStrategy:
    """A named query builder. build() returns None when it does not apply."""

    name: str
    build: Callable[[CourseIdentity], Optional[str]]


DEFAULT_STRATEGIES: tuple[SearchStrategy, ...] = (
    SearchStrategy("professor-required", _professor_required),
    SearchStrategy("course-required", _course_required),
    SearchStrategy("normal", _normal),
)


class SearchResolver:
    """
    Finds pages about a course on one or more sites.

    Example:
        >>> resolver = SearchResolver(StubSearchProvider())
        >>> outcomes = await resolver.search_multiple_sources(identity, ["reddit.com/r/uva"])
    """

    def __init__(
        self,
        provider: SearchProvider,
        strategies: tuple[SearchStrategy, ...] = DEFAULT_STRATEGIES,
    ):
        self.provider = provider
        self.strategies = strategies

    async def search(self, identity: CourseIdentity, site: str) -> list[SearchResult]:
        """
        Search one site, falling through strategies until one yields results.

        Args:
            identity: Course being analyzed
            site: Site restriction (e.g., "thecourseforum.com")

        Returns:
            Results of the first productive strategy, or an empty list

        Raises:
            SearchProviderError: If a provider call fails
        """
        for strategy in self.strategies:
            query = strategy.build(identity)
            if not query:
                logger.debug(f"[{site}] Skipping {strategy.name} strategy")
                continue

            logger.debug(f"[{site}] Trying {strategy.name}: {query}")
            results = await self.provider.search(query, site)
            if results:
                logger.info(f"[{site}] {strategy.name} strategy found {len(results)} results")
                return results

        logger.info(f"[{site}] No results for {identity.display_name()}")
        return []

    async def _search_site(self, identity: CourseIdentity, site: str) -> SiteSearchOutcome:
        try:
            results = await self.search(identity, site)
        except Exception as e:
            logger.warning(f"[{site}] Search failed: {e}")
            return SiteSearchOutcome(site=site, success=False, error=str(e))
        return SiteSearchOutcome(site=site, success=True, results=results)

    async def search_multiple_sources(
        self,
        identity: CourseIdentity,
        sites: list[str],
    ) -> dict[str, SiteSearchOutcome]:
        """
        Search several sites concurrently.

        A failing site is reported in its outcome; the call itself never fails.
        """
        outcomes = await asyncio.gather(*(self._search_site(identity, site) for site in sites))
        return {outcome.site: outcome for outcome in outcomes}
