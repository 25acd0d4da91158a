"""
Extractor Module - Page fetching with embedded rating detection.
================================================================

Turns a URL into a PageExtract:
- Fetches through RetryingHttpClient (transient failures retried)
- Reduces the HTML to bounded plain text with MarkupReducer
- On known aggregator domains, reads a numeric rating straight from the
  page using an ordered table of patterns (first match per field wins)

Fetch failures produce success=False extracts; nothing is raised.
"""

import asyncio
import re
from abc import ABC, abstractmethod
from typing import Optional
from urllib.parse import urlparse

from cora_analyzer.ingestion.cleaner import MarkupReducer, ReducerConfig
from cora_analyzer.network.http_client import RetryingHttpClient
from cora_analyzer.shared.config import AggregatorConfig, ExtractionConfig, get_settings
from cora_analyzer.shared.logging import get_logger
from cora_analyzer.shared.schemas import EmbeddedRating, PageExtract, ScrapeTask

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Embedded Rating Rules
# ─────────────────────────────────────────────────────────────────────────────

# (field, pattern) pairs, tried in order against the raw HTML.
EMBEDDED_RATING_RULES: list[tuple[str, re.Pattern[str]]] = [
    ("overall", re.compile(r"Overall\s*Rating[:\s]+(\d+(?:\.\d+)?)\s*/\s*5", re.IGNORECASE)),
    ("overall", re.compile(r"Rating[:\s]+(\d+(?:\.\d+)?)\s*/\s*5", re.IGNORECASE)),
    (
        "overall",
        re.compile(r'<span[^>]*class="[^"]*rating[^"]*"[^>]*>(\d+(?:\.\d+)?)</span>', re.IGNORECASE),
    ),
    ("overall", re.compile(r"Overall[:\s]+(\d+(?:\.\d+)?)", re.IGNORECASE)),
    ("difficulty", re.compile(r"Difficulty[:\s]+(\d+(?:\.\d+)?)\s*/\s*5", re.IGNORECASE)),
    ("difficulty", re.compile(r"Difficulty\s*Rating[:\s]+(\d+(?:\.\d+)?)", re.IGNORECASE)),
    (
        "difficulty",
        re.compile(
            r'<span[^>]*class="[^"]*difficulty[^"]*"[^>]*>(\d+(?:\.\d+)?)</span>', re.IGNORECASE
        ),
    ),
]


def match_aggregator(url: str, aggregators: list[AggregatorConfig]) -> Optional[AggregatorConfig]:
    """Return the aggregator whose domain the URL's host belongs to."""
    host = (urlparse(url).hostname or "").lower()
    for aggregator in aggregators:
        domain = aggregator.domain.lower()
        if host == domain or host.endswith(f".{domain}"):
            return aggregator
    return None


def find_embedded_rating(html: str, url: str, source_label: str) -> Optional[EmbeddedRating]:
    """
    Read an overall/difficulty score from aggregator HTML.

    Returns:
        EmbeddedRating, or None when no overall score is found
    """
    found: dict[str, float] = {}
    for field_name, pattern in EMBEDDED_RATING_RULES:
        if field_name in found:
            continue
        match = pattern.search(html)
        if match:
            found[field_name] = float(match.group(1))

    if "overall" not in found:
        logger.debug(f"No embedded rating in {url}")
        return None

    logger.info(
        f"Found {source_label} rating in {url}: overall={found['overall']}, "
        f"difficulty={found.get('difficulty')}"
    )
    return EmbeddedRating(
        overall=found["overall"],
        difficulty=found.get("difficulty"),
        source_label=source_label,
        source_url=url,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Extractors
# ─────────────────────────────────────────────────────────────────────────────


class Extractor(ABC):
    """
    Abstract page extractor.

    Implementations must provide:
    - extract(): Turn one URL into a PageExtract
    """

    @abstractmethod
    async def extract(self, url: str, site: str = "", title: str = "") -> PageExtract:
        pass

    async def extract_many(self, tasks: list[ScrapeTask]) -> list[PageExtract]:
        """Extract all tasks concurrently. Results keep task order."""
        extracts = await asyncio.gather(
            *(self.extract(task.url, site=task.site, title=task.title) for task in tasks)
        )
        succeeded = sum(1 for e in extracts if e.success)
        logger.info(f"Extracted {succeeded}/{len(tasks)} pages")
        return list(extracts)


class ContentExtractor(Extractor):
    """
    Fetches pages over HTTP and extracts their text.

    Example:
        >>> extractor = ContentExtractor()
        >>> page = await extractor.extract("https://thecourseforum.com/course/CS/2130")
        >>> page.embedded_rating
    """

    def __init__(
        self,
        http: Optional[RetryingHttpClient] = None,
        reducer: Optional[MarkupReducer] = None,
        aggregators: Optional[list[AggregatorConfig]] = None,
        config: Optional[ExtractionConfig] = None,
    ):
        """
        Initialize the extractor.

        Args:
            http: Request client (created from settings if None)
            reducer: Markup reducer (configured from settings if None)
            aggregators: Domains whose pages carry embedded ratings
            config: Extraction settings (default from config)
        """
        settings = get_settings()
        extraction = config or settings.extraction

        self.http = http or RetryingHttpClient(config=settings.http)
        self.reducer = reducer or MarkupReducer(
            ReducerConfig(
                max_length=extraction.max_content_length,
                truncation_marker=extraction.truncation_marker,
            )
        )
        self.aggregators = aggregators if aggregators is not None else extraction.aggregators

    async def extract(self, url: str, site: str = "", title: str = "") -> PageExtract:
        logger.debug(f"Extracting {url}")
        result = await self.http.request(
            url,
            headers={"Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"},
        )

        if not result.success:
            logger.warning(f"Failed to fetch {url}: {result.error}")
            return PageExtract(url=url, site=site, title=title, success=False, error=result.error)

        html = result.text
        content = self.reducer.reduce(html)

        embedded_rating = None
        aggregator = match_aggregator(url, self.aggregators)
        if aggregator is not None:
            embedded_rating = find_embedded_rating(html, url, aggregator.label)

        logger.debug(f"Extracted {len(content)} chars from {url}")
        return PageExtract(
            url=url,
            site=site,
            title=title,
            raw_content=content,
            success=True,
            embedded_rating=embedded_rating,
        )


class StubContentExtractor(Extractor):
    """Returns fixed review text without fetching. Used without credentials."""

    async def extract(self, url: str, site: str = "", title: str = "") -> PageExtract:
        content = (
            f"Student reviews for {title or url}. The lectures are clear and well organized. "
            "Homework is weekly and takes a few hours. Exams are fair if you keep up. "
            "The professor is approachable in office hours."
        )
        return PageExtract(url=url, site=site, title=title, raw_content=content, success=True)
