"""
Orchestrator Module - The course analysis pipeline.
===================================================

Runs one analysis end to end:

    cache lookup → search (per site) → extract (per URL)
                 → filter + summarize (per page) → rate → cache write

Each fan-out stage runs its items concurrently and tolerates partial
failure. Errors are caught once, at the top of run(), and turn the run
into an ERROR result; nothing is retried at this level.
"""

import asyncio
import traceback
from typing import Optional, Union

from cora_analyzer.cache.result_cache import ResultCache
from cora_analyzer.ingestion.extractor import Extractor
from cora_analyzer.llm.gateway import ModelGateway
from cora_analyzer.llm.parser import parse_rating_response
from cora_analyzer.network.http_client import RetryingHttpClient
from cora_analyzer.pipeline.progress import TOTAL_STEPS, ProgressCallback, ProgressReporter
from cora_analyzer.search.resolver import SearchResolver
from cora_analyzer.shared.errors import NoEvidenceError
from cora_analyzer.shared.logging import get_logger
from cora_analyzer.shared.schemas import (
    AnalysisFailure,
    AnalysisRun,
    CourseIdentity,
    EmbeddedRating,
    FinalRating,
    PageExtract,
    PageSummary,
    RatingSource,
    RunStage,
    RunStatus,
    ScrapeTask,
    SiteSearchOutcome,
    SourceLink,
    utc_now,
)

logger = get_logger(__name__)

MODEL_RUBRIC_LABEL = "Cora Rubric"


def build_scrape_tasks(search: dict[str, SiteSearchOutcome]) -> list[ScrapeTask]:
    """Flatten successful search outcomes into one task per result."""
    tasks = []
    for site, outcome in search.items():
        if not outcome.success:
            continue
        for result in outcome.results:
            tasks.append(
                ScrapeTask(site=site, url=result.url, title=result.title, snippet=result.snippet)
            )
    return tasks


def first_embedded_rating(extracts: list[PageExtract]) -> Optional[EmbeddedRating]:
    """The first embedded rating in task order, if any."""
    for extract in extracts:
        if extract.success and extract.embedded_rating is not None:
            return extract.embedded_rating
    return None


class CourseAnalyzer:
    """
    Coordinates search, extraction, summarization and rating.

    Example:
        >>> analyzer = build_analyzer(get_settings())
        >>> result = await analyzer.analyze(CourseIdentity(course_number="CS 2130"))
        >>> if isinstance(result, FinalRating):
        ...     print(result.overall_rating)
    """

    def __init__(
        self,
        resolver: SearchResolver,
        extractor: Extractor,
        gateway: ModelGateway,
        cache: ResultCache,
        sites: list[str],
        using_stubs: bool = False,
        http: Optional[RetryingHttpClient] = None,
    ):
        """
        Initialize the analyzer.

        Args:
            resolver: Site search
            extractor: Page fetching and text extraction
            gateway: Model operations
            cache: Result cache
            sites: Site restrictions searched on every run
            using_stubs: Whether the services are offline stubs
            http: Shared request client, closed by aclose()
        """
        self.resolver = resolver
        self.extractor = extractor
        self.gateway = gateway
        self.cache = cache
        self.sites = list(sites)
        self.using_stubs = using_stubs
        self.http = http

    async def analyze(
        self,
        identity: CourseIdentity,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Union[FinalRating, AnalysisFailure]:
        """
        Analyze a course and return its rating or a failure description.

        Args:
            identity: Course/professor pair
            progress_callback: Receives ProgressEvents

        Returns:
            FinalRating on success, AnalysisFailure otherwise
        """
        run = await self.run(identity, progress_callback)
        if run.status == RunStatus.COMPLETED and run.final_rating is not None:
            return run.final_rating
        return AnalysisFailure(
            identity=identity,
            message=run.error or "Analysis failed",
            stack=run.error_stack or "",
        )

    async def run(
        self,
        identity: CourseIdentity,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> AnalysisRun:
        """
        Execute the pipeline and return the full run record.

        Never raises; failures are recorded on the returned run.
        """
        progress = ProgressReporter(progress_callback)
        run = AnalysisRun(identity=identity)
        logger.info(f"Analyzing {identity.display_name()} (stubs={self.using_stubs})")

        try:
            cached = await self.cache.get(identity)
            if cached is not None:
                logger.info(f"Loaded {identity.display_name()} from cache")
                run.from_cache = True
                run.final_rating = cached
                self._finish(run)
                progress.report("Loaded from cache", step=TOTAL_STEPS, completed=True)
                return run

            await self._execute(run, progress)

        except Exception as e:
            failed_step = self._stage_step(run)
            run.status = RunStatus.ERROR
            run.stage = RunStage.ERROR
            run.error = str(e) or type(e).__name__
            run.error_stack = traceback.format_exc()
            run.finished_at = utc_now()
            logger.error(f"Analysis of {identity.display_name()} failed: {run.error}")
            progress.report(f"Error: {run.error}", step=failed_step)
            return run

        return run

    async def _execute(self, run: AnalysisRun, progress: ProgressReporter) -> None:
        identity = run.identity
        results = run.stage_results

        # 1. Search
        run.stage = RunStage.SEARCHING
        progress.report("Searching web sources...", step=1)
        results.search = await self.resolver.search_multiple_sources(identity, self.sites)
        progress.report("Search completed", step=1, completed=True)

        # 2. Extract
        run.stage = RunStage.SCRAPING
        tasks = build_scrape_tasks(results.search)
        progress.report(f"Found {len(tasks)} results, scraping content...", step=2)
        results.extracts = await self.extractor.extract_many(tasks)
        progress.report("Scraping completed", step=2, completed=True)

        # 3. Filter and summarize
        run.stage = RunStage.SUMMARIZING
        pages = [e for e in results.extracts if e.success and e.raw_content]
        progress.report(f"Analyzing {len(pages)} pages...", step=3)
        results.summaries = await self._summarize_pages(pages, identity)
        progress.report("Analysis completed", step=3, completed=True)

        # 4. Rate
        run.stage = RunStage.RATING
        progress.report("Generating ratings...", step=4)
        rating = await self._rate(identity, results.summaries, results.extracts)
        await self.cache.set(identity, rating)

        run.final_rating = rating
        self._finish(run)
        progress.report("Complete!", step=4, completed=True)

    async def _summarize_page(self, page: PageExtract, identity: CourseIdentity) -> PageSummary:
        try:
            relevant = await self.gateway.filter_relevant(page.raw_content, identity)
            if not relevant.strip():
                logger.debug(f"No relevant content in {page.url}")
                return PageSummary(
                    source=page.site,
                    url=page.url,
                    title=page.title,
                    success=False,
                    error="No relevant content found",
                )
            summary = await self.gateway.summarize_page(relevant, identity, page.url)
        except Exception as e:
            logger.warning(f"Failed to summarize {page.url}: {e}")
            return PageSummary(
                source=page.site, url=page.url, title=page.title, success=False, error=str(e)
            )

        return PageSummary(
            source=page.site, url=page.url, title=page.title, summary_text=summary, success=True
        )

    async def _summarize_pages(
        self, pages: list[PageExtract], identity: CourseIdentity
    ) -> list[PageSummary]:
        summaries = await asyncio.gather(*(self._summarize_page(p, identity) for p in pages))
        succeeded = sum(1 for s in summaries if s.success)
        logger.info(f"Summarized {succeeded}/{len(pages)} pages")
        return list(summaries)

    async def _rate(
        self,
        identity: CourseIdentity,
        summaries: list[PageSummary],
        extracts: list[PageExtract],
    ) -> FinalRating:
        """
        Produce the final rating.

        An embedded aggregator rating supplies both scores when present, with a
        missing difficulty left as None; the model still writes the narrative
        sections. Otherwise the model scores the course against the rubric.

        Raises:
            NoEvidenceError: If there are no summaries and no embedded rating
        """
        usable = [s for s in summaries if s.success]
        embedded = first_embedded_rating(extracts)

        if not usable and embedded is None:
            raise NoEvidenceError()

        if embedded is not None:
            logger.info(
                f"Using {embedded.source_label} rating: overall={embedded.overall}, "
                f"difficulty={embedded.difficulty}"
            )
            text = await self.gateway.synthesize_final_rating(usable, identity, use_rubric=False)
            rating = parse_rating_response(text).model_copy(
                update={
                    "overall_rating": embedded.overall,
                    "difficulty_rating": embedded.difficulty,
                    "rating_source": RatingSource.EXTERNAL_AGGREGATOR,
                    "rating_source_label": embedded.source_label,
                    "rating_source_url": embedded.source_url,
                }
            )
        else:
            text = await self.gateway.synthesize_final_rating(usable, identity, use_rubric=True)
            rating = parse_rating_response(text).model_copy(
                update={
                    "rating_source": RatingSource.MODEL_RUBRIC,
                    "rating_source_label": MODEL_RUBRIC_LABEL,
                }
            )

        rating.sources = self._collect_sources(usable, embedded)
        return rating

    async def aclose(self) -> None:
        """Release network resources."""
        if self.http is not None:
            await self.http.aclose()

    @staticmethod
    def _collect_sources(
        summaries: list[PageSummary], embedded: Optional[EmbeddedRating]
    ) -> list[SourceLink]:
        sources = [SourceLink(title=s.title, url=s.url, source=s.source) for s in summaries]
        if embedded is not None and all(link.url != embedded.source_url for link in sources):
            sources.append(SourceLink(url=embedded.source_url, source=embedded.source_label))
        return sources

    @staticmethod
    def _finish(run: AnalysisRun) -> None:
        run.status = RunStatus.COMPLETED
        run.stage = RunStage.COMPLETED
        run.finished_at = utc_now()

    @staticmethod
    def _stage_step(run: AnalysisRun) -> int:
        steps = {
            RunStage.SEARCHING: 1,
            RunStage.SCRAPING: 2,
            RunStage.SUMMARIZING: 3,
            RunStage.RATING: 4,
        }
        return steps.get(run.stage, 0)
