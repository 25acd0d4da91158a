"""
Factory Module - Wiring the analyzer from settings.
===================================================

Chooses live or stub services once, at construction:
- Live when the search key, search engine id and Gemini key are all set
  and stubs were not requested
- Deterministic offline stubs otherwise
"""

from typing import Optional

from cora_analyzer.cache.result_cache import ResultCache
from cora_analyzer.ingestion.extractor import ContentExtractor, Extractor, StubContentExtractor
from cora_analyzer.llm.audit import AuditLog
from cora_analyzer.llm.gateway import ModelGateway
from cora_analyzer.llm.providers import GeminiModelProvider, ModelProvider, StubModelProvider
from cora_analyzer.network.http_client import RetryingHttpClient
from cora_analyzer.pipeline.orchestrator import CourseAnalyzer
from cora_analyzer.search.providers import (
    GoogleCustomSearchProvider,
    SearchProvider,
    StubSearchProvider,
)
from cora_analyzer.search.resolver import SearchResolver
from cora_analyzer.shared.config import Settings, get_settings
from cora_analyzer.shared.logging import get_logger
from cora_analyzer.shared.storage import JsonFileStore, KeyValueStore

logger = get_logger(__name__)


def should_use_stubs(settings: Settings, use_stubs: Optional[bool] = None) -> bool:
    """Whether offline stubs replace the live services."""
    requested = settings.use_stubs if use_stubs is None else use_stubs
    return requested or not settings.has_live_credentials()


def build_store(settings: Optional[Settings] = None) -> KeyValueStore:
    """Create the persistent store at the configured path."""
    settings = settings or get_settings()
    return JsonFileStore(settings.store_path)


def build_analyzer(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
    http: Optional[RetryingHttpClient] = None,
    use_stubs: Optional[bool] = None,
) -> CourseAnalyzer:
    """
    Build a CourseAnalyzer with live or stub services.

    Args:
        settings: Application settings (default: get_settings())
        store: Backing store for cache and audit log (default: JSON file)
        http: Request client shared by search and extraction
        use_stubs: Force stubs on or off (default from settings)

    Returns:
        Configured CourseAnalyzer
    """
    settings = settings or get_settings()
    store = store or build_store(settings)
    stubs = should_use_stubs(settings, use_stubs)

    search_provider: SearchProvider
    extractor: Extractor
    model_provider: ModelProvider

    if stubs:
        if not settings.has_live_credentials():
            logger.info("API credentials missing, using stub services")
        else:
            logger.info("Using stub services")
        search_provider = StubSearchProvider()
        extractor = StubContentExtractor()
        model_provider = StubModelProvider()
    else:
        logger.info("Using live search and model services")
        http = http or RetryingHttpClient(config=settings.http)
        search_provider = GoogleCustomSearchProvider(
            api_key=settings.search_api_key,
            engine_id=settings.search_engine_id,
            http=http,
            config=settings.search,
        )
        extractor = ContentExtractor(http=http, config=settings.extraction)
        model_provider = GeminiModelProvider(
            api_key=settings.gemini_api_key,
            model_name=settings.get_effective_model(),
            config=settings.generation,
        )

    gateway = ModelGateway(
        model_provider,
        AuditLog(store, config=settings.audit),
        config=settings.generation,
    )
    cache = ResultCache(store, config=settings.cache)

    return CourseAnalyzer(
        resolver=SearchResolver(search_provider),
        extractor=extractor,
        gateway=gateway,
        cache=cache,
        sites=settings.search.get_sites(),
        using_stubs=stubs,
        http=http,
    )
