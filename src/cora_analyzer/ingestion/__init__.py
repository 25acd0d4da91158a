"""
Ingestion Module - Page fetching and text extraction.
=====================================================

- cleaner: MarkupReducer turning HTML into bounded plain text
- extractor: ContentExtractor fetching pages and reading embedded ratings
"""

from cora_analyzer.ingestion.cleaner import MarkupReducer, ReducerConfig
from cora_analyzer.ingestion.extractor import (
    ContentExtractor,
    Extractor,
    StubContentExtractor,
    find_embedded_rating,
)

__all__ = [
    "MarkupReducer",
    "ReducerConfig",
    "Extractor",
    "ContentExtractor",
    "StubContentExtractor",
    "find_embedded_rating",
]
