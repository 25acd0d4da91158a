"""
Shared Module - Common utilities, configuration, schemas, and logging.
======================================================================

This module provides foundational components used across all other modules:

- config: Configuration loading and management
- logging: Logging setup
- schemas: Pydantic data models
- errors: Exception taxonomy
- storage: Persistent key-value store
- utils: Utility functions (key normalization, file I/O, etc.)
"""

from cora_analyzer.shared.config import get_settings, Settings
from cora_analyzer.shared.logging import get_logger, setup_logging
from cora_analyzer.shared.schemas import (
    CourseIdentity,
    SearchResult,
    PageExtract,
    PageSummary,
    FinalRating,
    RatingSource,
    AnalysisRun,
    AnalysisFailure,
)
from cora_analyzer.shared.storage import KeyValueStore, MemoryStore, JsonFileStore
from cora_analyzer.shared.utils import (
    generate_cache_key,
    normalize_course_number,
    normalize_professor,
    load_json,
    save_json,
)

__all__ = [
    # Config
    "get_settings",
    "Settings",
    # Logging
    "get_logger",
    "setup_logging",
    # Schemas
    "CourseIdentity",
    "SearchResult",
    "PageExtract",
    "PageSummary",
    "FinalRating",
    "RatingSource",
    "AnalysisRun",
    "AnalysisFailure",
    # Storage
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    # Utils
    "generate_cache_key",
    "normalize_course_number",
    "normalize_professor",
    "load_json",
    "save_json",
]
