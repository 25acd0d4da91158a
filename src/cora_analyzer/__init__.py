"""
Cora Analyzer - Course and Professor Ratings from Student Feedback
==================================================================

Aggregates third-party feedback (course forums, Reddit threads) about a
course/professor pair, condenses it with a language model, and produces a
cached, structured rating:

- search: progressive site-restricted web search
- ingestion: page fetching and plain-text extraction
- llm: relevance filtering, page summaries, final rating synthesis
- cache: TTL result cache keyed on normalized course identity
- pipeline: the four-stage search → scrape → summarize → rate orchestration
"""

__version__ = "0.1.0"
__author__ = "Cora Team"
__license__ = "MIT"

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Main modules (imported on demand)
    "shared",
    "network",
    "cache",
    "search",
    "ingestion",
    "llm",
    "pipeline",
    "cli",
]
