"""
Search Module - Site-restricted web search.
===========================================

- providers: SearchProvider interface with live and stub implementations
- resolver: Progressive multi-strategy query resolution per site
"""

from cora_analyzer.search.providers import (
    GoogleCustomSearchProvider,
    SearchProvider,
    StubSearchProvider,
)
from cora_analyzer.search.resolver import SearchResolver, SearchStrategy

__all__ = [
    "SearchProvider",
    "GoogleCustomSearchProvider",
    "StubSearchProvider",
    "SearchResolver",
    "SearchStrategy",
]
