"""
Cache Module - TTL result cache for finished analyses.
======================================================
"""

from cora_analyzer.cache.result_cache import ResultCache

__all__ = ["ResultCache"]
