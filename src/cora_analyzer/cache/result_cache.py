"""
Result Cache Module - Finished ratings keyed on course identity.
================================================================

Stores FinalRating results under a normalized {course}_{professor} key:
- Entries expire after a TTL and are deleted lazily on lookup
- Cleanup runs once the entry count passes cleanup_threshold: expired
  entries are purged first, then the oldest are evicted down to max_entries
- Hit/miss counters for statistics

All entries live under one key of the backing KeyValueStore. Each write is
a single atomic read-modify-write; a get followed by a set is not isolated.
"""

import json
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from cora_analyzer.shared.config import CacheConfig, get_settings
from cora_analyzer.shared.logging import get_logger
from cora_analyzer.shared.schemas import (
    CacheEntry,
    CacheStats,
    CourseIdentity,
    FinalRating,
    utc_now,
)
from cora_analyzer.shared.storage import KeyValueStore
from cora_analyzer.shared.utils import generate_cache_key

logger = get_logger(__name__)


class ResultCache:
    """
    TTL cache of FinalRating results.

    Example:
        >>> cache = ResultCache(MemoryStore())
        >>> await cache.set(identity, rating)
        >>> cached = await cache.get(identity)
    """

    def __init__(
        self,
        store: KeyValueStore,
        ttl: Optional[timedelta] = None,
        max_entries: Optional[int] = None,
        cleanup_threshold: Optional[int] = None,
        storage_key: Optional[str] = None,
        now: Callable[[], datetime] = utc_now,
        config: Optional[CacheConfig] = None,
    ):
        """
        Initialize the cache.

        Args:
            store: Backing key-value store
            ttl: Entry lifetime (default 7 days)
            max_entries: Size to evict down to once cleanup runs
            cleanup_threshold: Entry count above which cleanup runs
            storage_key: Store key holding the entry map
            now: Clock returning timezone-aware UTC datetimes
            config: Cache settings (default from config)
        """
        cache_config = config or get_settings().cache

        self.store = store
        self.ttl = ttl if ttl is not None else timedelta(days=cache_config.ttl_days)
        self.max_entries = max_entries if max_entries is not None else cache_config.max_entries
        self.cleanup_threshold = (
            cleanup_threshold if cleanup_threshold is not None else cache_config.cleanup_threshold
        )
        self.storage_key = storage_key or cache_config.storage_key
        self._now = now

        self.hits = 0
        self.misses = 0

    async def _load_entries(self) -> dict[str, dict[str, Any]]:
        entries = await self.store.get(self.storage_key, {})
        return entries if isinstance(entries, dict) else {}

    # ── Lookups ──────────────────────────────────────────────────────────────

    async def get(self, identity: CourseIdentity) -> Optional[FinalRating]:
        """
        Look up a cached rating.

        Expired entries are deleted as a side effect.

        Returns:
            The cached FinalRating, or None on a miss or expiry
        """
        key = generate_cache_key(identity)
        raw = (await self._load_entries()).get(key)

        if raw is None:
            self.misses += 1
            logger.debug(f"Cache miss: {key}")
            return None

        entry = CacheEntry.model_validate(raw)
        if entry.is_expired(self._now()):
            self.misses += 1
            logger.debug(f"Cache entry expired: {key}")
            await self._delete(key)
            return None

        self.hits += 1
        logger.debug(f"Cache hit: {key}")
        return entry.result

    async def has(self, identity: CourseIdentity) -> bool:
        """Check for a live entry without touching the hit/miss counters."""
        key = generate_cache_key(identity)
        raw = (await self._load_entries()).get(key)
        if raw is None:
            return False
        return not CacheEntry.model_validate(raw).is_expired(self._now())

    # ── Writes ───────────────────────────────────────────────────────────────

    async def set(self, identity: CourseIdentity, result: FinalRating) -> None:
        """Insert or replace the rating for an identity."""
        key = generate_cache_key(identity)
        now = self._now()
        entry = CacheEntry(
            key=key,
            created_at=now,
            expires_at=now + self.ttl,
            identity=identity,
            result=result,
        )

        def insert(entries: dict[str, Any]) -> dict[str, Any]:
            entries = entries if isinstance(entries, dict) else {}
            entries[key] = entry.model_dump(mode="json")
            if len(entries) > self.cleanup_threshold:
                entries = self._cleanup(entries, now)
            return entries

        await self.store.update(self.storage_key, insert, {})
        logger.debug(f"Cached result: {key}")

    def _cleanup(self, entries: dict[str, Any], now: datetime) -> dict[str, Any]:
        """Purge expired entries, then evict the oldest down to max_entries."""
        parsed = {key: CacheEntry.model_validate(raw) for key, raw in entries.items()}

        live = {key: e for key, e in parsed.items() if not e.is_expired(now)}
        expired = len(parsed) - len(live)

        evicted = 0
        if len(live) > self.max_entries:
            by_age = sorted(live.items(), key=lambda item: item[1].created_at)
            evicted = len(live) - self.max_entries
            live = dict(by_age[evicted:])

        logger.info(f"Cache cleanup: removed {expired} expired, evicted {evicted} oldest")
        return {key: entries[key] for key in live}

    async def _delete(self, key: str) -> None:
        def drop(entries: dict[str, Any]) -> dict[str, Any]:
            entries = entries if isinstance(entries, dict) else {}
            entries.pop(key, None)
            return entries

        await self.store.update(self.storage_key, drop, {})

    async def clear(self) -> None:
        """Remove every entry and reset counters."""
        await self.store.remove(self.storage_key)
        self.hits = 0
        self.misses = 0
        logger.info("Cache cleared")

    async def clear_expired(self) -> int:
        """
        Remove expired entries only.

        Returns:
            Number of entries removed
        """
        now = self._now()
        removed = 0

        def purge(entries: dict[str, Any]) -> dict[str, Any]:
            nonlocal removed
            entries = entries if isinstance(entries, dict) else {}
            kept = {
                key: raw
                for key, raw in entries.items()
                if not CacheEntry.model_validate(raw).is_expired(now)
            }
            removed = len(entries) - len(kept)
            return kept

        await self.store.update(self.storage_key, purge, {})
        logger.info(f"Removed {removed} expired cache entries")
        return removed

    # ── Statistics ───────────────────────────────────────────────────────────

    async def get_stats(self) -> CacheStats:
        """Summarize cache contents and hit/miss counters."""
        entries = await self._load_entries()
        now = self._now()

        parsed = [CacheEntry.model_validate(raw) for raw in entries.values()]
        expired = sum(1 for e in parsed if e.is_expired(now))
        ages = [(now - e.created_at).total_seconds() for e in parsed]

        lookups = self.hits + self.misses
        return CacheStats(
            total_entries=len(parsed),
            active_entries=len(parsed) - expired,
            expired_entries=expired,
            oldest_age_seconds=max(ages) if ages else None,
            newest_age_seconds=min(ages) if ages else None,
            approx_size_bytes=len(json.dumps(entries, default=str).encode("utf-8")),
            hits=self.hits,
            misses=self.misses,
            hit_rate=self.hits / lookups if lookups else 0.0,
        )
