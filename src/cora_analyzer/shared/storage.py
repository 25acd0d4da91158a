"""
Storage Module - Persistent key-value store for cache and audit data.
=====================================================================

A minimal async get/set/remove store holding JSON-serializable values
under named keys. No transactions and no schema; the only guarantee is
that a single update() is an atomic read-modify-write.

Implementations:
- MemoryStore: process-local dict (tests, stub runs)
- JsonFileStore: one JSON document on disk, survives restarts
"""

import asyncio
import copy
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Optional

from cora_analyzer.shared.logging import get_logger
from cora_analyzer.shared.utils import load_json, save_json

logger = get_logger(__name__)


class KeyValueStore(ABC):
    """
    Abstract async key-value store.

    Implementations must provide:
    - _read_all(): Return the full key -> value mapping
    - _write_all(): Persist the full key -> value mapping
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    @abstractmethod
    async def _read_all(self) -> dict[str, Any]:
        pass

    @abstractmethod
    async def _write_all(self, data: dict[str, Any]) -> None:
        pass

    async def get(self, key: str, default: Any = None) -> Any:
        """Get the value stored under key, or default."""
        data = await self._read_all()
        if key not in data:
            return default
        return copy.deepcopy(data[key])

    async def set(self, key: str, value: Any) -> None:
        """Store value under key."""
        async with self._lock:
            data = await self._read_all()
            data[key] = copy.deepcopy(value)
            await self._write_all(data)

    async def remove(self, key: str) -> None:
        """Delete key if present."""
        async with self._lock:
            data = await self._read_all()
            if key in data:
                del data[key]
                await self._write_all(data)

    async def update(
        self,
        key: str,
        mutator: Callable[[Any], Any],
        default: Any = None,
    ) -> Any:
        """
        Atomically replace the value under key with mutator(current).

        Args:
            key: Key to update
            mutator: Receives a copy of the current value (or default) and
                returns the new value
            default: Value passed to mutator when key is absent

        Returns:
            The new value
        """
        async with self._lock:
            data = await self._read_all()
            current = copy.deepcopy(data.get(key, default))
            new_value = mutator(current)
            data[key] = copy.deepcopy(new_value)
            await self._write_all(data)
            return new_value


class MemoryStore(KeyValueStore):
    """Process-local store. Contents are lost on exit."""

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        super().__init__()
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def _read_all(self) -> dict[str, Any]:
        return dict(self._data)

    async def _write_all(self, data: dict[str, Any]) -> None:
        self._data = data


class JsonFileStore(KeyValueStore):
    """
    Store backed by a single JSON file.

    File I/O runs in a worker thread so the event loop is not blocked.

    Example:
        >>> store = JsonFileStore(Path("data/store.json"))
        >>> await store.set("greeting", {"text": "hi"})
    """

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)

    async def _read_all(self) -> dict[str, Any]:
        return await asyncio.to_thread(self._load)

    async def _write_all(self, data: dict[str, Any]) -> None:
        await asyncio.to_thread(save_json, self.path, data)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = load_json(self.path)
        except ValueError as e:
            logger.warning(f"Store file {self.path} is not valid JSON, starting empty: {e}")
            return {}
        return data if isinstance(data, dict) else {}
