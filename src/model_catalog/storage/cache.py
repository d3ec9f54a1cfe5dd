"""
Enrichment cache.

A JSON key/value file that remembers the results of expensive external
calls (model card summaries, translations, exchange rates) across runs.
Reads are served from memory; every new entry is written through to disk
under a lock so concurrent steps cannot lose each other's updates.
"""

import asyncio
import hashlib
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, TypeVar

from ..errors import PersistenceError
from ..logging import get_logger
from .store import write_json_atomic

logger = get_logger(__name__)

T = TypeVar('T')

# Longer keys are stored under their SHA-256 digest.
MAX_KEY_LENGTH = 50


def storage_key(key: str) -> str:
    """Map a cache key to the key stored on disk."""
    if len(key) > MAX_KEY_LENGTH:
        return 'hash.' + hashlib.sha256(key.encode('utf-8')).hexdigest()
    return key


class EnrichmentCache:
    """
    File-backed memoization for enrichment calls.

    Usage:
        cache = EnrichmentCache.load(Path('.cache.json'))
        text = await cache.remember('description-gpt-4o', produce)
    """

    def __init__(self, path: Path | None = None, entries: dict[str, Any] | None = None):
        """
        Initialize the cache.

        Args:
            path: Backing file; None keeps the cache in memory only
            entries: Pre-loaded entries
        """
        self.path = path
        self._entries: dict[str, Any] = entries or {}
        self._lock = asyncio.Lock()

    @classmethod
    def load(cls, path: Path) -> 'EnrichmentCache':
        """Load the cache file, starting empty if it does not exist yet."""
        if not path.exists():
            return cls(path)
        try:
            entries = json.loads(path.read_text(encoding='utf-8'))
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(
                f"Cannot read cache file: {e}",
                context={'path': str(path)},
            ) from e
        logger.debug('cache_loaded', path=str(path), entries=len(entries))
        return cls(path, entries)

    def __contains__(self, key: str) -> bool:
        return storage_key(key) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    async def remember(self, key: str, produce: Callable[[], Awaitable[T]]) -> T:
        """
        Return the cached value for key, producing and storing it if absent.

        A stored None is a valid cached result and is returned as is.
        Failures in produce propagate and nothing is stored.
        """
        stored_key = storage_key(key)
        if stored_key in self._entries:
            return self._entries[stored_key]

        value = await produce()

        async with self._lock:
            self._entries[stored_key] = value
            self._flush()
        return value

    def _flush(self) -> None:
        if self.path is None:
            return
        write_json_atomic(self.path, self._entries, indent=4)
