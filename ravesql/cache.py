"""SQL resource cache.

Raw SQL text is fetched from a :class:`~ravesql.storage.ResourceStore` the first
time a logical path is requested and served from memory afterwards.

Components:
- SqlResource: Immutable path/text pair held by the cache
- CacheStats: Hit, miss and load counters
- ResourceCache: Thread-safe memoizing loader with explicit invalidation
"""

import threading
from typing import TYPE_CHECKING, Final, Optional

from mypy_extensions import mypyc_attr

from ravesql.exceptions import ResourceError, ResourceReadError
from ravesql.utils.logging import get_logger

if TYPE_CHECKING:
    from ravesql.storage.protocol import ResourceStore

__all__ = ("CacheStats", "ResourceCache", "SqlResource")

logger = get_logger("cache")

DEFAULT_ENCODING: Final = "utf-8"


@mypyc_attr(allow_interpreted_subclasses=False)
class SqlResource:
    """Immutable SQL text loaded from a logical path."""

    __slots__ = ("_path", "_text")

    def __init__(self, path: str, text: str) -> None:
        self._path = path
        self._text = text

    @property
    def path(self) -> str:
        return self._path

    @property
    def text(self) -> str:
        return self._text

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SqlResource):
            return NotImplemented
        return self._path == other._path and self._text == other._text

    def __hash__(self) -> int:
        return hash((self._path, self._text))

    def __repr__(self) -> str:
        return f"SqlResource(path={self._path!r}, length={len(self._text)})"


@mypyc_attr(allow_interpreted_subclasses=False)
class CacheStats:
    """Cache statistics tracking."""

    __slots__ = ("hits", "invalidations", "loads", "misses")

    def __init__(self) -> None:
        self.hits = 0
        self.misses = 0
        self.loads = 0
        self.invalidations = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate as percentage."""
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0

    def reset(self) -> None:
        """Reset all statistics."""
        self.hits = 0
        self.misses = 0
        self.loads = 0
        self.invalidations = 0

    def __repr__(self) -> str:
        return (
            f"CacheStats(hit_rate={self.hit_rate:.1f}%, hits={self.hits}, misses={self.misses}, "
            f"loads={self.loads}, invalidations={self.invalidations})"
        )


@mypyc_attr(allow_interpreted_subclasses=True)
class ResourceCache:
    """Load SQL text by logical path exactly once and memoize it.

    The store is consulted outside the lock, so slow reads of one path never block
    cache hits for other paths. When two threads miss the same path concurrently
    both may fetch, but the first result stored wins and every caller returns that
    single value. An :meth:`invalidate_all` racing an in-flight fetch bumps the
    cache generation; the stale fetch is returned to its own caller but is not
    written back into the cleared cache.

    Args:
        store: Source of raw SQL bytes.
        encoding: Text encoding used to decode fetched bytes.
    """

    __slots__ = ("_entries", "_generation", "_lock", "_stats", "encoding", "store")

    def __init__(self, store: "ResourceStore", *, encoding: str = DEFAULT_ENCODING) -> None:
        self.store = store
        self.encoding = encoding
        self._entries: dict[str, SqlResource] = {}
        self._generation = 0
        self._lock = threading.RLock()
        self._stats = CacheStats()

    def load(self, path: str) -> str:
        """Return the SQL text stored at ``path``, fetching it on first use.

        Args:
            path: Logical path of the SQL resource.

        Returns:
            The decoded SQL text.

        Raises:
            ResourceNotFoundError: If the store has nothing at ``path``.
            ResourceReadError: If the store fails or the bytes cannot be decoded.
        """
        return self.get_resource(path).text

    def get_resource(self, path: str) -> SqlResource:
        """Return the cached :class:`SqlResource` for ``path``, fetching it on first use."""
        with self._lock:
            cached = self._entries.get(path)
            if cached is not None:
                self._stats.hits += 1
                return cached
            self._stats.misses += 1
            generation = self._generation

        resource = SqlResource(path, self._fetch_text(path))

        with self._lock:
            self._stats.loads += 1
            if generation != self._generation:
                logger.debug("Discarding SQL resource loaded across an invalidation: %s", path)
                return resource
            stored = self._entries.setdefault(path, resource)

        if stored is resource:
            logger.debug("Loaded SQL resource %s", path, extra={"sql_path": path, "length": len(resource.text)})
        return stored

    def _fetch_text(self, path: str) -> str:
        try:
            data = self.store.fetch(path)
        except ResourceError:
            raise
        except Exception as e:
            raise ResourceReadError(path) from e
        try:
            return data.decode(self.encoding)
        except (UnicodeDecodeError, LookupError, AttributeError) as e:
            raise ResourceReadError(path, f"Error decoding SQL file as {self.encoding}: {path}") from e

    def invalidate_all(self) -> None:
        """Drop every cached entry; the next :meth:`load` re-fetches from the store."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._generation += 1
            self._stats.invalidations += 1
        logger.debug("Invalidated %d cached SQL resources", count, extra={"entries": count})

    def get(self, path: str) -> "Optional[str]":
        """Return the cached text for ``path`` without fetching, or None if it is not cached."""
        with self._lock:
            cached = self._entries.get(path)
        return cached.text if cached is not None else None

    def paths(self) -> "list[str]":
        """List cached paths in sorted order."""
        with self._lock:
            return sorted(self._entries)

    @property
    def stats(self) -> CacheStats:
        return self._stats

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __repr__(self) -> str:
        return f"ResourceCache(store={self.store!r}, entries={len(self)})"
