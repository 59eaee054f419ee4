"""
In-Memory Result Cache for the League Statistics Engine.

This module provides a TTL-based key-value cache that calculation runs
populate with serialized snapshots for other readers (API pages, chat
agents, notification jobs).

Features:
- SET with expiry (``setex``) and TTL-aware reads
- Pattern (prefix) invalidation per league
- Duplicated connections sharing one store, so command traffic and
  publish/subscribe traffic can be isolated and closed independently
- Publish/subscribe channels for calculation events
- Statistics tracking for monitoring

Readers must treat a cache hit as advisory; the aggregate tables are the
ground truth.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from league_stats.constants import CACHE_KEY_PREFIX, CacheTTL

# Set up logging
logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================

class CacheError(Exception):
    """Base exception for cache errors."""
    pass


class CacheConnectionError(CacheError):
    """Raised when a closed cache connection is used."""
    pass


# =============================================================================
# Cache Entry
# =============================================================================

class CacheEntry:
    """Represents a single cache entry with metadata."""

    __slots__ = ['value', 'expires_at', 'created_at', 'hits']

    def __init__(self, value: Any, ttl: int):
        """
        Create a cache entry.

        Args:
            value: The data to cache
            ttl: Time-to-live in seconds
        """
        self.value = value
        self.created_at = time.time()
        self.expires_at = self.created_at + ttl
        self.hits = 0

    @property
    def is_expired(self) -> bool:
        """Check if the entry has expired."""
        return time.time() > self.expires_at

    @property
    def age(self) -> float:
        """Get age of entry in seconds."""
        return time.time() - self.created_at


class _CacheStore:
    """Entries, subscribers and counters shared by duplicated connections."""

    def __init__(self):
        self.entries: Dict[str, CacheEntry] = {}
        self.subscribers: Dict[str, List[Callable[[str, str], None]]] = {}
        self.lock = threading.RLock()
        self.stats = {
            'hits': 0,
            'misses': 0,
            'sets': 0,
            'deletes': 0,
            'expirations': 0,
            'published': 0,
        }


# =============================================================================
# Cache Service
# =============================================================================

class CacheService:
    """
    In-memory cache connection with TTL support.

    Thread-safe; every operation takes the shared store lock. A connection
    can be duplicated; duplicates share entries and channels but are
    closed independently.

    Usage:
        cache = CacheService()
        cache.setex('stats:league-1:h2h', 3600, payload)
        events = cache.duplicate()
        events.publish('stats:complete', message)
    """

    def __init__(
        self,
        default_ttl: int = CacheTTL.DEFAULT,
        cleanup_interval: int = 60,
        name: str = 'primary',
        _store: Optional[_CacheStore] = None
    ):
        """
        Initialize the cache connection.

        Args:
            default_ttl: Default TTL in seconds for entries without explicit TTL
            cleanup_interval: How often to run cleanup (in seconds)
            name: Connection label used in log messages
        """
        self._store = _store or _CacheStore()
        self._default_ttl = default_ttl
        self._cleanup_interval = cleanup_interval
        self._last_cleanup = time.time()
        self._closed = False
        self.name = name

        logger.info(f"Cache connection '{name}' opened with default TTL={default_ttl}s")

    # =========================================================================
    # Connection Management
    # =========================================================================

    def duplicate(self, name: str = 'duplicate') -> 'CacheService':
        """Open another connection onto the same store."""
        self._ensure_open()
        return CacheService(
            default_ttl=self._default_ttl,
            cleanup_interval=self._cleanup_interval,
            name=name,
            _store=self._store
        )

    def close(self) -> None:
        """
        Close this connection.

        Raises:
            CacheConnectionError: If the connection is already closed
        """
        if self._closed:
            raise CacheConnectionError(f"Cache connection '{self.name}' is already closed")
        self._closed = True
        logger.info(f"Cache connection '{self.name}' closed")

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise CacheConnectionError(f"Cache connection '{self.name}' is closed")

    # =========================================================================
    # Core Methods
    # =========================================================================

    def get(self, key: str) -> Optional[Any]:
        """
        Retrieve a value from the cache.

        Args:
            key: Cache key

        Returns:
            Cached value if exists and not expired, None otherwise
        """
        self._ensure_open()
        self._maybe_cleanup()

        store = self._store
        with store.lock:
            entry = store.entries.get(key)

            if entry is None:
                store.stats['misses'] += 1
                logger.debug(f"Cache MISS: {key}")
                return None

            if entry.is_expired:
                del store.entries[key]
                store.stats['misses'] += 1
                store.stats['expirations'] += 1
                logger.debug(f"Cache EXPIRED: {key}")
                return None

            entry.hits += 1
            store.stats['hits'] += 1
            logger.debug(f"Cache HIT: {key} (age={entry.age:.1f}s, hits={entry.hits})")
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """
        Store a value in the cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time-to-live in seconds (uses default if not specified)
        """
        self._ensure_open()
        if ttl is None:
            ttl = self._default_ttl

        store = self._store
        with store.lock:
            store.entries[key] = CacheEntry(value, ttl)
            store.stats['sets'] += 1
            logger.debug(f"Cache SET: {key} (ttl={ttl}s)")

    def setex(self, key: str, seconds: int, value: Any) -> None:
        """SET key value EXPIRE seconds."""
        self.set(key, value, ttl=seconds)

    def delete(self, key: str) -> bool:
        """
        Remove a specific entry from the cache.

        Returns:
            True if key existed and was removed, False otherwise
        """
        self._ensure_open()
        store = self._store
        with store.lock:
            if key in store.entries:
                del store.entries[key]
                store.stats['deletes'] += 1
                logger.debug(f"Cache DELETE: {key}")
                return True
            return False

    def exists(self, key: str) -> bool:
        """Check if a key exists and is not expired."""
        self._ensure_open()
        with self._store.lock:
            entry = self._store.entries.get(key)
            return entry is not None and not entry.is_expired

    # =========================================================================
    # Pattern-Based Operations
    # =========================================================================

    def delete_pattern(self, pattern: str) -> int:
        """
        Delete all keys matching a pattern (prefix match).

        Returns:
            Number of entries deleted
        """
        self._ensure_open()
        store = self._store
        with store.lock:
            keys_to_delete = [key for key in store.entries if key.startswith(pattern)]

            for key in keys_to_delete:
                del store.entries[key]
                store.stats['deletes'] += 1

            if keys_to_delete:
                logger.debug(f"Cache DELETE PATTERN '{pattern}': {len(keys_to_delete)} entries")

            return len(keys_to_delete)

    def get_keys(self, pattern: Optional[str] = None) -> List[str]:
        """Get all cache keys, optionally filtered by prefix."""
        self._ensure_open()
        with self._store.lock:
            if pattern:
                return [k for k in self._store.entries if k.startswith(pattern)]
            return list(self._store.entries)

    # =========================================================================
    # Statistics Cache Keys
    # =========================================================================

    @staticmethod
    def league_key(league_id: str, data_type: str, qualifier: Optional[str] = None) -> str:
        """
        Generate a cache key for league statistics.

        Args:
            league_id: League identifier
            data_type: Statistic family ('season', 'h2h', 'records', ...)
            qualifier: Optional narrowing token, e.g. a season

        Returns:
            Formatted cache key, e.g. 'stats:league-1:season:2024'
        """
        key = f"{CACHE_KEY_PREFIX}:{league_id}:{data_type}"
        if qualifier is not None:
            key = f"{key}:{qualifier}"
        return key

    def invalidate_league(self, league_id: str) -> int:
        """
        Invalidate all cached statistics for a specific league.

        Returns:
            Number of entries invalidated
        """
        count = self.delete_pattern(f"{CACHE_KEY_PREFIX}:{league_id}:")
        logger.info(f"Invalidated {count} cache entries for league {league_id}")
        return count

    # =========================================================================
    # Publish / Subscribe
    # =========================================================================

    def subscribe(self, channel: str, callback: Callable[[str, str], None]) -> None:
        """Register a callback invoked as callback(channel, message)."""
        self._ensure_open()
        with self._store.lock:
            self._store.subscribers.setdefault(channel, []).append(callback)

    def unsubscribe(self, channel: str, callback: Callable[[str, str], None]) -> None:
        self._ensure_open()
        with self._store.lock:
            callbacks = self._store.subscribers.get(channel, [])
            if callback in callbacks:
                callbacks.remove(callback)

    def publish(self, channel: str, message: str) -> int:
        """
        Deliver a message to every subscriber of a channel.

        Returns:
            Number of subscribers that received the message
        """
        self._ensure_open()
        with self._store.lock:
            callbacks = list(self._store.subscribers.get(channel, []))
            self._store.stats['published'] += 1

        delivered = 0
        for callback in callbacks:
            try:
                callback(channel, message)
                delivered += 1
            except Exception as e:
                logger.error(f"Subscriber on '{channel}' raised: {e}")
        return delivered

    # =========================================================================
    # Cleanup and Maintenance
    # =========================================================================

    def _maybe_cleanup(self) -> None:
        """Run cleanup if enough time has passed since last cleanup."""
        current_time = time.time()
        if current_time - self._last_cleanup > self._cleanup_interval:
            self._cleanup_expired()
            self._last_cleanup = current_time

    def _cleanup_expired(self) -> int:
        store = self._store
        with store.lock:
            expired_keys = [key for key, entry in store.entries.items() if entry.is_expired]

            for key in expired_keys:
                del store.entries[key]
                store.stats['expirations'] += 1

            if expired_keys:
                logger.debug(f"Cleanup removed {len(expired_keys)} expired entries")

            return len(expired_keys)

    # =========================================================================
    # Statistics and Monitoring
    # =========================================================================

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._store.lock:
            stats = self._store.stats
            total_requests = stats['hits'] + stats['misses']
            hit_rate = (stats['hits'] / total_requests * 100) if total_requests > 0 else 0

            return {
                'entries': len(self._store.entries),
                'hits': stats['hits'],
                'misses': stats['misses'],
                'hit_rate': round(hit_rate, 2),
                'sets': stats['sets'],
                'deletes': stats['deletes'],
                'expirations': stats['expirations'],
                'published': stats['published'],
            }

    def __len__(self) -> int:
        """Return the number of entries in the cache."""
        with self._store.lock:
            return len(self._store.entries)

    def __contains__(self, key: str) -> bool:
        """Check if a key is in the cache (and not expired)."""
        return self.exists(key)
