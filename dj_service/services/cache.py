"""
Result Cache

Time-bounded in-memory memoization for catalog lookups and generated playlists.

An entry is valid while now - inserted_at < ttl. Expired entries are evicted
lazily on read and swept eagerly by a background timer (every 5 minutes by
default). There is no locking: concurrent writers to the same key simply
overwrite each other (last writer wins).

Key formats:
    search:{query}:{limit}:{offset}
    track:{track_id}
    trending:{genre|all}:{limit}
    stream:{track_id}
    audiora-dj:{user_id}:{session_length}
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

# Default TTL values (seconds)
SEARCH_TTL = 5 * 60
TRACK_TTL = 10 * 60
TRENDING_TTL = 15 * 60
STREAM_URL_TTL = 30 * 60
PLAYLIST_TTL = 15 * 60

DEFAULT_CLEANUP_INTERVAL = 5 * 60


@dataclass
class CacheEntry:
    """A cached value with its insertion time and time to live (seconds)."""
    value: Any
    inserted_at: float
    ttl: float


class ResultCache:
    """
    Generic TTL cache with an injectable clock.

    Usage:
        cache = ResultCache()
        cache.set("track:abc", track, ttl=600)
        hit = cache.get("track:abc")   # None on miss or expiry
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._stop_event: Optional[threading.Event] = None
        self._sweeper: Optional[threading.Thread] = None

    def _is_valid(self, entry: CacheEntry, now: float) -> bool:
        return (now - entry.inserted_at) < entry.ttl

    def get(self, key: str) -> Optional[Any]:
        """Cached value, or None on miss. An expired entry is removed."""
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("[cache] MISS %s", key)
            return None
        if self._is_valid(entry, self._clock()):
            logger.debug("[cache] HIT %s", key)
            return entry.value
        self._entries.pop(key, None)
        logger.debug("[cache] EXPIRED %s", key)
        return None

    def set(self, key: str, value: Any, ttl: float) -> None:
        self._entries[key] = CacheEntry(value=value, inserted_at=self._clock(), ttl=ttl)
        logger.debug("[cache] SET %s (ttl=%ss)", key, ttl)

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()
        logger.info("[cache] cleared")

    def cleanup(self) -> int:
        """Delete every expired entry. Returns the number removed."""
        now = self._clock()
        cleaned = 0
        # Iterate over a snapshot; request paths may write concurrently.
        for key, entry in list(self._entries.items()):
            if not self._is_valid(entry, now):
                if self._entries.get(key) is entry:
                    self._entries.pop(key, None)
                    cleaned += 1
        if cleaned:
            logger.debug("[cache] cleaned up %d expired entries", cleaned)
        return cleaned

    def stats(self) -> Dict[str, Any]:
        return {
            "size": len(self._entries),
            "keys": list(self._entries.keys()),
        }

    def __len__(self) -> int:
        return len(self._entries)

    def start_cleanup_interval(self, interval_seconds: float = DEFAULT_CLEANUP_INTERVAL) -> None:
        """Start the background sweep on a daemon thread. No-op if already running."""
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        stop_event = threading.Event()

        def _run() -> None:
            while not stop_event.wait(interval_seconds):
                try:
                    self.cleanup()
                except Exception:
                    logger.exception("[cache] cleanup sweep failed")

        self._stop_event = stop_event
        self._sweeper = threading.Thread(target=_run, name="result-cache-sweeper", daemon=True)
        self._sweeper.start()
        logger.info("[cache] cleanup interval started (every %ss)", interval_seconds)

    def stop_cleanup_interval(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout=1.0)
        self._stop_event = None
        self._sweeper = None


class MusicCache(ResultCache):
    """ResultCache with typed helpers and per-kind TTLs for catalog lookups and playlists."""

    @staticmethod
    def search_key(query: str, limit: int, offset: int = 0) -> str:
        return f"search:{query.lower().strip()}:{limit}:{offset}"

    @staticmethod
    def track_key(track_id: str) -> str:
        return f"track:{track_id}"

    @staticmethod
    def trending_key(genre: Optional[str] = None, limit: Optional[int] = None) -> str:
        return f"trending:{genre or 'all'}:{limit or 20}"

    @staticmethod
    def stream_url_key(track_id: str) -> str:
        return f"stream:{track_id}"

    @staticmethod
    def playlist_key(user_id: str, session_length: int) -> str:
        return f"audiora-dj:{user_id}:{session_length}"

    def get_search(self, query: str, limit: int, offset: int = 0) -> Optional[Any]:
        return self.get(self.search_key(query, limit, offset))

    def set_search(self, query: str, limit: int, offset: int, data: Any) -> None:
        self.set(self.search_key(query, limit, offset), data, SEARCH_TTL)

    def get_track(self, track_id: str) -> Optional[Any]:
        return self.get(self.track_key(track_id))

    def set_track(self, track_id: str, data: Any) -> None:
        self.set(self.track_key(track_id), data, TRACK_TTL)

    def get_trending(self, genre: Optional[str] = None, limit: Optional[int] = None) -> Optional[Any]:
        return self.get(self.trending_key(genre, limit))

    def set_trending(self, genre: Optional[str], limit: Optional[int], data: Any) -> None:
        self.set(self.trending_key(genre, limit), data, TRENDING_TTL)

    def get_stream_url(self, track_id: str) -> Optional[str]:
        return self.get(self.stream_url_key(track_id))

    def set_stream_url(self, track_id: str, stream_url: str) -> None:
        self.set(self.stream_url_key(track_id), stream_url, STREAM_URL_TTL)

    def get_playlist(self, user_id: str, session_length: int) -> Optional[Any]:
        return self.get(self.playlist_key(user_id, session_length))

    def set_playlist(self, user_id: str, session_length: int, playlist: Any, ttl: float = PLAYLIST_TTL) -> None:
        self.set(self.playlist_key(user_id, session_length), playlist, ttl)
