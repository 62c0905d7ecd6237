"""
Track Catalog abstraction.

Supplies candidate and trending tracks to the DJ pipeline.
Implementations: Audius discovery providers (HTTP, production), in-memory /
JSON file (local runs and tests). All return normalized Track models and
treat empty or partial upstream results as empty lists, never as errors.
"""

import asyncio
import json
import logging
import math
import time
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Union

import requests

from dj_algorithm.models.track import Track
from dj_algorithm.utils.normalize import normalize_genre, normalize_mood

from ..errors import CatalogError, ProviderUnavailableError, TrackNotFoundError
from .cache import MusicCache

logger = logging.getLogger(__name__)


class TrackCatalog(Protocol):
    """Protocol for catalog access. Implement for Audius (HTTP) or a local track list."""

    async def search_by_genres(self, genres: List[str], limit: int) -> List[Track]:
        """Tracks in any of genres (ranked order), up to limit."""
        ...

    async def search_by_artists(self, artists: List[str], limit: int) -> List[Track]:
        """Tracks by any of artists (ranked order), up to limit."""
        ...

    async def get_discovery_tracks(self, genres: List[str], limit: int) -> List[Track]:
        """Tracks to widen the user's taste within a broad genre set, up to limit."""
        ...

    async def get_trending_tracks(self, genre: Optional[str] = None, limit: int = 20) -> List[Track]:
        """Currently trending tracks, optionally within one genre."""
        ...


def _per_source_limit(limit: int, sources: int) -> int:
    """Even split of limit over sources, rounded up."""
    return math.ceil(limit / sources) if sources else 0


def _dedupe_and_cap(groups: Iterable[List[Track]], limit: int) -> List[Track]:
    """Concatenate result groups in order, keep the first occurrence of each id, cap at limit."""
    seen = set()
    out: List[Track] = []
    for group in groups:
        for track in group:
            if track.id in seen:
                continue
            seen.add(track.id)
            out.append(track)
            if len(out) >= limit:
                return out
    return out


def _interleave(groups: List[List[Track]]) -> List[Track]:
    """Round-robin merge so that no single group dominates the head of the list."""
    out: List[Track] = []
    for i in range(max((len(g) for g in groups), default=0)):
        for group in groups:
            if i < len(group):
                out.append(group[i])
    return out


# ============================================================================
# Audius
# ============================================================================

def normalize_audius_track(raw: Dict[str, Any], base_url: str) -> Track:
    """
    Convert an Audius API track payload to a Track.

    Duration is reported by Audius in seconds; missing or non-positive values become 0.
    Genre and mood are normalized to the canonical vocabulary.
    """
    user = raw.get("user") or {}
    artwork_sizes = raw.get("artwork") or {}
    picture_sizes = user.get("profile_picture") or {}
    artwork = (
        artwork_sizes.get("1000x1000")
        or artwork_sizes.get("480x480")
        or artwork_sizes.get("150x150")
        or picture_sizes.get("480x480")
    )

    raw_duration = raw.get("duration")
    duration = int(raw_duration) if isinstance(raw_duration, (int, float)) and raw_duration > 0 else 0
    if not duration:
        logger.debug("[audius] track %s has no usable duration (%r)", raw.get("id"), raw_duration)

    tags = [t.strip() for t in (raw.get("tags") or "").split(",") if t.strip()]

    return Track(
        id=str(raw["id"]),
        title=raw.get("title") or "",
        artist=user.get("name") or user.get("handle") or "",
        artist_id=str(user.get("id") or ""),
        artist_handle=user.get("handle"),
        artist_bio=user.get("bio"),
        artist_location=user.get("location"),
        artist_follower_count=user.get("follower_count"),
        artwork=artwork,
        stream_url=raw.get("stream_url") or f"{base_url}/v1/tracks/{raw['id']}/stream",
        duration=duration,
        genre=normalize_genre(raw.get("genre")),
        mood=normalize_mood(raw.get("mood")),
        tags=tags,
        description=raw.get("description"),
        play_count=raw.get("play_count"),
        favorite_count=raw.get("favorite_count"),
        repost_count=raw.get("repost_count"),
        created_at=raw.get("created_at"),
        release_date=raw.get("release_date"),
        permalink=raw.get("permalink"),
    )


class AudiusClient:
    """
    Blocking HTTP client for the Audius discovery provider API.

    Each request tries the providers in order. On a timeout or connection error
    the next provider is tried immediately; on an HTTP error the same provider
    is retried with exponential backoff (1s, 2s, ...). When every provider is
    exhausted ProviderUnavailableError is raised. 404 is not retried.
    """

    def __init__(
        self,
        providers: List[str],
        app_name: str = "Audiora",
        timeout: float = 10.0,
        retries: int = 3,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if not providers:
            raise ValueError("AudiusClient requires at least one discovery provider")
        self.providers = list(providers)
        self.app_name = app_name
        self.timeout = timeout
        self.retries = max(1, retries)
        self._session = session or requests.Session()
        self._sleep = sleep

    @property
    def base_url(self) -> str:
        return self.providers[0]

    def request(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET endpoint (e.g. /v1/tracks/trending) and return the decoded JSON body."""
        query = {"app_name": self.app_name, **(params or {})}
        last_error: Optional[Exception] = None

        for provider in self.providers:
            url = f"{provider}{endpoint}"
            for attempt in range(self.retries):
                try:
                    logger.debug("[audius] GET %s (attempt %d)", url, attempt + 1)
                    response = self._session.get(
                        url,
                        params=query,
                        headers={"Accept": "application/json"},
                        timeout=self.timeout,
                    )
                    if response.status_code == 404:
                        raise TrackNotFoundError(f"Audius resource not found: {endpoint}")
                    if not response.ok:
                        raise CatalogError(
                            f"Audius API error: {response.reason} ({response.status_code})"
                        )
                    return response.json()
                except TrackNotFoundError:
                    raise
                except (requests.Timeout, requests.ConnectionError) as e:
                    last_error = e
                    logger.warning("[audius] provider %s failed (%s), trying next", provider, type(e).__name__)
                    break
                except (CatalogError, ValueError) as e:
                    last_error = e
                    logger.warning("[audius] %s attempt %d failed: %s", url, attempt + 1, e)
                    if attempt < self.retries - 1:
                        self._sleep(2 ** attempt)
                except requests.RequestException as e:
                    last_error = e
                    logger.warning("[audius] provider %s failed (%s), trying next", provider, type(e).__name__)
                    break

        raise ProviderUnavailableError(
            f"Failed to fetch from Audius API after all retries: {last_error}"
        )

    def _tracks_from(self, payload: Any) -> List[Track]:
        """Normalized, streamable tracks from a {"data": [...]} payload; anything else is empty."""
        data = payload.get("data") if isinstance(payload, dict) else None
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            logger.warning("[audius] unexpected response shape: %.200s", json.dumps(payload, default=str))
            return []
        return [
            normalize_audius_track(raw, self.base_url)
            for raw in data
            if isinstance(raw, dict) and raw.get("id") and raw.get("is_streamable") is not False
        ]

    def search_tracks(
        self,
        query: str,
        limit: int = 20,
        offset: int = 0,
        genre: Optional[str] = None,
    ) -> List[Track]:
        params: Dict[str, Any] = {"query": query, "limit": limit, "offset": offset}
        if genre:
            params["genre"] = genre
        tracks = self._tracks_from(self.request("/v1/tracks/search", params))
        logger.info("[audius] search %r returned %d streamable tracks", query, len(tracks))
        return tracks

    def trending_tracks(self, genre: Optional[str] = None, limit: int = 20) -> List[Track]:
        params: Dict[str, Any] = {"limit": limit}
        if genre:
            params["genre"] = genre
        return self._tracks_from(self.request("/v1/tracks/trending", params))

    def track(self, track_id: str) -> Optional[Track]:
        try:
            tracks = self._tracks_from(self.request(f"/v1/tracks/{track_id}"))
        except TrackNotFoundError:
            return None
        return tracks[0] if tracks else None


class AudiusCatalog:
    """
    TrackCatalog backed by AudiusClient with MusicCache in front.

    Blocking HTTP runs in worker threads (asyncio.to_thread); per-genre and
    per-artist searches are issued concurrently.
    """

    def __init__(self, client: AudiusClient, cache: Optional[MusicCache] = None):
        self._client = client
        self._cache = cache if cache is not None else MusicCache()

    async def search_tracks(
        self,
        query: str,
        limit: int = 20,
        offset: int = 0,
        genre: Optional[str] = None,
    ) -> List[Track]:
        cache_query = f"{query}|genre={genre}" if genre else query
        cached = self._cache.get_search(cache_query, limit, offset)
        if cached is not None:
            return cached
        tracks = await asyncio.to_thread(self._client.search_tracks, query, limit, offset, genre)
        self._cache.set_search(cache_query, limit, offset, tracks)
        return tracks

    async def get_trending_tracks(self, genre: Optional[str] = None, limit: int = 20) -> List[Track]:
        cached = self._cache.get_trending(genre, limit)
        if cached is not None:
            return cached
        tracks = await asyncio.to_thread(self._client.trending_tracks, genre, limit)
        self._cache.set_trending(genre, limit, tracks)
        return tracks

    async def get_track(self, track_id: str) -> Optional[Track]:
        cached = self._cache.get_track(track_id)
        if cached is not None:
            return cached
        track = await asyncio.to_thread(self._client.track, track_id)
        if track is not None:
            self._cache.set_track(track_id, track)
        return track

    async def get_stream_url(self, track_id: str) -> str:
        cached = self._cache.get_stream_url(track_id)
        if cached is not None:
            return cached
        track = await self.get_track(track_id)
        if track is None:
            raise TrackNotFoundError(f"Track not found: {track_id}")
        self._cache.set_stream_url(track_id, track.stream_url)
        return track.stream_url

    async def search_by_genres(self, genres: List[str], limit: int) -> List[Track]:
        if not genres or limit <= 0:
            return []
        per_genre = _per_source_limit(limit, len(genres))
        groups = await asyncio.gather(
            *(self.search_tracks(genre, per_genre, genre=genre) for genre in genres)
        )
        return _dedupe_and_cap(groups, limit)

    async def search_by_artists(self, artists: List[str], limit: int) -> List[Track]:
        if not artists or limit <= 0:
            return []
        per_artist = _per_source_limit(limit, len(artists))
        groups = await asyncio.gather(
            *(self.search_tracks(artist, per_artist) for artist in artists)
        )
        # Text search also matches titles; keep only tracks by the searched artist.
        matched = [
            [t for t in group if _same_artist(t, artist)]
            for artist, group in zip(artists, groups)
        ]
        return _dedupe_and_cap(matched, limit)

    async def get_discovery_tracks(self, genres: List[str], limit: int) -> List[Track]:
        if limit <= 0:
            return []
        if not genres:
            return await self.get_trending_tracks(None, limit)
        per_genre = _per_source_limit(limit, len(genres))
        groups = await asyncio.gather(
            *(self.get_trending_tracks(genre, per_genre) for genre in genres)
        )
        return _dedupe_and_cap([_interleave(list(groups))], limit)


def _same_artist(track: Track, artist: str) -> bool:
    needle = artist.strip().lower()
    return track.artist.lower() == needle or (track.artist_handle or "").lower() == needle


# ============================================================================
# Local catalogs
# ============================================================================

def _popularity(track: Track) -> int:
    return track.play_count or 0


class InMemoryCatalog:
    """
    TrackCatalog over a fixed list of tracks.
    Used for local runs (DATA_SOURCE=json) and tests.
    """

    def __init__(self, tracks: List[Union[Track, Dict[str, Any]]]):
        self._tracks = [
            t if isinstance(t, Track) else _track_from_dict(t)
            for t in tracks
        ]
        self._by_id = {t.id: t for t in self._tracks}

    @property
    def tracks(self) -> List[Track]:
        return list(self._tracks)

    def _in_genre(self, genre: str) -> List[Track]:
        needle = genre.lower()
        return [t for t in self._tracks if (t.genre or "").lower() == needle]

    def _by_popularity(self, tracks: List[Track]) -> List[Track]:
        return sorted(tracks, key=_popularity, reverse=True)

    async def search_tracks(self, query: str, limit: int = 20, offset: int = 0) -> List[Track]:
        needle = query.strip().lower()
        hits = [
            t for t in self._tracks
            if needle in t.title.lower() or needle in t.artist.lower() or needle in (t.genre or "").lower()
        ]
        return hits[offset:offset + limit]

    async def search_by_genres(self, genres: List[str], limit: int) -> List[Track]:
        if not genres or limit <= 0:
            return []
        per_genre = _per_source_limit(limit, len(genres))
        groups = [self._by_popularity(self._in_genre(g))[:per_genre] for g in genres]
        return _dedupe_and_cap(groups, limit)

    async def search_by_artists(self, artists: List[str], limit: int) -> List[Track]:
        if not artists or limit <= 0:
            return []
        per_artist = _per_source_limit(limit, len(artists))
        groups = [
            self._by_popularity([t for t in self._tracks if _same_artist(t, a)])[:per_artist]
            for a in artists
        ]
        return _dedupe_and_cap(groups, limit)

    async def get_discovery_tracks(self, genres: List[str], limit: int) -> List[Track]:
        if limit <= 0:
            return []
        if not genres:
            return await self.get_trending_tracks(None, limit)
        # Least-played first: discovery favors tracks the crowd has not converged on yet.
        groups = [sorted(self._in_genre(g), key=_popularity) for g in genres]
        return _dedupe_and_cap([_interleave(groups)], limit)

    async def get_trending_tracks(self, genre: Optional[str] = None, limit: int = 20) -> List[Track]:
        pool = self._in_genre(genre) if genre else self._tracks
        return self._by_popularity(pool)[:limit]

    async def get_track(self, track_id: str) -> Optional[Track]:
        return self._by_id.get(track_id)

    async def get_stream_url(self, track_id: str) -> str:
        track = self._by_id.get(track_id)
        if track is None:
            raise TrackNotFoundError(f"Track not found: {track_id}")
        return track.stream_url


def _track_from_dict(d: Dict[str, Any]) -> Track:
    """Accept both raw Audius payloads (with a "user" object) and normalized Track dicts."""
    if isinstance(d.get("user"), dict):
        return normalize_audius_track(d, base_url="")
    track = Track.model_validate(d)
    return track.model_copy(update={
        "genre": normalize_genre(track.genre),
        "mood": normalize_mood(track.mood),
    })


class JsonCatalog(InMemoryCatalog):
    """
    InMemoryCatalog loaded from a JSON file (a list of tracks, or {"tracks": [...]}).
    Used when DATA_SOURCE=json; path comes from CATALOG_JSON_PATH.
    """

    def __init__(self, path: Union[Path, str]):
        self._path = Path(path)
        if not self._path.exists():
            raise FileNotFoundError(f"Catalog JSON not found: {self._path}")
        with open(self._path) as f:
            data = json.load(f)
        tracks = data.get("tracks", data.get("data", [])) if isinstance(data, dict) else data
        super().__init__(tracks)
