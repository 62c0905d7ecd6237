"""
Audiora DJ service: the generate_playlist pipeline.

Stage 0: cache lookup on audiora-dj:{user_id}:{session_length}
Stage 1: taste profile from history (cold start → trending fallback)
Stage 2: optional advisor parameters (weights, vibe, genre exclusions)
Stage 3: candidate pool from three concurrent catalog queries (empty → fallback)
Stage 4: scoring + playlist assembly (dj_algorithm)
Stage 5: cache the playlist for 15 minutes

ProviderUnavailableError from the catalog propagates; advisor failures never do.
"""

import asyncio
import logging
import random
from datetime import datetime, timezone
from typing import Callable, List, Optional
from zoneinfo import ZoneInfo

from dj_algorithm import (
    CandidatePoolOptions,
    DJConfig,
    DEFAULT_CONFIG,
    GeneratedPlaylist,
    PlaylistMetadata,
    TasteProfile,
    Track,
    clamp_session_length,
    create_playlist_tracks,
    get_candidate_pool,
    pool_limits,
)
from dj_algorithm.models.playlist import DEFAULT_VIBE_DESCRIPTION, FALLBACK_VIBE_DESCRIPTION
from dj_algorithm.utils.time_of_day import time_slot_for

from .advisor import NullAdvisor, SessionAdvisor, SessionParameters
from .cache import MusicCache
from .catalog import TrackCatalog
from .history import HistoryService

logger = logging.getLogger(__name__)

PLAYLIST_METADATA_TOP_N = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def _no_tracks() -> List[Track]:
    return []


class AudioraDJService:
    """
    Generates personalized playlists.

    Collaborators are injected: a TrackCatalog, a HistoryService over a
    HistoryStore, an optional SessionAdvisor, and a MusicCache. rng and clock
    are injectable so tests can fix the shuffle and the time bucket.
    """

    def __init__(
        self,
        catalog: TrackCatalog,
        history: HistoryService,
        advisor: Optional[SessionAdvisor] = None,
        cache: Optional[MusicCache] = None,
        config: DJConfig = DEFAULT_CONFIG,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.catalog = catalog
        self.history = history
        self.advisor = advisor or NullAdvisor()
        self.cache = cache if cache is not None else MusicCache()
        self.config = config
        self._rng = rng or random.Random()
        self._clock = clock

    async def generate_playlist(
        self,
        user_id: str,
        session_length: Optional[int] = None,
        max_session_length: Optional[int] = None,
    ) -> GeneratedPlaylist:
        config = self.config
        max_length = max_session_length if max_session_length is not None else config.max_session_length
        requested = session_length if session_length is not None else config.default_session_length
        length = clamp_session_length(requested, max_length)

        cached = self.cache.get_playlist(user_id, length)
        if cached is not None:
            logger.debug("[dj] cache hit for %s (%d tracks)", user_id, length)
            return cached

        profile = self.history.build_taste_profile(user_id)
        if profile.is_cold_start:
            logger.info("[dj] cold start for %s, returning fallback playlist", user_id)
            return await self.get_fallback_playlist(user_id, length)

        now = self._clock()
        params = await self._advise(profile, now)

        candidates = await self._build_candidate_pool(
            user_id,
            profile,
            exclude_genres=params.filters.exclude_genres if params else None,
            now=now,
        )
        if not candidates:
            logger.warning("[dj] empty candidate pool for %s, returning fallback playlist", user_id)
            return await self.get_fallback_playlist(user_id, length)

        tracks, _ = create_playlist_tracks(
            candidates,
            profile,
            length,
            weights=params.weights if params else None,
            config=config,
            max_session_length=max_length,
            now=now,
            rng=self._rng,
        )

        playlist = GeneratedPlaylist(
            user_id=user_id,
            generated_at=now,
            tracks=tracks,
            session_length=len(tracks),
            vibe_description=(params.vibe_description if params else "") or DEFAULT_VIBE_DESCRIPTION,
            metadata=PlaylistMetadata(
                avg_completion_rate=profile.avg_completion_rate,
                top_genres=profile.top_genres[:PLAYLIST_METADATA_TOP_N],
                top_artists=profile.top_artists[:PLAYLIST_METADATA_TOP_N],
            ),
        )
        self.cache.set_playlist(user_id, length, playlist, ttl=config.playlist_cache_ttl_seconds)
        logger.info("[dj] generated playlist for %s: %d tracks from %d candidates", user_id, len(tracks), len(candidates))
        return playlist

    def session_context(self, now: datetime) -> str:
        """Short time/day description handed to the advisor."""
        tz = self.config.timezone
        local = now
        if tz and now.tzinfo is not None:
            local = now.astimezone(ZoneInfo(tz))
        slot = time_slot_for(now, tz)
        return f"Time: {local:%H:%M} ({slot}), Day: {local:%A}"

    async def _advise(self, profile: TasteProfile, now: datetime) -> Optional[SessionParameters]:
        try:
            params = await self.advisor.get_session_parameters(profile, self.session_context(now))
        except Exception:
            logger.warning("[dj] advisor failed, using default weights", exc_info=True)
            return None
        if params is not None:
            logger.debug("[dj] advisor parameters: %s", params.model_dump())
        return params

    async def _build_candidate_pool(
        self,
        user_id: str,
        profile: TasteProfile,
        exclude_genres: Optional[List[str]] = None,
        now: Optional[datetime] = None,
    ) -> List[Track]:
        config = self.config
        options = CandidatePoolOptions.from_config(config, exclude_genres)
        genre_limit, artist_limit, discovery_limit = pool_limits(options, config)

        recent_ids = self.history.get_recent_track_ids(
            user_id, options.exclude_recent_days, config.recent_history_limit, now=now,
        )

        genre_tracks, artist_tracks, discovery_tracks = await asyncio.gather(
            self.catalog.search_by_genres(profile.top_genres[: config.pool_genre_count], genre_limit),
            self.catalog.search_by_artists(profile.top_artists[: config.pool_artist_count], artist_limit),
            self.catalog.get_discovery_tracks(profile.top_genres, discovery_limit)
            if discovery_limit > 0 else _no_tracks(),
        )

        candidates = get_candidate_pool(
            genre_tracks, artist_tracks, discovery_tracks, profile, recent_ids, options,
        )
        logger.debug(
            "[dj] candidate pool: %d tracks (from %d total)",
            len(candidates), len(genre_tracks) + len(artist_tracks) + len(discovery_tracks),
        )
        return candidates

    async def get_fallback_playlist(self, user_id: str, session_length: int) -> GeneratedPlaylist:
        """Trending tracks for users without usable history. Not cached."""
        tracks = await self.catalog.get_trending_tracks(None, session_length)
        tracks = tracks[:session_length]
        return GeneratedPlaylist(
            user_id=user_id,
            generated_at=self._clock(),
            tracks=tracks,
            session_length=len(tracks),
            vibe_description=FALLBACK_VIBE_DESCRIPTION,
            metadata=PlaylistMetadata(),
        )
