"""
History service: play-event ingestion, user stats, and taste profile access.

Genre and mood are normalized here, at ingestion, so the profile builder and
scoring compare canonical values.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Set, Union

from pydantic import BaseModel, Field

from dj_algorithm import DJConfig, DEFAULT_CONFIG, PlayEvent, TasteProfile, Track, build_taste_profile
from dj_algorithm.utils.normalize import normalize_genre, normalize_mood

from .history_store import MAX_HISTORY_READ, HistoryStore

logger = logging.getLogger(__name__)

# Only plays started within this window count as active; older open plays stay untouched.
ACTIVE_PLAY_WINDOW = timedelta(hours=2)

STATS_TOP_N = 10


class TrackPlayCount(BaseModel):
    track_id: str
    title: str = ""
    artist: str = ""
    play_count: int


class GenreCount(BaseModel):
    genre: str
    count: int


class UserStats(BaseModel):
    """Listening summary over the most recent events."""

    total_plays: int = 0
    completed_plays: int = 0
    skipped_plays: int = 0
    # Seconds
    total_listening_time: int = 0
    top_tracks: List[TrackPlayCount] = Field(default_factory=list)
    top_genres: List[GenreCount] = Field(default_factory=list)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _elapsed(event: PlayEvent, now: datetime) -> int:
    """Seconds since the play started, capped at the track length when known."""
    played = int((now - event.started_at).total_seconds())
    return min(played, event.track_duration) if event.track_duration else played


class HistoryService:
    """Records play starts, completions, and skips; summarizes history per user."""

    def __init__(
        self,
        store: HistoryStore,
        config: DJConfig = DEFAULT_CONFIG,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._store = store
        self._config = config
        self._clock = clock

    def _find_active(self, user_id: str, track_id: str, now: datetime) -> Optional[PlayEvent]:
        return self._store.find_active(user_id, track_id, since=now - ACTIVE_PLAY_WINDOW)

    def log_track_start(self, user_id: str, track: Union[Track, Dict[str, Any]]) -> PlayEvent:
        if isinstance(track, dict):
            track = Track.model_validate(track)
        now = self._clock()

        active = self._find_active(user_id, track.id, now)
        if active is not None:
            self._store.update(
                active.id,
                skipped=True,
                skipped_at=now,
                duration_played=_elapsed(active, now),
            )
            logger.debug("[history] restarted %s for %s; previous play marked skipped", track.id, user_id)

        event = self._store.create(PlayEvent(
            user_id=user_id,
            track_id=track.id,
            title=track.title,
            artist=track.artist,
            genre=normalize_genre(track.genre),
            mood=normalize_mood(track.mood),
            track_duration=track.duration,
            started_at=now,
        ))
        logger.info("[history] %s started %s (%s)", user_id, track.id, track.title)
        return event

    def _finish(
        self,
        user_id: str,
        track_id: str,
        duration_played: Optional[int],
        now: datetime,
        full_length: bool = False,
        **flags: Any,
    ) -> Optional[PlayEvent]:
        active = self._find_active(user_id, track_id, now)
        if active is None:
            logger.warning("[history] no active play of %s for %s", track_id, user_id)
            return None
        if duration_played is None:
            if full_length and active.track_duration:
                duration_played = active.track_duration
            else:
                duration_played = _elapsed(active, now)
        return self._store.update(active.id, duration_played=max(0, duration_played), **flags)

    def log_track_complete(self, user_id: str, track_id: str, duration_played: Optional[int] = None) -> Optional[PlayEvent]:
        """Mark the active play completed. Without duration_played the full track length is assumed."""
        now = self._clock()
        return self._finish(user_id, track_id, duration_played, now, full_length=True, completed=True, completed_at=now)

    def log_track_skip(self, user_id: str, track_id: str, duration_played: Optional[int] = None) -> Optional[PlayEvent]:
        """Mark the active play skipped. Without duration_played the elapsed time is used."""
        now = self._clock()
        return self._finish(user_id, track_id, duration_played, now, skipped=True, skipped_at=now)

    def get_user_history(
        self,
        user_id: str,
        limit: int = 50,
        offset: int = 0,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[PlayEvent]:
        return self._store.find_by_user_id(
            user_id, start_date=start_date, end_date=end_date, limit=limit, offset=offset,
        )

    def get_recent_track_ids(
        self,
        user_id: str,
        days: int,
        limit: int = MAX_HISTORY_READ,
        now: Optional[datetime] = None,
    ) -> Set[str]:
        """Track ids played within the last `days` days."""
        since = (now or self._clock()) - timedelta(days=days)
        events = self._store.find_by_user_id(user_id, start_date=since, limit=limit)
        return {e.track_id for e in events}

    def get_user_stats(self, user_id: str) -> UserStats:
        events = self._store.find_all_for_user(user_id, MAX_HISTORY_READ)

        track_counts: Dict[str, TrackPlayCount] = {}
        genre_counts: Dict[str, int] = {}
        for event in events:
            entry = track_counts.get(event.track_id)
            if entry is None:
                entry = track_counts[event.track_id] = TrackPlayCount(
                    track_id=event.track_id, title=event.title, artist=event.artist, play_count=0,
                )
            entry.play_count += 1
            if event.genre:
                genre_counts[event.genre] = genre_counts.get(event.genre, 0) + 1

        # sorted() is stable, so equal counts keep most-recent-first order
        top_tracks = sorted(track_counts.values(), key=lambda t: -t.play_count)[:STATS_TOP_N]
        top_genres = sorted(genre_counts.items(), key=lambda kv: -kv[1])[:STATS_TOP_N]

        return UserStats(
            total_plays=len(events),
            completed_plays=sum(1 for e in events if e.completed),
            skipped_plays=sum(1 for e in events if e.skipped),
            total_listening_time=sum(e.duration_played for e in events),
            top_tracks=top_tracks,
            top_genres=[GenreCount(genre=g, count=c) for g, c in top_genres],
        )

    def build_taste_profile(self, user_id: str) -> TasteProfile:
        events = self._store.find_all_for_user(user_id, self._config.history_limit)
        profile = build_taste_profile(events, self._config)
        logger.debug("[history] profile for %s built from %d events", user_id, len(events))
        return profile

    def clear_history(self, user_id: str) -> int:
        deleted = self._store.delete_by_user_id(user_id)
        logger.info("[history] deleted %d events for %s", deleted, user_id)
        return deleted
