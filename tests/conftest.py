"""
Pytest configuration and shared fixtures for the Audiora DJ tests.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from dj_algorithm import PlayEvent, TasteProfile, Track

# Wednesday, 09:00 UTC (Morning bucket)
NOW = datetime(2026, 3, 4, 9, 0, tzinfo=timezone.utc)


# ============================================================================
# Factories
# ============================================================================

def make_track(
    track_id: str,
    genre: Optional[str] = None,
    artist: str = "Artist",
    mood: Optional[str] = None,
    play_count: int = 0,
    **extra,
) -> Track:
    return Track(
        id=track_id,
        title=f"Track {track_id}",
        artist=artist,
        artist_id=f"artist-{artist.lower()}",
        genre=genre,
        mood=mood,
        duration=180,
        stream_url=f"https://example.com/stream/{track_id}",
        play_count=play_count,
        **extra,
    )


def make_event(
    track_id: str,
    genre: Optional[str] = None,
    artist: str = "Artist",
    mood: Optional[str] = None,
    completed: bool = False,
    skipped: bool = False,
    duration_played: int = 60,
    started_at: Optional[datetime] = None,
    minutes_ago: int = 0,
    user_id: str = "user-1",
) -> PlayEvent:
    return PlayEvent(
        id=f"ev-{track_id}-{minutes_ago}",
        user_id=user_id,
        track_id=track_id,
        title=f"Track {track_id}",
        artist=artist,
        genre=genre,
        mood=mood,
        track_duration=180,
        started_at=started_at or NOW - timedelta(minutes=minutes_ago),
        duration_played=duration_played,
        completed=completed,
        skipped=skipped,
    )


def events_newest_first(rows: List[dict], user_id: str = "user-1") -> List[PlayEvent]:
    """Build events from dicts; list order is most recent first (one minute apart)."""
    return [
        make_event(user_id=user_id, minutes_ago=i + 1, **row)
        for i, row in enumerate(rows)
    ]


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def listener_profile() -> TasteProfile:
    """A warm profile: Lo-Fi first, listens mornings and evenings, fairly exploratory."""
    return TasteProfile(
        top_genres=["Lo-Fi", "Jazz", "Rock"],
        top_artists=["Nujabes", "Tom Misch"],
        avg_completion_rate=0.5,
        skip_heavy_genres=["Metal"],
        listening_time_of_day=["Morning", "Evening"],
        mood_preference=["Chill", "Calm"],
        discovery_rate=0.8,
    )


@pytest.fixture
def catalog_tracks() -> List[Track]:
    """Small catalog spanning the listener's genres plus some noise."""
    return [
        make_track("lofi-1", "Lo-Fi", "Nujabes", "Chill", play_count=900),
        make_track("lofi-2", "Lo-Fi", "Idealism", "Calm", play_count=500),
        make_track("lofi-3", "Lo-Fi", "Jinsang", None, play_count=50),
        make_track("jazz-1", "Jazz", "Tom Misch", "Happy", play_count=700),
        make_track("jazz-2", "Jazz", "Kamasi", "Energetic", play_count=20),
        make_track("rock-1", "Rock", "Band", None, play_count=300),
        make_track("metal-1", "Metal", "Loud", "Aggressive", play_count=1000),
        make_track("pop-1", "Pop", "Star", "Happy", play_count=5000),
    ]


@pytest.fixture
def warm_history() -> List[PlayEvent]:
    """Eight recent plays for user-1 (newest first), enough to leave cold start."""
    return events_newest_first([
        {"track_id": "h1", "genre": "Lo-Fi", "artist": "Nujabes", "mood": "Chill", "completed": True, "duration_played": 180},
        {"track_id": "h2", "genre": "Lo-Fi", "artist": "Nujabes", "mood": "Chill", "completed": True, "duration_played": 180},
        {"track_id": "h3", "genre": "Jazz", "artist": "Tom Misch", "mood": "Calm", "completed": True, "duration_played": 180},
        {"track_id": "h4", "genre": "Rock", "artist": "Band", "skipped": True, "duration_played": 10},
        {"track_id": "h5", "genre": "Lo-Fi", "artist": "Idealism", "mood": "Chill", "completed": True, "duration_played": 180},
        {"track_id": "h6", "genre": "Jazz", "artist": "Tom Misch", "completed": True, "duration_played": 180},
        {"track_id": "lofi-2", "genre": "Lo-Fi", "artist": "Idealism", "mood": "Calm", "completed": True, "duration_played": 180},
        {"track_id": "h8", "genre": "Rock", "artist": "Band", "duration_played": 45},
    ])
