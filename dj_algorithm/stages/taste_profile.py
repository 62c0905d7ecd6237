"""
Taste profile: aggregate recent play events into a bounded summary.

Events arrive most recent first. Every ranking here breaks ties by first-seen
order in that slice (i.e. the more recently heard value wins), so the profile
is deterministic for a given history.

The public entry point is build_taste_profile.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from ..models.config import DJConfig, DEFAULT_CONFIG
from ..models.play_event import PlayEvent
from ..models.profile import TasteProfile
from ..utils.time_of_day import TIME_SLOTS, time_slot_for

logger = logging.getLogger(__name__)


@dataclass
class _PlayStats:
    first_seen: int
    plays: int = 0
    completed: int = 0
    skipped: int = 0


def _aggregate(values: Iterable[Optional[str]], events: List[PlayEvent]) -> Dict[str, _PlayStats]:
    """Per-value play/completion/skip counts; values that are None or empty are ignored."""
    stats: Dict[str, _PlayStats] = {}
    for index, (value, event) in enumerate(zip(values, events)):
        if not value:
            continue
        entry = stats.get(value)
        if entry is None:
            entry = stats[value] = _PlayStats(first_seen=index)
        entry.plays += 1
        if event.completed:
            entry.completed += 1
        if event.skipped:
            entry.skipped += 1
    return stats


def _rank_by_engagement(
    stats: Dict[str, _PlayStats],
    limit: int,
    completed_weight: int,
) -> List[str]:
    """Values sorted by completed * weight + plays (desc), ties by first-seen index."""
    ranked = sorted(
        stats.items(),
        key=lambda item: (-(item[1].completed * completed_weight + item[1].plays), item[1].first_seen),
    )
    return [value for value, _ in ranked[:limit]]


def _avg_completion_rate(events: List[PlayEvent]) -> float:
    if not events:
        return 0.0
    completed = sum(1 for e in events if e.completed)
    return completed / len(events)


def _skip_heavy_genres(genre_stats: Dict[str, _PlayStats], config: DJConfig) -> List[str]:
    """Genres with enough plays whose skip rate is above the threshold, in first-seen order."""
    heavy = [
        (stats.first_seen, genre)
        for genre, stats in genre_stats.items()
        if stats.plays >= config.skip_heavy_min_plays
        and stats.skipped / stats.plays > config.skip_heavy_rate
    ]
    return [genre for _, genre in sorted(heavy)]


def _listening_time_of_day(events: List[PlayEvent], config: DJConfig) -> List[str]:
    """Top time-of-day buckets by event count; ties follow Morning, Afternoon, Evening, Night."""
    counts = {slot: 0 for slot in TIME_SLOTS}
    for event in events:
        counts[time_slot_for(event.started_at, config.timezone)] += 1
    ranked = sorted(TIME_SLOTS, key=lambda slot: (-counts[slot], TIME_SLOTS.index(slot)))
    return ranked[: config.listening_time_slots]


def _mood_preference(events: List[PlayEvent], limit: int) -> List[str]:
    """Most frequent moods, ties by first-seen index."""
    counts: Dict[str, List[int]] = {}
    for index, event in enumerate(events):
        if not event.mood:
            continue
        if event.mood not in counts:
            counts[event.mood] = [0, index]
        counts[event.mood][0] += 1
    ranked = sorted(counts.items(), key=lambda item: (-item[1][0], item[1][1]))
    return [mood for mood, _ in ranked[:limit]]


def _discovery_rate(events: List[PlayEvent], config: DJConfig) -> float:
    """
    Unique tracks / meaningful plays, clamped to [0, 1].

    Accidental taps (under meaningful_play_seconds and not completed) are ignored;
    when every play was accidental the user is treated as fully exploratory.
    """
    meaningful = [
        e for e in events
        if e.duration_played >= config.meaningful_play_seconds or e.completed
    ]
    if not meaningful:
        return 1.0
    unique_tracks = {e.track_id for e in meaningful}
    return max(0.0, min(1.0, len(unique_tracks) / len(meaningful)))


def build_taste_profile(
    events: List[PlayEvent],
    config: DJConfig = DEFAULT_CONFIG,
) -> TasteProfile:
    """
    Build a TasteProfile from play events (most recent first).

    Fewer than cold_start_min_events events returns TasteProfile.empty(),
    which signals the cold-start fallback path.
    """
    events = events[: config.history_limit]
    if len(events) < config.cold_start_min_events:
        logger.debug("[profile] cold start: %d events", len(events))
        return TasteProfile.empty()

    genre_stats = _aggregate((e.genre for e in events), events)
    artist_stats = _aggregate((e.artist for e in events), events)

    return TasteProfile(
        top_genres=_rank_by_engagement(genre_stats, config.top_genres_limit, config.completed_weight),
        top_artists=_rank_by_engagement(artist_stats, config.top_artists_limit, config.completed_weight),
        avg_completion_rate=_avg_completion_rate(events),
        skip_heavy_genres=_skip_heavy_genres(genre_stats, config),
        listening_time_of_day=_listening_time_of_day(events, config),
        mood_preference=_mood_preference(events, config.mood_preference_limit),
        discovery_rate=_discovery_rate(events, config),
    )
