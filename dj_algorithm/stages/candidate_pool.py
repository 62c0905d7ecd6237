"""
Candidate Pool Assembly

Combines catalog results from three sources into one deduplicated, filtered pool:
genre search (top genres), artist search (top artists), and discovery.
Filters: recently played ids, skip-heavy genres, caller-excluded genres.
Returns tracks in source order (genre → artist → discovery), capped at max_candidates.

The catalog queries themselves are made by the service; this module is pure.
The public entry points are pool_limits and get_candidate_pool.
"""

import math
from typing import Iterable, List, Optional, Set, Tuple

from pydantic import BaseModel, Field

from ..models.config import DJConfig, DEFAULT_CONFIG
from ..models.profile import TasteProfile
from ..models.track import Track
from ..utils.normalize import normalize_genre


class CandidatePoolOptions(BaseModel):
    """Per-request pool options; defaults come from DJConfig via from_config()."""

    max_candidates: int = Field(500, ge=0)
    include_discovery: bool = True
    discovery_pct: float = Field(0.2, ge=0.0, le=1.0)
    exclude_recent_days: int = Field(7, ge=0)
    exclude_genres: List[str] = Field(default_factory=list)

    @classmethod
    def from_config(
        cls,
        config: DJConfig = DEFAULT_CONFIG,
        exclude_genres: Optional[List[str]] = None,
    ) -> "CandidatePoolOptions":
        return cls(
            max_candidates=config.max_candidates,
            include_discovery=config.include_discovery,
            discovery_pct=config.discovery_pct,
            exclude_recent_days=config.exclude_recent_days,
            exclude_genres=list(exclude_genres or []),
        )


def pool_limits(
    options: CandidatePoolOptions,
    config: DJConfig = DEFAULT_CONFIG,
) -> Tuple[int, int, int]:
    """
    Per-source request sizes: (genre_limit, artist_limit, discovery_limit).

    Discovery is 0 when include_discovery is off.
    """
    genre_limit = math.floor(options.max_candidates * config.genre_share)
    artist_limit = math.floor(options.max_candidates * config.artist_share)
    discovery_limit = (
        math.floor(options.max_candidates * options.discovery_pct)
        if options.include_discovery
        else 0
    )
    return genre_limit, artist_limit, discovery_limit


def _deduplicate(tracks: Iterable[Track]) -> List[Track]:
    """Keep the first occurrence of each track id."""
    seen: Set[str] = set()
    unique = []
    for track in tracks:
        if track.id in seen:
            continue
        seen.add(track.id)
        unique.append(track)
    return unique


def _excluded_genre_set(profile: TasteProfile, exclude_genres: List[str]) -> Set[str]:
    """Skip-heavy genres plus caller exclusions, normalized to the canonical vocabulary."""
    excluded = set(profile.skip_heavy_genres)
    for genre in exclude_genres:
        normalized = normalize_genre(genre)
        if normalized:
            excluded.add(normalized)
    return excluded


def _is_eligible(track: Track, excluded_genres: Set[str], recent_ids: Set[str]) -> bool:
    """True if the track was not played recently and its genre is not excluded."""
    if track.id in recent_ids:
        return False
    if track.genre and track.genre in excluded_genres:
        return False
    return True


def get_candidate_pool(
    genre_tracks: List[Track],
    artist_tracks: List[Track],
    discovery_tracks: List[Track],
    profile: TasteProfile,
    recent_track_ids: Set[str],
    options: Optional[CandidatePoolOptions] = None,
) -> List[Track]:
    """
    Assemble the candidate pool from the three catalog sources.

    Dedup is first-occurrence-wins in genre → artist → discovery order; the
    returned order is the deterministic tie-break order used by ranking.
    An empty result is valid and means the caller should use the fallback playlist.
    """
    options = options or CandidatePoolOptions()
    combined = _deduplicate([*genre_tracks, *artist_tracks, *discovery_tracks])

    excluded_genres = _excluded_genre_set(profile, options.exclude_genres)
    candidates = [
        track for track in combined
        if _is_eligible(track, excluded_genres, recent_track_ids)
    ]

    return candidates[: options.max_candidates]
