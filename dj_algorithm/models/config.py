"""
Algorithm configuration — profile, candidate pool, scoring, and playlist parameters.

DJConfig defaults are defined here. The service may pass a dict
(e.g. from a JSON file at DJ_CONFIG_PATH); from_dict() merges it with these defaults.
"""

from typing import Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator, model_validator


class DJConfig(BaseModel):
    """Configuration for the Audiora DJ recommendation pipeline."""

    # -------------------------------------------------------------------------
    # Taste Profile
    # -------------------------------------------------------------------------

    # Max number of recent play events aggregated into the profile (most recent first).
    history_limit: int = 1000

    # Below this many events the profile is empty and the fallback playlist is used.
    cold_start_min_events: int = 5

    # Ranking score = completed * completed_weight + plays.
    completed_weight: int = 2

    top_genres_limit: int = 5
    top_artists_limit: int = 5
    mood_preference_limit: int = 3
    listening_time_slots: int = 2

    # A genre is skip-heavy when plays >= skip_heavy_min_plays and skip rate > skip_heavy_rate.
    skip_heavy_min_plays: int = 3
    skip_heavy_rate: float = 0.5

    # A play counts toward discovery rate when duration_played >= this many seconds or completed.
    meaningful_play_seconds: int = 30

    # IANA timezone used to bucket listening hours. None reads hours as given (UTC for aware datetimes).
    timezone: Optional[str] = None

    # -------------------------------------------------------------------------
    # Candidate Pool
    # -------------------------------------------------------------------------

    max_candidates: int = 500
    # Share of max_candidates requested from genre search over the top pool_genre_count genres.
    genre_share: float = Field(0.6, ge=0.0, le=1.0)
    # Share of max_candidates requested from artist search over the top pool_artist_count artists.
    artist_share: float = Field(0.2, ge=0.0, le=1.0)
    include_discovery: bool = True
    discovery_pct: float = Field(0.2, ge=0.0, le=1.0)
    exclude_recent_days: int = 7
    pool_genre_count: int = 3
    pool_artist_count: int = 5
    recent_history_limit: int = 1000

    # -------------------------------------------------------------------------
    # Scoring Weights (need not sum to 1.0)
    # weighted_sum = genre * wGenre + artist * wArtist + mood * wMood + novelty * wNovelty
    # -------------------------------------------------------------------------

    weight_genre_match: float = Field(0.4, ge=0.0, le=1.0)
    weight_artist_match: float = Field(0.3, ge=0.0, le=1.0)
    weight_mood_match: float = Field(0.2, ge=0.0, le=1.0)
    weight_novelty: float = Field(0.1, ge=0.0, le=1.0)

    # completion_boost = completion_boost_base + avg_completion_rate * completion_boost_range
    completion_boost_base: float = 0.8
    completion_boost_range: float = 0.4

    # Multiplier when the current time bucket is (or is not) one of the user's top buckets.
    time_match_boost: float = 1.1
    time_mismatch_boost: float = 0.9

    # Novelty is further multiplied by low_discovery_penalty below this discovery rate.
    low_discovery_threshold: float = 0.5
    low_discovery_penalty: float = 0.7

    score_batch_size: int = 100

    # -------------------------------------------------------------------------
    # Playlist Assembly
    # -------------------------------------------------------------------------

    default_session_length: int = 15
    max_session_length: int = 50
    # Only the first shuffle_top_k positions are shuffled for variety.
    shuffle_top_k: int = 10
    playlist_cache_ttl_seconds: int = 15 * 60

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v!r}")
        return v

    @model_validator(mode="after")
    def pool_shares_fit(self):
        total = self.genre_share + self.artist_share + self.discovery_pct
        if total > 1.0 + 1e-9:
            raise ValueError(f"Candidate pool shares must not exceed 1.0, got {total}")
        if self.score_batch_size < 1:
            raise ValueError("score_batch_size must be at least 1")
        return self

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "DJConfig":
        """Create config from dictionary (e.g., loaded from JSON)."""
        flat = {}
        for section in ("profile", "candidate_pool", "playlist"):
            if section in config_dict:
                flat.update(config_dict[section])
        if "scoring" in config_dict:
            scoring = dict(config_dict["scoring"])
            weights = scoring.pop("weights", None) or {}
            for name in ("genre_match", "artist_match", "mood_match", "novelty"):
                if name in weights:
                    flat[f"weight_{name}"] = weights[name]
            flat.update(scoring)
        # Flat keys are accepted as well
        flat.update({k: v for k, v in config_dict.items() if not isinstance(v, dict)})
        allowed = set(cls.model_fields)
        filtered = {k: v for k, v in flat.items() if k in allowed}
        return cls.model_validate(filtered)


DEFAULT_CONFIG = DJConfig()


def resolve_config(config: Optional["DJConfig"]) -> "DJConfig":
    """Return config or DEFAULT_CONFIG when none is provided."""
    return config if config is not None else DEFAULT_CONFIG
