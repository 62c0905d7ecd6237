"""
Playlist assembly: rank scored candidates, take the top N, shuffle the head.

Ranking is fully deterministic: final_score descending, then pool position.
The only random step is the partial shuffle of the first shuffle_top_k
positions, driven by an injectable random.Random.
"""

import random
from typing import List, Optional

from ..models.scoring import TrackScore
from ..models.track import Track

DEFAULT_MAX_SESSION_LENGTH = 50
DEFAULT_SHUFFLE_TOP_K = 10


def clamp_session_length(
    session_length: int,
    max_session_length: int = DEFAULT_MAX_SESSION_LENGTH,
) -> int:
    """Clamp a requested length into [1, max_session_length]."""
    return min(max(1, session_length), max(1, max_session_length))


def rank_scored(scored: List[TrackScore]) -> List[TrackScore]:
    """Sort by final_score descending; equal scores keep candidate pool order."""
    return sorted(scored, key=lambda s: (-s.final_score, s.position))


def shuffle_top_tracks(
    tracks: List[Track],
    top_n: int,
    rng: Optional[random.Random] = None,
) -> List[Track]:
    """
    Fisher–Yates shuffle of the first top_n tracks; the rest keep their order.

    Returns a new list; the input is not mutated.
    """
    rng = rng or random.Random()
    top_n = min(top_n, len(tracks))
    head = tracks[:top_n]
    rng.shuffle(head)
    return head + tracks[top_n:]


def assemble_playlist(
    scored: List[TrackScore],
    session_length: int,
    max_session_length: int = DEFAULT_MAX_SESSION_LENGTH,
    rng: Optional[random.Random] = None,
    shuffle_top_k: int = DEFAULT_SHUFFLE_TOP_K,
) -> List[Track]:
    """
    Build the ordered track list for one session.

    Length is min(clamp(session_length, 1, max_session_length), len(scored)).
    """
    length = clamp_session_length(session_length, max_session_length)
    top = [s.track for s in rank_scored(scored)[:length]]
    return shuffle_top_tracks(top, min(shuffle_top_k, length), rng)
