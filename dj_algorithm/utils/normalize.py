"""
Genre and mood normalization — maps free-text catalog/user values to a fixed vocabulary.

Applied at ingestion (history logging, catalog track normalization) so that
profile aggregation and scoring compare like with like.
"""

from typing import Dict, Optional

GENRE_MAP: Dict[str, str] = {
    "hip hop": "Hip-Hop",
    "hip-hop": "Hip-Hop",
    "hiphop": "Hip-Hop",
    "r&b": "R&B",
    "rnb": "R&B",
    "electronic": "Electronic",
    "edm": "Electronic",
    "electronic dance music": "Electronic",
    "lo-fi": "Lo-Fi",
    "lofi": "Lo-Fi",
    "lo fi": "Lo-Fi",
    "indie": "Indie",
    "indie rock": "Indie",
    "rock": "Rock",
    "pop": "Pop",
    "jazz": "Jazz",
    "classical": "Classical",
    "country": "Country",
    "folk": "Folk",
    "reggae": "Reggae",
    "blues": "Blues",
    "metal": "Metal",
    "punk": "Punk",
    "alternative": "Alternative",
}

MOOD_MAP: Dict[str, str] = {
    "chill": "Chill",
    "chill vibes": "Chill",
    "chillout": "Chill",
    "relaxed": "Chill",
    "sad": "Sad",
    "melancholic": "Sad",
    "melancholy": "Sad",
    "happy": "Happy",
    "upbeat": "Happy",
    "energetic": "Energetic",
    "energizing": "Energetic",
    "calm": "Calm",
    "peaceful": "Calm",
    "romantic": "Romantic",
    "love": "Romantic",
    "aggressive": "Aggressive",
    "intense": "Aggressive",
    "dreamy": "Dreamy",
    "atmospheric": "Dreamy",
}


def capitalize_first(value: str) -> str:
    """Upper-case the first character and lower-case the rest ("deep HOUSE" -> "Deep house")."""
    return value[:1].upper() + value[1:].lower()


def _normalize(value: Optional[str], table: Dict[str, str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    if not stripped:
        return None
    return table.get(stripped.lower()) or capitalize_first(stripped)


def normalize_genre(genre: Optional[str]) -> Optional[str]:
    """Canonical genre name, or capitalize-first fallback; None for empty input."""
    return _normalize(genre, GENRE_MAP)


def normalize_mood(mood: Optional[str]) -> Optional[str]:
    """Canonical mood name, or capitalize-first fallback; None for empty input."""
    return _normalize(mood, MOOD_MAP)
