"""
Time-of-day buckets shared by profile aggregation and time relevance scoring.

Morning [6, 12), Afternoon [12, 18), Evening [18, 22), Night [22, 6).
"""

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

MORNING = "Morning"
AFTERNOON = "Afternoon"
EVENING = "Evening"
NIGHT = "Night"

# Fixed order; also the tie-break order when ranking buckets by count.
TIME_SLOTS = (MORNING, AFTERNOON, EVENING, NIGHT)


def time_of_day(hour: int) -> str:
    """Bucket name for an hour of day (0-23)."""
    if 6 <= hour < 12:
        return MORNING
    if 12 <= hour < 18:
        return AFTERNOON
    if 18 <= hour < 22:
        return EVENING
    return NIGHT


def local_hour(moment: datetime, timezone: Optional[str] = None) -> int:
    """Hour of moment, converted to timezone when one is given and moment is aware."""
    if timezone and moment.tzinfo is not None:
        moment = moment.astimezone(ZoneInfo(timezone))
    return moment.hour


def time_slot_for(moment: datetime, timezone: Optional[str] = None) -> str:
    """Bucket name for a datetime."""
    return time_of_day(local_hour(moment, timezone))
