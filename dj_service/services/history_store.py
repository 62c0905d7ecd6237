"""
Listening History Store abstraction.

Supplies play events for profile building and the recency filter, and
persists new events from history logging. Implementations: in-memory
(tests, local runs) and a JSON file (DATA_SOURCE=json). Reads are always
most recent first.
"""

import json
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from dj_algorithm.models.play_event import PlayEvent, ensure_play_events

logger = logging.getLogger(__name__)

MAX_HISTORY_READ = 1000


class HistoryStore(Protocol):
    """Protocol for play-event read/write."""

    def find_all_for_user(self, user_id: str, limit: int = MAX_HISTORY_READ) -> List[PlayEvent]:
        """Most recent events for the user, newest first, at most limit."""
        ...

    def find_by_user_id(
        self,
        user_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[PlayEvent]:
        """Events with start_date <= started_at <= end_date, newest first, paged."""
        ...

    def create(self, event: PlayEvent) -> PlayEvent:
        """Persist a new event; assigns an id when missing."""
        ...

    def update(self, event_id: str, **changes: Any) -> Optional[PlayEvent]:
        """Apply field changes to one event. None when the id is unknown."""
        ...

    def find_active(self, user_id: str, track_id: str, since: Optional[datetime] = None) -> Optional[PlayEvent]:
        """Most recent event for (user, track) that is neither completed nor skipped, started after since."""
        ...

    def count_by_user_id(self, user_id: str) -> int:
        ...

    def delete_by_user_id(self, user_id: str) -> int:
        """Delete every event for the user. Returns the number deleted."""
        ...


def _newest_first(events: List[PlayEvent]) -> List[PlayEvent]:
    return sorted(events, key=lambda e: e.started_at, reverse=True)


def _in_range(event: PlayEvent, start: Optional[datetime], end: Optional[datetime]) -> bool:
    if start is not None and event.started_at < start:
        return False
    if end is not None and event.started_at > end:
        return False
    return True


class InMemoryHistoryStore:
    """HistoryStore over a dict of user_id -> events. Used for tests and local runs."""

    def __init__(self, events: Optional[List[Union[PlayEvent, Dict[str, Any]]]] = None):
        self._events: Dict[str, List[PlayEvent]] = {}
        for event in ensure_play_events(events or []):
            self._insert(event)

    def _insert(self, event: PlayEvent) -> PlayEvent:
        if not event.id:
            event = event.model_copy(update={"id": uuid.uuid4().hex})
        self._events.setdefault(event.user_id, []).append(event)
        return event

    def _user_events(self, user_id: str) -> List[PlayEvent]:
        return _newest_first(self._events.get(user_id, []))

    def find_all_for_user(self, user_id: str, limit: int = MAX_HISTORY_READ) -> List[PlayEvent]:
        return self._user_events(user_id)[:limit]

    def find_by_user_id(
        self,
        user_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[PlayEvent]:
        matching = [e for e in self._user_events(user_id) if _in_range(e, start_date, end_date)]
        return matching[offset:offset + limit]

    def create(self, event: PlayEvent) -> PlayEvent:
        return self._insert(event)

    def update(self, event_id: str, **changes: Any) -> Optional[PlayEvent]:
        for user_events in self._events.values():
            for i, event in enumerate(user_events):
                if event.id == event_id:
                    updated = event.model_copy(update=changes)
                    user_events[i] = updated
                    return updated
        return None

    def find_active(self, user_id: str, track_id: str, since: Optional[datetime] = None) -> Optional[PlayEvent]:
        for event in self._user_events(user_id):
            if since is not None and event.started_at <= since:
                break
            if event.track_id == track_id and event.is_active:
                return event
        return None

    def count_by_user_id(self, user_id: str) -> int:
        return len(self._events.get(user_id, []))

    def delete_by_user_id(self, user_id: str) -> int:
        return len(self._events.pop(user_id, []))

    def all_events(self) -> List[PlayEvent]:
        return [e for events in self._events.values() for e in events]


class JsonHistoryStore(InMemoryHistoryStore):
    """
    InMemoryHistoryStore persisted to a JSON file (list of event dicts).
    Loaded on construction, rewritten after every write.
    """

    def __init__(self, path: Union[Path, str]):
        self._path = Path(path)
        events: List[Dict[str, Any]] = []
        if self._path.exists():
            with open(self._path) as f:
                data = json.load(f)
            events = data.get("events", []) if isinstance(data, dict) else data
            logger.info("[history] loaded %d events from %s", len(events), self._path)
        super().__init__(events)

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = [e.model_dump(mode="json") for e in self.all_events()]
        with open(self._path, "w") as f:
            json.dump(payload, f, indent=2)

    def create(self, event: PlayEvent) -> PlayEvent:
        created = super().create(event)
        self._save()
        return created

    def update(self, event_id: str, **changes: Any) -> Optional[PlayEvent]:
        updated = super().update(event_id, **changes)
        if updated is not None:
            self._save()
        return updated

    def delete_by_user_id(self, user_id: str) -> int:
        deleted = super().delete_by_user_id(user_id)
        if deleted:
            self._save()
        return deleted
