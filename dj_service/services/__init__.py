"""Backing logic: catalog, history, advisor, cache, and the DJ pipeline service."""

from .advisor import (
    LlmSessionAdvisor,
    NullAdvisor,
    SessionAdvisor,
    SessionFilters,
    SessionParameters,
)
from .cache import MusicCache, ResultCache
from .catalog import (
    AudiusCatalog,
    AudiusClient,
    InMemoryCatalog,
    JsonCatalog,
    TrackCatalog,
)
from .dj import AudioraDJService
from .history import HistoryService, UserStats
from .history_store import HistoryStore, InMemoryHistoryStore, JsonHistoryStore

__all__ = [
    "AudioraDJService",
    "AudiusCatalog",
    "AudiusClient",
    "HistoryService",
    "HistoryStore",
    "InMemoryCatalog",
    "InMemoryHistoryStore",
    "JsonCatalog",
    "JsonHistoryStore",
    "LlmSessionAdvisor",
    "MusicCache",
    "NullAdvisor",
    "ResultCache",
    "SessionAdvisor",
    "SessionFilters",
    "SessionParameters",
    "TrackCatalog",
    "UserStats",
]
