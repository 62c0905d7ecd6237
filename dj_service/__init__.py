"""
Audiora DJ service layer

Usage: audiora-dj generate <user_id>   (or python -m dj_service.cli)
"""

from .config import ServiceConfig, get_config, reload_config
from .errors import (
    AdvisorError,
    CatalogError,
    DJServiceError,
    ProviderUnavailableError,
    TrackNotFoundError,
)
from .services import (
    AudioraDJService,
    AudiusCatalog,
    HistoryService,
    InMemoryCatalog,
    InMemoryHistoryStore,
    LlmSessionAdvisor,
    MusicCache,
    NullAdvisor,
    ResultCache,
)

__all__ = [
    "AdvisorError",
    "AudioraDJService",
    "AudiusCatalog",
    "CatalogError",
    "DJServiceError",
    "HistoryService",
    "InMemoryCatalog",
    "InMemoryHistoryStore",
    "LlmSessionAdvisor",
    "MusicCache",
    "NullAdvisor",
    "ProviderUnavailableError",
    "ResultCache",
    "ServiceConfig",
    "TrackNotFoundError",
    "get_config",
    "reload_config",
]
