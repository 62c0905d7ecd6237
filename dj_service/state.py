"""Application state: catalog, history, advisor, cache, and the DJ service wired from config."""

import logging
from typing import Optional

from .config import ServiceConfig, get_config
from .services import (
    AudioraDJService,
    AudiusCatalog,
    AudiusClient,
    HistoryService,
    InMemoryHistoryStore,
    JsonCatalog,
    JsonHistoryStore,
    LlmSessionAdvisor,
    MusicCache,
    NullAdvisor,
)

logger = logging.getLogger(__name__)


class AppState:
    """Global application state."""

    def __init__(self, config: ServiceConfig, start_sweeper: bool = True):
        self.config = config
        self.dj_config = config.load_dj_config()

        self.cache = MusicCache()
        if start_sweeper:
            self.cache.start_cleanup_interval(config.cache_cleanup_interval)

        self.catalog = self._create_catalog(config)
        logger.info("[startup] Track catalog: %s", type(self.catalog).__name__)

        self.history_store = self._create_history_store(config)
        logger.info("[startup] History store: %s", type(self.history_store).__name__)
        self.history = HistoryService(self.history_store, config=self.dj_config)

        self.advisor = self._create_advisor(config)
        logger.info("[startup] Session advisor: %s", type(self.advisor).__name__)

        self.dj = AudioraDJService(
            catalog=self.catalog,
            history=self.history,
            advisor=self.advisor,
            cache=self.cache,
            config=self.dj_config,
        )

    def _create_catalog(self, config: ServiceConfig):
        """JSON catalog when DATA_SOURCE=json, else Audius discovery providers."""
        if config.data_source == "json":
            return JsonCatalog(config.catalog_json_path)
        client = AudiusClient(
            providers=config.audius_providers,
            app_name=config.audius_app_name,
            timeout=config.audius_timeout,
            retries=config.audius_retries,
        )
        return AudiusCatalog(client, cache=self.cache)

    def _create_history_store(self, config: ServiceConfig):
        """JSON-file history when HISTORY_JSON_PATH is set, else in-memory."""
        if config.history_json_path:
            return JsonHistoryStore(config.history_json_path)
        return InMemoryHistoryStore()

    def _create_advisor(self, config: ServiceConfig):
        """LLM advisor when GEMINI_API_KEY is set, else one that never advises."""
        if not config.gemini_api_key:
            logger.info("[startup] GEMINI_API_KEY not set, session advisor disabled")
            return NullAdvisor()
        return LlmSessionAdvisor(
            models=config.advisor_models,
            api_key=config.gemini_api_key,
            timeout=config.advisor_timeout,
            retries=config.advisor_retries,
        )

    def close(self) -> None:
        self.cache.stop_cleanup_interval()


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        config = get_config()
        _state = AppState(config)
    return _state


def reset_state() -> None:
    global _state
    if _state is not None:
        _state.close()
    _state = None
