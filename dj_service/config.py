"""
Service Configuration

Loads configuration from environment variables and provides defaults.
Supports loading from .env file using python-dotenv.
Algorithm tunables (weights, pool shares, TTLs) live in dj_algorithm.DJConfig
and can be overridden with a JSON file at DJ_CONFIG_PATH.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from dj_algorithm import DJConfig, DEFAULT_CONFIG

root_env = Path(__file__).resolve().parent.parent / ".env"
if root_env.exists():
    load_dotenv(root_env)

DEFAULT_AUDIUS_PROVIDERS = [
    "https://discoveryprovider.audius.co",
    "https://discoveryprovider2.audius.co",
    "https://discoveryprovider3.audius.co",
]

DEFAULT_ADVISOR_MODELS = [
    "gemini/gemini-2.5-pro",
    "gemini/gemini-2.5-flash",
    "gemini/gemini-2.0-flash-exp",
    "gemini/gemini-1.5-flash",
    "gemini/gemini-1.5-pro",
]


@dataclass
class ServiceConfig:
    """Service configuration."""

    # API Keys
    gemini_api_key: Optional[str] = None

    # Session advisor
    advisor_models: List[str] = field(default_factory=lambda: list(DEFAULT_ADVISOR_MODELS))
    advisor_timeout: float = 30.0
    advisor_retries: int = 3

    # Audius catalog
    audius_providers: List[str] = field(default_factory=lambda: list(DEFAULT_AUDIUS_PROVIDERS))
    audius_app_name: str = "Audiora"
    audius_timeout: float = 10.0
    audius_retries: int = 3

    # Data source: "audius" (live catalog) | "json" (catalog from CATALOG_JSON_PATH)
    data_source: str = "audius"
    history_json_path: Optional[Path] = None
    catalog_json_path: Optional[Path] = None
    dj_config_path: Optional[Path] = None

    # Cache sweep interval (seconds)
    cache_cleanup_interval: float = 5 * 60

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "ServiceConfig":
        """Load configuration from environment variables."""
        base_dir = Path(__file__).parent.parent
        data_source = os.getenv("DATA_SOURCE", "").strip().lower() or "audius"
        if data_source not in ("audius", "json"):
            data_source = "audius"

        def _path_env(key: str, default: Optional[Path] = None) -> Optional[Path]:
            v = os.getenv(key)
            if not v:
                return default
            p = Path(v)
            return p if p.is_absolute() else (base_dir / p).resolve()

        def _list_env(key: str, default: List[str]) -> List[str]:
            v = os.getenv(key)
            if not v:
                return list(default)
            return [item.strip() for item in v.split(",") if item.strip()]

        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            advisor_models=_list_env("ADVISOR_MODELS", DEFAULT_ADVISOR_MODELS),
            advisor_timeout=float(os.getenv("ADVISOR_TIMEOUT", "30")),
            advisor_retries=int(os.getenv("ADVISOR_RETRIES", "3")),
            audius_providers=_list_env("AUDIUS_PROVIDERS", DEFAULT_AUDIUS_PROVIDERS),
            audius_app_name=os.getenv("AUDIUS_APP_NAME", "Audiora"),
            audius_timeout=float(os.getenv("AUDIUS_TIMEOUT", "10")),
            audius_retries=int(os.getenv("AUDIUS_RETRIES", "3")),
            data_source=data_source,
            history_json_path=_path_env("HISTORY_JSON_PATH"),
            catalog_json_path=_path_env("CATALOG_JSON_PATH"),
            dj_config_path=_path_env("DJ_CONFIG_PATH"),
            cache_cleanup_interval=float(os.getenv("CACHE_CLEANUP_INTERVAL", "300")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate the configuration.

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []

        if self.data_source == "json" and not self.catalog_json_path:
            errors.append("DATA_SOURCE=json requires CATALOG_JSON_PATH")
        elif self.data_source == "json" and not self.catalog_json_path.exists():
            errors.append(f"Catalog JSON not found: {self.catalog_json_path}")

        if not self.audius_providers:
            errors.append("At least one Audius provider is required")

        if self.dj_config_path and not self.dj_config_path.exists():
            errors.append(f"DJ config not found: {self.dj_config_path}")
        elif self.dj_config_path:
            try:
                self.load_dj_config()
            except ValueError as e:
                errors.append(f"Invalid DJ config {self.dj_config_path}: {e}")

        return len(errors) == 0, errors

    def load_dj_config(self) -> DJConfig:
        """Algorithm config from DJ_CONFIG_PATH, or defaults when unset."""
        if not self.dj_config_path:
            return DEFAULT_CONFIG
        with open(self.dj_config_path) as f:
            return DJConfig.from_dict(json.load(f))


# Global config instance
_config: Optional[ServiceConfig] = None


def get_config() -> ServiceConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServiceConfig.from_env()
    return _config


def reload_config() -> ServiceConfig:
    """Reload configuration from environment."""
    global _config
    _config = None
    return get_config()
