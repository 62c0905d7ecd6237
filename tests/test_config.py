"""
Configuration Tests

DJConfig defaults, validation and nested loading; ServiceConfig from the
environment; AppState wiring and the command line over JSON data files.

Run:
----
    pytest tests/test_config.py -v
"""

import json

import pytest

from dj_algorithm import DEFAULT_CONFIG, DJConfig
import dj_service.config as service_config
from dj_service.cli import main
from dj_service.config import DEFAULT_AUDIUS_PROVIDERS, ServiceConfig, reload_config
from dj_service.services import AudiusCatalog, InMemoryHistoryStore, JsonCatalog, JsonHistoryStore, NullAdvisor
from dj_service.state import AppState

from conftest import events_newest_first, make_track

ENV_KEYS = (
    "GEMINI_API_KEY", "ADVISOR_MODELS", "ADVISOR_TIMEOUT", "ADVISOR_RETRIES",
    "AUDIUS_PROVIDERS", "AUDIUS_APP_NAME", "AUDIUS_TIMEOUT", "AUDIUS_RETRIES",
    "DATA_SOURCE", "HISTORY_JSON_PATH", "CATALOG_JSON_PATH", "DJ_CONFIG_PATH",
    "CACHE_CLEANUP_INTERVAL", "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    yield monkeypatch
    service_config._config = None


class TestDJConfig:

    def test_defaults(self):
        assert DEFAULT_CONFIG.history_limit == 1000
        assert DEFAULT_CONFIG.cold_start_min_events == 5
        assert DEFAULT_CONFIG.max_candidates == 500
        assert DEFAULT_CONFIG.playlist_cache_ttl_seconds == 900
        assert (DEFAULT_CONFIG.weight_genre_match, DEFAULT_CONFIG.weight_artist_match,
                DEFAULT_CONFIG.weight_mood_match, DEFAULT_CONFIG.weight_novelty) == (0.4, 0.3, 0.2, 0.1)

    def test_from_dict_nested_sections(self):
        config = DJConfig.from_dict({
            "profile": {"cold_start_min_events": 3, "timezone": "Europe/Berlin"},
            "candidate_pool": {"max_candidates": 200, "discovery_pct": 0.1},
            "scoring": {"weights": {"genre_match": 0.6, "novelty": 0.0}, "time_match_boost": 1.2},
            "playlist": {"shuffle_top_k": 5},
            "unknown_section": {"x": 1},
            "unknown_key": 3,
        })
        assert config.cold_start_min_events == 3
        assert config.timezone == "Europe/Berlin"
        assert config.max_candidates == 200
        assert config.weight_genre_match == 0.6
        assert config.weight_novelty == 0.0
        assert config.weight_artist_match == 0.3
        assert config.time_match_boost == 1.2
        assert config.shuffle_top_k == 5

    def test_from_dict_flat_keys(self):
        assert DJConfig.from_dict({"max_session_length": 30}).max_session_length == 30

    def test_pool_shares_must_fit(self):
        with pytest.raises(ValueError):
            DJConfig(genre_share=0.7, artist_share=0.2, discovery_pct=0.2)

    def test_weight_range(self):
        with pytest.raises(ValueError):
            DJConfig(weight_genre_match=1.1)

    def test_timezone_must_be_known(self):
        assert DJConfig(timezone="Europe/Berlin").timezone == "Europe/Berlin"
        with pytest.raises(ValueError):
            DJConfig(timezone="Not/AZone")

    def test_batch_size_positive(self):
        with pytest.raises(ValueError):
            DJConfig(score_batch_size=0)


class TestServiceConfig:

    def test_defaults(self, clean_env):
        config = ServiceConfig.from_env()
        assert config.data_source == "audius"
        assert config.audius_providers == DEFAULT_AUDIUS_PROVIDERS
        assert config.audius_timeout == 10.0
        assert config.gemini_api_key is None
        assert config.history_json_path is None
        assert config.load_dj_config() is DEFAULT_CONFIG

    def test_env_overrides(self, clean_env, tmp_path):
        dj_path = tmp_path / "dj.json"
        dj_path.write_text(json.dumps({"playlist": {"max_session_length": 20}}))
        clean_env.setenv("AUDIUS_PROVIDERS", "https://a.example, https://b.example")
        clean_env.setenv("ADVISOR_MODELS", "gemini/gemini-2.5-flash")
        clean_env.setenv("DATA_SOURCE", "JSON")
        clean_env.setenv("CATALOG_JSON_PATH", str(tmp_path / "catalog.json"))
        clean_env.setenv("DJ_CONFIG_PATH", str(dj_path))
        clean_env.setenv("LOG_LEVEL", "debug")

        config = ServiceConfig.from_env()

        assert config.audius_providers == ["https://a.example", "https://b.example"]
        assert config.advisor_models == ["gemini/gemini-2.5-flash"]
        assert config.data_source == "json"
        assert config.log_level == "DEBUG"
        assert config.load_dj_config().max_session_length == 20

    def test_unknown_data_source_falls_back_to_audius(self, clean_env):
        clean_env.setenv("DATA_SOURCE", "postgres")
        assert ServiceConfig.from_env().data_source == "audius"

    def test_validate_rejects_invalid_dj_config(self, tmp_path):
        dj_path = tmp_path / "dj.json"
        dj_path.write_text(json.dumps({"profile": {"timezone": "Not/AZone"}}))
        ok, errors = ServiceConfig(dj_config_path=dj_path).validate()
        assert not ok
        assert "Invalid DJ config" in errors[0]

    def test_validate_json_source_needs_catalog(self, tmp_path):
        ok, errors = ServiceConfig(data_source="json").validate()
        assert not ok and "CATALOG_JSON_PATH" in errors[0]
        ok, errors = ServiceConfig(data_source="json", catalog_json_path=tmp_path / "none.json").validate()
        assert not ok


def _write_fixtures(tmp_path):
    catalog_path = tmp_path / "catalog.json"
    catalog_path.write_text(json.dumps([
        make_track("jazz-1", "Jazz", "Tom Misch", play_count=10).model_dump(),
        make_track("jazz-2", "Jazz", "Kamasi", play_count=5).model_dump(),
        make_track("pop-1", "Pop", "Star", play_count=99).model_dump(),
    ]))
    history_path = tmp_path / "history.json"
    events = events_newest_first([
        {"track_id": f"h{i}", "genre": "Jazz", "artist": "Tom Misch", "completed": True} for i in range(6)
    ])
    history_path.write_text(json.dumps([e.model_dump(mode="json") for e in events]))
    return catalog_path, history_path


class TestAppStateAndCli:

    def test_state_wires_json_collaborators(self, tmp_path):
        catalog_path, history_path = _write_fixtures(tmp_path)
        config = ServiceConfig(data_source="json", catalog_json_path=catalog_path, history_json_path=history_path)
        state = AppState(config, start_sweeper=False)
        assert isinstance(state.catalog, JsonCatalog)
        assert isinstance(state.history_store, JsonHistoryStore)
        assert isinstance(state.advisor, NullAdvisor)
        state.close()

    def test_state_defaults_to_audius_and_memory_history(self):
        state = AppState(ServiceConfig(history_json_path=None), start_sweeper=False)
        assert isinstance(state.catalog, AudiusCatalog)
        assert isinstance(state.history_store, InMemoryHistoryStore)
        state.close()

    def test_cli_generate(self, clean_env, tmp_path, capsys):
        catalog_path, history_path = _write_fixtures(tmp_path)
        clean_env.setenv("DATA_SOURCE", "json")
        clean_env.setenv("CATALOG_JSON_PATH", str(catalog_path))
        clean_env.setenv("HISTORY_JSON_PATH", str(history_path))
        reload_config()

        assert main(["generate", "user-1", "--length", "2"]) == 0
        playlist = json.loads(capsys.readouterr().out)
        assert [t["id"] for t in playlist["tracks"]] in (["jazz-1", "jazz-2"], ["jazz-2", "jazz-1"])
        assert playlist["metadata"]["top_genres"] == ["Jazz"]

    def test_cli_profile_and_stats(self, clean_env, tmp_path, capsys):
        catalog_path, history_path = _write_fixtures(tmp_path)
        clean_env.setenv("DATA_SOURCE", "json")
        clean_env.setenv("CATALOG_JSON_PATH", str(catalog_path))
        clean_env.setenv("HISTORY_JSON_PATH", str(history_path))
        reload_config()

        assert main(["profile", "user-1"]) == 0
        assert json.loads(capsys.readouterr().out)["top_artists"] == ["Tom Misch"]
        assert main(["stats", "user-1"]) == 0
        assert json.loads(capsys.readouterr().out)["total_plays"] == 6

    def test_state_from_env_without_history_path_uses_memory(self, clean_env):
        state = AppState(ServiceConfig.from_env(), start_sweeper=False)
        assert isinstance(state.history_store, InMemoryHistoryStore)
        state.close()

    def test_cli_config_error(self, clean_env, capsys):
        clean_env.setenv("DATA_SOURCE", "json")
        reload_config()
        assert main(["stats", "user-1"]) == 2
        assert "CATALOG_JSON_PATH" in capsys.readouterr().err
