"""
Audiora DJ Service Tests

End-to-end generate_playlist over in-memory collaborators: personalized
path, cold start and empty-pool fallbacks, cache reuse without
recomputation, advisor weights / exclusions / failures, and provider errors.

Run:
----
    pytest tests/test_dj_service.py -v
"""

import asyncio
import random
from typing import List, Optional
from unittest.mock import AsyncMock

import pytest

from dj_algorithm import DJConfig, SessionWeights, TasteProfile, Track
from dj_service.errors import ProviderUnavailableError
from dj_service.services.advisor import SessionFilters, SessionParameters
from dj_service.services.cache import MusicCache
from dj_service.services.catalog import InMemoryCatalog
from dj_service.services.dj import AudioraDJService
from dj_service.services.history import HistoryService
from dj_service.services.history_store import InMemoryHistoryStore

from conftest import NOW, make_track

FALLBACK_VIBE = "Trending tracks to get you started"


class CountingCatalog(InMemoryCatalog):
    """InMemoryCatalog that counts how often each source is queried."""

    def __init__(self, tracks):
        super().__init__(tracks)
        self.calls = {"genres": 0, "artists": 0, "discovery": 0, "trending": 0}

    async def search_by_genres(self, genres, limit):
        self.calls["genres"] += 1
        return await super().search_by_genres(genres, limit)

    async def search_by_artists(self, artists, limit):
        self.calls["artists"] += 1
        return await super().search_by_artists(artists, limit)

    async def get_discovery_tracks(self, genres, limit):
        self.calls["discovery"] += 1
        return await super().get_discovery_tracks(genres, limit)

    async def get_trending_tracks(self, genre=None, limit=20):
        self.calls["trending"] += 1
        return await super().get_trending_tracks(genre, limit)


class UnavailableCatalog(CountingCatalog):

    async def search_by_genres(self, genres, limit):
        raise ProviderUnavailableError("all mirrors down")

    async def get_trending_tracks(self, genre=None, limit=20):
        raise ProviderUnavailableError("all mirrors down")


class StaticAdvisor:
    def __init__(self, params: Optional[SessionParameters]):
        self.params = params
        self.contexts: List[str] = []

    async def get_session_parameters(self, profile: TasteProfile, context: str):
        self.contexts.append(context)
        return self.params


def _service(catalog, history_events, advisor=None, config=None, seed=0):
    store = InMemoryHistoryStore(history_events)
    config = config or DJConfig()
    return AudioraDJService(
        catalog=catalog,
        history=HistoryService(store, config=config, clock=lambda: NOW),
        advisor=advisor,
        cache=MusicCache(),
        config=config,
        rng=random.Random(seed),
        clock=lambda: NOW,
    )


def _ids(playlist):
    return [t.id for t in playlist.tracks]


class TestPersonalizedPlaylist:

    def test_generates_from_taste(self, catalog_tracks, warm_history):
        catalog = CountingCatalog(catalog_tracks)
        service = _service(catalog, warm_history)

        playlist = asyncio.run(service.generate_playlist("user-1", 5))

        assert playlist.user_id == "user-1"
        assert playlist.session_length == len(playlist.tracks) == 5
        assert playlist.vibe_description == "Personalized mix based on your taste"
        assert playlist.metadata.top_genres == ["Lo-Fi", "Jazz", "Rock"]
        assert playlist.metadata.avg_completion_rate == pytest.approx(0.75)
        assert playlist.generated_at == NOW
        # lofi-2 was played within the last 7 days
        assert "lofi-2" not in _ids(playlist)
        assert "lofi-1" in _ids(playlist)
        assert len(set(_ids(playlist))) == 5

    def test_caps_at_available_candidates(self, catalog_tracks, warm_history):
        service = _service(CountingCatalog(catalog_tracks), warm_history)
        playlist = asyncio.run(service.generate_playlist("user-1", 50))
        # Lo-Fi, Jazz, Rock tracks minus the recently played one; no Metal or Pop source
        assert sorted(_ids(playlist)) == sorted(["lofi-1", "lofi-3", "jazz-1", "jazz-2", "rock-1"])

    def test_length_clamped(self, catalog_tracks, warm_history):
        service = _service(CountingCatalog(catalog_tracks), warm_history)
        assert len(asyncio.run(service.generate_playlist("user-1", 0)).tracks) == 1
        assert len(asyncio.run(service.generate_playlist("user-1", 10, max_session_length=2)).tracks) == 2

    def test_discovery_can_be_disabled(self, catalog_tracks, warm_history):
        catalog = CountingCatalog(catalog_tracks)
        service = _service(catalog, warm_history, config=DJConfig(include_discovery=False))
        asyncio.run(service.generate_playlist("user-1", 5))
        assert catalog.calls["discovery"] == 0
        assert catalog.calls["genres"] == 1


class TestCaching:

    def test_second_call_returns_cached_playlist_without_recomputation(self, catalog_tracks, warm_history):
        catalog = CountingCatalog(catalog_tracks)
        service = _service(catalog, warm_history)

        first = asyncio.run(service.generate_playlist("user-1", 5))
        calls_after_first = dict(catalog.calls)
        second = asyncio.run(service.generate_playlist("user-1", 5))

        assert second is first
        assert catalog.calls == calls_after_first

    def test_cache_key_uses_clamped_length(self, catalog_tracks, warm_history):
        service = _service(CountingCatalog(catalog_tracks), warm_history)
        first = asyncio.run(service.generate_playlist("user-1", 80))
        assert service.cache.get_playlist("user-1", 50) is first

    def test_different_length_is_a_different_entry(self, catalog_tracks, warm_history):
        service = _service(CountingCatalog(catalog_tracks), warm_history)
        a = asyncio.run(service.generate_playlist("user-1", 3))
        b = asyncio.run(service.generate_playlist("user-1", 4))
        assert a is not b


class TestFallback:

    def test_cold_start_returns_trending(self, catalog_tracks):
        catalog = CountingCatalog(catalog_tracks)
        service = _service(catalog, [])

        playlist = asyncio.run(service.generate_playlist("new-user", 3))

        assert playlist.vibe_description == FALLBACK_VIBE
        assert _ids(playlist) == ["pop-1", "metal-1", "lofi-1"]
        assert playlist.metadata.top_genres == []
        assert playlist.metadata.avg_completion_rate == 0.0
        assert catalog.calls["genres"] == 0

    def test_fallback_is_not_cached(self, catalog_tracks):
        catalog = CountingCatalog(catalog_tracks)
        service = _service(catalog, [])
        asyncio.run(service.generate_playlist("new-user", 3))
        asyncio.run(service.generate_playlist("new-user", 3))
        assert catalog.calls["trending"] == 2

    def test_empty_candidate_pool_returns_trending(self, warm_history):
        # Catalog has nothing in the listener's genres or by their artists
        catalog = CountingCatalog([make_track(f"p{i}", "Pop", "Star", play_count=i) for i in range(5)])
        service = _service(catalog, warm_history)

        playlist = asyncio.run(service.generate_playlist("user-1", 10))

        assert playlist.vibe_description == FALLBACK_VIBE
        assert len(playlist.tracks) == 5
        assert _ids(playlist) == ["p4", "p3", "p2", "p1", "p0"]

    def test_fallback_length_limited_by_session_length(self, catalog_tracks):
        playlist = asyncio.run(_service(CountingCatalog(catalog_tracks), []).generate_playlist("u", 2))
        assert len(playlist.tracks) == 2


class TestAdvisor:

    def _params(self, **overrides):
        data = dict(
            vibe_description="Sunrise jazz",
            target_moods=["Calm"],
            primary_genres=["Jazz"],
            genre_strictness=0.5,
            weights=SessionWeights(),
            filters=SessionFilters(),
        )
        data.update(overrides)
        return SessionParameters(**data)

    def test_vibe_and_context(self, catalog_tracks, warm_history):
        advisor = StaticAdvisor(self._params())
        service = _service(CountingCatalog(catalog_tracks), warm_history, advisor=advisor)
        playlist = asyncio.run(service.generate_playlist("user-1", 5))
        assert playlist.vibe_description == "Sunrise jazz"
        assert advisor.contexts == ["Time: 09:00 (Morning), Day: Wednesday"]

    def test_advisor_exclusions_filter_pool(self, catalog_tracks, warm_history):
        advisor = StaticAdvisor(self._params(filters=SessionFilters(exclude_genres=["jazz"])))
        service = _service(CountingCatalog(catalog_tracks), warm_history, advisor=advisor)
        playlist = asyncio.run(service.generate_playlist("user-1", 50))
        assert all(t.genre != "Jazz" for t in playlist.tracks)

    def test_advisor_weights_change_ranking(self, catalog_tracks, warm_history):
        # With only artist weight, tracks by non-top artists score 0 and fall below artist matches
        artist_only = SessionWeights(genre_match=0, artist_match=1, mood_match=0, novelty=0)
        config = DJConfig(shuffle_top_k=0)
        advisor = StaticAdvisor(self._params(weights=artist_only))
        service = _service(CountingCatalog(catalog_tracks), warm_history, advisor=advisor, config=config)
        playlist = asyncio.run(service.generate_playlist("user-1", 2))
        assert _ids(playlist) == ["lofi-1", "jazz-1"]

    def test_advisor_none_uses_defaults(self, catalog_tracks, warm_history):
        config = DJConfig(shuffle_top_k=0)
        with_none = _service(CountingCatalog(catalog_tracks), warm_history, advisor=StaticAdvisor(None), config=config)
        without = _service(CountingCatalog(catalog_tracks), warm_history, config=config)
        a = asyncio.run(with_none.generate_playlist("user-1", 5))
        b = asyncio.run(without.generate_playlist("user-1", 5))
        assert _ids(a) == _ids(b)

    def test_advisor_exception_is_swallowed(self, catalog_tracks, warm_history):
        advisor = AsyncMock()
        advisor.get_session_parameters.side_effect = RuntimeError("LLM exploded")
        service = _service(CountingCatalog(catalog_tracks), warm_history, advisor=advisor)
        playlist = asyncio.run(service.generate_playlist("user-1", 5))
        assert playlist.vibe_description == "Personalized mix based on your taste"
        assert len(playlist.tracks) == 5


class TestProviderErrors:

    def test_provider_unavailable_propagates(self, catalog_tracks, warm_history):
        service = _service(UnavailableCatalog(catalog_tracks), warm_history)
        with pytest.raises(ProviderUnavailableError) as exc_info:
            asyncio.run(service.generate_playlist("user-1", 5))
        assert exc_info.value.retryable

    def test_provider_unavailable_on_fallback_propagates(self, catalog_tracks):
        service = _service(UnavailableCatalog(catalog_tracks), [])
        with pytest.raises(ProviderUnavailableError):
            asyncio.run(service.generate_playlist("new-user", 5))
