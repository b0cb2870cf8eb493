"""Tests for the session wiring: debounced search, retry and reload."""

import asyncio

from placepin.core.errors import CapabilityNotEnabledError, ErrorDomain, ErrorKind
from placepin.services.client import ServiceState
from placepin.services.session import PlacesSession
from tests.fixtures.provider import PRIMARY, FakeProvider, prediction, predictions_ok


async def test_start_mounts_map(session):
    assert session.map.is_ready
    assert session.client.is_ready()


async def test_debounced_search_publishes_suggestions(session, provider):
    provider.predictions[PRIMARY] = predictions_ok(prediction("a", "Alpha"))

    session.search("a")
    session.search("al")
    session.search("alp")
    await session.debouncer.wait()

    assert [s.id for s in session.store.suggestions] == ["a"]
    assert [q for q, _ in provider.search_calls] == ["alp", "alp"]
    assert not session.store.is_loading(ErrorDomain.SEARCH)


async def test_short_query_clears_suggestions(session, provider):
    provider.predictions[PRIMARY] = predictions_ok(prediction("a", "Alpha"))
    await session.search_now("alpha")

    session.search("al")
    session.search("a")
    await asyncio.sleep(0.05)

    assert session.store.suggestions == []
    assert provider.search_calls.count(("al", ["establishment", "geocode"])) == 0


async def test_search_failure_sets_banner(test_settings):
    provider = FakeProvider(load_error=RuntimeError("ApiNotActivatedMapError"))
    session = PlacesSession(provider=provider, config=test_settings)

    results = await session.search_now("kuala")

    assert results == []
    banner = session.store.error(ErrorDomain.SEARCH)
    assert banner.message == CapabilityNotEnabledError.user_message
    assert banner.kind is ErrorKind.CAPABILITY_NOT_ENABLED
    assert session.client.last_error == "ApiNotActivatedMapError"
    await session.close()


async def test_retry_search_reruns_last_query(session, provider):
    session.store.query = "alpha"
    session.store.set_error(ErrorDomain.SEARCH, "failed")
    provider.predictions[PRIMARY] = predictions_ok(prediction("a", "Alpha"))

    await session.retry(ErrorDomain.SEARCH)

    assert session.store.error(ErrorDomain.SEARCH) is None
    assert [s.id for s in session.store.suggestions] == ["a"]


async def test_retry_map_recovers_from_failed_mount(test_settings):
    provider = FakeProvider(load_error=RuntimeError("ApiNotActivatedMapError"))
    session = PlacesSession(provider=provider, config=test_settings)
    await session.start()
    assert not session.map.is_ready
    assert session.store.error(ErrorDomain.MAP).reloadable

    provider.load_error = None
    await session.retry(ErrorDomain.MAP)

    assert session.map.is_ready
    assert session.store.error(ErrorDomain.MAP) is None
    await session.close()


async def test_reload_map_repins_selection(session):
    await session.select({"id": "a", "name": "A", "geometry": {"location": {"lat": 1.0, "lng": 2.0}}})
    old_map = session.map.map

    await session.reload_map()

    assert session.map.map is not old_map
    assert len(session.map.map.markers) == 1
    assert old_map.markers == []


async def test_retry_service_reinitializes(session, provider):
    await session.retry(ErrorDomain.SERVICE)

    assert session.client.state is ServiceState.READY
    assert provider.load_calls == 1


async def test_retry_service_failure_sets_banner(test_settings):
    provider = FakeProvider(places_enabled=False)
    session = PlacesSession(provider=provider, config=test_settings)

    await session.retry(ErrorDomain.SERVICE)

    banner = session.store.error(ErrorDomain.SERVICE)
    assert banner.message == CapabilityNotEnabledError.user_message
    assert session.client.status().failure_message == "Google Maps Places library not available"
    await session.close()


async def test_clear_selection_and_history(session):
    await session.select({"id": "a", "geometry": {"location": {"lat": 1.0, "lng": 2.0}}}, "alpha")
    assert len(session.store.history) == 1

    session.clear_selection()
    session.clear_history()

    assert session.store.selected_place is None
    assert len(session.store.history) == 0
    assert session.map.map.markers == []


async def test_close_releases_everything(test_settings):
    provider = FakeProvider()
    session = PlacesSession(provider=provider, config=test_settings)
    await session.start()
    session.search("pending query")

    await session.close()

    assert provider.closed
    assert not session.debouncer.pending
    assert session.map.map is None
