"""Tests for the selection workflow."""

import asyncio

import pytest

from placepin.core.errors import ErrorDomain
from placepin.geo.models import Geometry, LatLng, Place, Prediction, SelectionRequest
from placepin.providers.base import DetailsResponse, PlacesStatus
from placepin.services.selection import (
    NO_LOCATION_MESSAGE,
    SelectionWorkflow,
    merge_details,
    unwrap_event,
)
from tests.fixtures.provider import details_ok, place_result

TOWERS = Prediction(
    id="ChIJ-petronas",
    primary_text="Petronas Twin Towers",
    secondary_text="Kuala Lumpur City Centre, Kuala Lumpur",
    description="Petronas Twin Towers, Kuala Lumpur City Centre, Kuala Lumpur",
)


@pytest.fixture
def workflow(client, store, test_settings):
    return SelectionWorkflow(client, store, test_settings)


@pytest.fixture
def towers_details(provider):
    provider.details[TOWERS.id] = details_ok(
        place_result(TOWERS.id, "Petronas Twin Towers", 3.1579, 101.7116, address="KLCC, 50088 Kuala Lumpur")
    )


class TestUnwrap:
    def test_selection_request(self):
        request = SelectionRequest(place={"id": "a"}, query="abc")

        assert unwrap_event(request) == ({"id": "a"}, "abc")
        assert unwrap_event(request, "override") == ({"id": "a"}, "override")

    def test_wrapped_mapping(self):
        assert unwrap_event({"place": {"id": "a"}, "query": "abc"}) == ({"id": "a"}, "abc")

    def test_bare_place(self):
        place = {"id": "a", "name": "A"}

        assert unwrap_event(place) == (place, "")
        assert unwrap_event(place, "q") == (place, "q")


def test_merge_keeps_original_description_and_non_empty_values():
    original = Place(id="a", name="Original", description="Typed suggestion", types=["establishment"])
    details = Place(
        id="a",
        name="",
        address="1 Jalan Ampang",
        types=[],
        geometry=Geometry(location=LatLng(lat=3.0, lng=101.0)),
    )

    merged = merge_details(original, details)

    assert merged.name == "Original"
    assert merged.description == "Typed suggestion"
    assert merged.address == "1 Jalan Ampang"
    assert merged.types == ["establishment"]
    assert merged.location == LatLng(lat=3.0, lng=101.0)


def test_merge_falls_back_to_address_for_description():
    merged = merge_details(
        Place(id="a", name="A"),
        Place(id="a", address="Somewhere", geometry=Geometry(location=LatLng(lat=1, lng=1))),
    )

    assert merged.description == "Somewhere"


class TestResolve:
    async def test_prediction_is_resolved_through_details(self, workflow, store, provider, towers_details):
        place = await workflow.resolve({"place": TOWERS, "query": "petronas"})

        assert provider.details_calls == [TOWERS.id]
        assert place.location == LatLng(lat=3.1579, lng=101.7116)
        assert place.description == TOWERS.description
        assert place.address == "KLCC, 50088 Kuala Lumpur"
        assert store.selected_place == place
        assert [(e.query, e.place.id) for e in store.history] == [("petronas", TOWERS.id)]
        assert store.error(ErrorDomain.MAP) is None
        assert not store.is_loading(ErrorDomain.MAP)

    async def test_place_with_geometry_skips_details(self, workflow, store, provider):
        chosen = {"id": "x", "name": "X", "geometry": {"location": {"lat": 1.5, "lng": 103.7}}}

        place = await workflow.resolve(chosen)

        assert provider.details_calls == []
        assert place.location == LatLng(lat=1.5, lng=103.7)
        # no query typed, no history
        assert len(store.history) == 0

    async def test_details_denied_degrades_to_no_location(self, workflow, store, provider):
        previous = Place(id="prev", name="Prev", geometry=Geometry(location=LatLng(lat=1, lng=1)))
        store.select(previous)
        provider.details[TOWERS.id] = DetailsResponse(status=PlacesStatus.REQUEST_DENIED)

        result = await workflow.resolve(TOWERS, "petronas")

        assert result is None
        assert store.selected_place is previous
        assert len(store.history) == 0
        assert store.error(ErrorDomain.MAP).message == NO_LOCATION_MESSAGE

    async def test_details_not_found_degrades_to_no_location(self, workflow, store):
        assert await workflow.resolve(TOWERS) is None
        assert store.error(ErrorDomain.MAP).message == NO_LOCATION_MESSAGE

    async def test_place_without_id_or_geometry(self, workflow, store, provider):
        assert await workflow.resolve({"name": "Nameless"}) is None
        assert provider.details_calls == []
        assert store.error(ErrorDomain.MAP).message == NO_LOCATION_MESSAGE

    async def test_missing_place_is_ignored(self, workflow, store):
        assert await workflow.resolve({"place": None, "query": "x"}) is None
        assert store.errors == []

    async def test_unexpected_error_sets_map_banner(self, workflow, store, mocker):
        mocker.patch.object(
            workflow.client, "get_details", side_effect=RuntimeError("network unreachable")
        )

        assert await workflow.resolve(TOWERS) is None

        banner = store.error(ErrorDomain.MAP)
        assert banner.message == "Network error. Please check your connection."
        assert not store.is_loading(ErrorDomain.MAP)

    async def test_successful_selection_clears_previous_map_banner(self, workflow, store, towers_details):
        store.set_error(ErrorDomain.MAP, NO_LOCATION_MESSAGE)

        await workflow.resolve(TOWERS)

        assert store.error(ErrorDomain.MAP) is None


class TestDispatch:
    async def test_every_event_runs_and_last_finisher_wins(self, workflow, store, provider):
        provider.details_delay = 0.01
        provider.details["a"] = details_ok(place_result("a", "A", 1.0, 101.0))
        provider.details["b"] = details_ok(place_result("b", "B", 2.0, 102.0))

        first = workflow.dispatch({"id": "a"}, "first")
        second = workflow.dispatch({"id": "b"}, "second")
        assert workflow.in_flight == 2

        await workflow.drain()

        assert first.result().id == "a"
        assert second.result().id == "b"
        assert store.selected_place.id == "b"
        assert [e.place.id for e in store.history] == ["b", "a"]
        assert workflow.in_flight == 0

    async def test_drain_without_tasks(self, workflow):
        await asyncio.wait_for(workflow.drain(), timeout=0.1)
