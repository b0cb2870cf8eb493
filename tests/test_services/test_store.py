"""Tests for the place store and search history."""

from placepin.core.errors import ErrorDomain, ErrorKind
from placepin.geo.models import Place
from placepin.services.store import SearchHistory


def _place(place_id: str, name: str = "") -> Place:
    return Place(id=place_id, name=name or place_id.upper())


class TestSearchHistory:
    def test_most_recent_first(self):
        history = SearchHistory()
        history.add("a", _place("a"))
        history.add("b", _place("b"))

        assert [e.place.id for e in history] == ["b", "a"]

    def test_reselecting_moves_entry_to_front(self):
        history = SearchHistory()
        for place_id in ("a", "b", "c"):
            history.add(place_id, _place(place_id))

        history.add("again", _place("a"))

        assert [e.place.id for e in history] == ["a", "c", "b"]
        assert history.entries[0].query == "again"
        assert len(history) == 3

    def test_bounded(self):
        history = SearchHistory(max_entries=20)
        for i in range(25):
            history.add(f"q{i}", _place(f"p{i}"))

        assert len(history) == 20
        assert history.entries[0].place.id == "p24"
        assert history.entries[-1].place.id == "p5"

    def test_places_without_id_dedupe_by_name(self):
        history = SearchHistory()
        history.add("x", Place(name="Merdeka Square"))
        history.add("y", Place(name="Merdeka Square"))

        assert len(history) == 1

    def test_clear(self):
        history = SearchHistory()
        history.add("a", _place("a"))
        history.clear()

        assert history.entries == []


class TestSelection:
    def test_select_clears_suggestions_and_notifies(self, store):
        received = []
        store.subscribe(received.append)
        store.set_suggestions(["stale"])

        place = _place("a")
        store.select(place)

        assert store.selected_place is place
        assert store.suggestions == []
        assert received == [place]

    def test_unsubscribe(self, store):
        received = []
        unsubscribe = store.subscribe(received.append)
        unsubscribe()
        unsubscribe()

        store.select(_place("a"))

        assert received == []

    def test_failing_listener_does_not_stop_others(self, store, mocker):
        from placepin.services import store as store_module

        logger = mocker.patch.object(store_module, "logger")
        received = []

        def broken(place):
            raise RuntimeError("listener bug")

        store.subscribe(broken)
        store.subscribe(received.append)
        store.select(_place("a"))

        assert len(received) == 1
        logger.error.assert_called_once()
        assert logger.error.call_args.args[0] == "selection_listener_failed"


class TestBanners:
    def test_one_banner_per_domain(self, store):
        store.set_error(ErrorDomain.SEARCH, "first")
        store.set_error(ErrorDomain.SEARCH, "second", kind=ErrorKind.UNCLASSIFIED)

        assert [b.message for b in store.errors] == ["second"]
        assert store.error(ErrorDomain.SEARCH).kind is ErrorKind.UNCLASSIFIED

    def test_only_map_banners_are_reloadable(self, store):
        store.set_error(ErrorDomain.MAP, "map down")
        store.set_error(ErrorDomain.SERVICE, "service down")

        assert store.error(ErrorDomain.MAP).reloadable is True
        assert store.error(ErrorDomain.SERVICE).reloadable is False
        assert all(b.retryable for b in store.errors)

    def test_errors_are_ordered_by_domain(self, store):
        store.set_error(ErrorDomain.SERVICE, "c")
        store.set_error(ErrorDomain.SEARCH, "a")
        store.set_error(ErrorDomain.MAP, "b")

        assert [b.domain for b in store.errors] == [
            ErrorDomain.SEARCH,
            ErrorDomain.MAP,
            ErrorDomain.SERVICE,
        ]

    def test_clear_error(self, store):
        store.set_error(ErrorDomain.MAP, "map down")
        store.clear_error(ErrorDomain.MAP)
        store.clear_error(ErrorDomain.MAP)

        assert store.error(ErrorDomain.MAP) is None


def test_loading_flags(store):
    assert store.loading == {d: False for d in ErrorDomain}

    store.set_loading(ErrorDomain.SEARCH, True)

    assert store.is_loading(ErrorDomain.SEARCH)
    assert not store.is_loading(ErrorDomain.MAP)


def test_history_uses_configured_bound(test_settings):
    from placepin.services.store import PlaceStore

    store = PlaceStore(test_settings.model_copy(update={"HISTORY_MAX_ENTRIES": 2}))
    for place_id in ("a", "b", "c"):
        store.add_history(place_id, _place(place_id))

    assert [e.place.id for e in store.history] == ["c", "b"]
