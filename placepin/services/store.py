"""Application state for one places session.

The store is the single owner of the selected place, the current
suggestions, the search history, loading flags and error banners. Other
components only read it or call its mutators; subscribers are notified
synchronously whenever the selection is set.
"""

from collections.abc import Callable, Iterator
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field

from placepin.core.config import Settings, settings
from placepin.core.errors import ErrorDomain, ErrorKind
from placepin.core.logging import get_logger
from placepin.geo.models import Place, Prediction, SearchHistoryEntry

logger = get_logger().bind(module="store")

SelectionListener = Callable[[Optional[Place]], Any]


class ErrorBanner(BaseModel):
    """A dismissible, retryable user-facing error for one domain."""

    domain: ErrorDomain
    message: str
    kind: Optional[ErrorKind] = None
    retryable: bool = True
    reloadable: bool = False
    raised_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SearchHistory:
    """Most-recent-first list of selections, deduplicated by place."""

    def __init__(self, max_entries: int = 20) -> None:
        self.max_entries = max_entries
        self._entries: list[SearchHistoryEntry] = []

    def add(self, query: str, place: Place) -> SearchHistoryEntry:
        """Record a selection at the front.

        An existing entry for the same place is removed first, so
        re-selecting moves it to the front without growing the list.
        """
        key = place.identity
        if key is not None:
            self._entries = [e for e in self._entries if e.place.identity != key]

        entry = SearchHistoryEntry(query=query, place=place)
        self._entries.insert(0, entry)
        del self._entries[self.max_entries :]
        return entry

    def clear(self) -> None:
        self._entries = []

    @property
    def entries(self) -> list[SearchHistoryEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[SearchHistoryEntry]:
        return iter(list(self._entries))


class PlaceStore:
    """State container with selection subscribers."""

    def __init__(self, config: Settings | None = None) -> None:
        self.settings = config or settings
        self.history = SearchHistory(self.settings.HISTORY_MAX_ENTRIES)
        self.query = ""
        self._selected: Place | None = None
        self._suggestions: list[Prediction] = []
        self._loading: dict[ErrorDomain, bool] = {d: False for d in ErrorDomain}
        self._errors: dict[ErrorDomain, ErrorBanner] = {}
        self._listeners: list[SelectionListener] = []

    # Selection

    @property
    def selected_place(self) -> Place | None:
        return self._selected

    def select(self, place: Place | None) -> None:
        """Replace the selection, clear suggestions and notify subscribers."""
        self._selected = place
        self._suggestions = []
        logger.info(
            "place_selected" if place is not None else "selection_cleared",
            place_id=place.id if place else None,
            name=place.name if place else None,
        )
        for listener in list(self._listeners):
            try:
                listener(place)
            except Exception as e:
                logger.error(
                    "selection_listener_failed",
                    listener=getattr(listener, "__qualname__", repr(listener)),
                    error=str(e),
                    exc_info=True,
                )

    def subscribe(self, listener: SelectionListener) -> Callable[[], None]:
        """Register a selection listener; returns the unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Suggestions

    @property
    def suggestions(self) -> list[Prediction]:
        return list(self._suggestions)

    def set_suggestions(self, suggestions: list[Prediction]) -> None:
        self._suggestions = list(suggestions)

    # History

    def add_history(self, query: str, place: Place) -> SearchHistoryEntry:
        return self.history.add(query, place)

    def clear_history(self) -> None:
        self.history.clear()
        logger.info("history_cleared")

    # Loading flags

    def set_loading(self, domain: ErrorDomain, loading: bool) -> None:
        self._loading[domain] = loading

    def is_loading(self, domain: ErrorDomain) -> bool:
        return self._loading[domain]

    @property
    def loading(self) -> dict[ErrorDomain, bool]:
        return dict(self._loading)

    # Error banners

    def set_error(
        self,
        domain: ErrorDomain,
        message: str,
        kind: ErrorKind | None = None,
    ) -> ErrorBanner:
        """Show ``message`` as the banner of ``domain``, replacing any other."""
        banner = ErrorBanner(
            domain=domain,
            message=message,
            kind=kind,
            reloadable=domain is ErrorDomain.MAP,
        )
        self._errors[domain] = banner
        logger.warning(
            "error_banner_set",
            domain=domain.value,
            message=message,
            kind=kind.value if kind else None,
        )
        return banner

    def clear_error(self, domain: ErrorDomain) -> None:
        self._errors.pop(domain, None)

    def error(self, domain: ErrorDomain) -> ErrorBanner | None:
        return self._errors.get(domain)

    @property
    def errors(self) -> list[ErrorBanner]:
        return [self._errors[d] for d in ErrorDomain if d in self._errors]
