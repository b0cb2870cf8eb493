"""Test configuration."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from pytest import Config

from placepin.core.config import Settings
from placepin.core.logging import configure_logging
from placepin.services.client import ServiceClient
from placepin.services.session import PlacesSession
from placepin.services.store import PlaceStore
from tests.fixtures.provider import FakeProvider

fixture = pytest.fixture


def pytest_configure(config: Config) -> None:
    """Configure logging for the test environment."""
    configure_logging(testing=True)


@fixture(scope="session")
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@fixture
def test_settings() -> Settings:
    """Settings with short timers so pipeline tests run quickly."""
    return Settings(
        GOOGLE_MAPS_API_KEY="test-key",
        MAPS_LOAD_TIMEOUT=1.0,
        MAPS_VALIDATION_TIMEOUT=0.5,
        SEARCH_DEBOUNCE_SECONDS=0.02,
        SELECTION_SETTLE_DELAY=0,
        MARKER_BOUNCE_SECONDS=0.05,
    )


@fixture
def provider() -> FakeProvider:
    return FakeProvider()


@fixture
def client(provider: FakeProvider, test_settings: Settings) -> ServiceClient:
    return ServiceClient(provider, test_settings)


@fixture
def store(test_settings: Settings) -> PlaceStore:
    return PlaceStore(test_settings)


@pytest_asyncio.fixture
async def session(
    provider: FakeProvider, test_settings: Settings
) -> AsyncGenerator[PlacesSession, None]:
    """A started session with its map mounted."""
    places_session = PlacesSession(provider=provider, config=test_settings)
    await places_session.start()
    yield places_session
    await places_session.close()
