"""Tests for coordinate validation."""

import math
from types import SimpleNamespace

import pytest

from placepin.core.errors import InvalidCoordinatesError
from placepin.geo.models import LatLng
from placepin.geo.validator import is_valid_coordinates, require_valid_coordinates


@pytest.mark.parametrize(
    "value",
    [
        {"lat": 3.1579, "lng": 101.7116},
        {"lat": -90, "lng": 180},
        {"lat": 90.0, "lng": -180.0},
        LatLng(lat=3.1579, lng=101.7116),
        SimpleNamespace(lat=0, lng=0),
    ],
)
def test_accepts_valid_positions(value):
    assert is_valid_coordinates(value) is True


@pytest.mark.parametrize(
    "value",
    [
        {"lat": "3.1", "lng": 101},
        {"lat": 91, "lng": 0},
        {"lat": 0, "lng": -180.5},
        {"lat": math.nan, "lng": 0},
        {"lat": 0, "lng": math.inf},
        {"lat": True, "lng": 0},
        {"lat": 3.1},
        {},
        None,
        "3.1,101.7",
        SimpleNamespace(lat=lambda: 3.1, lng=lambda: 101.7),
    ],
)
def test_rejects_invalid_positions(value):
    assert is_valid_coordinates(value) is False


def test_require_returns_plain_lat_lng():
    position = require_valid_coordinates({"lat": 3, "lng": 101})

    assert position == LatLng(lat=3.0, lng=101.0)


def test_require_raises_invalid_coordinates():
    with pytest.raises(InvalidCoordinatesError):
        require_valid_coordinates({"lat": 91, "lng": 0})
