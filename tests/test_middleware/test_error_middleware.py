"""Tests for the JSON error envelope."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from placepin.core.errors import PlaceNotFoundError, RequestDeniedError
from placepin.middleware.correlation import CorrelationMiddleware
from placepin.middleware.errors import ErrorHandlingMiddleware, register_error_handlers


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(CorrelationMiddleware)
    register_error_handlers(app)

    @app.get("/not-found")
    async def not_found() -> None:
        raise PlaceNotFoundError()

    @app.get("/denied")
    async def denied() -> None:
        raise RequestDeniedError()

    @app.get("/missing-key")
    async def missing_key() -> None:
        raise KeyError("place")

    @app.get("/bad-value")
    async def bad_value() -> None:
        raise ValueError("bad value")

    @app.get("/crash")
    async def crash() -> None:
        raise RuntimeError("unexpected")

    @app.get("/items/{item_id}")
    async def item(item_id: int) -> dict:
        return {"item_id": item_id}

    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.parametrize(
    "path, status_code, error, message",
    [
        ("/not-found", 404, "PlaceNotFoundError", "Place not found"),
        ("/denied", 403, "RequestDeniedError", "Place Details API request denied"),
        ("/missing-key", 404, "KeyError", "'place'"),
        ("/bad-value", 422, "ValueError", "bad value"),
        ("/crash", 500, "RuntimeError", "unexpected"),
    ],
)
def test_error_envelope(client, path, status_code, error, message):
    response = client.get(path, headers={"X-Request-ID": "test-envelope"})

    assert response.status_code == status_code
    body = response.json()
    assert body["error"] == error
    assert body["message"] == message
    assert body["status_code"] == status_code
    assert body["correlation_id"] == "test-envelope"
    assert response.headers["X-Request-ID"] == "test-envelope"


def test_places_errors_carry_kind(client):
    assert client.get("/not-found").json()["kind"] == "NotFound"
    assert "kind" not in client.get("/crash").json()


def test_http_errors_use_envelope(client):
    response = client.get("/nowhere")

    assert response.status_code == 404
    assert response.json()["message"] == "Not Found"


def test_validation_errors_use_envelope(client):
    response = client.get("/items/abc")

    assert response.status_code == 422
    assert response.json()["error"] == "RequestValidationError"


def test_errors_are_logged(client, mocker):
    from placepin.middleware import errors

    logger = mocker.patch.object(errors, "logger")

    client.get("/crash")

    logger.error.assert_called_once()
    assert logger.error.call_args.kwargs["error_type"] == "RuntimeError"
