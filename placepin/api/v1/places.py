"""Place search, selection, map and diagnostics endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from starlette import status

from placepin.api.v1.models import (
    CenterRequest,
    DiagnosticsResponse,
    ErrorsResponse,
    HistoryResponse,
    MarkerRequest,
    SearchResponse,
    SelectionResponse,
)
from placepin.core.errors import ErrorDomain, InvalidCoordinatesError
from placepin.geo.models import SelectionRequest
from placepin.services.session import PlacesSession

router = APIRouter()


def get_session(request: Request) -> PlacesSession:
    """Resolve the application's places session."""
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Places session not started",
        )
    return session


# Places


@router.get("/places/search", response_model=SearchResponse, tags=["places"])
async def search_places(
    q: str = Query(..., description="Search text; at least 2 characters"),
    session: PlacesSession = Depends(get_session),
) -> SearchResponse:
    """Search for place suggestions."""
    results = await session.search_now(q)
    return SearchResponse(query=q, results=results, count=len(results))


@router.post("/places/select", response_model=SelectionResponse, tags=["places"])
async def select_place(
    selection: SelectionRequest,
    session: PlacesSession = Depends(get_session),
) -> SelectionResponse:
    """
    Select a place or prediction.

    Predictions without geometry are resolved through a details lookup.
    When no location can be found the selection is left unchanged and the
    map error banner is returned as a 422.
    """
    place = await session.select(selection)
    if place is None:
        banner = session.store.error(ErrorDomain.MAP)
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=banner.message if banner else "Place could not be selected",
        )
    return SelectionResponse(selected=place)


@router.get("/places/selected", response_model=SelectionResponse, tags=["places"])
async def get_selected_place(
    session: PlacesSession = Depends(get_session),
) -> SelectionResponse:
    return SelectionResponse(selected=session.store.selected_place)


@router.delete("/places/selected", response_model=SelectionResponse, tags=["places"])
async def clear_selected_place(
    session: PlacesSession = Depends(get_session),
) -> SelectionResponse:
    session.clear_selection()
    return SelectionResponse(selected=None)


@router.get("/places/history", response_model=HistoryResponse, tags=["places"])
async def get_history(
    session: PlacesSession = Depends(get_session),
) -> HistoryResponse:
    """Search history, newest first."""
    entries = session.store.history.entries
    return HistoryResponse(entries=entries, count=len(entries))


@router.delete(
    "/places/history", status_code=status.HTTP_204_NO_CONTENT, tags=["places"]
)
async def clear_history(session: PlacesSession = Depends(get_session)) -> Response:
    session.clear_history()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Map


@router.get("/map", tags=["map"])
async def get_map(session: PlacesSession = Depends(get_session)) -> dict[str, Any]:
    """Map state: readiness, error and markers."""
    return session.map.snapshot()


@router.post("/map/markers", status_code=status.HTTP_201_CREATED, tags=["map"])
async def add_marker(
    body: MarkerRequest,
    session: PlacesSession = Depends(get_session),
) -> dict[str, Any]:
    marker = session.map.add_marker(body.position, body.title)
    if marker is None:
        raise InvalidCoordinatesError(f"Cannot place marker at {body.position!r}")
    return marker.snapshot()


@router.delete("/map/markers", status_code=status.HTTP_204_NO_CONTENT, tags=["map"])
async def clear_markers(session: PlacesSession = Depends(get_session)) -> Response:
    session.map.clear_markers()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/map/center", tags=["map"])
async def center_map(
    body: CenterRequest,
    session: PlacesSession = Depends(get_session),
) -> dict[str, Any]:
    if not session.map.center_map(body.position, body.zoom):
        raise InvalidCoordinatesError(f"Cannot center map on {body.position!r}")
    return session.map.snapshot()


# Diagnostics


@router.get("/diagnostics", response_model=DiagnosticsResponse, tags=["diagnostics"])
async def get_diagnostics(
    session: PlacesSession = Depends(get_session),
) -> DiagnosticsResponse:
    return DiagnosticsResponse(
        diagnostics=session.client.diagnostics(),
        status=session.client.status(),
    )


@router.post(
    "/diagnostics/reset", response_model=DiagnosticsResponse, tags=["diagnostics"]
)
async def reset_service(
    session: PlacesSession = Depends(get_session),
) -> DiagnosticsResponse:
    """Force the service client back to uninitialized."""
    session.client.reset()
    return DiagnosticsResponse(
        diagnostics=session.client.diagnostics(),
        status=session.client.status(),
    )


# Error banners


@router.get("/errors", response_model=ErrorsResponse, tags=["errors"])
async def list_errors(session: PlacesSession = Depends(get_session)) -> ErrorsResponse:
    return ErrorsResponse(errors=session.store.errors)


@router.delete(
    "/errors/{domain}", status_code=status.HTTP_204_NO_CONTENT, tags=["errors"]
)
async def dismiss_error(
    domain: ErrorDomain,
    session: PlacesSession = Depends(get_session),
) -> Response:
    session.dismiss_error(domain)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/errors/{domain}/retry", response_model=ErrorsResponse, tags=["errors"])
async def retry_domain(
    domain: ErrorDomain,
    session: PlacesSession = Depends(get_session),
) -> ErrorsResponse:
    await session.retry(domain)
    return ErrorsResponse(errors=session.store.errors)
