"""Request and response models for the v1 API."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from placepin.geo.models import Place, Prediction, SearchHistoryEntry
from placepin.services.client import ServiceDiagnostics, ServiceStatus
from placepin.services.store import ErrorBanner


class SearchResponse(BaseModel):
    query: str
    results: list[Prediction]
    count: int


class SelectionResponse(BaseModel):
    selected: Optional[Place] = None


class HistoryResponse(BaseModel):
    entries: list[SearchHistoryEntry]
    count: int


class MarkerRequest(BaseModel):
    """Positions are left untyped so invalid ones reach the validator."""

    position: dict[str, Any]
    title: str = "Location"


class CenterRequest(BaseModel):
    position: dict[str, Any]
    zoom: Optional[int] = Field(default=None, ge=0, le=22)


class DiagnosticsResponse(BaseModel):
    diagnostics: ServiceDiagnostics
    status: ServiceStatus


class ErrorsResponse(BaseModel):
    errors: list[ErrorBanner]
