"""Pydantic models for API request/response schemas."""

from .schemas import (
    SettingsInput,
    KeywordInput,
    SettingsResponse,
    PageResponse,
    OverlayResponse,
    MarkResponse,
    StateResponse,
    SessionResponse,
    RunResponse,
    MarksResponse,
    ClearResponse,
    ErrorResponse,
    HealthResponse,
    ReadyzResponse,
)

__all__ = [
    "SettingsInput",
    "KeywordInput",
    "SettingsResponse",
    "PageResponse",
    "OverlayResponse",
    "MarkResponse",
    "StateResponse",
    "SessionResponse",
    "RunResponse",
    "MarksResponse",
    "ClearResponse",
    "ErrorResponse",
    "HealthResponse",
    "ReadyzResponse",
]
