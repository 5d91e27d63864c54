"""Pydantic schemas for the PII redaction API."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from secure_redact.models.entities import PiiCategory


class SettingsInput(BaseModel):
    categories: List[PiiCategory]
    custom_keywords: List[str] = Field(default_factory=list)


class KeywordInput(BaseModel):
    keyword: str = Field(..., min_length=1)


class SettingsResponse(BaseModel):
    categories: List[PiiCategory]
    custom_keywords: List[str] = Field(default_factory=list)


class PageResponse(BaseModel):
    page_number: int = Field(..., ge=1)
    pixel_width: int = Field(..., gt=0)
    pixel_height: int = Field(..., gt=0)
    orientation: str
    mime_type: str


class OverlayResponse(BaseModel):
    top: float
    left: float
    height: float
    width: float


class MarkResponse(BaseModel):
    id: str
    category: PiiCategory
    source_text: str
    page_number: int = Field(..., ge=1)
    box: List[float]
    confidence: float
    overlay: OverlayResponse


class StateResponse(BaseModel):
    kind: str
    page: Optional[int] = None
    total: Optional[int] = None
    message: Optional[str] = None


class SessionResponse(BaseModel):
    session_id: str
    filename: Optional[str] = None
    state: StateResponse
    status: str = ""
    error: Optional[str] = None
    settings: SettingsResponse
    pages: List[PageResponse] = Field(default_factory=list)
    mark_count: int = 0


class RunResponse(BaseModel):
    session_id: str
    status: str
    mark_count: int
    marks: List[MarkResponse] = Field(default_factory=list)


class MarksResponse(BaseModel):
    session_id: str
    marks: List[MarkResponse] = Field(default_factory=list)


class ClearResponse(BaseModel):
    removed: int


class ErrorResponse(BaseModel):
    error: str
    message: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime
    llm_provider: str = ""
    active_sessions: int = 0


class ReadyzResponse(BaseModel):
    status: str
    checks: dict[str, str] = Field(default_factory=dict)
