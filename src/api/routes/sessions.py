"""Redaction session endpoints."""

import logging
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, File, HTTPException, Query, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import Response

from secure_redact.errors import (
    DetectionConfigError,
    DetectionRateLimitError,
    DetectionServiceError,
    DocumentLoadError,
    ExportError,
    RedactionError,
    RunAbortedError,
    SessionBusyError,
)
from secure_redact.geometry import overlay_geometry
from secure_redact.models.entities import PiiCategory, RedactionMark, RedactionSettings
from secure_redact.models.state import SessionState
from secure_redact.session import RedactionSession

from ..config import get_settings
from ..models.schemas import (
    ClearResponse,
    ErrorResponse,
    KeywordInput,
    MarkResponse,
    MarksResponse,
    OverlayResponse,
    PageResponse,
    RunResponse,
    SessionResponse,
    SettingsInput,
    SettingsResponse,
    StateResponse,
)
from ..rate_limit import RUN_LIMIT, limiter
from ..storage.session_registry import session_registry, validate_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Redaction sessions"])

_ERROR_STATUS = [
    (DocumentLoadError, status.HTTP_400_BAD_REQUEST),
    (SessionBusyError, status.HTTP_409_CONFLICT),
    (RunAbortedError, status.HTTP_409_CONFLICT),
    (DetectionRateLimitError, status.HTTP_429_TOO_MANY_REQUESTS),
    (DetectionConfigError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (DetectionServiceError, status.HTTP_502_BAD_GATEWAY),
    (ExportError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def _http_error(error: RedactionError) -> HTTPException:
    for exc_type, code in _ERROR_STATUS:
        if isinstance(error, exc_type):
            return HTTPException(status_code=code, detail=str(error))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))


def _get_session(session_id: str) -> RedactionSession:
    session = session_registry.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return session


def _state_response(state: SessionState) -> StateResponse:
    return StateResponse(
        kind=state.kind,
        page=getattr(state, "page", None),
        total=getattr(state, "total", None),
        message=getattr(state, "message", None),
    )


def _settings_response(settings: RedactionSettings) -> SettingsResponse:
    return SettingsResponse(
        categories=settings.ordered_categories(),
        custom_keywords=list(settings.custom_keywords),
    )


def _mark_response(mark: RedactionMark) -> MarkResponse:
    overlay = overlay_geometry(mark.box)
    return MarkResponse(
        id=mark.id,
        category=mark.category,
        source_text=mark.source_text,
        page_number=mark.page_number,
        box=mark.box.to_list(),
        confidence=mark.confidence,
        overlay=OverlayResponse(**overlay.to_dict()),
    )


def _session_response(session: RedactionSession) -> SessionResponse:
    return SessionResponse(
        session_id=session.session_id,
        filename=session.source_filename,
        state=_state_response(session.state),
        status=session.status_text,
        error=session.error,
        settings=_settings_response(session.settings),
        pages=[
            PageResponse(
                page_number=p.page_number,
                pixel_width=p.pixel_width,
                pixel_height=p.pixel_height,
                orientation=p.orientation,
                mime_type=p.mime_type,
            )
            for p in session.pages
        ],
        mark_count=len(session.store),
    )


async def _read_upload(file: UploadFile) -> bytes:
    settings = get_settings()
    try:
        validate_upload(file.filename)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    contents = await file.read()
    if len(contents) > settings.max_file_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File size exceeds maximum allowed size of {settings.max_file_size_mb}MB.",
        )
    return contents


@router.post(
    "/sessions",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}},
    summary="Upload a PDF and open a redaction session",
)
@limiter.limit("100/minute")
async def create_session(request: Request, file: UploadFile = File(...)) -> SessionResponse:
    contents = await _read_upload(file)
    filename = file.filename or "document.pdf"

    session = session_registry.create()
    try:
        await run_in_threadpool(session.load, contents, filename)
    except RedactionError as e:
        session_registry.delete(session.session_id)
        raise _http_error(e)

    return _session_response(session)


@router.put(
    "/sessions/{session_id}/document",
    response_model=SessionResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Replace the session's document, discarding pages and marks",
)
async def replace_document(session_id: str, file: UploadFile = File(...)) -> SessionResponse:
    session = _get_session(session_id)
    contents = await _read_upload(file)
    try:
        await run_in_threadpool(session.load, contents, file.filename or "document.pdf")
    except RedactionError as e:
        raise _http_error(e)
    return _session_response(session)


@router.get(
    "/sessions/{session_id}",
    response_model=SessionResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Session state, settings and pages",
)
async def get_session(session_id: str) -> SessionResponse:
    return _session_response(_get_session(session_id))


@router.delete(
    "/sessions/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
    summary="Discard a session",
)
async def delete_session(session_id: str) -> Response:
    if not session_registry.delete(session_id):
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/sessions/{session_id}/pages/{page_number}/image",
    responses={404: {"model": ErrorResponse}},
    summary="Rendered page image",
)
async def get_page_image(session_id: str, page_number: int) -> Response:
    page = _get_session(session_id).page(page_number)
    if page is None:
        raise HTTPException(status_code=404, detail=f"Page not found: {page_number}")
    return Response(content=page.image_data, media_type=page.mime_type)


@router.put(
    "/sessions/{session_id}/settings",
    response_model=SettingsResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Replace enabled categories and custom keywords",
)
async def put_settings(session_id: str, body: SettingsInput) -> SettingsResponse:
    session = _get_session(session_id)
    settings = RedactionSettings(categories=set(body.categories), custom_keywords=[])
    for keyword in body.custom_keywords:
        settings.add_keyword(keyword)
    session.settings = settings
    return _settings_response(settings)


@router.post(
    "/sessions/{session_id}/categories/{category}/toggle",
    response_model=SettingsResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Enable or disable one category",
)
async def toggle_category(session_id: str, category: PiiCategory) -> SettingsResponse:
    session = _get_session(session_id)
    session.settings.toggle_category(category)
    return _settings_response(session.settings)


@router.post(
    "/sessions/{session_id}/keywords",
    response_model=SettingsResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Append a custom keyword",
)
async def add_keyword(session_id: str, body: KeywordInput) -> SettingsResponse:
    session = _get_session(session_id)
    if session.settings.add_keyword(body.keyword) is None:
        raise HTTPException(status_code=400, detail="Keyword must not be blank")
    return _settings_response(session.settings)


@router.delete(
    "/sessions/{session_id}/keywords/{keyword}",
    response_model=SettingsResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Remove a custom keyword",
)
async def remove_keyword(session_id: str, keyword: str) -> SettingsResponse:
    session = _get_session(session_id)
    session.settings.remove_keyword(keyword)
    return _settings_response(session.settings)


@router.post(
    "/sessions/{session_id}/run",
    response_model=RunResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="Detect PII on every page and replace the session's marks",
)
@limiter.limit(RUN_LIMIT)
async def run_detection(request: Request, session_id: str) -> RunResponse:
    session = _get_session(session_id)
    try:
        marks = await session.run_async()
    except RedactionError as e:
        raise _http_error(e)
    except Exception as e:
        logger.exception("Detection run failed for session_id=%s", session_id)
        raise HTTPException(status_code=500, detail=f"Anonymization failed: {e}")

    return RunResponse(
        session_id=session.session_id,
        status=session.status_text,
        mark_count=len(marks),
        marks=[_mark_response(m) for m in marks],
    )


@router.post(
    "/sessions/{session_id}/abort",
    status_code=status.HTTP_202_ACCEPTED,
    responses={404: {"model": ErrorResponse}},
    summary="Stop a running detection pass before its next page",
)
async def abort_run(session_id: str) -> dict:
    _get_session(session_id).abort()
    return {"status": "abort_requested"}


@router.get(
    "/sessions/{session_id}/marks",
    response_model=MarksResponse,
    responses={404: {"model": ErrorResponse}},
    summary="List redaction marks",
)
async def list_marks(
    session_id: str,
    page: Optional[int] = Query(None, ge=1),
    category: Optional[List[PiiCategory]] = Query(None),
) -> MarksResponse:
    session = _get_session(session_id)
    marks = session.marks(page_number=page, categories=category)
    return MarksResponse(
        session_id=session.session_id,
        marks=[_mark_response(m) for m in marks],
    )


@router.delete(
    "/sessions/{session_id}/marks/{mark_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
    summary="Remove one mark (no-op if it is already gone)",
)
async def delete_mark(session_id: str, mark_id: str) -> Response:
    _get_session(session_id).remove_mark(mark_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/sessions/{session_id}/marks",
    response_model=ClearResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Remove every mark",
)
async def clear_marks(session_id: str) -> ClearResponse:
    return ClearResponse(removed=_get_session(session_id).clear_marks())


@router.get(
    "/sessions/{session_id}/export",
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Download the redacted PDF",
)
async def export_document(session_id: str) -> Response:
    session = _get_session(session_id)
    try:
        result = await run_in_threadpool(session.export)
    except RedactionError as e:
        raise _http_error(e)

    return Response(
        content=result.data,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(result.filename)}"
        },
    )
