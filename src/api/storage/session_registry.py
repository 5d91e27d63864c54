"""In-memory registry of redaction sessions (nothing is persisted)."""

import logging
import threading
from collections import OrderedDict
from pathlib import PurePath
from typing import Callable, Optional

from secure_redact.factory import build_session
from secure_redact.session import RedactionSession

from ..config import get_settings

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".pdf"}

SessionFactory = Callable[[], RedactionSession]


def session_from_settings() -> RedactionSession:
    """Build a session wired from the current application settings."""
    s = get_settings()
    return build_session(
        provider=s.llm_provider,
        openai_api_key=s.openai_api_key,
        openai_model=s.openai_model,
        openai_temperature=s.openai_temperature,
        azure_endpoint=s.azure_openai_endpoint,
        api_key=s.azure_openai_api_key,
        deployment_name=s.azure_openai_deployment_name,
        api_version=s.azure_openai_api_version,
        render_scale=s.render_scale,
        image_format=s.image_format,
        jpeg_quality=s.jpeg_quality,
        detection_concurrency=s.detection_concurrency,
        status_linger_seconds=s.status_linger_seconds,
    )


class SessionRegistry:
    """Holds live sessions, evicting the least recently created past the cap."""

    def __init__(
        self,
        factory: Optional[SessionFactory] = None,
        max_sessions: Optional[int] = None,
    ):
        """
        Initialize the registry.

        Args:
            factory: Builds a new, empty session. Uses settings if not provided.
            max_sessions: Maximum live sessions. Uses settings if not provided.
        """
        self.factory = factory or session_from_settings
        self._max_sessions = max_sessions
        self._sessions: "OrderedDict[str, RedactionSession]" = OrderedDict()
        self._lock = threading.Lock()

    @property
    def max_sessions(self) -> int:
        if self._max_sessions is None:
            self._max_sessions = get_settings().max_sessions
        return self._max_sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self) -> RedactionSession:
        session = self.factory()
        with self._lock:
            self._sessions[session.session_id] = session
            while len(self._sessions) > self.max_sessions:
                evicted_id, evicted = self._sessions.popitem(last=False)
                evicted.abort()
                logger.info("Evicted session %s", evicted_id)
        return session

    def get(self, session_id: str) -> Optional[RedactionSession]:
        return self._sessions.get(session_id)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.abort()
        return True

    def clear(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.abort()


def validate_upload(filename: Optional[str]) -> None:
    """Reject uploads whose extension is not an allowed document type.

    Content is sniffed again by the rasterizer; this only catches obvious
    mismatches early.

    Raises:
        ValueError: If the extension is not allowed.
    """
    suffix = PurePath(filename or "").suffix.lower()
    if suffix and suffix not in ALLOWED_EXTENSIONS:
        raise ValueError(f"Unsupported file type: {suffix}. Allowed: PDF")


# Global session registry instance
session_registry = SessionRegistry()
