"""In-memory session storage."""

from .session_registry import SessionRegistry, session_registry, validate_upload

__all__ = ["SessionRegistry", "session_registry", "validate_upload"]
