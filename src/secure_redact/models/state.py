"""Explicit session state and the tracker that publishes it."""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Union


@dataclass(frozen=True)
class Idle:
    kind = "idle"


@dataclass(frozen=True)
class Loading:
    page: int
    total: int
    kind = "loading"


@dataclass(frozen=True)
class Detecting:
    page: int
    total: int
    kind = "detecting"


@dataclass(frozen=True)
class Exporting:
    kind = "exporting"


@dataclass(frozen=True)
class Failed:
    message: str
    kind = "failed"


SessionState = Union[Idle, Loading, Detecting, Exporting, Failed]


def describe(state: SessionState) -> str:
    """Human-readable status line for *state*."""
    if isinstance(state, Loading):
        return f"Rendering page {state.page} of {state.total}..."
    if isinstance(state, Detecting):
        return f"Analyzing page {state.page} of {state.total}..."
    if isinstance(state, Exporting):
        return "Generating PDF..."
    if isinstance(state, Failed):
        return state.message
    return ""


class StateTracker:
    """Holds the current state, the last error and a lingering completion note.

    Errors do not accumulate: each failure replaces the previous message and
    any successful completion clears it.
    """

    def __init__(
        self,
        linger_seconds: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.linger_seconds = linger_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._state: SessionState = Idle()
        self._error: Optional[str] = None
        self._note: Optional[str] = None
        self._note_expires = 0.0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def status_text(self) -> str:
        with self._lock:
            if isinstance(self._state, Idle):
                if self._note and self._clock() < self._note_expires:
                    return self._note
                return ""
            return describe(self._state)

    @property
    def busy(self) -> bool:
        return isinstance(self._state, (Loading, Detecting, Exporting))

    def begin(self) -> None:
        """Start an operation: drop any previous error."""
        with self._lock:
            self._error = None
            self._note = None

    def set(self, state: SessionState) -> None:
        with self._lock:
            self._state = state

    def complete(self, note: Optional[str] = None) -> None:
        with self._lock:
            self._state = Idle()
            self._error = None
            self._note = note
            self._note_expires = self._clock() + self.linger_seconds

    def fail(self, message: str) -> None:
        with self._lock:
            self._state = Failed(message)
            self._error = message
            self._note = None

    def clear_error(self) -> None:
        """Drop the last error after a successful edit; a failed state becomes idle."""
        with self._lock:
            self._error = None
            if isinstance(self._state, Failed):
                self._state = Idle()

    def reset(self) -> None:
        with self._lock:
            self._state = Idle()
            self._error = None
            self._note = None
