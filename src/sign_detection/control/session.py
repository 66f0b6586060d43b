"""
Detection Session State
========================

Single-writer state shared between the detection scheduler (writer) and
the UI bridge (reader). Readers take immutable snapshots; the scheduler
holds ``lock`` while applying a cycle's result so that cancellation and
application cannot interleave.
"""

import threading
from dataclasses import dataclass
from typing import Optional

INITIAL_MESSAGE = "Start Hand Detection!"


@dataclass(frozen=True)
class SessionSnapshot:
    """Point-in-time view of the session."""
    active: bool
    message: Optional[str]
    confidence: float


class SessionState:
    """
    Owned by one DetectionScheduler. Only the scheduler calls the
    mutating methods; everything else reads ``snapshot()``.
    """

    def __init__(self):
        self.lock = threading.RLock()
        self._active = False
        self._message: Optional[str] = INITIAL_MESSAGE
        self._confidence = 0.0

    def snapshot(self) -> SessionSnapshot:
        with self.lock:
            return SessionSnapshot(self._active, self._message, self._confidence)

    @property
    def active(self) -> bool:
        with self.lock:
            return self._active

    @property
    def message(self) -> Optional[str]:
        with self.lock:
            return self._message

    @property
    def confidence(self) -> float:
        with self.lock:
            return self._confidence

    # --- writer API (scheduler only) ---

    def set_message(self, message: Optional[str]) -> None:
        with self.lock:
            self._message = message

    def begin(self, message: str) -> None:
        with self.lock:
            self._active = True
            self._confidence = 0.0
            self._message = message

    def apply_detection(self, message: Optional[str], confidence: float) -> None:
        with self.lock:
            self._message = message
            self._confidence = min(1.0, max(0.0, confidence))

    def end(self, message: str) -> None:
        with self.lock:
            self._active = False
            self._confidence = 0.0
            self._message = message


class CancellationToken:
    """Cooperative cancellation flag checked by the detection loop."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; True if cancelled meanwhile."""
        return self._event.wait(timeout)
