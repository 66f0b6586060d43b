"""
UI State Bridge
================

Read-only projection of the detection session for the presentation layer,
plus the single user command: toggle detection on or off.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..control.scheduler import DetectionScheduler

logger = logging.getLogger(__name__)

# Confidence strictly above this gets the "recognized" treatment
CONFIDENCE_HIGHLIGHT = 0.9


@dataclass(frozen=True)
class UIView:
    """Everything the presentation layer needs to draw one frame."""
    message: Optional[str]
    confidence: float
    active: bool
    loading: bool = False

    @property
    def fill_percent(self) -> float:
        """Confidence bar fill, 0-100."""
        return max(0.0, min(100.0, self.confidence * 100.0))

    @property
    def bar_color(self) -> str:
        return "green" if self.confidence > CONFIDENCE_HIGHLIGHT else "orange"

    @property
    def toggle_label(self) -> str:
        if self.loading:
            return "Loading..."
        return "Stop Detection" if self.active else "Start Detection"

    @property
    def toggle_color(self) -> str:
        if self.loading:
            return "orange"
        return "red" if self.active else "green"


class UIStateBridge:
    """
    Pass-through between the scheduler's session state and the UI.

    With ``background_load`` (the default) starting detection returns
    immediately and the estimator loads on its own thread, so the window
    keeps drawing frames meanwhile.
    """

    def __init__(self, scheduler: DetectionScheduler, background_load: bool = True):
        self._scheduler = scheduler
        self.background_load = background_load

    def view(self) -> UIView:
        snapshot = self._scheduler.state.snapshot()
        return UIView(
            message=snapshot.message,
            confidence=snapshot.confidence,
            active=snapshot.active,
            loading=self._scheduler.is_loading,
        )

    def toggle(self) -> bool:
        """Start if idle, stop if running. Returns the new active flag."""
        if self._scheduler.is_running:
            self._scheduler.stop()
        elif self._scheduler.is_loading:
            logger.info("Model still loading; toggle ignored")
        elif self.background_load:
            self._scheduler.start_async()
        else:
            self._scheduler.start()
        return self._scheduler.state.active

    def compose(self, frame: np.ndarray) -> np.ndarray:
        """Video frame with the current overlay drawn on top."""
        with self._scheduler.state.lock:
            return self._scheduler.canvas.composite(frame)
