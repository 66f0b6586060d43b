"""
Detection Window
=================

OpenCV HighGUI presentation: video with skeleton overlay, status message,
confidence bar and the start/stop toggle.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

from .state_bridge import UIStateBridge, UIView

logger = logging.getLogger(__name__)

# BGR
_COLORS = {
    "green": (0, 200, 0),
    "orange": (0, 165, 255),
    "red": (0, 0, 220),
}

KEY_QUIT = (ord("q"), 27)
KEY_TOGGLE = (ord(" "), ord("s"))


@dataclass
class WindowConfig:
    """Window presentation settings."""
    title: str = "Sign Detection App"
    show_rate: bool = True
    text_color: Tuple[int, int, int] = (255, 255, 255)
    font_scale: float = 0.8
    font_thickness: int = 2
    bar_height: int = 16

    @classmethod
    def from_dict(cls, config: dict) -> "WindowConfig":
        return cls(
            title=config.get("title", "Sign Detection App"),
            show_rate=config.get("show_rate", True),
            text_color=tuple(config.get("text_color", [255, 255, 255])),
            font_scale=config.get("font_scale", 0.8),
            font_thickness=config.get("font_thickness", 2),
            bar_height=config.get("bar_height", 16),
        )


class DetectionWindow:
    """
    Draws the UI onto each video frame and maps keys to the toggle.

    Keyboard:
        space / s  - start or stop detection
        q / ESC    - quit
    """

    def __init__(self, bridge: UIStateBridge, config: Optional[WindowConfig] = None):
        self.bridge = bridge
        self.config = config or WindowConfig()
        self._font = cv2.FONT_HERSHEY_SIMPLEX

    def render(self, frame: np.ndarray, cycle_rate: float = 0.0) -> np.ndarray:
        """Compose overlay and UI elements onto a copy of ``frame``."""
        view = self.bridge.view()
        display = self.bridge.compose(frame)

        self.draw_message(display, view)
        self.draw_confidence_bar(display, view)
        self.draw_toggle(display, view)

        if self.config.show_rate and view.active:
            width = display.shape[1]
            cv2.putText(display, "Cycles: %.1f/s" % cycle_rate, (width - 170, 30),
                        self._font, 0.5, self.config.text_color, 1)
        return display

    def draw_message(self, image: np.ndarray, view: UIView) -> np.ndarray:
        if not view.message:
            return image
        cv2.putText(image, view.message, (20, 40), self._font,
                    self.config.font_scale, (0, 0, 0), self.config.font_thickness + 2)
        cv2.putText(image, view.message, (20, 40), self._font,
                    self.config.font_scale, self.config.text_color, self.config.font_thickness)
        return image

    def draw_confidence_bar(self, image: np.ndarray, view: UIView) -> np.ndarray:
        height, width = image.shape[:2]
        x0, x1 = 20, width - 20
        y1 = height - 50
        y0 = y1 - self.config.bar_height

        cv2.rectangle(image, (x0, y0), (x1, y1), (60, 60, 60), -1)
        fill = int((x1 - x0) * view.fill_percent / 100.0)
        if fill > 0:
            cv2.rectangle(image, (x0, y0), (x0 + fill, y1), _COLORS[view.bar_color], -1)
        cv2.rectangle(image, (x0, y0), (x1, y1), self.config.text_color, 1)
        return image

    def draw_toggle(self, image: np.ndarray, view: UIView) -> np.ndarray:
        height = image.shape[0]
        label = "[space] %s" % view.toggle_label
        (text_w, text_h), _ = cv2.getTextSize(label, self._font, 0.6, 2)
        x, y = 20, height - 15
        cv2.rectangle(image, (x - 6, y - text_h - 6), (x + text_w + 6, y + 6),
                      _COLORS[view.toggle_color], -1)
        cv2.putText(image, label, (x, y), self._font, 0.6, (255, 255, 255), 2)
        return image

    def show(self, display: np.ndarray) -> bool:
        """
        Show a frame and handle one key press.

        Returns:
            False when the user asked to quit
        """
        cv2.imshow(self.config.title, display)
        key = cv2.waitKey(1) & 0xFF
        if key in KEY_QUIT:
            return False
        if key in KEY_TOGGLE:
            active = self.bridge.toggle()
            logger.info("Detection toggled by user (active=%s)", active)
        return True

    def close(self) -> None:
        cv2.destroyWindow(self.config.title)
