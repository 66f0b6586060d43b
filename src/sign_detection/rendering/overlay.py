"""
Skeleton Overlay
=================

Drawing surface sized to the video and the renderer that draws the hand
skeleton onto it every detection cycle.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

from ..detection.hand_detector import FINGERTIPS, HandLandmarks

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]


@dataclass
class OverlayConfig:
    """Overlay drawing settings."""
    show_landmarks: bool = True
    show_connections: bool = True

    # Colors (BGR format)
    landmark_color: Color = (0, 255, 0)       # Green
    fingertip_color: Color = (0, 0, 255)      # Red
    connection_color: Color = (255, 255, 255)  # White

    landmark_radius: int = 5
    fingertip_radius: int = 8
    connection_thickness: int = 2

    @classmethod
    def from_dict(cls, config: dict) -> "OverlayConfig":
        """Create config from dictionary."""
        colors = config.get("colors", {})
        return cls(
            show_landmarks=config.get("show_landmarks", True),
            show_connections=config.get("show_connections", True),
            landmark_color=tuple(colors.get("landmarks", [0, 255, 0])),
            fingertip_color=tuple(colors.get("fingertips", [0, 0, 255])),
            connection_color=tuple(colors.get("connections", [255, 255, 255])),
            landmark_radius=config.get("landmark_radius", 5),
            fingertip_radius=config.get("fingertip_radius", 8),
            connection_thickness=config.get("connection_thickness", 2),
        )


class Canvas:
    """
    Resizable 2D drawing surface laid over the video.

    Pixels that were never drawn stay black, which ``composite`` treats
    as transparent.
    """

    def __init__(self, width: int = 0, height: int = 0):
        self._image = np.zeros((height, width, 3), dtype=np.uint8)

    @property
    def width(self) -> int:
        return self._image.shape[1]

    @property
    def height(self) -> int:
        return self._image.shape[0]

    @property
    def image(self) -> np.ndarray:
        return self._image

    def resize(self, width: int, height: int) -> bool:
        """Match the given size. Returns True if the surface was reallocated."""
        if (width, height) == (self.width, self.height):
            return False
        logger.debug("Canvas resized %dx%d -> %dx%d", self.width, self.height, width, height)
        self._image = np.zeros((height, width, 3), dtype=np.uint8)
        return True

    def clear(self) -> None:
        self._image[:] = 0

    def draw_point(self, center: Tuple[int, int], radius: int, color: Color) -> None:
        cv2.circle(self._image, center, radius, color, -1)

    def draw_line(self, start: Tuple[int, int], end: Tuple[int, int], color: Color, thickness: int = 2) -> None:
        cv2.line(self._image, start, end, color, thickness)

    def is_blank(self) -> bool:
        return not self._image.any()

    def composite(self, frame: np.ndarray) -> np.ndarray:
        """Return a copy of ``frame`` with the drawn pixels laid on top."""
        output = frame.copy()
        if output.shape[:2] != self._image.shape[:2]:
            return output
        mask = self._image.any(axis=2)
        output[mask] = self._image[mask]
        return output


class OverlayRenderer:
    """
    Draws the 21 landmarks and the finger/palm skeleton onto a Canvas.

    The canvas is cleared on every call, so rendering ``None`` (no hand this
    cycle) leaves nothing from the previous frame behind.

    Example:
        >>> renderer = OverlayRenderer(OverlayConfig())
        >>> canvas.resize(frame.width, frame.height)
        >>> renderer.render(hand_or_none, canvas)
    """

    # Each finger chain from the wrist, plus the palm base
    HAND_CONNECTIONS = [
        (0, 1), (1, 2), (2, 3), (3, 4),         # Thumb
        (0, 5), (5, 6), (6, 7), (7, 8),         # Index
        (0, 9), (9, 10), (10, 11), (11, 12),    # Middle
        (0, 13), (13, 14), (14, 15), (15, 16),  # Ring
        (0, 17), (17, 18), (18, 19), (19, 20),  # Pinky
        (5, 9), (9, 13), (13, 17),              # Palm
    ]

    def __init__(self, config: Optional[OverlayConfig] = None):
        self.config = config or OverlayConfig()

    def render(self, hand: Optional[HandLandmarks], canvas: Canvas) -> None:
        canvas.clear()
        if hand is None:
            return

        if self.config.show_connections:
            for start_idx, end_idx in self.HAND_CONNECTIONS:
                canvas.draw_line(
                    hand.landmarks[start_idx].point,
                    hand.landmarks[end_idx].point,
                    self.config.connection_color,
                    self.config.connection_thickness,
                )

        if self.config.show_landmarks:
            for i, lm in enumerate(hand.landmarks):
                if i in FINGERTIPS:
                    canvas.draw_point(lm.point, self.config.fingertip_radius, self.config.fingertip_color)
                else:
                    canvas.draw_point(lm.point, self.config.landmark_radius, self.config.landmark_color)
