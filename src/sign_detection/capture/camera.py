"""
Camera Capture Module
======================

Video source for the detection loop. A background thread keeps the
latest frame so the periodic detection cycle never blocks on the device.
"""

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    device_id: int = 0
    width: int = 640
    height: int = 480
    fps: int = 30
    buffer_size: int = 1  # Minimal buffering for low latency
    threaded: bool = True
    flip_horizontal: bool = True
    warmup_frames: int = 5

    @classmethod
    def from_dict(cls, config: dict) -> "CameraConfig":
        """Create config from dictionary (YAML parsed)."""
        return cls(
            device_id=config.get("device_id", 0),
            width=config.get("width", 640),
            height=config.get("height", 480),
            fps=config.get("fps", 30),
            buffer_size=config.get("buffer_size", 1),
            threaded=config.get("threaded", True),
            flip_horizontal=config.get("flip_horizontal", True),
            warmup_frames=config.get("warmup_frames", 5),
        )


@dataclass
class Frame:
    """Container for captured frame with metadata."""
    image: np.ndarray
    timestamp: float
    frame_number: int

    @property
    def width(self) -> int:
        """Native frame width in pixels."""
        return self.image.shape[1]

    @property
    def height(self) -> int:
        """Native frame height in pixels."""
        return self.image.shape[0]

    @property
    def rgb(self) -> np.ndarray:
        """Convert BGR to RGB."""
        return cv2.cvtColor(self.image, cv2.COLOR_BGR2RGB)


class Camera:
    """
    OpenCV camera capture with optional threading.

    Readiness (``is_ready``) is only reported once a first frame has been
    captured, so consumers can poll it before each cycle.

    Example:
        >>> camera = Camera(CameraConfig())
        >>> camera.start()
        >>> if camera.is_ready:
        ...     frame = camera.read()
        >>> camera.stop()
    """

    def __init__(self, config: Optional[CameraConfig] = None):
        self.config = config or CameraConfig()
        self._cap: Optional[cv2.VideoCapture] = None
        self._frame_number = 0
        self._running = False

        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._latest_frame: Optional[Frame] = None

        self._capture_times = deque(maxlen=30)  # type: deque

    def start(self) -> bool:
        """
        Start camera capture.

        Returns:
            True if camera started successfully
        """
        if self._running:
            return True

        logger.info("Starting camera (device=%d, %dx%d@%dfps)",
                    self.config.device_id, self.config.width, self.config.height, self.config.fps)

        self._cap = cv2.VideoCapture(self.config.device_id)
        if not self._cap.isOpened():
            logger.error("Failed to open camera device %d", self.config.device_id)
            self._cap.release()
            self._cap = None
            return False

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)
        self._cap.set(cv2.CAP_PROP_FPS, self.config.fps)
        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, self.config.buffer_size)

        actual_width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        logger.info("Camera initialized: %dx%d", actual_width, actual_height)

        # Warm up camera to stabilize exposure
        for _ in range(self.config.warmup_frames):
            self._cap.read()

        self._running = True
        self._frame_number = 0
        self._latest_frame = None

        if self.config.threaded:
            self._thread = threading.Thread(target=self._capture_loop, name="camera-capture", daemon=True)
            self._thread.start()
            logger.info("Started threaded capture")

        return True

    def stop(self) -> None:
        """Stop camera capture and release resources."""
        if not self._running and self._cap is None:
            return

        logger.info("Stopping camera...")
        self._running = False

        if self._thread:
            self._thread.join(timeout=1.0)
            self._thread = None

        if self._cap:
            self._cap.release()
            self._cap = None

        with self._lock:
            self._latest_frame = None

        logger.info("Camera stopped")

    def read(self) -> Optional[Frame]:
        """
        Read the latest frame.

        In threaded mode, returns the most recent captured frame.
        In synchronous mode, captures a new frame.

        Returns:
            Frame or None if no frame is available
        """
        if not self._running:
            return None

        if self.config.threaded:
            with self._lock:
                return self._latest_frame
        return self._capture_frame()

    def _capture_frame(self) -> Optional[Frame]:
        """Capture a single frame from the camera."""
        if not self._cap:
            return None

        start_time = time.perf_counter()
        ret, image = self._cap.read()
        capture_time = time.perf_counter() - start_time

        if not ret or image is None:
            logger.warning("Failed to capture frame")
            return None

        # Mirror so the overlay matches the user's own movement
        if self.config.flip_horizontal:
            image = cv2.flip(image, 1)

        self._frame_number += 1
        self._capture_times.append(capture_time)

        return Frame(image=image, timestamp=time.time(), frame_number=self._frame_number)

    def _capture_loop(self) -> None:
        """Background thread for continuous frame capture."""
        while self._running:
            frame = self._capture_frame()
            if frame:
                with self._lock:
                    self._latest_frame = frame
            else:
                time.sleep(0.005)

    @property
    def is_running(self) -> bool:
        """Check if camera is currently running."""
        return self._running

    @property
    def is_ready(self) -> bool:
        """True once frames are being produced."""
        if not self._running:
            return False
        if self.config.threaded:
            with self._lock:
                return self._latest_frame is not None
        return self._cap is not None and self._cap.isOpened()

    @property
    def resolution(self) -> Tuple[int, int]:
        """Native resolution of the latest frame, or the requested one."""
        with self._lock:
            frame = self._latest_frame
        if frame is not None:
            return (frame.width, frame.height)
        return (self.config.width, self.config.height)

    @property
    def avg_capture_time_ms(self) -> float:
        """Get average frame capture time in milliseconds."""
        if not self._capture_times:
            return 0.0
        return (sum(self._capture_times) / len(self._capture_times)) * 1000

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
