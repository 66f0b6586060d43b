"""
Hand Landmark Estimation - MediaPipe Tasks API
===============================================

Wraps the MediaPipe HandLandmarker as the landmark estimator for the
detection loop. Landmarks are reported in pixel coordinates of the
source frame so they can be drawn 1:1 onto an overlay of the same size.
"""

import logging
import urllib.request
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import List, NamedTuple, Optional, Tuple

import numpy as np
import mediapipe as mp
from mediapipe.tasks import python
from mediapipe.tasks.python import vision

logger = logging.getLogger(__name__)

# Model download URL
HAND_LANDMARKER_MODEL_URL = "https://storage.googleapis.com/mediapipe-models/hand_landmarker/hand_landmarker/float16/1/hand_landmarker.task"
DEFAULT_MODEL_PATH = Path.home() / ".cache" / "sign_detection" / "hand_landmarker.task"

NUM_LANDMARKS = 21


class LandmarkIndex(IntEnum):
    """Hand landmark indices: wrist, then four joints per finger base to tip."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


FINGERTIPS = (
    LandmarkIndex.THUMB_TIP,
    LandmarkIndex.INDEX_TIP,
    LandmarkIndex.MIDDLE_TIP,
    LandmarkIndex.RING_TIP,
    LandmarkIndex.PINKY_TIP,
)


class Landmark(NamedTuple):
    """A single landmark point in source-frame pixels."""
    x: float
    y: float
    z: float  # Depth relative to wrist, scaled like x

    @property
    def point(self) -> Tuple[int, int]:
        """Integer pixel position for drawing."""
        return (int(round(self.x)), int(round(self.y)))


@dataclass
class HandDetectorConfig:
    """Configuration for the hand landmark estimator."""
    model_path: str = ""
    max_num_hands: int = 1
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5
    min_presence_confidence: float = 0.5
    running_mode: str = "VIDEO"  # IMAGE or VIDEO

    @classmethod
    def from_dict(cls, d: dict) -> "HandDetectorConfig":
        """Create config from dictionary."""
        return cls(
            model_path=d.get("model_path", ""),
            max_num_hands=d.get("max_num_hands", 1),
            min_detection_confidence=d.get("min_detection_confidence", 0.5),
            min_tracking_confidence=d.get("min_tracking_confidence", 0.5),
            min_presence_confidence=d.get("min_presence_confidence", 0.5),
            running_mode=d.get("running_mode", "VIDEO"),
        )


@dataclass
class HandLandmarks:
    """One hand's landmark set (always 21 points) with metadata."""
    landmarks: List[Landmark]
    handedness: str = "Right"
    confidence: float = 1.0
    image_width: int = 640
    image_height: int = 480

    def __post_init__(self):
        if len(self.landmarks) != NUM_LANDMARKS:
            raise ValueError("Expected %d landmarks, got %d" % (NUM_LANDMARKS, len(self.landmarks)))

    def get(self, index: LandmarkIndex) -> Landmark:
        """Get landmark by index."""
        return self.landmarks[index]

    def to_numpy(self) -> np.ndarray:
        """Convert landmarks to numpy array of shape (21, 3)."""
        return np.array([[lm.x, lm.y, lm.z] for lm in self.landmarks], dtype=np.float64)


def download_model(url: str, save_path: Path) -> None:
    """Download the hand landmarker model if not present."""
    if save_path.exists():
        return

    save_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Downloading hand landmarker model to %s...", save_path)
    urllib.request.urlretrieve(url, save_path)
    logger.info("Model download complete")


class HandDetector:
    """
    Landmark estimator backed by the MediaPipe HandLandmarker.

    ``load()`` is the slow, fallible acquisition step; ``estimate()`` is
    called once per detection cycle.

    Example:
        >>> detector = HandDetector(HandDetectorConfig())
        >>> handle = detector.load()
        >>> hands = handle.estimate(frame.rgb)  # RGB format!
        >>> detector.close()
    """

    def __init__(self, config: Optional[HandDetectorConfig] = None):
        self.config = config or HandDetectorConfig()
        self._landmarker = None
        self._frame_timestamp = 0

    @property
    def is_loaded(self) -> bool:
        return self._landmarker is not None

    def load(self) -> "HandDetector":
        """
        Create the HandLandmarker, downloading the model on first use.

        Returns:
            This detector, ready for ``estimate()``

        Raises:
            RuntimeError: If the model cannot be fetched or initialized
        """
        if self._landmarker is not None:
            return self

        model_path = Path(self.config.model_path or DEFAULT_MODEL_PATH)

        try:
            download_model(HAND_LANDMARKER_MODEL_URL, model_path)

            if self.config.running_mode == "IMAGE":
                running_mode = vision.RunningMode.IMAGE
            else:
                running_mode = vision.RunningMode.VIDEO

            options = vision.HandLandmarkerOptions(
                base_options=python.BaseOptions(model_asset_path=str(model_path)),
                running_mode=running_mode,
                num_hands=self.config.max_num_hands,
                min_hand_detection_confidence=self.config.min_detection_confidence,
                min_hand_presence_confidence=self.config.min_presence_confidence,
                min_tracking_confidence=self.config.min_tracking_confidence,
            )
            self._landmarker = vision.HandLandmarker.create_from_options(options)
        except Exception as e:
            raise RuntimeError("Failed to initialize HandLandmarker: %s" % e) from e

        logger.info("HandLandmarker initialized with model: %s", model_path)
        logger.info("Running mode: %s, Max hands: %d",
                    self.config.running_mode, self.config.max_num_hands)
        return self

    def close(self) -> None:
        """Release resources."""
        if self._landmarker is not None:
            self._landmarker.close()
            self._landmarker = None
            logger.info("HandLandmarker closed")

    def estimate(self, image: np.ndarray, timestamp_ms: Optional[int] = None) -> List[HandLandmarks]:
        """
        Estimate hand landmarks in the given image.

        Args:
            image: RGB image as numpy array (H, W, 3)
            timestamp_ms: Timestamp in milliseconds (VIDEO mode)

        Returns:
            List of HandLandmarks, empty when no hand is visible
        """
        if self._landmarker is None:
            raise RuntimeError("HandLandmarker not loaded. Call load() first.")

        height, width = image.shape[:2]
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=image)

        if self.config.running_mode == "IMAGE":
            result = self._landmarker.detect(mp_image)
        else:
            # VIDEO mode requires monotonically increasing timestamps
            if timestamp_ms is None:
                self._frame_timestamp += 33
                timestamp_ms = self._frame_timestamp
            else:
                self._frame_timestamp = timestamp_ms
            result = self._landmarker.detect_for_video(mp_image, timestamp_ms)

        hands = []
        for i, hand_landmarks in enumerate(result.hand_landmarks):
            handedness = "Right"
            confidence = 0.0
            if result.handedness and len(result.handedness) > i:
                handedness = result.handedness[i][0].category_name
                confidence = result.handedness[i][0].score

            # Normalized -> pixel coordinates of the source frame
            landmarks = [
                Landmark(x=lm.x * width, y=lm.y * height, z=lm.z * width)
                for lm in hand_landmarks
            ]

            hands.append(HandLandmarks(
                landmarks=landmarks,
                handedness=handedness,
                confidence=confidence,
                image_width=width,
                image_height=height,
            ))

        return hands

    def __enter__(self):
        return self.load()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
