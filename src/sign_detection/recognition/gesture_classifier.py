"""
Static Gesture Classifier
==========================

Rule-based gesture recognition using hand landmark geometry.
Each finger is reduced to a curl bucket (from joint angles) and a
pointing direction (from its distal segment), then scored against every
entry in the gesture catalogue.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..detection.hand_detector import HandLandmarks, LandmarkIndex
from .gesture_descriptions import (
    DEFAULT_CATALOGUE,
    Finger,
    FingerConstraint,
    FingerCurl,
    FingerDirection,
    GestureCatalogue,
    GestureDescription,
)

logger = logging.getLogger(__name__)

# Finger joint chains base -> tip
FINGER_JOINTS = {
    Finger.THUMB: (LandmarkIndex.THUMB_CMC, LandmarkIndex.THUMB_MCP, LandmarkIndex.THUMB_IP, LandmarkIndex.THUMB_TIP),
    Finger.INDEX: (LandmarkIndex.INDEX_MCP, LandmarkIndex.INDEX_PIP, LandmarkIndex.INDEX_DIP, LandmarkIndex.INDEX_TIP),
    Finger.MIDDLE: (LandmarkIndex.MIDDLE_MCP, LandmarkIndex.MIDDLE_PIP, LandmarkIndex.MIDDLE_DIP, LandmarkIndex.MIDDLE_TIP),
    Finger.RING: (LandmarkIndex.RING_MCP, LandmarkIndex.RING_PIP, LandmarkIndex.RING_DIP, LandmarkIndex.RING_TIP),
    Finger.PINKY: (LandmarkIndex.PINKY_MCP, LandmarkIndex.PINKY_PIP, LandmarkIndex.PINKY_DIP, LandmarkIndex.PINKY_TIP),
}

# Sector centres in degrees, counter-clockwise from +x with y pointing up
_DIRECTION_SECTORS = [
    (0.0, FingerDirection.HORIZONTAL_RIGHT),
    (45.0, FingerDirection.DIAGONAL_UP_RIGHT),
    (90.0, FingerDirection.VERTICAL_UP),
    (135.0, FingerDirection.DIAGONAL_UP_LEFT),
    (180.0, FingerDirection.HORIZONTAL_LEFT),
    (225.0, FingerDirection.DIAGONAL_DOWN_LEFT),
    (270.0, FingerDirection.VERTICAL_DOWN),
    (315.0, FingerDirection.DIAGONAL_DOWN_RIGHT),
]

HALF_CREDIT = 0.5


@dataclass(frozen=True)
class GestureMatch:
    """Score of one catalogue entry for one landmark set."""
    name: str
    score: float

    def __repr__(self):
        return "GestureMatch(%s, score=%.2f)" % (self.name, self.score)


@dataclass(frozen=True)
class FingerState:
    curl: FingerCurl
    direction: Optional[FingerDirection]  # None when undefined
    angle: float  # Combined interior joint angle, degrees


@dataclass
class ClassifierConfig:
    """Gesture classifier configuration."""
    # Combined interior angle at or above this = no curl
    no_curl_angle: float = 150.0
    thumb_no_curl_angle: float = 140.0
    # Combined interior angle at or above this = half curl, below = full curl
    half_curl_angle: float = 100.0
    # A gesture is only reported above this score
    confidence_threshold: float = 0.9
    debug: bool = False

    @classmethod
    def from_dict(cls, config: dict) -> "ClassifierConfig":
        """Create config from dictionary."""
        return cls(
            no_curl_angle=config.get("no_curl_angle", 150.0),
            thumb_no_curl_angle=config.get("thumb_no_curl_angle", 140.0),
            half_curl_angle=config.get("half_curl_angle", 100.0),
            confidence_threshold=config.get("confidence_threshold", 0.9),
            debug=config.get("debug", False),
        )


def joint_angle(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> float:
    """Interior angle at ``b`` in degrees (180 = straight)."""
    ba = a - b
    bc = c - b
    norm = np.linalg.norm(ba) * np.linalg.norm(bc)
    if not np.isfinite(norm) or norm < 1e-9:
        return 180.0
    cosine = np.clip(np.dot(ba, bc) / norm, -1.0, 1.0)
    return float(np.degrees(np.arccos(cosine)))


def segment_direction(start: np.ndarray, end: np.ndarray) -> Optional[FingerDirection]:
    """
    Classify a segment into one of eight 45-degree sectors.

    Returns None for non-finite coordinates; no constraint accepts it.
    """
    dx = end[0] - start[0]
    dy = start[1] - end[1]  # Image y grows downward
    if not (math.isfinite(dx) and math.isfinite(dy)):
        return None
    angle = math.degrees(math.atan2(dy, dx)) % 360.0
    index = int(((angle + 22.5) % 360.0) // 45.0) % len(_DIRECTION_SECTORS)
    return _DIRECTION_SECTORS[index][1]


class FingerPoseEstimator:
    """Derives per-finger curl and direction descriptors from landmarks."""

    def __init__(self, config: Optional[ClassifierConfig] = None):
        self.config = config or ClassifierConfig()

    def estimate(self, hand: HandLandmarks) -> Dict[Finger, FingerState]:
        points = hand.to_numpy()
        return {finger: self._finger_state(finger, points) for finger in Finger}

    def _finger_state(self, finger: Finger, points: np.ndarray) -> FingerState:
        base, mid1, mid2, tip = (points[i] for i in FINGER_JOINTS[finger])

        first = joint_angle(base, mid1, mid2)
        second = joint_angle(mid1, mid2, tip)

        if finger is Finger.THUMB:
            angle = (first + second) / 2.0
            no_curl = self.config.thumb_no_curl_angle
        else:
            # PIP has the larger range of motion
            angle = first * 0.6 + second * 0.4
            no_curl = self.config.no_curl_angle

        if angle >= no_curl:
            curl = FingerCurl.NO_CURL
        elif angle >= self.config.half_curl_angle:
            curl = FingerCurl.HALF_CURL
        else:
            curl = FingerCurl.FULL_CURL

        return FingerState(curl=curl, direction=segment_direction(mid2, tip), angle=angle)


def finger_match(constraint: FingerConstraint, state: FingerState) -> float:
    """1.0 for an exact match, 0.5 when curl is one bucket off, else 0.0."""
    if state.direction not in constraint.directions:
        return 0.0
    distance = abs(constraint.curl.value - state.curl.value)
    if distance == 0:
        return 1.0
    if distance == 1:
        return HALF_CREDIT
    return 0.0


def score_gesture(description: GestureDescription, pose: Dict[Finger, FingerState]) -> float:
    """Weighted mean of the per-finger match indicators."""
    total = 0.0
    for finger, constraint in description.constraints.items():
        total += constraint.weight * finger_match(constraint, pose[finger])
    return min(1.0, max(0.0, total / description.total_weight))


class GestureClassifier:
    """
    Scores a landmark set against every entry of a gesture catalogue.

    ``classify`` is pure: the same landmarks always produce the same
    matches, one per catalogue entry, in catalogue order. Picking the
    winner is left to ``select_gesture``.

    Example:
        >>> classifier = GestureClassifier()
        >>> matches = classifier.classify(hand_landmarks)
        >>> winner = select_gesture(matches)
        >>> if winner:
        ...     print("%s Detected!" % winner.name)
    """

    def __init__(
        self,
        config: Optional[ClassifierConfig] = None,
        catalogue: Optional[GestureCatalogue] = None,
    ):
        self.config = config or ClassifierConfig()
        self.catalogue = catalogue or DEFAULT_CATALOGUE
        self._pose_estimator = FingerPoseEstimator(self.config)

    def classify(self, hand: Optional[HandLandmarks]) -> List[GestureMatch]:
        """
        Classify hand gesture from landmarks.

        Args:
            hand: Landmark set, or None when no hand is present

        Returns:
            One GestureMatch per catalogue entry; empty when no hand
        """
        if hand is None:
            return []

        pose = self._pose_estimator.estimate(hand)

        if self.config.debug:
            logger.debug("Finger pose: %s", {
                f.value: (s.curl.name, s.direction and s.direction.value, round(s.angle))
                for f, s in pose.items()
            })

        return [GestureMatch(d.name, score_gesture(d, pose)) for d in self.catalogue]


def best_match(matches: Sequence[GestureMatch]) -> Optional[GestureMatch]:
    """Highest score wins; on an exact tie the earlier entry is kept."""
    best = None
    for match in matches:
        if best is None or match.score > best.score:
            best = match
    return best


def select_gesture(matches: Sequence[GestureMatch], threshold: float = 0.9) -> Optional[GestureMatch]:
    """Return the winning match only if its score exceeds ``threshold``."""
    best = best_match(matches)
    if best is None or best.score <= threshold:
        return None
    return best
