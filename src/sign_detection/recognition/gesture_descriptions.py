"""
Gesture Descriptor Catalogue
=============================

Canonical gestures described as per-finger pose constraints. The scoring
algorithm is shared by every entry, so a new gesture is a new table entry
(here or in ``config/gestures.yaml``) and nothing else.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Iterator, List, Mapping, Union

import yaml

logger = logging.getLogger(__name__)


class Finger(Enum):
    """Fingers in anatomical order."""
    THUMB = "thumb"
    INDEX = "index"
    MIDDLE = "middle"
    RING = "ring"
    PINKY = "pinky"


class FingerCurl(Enum):
    """Discretized bend state of a finger. Values are ordered buckets."""
    NO_CURL = 0
    HALF_CURL = 1
    FULL_CURL = 2

    @classmethod
    def from_string(cls, name: str) -> "FingerCurl":
        try:
            return _CURL_NAMES[name]
        except KeyError:
            raise ValueError("Unknown curl: %r" % name) from None


_CURL_NAMES = {
    "none": FingerCurl.NO_CURL,
    "no_curl": FingerCurl.NO_CURL,
    "half": FingerCurl.HALF_CURL,
    "half_curl": FingerCurl.HALF_CURL,
    "full": FingerCurl.FULL_CURL,
    "full_curl": FingerCurl.FULL_CURL,
}


class FingerDirection(Enum):
    """Pointing direction of a finger's distal segment in the image plane."""
    VERTICAL_UP = "up"
    VERTICAL_DOWN = "down"
    HORIZONTAL_LEFT = "left"
    HORIZONTAL_RIGHT = "right"
    DIAGONAL_UP_LEFT = "up_left"
    DIAGONAL_UP_RIGHT = "up_right"
    DIAGONAL_DOWN_LEFT = "down_left"
    DIAGONAL_DOWN_RIGHT = "down_right"


UP_DIRECTIONS = frozenset({
    FingerDirection.VERTICAL_UP,
    FingerDirection.DIAGONAL_UP_LEFT,
    FingerDirection.DIAGONAL_UP_RIGHT,
})
SIDE_DIRECTIONS = frozenset({
    FingerDirection.HORIZONTAL_LEFT,
    FingerDirection.HORIZONTAL_RIGHT,
})
FOLDED_DIRECTIONS = frozenset({
    FingerDirection.VERTICAL_DOWN,
    FingerDirection.DIAGONAL_DOWN_LEFT,
    FingerDirection.DIAGONAL_DOWN_RIGHT,
}) | SIDE_DIRECTIONS


@dataclass(frozen=True)
class FingerConstraint:
    """Required curl and permitted directions for one finger."""
    curl: FingerCurl
    directions: FrozenSet[FingerDirection]
    weight: float = 1.0

    def __post_init__(self):
        if self.weight <= 0:
            raise ValueError("Finger weight must be positive, got %r" % self.weight)
        if not self.directions:
            raise ValueError("At least one permitted direction is required")
        object.__setattr__(self, "directions", frozenset(self.directions))


@dataclass(frozen=True)
class GestureDescription:
    """A named canonical gesture: one constraint per finger."""
    name: str
    constraints: Mapping[Finger, FingerConstraint] = field(hash=False)

    def __post_init__(self):
        missing = [f.value for f in Finger if f not in self.constraints]
        if missing:
            raise ValueError("Gesture %r has no constraint for: %s" % (self.name, ", ".join(missing)))
        object.__setattr__(self, "constraints", MappingProxyType(dict(self.constraints)))

    @property
    def total_weight(self) -> float:
        return sum(c.weight for c in self.constraints.values())


class GestureCatalogue:
    """Ordered, read-only collection of gesture descriptions."""

    def __init__(self, descriptions: Iterable[GestureDescription]):
        self._descriptions = tuple(descriptions)
        names = [d.name for d in self._descriptions]
        if len(set(names)) != len(names):
            raise ValueError("Duplicate gesture names in catalogue: %s" % names)

    def __iter__(self) -> Iterator[GestureDescription]:
        return iter(self._descriptions)

    def __len__(self) -> int:
        return len(self._descriptions)

    def __getitem__(self, name: str) -> GestureDescription:
        for description in self._descriptions:
            if description.name == name:
                return description
        raise KeyError(name)

    @property
    def names(self) -> List[str]:
        return [d.name for d in self._descriptions]


VICTORY = GestureDescription(
    name="VictoryGesture",
    constraints={
        Finger.THUMB: FingerConstraint(FingerCurl.HALF_CURL, UP_DIRECTIONS | SIDE_DIRECTIONS, weight=0.5),
        Finger.INDEX: FingerConstraint(FingerCurl.NO_CURL, UP_DIRECTIONS, weight=2.0),
        Finger.MIDDLE: FingerConstraint(FingerCurl.NO_CURL, UP_DIRECTIONS, weight=2.0),
        Finger.RING: FingerConstraint(FingerCurl.FULL_CURL, FOLDED_DIRECTIONS),
        Finger.PINKY: FingerConstraint(FingerCurl.FULL_CURL, FOLDED_DIRECTIONS),
    },
)

THUMBS_UP = GestureDescription(
    name="ThumbsUpGesture",
    constraints={
        Finger.THUMB: FingerConstraint(FingerCurl.NO_CURL, UP_DIRECTIONS),
        Finger.INDEX: FingerConstraint(FingerCurl.FULL_CURL, SIDE_DIRECTIONS),
        Finger.MIDDLE: FingerConstraint(FingerCurl.FULL_CURL, SIDE_DIRECTIONS),
        Finger.RING: FingerConstraint(FingerCurl.FULL_CURL, SIDE_DIRECTIONS),
        Finger.PINKY: FingerConstraint(FingerCurl.FULL_CURL, SIDE_DIRECTIONS),
    },
)

DEFAULT_CATALOGUE = GestureCatalogue([VICTORY, THUMBS_UP])


def _parse_constraint(gesture: str, finger: str, entry: dict) -> FingerConstraint:
    directions = entry.get("directions", [])
    if isinstance(directions, str):
        directions = [directions]
    if not isinstance(directions, (list, tuple)):
        raise ValueError("%s.%s: directions must be a list" % (gesture, finger))
    try:
        parsed = frozenset(FingerDirection(d) for d in directions)
    except ValueError as e:
        raise ValueError("%s.%s: %s" % (gesture, finger, e)) from None
    return FingerConstraint(
        curl=FingerCurl.from_string(str(entry.get("curl", ""))),
        directions=parsed,
        weight=float(entry.get("weight", 1.0)),
    )


def _require_mapping(value, what: str) -> dict:
    if not isinstance(value, dict):
        raise ValueError("%s must be a mapping, got %s" % (what, type(value).__name__))
    return value


def catalogue_from_dict(data: Dict[str, dict]) -> GestureCatalogue:
    """
    Build a catalogue from a ``name -> {finger -> constraint}`` mapping.

    Entry order is preserved, so YAML order is catalogue order.

    Raises:
        ValueError: On a non-mapping section or unknown finger, curl or
            direction names
    """
    descriptions = []
    for name, fingers in _require_mapping(data, "Gesture catalogue").items():
        constraints = {}
        for finger_name, entry in _require_mapping(fingers or {}, "Gesture %r" % name).items():
            try:
                finger = Finger(finger_name)
            except ValueError:
                raise ValueError("%s: unknown finger %r" % (name, finger_name)) from None
            entry = _require_mapping(entry or {}, "%s.%s" % (name, finger_name))
            constraints[finger] = _parse_constraint(name, finger_name, entry)
        descriptions.append(GestureDescription(name=name, constraints=constraints))
    return GestureCatalogue(descriptions)


def load_catalogue(path: Union[str, Path]) -> GestureCatalogue:
    """Load a gesture catalogue from a YAML file."""
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    data = _require_mapping(data, "Gestures file root")
    catalogue = catalogue_from_dict(data.get("gestures", data))
    logger.info("Loaded %d gestures from %s: %s", len(catalogue), path, ", ".join(catalogue.names))
    return catalogue
