"""Gesture catalogue and rule-based classification."""
from .gesture_classifier import (
    ClassifierConfig,
    GestureClassifier,
    GestureMatch,
    best_match,
    select_gesture,
)
from .gesture_descriptions import (
    DEFAULT_CATALOGUE,
    GestureCatalogue,
    GestureDescription,
    load_catalogue,
)

__all__ = [
    "ClassifierConfig",
    "GestureClassifier",
    "GestureMatch",
    "best_match",
    "select_gesture",
    "DEFAULT_CATALOGUE",
    "GestureCatalogue",
    "GestureDescription",
    "load_catalogue",
]
