"""
Tests for Gesture Recognition Module
=====================================
"""

import math
from pathlib import Path
from unittest.mock import patch

import numpy as np
import pytest

from sign_detection.detection.hand_detector import HandLandmarks, Landmark, LandmarkIndex
from sign_detection.recognition.gesture_classifier import (
    ClassifierConfig,
    FingerPoseEstimator,
    FingerState,
    GestureClassifier,
    GestureMatch,
    best_match,
    finger_match,
    joint_angle,
    segment_direction,
    select_gesture,
)
from sign_detection.recognition.gesture_descriptions import (
    DEFAULT_CATALOGUE,
    Finger,
    FingerConstraint,
    FingerCurl,
    FingerDirection,
    GestureCatalogue,
    GestureDescription,
    THUMBS_UP,
    catalogue_from_dict,
    load_catalogue,
)

from hand_poses import make_hand, open_palm_hand, thumbs_up_hand, victory_hand

GESTURES_YAML = Path(__file__).parent.parent / "config" / "gestures.yaml"


def _landmark_set(kind):
    """21 points that no real hand would produce."""
    if kind.startswith("random"):
        rng = np.random.default_rng(int(kind.split("-")[1]))
        points = rng.uniform(0, 640, size=(21, 3))
    elif kind == "offscreen":
        points = np.random.default_rng(11).uniform(-5000, 5000, size=(21, 3))
    elif kind == "coincident":
        points = np.full((21, 3), 100.0)
    elif kind == "collinear":
        points = np.array([[10.0 * i, 20.0 * i, 0.0] for i in range(21)])
    elif kind == "nan":
        points = np.random.default_rng(3).uniform(0, 640, size=(21, 3))
        points[::4, 0] = np.nan
    else:
        points = np.random.default_rng(5).uniform(0, 640, size=(21, 3))
        points[8] = [np.inf, -np.inf, 0.0]
    return HandLandmarks(landmarks=[Landmark(*map(float, p)) for p in points])


class TestGestureClassifier:
    """Test suite for the catalogue-driven classifier."""

    @pytest.fixture
    def classifier(self):
        return GestureClassifier(ClassifierConfig(debug=True))

    def test_one_match_per_entry_in_catalogue_order(self, classifier):
        matches = classifier.classify(open_palm_hand())

        assert [m.name for m in matches] == ["VictoryGesture", "ThumbsUpGesture"]
        for match in matches:
            assert 0.0 <= match.score <= 1.0

    def test_thumbs_up_scores_one(self, classifier):
        scores = {m.name: m.score for m in classifier.classify(thumbs_up_hand())}

        assert scores["ThumbsUpGesture"] == pytest.approx(1.0)
        assert scores["VictoryGesture"] < 0.9

    def test_victory_scores_one(self, classifier):
        scores = {m.name: m.score for m in classifier.classify(victory_hand())}

        assert scores["VictoryGesture"] == pytest.approx(1.0)
        assert scores["ThumbsUpGesture"] == pytest.approx(0.0)

    def test_half_credit_for_one_bucket_off(self, classifier):
        hand = make_hand({
            "thumb": ("half", "right"),
            "index": ("half", "up"),  # expected no curl, weight 2
            "middle": ("none", "up"),
            "ring": ("full", "down"),
            "pinky": ("full", "down"),
        })
        scores = {m.name: m.score for m in classifier.classify(hand)}

        # 6.5 total weight, index earns 0.5 * 2 instead of 2
        assert scores["VictoryGesture"] == pytest.approx(5.5 / 6.5)

    def test_no_credit_for_wrong_direction(self, classifier):
        hand = make_hand({
            "thumb": ("none", "down"),
            "index": ("full", "left"),
            "middle": ("full", "left"),
            "ring": ("full", "left"),
            "pinky": ("full", "left"),
        })
        scores = {m.name: m.score for m in classifier.classify(hand)}

        assert scores["ThumbsUpGesture"] == pytest.approx(4.0 / 5.0)

    def test_no_credit_for_two_buckets_off(self, classifier):
        hand = make_hand({
            "thumb": ("full", "up"),
            "index": ("full", "left"),
            "middle": ("full", "left"),
            "ring": ("full", "left"),
            "pinky": ("full", "left"),
        })
        scores = {m.name: m.score for m in classifier.classify(hand)}

        assert scores["ThumbsUpGesture"] == pytest.approx(4.0 / 5.0)

    def test_absent_hand_returns_empty_without_geometry(self, classifier):
        with patch.object(FingerPoseEstimator, "estimate") as estimate:
            assert classifier.classify(None) == []
            estimate.assert_not_called()

    def test_classify_is_pure(self, classifier):
        hand = thumbs_up_hand()
        assert classifier.classify(hand) == classifier.classify(hand)

    def test_custom_catalogue(self):
        catalogue = GestureCatalogue([THUMBS_UP])
        matches = GestureClassifier(catalogue=catalogue).classify(thumbs_up_hand())

        assert matches == [GestureMatch("ThumbsUpGesture", pytest.approx(1.0))]

    @pytest.mark.parametrize("kind", [
        "random-0", "random-1", "random-2", "offscreen", "coincident", "collinear", "nan", "inf",
    ])
    def test_any_landmark_set_scores_in_range(self, classifier, kind):
        """Arbitrary and degenerate landmark sets still give one bounded score per entry."""
        matches = classifier.classify(_landmark_set(kind))

        assert [m.name for m in matches] == DEFAULT_CATALOGUE.names
        for match in matches:
            assert math.isfinite(match.score)
            assert 0.0 <= match.score <= 1.0


class TestFingerPose:
    """Test suite for curl and direction descriptors."""

    @pytest.fixture
    def estimator(self):
        return FingerPoseEstimator()

    @pytest.mark.parametrize("curl,expected", [
        ("none", FingerCurl.NO_CURL),
        ("half", FingerCurl.HALF_CURL),
        ("full", FingerCurl.FULL_CURL),
    ])
    def test_curl_buckets(self, estimator, curl, expected):
        pose = estimator.estimate(make_hand({"index": (curl, "up"), "thumb": (curl, "up")}))

        assert pose[Finger.INDEX].curl == expected
        assert pose[Finger.THUMB].curl == expected

    @pytest.mark.parametrize("direction,expected", [
        ("up", FingerDirection.VERTICAL_UP),
        ("down", FingerDirection.VERTICAL_DOWN),
        ("left", FingerDirection.HORIZONTAL_LEFT),
        ("right", FingerDirection.HORIZONTAL_RIGHT),
        ("up_left", FingerDirection.DIAGONAL_UP_LEFT),
        ("down_right", FingerDirection.DIAGONAL_DOWN_RIGHT),
    ])
    def test_directions(self, estimator, direction, expected):
        pose = estimator.estimate(make_hand({"middle": ("none", direction)}))

        assert pose[Finger.MIDDLE].direction == expected

    def test_joint_angle_straight_and_square(self):
        a, b = np.array([0.0, 0.0, 0.0]), np.array([1.0, 0.0, 0.0])

        assert joint_angle(a, b, np.array([2.0, 0.0, 0.0])) == pytest.approx(180.0)
        assert joint_angle(a, b, np.array([1.0, 1.0, 0.0])) == pytest.approx(90.0)

    def test_joint_angle_degenerate_segment(self):
        p = np.array([1.0, 1.0, 0.0])
        assert joint_angle(p, p, np.array([2.0, 2.0, 0.0])) == 180.0

    def test_joint_angle_non_finite_point(self):
        a, b = np.array([0.0, 0.0, 0.0]), np.array([1.0, 0.0, 0.0])
        assert joint_angle(a, b, np.array([np.nan, 1.0, 0.0])) == 180.0

    def test_image_y_points_down(self):
        # Moving to a smaller image y is "up"
        assert segment_direction(np.array([0.0, 10.0]), np.array([0.0, 0.0])) == FingerDirection.VERTICAL_UP

    @pytest.mark.parametrize("end", [
        (float("nan"), 0.0),
        (0.0, float("inf")),
        (float("-inf"), float("nan")),
    ])
    def test_non_finite_segment_has_no_direction(self, end):
        assert segment_direction(np.array([0.0, 0.0]), np.array(end)) is None

    def test_undefined_direction_earns_no_credit(self):
        constraint = THUMBS_UP.constraints[Finger.THUMB]
        state = FingerState(curl=FingerCurl.NO_CURL, direction=None, angle=180.0)

        assert finger_match(constraint, state) == 0.0


class TestSelection:
    """Test suite for the winner selection policy."""

    def test_tie_goes_to_first_entry(self):
        matches = [GestureMatch("A", 0.95), GestureMatch("B", 0.95), GestureMatch("C", 0.5)]

        assert select_gesture(matches).name == "A"

    def test_below_threshold_not_reported(self):
        matches = [GestureMatch("A", 0.8), GestureMatch("B", 0.85)]

        assert best_match(matches).name == "B"
        assert select_gesture(matches) is None

    def test_threshold_is_exclusive(self):
        assert select_gesture([GestureMatch("A", 0.9)]) is None
        assert select_gesture([GestureMatch("A", 0.9001)]).name == "A"

    def test_empty(self):
        assert best_match([]) is None
        assert select_gesture([]) is None


class TestCatalogue:
    """Test suite for gesture descriptors and catalogue loading."""

    def test_default_catalogue(self):
        assert len(DEFAULT_CATALOGUE) == 2
        assert DEFAULT_CATALOGUE.names == ["VictoryGesture", "ThumbsUpGesture"]
        assert DEFAULT_CATALOGUE["ThumbsUpGesture"] is THUMBS_UP

    def test_lookup_unknown(self):
        with pytest.raises(KeyError):
            DEFAULT_CATALOGUE["OkGesture"]

    def test_descriptions_are_read_only(self):
        with pytest.raises(TypeError):
            THUMBS_UP.constraints[Finger.THUMB] = None

    def test_missing_finger_rejected(self):
        with pytest.raises(ValueError, match="pinky"):
            GestureDescription("Partial", {
                f: FingerConstraint(FingerCurl.NO_CURL, {FingerDirection.VERTICAL_UP})
                for f in Finger if f is not Finger.PINKY
            })

    def test_non_positive_weight_rejected(self):
        with pytest.raises(ValueError):
            FingerConstraint(FingerCurl.NO_CURL, {FingerDirection.VERTICAL_UP}, weight=0)

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError):
            GestureCatalogue([THUMBS_UP, THUMBS_UP])

    def test_from_dict_keeps_order(self):
        fingers = {f.value: {"curl": "none", "directions": ["up"]} for f in Finger}
        catalogue = catalogue_from_dict({"Open": fingers, "AlsoOpen": dict(fingers)})

        assert catalogue.names == ["Open", "AlsoOpen"]
        assert catalogue["Open"].constraints[Finger.INDEX].directions == {FingerDirection.VERTICAL_UP}

    @pytest.mark.parametrize("bad", [
        {"toe": {"curl": "none", "directions": ["up"]}},
        {"thumb": {"curl": "bent", "directions": ["up"]}},
        {"thumb": {"curl": "none", "directions": ["sideways"]}},
    ])
    def test_from_dict_rejects_unknown_names(self, bad):
        with pytest.raises(ValueError):
            catalogue_from_dict({"Bad": bad})

    def test_shipped_yaml_matches_default(self):
        catalogue = load_catalogue(GESTURES_YAML)

        assert catalogue.names == DEFAULT_CATALOGUE.names
        for loaded in catalogue:
            assert dict(loaded.constraints) == dict(DEFAULT_CATALOGUE[loaded.name].constraints)

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "gestures.yaml"
        path.write_text(
            "gestures:\n"
            "  Fist:\n"
            "    thumb: {curl: half, directions: [up, left]}\n"
            "    index: {curl: full, directions: down}\n"
            "    middle: {curl: full, directions: [down]}\n"
            "    ring: {curl: full, directions: [down]}\n"
            "    pinky: {curl: full, directions: [down], weight: 3}\n"
        )
        catalogue = load_catalogue(path)

        assert catalogue.names == ["Fist"]
        assert catalogue["Fist"].constraints[Finger.PINKY].weight == 3.0
        assert catalogue["Fist"].constraints[Finger.INDEX].directions == {FingerDirection.VERTICAL_DOWN}

    @pytest.mark.parametrize("text", [
        "- VictoryGesture\n- ThumbsUpGesture\n",
        "gestures: [VictoryGesture, ThumbsUpGesture]\n",
        "gestures:\n  Fist: [thumb, index]\n",
        "gestures:\n  Fist:\n    thumb: half\n",
        "gestures:\n  Fist:\n    thumb: {curl: half, directions: 3}\n",
    ])
    def test_malformed_file_raises_value_error(self, tmp_path, text):
        path = tmp_path / "gestures.yaml"
        path.write_text(text)

        with pytest.raises(ValueError):
            load_catalogue(path)


class TestHandLandmarks:
    """Test suite for HandLandmarks helper methods."""

    def test_requires_21_points(self):
        with pytest.raises(ValueError):
            HandLandmarks(landmarks=[Landmark(0, 0, 0)] * 20)

    def test_to_numpy(self):
        arr = thumbs_up_hand().to_numpy()

        assert arr.shape == (21, 3)
        assert isinstance(arr, np.ndarray)

    def test_get_landmark(self):
        hand = thumbs_up_hand(wrist=(100.0, 200.0))
        assert hand.get(LandmarkIndex.WRIST) == Landmark(100.0, 200.0, 0.0)

    def test_point_rounds_to_pixels(self):
        assert Landmark(10.6, 20.4, 0.0).point == (11, 20)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
