"""
Tests for Skeleton Overlay
===========================
"""

import numpy as np
import pytest

from sign_detection.detection.hand_detector import LandmarkIndex
from sign_detection.rendering.overlay import Canvas, OverlayConfig, OverlayRenderer

from hand_poses import thumbs_up_hand


class TestCanvas:
    """Test suite for the drawing surface."""

    def test_initial_size(self):
        canvas = Canvas(640, 480)

        assert (canvas.width, canvas.height) == (640, 480)
        assert canvas.image.shape == (480, 640, 3)
        assert canvas.is_blank()

    def test_resize_only_on_change(self):
        """Resizing to the current size keeps the drawn content."""
        canvas = Canvas(640, 480)
        canvas.draw_point((10, 10), 3, (0, 255, 0))

        assert canvas.resize(640, 480) is False
        assert not canvas.is_blank()

        assert canvas.resize(320, 240) is True
        assert canvas.image.shape == (240, 320, 3)
        assert canvas.is_blank()

    def test_clear(self):
        canvas = Canvas(100, 100)
        canvas.draw_line((0, 0), (99, 99), (255, 255, 255))
        canvas.clear()

        assert canvas.is_blank()

    def test_composite_lays_drawn_pixels_over_frame(self):
        """Black canvas pixels are transparent, drawn ones replace the frame."""
        canvas = Canvas(100, 100)
        canvas.draw_point((50, 50), 4, (0, 0, 255))
        frame = np.full((100, 100, 3), 40, dtype=np.uint8)

        output = canvas.composite(frame)

        assert tuple(output[50, 50]) == (0, 0, 255)
        assert tuple(output[5, 5]) == (40, 40, 40)
        assert tuple(frame[50, 50]) == (40, 40, 40)  # Input untouched

    def test_composite_size_mismatch_returns_frame(self):
        canvas = Canvas(100, 100)
        canvas.draw_point((50, 50), 4, (0, 0, 255))
        frame = np.zeros((50, 50, 3), dtype=np.uint8)

        output = canvas.composite(frame)

        assert output.shape == frame.shape
        assert not output.any()


class TestOverlayRenderer:
    """Test suite for skeleton rendering."""

    @pytest.fixture
    def renderer(self):
        return OverlayRenderer(OverlayConfig())

    def test_render_hand(self, renderer):
        """Fingertips are red and other joints green."""
        hand = thumbs_up_hand()
        canvas = Canvas(640, 480)

        renderer.render(hand, canvas)

        x, y = hand.get(LandmarkIndex.PINKY_TIP).point
        assert tuple(canvas.image[y, x]) == (0, 0, 255)
        x, y = hand.get(LandmarkIndex.WRIST).point
        assert tuple(canvas.image[y, x]) == (0, 255, 0)

    def test_render_none_clears(self, renderer):
        """No hand this cycle leaves no skeleton from the previous one."""
        canvas = Canvas(640, 480)
        renderer.render(thumbs_up_hand(), canvas)
        assert not canvas.is_blank()

        renderer.render(None, canvas)
        assert canvas.is_blank()

    def test_render_replaces_previous_hand(self, renderer):
        canvas = Canvas(640, 480)
        first = thumbs_up_hand(wrist=(150.0, 400.0))
        renderer.render(first, canvas)
        renderer.render(thumbs_up_hand(wrist=(500.0, 400.0)), canvas)

        x, y = first.get(LandmarkIndex.WRIST).point
        assert not canvas.image[y, x].any()

    def test_connections_only(self):
        renderer = OverlayRenderer(OverlayConfig(show_landmarks=False))
        canvas = Canvas(640, 480)
        hand = thumbs_up_hand()
        renderer.render(hand, canvas)

        x, y = hand.get(LandmarkIndex.WRIST).point
        assert tuple(canvas.image[y, x]) == (255, 255, 255)

    def test_colors_from_dict(self):
        config = OverlayConfig.from_dict({"colors": {"fingertips": [255, 0, 0]}, "fingertip_radius": 4})

        assert config.fingertip_color == (255, 0, 0)
        assert config.fingertip_radius == 4
        assert config.landmark_color == (0, 255, 0)

    def test_connections_cover_all_fingers(self):
        points = {i for pair in OverlayRenderer.HAND_CONNECTIONS for i in pair}
        assert points == set(range(21))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
