"""Camera frame acquisition."""
from .camera import Camera, CameraConfig, Frame

__all__ = ["Camera", "CameraConfig", "Frame"]
