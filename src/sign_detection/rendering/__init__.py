"""Skeleton overlay drawn over the video."""
from .overlay import Canvas, OverlayConfig, OverlayRenderer

__all__ = ["Canvas", "OverlayConfig", "OverlayRenderer"]
