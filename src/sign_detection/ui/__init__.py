"""Presentation layer: state bridge and OpenCV window."""
from .state_bridge import UIStateBridge, UIView
from .window import DetectionWindow, WindowConfig

__all__ = ["UIStateBridge", "UIView", "DetectionWindow", "WindowConfig"]
