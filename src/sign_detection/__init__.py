"""
Sign Detection
==============

Real-time hand sign recognition from a live camera feed.

Modules:
    - capture: Camera frame acquisition
    - detection: MediaPipe hand landmark estimation
    - recognition: Gesture catalogue and rule-based classification
    - rendering: Skeleton overlay drawn over the video
    - control: Start/stop detection scheduling
    - ui: State bridge and OpenCV window
    - utils: Config, logging, cycle timing
"""

__version__ = "1.0.0"
__author__ = "Sign Detection Team"
