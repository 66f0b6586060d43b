"""
Sign Detection - Main Application
==================================

Entry point. Wires camera, landmark estimator, classifier, overlay and
scheduler together and runs the OpenCV window until the user quits.
"""

import argparse
import logging
import signal
from pathlib import Path
from typing import Optional

import numpy as np

from .capture.camera import Camera
from .control.scheduler import DetectionScheduler
from .control.session import SessionState
from .detection.hand_detector import HandDetector
from .recognition.gesture_classifier import GestureClassifier
from .recognition.gesture_descriptions import DEFAULT_CATALOGUE, load_catalogue
from .rendering.overlay import Canvas, OverlayRenderer
from .ui.state_bridge import UIStateBridge
from .ui.window import DetectionWindow
from .utils.config import DEFAULT_CONFIG_PATH, AppConfig, load_app_config
from .utils.logger import setup_logging

logger = logging.getLogger(__name__)


class SignDetectionApp:
    """
    Application shell around the detection scheduler.

    The camera runs for the whole session so the video is always shown;
    detection itself is toggled on and off by the user.
    """

    def __init__(self, config: AppConfig):
        self.config = config

        catalogue = DEFAULT_CATALOGUE
        if config.gestures_path:
            if Path(config.gestures_path).exists():
                catalogue = load_catalogue(config.gestures_path)
            else:
                logger.warning("Gestures file not found: %s, using built-in catalogue", config.gestures_path)

        self.camera = Camera(config.camera)
        self.detector = HandDetector(config.mediapipe)
        self.classifier = GestureClassifier(config.recognition, catalogue)
        self.state = SessionState()
        self.scheduler = DetectionScheduler(
            video=self.camera,
            estimator=self.detector,
            classifier=self.classifier,
            renderer=OverlayRenderer(config.overlay),
            canvas=Canvas(config.camera.width, config.camera.height),
            state=self.state,
            config=config.scheduler,
        )
        self.bridge = UIStateBridge(self.scheduler)
        self.window = DetectionWindow(self.bridge, config.window)

        self._running = False

    def run(self, autostart: bool = False) -> int:
        """Run until the window is closed. Returns a process exit code."""
        if not self.camera.start():
            logger.error("Failed to start camera")
            return 1

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        if autostart:
            self.bridge.toggle()

        self._running = True
        try:
            self._main_loop()
        finally:
            self.shutdown()
        return 0

    def _main_loop(self) -> None:
        while self._running:
            frame = self.camera.read()
            if frame is None:
                # Keep the window responsive while the camera warms up
                if not self.window.show(self._placeholder()):
                    break
                continue

            display = self.window.render(frame.image, self.scheduler.monitor.rate)
            if not self.window.show(display):
                break

    def _placeholder(self) -> np.ndarray:
        width, height = self.camera.resolution
        return np.zeros((height, width, 3), dtype=np.uint8)

    def shutdown(self) -> None:
        """Cancel detection before releasing the camera and window."""
        logger.info("Shutting down...")
        self._running = False
        self.scheduler.close()
        logger.info("Average frame capture: %.1fms", self.camera.avg_capture_time_ms)
        self.camera.stop()
        self.window.close()
        print(self.scheduler.monitor.get_report())

    def _signal_handler(self, signum, frame) -> None:
        logger.info("Received signal %d, shutting down...", signum)
        self._running = False


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Real-time hand sign detection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Keyboard Controls:
  space/s   - Start/stop detection
  q/ESC     - Quit

Examples:
  sign-detection
  sign-detection --autostart
  sign-detection --config my_config.yaml --gestures my_gestures.yaml
        """
    )
    parser.add_argument("--config", "-c", default=str(DEFAULT_CONFIG_PATH),
                        help="Path to configuration file")
    parser.add_argument("--gestures", "-g", default=None,
                        help="Path to a gesture catalogue YAML (overrides config)")
    parser.add_argument("--autostart", "-a", action="store_true",
                        help="Start detection immediately")
    parser.add_argument("--debug", "-d", action="store_true",
                        help="Enable debug logging")
    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.debug else "INFO")

    config = load_app_config(Path(args.config))
    if args.debug:
        config.logging.level = "DEBUG"
        config.recognition.debug = True
    if args.gestures:
        config.gestures_path = args.gestures

    setup_logging(config.logging.level, config.logging.log_file,
                  config.logging.max_size_mb, config.logging.backup_count)

    app = SignDetectionApp(config)
    return app.run(autostart=args.autostart)
