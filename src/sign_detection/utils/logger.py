"""
Logging setup and gesture event logging.
"""

import logging
import logging.handlers
import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    log_file: Optional[str] = None
    max_size_mb: int = 10
    backup_count: int = 3

    @classmethod
    def from_dict(cls, config: dict) -> "LoggingConfig":
        return cls(
            level=config.get("level", "INFO"),
            log_file=config.get("log_file"),
            max_size_mb=config.get("max_size_mb", 10),
            backup_count=config.get("backup_count", 3),
        )


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure console (and optional rotating file) logging."""
    console_format = "%(asctime)s  %(levelname)-5s  %(name)s: %(message)s"
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-40s | %(threadName)s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    return root_logger


class GestureLogger:
    """Logs recognized gestures, once per change of gesture."""

    def __init__(self):
        self.logger = logging.getLogger("gesture_events")
        self._last_gesture = None

    def log_gesture(self, gesture_name, confidence):
        if gesture_name == self._last_gesture:
            return
        self._last_gesture = gesture_name
        if gesture_name is not None:
            self.logger.info("Sign Detected: %-15s | Confidence: %.2f", gesture_name, confidence)

    def reset(self):
        self._last_gesture = None
