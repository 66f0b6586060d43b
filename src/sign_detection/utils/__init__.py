"""Logging, cycle timing and configuration helpers."""
from .logger import GestureLogger, LoggingConfig, setup_logging
from .performance import CycleMonitor, Timer

__all__ = ["GestureLogger", "LoggingConfig", "setup_logging", "CycleMonitor", "Timer"]
