"""
Application configuration.

Loads ``config/config.yaml`` and maps each section onto the typed config
dataclass of the component that consumes it.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import yaml

from ..capture.camera import CameraConfig
from ..control.scheduler import SchedulerConfig
from ..detection.hand_detector import HandDetectorConfig
from ..recognition.gesture_classifier import ClassifierConfig
from ..rendering.overlay import OverlayConfig
from ..ui.window import WindowConfig
from .logger import LoggingConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config") / "config.yaml"


@dataclass
class AppConfig:
    """Application configuration container."""
    camera: CameraConfig = field(default_factory=CameraConfig)
    mediapipe: HandDetectorConfig = field(default_factory=HandDetectorConfig)
    recognition: ClassifierConfig = field(default_factory=ClassifierConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    overlay: OverlayConfig = field(default_factory=OverlayConfig)
    window: WindowConfig = field(default_factory=WindowConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    gestures_path: Optional[str] = None

    @classmethod
    def from_dict(cls, config_dict: dict) -> "AppConfig":
        """Create AppConfig from configuration dictionary."""
        return cls(
            camera=CameraConfig.from_dict(config_dict.get("camera", {})),
            mediapipe=HandDetectorConfig.from_dict(config_dict.get("mediapipe", {})),
            recognition=ClassifierConfig.from_dict(config_dict.get("recognition", {})),
            scheduler=SchedulerConfig.from_dict(config_dict.get("scheduler", {})),
            overlay=OverlayConfig.from_dict(config_dict.get("overlay", {})),
            window=WindowConfig.from_dict(config_dict.get("window", {})),
            logging=LoggingConfig.from_dict(config_dict.get("logging", {})),
            gestures_path=config_dict.get("recognition", {}).get("gestures_path"),
        )


def load_config(config_path: Union[str, Path]) -> dict:
    """Load configuration from YAML file. A missing file yields defaults."""
    config_path = Path(config_path)
    if not config_path.exists():
        logger.warning("Config file not found: %s, using defaults", config_path)
        return {}

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("Config root must be a mapping, got %s" % type(data).__name__)

    logger.info("Loaded config from %s", config_path)
    return data


def load_app_config(config_path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> AppConfig:
    return AppConfig.from_dict(load_config(config_path))
