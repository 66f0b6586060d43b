"""Start/stop scheduling of the detection loop."""
from .scheduler import DetectionScheduler, SchedulerConfig
from .session import CancellationToken, SessionSnapshot, SessionState

__all__ = [
    "DetectionScheduler",
    "SchedulerConfig",
    "CancellationToken",
    "SessionSnapshot",
    "SessionState",
]
