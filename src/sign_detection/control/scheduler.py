"""
Detection Scheduler
====================

Owns the start/stop lifecycle of the detection loop and runs the
per-cycle pipeline on a fixed period:

    video frame -> landmark estimator -> gesture classifier -> session state
                                      +-> overlay renderer -> canvas

Cycles never overlap. A single worker thread runs them back to back on a
fixed schedule; ticks that fall due while a cycle is still running are
skipped (and counted), not queued.

The estimator is only released once nothing is using it: a load or an
estimate call still running at ``close()`` releases it when it returns.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional

from ..detection.hand_detector import HandLandmarks
from ..recognition.gesture_classifier import GestureClassifier, best_match, select_gesture
from ..rendering.overlay import Canvas, OverlayRenderer
from ..utils.logger import GestureLogger
from ..utils.performance import CycleMonitor, Timer
from .session import CancellationToken, SessionState

logger = logging.getLogger(__name__)

LOADING_MESSAGE = "Loading handpose model..."
READY_MESSAGE = "Handpose model is ready!"
STARTED_MESSAGE = "Detection Started!"
STOPPED_MESSAGE = "Detection Stopped!"
LOAD_FAILED_MESSAGE = "Failed to load model"


@dataclass
class SchedulerConfig:
    """Detection loop settings."""
    period_ms: float = 100.0
    # Upper bound on how long stop() waits for an in-flight cycle
    join_timeout: float = 2.0
    clear_overlay_on_stop: bool = True

    @classmethod
    def from_dict(cls, config: dict) -> "SchedulerConfig":
        return cls(
            period_ms=config.get("period_ms", 100.0),
            join_timeout=config.get("join_timeout", 2.0),
            clear_overlay_on_stop=config.get("clear_overlay_on_stop", True),
        )


class DetectionScheduler:
    """
    Two-state (Idle/Running) controller for the detection loop.

    Example:
        >>> scheduler = DetectionScheduler(camera, detector, classifier,
        ...                                renderer, canvas, state)
        >>> if scheduler.start():
        ...     ...
        >>> scheduler.stop()
        >>> scheduler.close()
    """

    def __init__(
        self,
        video,
        estimator,
        classifier: GestureClassifier,
        renderer: OverlayRenderer,
        canvas: Canvas,
        state: Optional[SessionState] = None,
        config: Optional[SchedulerConfig] = None,
    ):
        self.config = config or SchedulerConfig()
        self.state = state or SessionState()
        self.canvas = canvas
        self.monitor = CycleMonitor()

        self._video = video
        self._estimator = estimator
        self._classifier = classifier
        self._renderer = renderer
        self._threshold = classifier.config.confidence_threshold
        self._gesture_logger = GestureLogger()

        self._handle = None
        self._token: Optional[CancellationToken] = None
        self._worker: Optional[threading.Thread] = None
        self._loader: Optional[threading.Thread] = None
        self._control_lock = threading.Lock()
        self._starting = False
        self._closed = False

        # Estimator users (loads and estimate calls) currently in flight
        self._usage = threading.Condition()
        self._in_use = 0
        self._release_pending = False
        self._released = False

    @property
    def is_running(self) -> bool:
        token = self._token
        return token is not None and not token.cancelled

    @property
    def is_loading(self) -> bool:
        loader = self._loader
        return self._starting or (loader is not None and loader.is_alive())

    def start(self) -> bool:
        """
        Acquire the estimator and begin periodic detection.

        Blocks while the estimator loads; ``start_async`` runs the same
        thing on a background thread.

        Returns:
            True if detection is now running; False if it was already
            running or loading, or the estimator could not be loaded
        """
        with self._control_lock:
            if self.is_running or self._starting:
                logger.warning("Detection already running; start ignored")
                return False
            if self._closed:
                logger.warning("Scheduler closed; start ignored")
                return False
            worker = self._worker
            if worker is not None and worker.is_alive():
                logger.warning("Previous detection cycle still finishing; start ignored")
                return False
            self._starting = True
            self._acquire_use()

        try:
            logger.info("Loading landmark estimator...")
            try:
                handle = self._estimator.load()
            except Exception:
                logger.exception("Error loading landmark estimator")
                self.state.set_message(LOAD_FAILED_MESSAGE)
                return False

            with self._control_lock:
                if self._closed:
                    logger.info("Scheduler closed while loading; detection not started")
                    return False

                self._handle = handle
                self.state.set_message(READY_MESSAGE)
                logger.info(READY_MESSAGE)

                token = CancellationToken()
                self._token = token
                self.monitor.reset()
                self._gesture_logger.reset()
                self.state.begin(STARTED_MESSAGE)

                self._worker = threading.Thread(
                    target=self._run, args=(token,), name="detection-loop", daemon=True)
                self._worker.start()

                logger.info("Detection started (period=%.0fms)", self.config.period_ms)
                return True
        finally:
            self._starting = False
            self._release_use()

    def start_async(self) -> bool:
        """
        Run ``start()`` on a background thread so the caller stays responsive.

        Returns:
            True if loading began; False if already running, loading or closed
        """
        with self._control_lock:
            if self.is_running or self.is_loading or self._closed:
                return False
            self.state.set_message(LOADING_MESSAGE)
            # start() waits on the control lock until this returns
            self._loader = threading.Thread(target=self.start, name="estimator-load", daemon=True)
            self._loader.start()
        return True

    def wait_loaded(self, timeout: Optional[float] = None) -> bool:
        """Wait for a ``start_async`` load to finish. True if none is pending."""
        loader = self._loader
        if loader is not None:
            loader.join(timeout)
        return not self.is_loading

    def stop(self) -> None:
        """Stop periodic detection. A no-op when already idle."""
        with self._control_lock:
            token = self._token
            if token is None or token.cancelled:
                return

            # Under the state lock: once this returns no cycle can apply a result
            with self.state.lock:
                token.cancel()
                self.state.end(STOPPED_MESSAGE)
                if self.config.clear_overlay_on_stop:
                    self.canvas.clear()

            worker = self._worker
            if worker is not None and worker is not threading.current_thread():
                worker.join(timeout=self.config.join_timeout)
                if worker.is_alive():
                    logger.warning("Detection cycle still in flight after stop; its result will be discarded")
                else:
                    self._worker = None

            logger.info("Detection stopped (%d cycles, %d skipped)",
                        self.monitor.total_cycles, self.monitor.skipped_cycles)

    def close(self) -> None:
        """Teardown: cancel the loop and release the estimator once it is unused."""
        with self._control_lock:
            self._closed = True
        self.stop()

        with self._usage:
            if self._in_use:
                self._release_pending = True
                logger.info("Landmark estimator still in use; releasing it when the call returns")
                return
        self._release_estimator()

    def run_cycle(self, token: Optional[CancellationToken] = None) -> bool:
        """
        Execute one pipeline cycle.

        Returns:
            True if the cycle's result was applied; False for a no-op cycle
            (idle, video not ready) or a discarded one (cancelled meanwhile)
        """
        token = token or self._token
        if token is None or token.cancelled:
            return False

        if not self._video.is_ready:
            return False
        frame = self._video.read()
        if frame is None:
            return False

        with self.state.lock:
            if token.cancelled:
                return False
            self.canvas.resize(frame.width, frame.height)

        with Timer("estimate") as estimate_timer:
            hand = self._estimate(frame, token)
        matches = self._classifier.classify(hand)
        logger.debug("Cycle: estimate %.1fms, hand=%s", estimate_timer.elapsed_ms, hand is not None)

        with self.state.lock:
            if token.cancelled:
                logger.debug("Discarding result of a cancelled cycle")
                return False

            if hand is not None:
                winner = select_gesture(matches, self._threshold)
                if winner is not None:
                    self.state.apply_detection("%s Detected!" % winner.name, winner.score)
                    self._gesture_logger.log_gesture(winner.name, winner.score)
                else:
                    self.state.apply_detection(None, 0.0)
                    self._gesture_logger.log_gesture(None, 0.0)
                    logger.debug("No gesture above %.2f (best: %s)", self._threshold, best_match(matches))

            self._renderer.render(hand, self.canvas)

        return True

    def _estimate(self, frame, token: CancellationToken) -> Optional[HandLandmarks]:
        """First detected hand, or None. Estimator errors count as no hand."""
        with self._usage:
            if token.cancelled or self._handle is None:
                return None
            self._in_use += 1
            handle = self._handle
        try:
            hands = handle.estimate(frame.rgb)
        except Exception:
            logger.exception("Landmark estimation failed; treating cycle as no hand")
            return None
        finally:
            self._release_use()
        return hands[0] if hands else None

    def _acquire_use(self) -> None:
        with self._usage:
            self._in_use += 1

    def _release_use(self) -> None:
        with self._usage:
            self._in_use -= 1
            release = self._release_pending and self._in_use == 0
            if release:
                self._release_pending = False
        if release:
            self._release_estimator()

    def _release_estimator(self) -> None:
        with self._usage:
            if self._released:
                return
            self._released = True
            self._handle = None
        close = getattr(self._estimator, "close", None)
        if close is not None:
            close()
        logger.info("Landmark estimator released")

    def _run(self, token: CancellationToken) -> None:
        period = self.config.period_ms / 1000.0
        # First cycle fires one period after start
        next_tick = time.perf_counter() + period

        while not token.wait(max(0.0, next_tick - time.perf_counter())):
            started = time.perf_counter()
            try:
                if self.run_cycle(token):
                    self.monitor.record(time.perf_counter() - started, started)
            except Exception:
                logger.exception("Detection cycle failed")

            next_tick += period
            now = time.perf_counter()
            if now > next_tick:
                missed = int((now - next_tick) // period) + 1
                self.monitor.record_skipped(missed)
                next_tick += missed * period

        logger.debug("Detection loop exited")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
