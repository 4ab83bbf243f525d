import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from config import constants
from models.landmarks import LandmarkFrame
from models.scores import ArmScore, FaceScore
from utils import metrics
from utils.emitter import safe_emit
from utils.scheduler import Scheduler, TimerHandle, default_scheduler
from video.geometry import arm_drift_and_strength, face_asymmetry

logger = logging.getLogger("fast_screen.video.observation_window")

NEUTRAL = constants.NEUTRAL_SCORE


def window_confidence(valid_frames: int) -> float:
    """Confidence grows linearly with frame count and saturates at the calibration count."""
    if valid_frames <= 0:
        return 0.0
    return min(valid_frames / float(constants.CALIBRATION_FRAME_COUNT), 1.0)


def _mean01(values: Sequence[float]) -> float:
    return float(np.clip(np.mean(values), 0.0, 1.0))


def reduce_face_measurements(asymmetries: Sequence[float]) -> FaceScore:
    if not asymmetries:
        return FaceScore(asymmetry=NEUTRAL, confidence=0.0)
    return FaceScore(
        asymmetry=_mean01(asymmetries),
        confidence=window_confidence(len(asymmetries)),
    )


def reduce_arm_measurements(measurements: Sequence[Tuple[float, float]]) -> ArmScore:
    if not measurements:
        return ArmScore(drift=NEUTRAL, strength=NEUTRAL, confidence=0.0)
    drifts = [drift for drift, _ in measurements]
    strengths = [strength for _, strength in measurements]
    return ArmScore(
        drift=_mean01(drifts),
        strength=_mean01(strengths),
        confidence=window_confidence(len(measurements)),
    )


def score_face_frames(frames: Iterable[LandmarkFrame]) -> FaceScore:
    """Reduce an already-collected batch of face frames without a timer."""
    return reduce_face_measurements([face_asymmetry(f) for f in frames if not f.is_empty()])


def score_arm_frames(frames: Iterable[LandmarkFrame]) -> ArmScore:
    """Reduce an already-collected batch of pose frames without a timer."""
    return reduce_arm_measurements([arm_drift_and_strength(f) for f in frames if not f.is_empty()])


class ObservationWindow(ABC):
    """Collects per-frame measurements for a fixed time span and reduces them once.

    The window is opened with `start()` and closed by a timer, never by a
    frame count, so a capture thread that stops delivering early only lowers
    the confidence. Frames are pushed from the capture thread through
    `add_frame()`; the completion callback runs on the timer thread.
    """

    kind = "observation"

    def __init__(self, duration: Optional[float] = None, scheduler: Optional[Scheduler] = None):
        self.duration = constants.ANALYSIS_WINDOW_SEC if duration is None else float(duration)
        self._scheduler = scheduler or default_scheduler
        self._lock = threading.Lock()
        self._measurements: List[Any] = []
        self._open = False
        self._generation = 0
        self._timer: Optional[TimerHandle] = None
        self._on_complete: Optional[Callable[[Any], None]] = None
        self.frames_received = 0
        self.frames_ignored = 0

    @abstractmethod
    def _measure(self, frame: LandmarkFrame) -> Any:
        """Turn one frame into a measurement."""

    @abstractmethod
    def _reduce(self, measurements: List[Any]) -> Any:
        """Reduce all measurements of a window into its score."""

    @property
    def is_open(self) -> bool:
        with self._lock:
            return self._open

    def start(self, on_complete: Callable[[Any], None]) -> bool:
        with self._lock:
            if self._open:
                logger.info("%s window already open, ignoring start request", self.kind)
                return False
            self._measurements = []
            self._open = True
            self._on_complete = on_complete
            self._generation += 1
            generation = self._generation
            self.frames_received = 0
            self.frames_ignored = 0

        timer = self._scheduler.call_later(
            self.duration,
            lambda: self._close(generation),
            name=f"{self.kind}-window",
        )
        with self._lock:
            if self._generation == generation and self._open:
                self._timer = timer
        logger.info("%s window opened for %.1fs", self.kind, self.duration)
        return True

    def add_frame(self, frame: LandmarkFrame) -> bool:
        """Measure and keep a frame if the window is open. Returns True when kept."""
        with self._lock:
            if not self._open:
                return False
            generation = self._generation
            self.frames_received += 1

        if frame.is_empty():
            with self._lock:
                self.frames_ignored += 1
            return False

        measurement = self._measure(frame)

        with self._lock:
            if not self._open or self._generation != generation:
                return False
            self._measurements.append(measurement)
        return True

    def cancel(self) -> bool:
        """Close the window without delivering a result."""
        with self._lock:
            if not self._open:
                return False
            self._open = False
            self._on_complete = None
            self._measurements = []
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
        logger.info("%s window cancelled", self.kind)
        return True

    def _close(self, generation: int) -> None:
        with self._lock:
            if not self._open or self._generation != generation:
                return
            self._open = False
            measurements = list(self._measurements)
            self._measurements = []
            callback, self._on_complete = self._on_complete, None
            self._timer = None
            received = self.frames_received

        result = self._reduce(measurements)
        metrics.incr(f"window.{self.kind}.completed")
        logger.info(
            "%s window closed: frames_received=%d, valid_frames=%d, result=%s",
            self.kind,
            received,
            len(measurements),
            result,
        )
        safe_emit(callback, result, logger)


class FaceObservationWindow(ObservationWindow):
    kind = "face"

    def _measure(self, frame: LandmarkFrame) -> float:
        return face_asymmetry(frame)

    def _reduce(self, measurements: List[float]) -> FaceScore:
        return reduce_face_measurements(measurements)


class ArmObservationWindow(ObservationWindow):
    kind = "arm"

    def _measure(self, frame: LandmarkFrame) -> Tuple[float, float]:
        return arm_drift_and_strength(frame)

    def _reduce(self, measurements: List[Tuple[float, float]]) -> ArmScore:
        return reduce_arm_measurements(measurements)
