"""Shared pytest fixtures for tests.

Provides landmark frame builders, a manually advanced scheduler so timer
driven components run deterministically, and a scriptable recognition
backend.
"""

import queue
from typing import Callable, Dict, List, Optional

import pytest

from audio.recognition_backend import RecognitionBackend
from models import landmarks as lm
from models.landmarks import LandmarkFrame, LandmarkPoint
from utils import metrics
from utils.scheduler import Scheduler, TimerHandle


class ManualTimer(TimerHandle):
    def __init__(self, due: float, callback: Callable[[], None], name: str):
        self.due = due
        self.callback = callback
        self.name = name
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """Scheduler whose clock only moves when the test calls `advance()`."""

    def __init__(self):
        self.now = 0.0
        self.timers: List[ManualTimer] = []

    def call_later(self, delay, callback, name="timer"):
        timer = ManualTimer(self.now + delay, callback, name)
        self.timers.append(timer)
        return timer

    def pending(self, name: Optional[str] = None) -> List[ManualTimer]:
        return [
            t for t in self.timers
            if not t.cancelled and not t.fired and (name is None or t.name == name)
        ]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self.pending() if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.now = max(self.now, timer.due)
            timer.fired = True
            timer.callback()
        self.now = target


class FakeBackend(RecognitionBackend):
    def __init__(self, authorized: bool = True, available: bool = True):
        self.authorized = authorized
        self.available = available
        self.start_error: Optional[Exception] = None
        self.channels: List[queue.Queue] = []
        self.stop_calls = 0
        self.reset_calls = 0

    def is_authorized(self) -> bool:
        return self.authorized

    def is_available(self) -> bool:
        return self.available

    def start(self, channel: queue.Queue) -> None:
        if self.start_error is not None:
            raise self.start_error
        self.channels.append(channel)

    def stop(self) -> None:
        self.stop_calls += 1

    def reset(self) -> None:
        self.reset_calls += 1


def point(x: float, y: float, confidence: float = 1.0) -> LandmarkPoint:
    return LandmarkPoint(x=x, y=y, confidence=confidence)


def eye(x: float, top: float, height: float) -> List[LandmarkPoint]:
    return [point(x, top), point(x + 0.02, top + height), point(x + 0.04, top)]


def face_frame(
    left_eye_height: float = 0.04,
    right_eye_height: float = 0.04,
    mouth_offset: float = 0.0,
    timestamp: float = 0.0,
) -> LandmarkFrame:
    """A face with equal eyebrows, configurable eyes and mouth corner offset."""
    lips = [
        point(0.40, 0.70),
        point(0.45, 0.68),
        point(0.50, 0.67),
        point(0.55, 0.68),
        point(0.60, 0.70 + mouth_offset),
        point(0.55, 0.73),
        point(0.50, 0.74),
        point(0.45, 0.73),
    ]
    regions: Dict[str, List[LandmarkPoint]] = {
        lm.LEFT_EYE: eye(0.30, 0.40, left_eye_height),
        lm.RIGHT_EYE: eye(0.60, 0.40, right_eye_height),
        lm.LEFT_EYEBROW: eye(0.30, 0.30, 0.02),
        lm.RIGHT_EYEBROW: eye(0.60, 0.30, 0.02),
        lm.OUTER_LIPS: lips,
    }
    return LandmarkFrame(timestamp=timestamp, landmarks=regions)


def pose_frame(
    left_wrist_y: float = 0.30,
    right_wrist_y: float = 0.30,
    confidence: float = 0.9,
    timestamp: float = 0.0,
) -> LandmarkFrame:
    """Both arms stretched out horizontally from shoulders at y=0.30."""
    joints = {
        lm.LEFT_SHOULDER: point(0.40, 0.30, confidence),
        lm.LEFT_ELBOW: point(0.25, 0.30, confidence),
        lm.LEFT_WRIST: point(0.10, left_wrist_y, confidence),
        lm.RIGHT_SHOULDER: point(0.60, 0.30, confidence),
        lm.RIGHT_ELBOW: point(0.75, 0.30, confidence),
        lm.RIGHT_WRIST: point(0.90, right_wrist_y, confidence),
    }
    return LandmarkFrame(timestamp=timestamp, landmarks={k: [v] for k, v in joints.items()})


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture(autouse=True)
def clean_metrics():
    metrics.reset()
    yield
    metrics.reset()
