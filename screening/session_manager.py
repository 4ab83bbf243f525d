"""Bookkeeping for the screening session in progress.

Each test records its verdict and backing scores as soon as it finishes;
the overall risk tier is computed once, when the session is saved, from
whatever verdicts are set at that moment.
"""

import logging
import threading
from typing import List, Optional

from alerts.risk_aggregator import RiskPolicy, aggregate_risk, resolve_risk_policy
from alerts.verdicts import (
    VerdictPolicy,
    classify_arm,
    classify_face,
    classify_speech,
    resolve_verdict_policy,
)
from models.scores import ArmScore, ClarityScore, FaceScore
from models.session import ScreeningSession, TestVerdict
from storage.session_repository import SessionRepository

logger = logging.getLogger("fast_screen.screening.session_manager")


class ScreeningSessionManager:

    def __init__(
        self,
        repository: SessionRepository,
        risk_policy: Optional[RiskPolicy] = None,
        verdict_policy: Optional[VerdictPolicy] = None,
    ):
        self.repository = repository
        self.risk_policy = resolve_risk_policy(risk_policy)
        self.verdict_policy = resolve_verdict_policy(verdict_policy)
        self._current: Optional[ScreeningSession] = None
        self._lock = threading.Lock()

    @property
    def current_session(self) -> Optional[ScreeningSession]:
        with self._lock:
            return self._current.model_copy() if self._current is not None else None

    def start_new_session(self) -> ScreeningSession:
        with self._lock:
            self._current = ScreeningSession()
            session = self._current.model_copy()
        logger.info("Screening session started: id=%s", session.id)
        return session

    def _ensure_session_locked(self) -> ScreeningSession:
        if self._current is None:
            self._current = ScreeningSession()
            logger.info("Screening session created on demand: id=%s", self._current.id)
        return self._current

    def record_face(self, score: FaceScore) -> TestVerdict:
        verdict = classify_face(score, self.verdict_policy)
        with self._lock:
            session = self._ensure_session_locked()
            session.face_result = verdict
            session.face_asymmetry_score = score.asymmetry
            session.face_confidence = score.confidence
        logger.info("Face test recorded: verdict=%s, score=%s", verdict.value, score)
        return verdict

    def record_arm(self, score: ArmScore) -> TestVerdict:
        verdict = classify_arm(score, self.verdict_policy)
        with self._lock:
            session = self._ensure_session_locked()
            session.arm_result = verdict
            session.arm_drift_score = score.drift
            session.arm_strength_score = score.strength
            session.arm_confidence = score.confidence
        logger.info("Arm test recorded: verdict=%s, score=%s", verdict.value, score)
        return verdict

    def record_speech(self, score: ClarityScore) -> TestVerdict:
        verdict = classify_speech(score, self.verdict_policy)
        with self._lock:
            session = self._ensure_session_locked()
            session.speech_result = verdict
            session.speech_clarity_score = score.clarity
            session.speech_confidence = score.confidence
        logger.info("Speech test recorded: verdict=%s, score=%s", verdict.value, score)
        return verdict

    def reset_face(self) -> None:
        with self._lock:
            if self._current is not None:
                self._current.face_result = None
                self._current.face_asymmetry_score = None
                self._current.face_confidence = None

    def reset_arm(self) -> None:
        with self._lock:
            if self._current is not None:
                self._current.arm_result = None
                self._current.arm_drift_score = None
                self._current.arm_strength_score = None
                self._current.arm_confidence = None

    def reset_speech(self) -> None:
        with self._lock:
            if self._current is not None:
                self._current.speech_result = None
                self._current.speech_clarity_score = None
                self._current.speech_confidence = None

    def save_current_session(self) -> Optional[ScreeningSession]:
        """Compute the overall tier, persist the session and close it.

        Returns the saved record, or None when no session is in progress.
        A failed save keeps the session open so it can be retried.
        """
        with self._lock:
            session = self._current
            if session is None:
                logger.info("No screening session in progress, nothing to save")
                return None
            record = session.model_copy()

        record.overall_result = aggregate_risk(
            record.face_result, record.arm_result, record.speech_result, self.risk_policy
        )
        self.repository.save(record)

        with self._lock:
            if self._current is session:
                self._current = None
        logger.info("Screening session saved: id=%s, overall=%s", record.id, record.overall_result.value)
        return record

    def load_sessions(self) -> List[ScreeningSession]:
        return self.repository.load_all()

    def clear_all_sessions(self) -> None:
        self.repository.clear()
        logger.info("All screening sessions cleared")
