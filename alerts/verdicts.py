"""Per-test verdicts derived from (score, confidence) pairs.

Two threshold policies are available. Under `INCONCLUSIVE` a low-confidence
observation is reported as Inconclusive; under `STRICT` it counts as
Abnormal, so a test that saw nothing is flagged. The per-test thresholds are
the same for both.
"""

import math
from enum import Enum
from typing import Optional, Union

from config import constants
from models.scores import ArmScore, ClarityScore, FaceScore
from models.session import TestVerdict


class VerdictPolicy(str, Enum):
    INCONCLUSIVE = "inconclusive"
    STRICT = "strict"


def resolve_verdict_policy(value: Optional[Union[str, VerdictPolicy]] = None) -> VerdictPolicy:
    if value is None:
        value = constants.VERDICT_POLICY
    return VerdictPolicy(str(getattr(value, "value", value)).lower())


def _low_confidence(confidence: float) -> bool:
    return not math.isfinite(confidence) or confidence < constants.MIN_VERDICT_CONFIDENCE


def _finite_or(value: float, fallback: float) -> float:
    return value if math.isfinite(value) else fallback


def _classify(confidence: float, abnormal: bool, policy: VerdictPolicy) -> TestVerdict:
    if _low_confidence(confidence):
        if policy is VerdictPolicy.STRICT:
            return TestVerdict.ABNORMAL
        return TestVerdict.INCONCLUSIVE
    if abnormal:
        return TestVerdict.ABNORMAL
    return TestVerdict.NORMAL


def classify_face(score: FaceScore, policy: Optional[VerdictPolicy] = None) -> TestVerdict:
    asymmetry = _finite_or(score.asymmetry, constants.NEUTRAL_SCORE)
    return _classify(
        score.confidence,
        asymmetry > constants.FACE_ASYMMETRY_THRESHOLD,
        resolve_verdict_policy(policy),
    )


def classify_arm(score: ArmScore, policy: Optional[VerdictPolicy] = None) -> TestVerdict:
    drift = _finite_or(score.drift, constants.NEUTRAL_SCORE)
    strength = _finite_or(score.strength, constants.NEUTRAL_SCORE)
    abnormal = drift > constants.ARM_DRIFT_THRESHOLD or strength < constants.ARM_STRENGTH_THRESHOLD
    return _classify(score.confidence, abnormal, resolve_verdict_policy(policy))


def classify_speech(score: ClarityScore, policy: Optional[VerdictPolicy] = None) -> TestVerdict:
    clarity = _finite_or(score.clarity, 0.0)
    return _classify(
        score.confidence,
        clarity < constants.SPEECH_CLARITY_THRESHOLD,
        resolve_verdict_policy(policy),
    )
