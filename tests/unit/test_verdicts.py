import math

import pytest

from alerts.verdicts import (
    VerdictPolicy,
    classify_arm,
    classify_face,
    classify_speech,
    resolve_verdict_policy,
)
from models.scores import ArmScore, ClarityScore, FaceScore
from models.session import TestVerdict


@pytest.mark.parametrize(
    "asymmetry, confidence, expected",
    [
        (0.1, 0.9, TestVerdict.NORMAL),
        (0.3, 0.9, TestVerdict.NORMAL),
        (0.31, 0.9, TestVerdict.ABNORMAL),
        (0.9, 0.29, TestVerdict.INCONCLUSIVE),
        (0.1, 0.3, TestVerdict.NORMAL),
    ],
)
def test_face_verdicts(asymmetry, confidence, expected):
    assert classify_face(FaceScore(asymmetry=asymmetry, confidence=confidence)) is expected


def test_arm_is_abnormal_on_drift_or_weakness():
    assert classify_arm(ArmScore(drift=0.1, strength=0.9, confidence=1.0)) is TestVerdict.NORMAL
    assert classify_arm(ArmScore(drift=0.5, strength=0.9, confidence=1.0)) is TestVerdict.ABNORMAL
    assert classify_arm(ArmScore(drift=0.1, strength=0.5, confidence=1.0)) is TestVerdict.ABNORMAL


def test_speech_is_abnormal_below_clarity_threshold():
    assert classify_speech(ClarityScore(clarity=0.7, confidence=0.8)) is TestVerdict.NORMAL
    assert classify_speech(ClarityScore(clarity=0.5, confidence=0.8)) is TestVerdict.ABNORMAL


def test_rejected_speech_session_is_inconclusive():
    assert classify_speech(ClarityScore(clarity=0.0, confidence=0.0)) is TestVerdict.INCONCLUSIVE


def test_strict_policy_treats_low_confidence_as_abnormal():
    score = FaceScore(asymmetry=0.5, confidence=0.0)
    assert classify_face(score, VerdictPolicy.STRICT) is TestVerdict.ABNORMAL
    assert classify_face(score, VerdictPolicy.INCONCLUSIVE) is TestVerdict.INCONCLUSIVE


def test_non_finite_confidence_counts_as_zero():
    score = ArmScore(drift=0.1, strength=0.9, confidence=math.nan)
    assert classify_arm(score) is TestVerdict.INCONCLUSIVE


def test_policy_resolution_accepts_names():
    assert resolve_verdict_policy("STRICT") is VerdictPolicy.STRICT
    assert resolve_verdict_policy(VerdictPolicy.INCONCLUSIVE) is VerdictPolicy.INCONCLUSIVE
    with pytest.raises(ValueError):
        resolve_verdict_policy("lenient")
