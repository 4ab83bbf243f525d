"""Per-frame facial asymmetry and arm drift/extension measurements.

Pure functions, no state and no I/O. Inputs come straight from a landmark
or pose detector and may contain low-confidence or non-finite points, so
every entry point filters before doing arithmetic and falls back to the
neutral value 0.5 when a measurement cannot be made.
"""

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from config import constants
from models import landmarks as lm
from models.landmarks import LandmarkFrame, LandmarkPoint

NEUTRAL = constants.NEUTRAL_SCORE


def _is_finite_point(point: LandmarkPoint) -> bool:
    return math.isfinite(point.x) and math.isfinite(point.y) and math.isfinite(point.confidence)


def finite_points(points: Sequence[LandmarkPoint]) -> List[LandmarkPoint]:
    return [p for p in points if _is_finite_point(p)]


def _clip01(value: float) -> float:
    return float(np.clip(value, 0.0, 1.0))


def region_height(points: Sequence[LandmarkPoint]) -> float:
    """Vertical extent (max y - min y) of a landmark region."""
    if not points:
        return 0.0
    ys = np.array([p.y for p in points], dtype=float)
    return float(ys.max() - ys.min())


def paired_region_asymmetry(left: Sequence[LandmarkPoint], right: Sequence[LandmarkPoint]) -> float:
    """Relative height difference between a left/right region pair (eyes, eyebrows)."""
    left_height = region_height(left)
    right_height = region_height(right)
    average_height = (left_height + right_height) / 2.0
    if average_height <= 0:
        return NEUTRAL
    ratio = abs(left_height - right_height) / average_height
    if not math.isfinite(ratio):
        return NEUTRAL
    return _clip01(ratio)


def mouth_asymmetry(outer_lips: Sequence[LandmarkPoint]) -> float:
    """Vertical offset between the mouth corners.

    The outer-lip contour starts at one corner and reaches the opposite
    corner half way round, so the first point and the midpoint-index point
    are taken as left and right corners.
    """
    if not outer_lips:
        return NEUTRAL
    left_corner = outer_lips[0]
    right_corner = outer_lips[len(outer_lips) // 2]
    offset = abs(left_corner.y - right_corner.y)
    return min(offset * constants.VERTICAL_OFFSET_GAIN, 1.0)


def face_region_scores(frame: LandmarkFrame) -> List[float]:
    """Asymmetry for every region present with enough finite points."""
    scores: List[float] = []

    for left_name, right_name in ((lm.LEFT_EYE, lm.RIGHT_EYE), (lm.LEFT_EYEBROW, lm.RIGHT_EYEBROW)):
        left = finite_points(frame.region(left_name))
        right = finite_points(frame.region(right_name))
        if len(left) >= constants.MIN_EYE_REGION_POINTS and len(right) >= constants.MIN_EYE_REGION_POINTS:
            scores.append(paired_region_asymmetry(left, right))

    lips = finite_points(frame.region(lm.OUTER_LIPS))
    if len(lips) >= constants.MIN_MOUTH_POINTS:
        scores.append(mouth_asymmetry(lips))

    return scores


def face_asymmetry(frame: LandmarkFrame) -> float:
    """Mean asymmetry over the face regions present in the frame, 0.5 if none."""
    scores = face_region_scores(frame)
    if not scores:
        return NEUTRAL
    return _clip01(float(np.mean(scores)))


def _point_distance(a: LandmarkPoint, b: LandmarkPoint) -> float:
    return float(np.hypot(a.x - b.x, a.y - b.y))


def arm_extension(wrist: LandmarkPoint, elbow: LandmarkPoint, shoulder: LandmarkPoint) -> float:
    """How straight an arm is: 1.0 fully extended, towards 0 when folded."""
    wrist_to_elbow = _point_distance(wrist, elbow)
    elbow_to_shoulder = _point_distance(elbow, shoulder)
    wrist_to_shoulder = _point_distance(wrist, shoulder)

    limb_length = wrist_to_elbow + elbow_to_shoulder
    if limb_length <= 0:
        return 0.0
    return _clip01(wrist_to_shoulder / limb_length)


def _confident_joint(frame: LandmarkFrame, name: str) -> Optional[LandmarkPoint]:
    point = frame.joint(name)
    if point is None or not _is_finite_point(point):
        return None
    if point.confidence <= constants.MIN_JOINT_CONFIDENCE:
        return None
    return point


def arm_drift_and_strength(frame: LandmarkFrame) -> Tuple[float, float]:
    """Return (drift, strength) for one pose frame.

    All six arm joints must be present with confidence above the joint
    threshold; otherwise the frame yields the neutral pair (0.5, 0.5).
    """
    joints = {name: _confident_joint(frame, name) for name in lm.ARM_JOINTS}
    if any(point is None for point in joints.values()):
        return NEUTRAL, NEUTRAL

    left_wrist = joints[lm.LEFT_WRIST]
    right_wrist = joints[lm.RIGHT_WRIST]
    drift = min(abs(left_wrist.y - right_wrist.y) * constants.VERTICAL_OFFSET_GAIN, 1.0)

    left_extension = arm_extension(left_wrist, joints[lm.LEFT_ELBOW], joints[lm.LEFT_SHOULDER])
    right_extension = arm_extension(right_wrist, joints[lm.RIGHT_ELBOW], joints[lm.RIGHT_SHOULDER])
    strength = (left_extension + right_extension) / 2.0

    return float(drift), float(strength)
