from typing import Dict, List, Optional

from pydantic import BaseModel, Field

# Face regions
LEFT_EYE = "left_eye"
RIGHT_EYE = "right_eye"
LEFT_EYEBROW = "left_eyebrow"
RIGHT_EYEBROW = "right_eyebrow"
OUTER_LIPS = "outer_lips"

# Pose joints
LEFT_SHOULDER = "left_shoulder"
RIGHT_SHOULDER = "right_shoulder"
LEFT_ELBOW = "left_elbow"
RIGHT_ELBOW = "right_elbow"
LEFT_WRIST = "left_wrist"
RIGHT_WRIST = "right_wrist"

ARM_JOINTS = (
    LEFT_SHOULDER,
    RIGHT_SHOULDER,
    LEFT_ELBOW,
    RIGHT_ELBOW,
    LEFT_WRIST,
    RIGHT_WRIST,
)


class LandmarkPoint(BaseModel):
    x: float
    y: float
    confidence: float = 1.0


class LandmarkFrame(BaseModel):
    """One detector output: named groups of 2D points at a capture timestamp.

    Face frames carry one group per region (eye contour, lip contour, ...);
    pose frames carry one single-point group per joint.
    """

    timestamp: float = 0.0
    landmarks: Dict[str, List[LandmarkPoint]] = Field(default_factory=dict)

    def region(self, name: str) -> List[LandmarkPoint]:
        return self.landmarks.get(name, [])

    def joint(self, name: str) -> Optional[LandmarkPoint]:
        points = self.landmarks.get(name)
        return points[0] if points else None

    def is_empty(self) -> bool:
        return not any(self.landmarks.values())
