import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class TestVerdict(str, Enum):
    __test__ = False  # keep pytest from collecting it

    NORMAL = "Normal"
    ABNORMAL = "Abnormal"
    INCONCLUSIVE = "Inconclusive"


class RiskTier(str, Enum):
    NO_STROKE = "No Stroke Detected"
    POSSIBLE_STROKE = "Possible Stroke - Seek Medical Attention"
    EMERGENCY = "Emergency - Call 911 Immediately"


class ScreeningSession(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    face_result: Optional[TestVerdict] = None
    arm_result: Optional[TestVerdict] = None
    speech_result: Optional[TestVerdict] = None
    overall_result: Optional[RiskTier] = None

    face_asymmetry_score: Optional[float] = None
    face_confidence: Optional[float] = None
    arm_drift_score: Optional[float] = None
    arm_strength_score: Optional[float] = None
    arm_confidence: Optional[float] = None
    speech_clarity_score: Optional[float] = None
    speech_confidence: Optional[float] = None
