from typing import Annotated, List, Optional

from pydantic import BaseModel, Field

from config import constants
from models.landmarks import LandmarkFrame
from models.scores import ArmScore, ClarityScore, FaceScore
from models.session import TestVerdict
from models.speech import SpeechSegment


class FramesRequest(BaseModel):
    frames: List[LandmarkFrame] = Field(default_factory=list)


class FaceScoreResponse(BaseModel):
    verdict: TestVerdict
    asymmetry: float
    confidence: float


class ArmScoreResponse(BaseModel):
    verdict: TestVerdict
    drift: float
    strength: float
    confidence: float


class SpeechScoreRequest(BaseModel):
    segments: List[SpeechSegment] = Field(default_factory=list)
    transcript: str = ""
    expected_text: str = constants.DEFAULT_TEST_SENTENCE


class SpeechScoreResponse(BaseModel):
    verdict: TestVerdict
    clarity: float
    confidence: float


UnitFloat = Annotated[float, Field(ge=0.0, le=1.0, allow_inf_nan=False)]


class FaceScoreIn(BaseModel):
    asymmetry: UnitFloat
    confidence: UnitFloat

    def to_score(self) -> FaceScore:
        return FaceScore(asymmetry=self.asymmetry, confidence=self.confidence)


class ArmScoreIn(BaseModel):
    drift: UnitFloat
    strength: UnitFloat
    confidence: UnitFloat

    def to_score(self) -> ArmScore:
        return ArmScore(drift=self.drift, strength=self.strength, confidence=self.confidence)


class ClarityScoreIn(BaseModel):
    clarity: UnitFloat
    confidence: UnitFloat

    def to_score(self) -> ClarityScore:
        return ClarityScore(clarity=self.clarity, confidence=self.confidence)


class SessionRequest(BaseModel):
    """Score bundles of the tests that were run; omitted tests count as Normal.

    Every value must be a finite number in [0, 1].
    """

    face: Optional[FaceScoreIn] = None
    arm: Optional[ArmScoreIn] = None
    speech: Optional[ClarityScoreIn] = None
