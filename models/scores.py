from pydantic import BaseModel, ConfigDict


class FaceScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    asymmetry: float
    confidence: float


class ArmScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    drift: float
    strength: float
    confidence: float


class ClarityScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    clarity: float
    confidence: float
