import math
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict


class SpeechSegment(BaseModel):
    """A unit of transcribed speech as reported by the recognition backend.

    Segments are immutable; a new backend update replaces the whole
    collection instead of editing entries.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    confidence: float
    timestamp: float
    duration: float
    # Voice-quality measurements (jitter, shimmer, pitch...) when the backend
    # provides them; their presence enables the speaking-rate refinement.
    voice_analytics: Optional[Dict[str, float]] = None

    def is_finite(self) -> bool:
        return (
            math.isfinite(self.confidence)
            and math.isfinite(self.timestamp)
            and math.isfinite(self.duration)
        )
