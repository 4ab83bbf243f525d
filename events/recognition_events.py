from typing import Sequence, Tuple, Union

from models.speech import SpeechSegment


class TranscriptionUpdate:
    """Partial or final recognition result published by a backend."""

    def __init__(
        self,
        text: str,
        segments: Sequence[SpeechSegment] = (),
        is_final: bool = False,
    ):
        self.text = text
        self.segments: Tuple[SpeechSegment, ...] = tuple(segments)
        self.is_final = is_final

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "segments": [s.model_dump() for s in self.segments],
            "isFinal": self.is_final,
        }


class RecognitionError:
    """Terminal error reported by a backend.

    `transient` marks the flaky local-service failure class that the
    controller may recover from by resetting the backend.
    """

    def __init__(self, code: str, message: str = "", transient: bool = False):
        self.code = code
        self.message = message
        self.transient = transient

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "transient": self.transient,
        }

    def __repr__(self) -> str:
        return f"RecognitionError(code={self.code!r}, transient={self.transient})"


RecognitionEvent = Union[TranscriptionUpdate, RecognitionError]
