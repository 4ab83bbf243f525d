import logging
import threading
from typing import Iterable, Tuple

from models.speech import SpeechSegment
from utils import metrics

logger = logging.getLogger("fast_screen.audio.segment_store")


class SpeechSegmentStore:
    """Latest transcription segments of a recording session.

    The recognition backend re-sends the whole segment list with every
    partial result, so the store only supports atomic replacement. Every
    operation takes the same lock: a `replace_all` never interleaves with a
    `snapshot` that is being copied for scoring.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._segments: Tuple[SpeechSegment, ...] = ()

    def replace_all(self, segments: Iterable[SpeechSegment]) -> bool:
        """Replace the stored segments with the finite ones from `segments`.

        Returns False, leaving the store untouched, when a non-empty update
        contained no usable segment. An empty update is a valid update and
        empties the store.
        """
        incoming = list(segments)
        valid = tuple(s for s in incoming if s.is_finite())

        dropped = len(incoming) - len(valid)
        if dropped:
            metrics.incr("speech.segments.dropped", dropped)
            logger.debug("Dropped %d segment(s) with non-finite values", dropped)

        if incoming and not valid:
            logger.info("No valid segments in update of %d, keeping previous segments", len(incoming))
            return False

        with self._lock:
            self._segments = valid
        logger.debug("Stored %d segment(s)", len(valid))
        return True

    def snapshot(self) -> Tuple[SpeechSegment, ...]:
        with self._lock:
            return tuple(self._segments)

    def clear(self) -> None:
        with self._lock:
            self._segments = ()

    def __len__(self) -> int:
        with self._lock:
            return len(self._segments)
