import logging
import queue
from abc import ABC, abstractmethod

from config import constants
from events.recognition_events import RecognitionEvent

logger = logging.getLogger("fast_screen.audio.recognition_backend")


def new_event_channel(maxsize: int = None) -> "queue.Queue[RecognitionEvent]":
    if maxsize is None:
        maxsize = constants.RECOGNITION_EVENT_QUEUE_SIZE
    return queue.Queue(maxsize=maxsize)


def publish_event(channel: queue.Queue, event: RecognitionEvent) -> bool:
    """Put `event` on the channel, dropping the oldest pending event if full.

    Transcription updates supersede each other, so losing an old one only
    skips an intermediate transcript. Returns True if an event was dropped.
    """
    dropped = False
    while True:
        try:
            channel.put_nowait(event)
            return dropped
        except queue.Full:
            try:
                channel.get_nowait()
                dropped = True
                logger.debug("Recognition event channel full, dropped oldest event")
            except queue.Empty:
                pass


class RecognitionBackend(ABC):
    """A speech recognition engine driven by `RecognitionSessionController`.

    While started, the backend publishes `TranscriptionUpdate` and
    `RecognitionError` events on the channel it was given, from whatever
    thread it runs on. `stop()` must release the audio tap, the request and
    the audio session, and must be safe to call when nothing is running.
    """

    @abstractmethod
    def is_authorized(self) -> bool:
        """Microphone and recognition permission granted."""

    @abstractmethod
    def is_available(self) -> bool:
        """Recognizer ready to accept a new request."""

    @abstractmethod
    def start(self, channel: queue.Queue) -> None:
        """Begin streaming recognition; raise if the engine cannot start."""

    @abstractmethod
    def stop(self) -> None:
        """End audio input and release every recording resource."""

    @abstractmethod
    def reset(self) -> None:
        """Drop and re-create the underlying recognizer."""
