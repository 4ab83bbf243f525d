import logging
import queue
import threading
from typing import Callable, List, Optional

import google.auth
from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import speech_v1 as speech

from audio.recognition_backend import RecognitionBackend, publish_event
from config import constants
from events.recognition_events import RecognitionError, TranscriptionUpdate
from models.speech import SpeechSegment

logger = logging.getLogger("fast_screen.audio.google_stt")

# Failures of the managed service that usually clear up after reconnecting
TRANSIENT_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.InternalServerError,
    google_exceptions.Aborted,
)


class GoogleStreamingBackend(RecognitionBackend):
    """Streaming recognition through Google Cloud Speech-to-Text.

    The capture collaborator pushes 16-bit mono PCM with `push_audio()`; a
    worker thread runs the blocking `streaming_recognize` call and turns
    every response into a `TranscriptionUpdate` carrying one segment per
    recognized word.
    """

    def __init__(self, client_factory: Optional[Callable[[], "speech.SpeechClient"]] = None):
        self._client_factory = client_factory or speech.SpeechClient
        self._client: Optional[speech.SpeechClient] = None
        self._lock = threading.Lock()
        self._audio_queue: "queue.Queue[Optional[bytes]]" = queue.Queue()
        # set once the current stream has been stopped; each stream gets its own
        self._stream_closed = threading.Event()
        self._stream_closed.set()

        self.recognition_config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=constants.STT_SAMPLE_RATE,
            language_code=constants.STT_LANGUAGE,
            enable_automatic_punctuation=constants.STT_ENABLE_PUNCTUATION,
            enable_word_time_offsets=True,
            enable_word_confidence=True,
            model=constants.STT_MODEL,
        )

        self.streaming_config = speech.StreamingRecognitionConfig(
            config=self.recognition_config,
            interim_results=True,
            single_utterance=constants.STT_SINGLE_UTTERANCE,
        )

        self._create_client()
        logger.info(
            "GoogleStreamingBackend initialized: language=%s, model=%s, sample_rate=%dHz",
            constants.STT_LANGUAGE,
            constants.STT_MODEL,
            constants.STT_SAMPLE_RATE,
        )

    def _create_client(self) -> None:
        try:
            self._client = self._client_factory()
        except Exception as e:
            logger.error("Speech client could not be created: %s: %s", type(e).__name__, e)
            self._client = None

    def is_authorized(self) -> bool:
        try:
            google.auth.default()
            return True
        except auth_exceptions.DefaultCredentialsError as e:
            logger.info("No Google credentials available: %s", e)
            return False

    def is_available(self) -> bool:
        with self._lock:
            return self._client is not None and self._stream_closed.is_set()

    def start(self, channel: queue.Queue) -> None:
        with self._lock:
            if self._client is None:
                raise RuntimeError("speech client is not available")
            if not self._stream_closed.is_set():
                raise RuntimeError("a recognition stream is already running")
            self._audio_queue = queue.Queue()
            self._stream_closed = threading.Event()
            audio_queue = self._audio_queue
            stream_closed = self._stream_closed
            client = self._client

        threading.Thread(
            target=self._run,
            args=(client, audio_queue, stream_closed, channel),
            name="google-stt-stream",
            daemon=True,
        ).start()
        logger.info("Google STT stream started")

    def push_audio(self, pcm_chunk: bytes) -> None:
        with self._lock:
            if self._stream_closed.is_set():
                return
            audio_queue = self._audio_queue
        audio_queue.put(pcm_chunk)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Audio pushed: size=%d bytes, queue_depth=%d",
                len(pcm_chunk),
                audio_queue.qsize(),
            )

    def stop(self) -> None:
        with self._lock:
            if self._stream_closed.is_set():
                return
            self._stream_closed.set()
            audio_queue = self._audio_queue
        audio_queue.put(None)
        logger.info("Google STT stream stopped, queue sentinel sent")

    def reset(self) -> None:
        logger.info("Resetting Google speech client")
        self.stop()
        with self._lock:
            self._client = None
        self._create_client()

    def _audio_generator(self, audio_queue: queue.Queue):
        while True:
            chunk = audio_queue.get()
            if chunk is None:
                logger.debug("Queue sentinel received, generator exiting")
                break
            yield speech.StreamingRecognizeRequest(audio_content=chunk)

    def _run(
        self,
        client,
        audio_queue: queue.Queue,
        stream_closed: threading.Event,
        channel: queue.Queue,
    ) -> None:
        """Blocking loop over streaming responses; runs on its own thread."""
        final_words: List[SpeechSegment] = []
        final_text: List[str] = []
        try:
            responses = client.streaming_recognize(
                config=self.streaming_config,
                requests=self._audio_generator(audio_queue),
            )
            for response in responses:
                for result in response.results:
                    if not result.alternatives:
                        continue
                    alternative = result.alternatives[0]
                    words = [self._word_to_segment(w) for w in alternative.words]
                    transcript = alternative.transcript.strip()

                    text = " ".join(final_text + [transcript]).strip()
                    update = TranscriptionUpdate(
                        text=text,
                        segments=final_words + words,
                        is_final=False,
                    )
                    if result.is_final:
                        final_words.extend(words)
                        final_text.append(transcript)
                        update.is_final = constants.STT_SINGLE_UTTERANCE
                        logger.info("FINAL transcript: text='%s', words=%d", text, len(words))
                    publish_event(channel, update)

            if not stream_closed.is_set():
                publish_event(channel, RecognitionError("stream_ended", "recognition stream ended"))
        except TRANSIENT_ERRORS as e:
            logger.warning("Google STT transient error: %s: %s", type(e).__name__, e)
            publish_event(channel, RecognitionError(type(e).__name__, str(e), transient=True))
        except Exception as e:
            logger.error("Google STT streaming error: %s: %s", type(e).__name__, e, exc_info=True)
            publish_event(channel, RecognitionError(type(e).__name__, str(e)))

    @staticmethod
    def _word_to_segment(word) -> SpeechSegment:
        start = word.start_time.total_seconds()
        end = word.end_time.total_seconds()
        return SpeechSegment(
            text=word.word,
            confidence=float(word.confidence),
            timestamp=start,
            duration=max(0.0, end - start),
        )
