"""Lifecycle of one speech-test recording session.

States are IDLE -> RECORDING -> FINALIZING -> IDLE, with an orthogonal
`resetting` flag set while a flaky backend is being torn down and
re-created. Four things can end a session: a final transcription, a
backend error, the recording timeout and an explicit `stop()`. They may
race each other on different threads; the completion callback still runs
exactly once per `start()` that was accepted.
"""

import logging
import queue
import threading
from enum import Enum
from typing import Callable, Optional

from audio.recognition_backend import RecognitionBackend, new_event_channel, publish_event
from audio.segment_store import SpeechSegmentStore
from audio.speech_clarity import EMPTY_RESULT, score_speech_clarity
from config import constants
from events.recognition_events import RecognitionError, RecognitionEvent, TranscriptionUpdate
from models.scores import ClarityScore
from utils import metrics
from utils.emitter import safe_emit, safe_release
from utils.scheduler import Scheduler, TimerHandle, default_scheduler

logger = logging.getLogger("fast_screen.audio.recognition_controller")

# Delivered when a session cannot even start (no permission, backend down)
REJECTED_RESULT = ClarityScore(clarity=0.0, confidence=0.0)

CompletionCallback = Callable[[ClarityScore], None]


class RecognitionState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    FINALIZING = "finalizing"


class RecognitionSessionController:

    def __init__(
        self,
        backend: RecognitionBackend,
        store: Optional[SpeechSegmentStore] = None,
        scheduler: Optional[Scheduler] = None,
        timeout_sec: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_backoff_sec: Optional[float] = None,
        consume_events: bool = True,
    ):
        """
        Args:
            backend: Recognition engine publishing events on a channel.
            store: Segment store shared with the scoring step.
            scheduler: Timer source for the recording timeout and retry backoff.
            consume_events: Start a consumer thread per session. Tests that
                feed `handle_event` directly turn it off.
        """
        self._backend = backend
        self._store = store or SpeechSegmentStore()
        self._scheduler = scheduler or default_scheduler
        self._timeout_sec = constants.RECORDING_TIMEOUT_SEC if timeout_sec is None else timeout_sec
        self._max_retries = constants.MAX_RECOGNITION_RETRIES if max_retries is None else max_retries
        self._retry_backoff_sec = (
            constants.RETRY_BACKOFF_SEC if retry_backoff_sec is None else retry_backoff_sec
        )
        self._consume_events = consume_events

        self._lock = threading.Lock()
        self._state = RecognitionState.IDLE
        self._resetting = False
        self._retry_count = 0
        self._session_id = 0
        self._completion_pending = False
        self._stop_requested = False
        self._expected_text = ""
        self._transcript = ""
        self._on_complete: Optional[CompletionCallback] = None
        self._timeout: Optional[TimerHandle] = None
        self._channel: Optional[queue.Queue] = None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------
    @property
    def state(self) -> RecognitionState:
        with self._lock:
            return self._state

    @property
    def is_recording(self) -> bool:
        return self.state is RecognitionState.RECORDING

    @property
    def is_resetting(self) -> bool:
        with self._lock:
            return self._resetting

    @property
    def retry_count(self) -> int:
        with self._lock:
            return self._retry_count

    @property
    def transcript(self) -> str:
        with self._lock:
            return self._transcript

    @property
    def store(self) -> SpeechSegmentStore:
        return self._store

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def start(self, expected_text: str, on_complete: CompletionCallback) -> bool:
        """Begin recording. Returns False when the request was not accepted.

        A request made while already recording is ignored. Requests that
        cannot be served (reset in progress, missing permission, backend
        unavailable) complete immediately with a zero score.
        """
        with self._lock:
            busy = self._state is not RecognitionState.IDLE
            resetting = self._resetting

        if busy:
            logger.info("Already recording, ignoring start request")
            return False
        if resetting:
            return self._reject(on_complete, "speech recognizer is resetting")
        if not self._backend_check(self._backend.is_authorized):
            return self._reject(on_complete, "microphone or recognition permission not granted")
        if not self._backend_check(self._backend.is_available):
            return self._reject(on_complete, "speech recognizer is not available")

        with self._lock:
            if self._state is not RecognitionState.IDLE or self._resetting:
                logger.info("Session started concurrently, ignoring start request")
                return False
            session_id, channel = self._arm_locked(expected_text, on_complete, retry_count=0)

        return self._launch(session_id, channel)

    def stop(self) -> None:
        """End the current recording. Safe from any thread, in any state."""
        self._stop(None)

    def handle_event(self, event: RecognitionEvent, session_id: Optional[int] = None) -> None:
        """Apply one backend event to the current session."""
        if isinstance(event, TranscriptionUpdate):
            with self._lock:
                if not self._accepts_events_locked(session_id):
                    return
                session_id = self._session_id
                self._store.replace_all(event.segments)
                self._transcript = event.text
            logger.debug("Transcribed: %s", event.text)
            if event.is_final:
                self._finalize(session_id, "final result")
            return

        if isinstance(event, RecognitionError):
            with self._lock:
                if not self._accepts_events_locked(session_id):
                    return
                session_id = self._session_id
            logger.warning("Speech recognition error: %s %s", event.code, event.message)
            if event.transient and self._begin_retry(session_id, event):
                return
            self._finalize(session_id, f"error {event.code}")
            return

        logger.warning("Ignoring unknown recognition event: %r", event)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _backend_check(self, check: Callable[[], bool]) -> bool:
        try:
            return bool(check())
        except Exception as e:
            logger.error("Recognition backend check failed: %s", e)
            return False

    def _reject(self, on_complete: CompletionCallback, reason: str) -> bool:
        logger.info("Rejecting start request: %s", reason)
        metrics.incr("recognition.rejected")
        safe_emit(on_complete, REJECTED_RESULT, logger)
        return False

    def _accepts_events_locked(self, session_id: Optional[int]) -> bool:
        if session_id is not None and session_id != self._session_id:
            return False
        return self._state is RecognitionState.RECORDING and not self._resetting

    def _arm_locked(self, expected_text: str, on_complete: CompletionCallback, retry_count: int):
        """Move to RECORDING for a new or resumed session. Caller holds the lock."""
        self._session_id += 1
        self._state = RecognitionState.RECORDING
        self._completion_pending = True
        self._stop_requested = False
        self._retry_count = retry_count
        self._expected_text = expected_text
        self._transcript = ""
        self._on_complete = on_complete
        self._channel = new_event_channel()
        self._store.clear()
        return self._session_id, self._channel

    def _launch(self, session_id: int, channel: queue.Queue) -> bool:
        timeout = self._scheduler.call_later(
            self._timeout_sec,
            lambda: self._on_timeout(session_id),
            name="recording-timeout",
        )
        with self._lock:
            current = session_id == self._session_id and self._completion_pending
            if current:
                self._timeout = timeout
        if not current:
            timeout.cancel()
            return True

        try:
            self._backend.start(channel)
        except Exception as e:
            logger.error("Recognition backend couldn't start: %s: %s", type(e).__name__, e)
            self._finalize(session_id, "backend start failed", result=REJECTED_RESULT)
            return False

        with self._lock:
            current = session_id == self._session_id and self._completion_pending
        if not current:
            # finalized while the backend was starting; its teardown already ran
            safe_release(self._backend.stop, "recognition backend", logger)
            return True

        if self._consume_events:
            threading.Thread(
                target=self._consume,
                args=(session_id, channel),
                name=f"recognition-events-{session_id}",
                daemon=True,
            ).start()
        logger.info("Recording started: session=%d", session_id)
        return True

    def _consume(self, session_id: int, channel: queue.Queue) -> None:
        while True:
            try:
                event = channel.get(timeout=1.0)
            except queue.Empty:
                with self._lock:
                    if session_id != self._session_id or not self._completion_pending:
                        break
                continue
            if event is None:
                break
            try:
                self.handle_event(event, session_id)
            except Exception as e:
                logger.error("Recognition event handling failed: %s", e, exc_info=True)
        logger.debug("Event consumer for session %d exiting", session_id)

    def _on_timeout(self, session_id: int) -> None:
        logger.info("Recording timeout reached")
        self._stop(session_id)

    def _stop(self, session_id: Optional[int]) -> None:
        with self._lock:
            if session_id is not None and session_id != self._session_id:
                return
            if self._resetting:
                if self._completion_pending:
                    self._stop_requested = True
                logger.info("Skipping cleanup during reset")
                return
            if self._state is not RecognitionState.RECORDING:
                return
            session_id = self._session_id
        self._finalize(session_id, "stopped")

    def _begin_retry(self, session_id: int, error: RecognitionError) -> bool:
        """Start a backend reset for a transient error. False when retries are exhausted."""
        with self._lock:
            if session_id != self._session_id or self._state is not RecognitionState.RECORDING:
                return True
            if self._resetting or self._retry_count >= self._max_retries:
                logger.info("Max retries reached or reset in progress, stopping retries")
                return False
            self._retry_count += 1
            attempt = self._retry_count
            self._resetting = True
            self._state = RecognitionState.IDLE
            timeout, self._timeout = self._timeout, None
            channel, self._channel = self._channel, None

        metrics.incr("recognition.retry")
        logger.warning(
            "Transient recognizer error %s, retry attempt %d of %d",
            error.code,
            attempt,
            self._max_retries,
        )
        self._release_resources(timeout, channel)
        self._scheduler.call_later(
            self._retry_backoff_sec * attempt,
            lambda: self._complete_reset(session_id),
            name="recognizer-reset",
        )
        return True

    def _complete_reset(self, session_id: int) -> None:
        safe_release(self._backend.reset, "speech recognizer", logger)

        with self._lock:
            if session_id != self._session_id or not self._resetting:
                return
            self._resetting = False
            if self._stop_requested or not self._completion_pending:
                resume = None
            else:
                resume = self._arm_locked(
                    self._expected_text, self._on_complete, retry_count=self._retry_count
                )

        if resume is None:
            logger.info("Recognizer reset complete, session was stopped meanwhile")
            self._finalize(session_id, "stopped during reset")
            return

        logger.info("Recognizer reset complete, resuming session")
        self._launch(*resume)

    def _finalize(self, session_id: int, reason: str, result: Optional[ClarityScore] = None) -> None:
        with self._lock:
            if session_id != self._session_id or not self._completion_pending:
                logger.debug("Analysis already completed, skipping (%s)", reason)
                return
            self._completion_pending = False
            self._state = RecognitionState.FINALIZING
            callback, self._on_complete = self._on_complete, None
            timeout, self._timeout = self._timeout, None
            channel, self._channel = self._channel, None
            transcript = self._transcript
            expected_text = self._expected_text

        try:
            if result is None:
                result = self._score(transcript, expected_text)
        finally:
            self._release_resources(timeout, channel)
            with self._lock:
                if session_id == self._session_id:
                    self._state = RecognitionState.IDLE

        metrics.incr("recognition.completed")
        logger.info(
            "Recording finalized (%s): clarity=%.3f, confidence=%.3f",
            reason,
            result.clarity,
            result.confidence,
        )
        safe_emit(callback, result, logger, session_id=str(session_id))

    def _score(self, transcript: str, expected_text: str) -> ClarityScore:
        segments = self._store.snapshot()
        if not segments:
            logger.info("No segments available for analysis")
            return EMPTY_RESULT
        try:
            return score_speech_clarity(segments, transcript, expected_text)
        except Exception as e:
            logger.error("Speech clarity scoring failed: %s", e, exc_info=True)
            return EMPTY_RESULT

    def _release_resources(self, timeout: Optional[TimerHandle], channel: Optional[queue.Queue]) -> None:
        if timeout is not None:
            safe_release(timeout.cancel, "recording timer", logger)
        safe_release(self._backend.stop, "recognition backend", logger)
        if channel is not None:
            # wake the consumer thread so it can exit
            publish_event(channel, None)
