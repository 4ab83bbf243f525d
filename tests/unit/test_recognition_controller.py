import threading
from unittest.mock import Mock

import pytest

from audio.recognition_backend import publish_event
from audio.recognition_controller import (
    REJECTED_RESULT,
    RecognitionSessionController,
    RecognitionState,
)
from events.recognition_events import RecognitionError, TranscriptionUpdate
from models.scores import ClarityScore
from models.speech import SpeechSegment
from utils import metrics

EXPECTED = "the quick brown fox jumps over the lazy dog"


def words(*texts, confidence=0.9):
    return [
        SpeechSegment(text=t, confidence=confidence, timestamp=i * 0.4, duration=0.4)
        for i, t in enumerate(texts)
    ]


def final_update(text="the quick brown fox"):
    return TranscriptionUpdate(text=text, segments=words(*text.split()), is_final=True)


def transient_error():
    return RecognitionError("ServiceUnavailable", "recognizer went away", transient=True)


@pytest.fixture
def controller(backend, scheduler):
    return RecognitionSessionController(backend, scheduler=scheduler, consume_events=False)


def test_start_arms_recording_and_timeout(controller, backend, scheduler):
    assert controller.start(EXPECTED, Mock())
    assert controller.state is RecognitionState.RECORDING
    assert controller.is_recording
    assert len(backend.channels) == 1
    assert len(scheduler.pending("recording-timeout")) == 1


def test_final_result_completes_with_clarity(controller, backend, scheduler):
    on_complete = Mock()
    controller.start(EXPECTED, on_complete)
    controller.handle_event(final_update())

    on_complete.assert_called_once()
    result = on_complete.call_args[0][0]
    assert result.clarity == pytest.approx((0.9 + 4 / 9) / 2)
    assert result.confidence == pytest.approx(0.9)
    assert controller.state is RecognitionState.IDLE
    assert backend.stop_calls >= 1
    assert scheduler.pending("recording-timeout") == []


def test_partial_updates_replace_segments_and_transcript(controller):
    controller.start(EXPECTED, Mock())
    controller.handle_event(TranscriptionUpdate("the", words("the")))
    controller.handle_event(TranscriptionUpdate("the quick", words("the", "quick")))
    assert controller.transcript == "the quick"
    assert [s.text for s in controller.store.snapshot()] == ["the", "quick"]


def test_final_and_error_together_complete_once(controller):
    on_complete = Mock()
    controller.start(EXPECTED, on_complete)
    controller.handle_event(final_update())
    controller.handle_event(RecognitionError("no_speech"))
    controller.stop()
    controller.stop()
    on_complete.assert_called_once()
    assert metrics.get_counter("recognition.completed") == 1


def test_concurrent_triggers_deliver_a_single_completion(controller):
    on_complete = Mock()
    controller.start(EXPECTED, on_complete)
    controller.handle_event(TranscriptionUpdate("the quick", words("the", "quick")))

    barrier = threading.Barrier(6)

    def fire(action):
        barrier.wait()
        action()

    actions = [
        lambda: controller.handle_event(final_update("the quick")),
        lambda: controller.handle_event(RecognitionError("no_speech")),
        controller.stop,
    ] * 2
    threads = [threading.Thread(target=fire, args=(a,)) for a in actions]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    on_complete.assert_called_once()
    assert controller.state is RecognitionState.IDLE


def test_start_while_recording_is_ignored(controller):
    first, second = Mock(), Mock()
    controller.start(EXPECTED, first)
    assert not controller.start(EXPECTED, second)
    second.assert_not_called()
    controller.stop()
    first.assert_called_once()


def test_start_without_permission_completes_with_zero(backend, controller):
    backend.authorized = False
    on_complete = Mock()
    assert not controller.start(EXPECTED, on_complete)
    on_complete.assert_called_once_with(REJECTED_RESULT)
    assert controller.state is RecognitionState.IDLE
    assert metrics.get_counter("recognition.rejected") == 1


def test_start_with_unavailable_backend_completes_with_zero(backend, controller):
    backend.available = False
    on_complete = Mock()
    assert not controller.start(EXPECTED, on_complete)
    on_complete.assert_called_once_with(ClarityScore(clarity=0.0, confidence=0.0))


def test_backend_start_failure_completes_with_zero(backend, controller, scheduler):
    backend.start_error = RuntimeError("audio engine failed")
    on_complete = Mock()
    assert not controller.start(EXPECTED, on_complete)
    on_complete.assert_called_once_with(REJECTED_RESULT)
    assert controller.state is RecognitionState.IDLE
    assert scheduler.pending("recording-timeout") == []


def test_timeout_finalizes_with_neutral_result_when_nothing_was_heard(controller, scheduler):
    on_complete = Mock()
    controller.start(EXPECTED, on_complete)
    scheduler.advance(29.0)
    on_complete.assert_not_called()
    scheduler.advance(1.0)
    on_complete.assert_called_once_with(ClarityScore(clarity=0.5, confidence=0.0))
    assert controller.state is RecognitionState.IDLE


def test_stop_scores_what_was_heard(controller):
    on_complete = Mock()
    controller.start(EXPECTED, on_complete)
    controller.handle_event(TranscriptionUpdate("the quick", words("the", "quick", confidence=0.7)))
    controller.stop()
    result = on_complete.call_args[0][0]
    assert result.confidence == pytest.approx(0.7)
    assert result.clarity == pytest.approx((0.7 + 2 / 9) / 2)


def test_stop_when_idle_is_a_no_op(controller, backend):
    controller.stop()
    assert controller.state is RecognitionState.IDLE
    assert backend.stop_calls == 0


def test_events_from_a_stale_session_are_ignored(controller):
    on_complete = Mock()
    controller.start(EXPECTED, on_complete)
    controller.handle_event(final_update(), session_id=999)
    on_complete.assert_not_called()
    assert controller.store.snapshot() == ()


def test_transient_error_resets_backend_and_resumes(controller, backend, scheduler):
    on_complete = Mock()
    controller.start(EXPECTED, on_complete)
    controller.handle_event(transient_error())

    assert controller.is_resetting
    assert controller.retry_count == 1
    assert controller.state is RecognitionState.IDLE
    on_complete.assert_not_called()

    blocked = Mock()
    assert not controller.start(EXPECTED, blocked)
    blocked.assert_called_once_with(REJECTED_RESULT)

    scheduler.advance(2.0)
    assert backend.reset_calls == 1
    assert not controller.is_resetting
    assert controller.state is RecognitionState.RECORDING
    assert controller.retry_count == 1
    assert len(backend.channels) == 2

    controller.handle_event(final_update())
    on_complete.assert_called_once()
    assert on_complete.call_args[0][0].confidence == pytest.approx(0.9)


def test_retries_are_bounded(controller, scheduler):
    on_complete = Mock()
    controller.start(EXPECTED, on_complete)

    controller.handle_event(transient_error())
    scheduler.advance(2.0)
    controller.handle_event(transient_error())
    scheduler.advance(4.0)
    assert controller.retry_count == 2
    assert controller.is_recording

    controller.handle_event(transient_error())
    on_complete.assert_called_once_with(ClarityScore(clarity=0.5, confidence=0.0))
    assert metrics.get_counter("recognition.retry") == 2
    assert controller.state is RecognitionState.IDLE


def test_stop_during_reset_finalizes_after_reset(controller, backend, scheduler):
    on_complete = Mock()
    controller.start(EXPECTED, on_complete)
    controller.handle_event(transient_error())
    controller.stop()
    on_complete.assert_not_called()

    scheduler.advance(2.0)
    assert backend.reset_calls == 1
    on_complete.assert_called_once()
    assert controller.state is RecognitionState.IDLE
    assert not controller.is_resetting


def test_non_transient_error_finalizes_immediately(controller, backend):
    on_complete = Mock()
    controller.start(EXPECTED, on_complete)
    controller.handle_event(RecognitionError("permission_revoked"))
    on_complete.assert_called_once()
    assert backend.reset_calls == 0


def test_failing_callback_still_returns_to_idle(controller):
    controller.start(EXPECTED, Mock(side_effect=RuntimeError("screen closed")))
    controller.handle_event(final_update())
    assert controller.state is RecognitionState.IDLE


def test_backend_teardown_failure_does_not_block_completion(controller, backend):
    backend.stop = Mock(side_effect=OSError("audio session busy"))
    on_complete = Mock()
    controller.start(EXPECTED, on_complete)
    controller.handle_event(final_update())
    on_complete.assert_called_once()


def test_consumer_thread_drains_backend_events(backend, scheduler):
    controller = RecognitionSessionController(backend, scheduler=scheduler)
    done = threading.Event()
    results = []

    def on_complete(result):
        results.append(result)
        done.set()

    assert controller.start(EXPECTED, on_complete)
    channel = backend.channels[0]
    publish_event(channel, TranscriptionUpdate("the quick", words("the", "quick")))
    publish_event(channel, final_update(EXPECTED))

    assert done.wait(timeout=5)
    assert len(results) == 1
    assert results[0].clarity == pytest.approx((0.9 + 1.0) / 2)
