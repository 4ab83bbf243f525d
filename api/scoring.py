import logging

from fastapi import APIRouter, Request

from alerts.verdicts import classify_arm, classify_face, classify_speech
from api.schemas import (
    ArmScoreResponse,
    FaceScoreResponse,
    FramesRequest,
    SpeechScoreRequest,
    SpeechScoreResponse,
)
from audio.speech_clarity import score_speech_clarity
from utils import metrics
from video.observation_window import score_arm_frames, score_face_frames

logger = logging.getLogger("fast_screen.api.scoring")

router = APIRouter(prefix="/score")


@router.post("/face", response_model=FaceScoreResponse)
def score_face(body: FramesRequest, request: Request):
    started = metrics.time_ms()
    score = score_face_frames(body.frames)
    verdict = classify_face(score, request.app.state.verdict_policy)
    metrics.record_timing("api.score.face", metrics.time_ms() - started)
    logger.info("Face scored: frames=%d, score=%s, verdict=%s", len(body.frames), score, verdict.value)
    return FaceScoreResponse(verdict=verdict, asymmetry=score.asymmetry, confidence=score.confidence)


@router.post("/arm", response_model=ArmScoreResponse)
def score_arm(body: FramesRequest, request: Request):
    started = metrics.time_ms()
    score = score_arm_frames(body.frames)
    verdict = classify_arm(score, request.app.state.verdict_policy)
    metrics.record_timing("api.score.arm", metrics.time_ms() - started)
    logger.info("Arm scored: frames=%d, score=%s, verdict=%s", len(body.frames), score, verdict.value)
    return ArmScoreResponse(
        verdict=verdict,
        drift=score.drift,
        strength=score.strength,
        confidence=score.confidence,
    )


@router.post("/speech", response_model=SpeechScoreResponse)
def score_speech(body: SpeechScoreRequest, request: Request):
    started = metrics.time_ms()
    score = score_speech_clarity(body.segments, body.transcript, body.expected_text)
    verdict = classify_speech(score, request.app.state.verdict_policy)
    metrics.record_timing("api.score.speech", metrics.time_ms() - started)
    logger.info("Speech scored: segments=%d, score=%s, verdict=%s", len(body.segments), score, verdict.value)
    return SpeechScoreResponse(verdict=verdict, clarity=score.clarity, confidence=score.confidence)
