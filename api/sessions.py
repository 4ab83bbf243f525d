import logging
from typing import List

from fastapi import APIRouter, HTTPException, Request

from api.schemas import SessionRequest
from models.session import ScreeningSession
from screening.session_manager import ScreeningSessionManager

logger = logging.getLogger("fast_screen.api.sessions")

router = APIRouter(prefix="/sessions")


def _manager(request: Request) -> ScreeningSessionManager:
    state = request.app.state
    return ScreeningSessionManager(
        state.repository,
        risk_policy=state.risk_policy,
        verdict_policy=state.verdict_policy,
    )


@router.post("", response_model=ScreeningSession, status_code=201)
def create_session(body: SessionRequest, request: Request):
    manager = _manager(request)
    manager.start_new_session()
    if body.face is not None:
        manager.record_face(body.face.to_score())
    if body.arm is not None:
        manager.record_arm(body.arm.to_score())
    if body.speech is not None:
        manager.record_speech(body.speech.to_score())

    try:
        saved = manager.save_current_session()
    except OSError as e:
        logger.error("Session could not be persisted: %s", e, exc_info=True)
        raise HTTPException(status_code=503, detail="session history unavailable")
    return saved


@router.get("", response_model=List[ScreeningSession])
def list_sessions(request: Request):
    return request.app.state.repository.load_all()


@router.delete("", status_code=204)
def clear_sessions(request: Request):
    try:
        _manager(request).clear_all_sessions()
    except OSError as e:
        logger.error("Session history could not be cleared: %s", e, exc_info=True)
        raise HTTPException(status_code=503, detail="session history unavailable")
