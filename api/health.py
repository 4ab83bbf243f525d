import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("fast_screen.api.health")

router = APIRouter()


@router.get("/health")
async def health():
    """Basic liveness probe - always returns ok if the server is running."""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request):
    """Readiness probe - validates the session history store is usable."""
    logger.info("Readiness check requested")
    checks = {}
    is_ready = True

    repository = request.app.state.repository
    try:
        repository_ok = repository.is_ready()
    except Exception as e:
        logger.warning("Repository readiness check raised: %s", e)
        repository_ok = False

    if repository_ok:
        checks["session_repository"] = "ok"
    else:
        checks["session_repository"] = "unavailable"
        is_ready = False
        logger.info("Readiness check failed: session repository unavailable")

    status_code = 200 if is_ready else 503
    return JSONResponse({"ready": is_ready, "checks": checks}, status_code=status_code)
