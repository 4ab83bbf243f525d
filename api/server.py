import logging
from typing import Optional

from fastapi import FastAPI

from alerts.risk_aggregator import RiskPolicy, resolve_risk_policy
from alerts.verdicts import VerdictPolicy, resolve_verdict_policy
from api import health, scoring, sessions
from storage.session_repository import JsonFileSessionRepository, SessionRepository

logger = logging.getLogger("fast_screen.api.server")


def create_app(
    repository: Optional[SessionRepository] = None,
    risk_policy: Optional[RiskPolicy] = None,
    verdict_policy: Optional[VerdictPolicy] = None,
) -> FastAPI:
    """Build the HTTP application around a session repository."""
    app = FastAPI(title="FAST stroke screening")
    app.state.repository = repository if repository is not None else JsonFileSessionRepository()
    app.state.risk_policy = resolve_risk_policy(risk_policy)
    app.state.verdict_policy = resolve_verdict_policy(verdict_policy)

    app.include_router(health.router)
    app.include_router(scoring.router)
    app.include_router(sessions.router)

    logger.info(
        "Application created: repository=%s, risk_policy=%s, verdict_policy=%s",
        type(app.state.repository).__name__,
        app.state.risk_policy.value,
        app.state.verdict_policy.value,
    )
    return app
