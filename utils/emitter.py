"""Helpers for safe result delivery.

Completion callbacks belong to external collaborators (presentation,
persistence). `safe_emit` calls them with consistent error handling so a
misbehaving consumer can never break a capture, timer or recognition thread.
"""

import logging
from typing import Any, Callable, Optional

logger = logging.getLogger("fast_screen.utils.emitter")


def safe_emit(
    emitter: Optional[Callable[[Any], Any]],
    event: Any,
    log: Optional[logging.Logger] = None,
    session_id: Optional[str] = None,
) -> bool:
    """Call `emitter(event)` and log, rather than raise, any exception.

    Returns True when the emitter ran to completion.
    """
    if emitter is None:
        return False
    lg = log or logger
    try:
        emitter(event)
        return True
    except Exception as e:
        try:
            lg.error("safe_emit failed: %s", e, extra={"session_id": session_id}, exc_info=True)
        except Exception:
            # ensure we never raise from logging
            pass
        return False


def safe_release(
    release: Callable[[], Any],
    resource: str,
    log: Optional[logging.Logger] = None,
) -> bool:
    """Run a teardown step; a failure is logged and never propagated."""
    lg = log or logger
    try:
        release()
        return True
    except Exception as e:
        lg.warning("release of %s failed: %s: %s", resource, type(e).__name__, e)
        return False
