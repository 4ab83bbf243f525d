"""Configuration module for the FAST screening service."""

from config.constants import (ANALYSIS_WINDOW_SEC,
                              DEFAULT_SERVER_HOST,
                              MAX_STORED_SESSIONS,
                              RECORDING_TIMEOUT_SEC,
                              SERVER_PORT)

__all__ = [
    "ANALYSIS_WINDOW_SEC",
    "RECORDING_TIMEOUT_SEC",
    "MAX_STORED_SESSIONS",
    "DEFAULT_SERVER_HOST",
    "SERVER_PORT",
]
