import logging
import sys


def configure_logging(level: str = None) -> None:
    if level is None:
        from config import constants
        level = constants.LOG_LEVEL
    fmt = "%(asctime)s %(levelname)s %(name)s %(message)s"
    logging.basicConfig(
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        format=fmt,
    )
    # google-auth and grpc are chatty at INFO while streaming
    logging.getLogger("google").setLevel(max(logging.WARNING, logging.root.level))

    logging.getLogger("fast_screen").info("Logging is configured: level=%s", level.upper())
