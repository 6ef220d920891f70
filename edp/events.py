from __future__ import annotations

import logging

logger = logging.getLogger("edp")

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def configure_logging(level: str = "INFO") -> None:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")
    logging.basicConfig(level=numeric, format=LOG_FORMAT)


def log_event(level: str, message: str, container: str | None = None) -> None:
    """Log a lifecycle milestone, tagged with the container it concerns."""
    if container:
        message = f"[{container}] {message}"
    logger.log(logging.getLevelName(level.upper()), message)
