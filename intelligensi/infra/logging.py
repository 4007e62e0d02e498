# intelligensi/infra/logging.py
from __future__ import annotations

import logging
import os

_LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
_LEVELS: dict[str, int] = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def setup_logging(service_name: str = "intelligensi-content-service", level_name: str | None = None) -> None:
    """
    One log format for every request handler; the service name is stamped on each line.
    """
    level = _LEVELS.get((level_name or _LOG_LEVEL).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format=(
            "%(asctime)s | %(levelname)s | %(name)s | "
            f"svc={service_name} | %(message)s"
        ),
    )
    logging.getLogger("intelligensi").setLevel(level)
    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
