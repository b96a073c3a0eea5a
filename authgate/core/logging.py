# authgate/core/logging.py
from __future__ import annotations

import logging

from authgate.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger once at app startup."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )
    # passlib logs a harmless version warning with newer bcrypt releases
    logging.getLogger("passlib").setLevel(logging.ERROR)
