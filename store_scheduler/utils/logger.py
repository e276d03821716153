"""Process-wide logging setup shared by every layer."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from store_scheduler.utils.config import get_settings


_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_NOISY_LIBRARIES = ("httpx", "httpcore")
_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """Install the stdout handler once; later calls are no-ops."""
    global _configured
    if _configured:
        return

    resolved_level = (level or get_settings().log_level).upper()
    logging.basicConfig(level=resolved_level, format=_LOG_FORMAT, stream=sys.stdout)

    # Outbound HTTP client chatter only at WARNING and above.
    for name in _NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)
