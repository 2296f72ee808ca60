from __future__ import annotations

import logging
import sys
from typing import Optional

from crm_backend.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """
    Install a single stream handler on the root logger.

    Safe to call more than once; only the first call attaches the handler.
    Uvicorn is started with log_config=None so its loggers propagate here.
    """
    global _configured

    resolved = (level or settings.log_level or "INFO").upper()
    root = logging.getLogger()
    root.setLevel(resolved)

    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    _configured = True

    logging.getLogger("crm_backend.logging").debug("Logging configured at %s", resolved)
