from __future__ import annotations

import logging
from importlib import import_module
from types import ModuleType
from typing import List

logger = logging.getLogger(__name__)

# Submodules resolvable as attributes of this package.
_ROUTER_MODULES: List[str] = [
    "activities",
    "contacts",
    "dashboard",
    "deals",
    "pipeline",
    "tasks",
    "users",
]

__all__ = _ROUTER_MODULES


def __getattr__(name: str) -> ModuleType:
    """Import `crm_backend.routers.<name>` on first attribute access."""
    if name not in _ROUTER_MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    full_name = f"{__name__}.{name}"
    logger.debug("Loading router %s", full_name)
    return import_module(full_name)
