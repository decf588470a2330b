"""
Logging setup for the corrsurface backend.

Every selection change refetches the dataset, so the per-request lines of
httpx/httpcore are held at WARNING unless the app itself runs at DEBUG.
"""

import logging
import sys
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
HTTP_CLIENT_LOGGERS = ("httpx", "httpcore")

_configured_level: Optional[int] = None


def resolve_level(level: Union[str, int]) -> int:
    """Numeric logging level for a name like ``"debug"``; unknown names give INFO."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: Union[str, int] = "INFO") -> int:
    """Configure root logging once per level and return the level applied."""
    global _configured_level
    resolved = resolve_level(level)
    if _configured_level == resolved:
        return resolved

    logging.basicConfig(
        level=resolved,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    client_level = logging.DEBUG if resolved <= logging.DEBUG else logging.WARNING
    for name in HTTP_CLIENT_LOGGERS:
        logging.getLogger(name).setLevel(client_level)

    _configured_level = resolved
    return resolved


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
