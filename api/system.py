"""
System API routes for the corrsurface webapp.

This module provides FastAPI routes for system health and information, and
the in-memory error log fed by the global exception handlers.
"""

import platform
import sys
import traceback
from collections import deque
from datetime import datetime
from importlib.metadata import PackageNotFoundError, version
from typing import Any, Deque, Dict, List, Optional

from fastapi import APIRouter, Query

from .app_config import get_app_config
from .shared.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

MAX_ERROR_ENTRIES = 200

_error_log: Deque[Dict[str, Any]] = deque(maxlen=MAX_ERROR_ENTRIES)


def log_error(
    endpoint: str,
    message: str,
    level: str = "error",
    details: Optional[str] = None,
    exc: Optional[BaseException] = None,
) -> Dict[str, Any]:
    """Record a server error and log it.

    Args:
        endpoint: Request path the error occurred on.
        message: Short error message.
        level: "warning", "error" or "critical".
        details: Extra context (status code, exception type).
        exc: Exception to attach a formatted traceback from.

    Returns:
        The recorded entry.
    """
    entry = {
        "timestamp": datetime.now().isoformat(),
        "endpoint": endpoint,
        "message": message,
        "level": level,
        "details": details,
        "traceback": (
            "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            if exc is not None
            else None
        ),
    }
    _error_log.append(entry)

    if level == "critical":
        logger.critical("%s: %s (%s)", endpoint, message, details, exc_info=exc)
    elif level == "warning":
        logger.warning("%s: %s (%s)", endpoint, message, details)
    else:
        logger.error("%s: %s (%s)", endpoint, message, details)
    return entry


def get_error_log(limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Most recent errors first."""
    entries = list(reversed(_error_log))
    return entries[:limit] if limit is not None else entries


def clear_error_log() -> None:
    _error_log.clear()


def _get_package_versions() -> Dict[str, str]:
    """Get versions of key packages."""
    packages = {}

    package_names = [
        "numpy",
        "plotly",
        "pydantic",
        "httpx",
        "fastapi",
        "uvicorn",
    ]

    for name in package_names:
        try:
            packages[name] = version(name)
        except PackageNotFoundError:
            pass

    return packages


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "message": "corrsurface webapp is running",
    }


@router.get("/system/info")
async def system_info():
    """Get system and environment information."""
    return {
        "python": {
            "version": sys.version,
            "platform": sys.platform,
            "executable": sys.executable,
        },
        "system": {
            "os": platform.system(),
            "release": platform.release(),
            "machine": platform.machine(),
        },
        "config": get_app_config().to_dict(),
        "packages": _get_package_versions(),
    }


@router.get("/system/errors")
async def system_errors(limit: int = Query(50, ge=1, le=MAX_ERROR_ENTRIES)):
    """Recent server errors, newest first."""
    errors = get_error_log(limit)
    return {"errors": errors, "total": len(_error_log)}


@router.delete("/system/errors")
async def clear_system_errors():
    """Clear the in-memory error log."""
    clear_error_log()
    return {"success": True}
