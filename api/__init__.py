"""
API package for the corrsurface webapp FastAPI backend.

This package provides the REST API endpoints for:
- Correlation surfaces: options, raw data, pivoted grids, figures (correlations.py)
- System health, info and the error log (system.py)
- Runtime configuration from environment variables (app_config.py)
"""

from .app_config import AppConfig, get_app_config, reload_app_config

__all__ = [
    "AppConfig",
    "get_app_config",
    "reload_app_config",
]
