"""
App configuration for the corrsurface webapp.

Settings are read from environment variables with the ``CORRSURFACE_`` prefix:

- CORRSURFACE_DATA: dataset location. A path relative to the public folder,
  an absolute path, or an http(s) URL.
- CORRSURFACE_PUBLIC_DIR: folder holding index.html and the bundled dataset
- CORRSURFACE_FETCH_TIMEOUT: HTTP fetch timeout in seconds
- CORRSURFACE_DISCARD_STALE: drop results of superseded recompute cycles
- CORRSURFACE_LOG_LEVEL: logging level name
- CORRSURFACE_HOST, CORRSURFACE_PORT: default bind address for ``python main.py``
"""

import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

_ENV_PREFIX = "CORRSURFACE_"

DEFAULT_DATA_SOURCE = "data/correlations.json"
DEFAULT_PUBLIC_DIR = Path(__file__).parent.parent / "public"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None or not value.strip():
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


@dataclass(frozen=True)
class AppConfig:
    """Runtime settings of the webapp."""

    data_source: str = DEFAULT_DATA_SOURCE
    public_dir: Path = DEFAULT_PUBLIC_DIR
    fetch_timeout: float = 10.0
    discard_stale: bool = True
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["public_dir"] = str(self.public_dir)
        return data

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """Build a config from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            return env.get(_ENV_PREFIX + name)

        public_dir = get("PUBLIC_DIR")
        timeout = get("FETCH_TIMEOUT")
        port = get("PORT")

        return cls(
            data_source=get("DATA") or DEFAULT_DATA_SOURCE,
            public_dir=Path(public_dir) if public_dir else DEFAULT_PUBLIC_DIR,
            fetch_timeout=float(timeout) if timeout else 10.0,
            discard_stale=_parse_bool(get("DISCARD_STALE"), True),
            log_level=(get("LOG_LEVEL") or "INFO").upper(),
            host=get("HOST") or "127.0.0.1",
            port=int(port) if port else 8000,
        )


_app_config: Optional[AppConfig] = None


def get_app_config() -> AppConfig:
    """Return the process-wide config, building it on first use."""
    global _app_config
    if _app_config is None:
        _app_config = AppConfig.from_env()
    return _app_config


def reload_app_config() -> AppConfig:
    """Rebuild the process-wide config from the current environment."""
    global _app_config
    _app_config = AppConfig.from_env()
    return _app_config
