"""
Dataset loader for correlation surfaces.

Fetches the JSON resource once per call, either from disk or over HTTP, and
parses it into an ordered list of ``CorrelationRecord``. There is no retry
and no caching: every selection change fetches again.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, List, Optional, Union

import httpx
from pydantic import ValidationError

from ..app_config import AppConfig, get_app_config
from .correlation_data import CorrelationRecord
from .logger import get_logger

logger = get_logger(__name__)


class DatasetLoadError(Exception):
    """The dataset could not be fetched or is not a JSON array."""

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"Could not load dataset from {source}: {message}")


def is_remote_source(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def resolve_local_path(source: Union[str, Path], base_dir: Optional[Path] = None) -> Path:
    """Resolve a dataset path; relative paths are taken from ``base_dir``."""
    path = Path(source)
    if path.is_absolute() or base_dir is None:
        return path
    return Path(base_dir) / path


def parse_records(payload: Any, source: str = "<payload>") -> List[CorrelationRecord]:
    """Parse a decoded JSON payload into records, keeping file order.

    Entries that are not objects or lack a numeric beta/disorder are skipped.
    """
    if not isinstance(payload, list):
        raise DatasetLoadError(source, f"expected a JSON array, got {type(payload).__name__}")

    records: List[CorrelationRecord] = []
    for index, item in enumerate(payload):
        try:
            records.append(CorrelationRecord.model_validate(item))
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ())) or "record"
            logger.warning(
                "Skipping malformed record %d in %s (%s: %s)",
                index, source, location, first.get("msg"),
            )
    return records


def _read_local(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise DatasetLoadError(str(path), str(e)) from e
    except ValueError as e:
        raise DatasetLoadError(str(path), f"invalid JSON: {e}") from e


async def _fetch_remote(
    url: str,
    timeout: float,
    client: Optional[httpx.AsyncClient] = None,
) -> Any:
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout) as owned_client:
                response = await owned_client.get(url)
        else:
            response = await client.get(url)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPError as e:
        raise DatasetLoadError(url, str(e)) from e
    except ValueError as e:
        raise DatasetLoadError(url, f"invalid JSON: {e}") from e


async def fetch_records(
    source: str,
    base_dir: Optional[Path] = None,
    timeout: float = 10.0,
    client: Optional[httpx.AsyncClient] = None,
) -> List[CorrelationRecord]:
    """Fetch and parse the dataset.

    Args:
        source: http(s) URL, absolute path, or path relative to ``base_dir``.
        base_dir: Folder that relative paths are resolved against.
        timeout: HTTP timeout in seconds (ignored for local files).
        client: Optional shared ``httpx.AsyncClient`` for remote sources.

    Raises:
        DatasetLoadError: On I/O, HTTP or JSON errors, or a non-array payload.
    """
    if is_remote_source(source):
        payload = await _fetch_remote(source, timeout, client)
        origin = source
    else:
        path = resolve_local_path(source, base_dir)
        payload = await asyncio.to_thread(_read_local, path)
        origin = str(path)

    records = parse_records(payload, origin)
    logger.debug("Loaded %d correlation records from %s", len(records), origin)
    return records


async def load_configured_records(config: Optional[AppConfig] = None) -> List[CorrelationRecord]:
    """Fetch the dataset named by the app config."""
    config = config or get_app_config()
    return await fetch_records(
        config.data_source,
        base_dir=config.public_dir,
        timeout=config.fetch_timeout,
    )
