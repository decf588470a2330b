"""
Root conftest.py for corrsurface webapp tests.

This file contains shared fixtures and pytest configuration
that applies to all test modules.
"""

import json
import sys
from itertools import product
from pathlib import Path

import pytest

# Ensure the webapp root is in the path
webapp_root = Path(__file__).parent.parent
if str(webapp_root) not in sys.path:
    sys.path.insert(0, str(webapp_root))

from api.shared.correlation_data import (
    CorrelationRecord,
    DataSetSelection,
    OrderParameterFamily,
    RangeSelection,
    correlation_field,
)

ALL_CORRELATION_FIELDS = [
    correlation_field(family, dataset, range_)
    for family, dataset, range_ in product(OrderParameterFamily, DataSetSelection, RangeSelection)
]


# ============================================================================
# Pytest Hooks
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "websocket: mark test as involving WebSocket communication",
    )


def pytest_collection_modifyitems(config, items):
    """Mark WebSocket tests based on their name."""
    for item in items:
        if "websocket" in item.name.lower():
            item.add_marker(pytest.mark.websocket)


# ============================================================================
# Record Helpers
# ============================================================================


def make_record(beta: float, disorder: float, **values) -> dict:
    """Record dict where every correlation field holds a distinct value.

    Field ``i`` gets ``i + beta / 10 + disorder / 100`` unless overridden,
    so a wrong field selection shows up as a wrong value.
    """
    record = {"beta": beta, "disorder": disorder}
    for index, name in enumerate(ALL_CORRELATION_FIELDS):
        record[name] = round(index + beta / 10 + disorder / 100, 6)
    record.update(values)
    return record


def to_records(rows) -> list:
    return [CorrelationRecord(**row) for row in rows]


# ============================================================================
# Shared Fixtures
# ============================================================================


@pytest.fixture
def grid_rows():
    """2 betas x 2 disorders, deliberately out of order."""
    return [
        make_record(1.0, 0.2, corrFQs=0.22, corrAFQs=0.72),
        make_record(0.5, 0.1, corrFQs=0.11, corrAFQs=0.61),
        make_record(0.5, 0.2, corrFQs=0.21, corrAFQs=0.71),
        make_record(1.0, 0.1, corrFQs=0.12, corrAFQs=0.62),
    ]


@pytest.fixture
def grid_records(grid_rows):
    return to_records(grid_rows)


@pytest.fixture
def dataset_file(tmp_path, grid_rows) -> Path:
    """The 2 x 2 dataset written to a temporary JSON file."""
    path = tmp_path / "correlations.json"
    path.write_text(json.dumps(grid_rows), encoding="utf-8")
    return path


@pytest.fixture
def use_dataset(monkeypatch, tmp_path):
    """Point the app config at a dataset path for the duration of a test."""
    from api import app_config

    def _use(path, discard_stale: bool = True):
        config = app_config.AppConfig(
            data_source=str(path),
            public_dir=tmp_path,
            discard_stale=discard_stale,
        )
        monkeypatch.setattr(app_config, "_app_config", config)
        return config

    return _use
