"""
Shared utilities for the corrsurface webapp API.

Data model, dataset loading, the pivot transform, figure building and the
per-client surface session, used by both the HTTP routes and the WebSocket
channel.
"""
from .correlation_data import (
    CorrelationRecord,
    DataSetSelection,
    OrderParameterFamily,
    OrderParameterSelection,
    PivotedGrid,
    RangeSelection,
    SelectionState,
)
from .figure import build_surface_figure, figure_payload
from .loader import DatasetLoadError, fetch_records, load_configured_records
from .pivot import compose_title, grid_statistics, to_graph_data
from .session import SurfaceSession, SurfaceUpdate

__all__ = [
    "CorrelationRecord",
    "DataSetSelection",
    "OrderParameterFamily",
    "OrderParameterSelection",
    "PivotedGrid",
    "RangeSelection",
    "SelectionState",
    "build_surface_figure",
    "figure_payload",
    "DatasetLoadError",
    "fetch_records",
    "load_configured_records",
    "compose_title",
    "grid_statistics",
    "to_graph_data",
    "SurfaceSession",
    "SurfaceUpdate",
]
