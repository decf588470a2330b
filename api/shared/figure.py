"""
Plotly figure for a pivoted correlation grid.

Both order-parameter families share one 3D scene: AFQ in teal, FQ in
magenta, on a fixed [0, 1] colour range.
"""

import json
from typing import Any, Dict

import plotly.graph_objects as go

from .correlation_data import OrderParameterFamily, PivotedGrid

FIGURE_WIDTH = 1024
FIGURE_HEIGHT = 800
Z_RANGE = (0.0, 1.0)

SURFACE_STYLES: Dict[OrderParameterFamily, Dict[str, Any]] = {
    OrderParameterFamily.AFQ: {
        "colorscale": [[0.0, "#d1efea"], [1.0, "#2a5674"]],
        "colorbar_x": -0.17,
    },
    OrderParameterFamily.FQ: {
        "colorscale": [[0.0, "#f3cbd3"], [1.0, "#6c2167"]],
        "colorbar_x": -0.27,
    },
}

# AFQ is drawn first so its colour bar sits closest to the scene.
TRACE_ORDER = (OrderParameterFamily.AFQ, OrderParameterFamily.FQ)


def _surface(grid: PivotedGrid, family: OrderParameterFamily) -> go.Surface:
    style = SURFACE_STYLES[family]
    return go.Surface(
        name=family.value,
        x=grid.betas,
        y=grid.disorders,
        z=grid.matrix(family),
        opacity=1,
        colorscale=style["colorscale"],
        colorbar={"x": style["colorbar_x"], "title": {"text": family.value}},
        cmin=Z_RANGE[0],
        cmax=Z_RANGE[1],
    )


def build_surface_figure(grid: PivotedGrid) -> go.Figure:
    """Two overlaid surfaces; a deselected family gets an empty surface."""
    fig = go.Figure(data=[_surface(grid, family) for family in TRACE_ORDER])
    fig.update_layout(
        title={"text": grid.title, "x": 0.5, "y": 0.95},
        autosize=False,
        width=FIGURE_WIDTH,
        height=FIGURE_HEIGHT,
        margin={"t": 10, "b": 10, "l": 10, "r": 10},
        scene={
            "xaxis": {"title": {"text": "Beta"}},
            "yaxis": {"title": {"text": "Disorder"}},
            "zaxis": {"title": {"text": "corr"}},
        },
    )
    return fig


def figure_payload(grid: PivotedGrid) -> Dict[str, Any]:
    """JSON-safe dict of the figure, as plotly.js expects it."""
    return json.loads(build_surface_figure(grid).to_json())
