"""
Correlation surface API routes.

Every surface or figure request runs one fetch-and-pivot cycle for the
selection given in the query string, mirroring what the browser does on each
toggle change.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from .app_config import get_app_config
from .shared.correlation_data import (
    DATASET_LABELS,
    ORDER_PARAMETER_LABELS,
    RANGE_DESCRIPTIONS,
    RANGE_LABELS,
    CorrelationRecord,
    DataSetSelection,
    OrderParameterSelection,
    RangeSelection,
    SelectionState,
)
from .shared.figure import figure_payload
from .shared.loader import DatasetLoadError, load_configured_records
from .shared.logger import get_logger
from .shared.pivot import grid_statistics, to_graph_data

logger = get_logger(__name__)

router = APIRouter(prefix="/correlations", tags=["correlations"])


# ============= Response Models =============


class SelectionOption(BaseModel):
    value: str
    label: str


class RangeOption(SelectionOption):
    description: str


class OptionsResponse(BaseModel):
    """Available toggle values and the default selection."""

    range: List[RangeOption]
    dataset: List[SelectionOption]
    order_parameter: List[SelectionOption]
    defaults: Dict[str, str]


class DataResponse(BaseModel):
    source: str
    count: int
    records: List[CorrelationRecord]


class SurfaceResponse(BaseModel):
    """Pivoted grids for one selection."""

    betas: List[float]
    disorders: List[float]
    corr_fq: List[List[Optional[float]]]
    corr_afq: List[List[Optional[float]]]
    title: str
    selection: Dict[str, str]
    statistics: Dict[str, Any]
    record_count: int


# ============= Helpers =============


async def _load_records() -> List[CorrelationRecord]:
    try:
        return await load_configured_records()
    except DatasetLoadError as e:
        logger.error("Dataset load failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e))


def _selection(
    range_: RangeSelection,
    dataset: DataSetSelection,
    order_parameter: OrderParameterSelection,
) -> SelectionState:
    return SelectionState(range=range_, dataset=dataset, order_parameter=order_parameter)


# ============= Routes =============


@router.get("/options", response_model=OptionsResponse)
async def get_options():
    """List the toggle groups, their labels and the default selection."""
    return OptionsResponse(
        range=[
            RangeOption(value=r.value, label=RANGE_LABELS[r], description=RANGE_DESCRIPTIONS[r])
            for r in RangeSelection
        ],
        dataset=[
            SelectionOption(value=d.value, label=DATASET_LABELS[d])
            for d in (DataSetSelection.COMBINED, DataSetSelection.ANNEALED, DataSetSelection.QUENCHED)
        ],
        order_parameter=[
            SelectionOption(value=o.value, label=ORDER_PARAMETER_LABELS[o])
            for o in (OrderParameterSelection.BOTH, OrderParameterSelection.FQ, OrderParameterSelection.AFQ)
        ],
        defaults=SelectionState().to_dict(),
    )


@router.get("/data", response_model=DataResponse)
async def get_data():
    """Return the parsed dataset records in file order."""
    records = await _load_records()
    return DataResponse(
        source=get_app_config().data_source,
        count=len(records),
        records=records,
    )


@router.get("/surface", response_model=SurfaceResponse)
async def get_surface(
    range_: RangeSelection = Query(RangeSelection.SHORT, alias="range", description="Range bucket"),
    dataset: DataSetSelection = Query(DataSetSelection.COMBINED, description="Data-set variant"),
    order_parameter: OrderParameterSelection = Query(
        OrderParameterSelection.BOTH, description="Order-parameter family"
    ),
):
    """Pivot the dataset into FQ/AFQ grids for the selection."""
    records = await _load_records()
    grid = to_graph_data(records, _selection(range_, dataset, order_parameter))
    return SurfaceResponse(
        **grid.to_dict(),
        statistics=grid_statistics(grid),
        record_count=len(records),
    )


@router.get("/figure")
async def get_figure(
    range_: RangeSelection = Query(RangeSelection.SHORT, alias="range", description="Range bucket"),
    dataset: DataSetSelection = Query(DataSetSelection.COMBINED, description="Data-set variant"),
    order_parameter: OrderParameterSelection = Query(
        OrderParameterSelection.BOTH, description="Order-parameter family"
    ),
):
    """Plotly figure (data + layout) with both surfaces for the selection."""
    records = await _load_records()
    grid = to_graph_data(records, _selection(range_, dataset, order_parameter))
    return figure_payload(grid)
