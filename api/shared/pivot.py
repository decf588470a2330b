"""
Pivot transform: flat correlation records -> surface grids.

The records are sorted by (disorder, beta) and the selected scalar of each
record is laid out row-major, one row per disorder and one column per beta.
The reshape assumes the dataset is a complete beta x disorder grid. When it
is not, the result is a truncated or ragged matrix rather than an error.
"""

from __future__ import annotations

from typing import Any, Dict, Hashable, Iterable, List, Optional, Sequence, TypeVar

import numpy as np

from .correlation_data import (
    DATASET_LABELS,
    ORDER_PARAMETER_LABELS,
    RANGE_DESCRIPTIONS,
    CorrelationRecord,
    DataSetSelection,
    OrderParameterFamily,
    PivotedGrid,
    RangeSelection,
    SelectionState,
)

T = TypeVar("T", bound=Hashable)


def sort_records(records: Iterable[CorrelationRecord]) -> List[CorrelationRecord]:
    """Sort ascending by disorder, then by beta."""
    return sorted(records, key=lambda r: (r.disorder, r.beta))


def distinct_in_order(values: Iterable[T]) -> List[T]:
    """Deduplicate with exact equality, keeping first-seen order."""
    return list(dict.fromkeys(values))


def select_value(
    record: CorrelationRecord,
    family: OrderParameterFamily,
    dataset: DataSetSelection,
    range_: RangeSelection,
) -> Optional[float]:
    """Pick one scalar: the variant selects the field group, the range the field."""
    return record.value(family, dataset, range_)


def family_values(
    records: Sequence[CorrelationRecord],
    family: OrderParameterFamily,
    selection: SelectionState,
) -> List[Optional[float]]:
    return [select_value(r, family, selection.dataset, selection.range) for r in records]


def reshape_rows(values: Sequence[T], n_rows: int, n_cols: int) -> List[List[T]]:
    """Slice a flat sequence into ``n_rows`` chunks of ``n_cols``.

    Missing trailing values give short (or empty) rows, surplus values are
    dropped.
    """
    return [list(values[i * n_cols:(i + 1) * n_cols]) for i in range(n_rows)]


def compose_title(selection: SelectionState) -> str:
    """Plot title for a selection, with a ``<br>`` before the range description."""
    return (
        f"{DATASET_LABELS[selection.dataset]} "
        f"{ORDER_PARAMETER_LABELS[selection.order_parameter]} Correlation:<br> "
        f"{RANGE_DESCRIPTIONS[selection.range]}"
    )


def to_graph_data(
    records: Iterable[CorrelationRecord],
    selection: Optional[SelectionState] = None,
) -> PivotedGrid:
    """Pivot records into the FQ/AFQ matrices for the given selection."""
    selection = selection or SelectionState()
    ordered = sort_records(records)

    betas = distinct_in_order(r.beta for r in ordered)
    disorders = distinct_in_order(r.disorder for r in ordered)

    matrices: Dict[OrderParameterFamily, List[List[Optional[float]]]] = {
        OrderParameterFamily.FQ: [],
        OrderParameterFamily.AFQ: [],
    }
    for family in selection.families:
        values = family_values(ordered, family, selection)
        matrices[family] = reshape_rows(values, len(disorders), len(betas))

    return PivotedGrid(
        betas=betas,
        disorders=disorders,
        corr_fq=matrices[OrderParameterFamily.FQ],
        corr_afq=matrices[OrderParameterFamily.AFQ],
        title=compose_title(selection),
        selection=selection,
        record_count=len(ordered),
        distinct_points=len(distinct_in_order((r.disorder, r.beta) for r in ordered)),
    )


def _matrix_summary(matrix: List[List[Optional[float]]]) -> Optional[Dict[str, Any]]:
    cells = np.array(
        [v for row in matrix for v in row if v is not None], dtype=np.float64
    )
    cells = cells[np.isfinite(cells)]
    if cells.size == 0:
        return None
    return {
        "min": float(np.min(cells)),
        "max": float(np.max(cells)),
        "mean": float(np.mean(cells)),
        "count": int(cells.size),
    }


def grid_statistics(grid: PivotedGrid) -> Dict[str, Any]:
    """Shape and per-family value summary of a pivoted grid.

    ``complete`` is False when a selected matrix is ragged or short, or when
    the dataset repeats a (beta, disorder) point. A repeated point shifts the
    cells after it even when the record count matches the grid size.
    """
    n_rows, n_cols = len(grid.disorders), len(grid.betas)
    complete = grid.record_count == grid.distinct_points == n_rows * n_cols
    for family in grid.selection.families:
        matrix = grid.matrix(family)
        if len(matrix) != n_rows or any(len(row) != n_cols for row in matrix):
            complete = False

    return {
        "shape": [n_rows, n_cols],
        "expected_cells": n_rows * n_cols,
        "distinct_points": grid.distinct_points,
        "complete": complete,
        "fq": _matrix_summary(grid.corr_fq),
        "afq": _matrix_summary(grid.corr_afq),
    }
