"""
Data model for correlation surfaces.

A dataset is a flat list of ``CorrelationRecord`` rows, one per
(beta, disorder) point. Each row carries 18 correlation measurements split by
order-parameter family (FQ / AFQ), data-set variant (combined / quenched /
annealed) and spatial range bucket (short / medium / long).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    FiniteFloat,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)

from .logger import get_logger

logger = get_logger(__name__)


class RangeSelection(str, Enum):
    """Spatial range bucket the correlation was computed over."""

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class DataSetSelection(str, Enum):
    """How disorder was averaged in the simulation."""

    ANNEALED = "annealed"
    QUENCHED = "quenched"
    COMBINED = "combined"


class OrderParameterSelection(str, Enum):
    """Which order-parameter families are plotted."""

    FQ = "fq"
    AFQ = "afq"
    BOTH = "both"


class OrderParameterFamily(str, Enum):
    """A single order-parameter family (one surface)."""

    FQ = "FQ"
    AFQ = "AFQ"


RANGE_DESCRIPTIONS: Dict[RangeSelection, str] = {
    RangeSelection.SHORT: "1.41 to 4.00 [short range]",
    RangeSelection.MEDIUM: "4.24 to 10.00 [medium range]",
    RangeSelection.LONG: "10.20 to 22.09 [long range]",
}

RANGE_LABELS: Dict[RangeSelection, str] = {
    RangeSelection.SHORT: "Short",
    RangeSelection.MEDIUM: "Medium",
    RangeSelection.LONG: "Long",
}

DATASET_LABELS: Dict[DataSetSelection, str] = {
    DataSetSelection.COMBINED: "Combined",
    DataSetSelection.ANNEALED: "Annealed",
    DataSetSelection.QUENCHED: "Quenched",
}

ORDER_PARAMETER_LABELS: Dict[OrderParameterSelection, str] = {
    OrderParameterSelection.BOTH: "FQ/AFQ",
    OrderParameterSelection.FQ: "FQ",
    OrderParameterSelection.AFQ: "AFQ",
}

# Field-name fragments: corr{family}{range}{variant}, e.g. corrAFQm_quench
RANGE_FIELD_CODES: Dict[RangeSelection, str] = {
    RangeSelection.SHORT: "s",
    RangeSelection.MEDIUM: "m",
    RangeSelection.LONG: "l",
}

VARIANT_FIELD_SUFFIXES: Dict[DataSetSelection, str] = {
    DataSetSelection.COMBINED: "",
    DataSetSelection.QUENCHED: "_quench",
    DataSetSelection.ANNEALED: "_anneal",
}


def correlation_field(
    family: OrderParameterFamily,
    dataset: DataSetSelection,
    range_: RangeSelection,
) -> str:
    """Name of the record field holding one family/variant/range measurement."""
    return f"corr{family.value}{RANGE_FIELD_CODES[range_]}{VARIANT_FIELD_SUFFIXES[dataset]}"


class CorrelationRecord(BaseModel):
    """One row of the source dataset.

    Correlation fields are optional so that an incomplete row still renders
    (as a gap in the surface) instead of failing the whole dataset. A
    correlation value that is not a finite number is also kept as a gap, so
    the row stays in place in the grid. Only ``beta`` and ``disorder``
    are strict.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    beta: FiniteFloat
    disorder: FiniteFloat

    corrFQs: Optional[float] = None
    corrFQs_quench: Optional[float] = None
    corrFQs_anneal: Optional[float] = None
    corrFQm: Optional[float] = None
    corrFQm_quench: Optional[float] = None
    corrFQm_anneal: Optional[float] = None
    corrFQl: Optional[float] = None
    corrFQl_quench: Optional[float] = None
    corrFQl_anneal: Optional[float] = None

    corrAFQs: Optional[float] = None
    corrAFQs_quench: Optional[float] = None
    corrAFQs_anneal: Optional[float] = None
    corrAFQm: Optional[float] = None
    corrAFQm_quench: Optional[float] = None
    corrAFQm_anneal: Optional[float] = None
    corrAFQl: Optional[float] = None
    corrAFQl_quench: Optional[float] = None
    corrAFQl_anneal: Optional[float] = None

    @field_validator(
        "corrFQs", "corrFQs_quench", "corrFQs_anneal",
        "corrFQm", "corrFQm_quench", "corrFQm_anneal",
        "corrFQl", "corrFQl_quench", "corrFQl_anneal",
        "corrAFQs", "corrAFQs_quench", "corrAFQs_anneal",
        "corrAFQm", "corrAFQm_quench", "corrAFQm_anneal",
        "corrAFQl", "corrAFQl_quench", "corrAFQl_anneal",
        mode="wrap",
    )
    @classmethod
    def invalid_value_as_gap(
        cls,
        value: Any,
        handler: ValidatorFunctionWrapHandler,
        info: ValidationInfo,
    ) -> Optional[float]:
        try:
            result = handler(value)
        except ValidationError:
            logger.warning("Treating invalid %s value %r as a gap", info.field_name, value)
            return None
        if result is not None and not math.isfinite(result):
            return None
        return result

    def value(
        self,
        family: OrderParameterFamily,
        dataset: DataSetSelection,
        range_: RangeSelection,
    ) -> Optional[float]:
        return getattr(self, correlation_field(family, dataset, range_))


@dataclass(frozen=True)
class SelectionState:
    """The three toggle selections driving the pivot."""

    range: RangeSelection = RangeSelection.SHORT
    dataset: DataSetSelection = DataSetSelection.COMBINED
    order_parameter: OrderParameterSelection = OrderParameterSelection.BOTH

    @property
    def families(self) -> List[OrderParameterFamily]:
        """Families whose surface is shown for this selection."""
        if self.order_parameter == OrderParameterSelection.FQ:
            return [OrderParameterFamily.FQ]
        if self.order_parameter == OrderParameterSelection.AFQ:
            return [OrderParameterFamily.AFQ]
        return [OrderParameterFamily.FQ, OrderParameterFamily.AFQ]

    def with_changes(
        self,
        range: Optional[RangeSelection] = None,
        dataset: Optional[DataSetSelection] = None,
        order_parameter: Optional[OrderParameterSelection] = None,
    ) -> "SelectionState":
        """Return a copy with the given selections replaced."""
        changes: Dict[str, Any] = {}
        if range is not None:
            changes["range"] = RangeSelection(range)
        if dataset is not None:
            changes["dataset"] = DataSetSelection(dataset)
        if order_parameter is not None:
            changes["order_parameter"] = OrderParameterSelection(order_parameter)
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, str]:
        return {
            "range": self.range.value,
            "dataset": self.dataset.value,
            "order_parameter": self.order_parameter.value,
        }


@dataclass
class PivotedGrid:
    """Surface-ready grids for one selection.

    ``corr_fq`` and ``corr_afq`` have one row per disorder value and one
    column per beta value. A family that is not selected has an empty matrix.
    ``record_count`` is the number of records pivoted and ``distinct_points``
    the number of distinct (disorder, beta) pairs among them.
    """

    betas: List[float]
    disorders: List[float]
    corr_fq: List[List[Optional[float]]]
    corr_afq: List[List[Optional[float]]]
    title: str
    selection: SelectionState = field(default_factory=SelectionState)
    record_count: int = 0
    distinct_points: int = 0

    def matrix(self, family: OrderParameterFamily) -> List[List[Optional[float]]]:
        return self.corr_fq if family == OrderParameterFamily.FQ else self.corr_afq

    def to_dict(self) -> Dict[str, Any]:
        return {
            "betas": self.betas,
            "disorders": self.disorders,
            "corr_fq": self.corr_fq,
            "corr_afq": self.corr_afq,
            "title": self.title,
            "selection": self.selection.to_dict(),
        }
