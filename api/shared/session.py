"""
Surface session: selection state plus the fetch-and-recompute cycle.

Each selection change starts a new cycle that fetches the dataset and pivots
it for the selection current at that moment. Cycles are numbered with a
generation counter. In-flight fetches are never cancelled; with
``discard_stale`` enabled, a cycle that finishes after a newer one has
started is dropped, otherwise whichever cycle resolves last wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from .correlation_data import (
    CorrelationRecord,
    DataSetSelection,
    OrderParameterSelection,
    PivotedGrid,
    RangeSelection,
    SelectionState,
)
from .loader import DatasetLoadError, load_configured_records
from .logger import get_logger
from .pivot import to_graph_data

logger = get_logger(__name__)

RecordLoader = Callable[[], Awaitable[List[CorrelationRecord]]]


@dataclass
class SurfaceUpdate:
    """Result of one completed cycle."""

    generation: int
    grid: PivotedGrid
    record_count: int


class SurfaceSession:
    """Per-client view state for the correlation surface."""

    def __init__(
        self,
        loader: Optional[RecordLoader] = None,
        selection: Optional[SelectionState] = None,
        discard_stale: bool = True,
    ):
        self._loader = loader or load_configured_records
        self._selection = selection or SelectionState()
        self._discard_stale = discard_stale
        self._generation = 0
        self._latest: Optional[SurfaceUpdate] = None
        self._records: List[CorrelationRecord] = []

    @property
    def selection(self) -> SelectionState:
        return self._selection

    @property
    def generation(self) -> int:
        """Generation of the most recently started cycle."""
        return self._generation

    @property
    def latest(self) -> Optional[SurfaceUpdate]:
        """Most recently published update, if any."""
        return self._latest

    @property
    def records(self) -> List[CorrelationRecord]:
        return self._records

    def _is_stale(self, generation: int) -> bool:
        return self._discard_stale and generation != self._generation

    async def select(
        self,
        range: Optional[RangeSelection] = None,
        dataset: Optional[DataSetSelection] = None,
        order_parameter: Optional[OrderParameterSelection] = None,
    ) -> Optional[SurfaceUpdate]:
        """Apply selection changes and run a new cycle.

        Returns None when the cycle was superseded before it finished.
        """
        self._selection = self._selection.with_changes(
            range=range, dataset=dataset, order_parameter=order_parameter
        )
        return await self.refresh()

    async def refresh(self) -> Optional[SurfaceUpdate]:
        """Fetch and pivot for the current selection.

        Raises:
            DatasetLoadError: If the fetch of a non-stale cycle fails.
        """
        self._generation += 1
        generation = self._generation
        selection = self._selection

        try:
            records = await self._loader()
        except DatasetLoadError:
            if self._is_stale(generation):
                logger.debug("Ignoring failed fetch of superseded generation %d", generation)
                return None
            raise

        if self._is_stale(generation):
            logger.debug(
                "Discarding stale surface: generation %d, current %d",
                generation, self._generation,
            )
            return None

        update = SurfaceUpdate(
            generation=generation,
            grid=to_graph_data(records, selection),
            record_count=len(records),
        )
        self._records = records
        self._latest = update
        return update
