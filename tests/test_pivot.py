"""
Tests for the pivot transform.

Run tests:
    pytest tests/test_pivot.py -v
"""

import pytest

from api.shared.correlation_data import (
    DataSetSelection,
    OrderParameterFamily,
    OrderParameterSelection,
    RangeSelection,
    SelectionState,
)
from api.shared.pivot import (
    compose_title,
    distinct_in_order,
    grid_statistics,
    reshape_rows,
    select_value,
    sort_records,
    to_graph_data,
)
from conftest import make_record, to_records


# ============================================================================
# Sorting and axes
# ============================================================================


class TestSortingAndAxes:
    """Records are ordered by disorder, then beta, and axes are deduplicated."""

    def test_sort_by_disorder_then_beta(self, grid_records):
        ordered = sort_records(grid_records)
        assert [(r.disorder, r.beta) for r in ordered] == [
            (0.1, 0.5), (0.1, 1.0), (0.2, 0.5), (0.2, 1.0),
        ]

    def test_sort_does_not_mutate_input(self, grid_records):
        before = [(r.disorder, r.beta) for r in grid_records]
        sort_records(grid_records)
        assert [(r.disorder, r.beta) for r in grid_records] == before

    def test_distinct_in_order_keeps_first_seen(self):
        assert distinct_in_order([3.0, 1.0, 3.0, 2.0, 1.0]) == [3.0, 1.0, 2.0]

    def test_distinct_uses_exact_equality(self):
        assert distinct_in_order([0.1 + 0.2, 0.3]) == [0.1 + 0.2, 0.3]

    def test_axes_strictly_ascending(self):
        rows = [
            make_record(beta, disorder)
            for disorder in (0.3, 0.0, 0.15)
            for beta in (2.0, 0.5, 1.25, 0.75)
        ]
        grid = to_graph_data(to_records(rows))

        assert grid.betas == [0.5, 0.75, 1.25, 2.0]
        assert grid.disorders == [0.0, 0.15, 0.3]
        for axis in (grid.betas, grid.disorders):
            assert all(a < b for a, b in zip(axis, axis[1:]))
            assert len(set(axis)) == len(axis)


# ============================================================================
# Value selection
# ============================================================================


class TestValueSelection:
    """The variant picks the field group, the range picks the field."""

    @pytest.mark.parametrize("family", list(OrderParameterFamily))
    def test_annealed_short_selects_anneal_field(self, family):
        record = to_records([make_record(0.5, 0.1)])[0]
        value = select_value(record, family, DataSetSelection.ANNEALED, RangeSelection.SHORT)
        assert value == getattr(record, f"corr{family.value}s_anneal")

    @pytest.mark.parametrize(
        "dataset,range_,field",
        [
            (DataSetSelection.COMBINED, RangeSelection.SHORT, "corrFQs"),
            (DataSetSelection.COMBINED, RangeSelection.MEDIUM, "corrFQm"),
            (DataSetSelection.COMBINED, RangeSelection.LONG, "corrFQl"),
            (DataSetSelection.QUENCHED, RangeSelection.SHORT, "corrFQs_quench"),
            (DataSetSelection.QUENCHED, RangeSelection.MEDIUM, "corrFQm_quench"),
            (DataSetSelection.QUENCHED, RangeSelection.LONG, "corrFQl_quench"),
            (DataSetSelection.ANNEALED, RangeSelection.MEDIUM, "corrFQm_anneal"),
            (DataSetSelection.ANNEALED, RangeSelection.LONG, "corrFQl_anneal"),
        ],
    )
    def test_field_for_each_variant_and_range(self, dataset, range_, field):
        record = to_records([make_record(1.0, 0.2)])[0]
        assert select_value(record, OrderParameterFamily.FQ, dataset, range_) == getattr(record, field)

    def test_annealed_short_grid_uses_anneal_fields(self, grid_records):
        selection = SelectionState(range=RangeSelection.SHORT, dataset=DataSetSelection.ANNEALED)
        grid = to_graph_data(grid_records, selection)

        ordered = sort_records(grid_records)
        assert grid.corr_fq == [
            [ordered[0].corrFQs_anneal, ordered[1].corrFQs_anneal],
            [ordered[2].corrFQs_anneal, ordered[3].corrFQs_anneal],
        ]
        assert grid.corr_afq == [
            [ordered[0].corrAFQs_anneal, ordered[1].corrAFQs_anneal],
            [ordered[2].corrAFQs_anneal, ordered[3].corrAFQs_anneal],
        ]

    def test_missing_field_gives_gap(self):
        row = make_record(0.5, 0.1)
        del row["corrFQs"]
        grid = to_graph_data(to_records([row]))
        assert grid.corr_fq == [[None]]


# ============================================================================
# Reshape
# ============================================================================


class TestReshape:
    """Flat values are sliced into rows of len(betas)."""

    def test_exact_reshape(self):
        assert reshape_rows([1, 2, 3, 4, 5, 6], 2, 3) == [[1, 2, 3], [4, 5, 6]]

    def test_short_input_gives_ragged_rows(self):
        assert reshape_rows([1, 2, 3, 4], 3, 2) == [[1, 2], [3, 4], []]
        assert reshape_rows([1, 2, 3], 2, 2) == [[1, 2], [3]]

    def test_surplus_input_is_dropped(self):
        assert reshape_rows([1, 2, 3, 4, 5], 2, 2) == [[1, 2], [3, 4]]

    def test_matrix_dimensions(self):
        rows = [make_record(b, d) for d in (0.0, 0.1, 0.2) for b in (0.5, 1.0, 1.5, 2.0, 2.5)]
        grid = to_graph_data(to_records(rows))
        for matrix in (grid.corr_fq, grid.corr_afq):
            assert len(matrix) == len(grid.disorders) == 3
            assert all(len(row) == len(grid.betas) == 5 for row in matrix)

    def test_incomplete_grid_does_not_raise(self):
        rows = [make_record(0.5, 0.1), make_record(1.0, 0.1), make_record(0.5, 0.2)]
        grid = to_graph_data(to_records(rows))
        assert [len(row) for row in grid.corr_fq] == [2, 1]
        assert grid_statistics(grid)["complete"] is False

    def test_repeated_point_is_incomplete(self):
        rows = [make_record(0.5, 0.1), make_record(0.5, 0.1), make_record(0.5, 0.2), make_record(1.0, 0.2)]
        grid = to_graph_data(to_records(rows))
        stats = grid_statistics(grid)

        assert [len(row) for row in grid.corr_fq] == [2, 2]
        assert stats["distinct_points"] == 3
        assert stats["complete"] is False

    def test_surplus_repeated_point_is_incomplete(self):
        rows = [make_record(b, d) for d in (0.1, 0.2) for b in (0.5, 1.0)]
        rows.append(make_record(0.5, 0.1))
        stats = grid_statistics(to_graph_data(to_records(rows)))

        assert stats["distinct_points"] == 4
        assert stats["complete"] is False

    def test_empty_dataset(self):
        grid = to_graph_data([])
        assert grid.betas == []
        assert grid.disorders == []
        assert grid.corr_fq == []
        assert grid.corr_afq == []


# ============================================================================
# Order-parameter selection
# ============================================================================


class TestOrderParameterSelection:
    """Deselecting a family empties its matrix and leaves the other alone."""

    def test_fq_only(self, grid_records):
        both = to_graph_data(grid_records, SelectionState())
        fq_only = to_graph_data(
            grid_records, SelectionState(order_parameter=OrderParameterSelection.FQ)
        )
        assert fq_only.corr_fq == both.corr_fq
        assert fq_only.corr_afq == []

    def test_afq_only(self, grid_records):
        both = to_graph_data(grid_records, SelectionState())
        afq_only = to_graph_data(
            grid_records, SelectionState(order_parameter=OrderParameterSelection.AFQ)
        )
        assert afq_only.corr_afq == both.corr_afq
        assert afq_only.corr_fq == []

    def test_axes_do_not_depend_on_family(self, grid_records):
        afq_only = to_graph_data(
            grid_records, SelectionState(order_parameter=OrderParameterSelection.AFQ)
        )
        assert afq_only.betas == [0.5, 1.0]
        assert afq_only.disorders == [0.1, 0.2]


# ============================================================================
# Title
# ============================================================================


class TestTitle:
    """Title interpolates variant, family and range description."""

    @pytest.mark.parametrize(
        "dataset,dataset_label",
        [
            (DataSetSelection.COMBINED, "Combined"),
            (DataSetSelection.ANNEALED, "Annealed"),
            (DataSetSelection.QUENCHED, "Quenched"),
        ],
    )
    @pytest.mark.parametrize(
        "order_parameter,family_label",
        [
            (OrderParameterSelection.BOTH, "FQ/AFQ"),
            (OrderParameterSelection.FQ, "FQ"),
            (OrderParameterSelection.AFQ, "AFQ"),
        ],
    )
    def test_title_combinations(self, dataset, dataset_label, order_parameter, family_label):
        selection = SelectionState(dataset=dataset, order_parameter=order_parameter)
        assert compose_title(selection) == (
            f"{dataset_label} {family_label} Correlation:<br> 1.41 to 4.00 [short range]"
        )

    @pytest.mark.parametrize(
        "range_,description",
        [
            (RangeSelection.SHORT, "1.41 to 4.00 [short range]"),
            (RangeSelection.MEDIUM, "4.24 to 10.00 [medium range]"),
            (RangeSelection.LONG, "10.20 to 22.09 [long range]"),
        ],
    )
    def test_range_descriptions(self, range_, description):
        title = compose_title(SelectionState(range=range_))
        assert title == f"Combined FQ/AFQ Correlation:<br> {description}"

    def test_grid_carries_title(self, grid_records):
        selection = SelectionState(
            range=RangeSelection.LONG,
            dataset=DataSetSelection.QUENCHED,
            order_parameter=OrderParameterSelection.AFQ,
        )
        grid = to_graph_data(grid_records, selection)
        assert grid.title == "Quenched AFQ Correlation:<br> 10.20 to 22.09 [long range]"
        assert grid.selection == selection


# ============================================================================
# End-to-end
# ============================================================================


class TestEndToEnd:
    """2 betas x 2 disorders, combined / short / both."""

    def test_combined_short_both(self, grid_records):
        grid = to_graph_data(grid_records, SelectionState())

        assert grid.betas == [0.5, 1.0]
        assert grid.disorders == [0.1, 0.2]
        assert grid.corr_fq == [[0.11, 0.12], [0.21, 0.22]]
        assert grid.corr_afq == [[0.61, 0.62], [0.71, 0.72]]
        assert grid.title == "Combined FQ/AFQ Correlation:<br> 1.41 to 4.00 [short range]"

    def test_statistics(self, grid_records):
        stats = grid_statistics(to_graph_data(grid_records))

        assert stats["shape"] == [2, 2]
        assert stats["expected_cells"] == 4
        assert stats["complete"] is True
        assert stats["fq"]["min"] == pytest.approx(0.11)
        assert stats["fq"]["max"] == pytest.approx(0.22)
        assert stats["fq"]["mean"] == pytest.approx(0.165)
        assert stats["afq"]["count"] == 4

    def test_statistics_for_deselected_family(self, grid_records):
        grid = to_graph_data(
            grid_records, SelectionState(order_parameter=OrderParameterSelection.FQ)
        )
        stats = grid_statistics(grid)
        assert stats["afq"] is None
        assert stats["complete"] is True
