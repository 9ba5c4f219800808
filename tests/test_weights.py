"""Tests for freight weight bands and weight comparison."""

import pytest

from budget_audit.comparison.weights import (
    CIF_PDO_WEIGHT_RANGES,
    MAX_CIF_PDO_WEIGHT,
    WeightRange,
    build_weight_map,
    calculate_weight_info,
    compare_weights,
    format_weight_range,
    get_formatted_weight_range,
    get_weight_range,
    get_weight_range_difference,
    get_weight_range_index,
    is_same_weight_range,
)

from conftest import make_item


class TestWeightRanges:
    def test_table_shape(self):
        assert len(CIF_PDO_WEIGHT_RANGES) == 18
        assert CIF_PDO_WEIGHT_RANGES[0] == WeightRange(0, 30)
        assert CIF_PDO_WEIGHT_RANGES[-1].end == MAX_CIF_PDO_WEIGHT

    @pytest.mark.parametrize(
        "weight, index",
        [(0, 0), (30, 0), (30.1, 1), (750, 1), (2250.1, 3), (30750, 17)],
    )
    def test_boundaries_are_inclusive(self, weight, index):
        assert get_weight_range_index(weight) == index

    def test_out_of_band(self):
        assert get_weight_range_index(-1) == -1
        assert get_weight_range_index(30750.5) == -1
        assert get_weight_range(40000) is None

    def test_gap_between_bands(self):
        assert get_weight_range_index(30.05) == -1

    def test_same_range(self):
        assert is_same_weight_range(10, 29)
        assert not is_same_weight_range(10, 31)
        assert not is_same_weight_range(-1, -1)

    def test_range_difference(self):
        assert get_weight_range_difference(10, 800) == 2
        assert get_weight_range_difference(800, 10) == -2
        assert get_weight_range_difference(10, 50000) == 0


class TestFormatting:
    def test_format_weight_range(self):
        assert format_weight_range(WeightRange(30.1, 750)) == "30,1 - 750 kg"
        assert format_weight_range(WeightRange(23250.1, 30750)) == "23.250,1 - 30.750 kg"

    def test_formatted_range_for_weight(self):
        assert get_formatted_weight_range(12) == "0 - 30 kg"
        assert get_formatted_weight_range(40000) == "Above 30.750 kg"
        assert get_formatted_weight_range(-3) == "Invalid weight"


class TestWeightComparison:
    def test_calculate_weight_info(self):
        items = [make_item("A", 2), make_item("B", 3), make_item("C", 1)]

        info = calculate_weight_info(items, {"A": 2.5, "B": 1.0})

        assert info.total_weight == pytest.approx(8.0)
        assert [w.total_weight for w in info.item_weights] == [5.0, 3.0, 0.0]

    def test_compare_weights(self):
        weights = {"A": 20.0}
        info_a = calculate_weight_info([make_item("A", 1)], weights)
        info_b = calculate_weight_info([make_item("A", 2)], weights)

        comparison = compare_weights(info_a, info_b)

        assert comparison.difference == pytest.approx(20.0)
        assert comparison.heavier == "B"
        assert comparison.same_range is False
        assert comparison.range_difference == 1

    def test_equal_within_tolerance(self):
        info_a = calculate_weight_info([make_item("A", 1)], {"A": 1.0})
        info_b = calculate_weight_info([make_item("A", 1)], {"A": 1.005})

        comparison = compare_weights(info_a, info_b)

        assert comparison.heavier == "equal"
        assert comparison.same_range is True

    def test_build_weight_map(self):
        records = [{"Id": 1, "WeightKg": 2.5}, {"Id": 2, "WeightKg": None}, {"Name": "no id"}]
        assert build_weight_map(records) == {"1": 2.5, "2": 0.0}
