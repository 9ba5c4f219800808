"""Tests for the severity classifier."""

import pytest

from budget_audit.comparison.models import ImpactLevel, max_impact
from budget_audit.comparison.severity import Thresholds, calculate_percentage_diff, determine_impact


class TestPercentageDiff:
    """Relative delta from an old to a new value."""

    def test_regular_change(self):
        assert calculate_percentage_diff(100, 110) == pytest.approx(10.0)
        assert calculate_percentage_diff(200, 150) == pytest.approx(-25.0)
        assert calculate_percentage_diff(100, 90) == pytest.approx(-10.0)

    def test_zero_baseline(self):
        """Anything appearing out of zero counts as a full jump."""
        assert calculate_percentage_diff(0, 0) == 0.0
        assert calculate_percentage_diff(0, 5) == 100.0
        assert calculate_percentage_diff(0, -5) == 100.0


class TestDetermineImpact:
    """Cascade of critical / high / medium / low / none."""

    @pytest.mark.parametrize(
        "diff_pct, diff_abs, expected",
        [
            (10, 150, ImpactLevel.CRITICAL),
            (6, 1, ImpactLevel.CRITICAL),
            (0.2, 101, ImpactLevel.CRITICAL),
            (4, 60, ImpactLevel.HIGH),
            (2, 30, ImpactLevel.MEDIUM),
            (0.5, 1, ImpactLevel.LOW),
            (0.05, 0.005, ImpactLevel.NONE),
        ],
    )
    def test_default_thresholds(self, diff_pct, diff_abs, expected):
        assert determine_impact(diff_pct, diff_abs) is expected

    def test_larger_relative_delta_never_lowers_severity(self):
        sweep = [0, 0.05, 0.1, 0.2, 0.5, 1, 1.5, 3, 5, 5.5, 10, 50, 100]
        ranks = [determine_impact(pct, 0).rank for pct in sweep]
        assert ranks == sorted(ranks)
        assert ranks[0] == ImpactLevel.NONE.rank
        assert ranks[-1] == ImpactLevel.CRITICAL.rank

    def test_sign_is_ignored(self):
        assert determine_impact(-10, -150) is ImpactLevel.CRITICAL
        assert determine_impact(-2, -30) is ImpactLevel.MEDIUM

    def test_custom_thresholds(self):
        """A higher percentage threshold pushes 6% from critical down to high."""
        thresholds = Thresholds(percentage_threshold=1.0, absolute_threshold=50.0)
        assert determine_impact(6, 1, thresholds) is ImpactLevel.HIGH

    def test_absolute_threshold_scales_bands(self):
        thresholds = Thresholds(percentage_threshold=0.5, absolute_threshold=10.0)
        assert determine_impact(0.2, 21, thresholds) is ImpactLevel.CRITICAL
        assert determine_impact(0.2, 11, thresholds) is ImpactLevel.HIGH
        assert determine_impact(0.2, 6, thresholds) is ImpactLevel.MEDIUM


class TestImpactOrdering:
    def test_levels_are_ordered(self):
        assert ImpactLevel.NONE < ImpactLevel.LOW < ImpactLevel.MEDIUM < ImpactLevel.HIGH < ImpactLevel.CRITICAL

    def test_max_impact(self):
        assert max_impact(ImpactLevel.LOW, ImpactLevel.HIGH, ImpactLevel.MEDIUM) is ImpactLevel.HIGH
        assert max_impact() is ImpactLevel.NONE
