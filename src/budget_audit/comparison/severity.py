"""Severity classification for numeric divergences."""

from __future__ import annotations

from dataclasses import dataclass

from .models import ImpactLevel

# Tolerances shared by the differs (currency units / percentage points)
MONEY_TOLERANCE = 0.01
PRICE_PCT_TOLERANCE = 0.01
SUBTOTAL_PCT_FLOOR = 0.1


@dataclass(frozen=True)
class Thresholds:
    """Configurable classifier thresholds.

    percentage_threshold: relative delta (in %) which, multiplied by 10,
        marks a divergence as critical. 0.5 means 5%.
    absolute_threshold: absolute delta in currency units; twice this value
        marks a divergence as critical.
    """

    percentage_threshold: float = 0.5
    absolute_threshold: float = 50.0


DEFAULT_THRESHOLDS = Thresholds()


def calculate_percentage_diff(old: float, new: float) -> float:
    """Relative change from ``old`` to ``new`` in percent.

    A zero baseline yields 0 when ``new`` is also zero and 100 otherwise, so
    any appearance of a value out of nothing counts as a full jump.
    """
    if old == 0:
        return 0.0 if new == 0 else 100.0
    return (new - old) / old * 100


def determine_impact(
    diff_pct: float,
    diff_abs: float,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> ImpactLevel:
    """
    Classify a divergence from its relative and absolute delta.

    Rules are evaluated on absolute values, first match wins:
    critical > pct_threshold*10 or > abs_threshold*2;
    high > 5% or > abs_threshold;
    medium > 1% or > abs_threshold/2;
    low > 0.1% or > 0.01.

    Args:
        diff_pct: Relative delta in percent
        diff_abs: Absolute delta in currency units
        thresholds: Classifier thresholds (defaults 0.5% / 50)

    Returns:
        ImpactLevel for the divergence
    """
    pct = abs(diff_pct)
    amount = abs(diff_abs)

    if pct > thresholds.percentage_threshold * 10 or amount > thresholds.absolute_threshold * 2:
        return ImpactLevel.CRITICAL
    if pct > 5 or amount > thresholds.absolute_threshold:
        return ImpactLevel.HIGH
    if pct > 1 or amount > thresholds.absolute_threshold / 2:
        return ImpactLevel.MEDIUM
    if pct > 0.1 or amount > 0.01:
        return ImpactLevel.LOW
    return ImpactLevel.NONE
