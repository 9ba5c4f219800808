"""Roll every diff's severity up into a single comparison summary."""

from __future__ import annotations

from typing import Optional, Sequence

from .models import (
    ComparisonSummary,
    ImpactLevel,
    ItemDiff,
    MarketingTagDiff,
    PromoDiff,
    ShippingDiff,
    TotalsDiff,
)


def generate_summary(
    item_diffs: Sequence[ItemDiff],
    totals_diff: TotalsDiff,
    shipping_diff: Optional[ShippingDiff],
    promo_diffs: Sequence[PromoDiff],
    tag_diffs: Sequence[MarketingTagDiff] = (),
) -> ComparisonSummary:
    """
    Count divergences per severity and derive the overall impact.

    The financial difference is the totals diff's total delta as-is.
    """
    impacts = [diff.impact for diff in item_diffs]
    impacts.append(totals_diff.impact)
    impacts.append(shipping_diff.impact if shipping_diff else ImpactLevel.NONE)
    impacts.extend(diff.impact for diff in promo_diffs)
    impacts.extend(diff.impact for diff in tag_diffs)

    critical = impacts.count(ImpactLevel.CRITICAL)
    high = impacts.count(ImpactLevel.HIGH)
    medium = impacts.count(ImpactLevel.MEDIUM)
    total = sum(1 for impact in impacts if impact is not ImpactLevel.NONE)

    if critical:
        overall = ImpactLevel.CRITICAL
    elif high:
        overall = ImpactLevel.HIGH
    elif medium:
        overall = ImpactLevel.MEDIUM
    elif total:
        overall = ImpactLevel.LOW
    else:
        overall = ImpactLevel.NONE

    return ComparisonSummary(
        total_diffs=total,
        critical_diffs=critical,
        high_diffs=high,
        medium_diffs=medium,
        financial_difference=totals_diff.total.diff,
        overall_impact=overall,
    )
