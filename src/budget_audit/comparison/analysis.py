"""Price breakdown between two documents: which one is cheaper and why."""

from __future__ import annotations

from typing import List

from .models import CanonicalDocument, PriceAnalysis, PriceBreakdownItem
from .severity import MONEY_TOLERANCE

# (category, field, label when B is higher, label when B is lower, inverted polarity)
_CATEGORIES = (
    ("items", "subtotal", "Items more expensive in B", "Items cheaper in B", False),
    ("shipping", "shipping", "Shipping more expensive in B", "Shipping cheaper in B", False),
    ("discounts", "discounts", "More discounts in B", "Fewer discounts in B", True),
    ("taxes", "taxes", "More taxes in B", "Fewer taxes in B", False),
)


def generate_price_analysis(doc_a: CanonicalDocument, doc_b: CanonicalDocument) -> PriceAnalysis:
    """
    Break the total price delta down by category.

    A higher discount on B makes B cheaper, so discounts are tagged with
    the opposite polarity to the other categories.

    Args:
        doc_a: First document
        doc_b: Second document

    Returns:
        PriceAnalysis with entries sorted by absolute difference
    """
    breakdown: List[PriceBreakdownItem] = []

    for category, field_name, higher, lower, inverted in _CATEGORIES:
        value_a = getattr(doc_a.totals, field_name)
        value_b = getattr(doc_b.totals, field_name)
        difference = value_b - value_a
        if abs(difference) <= MONEY_TOLERANCE:
            continue
        more_expensive = (difference < 0) if inverted else (difference > 0)
        breakdown.append(
            PriceBreakdownItem(
                category=category,
                description=higher if difference > 0 else lower,
                value_a=value_a,
                value_b=value_b,
                difference=difference,
                impact="expensive" if more_expensive else "cheaper",
            )
        )

    breakdown.sort(key=lambda entry: abs(entry.difference), reverse=True)

    price_difference = doc_b.totals.total - doc_a.totals.total
    cheaper = "equal"
    if abs(price_difference) > MONEY_TOLERANCE:
        cheaper = "A" if price_difference > 0 else "B"

    return PriceAnalysis(cheaper=cheaper, price_difference=price_difference, breakdown=tuple(breakdown))
