"""CIF-PDO freight weight bands and per-document weight totals."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

from ..utils.formatters import format_number
from ..utils.logging import get_logger
from .models import CanonicalLineItem, ItemWeight, WeightComparison, WeightInfo

logger = get_logger(__name__)

WEIGHT_TOLERANCE = 0.01


@dataclass(frozen=True)
class WeightRange:
    """Inclusive band in kilograms."""

    start: float
    end: float

    def __contains__(self, weight: float) -> bool:
        return self.start <= weight <= self.end


# Bands step in 0.1 kg; weights falling between two bands (e.g. 30.05) resolve to none
CIF_PDO_WEIGHT_RANGES = (
    WeightRange(0, 30),
    WeightRange(30.1, 750),
    WeightRange(750.1, 2250),
    WeightRange(2250.1, 3000),
    WeightRange(3000.1, 3750),
    WeightRange(3750.1, 4500),
    WeightRange(4500.1, 5250),
    WeightRange(5250.1, 6000),
    WeightRange(6000.1, 6750),
    WeightRange(6750.1, 7500),
    WeightRange(7500.1, 8250),
    WeightRange(8250.1, 9750),
    WeightRange(9750.1, 11250),
    WeightRange(11250.1, 12750),
    WeightRange(12750.1, 14250),
    WeightRange(14250.1, 15750),
    WeightRange(15750.1, 23250),
    WeightRange(23250.1, 30750),
)

MAX_CIF_PDO_WEIGHT = 30750


def get_weight_range_index(weight: float) -> int:
    """Index of the band holding ``weight``, or -1 when out of every band."""
    if weight < 0:
        return -1
    for index, weight_range in enumerate(CIF_PDO_WEIGHT_RANGES):
        if weight in weight_range:
            return index
    return -1


def get_weight_range(weight: float) -> Optional[WeightRange]:
    index = get_weight_range_index(weight)
    return CIF_PDO_WEIGHT_RANGES[index] if index >= 0 else None


def is_same_weight_range(weight_a: float, weight_b: float) -> bool:
    """True only if both weights resolve to the same band."""
    index_a = get_weight_range_index(weight_a)
    index_b = get_weight_range_index(weight_b)
    if index_a == -1 or index_b == -1:
        return False
    return index_a == index_b


def get_weight_range_difference(weight_a: float, weight_b: float) -> int:
    """Number of bands between the two weights (positive when B is heavier)."""
    index_a = get_weight_range_index(weight_a)
    index_b = get_weight_range_index(weight_b)
    if index_a == -1 or index_b == -1:
        return 0
    return index_b - index_a


def _format_bound(value: float) -> str:
    return format_number(value, 0 if float(value).is_integer() else 1)


def format_weight_range(weight_range: WeightRange) -> str:
    """e.g. ``30,1 - 750 kg``"""
    return f"{_format_bound(weight_range.start)} - {_format_bound(weight_range.end)} kg"


def get_formatted_weight_range(weight: float) -> str:
    if weight < 0:
        return "Invalid weight"
    weight_range = get_weight_range(weight)
    if weight_range is None:
        if weight > MAX_CIF_PDO_WEIGHT:
            return f"Above {format_number(MAX_CIF_PDO_WEIGHT, 0)} kg"
        return "Outside weight bands"
    return format_weight_range(weight_range)


def calculate_weight_info(
    items: Sequence[CanonicalLineItem],
    sku_weights: Optional[Mapping[str, float]] = None,
) -> WeightInfo:
    """
    Sum unit weight times quantity over a document's items.

    Args:
        items: Canonical line items
        sku_weights: SKU -> unit weight (kg); unknown SKUs weigh 0

    Returns:
        WeightInfo with the per-item breakdown
    """
    weights = sku_weights or {}
    item_weights = []
    for item in items:
        unit_weight = weights.get(item.sku_id) or 0.0
        item_weights.append(
            ItemWeight(
                sku_id=item.sku_id,
                name=item.name,
                quantity=item.quantity,
                unit_weight=unit_weight,
                total_weight=unit_weight * item.quantity,
            )
        )
    return WeightInfo(
        total_weight=sum(weight.total_weight for weight in item_weights),
        item_weights=tuple(item_weights),
    )


def compare_weights(info_a: WeightInfo, info_b: WeightInfo) -> WeightComparison:
    difference = info_b.total_weight - info_a.total_weight

    heavier = "equal"
    if abs(difference) > WEIGHT_TOLERANCE:
        heavier = "B" if difference > 0 else "A"

    return WeightComparison(
        a=info_a,
        b=info_b,
        difference=difference,
        heavier=heavier,
        same_range=is_same_weight_range(info_a.total_weight, info_b.total_weight),
        range_difference=get_weight_range_difference(info_a.total_weight, info_b.total_weight),
    )


def build_weight_map(sku_details: Iterable[Mapping[str, Any]]) -> Dict[str, float]:
    """
    Build a SKU -> kg map from catalog SKU records.

    Records carry ``Id`` and ``WeightKg``; a null weight maps to 0.
    """
    weights: Dict[str, float] = {}
    for detail in sku_details:
        sku_id = detail.get("Id", detail.get("id"))
        if sku_id is None:
            logger.debug("Skipping SKU record without id")
            continue
        weight = detail.get("WeightKg")
        weights[str(sku_id)] = float(weight) if weight is not None else 0.0
    return weights
