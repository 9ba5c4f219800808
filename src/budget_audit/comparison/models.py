"""Canonical document shapes and diff result values.

Everything here is an immutable value: normalizers and differs create these
once per comparison run, and presentation/export layers read them.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ImpactLevel(str, Enum):
    """Ordinal severity of a detected divergence."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _IMPACT_ORDER.index(self)

    def __lt__(self, other):
        if not isinstance(other, ImpactLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, ImpactLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, ImpactLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, ImpactLevel):
            return NotImplemented
        return self.rank >= other.rank


_IMPACT_ORDER = (
    ImpactLevel.NONE,
    ImpactLevel.LOW,
    ImpactLevel.MEDIUM,
    ImpactLevel.HIGH,
    ImpactLevel.CRITICAL,
)


def max_impact(*levels: ImpactLevel) -> ImpactLevel:
    """Highest of the given levels (``none`` when called without arguments)."""
    return max(levels, key=lambda level: level.rank, default=ImpactLevel.NONE)


class ComparisonMode(str, Enum):
    """Role of the two documents being compared."""

    BUDGET_VS_CART = "budget_vs_cart"
    BUDGET_VS_BUDGET = "budget_vs_budget"


class ItemDiffStatus(str, Enum):
    MATCH = "match"
    QUANTITY_DIFF = "quantity_diff"
    PRICE_DIFF = "price_diff"
    QUANTITY_PRICE_DIFF = "quantity_price_diff"
    MISSING_IN_CART = "missing_in_cart"
    UNEXPECTED_IN_CART = "unexpected_in_cart"
    ONLY_IN_BUDGET1 = "only_in_budget1"
    ONLY_IN_BUDGET2 = "only_in_budget2"


class PromoDiffStatus(str, Enum):
    MATCH = "match"
    ONLY_IN_BUDGET = "only_in_budget"
    ONLY_IN_CART = "only_in_cart"
    VALUE_DIFF = "value_diff"


# =============================================================================
# Canonical documents
# =============================================================================


@dataclass(frozen=True)
class CanonicalLineItem:
    """Line item with prices in major currency units."""

    sku_id: str
    name: str
    quantity: int
    unit_price: float
    total_price: float
    seller_id: Optional[str] = None
    ref_id: Optional[str] = None
    image_url: Optional[str] = None


@dataclass(frozen=True)
class CanonicalTotals:
    """Document aggregates. ``discounts`` is always non-negative."""

    subtotal: float = 0.0
    discounts: float = 0.0
    shipping: float = 0.0
    taxes: float = 0.0
    total: float = 0.0


@dataclass(frozen=True)
class ShippingAddress:
    street: str = ""
    number: str = ""
    neighborhood: str = ""
    city: str = ""
    state: str = ""


@dataclass(frozen=True)
class CanonicalShipping:
    postal_code: str
    delivery_type: str
    shipping_value: float
    pickup_point: Optional[str] = None
    address: Optional[ShippingAddress] = None


@dataclass(frozen=True)
class CanonicalPromotion:
    id: str
    name: str
    value: float = 0.0
    type: Optional[str] = None


@dataclass(frozen=True)
class CanonicalDocument:
    """Common shape both source documents are reduced to before diffing.

    ``warnings`` records anything the normalizer had to resolve on its own,
    such as duplicate SKU ids collapsed to their first occurrence.
    """

    items: Tuple[CanonicalLineItem, ...]
    totals: CanonicalTotals
    shipping: Optional[CanonicalShipping]
    promotions: Tuple[CanonicalPromotion, ...] = ()
    marketing_tags: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    def items_by_sku(self) -> Dict[str, CanonicalLineItem]:
        return {item.sku_id: item for item in self.items}


# =============================================================================
# Diffs
# =============================================================================


@dataclass(frozen=True)
class FieldDelta:
    """Two source values with their absolute and relative delta (``b - a``)."""

    a: float
    b: float
    diff: float
    diff_pct: float


@dataclass(frozen=True)
class ItemDiff:
    sku_id: str
    name: str
    status: ItemDiffStatus
    impact: ImpactLevel
    qty_a: Optional[int] = None
    qty_b: Optional[int] = None
    price_a: Optional[float] = None
    price_b: Optional[float] = None
    price_diff_abs: Optional[float] = None
    price_diff_pct: Optional[float] = None
    qty_diff: Optional[int] = None
    unit_weight: Optional[float] = None
    explanation: Optional[str] = None


@dataclass(frozen=True)
class TotalsDiff:
    subtotal: FieldDelta
    discounts: FieldDelta
    shipping: FieldDelta
    taxes: FieldDelta
    total: FieldDelta
    financial_impact: float
    impact: ImpactLevel
    explanation: Optional[str] = None


@dataclass(frozen=True)
class ShippingDiff:
    postal_code_diff: bool
    delivery_type_diff: bool
    shipping_value: FieldDelta
    impact: ImpactLevel
    postal_code_a: Optional[str] = None
    postal_code_b: Optional[str] = None
    delivery_type_a: Optional[str] = None
    delivery_type_b: Optional[str] = None
    explanation: Optional[str] = None


@dataclass(frozen=True)
class PromoDiff:
    id: str
    name: str
    status: PromoDiffStatus
    impact: ImpactLevel
    value_a: Optional[float] = None
    value_b: Optional[float] = None
    value_diff: Optional[float] = None
    explanation: Optional[str] = None


@dataclass(frozen=True)
class MarketingTagDiff:
    tag: str
    in_a: bool
    in_b: bool
    match: bool
    impact: ImpactLevel
    explanation: Optional[str] = None


# =============================================================================
# Weights and price analysis
# =============================================================================


@dataclass(frozen=True)
class ItemWeight:
    sku_id: str
    name: str
    quantity: int
    unit_weight: float
    total_weight: float


@dataclass(frozen=True)
class WeightInfo:
    total_weight: float
    item_weights: Tuple[ItemWeight, ...] = ()


@dataclass(frozen=True)
class WeightComparison:
    a: WeightInfo
    b: WeightInfo
    difference: float
    heavier: str  # "A", "B" or "equal"
    same_range: bool
    range_difference: int = 0


@dataclass(frozen=True)
class PriceBreakdownItem:
    category: str
    description: str
    value_a: float
    value_b: float
    difference: float
    impact: str  # "expensive" or "cheaper"


@dataclass(frozen=True)
class PriceAnalysis:
    cheaper: str  # "A", "B" or "equal"
    price_difference: float
    breakdown: Tuple[PriceBreakdownItem, ...] = ()


# =============================================================================
# Result
# =============================================================================


@dataclass(frozen=True)
class ComparisonSummary:
    total_diffs: int
    critical_diffs: int
    high_diffs: int
    medium_diffs: int
    financial_difference: float
    overall_impact: ImpactLevel


@dataclass(frozen=True)
class ComparisonMetadata:
    source_a_id: str
    source_b_id: str
    compared_at: str
    request_id: str


@dataclass(frozen=True)
class ComparisonResult:
    summary: ComparisonSummary
    item_diffs: Tuple[ItemDiff, ...]
    totals_diff: TotalsDiff
    shipping_diff: Optional[ShippingDiff]
    promo_diffs: Tuple[PromoDiff, ...]
    marketing_tag_diffs: Tuple[MarketingTagDiff, ...]
    metadata: ComparisonMetadata
    price_analysis: Optional[PriceAnalysis] = None
    weight_comparison: Optional[WeightComparison] = None
    loyalty_check: Optional[MarketingTagDiff] = None
    warnings: Tuple[str, ...] = field(default=())

    def to_dict(self) -> Dict[str, Any]:
        """Plain-JSON representation (enums become their string values)."""
        return _plain(asdict(self))


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value
