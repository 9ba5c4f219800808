"""Field-by-field differs over canonical documents.

Side ``A`` is the reference document (the budget) and side ``B`` the one
being audited (the cart, or a second budget). Deltas are always ``B - A``.
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence

from ..utils.formatters import format_currency, format_percent
from .models import (
    CanonicalLineItem,
    CanonicalPromotion,
    CanonicalShipping,
    CanonicalTotals,
    ComparisonMode,
    FieldDelta,
    ImpactLevel,
    ItemDiff,
    ItemDiffStatus,
    MarketingTagDiff,
    PromoDiff,
    PromoDiffStatus,
    ShippingDiff,
    TotalsDiff,
    max_impact,
)
from .normalizers import normalize_postal_code
from .severity import (
    DEFAULT_THRESHOLDS,
    MONEY_TOLERANCE,
    PRICE_PCT_TOLERANCE,
    SUBTOTAL_PCT_FLOOR,
    Thresholds,
    calculate_percentage_diff,
    determine_impact,
)

# Loyalty-points redemption flag (Bonifiq)
LOYALTY_POINTS_TAG = "usar-pontos-agora"

# Cart SLA label -> budget (deliveryType, shippingType)
CART_TO_BUDGET_DELIVERY_MAP: Dict[str, Dict[str, str]] = {
    "AMARANZ LOGISTICA CAJ": {"deliveryType": "PDO", "shippingType": "CIF"},
    "AMARANZ LOGISTICA FSA": {"deliveryType": "PDO", "shippingType": "CIF"},
    "EXP LOGISTICA CAJ": {"deliveryType": "EXP", "shippingType": "CIF"},
    "EXP LOGISTICA FSA": {"deliveryType": "EXP", "shippingType": "CIF"},
    "FOB LOGISTICA CAJ": {"deliveryType": "PDO", "shippingType": "FOB"},
    "FOB LOGISTICA FSA": {"deliveryType": "PDO", "shippingType": "FOB"},
}

_SIDE_LABELS = {
    ComparisonMode.BUDGET_VS_CART: ("budget", "cart"),
    ComparisonMode.BUDGET_VS_BUDGET: ("budget 1", "budget 2"),
}


def _field_delta(a: float, b: float) -> FieldDelta:
    return FieldDelta(a=a, b=b, diff=b - a, diff_pct=calculate_percentage_diff(a, b))


def _signed(value: float) -> str:
    return f"+{value}" if value > 0 else str(value)


# =============================================================================
# Items
# =============================================================================


def diff_items(
    items_a: Sequence[CanonicalLineItem],
    items_b: Sequence[CanonicalLineItem],
    mode: ComparisonMode = ComparisonMode.BUDGET_VS_CART,
    sku_weights: Optional[Mapping[str, float]] = None,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> List[ItemDiff]:
    """
    Reconcile two item collections by SKU.

    Every SKU from both sides appears exactly once in the output: first the
    A items in order, then B items that had no counterpart.

    Absent items bypass the classifier. Against a cart a missing item is
    critical and an extra one high; between two budgets both are high.

    Args:
        items_a: Reference items
        items_b: Audited items
        mode: Role of the two documents
        sku_weights: Optional SKU -> unit weight (kg) map
        thresholds: Classifier thresholds for matched pairs

    Returns:
        List of ItemDiff
    """
    weights = sku_weights or {}
    label_a, label_b = _SIDE_LABELS[mode]
    if mode is ComparisonMode.BUDGET_VS_CART:
        only_a = (ItemDiffStatus.MISSING_IN_CART, ImpactLevel.CRITICAL)
        only_b = (ItemDiffStatus.UNEXPECTED_IN_CART, ImpactLevel.HIGH)
    else:
        only_a = (ItemDiffStatus.ONLY_IN_BUDGET1, ImpactLevel.HIGH)
        only_b = (ItemDiffStatus.ONLY_IN_BUDGET2, ImpactLevel.HIGH)

    by_sku_b: Dict[str, CanonicalLineItem] = {}
    for item in items_b:
        by_sku_b.setdefault(item.sku_id, item)

    diffs: List[ItemDiff] = []
    consumed = set()

    for item_a in items_a:
        unit_weight = weights.get(item_a.sku_id, 0.0) if sku_weights is not None else None
        item_b = by_sku_b.get(item_a.sku_id)
        if item_b is None or item_a.sku_id in consumed:
            diffs.append(
                ItemDiff(
                    sku_id=item_a.sku_id,
                    name=item_a.name,
                    status=only_a[0],
                    impact=only_a[1],
                    qty_a=item_a.quantity,
                    price_a=item_a.unit_price,
                    unit_weight=unit_weight,
                    explanation=(
                        f'Item "{item_a.name}" is in the {label_a} but not in the {label_b}. '
                        f"Expected value: {format_currency(item_a.total_price)}."
                    ),
                )
            )
            continue
        consumed.add(item_b.sku_id)
        diffs.append(_diff_item_pair(item_a, item_b, label_a, label_b, unit_weight, thresholds))

    for item_b in items_b:
        if item_b.sku_id in consumed:
            continue
        consumed.add(item_b.sku_id)
        diffs.append(
            ItemDiff(
                sku_id=item_b.sku_id,
                name=item_b.name,
                status=only_b[0],
                impact=only_b[1],
                qty_b=item_b.quantity,
                price_b=item_b.unit_price,
                unit_weight=weights.get(item_b.sku_id, 0.0) if sku_weights is not None else None,
                explanation=(
                    f'Item "{item_b.name}" is in the {label_b} but not in the {label_a}. '
                    f"Additional value: {format_currency(item_b.total_price)}."
                ),
            )
        )

    return diffs


def _diff_item_pair(
    item_a: CanonicalLineItem,
    item_b: CanonicalLineItem,
    label_a: str,
    label_b: str,
    unit_weight: Optional[float],
    thresholds: Thresholds,
) -> ItemDiff:
    qty_diff = item_b.quantity - item_a.quantity
    price_diff = item_b.unit_price - item_a.unit_price
    price_diff_pct = calculate_percentage_diff(item_a.unit_price, item_b.unit_price)

    has_qty_diff = qty_diff != 0
    has_price_diff = abs(price_diff_pct) > PRICE_PCT_TOLERANCE

    if has_qty_diff and has_price_diff:
        status = ItemDiffStatus.QUANTITY_PRICE_DIFF
    elif has_qty_diff:
        status = ItemDiffStatus.QUANTITY_DIFF
    elif has_price_diff:
        status = ItemDiffStatus.PRICE_DIFF
    else:
        status = ItemDiffStatus.MATCH

    # Quantity changes drive the status only; severity follows the unit price
    if status is ItemDiffStatus.MATCH:
        impact = ImpactLevel.NONE
    else:
        impact = determine_impact(price_diff_pct, price_diff, thresholds)

    explanation = None
    if status is not ItemDiffStatus.MATCH:
        parts = []
        if has_qty_diff:
            parts.append(
                f"Quantity: {label_a} {item_a.quantity}, {label_b} {item_b.quantity} ({_signed(qty_diff)})"
            )
        if has_price_diff:
            parts.append(
                f"Unit price: {label_a} {format_currency(item_a.unit_price)}, "
                f"{label_b} {format_currency(item_b.unit_price)} ({format_percent(price_diff_pct)})"
            )
        explanation = ". ".join(parts)

    return ItemDiff(
        sku_id=item_a.sku_id,
        name=item_a.name,
        status=status,
        impact=impact,
        qty_a=item_a.quantity,
        qty_b=item_b.quantity,
        price_a=item_a.unit_price,
        price_b=item_b.unit_price,
        price_diff_abs=price_diff if has_price_diff else None,
        price_diff_pct=price_diff_pct if has_price_diff else None,
        qty_diff=qty_diff if has_qty_diff else None,
        unit_weight=unit_weight,
        explanation=explanation,
    )


# =============================================================================
# Totals
# =============================================================================


def diff_totals(
    totals_a: CanonicalTotals,
    totals_b: CanonicalTotals,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> TotalsDiff:
    """
    Compare the five monetary aggregates.

    Only the ``total`` delta feeds the severity; the other fields contribute
    clauses to the explanation when they move past a materiality floor.
    """
    subtotal = _field_delta(totals_a.subtotal, totals_b.subtotal)
    discounts = _field_delta(totals_a.discounts, totals_b.discounts)
    shipping = _field_delta(totals_a.shipping, totals_b.shipping)
    taxes = _field_delta(totals_a.taxes, totals_b.taxes)
    total = _field_delta(totals_a.total, totals_b.total)

    impact = determine_impact(total.diff_pct, total.diff, thresholds)

    explanation = None
    if impact is not ImpactLevel.NONE:
        parts = []
        if abs(subtotal.diff_pct) > SUBTOTAL_PCT_FLOOR:
            parts.append(f"Subtotal {'higher' if subtotal.diff > 0 else 'lower'}: {format_currency(abs(subtotal.diff))}")
        if abs(discounts.diff) > MONEY_TOLERANCE:
            parts.append(f"Discounts {'higher' if discounts.diff > 0 else 'lower'}: {format_currency(abs(discounts.diff))}")
        if abs(shipping.diff) > MONEY_TOLERANCE:
            parts.append(f"Shipping {'higher' if shipping.diff > 0 else 'lower'}: {format_currency(abs(shipping.diff))}")
        explanation = f"Total difference: {format_currency(total.diff)}. " + ". ".join(parts)

    return TotalsDiff(
        subtotal=subtotal,
        discounts=discounts,
        shipping=shipping,
        taxes=taxes,
        total=total,
        financial_impact=total.diff,
        impact=impact,
        explanation=explanation.strip() if explanation else None,
    )


# =============================================================================
# Shipping
# =============================================================================


def map_cart_delivery_type(cart_delivery_type: str) -> Optional[Dict[str, str]]:
    """Translate a cart SLA label into the budget's delivery/shipping type pair."""
    return CART_TO_BUDGET_DELIVERY_MAP.get((cart_delivery_type or "").strip().upper())


def are_delivery_types_equivalent(cart_delivery_type: str, budget_delivery_type: str) -> bool:
    """
    Check a cart SLA label against a budget delivery label.

    Unknown cart labels fall back to case-insensitive equality. Known labels
    match when the budget label contains both mapped components, equals the
    delivery type alone, or equals ``"<deliveryType>/<shippingType>"``.
    """
    mapped = map_cart_delivery_type(cart_delivery_type)
    if mapped is None:
        return (cart_delivery_type or "").lower() == (budget_delivery_type or "").lower()

    budget_normalized = (budget_delivery_type or "").upper()
    delivery_type = mapped["deliveryType"]
    shipping_type = mapped["shippingType"]

    if delivery_type in budget_normalized and shipping_type in budget_normalized:
        return True
    if budget_normalized == delivery_type:
        return True
    return budget_normalized == f"{delivery_type}/{shipping_type}"


def format_cart_delivery_type(cart_delivery_type: str) -> str:
    mapped = map_cart_delivery_type(cart_delivery_type)
    if mapped:
        return f"{cart_delivery_type} ({mapped['deliveryType']}/{mapped['shippingType']})"
    return cart_delivery_type


def diff_shipping(
    shipping_a: Optional[CanonicalShipping],
    shipping_b: Optional[CanonicalShipping],
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> Optional[ShippingDiff]:
    """
    Compare delivery data.

    Precedence: a postal code mismatch forces high; a delivery type mismatch
    raises to medium only if nothing is set yet; the shipping value result is
    adopted only when it is critical or nothing else was flagged.

    Returns:
        ShippingDiff, or None when neither side has shipping data
    """
    if shipping_a is None and shipping_b is None:
        return None

    if shipping_a is None or shipping_b is None:
        value_a = shipping_a.shipping_value if shipping_a else 0.0
        value_b = shipping_b.shipping_value if shipping_b else 0.0
        return ShippingDiff(
            postal_code_diff=True,
            delivery_type_diff=True,
            shipping_value=FieldDelta(a=value_a, b=value_b, diff=value_b - value_a, diff_pct=100.0),
            impact=ImpactLevel.HIGH,
            postal_code_a=shipping_a.postal_code if shipping_a else None,
            postal_code_b=shipping_b.postal_code if shipping_b else None,
            delivery_type_a=shipping_a.delivery_type if shipping_a else None,
            delivery_type_b=shipping_b.delivery_type if shipping_b else None,
            explanation=(
                "Delivery data missing on the audited side."
                if shipping_a
                else "Reference document has no delivery data to compare."
            ),
        )

    postal_code_diff = normalize_postal_code(shipping_a.postal_code) != normalize_postal_code(shipping_b.postal_code)
    delivery_type_diff = not are_delivery_types_equivalent(shipping_b.delivery_type, shipping_a.delivery_type)
    value = _field_delta(shipping_a.shipping_value, shipping_b.shipping_value)

    impact = ImpactLevel.NONE
    parts = []

    if postal_code_diff:
        impact = ImpactLevel.HIGH
        parts.append(
            f"Postal code differs: reference {shipping_a.postal_code or '(not set)'}, "
            f"audited {shipping_b.postal_code or '(not set)'}. "
            "This may change the shipping value and delivery time."
        )

    if delivery_type_diff:
        impact = max_impact(impact, ImpactLevel.MEDIUM)
        parts.append(
            f'Delivery type differs: reference "{shipping_a.delivery_type}", '
            f'audited "{format_cart_delivery_type(shipping_b.delivery_type)}".'
        )

    if abs(value.diff) > MONEY_TOLERANCE:
        value_impact = determine_impact(value.diff_pct, value.diff, thresholds)
        if value_impact is not ImpactLevel.NONE and (
            impact is ImpactLevel.NONE or value_impact is ImpactLevel.CRITICAL
        ):
            impact = value_impact
        parts.append(
            f"Shipping {'higher' if value.diff > 0 else 'lower'} on the audited side: "
            f"{format_currency(abs(value.diff))} ({format_percent(value.diff_pct)})."
        )

    return ShippingDiff(
        postal_code_diff=postal_code_diff,
        delivery_type_diff=delivery_type_diff,
        shipping_value=value,
        impact=impact,
        postal_code_a=shipping_a.postal_code,
        postal_code_b=shipping_b.postal_code,
        delivery_type_a=shipping_a.delivery_type,
        delivery_type_b=shipping_b.delivery_type,
        explanation=" ".join(parts) if parts else None,
    )


# =============================================================================
# Promotions
# =============================================================================


def diff_promotions(
    promos_a: Sequence[CanonicalPromotion],
    promos_b: Sequence[CanonicalPromotion],
) -> List[PromoDiff]:
    """Reconcile promotions by id."""
    by_id_b: Dict[str, CanonicalPromotion] = {}
    for promo in promos_b:
        by_id_b.setdefault(promo.id, promo)

    diffs: List[PromoDiff] = []
    consumed = set()

    for promo_a in promos_a:
        promo_b = by_id_b.get(promo_a.id)
        if promo_b is None:
            diffs.append(
                PromoDiff(
                    id=promo_a.id,
                    name=promo_a.name,
                    status=PromoDiffStatus.ONLY_IN_BUDGET,
                    impact=ImpactLevel.MEDIUM,
                    value_a=promo_a.value,
                    explanation=(
                        f'Promotion "{promo_a.name}" was expected ({format_currency(promo_a.value)}) '
                        "but was not applied."
                    ),
                )
            )
            continue

        consumed.add(promo_b.id)
        if promo_a.value > 0 and promo_b.value > 0:
            value_diff = promo_b.value - promo_a.value
            if abs(value_diff) > MONEY_TOLERANCE:
                diffs.append(
                    PromoDiff(
                        id=promo_a.id,
                        name=promo_a.name,
                        status=PromoDiffStatus.VALUE_DIFF,
                        impact=ImpactLevel.LOW,
                        value_a=promo_a.value,
                        value_b=promo_b.value,
                        value_diff=value_diff,
                        explanation=(
                            f'Promotion "{promo_a.name}" has a different value: '
                            f"{format_currency(promo_a.value)} vs {format_currency(promo_b.value)}."
                        ),
                    )
                )
            else:
                diffs.append(
                    PromoDiff(
                        id=promo_a.id,
                        name=promo_a.name,
                        status=PromoDiffStatus.MATCH,
                        impact=ImpactLevel.NONE,
                        value_a=promo_a.value,
                        value_b=promo_b.value,
                    )
                )
        else:
            # At least one side has no tracked amount: presence is all we can check
            diffs.append(
                PromoDiff(id=promo_a.id, name=promo_a.name, status=PromoDiffStatus.MATCH, impact=ImpactLevel.NONE)
            )

    for promo_b in promos_b:
        if promo_b.id in consumed:
            continue
        consumed.add(promo_b.id)
        extra = (
            f"Additional discount of {format_currency(promo_b.value)}."
            if promo_b.value > 0
            else "Check whether it is a valid promotion."
        )
        diffs.append(
            PromoDiff(
                id=promo_b.id,
                name=promo_b.name,
                status=PromoDiffStatus.ONLY_IN_CART,
                impact=ImpactLevel.MEDIUM if promo_b.value > 0 else ImpactLevel.LOW,
                value_b=promo_b.value,
                explanation=f'Promotion "{promo_b.name}" was applied but not expected. {extra}',
            )
        )

    return diffs


# =============================================================================
# Marketing tags
# =============================================================================


def check_marketing_tag(tag: str, tags_a: Sequence[str], tags_b: Sequence[str]) -> Dict[str, bool]:
    """Presence of one tag on each side (case-insensitive)."""
    normalized = tag.strip().lower()
    in_a = any(t.strip().lower() == normalized for t in tags_a)
    in_b = any(t.strip().lower() == normalized for t in tags_b)
    return {"in_a": in_a, "in_b": in_b, "match": in_a == in_b}


def diff_marketing_tags(
    tags_a: Sequence[str],
    tags_b: Sequence[str],
    tags_to_check: Sequence[str] = (LOYALTY_POINTS_TAG,),
) -> List[MarketingTagDiff]:
    """
    Compare marketing tags.

    Watched tags are reported whenever present on either side: A-only is
    high, B-only medium, both none. Every other tag missing on the opposite
    side is reported as low.
    """
    normalized_a = [t.strip().lower() for t in tags_a]
    normalized_b = [t.strip().lower() for t in tags_b]
    watched = {t.strip().lower() for t in tags_to_check}

    diffs: List[MarketingTagDiff] = []

    for tag in tags_to_check:
        check = check_marketing_tag(tag, normalized_a, normalized_b)
        if not (check["in_a"] or check["in_b"]):
            continue

        impact = ImpactLevel.NONE
        explanation = None
        if check["in_a"] and not check["in_b"]:
            impact = ImpactLevel.HIGH
            explanation = (
                f'Tag "{tag}" is in the reference document but was not applied. '
                "The associated promotion may not be honoured."
            )
        elif check["in_b"] and not check["in_a"]:
            impact = ImpactLevel.MEDIUM
            explanation = f'Tag "{tag}" was applied but was not expected.'

        diffs.append(
            MarketingTagDiff(
                tag=tag,
                in_a=check["in_a"],
                in_b=check["in_b"],
                match=check["match"],
                impact=impact,
                explanation=explanation,
            )
        )

    for tag in normalized_a:
        if tag in watched or tag in normalized_b:
            continue
        diffs.append(
            MarketingTagDiff(
                tag=tag,
                in_a=True,
                in_b=False,
                match=False,
                impact=ImpactLevel.LOW,
                explanation=f'Tag "{tag}" from the reference document was not found.',
            )
        )

    for tag in normalized_b:
        if tag in watched or tag in normalized_a:
            continue
        diffs.append(
            MarketingTagDiff(
                tag=tag,
                in_a=False,
                in_b=True,
                match=False,
                impact=ImpactLevel.LOW,
                explanation=f'Tag "{tag}" was not in the reference document.',
            )
        )

    return diffs


def check_loyalty_tag(tags_a: Sequence[str], tags_b: Sequence[str]) -> MarketingTagDiff:
    """Dedicated check for the loyalty-points redemption tag."""
    check = check_marketing_tag(LOYALTY_POINTS_TAG, tags_a, tags_b)

    impact = ImpactLevel.NONE
    explanation = None
    if check["in_a"] and not check["in_b"]:
        impact = ImpactLevel.HIGH
        explanation = (
            f'Loyalty: tag "{LOYALTY_POINTS_TAG}" is expected but missing. '
            "The customer may not be able to redeem points."
        )
    elif check["in_b"] and not check["in_a"]:
        impact = ImpactLevel.MEDIUM
        explanation = f'Loyalty: tag "{LOYALTY_POINTS_TAG}" applied but not expected.'
    elif check["in_a"] and check["in_b"]:
        explanation = f'Loyalty: tag "{LOYALTY_POINTS_TAG}" present on both sides; points can be redeemed.'

    return MarketingTagDiff(
        tag=LOYALTY_POINTS_TAG,
        in_a=check["in_a"],
        in_b=check["in_b"],
        match=check["match"],
        impact=impact,
        explanation=explanation,
    )
