"""Normalization of raw cart (OrderForm) and quotation (Budget) documents.

Both source shapes are reduced to a ``CanonicalDocument`` with monetary
values in major currency units, so the differs never deal with encodings.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..utils.logging import get_logger
from .errors import ValidationError
from .models import (
    CanonicalDocument,
    CanonicalLineItem,
    CanonicalPromotion,
    CanonicalShipping,
    CanonicalTotals,
    ShippingAddress,
)

logger = get_logger(__name__)

# Mean item price above which a budget is assumed to be stored in cents.
# Known limitation: low-priced bulk catalogs stored in cents fall under it.
MINOR_UNIT_PRICE_THRESHOLD = 1000.0

EXPRESS_DELIVERY_TYPE = "EXP"
UNKNOWN_DELIVERY_TYPE = "unknown"
PICKUP_DELIVERY_CHANNEL = "pickup-in-point"

_TAG_SEPARATORS = re.compile(r"[,;]")
_NON_DIGITS = re.compile(r"\D")


def minor_to_major(value: Optional[float]) -> float:
    """Convert an amount in cents to major units (VTEX sends integer cents)."""
    return _to_float(value) / 100


def normalize_postal_code(postal_code: Optional[str]) -> str:
    """Strip every non-digit character from a postal code."""
    if postal_code is None:
        return ""
    return _NON_DIGITS.sub("", str(postal_code))


# =============================================================================
# Cart (OrderForm)
# =============================================================================


def normalize_order_form(order_form: Dict[str, Any]) -> CanonicalDocument:
    """
    Normalize a cart document whose monetary fields are in cents.

    Args:
        order_form: Raw OrderForm payload

    Returns:
        CanonicalDocument in major units

    Raises:
        ValidationError: if the payload is not a mapping or lacks ``items``
    """
    raw_items = _require_items(order_form, "order form")

    items = []
    for index, raw_item in enumerate(raw_items):
        sku_id = _require_sku(raw_item, ("id", "skuId"), index)
        quantity = _to_quantity(raw_item.get("quantity"))
        price_cents = _first_present(raw_item, ("sellingPrice", "price", "listPrice"))
        unit_price = minor_to_major(price_cents)
        items.append(
            CanonicalLineItem(
                sku_id=sku_id,
                name=str(raw_item.get("name") or raw_item.get("skuName") or ""),
                quantity=quantity,
                unit_price=unit_price,
                total_price=minor_to_major(_to_float(price_cents) * quantity),
                seller_id=_optional_str(raw_item.get("seller")),
                ref_id=_optional_str(raw_item.get("refId")),
                image_url=_optional_str(raw_item.get("imageUrl")),
            )
        )

    items, warnings = _dedupe_items(items, "order form")

    return CanonicalDocument(
        items=tuple(items),
        totals=_order_form_totals(order_form, items),
        shipping=_order_form_shipping(order_form),
        promotions=tuple(_order_form_promotions(order_form)),
        marketing_tags=tuple(_order_form_marketing_tags(order_form)),
        warnings=tuple(warnings),
    )


def _order_form_totals(order_form: Dict[str, Any], items: Sequence[CanonicalLineItem]) -> CanonicalTotals:
    totalizers = order_form.get("totalizers") or []
    by_id = {}
    for totalizer in totalizers:
        totalizer = _mapping(totalizer, "totalizer")
        if totalizer and totalizer.get("id") not in by_id:
            by_id[totalizer.get("id")] = totalizer.get("value")

    if by_id:
        subtotal = minor_to_major(by_id.get("Items"))
    else:
        subtotal = sum(item.total_price for item in items)

    return CanonicalTotals(
        subtotal=subtotal,
        # Discounts are negative in the cart
        discounts=abs(minor_to_major(by_id.get("Discounts"))),
        shipping=minor_to_major(by_id.get("Shipping")),
        taxes=minor_to_major(by_id.get("Tax")),
        total=minor_to_major(order_form.get("value")),
    )


def _order_form_shipping(order_form: Dict[str, Any]) -> Optional[CanonicalShipping]:
    shipping_data = _mapping(order_form.get("shippingData"), "shippingData")
    if not shipping_data:
        return None

    address = _mapping(shipping_data.get("address"), "shippingData.address")
    if not address:
        selected = shipping_data.get("selectedAddresses") or []
        address = _mapping(selected[0], "shippingData.selectedAddresses") if selected else {}

    logistics_info = shipping_data.get("logisticsInfo") or []
    logistics = _mapping(logistics_info[0], "shippingData.logisticsInfo") if logistics_info else {}

    # The Shipping totalizer is authoritative; per-item logistics prices are not summed
    shipping_cents = 0
    for totalizer in order_form.get("totalizers") or []:
        if _mapping(totalizer, "totalizer").get("id") == "Shipping":
            shipping_cents = totalizer.get("value") or 0
            break

    pickup_point = None
    for sla in logistics.get("slas") or []:
        if _mapping(sla, "sla").get("deliveryChannel") == PICKUP_DELIVERY_CHANNEL:
            pickup_point = (sla.get("pickupStoreInfo") or {}).get("friendlyName")
            break

    return CanonicalShipping(
        postal_code=str(address.get("postalCode") or ""),
        delivery_type=(
            logistics.get("selectedSla")
            or logistics.get("selectedDeliveryChannel")
            or UNKNOWN_DELIVERY_TYPE
        ),
        shipping_value=minor_to_major(shipping_cents),
        pickup_point=pickup_point,
        address=_address(address),
    )


def _order_form_promotions(order_form: Dict[str, Any]) -> List[CanonicalPromotion]:
    benefits = _order_form_benefits(order_form)
    # The cart does not expose a per-benefit amount, so value stays 0
    return [
        CanonicalPromotion(id=str(benefit.get("id")), name=str(benefit.get("name") or ""), value=0.0, type="benefit")
        for benefit in benefits
    ]


def _order_form_marketing_tags(order_form: Dict[str, Any]) -> List[str]:
    """Union of marketingData tags and tags embedded in matched promotion parameters."""
    collected: List[str] = []

    tags = _mapping(order_form.get("marketingData"), "marketingData").get("marketingTags")
    if isinstance(tags, list):
        collected.extend(tag for tag in tags if isinstance(tag, str))

    for benefit in _order_form_benefits(order_form):
        embedded = _mapping(benefit.get("matchedParameters"), "matchedParameters").get("marketingTags")
        if isinstance(embedded, str):
            collected.extend(_TAG_SEPARATORS.split(embedded))

    return _clean_tags(collected)


def _order_form_benefits(order_form: Dict[str, Any]) -> List[Dict[str, Any]]:
    rates = _mapping(order_form.get("ratesAndBenefitsData"), "ratesAndBenefitsData")
    return [_mapping(benefit, "benefit") for benefit in rates.get("rateAndBenefitsIdentifiers") or []]


# =============================================================================
# Quotation (Budget)
# =============================================================================


def is_minor_unit_encoded(items: Sequence[Dict[str, Any]], threshold: float = MINOR_UNIT_PRICE_THRESHOLD) -> bool:
    """
    Guess whether budget prices are stored in cents.

    The budget entity does not declare its encoding; a mean list price above
    ``threshold`` is taken to mean minor units.

    Args:
        items: Raw budget items
        threshold: Mean price above which minor units are assumed

    Returns:
        True when prices look like cents
    """
    if not items:
        return False
    mean_price = sum(_to_float(item.get("price")) for item in items) / len(items)
    return mean_price > threshold


def normalize_budget(budget: Dict[str, Any], minor_unit_threshold: float = MINOR_UNIT_PRICE_THRESHOLD) -> CanonicalDocument:
    """
    Normalize a quotation document stored in either major or minor units.

    Args:
        budget: Raw Master Data budget document
        minor_unit_threshold: Threshold for the unit-encoding heuristic

    Returns:
        CanonicalDocument in major units

    Raises:
        ValidationError: if the payload is not a mapping or lacks ``items``
    """
    raw_items = _require_items(budget, "budget")

    multiplier = 1.0
    if is_minor_unit_encoded(raw_items, minor_unit_threshold):
        logger.debug("Budget %s prices detected as minor units", budget.get("id"))
        multiplier = 0.01

    items = []
    for index, raw_item in enumerate(raw_items):
        sku_id = _require_sku(raw_item, ("skuId", "id"), index)
        quantity = _to_quantity(raw_item.get("quantity"))
        # sellingPrice already carries the applied discounts
        selling = raw_item.get("sellingPrice")
        unit_price = _to_float(selling if selling is not None else raw_item.get("price")) * multiplier
        total_price = raw_item.get("totalPrice")
        items.append(
            CanonicalLineItem(
                sku_id=sku_id,
                name=str(raw_item.get("name") or ""),
                quantity=quantity,
                unit_price=unit_price,
                total_price=_to_float(total_price) * multiplier if total_price else unit_price * quantity,
                seller_id=_optional_str(raw_item.get("sellerId")),
                ref_id=_optional_str(raw_item.get("refId")),
                image_url=_optional_str(raw_item.get("imageUrl")),
            )
        )

    items, warnings = _dedupe_items(items, f"budget {budget.get('id', '')}".strip())

    return CanonicalDocument(
        items=tuple(items),
        totals=_budget_totals(budget, raw_items, multiplier),
        shipping=_budget_shipping(budget, multiplier),
        promotions=tuple(_budget_promotions(budget, multiplier)),
        marketing_tags=tuple(_budget_marketing_tags(budget)),
        warnings=tuple(warnings),
    )


def _budget_promotions(budget: Dict[str, Any], multiplier: float) -> List[CanonicalPromotion]:
    promotions = []
    for raw in budget.get("promotions") or []:
        promo = _mapping(raw, "promotion")
        promotions.append(
            CanonicalPromotion(
                id=str(promo.get("id")),
                name=str(promo.get("name") or ""),
                value=_to_float(promo.get("value")) * multiplier,
                type=_optional_str(promo.get("type")),
            )
        )
    return promotions


def _budget_marketing_tags(budget: Dict[str, Any]) -> List[str]:
    tags = budget.get("marketingTags")
    if not isinstance(tags, list):
        return []
    return _clean_tags(tag for tag in tags if isinstance(tag, str))


def _price_tag_discounts(raw_items: Iterable[Dict[str, Any]]) -> float:
    """Sum of the absolute values of negative price tags across all items."""
    total = 0.0
    for item in raw_items:
        for price_tag in item.get("priceTags") or []:
            value = _to_float(_mapping(price_tag, "price tag").get("value"))
            if value < 0:
                total += abs(value)
    return total


def _budget_shipping_value(budget: Dict[str, Any]) -> Optional[float]:
    """Base shipping plus the express surcharge; None when the field is absent."""
    base = budget.get("shipping")
    if not isinstance(base, (int, float)) or isinstance(base, bool):
        return None
    value = float(base)
    if budget.get("deliveryType") == EXPRESS_DELIVERY_TYPE and budget.get("shippingDeliveryValue"):
        value += _to_float(budget.get("shippingDeliveryValue"))
    return value


def _budget_totals(budget: Dict[str, Any], raw_items: Sequence[Dict[str, Any]], multiplier: float) -> CanonicalTotals:
    totals = _mapping(budget.get("totals"), "totals")
    legacy_shipping = _mapping(budget.get("shippingData"), "shippingData")

    shipping = _budget_shipping_value(budget)
    if shipping is None:
        if totals and totals.get("shipping"):
            shipping = _to_float(totals.get("shipping"))
        else:
            shipping = _to_float(legacy_shipping.get("shippingValue"))

    # Discount sources in priority order: price tags, top-level field, legacy totals
    discounts = _price_tag_discounts(raw_items)
    if discounts > 0:
        logger.debug("Budget %s discount taken from price tags: %s", budget.get("id"), discounts)
    elif isinstance(budget.get("discounts"), (int, float)):
        discounts = float(budget["discounts"])
    elif totals and totals.get("discount"):
        discounts = _to_float(totals.get("discount"))

    discounts = abs(discounts) * multiplier
    shipping = shipping * multiplier

    if totals:
        return CanonicalTotals(
            subtotal=_to_float(totals.get("subtotal")) * multiplier,
            discounts=discounts,
            shipping=shipping,
            taxes=_to_float(totals.get("tax")) * multiplier,
            total=_to_float(totals.get("total")) * multiplier,
        )

    logger.debug("Budget %s has no totals block; deriving from items", budget.get("id"))
    subtotal = sum(
        _to_float(item.get("totalPrice")) or _to_float(item.get("price")) * _to_quantity(item.get("quantity"))
        for item in raw_items
    ) * multiplier
    return CanonicalTotals(
        subtotal=subtotal,
        discounts=discounts,
        shipping=shipping,
        taxes=0.0,
        total=subtotal - discounts + shipping,
    )


def _budget_delivery_type(budget: Dict[str, Any]) -> str:
    """Delivery speed and shipping liability joined, e.g. ``PDO/CIF``."""
    parts = [str(budget[key]) for key in ("deliveryType", "shippingType") if budget.get(key)]
    if parts:
        return "/".join(parts)
    legacy = _mapping(budget.get("shippingData"), "shippingData").get("deliveryType")
    return legacy or UNKNOWN_DELIVERY_TYPE


def _budget_shipping(budget: Dict[str, Any], multiplier: float) -> Optional[CanonicalShipping]:
    legacy = _mapping(budget.get("shippingData"), "shippingData")
    address = _mapping(budget.get("address"), "address")

    postal_code = normalize_postal_code(address.get("postalCode"))
    if not postal_code:
        postal_code = normalize_postal_code(legacy.get("postalCode"))

    has_shipping_data = (
        budget.get("shipping") is not None
        or budget.get("shippingType")
        or budget.get("deliveryType")
        or address
        or postal_code
    )
    if not has_shipping_data and not legacy:
        return None

    shipping_value = _budget_shipping_value(budget)
    if shipping_value is None:
        shipping_value = _to_float(legacy.get("shippingValue"))

    return CanonicalShipping(
        postal_code=postal_code,
        delivery_type=_budget_delivery_type(budget),
        shipping_value=shipping_value * multiplier,
        address=_address(address or _mapping(legacy.get("address"), "shippingData.address")),
    )


# =============================================================================
# Helpers
# =============================================================================


def _require_items(document: Any, label: str) -> List[Dict[str, Any]]:
    if not isinstance(document, dict):
        raise ValidationError(f"The {label} document must be an object, got {type(document).__name__}")
    items = document.get("items")
    if not isinstance(items, list):
        raise ValidationError(f"The {label} document has no items collection")
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"The {label} item at position {index} must be an object")
    return items


def _require_sku(item: Dict[str, Any], keys: Tuple[str, ...], index: int) -> str:
    for key in keys:
        value = item.get(key)
        if value is not None and str(value) != "":
            return str(value)
    raise ValidationError(f"Item at position {index} has no SKU id")


def _dedupe_items(items: List[CanonicalLineItem], label: str) -> Tuple[List[CanonicalLineItem], List[str]]:
    """Keep the first record per SKU and report every collision."""
    seen = set()
    unique: List[CanonicalLineItem] = []
    warnings: List[str] = []
    for item in items:
        if item.sku_id in seen:
            message = f"Duplicate SKU {item.sku_id} in {label}; keeping the first occurrence"
            logger.warning(message)
            warnings.append(message)
            continue
        seen.add(item.sku_id)
        unique.append(item)
    return unique, warnings


def _clean_tags(tags: Iterable[str]) -> List[str]:
    """Lowercase, strip and de-duplicate tags, preserving first-seen order."""
    cleaned: List[str] = []
    for tag in tags:
        normalized = tag.strip().lower()
        if normalized and normalized not in cleaned:
            cleaned.append(normalized)
    return cleaned


def _address(raw: Dict[str, Any]) -> Optional[ShippingAddress]:
    if not raw:
        return None
    return ShippingAddress(
        street=str(raw.get("street") or ""),
        number=str(raw.get("number") or ""),
        neighborhood=str(raw.get("neighborhood") or ""),
        city=str(raw.get("city") or ""),
        state=str(raw.get("state") or ""),
    )


def _mapping(value: Any, label: str) -> Dict[str, Any]:
    """Return a nested object, {} when absent; anything else is malformed."""
    if not value:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(f"Expected {label} to be an object, got {type(value).__name__}")
    return value


def _first_present(item: Dict[str, Any], keys: Tuple[str, ...]) -> Any:
    # Zero prices fall through to the next field
    for key in keys:
        if item.get(key):
            return item.get(key)
    return 0


def _to_float(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Expected a numeric value, got {value!r}") from e


def _to_quantity(value: Any) -> int:
    quantity = int(_to_float(value))
    if quantity < 0:
        raise ValidationError(f"Item quantity must be non-negative, got {value}")
    return quantity


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)
