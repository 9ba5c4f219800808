"""
Pytest configuration and fixtures for Budget Audit tests.
"""

import copy
import json
import sys
from pathlib import Path

import pytest

# Add src to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from budget_audit.comparison.models import (  # noqa: E402
    CanonicalDocument,
    CanonicalLineItem,
    CanonicalPromotion,
    CanonicalShipping,
    CanonicalTotals,
)

BUDGET_RAW = {
    "id": "test-budget-001",
    "idBudget": 12345,
    "items": [
        {
            "skuId": "SKU001",
            "productId": "PROD001",
            "name": "Produto A",
            "quantity": 2,
            "price": 99.90,
            "totalPrice": 199.80,
            "sellerId": "1",
        },
        {
            "skuId": "SKU002",
            "productId": "PROD002",
            "name": "Produto B",
            "quantity": 1,
            "price": 149.90,
            "totalPrice": 149.90,
            "sellerId": "1",
        },
    ],
    "totals": {
        "subtotal": 349.70,
        "discount": 20.00,
        "shipping": 15.00,
        "tax": 0,
        "total": 344.70,
    },
    "address": {"postalCode": "01310-100"},
    "deliveryType": "PDO",
    "shippingType": "CIF",
    "shipping": 15.00,
    "promotions": [{"id": "promo1", "name": "Desconto 10%", "value": 20.00}],
}

ORDER_FORM_RAW = {
    "orderFormId": "test-orderform-001",
    "items": [
        {
            "id": "SKU001",
            "productId": "PROD001",
            "name": "Produto A",
            "quantity": 2,
            "price": 9990,
            "listPrice": 11990,
            "sellingPrice": 9990,
            "seller": "1",
        },
        {
            "id": "SKU002",
            "productId": "PROD002",
            "name": "Produto B",
            "quantity": 1,
            "price": 15990,
            "listPrice": 15990,
            "sellingPrice": 15990,
            "seller": "1",
        },
    ],
    "totalizers": [
        {"id": "Items", "name": "Itens", "value": 35970},
        {"id": "Discounts", "name": "Descontos", "value": -2000},
        {"id": "Shipping", "name": "Frete", "value": 1800},
        {"id": "Tax", "name": "Impostos", "value": 0},
    ],
    "shippingData": {
        "address": {
            "postalCode": "01310-100",
            "street": "Av Paulista",
            "number": "1000",
            "neighborhood": "Bela Vista",
            "city": "São Paulo",
            "state": "SP",
        },
        "logisticsInfo": [
            {"itemIndex": 0, "selectedSla": "AMARANZ LOGISTICA CAJ", "price": 900},
            {"itemIndex": 1, "selectedSla": "AMARANZ LOGISTICA CAJ", "price": 900},
        ],
    },
    "ratesAndBenefitsData": {
        "rateAndBenefitsIdentifiers": [{"id": "promo1", "name": "Desconto 10%"}],
    },
    "marketingData": {"marketingTags": ["usar-pontos-agora"]},
    "value": 35770,
}


@pytest.fixture
def budget_raw():
    """Raw budget document stored in major units."""
    return copy.deepcopy(BUDGET_RAW)


@pytest.fixture
def order_form_raw():
    """Raw cart document in cents, with a higher price for SKU002."""
    return copy.deepcopy(ORDER_FORM_RAW)


def make_item(sku_id, quantity=1, unit_price=10.0, name=None):
    return CanonicalLineItem(
        sku_id=sku_id,
        name=name or f"Item {sku_id}",
        quantity=quantity,
        unit_price=unit_price,
        total_price=unit_price * quantity,
    )


def make_document(items=(), totals=None, shipping=None, promotions=(), marketing_tags=()):
    return CanonicalDocument(
        items=tuple(items),
        totals=totals or CanonicalTotals(),
        shipping=shipping,
        promotions=tuple(promotions),
        marketing_tags=tuple(marketing_tags),
    )


@pytest.fixture
def budget_document():
    """Canonical budget matching BUDGET_RAW."""
    return make_document(
        items=[make_item("SKU001", 2, 99.90, "Produto A"), make_item("SKU002", 1, 149.90, "Produto B")],
        totals=CanonicalTotals(subtotal=349.70, discounts=20.0, shipping=15.0, taxes=0.0, total=344.70),
        shipping=CanonicalShipping(postal_code="01310100", delivery_type="PDO/CIF", shipping_value=15.0),
        promotions=[CanonicalPromotion(id="promo1", name="Desconto 10%", value=20.0)],
    )


@pytest.fixture
def documents_dir(tmp_path, budget_raw, order_form_raw):
    """A documents directory with one budget, one cart and one weight map."""
    for kind in ("budgets", "carts", "weights"):
        (tmp_path / kind).mkdir()

    second_budget = copy.deepcopy(budget_raw)
    second_budget["id"] = "test-budget-002"
    second_budget["items"][1]["price"] = 139.90
    second_budget["items"][1]["totalPrice"] = 139.90
    second_budget["totals"]["subtotal"] = 339.70
    second_budget["totals"]["total"] = 334.70

    (tmp_path / "budgets" / "12345.json").write_text(json.dumps(budget_raw), encoding="utf-8")
    (tmp_path / "budgets" / "12346.json").write_text(json.dumps(second_budget), encoding="utf-8")
    (tmp_path / "carts" / "abc123def4567890.json").write_text(json.dumps(order_form_raw), encoding="utf-8")
    (tmp_path / "weights" / "catalog.json").write_text(
        json.dumps([{"Id": "SKU001", "WeightKg": 2.5}, {"Id": "SKU002", "WeightKg": None}]),
        encoding="utf-8",
    )
    (tmp_path / "budgets" / "broken.json").write_text("{not json", encoding="utf-8")
    return tmp_path
