"""Tests for the local JSON document repository."""

import pytest

from budget_audit.comparison.errors import NotFoundError, ValidationError
from budget_audit.comparison.repository import DocumentRepository, extract_order_form_id


class TestExtractOrderFormId:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("abc123def4567890", "abc123def4567890"),
            ("https://store.example/checkout/?orderFormId=abc123def4567890#/cart", "abc123def4567890"),
            ("https://store.example/api/checkout/pub/orderForm/9f8e7d6c5b4a", "9f8e7d6c5b4a"),
            ("see 0123456789abcdef0123456789abcdef here", "0123456789abcdef0123456789abcdef"),
        ],
    )
    def test_accepted_forms(self, value, expected):
        assert extract_order_form_id(value) == expected

    @pytest.mark.parametrize("value", ["", "short", "https://store.example/checkout"])
    def test_rejected(self, value):
        with pytest.raises(ValidationError):
            extract_order_form_id(value)


class TestDocumentRepository:
    def test_loads_budget_and_cart(self, documents_dir):
        repository = DocumentRepository(documents_dir)

        assert repository.get_budget("12345")["id"] == "test-budget-001"
        assert repository.get_order_form("https://x.example/checkout?orderFormId=abc123def4567890")["value"] == 35770

    def test_missing_document(self, documents_dir):
        with pytest.raises(NotFoundError) as exc_info:
            DocumentRepository(documents_dir).get_budget("99999")
        assert exc_info.value.kind == "NOT_FOUND"

    def test_invalid_json(self, documents_dir):
        with pytest.raises(ValidationError):
            DocumentRepository(documents_dir).get_budget("broken")

    def test_path_traversal_rejected(self, documents_dir):
        with pytest.raises(ValidationError):
            DocumentRepository(documents_dir).get_budget("../carts/abc123def4567890")

    def test_weights_from_catalog_records(self, documents_dir):
        weights = DocumentRepository(documents_dir).get_sku_weights("catalog")
        assert weights == {"SKU001": 2.5, "SKU002": 0.0}

    def test_weights_from_plain_map(self, documents_dir):
        (documents_dir / "weights" / "plain.json").write_text('{"SKU001": 1.5, "SKU002": null}')
        weights = DocumentRepository(documents_dir).get_sku_weights("plain")
        assert weights == {"SKU001": 1.5, "SKU002": 0.0}

    def test_base_dir_from_config(self):
        assert str(DocumentRepository().base_dir) == "documents"
