"""Comparison orchestration: normalize, diff, analyse, summarize."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from ..utils.config import Config
from ..utils.logging import get_logger
from .analysis import generate_price_analysis
from .differs import (
    check_loyalty_tag,
    diff_items,
    diff_marketing_tags,
    diff_promotions,
    diff_shipping,
    diff_totals,
)
from .models import (
    CanonicalDocument,
    ComparisonMetadata,
    ComparisonMode,
    ComparisonResult,
)
from .normalizers import normalize_budget, normalize_order_form
from .severity import Thresholds
from .summary import generate_summary
from .weights import calculate_weight_info, compare_weights

logger = get_logger(__name__)


def build_metadata(source_a_id: str, source_b_id: str, prefix: str = "cmp") -> ComparisonMetadata:
    """Metadata for a run: ``<prefix>_<uuid4 hex>`` request id and a UTC timestamp."""
    return ComparisonMetadata(
        source_a_id=str(source_a_id),
        source_b_id=str(source_b_id),
        compared_at=datetime.now(timezone.utc).isoformat(),
        request_id=f"{prefix}_{uuid.uuid4().hex}",
    )


class ComparisonService:
    """Service for comparing a budget against a cart or another budget."""

    def __init__(self, config: Optional[Config] = None) -> None:
        """
        Initialize the comparison service.

        Args:
            config: Configuration; defaults to built-in thresholds and tags
        """
        self.config = config or Config()
        self.thresholds = Thresholds(
            percentage_threshold=self.config.get("percentage_threshold"),
            absolute_threshold=self.config.get("absolute_threshold"),
        )
        self.marketing_tags = tuple(self.config.get("marketing_tags") or ())
        self.minor_unit_threshold = self.config.get("minor_unit_price_threshold")

    def compare_budget_to_cart(
        self,
        budget_raw: Dict[str, Any],
        order_form_raw: Dict[str, Any],
        metadata: Optional[ComparisonMetadata] = None,
    ) -> ComparisonResult:
        """
        Compare a budget (expected) against the cart built from it (actual).

        Args:
            budget_raw: Raw budget document
            order_form_raw: Raw cart (orderForm) document
            metadata: Run metadata; generated when omitted

        Returns:
            ComparisonResult without price analysis or weights

        Raises:
            ValidationError: If either document is malformed
        """
        if metadata is None:
            metadata = build_metadata(
                budget_raw.get("id", "") if isinstance(budget_raw, dict) else "",
                order_form_raw.get("orderFormId", "") if isinstance(order_form_raw, dict) else "",
                prefix="cmp",
            )
        budget = normalize_budget(budget_raw, self.minor_unit_threshold)
        order_form = normalize_order_form(order_form_raw)
        return self.compare_documents(budget, order_form, ComparisonMode.BUDGET_VS_CART, metadata=metadata)

    def compare_budgets(
        self,
        budget_a_raw: Dict[str, Any],
        budget_b_raw: Dict[str, Any],
        sku_weights: Optional[Mapping[str, float]] = None,
        metadata: Optional[ComparisonMetadata] = None,
    ) -> ComparisonResult:
        """Compare two budgets as peers, including weights and price breakdown."""
        if metadata is None:
            metadata = build_metadata(
                budget_a_raw.get("id", "") if isinstance(budget_a_raw, dict) else "",
                budget_b_raw.get("id", "") if isinstance(budget_b_raw, dict) else "",
                prefix="bcmp",
            )
        budget_a = normalize_budget(budget_a_raw, self.minor_unit_threshold)
        budget_b = normalize_budget(budget_b_raw, self.minor_unit_threshold)
        return self.compare_documents(
            budget_a,
            budget_b,
            ComparisonMode.BUDGET_VS_BUDGET,
            sku_weights=sku_weights if sku_weights is not None else {},
            metadata=metadata,
        )

    def compare_documents(
        self,
        doc_a: CanonicalDocument,
        doc_b: CanonicalDocument,
        mode: ComparisonMode,
        sku_weights: Optional[Mapping[str, float]] = None,
        metadata: Optional[ComparisonMetadata] = None,
    ) -> ComparisonResult:
        """
        Run every differ over two canonical documents.

        The differs are independent of each other and run in sequence.
        Price analysis and weights are only produced between two budgets.
        """
        if metadata is None:
            metadata = build_metadata("", "", prefix="cmp")

        logger.info(f"[{metadata.request_id}] Comparing {metadata.source_a_id} vs {metadata.source_b_id} ({mode.value})")

        item_diffs = diff_items(doc_a.items, doc_b.items, mode, sku_weights, self.thresholds)
        totals_diff = diff_totals(doc_a.totals, doc_b.totals, self.thresholds)
        shipping_diff = diff_shipping(doc_a.shipping, doc_b.shipping, self.thresholds)
        promo_diffs = diff_promotions(doc_a.promotions, doc_b.promotions)
        tag_diffs = diff_marketing_tags(doc_a.marketing_tags, doc_b.marketing_tags, self.marketing_tags)
        loyalty_check = check_loyalty_tag(doc_a.marketing_tags, doc_b.marketing_tags)

        price_analysis = None
        weight_comparison = None
        if mode is ComparisonMode.BUDGET_VS_BUDGET:
            price_analysis = generate_price_analysis(doc_a, doc_b)
            weight_comparison = compare_weights(
                calculate_weight_info(doc_a.items, sku_weights),
                calculate_weight_info(doc_b.items, sku_weights),
            )

        summary = generate_summary(item_diffs, totals_diff, shipping_diff, promo_diffs, tag_diffs)

        logger.info(
            f"[{metadata.request_id}] Comparison finished: {summary.total_diffs} diffs, "
            f"overall impact {summary.overall_impact.value}"
        )

        return ComparisonResult(
            summary=summary,
            item_diffs=tuple(item_diffs),
            totals_diff=totals_diff,
            shipping_diff=shipping_diff,
            promo_diffs=tuple(promo_diffs),
            marketing_tag_diffs=tuple(tag_diffs),
            metadata=metadata,
            price_analysis=price_analysis,
            weight_comparison=weight_comparison,
            loyalty_check=loyalty_check,
            warnings=doc_a.warnings + doc_b.warnings,
        )
