"""
Command-line interface for Budget Audit.
"""

import argparse
import json
import sys
from typing import List, Optional, Tuple

from . import __version__
from .comparison.errors import ComparisonError
from .comparison.models import ComparisonResult, ImpactLevel
from .comparison.repository import DocumentRepository, extract_order_form_id
from .comparison.service import ComparisonService, build_metadata
from .comparison.weights import get_formatted_weight_range
from .utils.config import Config
from .utils.formatters import format_currency, format_number, format_percent, format_postal_code, truncate
from .utils.logging import get_logger, setup_logging

_IMPACT_COLORS = {
    ImpactLevel.CRITICAL: "\033[1;31m",
    ImpactLevel.HIGH: "\033[31m",
    ImpactLevel.MEDIUM: "\033[33m",
    ImpactLevel.LOW: "\033[36m",
    ImpactLevel.NONE: "\033[32m",
}


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description="Budget Audit - Budget vs Cart / Budget vs Budget comparison tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  budget-audit --version
  budget-audit compare-cart --budget-id 12345 --cart https://store.example/checkout?orderFormId=abc123def4567890
  budget-audit compare-budgets --budget-a 12345 --budget-b 12346 --weights catalog
  budget-audit --documents-dir ./fixtures compare-cart --budget-id 12345 --cart abc123def4567890 --json
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Budget Audit {__version__}",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    parser.add_argument(
        "--log-file",
        help="Log file path",
    )

    parser.add_argument(
        "--env-file",
        help=(
            "Load configuration from this .env file "
            "(without it, built-in defaults apply and shell variables are ignored)"
        ),
    )

    parser.add_argument(
        "--documents-dir",
        help="Directory holding carts/, budgets/ and weights/ JSON documents (overrides DOCUMENTS_DIR)",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
    )

    cart_parser = subparsers.add_parser(
        "compare-cart",
        help="Compare a budget against the cart built from it",
    )
    cart_parser.add_argument(
        "--budget-id",
        type=str,
        required=True,
        help="Id of the budget document",
    )
    cart_parser.add_argument(
        "--cart",
        type=str,
        required=True,
        help="Cart URL or orderFormId",
    )
    cart_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the comparison result as JSON",
    )

    budgets_parser = subparsers.add_parser(
        "compare-budgets",
        help="Compare two budgets, including weights and price breakdown",
    )
    budgets_parser.add_argument(
        "--budget-a",
        type=str,
        required=True,
        help="Id of the first budget",
    )
    budgets_parser.add_argument(
        "--budget-b",
        type=str,
        required=True,
        help="Id of the second budget",
    )
    budgets_parser.add_argument(
        "--weights",
        type=str,
        help="Id of a SKU weight document under weights/ (unknown SKUs weigh 0)",
    )
    budgets_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the comparison result as JSON",
    )

    return parser


def _colored(impact: ImpactLevel) -> str:
    return f"{_IMPACT_COLORS[impact]}{impact.value.upper()}\033[0m"


def _print_box(header_lines: List[Tuple[str, str]]) -> None:
    label_width = max(len(lbl) for lbl, _ in header_lines)
    # Inner content width: label + 2 spaces around ':' + space + value
    inner_width = max(len(f" {lbl.ljust(label_width)} : {val}") for lbl, val in header_lines)
    print("┌" + "─" * inner_width + "┐")
    for lbl, val in header_lines:
        line = f" {lbl.ljust(label_width)} : {val}"
        print(f"│{line.ljust(inner_width)}│")
    print("└" + "─" * inner_width + "┘")


def _section(title: str) -> None:
    print(f"\n{title}")
    print("=" * 60)


def print_report(result: ComparisonResult, label_a: str, label_b: str) -> None:
    """Print a human-readable report for a comparison result."""
    summary = result.summary
    _print_box(
        [
            (label_a, result.metadata.source_a_id or "-"),
            (label_b, result.metadata.source_b_id or "-"),
            ("Request ID", result.metadata.request_id),
            ("Compared at", result.metadata.compared_at),
            ("Overall impact", summary.overall_impact.value.upper()),
        ]
    )

    print(f"\n   Overall Status: {_colored(summary.overall_impact)}")
    print(
        f"   Divergences: {summary.total_diffs} "
        f"(critical {summary.critical_diffs}, high {summary.high_diffs}, medium {summary.medium_diffs})"
    )
    print(f"   Financial difference: {format_currency(summary.financial_difference)}")

    _section("ITEMS")
    if not result.item_diffs:
        print("   No items")
    for diff in result.item_diffs:
        print(f"   [{_colored(diff.impact)}] {diff.sku_id:<12} {truncate(diff.name, 40):<40} {diff.status.value}")
        if diff.explanation:
            print(f"      {diff.explanation}")

    _section("TOTALS")
    totals = result.totals_diff
    header = f"   {'Field':<12}{label_a:>18}{label_b:>18}{'Delta':>18}"
    print(header)
    print("   " + "-" * (len(header) - 3))
    for name in ("subtotal", "discounts", "shipping", "taxes", "total"):
        delta = getattr(totals, name)
        print(
            f"   {name:<12}{format_currency(delta.a):>18}{format_currency(delta.b):>18}"
            f"{format_currency(delta.diff):>18}"
        )
    print(f"   Impact: {_colored(totals.impact)}")
    if totals.explanation:
        print(f"   {totals.explanation}")

    _section("SHIPPING")
    shipping = result.shipping_diff
    if shipping is None:
        print("   No delivery data on either side")
    else:
        print(
            f"   Postal code:   {format_postal_code(shipping.postal_code_a or '-')} / "
            f"{format_postal_code(shipping.postal_code_b or '-')}"
        )
        print(f"   Delivery type: {shipping.delivery_type_a or '-'} / {shipping.delivery_type_b or '-'}")
        print(
            f"   Value:         {format_currency(shipping.shipping_value.a)} / "
            f"{format_currency(shipping.shipping_value.b)}"
        )
        print(f"   Impact: {_colored(shipping.impact)}")
        if shipping.explanation:
            print(f"   {shipping.explanation}")

    _section("PROMOTIONS")
    if not result.promo_diffs:
        print("   No promotions")
    for diff in result.promo_diffs:
        print(f"   [{_colored(diff.impact)}] {diff.name} ({diff.status.value})")
        if diff.explanation:
            print(f"      {diff.explanation}")

    _section("MARKETING TAGS")
    if not result.marketing_tag_diffs:
        print("   No marketing tag divergences")
    for diff in result.marketing_tag_diffs:
        presence = f"{label_a}: {'yes' if diff.in_a else 'no'}, {label_b}: {'yes' if diff.in_b else 'no'}"
        print(f"   [{_colored(diff.impact)}] {diff.tag} ({presence})")
        if diff.explanation:
            print(f"      {diff.explanation}")
    if result.loyalty_check is not None and result.loyalty_check.explanation:
        print(f"   [{_colored(result.loyalty_check.impact)}] {result.loyalty_check.explanation}")

    if result.price_analysis is not None:
        analysis = result.price_analysis
        _section("PRICE BREAKDOWN")
        if analysis.cheaper == "equal":
            print("   Both documents have the same total")
        else:
            cheaper = label_a if analysis.cheaper == "A" else label_b
            print(f"   Cheaper: {cheaper} by {format_currency(abs(analysis.price_difference))}")
        for entry in analysis.breakdown:
            print(f"   {entry.description:<32}{format_currency(entry.difference):>18}  ({entry.impact})")

    if result.weight_comparison is not None:
        weights = result.weight_comparison
        _section("WEIGHTS")
        print(
            f"   {label_a}: {format_number(weights.a.total_weight)} kg "
            f"[{get_formatted_weight_range(weights.a.total_weight)}]"
        )
        print(
            f"   {label_b}: {format_number(weights.b.total_weight)} kg "
            f"[{get_formatted_weight_range(weights.b.total_weight)}]"
        )
        print(f"   Difference: {format_number(weights.difference)} kg (heavier: {weights.heavier})")
        if weights.same_range:
            print("   Same freight weight band")
        else:
            print(f"   Weight band change: {weights.range_difference:+d}")
        if weights.a.total_weight > 0:
            pct = (weights.b.total_weight - weights.a.total_weight) / weights.a.total_weight * 100
            print(f"   Relative change: {format_percent(pct)}")

    if result.warnings:
        print("\n\033[1m\033[33m⚠️  WARNINGS\033[0m")
        for warning in result.warnings:
            print(f"\033[33m   {warning}\033[0m")


def compare_cart(
    repository: DocumentRepository,
    service: ComparisonService,
    budget_id: str,
    cart: str,
    as_json: bool = False,
) -> ComparisonResult:
    """
    Compare a stored budget against a stored cart.

    Args:
        repository: Source of the raw documents
        service: Comparison service
        budget_id: Budget document id
        cart: Cart URL or orderFormId
        as_json: Print JSON instead of the boxed report

    Returns:
        The comparison result
    """
    logger = get_logger(__name__)
    order_form_id = extract_order_form_id(cart)
    logger.info(f"Comparing budget {budget_id} against cart {order_form_id}")

    budget = repository.get_budget(budget_id)
    order_form = repository.get_order_form(order_form_id)

    metadata = build_metadata(budget_id, order_form_id, prefix="cmp")
    result = service.compare_budget_to_cart(budget, order_form, metadata=metadata)

    if as_json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print_report(result, "Budget", "Cart")
    return result


def compare_budgets(
    repository: DocumentRepository,
    service: ComparisonService,
    budget_a: str,
    budget_b: str,
    weights_id: Optional[str] = None,
    as_json: bool = False,
) -> ComparisonResult:
    """Compare two stored budgets, optionally with a SKU weight document."""
    logger = get_logger(__name__)
    logger.info(f"Comparing budget {budget_a} against budget {budget_b}")

    raw_a = repository.get_budget(budget_a)
    raw_b = repository.get_budget(budget_b)
    sku_weights = repository.get_sku_weights(weights_id) if weights_id else {}

    metadata = build_metadata(budget_a, budget_b, prefix="bcmp")
    result = service.compare_budgets(raw_a, raw_b, sku_weights=sku_weights, metadata=metadata)

    if as_json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print_report(result, "Budget 1", "Budget 2")
    return result


def main(args: Optional[list] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        args: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    config = Config(parsed_args.env_file)

    # Set up logging
    log_level = "DEBUG" if parsed_args.verbose else config.get("log_level")
    logger = setup_logging(level=log_level, log_file=parsed_args.log_file)

    if not parsed_args.command:
        parser.print_help()
        return 1

    repository = DocumentRepository(parsed_args.documents_dir or config.get("documents_dir"))
    service = ComparisonService(config)

    try:
        if parsed_args.command == "compare-cart":
            compare_cart(
                repository,
                service,
                budget_id=parsed_args.budget_id,
                cart=parsed_args.cart,
                as_json=parsed_args.json,
            )
        elif parsed_args.command == "compare-budgets":
            compare_budgets(
                repository,
                service,
                budget_a=parsed_args.budget_a,
                budget_b=parsed_args.budget_b,
                weights_id=parsed_args.weights,
                as_json=parsed_args.json,
            )
    except ComparisonError as e:
        logger.error(f"Error: {e.kind}: {e.message}")
        return 1
    except Exception as e:
        logger.error(f"Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
