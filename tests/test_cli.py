"""
Tests for CLI module.
"""

import json
from unittest.mock import patch

import pytest

from budget_audit import __version__
from budget_audit.cli import create_parser, main


class TestParser:
    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_compare_cart_requires_ids(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["compare-cart", "--budget-id", "1"])

    def test_env_file_help_mentions_defaults(self):
        assert "shell variables are ignored" in " ".join(create_parser().format_help().split())

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "compare-cart" in capsys.readouterr().out


class TestCompareCart:
    """compare-cart against a local documents directory."""

    def test_report(self, documents_dir, capsys):
        exit_code = main(
            ["--documents-dir", str(documents_dir), "compare-cart", "--budget-id", "12345", "--cart", "abc123def4567890"]
        )

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "┌" in out and "└" in out
        assert "Request ID" in out
        assert "ITEMS" in out
        assert "SKU002" in out
        assert "CRITICAL" in out
        assert "PRICE BREAKDOWN" not in out
        assert 'Loyalty: tag "usar-pontos-agora" applied but not expected.' in out

    def test_json_output(self, documents_dir, capsys):
        exit_code = main(
            [
                "--documents-dir", str(documents_dir),
                "compare-cart", "--budget-id", "12345",
                "--cart", "https://store.example/checkout/?orderFormId=abc123def4567890",
                "--json",
            ]
        )

        data = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert data["summary"]["overall_impact"] == "critical"
        assert data["metadata"]["source_a_id"] == "12345"
        assert data["metadata"]["source_b_id"] == "abc123def4567890"
        assert data["metadata"]["request_id"].startswith("cmp_")

    def test_missing_budget_returns_error(self, documents_dir, caplog):
        exit_code = main(
            ["--documents-dir", str(documents_dir), "compare-cart", "--budget-id", "404", "--cart", "abc123def4567890"]
        )

        assert exit_code == 1
        assert "NOT_FOUND" in caplog.text

    def test_malformed_budget_returns_error(self, documents_dir, budget_raw, caplog):
        budget_raw["items"][0]["price"] = "abc"
        (documents_dir / "budgets" / "12345.json").write_text(json.dumps(budget_raw), encoding="utf-8")

        exit_code = main(
            ["--documents-dir", str(documents_dir), "compare-cart", "--budget-id", "12345", "--cart", "abc123def4567890"]
        )

        assert exit_code == 1
        assert "VALIDATION_ERROR" in caplog.text

    def test_unexpected_error_returns_error(self, documents_dir, caplog):
        with patch("budget_audit.cli.ComparisonService.compare_budget_to_cart", side_effect=RuntimeError("boom")):
            exit_code = main(
                ["--documents-dir", str(documents_dir), "compare-cart", "--budget-id", "12345", "--cart", "abc123def4567890"]
            )

        assert exit_code == 1
        assert "boom" in caplog.text

    def test_invalid_cart_reference_returns_error(self, documents_dir):
        exit_code = main(["--documents-dir", str(documents_dir), "compare-cart", "--budget-id", "12345", "--cart", "x"])
        assert exit_code == 1


class TestCompareBudgets:
    def test_report_with_weights(self, documents_dir, capsys):
        exit_code = main(
            [
                "--documents-dir", str(documents_dir),
                "compare-budgets", "--budget-a", "12345", "--budget-b", "12346",
                "--weights", "catalog",
            ]
        )

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "PRICE BREAKDOWN" in out
        assert "Cheaper: Budget 2" in out
        assert "WEIGHTS" in out
        assert "0 - 30 kg" in out

    def test_json_output(self, documents_dir, capsys):
        exit_code = main(
            ["--documents-dir", str(documents_dir), "compare-budgets", "--budget-a", "12345", "--budget-b", "12346", "--json"]
        )

        data = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert data["price_analysis"]["cheaper"] == "B"
        assert data["weight_comparison"]["heavier"] == "equal"
        assert data["metadata"]["request_id"].startswith("bcmp_")

    def test_broken_budget_returns_error(self, documents_dir):
        exit_code = main(
            ["--documents-dir", str(documents_dir), "compare-budgets", "--budget-a", "12345", "--budget-b", "broken"]
        )
        assert exit_code == 1
