"""
Unit Tests for Confirmation
===========================

Tests for confirmation prompts and confirmed-mapping substitution.
"""

import dataclasses

import pytest

from nlq_pipeline.config import PipelineConfig
from nlq_pipeline.confirmation.formatter import (
    ConfirmationFormatter,
    categorize_column,
    confidence_label,
)
from nlq_pipeline.confirmation.mappings import apply_confirmed_mappings
from nlq_pipeline.models import ClauseComponent, QueryComponents, TranslationResult


@pytest.fixture
def translation() -> TranslationResult:
    """A low-confidence translation awaiting review."""
    return TranslationResult(
        original_query="eth gains by wallet last month",
        interpreted_query="I understand you want to find data where asset is ETH and sum gains",
        sql="SELECT wallet, SUM(totalGainLoss)\nFROM transactions\nWHERE asset = 'ETH'\nGROUP BY wallet",
        components=QueryComponents(
            filter=ClauseComponent("asset is ETH", "asset = 'ETH'"),
            aggregation=ClauseComponent("Sum total gain/loss", "wallet, SUM(totalGainLoss)"),
            group_by=ClauseComponent("wallet", "wallet"),
            order_by=ClauseComponent("", ""),
            limit=ClauseComponent("Limit to 10 results", "10"),
        ),
        confidence=0.6,
        requires_confirmation=True,
        alternative_interpretations=["Only the Coinbase wallet", "Unrealized gains"],
    )


class TestConfirmationFormatter:
    """Tests for the confirmation prompt text."""

    def test_prompt_sections(self, translation: TranslationResult) -> None:
        """Test that the prompt lists population, shape and confidence."""
        prompt = ConfirmationFormatter().format_confirmation(translation)
        text = prompt.text

        assert text.startswith(translation.interpreted_query)
        assert "**Identify data where:**\n- asset is ETH" in text
        assert "**Calculate and show:**\n- Sum total gain/loss" in text
        assert "- Broken down by: wallet" in text
        assert "Sorted by" not in text
        assert "- Limit to 10 results" in text
        assert "Confidence: Moderate" in text
        assert "Is this interpretation correct?" in text

    def test_prompt_fields(self, translation: TranslationResult) -> None:
        """Test that the prompt carries only what the response is built from."""
        prompt = ConfirmationFormatter().format_confirmation(translation)
        assert [f.name for f in dataclasses.fields(prompt)] == [
            "content",
            "interpreted_query",
            "sql",
            "components",
        ]
        assert prompt.interpreted_query == translation.interpreted_query
        assert prompt.sql is None

    def test_sql_hidden_by_default(self, translation: TranslationResult) -> None:
        """Test that SQL disclosure is off unless enabled."""
        prompt = ConfirmationFormatter().format_confirmation(translation)
        assert "```sql" not in prompt.text
        assert prompt.sql is None

    def test_sql_disclosed_when_enabled(self, translation: TranslationResult) -> None:
        """Test that include_sql discloses the statement."""
        formatter = ConfirmationFormatter(PipelineConfig(include_sql=True))
        prompt = formatter.format_confirmation(translation)

        assert f"```sql\n{translation.sql}\n```" in prompt.text
        assert prompt.sql == translation.sql

    def test_alternatives_listed(self, translation: TranslationResult) -> None:
        """Test that alternatives are numbered when enabled."""
        text = ConfirmationFormatter().format_confirmation(translation).text
        assert "**Alternative interpretations:**\n1. Only the Coinbase wallet\n2. Unrealized gains" in text

    def test_alternatives_suppressed(self, translation: TranslationResult) -> None:
        """Test that alternatives can be switched off."""
        formatter = ConfirmationFormatter(PipelineConfig(suggest_alternatives=False))
        assert "Alternative interpretations" not in formatter.format_confirmation(translation).text

    def test_multiline_filter_kept_verbatim(self, translation: TranslationResult) -> None:
        """Test that pre-bulleted filter descriptions are not re-bulleted."""
        translation.components.filter.description = "- asset is ETH\n- last month"
        text = ConfirmationFormatter().format_confirmation(translation).text
        assert "**Identify data where:**\n- asset is ETH\n- last month\n\n" in text

    def test_structured_components(self, translation: TranslationResult) -> None:
        """Test that the prompt carries the component breakdown."""
        prompt = ConfirmationFormatter().format_confirmation(translation)
        assert prompt.interpreted_query == translation.interpreted_query
        assert prompt.components["groupByOperations"] == {"description": "wallet", "sqlClause": "wallet"}

    @pytest.mark.parametrize(
        "confidence,label",
        [
            (1.0, "Very High"),
            (0.9, "Very High"),
            (0.8, "High"),
            (0.5, "Moderate"),
            (0.3, "Low"),
            (0.1, "Very Low"),
        ],
    )
    def test_confidence_labels(self, confidence: float, label: str) -> None:
        """Test confidence level boundaries."""
        assert confidence_label(confidence) == label

    def test_error_response(self) -> None:
        """Test the error prompt with and without SQL disclosure."""
        hidden = ConfirmationFormatter().format_error_response("q", "bad column", "SELECT x")
        assert "**Error:** bad column" in hidden.text
        assert "SELECT x" not in hidden.text

        shown = ConfirmationFormatter(PipelineConfig(include_sql=True)).format_error_response(
            "q", "bad column", "SELECT x"
        )
        assert "```sql\nSELECT x\n```" in shown.text

    def test_column_selection_groups(self, catalog) -> None:
        """Test that columns are numbered within their categories."""
        prompt = ConfirmationFormatter().format_column_selection_options(
            catalog.column_names(), "show me stuff"
        )
        text = prompt.text

        assert text.startswith('I\'m not sure which columns you want to analyze for: "show me stuff"')
        assert "**Time Columns:**\n1. timestamp\n" in text
        assert "**Wallet Columns:**" in text
        assert "**Valuation Columns:**" in text
        assert text.index("**Time Columns:**") < text.index("**Asset Columns:**")

    @pytest.mark.parametrize(
        "column,category",
        [
            ("timestamp", "Time"),
            ("assetName", "Asset"),
            ("amount", "Quantity"),
            ("totalGainLoss", "Quantity"),
            ("fee", "Transaction"),
            ("wallet", "Wallet"),
            ("price", "Pricing"),
            ("costBasisAcquired", "Valuation"),
            ("memo", "Other"),
        ],
    )
    def test_categorize_column(self, column: str, category: str) -> None:
        """Test keyword categorization, first match wins."""
        assert categorize_column(column) == category


class TestConfirmedMappings:
    """Tests for placeholder substitution."""

    def test_replaces_every_occurrence(self) -> None:
        """Test that all occurrences of a placeholder are replaced."""
        sql = "SELECT * FROM t WHERE wallet = ':wallet' OR source = ':wallet'"
        result = apply_confirmed_mappings(sql, {":wallet": "Treasury"})
        assert result == "SELECT * FROM t WHERE wallet = 'Treasury' OR source = 'Treasury'"

    def test_token_boundaries(self) -> None:
        """Test that a placeholder never matches inside a longer identifier."""
        sql = "SELECT * FROM t WHERE asset = 'ETH' OR asset = 'ETHW'"
        result = apply_confirmed_mappings(sql, {"ETH": "BTC"})
        assert result == "SELECT * FROM t WHERE asset = 'BTC' OR asset = 'ETHW'"

    def test_overlapping_placeholders(self) -> None:
        """Test that a prefix placeholder does not corrupt a longer one."""
        sql = "WHERE timestamp BETWEEN :date AND :date_end"
        result = apply_confirmed_mappings(
            sql, {":date": "'2025-03-01'", ":date_end": "'2025-03-31'"}
        )
        assert result == "WHERE timestamp BETWEEN '2025-03-01' AND '2025-03-31'"

    def test_replacement_not_rescanned(self) -> None:
        """Test that substituted text is not substituted again."""
        assert apply_confirmed_mappings("A B", {"A": "B", "B": "C"}) == "B C"
        assert apply_confirmed_mappings("A B", {"B": "C", "A": "B"}) == "B C"

    def test_idempotent_on_original(self) -> None:
        """Test that re-applying to the same original SQL gives the same result."""
        original = "SELECT SUM(fee) FROM t WHERE asset = '{asset}'"
        mappings = {"{asset}": "SOL"}
        first = apply_confirmed_mappings(original, mappings)
        second = apply_confirmed_mappings(original, mappings)
        assert first == second == "SELECT SUM(fee) FROM t WHERE asset = 'SOL'"

    @pytest.mark.parametrize("empty", ["", None])
    def test_empty_values_skipped(self, empty) -> None:
        """Test that empty mapping values are skipped without failing."""
        sql = "WHERE asset = '{asset}' AND wallet = '{wallet}'"
        result = apply_confirmed_mappings(sql, {"{asset}": "ETH", "{wallet}": empty})
        assert result == "WHERE asset = 'ETH' AND wallet = '{wallet}'"

    def test_no_mappings(self) -> None:
        """Test that missing mappings leave the statement untouched."""
        assert apply_confirmed_mappings("SELECT 1", None) == "SELECT 1"
        assert apply_confirmed_mappings("SELECT 1", {}) == "SELECT 1"
        assert apply_confirmed_mappings("SELECT 1", {"x": ""}) == "SELECT 1"

    def test_regex_characters_literal(self) -> None:
        """Test that placeholders are matched literally."""
        sql = "WHERE price > $min.price AND price < $max"
        result = apply_confirmed_mappings(sql, {"$min.price": "10", "$max": "20"})
        assert result == "WHERE price > 10 AND price < 20"
