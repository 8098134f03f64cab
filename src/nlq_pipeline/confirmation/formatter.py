"""
Confirmation Formatter
======================

Renders translations, errors and column choices as caller-reviewable prompts.
"""

from dataclasses import dataclass, field
from typing import Optional

from observability.logging_config import get_logger

from nlq_pipeline.config import PipelineConfig
from nlq_pipeline.models import TranslationResult

logger = get_logger(__name__)

# (minimum confidence, label), checked in order
CONFIDENCE_LEVELS = [
    (0.9, "Very High"),
    (0.75, "High"),
    (0.5, "Moderate"),
    (0.25, "Low"),
]

# Keyword heuristics for grouping columns; first match wins
COLUMN_CATEGORIES = [
    ("Time", ("time", "date", "timestamp")),
    ("Asset", ("asset", "coin", "ticker")),
    ("Quantity", ("quantity", "amount", "balance", "total")),
    ("Transaction", ("transaction", "type", "direction", "trade", "transfer", "fee")),
    ("Identifier", ("id", "identifier")),
    ("Wallet", ("wallet",)),
    ("Pricing", ("price", "rate", "exchange")),
    ("Status", ("status", "categorized", "synced", "failed")),
    (
        "Valuation",
        ("gain", "loss", "cost", "basis", "value", "impairment", "revaluation", "adjustment"),
    ),
    ("Address", ("address",)),
    ("Tagging", ("category", "tag", "label", "contact")),
    ("Account", ("account",)),
]


@dataclass
class ConfirmationPrompt:
    """Text shown to the caller plus the structured pieces behind it."""

    content: list[dict[str, str]]
    interpreted_query: str = ""
    sql: Optional[str] = None
    components: dict = field(default_factory=dict)

    @property
    def text(self) -> str:
        return "".join(block["text"] for block in self.content)


def confidence_label(confidence: float) -> str:
    for minimum, label in CONFIDENCE_LEVELS:
        if confidence >= minimum:
            return label
    return "Very Low"


def categorize_column(name: str) -> str:
    lowered = name.lower()
    for category, keywords in COLUMN_CATEGORIES:
        if any(keyword in lowered for keyword in keywords):
            return category
    return "Other"


class ConfirmationFormatter:
    """Formats low-confidence translations for caller review."""

    def __init__(self, config: PipelineConfig | None = None) -> None:
        config = config or PipelineConfig()
        self.include_sql = config.include_sql
        self.suggest_alternatives = config.suggest_alternatives

    def format_confirmation(self, translation: TranslationResult) -> ConfirmationPrompt:
        """
        Build the confirmation prompt for a translation.

        Args:
            translation: Result awaiting caller review

        Returns:
            ConfirmationPrompt; the SQL is disclosed only when ``include_sql`` is set
        """
        components = translation.components
        text = f"{translation.interpreted_query}\n\n"

        filter_desc = components.filter.description
        if filter_desc:
            text += "**Identify data where:**\n"
            if "\n" in filter_desc or "- " in filter_desc:
                text += filter_desc
            else:
                text += f"- {filter_desc}"
            text += "\n\n"

        if components.aggregation.description:
            text += "**Calculate and show:**\n"
            text += f"- {components.aggregation.description}\n"
            if components.group_by.description:
                text += f"- Broken down by: {components.group_by.description}\n"
            if components.order_by.description:
                text += f"- Sorted by: {components.order_by.description}\n"
            if components.limit.description:
                text += f"- {components.limit.description}\n"
            text += "\n"

        if self.include_sql:
            text += f"**SQL Query:**\n```sql\n{translation.sql}\n```\n\n"

        text += f"Confidence: {confidence_label(translation.confidence)}\n\n"

        if self.suggest_alternatives and translation.alternative_interpretations:
            text += "**Alternative interpretations:**\n"
            for index, alternative in enumerate(translation.alternative_interpretations, 1):
                text += f"{index}. {alternative}\n"
            text += "\n"

        text += "Is this interpretation correct? You can:\n"
        text += '1. Confirm by saying "yes" or "correct"\n'
        text += '2. Modify specific parts (e.g., "change the date range to last 30 days")\n'
        text += "3. Provide a completely new query\n"

        logger.info(
            "Confirmation requested",
            confidence=translation.confidence,
            include_sql=self.include_sql,
            text_length=len(text),
        )
        return ConfirmationPrompt(
            content=[{"type": "text", "text": text}],
            interpreted_query=translation.interpreted_query,
            sql=translation.sql if self.include_sql else None,
            components=components.to_dict(),
        )

    def format_error_response(
        self,
        query: str,
        message: str,
        sql: str | None = None,
    ) -> ConfirmationPrompt:
        text = f'I encountered an error while processing your query: "{query}"\n\n'
        text += f"**Error:** {message}\n\n"
        if sql and self.include_sql:
            text += f"**SQL Query that caused the error:**\n```sql\n{sql}\n```\n\n"
        text += "You can:\n"
        text += "1. Try rephrasing your query to be more specific\n"
        text += "2. Provide more context about what you're looking for\n"
        text += "3. Ask for help with a simpler query first\n"

        logger.info("Error response formatted", error=message)
        return ConfirmationPrompt(content=[{"type": "text", "text": text}])

    def format_column_selection_options(
        self,
        columns: list[str],
        query: str,
        message: str | None = None,
    ) -> ConfirmationPrompt:
        """Ask the caller to pick columns, grouped by category."""
        grouped: dict[str, list[str]] = {}
        for column in columns:
            grouped.setdefault(categorize_column(column), []).append(column)

        text = message or f'I\'m not sure which columns you want to analyze for: "{query}"\n\n'
        text += "Please select from these available columns:\n\n"

        index = 1
        order = [category for category, _ in COLUMN_CATEGORIES] + ["Other"]
        for category in order:
            if category not in grouped:
                continue
            text += f"**{category} Columns:**\n"
            for column in grouped[category]:
                text += f"{index}. {column}\n"
                index += 1
            text += "\n"

        text += "You can:\n"
        text += "1. Enter the number of the column you want to use\n"
        text += '2. Type "use [column name]" to select a specific column\n'
        text += "3. Provide a new query that specifies the column\n"

        logger.info("Column selection formatted", column_count=len(columns))
        return ConfirmationPrompt(content=[{"type": "text", "text": text}])
