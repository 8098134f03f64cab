"""
Result Formatter
================

Renders execution results into the presentation payload: performance text,
display-ready rows, and a visualization hint.
"""

import re
from datetime import datetime
from typing import Any

from observability.logging_config import get_logger

from nlq_pipeline.config import PipelineConfig
from nlq_pipeline.models import ExecutionResult, FormattedResult, TranslationResult

logger = get_logger(__name__)

CURRENCY_HINTS = ("value", "price", "cost", "fee", "gain", "loss")
PERCENT_HINTS = ("percent", "rate", "ratio")
TIME_HINTS = ("date", "time", "timestamp")

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def format_number(value: float) -> str:
    text = f"{value:,.2f}".rstrip("0").rstrip(".")
    return text or "0"


def format_currency(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_percentage(value: float) -> str:
    # values below 10 are treated as ratios
    percentage = value * 100 if value < 10 else value
    return f"{percentage:,.2f}%"


def format_date(value: str) -> str:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.strftime("%b %d, %Y, %I:%M %p")


def format_value(header: str, value: Any) -> Any:
    name = header.lower()
    if _is_number(value):
        if any(hint in name for hint in CURRENCY_HINTS):
            return format_currency(value)
        if any(hint in name for hint in PERCENT_HINTS):
            return format_percentage(value)
        return format_number(value)
    if any(hint in name for hint in TIME_HINTS) and isinstance(value, str) and _ISO_DATE.match(value):
        return format_date(value)
    return value


def suggest_visualization(headers: list[str], rows: list[dict]) -> str | None:
    """Pick a chart type from the shape of the first row."""
    if not rows:
        return None

    sample = rows[0]
    has_time = any(any(hint in h.lower() for hint in TIME_HINTS) for h in headers)
    numeric = [h for h in headers if _is_number(sample.get(h))]
    categorical = [
        h for h in headers if isinstance(sample.get(h), str) and "date" not in h.lower()
    ]

    if has_time and numeric:
        return "Line chart showing trends over time"
    if len(categorical) == 1 and len(numeric) == 1:
        return "Bar chart" if len(rows) > 10 else "Column chart"
    if len(numeric) > 1:
        return "Multi-series bar chart or stacked column chart"
    if len(numeric) == 1 and len(rows) > 20:
        return "Histogram showing distribution"
    if len(categorical) == 1:
        distinct = {row.get(categorical[0]) for row in rows}
        if len(distinct) > 10:
            return "Treemap or pie chart"
    return "Table view (current)"


class ResultFormatter:
    """Formats execution results for the caller."""

    def __init__(self, config: PipelineConfig | None = None) -> None:
        config = config or PipelineConfig()
        self.max_display_rows = config.max_display_rows
        self.download_row_limit = config.download_row_limit

    def format_results(
        self,
        execution: ExecutionResult,
        translation: TranslationResult | None = None,
    ) -> FormattedResult:
        """
        Format an execution result.

        Args:
            execution: Result of the execute-and-correct loop
            translation: Translation the statement came from, for context

        Returns:
            FormattedResult with text blocks, raw data and metadata
        """
        if not execution.success:
            return self.format_error(execution)

        rows = execution.rows
        headers = execution.columns or list(rows[0].keys() if rows else [])
        total_rows = len(rows)
        display_rows = min(total_rows, self.max_display_rows)
        metadata = execution.metadata

        formatted_rows = [
            [format_value(header, row.get(header)) for header in headers]
            for row in rows[:display_rows]
        ]

        text = (
            f"Showing {display_rows} of {total_rows} rows. "
            if total_rows > display_rows
            else f"{total_rows} rows returned. "
        )
        text += f"Query executed in {metadata.execution_time_ms / 1000:.2f} seconds. "
        if metadata.bytes_processed:
            text += f"{metadata.bytes_processed / (1024 * 1024):.2f} MB processed."
        content = [{"type": "text", "text": text.strip()}]

        result_metadata: dict[str, Any] = {
            "rowCount": display_rows,
            "totalRows": total_rows,
            "executionTimeMs": metadata.execution_time_ms,
            "retryCount": metadata.retry_count,
        }
        if metadata.bytes_processed is not None:
            result_metadata["bytesProcessed"] = metadata.bytes_processed

        hint = suggest_visualization(headers, rows)
        if hint:
            result_metadata["visualizationHint"] = hint
            content.append({"type": "text", "text": f"**Visualization Suggestion:** {hint}"})

        logger.info(
            "Results formatted",
            displayed_rows=display_rows,
            total_rows=total_rows,
            query=translation.original_query if translation else None,
        )
        return FormattedResult(
            content=content,
            metadata=result_metadata,
            raw_data={
                "headers": headers,
                "rows": rows,
                "displayRows": display_rows,
                "truncated": total_rows > display_rows,
                "exceedsDownloadLimit": total_rows > self.download_row_limit,
                "formattedRows": formatted_rows,
            },
        )

    def format_error(self, execution: ExecutionResult) -> FormattedResult:
        error = execution.error
        text = "**Query Execution Error**\n\n"
        text += f"{error.message if error else 'Unknown error'}\n\n"
        if error and error.details:
            text += f"**Details:** {error.details}\n\n"
        if execution.metadata.retry_count > 0:
            text += (
                f"Attempted {execution.metadata.retry_count} automatic corrections "
                "without success.\n\n"
            )
        text += "**Suggestions:**\n"
        text += "- Try simplifying your query\n"
        text += "- Check column names and data types\n"
        text += "- Ensure your filters use valid values\n"

        logger.info("Execution error formatted", code=error.code if error else None)
        return FormattedResult(
            content=[{"type": "text", "text": text}],
            metadata={
                "rowCount": 0,
                "totalRows": 0,
                "executionTimeMs": execution.metadata.execution_time_ms,
                "retryCount": execution.metadata.retry_count,
            },
        )
