"""
Translation Output Parsing
==========================

Turns raw LLM replies into phase results, and assembles the final statement.
"""

import json
import math
import re

from nlq_pipeline.errors import TranslationFailure
from nlq_pipeline.models import AggregationPhaseResult, FilterPhaseResult

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_SQL_FENCE = re.compile(r"```(?:sql)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_BACKTICKS = re.compile(r"`([^`]+)`")
_LEADING_KEYWORD = {
    "select": re.compile(r"^\s*SELECT\s+", re.IGNORECASE),
    "where": re.compile(r"^\s*WHERE\s+", re.IGNORECASE),
    "group_by": re.compile(r"^\s*GROUP\s+BY\s+", re.IGNORECASE),
    "order_by": re.compile(r"^\s*ORDER\s+BY\s+", re.IGNORECASE),
    "limit": re.compile(r"^\s*LIMIT\s+", re.IGNORECASE),
}
_ALWAYS_TRUE = {"", "1=1", "true"}


def extract_json_object(text: str) -> dict:
    """
    Extract the first JSON object embedded in an LLM reply.

    Raises:
        TranslationFailure: If no object is present or it does not parse
    """
    match = _JSON_OBJECT.search(text or "")
    if not match:
        raise TranslationFailure("No JSON object found in translation response")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise TranslationFailure(f"Invalid JSON in translation response: {e}") from e
    if not isinstance(data, dict):
        raise TranslationFailure("Translation response is not a JSON object")
    return data


def parse_confidence(value) -> float:
    """Coerce a reported confidence into [0, 1]."""
    if isinstance(value, bool):
        raise TranslationFailure("Confidence must be a number")
    try:
        confidence = float(value)
    except (TypeError, ValueError) as e:
        raise TranslationFailure(f"Confidence must be a number, got {value!r}") from e
    if math.isnan(confidence):
        raise TranslationFailure("Confidence must be a number, got NaN")
    return min(1.0, max(0.0, confidence))


def _required_str(data: dict, key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise TranslationFailure(f"Translation response is missing '{key}'")
    return value.strip()


def _optional_str(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    return str(value).strip()


def _alternatives(data: dict) -> list[str]:
    raw = data.get("alternativeInterpretations") or []
    if not isinstance(raw, list):
        return []
    return [str(item) for item in raw if item]


def strip_keyword(clause: str, kind: str) -> str:
    """Drop a leading SQL keyword the model repeated despite instructions."""
    return _LEADING_KEYWORD[kind].sub("", clause or "").strip()


def parse_filter_response(text: str) -> FilterPhaseResult:
    data = extract_json_object(text)
    return FilterPhaseResult(
        description=_required_str(data, "description"),
        sql_clause=strip_keyword(_required_str(data, "sqlClause"), "where"),
        confidence=parse_confidence(data.get("confidence")),
        alternatives=_alternatives(data),
    )


def parse_aggregation_response(text: str) -> AggregationPhaseResult:
    data = extract_json_object(text)
    return AggregationPhaseResult(
        aggregation_description=_required_str(data, "aggregationDescription"),
        aggregation_clause=strip_keyword(_required_str(data, "aggregationClause"), "select"),
        group_by_description=_optional_str(data, "groupByDescription"),
        group_by_clause=strip_keyword(_optional_str(data, "groupByClause"), "group_by"),
        order_by_description=_optional_str(data, "orderByDescription"),
        order_by_clause=strip_keyword(_optional_str(data, "orderByClause"), "order_by"),
        limit_description=_optional_str(data, "limitDescription"),
        limit_clause=strip_keyword(_optional_str(data, "limitClause"), "limit"),
        confidence=parse_confidence(data.get("confidence")),
        alternatives=_alternatives(data),
    )


def extract_sql(text: str) -> str | None:
    """
    Extract a SQL statement from an LLM reply.

    Handles ```sql fenced blocks, inline backticks and bare statements.
    """
    text = (text or "").strip()
    match = _SQL_FENCE.search(text) or _BACKTICKS.search(text)
    sql = match.group(1) if match else text
    sql = sql.strip().rstrip(";").strip()
    return sql or None


def is_always_true(clause: str) -> bool:
    """True for filters that select every record (``1=1``, ``TRUE``, empty)."""
    normalized = re.sub(r"\s+", "", clause or "").lower()
    while normalized.startswith("(") and normalized.endswith(")"):
        normalized = normalized[1:-1]
    return normalized in _ALWAYS_TRUE


def assemble_sql(
    table_name: str,
    filter_result: FilterPhaseResult,
    aggregation_result: AggregationPhaseResult,
) -> str:
    """Build the final statement; the WHERE clause is omitted for always-true filters."""
    select_clause = aggregation_result.aggregation_clause.strip() or "*"

    parts = [f"SELECT {select_clause}", f"FROM {table_name}"]
    if not is_always_true(filter_result.sql_clause):
        parts.append(f"WHERE {filter_result.sql_clause}")
    if aggregation_result.group_by_clause:
        parts.append(f"GROUP BY {aggregation_result.group_by_clause}")
    if aggregation_result.order_by_clause:
        parts.append(f"ORDER BY {aggregation_result.order_by_clause}")
    if aggregation_result.limit_clause:
        parts.append(f"LIMIT {aggregation_result.limit_clause}")
    return "\n".join(parts)


def build_interpretation(
    filter_result: FilterPhaseResult,
    aggregation_result: AggregationPhaseResult,
) -> str:
    """Paraphrase both phase descriptions as one sentence for caller review."""
    interpretation = "I understand you want to "
    if filter_result.description and not is_always_true(filter_result.sql_clause):
        interpretation += f"find data where {filter_result.description}"
    else:
        interpretation += "analyze all data"

    if aggregation_result.aggregation_description:
        interpretation += f" and {aggregation_result.aggregation_description}"
    if aggregation_result.group_by_description:
        interpretation += f", grouped by {aggregation_result.group_by_description}"
    if aggregation_result.order_by_description:
        interpretation += f", sorted by {aggregation_result.order_by_description}"
    if aggregation_result.limit_description:
        interpretation += f", {aggregation_result.limit_description}"
    return interpretation
