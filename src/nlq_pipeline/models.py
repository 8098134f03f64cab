"""
Data Models
===========

Core data structures for the query translation and execution pipeline.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional


def _text(value: Any, name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string")
    return value


@dataclass
class ClauseComponent:
    """A human-readable description paired with the SQL fragment it produces."""

    description: str = ""
    sql_clause: str = ""

    def to_dict(self) -> dict:
        return {"description": self.description, "sqlClause": self.sql_clause}


@dataclass
class QueryComponents:
    """The five clause families a translation is broken down into."""

    filter: ClauseComponent = field(default_factory=ClauseComponent)
    aggregation: ClauseComponent = field(default_factory=ClauseComponent)
    group_by: ClauseComponent = field(default_factory=ClauseComponent)
    order_by: ClauseComponent = field(default_factory=ClauseComponent)
    limit: ClauseComponent = field(default_factory=ClauseComponent)

    def to_dict(self) -> dict:
        return {
            "filterOperations": self.filter.to_dict(),
            "aggregationOperations": self.aggregation.to_dict(),
            "groupByOperations": self.group_by.to_dict(),
            "orderByOperations": self.order_by.to_dict(),
            "limitOperations": self.limit.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "QueryComponents":
        if not isinstance(data, Mapping):
            raise ValueError("components must be a mapping")

        def _clause(key: str) -> ClauseComponent:
            raw = data.get(key) or {}
            if not isinstance(raw, Mapping):
                raise ValueError(f"{key} must be a mapping")
            return ClauseComponent(
                description=_text(raw.get("description"), "description"),
                sql_clause=_text(raw.get("sqlClause"), "sqlClause"),
            )

        return cls(
            filter=_clause("filterOperations"),
            aggregation=_clause("aggregationOperations"),
            group_by=_clause("groupByOperations"),
            order_by=_clause("orderByOperations"),
            limit=_clause("limitOperations"),
        )


@dataclass
class FilterPhaseResult:
    """Output of the population definition phase."""

    description: str
    sql_clause: str
    confidence: float
    fallback: bool = False
    alternatives: list[str] = field(default_factory=list)


@dataclass
class AggregationPhaseResult:
    """Output of the result shape phase."""

    aggregation_description: str
    aggregation_clause: str
    group_by_description: str = ""
    group_by_clause: str = ""
    order_by_description: str = ""
    order_by_clause: str = ""
    limit_description: str = ""
    limit_clause: str = ""
    confidence: float = 0.0
    fallback: bool = False
    alternatives: list[str] = field(default_factory=list)


@dataclass
class TranslationResult:
    """A translated query, ready for confirmation or execution."""

    original_query: str
    interpreted_query: str
    sql: str
    components: QueryComponents
    confidence: float
    requires_confirmation: bool
    alternative_interpretations: Optional[list[str]] = None
    confirmed_mappings: Optional[dict[str, str]] = None
    processing_steps: list[dict] = field(default_factory=list)
    # Both phases fell back to their permissive defaults
    degraded: bool = False

    def to_dict(self) -> dict:
        """Serialize with the camelCase keys used by the transport layer."""
        data = {
            "originalQuery": self.original_query,
            "interpretedQuery": self.interpreted_query,
            "sql": self.sql,
            "components": self.components.to_dict(),
            "confidence": self.confidence,
            "requiresConfirmation": self.requires_confirmation,
        }
        if self.alternative_interpretations:
            data["alternativeInterpretations"] = list(self.alternative_interpretations)
        if self.confirmed_mappings is not None:
            data["confirmedMappings"] = dict(self.confirmed_mappings)
        return data

    @classmethod
    def from_dict(cls, data: Mapping) -> "TranslationResult":
        """
        Rebuild a translation embedded in a previous response.

        Raises:
            ValueError: If ``sql`` is missing or a field has the wrong type
        """
        sql = data.get("sql")
        if not isinstance(sql, str) or not sql.strip():
            raise ValueError("sql must be a non-empty string")

        try:
            confidence = float(data.get("confidence") or 0.0)
        except TypeError as e:
            raise ValueError(f"confidence must be a number: {e}") from e

        alternatives = data.get("alternativeInterpretations")
        if alternatives is not None and not isinstance(alternatives, list):
            raise ValueError("alternativeInterpretations must be a list")
        mappings = data.get("confirmedMappings")
        if mappings is not None and not isinstance(mappings, Mapping):
            raise ValueError("confirmedMappings must be a mapping")

        return cls(
            original_query=_text(data.get("originalQuery"), "originalQuery"),
            interpreted_query=_text(data.get("interpretedQuery"), "interpretedQuery"),
            sql=sql,
            components=QueryComponents.from_dict(data.get("components") or {}),
            confidence=min(1.0, max(0.0, confidence)),
            requires_confirmation=bool(data.get("requiresConfirmation", False)),
            alternative_interpretations=[str(item) for item in alternatives] if alternatives else None,
            confirmed_mappings=dict(mappings) if mappings is not None else None,
        )


@dataclass
class QueryOutput:
    """Raw output of a single successful data engine call."""

    rows: list[dict[str, Any]]
    columns: list[str]
    bytes_processed: Optional[int] = None


@dataclass
class AttemptRecord:
    """Single entry in the execution audit trail."""

    attempt: int
    sql: str
    duration_ms: float
    error: Optional[str] = None


@dataclass
class ExecutionError:
    """Error surfaced by a failed execution."""

    message: str
    code: str
    details: Optional[str] = None


@dataclass
class ExecutionMetadata:
    """Timing and audit information for an execution."""

    execution_time_ms: float
    retry_count: int
    original_sql: str
    final_sql: str
    bytes_processed: Optional[int] = None
    attempts: list[AttemptRecord] = field(default_factory=list)


@dataclass
class ExecutionResult:
    """Final result of the execute-and-correct loop."""

    success: bool
    rows: list[dict[str, Any]]
    columns: list[str]
    metadata: ExecutionMetadata
    error: Optional[ExecutionError] = None


@dataclass
class FormattedResult:
    """Presentation payload produced by the result formatter."""

    content: list[dict[str, str]]
    metadata: dict[str, Any]
    raw_data: Optional[dict[str, Any]] = None


@dataclass
class Session:
    """Pipeline record for a single submitted query."""

    id: str
    query: str
    created_at: float
    translation_result: Optional[TranslationResult] = None
    execution_result: Optional[ExecutionResult] = None
    formatted_result: Optional[FormattedResult] = None


@dataclass
class LLMResponse:
    """Response from an LLM call."""

    content: str
    model: str
    tokens_used: int = 0
