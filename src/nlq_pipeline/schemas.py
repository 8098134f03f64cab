"""
Response Schemas
================

Pydantic models for the payload handed to the transport layer.
Fields serialize with camelCase aliases (``model_dump(by_alias=True)``).
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ContentBlock(BaseModel):
    """A single text block shown to the caller."""

    type: str = Field(default="text")
    text: str = Field(..., description="Block text (markdown)")


class ClauseSchema(BaseModel):
    """Description and SQL fragment for one clause family."""

    model_config = ConfigDict(populate_by_name=True)

    description: str = Field(default="")
    sql_clause: str = Field(default="", alias="sqlClause")


class ProcessingStep(BaseModel):
    """One entry of the trace showing how a query was handled."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(..., description="query_interpretation, sql_generation or components")
    message: str | None = Field(None)
    filters: ClauseSchema | None = Field(None)
    aggregations: ClauseSchema | None = Field(None)
    group_by: ClauseSchema | None = Field(None, alias="groupBy")
    order_by: ClauseSchema | None = Field(None, alias="orderBy")
    limit: ClauseSchema | None = Field(None)


class QueryResponse(BaseModel):
    """Result of ``QueryOrchestrator.handle_query``."""

    model_config = ConfigDict(populate_by_name=True)

    content: list[ContentBlock] = Field(default_factory=list)
    sql: str | None = Field(None, description="Generated SQL (policy-gated)")
    needs_confirmation: bool = Field(
        default=False,
        alias="needsConfirmation",
        description="Whether the caller must confirm before execution",
    )
    processing_steps: list[ProcessingStep] | None = Field(None, alias="processingSteps")
    error: str | None = Field(None)
    session_id: str | None = Field(None, alias="sessionId")
    original_query: str | None = Field(None, alias="originalQuery")
    raw_data: dict[str, Any] | None = Field(None, alias="rawData")
    metadata: dict[str, Any] | None = Field(None)
    translation_result: dict[str, Any] | None = Field(None, alias="translationResult")

    @property
    def text(self) -> str:
        return "\n".join(block.text for block in self.content)

    def to_transport(self) -> dict[str, Any]:
        """Serialize with camelCase keys, dropping unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True)
