"""
NLQ Pipeline
============

Natural language to SQL translation with confidence-gated confirmation and
self-correcting execution.
"""

from nlq_pipeline.config import PipelineConfig
from nlq_pipeline.errors import (
    ConfirmationMismatch,
    ExecutionFailure,
    LLMServiceError,
    PipelineError,
    RetryExhausted,
    StatementRejected,
    TranslationFailure,
)
from nlq_pipeline.models import (
    ExecutionResult,
    LLMResponse,
    QueryComponents,
    Session,
    TranslationResult,
)
from nlq_pipeline.schema import SchemaCatalog, TRANSACTIONS_SCHEMA, default_catalog
from nlq_pipeline.llm import AnthropicLLM, LLMInterface, MockLLM
from nlq_pipeline.translation import TranslationService
from nlq_pipeline.confirmation import ConfirmationFormatter, apply_confirmed_mappings
from nlq_pipeline.execution import DataEngine, QueryExecutor, SQLiteDataEngine
from nlq_pipeline.formatting import ResultFormatter
from nlq_pipeline.sessions import InMemorySessionStore, SessionStore, SessionSweeper
from nlq_pipeline.schemas import QueryResponse
from nlq_pipeline.orchestrator import QueryOrchestrator

__version__ = "0.1.0"

__all__ = [
    # Config and errors
    "PipelineConfig",
    "PipelineError",
    "TranslationFailure",
    "LLMServiceError",
    "ConfirmationMismatch",
    "ExecutionFailure",
    "RetryExhausted",
    "StatementRejected",
    # Models
    "TranslationResult",
    "QueryComponents",
    "ExecutionResult",
    "Session",
    "LLMResponse",
    # Schema
    "SchemaCatalog",
    "TRANSACTIONS_SCHEMA",
    "default_catalog",
    # LLM
    "LLMInterface",
    "MockLLM",
    "AnthropicLLM",
    # Pipeline
    "TranslationService",
    "ConfirmationFormatter",
    "apply_confirmed_mappings",
    "DataEngine",
    "SQLiteDataEngine",
    "QueryExecutor",
    "ResultFormatter",
    "SessionStore",
    "InMemorySessionStore",
    "SessionSweeper",
    "QueryResponse",
    "QueryOrchestrator",
]
