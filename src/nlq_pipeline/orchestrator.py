"""
Query Orchestrator
==================

Sequences translation, confirmation, execution and formatting per query.

New query:
    create session -> translate -> (confirm | execute) -> format -> attach
    processing steps

Confirmation reply:
    resolve prior translation -> apply mappings -> execute -> format
    (``needs_confirmation`` is always False on this path)
"""

import dataclasses
import time
from collections.abc import Mapping
from typing import Any

from observability.logging_config import bind_context, clear_context, get_logger
from observability.metrics import track_query_metrics
from observability.tracing import get_tracer

from nlq_pipeline.config import PipelineConfig
from nlq_pipeline.confirmation import ConfirmationFormatter, apply_confirmed_mappings
from nlq_pipeline.errors import ConfirmationMismatch, PipelineError
from nlq_pipeline.execution import DataEngine, QueryExecutor
from nlq_pipeline.formatting import ResultFormatter
from nlq_pipeline.llm.base import LLMInterface
from nlq_pipeline.models import QueryComponents, Session, TranslationResult
from nlq_pipeline.schema import SchemaCatalog
from nlq_pipeline.schemas import ClauseSchema, ContentBlock, ProcessingStep, QueryResponse
from nlq_pipeline.sessions import InMemorySessionStore, SessionStore, SessionSweeper
from nlq_pipeline.translation import TranslationService

logger = get_logger(__name__)
tracer = get_tracer(__name__)

MISSING_TRANSLATION_TEXT = (
    "Invalid confirmation request - missing translation result. "
    "Please try your query again."
)


class QueryOrchestrator:
    """Entry point used by the transport layer."""

    def __init__(
        self,
        config: PipelineConfig,
        catalog: SchemaCatalog,
        llm: LLMInterface,
        engine: DataEngine,
        store: SessionStore | None = None,
    ) -> None:
        """
        Wire the pipeline from explicit collaborators.

        Args:
            config: Pipeline configuration
            catalog: Schema grounding translation
            llm: Translation and correction provider
            engine: Data engine statements run against
            store: Session store (in-memory store when omitted)
        """
        self.config = config
        self.catalog = catalog
        self.translator = TranslationService(llm, catalog, config)
        self.executor = QueryExecutor(engine, self.translator, config)
        self.confirmation = ConfirmationFormatter(config)
        self.formatter = ResultFormatter(config)
        self.store = store or InMemorySessionStore(config.session_max_age_seconds)
        self.sweeper = SessionSweeper(self.store, config.sweep_interval_seconds)

    def start(self) -> None:
        """Start the background session sweep."""
        self.sweeper.start()

    async def stop(self) -> None:
        await self.sweeper.stop()

    def clear_session(self, session_id: str) -> bool:
        return self.store.delete(session_id)

    async def handle_query(
        self,
        query: str | None,
        confirmed_mappings: dict[str, str] | None = None,
        previous_session_ref: Any = None,
    ) -> QueryResponse:
        """
        Handle a new query or a confirmation reply.

        Args:
            query: Free-text question (may be empty on a confirmation reply)
            confirmed_mappings: placeholder -> value substitutions from the caller
            previous_session_ref: Session id, or a previous response mapping
                embedding ``translationResult`` or ``sql``

        Returns:
            QueryResponse; failures are reported in ``error``, never raised
        """
        start = time.perf_counter()
        with tracer.start_as_current_span("handle_query") as span:
            try:
                if confirmed_mappings is not None or previous_session_ref is not None:
                    span.set_attribute("query.confirmation", True)
                    response, outcome = await self._handle_confirmation(
                        query or "", confirmed_mappings, previous_session_ref
                    )
                elif not query or not query.strip():
                    response = QueryResponse(
                        content=[ContentBlock(text="Please provide a query to analyze.")],
                        error="No query provided",
                    )
                    outcome = "failed"
                else:
                    response, outcome = await self._handle_new_query(query.strip())
            except PipelineError as e:
                logger.error("Query handling failed", error=e.message, code=e.code)
                response = self._error_response(query, e.message)
                outcome = "failed"
            except Exception as e:
                logger.exception("Unexpected error handling query", error_type=type(e).__name__)
                response = self._error_response(query, str(e) or type(e).__name__)
                outcome = "failed"
            finally:
                clear_context()

            span.set_attribute("query.outcome", outcome)

        track_query_metrics(outcome, time.perf_counter() - start)
        return response

    def _error_response(self, query: str | None, message: str) -> QueryResponse:
        prompt = self.confirmation.format_error_response(query or "", message)
        return QueryResponse(
            content=prompt.content,
            error=message,
            needs_confirmation=False,
            original_query=query,
        )

    async def _handle_new_query(self, query: str) -> tuple[QueryResponse, str]:
        session = self.store.create(query)
        bind_context(session_id=session.id)

        translation = await self.translator.translate(query)
        session.translation_result = translation
        self.store.save(session)

        if translation.requires_confirmation:
            if translation.degraded:
                logger.info("Translation unavailable, offering column selection")
                prompt = self.confirmation.format_column_selection_options(
                    self.catalog.column_names(), query
                )
            else:
                prompt = self.confirmation.format_confirmation(translation)
            response = QueryResponse(
                content=prompt.content,
                sql=prompt.sql,
                needs_confirmation=True,
                session_id=session.id,
                original_query=query,
                translation_result=translation.to_dict() if self.config.include_sql else None,
            )
            return response, "confirmation_required"

        return await self._execute_and_format(
            session,
            translation,
            understanding=f'"{translation.interpreted_query}"',
            explanation=self._explanation(translation),
            steps=self._processing_steps(translation),
        )

    async def _handle_confirmation(
        self,
        query: str,
        confirmed_mappings: dict[str, str] | None,
        previous_session_ref: Any,
    ) -> tuple[QueryResponse, str]:
        try:
            prior = self._resolve_translation(previous_session_ref, query)
        except ConfirmationMismatch as e:
            logger.error(
                "Invalid confirmation request",
                error=e.message,
                has_mappings=confirmed_mappings is not None,
            )
            response = QueryResponse(
                content=[ContentBlock(text=MISSING_TRANSLATION_TEXT)],
                error="Missing translation result",
                needs_confirmation=False,
            )
            return response, "confirmation_mismatch"

        sql = apply_confirmed_mappings(prior.sql, confirmed_mappings)
        original_query = prior.original_query or query
        session = self.store.create(original_query, id_hint=f"confirmed_{original_query}")
        bind_context(session_id=session.id)

        translation = dataclasses.replace(
            prior,
            sql=sql,
            requires_confirmation=False,
            confirmed_mappings=dict(confirmed_mappings or {}),
        )
        session.translation_result = translation
        self.store.save(session)

        logger.info(
            "Executing confirmed query",
            mapping_count=len(confirmed_mappings or {}),
            sql_changed=sql != prior.sql,
        )
        return await self._execute_and_format(session, translation)

    def _resolve_translation(self, ref: Any, query: str) -> TranslationResult:
        """
        Find the translation a confirmation reply refers to.

        Raises:
            ConfirmationMismatch: If no prior translation can be resolved
        """
        if isinstance(ref, TranslationResult):
            return ref
        if isinstance(ref, QueryResponse):
            ref = ref.model_dump(by_alias=True)

        if isinstance(ref, str):
            session = self.store.get(ref)
            if session is None:
                raise ConfirmationMismatch(f"Unknown or expired session: {ref}")
            if session.translation_result is None:
                raise ConfirmationMismatch(f"Session has no translation: {ref}")
            return session.translation_result

        if isinstance(ref, Mapping):
            original_query = ref.get("originalQuery") or ref.get("query") or query
            if not isinstance(original_query, str):
                raise ConfirmationMismatch("Malformed confirmation request: originalQuery must be a string")

            embedded = ref.get("translationResult") or ref.get("translation_result")
            if isinstance(embedded, TranslationResult):
                return embedded
            if isinstance(embedded, Mapping) and embedded.get("sql"):
                try:
                    translation = TranslationResult.from_dict(embedded)
                except ValueError as e:
                    raise ConfirmationMismatch(f"Malformed translation result: {e}") from e
                if not translation.original_query:
                    translation.original_query = original_query
                return translation

            sql = ref.get("sql")
            if isinstance(sql, str) and sql.strip():
                return TranslationResult(
                    original_query=original_query,
                    interpreted_query="",
                    sql=sql,
                    components=QueryComponents(),
                    confidence=0.0,
                    requires_confirmation=False,
                )

        raise ConfirmationMismatch("No translation result in confirmation request")

    async def _execute_and_format(
        self,
        session: Session,
        translation: TranslationResult,
        understanding: str | None = None,
        explanation: str | None = None,
        steps: list[ProcessingStep] | None = None,
    ) -> tuple[QueryResponse, str]:
        execution = await self.executor.execute(translation.sql)
        session.execution_result = execution

        formatted = self.formatter.format_results(execution, translation)
        session.formatted_result = formatted
        self.store.save(session)

        include_sql = self.config.include_sql
        metadata = dict(formatted.metadata)
        if include_sql:
            metadata["originalSql"] = execution.metadata.original_sql
            metadata["finalSql"] = execution.metadata.final_sql

        if not execution.success:
            response = QueryResponse(
                content=formatted.content,
                error=execution.error.message,
                sql=execution.metadata.final_sql if include_sql else None,
                needs_confirmation=False,
                session_id=session.id,
                original_query=session.query,
                metadata=metadata,
                translation_result=translation.to_dict() if include_sql else None,
            )
            return response, "failed"

        content = list(formatted.content)
        if understanding:
            content.insert(0, {"type": "text", "text": understanding})
        if explanation:
            content.append({"type": "text", "text": explanation})

        response = QueryResponse(
            content=content,
            sql=execution.metadata.final_sql if include_sql else None,
            needs_confirmation=False,
            processing_steps=steps,
            session_id=session.id,
            original_query=session.query,
            raw_data=formatted.raw_data,
            metadata=metadata,
        )
        return response, "executed"

    def _explanation(self, translation: TranslationResult) -> str:
        text = "\n\n**Steps taken:**\n\n"
        text += f'1. Interpreted your request as: "{translation.interpreted_query}"\n'
        if self.config.include_sql:
            text += f"2. Translated it into SQL: `{translation.sql}`\n"
        else:
            text += "2. Translated it into SQL\n"
        text += "3. Executed the query against the database\n"
        text += "4. Formatted the results for display"
        return text

    @staticmethod
    def _processing_steps(translation: TranslationResult) -> list[ProcessingStep]:
        components = translation.components

        def _clause(component, empty: str) -> ClauseSchema:
            return ClauseSchema(
                description=component.description or empty,
                sql_clause=component.sql_clause or "",
            )

        return [
            ProcessingStep(
                type="query_interpretation",
                message=f'I understand your query as: "{translation.interpreted_query}"',
            ),
            ProcessingStep(type="sql_generation", message=translation.sql),
            ProcessingStep(
                type="components",
                filters=_clause(components.filter, "No filters applied"),
                aggregations=_clause(components.aggregation, "No aggregations"),
                group_by=_clause(components.group_by, "No grouping"),
                order_by=_clause(components.order_by, "No ordering"),
                limit=_clause(components.limit, "No limit"),
            ),
        ]

