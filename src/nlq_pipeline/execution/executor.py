"""
Query Executor
==============

Runs SQL against the data engine and drives bounded auto-correction.

Every failed attempt asks the translation service for a corrected statement
and retries with it. Corrections compound: each retry works from the most
recent statement, never the original. The loop makes at most
``max_retries + 1`` attempts.
"""

import time

from observability.logging_config import get_logger
from observability.metrics import CORRECTIONS_TOTAL, EXECUTION_ATTEMPTS, RETRY_EXHAUSTED_TOTAL
from observability.tracing import get_tracer

from nlq_pipeline.config import PipelineConfig
from nlq_pipeline.errors import ExecutionFailure, RetryExhausted
from nlq_pipeline.execution.engine import DataEngine
from nlq_pipeline.execution.guard import check_read_only
from nlq_pipeline.models import (
    AttemptRecord,
    ExecutionError,
    ExecutionMetadata,
    ExecutionResult,
    QueryOutput,
)
from nlq_pipeline.translation.service import TranslationService

logger = get_logger(__name__)
tracer = get_tracer(__name__)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class QueryExecutor:
    """Executes statements with automatic error correction."""

    def __init__(
        self,
        engine: DataEngine,
        translator: TranslationService,
        config: PipelineConfig | None = None,
    ) -> None:
        """
        Initialize the executor.

        Args:
            engine: Data engine statements run against
            translator: Source of corrected statements
            config: Pipeline configuration (``max_retries``)
        """
        self.engine = engine
        self.translator = translator
        self.max_retries = (config or PipelineConfig()).max_retries

    async def execute(self, sql: str) -> ExecutionResult:
        """
        Execute a statement, correcting and retrying on failure.

        Args:
            sql: Statement to execute

        Returns:
            ExecutionResult; on failure the last engine error is surfaced
            verbatim with the retry count and the final attempted SQL
        """
        with tracer.start_as_current_span("execute") as span:
            result = await self._execute_with_retry(sql)
            span.set_attribute("execution.success", result.success)
            span.set_attribute("execution.retry_count", result.metadata.retry_count)
            return result

    async def _run_query(self, sql: str) -> QueryOutput:
        """Run on the engine; anything it raises becomes an ExecutionFailure."""
        try:
            return await self.engine.run_query(sql)
        except ExecutionFailure:
            raise
        except Exception as e:
            logger.warning(
                "Data engine raised unexpected error",
                error_type=type(e).__name__,
                error=str(e),
            )
            raise ExecutionFailure(str(e) or type(e).__name__) from e

    async def _execute_with_retry(self, sql: str) -> ExecutionResult:
        start = time.perf_counter()
        current_sql = sql
        retry_count = 0
        attempts: list[AttemptRecord] = []

        while True:
            attempt_start = time.perf_counter()
            try:
                check_read_only(current_sql)
                output = await self._run_query(current_sql)
            except ExecutionFailure as e:
                attempts.append(
                    AttemptRecord(
                        attempt=len(attempts) + 1,
                        sql=current_sql,
                        duration_ms=_elapsed_ms(attempt_start),
                        error=e.message,
                    )
                )
                logger.warning(
                    "Execution attempt failed",
                    attempt=len(attempts),
                    retry_count=retry_count,
                    error=e.message,
                    code=e.code,
                )
                last_error = e
            else:
                attempts.append(
                    AttemptRecord(
                        attempt=len(attempts) + 1,
                        sql=current_sql,
                        duration_ms=_elapsed_ms(attempt_start),
                    )
                )
                EXECUTION_ATTEMPTS.observe(len(attempts))
                logger.info(
                    "Execution succeeded",
                    attempts=len(attempts),
                    retry_count=retry_count,
                    row_count=len(output.rows),
                )
                return ExecutionResult(
                    success=True,
                    rows=output.rows,
                    columns=output.columns,
                    metadata=ExecutionMetadata(
                        execution_time_ms=_elapsed_ms(start),
                        retry_count=retry_count,
                        original_sql=sql,
                        final_sql=current_sql,
                        bytes_processed=output.bytes_processed,
                        attempts=attempts,
                    ),
                )

            if retry_count >= self.max_retries:
                break

            corrected = await self.translator.correct_error(current_sql, last_error.message)
            if corrected is None:
                CORRECTIONS_TOTAL.labels(result="unavailable").inc()
                logger.warning("No correction available, giving up", retry_count=retry_count)
                break

            CORRECTIONS_TOTAL.labels(result="applied").inc()
            retry_count += 1
            logger.info("Retrying with corrected SQL", retry_count=retry_count)
            current_sql = corrected

        EXECUTION_ATTEMPTS.observe(len(attempts))
        code = last_error.code
        if self.max_retries > 0 and retry_count >= self.max_retries:
            code = RetryExhausted.code
            RETRY_EXHAUSTED_TOTAL.inc()

        logger.error(
            "Execution failed",
            code=code,
            retry_count=retry_count,
            error=last_error.message,
        )
        first_error = attempts[0].error
        return ExecutionResult(
            success=False,
            rows=[],
            columns=[],
            error=ExecutionError(
                message=last_error.message,
                code=code,
                details=f"First error: {first_error}" if first_error != last_error.message else None,
            ),
            metadata=ExecutionMetadata(
                execution_time_ms=_elapsed_ms(start),
                retry_count=retry_count,
                original_sql=sql,
                final_sql=current_sql,
                attempts=attempts,
            ),
        )
