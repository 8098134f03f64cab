"""
Translation Service
===================

Two-phase natural language to SQL translation.

Phase A derives the population definition (filter predicate); phase B derives
the result shape (aggregation, grouping, ordering, limit) given phase A's
description. Each phase degrades to a permissive default when the provider
fails, so translation never aborts.
"""

import re

from observability.logging_config import get_logger
from observability.metrics import TRANSLATION_CONFIDENCE, TRANSLATION_FALLBACKS
from observability.tracing import get_tracer

from nlq_pipeline.config import PipelineConfig
from nlq_pipeline.errors import TranslationFailure
from nlq_pipeline.llm.base import LLMInterface
from nlq_pipeline.models import (
    AggregationPhaseResult,
    ClauseComponent,
    FilterPhaseResult,
    QueryComponents,
    TranslationResult,
)
from nlq_pipeline.schema import SchemaCatalog
from nlq_pipeline.translation import prompts
from nlq_pipeline.translation.parsing import (
    assemble_sql,
    build_interpretation,
    extract_sql,
    parse_aggregation_response,
    parse_filter_response,
)

logger = get_logger(__name__)
tracer = get_tracer(__name__)

# Confidence reported for permissive defaults
FALLBACK_CONFIDENCE = 0.5

# Ceiling applied when SUM/AVG targets a non-aggregatable column
UNAGGREGATABLE_CONFIDENCE_CAP = 0.5

_NUMERIC_AGGREGATE = re.compile(
    r"\b(SUM|AVG)\s*\(\s*(?:DISTINCT\s+)?[`\"]?(\w+)[`\"]?\s*\)",
    re.IGNORECASE,
)


class TranslationService:
    """Converts a free-text query into a TranslationResult."""

    def __init__(
        self,
        llm: LLMInterface,
        catalog: SchemaCatalog,
        config: PipelineConfig | None = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            llm: Provider used for both phases and for corrections
            catalog: Schema grounding both phases
            config: Pipeline configuration (defaults apply when omitted)
        """
        self.llm = llm
        self.catalog = catalog
        self.config = config or PipelineConfig()

    def default_filter(self) -> FilterPhaseResult:
        return FilterPhaseResult(
            description="Include all data (no filters specified)",
            sql_clause="1=1",
            confidence=FALLBACK_CONFIDENCE,
            fallback=True,
        )

    def default_aggregation(self) -> AggregationPhaseResult:
        limit = self.config.default_row_limit
        return AggregationPhaseResult(
            aggregation_description="Show all columns",
            aggregation_clause="*",
            limit_description=f"Limit to {limit} results",
            limit_clause=str(limit),
            confidence=FALLBACK_CONFIDENCE,
            fallback=True,
        )

    async def translate(self, query: str) -> TranslationResult:
        """
        Translate a query into SQL with a combined confidence.

        Args:
            query: Free-text question from the caller

        Returns:
            TranslationResult; ``requires_confirmation`` is set when the
            confidence falls below the configured threshold
        """
        with tracer.start_as_current_span("translate") as span:
            filter_result = await self.analyze_filter(query)
            aggregation_result = await self.analyze_aggregation(query, filter_result)

            sql = assemble_sql(self.catalog.table_name, filter_result, aggregation_result)
            confidence = (filter_result.confidence + aggregation_result.confidence) / 2
            requires_confirmation = confidence < self.config.confirmation_threshold

            alternatives = filter_result.alternatives + aggregation_result.alternatives
            result = TranslationResult(
                original_query=query,
                interpreted_query=build_interpretation(filter_result, aggregation_result),
                sql=sql,
                components=QueryComponents(
                    filter=ClauseComponent(filter_result.description, filter_result.sql_clause),
                    aggregation=ClauseComponent(
                        aggregation_result.aggregation_description,
                        aggregation_result.aggregation_clause,
                    ),
                    group_by=ClauseComponent(
                        aggregation_result.group_by_description,
                        aggregation_result.group_by_clause,
                    ),
                    order_by=ClauseComponent(
                        aggregation_result.order_by_description,
                        aggregation_result.order_by_clause,
                    ),
                    limit=ClauseComponent(
                        aggregation_result.limit_description,
                        aggregation_result.limit_clause,
                    ),
                ),
                confidence=confidence,
                requires_confirmation=requires_confirmation,
                alternative_interpretations=alternatives or None,
                processing_steps=[
                    {"step": "Query Analysis", "description": "Analyzing natural language query"},
                    {"step": "Filter Operations", "description": filter_result.description},
                    {
                        "step": "Aggregation Operations",
                        "description": aggregation_result.aggregation_description,
                    },
                    {"step": "SQL Generation", "description": "Assembled SQL statement"},
                ],
                degraded=filter_result.fallback and aggregation_result.fallback,
            )

            span.set_attribute("translation.confidence", confidence)
            span.set_attribute("translation.requires_confirmation", requires_confirmation)
            TRANSLATION_CONFIDENCE.observe(confidence)
            logger.info(
                "Query translated",
                confidence=confidence,
                requires_confirmation=requires_confirmation,
                filter_fallback=filter_result.fallback,
                aggregation_fallback=aggregation_result.fallback,
                sql_length=len(sql),
            )
            return result

    async def analyze_filter(self, query: str) -> FilterPhaseResult:
        """
        Phase A: derive the population definition.

        Returns the permissive "no filter" default if the provider is
        unreachable or its reply cannot be parsed.
        """
        system_prompt = prompts.build_filter_prompt(
            query, self.catalog.describe(), self.catalog.filterable_columns()
        )
        with tracer.start_as_current_span("translate.filter"):
            try:
                response = await self.llm.generate(
                    query,
                    system_prompt=system_prompt,
                    temperature=self.config.filter_temperature,
                )
                result = parse_filter_response(response.content)
            except TranslationFailure as e:
                TRANSLATION_FALLBACKS.labels(phase="filter").inc()
                logger.warning("Filter analysis failed, using default", error=e.message)
                return self.default_filter()

        logger.debug(
            "Filter analysis completed",
            description=result.description,
            confidence=result.confidence,
        )
        return result

    async def analyze_aggregation(
        self,
        query: str,
        filter_result: FilterPhaseResult,
    ) -> AggregationPhaseResult:
        """
        Phase B: derive aggregation, grouping, ordering and limit.

        Returns the permissive "select all" default if the provider is
        unreachable or its reply cannot be parsed.
        """
        system_prompt = prompts.build_aggregation_prompt(
            query,
            self.catalog.describe(),
            self.catalog.aggregatable_columns(),
            filter_result.description,
        )
        with tracer.start_as_current_span("translate.aggregation"):
            try:
                response = await self.llm.generate(
                    query,
                    system_prompt=system_prompt,
                    temperature=self.config.aggregation_temperature,
                )
                result = parse_aggregation_response(response.content)
            except TranslationFailure as e:
                TRANSLATION_FALLBACKS.labels(phase="aggregation").inc()
                logger.warning("Aggregation analysis failed, using default", error=e.message)
                return self.default_aggregation()

        if not result.aggregation_clause:
            logger.info("Empty SELECT clause, using * instead")
            result.aggregation_clause = "*"

        violations = self.unaggregatable_references(result.aggregation_clause)
        if violations:
            logger.warning(
                "Aggregation over non-aggregatable columns",
                columns=violations,
                reported_confidence=result.confidence,
            )
            result.confidence = min(result.confidence, UNAGGREGATABLE_CONFIDENCE_CAP)

        logger.debug(
            "Aggregation analysis completed",
            description=result.aggregation_description,
            has_group_by=bool(result.group_by_clause),
            has_order_by=bool(result.order_by_clause),
            has_limit=bool(result.limit_clause),
            confidence=result.confidence,
        )
        return result

    def unaggregatable_references(self, aggregation_clause: str) -> list[str]:
        """Columns used in SUM/AVG that the catalog does not mark aggregatable."""
        violations = []
        for _, name in _NUMERIC_AGGREGATE.findall(aggregation_clause):
            column = self.catalog.column(name)
            if column is None or not column.aggregatable:
                violations.append(name)
        return violations

    async def correct_error(self, sql: str, error_message: str) -> str | None:
        """
        Ask the provider for a corrected statement.

        Args:
            sql: Statement that failed
            error_message: Error reported by the data engine

        Returns:
            Corrected SQL, or None if no correction is available
        """
        system_prompt = prompts.build_correction_prompt(
            sql, error_message, self.catalog.describe()
        )
        try:
            response = await self.llm.generate(
                "Please fix this SQL query",
                system_prompt=system_prompt,
                temperature=self.config.correction_temperature,
            )
        except TranslationFailure as e:
            logger.warning("SQL correction unavailable", error=e.message)
            return None

        corrected = extract_sql(response.content)
        if corrected is None:
            logger.warning("SQL correction returned no statement")
            return None

        logger.info(
            "SQL correction completed",
            original_length=len(sql),
            corrected_length=len(corrected),
        )
        return corrected
