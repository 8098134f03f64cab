"""
Translation Prompts
===================

System prompts for the two translation phases and for SQL correction.
Each prompt opens with a task marker so providers and fakes can tell the
phases apart.
"""

FILTER_TASK = "TASK: POPULATION_DEFINITION"
AGGREGATION_TASK = "TASK: RESULT_SHAPE"
CORRECTION_TASK = "TASK: ERROR_CORRECTION"

FILTER_PROMPT_TEMPLATE = """{task}
You are an expert SQL translator. Your task is to analyze a natural language
query and extract the filter operations (WHERE clause) that define WHICH
records should be included in the analysis.

{schema}

Filterable columns: {filterable}

For the following query: "{query}"

Consider:
1. Comparison operations (=, <>, >, >=, <, <=)
2. Range operations (BETWEEN, NOT BETWEEN)
3. Text matching (LIKE, NOT LIKE)
4. Set operations (IN, NOT IN)
5. Null handling (IS NULL, IS NOT NULL)
6. Date/time windows (specific dates, relative dates like "last 30 days")
7. AND/OR combinations with explicit parenthetical grouping

Respond in JSON format with the following structure:
{{
  "description": "A clear description of the filter conditions in plain English",
  "sqlClause": "The SQL WHERE clause that implements these filters (without the word WHERE)",
  "confidence": A number between 0 and 1 indicating your confidence in this interpretation,
  "alternativeInterpretations": ["Other plausible readings of the filters, if any"]
}}

If there are no explicit filters in the query, use "1=1" as the sqlClause."""

AGGREGATION_PROMPT_TEMPLATE = """{task}
You are an expert SQL translator. Your task is to analyze a natural language
query and extract the aggregation and selection operations that define WHAT
results to show.

{schema}

Aggregatable columns: {aggregatable}
Only apply SUM or AVG to aggregatable columns.

For the following query: "{query}"

The records in scope have already been determined:
{filter_description}

Consider:
1. Aggregation functions (SUM, COUNT, AVG, MIN, MAX)
2. Grouping dimensions (GROUP BY)
3. Sorting criteria (ORDER BY with ASC/DESC)
4. Result limits (LIMIT)

Respond in JSON format with the following structure:
{{
  "aggregationDescription": "A clear description of the aggregation/selection in plain English",
  "aggregationClause": "The SQL SELECT list (without the word SELECT)",
  "groupByDescription": "Description of grouping dimensions, or empty string",
  "groupByClause": "The GROUP BY list without the words GROUP BY, or empty string",
  "orderByDescription": "Description of sorting criteria, or empty string",
  "orderByClause": "The ORDER BY list without the words ORDER BY, or empty string",
  "limitDescription": "Description of result limits, or empty string",
  "limitClause": "The LIMIT value without the word LIMIT, or empty string",
  "confidence": A number between 0 and 1 indicating your confidence in this interpretation
}}

If the query doesn't specify any aggregation, default to selecting all columns (*)."""

CORRECTION_PROMPT_TEMPLATE = """{task}
You are an expert SQL debugger. Your task is to fix a SQL query that has
produced an error.

{schema}

Original SQL query:
```sql
{sql}
```

Error message:
{error_message}

Fix only the specific error while keeping the original query's intent.
Respond with ONLY the corrected SQL query, nothing else."""


def build_filter_prompt(query: str, schema: str, filterable: list[str]) -> str:
    return FILTER_PROMPT_TEMPLATE.format(
        task=FILTER_TASK,
        schema=schema,
        filterable=", ".join(filterable) or "none",
        query=query,
    )


def build_aggregation_prompt(
    query: str,
    schema: str,
    aggregatable: list[str],
    filter_description: str,
) -> str:
    return AGGREGATION_PROMPT_TEMPLATE.format(
        task=AGGREGATION_TASK,
        schema=schema,
        aggregatable=", ".join(aggregatable) or "none",
        query=query,
        filter_description=filter_description or "All records",
    )


def build_correction_prompt(sql: str, error_message: str, schema: str) -> str:
    return CORRECTION_PROMPT_TEMPLATE.format(
        task=CORRECTION_TASK,
        schema=schema,
        sql=sql,
        error_message=error_message,
    )
