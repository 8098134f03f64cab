"""
Execution Module
================

Data engines and the execute-and-correct loop.
"""

from nlq_pipeline.execution.engine import DataEngine, SQLiteDataEngine
from nlq_pipeline.execution.executor import QueryExecutor
from nlq_pipeline.execution.guard import check_read_only

__all__ = [
    "DataEngine",
    "QueryExecutor",
    "SQLiteDataEngine",
    "check_read_only",
]
