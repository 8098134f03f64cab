"""
Data Engines
============

Abstract data engine contract and an SQLite implementation.
"""

import asyncio
import sqlite3
import threading
from abc import ABC, abstractmethod

from observability.logging_config import get_logger

from nlq_pipeline.errors import ExecutionFailure
from nlq_pipeline.models import QueryOutput
from nlq_pipeline.schema import SchemaCatalog

logger = get_logger(__name__)


class DataEngine(ABC):
    """Abstract interface for query engines."""

    @abstractmethod
    async def run_query(self, sql: str) -> QueryOutput:
        """
        Run a statement and return its rows.

        Args:
            sql: Statement to run

        Returns:
            QueryOutput with rows as column -> value dicts

        Raises:
            ExecutionFailure: If the engine rejects the statement
        """
        pass


class SQLiteDataEngine(DataEngine):
    """
    SQLite-backed engine.

    Calls run in a worker thread so the event loop is never blocked; a lock
    serializes access to the shared connection.
    """

    def __init__(self, database: str = ":memory:") -> None:
        self.database = database
        self._conn = sqlite3.connect(database, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()

    def load_rows(self, catalog: SchemaCatalog, rows: list[dict]) -> None:
        """
        Create the catalog's table and fill it.

        Args:
            catalog: Table name and column definitions
            rows: Records keyed by column name; missing columns are NULL
        """
        names = catalog.column_names()
        columns = ", ".join(f'"{c.name}" {c.type}' for c in catalog.columns)
        placeholders = ", ".join("?" for _ in names)
        quoted = ", ".join(f'"{name}"' for name in names)

        with self._lock:
            cursor = self._conn.cursor()
            cursor.execute(f'DROP TABLE IF EXISTS "{catalog.table_name}"')
            cursor.execute(f'CREATE TABLE "{catalog.table_name}" ({columns})')
            cursor.executemany(
                f'INSERT INTO "{catalog.table_name}" ({quoted}) VALUES ({placeholders})',
                [tuple(row.get(name) for name in names) for row in rows],
            )
            self._conn.commit()

        logger.info("Rows loaded", table=catalog.table_name, row_count=len(rows))

    def _run(self, sql: str) -> QueryOutput:
        with self._lock:
            try:
                cursor = self._conn.execute(sql)
                fetched = cursor.fetchall()
            except sqlite3.Error as e:
                raise ExecutionFailure(str(e)) from e
            columns = [d[0] for d in cursor.description or []]
        return QueryOutput(
            rows=[dict(zip(columns, tuple(row))) for row in fetched],
            columns=columns,
        )

    async def run_query(self, sql: str) -> QueryOutput:
        return await asyncio.to_thread(self._run, sql)

    def close(self) -> None:
        self._conn.close()
