"""
src/tools/query.py - read-only query execution for the run_query tool

run() never raises for a bad query. Gate rejections and database errors both
come back as a failed QueryResult so a single bad query cannot abort the
conversation; the model sees the error and can try again.
"""


import asyncio
import logging
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from config import MAX_RESULT_ROWS, STRICT_SQL
from database.loader import scoped_connection
from orchestrator.errors import NonSelectQuery, QueryExecutionFailure
from orchestrator.models import QueryResult
from tools.guardrails import check_query


logger = logging.getLogger(__name__)


class QueryExecutor:

    def __init__(self, engine: Engine, *, strict: bool = STRICT_SQL, max_rows: Optional[int] = MAX_RESULT_ROWS):

        self.engine = engine
        self.strict = strict
        self.max_rows = max_rows

    def run(self, query: str) -> QueryResult:
        """
        Validate and execute one SELECT statement.

        Steps:
            1) Gate the text (tools.guardrails). Rejected queries never open a connection.
            2) Open a scoped connection, run the statement as-is, fetch every row
               (at most max_rows when a cap is set), close the connection.
            3) Wrap rows or the database error in a QueryResult.

        Returns:
            QueryResult.success(rows, columns, truncated) or
            QueryResult.failure("NonSelectQuery" | "QueryExecutionFailure", message)
        """

        try:
            check_query(query, strict=self.strict)
        except NonSelectQuery as e:
            logger.warning("Rejected query: %s (%s)", query, e.message)
            return QueryResult.failure(e.kind, e.message)

        logger.info("Running query: %s", query)

        try:
            with scoped_connection(self.engine) as conn:
                # Driver-level execution: no bind-parameter parsing of ':name' in the model's SQL
                result = conn.exec_driver_sql(query)
                columns = list(result.keys())
                if self.max_rows:
                    fetched = result.fetchmany(self.max_rows + 1)
                else:
                    fetched = result.fetchall()
        except SQLAlchemyError as e:
            err = QueryExecutionFailure(str(getattr(e, "orig", None) or e))
            logger.error("Query error: %s", err.message)
            return QueryResult.failure(err.kind, err.message)

        truncated = bool(self.max_rows) and len(fetched) > self.max_rows
        if truncated:
            fetched = fetched[: self.max_rows]

        rows = [dict(r._mapping) for r in fetched]
        logger.info("Query returned %d rows%s", len(rows), " (truncated)" if truncated else "")

        return QueryResult.success(rows, columns, truncated=truncated)

    async def arun(self, query: str) -> QueryResult:
        """run() in a worker thread; the connection is closed inside that thread."""

        return await asyncio.to_thread(self.run, query)
