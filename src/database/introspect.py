"""
src/database/introspect.py

Live schema description used to build the system prompt.

Nothing is cached: every describe() reads the current table and column
metadata, so the prompt always matches the database.
"""


import asyncio
import json
import logging
from typing import Dict, List

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import CompileError, SQLAlchemyError

from database.loader import scoped_connection
from orchestrator.errors import SchemaIntrospectionFailure
from orchestrator.models import ColumnInfo, SchemaDescriptor


logger = logging.getLogger(__name__)


def _type_name(col_type) -> str:

    try:
        return str(col_type)
    except CompileError:
        # Untyped SQLite columns come back as NullType, which has no DDL name
        return ""


def _columns(conn, inspector, table: str) -> List[ColumnInfo]:

    # SQLite: the declared type text, not SQLAlchemy's affinity guess (STRING -> NUMERIC)
    if conn.dialect.name == "sqlite":
        quoted = table.replace('"', '""')
        rows = conn.exec_driver_sql(f'PRAGMA table_info("{quoted}")').fetchall()
        return [ColumnInfo(name=r[1], type=r[2] or "") for r in rows]

    return [ColumnInfo(name=col["name"], type=_type_name(col["type"])) for col in inspector.get_columns(table)]


class SchemaIntrospector:

    def __init__(self, engine: Engine):

        self.engine = engine

    def describe(self) -> SchemaDescriptor:
        """Return {table: [ColumnInfo, ...]} for every user table, columns in definition order."""

        schema: SchemaDescriptor = {}

        try:
            with scoped_connection(self.engine) as conn:
                inspector = inspect(conn)
                for table in inspector.get_table_names():
                    if table.startswith("sqlite_"):
                        continue
                    schema[table] = _columns(conn, inspector, table)
        except SQLAlchemyError as e:
            raise SchemaIntrospectionFailure(f"Could not read database schema: {e}") from e

        logger.debug("Introspected %d tables", len(schema))

        return schema

    async def adescribe(self) -> SchemaDescriptor:

        return await asyncio.to_thread(self.describe)


def schema_as_text(schema: SchemaDescriptor) -> str:
    """Render the schema as indented JSON, the shape the prompt embeds."""

    plain: Dict[str, List[Dict[str, str]]] = {
        table: [col.model_dump() for col in cols] for table, cols in schema.items()
    }

    return json.dumps(plain, indent=2)
