"""
src/database/loader.py

Read-only engine for the assistant's database, plus scoped connections.

Connections are opened per call and closed on every exit path; the engine
uses NullPool so nothing stays open between calls.
"""


import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import NullPool

from config import DATABASE_PATH, DATABASE_URL


logger = logging.getLogger(__name__)


def sqlite_readonly_url(path: Path) -> str:
    """SQLite URI that refuses writes at the driver level."""

    return f"sqlite:///file:{path.resolve().as_posix()}?mode=ro&uri=true"


def load_engine(path: Path = DATABASE_PATH, url: Optional[str] = None) -> Engine:
    """
    Build the engine the query tool and schema introspection share.

    An explicit `url` (or DATABASE_URL) wins; otherwise the SQLite file at
    `path` is opened read-only and must already exist.
    """

    url = url or DATABASE_URL

    if not url:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Database file not found: {path}")
        url = sqlite_readonly_url(path)

    logger.info("Using database %s", url)

    return create_engine(url, poolclass=NullPool, future=True)


@contextmanager
def scoped_connection(engine: Engine) -> Iterator[Connection]:

    conn = engine.connect()
    try:
        yield conn
    finally:
        conn.close()
