import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import create_engine

from api import app, get_orchestrator
from database.introspect import SchemaIntrospector
from database.loader import load_engine
from orchestrator.router import Orchestrator
from tools.query import QueryExecutor
from tools.registry import ToolRegistry


TEAMS = [
    ("Collingwood", 20, 3),
    ("Carlton", 18, 5),
    ("Essendon", 16, 7),
    ("Richmond", 12, 11),
    ("Geelong", 10, 13),
]


# Build a small SQLite file, then only ever open it read-only
@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "afl.sqlite3"
    writer = create_engine(f"sqlite:///{path}")
    with writer.begin() as conn:
        conn.exec_driver_sql(
            "CREATE TABLE teams (id INTEGER PRIMARY KEY AUTOINCREMENT, "
            "name TEXT NOT NULL, wins INTEGER, losses INTEGER)"
        )
        conn.exec_driver_sql(
            "CREATE TABLE players (id INTEGER PRIMARY KEY, name TEXT, team_id INTEGER, goals INTEGER)"
        )
        for name, wins, losses in TEAMS:
            conn.exec_driver_sql(
                "INSERT INTO teams (name, wins, losses) VALUES (?, ?, ?)", (name, wins, losses)
            )
        conn.exec_driver_sql("INSERT INTO players (name, team_id, goals) VALUES ('Jack Dyer', 4, 443)")
    writer.dispose()
    return path


# Writable reference connection for comparing results
@pytest.fixture
def reference_engine(db_path):
    engine = create_engine(f"sqlite:///{db_path}")
    yield engine
    engine.dispose()


@pytest.fixture
def engine(db_path):
    engine = load_engine(db_path)
    yield engine
    engine.dispose()


@pytest.fixture
def executor(engine):
    return QueryExecutor(engine, strict=True)


@pytest.fixture
def registry(executor):
    return ToolRegistry(executor)


@pytest.fixture
def make_orchestrator(engine, registry):
    def _make(model_client, max_tool_rounds=6, tool_registry=None):
        return Orchestrator(
            model_client,
            tool_registry or registry,
            SchemaIntrospector(engine),
            max_tool_rounds=max_tool_rounds,
        )
    return _make


# Client whose orchestrator is swapped per test
@pytest_asyncio.fixture(scope="function")
async def api_client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def use_orchestrator():
    def _use(orchestrator):
        app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    return _use
