import json

import pytest

from helpers import TOP3_QUERY
from tools.registry import RUN_QUERY


def test_declares_run_query(registry):
    decls = registry.declarations

    assert [d.name for d in decls] == ["run_query"]
    assert decls[0].input_schema["required"] == ["query"]
    assert decls[0].input_schema["properties"]["query"]["type"] == "string"


@pytest.mark.asyncio
async def test_run_query_returns_rows(registry):
    result = await registry.dispatch("run_query", {"query": TOP3_QUERY}, tool_use_id="toolu_9")
    payload = json.loads(result.content)

    assert result.tool_use_id == "toolu_9"
    assert result.is_error is False
    assert payload["row_count"] == 3
    assert payload["columns"] == ["name", "wins"]
    assert payload["rows"][0] == {"name": "Collingwood", "wins": 20}


@pytest.mark.asyncio
async def test_unknown_tool(registry):
    result = await registry.dispatch("drop_everything", {"query": "SELECT 1"}, tool_use_id="toolu_1")

    assert result.is_error is True
    assert json.loads(result.content)["error"] == "UnknownTool"


@pytest.mark.asyncio
@pytest.mark.parametrize("arguments", [{}, {"query": 42}, {"sql": "SELECT 1"}, ["SELECT 1"], None])
async def test_invalid_input(registry, arguments):
    result = await registry.dispatch(RUN_QUERY.name, arguments, tool_use_id="toolu_1")

    assert result.is_error is True
    assert json.loads(result.content)["error"] == "InvalidToolInput"


@pytest.mark.asyncio
async def test_query_failures_are_error_results(registry):
    rejected = await registry.dispatch("run_query", {"query": "DELETE FROM teams"}, tool_use_id="a")
    failed = await registry.dispatch("run_query", {"query": "SELECT * FROM nowhere"}, tool_use_id="b")

    assert rejected.is_error and json.loads(rejected.content)["error"] == "NonSelectQuery"
    assert failed.is_error and json.loads(failed.content)["error"] == "QueryExecutionFailure"
