"""
src/tools/registry.py

Tool declarations advertised to the model, and dispatch of the model's tool calls.

Model output is untrusted: unknown tool names and bad arguments are answered
with an error tool result instead of an exception, so the loop keeps going.
"""


import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Tuple

from orchestrator.errors import InvalidToolInput, ToolError, UnknownTool
from orchestrator.models import QueryResult, ToolDeclaration, ToolResultBlock
from tools.query import QueryExecutor


logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[Tuple[Dict[str, Any], bool]]]


RUN_QUERY = ToolDeclaration(
    name="run_query",
    description=(
        "Run a read-only SQL query against the database. "
        "You must provide a query parameter with a valid SQL SELECT statement."
    ),
    input_schema={
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "The SQL SELECT query to execute",
            }
        },
        "required": ["query"],
    },
)


def _dumps(payload: Dict[str, Any]) -> str:

    return json.dumps(payload, ensure_ascii=False, default=str)


def query_payload(result: QueryResult) -> Tuple[Dict[str, Any], bool]:
    """Shape a QueryResult the way the model reads it back."""

    if not result.ok:
        return {"error": result.error_kind, "message": result.error}, True

    return {
        "columns": result.columns,
        "rows": result.rows,
        "row_count": len(result.rows),
        "truncated": result.truncated,
    }, False


class ToolRegistry:

    def __init__(self, executor: QueryExecutor):

        self.executor = executor
        self._tools: Dict[str, Tuple[ToolDeclaration, Handler]] = {
            RUN_QUERY.name: (RUN_QUERY, self._run_query),
        }

    @property
    def declarations(self) -> List[ToolDeclaration]:

        return [decl for decl, _ in self._tools.values()]

    async def dispatch(self, name: str, arguments: Any, *, tool_use_id: str) -> ToolResultBlock:
        """
        Execute one tool call and return the matching tool result block.

        Args:
            name: Tool name as emitted by the model.
            arguments: The model's input mapping for the tool.
            tool_use_id: Id of the tool_use block being answered.

        Returns:
            ToolResultBlock with is_error=True for UnknownTool, InvalidToolInput
            and any query failure.
        """

        try:
            entry = self._tools.get(name)
            if entry is None:
                raise UnknownTool(f"Unknown tool: {name}")
            payload, is_error = await entry[1](arguments)
        except ToolError as e:
            logger.warning("Tool %s failed: %s", name, e.message)
            payload, is_error = {"error": e.kind, "message": e.message}, True

        return ToolResultBlock(tool_use_id=tool_use_id, content=_dumps(payload), is_error=is_error)

    async def _run_query(self, arguments: Any) -> Tuple[Dict[str, Any], bool]:

        if not isinstance(arguments, Mapping):
            raise InvalidToolInput("run_query expects an object with a 'query' field")

        query = arguments.get("query")
        if not isinstance(query, str):
            raise InvalidToolInput("run_query requires a string 'query' argument")

        return query_payload(await self.executor.arun(query))
