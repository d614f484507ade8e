import json
from typing import Callable, List, Sequence, Union

from orchestrator.errors import ModelInferenceFailure
from orchestrator.models import ModelResponse, TextBlock, ToolResultBlock, ToolUseBlock, Turn


TOP3_QUERY = "SELECT name, wins FROM teams ORDER BY wins DESC LIMIT 3"


def text_response(text: str) -> ModelResponse:
    return ModelResponse(content=(TextBlock(text=text),), stop_reason="end_turn")


def tool_response(*uses: ToolUseBlock, text: str = "") -> ModelResponse:
    blocks = ((TextBlock(text=text),) if text else ()) + tuple(uses)
    return ModelResponse(content=blocks, stop_reason="tool_use")


def query_use(query: str, id: str = "toolu_1") -> ToolUseBlock:
    return ToolUseBlock(id=id, name="run_query", input={"query": query})


def last_tool_results(transcript: Sequence[Turn]) -> List[ToolResultBlock]:
    return [b for b in transcript[-1].blocks() if isinstance(b, ToolResultBlock)]


def answer_from_rows(transcript: Sequence[Turn]) -> ModelResponse:
    """Final answer that cites the names in the last query result."""
    payload = json.loads(last_tool_results(transcript)[0].content)
    names = ", ".join(row["name"] for row in payload["rows"])
    return text_response(f"The top teams by wins are: {names}.")


Step = Union[ModelResponse, Exception, Callable[[Sequence[Turn]], ModelResponse]]


class ScriptedModelClient:
    """Plays back a fixed list of responses and records every call."""

    def __init__(self, *steps: Step):
        self.steps = list(steps)
        self.calls = []

    async def infer(self, transcript, system_prompt, tools):
        self.calls.append({"transcript": list(transcript), "system_prompt": system_prompt, "tools": list(tools)})
        if not self.steps:
            raise AssertionError("model called more times than scripted")
        step = self.steps.pop(0)
        if isinstance(step, Exception):
            raise step
        if callable(step):
            return step(transcript)
        return step


class AlwaysToolClient:
    """Never stops asking for the same query."""

    def __init__(self):
        self.calls = 0

    async def infer(self, transcript, system_prompt, tools):
        self.calls += 1
        return tool_response(query_use("SELECT COUNT(*) AS n FROM teams", id=f"toolu_{self.calls}"))


class FailingModelClient:

    def __init__(self, exc: Exception = None):
        self.exc = exc or ModelInferenceFailure("rate limited")

    async def infer(self, transcript, system_prompt, tools):
        raise self.exc
