"""
src/orchestrator/router.py

Router: builds the system prompt from the live schema, runs the tool-use loop,
dispatches tool calls, and returns a tidy result.

Loop states:
    start     transcript = [user question]
    tool_use  model asked for tools -> append assistant(tool_use...) and
              user(tool_result...) turns, call the model again
    done      model answered without tools -> return its text
    failed    ModelInferenceFailure, or ToolUseLimitExceeded after
              max_tool_rounds model calls that all asked for tools
"""


import asyncio
import logging
from typing import List, Optional, Sequence

from sqlalchemy.engine import Engine

from config import MAX_TOOL_ROUNDS, Provider
from database.introspect import SchemaIntrospector, schema_as_text
from database.loader import load_engine
from orchestrator import prompts
from orchestrator.errors import ModelInferenceFailure, ToolUseLimitExceeded
from orchestrator.llm import ModelClient, get_model_client
from orchestrator.models import (
    AuditEntry,
    ModelResponse,
    OrchestratorResult,
    ToolDeclaration,
    ToolResultBlock,
    ToolUseBlock,
    Turn,
)
from tools.query import QueryExecutor
from tools.registry import ToolRegistry


logger = logging.getLogger(__name__)


class Orchestrator:

    def __init__(
        self,
        model_client: ModelClient,
        registry: ToolRegistry,
        introspector: SchemaIntrospector,
        *,
        max_tool_rounds: int = MAX_TOOL_ROUNDS,
    ):

        if max_tool_rounds < 1:
            raise ValueError("max_tool_rounds must be at least 1")

        self.model_client = model_client
        self.registry = registry
        self.introspector = introspector
        self.max_tool_rounds = max_tool_rounds

    async def handle(self, user_input: str) -> str:
        """Answer one question; returns the final text."""

        result = await self.run(user_input)

        return result.summary

    async def run(self, user_text: str) -> OrchestratorResult:
        """
        Entry point: takes the raw user_text, runs the tool-use loop, returns a tidy result.

        Raises:
            ValueError for blank input.
            SchemaIntrospectionFailure, ModelInferenceFailure, ToolUseLimitExceeded.
        """

        user_text = (user_text or "").strip()
        if not user_text:
            raise ValueError("input must be a non-empty string")

        schema = await self.introspector.adescribe()
        tools = self.registry.declarations
        system_prompt = prompts.build_system_prompt(schema_as_text(schema), tools)

        transcript: List[Turn] = [Turn(role="user", content=user_text)]
        audit: List[AuditEntry] = []

        for round_idx in range(self.max_tool_rounds):
            step = f"model_round_{round_idx + 1}"
            logger.info("Making model call %d with %d turns", round_idx + 1, len(transcript))

            resp = await self._infer(transcript, system_prompt, tools)
            tool_uses = resp.tool_uses

            # No tool calls: this is the answer
            if not tool_uses:
                final_text = resp.text or "(no content)"
                audit.append(AuditEntry(step=step, ok=True, detail="No tool call: returning text."))
                transcript.append(Turn(role="assistant", content=resp.content))
                return OrchestratorResult(
                    summary=final_text,
                    content=list(resp.content),
                    transcript=transcript,
                    audit=audit,
                )

            audit.append(AuditEntry(step=step, ok=True, detail=f"{len(tool_uses)} tool call(s) requested."))
            results = await self._dispatch_all(tool_uses, audit)

            transcript.append(Turn(role="assistant", content=tuple(tool_uses)))
            transcript.append(Turn(role="user", content=tuple(results)))

        logger.error("Stopping after %d model calls without a final answer", self.max_tool_rounds)
        raise ToolUseLimitExceeded(self.max_tool_rounds)

    async def _infer(self, transcript: Sequence[Turn], system_prompt: str, tools: Sequence[ToolDeclaration]) -> ModelResponse:

        try:
            return await self.model_client.infer(tuple(transcript), system_prompt, tools)
        except ModelInferenceFailure:
            raise
        except Exception as e:
            raise ModelInferenceFailure(f"Model call failed: {e}") from e

    async def _dispatch_all(self, tool_uses: List[ToolUseBlock], audit: List[AuditEntry]) -> List[ToolResultBlock]:
        """Run every tool call of one response concurrently; results keep the tool_use order."""

        for tu in tool_uses:
            logger.info("Model invoking tool %s (%s): %s", tu.name, tu.id, tu.input)
            audit.append(AuditEntry(step="tool_call", ok=True, detail=f"Calling {tu.name}", tool_use=tu))

        results = await asyncio.gather(
            *(self.registry.dispatch(tu.name, tu.input, tool_use_id=tu.id) for tu in tool_uses)
        )

        for tu, result in zip(tool_uses, results):
            audit.append(AuditEntry(
                step="tool_result",
                ok=not result.is_error,
                detail="error" if result.is_error else "ok",
                tool_use=tu,
                tool_result=result,
            ))

        return list(results)


def build_orchestrator(
    *,
    engine: Optional[Engine] = None,
    model_client: Optional[ModelClient] = None,
    provider: Optional[Provider] = None,
    max_tool_rounds: int = MAX_TOOL_ROUNDS,
) -> Orchestrator:
    """Wire the default collaborators: database engine, query tool, schema reader, model client."""

    engine = engine or load_engine()

    return Orchestrator(
        model_client or get_model_client(provider),
        ToolRegistry(QueryExecutor(engine)),
        SchemaIntrospector(engine),
        max_tool_rounds=max_tool_rounds,
    )
