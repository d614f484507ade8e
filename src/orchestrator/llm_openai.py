"""
src/orchestrator/llm_openai.py

OpenAI client wrapper for function calling.
- to_openai_messages(): transcript -> chat messages (tool results become role="tool")
- extract_tool_calls(): normalise tool calls from a response choice
- OpenAIModelClient.infer(): one model call, normalised to content blocks
"""


import json
import logging
import os
from typing import Any, Dict, List, Optional, Sequence

import openai
from openai import AsyncOpenAI
from pydantic import ValidationError

from config import MAX_TOKENS, OPENAI_MODEL, TEMPERATURE
from orchestrator.errors import ModelInferenceFailure
from orchestrator.models import (
    ModelResponse,
    TextBlock,
    ToolDeclaration,
    ToolResultBlock,
    ToolUseBlock,
    Turn,
    join_text,
)


logger = logging.getLogger(__name__)


def _tool_spec(decl: ToolDeclaration) -> Dict[str, Any]:
    """Build an OpenAI function spec."""

    return {
        "type": "function",
        "function": {
            "name": decl.name,
            "description": decl.description,
            "parameters": {
                "type": "object",
                "properties": decl.input_schema.get("properties", {}),
                "required": decl.input_schema.get("required", []),
                "additionalProperties": False,
            },
        },
    }


def _assistant_message(turn: Turn) -> Dict[str, Any]:

    calls = []

    for block in turn.blocks():
        if isinstance(block, ToolUseBlock):
            calls.append({
                "id": block.id,
                "type": "function",
                "function": {"name": block.name, "arguments": json.dumps(block.input)},
            })
        elif isinstance(block, TextBlock):
            continue
        elif isinstance(block, ToolResultBlock):
            raise TypeError("tool_result block in an assistant turn")
        else:
            raise TypeError(f"Unexpected content block: {block!r}")

    msg: Dict[str, Any] = {"role": "assistant", "content": join_text(turn.blocks()) or None}
    if calls:
        msg["tool_calls"] = calls

    return msg


def _user_messages(turn: Turn) -> List[Dict[str, Any]]:

    out = []

    for block in turn.blocks():
        if isinstance(block, ToolResultBlock):
            out.append({"role": "tool", "tool_call_id": block.tool_use_id, "content": block.content})
        elif isinstance(block, TextBlock):
            out.append({"role": "user", "content": block.text})
        elif isinstance(block, ToolUseBlock):
            raise TypeError("tool_use block in a user turn")
        else:
            raise TypeError(f"Unexpected content block: {block!r}")

    return out


def to_openai_messages(transcript: Sequence[Turn], system_prompt: str) -> List[Dict[str, Any]]:

    messages: List[Dict[str, Any]] = [{"role": "system", "content": system_prompt}]

    for turn in transcript:
        if turn.role == "assistant":
            messages.append(_assistant_message(turn))
        else:
            messages.extend(_user_messages(turn))

    return messages


def extract_tool_calls(choice) -> List[Dict[str, Any]]:
    """
    Normalize tool calls from the OpenAI response choice.
    Arguments that are not a JSON object become {} and are rejected at dispatch.
    """

    out = []
    tcs = getattr(choice.message, "tool_calls", None)

    if not tcs:
        return out

    for tc in tcs:
        if tc.type == "function" and tc.function:
            try:
                args = json.loads(tc.function.arguments or "{}")
            except ValueError:
                args = {}
            if not isinstance(args, dict):
                args = {}
            out.append({"name": tc.function.name, "arguments": args, "id": tc.id})

    return out


class OpenAIModelClient:

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        *,
        model: str = OPENAI_MODEL,
        temperature: float = TEMPERATURE,
        max_tokens: int = MAX_TOKENS,
    ):

        self._client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @property
    def client(self) -> AsyncOpenAI:

        if self._client is None:
            self._client = AsyncOpenAI(api_key=os.getenv("OPENAI_API_KEY"))

        return self._client

    async def infer(
        self,
        transcript: Sequence[Turn],
        system_prompt: str,
        tools: Sequence[ToolDeclaration],
    ) -> ModelResponse:

        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": to_openai_messages(transcript, system_prompt),
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if tools:
            kwargs["tools"] = [_tool_spec(t) for t in tools]
            kwargs["tool_choice"] = "auto"

        logger.debug("OpenAI call: model=%s turns=%d", self.model, len(transcript))

        try:
            resp = await self.client.chat.completions.create(**kwargs)
        except openai.OpenAIError as e:
            raise ModelInferenceFailure(f"OpenAI request failed: {e}") from e

        if not getattr(resp, "choices", None):
            raise ModelInferenceFailure("OpenAI response had no choices")

        choice = resp.choices[0]

        try:
            blocks: List[Any] = []
            if choice.message.content:
                blocks.append(TextBlock(text=choice.message.content))
            for tc in extract_tool_calls(choice):
                blocks.append(ToolUseBlock(id=tc["id"], name=tc["name"], input=tc["arguments"]))
        except (AttributeError, ValidationError) as e:
            raise ModelInferenceFailure(f"Malformed OpenAI response: {e}") from e

        return ModelResponse(content=tuple(blocks), stop_reason=getattr(choice, "finish_reason", None))
