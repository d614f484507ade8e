"""
src/orchestrator/llm_anthropic.py

Anthropic messages API wrapper. The transcript's block shapes are already the
API's native tool_use / tool_result format, so conversion is one-to-one.
"""


import logging
import os
from typing import Any, Dict, List, Optional, Sequence

import anthropic
from anthropic import AsyncAnthropic
from pydantic import ValidationError

from config import ANTHROPIC_MODEL, MAX_TOKENS, TEMPERATURE
from orchestrator.errors import ModelInferenceFailure
from orchestrator.models import ModelResponse, TextBlock, ToolDeclaration, ToolResultBlock, ToolUseBlock, Turn


logger = logging.getLogger(__name__)


def _block_param(block) -> Dict[str, Any]:

    if isinstance(block, TextBlock):
        return {"type": "text", "text": block.text}
    if isinstance(block, ToolUseBlock):
        return {"type": "tool_use", "id": block.id, "name": block.name, "input": dict(block.input)}
    if isinstance(block, ToolResultBlock):
        return {
            "type": "tool_result",
            "tool_use_id": block.tool_use_id,
            "content": block.content,
            "is_error": block.is_error,
        }

    raise TypeError(f"Unexpected content block: {block!r}")


def to_anthropic_messages(transcript: Sequence[Turn]) -> List[Dict[str, Any]]:

    messages = []

    for turn in transcript:
        if isinstance(turn.content, str):
            messages.append({"role": turn.role, "content": turn.content})
        else:
            # The API rejects empty text blocks
            content = [
                _block_param(b) for b in turn.content
                if not (isinstance(b, TextBlock) and not b.text)
            ]
            messages.append({"role": turn.role, "content": content})

    return messages


def to_anthropic_tools(tools: Sequence[ToolDeclaration]) -> List[Dict[str, Any]]:

    return [{"name": t.name, "description": t.description, "input_schema": t.input_schema} for t in tools]


def normalise_content(content) -> List[Any]:
    """Provider blocks -> our content blocks. Unknown block types are a malformed response."""

    blocks: List[Any] = []

    for block in content or []:
        kind = getattr(block, "type", None)
        if kind == "text":
            blocks.append(TextBlock(text=block.text))
        elif kind == "tool_use":
            args = block.input if isinstance(block.input, dict) else {}
            blocks.append(ToolUseBlock(id=block.id, name=block.name, input=args))
        else:
            raise ModelInferenceFailure(f"Unsupported content block from Anthropic: {kind}")

    return blocks


class AnthropicModelClient:

    def __init__(
        self,
        client: Optional[AsyncAnthropic] = None,
        *,
        model: str = ANTHROPIC_MODEL,
        temperature: float = TEMPERATURE,
        max_tokens: int = MAX_TOKENS,
    ):

        self._client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @property
    def client(self) -> AsyncAnthropic:

        if self._client is None:
            self._client = AsyncAnthropic(api_key=os.getenv("ANTHROPIC_API_KEY"))

        return self._client

    async def infer(
        self,
        transcript: Sequence[Turn],
        system_prompt: str,
        tools: Sequence[ToolDeclaration],
    ) -> ModelResponse:

        kwargs: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "system": system_prompt,
            "messages": to_anthropic_messages(transcript),
        }
        if tools:
            kwargs["tools"] = to_anthropic_tools(tools)

        logger.debug("Anthropic call: model=%s turns=%d", self.model, len(transcript))

        try:
            resp = await self.client.messages.create(**kwargs)
        except anthropic.AnthropicError as e:
            raise ModelInferenceFailure(f"Anthropic request failed: {e}") from e

        try:
            blocks = normalise_content(getattr(resp, "content", None))
        except (AttributeError, ValidationError) as e:
            raise ModelInferenceFailure(f"Malformed Anthropic response: {e}") from e

        return ModelResponse(content=tuple(blocks), stop_reason=getattr(resp, "stop_reason", None))
