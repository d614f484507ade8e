"""
src/orchestrator/llm.py

Model client boundary: what the orchestrator needs from an inference provider.
"""


from typing import Optional, Protocol, Sequence

from config import DEFAULT_PROVIDER, Provider
from orchestrator.models import ModelResponse, ToolDeclaration, Turn


class ModelClient(Protocol):
    """
    infer() returns the provider's reply normalised to content blocks.

    Implementations raise ModelInferenceFailure for transport, auth and
    malformed-response errors; nothing else should escape.
    """

    async def infer(
        self,
        transcript: Sequence[Turn],
        system_prompt: str,
        tools: Sequence[ToolDeclaration],
    ) -> ModelResponse:
        ...


def get_model_client(provider: Optional[Provider] = None) -> ModelClient:

    provider = Provider(provider or DEFAULT_PROVIDER)

    if provider is Provider.ANTHROPIC:
        from orchestrator.llm_anthropic import AnthropicModelClient
        return AnthropicModelClient()

    from orchestrator.llm_openai import OpenAIModelClient
    return OpenAIModelClient()
