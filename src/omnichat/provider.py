from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from omnichat.context import RequestContext
from omnichat.models import Citation


@dataclass(frozen=True)
class GeneratedImage:
    mime_type: str
    data: str  # base64


@dataclass(frozen=True)
class BackendReply:
    text: str = ""
    citations: tuple[Citation, ...] = ()
    image: GeneratedImage | None = None


@runtime_checkable
class ChatBackend(Protocol):
    async def invoke(self, context: RequestContext) -> BackendReply:
        """Run one generation request.

        Text requests return the answer and any grounding citations; image requests
        return the first generated image (or none when the backend produced no image).
        """
        ...


SUPPORTED_PROVIDERS = ("gemini", "openai", "anthropic")


def create_provider(
    provider_name: str,
    api_key: str,
    *,
    max_attempts: int = 1,
    max_output_tokens: int = 8192,
    model_overrides: dict[str, str] | None = None,
) -> ChatBackend:
    """Factory: create a ChatBackend by name."""
    name = provider_name.strip().lower()
    if name == "gemini":
        from omnichat.providers.gemini_provider import GeminiProvider
        return GeminiProvider(api_key, max_attempts=max_attempts, model_overrides=model_overrides)
    if name == "openai":
        from omnichat.providers.openai_provider import OpenAIProvider
        return OpenAIProvider(
            api_key,
            max_attempts=max_attempts,
            max_output_tokens=max_output_tokens,
            model_overrides=model_overrides,
        )
    if name == "anthropic":
        from omnichat.providers.anthropic_provider import AnthropicProvider
        return AnthropicProvider(
            api_key,
            max_attempts=max_attempts,
            max_output_tokens=max_output_tokens,
            model_overrides=model_overrides,
        )
    raise ValueError(f"Unknown provider: {provider_name!r}. Supported: {', '.join(map(repr, SUPPORTED_PROVIDERS))}")
