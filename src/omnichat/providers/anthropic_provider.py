from __future__ import annotations

import anthropic
from loguru import logger

from omnichat.capabilities import GroundingTool
from omnichat.context import ContentEntry, InlineDataPart, RequestContext, ResponseModality, TextPart
from omnichat.errors import UnsupportedCapabilityError
from omnichat.models import Citation, CitationKind
from omnichat.provider import BackendReply
from omnichat.providers.common import async_retrying, resolve_model

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

_RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    anthropic.RateLimitError,
    anthropic.APIConnectionError,
    anthropic.APITimeoutError,
)

_WEB_SEARCH_TOOL = {"type": "web_search_20250305", "name": "web_search", "max_uses": 5}


def _to_anthropic_messages(entries: tuple[ContentEntry, ...]) -> list[dict]:
    messages: list[dict] = []
    for entry in entries:
        role = "assistant" if entry.role == "model" else "user"
        content: list[dict] = []
        for part in entry.parts:
            if isinstance(part, InlineDataPart):
                content.append({
                    "type": "image",
                    "source": {"type": "base64", "media_type": part.mime_type, "data": part.data},
                })
            elif isinstance(part, TextPart) and part.text:
                content.append({"type": "text", "text": part.text})
        messages.append({"role": role, "content": content or [{"type": "text", "text": " "}]})
    return messages


def _collect_reply(response) -> BackendReply:
    text_parts: list[str] = []
    citations: list[Citation] = []
    seen: set[str] = set()
    for block in response.content:
        if block.type != "text":
            continue
        text_parts.append(block.text)
        for cite in getattr(block, "citations", None) or []:
            url = getattr(cite, "url", None)
            if url and url not in seen:
                seen.add(url)
                citations.append(Citation(CitationKind.WEB, url, getattr(cite, "title", None) or ""))
    return BackendReply(text="".join(text_parts), citations=tuple(citations))


class AnthropicProvider:
    def __init__(
        self,
        api_key: str,
        *,
        max_attempts: int = 1,
        max_output_tokens: int = 8192,
        model_overrides: dict[str, str] | None = None,
    ):
        self._client = anthropic.AsyncAnthropic(api_key=api_key)
        self._max_attempts = max_attempts
        self._max_output_tokens = max_output_tokens
        self._model_overrides = dict(model_overrides or {})

    async def invoke(self, context: RequestContext) -> BackendReply:
        if context.response_modality is ResponseModality.IMAGE:
            raise UnsupportedCapabilityError("Image generation is not available with the anthropic provider.")

        tools: list[dict] = []
        if GroundingTool.WEB_SEARCH in context.tools:
            tools.append(_WEB_SEARCH_TOOL)
        if GroundingTool.PLACES in context.tools:
            logger.warning("Places grounding is not supported by the anthropic provider; sending without it")

        model = resolve_model(context.model, self._model_overrides, DEFAULT_MODEL, native_prefix="claude-")
        messages = _to_anthropic_messages(context.contents)
        kwargs: dict = dict(
            model=model,
            max_tokens=self._max_output_tokens,
            messages=messages,
        )
        if context.system_instruction:
            kwargs["system"] = context.system_instruction
        if tools:
            kwargs["tools"] = tools

        logger.debug(f"API request: provider=anthropic, model={model}, messages={len(messages)}, tools={len(tools)}")
        async for attempt in async_retrying(_RETRYABLE_ERRORS, self._max_attempts):
            with attempt:
                response = await self._client.messages.create(**kwargs)

        usage = response.usage
        logger.debug(
            f"API response: stop_reason={response.stop_reason}, "
            f"input_tokens={usage.input_tokens}, output_tokens={usage.output_tokens}"
        )
        return _collect_reply(response)
