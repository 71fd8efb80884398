from __future__ import annotations

import openai
from loguru import logger

from omnichat.context import ContentEntry, InlineDataPart, RequestContext, ResponseModality, TextPart
from omnichat.provider import BackendReply, GeneratedImage
from omnichat.providers.common import async_retrying, resolve_model

DEFAULT_CHAT_MODEL = "gpt-4o-mini"
DEFAULT_IMAGE_MODEL = "gpt-image-1"

_RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    openai.RateLimitError,
    openai.APIConnectionError,
    openai.APITimeoutError,
)

# Internal role names to OpenAI chat roles.
_ROLE_MAP = {
    "user": "user",
    "model": "assistant",
}


def _to_openai_messages(system_instruction: str, entries: tuple[ContentEntry, ...]) -> list[dict]:
    """Convert role-tagged entries to OpenAI chat format.

    Inline images become ``image_url`` data URLs on user turns; model turns only carry
    their text.
    """
    out: list[dict] = []

    if system_instruction:
        out.append({"role": "system", "content": system_instruction})

    for entry in entries:
        role = _ROLE_MAP.get(entry.role, entry.role)
        images = [p for p in entry.parts if isinstance(p, InlineDataPart)]

        if role == "assistant" or not images:
            out.append({"role": role, "content": entry.text})
            continue

        content: list[dict] = []
        for part in entry.parts:
            if isinstance(part, InlineDataPart):
                content.append({
                    "type": "image_url",
                    "image_url": {"url": f"data:{part.mime_type};base64,{part.data}"},
                })
            elif isinstance(part, TextPart):
                content.append({"type": "text", "text": part.text})
        out.append({"role": role, "content": content})

    return out


class OpenAIProvider:
    def __init__(
        self,
        api_key: str,
        *,
        max_attempts: int = 1,
        max_output_tokens: int = 8192,
        model_overrides: dict[str, str] | None = None,
    ):
        self._client = openai.AsyncOpenAI(api_key=api_key)
        self._max_attempts = max_attempts
        self._max_output_tokens = max_output_tokens
        self._model_overrides = dict(model_overrides or {})

    async def invoke(self, context: RequestContext) -> BackendReply:
        if context.response_modality is ResponseModality.IMAGE:
            return await self._generate_image(context)

        if context.tools:
            logger.warning(
                f"Grounding tools {sorted(t.value for t in context.tools)} are not supported "
                "by the openai provider; sending without them"
            )

        model = resolve_model(context.model, self._model_overrides, DEFAULT_CHAT_MODEL, native_prefix="gpt-")
        messages = _to_openai_messages(context.system_instruction, context.contents)
        logger.debug(f"API request: provider=openai, model={model}, messages={len(messages)}")

        async for attempt in async_retrying(_RETRYABLE_ERRORS, self._max_attempts):
            with attempt:
                response = await self._client.chat.completions.create(
                    model=model,
                    max_tokens=self._max_output_tokens,
                    messages=messages,
                )

        choice = response.choices[0] if response.choices else None
        text = (choice.message.content if choice else None) or ""
        logger.debug(
            f"API response: finish_reason={choice.finish_reason if choice else None}, text_len={len(text)}"
        )
        return BackendReply(text=text)

    async def _generate_image(self, context: RequestContext) -> BackendReply:
        model = resolve_model(context.model, self._model_overrides, DEFAULT_IMAGE_MODEL, native_prefix="gpt-image")
        prompt = context.current_turn.text
        logger.debug(f"Image request: provider=openai, model={model}, prompt_len={len(prompt)}")

        async for attempt in async_retrying(_RETRYABLE_ERRORS, self._max_attempts):
            with attempt:
                response = await self._client.images.generate(model=model, prompt=prompt, n=1)

        for item in response.data or []:
            if getattr(item, "b64_json", None):
                return BackendReply(image=GeneratedImage(mime_type="image/png", data=item.b64_json))
        return BackendReply()
