from __future__ import annotations

import base64

from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from loguru import logger

from omnichat.capabilities import GroundingTool
from omnichat.context import ContentEntry, InlineDataPart, RequestContext, ResponseModality, TextPart
from omnichat.models import Citation, CitationKind
from omnichat.provider import BackendReply, GeneratedImage
from omnichat.providers.common import async_retrying, resolve_model

_RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (genai_errors.ServerError,)


def _to_gemini_contents(entries: tuple[ContentEntry, ...]) -> list[types.Content]:
    contents: list[types.Content] = []
    for entry in entries:
        parts: list[types.Part] = []
        for part in entry.parts:
            if isinstance(part, InlineDataPart):
                parts.append(
                    types.Part(
                        inline_data=types.Blob(mime_type=part.mime_type, data=base64.b64decode(part.data))
                    )
                )
            elif isinstance(part, TextPart):
                parts.append(types.Part(text=part.text))
        contents.append(types.Content(role=entry.role, parts=parts))
    return contents


def _to_gemini_tools(tools: frozenset[GroundingTool]) -> list[types.Tool]:
    out: list[types.Tool] = []
    if GroundingTool.PLACES in tools:
        out.append(types.Tool(google_maps=types.GoogleMaps()))
    if GroundingTool.WEB_SEARCH in tools:
        out.append(types.Tool(google_search=types.GoogleSearch()))
    return out


def _build_config(context: RequestContext) -> types.GenerateContentConfig:
    if context.response_modality is ResponseModality.IMAGE:
        return types.GenerateContentConfig(response_modalities=["IMAGE"])
    tools = _to_gemini_tools(context.tools)
    return types.GenerateContentConfig(
        system_instruction=context.system_instruction or None,
        tools=tools or None,
    )


def _first_candidate(response):
    candidates = getattr(response, "candidates", None) or []
    return candidates[0] if candidates else None


def _extract_citations(response) -> tuple[Citation, ...]:
    candidate = _first_candidate(response)
    metadata = getattr(candidate, "grounding_metadata", None) if candidate else None
    chunks = getattr(metadata, "grounding_chunks", None) or []

    citations: list[Citation] = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        if web is not None and getattr(web, "uri", None):
            citations.append(Citation(CitationKind.WEB, web.uri, getattr(web, "title", None) or ""))
            continue
        maps = getattr(chunk, "maps", None)
        if maps is not None and getattr(maps, "uri", None):
            citations.append(Citation(CitationKind.PLACES, maps.uri, getattr(maps, "title", None) or ""))
    return tuple(citations)


def _extract_image(response) -> GeneratedImage | None:
    candidate = _first_candidate(response)
    content = getattr(candidate, "content", None) if candidate else None
    for part in getattr(content, "parts", None) or []:
        inline = getattr(part, "inline_data", None)
        if inline is None or not inline.data:
            continue
        data = inline.data
        encoded = base64.b64encode(data).decode("ascii") if isinstance(data, bytes) else str(data)
        return GeneratedImage(mime_type=inline.mime_type or "image/png", data=encoded)
    return None


class GeminiProvider:
    def __init__(
        self,
        api_key: str,
        *,
        max_attempts: int = 1,
        model_overrides: dict[str, str] | None = None,
    ):
        self._client = genai.Client(api_key=api_key)
        self._max_attempts = max_attempts
        self._model_overrides = dict(model_overrides or {})

    async def invoke(self, context: RequestContext) -> BackendReply:
        model = resolve_model(context.model, self._model_overrides, context.model)
        contents = _to_gemini_contents(context.contents)
        config = _build_config(context)

        logger.debug(
            f"API request: provider=gemini, model={model}, capability={context.capability.value}, "
            f"entries={len(contents)}, tools={sorted(t.value for t in context.tools)}"
        )
        async for attempt in async_retrying(_RETRYABLE_ERRORS, self._max_attempts):
            with attempt:
                response = await self._client.aio.models.generate_content(
                    model=model,
                    contents=contents,
                    config=config,
                )

        if context.response_modality is ResponseModality.IMAGE:
            image = _extract_image(response)
            logger.debug(f"API response: image={'yes' if image else 'no'}")
            return BackendReply(image=image)

        citations = _extract_citations(response)
        text = response.text or ""
        logger.debug(f"API response: text_len={len(text)}, citations={len(citations)}")
        return BackendReply(text=text, citations=citations)
