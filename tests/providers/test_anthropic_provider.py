import asyncio
import unittest
from types import SimpleNamespace

from omnichat.capabilities import Capability, GroundingTool
from omnichat.context import ContentEntry, InlineDataPart, RequestContext, ResponseModality, TextPart
from omnichat.errors import UnsupportedCapabilityError
from omnichat.models import Citation, CitationKind
from omnichat.providers.anthropic_provider import (
    DEFAULT_MODEL,
    AnthropicProvider,
    _collect_reply,
    _to_anthropic_messages,
)


class _FakeMessages:
    def __init__(self, response):
        self.response = response
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        return self.response


def _response(*blocks):
    return SimpleNamespace(
        content=list(blocks),
        stop_reason="end_turn",
        usage=SimpleNamespace(input_tokens=10, output_tokens=5),
    )


def _provider(response):
    provider = AnthropicProvider.__new__(AnthropicProvider)
    messages = _FakeMessages(response)
    provider._client = SimpleNamespace(messages=messages)
    provider._max_attempts = 1
    provider._max_output_tokens = 2048
    provider._model_overrides = {}
    return provider, messages


def _context(**kwargs):
    defaults = dict(
        model="gemini-2.5-flash",
        system_instruction="Be helpful.",
        contents=(ContentEntry("user", (TextPart("hello"),)),),
        capability=Capability.PLAIN,
    )
    defaults.update(kwargs)
    return RequestContext(**defaults)


class ToAnthropicMessagesTests(unittest.TestCase):
    def test_images_become_base64_blocks(self) -> None:
        result = _to_anthropic_messages((
            ContentEntry("user", (InlineDataPart("image/png", "QUJD"), TextPart("describe"))),
            ContentEntry("model", (TextPart("a cat"),)),
        ))
        self.assertEqual("user", result[0]["role"])
        self.assertEqual(
            {"type": "image", "source": {"type": "base64", "media_type": "image/png", "data": "QUJD"}},
            result[0]["content"][0],
        )
        self.assertEqual("assistant", result[1]["role"])

    def test_empty_text_gets_placeholder(self) -> None:
        result = _to_anthropic_messages((ContentEntry("user", (TextPart(""),)),))
        self.assertEqual([{"type": "text", "text": " "}], result[0]["content"])


class CollectReplyTests(unittest.TestCase):
    def test_joins_text_and_deduplicates_citations(self) -> None:
        cite = SimpleNamespace(url="https://example.com", title="Example")
        reply = _collect_reply(_response(
            SimpleNamespace(type="server_tool_use", name="web_search"),
            SimpleNamespace(type="text", text="Part one. ", citations=[cite]),
            SimpleNamespace(type="text", text="Part two.", citations=[cite]),
        ))
        self.assertEqual("Part one. Part two.", reply.text)
        self.assertEqual((Citation(CitationKind.WEB, "https://example.com", "Example"),), reply.citations)


class InvokeTests(unittest.TestCase):
    def test_search_tool_and_system_prompt_are_sent(self) -> None:
        provider, messages = _provider(_response(SimpleNamespace(type="text", text="news", citations=None)))

        reply = asyncio.run(provider.invoke(_context(tools=frozenset({GroundingTool.WEB_SEARCH}))))

        call = messages.calls[0]
        self.assertEqual(DEFAULT_MODEL, call["model"])
        self.assertEqual("Be helpful.", call["system"])
        self.assertEqual(2048, call["max_tokens"])
        self.assertEqual("web_search", call["tools"][0]["name"])
        self.assertEqual("news", reply.text)

    def test_places_only_request_sends_no_tools(self) -> None:
        provider, messages = _provider(_response(SimpleNamespace(type="text", text="ok", citations=None)))
        asyncio.run(provider.invoke(_context(tools=frozenset({GroundingTool.PLACES}), system_instruction="")))
        self.assertNotIn("tools", messages.calls[0])
        self.assertNotIn("system", messages.calls[0])

    def test_image_generation_is_unsupported(self) -> None:
        provider, messages = _provider(_response())
        with self.assertRaises(UnsupportedCapabilityError):
            asyncio.run(provider.invoke(_context(response_modality=ResponseModality.IMAGE)))
        self.assertEqual([], messages.calls)


if __name__ == "__main__":
    unittest.main()
