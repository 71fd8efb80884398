import base64
import unittest

from omnichat.capabilities import Capability, Classification, GroundingTool
from omnichat.context import InlineDataPart, ResponseModality, TextPart, assemble
from omnichat.models import Attachment, Message, Session
from omnichat.modes import ATTACHMENT_MODEL, CHAT_MODES, IMAGE_MODEL, CapabilityMode

PDF_BYTES = b"%PDF-1.4 raw document bytes"
PDF_B64 = base64.b64encode(PDF_BYTES).decode("ascii")
PNG_B64 = base64.b64encode(b"\x89PNG fake").decode("ascii")

PLAIN = Classification(Capability.PLAIN)


def _session(*messages: Message, mode: CapabilityMode = CapabilityMode.CODING_MODE) -> Session:
    config = CHAT_MODES[mode]
    return Session(
        id="s1",
        title="t",
        mode=mode,
        model=config.model,
        system_instruction=config.instruction,
        messages=tuple(messages),
    )


class AssembleHistoryTests(unittest.TestCase):
    def test_history_entries_keep_order_and_roles(self) -> None:
        session = _session(Message.user("hi"), Message.model("hello"), Message.user("more"), Message.model("sure"))
        context = assemble(session, "next", None, PLAIN)

        self.assertEqual(["user", "model", "user", "model", "user"], [e.role for e in context.contents])
        self.assertEqual(["hi", "hello", "more", "sure", "next"], [e.text for e in context.contents])

    def test_prior_image_attachment_is_inlined_before_text(self) -> None:
        image = Attachment("cat.png", "image/png", PNG_B64)
        session = _session(Message.user("what is this?", image), Message.model("a cat"))
        context = assemble(session, "thanks", None, PLAIN)

        first = context.contents[0]
        self.assertEqual(2, len(first.parts))
        self.assertEqual(InlineDataPart("image/png", PNG_B64), first.parts[0])
        self.assertEqual(TextPart("what is this?"), first.parts[1])

    def test_prior_document_attachment_is_not_resent(self) -> None:
        pdf = Attachment("doc.pdf", "application/pdf", PDF_B64)
        session = _session(Message.user("summarize", pdf), Message.model("summary"))
        context = assemble(session, "thanks", None, PLAIN)

        self.assertEqual((TextPart("summarize"),), context.contents[0].parts)

    def test_model_and_instruction_follow_session_mode(self) -> None:
        context = assemble(_session(), "hello", None, PLAIN)
        self.assertEqual(CHAT_MODES[CapabilityMode.CODING_MODE].model, context.model)
        self.assertEqual(CHAT_MODES[CapabilityMode.CODING_MODE].instruction, context.system_instruction)
        self.assertEqual(ResponseModality.TEXT, context.response_modality)


class AssembleCurrentTurnTests(unittest.TestCase):
    def test_current_image_is_inlined_and_forces_attachment_model(self) -> None:
        image = Attachment("cat.png", "image/png", PNG_B64)
        context = assemble(_session(), "describe", image, PLAIN)

        self.assertEqual(ATTACHMENT_MODEL, context.model)
        self.assertEqual(
            (InlineDataPart("image/png", PNG_B64), TextPart("describe")),
            context.current_turn.parts,
        )

    def test_document_turn_sends_only_extracted_text(self) -> None:
        pdf = Attachment("report.pdf", "application/pdf", PDF_B64)
        context = assemble(
            _session(),
            "What are the key findings?",
            pdf,
            Classification(Capability.DOCUMENT_AUGMENTED),
            document_text="Revenue grew 10%.",
        )

        self.assertEqual(ATTACHMENT_MODEL, context.model)
        parts = context.current_turn.parts
        self.assertEqual(1, len(parts))
        self.assertIsInstance(parts[0], TextPart)
        text = parts[0].text
        self.assertIn('"report.pdf"', text)
        self.assertIn("<pdf_content>\nRevenue grew 10%.\n</pdf_content>", text)
        self.assertTrue(text.endswith("User's prompt is: What are the key findings?"))
        for entry in context.contents:
            for part in entry.parts:
                self.assertNotIsInstance(part, InlineDataPart)
                if isinstance(part, TextPart):
                    self.assertNotIn(PDF_B64, part.text)

    def test_document_turn_requires_extracted_text(self) -> None:
        pdf = Attachment("report.pdf", "application/pdf", PDF_B64)
        with self.assertRaises(ValueError):
            assemble(_session(), "summarize", pdf, PLAIN)

    def test_diagram_rewrites_turn_text(self) -> None:
        context = assemble(_session(), "login flowchart", None, Classification(Capability.DIAGRAM_GENERATION))
        text = context.current_turn.text
        self.assertIn('"login flowchart"', text)
        self.assertIn("```mermaid", text)
        self.assertNotEqual("login flowchart", text)

    def test_diagram_with_document_embeds_text_then_instruction(self) -> None:
        pdf = Attachment("process.pdf", "application/pdf", PDF_B64)
        context = assemble(
            _session(),
            "turn this into a diagram",
            pdf,
            Classification(Capability.DIAGRAM_GENERATION),
            document_text="Step one. Step two.",
        )
        text = context.current_turn.text
        self.assertIn("<pdf_content>\nStep one. Step two.\n</pdf_content>", text)
        self.assertIn("Mermaid.js", text.split("</pdf_content>")[1])

    def test_tools_are_carried_from_classification(self) -> None:
        classification = Classification(Capability.GROUNDED_PLACES, frozenset({GroundingTool.PLACES}))
        context = assemble(_session(), "hotels nearby", None, classification)
        self.assertEqual(frozenset({GroundingTool.PLACES}), context.tools)
        self.assertEqual(Capability.GROUNDED_PLACES, context.capability)

    def test_image_generation_sends_prompt_alone_to_image_model(self) -> None:
        session = _session(Message.user("hi"), Message.model("hello"))
        context = assemble(session, "draw a cat", None, Classification(Capability.IMAGE_GENERATION))

        self.assertEqual(IMAGE_MODEL, context.model)
        self.assertEqual(ResponseModality.IMAGE, context.response_modality)
        self.assertEqual(1, len(context.contents))
        self.assertEqual("draw a cat", context.current_turn.text)
        self.assertEqual(frozenset(), context.tools)


if __name__ == "__main__":
    unittest.main()
