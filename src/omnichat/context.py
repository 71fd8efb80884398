from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from omnichat.capabilities import Capability, Classification, GroundingTool, build_diagram_prompt
from omnichat.models import Attachment, Message, Session
from omnichat.modes import ATTACHMENT_MODEL, IMAGE_MODEL


class ResponseModality(str, Enum):
    TEXT = "text"
    IMAGE = "image"


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class InlineDataPart:
    mime_type: str
    data: str  # base64


Part = TextPart | InlineDataPart


@dataclass(frozen=True)
class ContentEntry:
    role: str
    parts: tuple[Part, ...]

    @property
    def text(self) -> str:
        return "\n".join(p.text for p in self.parts if isinstance(p, TextPart))


@dataclass(frozen=True)
class RequestContext:
    model: str
    system_instruction: str
    contents: tuple[ContentEntry, ...]
    capability: Capability
    tools: frozenset[GroundingTool] = frozenset()
    response_modality: ResponseModality = ResponseModality.TEXT

    @property
    def current_turn(self) -> ContentEntry:
        return self.contents[-1]


def build_document_prompt(file_name: str, document_text: str, prompt_text: str) -> str:
    return (
        f'User has uploaded a PDF named "{file_name}" with the following content: \n\n'
        f"<pdf_content>\n{document_text}\n</pdf_content>\n\n"
        f"User's prompt is: {prompt_text}"
    )


def assemble(
    session: Session,
    turn_text: str,
    attachment: Attachment | None,
    classification: Classification,
    *,
    document_text: str | None = None,
) -> RequestContext:
    """Build the request for one backend call.

    ``session.messages`` is taken as the prior history; the in-flight turn must not be
    part of it. ``document_text`` is the already extracted text of a document attachment.
    """
    if classification.is_image:
        return RequestContext(
            model=IMAGE_MODEL,
            system_instruction="",
            contents=(ContentEntry(role="user", parts=(TextPart(turn_text),)),),
            capability=classification.capability,
            response_modality=ResponseModality.IMAGE,
        )

    history = tuple(_history_entry(message) for message in session.messages)

    model = session.model
    effective_text = turn_text
    current_parts: list[Part] = []

    if attachment is not None:
        model = ATTACHMENT_MODEL
        if attachment.is_image:
            current_parts.append(InlineDataPart(attachment.mime_type, attachment.data))

    if classification.is_diagram:
        effective_text = build_diagram_prompt(turn_text)

    if attachment is not None and attachment.is_document:
        if document_text is None:
            raise ValueError("document_text is required for a document attachment")
        effective_text = build_document_prompt(attachment.name, document_text, effective_text)

    current_parts.append(TextPart(effective_text))

    return RequestContext(
        model=model,
        system_instruction=session.system_instruction,
        contents=history + (ContentEntry(role="user", parts=tuple(current_parts)),),
        capability=classification.capability,
        tools=classification.tools,
    )


def _history_entry(message: Message) -> ContentEntry:
    parts: list[Part] = []
    if message.attachment is not None and message.attachment.is_image:
        parts.append(InlineDataPart(message.attachment.mime_type, message.attachment.data))
    parts.append(TextPart(message.content))
    return ContentEntry(role=message.role.value, parts=tuple(parts))
