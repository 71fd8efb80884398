from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from uuid import uuid4

from omnichat.modes import CapabilityMode

NEW_CHAT_TITLE = "New Chat"
TITLE_MAX_CHARS = 30

PDF_MIME_TYPE = "application/pdf"


class Role(str, Enum):
    USER = "user"
    MODEL = "model"


class CitationKind(str, Enum):
    WEB = "web"
    PLACES = "places"


class SessionStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"


def new_message_id() -> str:
    return f"msg-{uuid4().hex}"


def new_session_id() -> str:
    return f"session-{uuid4().hex}"


@dataclass(frozen=True)
class Attachment:
    name: str
    mime_type: str
    data: str  # base64

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def is_document(self) -> bool:
        return self.mime_type == PDF_MIME_TYPE

    def to_dict(self) -> dict:
        return {"name": self.name, "type": self.mime_type, "data": self.data}

    @classmethod
    def from_dict(cls, data: dict) -> Attachment:
        return cls(name=str(data.get("name", "")), mime_type=str(data.get("type", "")), data=str(data.get("data", "")))


@dataclass(frozen=True)
class Citation:
    kind: CitationKind
    uri: str
    title: str = ""

    def to_dict(self) -> dict:
        return {self.kind.value: {"uri": self.uri, "title": self.title}}

    @classmethod
    def from_dict(cls, data: dict) -> Citation | None:
        for kind in CitationKind:
            payload = data.get(kind.value)
            if isinstance(payload, dict) and payload.get("uri"):
                return cls(kind=kind, uri=str(payload["uri"]), title=str(payload.get("title") or ""))
        return None


@dataclass(frozen=True)
class Message:
    id: str
    role: Role
    content: str
    attachment: Attachment | None = None
    citations: tuple[Citation, ...] = ()
    pending: bool = False

    @classmethod
    def user(cls, content: str, attachment: Attachment | None = None) -> Message:
        return cls(id=new_message_id(), role=Role.USER, content=content, attachment=attachment)

    @classmethod
    def model(cls, content: str, citations: tuple[Citation, ...] = ()) -> Message:
        return cls(id=new_message_id(), role=Role.MODEL, content=content, citations=tuple(citations))

    def to_dict(self) -> dict:
        data: dict = {"id": self.id, "role": self.role.value, "content": self.content}
        if self.attachment is not None:
            data["file"] = self.attachment.to_dict()
        if self.citations:
            data["grounding"] = [c.to_dict() for c in self.citations]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Message:
        file_data = data.get("file")
        citations = []
        for raw in data.get("grounding") or []:
            if isinstance(raw, dict):
                citation = Citation.from_dict(raw)
                if citation is not None:
                    citations.append(citation)
        return cls(
            id=str(data.get("id") or new_message_id()),
            role=Role(data.get("role", Role.USER.value)),
            content=str(data.get("content", "")),
            attachment=Attachment.from_dict(file_data) if isinstance(file_data, dict) else None,
            citations=tuple(citations),
        )


@dataclass(frozen=True)
class Session:
    id: str
    title: str
    mode: CapabilityMode
    model: str
    system_instruction: str
    messages: tuple[Message, ...] = ()
    status: SessionStatus = field(default=SessionStatus.IDLE, compare=False)

    @property
    def is_pending(self) -> bool:
        return self.status is SessionStatus.PENDING

    @property
    def last_message(self) -> Message | None:
        return self.messages[-1] if self.messages else None

    def last_user_message(self) -> Message | None:
        for message in reversed(self.messages):
            if message.role is Role.USER:
                return message
        return None

    def with_messages(self, messages: tuple[Message, ...] | list[Message]) -> Session:
        return replace(self, messages=tuple(messages))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "messages": [m.to_dict() for m in self.messages],
            "mode": self.mode.value,
            "model": self.model,
            "systemInstruction": self.system_instruction,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Session:
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or NEW_CHAT_TITLE),
            mode=CapabilityMode(data.get("mode", CapabilityMode.AI_ASSISTANT.value)),
            model=str(data.get("model", "")),
            system_instruction=str(data.get("systemInstruction", "")),
            messages=tuple(Message.from_dict(m) for m in data.get("messages") or []),
        )


def derive_title(first_message: str) -> str:
    if len(first_message) <= TITLE_MAX_CHARS:
        return first_message
    return first_message[:TITLE_MAX_CHARS] + "..."
