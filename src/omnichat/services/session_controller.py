from __future__ import annotations

from omnichat.models import Message, Role, Session


class SessionController:
    def __init__(self, *, line_prefix: str, short_id_len: int = 8):
        self._line_prefix = line_prefix
        self._short_id_len = short_id_len

    def short_id(self, value: str) -> str:
        value = value.removeprefix("session-")
        if len(value) <= self._short_id_len:
            return value
        return value[: self._short_id_len]

    def format_session_list_entry(self, session: Session, *, active_session_id: str | None) -> str:
        marker = "*" if session.id == active_session_id else " "
        return (
            f"{self._line_prefix}{marker} {session.title} [{self.short_id(session.id)}] "
            f"(mode={session.mode.value}, model={session.model}, messages={len(session.messages)})"
        )

    def format_session_header(self, session: Session) -> str:
        return (
            f"{self._line_prefix}Current chat: {session.title} [{self.short_id(session.id)}] "
            f"(mode={session.mode.value}, model={session.model})"
        )

    def format_message_lines(self, message: Message) -> list[str]:
        if message.role is Role.USER:
            label = "you> "
            if message.attachment is not None:
                label += f"[{message.attachment.name}] "
            return [f"{label}{message.content}"]

        lines = [f"{self._line_prefix}{message.content}"]
        if message.citations:
            lines.append(f"{self._line_prefix}Sources:")
            for index, citation in enumerate(message.citations, start=1):
                title = citation.title or citation.uri
                lines.append(f"{self._line_prefix}  [{index}] ({citation.kind.value}) {title} - {citation.uri}")
        return lines
