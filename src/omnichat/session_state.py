"""Pure state transitions over a Session's message log.

Every operation is split into ``begin_*`` (what the user sees while the request is in
flight) and a shared ``succeed`` / ``fail`` pair that folds the backend outcome back in.
``begin_*`` returns the pending session plus an :class:`Operation` describing what to
send and how to recover.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from omnichat.errors import SessionBusyError, SessionStateError
from omnichat.models import Attachment, Message, Role, Session, SessionStatus, derive_title


class OperationKind(str, Enum):
    APPEND = "append"
    REGENERATE = "regenerate"
    ADJUST_LENGTH = "adjust-length"


class LengthDirection(str, Enum):
    SHORTER = "shorter"
    LONGER = "longer"


FAILURE_PREFIXES = {
    OperationKind.APPEND: "Sorry, I encountered an error.",
    OperationKind.REGENERATE: "Sorry, I couldn't regenerate the response.",
    OperationKind.ADJUST_LENGTH: "Sorry, I couldn't adjust the response.",
}


@dataclass(frozen=True)
class Operation:
    kind: OperationKind
    turn_text: str
    attachment: Attachment | None
    history: tuple[Message, ...]
    snapshot: tuple[Message, ...]
    base: tuple[Message, ...]

    @property
    def failure_prefix(self) -> str:
        return FAILURE_PREFIXES[self.kind]


def adjustment_prompt(direction: LengthDirection) -> str:
    return f"Make your last response {direction.value}."


def begin_append(session: Session, user_message: Message) -> tuple[Session, Operation]:
    _require_idle(session)
    if user_message.role is not Role.USER:
        raise SessionStateError("Only user messages can start a turn.")

    title = session.title
    if not session.messages and user_message.content:
        title = derive_title(user_message.content)

    history = session.messages
    pending_message = replace(user_message, pending=True)
    base = history + (user_message,)
    pending = replace(
        session,
        title=title,
        messages=history + (pending_message,),
        status=SessionStatus.PENDING,
    )
    return pending, Operation(
        kind=OperationKind.APPEND,
        turn_text=user_message.content,
        attachment=user_message.attachment,
        history=history,
        snapshot=session.messages,
        base=base,
    )


def begin_regenerate(session: Session) -> tuple[Session, Operation]:
    _require_idle(session)
    last_user = session.last_user_message()
    if last_user is None:
        raise SessionStateError("There is no user message to regenerate a response for.")

    messages = session.messages
    if messages and messages[-1].role is Role.MODEL:
        messages = messages[:-1]

    index = _last_index_of(messages, last_user.id)
    return replace(session, messages=messages, status=SessionStatus.PENDING), Operation(
        kind=OperationKind.REGENERATE,
        turn_text=last_user.content,
        attachment=last_user.attachment,
        history=messages[:index],
        snapshot=session.messages,
        base=messages,
    )


def begin_adjust_length(session: Session, direction: LengthDirection) -> tuple[Session, Operation]:
    _require_idle(session)
    last = session.last_message
    if last is None or last.role is not Role.MODEL:
        raise SessionStateError("There is no model response to adjust.")

    visible = session.messages[:-1]
    return replace(session, messages=visible, status=SessionStatus.PENDING), Operation(
        kind=OperationKind.ADJUST_LENGTH,
        turn_text=adjustment_prompt(direction),
        attachment=None,
        history=session.messages,
        snapshot=session.messages,
        base=visible,
    )


def succeed(session: Session, operation: Operation, response: Message) -> Session:
    if response.role is not Role.MODEL:
        raise SessionStateError("Responses must be model messages.")
    return replace(session, messages=operation.base + (response,), status=SessionStatus.IDLE)


def fail(session: Session, operation: Operation, error_text: str) -> Session:
    """Fold a failure in: adjust-length rolls back, the others get an error message."""
    if operation.kind is OperationKind.ADJUST_LENGTH:
        return replace(session, messages=operation.snapshot, status=SessionStatus.IDLE)
    error_message = Message.model(error_text)
    return replace(session, messages=operation.base + (error_message,), status=SessionStatus.IDLE)


def _require_idle(session: Session) -> None:
    if session.is_pending:
        raise SessionBusyError(f"Session {session.id} already has a request in flight.")


def _last_index_of(messages: tuple[Message, ...], message_id: str) -> int:
    for index in range(len(messages) - 1, -1, -1):
        if messages[index].id == message_id:
            return index
    raise SessionStateError(f"Message {message_id} is not in the session log.")
