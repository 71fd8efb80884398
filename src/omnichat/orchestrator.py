from __future__ import annotations

import asyncio
from collections.abc import Callable

from loguru import logger

from omnichat import session_state
from omnichat.capabilities import DEFAULT_RULES, KeywordRules, classify
from omnichat.context import RequestContext, ResponseModality, assemble
from omnichat.documents import extract_text
from omnichat.errors import UnconfiguredError, classify_error
from omnichat.models import Attachment, Message, Session
from omnichat.provider import BackendReply, ChatBackend
from omnichat.session_state import LengthDirection, Operation

IMAGE_FALLBACK_TEXT = "Sorry, I couldn't generate an image for that prompt."

SessionListener = Callable[[Session], None]


def image_markdown(mime_type: str, data: str) -> str:
    return f"![Generated Image](data:{mime_type};base64,{data})"


class Orchestrator:
    """Runs user-facing operations for a session against a ChatBackend.

    Each public operation returns the settled session. Backend, extraction and
    configuration failures never escape: they become an error message in the log, or a
    rollback for adjust-length. Precondition failures (nothing to regenerate, session
    busy) are raised as SessionStateError before anything changes.
    """

    def __init__(
        self,
        backend: ChatBackend | None,
        *,
        credential_check: Callable[[], bool],
        env_var: str = "",
        rules: KeywordRules = DEFAULT_RULES,
        timeout_seconds: float | None = None,
    ):
        self._backend = backend
        self._credential_check = credential_check
        self._env_var = env_var
        self._rules = rules
        self._timeout_seconds = timeout_seconds or None

    async def submit_turn(
        self,
        session: Session,
        text: str,
        attachment: Attachment | None = None,
        *,
        on_update: SessionListener | None = None,
    ) -> Session:
        pending, operation = session_state.begin_append(session, Message.user(text, attachment))
        return await self._run(pending, operation, on_update)

    async def regenerate_last(self, session: Session, *, on_update: SessionListener | None = None) -> Session:
        pending, operation = session_state.begin_regenerate(session)
        return await self._run(pending, operation, on_update)

    async def adjust_length(
        self,
        session: Session,
        direction: LengthDirection,
        *,
        on_update: SessionListener | None = None,
    ) -> Session:
        pending, operation = session_state.begin_adjust_length(session, direction)
        return await self._run(pending, operation, on_update)

    async def build_context(self, session: Session, operation: Operation) -> RequestContext:
        attachment = operation.attachment
        has_document = attachment is not None and attachment.is_document
        classification = classify(
            operation.turn_text,
            attachment is not None,
            has_document=has_document,
            rules=self._rules,
        )

        document_text = None
        if has_document and not classification.is_image:
            document_text = await extract_text(attachment.data, attachment.mime_type)

        return assemble(
            session.with_messages(operation.history),
            operation.turn_text,
            attachment,
            classification,
            document_text=document_text,
        )

    async def _run(
        self,
        pending: Session,
        operation: Operation,
        on_update: SessionListener | None,
    ) -> Session:
        if on_update is not None:
            on_update(pending)

        logger.debug(f"Session {pending.id}: {operation.kind.value} started")
        try:
            if not self._credential_check() or self._backend is None:
                raise UnconfiguredError(self._env_var)
            context = await self.build_context(pending, operation)
            reply = await self._invoke(context)
        except Exception as exc:
            classified = classify_error(exc)
            logger.error(f"Session {pending.id}: {operation.kind.value} failed ({classified.kind.value}): {exc}")
            settled = session_state.fail(pending, operation, classified.render(operation.failure_prefix))
        else:
            response = self._to_message(context, reply)
            logger.debug(
                f"Session {pending.id}: {operation.kind.value} succeeded "
                f"(capability={context.capability.value}, citations={len(response.citations)})"
            )
            settled = session_state.succeed(pending, operation, response)

        if on_update is not None:
            on_update(settled)
        return settled

    async def _invoke(self, context: RequestContext) -> BackendReply:
        call = self._backend.invoke(context)
        if self._timeout_seconds is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self._timeout_seconds)
        except TimeoutError as exc:
            raise TimeoutError(f"The request timed out after {self._timeout_seconds:g}s.") from exc

    @staticmethod
    def _to_message(context: RequestContext, reply: BackendReply) -> Message:
        if context.response_modality is ResponseModality.IMAGE:
            if reply.image is None:
                return Message.model(IMAGE_FALLBACK_TEXT)
            return Message.model(image_markdown(reply.image.mime_type, reply.image.data))
        return Message.model(reply.text, reply.citations)
