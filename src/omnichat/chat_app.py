from __future__ import annotations

import asyncio

from loguru import logger

from omnichat.attachments import load_attachment
from omnichat.commands.router import CommandRouter, command_argument
from omnichat.errors import OmniChatError, SessionStateError
from omnichat.models import Attachment, Session
from omnichat.modes import CapabilityMode, parse_mode
from omnichat.orchestrator import Orchestrator
from omnichat.services.session_controller import SessionController
from omnichat.session_state import LengthDirection
from omnichat.spinner import Spinner
from omnichat.workspace import Workspace


class ChatApp:
    """Console front end: turns REPL input into workspace and orchestrator calls."""

    _LINE_PREFIX = "assistant> "

    def __init__(self, workspace: Workspace, orchestrator: Orchestrator, *, show_spinner: bool = True):
        self._workspace = workspace
        self._orchestrator = orchestrator
        self._show_spinner = show_spinner
        self._pending_attachment: Attachment | None = None
        self._run_lock = asyncio.Lock()
        self._session_controller = SessionController(line_prefix=self._LINE_PREFIX)
        self._command_router = CommandRouter(
            on_help=self._on_help,
            on_new=self._handle_new,
            on_sessions=self._handle_sessions,
            on_switch=self._handle_switch,
            on_rename=self._handle_rename,
            on_delete=self._handle_delete,
            on_mode=self._handle_mode,
            on_attach=self._handle_attach,
            on_regenerate=self._handle_regenerate,
            on_adjust=self._handle_adjust,
            on_settings=self._handle_settings,
            on_unknown=self._on_unknown_command,
        )

    @property
    def workspace(self) -> Workspace:
        return self._workspace

    @property
    def pending_attachment(self) -> Attachment | None:
        return self._pending_attachment

    def ensure_active_session(self) -> Session:
        session = self._workspace.active
        if session is None:
            session = self._workspace.new_chat()
        return session

    async def run(self, user_input: str) -> None:
        async with self._run_lock:
            if await self._command_router.try_handle(user_input):
                return
            await self._send(user_input.strip())

    async def _send(self, text: str) -> None:
        session = self.ensure_active_session()
        attachment, self._pending_attachment = self._pending_attachment, None
        settled = await self._with_spinner(
            self._orchestrator.submit_turn(session, text, attachment, on_update=self._workspace.put)
        )
        self._print_last_response(settled)

    async def _with_spinner(self, operation):
        if not self._show_spinner:
            return await operation
        async with Spinner(prefix=self._LINE_PREFIX):
            return await operation

    def _print_last_response(self, session: Session) -> None:
        last = session.last_message
        if last is None:
            return
        for line in self._session_controller.format_message_lines(last):
            print(line)

    async def _on_help(self) -> None:
        print(f"{self._LINE_PREFIX}Available commands:")
        print(f"{self._LINE_PREFIX}- /help")
        print(f"{self._LINE_PREFIX}- /new")
        print(f"{self._LINE_PREFIX}- /sessions")
        print(f"{self._LINE_PREFIX}- /switch <id-or-title>")
        print(f"{self._LINE_PREFIX}- /rename <title>")
        print(f"{self._LINE_PREFIX}- /delete [id-or-title]")
        print(f"{self._LINE_PREFIX}- /mode [{' | '.join(m.value for m in CapabilityMode)}]")
        print(f"{self._LINE_PREFIX}- /attach <path>  (image or PDF, sent with your next message)")
        print(f"{self._LINE_PREFIX}- /regenerate")
        print(f"{self._LINE_PREFIX}- /shorter | /longer")
        print(f"{self._LINE_PREFIX}- /settings [model <id> | instruction <text> | clear]")

    def _on_unknown_command(self, trimmed: str) -> None:
        print(f"{self._LINE_PREFIX}Unknown command: {trimmed}")

    async def _handle_new(self, command: str) -> None:
        session = self._workspace.new_chat()
        self._pending_attachment = None
        print(self._session_controller.format_session_header(session))

    async def _handle_sessions(self, command: str) -> None:
        sessions = self._workspace.sessions
        if not sessions:
            print(f"{self._LINE_PREFIX}No chats yet.")
            return
        print(f"{self._LINE_PREFIX}Chats:")
        for session in sessions:
            print(
                self._session_controller.format_session_list_entry(
                    session,
                    active_session_id=self._workspace.active_session_id,
                )
            )

    async def _handle_switch(self, command: str) -> None:
        target = command_argument(command)
        if not target:
            print(f"{self._LINE_PREFIX}Usage: /switch <id-or-title>")
            return
        session = self._resolve(target)
        if session is None:
            return
        self._workspace.select(session.id)
        self._pending_attachment = None
        print(self._session_controller.format_session_header(session))
        for message in session.messages:
            for line in self._session_controller.format_message_lines(message):
                print(line)

    async def _handle_rename(self, command: str) -> None:
        title = command_argument(command)
        if not title:
            print(f"{self._LINE_PREFIX}Usage: /rename <title>")
            return
        session = self._workspace.rename(self.ensure_active_session().id, title)
        print(f"{self._LINE_PREFIX}Chat renamed: {session.title}")

    async def _handle_delete(self, command: str) -> None:
        target = command_argument(command)
        session = self._resolve(target) if target else self._workspace.active
        if session is None:
            if not target:
                print(f"{self._LINE_PREFIX}No active chat to delete")
            return
        self._workspace.delete(session.id)
        print(f"{self._LINE_PREFIX}Deleted chat: {session.title}")
        active = self._workspace.active
        if active is not None:
            print(self._session_controller.format_session_header(active))

    async def _handle_mode(self, command: str) -> None:
        session = self.ensure_active_session()
        name = command_argument(command)
        if not name:
            print(f"{self._LINE_PREFIX}Mode: {session.mode.value} (model={session.model})")
            return
        try:
            mode = parse_mode(name)
        except ValueError as ex:
            print(f"{self._LINE_PREFIX}{ex}")
            return
        if mode is CapabilityMode.CUSTOM and not self._workspace.settings.has_custom_instruction:
            print(f"{self._LINE_PREFIX}Set a custom instruction first: /settings instruction <text>")
            return
        session = self._workspace.change_mode(session.id, mode)
        print(f"{self._LINE_PREFIX}Mode: {session.mode.value} (model={session.model})")

    async def _handle_attach(self, command: str) -> None:
        path = command_argument(command)
        if not path:
            print(f"{self._LINE_PREFIX}Usage: /attach <path>")
            return
        try:
            self._pending_attachment = load_attachment(path)
        except OmniChatError as ex:
            print(f"{self._LINE_PREFIX}{ex}")
            return
        print(
            f"{self._LINE_PREFIX}Attached {self._pending_attachment.name} "
            f"({self._pending_attachment.mime_type}); it will be sent with your next message."
        )

    async def _handle_regenerate(self, command: str) -> None:
        session = self.ensure_active_session()
        try:
            settled = await self._with_spinner(
                self._orchestrator.regenerate_last(session, on_update=self._workspace.put)
            )
        except SessionStateError as ex:
            print(f"{self._LINE_PREFIX}{ex}")
            return
        self._print_last_response(settled)

    async def _handle_adjust(self, command: str) -> None:
        direction = LengthDirection.SHORTER if command.startswith("/shorter") else LengthDirection.LONGER
        session = self.ensure_active_session()
        try:
            settled = await self._with_spinner(
                self._orchestrator.adjust_length(session, direction, on_update=self._workspace.put)
            )
        except SessionStateError as ex:
            print(f"{self._LINE_PREFIX}{ex}")
            return
        if settled.messages == session.messages:
            logger.warning(f"Adjusting response length failed for session {session.id}; kept the previous answer")
            print(f"{self._LINE_PREFIX}Couldn't adjust the response; kept the previous answer.")
            return
        self._print_last_response(settled)

    async def _handle_settings(self, command: str) -> None:
        settings = self._workspace.settings
        argument = command_argument(command)
        if not argument:
            instruction = settings.custom_instruction if settings.has_custom_instruction else "(none)"
            print(f"{self._LINE_PREFIX}Default model: {settings.default_model}")
            print(f"{self._LINE_PREFIX}Custom instruction: {instruction}")
            return

        key, _, value = argument.partition(" ")
        value = value.strip()
        if key == "model" and value:
            self._workspace.apply_settings(value, settings.custom_instruction)
        elif key == "instruction" and value:
            self._workspace.apply_settings(settings.default_model, value)
        elif key == "clear":
            self._workspace.apply_settings(settings.default_model, "")
        else:
            print(f"{self._LINE_PREFIX}Usage: /settings [model <id> | instruction <text> | clear]")
            return
        print(f"{self._LINE_PREFIX}Settings saved.")

    def _resolve(self, target: str) -> Session | None:
        try:
            session = self._workspace.resolve(target)
        except ValueError as ex:
            print(f"{self._LINE_PREFIX}{ex}")
            return None
        if session is None:
            print(f"{self._LINE_PREFIX}Chat not found: {target}")
        return session
