from __future__ import annotations

from collections.abc import Awaitable, Callable

CommandHandler = Callable[[str], Awaitable[None]]


class CommandRouter:
    def __init__(
        self,
        *,
        on_help: Callable[[], Awaitable[None]],
        on_new: CommandHandler,
        on_sessions: CommandHandler,
        on_switch: CommandHandler,
        on_rename: CommandHandler,
        on_delete: CommandHandler,
        on_mode: CommandHandler,
        on_attach: CommandHandler,
        on_regenerate: CommandHandler,
        on_adjust: CommandHandler,
        on_settings: CommandHandler,
        on_unknown: Callable[[str], None],
    ) -> None:
        self._on_help = on_help
        self._on_unknown = on_unknown
        self._routes: list[tuple[str, CommandHandler]] = [
            ("/new", on_new),
            ("/sessions", on_sessions),
            ("/switch", on_switch),
            ("/rename", on_rename),
            ("/delete", on_delete),
            ("/mode", on_mode),
            ("/attach", on_attach),
            ("/regenerate", on_regenerate),
            ("/shorter", on_adjust),
            ("/longer", on_adjust),
            ("/settings", on_settings),
        ]

    async def try_handle(self, user_message: str) -> bool:
        trimmed = user_message.strip()
        if not trimmed.startswith("/"):
            return False

        if trimmed == "/help":
            await self._on_help()
            return True

        name = trimmed.split(maxsplit=1)[0]
        for command, handler in self._routes:
            if name == command:
                await handler(trimmed)
                return True

        self._on_unknown(trimmed)
        return True


def command_argument(command: str) -> str:
    """Everything after the command word, stripped."""
    parts = command.strip().split(maxsplit=1)
    return parts[1].strip() if len(parts) > 1 else ""
