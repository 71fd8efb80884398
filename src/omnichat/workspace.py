from __future__ import annotations

from dataclasses import replace

from loguru import logger

from omnichat.models import NEW_CHAT_TITLE, Session, new_session_id
from omnichat.modes import CapabilityMode, Settings, resolve_mode_config


def create_session(settings: Settings) -> Session:
    mode = CapabilityMode.CUSTOM if settings.has_custom_instruction else CapabilityMode.AI_ASSISTANT
    config = resolve_mode_config(mode, settings)
    return Session(
        id=new_session_id(),
        title=NEW_CHAT_TITLE,
        mode=mode,
        model=config.model,
        system_instruction=config.instruction,
    )


def with_mode(session: Session, mode: CapabilityMode, settings: Settings) -> Session:
    config = resolve_mode_config(mode, settings)
    return replace(session, mode=mode, model=config.model, system_instruction=config.instruction)


def normalize_custom_sessions(sessions: list[Session], settings: Settings) -> list[Session]:
    """Re-align user-custom sessions with ``settings``.

    With no custom instruction, custom sessions fall back to AI Assistant and its fixed
    pair. Otherwise they mirror the current default model and instruction. Sessions in
    other modes are returned unchanged.
    """
    target = CapabilityMode.CUSTOM if settings.has_custom_instruction else CapabilityMode.AI_ASSISTANT
    return [
        with_mode(s, target, settings) if s.mode is CapabilityMode.CUSTOM else s
        for s in sessions
    ]


class Workspace:
    """The collection of chat sessions plus the active-session pointer and settings."""

    def __init__(
        self,
        sessions: list[Session] | None = None,
        active_session_id: str | None = None,
        settings: Settings | None = None,
    ):
        self._settings = settings or Settings()
        self._sessions: list[Session] = normalize_custom_sessions(list(sessions or []), self._settings)
        self._active_session_id = active_session_id
        if self._active_session_id is not None and self.get(self._active_session_id) is None:
            self._active_session_id = self._sessions[0].id if self._sessions else None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def sessions(self) -> list[Session]:
        return list(self._sessions)

    @property
    def active_session_id(self) -> str | None:
        return self._active_session_id

    @property
    def active(self) -> Session | None:
        if self._active_session_id is None:
            return None
        return self.get(self._active_session_id)

    def get(self, session_id: str) -> Session | None:
        for session in self._sessions:
            if session.id == session_id:
                return session
        return None

    def require(self, session_id: str) -> Session:
        session = self.get(session_id)
        if session is None:
            raise KeyError(f"Session does not exist: {session_id}")
        return session

    def resolve(self, identifier: str) -> Session | None:
        """Find a session by id, id prefix (with or without "session-"), or case-insensitive title."""
        identifier = identifier.strip()
        if not identifier:
            return None
        exact = self.get(identifier)
        if exact is not None:
            return exact
        matches = [
            s for s in self._sessions
            if s.id.startswith(identifier) or s.id.removeprefix("session-").startswith(identifier)
        ]
        if not matches:
            matches = [s for s in self._sessions if s.title.casefold() == identifier.casefold()]
        if len(matches) > 1:
            raise ValueError(f"Ambiguous session identifier: {identifier!r}")
        return matches[0] if matches else None

    def new_chat(self) -> Session:
        session = create_session(self._settings)
        self._sessions.insert(0, session)
        self._active_session_id = session.id
        logger.info(f"New chat: {session.id} (mode={session.mode.value})")
        return session

    def select(self, session_id: str) -> Session:
        session = self.require(session_id)
        self._active_session_id = session.id
        return session

    def put(self, session: Session) -> None:
        for index, existing in enumerate(self._sessions):
            if existing.id == session.id:
                self._sessions[index] = session
                return
        raise KeyError(f"Session does not exist: {session.id}")

    def rename(self, session_id: str, title: str) -> Session:
        session = replace(self.require(session_id), title=title.strip() or NEW_CHAT_TITLE)
        self.put(session)
        return session

    def change_mode(self, session_id: str, mode: CapabilityMode) -> Session:
        session = with_mode(self.require(session_id), mode, self._settings)
        self.put(session)
        return session

    def delete(self, session_id: str) -> None:
        self.require(session_id)
        self._sessions = [s for s in self._sessions if s.id != session_id]
        logger.info(f"Deleted chat: {session_id}")
        if self._active_session_id != session_id:
            return
        if self._sessions:
            self._active_session_id = self._sessions[0].id
        else:
            self._active_session_id = None
            self.new_chat()

    def apply_settings(self, default_model: str, custom_instruction: str, theme: str | None = None) -> Settings:
        self._settings = Settings(
            default_model=default_model.strip() or self._settings.default_model,
            custom_instruction=custom_instruction,
            theme=theme or self._settings.theme,
        )
        self._sessions = normalize_custom_sessions(self._sessions, self._settings)
        logger.info(
            f"Settings applied: default_model={self._settings.default_model}, "
            f"custom_instruction={'set' if self._settings.has_custom_instruction else 'cleared'}"
        )
        return self._settings

    def to_dict(self) -> dict:
        return {
            "chatSessions": [s.to_dict() for s in self._sessions],
            "activeChatSessionId": self._active_session_id,
            "settings": self._settings.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Workspace:
        return cls(
            sessions=[Session.from_dict(s) for s in data.get("chatSessions") or []],
            active_session_id=data.get("activeChatSessionId"),
            settings=Settings.from_dict(data.get("settings") or {}),
        )
