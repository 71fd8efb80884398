from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

DEFAULT_MODEL = "gemini-2.5-flash"
ATTACHMENT_MODEL = "gemini-2.5-flash"
IMAGE_MODEL = "gemini-2.5-flash-image"


class CapabilityMode(str, Enum):
    AI_ASSISTANT = "AI Assistant"
    STUDY_MODE = "Study Mode"
    CODING_MODE = "Coding Mode"
    FORMAL = "Formal"
    PRECISE = "Precise"
    QUICK_CHAT = "Quick Chat"
    CUSTOM = "Custom"


@dataclass(frozen=True)
class ModeConfig:
    model: str
    instruction: str


@dataclass(frozen=True)
class Settings:
    default_model: str = DEFAULT_MODEL
    custom_instruction: str = ""
    theme: str = "twilight"

    @property
    def has_custom_instruction(self) -> bool:
        return bool(self.custom_instruction.strip())

    def to_dict(self) -> dict:
        return {
            "defaultModel": self.default_model,
            "customInstruction": self.custom_instruction,
            "theme": self.theme,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Settings:
        return cls(
            default_model=str(data.get("defaultModel") or DEFAULT_MODEL),
            custom_instruction=str(data.get("customInstruction") or ""),
            theme=str(data.get("theme") or "twilight"),
        )


CHAT_MODES: MappingProxyType[CapabilityMode, ModeConfig] = MappingProxyType({
    CapabilityMode.AI_ASSISTANT: ModeConfig(
        model="gemini-2.5-flash",
        instruction=(
            "You are a helpful and friendly AI assistant. "
            "Be conversational and provide detailed explanations."
        ),
    ),
    CapabilityMode.STUDY_MODE: ModeConfig(
        model="gemini-2.5-flash",
        instruction=(
            "You are a knowledgeable study partner. "
            "Break down complex topics into simple concepts and quiz the user."
        ),
    ),
    CapabilityMode.CODING_MODE: ModeConfig(
        model="gemini-2.5-pro",
        instruction=(
            "You are an expert coding assistant. Provide clean, efficient, and well-documented code. "
            "Explain complex concepts clearly. When asked to generate code, only output the code "
            "itself inside a formatted code block."
        ),
    ),
    CapabilityMode.FORMAL: ModeConfig(
        model="gemini-2.5-flash",
        instruction=(
            "You are a professional assistant. Your responses should be formal, "
            "well-structured, and use professional language."
        ),
    ),
    CapabilityMode.PRECISE: ModeConfig(
        model="gemini-2.5-flash",
        instruction=(
            "You are a precise and concise AI. "
            "Provide direct, to-the-point answers with minimal fluff."
        ),
    ),
    CapabilityMode.QUICK_CHAT: ModeConfig(
        model="gemini-flash-lite-latest",
        instruction="You are an AI optimized for speed. Provide quick and brief answers.",
    ),
    CapabilityMode.CUSTOM: ModeConfig(
        model="gemini-2.5-flash",
        instruction="Follow the user's custom instructions.",
    ),
})


def resolve_mode_config(mode: CapabilityMode, settings: Settings) -> ModeConfig:
    """Return the (model, instruction) pair a session in ``mode`` must carry.

    User-custom mode mirrors the process-wide settings; every other mode uses its fixed
    table entry.
    """
    if mode is CapabilityMode.CUSTOM:
        return ModeConfig(model=settings.default_model, instruction=settings.custom_instruction)
    return CHAT_MODES[mode]


def parse_mode(value: str) -> CapabilityMode:
    """Match a mode by value or member name, ignoring case, spaces and underscores."""
    wanted = value.strip().lower().replace("_", " ")
    if not wanted:
        raise ValueError("Mode name is required.")
    for mode in CapabilityMode:
        if wanted in (mode.value.lower(), mode.name.lower().replace("_", " ")):
            return mode
    for mode in CapabilityMode:
        if mode.value.lower().startswith(wanted):
            return mode
    raise ValueError(f"Unknown mode: {value!r}. Available: {', '.join(m.value for m in CapabilityMode)}")
