from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

QUOTA_OR_BILLING_MESSAGE = (
    "You may have exceeded your API quota or have a billing issue. This can happen with "
    "features like image analysis on a free-tier plan. Please check your Google AI Studio "
    "account and ensure billing is enabled for your API key. For more details, visit "
    "[ai.google.dev/gemini-api/docs/billing](https://ai.google.dev/gemini-api/docs/billing)."
)
UNCONFIGURED_MESSAGE = (
    "API key is not configured. Please set the API key environment variable for the "
    "configured provider and restart."
)
DOCUMENT_PARSE_MESSAGE = (
    "Sorry, I couldn't process the PDF file. It might be corrupted or in an unsupported format."
)
GENERIC_PREFIX = "Sorry, I encountered an error."
GENERIC_FALLBACK_DETAIL = "Please try again."

_QUOTA_MARKERS = ("quota", "billing")


class OmniChatError(Exception):
    pass


class UnconfiguredError(OmniChatError):
    def __init__(self, env_var: str = ""):
        self.env_var = env_var
        detail = f" ({env_var})" if env_var else ""
        super().__init__(f"API key is not set{detail}.")


class DocumentParseError(OmniChatError):
    pass


class UnsupportedAttachmentError(OmniChatError):
    pass


class UnsupportedCapabilityError(OmniChatError):
    pass


class SessionStateError(OmniChatError):
    """Raised when an operation's precondition on the message log does not hold."""


class SessionBusyError(SessionStateError):
    pass


class ErrorKind(str, Enum):
    QUOTA_OR_BILLING = "QuotaOrBilling"
    UNCONFIGURED = "Unconfigured"
    DOCUMENT_PARSE = "DocumentParseError"
    GENERIC = "Generic"


@dataclass(frozen=True)
class ClassifiedError:
    kind: ErrorKind
    message: str
    detail: str = ""

    def render(self, prefix: str = GENERIC_PREFIX) -> str:
        """Text for a synthesized error message; only generic failures take ``prefix``."""
        if self.kind is ErrorKind.GENERIC:
            return f"{prefix} {self.detail or GENERIC_FALLBACK_DETAIL}"
        return self.message


def classify_error(error: object) -> ClassifiedError:
    if isinstance(error, UnconfiguredError):
        return ClassifiedError(ErrorKind.UNCONFIGURED, UNCONFIGURED_MESSAGE, str(error))
    if isinstance(error, DocumentParseError):
        return ClassifiedError(ErrorKind.DOCUMENT_PARSE, DOCUMENT_PARSE_MESSAGE, str(error))

    detail = _error_text(error)
    haystacks = (detail, _error_name(error), _safe_str(error))
    if any(marker in text.lower() for text in haystacks for marker in _QUOTA_MARKERS):
        return ClassifiedError(ErrorKind.QUOTA_OR_BILLING, QUOTA_OR_BILLING_MESSAGE, detail)

    return ClassifiedError(
        ErrorKind.GENERIC,
        f"{GENERIC_PREFIX} {detail or GENERIC_FALLBACK_DETAIL}",
        detail,
    )


def _error_text(error: object) -> str:
    if error is None:
        return ""
    if isinstance(error, str):
        return error.strip()
    if isinstance(error, dict):
        message = error.get("message")
        return str(message).strip() if message else ""
    message = getattr(error, "message", None)
    if isinstance(message, str) and message.strip():
        return message.strip()
    if isinstance(error, BaseException):
        return _safe_str(error).strip()
    return ""


def _error_name(error: object) -> str:
    if isinstance(error, dict):
        return str(error.get("name") or "")
    name = getattr(error, "name", None)
    if isinstance(name, str):
        return name
    if isinstance(error, BaseException):
        return type(error).__name__
    return ""


def _safe_str(error: object) -> str:
    try:
        return str(error)
    except Exception:
        return repr(error)
