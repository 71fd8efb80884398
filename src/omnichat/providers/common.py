from __future__ import annotations

from loguru import logger
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential


def _on_retry(retry_state) -> None:
    attempt = retry_state.attempt_number
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    reason = type(exc).__name__ if exc else "Unknown"
    logger.warning(f"{reason}. Retrying in {wait:.0f}s (attempt {attempt})...")


def default_retry_kwargs(exception_types: tuple[type[BaseException], ...], max_attempts: int = 1) -> dict:
    return {
        "retry": retry_if_exception_type(exception_types),
        "wait": wait_exponential(multiplier=10, min=10, max=320),
        "stop": stop_after_attempt(max(1, max_attempts)),
        "before_sleep": _on_retry,
        "reraise": True,
    }


def async_retrying(exception_types: tuple[type[BaseException], ...], max_attempts: int = 1) -> AsyncRetrying:
    return AsyncRetrying(**default_retry_kwargs(exception_types, max_attempts))


def resolve_model(requested: str, overrides: dict[str, str], fallback: str, native_prefix: str | None = None) -> str:
    """Map a mode's model id onto one the provider serves.

    Explicit overrides win. Ids that belong to another vendor (anything not starting with
    ``native_prefix``) fall back to the provider default.
    """
    if requested in overrides:
        return overrides[requested]
    if native_prefix is None or requested.startswith(native_prefix):
        return requested
    return fallback
