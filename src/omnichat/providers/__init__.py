from omnichat.providers.common import async_retrying, default_retry_kwargs, resolve_model

__all__ = [
    "async_retrying",
    "default_retry_kwargs",
    "resolve_model",
]
