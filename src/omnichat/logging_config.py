import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from loguru import logger


@runtime_checkable
class LogConsumer(Protocol):
    only: str | None

    def sink(self) -> Any: ...
    def options(self) -> dict[str, Any]: ...
    def describe(self, level: str) -> str: ...


@dataclass
class ConsoleLogConsumer:
    stream: str = "stderr"
    only: str | None = None  # module prefix, e.g. "omnichat.providers"

    def sink(self) -> Any:
        return sys.stdout if self.stream == "stdout" else sys.stderr

    def options(self) -> dict[str, Any]:
        return {"format": "<level>{level:<8}</level> | <cyan>{name}</cyan> - <level>{message}</level>"}

    def describe(self, level: str) -> str:
        stream = "stdout" if self.stream == "stdout" else "stderr"
        scope = f", {self.only}" if self.only else ""
        return f"console ({stream}, {level}{scope})"


@dataclass
class FileLogConsumer:
    path: str = "omnichat.log"
    rotation: str = "10 MB"
    retention: int = 3
    serialize: bool = False
    only: str | None = None

    def sink(self) -> Any:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        return self.path

    def options(self) -> dict[str, Any]:
        return {
            "format": "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} - {message}",
            "rotation": self.rotation,
            "retention": self.retention,
            "serialize": self.serialize,
            "encoding": "utf-8",
        }

    def describe(self, level: str) -> str:
        fmt = ", json" if self.serialize else ""
        return f"file ({self.path}, {level}{fmt})"


_CONSUMER_TYPES: dict[str, type] = {
    "console": ConsoleLogConsumer,
    "file": FileLogConsumer,
}

# The REPL owns stdout, so the console only shows warnings and above unless configured.
_DEFAULT_CONSUMERS = [
    {"type": "console", "level": "WARNING"},
    {"type": "file"},
]


def setup_logging(
    level: str = "INFO",
    consumers: list[dict[str, Any]] | None = None,
) -> list[str]:
    """Replace all loguru sinks with the configured consumers.

    Each entry of ``consumers`` is a ``LogConsumers`` config block: ``type`` picks the
    consumer, ``level`` overrides the global level, the remaining keys are passed to the
    consumer. Returns a description of each registered sink.
    """
    logger.remove()

    descriptions: list[str] = []
    for config in _DEFAULT_CONSUMERS if consumers is None else consumers:
        sink_type = config.get("type", "")
        cls = _CONSUMER_TYPES.get(sink_type)
        if cls is None:
            logger.warning(f"Unknown log consumer type: {sink_type!r}")
            continue

        try:
            consumer = cls(**{k: v for k, v in config.items() if k not in ("type", "level")})
        except TypeError as ex:
            logger.warning(f"Invalid {sink_type} log consumer settings: {ex}")
            continue

        sink_level = config.get("level", level)
        logger.add(consumer.sink(), level=sink_level, filter=consumer.only, **consumer.options())
        descriptions.append(consumer.describe(sink_level))

    return descriptions
