from __future__ import annotations

import asyncio
import sys

_SPINNER_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"


class Spinner:
    """Async spinner that renders on the current line using \\r while a request runs."""

    def __init__(self, prefix: str = "", label: str = " Thinking...", interval: float = 0.08):
        self._prefix = prefix
        self._label = label
        self._interval = interval
        self._task: asyncio.Task | None = None

    async def __aenter__(self) -> Spinner:
        self._task = asyncio.create_task(self._run())
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        clear = " " * (len(self._prefix) + 1 + len(self._label))
        sys.stdout.write("\r" + clear + "\r")
        sys.stdout.flush()

    async def _run(self) -> None:
        i = 0
        try:
            while True:
                frame = _SPINNER_FRAMES[i % len(_SPINNER_FRAMES)] + self._label
                sys.stdout.write("\r" + self._prefix + frame)
                sys.stdout.flush()
                await asyncio.sleep(self._interval)
                i += 1
        except (UnicodeEncodeError, OSError):
            pass  # Terminal can't render the frames
