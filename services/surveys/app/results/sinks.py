"""
Where the results engine sends toasts and finished export files.

Both sinks are fire-and-forget from the session's point of view: ``notify`` never
blocks and never raises into the caller.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Literal, Protocol

logger = logging.getLogger(__name__)

NotificationKind = Literal["success", "error", "warning", "info"]

_LOG_LEVELS: dict[str, int] = {
    "success": logging.INFO,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class Notifier(Protocol):
    def notify(self, message: str, kind: NotificationKind) -> None: ...


class FileSink(Protocol):
    def save(self, data: bytes, filename: str, mime_type: str) -> None: ...


class LoggingNotifier:
    """Default notifier when nothing is listening: toasts go to the log."""

    def notify(self, message: str, kind: NotificationKind) -> None:
        logger.log(_LOG_LEVELS.get(kind, logging.INFO), "[%s] %s", kind, message)


class QueueNotifier:
    """Buffers toasts for a live stream to forward to its client."""

    def __init__(self, queue: asyncio.Queue | None = None) -> None:
        self.queue: asyncio.Queue = queue or asyncio.Queue()

    def notify(self, message: str, kind: NotificationKind) -> None:
        self.queue.put_nowait({"message": message, "kind": kind})


class DirectorySink:
    """Writes exported files into a local directory, creating it on first use."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self.saved: list[Path] = []

    def save(self, data: bytes, filename: str, mime_type: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / filename
        path.write_bytes(data)
        self.saved.append(path)
        logger.info("Saved %s (%s, %d bytes)", path, mime_type, len(data))
