"""Ring buffer of recent log records, served by ``GET /api/logs``."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime, timezone

PACKAGE_LOGGER = "matchoracle"


@dataclass(frozen=True)
class LogEntry:
    timestamp: str
    level: str
    levelno: int
    logger: str
    message: str


class BufferHandler(logging.Handler):
    """Keeps the last *maxlen* records so the dashboard can show degraded-mode events."""

    def __init__(self, maxlen: int = 200) -> None:
        super().__init__()
        self._buffer: deque[LogEntry] = deque(maxlen=maxlen)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            created = datetime.fromtimestamp(record.created, tz=timezone.utc)
            self._buffer.append(
                LogEntry(
                    timestamp=created.strftime("%Y-%m-%d %H:%M:%S UTC"),
                    level=record.levelname,
                    levelno=record.levelno,
                    logger=record.name,
                    message=self.format(record),
                )
            )
        except Exception:
            self.handleError(record)

    def entries(self, limit: int = 100, min_level: str | None = None) -> list[dict]:
        """Newest first, optionally only records at or above *min_level*."""
        items = list(self._buffer)
        if min_level:
            threshold = logging.getLevelName(min_level.upper())
            if isinstance(threshold, int):
                items = [item for item in items if item.levelno >= threshold]
        items = items[-limit:] if limit > 0 else []
        items.reverse()
        return [asdict(item) for item in items]

    def clear(self) -> None:
        self._buffer.clear()


_handler: BufferHandler | None = None


def get_buffer_handler() -> BufferHandler:
    global _handler
    if _handler is None:
        _handler = BufferHandler(maxlen=200)
        _handler.setFormatter(logging.Formatter("%(message)s"))
        _handler.setLevel(logging.DEBUG)
    return _handler


def install_buffer_handler() -> BufferHandler:
    """Attach the buffer to the package logger; child module loggers propagate to it."""
    handler = get_buffer_handler()
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if handler not in package_logger.handlers:
        package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG)
    return handler
