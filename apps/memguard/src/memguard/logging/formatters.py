"""
Console rendering.

    12:04:31.207 | WARNING |       memguard.engine.window | window_fetch_degraded limit=3

Timestamps are shown in local time; level and logger columns are right-aligned to a fixed
width, and long logger names keep their tail.
"""

from __future__ import annotations

from datetime import datetime

from structlog.typing import EventDict

_RESET = "\x1b[0m"
_PALETTE = {
    "DEBUG": "\x1b[36m",
    "INFO": "\x1b[32m",
    "WARNING": "\x1b[33m",
    "ERROR": "\x1b[31m",
    "CRITICAL": "\x1b[1;31m",
    "time": "\x1b[90m",
    "logger": "\x1b[35m",
    "key": "\x1b[34m",
}

# Keys rendered as columns, or carried only in JSON output
_HIDDEN_KEYS = frozenset({"timestamp", "level", "logger", "message", "event", "service", "env"})


def colorize(text: str, color: str) -> str:
    code = _PALETTE.get(color)
    return f"{code}{text}{_RESET}" if code else text


def _tail(text: str, width: int) -> str:
    if width <= 0 or len(text) <= width:
        return text
    return "…" + text[-(width - 1) :]


def _local_time(raw: object) -> str:
    moment = None
    if isinstance(raw, str):
        try:
            moment = datetime.fromisoformat(raw.replace("Z", "+00:00")).astimezone()
        except ValueError:
            moment = None
    moment = moment or datetime.now()
    return moment.strftime("%H:%M:%S.") + f"{moment.microsecond // 1000:03d}"


class ConsoleFormatter:
    LEVEL_WIDTH = 8
    LOGGER_WIDTH = 36
    SEPARATOR = " | "

    @classmethod
    def configure(cls, *, logger_width: int | None = None, separator: str | None = None) -> None:
        if logger_width is not None:
            cls.LOGGER_WIDTH = logger_width
        if separator is not None:
            cls.SEPARATOR = separator

    @classmethod
    def format(cls, event_dict: EventDict, *, use_color: bool = True) -> str:
        paint = colorize if use_color else (lambda text, _color: text)

        level = str(event_dict.get("level", "info")).upper()
        logger = _tail(str(event_dict.get("logger", "root")), cls.LOGGER_WIDTH)
        text = str(event_dict.get("message", event_dict.get("event", "")))

        fields = " ".join(
            f"{paint(key, 'key')}={value}" for key, value in event_dict.items() if key not in _HIDDEN_KEYS
        )

        return cls.SEPARATOR.join(
            [
                paint(_local_time(event_dict.get("timestamp")), "time"),
                paint(level.rjust(cls.LEVEL_WIDTH), level),
                paint(logger.rjust(cls.LOGGER_WIDTH), "logger"),
                f"{text} {fields}" if fields else text,
            ]
        )
