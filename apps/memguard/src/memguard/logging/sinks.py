"""
Log sinks.

Every sink receives the fully processed structlog event dict. The stdio sink renders
either aligned console columns or JSON lines; the file sink always writes JSON lines and
rolls over by size (`memguard.log` → `memguard.log.1` → ...).
"""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, Iterable, List, Optional

import orjson
from structlog.typing import EventDict

from .formatters import ConsoleFormatter


def dumps(event_dict: EventDict) -> str:
    """JSON-encode an event; values orjson cannot encode fall back to `str()`."""
    return orjson.dumps(event_dict, default=str, option=orjson.OPT_UTC_Z | orjson.OPT_NAIVE_UTC).decode()


class BaseSink(ABC):
    @abstractmethod
    def emit(self, event_dict: EventDict) -> None: ...

    def close(self) -> None:
        pass


class StdioSink(BaseSink):
    def __init__(self, *, json_lines: bool = False, stream: Optional[IO[str]] = None) -> None:
        self._json_lines = json_lines
        self._stream = stream or sys.stdout

    def emit(self, event_dict: EventDict) -> None:
        if self._json_lines:
            line = dumps(event_dict)
        else:
            is_tty = getattr(self._stream, "isatty", None)
            line = ConsoleFormatter.format(event_dict, use_color=bool(is_tty and is_tty()))
        self._stream.write(line + "\n")
        self._stream.flush()


class RotatingFileSink(BaseSink):
    """JSON-lines file that rolls over once it grows past `max_bytes`."""

    def __init__(self, path: str | Path, *, max_bytes: int = 10 * 1024 * 1024, backup_count: int = 5) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._max_bytes = max_bytes
        self._backup_count = backup_count
        self._file = self._open()

    def _open(self) -> IO[str]:
        return open(self._path, "a", encoding="utf-8")

    def _backup(self, index: int) -> Path:
        return self._path.with_name(f"{self._path.name}.{index}")

    def emit(self, event_dict: EventDict) -> None:
        self._file.write(dumps(event_dict) + "\n")
        self._file.flush()
        if self._file.tell() > self._max_bytes:
            self._rollover()

    def _rollover(self) -> None:
        self._file.close()
        if self._backup_count == 0:
            self._path.unlink(missing_ok=True)
        else:
            for index in range(self._backup_count - 1, 0, -1):
                if self._backup(index).exists():
                    self._backup(index).replace(self._backup(index + 1))
            self._path.replace(self._backup(1))
        self._file = self._open()

    def close(self) -> None:
        self._file.close()


def build_sinks(
    names: Iterable[str],
    *,
    json_lines: bool,
    file_path: str,
    file_max_bytes: int,
    file_backup_count: int,
) -> List[BaseSink]:
    """
    Raises:
        ValueError: unknown sink name
    """
    sinks: List[BaseSink] = []
    for name in names:
        if name == "stdio":
            sinks.append(StdioSink(json_lines=json_lines))
        elif name == "file":
            sinks.append(RotatingFileSink(file_path, max_bytes=file_max_bytes, backup_count=file_backup_count))
        else:
            raise ValueError(f"Unknown log sink '{name}'")
    return sinks


__all__ = ["BaseSink", "RotatingFileSink", "StdioSink", "build_sinks", "dumps"]
