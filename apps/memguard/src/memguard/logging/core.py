"""
structlog wiring.

Processor chain: level, timestamp, logger name, service context, message key, exception
info. The last processor fans the finished event out to every configured sink and hands
structlog an empty string, so structlog's own logger never prints.

Loggers are created with `get_logger("memguard.engine.window")` and called with a
snake_case event name plus keyword fields:

    logger.warning("window_fetch_degraded", memory_type="chat", limit=3)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional

import structlog
from structlog.typing import EventDict, WrappedLogger

from .formatters import ConsoleFormatter
from .sinks import BaseSink, build_sinks

if TYPE_CHECKING:
    from memguard.config.logging import LoggingSettings

_sinks: List[BaseSink] = []
_service_context: Dict[str, str] = {}


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(_name=name or "root")


# =============================================================================
# Processors
# =============================================================================


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def add_logger_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["logger"] = event_dict.pop("_name", "root")
    return event_dict


def add_service_context(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp every event with the service identity set at configuration time."""
    for key, value in _service_context.items():
        event_dict.setdefault(key, value)
    return event_dict


def rename_event_key(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


def fan_out(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> str:
    for sink in _sinks:
        try:
            sink.emit(event_dict)
        except Exception:
            pass  # sink failures stay inside the logging layer
    return ""


# =============================================================================
# Configuration
# =============================================================================


def configure_logging(
    *,
    level: str = "INFO",
    sinks: Iterable[str] = ("stdio",),
    fmt: str = "console",
    file_path: str = "logs/memguard.log",
    file_max_bytes: int = 10 * 1024 * 1024,
    file_backup_count: int = 5,
    service: Optional[Mapping[str, str]] = None,
) -> None:
    """
    Configure structlog and route stdlib logging through the same sinks.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        sinks: Sink names (stdio, file)
        fmt: Stdio format (console, json); the file sink is always JSON
        file_path: Target of the file sink
        file_max_bytes: Size at which the file sink rolls over
        file_backup_count: Rolled-over files to keep
        service: Fields added to every event, e.g. {"service": "memguard", "env": "production"}

    Raises:
        ValueError: unknown sink name
    """
    from .interceptors import install_stdlib_bridge

    new_sinks = build_sinks(
        list(sinks),
        json_lines=fmt.lower() == "json",
        file_path=file_path,
        file_max_bytes=file_max_bytes,
        file_backup_count=file_backup_count,
    )
    for sink in _sinks:
        sink.close()
    _sinks[:] = new_sinks

    _service_context.clear()
    _service_context.update(service or {})

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            add_timestamp,
            add_logger_name,
            add_service_context,
            rename_event_key,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            fan_out,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.ReturnLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    install_stdlib_bridge(numeric_level)


def configure_logging_from_settings(
    logging_settings: "LoggingSettings",
    *,
    service: Optional[Mapping[str, str]] = None,
) -> None:
    ConsoleFormatter.configure(
        logger_width=logging_settings.console_logger_width,
        separator=logging_settings.console_separator,
    )
    configure_logging(
        level=logging_settings.level.value,
        sinks=logging_settings.sink_names,
        fmt=logging_settings.format.value,
        file_path=logging_settings.file_path,
        file_max_bytes=logging_settings.file_max_bytes,
        file_backup_count=logging_settings.file_backup_count,
        service=service,
    )
