"""
Standard-library bridge.

uvicorn, httpx and LiteLLM log through `logging`. Their records are re-emitted through
structlog so they reach the same sinks in the same shape as engine events.
"""

import logging
from typing import Any, Dict

from .core import get_logger

_BRIDGED = ("uvicorn", "uvicorn.error", "uvicorn.access", "httpx", "httpcore")

# httpx/httpcore log every request at INFO
_QUIETED = {"httpx": logging.WARNING, "httpcore": logging.WARNING}

_MUTED = ("LiteLLM", "LiteLLM Router", "LiteLLM Proxy")


class StructlogBridgeHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        if record.name.startswith("structlog"):
            return
        try:
            fields: Dict[str, Any] = {}
            if record.exc_info:
                fields["exc_info"] = record.exc_info
            get_logger(_short_name(record.name)).log(record.levelno, record.getMessage(), **fields)
        except Exception:
            self.handleError(record)


def _short_name(name: str) -> str:
    """`uvicorn.protocols.http.h11_impl` → `http.h11_impl`"""
    if not name:
        return "stdlib"
    parts = name.split(".")
    return name if len(parts) <= 2 else ".".join(parts[-2:])


def install_stdlib_bridge(level: int) -> None:
    root = logging.getLogger()
    root.handlers = [StructlogBridgeHandler()]
    root.setLevel(level)

    for name in _BRIDGED:
        bridged = logging.getLogger(name)
        bridged.handlers = []
        bridged.propagate = True

    for name, quiet_level in _QUIETED.items():
        logging.getLogger(name).setLevel(quiet_level)

    for name in _MUTED:
        muted = logging.getLogger(name)
        muted.handlers = []
        muted.propagate = False
        muted.setLevel(logging.CRITICAL)
