"""
Structured logging for memguard.

structlog processes every event once; the result fans out to the configured sinks:
- stdio: aligned console columns or JSON lines
- file: JSON lines with size-based rollover

Third-party stdlib loggers (uvicorn, httpx) are bridged into the same pipeline.
"""

from .core import configure_logging, configure_logging_from_settings, get_logger

__all__ = ["configure_logging", "configure_logging_from_settings", "get_logger"]
