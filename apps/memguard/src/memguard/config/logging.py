"""
Logging Configuration.

`MG_LOG_SINKS` is a comma-separated list (`stdio`, `file`). The console layout options only
affect the stdio sink in console format; the file sink always writes JSON lines.
"""

from enum import Enum
from typing import Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .environment import env_files


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    CONSOLE = "console"
    JSON = "json"


class LoggingSettings(BaseSettings):
    """Log level, sinks and output layout (`MG_LOG_`)."""

    model_config = SettingsConfigDict(
        env_prefix="MG_LOG_",
        env_file=env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    level: LogLevel = LogLevel.INFO
    sinks: str = Field(default="stdio", description="Comma-separated sink names")
    format: LogFormat = Field(default=LogFormat.CONSOLE, description="Stdio output format")

    file_path: str = "logs/memguard.log"
    file_max_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    file_backup_count: int = Field(default=5, ge=0)

    console_logger_width: int = Field(default=36, ge=0)
    console_separator: str = " | "

    @property
    def sink_names(self) -> Tuple[str, ...]:
        return tuple(name.strip().lower() for name in self.sinks.split(",") if name.strip())
