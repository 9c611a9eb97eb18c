"""
HTTP Surface Configuration.
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .environment import env_files


class AppSettings(BaseSettings):
    """Service name, bind address and CORS origins (`MG_APP_`)."""

    model_config = SettingsConfigDict(
        env_prefix="MG_APP_",
        env_file=env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    name: str = "memguard"
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
