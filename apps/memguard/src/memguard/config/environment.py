"""
Deployment Environment.

`MG_ENV` names the deployment stage. It also selects the `.env` overlay files that every
settings class reads, so one variable switches a whole deployment profile.
"""

import os
from typing import Literal, Optional, Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


Environment = Literal["development", "testing", "staging", "production"]

ENV_VARIABLE = "MG_ENV"


def env_files(env: Optional[str] = None) -> Tuple[str, ...]:
    """Overlay files for a stage, lowest precedence first."""
    env = env or os.getenv(ENV_VARIABLE, "development")
    return (".env", ".env.local", f".env.{env}", f".env.{env}.local")


class EnvironmentSettings(BaseSettings):
    """Deployment stage (`MG_ENV`)."""

    model_config = SettingsConfigDict(
        env_prefix="MG_",
        env_file=env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    env: Environment = Field(default="development", description="Deployment stage")

    @property
    def is_production(self) -> bool:
        return self.env == "production"
