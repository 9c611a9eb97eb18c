"""
Memory Store Configuration.

Endpoints and window sizes for the central memory store (source of truth) and the
read-only execution mirror.
"""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .environment import env_files


class StoreSettings(BaseSettings):
    """Central memory store and execution mirror configuration.

    Environment variables use the `MG_STORE_` prefix. The two base URLs also accept
    the bare `CENTRAL_MEMORY_URL` / `EXECUTION_LAYER_URL` names used by the store
    deployment.
    """

    model_config = SettingsConfigDict(
        env_prefix="MG_STORE_",
        env_file=env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    central_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CENTRAL_MEMORY_URL", "MG_STORE_CENTRAL_URL"),
        description="Base URL of the central memory store.",
    )
    mirror_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("EXECUTION_LAYER_URL", "MG_STORE_MIRROR_URL"),
        description="Base URL of the read-only execution mirror.",
    )

    timeout_seconds: float = Field(default=5.0, gt=0, description="Per-call timeout for store reads and writes.")
    read_retries: int = Field(default=0, ge=0, le=5, description="Extra attempts for failed reads (0 = fail open).")
    retry_backoff_seconds: float = Field(default=0.2, ge=0)

    memory_type: str = Field(default="chat", description="Memory kind used for the context windows.")
    short_term_limit: int = Field(default=3, ge=1, le=10)
    mid_term_limit: int = Field(default=10, ge=1, le=10)
    mirror_sample_limit: int = Field(default=3, ge=1, le=10)
    trend_sample_limit: int = Field(default=5, ge=1, le=10)
