"""
Governance Configuration.

Process-wide switches for the autonomous-action path and the audit writer.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .environment import env_files


class GovernanceSettings(BaseSettings):
    """Kill switch, pilot guards and audit bounds."""

    model_config = SettingsConfigDict(
        env_prefix="MG_GOV_",
        env_file=env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    kill_switch_enabled: bool = Field(
        default=False,
        description="Must be on for any autonomous action to be considered at all.",
    )
    one_action_guard: bool = Field(
        default=True,
        description="At most one action per request (pilot mode keeps this on).",
    )

    audit_max_pending: int = Field(default=64, ge=1, description="Upper bound on in-flight audit writes.")
    audit_drain_timeout_seconds: float = Field(default=5.0, ge=0)
    request_timeout_seconds: float = Field(default=30.0, gt=0, description="Overall per-request deadline.")
