"""
memguard configuration.

One composite `Settings` groups independent domains, each read from its own prefix:

    MG_ENV       environment   deployment stage and .env overlays
    MG_APP_      app           HTTP surface
    MG_LOG_      logging       level, sinks, output format
    MG_STORE_    store         central store and execution mirror, window sizes
    MG_LLM_      llm           generation model
    MG_GOV_      governance    kill switch, pilot guards, audit bounds

Overlay files are read in the order given by `env_files()`; later files win:
`.env`, `.env.local`, `.env.{MG_ENV}`, `.env.{MG_ENV}.local`.

Usage:
    from memguard.config import settings

    settings.store.central_url
    settings.governance.kill_switch_enabled
    settings.llm.to_litellm_kwargs()
"""

from functools import cached_property

from pydantic_settings import BaseSettings, SettingsConfigDict

from .app import AppSettings
from .environment import EnvironmentSettings, env_files
from .governance import GovernanceSettings
from .llm import LlmSettings
from .logging import LoggingSettings
from .store import StoreSettings


class Settings(BaseSettings):
    """
    Composite settings.

    Each domain is read on first access and then reused, so every component of one process
    shares the same frozen view.
    """

    model_config = SettingsConfigDict(
        env_file=env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @cached_property
    def environment(self) -> EnvironmentSettings:
        return EnvironmentSettings()

    @cached_property
    def app(self) -> AppSettings:
        return AppSettings()

    @cached_property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()

    @cached_property
    def store(self) -> StoreSettings:
        return StoreSettings()

    @cached_property
    def llm(self) -> LlmSettings:
        return LlmSettings()

    @cached_property
    def governance(self) -> GovernanceSettings:
        return GovernanceSettings()

    @property
    def app_name(self) -> str:
        return self.app.name


settings = Settings()

__all__ = [
    "Settings",
    "settings",
    "env_files",
    "AppSettings",
    "EnvironmentSettings",
    "GovernanceSettings",
    "LlmSettings",
    "LoggingSettings",
    "StoreSettings",
]
