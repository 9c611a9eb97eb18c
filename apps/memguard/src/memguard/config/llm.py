"""
Generation Service Configuration.

The reply generator reaches its model through LiteLLM. A vendor plus a model name select
the provider; `api_base` and `api_key` point at a self-hosted or proxied endpoint when
the provider's defaults do not apply.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .environment import env_files


class LlmVendor(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"
    ZAI = "zai"
    DEEPSEEK = "deepseek"
    OLLAMA = "ollama"


# Vendors that reject sampling parameters they do not recognise
_STRICT_PARAM_VENDORS = frozenset({LlmVendor.ZAI})


class LlmSettings(BaseSettings):
    """Generation model and sampling options (`MG_LLM_`)."""

    model_config = SettingsConfigDict(
        env_prefix="MG_LLM_",
        env_file=env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    vendor: LlmVendor = LlmVendor.OPENAI
    model_name: str = Field(default="gpt-4.1-mini", description="Bare model id or a full 'vendor/model' string")
    api_base: Optional[str] = Field(default=None, description="Override the provider endpoint")
    api_key: Optional[SecretStr] = None

    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, gt=0)
    top_p: Optional[float] = Field(default=None, gt=0.0, le=1.0)
    drop_params: Optional[bool] = None

    timeout_seconds: float = Field(default=20.0, gt=0, description="Upper bound for one completion call")

    @property
    def full_model_name(self) -> str:
        """LiteLLM model string, e.g. 'openai/gpt-4.1-mini'."""
        if "/" in self.model_name:
            return self.model_name
        return f"{self.vendor.value}/{self.model_name}"

    @property
    def drops_unsupported_params(self) -> bool:
        if self.drop_params is not None:
            return self.drop_params
        return self.vendor in _STRICT_PARAM_VENDORS or "glm" in self.model_name.lower()

    def to_litellm_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for `litellm.acompletion`, minus `model` and `messages`."""
        kwargs: Dict[str, Any] = {"temperature": self.temperature}
        optional = {
            "max_tokens": self.max_tokens,
            "top_p": self.top_p,
            "api_base": self.api_base,
            "api_key": self.api_key.get_secret_value() if self.api_key else None,
        }
        kwargs.update({key: value for key, value in optional.items() if value is not None})
        if self.drop_params is not None or self.drops_unsupported_params:
            kwargs["drop_params"] = self.drops_unsupported_params
        return kwargs
