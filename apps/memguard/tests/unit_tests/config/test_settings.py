"""
Settings 单元测试

测试各配置域的默认值、环境变量前缀与别名，以及组合 Settings 的懒加载缓存。
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from memguard.config import Settings, env_files
from memguard.config.governance import GovernanceSettings
from memguard.config.llm import LlmSettings, LlmVendor
from memguard.config.logging import LogFormat, LoggingSettings, LogLevel
from memguard.config.store import StoreSettings

_STORE_ENV = (
    "CENTRAL_MEMORY_URL",
    "EXECUTION_LAYER_URL",
    "MG_STORE_CENTRAL_URL",
    "MG_STORE_MIRROR_URL",
    "MG_STORE_READ_RETRIES",
    "MG_STORE_SHORT_TERM_LIMIT",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in _STORE_ENV + ("MG_GOV_KILL_SWITCH_ENABLED", "MG_LLM_VENDOR", "MG_LLM_MODEL_NAME", "MG_LOG_LEVEL", "MG_LOG_SINKS"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestStoreSettings:
    """存储配置测试"""

    def test_defaults(self, clean_env):
        store = StoreSettings()
        assert store.central_url is None
        assert store.mirror_url is None
        assert store.read_retries == 0
        assert store.short_term_limit == 3
        assert store.mid_term_limit == 10
        assert store.mirror_sample_limit == 3
        assert store.memory_type == "chat"

    def test_bare_deployment_variables(self, clean_env):
        clean_env.setenv("CENTRAL_MEMORY_URL", "http://central:8080")
        clean_env.setenv("EXECUTION_LAYER_URL", "http://mirror:8080")
        store = StoreSettings()
        assert store.central_url == "http://central:8080"
        assert store.mirror_url == "http://mirror:8080"

    def test_prefixed_variables(self, clean_env):
        clean_env.setenv("MG_STORE_CENTRAL_URL", "http://central.internal")
        clean_env.setenv("MG_STORE_READ_RETRIES", "2")
        store = StoreSettings()
        assert store.central_url == "http://central.internal"
        assert store.read_retries == 2

    def test_window_limits_are_capped(self, clean_env):
        with pytest.raises(ValidationError):
            StoreSettings(short_term_limit=11)
        with pytest.raises(ValidationError):
            StoreSettings(read_retries=6)

    def test_frozen(self, clean_env):
        store = StoreSettings()
        with pytest.raises(ValidationError):
            store.short_term_limit = 5


class TestGovernanceSettings:
    """治理配置测试"""

    def test_kill_switch_defaults_off(self, clean_env):
        governance = GovernanceSettings()
        assert governance.kill_switch_enabled is False
        assert governance.one_action_guard is True
        assert governance.audit_max_pending == 64

    def test_kill_switch_from_env(self, clean_env):
        clean_env.setenv("MG_GOV_KILL_SWITCH_ENABLED", "true")
        assert GovernanceSettings().kill_switch_enabled is True


class TestLlmSettings:
    """生成服务配置测试"""

    def test_full_model_name(self, clean_env):
        assert LlmSettings().full_model_name == "openai/gpt-4.1-mini"
        assert LlmSettings(vendor=LlmVendor.ANTHROPIC, model_name="claude-x").full_model_name == "anthropic/claude-x"
        assert LlmSettings(model_name="ollama/llama3").full_model_name == "ollama/llama3"

    def test_litellm_kwargs_only_include_set_values(self, clean_env):
        assert LlmSettings().to_litellm_kwargs() == {"temperature": 0.7}
        proxied = LlmSettings(api_base="http://llm-proxy:4000", api_key="sk-test").to_litellm_kwargs()
        assert proxied["api_base"] == "http://llm-proxy:4000"
        assert proxied["api_key"] == "sk-test"
        kwargs = LlmSettings(max_tokens=256, top_p=0.9).to_litellm_kwargs()
        assert kwargs["max_tokens"] == 256
        assert kwargs["top_p"] == 0.9

    def test_zai_drops_unsupported_params(self, clean_env):
        assert LlmSettings(vendor=LlmVendor.ZAI, model_name="glm-4").to_litellm_kwargs()["drop_params"] is True
        assert LlmSettings(drop_params=False, model_name="glm-4").to_litellm_kwargs()["drop_params"] is False


class TestLoggingSettings:
    """日志配置测试"""

    def test_level_from_env(self, clean_env):
        clean_env.setenv("MG_LOG_LEVEL", "DEBUG")
        assert LoggingSettings().level == LogLevel.DEBUG

    def test_defaults(self, clean_env):
        logging_settings = LoggingSettings()
        assert logging_settings.format == LogFormat.CONSOLE
        assert logging_settings.sink_names == ("stdio",)

    def test_sink_list_is_parsed(self, clean_env):
        clean_env.setenv("MG_LOG_SINKS", "stdio, FILE")
        assert LoggingSettings().sink_names == ("stdio", "file")


class TestCompositeSettings:
    """组合配置测试"""

    def test_sub_settings_are_cached(self, clean_env):
        config = Settings()
        assert config.store is config.store
        assert config.governance is config.governance

    def test_app_name(self, clean_env):
        assert Settings().app_name == "memguard"

    def test_env_files_follow_stage(self):
        assert env_files("staging") == (".env", ".env.local", ".env.staging", ".env.staging.local")
