"""
Memory Chat Pipeline 单元测试

端到端验证单次请求编排：硬守卫、上下文扩展、诊断、治理闸门、试运行与后台审计。
外部存储使用 httpx.MockTransport，生成服务使用 mocked LiteLLM。
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from conftest import CENTRAL_URL, MIRROR_URL, make_record
from memguard.config.governance import GovernanceSettings
from memguard.config.llm import LlmSettings
from memguard.config.store import StoreSettings
from memguard.engine.adapters.http.store import ExecutionMirrorClient, MemoryStoreClient
from memguard.engine.audit import AuditLogger
from memguard.engine.constants import BLOCKED_NO_MEMORY_MESSAGE, NO_REPLY_PLACEHOLDER
from memguard.engine.exceptions import InvalidMessage, MemoryEngineError
from memguard.engine.generation import AnswerGenerator
from memguard.engine.observation import ActivityObservationMonitor
from memguard.engine.pipeline import MemoryChatEngine, validate_message
from memguard.engine.window import WindowFetcher


def _build_engine(
    http_client: httpx.AsyncClient,
    *,
    kill_switch: bool = True,
    short_term_limit: int = 3,
    request_timeout: float = 30.0,
):
    store_settings = StoreSettings(central_url=CENTRAL_URL, mirror_url=MIRROR_URL, short_term_limit=short_term_limit)
    central = MemoryStoreClient(http_client, base_url=CENTRAL_URL)
    fetcher = WindowFetcher(central)
    audit = AuditLogger(central)
    engine = MemoryChatEngine(
        fetcher=fetcher,
        monitor=ActivityObservationMonitor(ExecutionMirrorClient(http_client, base_url=MIRROR_URL), fetcher),
        generator=AnswerGenerator(LlmSettings()),
        audit=audit,
        store_settings=store_settings,
        governance_settings=GovernanceSettings(
            kill_switch_enabled=kill_switch,
            request_timeout_seconds=request_timeout,
        ),
    )
    return engine, audit


def _llm_response(content: str):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


@pytest.fixture
def mock_llm():
    with patch("litellm.acompletion", new_callable=AsyncMock) as mocked:
        mocked.return_value = _llm_response("Follow the rollback plan.")
        yield mocked


@pytest.fixture
def duplicated_history(central_store):
    """6 条仅两种内容的对话：短期 3 条 + 中期 6 条，扩展后上下文 9 条"""
    contents = ["deploy plan", "rollback plan"] * 3
    central_store.records["chat"] = [make_record(content, id=i) for i, content in enumerate(contents)]


@pytest.fixture
def stable_snapshots(central_store):
    central_store.records["observation_snapshot"] = [
        make_record("execution_observation_snapshot", metadata={"execution_observation_score": 0.0}),
        make_record("execution_observation_snapshot", metadata={"execution_observation_score": 0.0}),
    ]


class TestMessageValidation:
    """输入校验测试"""

    @pytest.mark.parametrize("message", [None, 42, ["hi"], {"text": "hi"}, "", "   "])
    def test_rejects_non_text(self, message):
        with pytest.raises(InvalidMessage) as exc_info:
            validate_message(message)
        assert exc_info.value.code == "INVALID_MESSAGE"

    @pytest.mark.asyncio
    async def test_invalid_message_makes_no_external_calls(self, http_client, central_store, mirror_store, mock_llm):
        engine, _ = _build_engine(http_client)
        with pytest.raises(InvalidMessage):
            await engine.respond(123)
        assert central_store.queries == []
        assert mirror_store.queries == []
        mock_llm.assert_not_called()


class TestHardGuard:
    """硬守卫测试：没有外部记忆就不生成回复"""

    @pytest.mark.asyncio
    async def test_empty_short_term_is_blocked(self, http_client, central_store, mock_llm):
        engine, audit = _build_engine(http_client)

        result = await engine.respond("what should we do?")
        await audit.drain()

        assert result.status == "blocked"
        assert result.to_payload() == {
            "status": "blocked",
            "reason": "NO_EXTERNAL_MEMORY",
            "message": BLOCKED_NO_MEMORY_MESSAGE,
        }
        mock_llm.assert_not_called()
        assert central_store.synced == []

    @pytest.mark.asyncio
    async def test_unreachable_store_is_blocked(self, http_client, central_store, mock_llm):
        central_store.fail_with = httpx.ConnectError("refused")
        engine, _ = _build_engine(http_client)

        result = await engine.respond("what should we do?")

        assert result.status == "blocked"
        mock_llm.assert_not_called()


class TestGovernedResponse:
    """完整治理路径测试"""

    @pytest.mark.asyncio
    async def test_inflated_duplicated_context_selects_summarize(
        self, http_client, central_store, duplicated_history, mock_llm
    ):
        """上下文 9 条、2 种内容 → 重复率 0.78、膨胀高、置信度高 → 试运行提名 summarize_mid_term"""
        engine, audit = _build_engine(http_client)

        result = await engine.respond("what is the plan?")
        await audit.drain()
        payload = result.to_payload()

        assert payload["status"] == "success"
        assert payload["reply"] == "Follow the rollback plan."
        assert payload["memory_used"] == 9
        assert payload["memory_health"] == {
            "short_term_size": 3,
            "mid_term_size": 6,
            "context_size": 9,
            "duplicate_ratio": 0.78,
            "inflation_risk": "high",
        }
        assert payload["memory_policies"]["policy_confidence"]["level"] == "high"
        assert [rule["trigger"] for rule in payload["memory_policies"]["policy_rules"]] == [
            "inflation_high",
            "duplicates_detected",
        ]
        assert [item["type"] for item in payload["memory_recommendations"]] == ["compression", "deduplication"]
        assert payload["governance"]["gate"]["allowed"] is True
        assert payload["governance"]["gate"]["reason"] == "CONFIDENCE_HIGH"
        assert payload["governance"]["dry_run"] == {
            "mode": "dry_run",
            "allowed": True,
            "reason": "CONFIDENCE_HIGH",
            "selected_action": "summarize_mid_term",
            "executed": False,
        }

        assert len(central_store.synced_of("chat")) == 1
        assert len(central_store.synced_of("observation_snapshot")) == 1
        assert central_store.synced_of("decision_log")[0]["metadata"]["selected_action"] == "summarize_mid_term"

    @pytest.mark.asyncio
    async def test_distinct_small_context_is_denied_for_low_confidence(
        self, http_client, central_store, stable_snapshots, mock_llm
    ):
        """上下文 4 条且互不相同 → 膨胀低、重复率 0 → 置信度低 → CONFIDENCE_LOW"""
        central_store.records["chat"] = [make_record(f"note {i}") for i in range(4)]
        engine, audit = _build_engine(http_client, short_term_limit=4)

        result = await engine.respond("status?")
        await audit.drain()
        payload = result.to_payload()

        assert payload["memory_used"] == 4
        assert payload["observation_trend"] == "stable"
        assert payload["stability"] == "stable"
        assert payload["memory_health"]["inflation_risk"] == "low"
        assert payload["memory_health"]["duplicate_ratio"] == 0.0
        assert payload["governance"]["gate"] == {
            "allowed": False,
            "reason": "CONFIDENCE_LOW",
            "kill_switch_enabled": True,
            "one_action_guard": True,
            "confidence": "low",
        }
        assert payload["governance"]["dry_run"]["selected_action"] is None
        assert central_store.synced_of("decision_log") == []

    @pytest.mark.asyncio
    async def test_kill_switch_off_denies_even_high_confidence(
        self, http_client, central_store, duplicated_history, mock_llm
    ):
        engine, audit = _build_engine(http_client, kill_switch=False)

        result = await engine.respond("what is the plan?")
        await audit.drain()

        assert result.memory_policies.policy_confidence["level"] == "high"
        assert result.governance.kill_switch_enabled is False
        assert result.governance.gate["reason"] == "KILL_SWITCH_OFF"
        assert result.governance.dry_run["allowed"] is False
        assert result.governance.dry_run["selected_action"] is None
        assert central_store.synced_of("decision_log") == []

    @pytest.mark.asyncio
    async def test_observation_fields_reflect_mirror(self, http_client, central_store, mirror_store, mock_llm):
        central_store.records["chat"] = [make_record("deploy plan")]
        mirror_store.records["execution_log"] = [make_record(f"run {i}") for i in range(3)]
        engine, audit = _build_engine(http_client)

        result = await engine.respond("status?")
        await audit.drain()

        assert result.execution_mirror_used == 3
        assert result.execution_observation_score == 0.3
        assert result.observation.label == "low_activity"
        assert result.stability == "monitor"
        assert result.observation_trend == "unknown"

    @pytest.mark.asyncio
    async def test_generation_receives_assembled_context(self, http_client, central_store, mock_llm):
        central_store.records["chat"] = [make_record("deploy plan"), make_record("rollback plan")]
        engine, audit = _build_engine(http_client)

        await engine.respond("what now?")
        await audit.drain()

        system_prompt = mock_llm.call_args.kwargs["messages"][0]["content"]
        assert "- deploy plan" in system_prompt
        assert "- rollback plan" in system_prompt


class TestDegradation:
    """降级路径测试"""

    @pytest.mark.asyncio
    async def test_generation_failure_still_succeeds(self, http_client, central_store, duplicated_history):
        engine, audit = _build_engine(http_client)
        with patch("litellm.acompletion", new_callable=AsyncMock) as mocked:
            mocked.side_effect = RuntimeError("provider down")
            result = await engine.respond("what is the plan?")
        await audit.drain()

        assert result.status == "success"
        assert result.reply == NO_REPLY_PLACEHOLDER

    @pytest.mark.asyncio
    async def test_audit_failure_does_not_affect_response(self, http_client, central_store, duplicated_history, mock_llm):
        engine, audit = _build_engine(http_client)
        original = central_store.handle

        def reject_writes(request):
            if request.url.path == "/central-sync":
                raise httpx.ConnectError("refused")
            return original(request)

        central_store.handle = reject_writes

        result = await engine.respond("what is the plan?")
        await audit.drain()

        assert result.status == "success"
        assert central_store.synced == []

    @pytest.mark.asyncio
    async def test_request_deadline(self, http_client, central_store, duplicated_history):
        engine, _ = _build_engine(http_client, request_timeout=0.05)

        async def hang(**kwargs):
            await asyncio.sleep(1)

        with patch("litellm.acompletion", new=hang):
            with pytest.raises(MemoryEngineError) as exc_info:
                await engine.respond("what is the plan?")
        assert exc_info.value.code == "REQUEST_TIMEOUT"

    @pytest.mark.asyncio
    async def test_engine_holds_no_state_between_requests(self, http_client, central_store, mock_llm):
        engine, audit = _build_engine(http_client)

        first = await engine.respond("hello")
        central_store.records["chat"] = [make_record("deploy plan")]
        second = await engine.respond("hello")
        await audit.drain()

        assert first.status == "blocked"
        assert second.status == "success"
