"""
Memory Chat Pipeline

单次请求的完整编排：

1. 输入校验（失败即拒绝，不发起任何外部调用）
2. 并发读取：短期窗口、中期窗口、执行镜像计数、观测快照趋势
3. 硬守卫：短期窗口为空时直接返回 blocked，不调用生成服务
4. 上下文组装 → 健康/漂移诊断 → 建议、策略、置信度 → 治理闸门与试运行
5. 生成回复
6. 后台写入对话、诊断快照与试运行决策（不阻塞响应）

引擎在请求之间无状态，所有"记忆"都外置于中央存储。
"""

from __future__ import annotations

import asyncio
from typing import Any

from memguard.config.governance import GovernanceSettings
from memguard.config.store import StoreSettings
from memguard.logging import get_logger

from .audit import AuditLogger
from .constants import BLOCKED_NO_MEMORY_MESSAGE, DEFAULT_CATALOGUE, PolicyCatalogue
from .context import assemble_context
from .exceptions import InvalidMessage, MemoryEngineError
from .generation import AnswerGenerator
from .governance import (
    PolicyRuleMapper,
    analyze_drift,
    analyze_health,
    evaluate_confidence,
    evaluate_gate,
    recommend,
    select_dry_run,
)
from .observation import ActivityObservationMonitor
from .schemas import GovernancePayload, MemoryChatResult, ObservationPayload, PoliciesPayload
from .types import AuditRecord
from .window import WindowFetcher

logger = get_logger("memguard.engine.pipeline")

BLOCKED_NO_EXTERNAL_MEMORY = "NO_EXTERNAL_MEMORY"


def validate_message(message: Any) -> str:
    """消息必须是非空文本

    Raises:
        InvalidMessage: 缺失、非文本或仅含空白
    """
    if not isinstance(message, str) or not message.strip():
        raise InvalidMessage(received_type=type(message).__name__)
    return message


class MemoryChatEngine:
    """记忆上下文与治理决策引擎"""

    def __init__(
        self,
        *,
        fetcher: WindowFetcher,
        monitor: ActivityObservationMonitor,
        generator: AnswerGenerator,
        audit: AuditLogger,
        store_settings: StoreSettings,
        governance_settings: GovernanceSettings,
        catalogue: PolicyCatalogue = DEFAULT_CATALOGUE,
    ) -> None:
        self._fetcher = fetcher
        self._monitor = monitor
        self._generator = generator
        self._audit = audit
        self._store_settings = store_settings
        self._governance = governance_settings
        self._catalogue = catalogue
        self._policy_mapper = PolicyRuleMapper(catalogue)

    @property
    def kill_switch_enabled(self) -> bool:
        return self._governance.kill_switch_enabled

    async def respond(self, message: Any) -> MemoryChatResult:
        """处理一次对话请求

        Raises:
            InvalidMessage: 消息非法
            MemoryEngineError: 超过请求总时限
        """
        text = validate_message(message)
        deadline = self._governance.request_timeout_seconds
        try:
            return await asyncio.wait_for(self._respond(text), timeout=deadline)
        except asyncio.TimeoutError as exc:
            logger.error("memory_chat_deadline_exceeded", timeout=deadline)
            raise MemoryEngineError(
                f"Request exceeded {deadline}s deadline",
                code="REQUEST_TIMEOUT",
                details={"timeout": deadline},
            ) from exc

    async def _respond(self, message: str) -> MemoryChatResult:
        store = self._store_settings

        short_term, mid_term, mirror_count, trend = await asyncio.gather(
            self._fetcher.fetch(store.memory_type, store.short_term_limit),
            self._fetcher.fetch(store.memory_type, store.mid_term_limit),
            self._monitor.mirror_count(),
            self._monitor.trend(),
        )

        if short_term.is_empty:
            logger.warning("memory_chat_blocked", reason=BLOCKED_NO_EXTERNAL_MEMORY)
            return MemoryChatResult(
                status="blocked",
                reason=BLOCKED_NO_EXTERNAL_MEMORY,
                message=BLOCKED_NO_MEMORY_MESSAGE,
            )

        observation = self._monitor.build_signal(mirror_count, trend)
        context = assemble_context(
            short_term,
            mid_term,
            stability=observation.stability,
            trend=observation.trend,
        )

        health = analyze_health(short_term, mid_term, context)
        drift = analyze_drift(short_term, mid_term)
        recommendations = recommend(health, drift)
        policies = self._policy_mapper.evaluate(health, drift)
        confidence = evaluate_confidence(health)

        verdict = evaluate_gate(
            kill_switch_enabled=self._governance.kill_switch_enabled,
            one_action_guard=self._governance.one_action_guard,
            confidence=confidence,
        )
        decision = select_dry_run(verdict, health, self._catalogue)

        logger.info(
            "memory_governance_evaluated",
            context_size=health.context_size,
            context_expanded=context.expanded,
            duplicate_ratio=health.duplicate_ratio,
            inflation_risk=health.inflation_risk,
            topical_drift=drift.topical_drift,
            confidence=confidence.level,
            gate_allowed=verdict.allowed,
            gate_reason=verdict.reason.value,
            selected_action=decision.selected_action,
        )

        reply = await self._generator.generate(message, context, observation)

        self._audit.record_exchange(
            message,
            reply,
            AuditRecord(
                health=health,
                drift=drift,
                confidence=confidence,
                gate=verdict,
                decision=decision,
                observation=observation,
            ),
        )

        return MemoryChatResult(
            status="success",
            memory_used=len(context),
            execution_mirror_used=observation.mirror_count,
            execution_observation_score=observation.score,
            observation=ObservationPayload(
                execution_mirror_used=observation.mirror_count,
                execution_observation_score=observation.score,
                label=observation.label,
            ),
            stability=observation.stability,
            observation_trend=observation.trend,
            memory_health=health.to_dict(),
            memory_drift=drift.to_dict(),
            memory_recommendations=[item.to_dict() for item in recommendations],
            memory_policies=PoliciesPayload(
                policy_rules=policies.to_list(),
                policy_confidence=confidence.to_dict(),
            ),
            governance=GovernancePayload(
                kill_switch_enabled=verdict.kill_switch_enabled,
                gate=verdict.to_dict(),
                dry_run=decision.to_dict(),
            ),
            reply=reply,
        )
