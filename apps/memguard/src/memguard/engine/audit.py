"""
Audit / Decision Logger

尽力而为、非阻塞地把对话、诊断快照与试运行决策追加到中央记忆存储。

- 每次写入都作为独立后台任务调度，关键路径从不等待
- 在途任务数量有上限；达到上限时新写入被丢弃而不是阻塞
- 写入失败只记日志，永不传播到调用方
- 写入前按白名单校验 (memory_type, entity_type)，非法组合在写入边界被丢弃
- 进程退出前通过 drain() 等待在途写入完成
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Set

from memguard.logging import get_logger

from .adapters.http.store import MemoryStoreClient
from .constants import (
    DEFAULT_SCHEMA,
    ENTITY_TYPE_CONVERSATION,
    ENTITY_TYPE_GOVERNANCE,
    ENTITY_TYPE_SYSTEM_HEALTH,
    MEMORY_TYPE_CHAT,
    MEMORY_TYPE_DECISION_LOG,
    MEMORY_TYPE_OBSERVATION_SNAPSHOT,
    RECORD_STATUS_ACTIVE,
    MemorySchema,
)
from .exceptions import InvalidMemoryRecord, UpstreamUnavailable
from .types import AuditRecord

logger = get_logger("memguard.engine.audit")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLogger:
    """审计写入器

    Args:
        store: 中央记忆存储客户端
        schema: 记忆类型白名单
        max_pending: 在途写入任务上限
        source: 写入记录的来源标识
    """

    def __init__(
        self,
        store: MemoryStoreClient,
        *,
        schema: MemorySchema = DEFAULT_SCHEMA,
        max_pending: int = 64,
        source: str = "memguard.memory_chat",
    ) -> None:
        self._store = store
        self._schema = schema
        self._max_pending = max_pending
        self._source = source
        self._pending: Set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def build_record(
        self,
        *,
        memory_type: str,
        entity_type: str,
        content: str,
        metadata: Dict[str, Any],
    ) -> Dict[str, Any]:
        """构造待写入记录

        Raises:
            InvalidMemoryRecord: 组合不在白名单中
        """
        if not self._schema.is_allowed(memory_type, entity_type):
            raise InvalidMemoryRecord(memory_type=memory_type, entity_type=entity_type)
        return {
            "memory_type": memory_type,
            "entity_type": entity_type,
            "status": RECORD_STATUS_ACTIVE,
            "content": content,
            "metadata": {"schema_version": self._schema.version, "source": self._source, **metadata},
        }

    def submit(
        self,
        *,
        memory_type: str,
        entity_type: str,
        content: str,
        metadata: Dict[str, Any],
    ) -> Optional[asyncio.Task[None]]:
        """调度一次后台写入；记录被拒绝或达到上限时返回 None"""
        try:
            record = self.build_record(
                memory_type=memory_type,
                entity_type=entity_type,
                content=content,
                metadata=metadata,
            )
        except InvalidMemoryRecord as exc:
            logger.debug("audit_record_rejected", code=exc.code, **exc.details)
            return None

        if len(self._pending) >= self._max_pending:
            logger.warning("audit_write_dropped", memory_type=memory_type, pending=len(self._pending))
            return None

        task = asyncio.create_task(self._write(record), name=f"audit:{memory_type}")
        self._pending.add(task)
        task.add_done_callback(self._on_done)
        return task

    async def _write(self, record: Dict[str, Any]) -> None:
        try:
            await self._store.sync(record)
        except UpstreamUnavailable as exc:
            logger.warning("audit_write_failed", memory_type=record["memory_type"], error=str(exc))
            return
        logger.debug("audit_write_completed", memory_type=record["memory_type"])

    def _on_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("audit_write_crashed", task=task.get_name(), error=str(exc))

    # ------------------------------------------------------------------
    # 记录类型
    # ------------------------------------------------------------------

    def log_chat(self, message: str, reply: str) -> Optional[asyncio.Task[None]]:
        return self.submit(
            memory_type=MEMORY_TYPE_CHAT,
            entity_type=ENTITY_TYPE_CONVERSATION,
            content=message,
            metadata={"response": reply, "saved_at": _now_iso()},
        )

    def log_snapshot(self, audit: AuditRecord) -> Optional[asyncio.Task[None]]:
        return self.submit(
            memory_type=MEMORY_TYPE_OBSERVATION_SNAPSHOT,
            entity_type=ENTITY_TYPE_SYSTEM_HEALTH,
            content="execution_observation_snapshot",
            metadata={
                "execution_mirror_used": audit.observation.mirror_count,
                "execution_observation_score": audit.observation.score,
                "stability": audit.observation.stability,
                "label": audit.observation.label,
                "observation_trend": audit.observation.trend,
                "memory_health": audit.health.to_dict(),
                "memory_drift": audit.drift.to_dict(),
                "policy_confidence": audit.confidence.to_dict(),
                "gate": audit.gate.to_dict(),
                "dry_run": audit.decision.to_dict(),
                "captured_at": audit.captured_at.isoformat(),
            },
        )

    def log_decision(self, audit: AuditRecord) -> Optional[asyncio.Task[None]]:
        if audit.decision.selected_action is None:
            return None
        return self.submit(
            memory_type=MEMORY_TYPE_DECISION_LOG,
            entity_type=ENTITY_TYPE_GOVERNANCE,
            content="dry_run_decision",
            metadata={
                "selected_action": audit.decision.selected_action,
                "reason": audit.decision.reason.value,
                "confidence": audit.confidence.level,
                "mode": "dry_run",
                "executed": False,
                "decided_at": audit.captured_at.isoformat(),
            },
        )

    def record_exchange(self, message: str, reply: str, audit: AuditRecord) -> None:
        self.log_chat(message, reply)
        self.log_snapshot(audit)
        self.log_decision(audit)

    async def drain(self, timeout: float = 5.0) -> None:
        """等待在途写入完成，超时后取消剩余任务"""
        if not self._pending:
            return
        pending = set(self._pending)
        logger.info("audit_drain_started", pending=len(pending), timeout=timeout)
        _, still_running = await asyncio.wait(pending, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)
        logger.info("audit_drain_completed", cancelled=len(still_running))
