"""
Engine 统一异常体系

按输入校验、写入校验、上游基础设施三个维度划分。
上游异常只在适配层内部流转，由拉取器、观测器和生成器转换为安全默认值。
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class MemoryEngineError(Exception):
    """Engine 基础异常类

    所有引擎异常的根节点，携带稳定的错误码与结构化细节。
    """

    def __init__(
        self,
        message: str,
        *,
        code: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}


class InvalidMessage(MemoryEngineError):
    """请求消息缺失或不是文本，在任何外部调用之前拒绝"""

    def __init__(self, *, received_type: str) -> None:
        super().__init__(
            "Invalid message",
            code="INVALID_MESSAGE",
            details={"received_type": received_type},
        )


class InvalidMemoryRecord(MemoryEngineError):
    """写入记录的 (memory_type, entity_type) 组合不在白名单中"""

    def __init__(self, *, memory_type: str, entity_type: str) -> None:
        super().__init__(
            f"Memory type '{memory_type}' is not allowed with entity type '{entity_type}'",
            code="INVALID_MEMORY_RECORD",
            details={"memory_type": memory_type, "entity_type": entity_type},
        )


class UpstreamUnavailable(MemoryEngineError):
    """外部记忆存储或执行镜像不可达、超时或返回了无法解析的内容"""

    def __init__(self, *, endpoint: str, reason: str) -> None:
        super().__init__(
            f"Upstream '{endpoint}' unavailable: {reason}",
            code="UPSTREAM_UNAVAILABLE",
            details={"endpoint": endpoint, "reason": reason},
        )
