"""
Memory Context & Governance Engine

把检索到的对话记录转换为有界的生成上下文，并对该上下文窗口做健康诊断与治理决策。
引擎只读取与追加，从不删除、合并或改写已存储的记忆。
"""

from .factory import create_audit_logger, create_engine
from .pipeline import MemoryChatEngine
from .schemas import MemoryChatResult

__all__ = ["MemoryChatEngine", "MemoryChatResult", "create_audit_logger", "create_engine"]
