"""
Health Analyzer

对组装后的上下文计算重复率与膨胀风险。纯函数，无 I/O。
"""

from __future__ import annotations

from ..constants import INFLATION_HIGH_SIZE, INFLATION_MEDIUM_SIZE
from ..types import AssembledContext, HealthSnapshot, MemoryWindow, RiskLevel


def duplicate_ratio(contents: list[str]) -> float:
    """(n - distinct) / n，n=0 时为 0，保留两位小数"""
    total = len(contents)
    if total == 0:
        return 0.0
    return round((total - len(set(contents))) / total, 2)


def inflation_risk(context_size: int) -> RiskLevel:
    if context_size >= INFLATION_HIGH_SIZE:
        return "high"
    if context_size >= INFLATION_MEDIUM_SIZE:
        return "medium"
    return "low"


def analyze_health(
    short_term: MemoryWindow,
    mid_term: MemoryWindow,
    context: AssembledContext,
) -> HealthSnapshot:
    size = len(context)
    return HealthSnapshot(
        short_term_size=len(short_term),
        mid_term_size=len(mid_term),
        context_size=size,
        duplicate_ratio=duplicate_ratio(context.contents),
        inflation_risk=inflation_risk(size),
    )
