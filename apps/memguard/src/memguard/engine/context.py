"""
Context Assembler

以短期窗口为起点；当系统看起来不稳定、观测不足，或短期上下文过薄时，
追加中期窗口为生成步骤提供更多历史。
"""

from __future__ import annotations

from typing import List

from .constants import THIN_CONTEXT_THRESHOLD
from .types import AssembledContext, MemoryWindow, Stability, Trend


def assemble_context(
    short_term: MemoryWindow,
    mid_term: MemoryWindow,
    *,
    stability: Stability,
    trend: Trend,
) -> AssembledContext:
    reasons: List[str] = []
    if stability != "stable":
        reasons.append(f"stability_{stability}")
    if trend != "stable":
        reasons.append(f"trend_{trend}")
    if len(short_term) < THIN_CONTEXT_THRESHOLD:
        reasons.append("short_term_thin")

    if reasons and not mid_term.is_empty:
        return AssembledContext(
            records=short_term.records + mid_term.records,
            expanded=True,
            expansion_reasons=tuple(reasons),
        )
    return AssembledContext(records=short_term.records)
