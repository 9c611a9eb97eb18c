"""
Drift Analyzer

比较短期与中期窗口的词汇集合，给出话题重叠率、话题漂移与停滞风险。

- overlap_ratio = |S ∩ M| / |S|（S 为空时为 0）
- topical_drift: < 0.2 high，< 0.5 medium，否则 low
- stagnation_risk: |S| < 5 且 |M| > 20 时为 high，即近期对话稀薄而历史丰富
"""

from __future__ import annotations

import re
from typing import Iterable, Set

from ..constants import (
    DRIFT_HIGH_OVERLAP,
    DRIFT_MEDIUM_OVERLAP,
    STAGNATION_MID_TERM_MIN_TOKENS,
    STAGNATION_SHORT_TERM_MAX_TOKENS,
)
from ..types import DriftSnapshot, MemoryWindow, RiskLevel, StagnationRisk

_NON_WORD = re.compile(r"[^\w\s]")


def tokenize(text: str) -> list[str]:
    return [token for token in _NON_WORD.sub("", text.lower()).split() if token]


def token_set(contents: Iterable[str]) -> Set[str]:
    tokens: Set[str] = set()
    for content in contents:
        tokens.update(tokenize(content))
    return tokens


def topical_drift(overlap_ratio: float) -> RiskLevel:
    if overlap_ratio < DRIFT_HIGH_OVERLAP:
        return "high"
    if overlap_ratio < DRIFT_MEDIUM_OVERLAP:
        return "medium"
    return "low"


def stagnation_risk(short_tokens: int, mid_tokens: int) -> StagnationRisk:
    if short_tokens < STAGNATION_SHORT_TERM_MAX_TOKENS and mid_tokens > STAGNATION_MID_TERM_MIN_TOKENS:
        return "high"
    return "low"


def analyze_drift(short_term: MemoryWindow, mid_term: MemoryWindow) -> DriftSnapshot:
    short_tokens = token_set(short_term.contents)
    mid_tokens = token_set(mid_term.contents)

    if short_tokens:
        overlap = round(len(short_tokens & mid_tokens) / len(short_tokens), 2)
    else:
        overlap = 0.0

    return DriftSnapshot(
        overlap_ratio=overlap,
        topical_drift=topical_drift(overlap),
        stagnation_risk=stagnation_risk(len(short_tokens), len(mid_tokens)),
        short_term_tokens=len(short_tokens),
        mid_term_tokens=len(mid_tokens),
    )
