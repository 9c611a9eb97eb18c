"""
Policy Rule Mapper

按固定顺序评估 (谓词, 规则) 表，收集全部命中规则；
无命中时返回单条 system_normal 哨兵规则。

规则构建时即校验：allow 只能取自 safe 目录，deny 只能取自 auth_required 或 forbidden 目录。
映射器只读取输入，不查询也不修改任何外部状态。
"""

from __future__ import annotations

from typing import Callable, Iterable, Tuple

from ..constants import (
    ACTION_CLEANUP_WITHOUT_TRACE,
    ACTION_DELETE_MEMORY,
    ACTION_MERGE_SIMILAR_ANALYSIS,
    ACTION_NO_ACTION,
    ACTION_SUGGEST_MERGE_EXACT_DUPLICATES,
    ACTION_SUGGEST_REVIEW_CONTEXT,
    ACTION_SUGGEST_SUMMARIZE_MID_TERM,
    DEFAULT_CATALOGUE,
    DUPLICATE_POLICY_RATIO,
    PolicyCatalogue,
)
from ..types import DriftSnapshot, HealthSnapshot, PolicyOutcome, PolicyRule

Predicate = Callable[[HealthSnapshot, DriftSnapshot], bool]


def _rule(
    catalogue: PolicyCatalogue,
    *,
    trigger: str,
    allow: Iterable[str],
    deny: Iterable[str],
    explanation: str,
) -> PolicyRule:
    allow_set = frozenset(allow)
    deny_set = frozenset(deny)
    if not allow_set <= catalogue.safe:
        raise ValueError(f"Rule '{trigger}' allows non-safe actions: {sorted(allow_set - catalogue.safe)}")
    if not deny_set <= catalogue.deniable:
        raise ValueError(f"Rule '{trigger}' denies uncatalogued actions: {sorted(deny_set - catalogue.deniable)}")
    return PolicyRule(trigger=trigger, allow=allow_set, deny=deny_set, explanation=explanation)


class PolicyRuleMapper:
    """诊断 → 策略规则映射器"""

    def __init__(self, catalogue: PolicyCatalogue = DEFAULT_CATALOGUE) -> None:
        self._catalogue = catalogue
        self._table: Tuple[Tuple[Predicate, PolicyRule], ...] = (
            (
                lambda health, drift: health.inflation_risk == "high",
                _rule(
                    catalogue,
                    trigger="inflation_high",
                    allow=[ACTION_SUGGEST_SUMMARIZE_MID_TERM],
                    deny=[ACTION_DELETE_MEMORY],
                    explanation="Context is inflated: summarizing mid-term memory may be suggested; deletion is never allowed.",
                ),
            ),
            (
                lambda health, drift: health.duplicate_ratio >= DUPLICATE_POLICY_RATIO,
                _rule(
                    catalogue,
                    trigger="duplicates_detected",
                    allow=[ACTION_SUGGEST_MERGE_EXACT_DUPLICATES],
                    deny=[ACTION_MERGE_SIMILAR_ANALYSIS],
                    explanation="Exact duplicates may be suggested for merging; merging merely similar entries requires authorization.",
                ),
            ),
            (
                lambda health, drift: drift.topical_drift == "high",
                _rule(
                    catalogue,
                    trigger="topical_drift_high",
                    allow=[ACTION_SUGGEST_REVIEW_CONTEXT],
                    deny=[ACTION_CLEANUP_WITHOUT_TRACE],
                    explanation="Topic drift detected: a context review may be suggested; cleanup without an audit trace is forbidden.",
                ),
            ),
        )
        self._normal = _rule(
            catalogue,
            trigger="system_normal",
            allow=[ACTION_NO_ACTION],
            deny=[],
            explanation="System normal: no action required.",
        )

    def evaluate(self, health: HealthSnapshot, drift: DriftSnapshot) -> PolicyOutcome:
        matched = tuple(rule for predicate, rule in self._table if predicate(health, drift))
        if not matched:
            return PolicyOutcome(kind="normal", rules=(self._normal,))
        return PolicyOutcome(kind="matched", rules=matched)
