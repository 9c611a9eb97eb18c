"""
Governance Gate & Dry-Run Selector

闸门是三个输入的纯决策函数：

    allowed = kill_switch_enabled AND one_action_guard AND confidence != low

闸门放行后，试运行选择器按固定优先级提名一个安全动作：

1. inflation_risk = high       → summarize_mid_term
2. duplicate_ratio ≥ 0.25      → merge_exact_duplicates
3. 否则不提名                   → NO_SAFE_ACTION_MATCHED

提名动作时沿用闸门的置信度原因码。

本模块只产出决策，从不执行动作；执行路径尚未接入。
"""

from __future__ import annotations

from ..constants import (
    DEFAULT_CATALOGUE,
    DRY_RUN_MERGE_EXACT_DUPLICATES,
    DRY_RUN_SUMMARIZE_MID_TERM,
    DUPLICATE_POLICY_RATIO,
    PolicyCatalogue,
)
from ..types import ConfidenceAssessment, GateReason, GateVerdict, GovernanceDecision, HealthSnapshot

_CONFIDENCE_REASONS = {
    "low": GateReason.CONFIDENCE_LOW,
    "medium": GateReason.CONFIDENCE_MEDIUM,
    "high": GateReason.CONFIDENCE_HIGH,
}


def evaluate_gate(
    *,
    kill_switch_enabled: bool,
    one_action_guard: bool,
    confidence: ConfidenceAssessment,
) -> GateVerdict:
    if not kill_switch_enabled:
        reason = GateReason.KILL_SWITCH_OFF
    elif not one_action_guard:
        reason = GateReason.ONE_ACTION_GUARD_DISABLED
    else:
        reason = _CONFIDENCE_REASONS[confidence.level]

    return GateVerdict(
        allowed=reason in (GateReason.CONFIDENCE_MEDIUM, GateReason.CONFIDENCE_HIGH),
        reason=reason,
        kill_switch_enabled=kill_switch_enabled,
        one_action_guard=one_action_guard,
        confidence=confidence.level,
    )


def select_dry_run(
    verdict: GateVerdict,
    health: HealthSnapshot,
    catalogue: PolicyCatalogue = DEFAULT_CATALOGUE,
) -> GovernanceDecision:
    if not verdict.allowed:
        return GovernanceDecision(allowed=False, reason=verdict.reason)

    if health.inflation_risk == "high":
        action = DRY_RUN_SUMMARIZE_MID_TERM
    elif health.duplicate_ratio >= DUPLICATE_POLICY_RATIO:
        action = DRY_RUN_MERGE_EXACT_DUPLICATES
    else:
        return GovernanceDecision(allowed=True, reason=GateReason.NO_SAFE_ACTION_MATCHED)

    if action not in catalogue.dry_run_actions:
        return GovernanceDecision(allowed=True, reason=GateReason.NO_SAFE_ACTION_MATCHED)
    return GovernanceDecision(allowed=True, reason=verdict.reason, selected_action=action)
