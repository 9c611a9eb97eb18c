"""
Engine Governance Module

对记忆上下文窗口做健康与漂移诊断，并据此产出建议、策略规则、
置信度评估与治理闸门决策。

职责:
1. 诊断: 重复率、膨胀风险、话题漂移、停滞风险
2. 建议与策略: 可读建议、allow/deny 规则映射
3. 决策: 置信度分级、治理闸门与试运行选择

本模块全部为纯函数，不做 I/O，也从不修改、合并或删除任何记忆。
"""

from .advice import recommend
from .confidence import evaluate_confidence
from .drift import analyze_drift, tokenize
from .gate import evaluate_gate, select_dry_run
from .health import analyze_health
from .policy import PolicyRuleMapper

__all__ = [
    "PolicyRuleMapper",
    "analyze_drift",
    "analyze_health",
    "evaluate_confidence",
    "evaluate_gate",
    "recommend",
    "select_dry_run",
    "tokenize",
]
