"""
Confidence Evaluator

三个互不重叠的置信度区间，按以下优先级判定:

1. low:    inflation_risk ≠ high 且 duplicate_ratio < 0.25
2. high:   inflation_risk = high 且 duplicate_ratio ≥ 0.5
3. medium: 其余情况
"""

from __future__ import annotations

from ..constants import DUPLICATE_POLICY_RATIO, HIGH_CONFIDENCE_DUPLICATE_RATIO
from ..types import ConfidenceAssessment, HealthSnapshot

LOW_EXPLANATION = "Weak evidence: context is not inflated and duplication is low."
MEDIUM_EXPLANATION = "Partial evidence: either inflation or duplication is present, but not both strongly."
HIGH_EXPLANATION = "Strong evidence: context is inflated and at least half of it is duplicated."


def evaluate_confidence(health: HealthSnapshot) -> ConfidenceAssessment:
    inflated = health.inflation_risk == "high"

    if not inflated and health.duplicate_ratio < DUPLICATE_POLICY_RATIO:
        return ConfidenceAssessment(level="low", explanation=LOW_EXPLANATION)
    if inflated and health.duplicate_ratio >= HIGH_CONFIDENCE_DUPLICATE_RATIO:
        return ConfidenceAssessment(level="high", explanation=HIGH_EXPLANATION)
    return ConfidenceAssessment(level="medium", explanation=MEDIUM_EXPLANATION)
