"""
Recommendation Generator

把诊断结果翻译成可读建议。建议只供参考，从不构成动作。
"""

from __future__ import annotations

from typing import List

from ..constants import DEDUPLICATION_SUGGESTION_RATIO
from ..types import DriftSnapshot, HealthSnapshot, Recommendation


def recommend(health: HealthSnapshot, drift: DriftSnapshot) -> List[Recommendation]:
    advice: List[Recommendation] = []

    if health.inflation_risk == "high":
        advice.append(
            Recommendation(
                type="compression",
                level="warning",
                message="Context is inflated; consider compressing the mid-term memory window.",
            )
        )

    if health.duplicate_ratio >= DEDUPLICATION_SUGGESTION_RATIO:
        advice.append(
            Recommendation(
                type="deduplication",
                level="suggestion",
                message="Repeated entries detected in context; consider deduplicating memory.",
            )
        )

    if drift.topical_drift == "high":
        advice.append(
            Recommendation(
                type="topic_drift",
                level="warning",
                message="Recent conversation has drifted away from historical topics.",
            )
        )

    if not advice:
        advice.append(Recommendation(type="ok", level="info", message="Memory window looks healthy."))

    return advice
