"""
Caller-facing result models.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .types import ResultStatus


class ObservationPayload(BaseModel):
    execution_mirror_used: int
    execution_observation_score: float
    label: str


class PoliciesPayload(BaseModel):
    policy_rules: List[Dict[str, Any]] = Field(default_factory=list)
    policy_confidence: Dict[str, str] = Field(default_factory=dict)


class GovernancePayload(BaseModel):
    kill_switch_enabled: bool
    gate: Dict[str, Any]
    dry_run: Dict[str, Any]


class MemoryChatResult(BaseModel):
    """One request's outcome: the reply plus the governance bundle.

    A `blocked` result only carries `reason` and `message`; every diagnostic field
    stays unset because no later stage ran.
    """

    status: ResultStatus
    reason: Optional[str] = None
    message: Optional[str] = None

    memory_used: Optional[int] = None
    execution_mirror_used: Optional[int] = None
    execution_observation_score: Optional[float] = None
    observation: Optional[ObservationPayload] = None
    stability: Optional[str] = None
    observation_trend: Optional[str] = None

    memory_health: Optional[Dict[str, Any]] = None
    memory_drift: Optional[Dict[str, Any]] = None
    memory_recommendations: Optional[List[Dict[str, str]]] = None
    memory_policies: Optional[PoliciesPayload] = None
    governance: Optional[GovernancePayload] = None

    reply: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)
