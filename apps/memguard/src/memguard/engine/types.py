"""
Engine 数据模型

外部载荷（记忆记录）使用 pydantic 校验；
引擎内部的诊断快照与决策均为不可变 dataclass。
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidatorFunctionWrapHandler, field_validator


RiskLevel = Literal["low", "medium", "high"]
StagnationRisk = Literal["low", "high"]
ConfidenceLevel = Literal["low", "medium", "high"]
Stability = Literal["stable", "monitor", "unstable"]
ActivityLabel = Literal["high_activity", "medium_activity", "low_activity", "no_activity"]
Trend = Literal["increasing", "decreasing", "stable", "unknown"]
ResultStatus = Literal["success", "blocked", "error"]

# 置信度全序，用于比较
CONFIDENCE_ORDER: Dict[str, int] = {"low": 0, "medium": 1, "high": 2}


class GateReason(str, Enum):
    """治理闸门与试运行选择器的原因码"""

    KILL_SWITCH_OFF = "KILL_SWITCH_OFF"
    ONE_ACTION_GUARD_DISABLED = "ONE_ACTION_GUARD_DISABLED"
    CONFIDENCE_LOW = "CONFIDENCE_LOW"
    CONFIDENCE_MEDIUM = "CONFIDENCE_MEDIUM"
    CONFIDENCE_HIGH = "CONFIDENCE_HIGH"
    NO_SAFE_ACTION_MATCHED = "NO_SAFE_ACTION_MATCHED"


class MemoryRecord(BaseModel):
    """记忆记录

    来自外部记忆存储的只读记录。未知字段被忽略，缺失字段取安全默认值。
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: Optional[Union[str, int]] = None
    content: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    memory_type: Optional[str] = None
    entity_type: Optional[str] = None
    status: Optional[str] = None

    @field_validator("content", mode="before")
    @classmethod
    def _coerce_content(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @field_validator("metadata", mode="before")
    @classmethod
    def _coerce_metadata(cls, value: Any) -> Dict[str, Any]:
        return value if isinstance(value, dict) else {}

    @field_validator("created_at", mode="wrap")
    @classmethod
    def _tolerate_created_at(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Optional[datetime]:
        # 无法解析的时间戳置空，记录本身保留
        try:
            return handler(value)
        except ValidationError:
            return None


@dataclass(frozen=True)
class MemoryWindow:
    """记忆窗口

    按 created_at 降序排列、有容量上限的记录序列，每次请求重新构建。
    """

    memory_type: str
    limit: int
    records: Tuple[MemoryRecord, ...] = ()

    def __post_init__(self) -> None:
        if len(self.records) > self.limit:
            object.__setattr__(self, "records", tuple(self.records[: self.limit]))

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    @property
    def is_empty(self) -> bool:
        return not self.records

    @property
    def contents(self) -> List[str]:
        return [record.content for record in self.records]


@dataclass(frozen=True)
class ObservationSignal:
    """执行镜像的活动观测信号"""

    mirror_count: int = 0
    score: float = 0.0
    stability: Stability = "stable"
    label: ActivityLabel = "no_activity"
    trend: Trend = "unknown"


@dataclass(frozen=True)
class AssembledContext:
    """组装后的生成上下文"""

    records: Tuple[MemoryRecord, ...]
    expanded: bool = False
    expansion_reasons: Tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.records)

    @property
    def contents(self) -> List[str]:
        return [record.content for record in self.records]


@dataclass(frozen=True)
class HealthSnapshot:
    short_term_size: int
    mid_term_size: int
    context_size: int
    duplicate_ratio: float
    inflation_risk: RiskLevel

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DriftSnapshot:
    overlap_ratio: float
    topical_drift: RiskLevel
    stagnation_risk: StagnationRisk
    short_term_tokens: int = 0
    mid_term_tokens: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Recommendation:
    """建议项（仅供参考，从不构成动作）"""

    type: str
    level: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class PolicyRule:
    trigger: str
    allow: FrozenSet[str]
    deny: FrozenSet[str]
    explanation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trigger": self.trigger,
            "allow": sorted(self.allow),
            "deny": sorted(self.deny),
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class PolicyOutcome:
    """策略映射结果

    kind="matched" 时 rules 为全部命中规则；kind="normal" 时 rules 仅含哨兵规则。
    """

    kind: Literal["matched", "normal"]
    rules: Tuple[PolicyRule, ...]

    @property
    def is_normal(self) -> bool:
        return self.kind == "normal"

    def to_list(self) -> List[Dict[str, Any]]:
        return [rule.to_dict() for rule in self.rules]


@dataclass(frozen=True)
class ConfidenceAssessment:
    level: ConfidenceLevel
    explanation: str

    def __post_init__(self) -> None:
        if self.level not in CONFIDENCE_ORDER:
            raise ValueError(f"Unknown confidence level '{self.level}'")

    @property
    def rank(self) -> int:
        return CONFIDENCE_ORDER[self.level]

    def to_dict(self) -> Dict[str, str]:
        return {"level": self.level, "explanation": self.explanation}


@dataclass(frozen=True)
class GateVerdict:
    allowed: bool
    reason: GateReason
    kill_switch_enabled: bool
    one_action_guard: bool
    confidence: ConfidenceLevel

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allowed": self.allowed,
            "reason": self.reason.value,
            "kill_switch_enabled": self.kill_switch_enabled,
            "one_action_guard": self.one_action_guard,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class GovernanceDecision:
    """治理决策

    allowed=False 时 selected_action 恒为 None；即使选中动作，也只记录不执行。
    """

    allowed: bool
    reason: GateReason
    selected_action: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.allowed and self.selected_action is not None:
            raise ValueError("A denied governance decision cannot carry a selected action")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": "dry_run",
            "allowed": self.allowed,
            "reason": self.reason.value,
            "selected_action": self.selected_action,
            "executed": False,
        }


@dataclass(frozen=True)
class AuditRecord:
    """审计记录

    诊断与决策的只写快照，以 observation_snapshot 形式持久化。
    """

    health: HealthSnapshot
    drift: DriftSnapshot
    confidence: ConfidenceAssessment
    gate: GateVerdict
    decision: GovernanceDecision
    observation: ObservationSignal
    captured_at: datetime = field(default_factory=datetime.now)
