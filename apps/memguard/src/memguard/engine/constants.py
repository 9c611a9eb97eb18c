"""
Engine 常量定义

集中管理记忆类型白名单、策略动作目录与各诊断阈值，
避免魔法数字散落在各组件中。

所有表均为不可变结构，在进程启动时构建一次，由各组件通过构造参数引用。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Tuple


# ================================
# 记忆结构
# ================================

# 写入记录携带的结构版本号
MEMORY_SCHEMA_VERSION = 1

MEMORY_TYPE_CHAT = "chat"
MEMORY_TYPE_OBSERVATION_SNAPSHOT = "observation_snapshot"
MEMORY_TYPE_DECISION_LOG = "decision_log"
MEMORY_TYPE_EXECUTION_LOG = "execution_log"

ENTITY_TYPE_CONVERSATION = "conversation"
ENTITY_TYPE_SYSTEM_HEALTH = "system_health"
ENTITY_TYPE_GOVERNANCE = "governance"

RECORD_STATUS_ACTIVE = "active"


@dataclass(frozen=True)
class MemorySchema:
    """记忆类型白名单

    写入前校验 (memory_type, entity_type) 组合，未登记的组合一律拒绝。
    """

    memory_types: FrozenSet[str]
    entity_types: FrozenSet[str]
    allowed_pairs: FrozenSet[Tuple[str, str]]
    version: int = MEMORY_SCHEMA_VERSION

    def __post_init__(self) -> None:
        for memory_type, entity_type in self.allowed_pairs:
            if memory_type not in self.memory_types or entity_type not in self.entity_types:
                raise ValueError(f"Schema pair ({memory_type!r}, {entity_type!r}) references an unknown type")

    def is_allowed(self, memory_type: str, entity_type: str) -> bool:
        return (memory_type, entity_type) in self.allowed_pairs


DEFAULT_SCHEMA = MemorySchema(
    memory_types=frozenset(
        {
            MEMORY_TYPE_CHAT,
            MEMORY_TYPE_OBSERVATION_SNAPSHOT,
            MEMORY_TYPE_DECISION_LOG,
        }
    ),
    entity_types=frozenset(
        {
            ENTITY_TYPE_CONVERSATION,
            ENTITY_TYPE_SYSTEM_HEALTH,
            ENTITY_TYPE_GOVERNANCE,
        }
    ),
    allowed_pairs=frozenset(
        {
            (MEMORY_TYPE_CHAT, ENTITY_TYPE_CONVERSATION),
            (MEMORY_TYPE_OBSERVATION_SNAPSHOT, ENTITY_TYPE_SYSTEM_HEALTH),
            (MEMORY_TYPE_DECISION_LOG, ENTITY_TYPE_GOVERNANCE),
        }
    ),
)


# ================================
# 策略动作目录
# ================================

ACTION_SUGGEST_SUMMARIZE_MID_TERM = "suggest_summarize_mid_term"
ACTION_SUGGEST_MERGE_EXACT_DUPLICATES = "suggest_merge_exact_duplicates"
ACTION_SUGGEST_REVIEW_CONTEXT = "suggest_review_context"
ACTION_NO_ACTION = "no_action"

ACTION_MERGE_SIMILAR_ANALYSIS = "merge_similar_analysis"
ACTION_SUMMARIZE_AND_REPLACE = "summarize_and_replace"

ACTION_DELETE_MEMORY = "delete_memory"
ACTION_CLEANUP_WITHOUT_TRACE = "cleanup_without_trace"

# 试运行选择器可提名的动作（仅记录，从不执行）
DRY_RUN_SUMMARIZE_MID_TERM = "summarize_mid_term"
DRY_RUN_MERGE_EXACT_DUPLICATES = "merge_exact_duplicates"


@dataclass(frozen=True)
class PolicyCatalogue:
    """策略动作目录

    - safe: 可直接出现在 allow 列表中的建议性动作
    - auth_required: 需人工授权的动作，只能出现在 deny 列表
    - forbidden: 永不允许的破坏性动作，只能出现在 deny 列表
    """

    safe: FrozenSet[str]
    auth_required: FrozenSet[str]
    forbidden: FrozenSet[str]
    dry_run_actions: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if self.safe & (self.auth_required | self.forbidden):
            raise ValueError("Safe actions must not overlap auth-required or forbidden actions")

    @property
    def deniable(self) -> FrozenSet[str]:
        return self.auth_required | self.forbidden


DEFAULT_CATALOGUE = PolicyCatalogue(
    safe=frozenset(
        {
            ACTION_SUGGEST_SUMMARIZE_MID_TERM,
            ACTION_SUGGEST_MERGE_EXACT_DUPLICATES,
            ACTION_SUGGEST_REVIEW_CONTEXT,
            ACTION_NO_ACTION,
        }
    ),
    auth_required=frozenset(
        {
            ACTION_MERGE_SIMILAR_ANALYSIS,
            ACTION_SUMMARIZE_AND_REPLACE,
        }
    ),
    forbidden=frozenset(
        {
            ACTION_DELETE_MEMORY,
            ACTION_CLEANUP_WITHOUT_TRACE,
        }
    ),
    dry_run_actions=frozenset(
        {
            DRY_RUN_SUMMARIZE_MID_TERM,
            DRY_RUN_MERGE_EXACT_DUPLICATES,
        }
    ),
)


# ================================
# 窗口
# ================================

# 单次读取的硬上限
MAX_WINDOW_LIMIT = 10

# 未指定或非法 limit 时的默认值
DEFAULT_WINDOW_LIMIT = 5

# 短期窗口少于该条数时视为上下文过薄
THIN_CONTEXT_THRESHOLD = 2


# ================================
# 健康度
# ================================

INFLATION_HIGH_SIZE = 8
INFLATION_MEDIUM_SIZE = 5

# 建议去重的重复率
DEDUPLICATION_SUGGESTION_RATIO = 0.3

# 策略与试运行层面的重复率触发线
DUPLICATE_POLICY_RATIO = 0.25

# 高置信度所需的重复率
HIGH_CONFIDENCE_DUPLICATE_RATIO = 0.5


# ================================
# 漂移
# ================================

DRIFT_HIGH_OVERLAP = 0.2
DRIFT_MEDIUM_OVERLAP = 0.5

STAGNATION_SHORT_TERM_MAX_TOKENS = 5
STAGNATION_MID_TERM_MIN_TOKENS = 20


# ================================
# 活动观测
# ================================

# (最少执行日志条数, 观测分数)，按降序匹配
OBSERVATION_SCORE_BANDS: Tuple[Tuple[int, float], ...] = (
    (50, 1.0),
    (20, 0.6),
    (1, 0.3),
)

UNSTABLE_SCORE = 0.5
HIGH_ACTIVITY_SCORE = 0.8
MEDIUM_ACTIVITY_SCORE = 0.4


# ================================
# 文案
# ================================

BLOCKED_NO_MEMORY_MESSAGE = "A reply cannot be generated without external memory."
NO_REPLY_PLACEHOLDER = "No reply was generated."
