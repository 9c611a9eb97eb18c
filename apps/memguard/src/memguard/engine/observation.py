"""
Activity Observation Monitor

从只读执行镜像推导辅助活动信号（分数、稳定性、标签），
并基于已持久化的 observation_snapshot 记录计算趋势。

观测只读、永不抛出：任何上游失败都降级为 score=0 / trend=unknown。
"""

from __future__ import annotations

import asyncio
from typing import Any

from memguard.logging import get_logger

from .adapters.http.store import ExecutionMirrorClient
from .constants import (
    HIGH_ACTIVITY_SCORE,
    MEDIUM_ACTIVITY_SCORE,
    MEMORY_TYPE_EXECUTION_LOG,
    MEMORY_TYPE_OBSERVATION_SNAPSHOT,
    OBSERVATION_SCORE_BANDS,
    UNSTABLE_SCORE,
)
from .exceptions import UpstreamUnavailable
from .types import ActivityLabel, MemoryWindow, ObservationSignal, Stability, Trend
from .window import WindowFetcher, build_window_query

logger = get_logger("memguard.engine.observation")


def score_from_count(count: int) -> float:
    for minimum, score in OBSERVATION_SCORE_BANDS:
        if count >= minimum:
            return score
    return 0.0


def stability_from_score(score: float) -> Stability:
    if score == 0:
        return "stable"
    if score < UNSTABLE_SCORE:
        return "monitor"
    return "unstable"


def label_from_score(score: float) -> ActivityLabel:
    if score >= HIGH_ACTIVITY_SCORE:
        return "high_activity"
    if score >= MEDIUM_ACTIVITY_SCORE:
        return "medium_activity"
    if score > 0:
        return "low_activity"
    return "no_activity"


def _snapshot_score(metadata: Any) -> float:
    if not isinstance(metadata, dict):
        return 0.0
    value = metadata.get("execution_observation_score", 0)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def trend_from_snapshots(snapshots: MemoryWindow) -> Trend:
    """比较最旧与最新快照的观测分数

    快照按 created_at 降序排列：第一条最新，最后一条最旧。
    """
    if len(snapshots) < 2:
        return "unknown"
    newest = _snapshot_score(snapshots.records[0].metadata)
    oldest = _snapshot_score(snapshots.records[-1].metadata)
    if newest > oldest:
        return "increasing"
    if newest < oldest:
        return "decreasing"
    return "stable"


class ActivityObservationMonitor:
    """执行活动观测器

    Args:
        mirror: 执行镜像客户端（只读）
        snapshots: 中央存储上的窗口拉取器，用于读取历史快照
        mirror_sample_limit: 执行日志抽样上限
        trend_sample_limit: 参与趋势计算的快照条数
    """

    def __init__(
        self,
        mirror: ExecutionMirrorClient,
        snapshots: WindowFetcher,
        *,
        mirror_sample_limit: int = 3,
        trend_sample_limit: int = 5,
    ) -> None:
        self._mirror = mirror
        self._snapshots = snapshots
        self._mirror_sample_limit = mirror_sample_limit
        self._trend_sample_limit = trend_sample_limit

    async def mirror_count(self) -> int:
        try:
            return await self._mirror.count(build_window_query(MEMORY_TYPE_EXECUTION_LOG, self._mirror_sample_limit))
        except UpstreamUnavailable as exc:
            logger.warning("mirror_read_degraded", error=str(exc))
            return 0

    async def trend(self) -> Trend:
        window = await self._snapshots.fetch(MEMORY_TYPE_OBSERVATION_SNAPSHOT, self._trend_sample_limit)
        return trend_from_snapshots(window)

    async def observe(self) -> ObservationSignal:
        count, trend = await asyncio.gather(self.mirror_count(), self.trend())
        return self.build_signal(count, trend)

    @staticmethod
    def build_signal(count: int, trend: Trend) -> ObservationSignal:
        score = score_from_count(count)
        signal = ObservationSignal(
            mirror_count=count,
            score=score,
            stability=stability_from_score(score),
            label=label_from_score(score),
            trend=trend,
        )
        logger.debug(
            "observation_computed",
            mirror_count=count,
            score=score,
            stability=signal.stability,
            label=signal.label,
            trend=trend,
        )
        return signal
