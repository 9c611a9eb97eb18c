"""
Window Fetcher

从中央记忆存储拉取短期与中期记忆窗口。

本层失败即降级 (fail-open)：任何传输或解析错误都返回空窗口，
由下游（硬守卫、上下文组装）对"空"作出反应。
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from memguard.logging import get_logger

from .adapters.http.store import StoreReader
from .constants import DEFAULT_WINDOW_LIMIT, MAX_WINDOW_LIMIT
from .exceptions import UpstreamUnavailable
from .types import MemoryRecord, MemoryWindow

logger = get_logger("memguard.engine.window")


def normalize_limit(limit: Optional[int]) -> int:
    """min(limit, 10)；缺失或非正数时取默认值 5"""
    if not isinstance(limit, int) or isinstance(limit, bool) or limit <= 0:
        return DEFAULT_WINDOW_LIMIT
    return min(limit, MAX_WINDOW_LIMIT)


def build_window_query(memory_type: str, limit: Optional[int] = None) -> Dict[str, Any]:
    return {
        "memory_type": memory_type,
        "limit": normalize_limit(limit),
        "order_by": "created_at",
        "order_dir": "desc",
    }


class WindowFetcher:
    """记忆窗口拉取器"""

    def __init__(self, reader: StoreReader) -> None:
        self._reader = reader

    async def fetch(self, memory_type: str, limit: Optional[int] = None) -> MemoryWindow:
        query = build_window_query(memory_type, limit)
        cap = query["limit"]

        try:
            raw_records = await self._reader.query(query)
            records = self._parse(raw_records)
        except (UpstreamUnavailable, ValidationError) as exc:
            logger.warning(
                "window_fetch_degraded",
                endpoint=self._reader.name,
                memory_type=memory_type,
                limit=cap,
                error=str(exc),
            )
            return MemoryWindow(memory_type=memory_type, limit=cap)

        window = MemoryWindow(memory_type=memory_type, limit=cap, records=tuple(records[:cap]))
        logger.debug("window_fetched", memory_type=memory_type, limit=cap, size=len(window))
        return window

    @staticmethod
    def _parse(raw_records: List[Dict[str, Any]]) -> List[MemoryRecord]:
        return [MemoryRecord.model_validate(item) for item in raw_records]
