"""
Memory Store HTTP Adapter

中央记忆存储与执行镜像的 httpx 客户端。

- 读: POST {base}/query          → {"results": [...], "count": n}
- 写: POST {base}/central-sync   → 响应内容不被消费

适配层只负责传输：所有失败（超时、网络、状态码、解析）统一转换为
UpstreamUnavailable，由上层组件决定如何降级。
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Dict, List, Optional

import httpx

from memguard.logging import get_logger

from ...exceptions import UpstreamUnavailable

logger = get_logger("memguard.engine.adapters.http.store")

QUERY_PATH = "/query"
SYNC_PATH = "/central-sync"


async def _call_with_retry(
    coro_factory: Callable[[], Awaitable[Any]],
    *,
    attempts: int,
    base_backoff: float,
    timeout: float,
    context: str = "",
) -> Any:
    """带超时与指数退避的异步调用

    Args:
        coro_factory: 返回协程的工厂函数（每次尝试创建新协程）
        attempts: 总尝试次数（1 表示不重试）
        base_backoff: 基础退避秒数
        timeout: 单次调用超时秒数
        context: 上下文描述（用于日志）

    Returns:
        协程返回值

    Raises:
        最后一次尝试的异常
    """
    last_exc: Exception = RuntimeError("no attempt made")
    for attempt in range(1, attempts + 1):
        try:
            return await asyncio.wait_for(coro_factory(), timeout=timeout)
        except asyncio.TimeoutError:
            last_exc = TimeoutError(f"timed out after {timeout}s")
            logger.warning("store_call_timeout", attempt=attempt, attempts=attempts, timeout=timeout, context=context)
        except httpx.HTTPStatusError as exc:
            last_exc = exc
            logger.warning(
                "store_call_http_error",
                attempt=attempt,
                attempts=attempts,
                status_code=exc.response.status_code,
                context=context,
            )
            # 4xx 不重试
            if exc.response.status_code < 500:
                break
        except (httpx.HTTPError, ValueError) as exc:
            last_exc = exc
            logger.warning("store_call_failed", attempt=attempt, attempts=attempts, error=str(exc), context=context)

        if attempt < attempts:
            await asyncio.sleep(base_backoff * (2 ** (attempt - 1)))

    raise last_exc


class StoreReader:
    """只读存储客户端

    Args:
        http_client: 共享的 httpx.AsyncClient（连接池由应用生命周期管理）
        base_url: 存储服务基础地址，未配置时所有调用均视为上游不可用
        timeout: 单次调用超时秒数
        read_retries: 读取失败后的额外尝试次数（默认 0，即失败即降级）
        retry_backoff: 基础退避秒数
        name: 日志中使用的端点名称
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        base_url: Optional[str],
        timeout: float = 5.0,
        read_retries: int = 0,
        retry_backoff: float = 0.2,
        name: str = "store",
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/") if base_url else None
        self._timeout = timeout
        self._read_retries = read_retries
        self._retry_backoff = retry_backoff
        self.name = name

    def _url(self, path: str) -> str:
        if not self._base_url:
            raise UpstreamUnavailable(endpoint=self.name, reason="base URL not configured")
        return f"{self._base_url}{path}"

    async def query(self, payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        """查询记录

        缺失或非列表的 results 视为空列表，而不是错误。

        Raises:
            UpstreamUnavailable: 传输、超时、状态码或 JSON 解析失败
        """
        url = self._url(QUERY_PATH)

        async def _post() -> Any:
            response = await self._http.post(url, json=payload, timeout=self._timeout)
            response.raise_for_status()
            return response.json()

        try:
            body = await _call_with_retry(
                _post,
                attempts=1 + self._read_retries,
                base_backoff=self._retry_backoff,
                timeout=self._timeout,
                context=f"{self.name}.query:{payload.get('memory_type')}",
            )
        except Exception as exc:
            raise UpstreamUnavailable(endpoint=self.name, reason=str(exc) or type(exc).__name__) from exc

        results = body.get("results") if isinstance(body, dict) else None
        if not isinstance(results, list):
            return []
        return [item for item in results if isinstance(item, dict)]


class MemoryStoreClient(StoreReader):
    """中央记忆存储客户端（唯一可信源，支持追加写入）"""

    def __init__(self, http_client: httpx.AsyncClient, *, base_url: Optional[str], **kwargs: Any) -> None:
        kwargs.setdefault("name", "central_memory")
        super().__init__(http_client, base_url=base_url, **kwargs)

    async def sync(self, record: Dict[str, Any]) -> None:
        """追加一条记录；响应内容不被消费

        Raises:
            UpstreamUnavailable: 写入失败
        """
        url = self._url(SYNC_PATH)
        try:
            response = await asyncio.wait_for(
                self._http.post(url, json={"record": record}, timeout=self._timeout),
                timeout=self._timeout,
            )
            response.raise_for_status()
        except (asyncio.TimeoutError, httpx.HTTPError) as exc:
            raise UpstreamUnavailable(endpoint=self.name, reason=str(exc) or type(exc).__name__) from exc


class ExecutionMirrorClient(StoreReader):
    """执行层镜像客户端（只读，仅用于计数）"""

    def __init__(self, http_client: httpx.AsyncClient, *, base_url: Optional[str], **kwargs: Any) -> None:
        kwargs.setdefault("name", "execution_mirror")
        super().__init__(http_client, base_url=base_url, **kwargs)

    async def count(self, payload: Dict[str, Any]) -> int:
        return len(await self.query(payload))
