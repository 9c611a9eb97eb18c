"""
Engine Factory

根据配置组装 MemoryChatEngine 及其协作方。
连接池 (httpx.AsyncClient) 由调用方持有，引擎本身不管理其生命周期。
"""

from __future__ import annotations

from typing import Optional

import httpx

from memguard.config import Settings, settings as default_settings

from .adapters.http.store import ExecutionMirrorClient, MemoryStoreClient
from .audit import AuditLogger
from .constants import DEFAULT_CATALOGUE, DEFAULT_SCHEMA
from .generation import AnswerGenerator
from .observation import ActivityObservationMonitor
from .pipeline import MemoryChatEngine
from .window import WindowFetcher


def create_audit_logger(http_client: httpx.AsyncClient, config: Optional[Settings] = None) -> AuditLogger:
    config = config or default_settings
    store = MemoryStoreClient(
        http_client,
        base_url=config.store.central_url,
        timeout=config.store.timeout_seconds,
    )
    return AuditLogger(
        store,
        schema=DEFAULT_SCHEMA,
        max_pending=config.governance.audit_max_pending,
        source=f"{config.app_name}.memory_chat",
    )


def create_engine(
    http_client: httpx.AsyncClient,
    config: Optional[Settings] = None,
    *,
    audit: Optional[AuditLogger] = None,
) -> MemoryChatEngine:
    config = config or default_settings
    store_settings = config.store

    central = MemoryStoreClient(
        http_client,
        base_url=store_settings.central_url,
        timeout=store_settings.timeout_seconds,
        read_retries=store_settings.read_retries,
        retry_backoff=store_settings.retry_backoff_seconds,
    )
    mirror = ExecutionMirrorClient(
        http_client,
        base_url=store_settings.mirror_url,
        timeout=store_settings.timeout_seconds,
        read_retries=store_settings.read_retries,
        retry_backoff=store_settings.retry_backoff_seconds,
    )
    fetcher = WindowFetcher(central)

    return MemoryChatEngine(
        fetcher=fetcher,
        monitor=ActivityObservationMonitor(
            mirror,
            fetcher,
            mirror_sample_limit=store_settings.mirror_sample_limit,
            trend_sample_limit=store_settings.trend_sample_limit,
        ),
        generator=AnswerGenerator(config.llm),
        audit=audit or create_audit_logger(http_client, config),
        store_settings=store_settings,
        governance_settings=config.governance,
        catalogue=DEFAULT_CATALOGUE,
    )
