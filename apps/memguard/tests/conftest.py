import json
from typing import Any, Dict, Iterable, List, Optional

import httpx
import pytest

from memguard.engine.types import MemoryRecord, MemoryWindow

CENTRAL_URL = "http://central.test"
MIRROR_URL = "http://mirror.test"


def make_record(content: str, **fields: Any) -> Dict[str, Any]:
    record: Dict[str, Any] = {"id": fields.pop("id", None), "content": content, "metadata": {}}
    record.update(fields)
    return record


def make_window(contents: Iterable[str], *, memory_type: str = "chat", limit: int = 10) -> MemoryWindow:
    records = tuple(MemoryRecord(content=content) for content in contents)
    return MemoryWindow(memory_type=memory_type, limit=limit, records=records)


class FakeMemoryStore:
    """按 memory_type 返回预置记录的内存版存储服务

    - POST /query         → {"results": [...], "count": n}
    - POST /central-sync  → 记录写入内容
    """

    def __init__(self, records: Optional[Dict[str, List[Dict[str, Any]]]] = None) -> None:
        self.records: Dict[str, List[Dict[str, Any]]] = records or {}
        self.queries: List[Dict[str, Any]] = []
        self.synced: List[Dict[str, Any]] = []
        self.fail_with: Optional[Exception] = None
        self.status_code = 200

    def handle(self, request: httpx.Request) -> httpx.Response:
        if self.fail_with is not None:
            raise self.fail_with
        body = json.loads(request.content or b"{}")

        if request.url.path == "/central-sync":
            self.synced.append(body["record"])
            return httpx.Response(200, json={"ok": True})

        self.queries.append(body)
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": "unavailable"})
        results = self.records.get(body.get("memory_type"), [])[: body.get("limit")]
        return httpx.Response(200, json={"results": results, "count": len(results)})

    def synced_of(self, memory_type: str) -> List[Dict[str, Any]]:
        return [record for record in self.synced if record["memory_type"] == memory_type]


@pytest.fixture
def central_store() -> FakeMemoryStore:
    return FakeMemoryStore()


@pytest.fixture
def mirror_store() -> FakeMemoryStore:
    return FakeMemoryStore()


@pytest.fixture
async def http_client(central_store, mirror_store):
    """路由到两个假存储的 httpx.AsyncClient"""
    routes = {"central.test": central_store, "mirror.test": mirror_store}

    def dispatch(request: httpx.Request) -> httpx.Response:
        return routes[request.url.host].handle(request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(dispatch)) as client:
        yield client
