"""
Memory Chat API Router

记忆约束对话的 REST 入口。传输层只做协议映射，所有业务语义在 MemoryChatEngine 中。

状态码映射:
- 200: success
- 412: blocked（缺少外部记忆，属于预期结果而非错误）
- 400: 消息非法
- 500: 其他内部错误
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from memguard.logging import get_logger

from .exceptions import InvalidMessage, MemoryEngineError
from .pipeline import MemoryChatEngine

logger = get_logger("memguard.engine.api")
router = APIRouter(tags=["memory-chat"])


class MemoryChatRequest(BaseModel):
    # 不在模型层约束类型：非文本消息由引擎以 INVALID_MESSAGE 拒绝
    message: Optional[Any] = None


def get_engine(request: Request) -> MemoryChatEngine:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Engine not initialized")
    return engine


def _map_exception_to_http(exc: MemoryEngineError) -> JSONResponse:
    if isinstance(exc, InvalidMessage):
        logger.warning("invalid_message", details=exc.details)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"status": "error", "code": exc.code, "error": str(exc)},
        )

    logger.error("memory_engine_error", code=exc.code, details=exc.details)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"status": "error", "code": exc.code, "message": str(exc)},
    )


@router.get("/memory-chat", response_class=PlainTextResponse)
async def memory_chat_status() -> str:
    return "memory-chat is running"


async def _read_message(request: Request) -> Any:
    """
    从请求体取出 message 字段；空请求体视为缺失消息。

    Raises:
        InvalidMessage: 请求体不是合法 JSON 对象
    """
    body = await request.body()
    if not body.strip():
        return None
    try:
        raw = await request.json()
    except ValueError:
        raise InvalidMessage(received_type="malformed_json") from None
    if not isinstance(raw, dict):
        raise InvalidMessage(received_type=type(raw).__name__)
    return MemoryChatRequest.model_validate(raw).message


@router.post("/memory-chat")
async def memory_chat(
    request: Request,
    engine: MemoryChatEngine = Depends(get_engine),
) -> JSONResponse:
    try:
        result = await engine.respond(await _read_message(request))
    except MemoryEngineError as exc:
        return _map_exception_to_http(exc)
    except Exception as exc:
        logger.exception("memory_chat_failed", error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "error", "message": str(exc)},
        )

    status_code = status.HTTP_412_PRECONDITION_FAILED if result.status == "blocked" else status.HTTP_200_OK
    return JSONResponse(status_code=status_code, content=result.to_payload())
