"""
Answer Generation

把组装好的上下文交给生成服务（经 LiteLLM 调用）并取回单条文本回复。
缺失、格式错误、超时或调用失败都降级为固定占位文本，从不让引擎失败。
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import litellm

from memguard.config.llm import LlmSettings
from memguard.logging import get_logger

from .constants import NO_REPLY_PLACEHOLDER
from .types import AssembledContext, ObservationSignal

logger = get_logger("memguard.engine.generation")


def build_system_instruction(context: AssembledContext, observation: ObservationSignal) -> str:
    memory_text = "\n".join(f"- {content}" for content in context.contents)
    return (
        "You are an executive assistant.\n"
        "The only authoritative source for decisions is the external central memory below.\n\n"
        f"Approved memory:\n{memory_text}\n\n"
        "Execution context (read-only, must not influence the decision):\n"
        f"- execution_logs_recent_count: {observation.mirror_count}\n"
        "- note: this context is for monitoring only and is not used for decisions."
    )


def build_messages(message: str, context: AssembledContext, observation: ObservationSignal) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": build_system_instruction(context, observation)},
        {"role": "user", "content": message},
    ]


def _extract_reply(response: Any) -> Optional[str]:
    """兼容对象属性与 dict 两种返回格式"""
    choices = getattr(response, "choices", None)
    if choices is None and isinstance(response, dict):
        choices = response.get("choices")
    if not choices:
        return None

    first = choices[0]
    message = getattr(first, "message", None)
    if message is None and isinstance(first, dict):
        message = first.get("message")

    content = getattr(message, "content", None)
    if content is None and isinstance(message, dict):
        content = message.get("content")
    if isinstance(content, str) and content.strip():
        return content
    return None


class AnswerGenerator:
    """生成服务客户端"""

    def __init__(self, llm_settings: LlmSettings) -> None:
        self._model = llm_settings.full_model_name
        self._kwargs = llm_settings.to_litellm_kwargs()
        self._timeout = llm_settings.timeout_seconds

    async def generate(self, message: str, context: AssembledContext, observation: ObservationSignal) -> str:
        messages = build_messages(message, context, observation)
        try:
            response = await asyncio.wait_for(
                litellm.acompletion(model=self._model, messages=messages, **self._kwargs),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("generation_timeout", model=self._model, timeout=self._timeout)
            return NO_REPLY_PLACEHOLDER
        except Exception as exc:
            logger.warning("generation_failed", model=self._model, error=str(exc))
            return NO_REPLY_PLACEHOLDER

        reply = _extract_reply(response)
        if reply is None:
            logger.warning("generation_empty_reply", model=self._model)
            return NO_REPLY_PLACEHOLDER

        logger.debug("generation_completed", model=self._model, reply_length=len(reply))
        return reply
