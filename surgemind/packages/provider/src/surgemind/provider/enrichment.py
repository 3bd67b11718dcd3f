"""LLMEnrichmentProvider -- 通过 LiteLLM Proxy 为 Trigger 生成任务文案

只生成标题与描述；优先级与指派对象不经过模型。
时限与兜底由调用方（TaskSynthesizer）负责，本模块失败即抛出。
"""

import json
import re

import structlog
from pydantic import ValidationError

from surgemind.core.models import TaskText, Trigger

from .client import LiteLLMClient
from .config import ProviderConfig
from .exceptions import EnrichmentError

log = structlog.get_logger()

SYSTEM_PROMPT = (
    "You are a hospital operations assistant. "
    "Write a short actionable task for the caregiver who will respond to the event. "
    'Reply with a JSON object only: {"title": "...", "description": "..."}. '
    "The title is at most 80 characters. "
    "The description is one or two sentences with the concrete next step."
)

# ```json ... ``` 包裹
_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def build_enrichment_messages(trigger: Trigger) -> list[dict[str, str]]:
    """构建文本增强请求消息"""
    lines = [
        f"Event type: {trigger.source_kind.value}",
        f"Severity: {trigger.severity.value}",
        f"Location: {trigger.location}",
    ]
    if trigger.subject_id:
        lines.append(f"Subject: {trigger.subject_id}")
    if trigger.findings:
        lines.append("Findings: " + "; ".join(trigger.findings))
    lines.append(f"Occurred at: {trigger.occurred_at.isoformat()}")

    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "\n".join(lines)},
    ]


def parse_task_text(content: str) -> TaskText:
    """解析模型输出为 TaskText

    Raises:
        EnrichmentError: 非 JSON、缺字段或字段为空
    """
    text = content.strip()
    match = _FENCE_RE.match(text)
    if match:
        text = match.group(1)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise EnrichmentError(f"输出不是合法 JSON: {e}", raw_content=content) from e

    if not isinstance(data, dict):
        raise EnrichmentError("输出不是 JSON 对象", raw_content=content)

    try:
        result = TaskText.model_validate(data)
    except ValidationError as e:
        raise EnrichmentError(f"输出字段不完整: {e}", raw_content=content) from e

    if not result.title.strip() or not result.description.strip():
        raise EnrichmentError("标题或描述为空", raw_content=content)
    return result


class LLMEnrichmentProvider:
    """基于 LiteLLMClient 的文本增强实现"""

    def __init__(self, client: LiteLLMClient, model_alias: str = "cheap") -> None:
        self._client = client
        self._model_alias = model_alias

    @property
    def client(self) -> LiteLLMClient:
        return self._client

    async def generate(self, trigger: Trigger) -> TaskText:
        """为 Trigger 生成任务标题与描述

        Raises:
            ProviderError: Proxy 调用失败
            EnrichmentError: 输出无法解析
        """
        result = await self._client.complete(
            messages=build_enrichment_messages(trigger),
            model_alias=self._model_alias,
            temperature=0.2,
            max_tokens=300,
            json_mode=True,
        )
        text = parse_task_text(result.content)
        log.debug(
            "enrichment_generated",
            source_kind=trigger.source_kind.value,
            model_name=result.model_name,
            duration_ms=result.duration_ms,
        )
        return text


def create_enrichment_provider(config: ProviderConfig) -> LLMEnrichmentProvider | None:
    """根据配置创建文本增强能力

    Returns:
        llm_mode="off" 时返回 None（使用确定性兜底文案）
    """
    if config.llm_mode != "litellm":
        log.info("enrichment_disabled", llm_mode=config.llm_mode)
        return None

    client = LiteLLMClient(
        proxy_base_url=config.proxy_base_url,
        proxy_api_key=config.proxy_api_key.get_secret_value(),
        timeout_s=config.timeout_s,
    )
    log.info(
        "enrichment_enabled",
        proxy_url=config.proxy_base_url,
        model_alias=config.enrichment_model,
    )
    return LLMEnrichmentProvider(client, model_alias=config.enrichment_model)
