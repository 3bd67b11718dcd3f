"""LiteLLMClient -- 文本增强使用的 LiteLLM Proxy 客户端

Proxy 暴露 OpenAI 兼容接口，模型选择由 Proxy 侧的运行时 group 决定，
本客户端只负责一次请求与错误归类：
- 连接失败 / 超时 -> ProxyUnreachableError
- Proxy 返回的其他错误 -> ProviderError
"""

import time
from typing import Any

import httpx
import structlog
from litellm import acompletion

from .exceptions import ProviderError, ProxyUnreachableError
from .models import ModelCallResult, TokenUsage

log = structlog.get_logger()

HEALTH_CHECK_TIMEOUT_S = 5

# LiteLLM 把传输层错误包装成以下类型
_LITELLM_CONNECTION_ERRORS = frozenset({"APIConnectionError", "APITimeoutError"})


def _is_unreachable(e: Exception) -> bool:
    if isinstance(e, (OSError, TimeoutError, httpx.TransportError)):
        return True
    return type(e).__name__ in _LITELLM_CONNECTION_ERRORS


def _usage_of(response: Any) -> TokenUsage:
    usage = getattr(response, "usage", None)
    if usage is None:
        return TokenUsage()
    try:
        return TokenUsage(
            prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
            total_tokens=getattr(usage, "total_tokens", 0) or 0,
        )
    except ValueError as e:
        log.debug("parse_usage_failed", error=str(e))
        return TokenUsage()


class LiteLLMClient:
    """LiteLLM Proxy 客户端

    proxy_api_key 是 Proxy 的访问密钥；模型厂商的密钥只配置在 Proxy 上。
    """

    def __init__(
        self,
        proxy_base_url: str = "http://localhost:4000",
        proxy_api_key: str = "",
        timeout_s: int = 30,
    ) -> None:
        self._proxy_base_url = proxy_base_url.rstrip("/")
        self._proxy_api_key = proxy_api_key
        self._timeout_s = timeout_s

    @property
    def proxy_base_url(self) -> str:
        return self._proxy_base_url

    def _request_kwargs(
        self,
        messages: list[dict[str, str]],
        model_alias: str,
        temperature: float,
        max_tokens: int | None,
        json_mode: bool,
        extra: dict[str, Any],
    ) -> dict[str, Any]:
        request: dict[str, Any] = {
            "model": f"openai/{model_alias}",
            "messages": messages,
            "api_base": self._proxy_base_url,
            "api_key": self._proxy_api_key or "no-key",
            "temperature": temperature,
            "timeout": self._timeout_s,
            **extra,
        }
        if max_tokens is not None:
            request["max_tokens"] = max_tokens
        if json_mode:
            request["response_format"] = {"type": "json_object"}
        return request

    async def complete(
        self,
        messages: list[dict[str, str]],
        model_alias: str = "main",
        temperature: float = 0.2,
        max_tokens: int | None = None,
        json_mode: bool = False,
        **kwargs,
    ) -> ModelCallResult:
        """发送一次 chat completion

        Args:
            messages: [{"role": ..., "content": ...}]
            model_alias: Proxy 上的运行时 group 名
            json_mode: 要求模型只输出 JSON 对象

        Raises:
            ProxyUnreachableError: Proxy 连接失败或超时
            ProviderError: Proxy 返回错误
        """
        request = self._request_kwargs(
            messages, model_alias, temperature, max_tokens, json_mode, kwargs
        )
        start_time = time.monotonic()
        try:
            response = await acompletion(**request)
        except Exception as e:
            duration_ms = int((time.monotonic() - start_time) * 1000)
            log.error(
                "litellm_call_failed",
                model_alias=model_alias,
                error_type=type(e).__name__,
                error=str(e),
                duration_ms=duration_ms,
            )
            if _is_unreachable(e):
                raise ProxyUnreachableError(
                    proxy_url=self._proxy_base_url,
                    original_error=e,
                ) from e
            raise ProviderError(message=f"LLM 调用失败: {e}", recoverable=True) from e

        result = ModelCallResult(
            content=response.choices[0].message.content or "",
            model_alias=model_alias,
            model_name=getattr(response, "model", "") or "",
            duration_ms=int((time.monotonic() - start_time) * 1000),
            token_usage=_usage_of(response),
        )
        log.info(
            "litellm_call_completed",
            model_alias=model_alias,
            model_name=result.model_name,
            duration_ms=result.duration_ms,
            total_tokens=result.token_usage.total_tokens,
        )
        return result

    async def health_check(self) -> bool:
        """GET /health/liveliness，不可达时返回 False（不抛出）"""
        url = f"{self._proxy_base_url}/health/liveliness"
        try:
            async with httpx.AsyncClient() as http_client:
                resp = await http_client.get(url, timeout=HEALTH_CHECK_TIMEOUT_S)
        except Exception as e:
            log.debug("health_check_failed", url=url, error=str(e))
            return False
        return resp.status_code == 200
