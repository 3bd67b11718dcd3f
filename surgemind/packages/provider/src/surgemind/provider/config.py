"""ProviderConfig -- Provider 配置加载

从环境变量加载配置，不硬编码 provider/模型名。
默认关闭文本增强（llm_mode="off"），任务文案使用确定性兜底文本。
"""

import os
from typing import Literal

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()


class ProviderConfig(BaseModel):
    """Provider 包配置 -- 从环境变量加载

    环境变量:
        LITELLM_PROXY_URL: Proxy 地址（默认 http://localhost:4000）
        LITELLM_PROXY_KEY: Proxy 访问密钥
        SURGEMIND_LLM_MODE: 文本增强模式（litellm/off）
        SURGEMIND_LLM_TIMEOUT_S: 调用超时（秒，默认 30）
        SURGEMIND_ENRICHMENT_MODEL: 文本增强使用的运行时 group（默认 cheap）
    """

    proxy_base_url: str = Field(
        default="http://localhost:4000",
        description="LiteLLM Proxy 基础 URL",
    )
    proxy_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Proxy 访问密钥（不是 LLM provider API key）",
    )
    llm_mode: Literal["litellm", "off"] = Field(
        default="off",
        description="文本增强模式：litellm / off",
    )
    timeout_s: int = Field(
        default=30,
        ge=1,
        description="LLM 调用超时（秒）",
    )
    enrichment_model: str = Field(
        default="cheap",
        description="文本增强使用的运行时 group（Proxy model_name）",
    )


def load_provider_config() -> ProviderConfig:
    """从环境变量加载 Provider 配置

    Returns:
        ProviderConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("LITELLM_PROXY_URL"):
        kwargs["proxy_base_url"] = val

    if val := os.environ.get("LITELLM_PROXY_KEY"):
        kwargs["proxy_api_key"] = SecretStr(val)

    if val := os.environ.get("SURGEMIND_LLM_MODE"):
        if val in ("litellm", "off"):
            kwargs["llm_mode"] = val
        else:
            log.warning(
                "invalid_llm_mode_config",
                env_var="SURGEMIND_LLM_MODE",
                value=val,
                fallback="off",
            )

    if val := os.environ.get("SURGEMIND_LLM_TIMEOUT_S"):
        try:
            kwargs["timeout_s"] = int(val)
        except ValueError:
            log.warning(
                "invalid_timeout_config",
                env_var="SURGEMIND_LLM_TIMEOUT_S",
                value=val,
                fallback=30,
            )
            # 使用默认值，不阻塞启动

    if val := os.environ.get("SURGEMIND_ENRICHMENT_MODEL"):
        kwargs["enrichment_model"] = val

    return ProviderConfig(**kwargs)
