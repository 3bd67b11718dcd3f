"""SurgeMind Provider -- LLM 文本增强层

packages/provider 的公开接口导出。
"""

# 核心组件
from .client import LiteLLMClient

# 配置
from .config import ProviderConfig, load_provider_config
from .enrichment import (
    LLMEnrichmentProvider,
    build_enrichment_messages,
    create_enrichment_provider,
    parse_task_text,
)

# 异常
from .exceptions import EnrichmentError, ProviderError, ProxyUnreachableError

# 数据模型
from .models import ModelCallResult, TokenUsage

__all__ = [
    "ModelCallResult",
    "TokenUsage",
    "LiteLLMClient",
    "LLMEnrichmentProvider",
    "build_enrichment_messages",
    "create_enrichment_provider",
    "parse_task_text",
    "ProviderConfig",
    "load_provider_config",
    "ProviderError",
    "ProxyUnreachableError",
    "EnrichmentError",
]
