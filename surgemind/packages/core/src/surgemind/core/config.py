"""配置模块 -- 可通过环境变量覆盖

包含数据库路径、去重窗口、超时与重试参数等可配置常量。
非法的环境变量值记录 warning 并回退默认值，不阻塞启动。
"""

import os
from pathlib import Path

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("SURGEMIND_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "SURGEMIND_DB_PATH",
        str(_get_base_dir() / "sqlite" / "surgemind.db"),
    )


# SSE 心跳间隔（秒）
SSE_HEARTBEAT_INTERVAL: int = int(
    os.environ.get("SURGEMIND_SSE_HEARTBEAT_INTERVAL", "15")
)

# 任务标题最大长度
TASK_TITLE_MAX_LENGTH: int = 100


class EngineConfig(BaseModel):
    """TaskAssignmentEngine 配置

    环境变量:
        SURGEMIND_DEDUPE_WINDOW_S: 去重窗口（秒，默认 20，对齐 CCTV 轮询周期）
        SURGEMIND_DEDUPE_MAX_ENTRIES: 去重表最大条目数
        SURGEMIND_ENRICHMENT_TIMEOUT_S: 文本增强超时（秒）
        SURGEMIND_SINK_TIMEOUT_S: 单次 sink 写入超时（秒）
        SURGEMIND_SINK_MAX_ATTEMPTS: sink 写入最大尝试次数
        SURGEMIND_SINK_BACKOFF_BASE_S: 指数退避基础间隔（秒）
    """

    dedupe_window_s: float = Field(default=20.0, gt=0, description="去重窗口（秒）")
    dedupe_max_entries: int = Field(default=10_000, ge=1, description="去重表容量上限")
    enrichment_timeout_s: float = Field(default=5.0, gt=0, description="文本增强超时")
    sink_timeout_s: float = Field(default=5.0, gt=0, description="sink 写入超时")
    sink_max_attempts: int = Field(default=3, ge=1, description="sink 最大尝试次数")
    sink_backoff_base_s: float = Field(default=0.5, ge=0, description="退避基础间隔")


# 环境变量 -> (字段名, 类型)
_ENGINE_ENV_VARS: dict[str, tuple[str, type]] = {
    "SURGEMIND_DEDUPE_WINDOW_S": ("dedupe_window_s", float),
    "SURGEMIND_DEDUPE_MAX_ENTRIES": ("dedupe_max_entries", int),
    "SURGEMIND_ENRICHMENT_TIMEOUT_S": ("enrichment_timeout_s", float),
    "SURGEMIND_SINK_TIMEOUT_S": ("sink_timeout_s", float),
    "SURGEMIND_SINK_MAX_ATTEMPTS": ("sink_max_attempts", int),
    "SURGEMIND_SINK_BACKOFF_BASE_S": ("sink_backoff_base_s", float),
}


def load_engine_config() -> EngineConfig:
    """从环境变量加载 Engine 配置

    Returns:
        EngineConfig 实例
    """
    defaults = EngineConfig()
    kwargs: dict = {}

    for env_var, (field_name, cast) in _ENGINE_ENV_VARS.items():
        val = os.environ.get(env_var)
        if not val:
            continue
        try:
            parsed = cast(val)
            # 逐字段校验，避免单个非法值导致整体回退
            EngineConfig(**{field_name: parsed})
        except ValueError:
            log.warning(
                "invalid_engine_config",
                env_var=env_var,
                value=val,
                fallback=getattr(defaults, field_name),
            )
            continue
        kwargs[field_name] = parsed

    return EngineConfig(**kwargs)
