"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + 文本增强初始化 + 引擎装配 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from surgemind.core.config import get_db_path, load_engine_config
from surgemind.core.engine import TaskAssignmentEngine
from surgemind.core.reporting import StoreFailureReporter
from surgemind.core.store import StoreGroup, create_store_group
from surgemind.provider import ProviderConfig, create_enrichment_provider, load_provider_config

from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import caregivers, events, failures, health, stream, tasks
from .services.sse_hub import SSEHub
from .services.task_sink import NotifyingTaskSink

log = structlog.get_logger()


def init_runtime(
    app: FastAPI,
    store_group: StoreGroup,
    provider_config: ProviderConfig,
) -> TaskAssignmentEngine:
    """装配运行时组件并挂到 app.state

    Returns:
        装配好的 TaskAssignmentEngine
    """
    sse_hub = SSEHub()
    enrichment = create_enrichment_provider(provider_config)
    engine_config = load_engine_config()

    engine = TaskAssignmentEngine(
        roster=store_group.roster_store,
        sink=NotifyingTaskSink(store_group.task_store, sse_hub),
        reporter=StoreFailureReporter(store_group.failure_store),
        enrichment=enrichment,
        config=engine_config,
    )

    app.state.store_group = store_group
    app.state.sse_hub = sse_hub
    app.state.provider_config = provider_config
    # 供 /ready?profile=llm 探测 Proxy
    app.state.litellm_client = enrichment.client if enrichment is not None else None
    app.state.engine = engine

    log.info(
        "engine_initialized",
        llm_mode=provider_config.llm_mode,
        dedupe_window_s=engine_config.dedupe_window_s,
        sink_max_attempts=engine_config.sink_max_attempts,
    )
    return engine


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB 与引擎，关闭时清理连接"""
    store_group = await create_store_group(get_db_path())
    init_runtime(app, store_group, load_provider_config())

    yield

    # 关闭：清理数据库连接
    if getattr(app.state, "store_group", None):
        await app.state.store_group.conn.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="SurgeMind Gateway",
        version="0.1.0",
        description="SurgeMind 医院运营事件 -> 护理任务指派 API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    # 初始化日志
    setup_logging()
    setup_logfire(app)

    # 注册路由
    app.include_router(events.router, tags=["events"])
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(caregivers.router, tags=["caregivers"])
    app.include_router(failures.router, tags=["failures"])
    app.include_router(stream.router, tags=["stream"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
