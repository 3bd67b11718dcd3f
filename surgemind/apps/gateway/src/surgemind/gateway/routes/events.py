"""事件接入路由

POST /api/events: 接收一个原始领域事件，同步走完流水线并返回 PipelineOutcome。
- 201: 已生成任务（Emitted）
- 200: 无操作（Received）或重复丢弃（Dropped）
- 422: 请求体不是 JSON 对象
- 503: 处理失败（Failed），故障已上报
"""

from typing import Any

from fastapi import APIRouter, Body, Depends
from starlette.responses import JSONResponse
from surgemind.core.models import PipelineStage

from ..deps import get_engine

router = APIRouter()

_STATUS_BY_STAGE = {
    PipelineStage.EMITTED: 201,
    PipelineStage.FAILED: 503,
}


@router.post("/api/events")
async def ingest_event(
    payload: dict[str, Any] = Body(description="原始事件载荷，需含 kind 字段"),
    engine=Depends(get_engine),
):
    """接收原始事件并返回流水线结果"""
    outcome = await engine.process(payload)
    return JSONResponse(
        status_code=_STATUS_BY_STAGE.get(outcome.stage, 200),
        content=outcome.model_dump(mode="json"),
    )
