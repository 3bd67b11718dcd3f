"""SSE 任务流路由

GET /api/stream/tasks: 实时推送新生成的任务。
- assignee_id 参数：仅推送指派给该护理人员的任务（缺省推送全部）
- 心跳保活（SSE_HEARTBEAT_INTERVAL 秒）
"""

import asyncio
import json

from fastapi import APIRouter, Depends, Query
from sse_starlette.sse import EventSourceResponse
from surgemind.core.config import SSE_HEARTBEAT_INTERVAL
from surgemind.core.models import Task

from ..deps import get_sse_hub
from ..services.sse_hub import ALL_CHANNEL

router = APIRouter()

TASK_EVENT = "TASK_CREATED"


def task_to_sse(task: Task) -> dict:
    """将 Task 转换为 SSE 消息"""
    return {
        "id": task.task_id,
        "event": TASK_EVENT,
        "data": json.dumps(task.model_dump(mode="json"), ensure_ascii=False),
    }


@router.get("/api/stream/tasks")
async def stream_tasks(
    assignee_id: str | None = Query(default=None, description="仅推送指派给该人员的任务"),
    sse_hub=Depends(get_sse_hub),
):
    """SSE 任务流端点"""
    channel = assignee_id or ALL_CHANNEL
    # 在返回响应前完成订阅，避免连接建立与首个任务之间的竞态
    queue = await sse_hub.subscribe(channel)

    async def event_generator():
        try:
            while True:
                try:
                    task = await asyncio.wait_for(
                        queue.get(), timeout=SSE_HEARTBEAT_INTERVAL
                    )
                    yield task_to_sse(task)
                except TimeoutError:
                    # 心跳保活
                    yield {"comment": "heartbeat"}
        finally:
            await sse_hub.unsubscribe(channel, queue)

    return EventSourceResponse(event_generator())
