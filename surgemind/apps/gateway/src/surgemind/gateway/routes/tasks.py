"""任务查询与状态流转路由

GET /api/tasks: 任务列表查询，支持 status / assignee_id 筛选。
GET /api/tasks/{task_id}: 任务详情。
POST /api/tasks/{task_id}/status: 医护人员推进任务状态（Pending -> In-Progress -> Completed）。
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse
from surgemind.core.exceptions import InvalidTransitionError, TaskNotFoundError
from surgemind.core.models import Task, TaskStatus

from ..deps import get_store_group

router = APIRouter()


class TaskListResponse(BaseModel):
    """任务列表响应"""

    tasks: list[Task]


class StatusUpdateRequest(BaseModel):
    """状态流转请求体"""

    status: TaskStatus = Field(description="目标状态")


def _not_found(task_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={
            "error": {
                "code": "TASK_NOT_FOUND",
                "message": f"Task with id {task_id} does not exist",
            }
        },
    )


@router.get("/api/tasks", response_model=TaskListResponse)
async def list_tasks(
    status: TaskStatus | None = Query(default=None, description="按状态筛选"),
    assignee_id: str | None = Query(default=None, description="按指派对象筛选"),
    store_group=Depends(get_store_group),
):
    """查询任务列表，按 created_at 倒序"""
    tasks = await store_group.task_store.list_tasks(
        status.value if status else None,
        assignee_id,
    )
    return TaskListResponse(tasks=tasks)


@router.get("/api/tasks/{task_id}")
async def get_task_detail(
    task_id: str,
    store_group=Depends(get_store_group),
):
    """查询任务详情"""
    task = await store_group.task_store.get_task(task_id)
    if task is None:
        return _not_found(task_id)
    return {"task": task.model_dump(mode="json")}


@router.post("/api/tasks/{task_id}/status")
async def update_task_status(
    task_id: str,
    body: StatusUpdateRequest,
    store_group=Depends(get_store_group),
):
    """推进任务状态

    - 200: 流转成功
    - 404: 任务不存在
    - 409: 流转不合法（跳级、回退或已完成）
    """
    try:
        task = await store_group.task_store.update_task_status(task_id, body.status)
    except TaskNotFoundError:
        return _not_found(task_id)
    except InvalidTransitionError as e:
        return JSONResponse(
            status_code=409,
            content={
                "error": {
                    "code": "INVALID_TRANSITION",
                    "message": str(e),
                }
            },
        )

    return {"task_id": task.task_id, "status": task.status.value}
