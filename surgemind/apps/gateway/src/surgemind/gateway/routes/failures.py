"""故障记录路由

GET /api/failures: 按时间倒序查询已上报的运行故障，支持 reason 筛选。
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from surgemind.core.models import FailureReason, FailureRecord

from ..deps import get_store_group

router = APIRouter()


class FailureListResponse(BaseModel):
    failures: list[FailureRecord]


@router.get("/api/failures", response_model=FailureListResponse)
async def list_failures(
    reason: FailureReason | None = Query(default=None, description="按故障原因筛选"),
    limit: int = Query(default=100, ge=1, le=1000),
    store_group=Depends(get_store_group),
):
    records = await store_group.failure_store.list_failures(
        reason.value if reason else None,
        limit,
    )
    return FailureListResponse(failures=records)
