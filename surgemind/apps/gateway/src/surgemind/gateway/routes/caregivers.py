"""排班路由

PUT /api/caregivers/{caregiver_id}: 排班源写入护理人员（角色、在岗状态）。
GET /api/caregivers: 当前排班快照（含派生的 active_task_count）。
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from surgemind.core.models import Availability, Caregiver, CaregiverRole

from ..deps import get_store_group

router = APIRouter()


class CaregiverUpsertRequest(BaseModel):
    """护理人员写入请求体（active_task_count 由任务表派生，不可写入）"""

    display_name: str = Field(default="", description="显示名")
    role: CaregiverRole = Field(default=CaregiverRole.OTHER, description="角色")
    availability: Availability = Field(
        default=Availability.ACTIVE, description="在岗状态"
    )


class CaregiverListResponse(BaseModel):
    caregivers: list[Caregiver]


@router.put("/api/caregivers/{caregiver_id}", response_model=Caregiver)
async def upsert_caregiver(
    caregiver_id: str,
    body: CaregiverUpsertRequest,
    store_group=Depends(get_store_group),
):
    """写入或更新护理人员，返回含派生负载的最新记录"""
    roster = store_group.roster_store
    await roster.upsert_caregiver(
        Caregiver(
            id=caregiver_id,
            display_name=body.display_name,
            role=body.role,
            availability=body.availability,
        )
    )
    return await roster.get_caregiver(caregiver_id)


@router.get("/api/caregivers", response_model=CaregiverListResponse)
async def list_caregivers(store_group=Depends(get_store_group)):
    """当前排班快照"""
    caregivers = await store_group.roster_store.current_caregivers()
    return CaregiverListResponse(caregivers=caregivers)
