"""Caregiver Domain Model -- 排班快照中的护理人员

核心流水线从不创建护理人员，只读取外部排班源提供的快照。
active_task_count 由 Pending / In-Progress 任务数派生。
"""

from pydantic import BaseModel, Field

from .enums import Availability, CaregiverRole


class Caregiver(BaseModel):
    """Caregiver 数据模型

    active_task_count 必须等于指派给该护理人员、
    状态为 Pending 或 In-Progress 的任务数量。
    """

    id: str = Field(description="稳定的不透明标识")
    display_name: str = Field(default="", description="显示名称")
    role: CaregiverRole = Field(default=CaregiverRole.OTHER, description="角色")
    availability: Availability = Field(
        default=Availability.ACTIVE,
        description="在岗状态",
    )
    active_task_count: int = Field(default=0, ge=0, description="活跃任务数")
