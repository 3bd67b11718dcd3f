"""Task Domain Model -- 指派给单个护理人员的可执行任务

核心流水线只创建 Task，从不修改或删除。
状态流转由医护人员操作驱动（见 VALID_TRANSITIONS）。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import SourceKind, TaskPriority, TaskStatus


class TaskText(BaseModel):
    """任务文案（标题 + 描述），文本增强能力的返回类型"""

    title: str = Field(description="任务标题")
    description: str = Field(description="任务描述")


class Task(BaseModel):
    """Task 数据模型

    assignee_id 在创建时确定，核心流水线不会静默改派。
    """

    task_id: str = Field(description="唯一标识，ULID 格式")
    title: str = Field(min_length=1, description="任务标题")
    description: str = Field(min_length=1, description="任务描述")
    priority: TaskPriority = Field(description="优先级")
    location: str = Field(description="病房/区域标识")
    subject_id: str | None = Field(default=None, description="患者或设备引用")
    assignee_id: str = Field(min_length=1, description="被指派的护理人员 ID")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="当前状态")
    created_at: datetime = Field(description="创建时间")
    source_kind: SourceKind = Field(description="来源事件类型")
    enriched: bool = Field(default=False, description="文案是否来自文本增强")
