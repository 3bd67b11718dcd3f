"""流水线结果与故障记录"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .enums import FailureReason, PipelineStage
from .task import Task
from .trigger import Trigger


class PipelineOutcome(BaseModel):
    """单个原始事件的处理结果

    - stage=Received 且 trigger=None：不需要处理（detail="malformed" 表示载荷不合法）
    - stage=Dropped：去重窗口内的重复 Trigger
    - stage=Emitted：task 已写入 sink
    - stage=Failed：reason 标明故障类型
    """

    stage: PipelineStage
    trigger: Trigger | None = None
    task: Task | None = None
    reason: FailureReason | None = None
    detail: str = ""


class FailureRecord(BaseModel):
    """已上报的运行故障

    context 保留足够信息以便人工重建任务（trigger / task 完整字段）。
    """

    failure_id: str = Field(description="唯一标识，ULID 格式")
    reason: FailureReason
    ts: datetime
    context: dict[str, Any] = Field(default_factory=dict)
