"""Trigger Domain Model -- 分类后的可执行领域事件

Trigger 随事件临时构建，立即被流水线消费，不直接持久化。
severity 只由 EventClassifier 根据 source_kind 与原始载荷推导。
"""

import math
from datetime import datetime

from pydantic import BaseModel, Field

from .enums import Severity, SourceKind

# subject_id 缺失时 dedupe_key 中使用的占位符
NO_SUBJECT = "-"


class Trigger(BaseModel):
    """Trigger 数据模型"""

    source_kind: SourceKind = Field(description="事件来源类型")
    severity: Severity = Field(description="严重程度")
    location: str = Field(description="病房/区域标识")
    subject_id: str | None = Field(default=None, description="患者或设备引用")
    occurred_at: datetime = Field(description="事件发生时间")
    findings: list[str] = Field(
        default_factory=list,
        description="触发阈值的说明，用于生成兜底文案",
    )

    def time_bucket(self, window_s: float) -> int:
        """按窗口大小将 occurred_at 归入粗粒度时间桶"""
        return math.floor(self.occurred_at.timestamp() / window_s)

    def dedupe_key(self, window_s: float) -> str:
        """去重键：source_kind + location + subject_id + 时间桶"""
        subject = self.subject_id or NO_SUBJECT
        return (
            f"{self.source_kind.value}|{self.location}|{subject}"
            f"|{self.time_bucket(window_s)}"
        )
