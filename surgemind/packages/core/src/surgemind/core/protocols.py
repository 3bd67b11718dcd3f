"""外部协作方接口定义

流水线对环境暴露/消费的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
具体传输（数据库行、实时通道载荷）由外部协作方负责。
"""

from collections.abc import AsyncIterator, Mapping
from typing import Any, Protocol

from .models import Caregiver, FailureReason, Task, TaskText, Trigger


class RosterSource(Protocol):
    """排班快照来源，允许滞后一个轮询周期"""

    async def current_caregivers(self) -> list[Caregiver]:
        """读取当前护理人员快照"""
        ...


class EventSource(Protocol):
    """原始领域事件的入站流，流水线逐个消费"""

    def __aiter__(self) -> AsyncIterator[Mapping[str, Any]]: ...


class EnrichmentProvider(Protocol):
    """可选的文本增强能力（有时限、可失败）"""

    async def generate(self, trigger: Trigger) -> TaskText:
        """为 Trigger 生成任务标题与描述"""
        ...


class TaskSink(Protocol):
    """任务写入目标（可失败、可重试）"""

    async def append(self, task: Task) -> None:
        """追加任务"""
        ...


class FailureReporter(Protocol):
    """运行故障上报，实现方不得抛出异常"""

    async def report(self, reason: FailureReason, context: dict[str, Any]) -> None:
        """上报故障"""
        ...
