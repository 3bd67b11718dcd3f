"""事件源辅助

- QueueEventSource：实时通道回调 -> asyncio.Queue -> 流水线逐个消费
- BedTurnoverTracker：把床位轮询快照转为带连续 Cleaning 周期计数的 BedObservation

核心不持有定时器，轮询节奏由宿主应用决定。
"""

import asyncio
from collections.abc import AsyncIterator, Iterable, Mapping
from datetime import datetime
from typing import Any

import structlog

from .models import BedObservation, BedStatus

log = structlog.get_logger()

# 关闭标记
_CLOSED = object()


class QueueEventSource:
    """基于 asyncio.Queue 的事件源

    push() 由实时通道回调调用；close() 后迭代在排空队列后结束。
    """

    def __init__(self, name: str = "queue", maxsize: int = 1000) -> None:
        self.name = name
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    async def push(self, payload: Mapping[str, Any]) -> None:
        """送入一个原始事件（队列满时等待）"""
        if self._closed:
            raise RuntimeError(f"event source {self.name} is closed")
        await self._queue.put(payload)

    def push_nowait(self, payload: Mapping[str, Any]) -> bool:
        """非阻塞送入，队列满或已关闭时丢弃并返回 False"""
        if self._closed:
            return False
        try:
            self._queue.put_nowait(payload)
        except asyncio.QueueFull:
            log.warning("event_source_queue_full", source=self.name)
            return False
        return True

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            await self._queue.put(_CLOSED)

    async def __aiter__(self) -> AsyncIterator[Mapping[str, Any]]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item


class BedTurnoverTracker:
    """床位周转跟踪

    每次 observe() 视为一个观测周期：
    - 处于 Cleaning 的床位计数 +1
    - 离开 Cleaning 的床位计数清零
    - 快照中缺失的床位被遗忘
    """

    def __init__(self) -> None:
        self._cleaning_cycles: dict[str, int] = {}

    def observe(
        self,
        beds: Iterable[Mapping[str, Any]],
        observed_at: datetime,
    ) -> list[BedObservation]:
        """处理一次床位快照

        Args:
            beds: 床位记录，需含 bed_id / ward / status
            observed_at: 本次观测时间

        Returns:
            每张床位对应的 BedObservation
        """
        observations: list[BedObservation] = []
        seen: dict[str, int] = {}
        for bed in beds:
            observation = BedObservation(
                bed_id=bed["bed_id"],
                ward=bed["ward"],
                status=bed["status"],
                occurred_at=observed_at,
            )
            if observation.status == BedStatus.CLEANING:
                cycles = self._cleaning_cycles.get(observation.bed_id, 0) + 1
            else:
                cycles = 0
            seen[observation.bed_id] = cycles
            observations.append(observation.model_copy(update={"cleaning_cycles": cycles}))
        self._cleaning_cycles = seen
        return observations
