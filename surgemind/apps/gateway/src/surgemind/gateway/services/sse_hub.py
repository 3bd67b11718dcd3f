"""SSEHub -- 内存中任务广播器

每个订阅者持有一个 asyncio.Queue，支持 subscribe/unsubscribe/broadcast。
订阅频道为 assignee_id，或 ALL_CHANNEL 接收全部任务。
"""

import asyncio
from collections import defaultdict

import structlog
from surgemind.core.models import Task

log = structlog.get_logger()

# 订阅全部任务的频道
ALL_CHANNEL = "*"


class SSEHub:
    """SSE 任务广播器 -- 基于 asyncio.Queue 的发布/订阅模式"""

    def __init__(self, queue_maxsize: int = 100) -> None:
        # channel -> set of asyncio.Queue
        self._subscribers: dict[str, set[asyncio.Queue]] = defaultdict(set)
        self._queue_maxsize = queue_maxsize

    async def subscribe(self, channel: str = ALL_CHANNEL) -> asyncio.Queue:
        """订阅频道

        Args:
            channel: assignee_id 或 ALL_CHANNEL

        Returns:
            asyncio.Queue 实例，新任务会被推送到此队列
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_maxsize)
        self._subscribers[channel].add(queue)
        return queue

    async def unsubscribe(self, channel: str, queue: asyncio.Queue) -> None:
        """取消订阅"""
        self._subscribers[channel].discard(queue)
        if not self._subscribers[channel]:
            del self._subscribers[channel]

    def subscriber_count(self, channel: str | None = None) -> int:
        if channel is not None:
            return len(self._subscribers.get(channel, ()))
        return sum(len(queues) for queues in self._subscribers.values())

    async def broadcast(self, task: Task) -> None:
        """向任务指派对象频道与 ALL_CHANNEL 的订阅者广播

        队列已满的订阅者视为失联，直接移除。
        """
        for channel in (task.assignee_id, ALL_CHANNEL):
            dead_queues = []
            for queue in self._subscribers.get(channel, set()):
                try:
                    queue.put_nowait(task)
                except asyncio.QueueFull:
                    dead_queues.append(queue)

            # 清理已满的队列
            for q in dead_queues:
                self._subscribers[channel].discard(q)
                log.warning("sse_subscriber_dropped", channel=channel)
            if channel in self._subscribers and not self._subscribers[channel]:
                del self._subscribers[channel]
