"""NotifyingTaskSink -- 写入任务后推送给在线护理人员

写入失败直接抛出（由引擎重试）；写入成功后的广播失败只记录日志。
"""

import structlog
from surgemind.core.models import Task
from surgemind.core.store.task_store import SqliteTaskStore

from .sse_hub import SSEHub

log = structlog.get_logger()


class NotifyingTaskSink:
    """TaskSink 实现：SqliteTaskStore + SSEHub"""

    def __init__(self, task_store: SqliteTaskStore, sse_hub: SSEHub) -> None:
        self._task_store = task_store
        self._sse_hub = sse_hub

    async def append(self, task: Task) -> None:
        await self._task_store.append(task)
        try:
            await self._sse_hub.broadcast(task)
        except Exception as e:
            # 任务已持久化，客户端可通过 GET /api/tasks 补齐
            log.warning(
                "task_broadcast_failed",
                task_id=task.task_id,
                error=str(e),
            )
