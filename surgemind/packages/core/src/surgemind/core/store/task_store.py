"""TaskStore SQLite 实现

append() 即 TaskSink 接口：核心流水线只追加任务。
update_task_status() 仅供医护人员操作（外部动作）调用，按状态机校验流转。
"""

from datetime import UTC, datetime

import aiosqlite

from ..exceptions import InvalidTransitionError, TaskNotFoundError
from ..models import Task, TaskStatus, validate_transition

_SELECT_COLUMNS = """
    task_id, title, description, priority, location, subject_id,
    assignee_id, status, created_at, source_kind, enriched
"""


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def append(self, task: Task) -> None:
        """追加任务并提交

        以 task_id 幂等：sink 超时重试时同一任务可能重复送达，已存在则忽略。
        """
        try:
            await self._conn.execute(
                """
                INSERT INTO tasks (task_id, title, description, priority, location,
                                   subject_id, assignee_id, status, created_at,
                                   updated_at, source_kind, enriched)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(task_id) DO NOTHING
                """,
                (
                    task.task_id,
                    task.title,
                    task.description,
                    task.priority.value,
                    task.location,
                    task.subject_id,
                    task.assignee_id,
                    task.status.value,
                    task.created_at.isoformat(),
                    task.created_at.isoformat(),
                    task.source_kind.value,
                    int(task.enriched),
                ),
            )
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        cursor = await self._conn.execute(
            f"SELECT {_SELECT_COLUMNS} FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(
        self,
        status: str | None = None,
        assignee_id: str | None = None,
    ) -> list[Task]:
        """查询任务列表，支持按状态 / 指派对象筛选，按 created_at 倒序"""
        clauses: list[str] = []
        params: list[str] = []
        if status:
            clauses.append("status = ?")
            params.append(status)
        if assignee_id:
            clauses.append("assignee_id = ?")
            params.append(assignee_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        cursor = await self._conn.execute(
            f"SELECT {_SELECT_COLUMNS} FROM tasks {where} ORDER BY created_at DESC",
            params,
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def update_task_status(self, task_id: str, to_status: TaskStatus) -> Task:
        """按状态机推进任务状态（外部动作）

        以当前状态为条件更新，避免并发操作越过中间状态。

        Raises:
            TaskNotFoundError: 任务不存在
            InvalidTransitionError: 流转不合法
        """
        task = await self.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        if not validate_transition(task.status, to_status):
            raise InvalidTransitionError(task_id, task.status.value, to_status.value)

        try:
            cursor = await self._conn.execute(
                """
                UPDATE tasks SET status = ?, updated_at = ?
                WHERE task_id = ? AND status = ?
                """,
                (
                    to_status.value,
                    datetime.now(UTC).isoformat(),
                    task_id,
                    task.status.value,
                ),
            )
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise

        if cursor.rowcount == 0:
            # 并发修改：状态已被其他操作推进
            raise InvalidTransitionError(task_id, task.status.value, to_status.value)
        return task.model_copy(update={"status": to_status})

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            task_id=row[0],
            title=row[1],
            description=row[2],
            priority=row[3],
            location=row[4],
            subject_id=row[5],
            assignee_id=row[6],
            status=row[7],
            created_at=datetime.fromisoformat(row[8]),
            source_kind=row[9],
            enriched=bool(row[10]),
        )
