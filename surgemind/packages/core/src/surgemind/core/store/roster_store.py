"""RosterStore SQLite 实现

current_caregivers() 即 RosterSource 接口。
active_task_count 在查询时通过 tasks 表聚合得出，
因此始终等于 Pending / In-Progress 任务数。
"""

from datetime import UTC, datetime

import aiosqlite

from ..models import ACTIVE_TASK_STATUSES, Caregiver

_ACTIVE_PLACEHOLDERS = ", ".join("?" for _ in ACTIVE_TASK_STATUSES)
_ACTIVE_VALUES = tuple(sorted(s.value for s in ACTIVE_TASK_STATUSES))

_ROSTER_QUERY = f"""
    SELECT c.caregiver_id, c.display_name, c.role, c.availability,
           COUNT(t.task_id) AS active_task_count
    FROM caregivers c
    LEFT JOIN tasks t
        ON t.assignee_id = c.caregiver_id
       AND t.status IN ({_ACTIVE_PLACEHOLDERS})
"""


class SqliteRosterStore:
    """RosterStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def upsert_caregiver(self, caregiver: Caregiver) -> None:
        """排班源写入/更新护理人员（active_task_count 为派生值，忽略入参）"""
        try:
            await self._conn.execute(
                """
                INSERT INTO caregivers (caregiver_id, display_name, role,
                                        availability, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(caregiver_id) DO UPDATE SET
                    display_name = excluded.display_name,
                    role = excluded.role,
                    availability = excluded.availability,
                    updated_at = excluded.updated_at
                """,
                (
                    caregiver.id,
                    caregiver.display_name,
                    caregiver.role.value,
                    caregiver.availability.value,
                    datetime.now(UTC).isoformat(),
                ),
            )
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise

    async def get_caregiver(self, caregiver_id: str) -> Caregiver | None:
        """查询单个护理人员（含派生负载）"""
        cursor = await self._conn.execute(
            f"{_ROSTER_QUERY} WHERE c.caregiver_id = ? GROUP BY c.caregiver_id",
            (*_ACTIVE_VALUES, caregiver_id),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_caregiver(row)

    async def current_caregivers(self) -> list[Caregiver]:
        """排班快照，按登记顺序返回"""
        cursor = await self._conn.execute(
            f"{_ROSTER_QUERY} GROUP BY c.caregiver_id ORDER BY c.rowid ASC",
            _ACTIVE_VALUES,
        )
        rows = await cursor.fetchall()
        return [self._row_to_caregiver(row) for row in rows]

    @staticmethod
    def _row_to_caregiver(row: aiosqlite.Row) -> Caregiver:
        """将数据库行转换为 Caregiver 模型"""
        return Caregiver(
            id=row[0],
            display_name=row[1],
            role=row[2],
            availability=row[3],
            active_task_count=row[4],
        )
