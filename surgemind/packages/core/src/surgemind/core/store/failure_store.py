"""FailureStore SQLite 实现 -- 已上报故障的持久化"""

import json
from datetime import datetime

import aiosqlite

from ..models import FailureRecord


class SqliteFailureStore:
    """FailureStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def record(self, record: FailureRecord) -> None:
        """写入故障记录并提交"""
        try:
            await self._conn.execute(
                """
                INSERT INTO failures (failure_id, reason, ts, context)
                VALUES (?, ?, ?, ?)
                """,
                (
                    record.failure_id,
                    record.reason.value,
                    record.ts.isoformat(),
                    json.dumps(record.context, ensure_ascii=False, default=str),
                ),
            )
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise

    async def get_failure(self, failure_id: str) -> FailureRecord | None:
        """根据 failure_id 查询"""
        cursor = await self._conn.execute(
            "SELECT failure_id, reason, ts, context FROM failures WHERE failure_id = ?",
            (failure_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_record(row)

    async def list_failures(
        self,
        reason: str | None = None,
        limit: int = 100,
    ) -> list[FailureRecord]:
        """查询故障记录，按时间倒序"""
        if reason:
            cursor = await self._conn.execute(
                """
                SELECT failure_id, reason, ts, context FROM failures
                WHERE reason = ? ORDER BY ts DESC LIMIT ?
                """,
                (reason, limit),
            )
        else:
            cursor = await self._conn.execute(
                "SELECT failure_id, reason, ts, context FROM failures ORDER BY ts DESC LIMIT ?",
                (limit,),
            )
        rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    @staticmethod
    def _row_to_record(row: aiosqlite.Row) -> FailureRecord:
        """将数据库行转换为 FailureRecord 模型"""
        return FailureRecord(
            failure_id=row[0],
            reason=row[1],
            ts=datetime.fromisoformat(row[2]),
            context=json.loads(row[3]) if row[3] else {},
        )
