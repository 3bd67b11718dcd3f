"""FailureReporter 实现

- StructlogFailureReporter：仅结构化日志
- StoreFailureReporter：日志 + 持久化到 failures 表

两者均不抛出异常。
"""

from datetime import UTC, datetime
from typing import Any

import structlog
from ulid import ULID

from .models import FailureReason, FailureRecord
from .store.failure_store import SqliteFailureStore

log = structlog.get_logger()


class StructlogFailureReporter:
    """以 error 级别日志上报故障"""

    async def report(self, reason: FailureReason, context: dict[str, Any]) -> None:
        log.error("operational_failure", reason=reason.value, context=context)


class StoreFailureReporter(StructlogFailureReporter):
    """上报故障并写入 failures 表

    持久化失败时仅记录日志，不向调用方抛出。
    """

    def __init__(self, failure_store: SqliteFailureStore) -> None:
        self._failure_store = failure_store

    async def report(self, reason: FailureReason, context: dict[str, Any]) -> None:
        await super().report(reason, context)
        record = FailureRecord(
            failure_id=str(ULID()),
            reason=reason,
            ts=datetime.now(UTC),
            context=context,
        )
        try:
            await self._failure_store.record(record)
        except Exception as e:
            log.error(
                "failure_record_persist_failed",
                failure_id=record.failure_id,
                reason=reason.value,
                error_type=type(e).__name__,
            )
