"""packages/core 测试配置 -- 核心层 fixture"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio
from surgemind.core.models import (
    Availability,
    Caregiver,
    CaregiverRole,
    Severity,
    SourceKind,
    Task,
    TaskPriority,
    Trigger,
)
from surgemind.core.store import StoreGroup, create_store_group

# 对齐 20 秒时间桶的起点
BASE_TIME = datetime(2026, 3, 1, 8, 30, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    return BASE_TIME


@pytest_asyncio.fixture
async def core_db_path(tmp_path: Path) -> Path:
    """核心层临时数据库路径"""
    return tmp_path / "core_test.db"


@pytest_asyncio.fixture
async def core_db(core_db_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """核心层已初始化数据库连接"""
    from surgemind.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(core_db_path))
    await init_db(conn)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def store_group(core_db_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """共享连接的 Store 实例组"""
    sg = await create_store_group(str(core_db_path))
    yield sg
    await sg.conn.close()


def make_trigger(**overrides) -> Trigger:
    fields = {
        "source_kind": SourceKind.VITALS,
        "severity": Severity.CRITICAL,
        "location": "ICU",
        "subject_id": "P1",
        "occurred_at": BASE_TIME,
        "findings": ["SpO2 87% below 90%"],
    }
    fields.update(overrides)
    return Trigger(**fields)


def make_caregiver(
    caregiver_id: str,
    availability: Availability = Availability.ACTIVE,
    active_task_count: int = 0,
    role: CaregiverRole = CaregiverRole.NURSE,
) -> Caregiver:
    return Caregiver(
        id=caregiver_id,
        display_name=caregiver_id,
        role=role,
        availability=availability,
        active_task_count=active_task_count,
    )


def make_task(task_id: str = "01JQ3Z5X8K2M4N6P7R9S0T1V2W", **overrides) -> Task:
    fields = {
        "task_id": task_id,
        "title": "[Critical] Vitals alert: ICU",
        "description": "Subject P1. SpO2 87% below 90%.",
        "priority": TaskPriority.CRITICAL,
        "location": "ICU",
        "subject_id": "P1",
        "assignee_id": "nurse-a",
        "created_at": BASE_TIME,
        "source_kind": SourceKind.VITALS,
    }
    fields.update(overrides)
    return Task(**fields)


@pytest.fixture
def trigger_factory():
    return make_trigger


@pytest.fixture
def caregiver_factory():
    return make_caregiver


@pytest.fixture
def task_factory():
    return make_task
