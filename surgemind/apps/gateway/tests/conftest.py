"""apps/gateway 测试配置 -- httpx AsyncClient + 临时 SQLite"""

import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from surgemind.core.store import create_store_group
from surgemind.provider import ProviderConfig


@pytest_asyncio.fixture
async def test_app(tmp_path: Path):
    """创建测试用 FastAPI app（手动装配运行时，绕过 lifespan）"""
    os.environ["SURGEMIND_DB_PATH"] = str(tmp_path / "test.db")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from surgemind.gateway.main import create_app, init_runtime

    app = create_app()
    store_group = await create_store_group(str(tmp_path / "test.db"))
    init_runtime(app, store_group, ProviderConfig(llm_mode="off"))

    yield app

    await store_group.conn.close()
    os.environ.pop("SURGEMIND_DB_PATH", None)
    os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def now_iso() -> str:
    return datetime.now(UTC).isoformat()


@pytest.fixture
def low_spo2_event(now_iso) -> dict:
    """SpO2 87% 的生命体征读数"""
    return {
        "kind": "Vitals",
        "device_id": "MON-7",
        "location": "Ward 3",
        "subject_id": "P-104",
        "spo2": 87,
        "heart_rate": 92,
        "occurred_at": now_iso,
    }


@pytest.fixture
def register_caregiver(client: AsyncClient):
    """通过排班接口登记护理人员"""

    async def _register(
        caregiver_id: str,
        availability: str = "Active",
        role: str = "Nurse",
    ) -> dict:
        resp = await client.put(
            f"/api/caregivers/{caregiver_id}",
            json={"display_name": caregiver_id, "role": role, "availability": availability},
        )
        assert resp.status_code == 200
        return resp.json()

    return _register
