"""集成测试共享 fixture"""

import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from surgemind.core.store import create_store_group
from surgemind.provider import ProviderConfig


@pytest.fixture
def provider_config() -> ProviderConfig:
    """默认关闭文本增强，测试可覆盖此 fixture"""
    return ProviderConfig(llm_mode="off")


@pytest_asyncio.fixture
async def integration_app(tmp_path: Path, provider_config: ProviderConfig):
    """集成测试用 FastAPI app"""
    os.environ["SURGEMIND_DB_PATH"] = str(tmp_path / "test.db")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from surgemind.gateway.main import create_app, init_runtime

    app = create_app()
    store_group = await create_store_group(str(tmp_path / "test.db"))
    init_runtime(app, store_group, provider_config)

    yield app

    await store_group.conn.close()
    os.environ.pop("SURGEMIND_DB_PATH", None)
    os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def vitals_event():
    """构造生命体征读数载荷"""

    def _make(subject_id: str = "P-104", spo2: float = 87, location: str = "Ward 3") -> dict:
        return {
            "kind": "Vitals",
            "device_id": f"MON-{subject_id}",
            "location": location,
            "subject_id": subject_id,
            "spo2": spo2,
            "heart_rate": 90,
            "occurred_at": datetime.now(UTC).isoformat(),
        }

    return _make


@pytest.fixture
def register_caregiver(client: AsyncClient):
    async def _register(caregiver_id: str, availability: str = "Active") -> None:
        resp = await client.put(
            f"/api/caregivers/{caregiver_id}",
            json={"display_name": caregiver_id, "role": "Nurse", "availability": availability},
        )
        assert resp.status_code == 200

    return _register
