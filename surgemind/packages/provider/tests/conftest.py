"""Provider 包测试 fixtures"""

from datetime import UTC, datetime

import pytest
from surgemind.core.models import Severity, SourceKind, Trigger


@pytest.fixture
def sample_messages() -> list[dict[str, str]]:
    """标准 messages 格式测试数据"""
    return [{"role": "user", "content": "Hello, world!"}]


@pytest.fixture
def vitals_trigger() -> Trigger:
    """低血氧 Trigger"""
    return Trigger(
        source_kind=SourceKind.VITALS,
        severity=Severity.CRITICAL,
        location="Ward 3",
        subject_id="P-104",
        occurred_at=datetime(2026, 3, 1, 8, 30, tzinfo=UTC),
        findings=["SpO2 87% below 90%"],
    )
