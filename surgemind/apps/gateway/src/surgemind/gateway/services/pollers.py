"""PollingEventSource -- 按固定间隔拉取上游快照的事件源

宿主应用决定轮询节奏，核心流水线只消费迭代结果。
默认节奏：vitals 10s、CCTV 20s、床位 60s、物资 120s。
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

import structlog
from surgemind.core.sources import BedTurnoverTracker

log = structlog.get_logger()

DEFAULT_POLL_INTERVALS: dict[str, float] = {
    "vitals": 10.0,
    "cctv": 20.0,
    "beds": 60.0,
    "supplies": 120.0,
}

Fetcher = Callable[[], Awaitable[Iterable[Mapping[str, Any]]]]


class PollingEventSource:
    """轮询事件源

    每个周期调用一次 fetch()，逐个产出其返回的原始事件。
    fetch() 失败记录 warning 并等待下一个周期，不终止迭代。
    """

    def __init__(
        self,
        name: str,
        fetch: Fetcher,
        interval_s: float,
        *,
        max_polls: int | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """
        Args:
            name: 事件源名称（日志用）
            fetch: 拉取一次快照的协程函数
            interval_s: 轮询间隔（秒）
            max_polls: 最多轮询次数，None 为不限
            sleep: 等待函数（测试注入）
        """
        if interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s}")
        self.name = name
        self._fetch = fetch
        self._interval_s = interval_s
        self._max_polls = max_polls
        self._sleep = sleep

    async def __aiter__(self) -> AsyncIterator[Mapping[str, Any]]:
        polls = 0
        while self._max_polls is None or polls < self._max_polls:
            polls += 1
            try:
                batch = list(await self._fetch())
            except Exception as e:
                log.warning(
                    "poll_fetch_failed",
                    source=self.name,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                batch = []
            for payload in batch:
                yield payload
            if self._max_polls is None or polls < self._max_polls:
                await self._sleep(self._interval_s)


def bed_snapshot_fetcher(
    fetch_beds: Fetcher,
    tracker: BedTurnoverTracker | None = None,
) -> Fetcher:
    """把床位快照拉取函数包装为 BedTurnover 事件拉取函数

    每次调用即一个观测周期，由 BedTurnoverTracker 维护连续 Cleaning 计数。
    """
    tracker = tracker or BedTurnoverTracker()

    async def fetch() -> list[dict[str, Any]]:
        beds = await fetch_beds()
        observations = tracker.observe(beds, datetime.now(UTC))
        return [obs.model_dump(mode="json") for obs in observations]

    return fetch
