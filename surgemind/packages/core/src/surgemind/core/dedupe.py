"""DeduplicationWindow -- 并发监听下的一次性准入

多个独立实时通道可能为同一情况各自送入结构相同的 Trigger。
同一 dedupe_key 在窗口到期前只准入一次。

单写者约束：key -> expiry 表只能经由 admit() / evict_expired() 访问，
所有读写都在 asyncio.Lock 内完成。过期记录在下次查找同一 key 时惰性淘汰；
超过容量上限时清理过期记录。未到期的记录从不淘汰，
窗口内全部 key 仍存活时允许暂时超出上限。
"""

import asyncio
from datetime import datetime, timedelta

import structlog

from .models import Trigger

log = structlog.get_logger()


class DeduplicationWindow:
    """去重窗口"""

    def __init__(self, window_s: float = 20.0, max_entries: int = 10_000) -> None:
        """
        Args:
            window_s: 窗口大小（秒），同时决定时间桶粒度与记录有效期
            max_entries: 记录数上限
        """
        if window_s <= 0:
            raise ValueError("window_s must be positive")
        self._window_s = window_s
        self._window = timedelta(seconds=window_s)
        self._max_entries = max_entries
        # dedupe_key -> window_expiry
        self._expiry: dict[str, datetime] = {}
        self._lock = asyncio.Lock()

    @property
    def window_s(self) -> float:
        return self._window_s

    def __len__(self) -> int:
        return len(self._expiry)

    def key_for(self, trigger: Trigger) -> str:
        return trigger.dedupe_key(self._window_s)

    async def admit(self, trigger: Trigger, now: datetime) -> bool:
        """原子准入检查

        Args:
            trigger: 待准入的 Trigger
            now: 当前时间（由调用方传入，便于测试）

        Returns:
            True 表示首次准入，False 表示窗口内重复
        """
        key = self.key_for(trigger)
        async with self._lock:
            expiry = self._expiry.get(key)
            if expiry is not None and now < expiry:
                log.debug("duplicate_trigger_suppressed", dedupe_key=key)
                return False
            # 无记录或已过期：写入新记录
            self._expiry[key] = now + self._window
            if len(self._expiry) > self._max_entries:
                self._evict_locked(now)
            return True

    async def evict_expired(self, now: datetime) -> int:
        """清理所有已过期记录，返回清理数量"""
        async with self._lock:
            return self._evict_expired_locked(now)

    def _evict_expired_locked(self, now: datetime) -> int:
        expired = [k for k, expiry in self._expiry.items() if expiry <= now]
        for k in expired:
            del self._expiry[k]
        return len(expired)

    def _evict_locked(self, now: datetime) -> None:
        """超限时清理过期记录，仍超限则记录 warning"""
        evicted = self._evict_expired_locked(now)
        log.debug("dedupe_window_evicted", evicted=evicted, size=len(self._expiry))
        if len(self._expiry) > self._max_entries:
            log.warning(
                "dedupe_window_over_capacity",
                size=len(self._expiry),
                max_entries=self._max_entries,
            )
