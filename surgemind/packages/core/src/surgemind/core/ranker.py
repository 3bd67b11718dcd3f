"""WorkloadRanker -- 最小负载指派

排序规则：
1. 过滤 Offline
2. active_task_count 升序
3. 同负载时 Active 优先于 Busy
4. 仍相同时保持输入顺序（稳定排序，先出现者胜出）

纯函数，无随机性。
"""

from collections import Counter
from collections.abc import Iterable

from .models import ACTIVE_TASK_STATUSES, Availability, Caregiver, Task

# 同负载时的在岗状态偏好
_AVAILABILITY_PREFERENCE: dict[Availability, int] = {
    Availability.ACTIVE: 0,
    Availability.BUSY: 1,
}


def count_active_tasks(tasks: Iterable[Task]) -> Counter[str]:
    """统计每位护理人员的活跃任务数（Pending + In-Progress）"""
    return Counter(t.assignee_id for t in tasks if t.status in ACTIVE_TASK_STATUSES)


class WorkloadRanker:
    """最小负载指派器"""

    @staticmethod
    def rank(caregivers: Iterable[Caregiver]) -> list[Caregiver]:
        """返回按指派优先级排序的可用护理人员（不含 Offline）"""
        eligible = [c for c in caregivers if c.availability != Availability.OFFLINE]
        # sorted 为稳定排序，第三级 tie-break 即输入顺序
        return sorted(
            eligible,
            key=lambda c: (
                c.active_task_count,
                _AVAILABILITY_PREFERENCE.get(c.availability, len(_AVAILABILITY_PREFERENCE)),
            ),
        )

    def select_assignee(self, caregivers: Iterable[Caregiver]) -> str | None:
        """选择指派对象

        Returns:
            护理人员 ID；没有可用人员时返回 None（调用方不得自行编造）
        """
        ranked = self.rank(caregivers)
        if not ranked:
            return None
        return ranked[0].id
