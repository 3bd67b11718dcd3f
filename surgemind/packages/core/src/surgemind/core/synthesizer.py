"""TaskSynthesizer -- Trigger + 指派对象 -> Task

文案策略：
1. 始终先生成确定性的兜底标题/描述（source_kind + severity + location + findings）
2. 如提供文本增强能力且在时限内成功，可替换标题/描述
3. 增强失败（超时、格式错误、异常）静默回退到兜底文案

优先级与指派对象只由核心逻辑决定，文本增强不参与。
"""

import asyncio
from collections.abc import Callable
from datetime import datetime

import structlog
from ulid import ULID

from .config import TASK_TITLE_MAX_LENGTH
from .models import SourceKind, Task, TaskText, Trigger, priority_for
from .protocols import EnrichmentProvider

log = structlog.get_logger()

# source_kind -> (标题标签, 处置建议)
_FALLBACK_COPY: dict[SourceKind, tuple[str, str]] = {
    SourceKind.VITALS: (
        "Vitals alert",
        "Assess the patient at the bedside and verify the monitor readings.",
    ),
    SourceKind.CCTV_DETECTION: (
        "CCTV detection",
        "Respond on site and assist or de-escalate as needed.",
    ),
    SourceKind.EMERGENCY_REPORT: (
        "Emergency response",
        "Immediate attention required.",
    ),
    SourceKind.SUPPLY_SHORTAGE: (
        "Restock supplies",
        "Replenish stock before it runs out.",
    ),
    SourceKind.BED_TURNOVER: (
        "Bed turnover check",
        "Inspect cleaning progress and prepare the bed for the next patient.",
    ),
}


def _truncate(text: str, limit: int = TASK_TITLE_MAX_LENGTH) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def fallback_text(trigger: Trigger) -> TaskText:
    """确定性兜底文案，永不为空"""
    label, action = _FALLBACK_COPY[trigger.source_kind]
    title = f"[{trigger.severity.value}] {label}: {trigger.location}"

    parts: list[str] = []
    if trigger.subject_id:
        parts.append(f"Subject {trigger.subject_id}.")
    if trigger.findings:
        summary = "; ".join(trigger.findings)
        parts.append(summary[0].upper() + summary[1:] + ".")
    else:
        parts.append(f"{label} at {trigger.location}.")
    parts.append(action)

    return TaskText(title=_truncate(title), description=" ".join(parts))


class TaskSynthesizer:
    """任务合成器"""

    def __init__(
        self,
        enrichment_timeout_s: float = 5.0,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        """
        Args:
            enrichment_timeout_s: 文本增强调用时限（秒）
            id_factory: 任务 ID 生成函数，默认 ULID
        """
        self._enrichment_timeout_s = enrichment_timeout_s
        self._id_factory = id_factory or (lambda: str(ULID()))

    async def synthesize(
        self,
        trigger: Trigger,
        assignee_id: str,
        enrichment: EnrichmentProvider | None = None,
        now: datetime | None = None,
    ) -> Task:
        """构建 Task

        Args:
            trigger: 已准入的 Trigger
            assignee_id: WorkloadRanker 选出的护理人员 ID
            enrichment: 可选的文本增强能力
            now: 创建时间，缺省使用 trigger.occurred_at

        Returns:
            Task（status=Pending），合成不会因文本增强失败而失败
        """
        text = fallback_text(trigger)
        enriched = False

        if enrichment is not None:
            generated = await self._try_enrich(trigger, enrichment)
            if generated is not None:
                text = generated
                enriched = True

        return Task(
            task_id=self._id_factory(),
            title=text.title,
            description=text.description,
            priority=priority_for(trigger.severity),
            location=trigger.location,
            subject_id=trigger.subject_id,
            assignee_id=assignee_id,
            created_at=now or trigger.occurred_at,
            source_kind=trigger.source_kind,
            enriched=enriched,
        )

    async def _try_enrich(
        self, trigger: Trigger, enrichment: EnrichmentProvider
    ) -> TaskText | None:
        """调用文本增强，任何失败返回 None"""
        try:
            generated = await asyncio.wait_for(
                enrichment.generate(trigger),
                timeout=self._enrichment_timeout_s,
            )
        except TimeoutError:
            log.warning(
                "enrichment_timeout",
                source_kind=trigger.source_kind.value,
                timeout_s=self._enrichment_timeout_s,
            )
            return None
        except Exception as e:
            log.warning(
                "enrichment_failed",
                source_kind=trigger.source_kind.value,
                error_type=type(e).__name__,
                error=str(e),
            )
            return None

        if (
            not isinstance(generated, TaskText)
            or not generated.title.strip()
            or not generated.description.strip()
        ):
            log.warning(
                "enrichment_malformed",
                source_kind=trigger.source_kind.value,
            )
            return None

        return TaskText(
            title=_truncate(generated.title),
            description=generated.description.strip(),
        )
