"""TaskAssignmentEngine -- 事件 -> 任务编排

单个 Trigger 的处理阶段：
    Received -> Classified -> (Dropped | Admitted) -> Assigned -> Synthesized -> Emitted
终态：Dropped / Emitted / Failed

故障处理：
- 分类为 None：无操作，不视为故障
- 无可用人员：Failed(NoStaffAvailable)，必须上报
- sink 写入失败：有界指数退避重试，耗尽后 Failed(SinkUnavailable) 并上报完整任务
- 其他异常：Failed(UnexpectedError) 并上报
单个事件失败不会中断流水线。
"""

import asyncio
from collections import Counter
from collections.abc import AsyncIterable, Awaitable, Callable, Mapping
from datetime import UTC, datetime
from typing import Any

import structlog

from .classifier import EventClassifier
from .config import EngineConfig
from .dedupe import DeduplicationWindow
from .models import FailureReason, PipelineOutcome, PipelineStage, RawEvent, Task, Trigger
from .protocols import EnrichmentProvider, FailureReporter, RosterSource, TaskSink
from .ranker import WorkloadRanker
from .synthesizer import TaskSynthesizer

log = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TaskAssignmentEngine:
    """任务指派引擎

    所有组件除 DeduplicationWindow 外均无共享可变状态，
    多个事件源可以并发调用 process()。
    """

    def __init__(
        self,
        roster: RosterSource,
        sink: TaskSink,
        reporter: FailureReporter,
        enrichment: EnrichmentProvider | None = None,
        config: EngineConfig | None = None,
        *,
        classifier: EventClassifier | None = None,
        dedupe: DeduplicationWindow | None = None,
        ranker: WorkloadRanker | None = None,
        synthesizer: TaskSynthesizer | None = None,
        clock: Callable[[], datetime] = _utcnow,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """初始化引擎

        Args:
            roster: 排班快照来源
            sink: 任务写入目标
            reporter: 故障上报
            enrichment: 可选的文本增强能力
            config: 引擎配置，None 时使用默认值
            classifier/dedupe/ranker/synthesizer: 组件注入（测试用），None 时按 config 构建
            clock: 当前时间来源
            sleep: 退避等待函数
        """
        self._config = config or EngineConfig()
        self._roster = roster
        self._sink = sink
        self._reporter = reporter
        self._enrichment = enrichment
        self._classifier = classifier or EventClassifier()
        self._dedupe = dedupe or DeduplicationWindow(
            window_s=self._config.dedupe_window_s,
            max_entries=self._config.dedupe_max_entries,
        )
        self._ranker = ranker or WorkloadRanker()
        self._synthesizer = synthesizer or TaskSynthesizer(
            enrichment_timeout_s=self._config.enrichment_timeout_s,
        )
        self._clock = clock
        self._sleep = sleep

    @property
    def dedupe(self) -> DeduplicationWindow:
        return self._dedupe

    async def process(
        self,
        raw: Mapping[str, Any] | RawEvent,
        now: datetime | None = None,
    ) -> PipelineOutcome:
        """处理单个原始事件，永不抛出异常

        Args:
            raw: 原始载荷
            now: 当前时间，None 时取 clock()

        Returns:
            PipelineOutcome
        """
        now = now or self._clock()
        try:
            return await self._process(raw, now)
        except Exception as e:
            log.exception("pipeline_unexpected_error", error_type=type(e).__name__)
            await self._report(
                FailureReason.UNEXPECTED_ERROR,
                {"error_type": type(e).__name__, "error": str(e)},
            )
            return PipelineOutcome(
                stage=PipelineStage.FAILED,
                reason=FailureReason.UNEXPECTED_ERROR,
                detail=str(e),
            )

    async def _process(
        self, raw: Mapping[str, Any] | RawEvent, now: datetime
    ) -> PipelineOutcome:
        # Received -> Classified
        event = self._classifier.parse(raw)
        if event is None:
            return PipelineOutcome(stage=PipelineStage.RECEIVED, detail="malformed")

        trigger = self._classifier.classify(event)
        if trigger is None:
            return PipelineOutcome(stage=PipelineStage.RECEIVED)

        # Classified -> Admitted | Dropped
        if not await self._dedupe.admit(trigger, now):
            return PipelineOutcome(
                stage=PipelineStage.DROPPED,
                trigger=trigger,
                detail="duplicate",
            )

        # Admitted -> Assigned
        try:
            caregivers = await self._roster.current_caregivers()
        except Exception as e:
            log.error("roster_read_failed", error_type=type(e).__name__, error=str(e))
            return await self._fail(
                FailureReason.ROSTER_UNAVAILABLE,
                trigger,
                error=str(e),
            )

        assignee_id = self._ranker.select_assignee(caregivers)
        if assignee_id is None:
            return await self._fail(
                FailureReason.NO_STAFF_AVAILABLE,
                trigger,
                roster_size=len(caregivers),
            )

        # Assigned -> Synthesized
        task = await self._synthesizer.synthesize(
            trigger, assignee_id, self._enrichment, now=now
        )

        # Synthesized -> Emitted
        error = await self._append_with_retry(task)
        if error is not None:
            return await self._fail(
                FailureReason.SINK_UNAVAILABLE,
                trigger,
                task=task,
                attempts=self._config.sink_max_attempts,
                error_type=type(error).__name__,
                error=str(error),
            )

        log.info(
            "task_emitted",
            task_id=task.task_id,
            assignee_id=task.assignee_id,
            priority=task.priority.value,
            source_kind=task.source_kind.value,
            location=task.location,
            enriched=task.enriched,
        )
        return PipelineOutcome(stage=PipelineStage.EMITTED, trigger=trigger, task=task)

    async def _append_with_retry(self, task: Task) -> Exception | None:
        """带超时与指数退避的 sink 写入

        Returns:
            None 表示写入成功，否则为最后一次失败的异常
        """
        max_attempts = self._config.sink_max_attempts
        last_error: Exception | None = None
        for attempt in range(1, max_attempts + 1):
            try:
                await asyncio.wait_for(
                    self._sink.append(task),
                    timeout=self._config.sink_timeout_s,
                )
                return None
            except Exception as e:
                last_error = e
                log.warning(
                    "sink_append_failed",
                    task_id=task.task_id,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    error_type=type(e).__name__,
                )
                if attempt < max_attempts:
                    await self._sleep(self._config.sink_backoff_base_s * 2 ** (attempt - 1))
        return last_error

    async def _fail(
        self,
        reason: FailureReason,
        trigger: Trigger,
        task: Task | None = None,
        **extra: Any,
    ) -> PipelineOutcome:
        """记录 Failed 并上报，context 足以人工重建任务"""
        context: dict[str, Any] = {"trigger": trigger.model_dump(mode="json"), **extra}
        if task is not None:
            context["task"] = task.model_dump(mode="json")
        log.error(
            "trigger_failed",
            reason=reason.value,
            source_kind=trigger.source_kind.value,
            location=trigger.location,
            severity=trigger.severity.value,
        )
        await self._report(reason, context)
        return PipelineOutcome(
            stage=PipelineStage.FAILED,
            trigger=trigger,
            task=task,
            reason=reason,
            detail=str(extra.get("error", "")),
        )

    async def _report(self, reason: FailureReason, context: dict[str, Any]) -> None:
        """上报故障，reporter 自身异常只记录日志"""
        try:
            await self._reporter.report(reason, context)
        except Exception as e:
            log.error(
                "failure_reporter_error",
                reason=reason.value,
                error_type=type(e).__name__,
                context=context,
            )

    async def run(self, source: AsyncIterable[Mapping[str, Any] | RawEvent]) -> Counter[str]:
        """逐个消费事件源直到耗尽

        Returns:
            各终态阶段的计数
        """
        stages: Counter[str] = Counter()
        try:
            async for raw in source:
                outcome = await self.process(raw)
                stages[outcome.stage.value] += 1
        except Exception as e:
            log.exception("event_source_failed", error_type=type(e).__name__)
            await self._report(
                FailureReason.UNEXPECTED_ERROR,
                {"error_type": type(e).__name__, "error": str(e), "where": "event_source"},
            )
        return stages

    async def run_many(
        self, *sources: AsyncIterable[Mapping[str, Any] | RawEvent]
    ) -> Counter[str]:
        """并发消费多个事件源"""
        results = await asyncio.gather(*(self.run(s) for s in sources))
        total: Counter[str] = Counter()
        for stages in results:
            total.update(stages)
        return total
