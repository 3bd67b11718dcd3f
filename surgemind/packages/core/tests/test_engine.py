"""TaskAssignmentEngine 单元测试

使用内存替身验证编排语义：
1. 各终态（Received / Dropped / Emitted / Failed）
2. 无可用人员必须上报一次
3. sink 有界重试 + 指数退避，耗尽后上报完整任务
4. 上报器异常不影响流水线
"""

import asyncio
from datetime import timedelta

import pytest
from surgemind.core.classifier import EventClassifier
from surgemind.core.config import EngineConfig
from surgemind.core.engine import TaskAssignmentEngine
from surgemind.core.models import (
    Availability,
    FailureReason,
    PipelineStage,
    Severity,
    TaskPriority,
)
from surgemind.core.synthesizer import TaskSynthesizer

OCCURRED = "2026-03-01T08:30:00+00:00"


class StaticRoster:
    def __init__(self, caregivers) -> None:
        self.caregivers = list(caregivers)

    async def current_caregivers(self):
        return list(self.caregivers)


class BrokenRoster:
    async def current_caregivers(self):
        raise ConnectionError("roster db down")


class ListSink:
    """内存 sink，可配置前 N 次失败"""

    def __init__(self, fail_times: int = 0) -> None:
        self.tasks = []
        self.attempts = 0
        self._fail_times = fail_times

    async def append(self, task) -> None:
        self.attempts += 1
        if self.attempts <= self._fail_times:
            raise OSError("disk full")
        self.tasks.append(task)


class RecordingReporter:
    def __init__(self) -> None:
        self.reports = []

    async def report(self, reason, context) -> None:
        self.reports.append((reason, context))


class ExplodingReporter:
    async def report(self, reason, context) -> None:
        raise RuntimeError("pager offline")


class RecordingSleep:
    def __init__(self) -> None:
        self.delays = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def spo2_event(value: float = 87, occurred_at: str = OCCURRED) -> dict:
    return {
        "kind": "Vitals",
        "device_id": "MON-1",
        "location": "ICU",
        "subject_id": "P1",
        "spo2": value,
        "occurred_at": occurred_at,
    }


def fall_event(occurred_at: str) -> dict:
    return {
        "kind": "CCTVDetection",
        "camera_id": "CAM-2",
        "location": "Corridor B",
        "detection_type": "Fall Detected",
        "occurred_at": occurred_at,
    }


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def build_engine(reporter, sleep, now):
    def _build(roster, sink=None, **kwargs):
        return TaskAssignmentEngine(
            roster=roster,
            sink=sink or ListSink(),
            reporter=kwargs.pop("reporter", reporter),
            config=kwargs.pop("config", EngineConfig()),
            clock=lambda: now,
            sleep=sleep,
            **kwargs,
        )

    return _build


class TestHappyPath:
    """Received -> ... -> Emitted"""

    async def test_spo2_87_assigned_to_least_loaded(
        self, build_engine, caregiver_factory, reporter, now
    ):
        roster = StaticRoster(
            [
                caregiver_factory("busy-2", Availability.BUSY, 2),
                caregiver_factory("active-1", Availability.ACTIVE, 1),
                caregiver_factory("off-0", Availability.OFFLINE, 0),
            ]
        )
        sink = ListSink()
        engine = build_engine(roster, sink)

        outcome = await engine.process(spo2_event())

        assert outcome.stage == PipelineStage.EMITTED
        assert outcome.trigger.severity == Severity.CRITICAL
        task = outcome.task
        assert task.priority == TaskPriority.CRITICAL
        assert task.location == "ICU"
        assert task.assignee_id == "active-1"
        assert task.created_at == now
        assert sink.tasks == [task]
        assert reporter.reports == []

    async def test_no_trigger_is_noop(self, build_engine, caregiver_factory, reporter):
        sink = ListSink()
        engine = build_engine(StaticRoster([caregiver_factory("a")]), sink)

        outcome = await engine.process(spo2_event(98))

        assert outcome.stage == PipelineStage.RECEIVED
        assert outcome.trigger is None
        assert sink.attempts == 0
        assert reporter.reports == []

    async def test_malformed_is_noop(self, build_engine, caregiver_factory, reporter):
        """不合法载荷由分类器识别，引擎只转换为 Received(malformed)"""

        class CountingClassifier(EventClassifier):
            def __init__(self) -> None:
                self.parsed = []

            def parse(self, raw):
                event = super().parse(raw)
                self.parsed.append(event)
                return event

        classifier = CountingClassifier()
        engine = build_engine(StaticRoster([caregiver_factory("a")]), classifier=classifier)

        outcome = await engine.process({"kind": "Vitals", "occurred_at": OCCURRED})

        assert outcome.stage == PipelineStage.RECEIVED
        assert outcome.detail == "malformed"
        assert classifier.parsed == [None]
        assert reporter.reports == []

    async def test_emergency_with_unknown_flag_emitted(
        self, build_engine, caregiver_factory, reporter
    ):
        sink = ListSink()
        engine = build_engine(StaticRoster([caregiver_factory("a")]), sink)

        outcome = await engine.process(
            {
                "kind": "EmergencyReport",
                "location": "ER",
                "emergency_type": "Code Blue",
                "severity": "Severe",
                "occurred_at": OCCURRED,
            }
        )

        assert outcome.stage == PipelineStage.EMITTED
        assert outcome.task.priority == TaskPriority.HIGH
        assert reporter.reports == []


class TestDeduplication:
    """重复 Trigger 丢弃"""

    async def test_two_falls_three_seconds_apart(
        self, build_engine, caregiver_factory, now
    ):
        sink = ListSink()
        engine = build_engine(StaticRoster([caregiver_factory("a")]), sink)

        first = await engine.process(fall_event("2026-03-01T08:30:00Z"), now=now)
        second = await engine.process(
            fall_event("2026-03-01T08:30:03Z"), now=now + timedelta(seconds=3)
        )

        assert first.stage == PipelineStage.EMITTED
        assert second.stage == PipelineStage.DROPPED
        assert second.detail == "duplicate"
        assert len(sink.tasks) == 1

    async def test_concurrent_duplicates_emit_once(
        self, build_engine, caregiver_factory
    ):
        sink = ListSink()
        engine = build_engine(StaticRoster([caregiver_factory("a")]), sink)

        outcomes = await asyncio.gather(*(engine.process(spo2_event()) for _ in range(10)))

        stages = [o.stage for o in outcomes]
        assert stages.count(PipelineStage.EMITTED) == 1
        assert stages.count(PipelineStage.DROPPED) == 9
        assert len(sink.tasks) == 1

    async def test_readmitted_after_window(self, build_engine, caregiver_factory, now):
        sink = ListSink()
        engine = build_engine(StaticRoster([caregiver_factory("a")]), sink)

        await engine.process(spo2_event(), now=now)
        again = await engine.process(spo2_event(), now=now + timedelta(seconds=21))

        assert again.stage == PipelineStage.EMITTED
        assert len(sink.tasks) == 2


class TestFailures:
    """Failed 终态必须上报"""

    async def test_no_staff_reported_once(self, build_engine, caregiver_factory, reporter):
        sink = ListSink()
        engine = build_engine(
            StaticRoster([caregiver_factory("off", Availability.OFFLINE)]), sink
        )

        outcome = await engine.process(spo2_event())

        assert outcome.stage == PipelineStage.FAILED
        assert outcome.reason == FailureReason.NO_STAFF_AVAILABLE
        assert len(reporter.reports) == 1
        reason, context = reporter.reports[0]
        assert reason == FailureReason.NO_STAFF_AVAILABLE
        assert context["trigger"]["location"] == "ICU"
        assert context["roster_size"] == 1
        assert sink.attempts == 0

    async def test_roster_unavailable(self, build_engine, reporter):
        outcome = await build_engine(BrokenRoster()).process(spo2_event())

        assert outcome.stage == PipelineStage.FAILED
        assert outcome.reason == FailureReason.ROSTER_UNAVAILABLE
        assert reporter.reports[0][0] == FailureReason.ROSTER_UNAVAILABLE

    async def test_sink_recovers_within_budget(
        self, build_engine, caregiver_factory, reporter, sleep
    ):
        sink = ListSink(fail_times=2)
        engine = build_engine(StaticRoster([caregiver_factory("a")]), sink)

        outcome = await engine.process(spo2_event())

        assert outcome.stage == PipelineStage.EMITTED
        assert sink.attempts == 3
        assert sleep.delays == [0.5, 1.0]
        assert reporter.reports == []

    async def test_sink_exhausted_reports_task(
        self, build_engine, caregiver_factory, reporter, sleep
    ):
        sink = ListSink(fail_times=99)
        engine = build_engine(StaticRoster([caregiver_factory("a")]), sink)

        outcome = await engine.process(spo2_event())

        assert outcome.stage == PipelineStage.FAILED
        assert outcome.reason == FailureReason.SINK_UNAVAILABLE
        assert outcome.task is not None
        assert sink.attempts == 3
        assert sleep.delays == [0.5, 1.0]

        reason, context = reporter.reports[0]
        assert reason == FailureReason.SINK_UNAVAILABLE
        # 上报内容足以人工重建任务
        assert context["task"]["task_id"] == outcome.task.task_id
        assert context["task"]["assignee_id"] == "a"
        assert context["attempts"] == 3
        assert context["error_type"] == "OSError"

    async def test_sink_timeout_counts_as_failure(
        self, build_engine, caregiver_factory, reporter
    ):
        class HangingSink:
            async def append(self, task):
                await asyncio.sleep(10)

        engine = build_engine(
            StaticRoster([caregiver_factory("a")]),
            HangingSink(),
            config=EngineConfig(sink_timeout_s=0.01, sink_max_attempts=2),
        )

        outcome = await engine.process(spo2_event())

        assert outcome.reason == FailureReason.SINK_UNAVAILABLE
        assert reporter.reports[0][1]["error_type"] == "TimeoutError"

    async def test_retry_after_committed_timeout_emits(
        self, build_engine, caregiver_factory, reporter, store_group
    ):
        """首次写入已提交但响应超时，重试不应误报 SinkUnavailable"""

        class SlowAckSink:
            def __init__(self) -> None:
                self.calls = 0

            async def append(self, task):
                self.calls += 1
                await store_group.task_store.append(task)
                if self.calls == 1:
                    await asyncio.sleep(10)

        sink = SlowAckSink()
        engine = build_engine(
            StaticRoster([caregiver_factory("a")]),
            sink,
            config=EngineConfig(sink_timeout_s=0.05, sink_max_attempts=3),
        )

        outcome = await engine.process(spo2_event())

        assert outcome.stage == PipelineStage.EMITTED
        assert sink.calls == 2
        assert reporter.reports == []
        stored = await store_group.task_store.list_tasks()
        assert [t.task_id for t in stored] == [outcome.task.task_id]

    async def test_reporter_exception_swallowed(self, build_engine, caregiver_factory):
        engine = build_engine(
            StaticRoster([caregiver_factory("off", Availability.OFFLINE)]),
            reporter=ExplodingReporter(),
        )

        outcome = await engine.process(spo2_event())

        assert outcome.stage == PipelineStage.FAILED

    async def test_unexpected_error_contained(
        self, build_engine, caregiver_factory, reporter
    ):
        class BrokenSynthesizer(TaskSynthesizer):
            async def synthesize(self, *args, **kwargs):
                raise KeyError("boom")

        engine = build_engine(
            StaticRoster([caregiver_factory("a")]),
            synthesizer=BrokenSynthesizer(),
        )

        outcome = await engine.process(spo2_event())

        assert outcome.stage == PipelineStage.FAILED
        assert outcome.reason == FailureReason.UNEXPECTED_ERROR
        assert reporter.reports[0][0] == FailureReason.UNEXPECTED_ERROR

        # 后续事件不受影响
        engine._synthesizer = TaskSynthesizer()
        ok = await engine.process(spo2_event(occurred_at="2026-03-01T09:00:00Z"))
        assert ok.stage == PipelineStage.EMITTED


class TestEnrichment:
    """文本增强失败不影响任务生成"""

    async def test_failing_enrichment_still_emits(self, build_engine, caregiver_factory):
        class Down:
            async def generate(self, trigger):
                raise ConnectionError("proxy down")

        sink = ListSink()
        engine = build_engine(StaticRoster([caregiver_factory("a")]), sink, enrichment=Down())

        outcome = await engine.process(spo2_event())

        assert outcome.stage == PipelineStage.EMITTED
        assert outcome.task.enriched is False


class TestRun:
    """事件源消费"""

    async def test_run_counts_stages(self, build_engine, caregiver_factory):
        async def source():
            yield spo2_event()
            yield spo2_event()
            yield spo2_event(99)
            yield fall_event(OCCURRED)

        engine = build_engine(StaticRoster([caregiver_factory("a")]))
        stats = await engine.run(source())

        assert stats[PipelineStage.EMITTED] == 2
        assert stats[PipelineStage.DROPPED] == 1
        assert stats[PipelineStage.RECEIVED] == 1

    async def test_source_error_reported(self, build_engine, caregiver_factory, reporter):
        async def source():
            yield spo2_event()
            raise ConnectionError("channel closed")

        engine = build_engine(StaticRoster([caregiver_factory("a")]))
        stats = await engine.run(source())

        assert stats[PipelineStage.EMITTED] == 1
        assert reporter.reports[-1][0] == FailureReason.UNEXPECTED_ERROR

    async def test_run_many_shares_dedupe(self, build_engine, caregiver_factory):
        """两个独立通道送入同一情况，只生成一个任务"""

        async def cctv_channel():
            yield fall_event("2026-03-01T08:30:00Z")

        async def backup_channel():
            yield fall_event("2026-03-01T08:30:02Z")

        sink = ListSink()
        engine = build_engine(StaticRoster([caregiver_factory("a")]), sink)
        stats = await engine.run_many(cctv_channel(), backup_channel())

        assert stats[PipelineStage.EMITTED] == 1
        assert stats[PipelineStage.DROPPED] == 1
        assert len(sink.tasks) == 1
