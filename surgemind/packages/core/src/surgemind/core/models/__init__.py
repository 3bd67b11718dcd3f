"""SurgeMind Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .caregiver import Caregiver
from .enums import (
    ACTIVE_TASK_STATUSES,
    SEVERITY_RANK,
    TERMINAL_STAGES,
    VALID_TRANSITIONS,
    Availability,
    BedStatus,
    CaregiverRole,
    FailureReason,
    PipelineStage,
    Severity,
    SourceKind,
    TaskPriority,
    TaskStatus,
    max_severity,
    priority_for,
    validate_transition,
)
from .events import (
    BedObservation,
    CCTVDetection,
    EmergencyReport,
    RawEvent,
    SupplyLevel,
    VitalsReading,
    parse_raw_event,
)
from .outcome import FailureRecord, PipelineOutcome
from .task import Task, TaskText
from .trigger import NO_SUBJECT, Trigger

__all__ = [
    # 枚举
    "CaregiverRole",
    "Availability",
    "SourceKind",
    "Severity",
    "TaskPriority",
    "TaskStatus",
    "BedStatus",
    "PipelineStage",
    "FailureReason",
    # 状态机 / 映射
    "SEVERITY_RANK",
    "ACTIVE_TASK_STATUSES",
    "VALID_TRANSITIONS",
    "TERMINAL_STAGES",
    "max_severity",
    "priority_for",
    "validate_transition",
    # Caregiver
    "Caregiver",
    # 原始事件
    "RawEvent",
    "VitalsReading",
    "CCTVDetection",
    "EmergencyReport",
    "SupplyLevel",
    "BedObservation",
    "parse_raw_event",
    # Trigger / Task
    "Trigger",
    "NO_SUBJECT",
    "Task",
    "TaskText",
    # 结果
    "PipelineOutcome",
    "FailureRecord",
]
