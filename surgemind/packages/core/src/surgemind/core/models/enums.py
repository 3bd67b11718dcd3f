"""枚举定义 -- 护理人员、事件来源、严重程度、任务状态、流水线阶段

包含 TaskStatus 状态机、VALID_TRANSITIONS 合法流转映射、
Severity 全序（SEVERITY_RANK）以及 Severity -> TaskPriority 映射。
"""

from enum import StrEnum


class CaregiverRole(StrEnum):
    """护理人员角色"""

    DOCTOR = "Doctor"
    NURSE = "Nurse"
    TECHNICIAN = "Technician"
    OTHER = "Other"


class Availability(StrEnum):
    """护理人员在岗状态"""

    ACTIVE = "Active"
    BUSY = "Busy"
    OFFLINE = "Offline"


class SourceKind(StrEnum):
    """事件来源类型（原始事件的 discriminator）"""

    VITALS = "Vitals"
    CCTV_DETECTION = "CCTVDetection"
    EMERGENCY_REPORT = "EmergencyReport"
    SUPPLY_SHORTAGE = "SupplyShortage"
    BED_TURNOVER = "BedTurnover"


class Severity(StrEnum):
    """Trigger 严重程度"""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class TaskPriority(StrEnum):
    """Task 优先级"""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class TaskStatus(StrEnum):
    """Task 状态机"""

    PENDING = "Pending"
    IN_PROGRESS = "In-Progress"
    COMPLETED = "Completed"


class BedStatus(StrEnum):
    """床位状态"""

    OCCUPIED = "Occupied"
    FREE = "Free"
    CLEANING = "Cleaning"
    RESERVED = "Reserved"


class PipelineStage(StrEnum):
    """单个事件在 TaskAssignmentEngine 中的处理阶段"""

    RECEIVED = "Received"
    CLASSIFIED = "Classified"
    DROPPED = "Dropped"
    ADMITTED = "Admitted"
    ASSIGNED = "Assigned"
    SYNTHESIZED = "Synthesized"
    EMITTED = "Emitted"
    FAILED = "Failed"


class FailureReason(StrEnum):
    """需要上报的运行故障类型"""

    NO_STAFF_AVAILABLE = "NoStaffAvailable"
    SINK_UNAVAILABLE = "SinkUnavailable"
    ROSTER_UNAVAILABLE = "RosterUnavailable"
    UNEXPECTED_ERROR = "UnexpectedError"


# 严重程度全序：数值越大越紧急
SEVERITY_RANK: dict[Severity, int] = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}

# 计入工作负载的任务状态
ACTIVE_TASK_STATUSES: frozenset[TaskStatus] = frozenset(
    {TaskStatus.PENDING, TaskStatus.IN_PROGRESS}
)

# 合法状态流转（由医护人员操作驱动，核心流水线从不调用）
VALID_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.PENDING: {TaskStatus.IN_PROGRESS},
    TaskStatus.IN_PROGRESS: {TaskStatus.COMPLETED},
    # 终态不可再流转
    TaskStatus.COMPLETED: set(),
}

TERMINAL_STAGES: frozenset[PipelineStage] = frozenset(
    {PipelineStage.DROPPED, PipelineStage.EMITTED, PipelineStage.FAILED}
)


def max_severity(*severities: Severity) -> Severity:
    """返回最高的严重程度

    Raises:
        ValueError: 未传入任何严重程度
    """
    if not severities:
        raise ValueError("max_severity() requires at least one severity")
    return max(severities, key=SEVERITY_RANK.__getitem__)


def priority_for(severity: Severity) -> TaskPriority:
    """Severity -> TaskPriority 映射（当前为恒等映射）"""
    return TaskPriority(severity.value)


def validate_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """验证状态流转是否合法

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_status, set())
    return to_status in allowed
