"""Core 异常体系"""


class CoreError(Exception):
    """Core 包基础异常"""


class MalformedEventError(CoreError):
    """原始载荷缺少其声明 kind 所需的字段

    分类器将其视为 NoTrigger，但以数据质量告警记录日志。
    """

    def __init__(self, kind: str | None, errors: list[str]) -> None:
        """
        Args:
            kind: 载荷声明的 kind（缺失时为 None）
            errors: 校验错误摘要
        """
        super().__init__(f"malformed {kind or 'unknown'} event: {'; '.join(errors)}")
        self.kind = kind
        self.errors = errors


class TaskNotFoundError(CoreError):
    """任务不存在"""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id {task_id} does not exist")
        self.task_id = task_id


class InvalidTransitionError(CoreError):
    """非法的任务状态流转"""

    def __init__(self, task_id: str, from_status: str, to_status: str) -> None:
        super().__init__(
            f"Cannot transition task {task_id} from {from_status} to {to_status}"
        )
        self.task_id = task_id
        self.from_status = from_status
        self.to_status = to_status
