"""TaskLedger 异常体系

校验类错误在任何写入之前抛出，由 TaskService 转换为失败结果。
"""


class TaskLedgerError(Exception):
    """TaskLedger 基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 调用方修正输入后是否可重试
        """
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable


class InvalidRequirementNameError(TaskLedgerError):
    """需求名称为空、与保留名称冲突或包含非法字符"""

    def __init__(
        self,
        requirement_name: str,
        message: str,
        suggestion: str | None = None,
    ) -> None:
        """
        Args:
            requirement_name: 被拒绝的需求名称
            message: 拒绝原因
            suggestion: 可选的命名建议
        """
        full_message = f"{message} {suggestion}" if suggestion else message
        super().__init__(full_message, recoverable=True)
        self.requirement_name = requirement_name
        self.suggestion = suggestion


class BatchValidationError(TaskLedgerError):
    """批量提交的任务清单不合法，整批拒绝"""


class DuplicateTaskNameError(BatchValidationError):
    """批量提交中存在重复的任务名称"""

    def __init__(self, task_name: str) -> None:
        super().__init__(
            f"任务清单中存在重复的任务名称: {task_name!r}，请确保每个任务名称唯一"
        )
        self.task_name = task_name
