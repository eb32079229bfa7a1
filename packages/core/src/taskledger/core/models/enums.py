"""枚举定义

包含 TaskStatus 状态机、RelatedFileType、UpdateMode、ComplexityLevel 枚举，
以及 VALID_TRANSITIONS 合法流转映射。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 状态 -- 正常流程单向推进 pending -> in_progress -> completed"""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# 合法状态流转（同状态更新视为无变化，单独放行）
VALID_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.PENDING: {TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED},
    TaskStatus.IN_PROGRESS: {TaskStatus.COMPLETED},
    # 已完成不可再流转
    TaskStatus.COMPLETED: set(),
}

# 已完成任务仍允许修改的字段
COMPLETED_MUTABLE_FIELDS: frozenset[str] = frozenset({"summary", "related_files"})


class RelatedFileType(StrEnum):
    """任务相关文件类型"""

    TO_MODIFY = "TO_MODIFY"
    REFERENCE = "REFERENCE"
    CREATE = "CREATE"
    DEPENDENCY = "DEPENDENCY"
    OTHER = "OTHER"


class UpdateMode(StrEnum):
    """批量提交的更新策略"""

    APPEND = "append"
    OVERWRITE = "overwrite"
    SELECTIVE = "selective"
    CLEAR_ALL_TASKS = "clearAllTasks"


class ComplexityLevel(StrEnum):
    """任务复杂度等级（按声明顺序递增）"""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"

    @property
    def rank(self) -> int:
        return list(ComplexityLevel).index(self)


def validate_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """验证状态流转是否合法

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法（或状态不变且未完成），否则 False
    """
    if from_status == to_status:
        return from_status != TaskStatus.COMPLETED
    allowed = VALID_TRANSITIONS.get(from_status, set())
    return to_status in allowed
