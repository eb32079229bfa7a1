"""TaskLedger Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    COMPLETED_MUTABLE_FIELDS,
    VALID_TRANSITIONS,
    ComplexityLevel,
    RelatedFileType,
    TaskStatus,
    UpdateMode,
    validate_transition,
)
from .payloads import TaskDraft
from .requirement import RequirementIndexDocument, RequirementInfo, RequirementStats
from .results import (
    ActionResult,
    ArchiveResult,
    BatchResult,
    CanExecuteResult,
    ComplexityAssessment,
    ComplexityMetrics,
    ComplexityResult,
    DeleteResult,
    PaginationInfo,
    QueryResult,
    SearchResult,
    StartTaskResult,
    TaskListResult,
)
from .task import (
    ArchiveDocument,
    RelatedFile,
    Task,
    TaskDependency,
    TaskDocument,
)

__all__ = [
    # 枚举
    "TaskStatus",
    "RelatedFileType",
    "UpdateMode",
    "ComplexityLevel",
    # 状态机
    "VALID_TRANSITIONS",
    "COMPLETED_MUTABLE_FIELDS",
    "validate_transition",
    # Task
    "Task",
    "TaskDependency",
    "RelatedFile",
    "TaskDocument",
    "ArchiveDocument",
    "TaskDraft",
    # Requirement
    "RequirementInfo",
    "RequirementIndexDocument",
    "RequirementStats",
    # Results
    "ActionResult",
    "ArchiveResult",
    "BatchResult",
    "CanExecuteResult",
    "ComplexityAssessment",
    "ComplexityMetrics",
    "ComplexityResult",
    "DeleteResult",
    "PaginationInfo",
    "SearchResult",
    "QueryResult",
    "StartTaskResult",
    "TaskListResult",
]
