"""操作结果模型

面向调用方的操作统一返回结构化结果（success + message），
校验失败、找不到任务、状态冲突都不抛异常。
"""

from pydantic import BaseModel, Field

from .enums import ComplexityLevel
from .task import Task


class CanExecuteResult(BaseModel):
    """依赖门控检查结果"""

    can_execute: bool
    blocked_by: list[str] | None = Field(
        default=None,
        description="未完成或不存在的依赖 ID",
    )


class ActionResult(BaseModel):
    """单任务操作结果"""

    success: bool
    message: str
    task: Task | None = None


class DeleteResult(BaseModel):
    """删除任务结果"""

    success: bool
    message: str


class ArchiveResult(BaseModel):
    """清空并归档结果"""

    success: bool
    message: str
    deleted_count: int = 0
    archived_count: int = 0
    backup_file: str | None = Field(default=None, description="归档快照文件名")


class BatchResult(BaseModel):
    """批量提交结果"""

    success: bool
    message: str
    tasks: list[Task] = Field(default_factory=list, description="本批新建或更新的任务")
    backup_file: str | None = None


class PaginationInfo(BaseModel):
    """分页信息（页码从 1 开始）"""

    current_page: int
    total_pages: int
    total_results: int
    has_more: bool


class SearchResult(BaseModel):
    """搜索结果"""

    tasks: list[Task] = Field(default_factory=list)
    pagination: PaginationInfo


class ComplexityMetrics(BaseModel):
    """复杂度评估指标"""

    description_length: int
    dependencies_count: int
    notes_length: int
    has_notes: bool


class ComplexityAssessment(BaseModel):
    """复杂度评估结果"""

    level: ComplexityLevel
    metrics: ComplexityMetrics
    recommendations: list[str] = Field(default_factory=list)


class StartTaskResult(ActionResult):
    """开始执行任务的结果"""

    blocked_by: list[str] | None = None
    complexity: ComplexityAssessment | None = None
    dependency_tasks: list[Task] = Field(default_factory=list)


class ComplexityResult(ActionResult):
    """任务复杂度评估结果，失败时 assessment 为空"""

    assessment: ComplexityAssessment | None = None


class TaskListResult(BaseModel):
    """任务列表查询结果"""

    success: bool
    message: str
    tasks: list[Task] = Field(default_factory=list)


class QueryResult(BaseModel):
    """带分页的搜索结果"""

    success: bool
    message: str
    tasks: list[Task] = Field(default_factory=list)
    pagination: PaginationInfo | None = None
