"""Task Domain Model

tasks.json 内的每条记录。磁盘上使用 camelCase 键，
Python 侧使用 snake_case，两种写法都可用于构造。

缺省规则：
- createdAt / updatedAt 缺失时取当前时间
- 不带时区的时间按 UTC 解释
- dependencies 缺失时为空列表
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .enums import RelatedFileType, TaskStatus


def utc_now() -> datetime:
    return datetime.now(UTC)


class StoredModel(BaseModel):
    """持久化模型基类 -- camelCase 别名"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_document(self) -> dict:
        """转换为写入 JSON 文件的字典"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RelatedFile(StoredModel):
    """任务相关文件"""

    path: str = Field(min_length=1, description="文件路径，相对项目根目录或绝对路径")
    type: RelatedFileType = Field(description="文件类型")
    description: str = Field(min_length=1, description="文件用途说明")
    line_start: int | None = Field(default=None, gt=0, description="相关代码起始行")
    line_end: int | None = Field(default=None, gt=0, description="相关代码结束行")


class TaskDependency(StoredModel):
    """依赖引用 -- 指向同一需求下另一任务的 id"""

    task_id: str = Field(description="被依赖任务 ID")


class Task(StoredModel):
    """Task 数据模型

    已完成（completed）的任务只允许修改 summary 与 related_files。
    """

    id: str = Field(description="唯一标识，UUID v4 格式")
    name: str = Field(description="任务名称，需求内唯一")
    description: str = Field(default="", description="任务描述")
    notes: str | None = Field(default=None, description="补充说明")
    implementation_guide: str | None = Field(default=None, description="实现指南")
    verification_criteria: str | None = Field(default=None, description="验收标准")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="当前状态")
    dependencies: list[TaskDependency] = Field(
        default_factory=list,
        description="依赖列表（插入顺序）",
    )
    related_files: list[RelatedFile] | None = Field(default=None, description="相关文件")
    analysis_result: str | None = Field(default=None, description="全局分析结果")
    summary: str | None = Field(default=None, description="完成摘要")
    created_at: datetime = Field(default_factory=utc_now, description="创建时间")
    updated_at: datetime = Field(default_factory=utc_now, description="更新时间")
    completed_at: datetime | None = Field(default=None, description="完成时间")

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _default_missing_timestamp(cls, value):
        # 旧数据中可能写入 null 或空串
        if value is None or value == "":
            return utc_now()
        return value

    @field_validator("created_at", "updated_at", "completed_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @field_validator("dependencies", mode="before")
    @classmethod
    def _default_dependencies(cls, value):
        return [] if value is None else value

    @property
    def dependency_ids(self) -> list[str]:
        return [dep.task_id for dep in self.dependencies]


class TaskDocument(StoredModel):
    """<requirement>/tasks.json 文档结构"""

    tasks: list[Task] = Field(default_factory=list)


class ArchiveDocument(StoredModel):
    """archive/ 下的历史快照文档（仅包含已完成任务）"""

    requirement: str | None = Field(default=None, description="来源需求名称")
    archived_at: datetime | None = Field(default=None, description="归档时间")
    tasks: list[Task] = Field(default_factory=list)
