"""批量提交 payload 定义

split_tasks 接收的任务草稿结构，在任何写入之前完成校验。
"""

from pydantic import Field

from ..config import TASK_DESCRIPTION_MIN_LENGTH, TASK_NAME_MAX_LENGTH
from .task import RelatedFile, StoredModel


class TaskDraft(StoredModel):
    """批量提交中的单个任务草稿"""

    name: str = Field(
        min_length=1,
        max_length=TASK_NAME_MAX_LENGTH,
        description="简洁明确的任务名称",
    )
    description: str = Field(
        min_length=TASK_DESCRIPTION_MIN_LENGTH,
        description="详细的任务描述，包含实施要点和验收标准",
    )
    implementation_guide: str = Field(default="", description="具体实现方法和步骤")
    dependencies: list[str] | None = Field(
        default=None,
        description="前置任务 ID 或任务名称列表",
    )
    notes: str | None = Field(default=None, description="补充说明")
    related_files: list[RelatedFile] | None = Field(default=None, description="相关文件")
    verification_criteria: str | None = Field(default=None, description="验收标准")
