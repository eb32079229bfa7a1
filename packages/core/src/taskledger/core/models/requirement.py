"""RequirementInfo -- 需求统计 projection

requirement.json 中的派生数据，可随时从各需求的 tasks.json 重建，
不作为权威数据源。
"""

from datetime import datetime

from pydantic import Field

from .task import StoredModel, utc_now


class RequirementInfo(StoredModel):
    """单个需求的任务统计"""

    name: str = Field(description="需求名称")
    created_at: datetime = Field(default_factory=utc_now, description="首次统计时间")
    updated_at: datetime = Field(default_factory=utc_now, description="最近统计时间")
    task_count: int = Field(default=0, ge=0)
    completed_count: int = Field(default=0, ge=0)
    in_progress_count: int = Field(default=0, ge=0)
    pending_count: int = Field(default=0, ge=0)


class RequirementIndexDocument(StoredModel):
    """requirement.json 文档结构"""

    requirements: dict[str, RequirementInfo] = Field(default_factory=dict)


class RequirementStats(StoredModel):
    """全部需求的汇总统计"""

    requirements: list[RequirementInfo] = Field(default_factory=list)
    total_requirements: int = 0
    total_tasks: int = 0
    total_completed: int = 0
