"""Store Protocol 接口定义

定义 TaskStore、ArchiveStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, Protocol

from ..models.enums import TaskStatus
from ..models.results import ArchiveResult, CanExecuteResult, DeleteResult
from ..models.task import RelatedFile, Task
from .json_store import JsonDocumentStore
from .namespace import RequirementNamespace


class TaskStore(Protocol):
    """Task 存储接口 -- 每个方法都作用于单个需求的任务列表"""

    @property
    def namespace(self) -> RequirementNamespace:
        """需求命名空间（路径解析与需求扫描）"""
        ...

    @property
    def documents(self) -> JsonDocumentStore:
        """底层 JSON 文档存储"""
        ...

    async def list_tasks(
        self,
        requirement_name: str,
        status: TaskStatus | str | None = None,
    ) -> list[Task]:
        """查询任务列表，支持按状态筛选"""
        ...

    async def get_task(self, requirement_name: str, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def create_task(
        self,
        requirement_name: str,
        name: str,
        description: str,
        notes: str | None = None,
        dependencies: Iterable[str] = (),
        related_files: list[RelatedFile] | None = None,
    ) -> Task:
        """创建 pending 任务"""
        ...

    async def update_task(
        self,
        requirement_name: str,
        task_id: str,
        **updates: Any,
    ) -> Task | None:
        """合并更新字段；找不到或被拒绝时返回 None"""
        ...

    async def update_task_status(
        self,
        requirement_name: str,
        task_id: str,
        status: TaskStatus | str,
    ) -> Task | None:
        """更新任务状态"""
        ...

    async def update_task_summary(
        self,
        requirement_name: str,
        task_id: str,
        summary: str,
    ) -> Task | None:
        """更新完成摘要"""
        ...

    async def complete_task(
        self,
        requirement_name: str,
        task_id: str,
        summary: str,
    ) -> Task | None:
        """记录摘要并完成 in_progress 任务（单次写入）"""
        ...

    async def can_execute(self, requirement_name: str, task_id: str) -> CanExecuteResult:
        """检查依赖是否全部完成"""
        ...

    async def delete_task(self, requirement_name: str, task_id: str) -> DeleteResult:
        """删除任务"""
        ...

    async def replace_tasks(
        self,
        requirement_name: str,
        mutate: Callable[[list[Task]], tuple[list[Task] | None, Any]],
    ) -> Any:
        """持锁替换整个任务列表"""
        ...

    async def refresh_projection(self, requirement_name: str, tasks: list[Task]) -> None:
        """刷新 requirement.json 中该需求的统计"""
        ...


class ArchiveStore(Protocol):
    """归档快照存储接口

    快照只追加，不修改、不删除。
    """

    async def archive_and_clear(self, requirement_name: str) -> ArchiveResult:
        """归档已完成任务并清空任务列表"""
        ...

    async def list_snapshots(self, limit: int | None = None) -> list[Path]:
        """最新在前列出快照"""
        ...

    async def load_snapshot(self, path: str | Path) -> list[Task]:
        """读取单个快照"""
        ...
