"""ArchiveStore JSON 文件实现

清空需求时把已完成任务写入 archive/ 下的时间戳快照，
快照是历史搜索的唯一数据来源。文件名按时间字典序可排序。
"""

from pathlib import Path

import structlog

from ..config import ARCHIVE_FILE_PREFIX
from ..models.enums import TaskStatus
from ..models.results import ArchiveResult
from ..models.task import ArchiveDocument, Task, TaskDocument, utc_now
from .json_store import JsonDocumentStore
from .namespace import RequirementNamespace
from .protocols import TaskStore

log = structlog.get_logger()


def snapshot_file_name() -> str:
    """生成快照文件名，精确到微秒避免同秒冲突"""
    timestamp = utc_now().strftime("%Y-%m-%dT%H-%M-%S-%f")
    return f"{ARCHIVE_FILE_PREFIX}{timestamp}.json"


class JsonArchiveStore:
    """归档快照的读写"""

    def __init__(
        self,
        namespace: RequirementNamespace,
        documents: JsonDocumentStore,
        task_store: TaskStore,
    ) -> None:
        self._namespace = namespace
        self._documents = documents
        self._task_store = task_store

    async def archive_and_clear(self, requirement_name: str) -> ArchiveResult:
        """归档已完成任务并清空需求的任务列表

        在任务文件锁内依次完成：读取 -> 写快照 -> 清空。
        快照只包含 completed 任务；没有任务时直接返回成功。
        """
        tasks_file = await self._namespace.ensure_requirement(requirement_name)

        async with self._documents.locked(tasks_file) as document:
            tasks = TaskDocument.model_validate(await document.read()).tasks
            if not tasks:
                return ArchiveResult(success=True, message="没有任务需要清除")

            completed = [task for task in tasks if task.status == TaskStatus.COMPLETED]
            file_name = snapshot_file_name()
            snapshot = ArchiveDocument(
                requirement=requirement_name,
                archived_at=utc_now(),
                tasks=completed,
            )
            await self._documents.write_json(
                self._namespace.archive_dir / file_name,
                snapshot.to_document(),
            )
            await document.write(TaskDocument().to_document())
            await self._task_store.refresh_projection(requirement_name, [])

        log.info(
            "tasks_archived",
            requirement=requirement_name,
            deleted_count=len(tasks),
            archived_count=len(completed),
            backup_file=file_name,
        )
        return ArchiveResult(
            success=True,
            message=(
                f"已成功清除所有任务，共 {len(tasks)} 个任务被删除，"
                f"已备份 {len(completed)} 个已完成的任务至归档目录"
            ),
            deleted_count=len(tasks),
            archived_count=len(completed),
            backup_file=file_name,
        )

    async def list_snapshots(self, limit: int | None = None) -> list[Path]:
        """按文件名倒序（最新在前）列出快照"""
        files = await self._documents.list_json_files(self._namespace.archive_dir)
        files.sort(key=lambda path: path.name, reverse=True)
        return files[:limit] if limit is not None else files

    async def load_snapshot(self, path: str | Path) -> list[Task]:
        """读取单个快照中的任务"""
        data = await self._documents.read_json(path)
        return ArchiveDocument.model_validate(data).tasks
