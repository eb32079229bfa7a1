"""TaskLedger Core Store -- JSON 文件持久化实现

提供工厂函数创建共享同一个路径锁注册表的 Store 实例组。
"""

from pathlib import Path

from .archive_store import JsonArchiveStore
from .file_lock import FileLockRegistry
from .json_store import JsonDocumentStore
from .namespace import RequirementNamespace, validate_requirement_name
from .protocols import ArchiveStore, TaskStore
from .task_store import JsonTaskStore


class StoreGroup:
    """Store 实例组 -- 共享同一个 FileLockRegistry"""

    def __init__(
        self,
        data_dir: Path,
        registry: FileLockRegistry,
    ) -> None:
        self.registry = registry
        self.documents = JsonDocumentStore(registry)
        self.namespace = RequirementNamespace(data_dir, self.documents)
        self.task_store: TaskStore = JsonTaskStore(self.namespace, self.documents)
        self.archive_store: ArchiveStore = JsonArchiveStore(
            self.namespace,
            self.documents,
            self.task_store,
        )


def create_store_group(
    data_dir: str | Path,
    registry: FileLockRegistry | None = None,
) -> StoreGroup:
    """创建 Store 实例组

    Args:
        data_dir: 数据根目录（需求子目录、archive/、requirement.json 所在处）
        registry: 路径锁注册表，缺省时新建；同一数据目录的所有调用方应共享一个

    Returns:
        StoreGroup 实例
    """
    data_path = Path(data_dir)
    data_path.mkdir(parents=True, exist_ok=True)
    return StoreGroup(data_dir=data_path, registry=registry or FileLockRegistry())


__all__ = [
    "StoreGroup",
    "create_store_group",
    "ArchiveStore",
    "TaskStore",
    "FileLockRegistry",
    "JsonDocumentStore",
    "JsonTaskStore",
    "JsonArchiveStore",
    "RequirementNamespace",
    "validate_requirement_name",
]
