"""requirement.json 的单条目更新

由 JsonTaskStore 在每次写入任务列表后调用。requirement.json 与 tasks.json
之间不是事务性的，崩溃后可通过 projection.rebuild_all 重建。
"""

from collections.abc import Iterable

from ..models.enums import TaskStatus
from ..models.requirement import RequirementIndexDocument, RequirementInfo
from ..models.task import Task, utc_now
from .json_store import JsonDocumentStore
from .namespace import RequirementNamespace


def compute_requirement_info(
    requirement_name: str,
    tasks: Iterable[Task],
    previous: RequirementInfo | None = None,
) -> RequirementInfo:
    """从任务列表计算需求统计，保留已有条目的 created_at"""
    counts = {status: 0 for status in TaskStatus}
    total = 0
    for task in tasks:
        counts[task.status] += 1
        total += 1

    now = utc_now()
    return RequirementInfo(
        name=requirement_name,
        created_at=previous.created_at if previous else now,
        updated_at=now,
        task_count=total,
        completed_count=counts[TaskStatus.COMPLETED],
        in_progress_count=counts[TaskStatus.IN_PROGRESS],
        pending_count=counts[TaskStatus.PENDING],
    )


async def load_requirement_index(
    namespace: RequirementNamespace,
    documents: JsonDocumentStore,
) -> RequirementIndexDocument:
    """读取 requirement.json，不存在时返回空索引"""
    if not namespace.requirement_info_file.exists():
        return RequirementIndexDocument()
    data = await documents.read_json(namespace.requirement_info_file)
    return RequirementIndexDocument.model_validate(data)


async def refresh_requirement_info(
    namespace: RequirementNamespace,
    documents: JsonDocumentStore,
    requirement_name: str,
    tasks: list[Task],
) -> RequirementInfo:
    """重算并写入单个需求的统计条目"""
    await documents.ensure_json(namespace.requirement_info_file, {"requirements": {}})

    def _upsert(data) -> tuple[dict, RequirementInfo]:
        index = RequirementIndexDocument.model_validate(data)
        info = compute_requirement_info(
            requirement_name,
            tasks,
            index.requirements.get(requirement_name),
        )
        index.requirements[requirement_name] = info
        return index.to_document(), info

    return await documents.update_json(namespace.requirement_info_file, _upsert)
