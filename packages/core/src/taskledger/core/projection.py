"""Projection 重建模块

requirement.json 是从各需求 tasks.json 派生的统计，不是权威数据。
单次写入后的增量刷新见 store.requirement_index；这里提供全量重建与汇总。
扫描只读取已有 tasks.json 的需求目录，不会为零散目录初始化任务列表。
"""

import time

import structlog

from .models.requirement import RequirementIndexDocument, RequirementInfo, RequirementStats
from .store.protocols import TaskStore
from .store.requirement_index import compute_requirement_info, load_requirement_index

log = structlog.get_logger()


async def _load_previous(task_store: TaskStore) -> RequirementIndexDocument:
    # requirement.json 损坏时视同不存在
    try:
        return await load_requirement_index(task_store.namespace, task_store.documents)
    except ValueError:
        log.warning("requirement_index_unreadable")
        return RequirementIndexDocument()


async def _collect_infos(task_store: TaskStore) -> list[RequirementInfo]:
    previous = await _load_previous(task_store)
    namespace = task_store.namespace

    infos = []
    for name in await namespace.list_requirements():
        if not namespace.tasks_file(name).exists():
            log.debug("requirement_without_tasks_skipped", requirement=name)
            continue
        tasks = await task_store.list_tasks(name)
        infos.append(compute_requirement_info(name, tasks, previous.requirements.get(name)))
    return infos


async def rebuild_all(task_store: TaskStore) -> int:
    """从各需求的任务列表重建 requirement.json

    流程：
    1. 扫描数据目录下名称合法且已有 tasks.json 的需求
    2. 读取每个需求的任务并重新计算统计（保留已有 created_at）
    3. 整文件写回 requirement.json

    Args:
        task_store: TaskStore 实例（提供命名空间与文档存储）

    Returns:
        重建的需求数量
    """
    start_time = time.monotonic()
    await log.ainfo("projection_rebuild_started")

    infos = await _collect_infos(task_store)
    index = RequirementIndexDocument(requirements={info.name: info for info in infos})
    await task_store.documents.write_json(
        task_store.namespace.requirement_info_file,
        index.to_document(),
    )

    elapsed_ms = int((time.monotonic() - start_time) * 1000)
    await log.ainfo(
        "projection_rebuild_completed",
        requirement_count=len(infos),
        elapsed_ms=elapsed_ms,
    )
    return len(infos)


async def compute_requirement_stats(task_store: TaskStore) -> RequirementStats:
    """直接从任务列表计算全部需求的汇总统计（requirement.json 仅提供 created_at）"""
    infos = await _collect_infos(task_store)
    return RequirementStats(
        requirements=infos,
        total_requirements=len(infos),
        total_tasks=sum(info.task_count for info in infos),
        total_completed=sum(info.completed_count for info in infos),
    )
