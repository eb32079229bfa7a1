"""批量任务合并 -- split_tasks 的核心

将提交的任务草稿按更新模式合并进现有任务列表。纯函数，不做 I/O，
由 TaskService 在任务文件锁内调用。

依赖引用既可以是任务 ID，也可以是任务名称：
- UUID 形态的引用必须命中保留任务或本批任务的 id，否则丢弃
- 其他引用按名称查找，找不到同样丢弃（不拒绝整批）
"""

import re
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field

import structlog

from .exceptions import DuplicateTaskNameError
from .models.enums import TaskStatus, UpdateMode
from .models.payloads import TaskDraft
from .models.task import Task, TaskDependency, utc_now

log = structlog.get_logger()

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


@dataclass(slots=True)
class ReconcileOutcome:
    """合并结果

    Attributes:
        tasks: 写回文件的完整任务列表（保留任务在前，本批任务按提交顺序在后）
        changed: 本批新建或原地更新的任务
    """

    tasks: list[Task] = field(default_factory=list)
    changed: list[Task] = field(default_factory=list)


def ensure_unique_names(drafts: Iterable[TaskDraft]) -> None:
    """校验本批任务名称两两不同

    Raises:
        DuplicateTaskNameError: 出现重复名称
    """
    seen: set[str] = set()
    for draft in drafts:
        if draft.name in seen:
            raise DuplicateTaskNameError(draft.name)
        seen.add(draft.name)


def _select_kept(
    existing: list[Task],
    drafts: list[TaskDraft],
    mode: UpdateMode,
) -> list[Task]:
    if mode == UpdateMode.APPEND:
        return list(existing)
    if mode == UpdateMode.OVERWRITE:
        return [task for task in existing if task.status == TaskStatus.COMPLETED]
    if mode == UpdateMode.SELECTIVE:
        submitted_names = {draft.name for draft in drafts}
        return [task for task in existing if task.name not in submitted_names]
    # clearAllTasks：调用方已先完成归档
    return []


def _new_task(draft: TaskDraft, analysis_note: str) -> Task:
    now = utc_now()
    return Task(
        id=str(uuid.uuid4()),
        name=draft.name,
        description=draft.description,
        notes=draft.notes,
        implementation_guide=draft.implementation_guide,
        verification_criteria=draft.verification_criteria,
        status=TaskStatus.PENDING,
        related_files=draft.related_files,
        analysis_result=analysis_note,
        created_at=now,
        updated_at=now,
    )


def _updated_task(current: Task, draft: TaskDraft, analysis_note: str) -> Task:
    updates = {
        "name": draft.name,
        "description": draft.description,
        "notes": draft.notes,
        "implementation_guide": draft.implementation_guide,
        "verification_criteria": draft.verification_criteria,
        "analysis_result": analysis_note,
        "updated_at": utc_now(),
    }
    if draft.related_files is not None:
        updates["related_files"] = draft.related_files
    return current.model_copy(update=updates, deep=True)


def _resolve_dependencies(
    references: list[str],
    name_to_id: dict[str, str],
    known_ids: set[str],
    task_name: str,
) -> list[TaskDependency]:
    resolved: list[TaskDependency] = []
    for reference in references:
        if UUID_PATTERN.match(reference):
            task_id = reference if reference in known_ids else None
        else:
            task_id = name_to_id.get(reference)

        if task_id is None:
            log.debug(
                "dependency_reference_dropped",
                task_name=task_name,
                reference=reference,
            )
            continue
        resolved.append(TaskDependency(task_id=task_id))
    return resolved


def reconcile(
    existing: list[Task],
    drafts: list[TaskDraft],
    mode: UpdateMode | str,
    analysis_note: str = "",
) -> ReconcileOutcome:
    """按更新模式合并任务草稿

    Args:
        existing: 当前任务列表
        drafts: 本批提交的任务草稿（名称须唯一）
        mode: append / overwrite / selective / clearAllTasks
        analysis_note: 写入每个本批任务 analysis_result 的全局分析

    Returns:
        ReconcileOutcome

    Raises:
        DuplicateTaskNameError: 草稿名称重复，整批拒绝
    """
    mode = UpdateMode(mode)
    ensure_unique_names(drafts)

    kept = _select_kept(existing, drafts, mode)
    existing_by_id = {task.id: task for task in existing}

    name_to_id: dict[str, str] = {}
    if mode == UpdateMode.SELECTIVE:
        name_to_id.update((task.name, task.id) for task in existing)
    name_to_id.update((task.name, task.id) for task in kept)

    changed: list[Task] = []
    for draft in drafts:
        current = None
        if mode == UpdateMode.SELECTIVE and draft.name in name_to_id:
            candidate = existing_by_id.get(name_to_id[draft.name])
            # 已完成任务不参与原地更新
            if candidate is not None and candidate.status != TaskStatus.COMPLETED:
                current = candidate

        if current is not None:
            task = _updated_task(current, draft, analysis_note)
        else:
            task = _new_task(draft, analysis_note)
        name_to_id[draft.name] = task.id
        changed.append(task)

    known_ids = {task.id for task in kept} | {task.id for task in changed}
    for index, draft in enumerate(drafts):
        # 原地更新且未提交依赖时保留原依赖
        if draft.dependencies is None:
            continue
        changed[index].dependencies = _resolve_dependencies(
            draft.dependencies,
            name_to_id,
            known_ids,
            draft.name,
        )

    return ReconcileOutcome(tasks=[*kept, *changed], changed=changed)
