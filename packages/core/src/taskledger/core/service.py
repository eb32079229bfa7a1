"""TaskService -- 面向调用方的任务操作

所有操作返回结构化结果（success + message），以下情况不抛异常：
- 需求名称不合法
- 批量任务清单格式错误或名称重复
- 找不到任务
- 状态冲突（修改/删除已完成任务、删除被依赖任务、非法状态流转）

磁盘读写失败与已有文件 JSON 损坏属于 I/O 错误，照常向上抛出。
"""

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
from pydantic import TypeAdapter, ValidationError

from .complexity import assess_complexity
from .config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, VERIFY_PASS_SCORE, get_data_dir
from .exceptions import BatchValidationError, InvalidRequirementNameError
from .models.enums import TaskStatus, UpdateMode
from .models.payloads import TaskDraft
from .models.requirement import RequirementStats
from .models.results import (
    ActionResult,
    ArchiveResult,
    BatchResult,
    ComplexityResult,
    DeleteResult,
    QueryResult,
    StartTaskResult,
    TaskListResult,
)
from .models.task import RelatedFile, Task
from .projection import compute_requirement_stats
from .reconcile import ReconcileOutcome, ensure_unique_names, reconcile
from .search import TaskSearchEngine
from .store import FileLockRegistry, StoreGroup, create_store_group

log = structlog.get_logger()

_drafts_adapter = TypeAdapter(list[TaskDraft])
_related_files_adapter = TypeAdapter(list[RelatedFile])

TASK_NOT_FOUND = "找不到指定任务"
COMPLETED_TASK_IMMUTABLE = "无法更新已完成的任务"

_BATCH_MESSAGES: dict[UpdateMode, str] = {
    UpdateMode.APPEND: "成功追加了 {count} 个新任务",
    UpdateMode.OVERWRITE: "成功清除未完成任务并创建了 {count} 个新任务",
    UpdateMode.SELECTIVE: "成功选择性更新/创建了 {count} 个任务",
    UpdateMode.CLEAR_ALL_TASKS: "成功创建了 {count} 个新任务",
}


def parse_drafts(tasks: str | Iterable[dict[str, Any] | TaskDraft]) -> list[TaskDraft]:
    """解析批量任务清单

    Args:
        tasks: JSON 字符串，或由 dict / TaskDraft 组成的序列

    Returns:
        校验后的 TaskDraft 列表

    Raises:
        ValidationError: 结构或字段约束不满足（含 JSON 语法错误）
        BatchValidationError: 清单为空或名称重复
    """
    if isinstance(tasks, str):
        drafts = _drafts_adapter.validate_json(tasks)
    else:
        drafts = _drafts_adapter.validate_python(list(tasks))

    if not drafts:
        raise BatchValidationError("请至少提供一个任务")
    ensure_unique_names(drafts)
    return drafts


def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"任务清单格式不正确（共 {error.error_count()} 处）：{location} {first['msg']}"


class TaskService:
    """任务业务服务"""

    def __init__(self, store_group: StoreGroup, scan_limit: int | None = None) -> None:
        self._stores = store_group
        self._search = TaskSearchEngine(
            store_group.task_store,
            store_group.archive_store,
            scan_limit=scan_limit,
        )

    @property
    def stores(self) -> StoreGroup:
        return self._stores

    # ============================================================
    # 查询
    # ============================================================

    async def list_tasks(self, requirement_name: str, status: str = "all") -> TaskListResult:
        """列出需求下的任务，status 为 all 时不筛选"""
        try:
            filter_status = None if status == "all" else TaskStatus(status)
        except ValueError:
            return TaskListResult(success=False, message=f"未知的任务状态: {status}")

        try:
            tasks = await self._stores.task_store.list_tasks(requirement_name, filter_status)
        except InvalidRequirementNameError as e:
            return TaskListResult(success=False, message=e.message)

        if not tasks:
            return TaskListResult(success=True, message="当前没有符合条件的任务")
        return TaskListResult(success=True, message=f"共 {len(tasks)} 个任务", tasks=tasks)

    async def get_task(self, requirement_name: str, task_id: str) -> ActionResult:
        """按 id 读取当前任务列表中的任务"""
        try:
            task = await self._stores.task_store.get_task(requirement_name, task_id)
        except InvalidRequirementNameError as e:
            return ActionResult(success=False, message=e.message)

        if task is None:
            return ActionResult(success=False, message=TASK_NOT_FOUND)
        return ActionResult(success=True, message="已找到任务", task=task)

    async def get_task_detail(self, requirement_name: str, task_id: str) -> ActionResult:
        """读取任务完整信息，同时查找归档快照"""
        if not task_id.strip():
            return ActionResult(success=False, message="任务 ID 不能为空")

        try:
            result = await self._search.search(requirement_name, task_id, is_id=True, page_size=1)
        except InvalidRequirementNameError as e:
            return ActionResult(success=False, message=e.message)

        if not result.tasks:
            return ActionResult(success=False, message=f"找不到 ID 为 {task_id} 的任务")
        return ActionResult(success=True, message="已找到任务", task=result.tasks[0])

    async def query_tasks(
        self,
        requirement_name: str,
        query: str,
        is_id: bool = False,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> QueryResult:
        """按 id 或关键词搜索当前任务与归档任务"""
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            return QueryResult(
                success=False,
                message=f"每页条数必须在 1 到 {MAX_PAGE_SIZE} 之间",
            )
        if is_id and not query.strip():
            return QueryResult(success=False, message="任务 ID 不能为空")

        try:
            result = await self._search.search(requirement_name, query, is_id, page, page_size)
        except InvalidRequirementNameError as e:
            return QueryResult(success=False, message=e.message)

        pagination = result.pagination
        return QueryResult(
            success=True,
            message=(
                f"找到 {pagination.total_results} 个任务，"
                f"第 {pagination.current_page}/{pagination.total_pages} 页"
            ),
            tasks=result.tasks,
            pagination=pagination,
        )

    async def assess_task_complexity(
        self,
        requirement_name: str,
        task_id: str,
    ) -> ComplexityResult:
        """评估任务复杂度（当前任务列表中的任务）"""
        try:
            task = await self._stores.task_store.get_task(requirement_name, task_id)
        except InvalidRequirementNameError as e:
            return ComplexityResult(success=False, message=e.message)

        if task is None:
            return ComplexityResult(success=False, message=TASK_NOT_FOUND)

        assessment = assess_complexity(task)
        return ComplexityResult(
            success=True,
            message=f"任务 {task.name} 的复杂度为 {assessment.level.value}",
            task=task,
            assessment=assessment,
        )

    # ============================================================
    # 单任务写操作
    # ============================================================

    async def create_task(
        self,
        requirement_name: str,
        name: str,
        description: str,
        notes: str | None = None,
        dependencies: Iterable[str] = (),
        related_files: list[RelatedFile | dict[str, Any]] | None = None,
    ) -> ActionResult:
        """创建单个 pending 任务"""
        if not name.strip():
            return ActionResult(success=False, message="任务名称不能为空")

        try:
            files = (
                _related_files_adapter.validate_python(related_files)
                if related_files is not None
                else None
            )
            task = await self._stores.task_store.create_task(
                requirement_name,
                name=name,
                description=description,
                notes=notes,
                dependencies=dependencies,
                related_files=files,
            )
        except InvalidRequirementNameError as e:
            return ActionResult(success=False, message=e.message)
        except ValidationError as e:
            return ActionResult(success=False, message=_validation_message(e))

        return ActionResult(success=True, message="任务创建成功", task=task)

    async def update_task_content(
        self,
        requirement_name: str,
        task_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
        notes: str | None = None,
        related_files: list[RelatedFile | dict[str, Any]] | None = None,
        dependencies: list[str] | None = None,
        implementation_guide: str | None = None,
        verification_criteria: str | None = None,
    ) -> ActionResult:
        """更新任务内容字段

        已完成任务拒绝更新；未提供任何字段时视为成功的空操作。
        """
        try:
            task = await self._stores.task_store.get_task(requirement_name, task_id)
        except InvalidRequirementNameError as e:
            return ActionResult(success=False, message=e.message)

        if task is None:
            return ActionResult(success=False, message=TASK_NOT_FOUND)
        if task.status == TaskStatus.COMPLETED:
            return ActionResult(success=False, message=COMPLETED_TASK_IMMUTABLE)

        candidates = {
            "name": name,
            "description": description,
            "notes": notes,
            "related_files": related_files,
            "dependencies": dependencies,
            "implementation_guide": implementation_guide,
            "verification_criteria": verification_criteria,
        }
        updates = {key: value for key, value in candidates.items() if value is not None}
        if not updates:
            return ActionResult(success=True, message="没有提供需要更新的内容", task=task)

        try:
            if "related_files" in updates:
                updates["related_files"] = _related_files_adapter.validate_python(
                    updates["related_files"]
                )
            updated = await self._stores.task_store.update_task(
                requirement_name,
                task_id,
                **updates,
            )
        except ValidationError as e:
            return ActionResult(success=False, message=_validation_message(e))

        if updated is None:
            # 读取之后任务被并发完成或删除
            return ActionResult(success=False, message="更新任务时发生错误")
        return ActionResult(success=True, message="任务内容已成功更新", task=updated)

    async def update_task_related_files(
        self,
        requirement_name: str,
        task_id: str,
        related_files: list[RelatedFile | dict[str, Any]],
    ) -> ActionResult:
        """替换任务的相关文件列表（已完成任务拒绝）"""
        try:
            task = await self._stores.task_store.get_task(requirement_name, task_id)
        except InvalidRequirementNameError as e:
            return ActionResult(success=False, message=e.message)

        if task is None:
            return ActionResult(success=False, message=TASK_NOT_FOUND)
        if task.status == TaskStatus.COMPLETED:
            return ActionResult(success=False, message=COMPLETED_TASK_IMMUTABLE)

        try:
            files = _related_files_adapter.validate_python(related_files)
        except ValidationError as e:
            return ActionResult(success=False, message=_validation_message(e))

        updated = await self._stores.task_store.update_task(
            requirement_name,
            task_id,
            related_files=files,
        )
        if updated is None:
            return ActionResult(success=False, message="更新任务相关文件时发生错误")
        return ActionResult(
            success=True,
            message=f"已成功更新任务相关文件，共 {len(files)} 个文件",
            task=updated,
        )

    async def update_task_status(
        self,
        requirement_name: str,
        task_id: str,
        status: TaskStatus | str,
    ) -> ActionResult:
        """更新任务状态，拒绝非法流转"""
        try:
            target = TaskStatus(status)
        except ValueError:
            return ActionResult(success=False, message=f"未知的任务状态: {status}")

        try:
            task = await self._stores.task_store.get_task(requirement_name, task_id)
        except InvalidRequirementNameError as e:
            return ActionResult(success=False, message=e.message)

        if task is None:
            return ActionResult(success=False, message=TASK_NOT_FOUND)

        updated = await self._stores.task_store.update_task_status(
            requirement_name,
            task_id,
            target,
        )
        if updated is None:
            return ActionResult(
                success=False,
                message=f"无法将任务状态从 {task.status.value} 更新为 {target.value}",
            )
        return ActionResult(success=True, message="任务状态已更新", task=updated)

    async def delete_task(self, requirement_name: str, task_id: str) -> DeleteResult:
        """删除任务（已完成或被依赖时拒绝）"""
        try:
            return await self._stores.task_store.delete_task(requirement_name, task_id)
        except InvalidRequirementNameError as e:
            return DeleteResult(success=False, message=e.message)

    # ============================================================
    # 工作流阶段
    # ============================================================

    async def split_tasks(
        self,
        requirement_name: str,
        tasks: str | Iterable[dict[str, Any] | TaskDraft],
        update_mode: UpdateMode | str = UpdateMode.APPEND,
        analysis_note: str = "",
    ) -> BatchResult:
        """提交一批任务并按更新模式合并

        所有校验在写入之前完成，失败时不修改任何文件。
        clearAllTasks 模式先归档已完成任务并清空，再写入本批任务。
        """
        try:
            mode = UpdateMode(update_mode)
        except ValueError:
            return BatchResult(success=False, message=f"未知的更新模式: {update_mode}")

        try:
            self._stores.namespace.validate(requirement_name)
            drafts = parse_drafts(tasks)
        except ValidationError as e:
            return BatchResult(success=False, message=_validation_message(e))
        except (InvalidRequirementNameError, BatchValidationError) as e:
            return BatchResult(success=False, message=e.message)

        prefix = ""
        backup_file = None
        if mode == UpdateMode.CLEAR_ALL_TASKS:
            archived = await self._stores.archive_store.archive_and_clear(requirement_name)
            prefix = f"{archived.message}\n"
            backup_file = archived.backup_file

        def _merge(existing: list[Task]) -> tuple[list[Task], ReconcileOutcome]:
            outcome = reconcile(existing, drafts, mode, analysis_note)
            return outcome.tasks, outcome

        outcome = await self._stores.task_store.replace_tasks(requirement_name, _merge)

        log.info(
            "batch_reconciled",
            requirement=requirement_name,
            mode=mode.value,
            changed_count=len(outcome.changed),
            total_count=len(outcome.tasks),
        )
        return BatchResult(
            success=True,
            message=prefix + _BATCH_MESSAGES[mode].format(count=len(outcome.changed)),
            tasks=outcome.changed,
            backup_file=backup_file,
        )

    async def start_task(self, requirement_name: str, task_id: str) -> StartTaskResult:
        """开始执行任务

        依赖全部完成后才会进入 in_progress，并返回复杂度评估与依赖任务。
        """
        store = self._stores.task_store
        try:
            task = await store.get_task(requirement_name, task_id)
        except InvalidRequirementNameError as e:
            return StartTaskResult(success=False, message=e.message)

        if task is None:
            return StartTaskResult(success=False, message=TASK_NOT_FOUND)
        if task.status == TaskStatus.COMPLETED:
            return StartTaskResult(success=False, message=f"任务 {task.name} 已完成", task=task)

        gate = await store.can_execute(requirement_name, task_id)
        if not gate.can_execute:
            blocked = ", ".join(gate.blocked_by or [])
            return StartTaskResult(
                success=False,
                message=f"任务 {task.name} 被以下未完成的依赖阻塞: {blocked}",
                task=task,
                blocked_by=gate.blocked_by,
            )

        started = await store.update_task_status(requirement_name, task_id, TaskStatus.IN_PROGRESS)
        if started is None:
            return StartTaskResult(success=False, message="更新任务状态时发生错误", task=task)

        all_tasks = {item.id: item for item in await store.list_tasks(requirement_name)}
        dependency_tasks = [
            all_tasks[dep_id] for dep_id in started.dependency_ids if dep_id in all_tasks
        ]
        return StartTaskResult(
            success=True,
            message=f"任务 {started.name} 已开始执行",
            task=started,
            complexity=assess_complexity(started),
            dependency_tasks=dependency_tasks,
        )

    async def verify_task(
        self,
        requirement_name: str,
        task_id: str,
        summary: str,
        score: int,
    ) -> ActionResult:
        """检验进行中的任务

        评分达到 VERIFY_PASS_SCORE 时写入摘要并标记完成，否则任务保持不变。
        """
        if not 0 <= score <= 100:
            return ActionResult(success=False, message="评分必须在 0 到 100 之间")

        store = self._stores.task_store
        try:
            task = await store.get_task(requirement_name, task_id)
        except InvalidRequirementNameError as e:
            return ActionResult(success=False, message=e.message)

        if task is None:
            return ActionResult(success=False, message=TASK_NOT_FOUND)
        if task.status != TaskStatus.IN_PROGRESS:
            return ActionResult(
                success=False,
                message=f"任务 {task.name} 当前状态为 {task.status.value}，只能检验进行中的任务",
                task=task,
            )

        if score < VERIFY_PASS_SCORE:
            return ActionResult(
                success=True,
                message=f"评分 {score} 未达到 {VERIFY_PASS_SCORE}，任务保持进行中",
                task=task,
            )

        completed = await store.complete_task(requirement_name, task_id, summary)
        if completed is None:
            # 读取之后任务被并发完成或删除
            return ActionResult(success=False, message="更新任务状态时发生错误", task=task)

        log.info("task_verified", requirement=requirement_name, task_id=task_id, score=score)
        return ActionResult(
            success=True,
            message=f"任务 {completed.name} 已通过检验并完成",
            task=completed,
        )

    # ============================================================
    # 需求级操作
    # ============================================================

    async def clear_all_tasks(self, requirement_name: str, confirm: bool = False) -> ArchiveResult:
        """归档已完成任务并清空需求，必须显式确认"""
        if not confirm:
            return ArchiveResult(
                success=False,
                message="必须明确确认清除操作，请将 confirm 设置为 True",
            )
        try:
            return await self._stores.archive_store.archive_and_clear(requirement_name)
        except InvalidRequirementNameError as e:
            return ArchiveResult(success=False, message=e.message)

    async def list_requirements(self) -> list[str]:
        """列出数据目录下的全部需求名称"""
        return await self._stores.namespace.list_requirements()

    async def get_requirement_stats(self) -> RequirementStats:
        """汇总全部需求的任务统计"""
        return await compute_requirement_stats(self._stores.task_store)


def create_task_service(
    data_dir: str | Path | None = None,
    registry: FileLockRegistry | None = None,
) -> TaskService:
    """按数据目录创建 TaskService，缺省读取 TASKLEDGER_DATA_DIR"""
    store_group = create_store_group(data_dir or get_data_dir(), registry)
    return TaskService(store_group)
