"""TaskStore JSON 文件实现

每个需求一个 tasks.json，所有写操作在路径锁内完成读改写，
写入后顺带刷新 requirement.json 中的统计（刷新失败不影响主操作）。
"""

import uuid
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

import structlog

from ..models.enums import COMPLETED_MUTABLE_FIELDS, TaskStatus, validate_transition
from ..models.results import CanExecuteResult, DeleteResult
from ..models.task import RelatedFile, Task, TaskDependency, TaskDocument, utc_now
from .json_store import JsonDocumentStore
from .namespace import RequirementNamespace
from .requirement_index import refresh_requirement_info

log = structlog.get_logger()

T = TypeVar("T")

TaskMutation = Callable[[list[Task]], tuple[list[Task] | None, T]]


def _as_dependencies(values: Iterable[str | TaskDependency]) -> list[TaskDependency]:
    return [
        value if isinstance(value, TaskDependency) else TaskDependency(task_id=value)
        for value in values
    ]


def _apply_updates(task: Task, updates: dict[str, Any]) -> Task:
    """合并字段并刷新 updated_at，返回重新校验后的新 Task"""
    if "dependencies" in updates and updates["dependencies"] is not None:
        updates = {**updates, "dependencies": _as_dependencies(updates["dependencies"])}
    merged = {**task.model_dump(), **updates, "updated_at": utc_now()}
    return Task.model_validate(merged)


def _find_index(tasks: list[Task], task_id: str) -> int | None:
    for index, task in enumerate(tasks):
        if task.id == task_id:
            return index
    return None


class JsonTaskStore:
    """TaskStore 的 JSON 文件实现"""

    def __init__(self, namespace: RequirementNamespace, documents: JsonDocumentStore) -> None:
        self._namespace = namespace
        self._documents = documents

    @property
    def namespace(self) -> RequirementNamespace:
        return self._namespace

    @property
    def documents(self) -> JsonDocumentStore:
        return self._documents

    async def list_tasks(
        self,
        requirement_name: str,
        status: TaskStatus | str | None = None,
    ) -> list[Task]:
        """读取需求下全部任务，可按状态筛选"""
        tasks_file = await self._namespace.ensure_requirement(requirement_name)
        data = await self._documents.read_json(tasks_file)
        tasks = TaskDocument.model_validate(data).tasks
        if status:
            tasks = [task for task in tasks if task.status == TaskStatus(status)]
        return tasks

    async def get_task(self, requirement_name: str, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        tasks = await self.list_tasks(requirement_name)
        index = _find_index(tasks, task_id)
        return tasks[index] if index is not None else None

    async def replace_tasks(self, requirement_name: str, mutate: TaskMutation[T]) -> T:
        """持锁读改写整个任务列表

        requirement.json 的刷新同样在 tasks.json 锁内完成，
        同一需求的统计按写入顺序更新。

        Args:
            requirement_name: 需求名称
            mutate: 接收当前任务列表，返回 (新列表, 结果)；新列表为 None 时不写回

        Returns:
            mutate 返回的结果
        """
        tasks_file = await self._namespace.ensure_requirement(requirement_name)

        async with self._documents.locked(tasks_file) as document:
            tasks = TaskDocument.model_validate(await document.read()).tasks
            new_tasks, result = mutate(tasks)
            if new_tasks is not None:
                await document.write(TaskDocument(tasks=new_tasks).to_document())
                # 锁顺序：tasks.json -> requirement.json
                await self.refresh_projection(requirement_name, new_tasks)
        return result

    async def create_task(
        self,
        requirement_name: str,
        name: str,
        description: str,
        notes: str | None = None,
        dependencies: Iterable[str] = (),
        related_files: list[RelatedFile] | None = None,
    ) -> Task:
        """追加一个 pending 任务，依赖仅记录 ID，不校验存在性"""
        now = utc_now()
        task = Task(
            id=str(uuid.uuid4()),
            name=name,
            description=description,
            notes=notes,
            status=TaskStatus.PENDING,
            dependencies=_as_dependencies(dependencies),
            related_files=related_files,
            created_at=now,
            updated_at=now,
        )

        await self.replace_tasks(requirement_name, lambda tasks: ([*tasks, task], None))
        log.info(
            "task_created",
            requirement=requirement_name,
            task_id=task.id,
            dependency_count=len(task.dependencies),
        )
        return task

    async def update_task(
        self,
        requirement_name: str,
        task_id: str,
        **updates: Any,
    ) -> Task | None:
        """合并更新任务字段

        已完成任务只允许更新 summary / related_files，
        包含其他字段时整体拒绝，返回 None 且不写入。
        """
        unknown = set(updates) - set(Task.model_fields)
        if unknown:
            raise ValueError(f"Unknown task fields: {sorted(unknown)}")

        def _mutate(tasks: list[Task]) -> tuple[list[Task] | None, Task | None]:
            index = _find_index(tasks, task_id)
            if index is None:
                log.warning("task_not_found", requirement=requirement_name, task_id=task_id)
                return None, None

            current = tasks[index]
            if current.status == TaskStatus.COMPLETED:
                disallowed = set(updates) - COMPLETED_MUTABLE_FIELDS
                if disallowed:
                    log.warning(
                        "completed_task_update_rejected",
                        requirement=requirement_name,
                        task_id=task_id,
                        fields=sorted(disallowed),
                    )
                    return None, None

            updated = _apply_updates(current, updates)
            new_tasks = list(tasks)
            new_tasks[index] = updated
            return new_tasks, updated

        return await self.replace_tasks(requirement_name, _mutate)

    async def update_task_status(
        self,
        requirement_name: str,
        task_id: str,
        status: TaskStatus | str,
    ) -> Task | None:
        """更新任务状态，进入 completed 时记录 completed_at"""
        target = TaskStatus(status)

        def _mutate(tasks: list[Task]) -> tuple[list[Task] | None, Task | None]:
            index = _find_index(tasks, task_id)
            if index is None:
                log.warning("task_not_found", requirement=requirement_name, task_id=task_id)
                return None, None

            current = tasks[index]
            if not validate_transition(current.status, target):
                log.warning(
                    "invalid_status_transition",
                    requirement=requirement_name,
                    task_id=task_id,
                    from_status=current.status.value,
                    to_status=target.value,
                )
                return None, None

            updates: dict[str, Any] = {"status": target}
            if target == TaskStatus.COMPLETED:
                updates["completed_at"] = utc_now()

            updated = _apply_updates(current, updates)
            new_tasks = list(tasks)
            new_tasks[index] = updated
            return new_tasks, updated

        task = await self.replace_tasks(requirement_name, _mutate)
        if task is not None:
            log.info(
                "task_status_updated",
                requirement=requirement_name,
                task_id=task_id,
                status=target.value,
            )
        return task

    async def update_task_summary(
        self,
        requirement_name: str,
        task_id: str,
        summary: str,
    ) -> Task | None:
        """更新任务完成摘要（已完成任务同样允许）"""
        return await self.update_task(requirement_name, task_id, summary=summary)

    async def complete_task(
        self,
        requirement_name: str,
        task_id: str,
        summary: str,
    ) -> Task | None:
        """一次写入中记录摘要并把 in_progress 任务标记为完成

        任务不存在或不处于 in_progress 时返回 None，摘要与状态都不写入。
        """

        def _mutate(tasks: list[Task]) -> tuple[list[Task] | None, Task | None]:
            index = _find_index(tasks, task_id)
            if index is None:
                log.warning("task_not_found", requirement=requirement_name, task_id=task_id)
                return None, None

            current = tasks[index]
            if current.status != TaskStatus.IN_PROGRESS:
                log.warning(
                    "invalid_status_transition",
                    requirement=requirement_name,
                    task_id=task_id,
                    from_status=current.status.value,
                    to_status=TaskStatus.COMPLETED.value,
                )
                return None, None

            updated = _apply_updates(
                current,
                {
                    "summary": summary,
                    "status": TaskStatus.COMPLETED,
                    "completed_at": utc_now(),
                },
            )
            new_tasks = list(tasks)
            new_tasks[index] = updated
            return new_tasks, updated

        task = await self.replace_tasks(requirement_name, _mutate)
        if task is not None:
            log.info("task_completed", requirement=requirement_name, task_id=task_id)
        return task

    async def can_execute(self, requirement_name: str, task_id: str) -> CanExecuteResult:
        """检查任务的全部依赖是否都已完成

        不存在的依赖视为阻塞。
        """
        tasks = await self.list_tasks(requirement_name)
        by_id = {task.id: task for task in tasks}

        task = by_id.get(task_id)
        if task is None or task.status == TaskStatus.COMPLETED:
            return CanExecuteResult(can_execute=False)

        if not task.dependencies:
            return CanExecuteResult(can_execute=True)

        blocked_by = [
            dep_id
            for dep_id in task.dependency_ids
            if dep_id not in by_id or by_id[dep_id].status != TaskStatus.COMPLETED
        ]
        return CanExecuteResult(
            can_execute=not blocked_by,
            blocked_by=blocked_by or None,
        )

    async def delete_task(self, requirement_name: str, task_id: str) -> DeleteResult:
        """删除任务

        任务不存在、已完成、或被其他任务依赖时拒绝删除。
        """

        def _mutate(tasks: list[Task]) -> tuple[list[Task] | None, DeleteResult]:
            index = _find_index(tasks, task_id)
            if index is None:
                return None, DeleteResult(success=False, message="找不到指定任务")

            if tasks[index].status == TaskStatus.COMPLETED:
                return None, DeleteResult(success=False, message="无法删除已完成的任务")

            dependents = [
                task
                for task in tasks
                if task.id != task_id and task_id in task.dependency_ids
            ]
            if dependents:
                names = ", ".join(f'"{task.name}" (ID: {task.id})' for task in dependents)
                return None, DeleteResult(
                    success=False,
                    message=f"无法删除此任务，因为以下任务依赖于它: {names}",
                )

            return [task for task in tasks if task.id != task_id], DeleteResult(
                success=True,
                message="任务删除成功",
            )

        result = await self.replace_tasks(requirement_name, _mutate)
        if result.success:
            log.info("task_deleted", requirement=requirement_name, task_id=task_id)
        return result

    async def refresh_projection(self, requirement_name: str, tasks: list[Task]) -> None:
        """刷新 requirement.json 统计（失败仅记录日志）"""
        try:
            await refresh_requirement_info(
                self._namespace,
                self._documents,
                requirement_name,
                tasks,
            )
        except Exception as e:
            log.warning(
                "requirement_projection_refresh_failed",
                requirement=requirement_name,
                error_type=type(e).__name__,
            )
