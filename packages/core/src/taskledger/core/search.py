"""任务搜索 -- 当前任务列表 + 历史归档快照

关键词模式：按空白切分，每个关键词（不区分大小写）都必须出现在
name / description / notes / implementation_guide / summary 之一中。
ID 模式：精确匹配 id。

当前任务与归档任务同 id 时以当前任务为准。排序规则：
有完成时间的在前（按完成时间倒序），其余按更新时间倒序。
"""

import math

import structlog

from .config import DEFAULT_PAGE_SIZE, get_archive_scan_limit
from .models.results import PaginationInfo, SearchResult
from .models.task import Task
from .store.protocols import ArchiveStore, TaskStore

log = structlog.get_logger()

_SEARCH_FIELDS = ("name", "description", "notes", "implementation_guide", "summary")


def matches(task: Task, query: str, is_id: bool = False) -> bool:
    """判断任务是否命中查询"""
    if is_id:
        return task.id == query

    keywords = [keyword.lower() for keyword in query.split()]
    haystacks = [
        value.lower()
        for value in (getattr(task, field) for field in _SEARCH_FIELDS)
        if value
    ]
    return all(
        any(keyword in haystack for haystack in haystacks)
        for keyword in keywords
    )


def _sort_key(task: Task) -> tuple[int, float]:
    if task.completed_at is not None:
        return 0, -task.completed_at.timestamp()
    return 1, -task.updated_at.timestamp()


def sort_results(tasks: list[Task]) -> list[Task]:
    """已完成任务在前，按完成时间倒序；其余按更新时间倒序"""
    return sorted(tasks, key=_sort_key)


def paginate(tasks: list[Task], page: int, page_size: int) -> SearchResult:
    """页码从 1 开始，越界时夹到 [1, total_pages]"""
    if page_size < 1:
        raise ValueError("page_size must be >= 1")

    total_results = len(tasks)
    total_pages = math.ceil(total_results / page_size)
    current_page = max(1, min(page, total_pages or 1))
    start = (current_page - 1) * page_size
    return SearchResult(
        tasks=tasks[start : start + page_size],
        pagination=PaginationInfo(
            current_page=current_page,
            total_pages=total_pages or 1,
            total_results=total_results,
            has_more=current_page < total_pages,
        ),
    )


class TaskSearchEngine:
    """跨当前任务与归档快照的搜索"""

    def __init__(
        self,
        task_store: TaskStore,
        archive_store: ArchiveStore,
        scan_limit: int | None = None,
    ) -> None:
        self._task_store = task_store
        self._archive_store = archive_store
        self._scan_limit = scan_limit if scan_limit is not None else get_archive_scan_limit()

    async def search_archives(self, query: str, is_id: bool = False) -> list[Task]:
        """扫描最新的若干个快照，返回命中的任务

        无法读取或解析的快照跳过并记录警告。
        """
        found: list[Task] = []
        snapshots = await self._archive_store.list_snapshots(self._scan_limit)
        for path in snapshots:
            try:
                tasks = await self._archive_store.load_snapshot(path)
            except (OSError, ValueError) as e:
                log.warning(
                    "archive_snapshot_unreadable",
                    file=path.name,
                    error_type=type(e).__name__,
                )
                continue
            found.extend(task for task in tasks if matches(task, query, is_id))
        return found

    async def search(
        self,
        requirement_name: str,
        query: str,
        is_id: bool = False,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> SearchResult:
        """搜索任务并分页

        Args:
            requirement_name: 需求名称（决定当前任务列表）
            query: 关键词或任务 id
            is_id: 是否按 id 精确匹配
            page: 页码，从 1 开始
            page_size: 每页条数，至少为 1

        Returns:
            SearchResult
        """
        if page_size < 1:
            raise ValueError("page_size must be >= 1")

        live = [
            task
            for task in await self._task_store.list_tasks(requirement_name)
            if matches(task, query, is_id)
        ]
        archived = await self.search_archives(query, is_id)

        merged: dict[str, Task] = {task.id: task for task in live}
        for task in archived:
            merged.setdefault(task.id, task)

        result = paginate(sort_results(list(merged.values())), page, page_size)
        log.debug(
            "tasks_searched",
            requirement=requirement_name,
            is_id=is_id,
            live_matches=len(live),
            archive_matches=len(archived),
            total_results=result.pagination.total_results,
        )
        return result
