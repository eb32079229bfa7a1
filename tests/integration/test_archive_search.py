"""归档与搜索集成测试"""

from taskledger.core.models import TaskStatus, UpdateMode
from taskledger.core.service import TaskService


class TestClearAllTasks:
    """清空归档"""

    async def test_requires_confirm(self, service: TaskService, requirement: str, make_draft):
        await service.split_tasks(requirement, [make_draft("A")])
        result = await service.clear_all_tasks(requirement)
        assert result.success is False
        assert len((await service.list_tasks(requirement)).tasks) == 1

    async def test_archives_only_completed(
        self, service: TaskService, requirement: str, make_draft
    ):
        """一个 pending + 一个 completed：只归档 completed，当前列表清空"""
        batch = await service.split_tasks(requirement, [make_draft("pending"), make_draft("done")])
        await service.update_task_status(requirement, batch.tasks[1].id, TaskStatus.COMPLETED)

        result = await service.clear_all_tasks(requirement, confirm=True)
        assert result.success is True
        assert result.archived_count == 1
        assert result.deleted_count == 2
        assert (await service.list_tasks(requirement)).tasks == []

    async def test_invalid_requirement(self, service: TaskService):
        result = await service.clear_all_tasks(".git", confirm=True)
        assert result.success is False


class TestQueryTasks:
    """搜索与详情"""

    async def test_keyword_query(self, service: TaskService, requirement: str, make_draft):
        await service.split_tasks(requirement, [make_draft("Task Alpha"), make_draft("Task Beta")])
        result = await service.query_tasks(requirement, "alpha", page=1, page_size=5)
        assert result.success is True
        assert [t.name for t in result.tasks] == ["Task Alpha"]
        assert result.pagination.total_results == 1

    async def test_archived_task_found_after_clear(
        self, service: TaskService, requirement: str, make_draft
    ):
        batch = await service.split_tasks(requirement, [make_draft("migrate billing")])
        task_id = batch.tasks[0].id
        await service.update_task_status(requirement, task_id, TaskStatus.COMPLETED)
        await service.split_tasks(requirement, [make_draft("next step")], UpdateMode.CLEAR_ALL_TASKS)

        result = await service.query_tasks(requirement, "billing")
        assert [t.id for t in result.tasks] == [task_id]

        detail = await service.get_task_detail(requirement, task_id)
        assert detail.success is True
        assert detail.task.status == TaskStatus.COMPLETED

        # 当前列表中已不存在
        assert (await service.get_task(requirement, task_id)).success is False

    async def test_pagination(self, service: TaskService, requirement: str, make_draft):
        await service.split_tasks(requirement, [make_draft(f"report {i}") for i in range(7)])
        page2 = await service.query_tasks(requirement, "report", page=2, page_size=5)
        assert len(page2.tasks) == 2
        assert page2.pagination.current_page == 2
        assert page2.pagination.has_more is False

    async def test_page_size_bounds(self, service: TaskService, requirement: str):
        assert (await service.query_tasks(requirement, "x", page_size=0)).success is False
        assert (await service.query_tasks(requirement, "x", page_size=21)).success is False

    async def test_detail_not_found(self, service: TaskService, requirement: str):
        result = await service.get_task_detail(requirement, "missing")
        assert result.success is False

    async def test_empty_id_rejected(self, service: TaskService, requirement: str):
        assert (await service.query_tasks(requirement, " ", is_id=True)).success is False
        assert (await service.get_task_detail(requirement, "")).success is False
