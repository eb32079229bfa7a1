"""并发隔离集成测试"""

import asyncio
import json

from taskledger.core.models import UpdateMode
from taskledger.core.service import TaskService


class TestConcurrency:
    """同一需求串行、不同需求互不干扰"""

    async def test_concurrent_batches_same_requirement(
        self, service: TaskService, requirement: str, make_draft
    ):
        """并发 append 全部落盘"""
        await asyncio.gather(
            *(
                service.split_tasks(requirement, [make_draft(f"T{i}")], UpdateMode.APPEND)
                for i in range(10)
            )
        )
        listed = await service.list_tasks(requirement)
        assert sorted(t.name for t in listed.tasks) == sorted(f"T{i}" for i in range(10))

    async def test_requirements_isolated(self, service: TaskService, make_draft, data_dir):
        """不同需求并发写入后文件均为合法 JSON"""
        names = [f"req{i}" for i in range(5)]
        await asyncio.gather(
            *(
                service.split_tasks(name, [make_draft("A"), make_draft("B", ["A"])])
                for name in names
            )
        )
        for name in names:
            doc = json.loads((data_dir / name / "tasks.json").read_text(encoding="utf-8"))
            assert [t["name"] for t in doc["tasks"]] == ["A", "B"]

        index = json.loads((data_dir / "requirement.json").read_text(encoding="utf-8"))
        assert set(index["requirements"]) == set(names)

    async def test_concurrent_status_updates(self, service: TaskService, requirement: str):
        created = await asyncio.gather(
            *(service.create_task(requirement, f"T{i}", "描述") for i in range(8))
        )
        await asyncio.gather(
            *(
                service.update_task_status(requirement, result.task.id, "completed")
                for result in created
            )
        )
        stats = await service.get_requirement_stats()
        assert stats.total_completed == 8
