"""packages/core 测试配置 -- 核心层 fixture"""

import uuid
from datetime import UTC, datetime, timedelta

import pytest
from taskledger.core.models import Task, TaskDependency, TaskStatus
from taskledger.core.store import JsonArchiveStore, JsonDocumentStore, JsonTaskStore, StoreGroup

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def _build_task(
    name: str,
    status: TaskStatus = TaskStatus.PENDING,
    dependencies: list[str] | None = None,
    minutes: int = 0,
    **fields,
) -> Task:
    """构造内存中的 Task，时间以 BASE_TIME + minutes 递增"""
    ts = BASE_TIME + timedelta(minutes=minutes)
    return Task(
        id=str(uuid.uuid4()),
        name=name,
        description=fields.pop("description", f"{name} 的任务描述"),
        status=status,
        dependencies=[TaskDependency(task_id=dep) for dep in dependencies or []],
        created_at=ts,
        updated_at=ts,
        completed_at=ts if status == TaskStatus.COMPLETED else None,
        **fields,
    )


@pytest.fixture
def make_task():
    """Task 构造函数"""
    return _build_task


@pytest.fixture
def documents(store_group: StoreGroup) -> JsonDocumentStore:
    return store_group.documents


@pytest.fixture
def task_store(store_group: StoreGroup) -> JsonTaskStore:
    return store_group.task_store


@pytest.fixture
def archive_store(store_group: StoreGroup) -> JsonArchiveStore:
    return store_group.archive_store
