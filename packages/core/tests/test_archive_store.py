"""JsonArchiveStore 单元测试 -- 归档快照写入与读取"""

import asyncio
import json
from pathlib import Path

from taskledger.core.config import ARCHIVE_FILE_PREFIX
from taskledger.core.models import TaskStatus
from taskledger.core.store import JsonArchiveStore, JsonTaskStore
from taskledger.core.store.archive_store import snapshot_file_name

REQ = "release"


class TestArchiveAndClear:
    """清空并归档"""

    async def test_empty_requirement_is_noop(
        self, archive_store: JsonArchiveStore, data_dir: Path
    ):
        result = await archive_store.archive_and_clear(REQ)
        assert result.success is True
        assert result.backup_file is None
        assert not (data_dir / "archive").exists()

    async def test_only_completed_tasks_archived(
        self, task_store: JsonTaskStore, archive_store: JsonArchiveStore, data_dir: Path
    ):
        """一个 pending + 一个 completed：只归档 completed，清空当前列表"""
        await task_store.create_task(REQ, "pending", "描述")
        done = await task_store.create_task(REQ, "done", "描述")
        await task_store.update_task_status(REQ, done.id, TaskStatus.COMPLETED)

        result = await archive_store.archive_and_clear(REQ)
        assert result.success is True
        assert result.deleted_count == 2
        assert result.archived_count == 1
        assert result.backup_file.startswith(ARCHIVE_FILE_PREFIX)

        assert await task_store.list_tasks(REQ) == []
        snapshot = json.loads(
            (data_dir / "archive" / result.backup_file).read_text(encoding="utf-8")
        )
        assert snapshot["requirement"] == REQ
        assert [t["id"] for t in snapshot["tasks"]] == [done.id]
        assert "archivedAt" in snapshot

    async def test_projection_reset_after_clear(
        self, task_store: JsonTaskStore, archive_store: JsonArchiveStore, data_dir: Path
    ):
        await task_store.create_task(REQ, "A", "描述")
        await archive_store.archive_and_clear(REQ)
        index = json.loads((data_dir / "requirement.json").read_text(encoding="utf-8"))
        assert index["requirements"][REQ]["taskCount"] == 0

    async def test_concurrent_create_not_lost(
        self, task_store: JsonTaskStore, archive_store: JsonArchiveStore
    ):
        """归档与并发创建互斥，创建不会被截断写覆盖"""
        await task_store.create_task(REQ, "A", "描述")
        result, created = await asyncio.gather(
            archive_store.archive_and_clear(REQ),
            task_store.create_task(REQ, "B", "描述"),
        )
        remaining = await task_store.list_tasks(REQ)
        # B 要么在清空之后写入，要么被本次清空计入
        assert result.deleted_count + len(remaining) == 2
        if remaining:
            assert [t.id for t in remaining] == [created.id]


class TestSnapshots:
    """快照列表与读取"""

    async def test_list_newest_first_and_load(
        self, task_store: JsonTaskStore, archive_store: JsonArchiveStore
    ):
        names = []
        for i in range(3):
            task = await task_store.create_task(REQ, f"T{i}", "描述")
            await task_store.update_task_status(REQ, task.id, TaskStatus.COMPLETED)
            result = await archive_store.archive_and_clear(REQ)
            names.append(result.backup_file)

        snapshots = await archive_store.list_snapshots()
        assert [p.name for p in snapshots] == sorted(names, reverse=True)
        assert [p.name for p in await archive_store.list_snapshots(limit=1)] == [max(names)]

        tasks = await archive_store.load_snapshot(snapshots[0])
        assert [t.name for t in tasks] == ["T2"]

    def test_snapshot_file_name_sortable(self):
        name = snapshot_file_name()
        assert name.startswith(ARCHIVE_FILE_PREFIX)
        assert name.endswith(".json")
        # 时间部分仅含数字、连字符与 T，可按字典序比较
        stamp = name[len(ARCHIVE_FILE_PREFIX) : -len(".json")]
        assert set(stamp) <= set("0123456789-T")
