"""JSON 文档存储 -- 经由 FileLockRegistry 的整文件读写

写入为整文件覆盖（非 rename 原子写），进程在写入中途被杀死可能损坏文件。
读改写的竞争由路径锁避免：update_json 在一次持锁内完成读取、变更与写回。
"""

import asyncio
import json
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, TypeVar

from .file_lock import FileLockRegistry

T = TypeVar("T")


def _read_file(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _write_file(path: Path, value: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(value, ensure_ascii=False, indent=2), encoding="utf-8")


class LockedDocument:
    """持锁期间对单个文档的读写句柄（自身不再加锁）"""

    def __init__(self, path: Path) -> None:
        self.path = path

    async def read(self) -> Any:
        return await asyncio.to_thread(_read_file, self.path)

    async def write(self, value: Any) -> None:
        await asyncio.to_thread(_write_file, self.path, value)


class JsonDocumentStore:
    """带路径锁的 JSON 文档读写"""

    def __init__(self, registry: FileLockRegistry | None = None) -> None:
        self.registry = registry or FileLockRegistry()

    @asynccontextmanager
    async def locked(self, path: str | Path) -> AsyncIterator[LockedDocument]:
        """持有文档路径锁，在锁内通过句柄多次读写

        锁不可重入：持锁期间不要再对同一路径调用 read_json / write_json。
        """
        file_path = Path(path)
        async with self.registry.hold(file_path):
            yield LockedDocument(file_path)

    async def read_json(self, path: str | Path) -> Any:
        """读取 JSON 文档

        Raises:
            FileNotFoundError: 文件不存在（调用方需先初始化）
            json.JSONDecodeError: 文件内容不是合法 JSON
        """
        file_path = Path(path)
        async with self.registry.hold(file_path):
            return await asyncio.to_thread(_read_file, file_path)

    async def write_json(self, path: str | Path, value: Any) -> None:
        """整文件写入 JSON 文档，必要时创建父目录"""
        file_path = Path(path)
        async with self.registry.hold(file_path):
            await asyncio.to_thread(_write_file, file_path, value)

    async def update_json(
        self,
        path: str | Path,
        mutate: Callable[[Any], tuple[Any | None, T]],
    ) -> T:
        """持锁完成 读取 -> 变更 -> 写回

        Args:
            path: 文档路径（必须已存在）
            mutate: 接收当前文档，返回 (新文档, 结果)；新文档为 None 时不写回

        Returns:
            mutate 返回的结果
        """
        async with self.locked(path) as document:
            current = await document.read()
            new_document, result = mutate(current)
            if new_document is not None:
                await document.write(new_document)
            return result

    async def ensure_json(self, path: str | Path, default: Any) -> bool:
        """文件不存在时写入默认文档

        Returns:
            True 如果本次创建了文件
        """
        file_path = Path(path)
        async with self.registry.hold(file_path):
            if file_path.exists():
                return False
            await asyncio.to_thread(_write_file, file_path, default)
            return True

    async def list_json_files(self, directory: str | Path) -> list[Path]:
        """列出目录下的 *.json 文件（目录不存在时返回空列表）"""
        dir_path = Path(directory)
        if not dir_path.is_dir():
            return []
        return await asyncio.to_thread(
            lambda: [p for p in dir_path.glob("*.json") if p.is_file()]
        )
