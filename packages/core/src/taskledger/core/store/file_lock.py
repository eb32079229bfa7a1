"""文件级互斥锁 -- 按规范化绝对路径串行化读改写

同一进程内，同一路径上的操作不会交叠；不同路径互不阻塞。
不跨进程、不跨主机。

锁表由 FileLockRegistry 实例持有，注入给 JsonDocumentStore，
测试中每个用例可使用独立的 registry。
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TypeVar

T = TypeVar("T")


class FileLockRegistry:
    """路径 -> 持有标记 的锁表

    acquire: 路径上有标记时等待其释放后重试，然后安装新标记。
    release: 移除标记并唤醒全部等待者，由等待者竞争重新获取
    （不保证 FIFO，只保证最终推进）。
    """

    def __init__(self) -> None:
        self._held: dict[str, asyncio.Event] = {}

    @staticmethod
    def normalize(path: str | Path) -> str:
        """规范化为绝对路径字符串"""
        return str(Path(path).resolve())

    def is_locked(self, path: str | Path) -> bool:
        return self.normalize(path) in self._held

    async def acquire(self, path: str | Path) -> Callable[[], None]:
        """获取路径锁

        Returns:
            释放函数，调用方必须且只能调用一次
        """
        key = self.normalize(path)
        while key in self._held:
            await self._held[key].wait()

        marker = asyncio.Event()
        self._held[key] = marker

        def release() -> None:
            if self._held.get(key) is marker:
                del self._held[key]
            marker.set()

        return release

    @asynccontextmanager
    async def hold(self, path: str | Path) -> AsyncIterator[None]:
        """持有路径锁的上下文，异常时同样释放"""
        release = await self.acquire(path)
        try:
            yield
        finally:
            release()

    async def with_exclusive(
        self,
        path: str | Path,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        """在路径锁内执行操作并返回其结果"""
        async with self.hold(path):
            return await operation()
