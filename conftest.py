"""全局 pytest 配置 -- 临时数据目录 + Store/Service fixture"""

from pathlib import Path

import pytest
from taskledger.core.service import TaskService
from taskledger.core.store import FileLockRegistry, StoreGroup, create_store_group


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """提供临时数据根目录"""
    return tmp_path / "data"


@pytest.fixture
def registry() -> FileLockRegistry:
    """每个用例独立的路径锁注册表"""
    return FileLockRegistry()


@pytest.fixture
def store_group(data_dir: Path, registry: FileLockRegistry) -> StoreGroup:
    """共享同一注册表的 Store 实例组"""
    return create_store_group(data_dir, registry)


@pytest.fixture
def service(store_group: StoreGroup) -> TaskService:
    """基于临时数据目录的 TaskService"""
    return TaskService(store_group)
