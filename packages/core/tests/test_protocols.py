"""Store 实现与 Protocol 接口的一致性"""

import inspect

import pytest
from taskledger.core.store import (
    ArchiveStore,
    JsonArchiveStore,
    JsonTaskStore,
    StoreGroup,
    TaskStore,
)


def _members(protocol: type) -> set[str]:
    return {name for name in vars(protocol) if not name.startswith("_")}


@pytest.mark.parametrize(
    ("protocol", "implementation"),
    [(TaskStore, JsonTaskStore), (ArchiveStore, JsonArchiveStore)],
)
def test_implementation_provides_protocol_members(protocol: type, implementation: type):
    """实现类提供接口声明的全部成员，协程方法保持为协程"""
    for name in _members(protocol):
        assert hasattr(implementation, name), name
        declared = getattr(protocol, name)
        if inspect.iscoroutinefunction(declared):
            assert inspect.iscoroutinefunction(getattr(implementation, name)), name


def test_store_group_wires_shared_documents(store_group: StoreGroup):
    assert store_group.task_store.documents is store_group.documents
    assert store_group.task_store.namespace is store_group.namespace
