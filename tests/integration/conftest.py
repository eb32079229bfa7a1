"""集成测试共享 fixture"""

import pytest


@pytest.fixture
def requirement() -> str:
    """集成测试默认需求名称"""
    return "checkout"


def draft(name: str, dependencies: list[str] | None = None, **fields) -> dict:
    """构造 camelCase 的任务草稿"""
    data = {
        "name": name,
        "description": fields.pop("description", f"{name}：实现细节与验收标准说明"),
        **fields,
    }
    if dependencies is not None:
        data["dependencies"] = dependencies
    return data


@pytest.fixture
def make_draft():
    return draft
