"""状态机流转单元测试

测试内容：
1. 合法流转通过
2. 非法流转被拒绝
3. 终态不可再流转
"""

import pytest
from taskledger.core.models.enums import (
    COMPLETED_MUTABLE_FIELDS,
    VALID_TRANSITIONS,
    TaskStatus,
    validate_transition,
)


class TestStateMachineTransitions:
    """状态机流转验证"""

    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            (TaskStatus.PENDING, TaskStatus.IN_PROGRESS),
            (TaskStatus.PENDING, TaskStatus.COMPLETED),
            (TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED),
            # 同状态视为无变化
            (TaskStatus.PENDING, TaskStatus.PENDING),
            (TaskStatus.IN_PROGRESS, TaskStatus.IN_PROGRESS),
        ],
    )
    def test_valid_transition(self, from_status: TaskStatus, to_status: TaskStatus):
        """合法流转应通过验证"""
        assert validate_transition(from_status, to_status) is True

    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            (TaskStatus.IN_PROGRESS, TaskStatus.PENDING),
            (TaskStatus.COMPLETED, TaskStatus.PENDING),
            (TaskStatus.COMPLETED, TaskStatus.IN_PROGRESS),
            (TaskStatus.COMPLETED, TaskStatus.COMPLETED),
        ],
    )
    def test_invalid_transition(self, from_status: TaskStatus, to_status: TaskStatus):
        """非法流转应被拒绝"""
        assert validate_transition(from_status, to_status) is False

    def test_completed_has_empty_transitions(self):
        assert VALID_TRANSITIONS[TaskStatus.COMPLETED] == set()

    def test_valid_transitions_completeness(self):
        """VALID_TRANSITIONS 覆盖所有状态"""
        for state in TaskStatus:
            assert state in VALID_TRANSITIONS, f"{state} 未在 VALID_TRANSITIONS 中定义"

    def test_completed_mutable_fields(self):
        assert COMPLETED_MUTABLE_FIELDS == {"summary", "related_files"}
