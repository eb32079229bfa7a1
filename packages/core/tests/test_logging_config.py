"""structlog 配置测试"""

import io
import json
import logging

import pytest
import structlog
from taskledger.core.logging_config import setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestSetupLogging:
    """渲染模式与日志级别"""

    def test_json_mode(self, monkeypatch: pytest.MonkeyPatch, restore_logging, capsys):
        monkeypatch.setenv("TASKLEDGER_LOG_FORMAT", "json")
        monkeypatch.setenv("TASKLEDGER_LOG_LEVEL", "DEBUG")
        setup_logging()

        assert logging.getLogger().level == logging.DEBUG
        structlog.get_logger("test").info("task_created", task_id="t1")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "task_created"
        assert record["task_id"] == "t1"
        assert record["level"] == "info"

    def test_unknown_level_falls_back_to_info(
        self, monkeypatch: pytest.MonkeyPatch, restore_logging
    ):
        monkeypatch.setenv("TASKLEDGER_LOG_LEVEL", "LOUD")
        setup_logging()
        assert logging.getLogger().level == logging.INFO

    def test_arguments_override_environment(
        self, monkeypatch: pytest.MonkeyPatch, restore_logging
    ):
        """显式参数优先于环境变量，并写入指定的输出流"""
        monkeypatch.setenv("TASKLEDGER_LOG_FORMAT", "dev")
        monkeypatch.setenv("TASKLEDGER_LOG_LEVEL", "ERROR")
        stream = io.StringIO()
        setup_logging(log_format="JSON", log_level="warning", stream=stream)

        assert logging.getLogger().level == logging.WARNING
        structlog.get_logger("test").warning("archive_snapshot_unreadable", file="a.json")

        record = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert record["event"] == "archive_snapshot_unreadable"
        assert record["file"] == "a.json"

    def test_numeric_level(self, restore_logging):
        setup_logging(log_level=logging.DEBUG, stream=io.StringIO())
        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_format_rejected(self, restore_logging):
        with pytest.raises(ValueError, match="xml"):
            setup_logging(log_format="xml")
