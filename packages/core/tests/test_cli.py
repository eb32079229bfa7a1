"""维护 CLI 测试 -- python -m taskledger.core <command>"""

import json
from pathlib import Path

import pytest
from taskledger.core import __main__ as cli
from taskledger.core.store import JsonTaskStore


@pytest.fixture(autouse=True)
def _cli_env(monkeypatch: pytest.MonkeyPatch, data_dir: Path):
    monkeypatch.setenv("TASKLEDGER_DATA_DIR", str(data_dir))
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)


class TestCli:
    """命令分发"""

    def test_no_command_prints_usage(self, capsys):
        assert cli.main([]) == 1
        assert "rebuild-projections" in capsys.readouterr().out

    def test_unknown_command(self, capsys):
        assert cli.main(["explode"]) == 1
        assert "未知命令" in capsys.readouterr().out

    def test_logging_options_forwarded(self, monkeypatch: pytest.MonkeyPatch):
        """--log-format= / --log-level= 传给 setup_logging，不当作命令"""
        received: dict[str, str] = {}
        monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: received.update(kwargs))

        assert cli.main(["--log-format=json", "--log-level=DEBUG", "list-requirements"]) == 0
        assert received == {"log_format": "json", "log_level": "DEBUG"}

    def test_options_without_command_print_usage(self, capsys):
        assert cli.main(["--log-format=json"]) == 1
        assert "rebuild-projections" in capsys.readouterr().out

    def test_invalid_log_format(self, monkeypatch: pytest.MonkeyPatch, capsys):
        def _reject(**kwargs):
            raise ValueError("未知的日志格式: xml")

        monkeypatch.setattr(cli, "setup_logging", _reject)
        assert cli.main(["--log-format=xml", "list-requirements"]) == 1
        assert "日志参数无效" in capsys.readouterr().out

    async def test_rebuild_projections(self, task_store: JsonTaskStore, data_dir: Path):
        await task_store.create_task("alpha", "A", "描述")
        (data_dir / "requirement.json").unlink()

        await cli.rebuild_projections()

        index = json.loads((data_dir / "requirement.json").read_text(encoding="utf-8"))
        assert index["requirements"]["alpha"]["taskCount"] == 1

    async def test_list_requirements(self, task_store: JsonTaskStore, capsys):
        await task_store.create_task("alpha", "A", "描述")
        await task_store.create_task("beta", "B", "描述")

        await cli.list_requirements()

        out = capsys.readouterr().out
        assert "alpha: 共 1 个任务" in out
        assert "合计 2 个需求" in out

    async def test_list_requirements_empty(self, capsys):
        await cli.list_requirements()
        assert "暂无需求" in capsys.readouterr().out
