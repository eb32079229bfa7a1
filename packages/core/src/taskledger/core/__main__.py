"""CLI 入口模块 -- python -m taskledger.core [--log-format=dev|json] [--log-level=LEVEL] <command>

支持的命令：
  rebuild-projections  从各需求 tasks.json 重建 requirement.json
  list-requirements    列出数据目录下的需求及任务统计
"""

import asyncio
import sys

from .config import get_data_dir
from .logging_config import setup_logging

# 形如 --log-format=json 的日志参数 -> setup_logging 关键字
LOGGING_OPTIONS = {
    "--log-format": "log_format",
    "--log-level": "log_level",
}

COMMANDS = {
    "rebuild-projections": "从各需求 tasks.json 重建 requirement.json",
    "list-requirements": "列出数据目录下的需求及任务统计",
}


def _print_usage() -> None:
    print("用法: python -m taskledger.core [--log-format=dev|json] [--log-level=LEVEL] <command>")
    print("命令:")
    for name, description in COMMANDS.items():
        print(f"  {name:<20} {description}")


def _split_logging_options(args: list[str]) -> tuple[dict[str, str], list[str]]:
    options: dict[str, str] = {}
    rest: list[str] = []
    for arg in args:
        key, sep, value = arg.partition("=")
        if sep and key in LOGGING_OPTIONS:
            options[LOGGING_OPTIONS[key]] = value
        else:
            rest.append(arg)
    return options, rest


def main(argv: list[str] | None = None) -> int:
    """CLI 主入口，返回进程退出码"""
    options, args = _split_logging_options(sys.argv[1:] if argv is None else argv)
    if not args:
        _print_usage()
        return 1

    command = args[0]
    try:
        setup_logging(**options)
    except ValueError as e:
        print(f"日志参数无效: {e}")
        return 1

    if command == "rebuild-projections":
        asyncio.run(rebuild_projections())
    elif command == "list-requirements":
        asyncio.run(list_requirements())
    else:
        print(f"未知命令: {command}")
        print(f"可用命令: {', '.join(COMMANDS)}")
        return 1
    return 0


async def rebuild_projections() -> None:
    """执行 Projection 重建"""
    from .projection import rebuild_all
    from .store import create_store_group

    data_dir = get_data_dir()
    print(f"数据目录: {data_dir}")
    print("开始重建 Projection...")

    store_group = create_store_group(data_dir)
    count = await rebuild_all(store_group.task_store)
    print(f"重建完成，共 {count} 个需求")


async def list_requirements() -> None:
    """打印需求列表与统计"""
    from .projection import compute_requirement_stats
    from .store import create_store_group

    store_group = create_store_group(get_data_dir())
    stats = await compute_requirement_stats(store_group.task_store)

    if not stats.requirements:
        print("暂无需求")
        return

    for info in stats.requirements:
        print(
            f"{info.name}: 共 {info.task_count} 个任务，"
            f"已完成 {info.completed_count}，进行中 {info.in_progress_count}，"
            f"待处理 {info.pending_count}"
        )
    print(
        f"合计 {stats.total_requirements} 个需求，"
        f"{stats.total_tasks} 个任务，已完成 {stats.total_completed}"
    )


if __name__ == "__main__":
    sys.exit(main())
