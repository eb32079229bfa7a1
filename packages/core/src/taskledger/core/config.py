"""配置常量模块 -- 可通过环境变量覆盖

包含数据目录、归档扫描上限、分页大小、批量任务校验阈值等可配置常量。
"""

import os
from pathlib import Path


def get_data_dir() -> Path:
    """获取任务数据根目录"""
    return Path(os.environ.get("TASKLEDGER_DATA_DIR", "data"))


def get_archive_scan_limit() -> int:
    """获取历史搜索时最多读取的归档文件数"""
    return int(os.environ.get("TASKLEDGER_ARCHIVE_SCAN_LIMIT", "10"))


# 数据目录内的固定文件/目录名
TASKS_FILE_NAME: str = "tasks.json"
REQUIREMENT_INFO_FILE_NAME: str = "requirement.json"
ARCHIVE_DIR_NAME: str = "archive"
ARCHIVE_FILE_PREFIX: str = "tasks_memory_"

# 查询分页
DEFAULT_PAGE_SIZE: int = 5
MAX_PAGE_SIZE: int = 20

# 批量任务校验
TASK_NAME_MAX_LENGTH: int = 100
TASK_DESCRIPTION_MIN_LENGTH: int = 10

# 检验评分达到此值时任务自动完成
VERIFY_PASS_SCORE: int = 80
