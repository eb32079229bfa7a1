"""需求命名空间 -- (数据目录, 需求名称) -> 磁盘位置

布局：
    <root>/requirement.json          需求统计 projection
    <root>/archive/                  历史快照
    <root>/<requirement>/tasks.json  需求任务列表
"""

import asyncio
import re
from dataclasses import dataclass
from pathlib import Path

import structlog

from ..config import (
    ARCHIVE_DIR_NAME,
    REQUIREMENT_INFO_FILE_NAME,
    TASKS_FILE_NAME,
)
from ..exceptions import InvalidRequirementNameError
from .json_store import JsonDocumentStore

log = structlog.get_logger()

# 系统保留的目录/文件名（大小写不敏感）
RESERVED_NAMES: frozenset[str] = frozenset(
    name.lower()
    for name in (
        ARCHIVE_DIR_NAME,
        REQUIREMENT_INFO_FILE_NAME,
        "memory",
        "backup",
        "temp",
        "cache",
        "logs",
        ".git",
        ".svn",
        ".hg",
        "node_modules",
        ".DS_Store",
        "Thumbs.db",
    )
)

HIDDEN_MARKER = "."

_ILLEGAL_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


@dataclass(frozen=True, slots=True)
class NameValidation:
    """需求名称校验结果"""

    is_valid: bool
    message: str | None = None
    suggestion: str | None = None


def is_reserved_name(name: str) -> bool:
    """是否与系统保留名称冲突（含隐藏文件前缀）"""
    return name.lower() in RESERVED_NAMES or name.startswith(HIDDEN_MARKER)


def validate_requirement_name(name: str) -> NameValidation:
    """校验需求名称"""
    if not name or not name.strip():
        return NameValidation(False, "需求名称不能为空")

    if is_reserved_name(name):
        return NameValidation(
            False,
            f'需求名称 "{name}" 与系统保留名称冲突',
            f'建议使用其他名称，如 "{name.lstrip(HIDDEN_MARKER)}_requirement"',
        )

    if _ILLEGAL_CHARS.search(name):
        return NameValidation(
            False,
            "需求名称包含非法字符",
            "请使用字母、数字、下划线和连字符",
        )

    return NameValidation(True)


class RequirementNamespace:
    """数据目录下的需求命名空间"""

    def __init__(self, data_dir: str | Path, document_store: JsonDocumentStore) -> None:
        self.root = Path(data_dir).resolve()
        self._documents = document_store

    @property
    def archive_dir(self) -> Path:
        return self.root / ARCHIVE_DIR_NAME

    @property
    def requirement_info_file(self) -> Path:
        return self.root / REQUIREMENT_INFO_FILE_NAME

    def requirement_dir(self, requirement_name: str) -> Path:
        return self.root / requirement_name

    def tasks_file(self, requirement_name: str) -> Path:
        return self.requirement_dir(requirement_name) / TASKS_FILE_NAME

    def validate(self, requirement_name: str) -> None:
        """校验需求名称

        Raises:
            InvalidRequirementNameError: 名称不合法
        """
        result = validate_requirement_name(requirement_name)
        if not result.is_valid:
            raise InvalidRequirementNameError(
                requirement_name,
                result.message or "需求名称不合法",
                result.suggestion,
            )

    async def ensure_requirement(self, requirement_name: str) -> Path:
        """校验名称并确保需求目录与空任务列表存在

        Returns:
            tasks.json 路径
        """
        self.validate(requirement_name)
        tasks_file = self.tasks_file(requirement_name)
        created = await self._documents.ensure_json(tasks_file, {"tasks": []})
        if created:
            log.info("requirement_initialized", requirement=requirement_name)
        return tasks_file

    async def list_requirements(self) -> list[str]:
        """扫描根目录下的需求目录，排除名称不合法（含保留与隐藏）的条目"""
        if not self.root.is_dir():
            return []

        def _scan() -> list[str]:
            return sorted(
                entry.name
                for entry in self.root.iterdir()
                if entry.is_dir() and validate_requirement_name(entry.name).is_valid
            )

        return await asyncio.to_thread(_scan)
