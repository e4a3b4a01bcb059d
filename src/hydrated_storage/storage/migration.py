"""
旧版JSON缓存迁移 for Hydrated Storage.

旧版本把所有状态保存在存储目录下的一个JSON文件中：
- 外层是一个JSON对象，键为StorageKey
- 每个值本身又是一个JSON字符串（双重编码），需要再解码一次

迁移规则：
- 只在磁盘路径上执行，Web路径和降级路径不会调用
- 按键逐个迁移，单个键失败时跳过该键，不影响其他键
- 外层解析失败时视为迁移了0个键
- 无论成功多少个键，尝试之后都会删除旧文件，下次启动不会重试
  （未迁移的键会丢失，这是有意的一次性迁移策略）
"""

import asyncio
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

from hydrated_storage.errors import MigrationError
from hydrated_storage.models.settings import LEGACY_FILENAME
from hydrated_storage.storage.box import Box

logger = logging.getLogger(__name__)


@dataclass
class MigrationReport:
    """迁移结果数据类"""
    file_found: bool = False
    parse_failed: bool = False
    migrated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


def legacy_file_path(directory: Union[str, "os.PathLike[str]"], legacy_filename: str = LEGACY_FILENAME) -> Path:
    """
    获取旧版缓存文件的完整路径

    Args:
        directory: 存储目录
        legacy_filename: 旧版缓存文件名

    Returns:
        Path: 旧版缓存文件路径
    """
    return Path(directory) / legacy_filename


def _read_legacy_cache(file_path: Path) -> Dict[str, Any]:
    """读取并解析外层JSON对象"""
    with open(file_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"旧版缓存顶层不是JSON对象: {type(data).__name__}")
    return data


def _decode_entry(raw: Any) -> Any:
    """解码单个双重编码的值"""
    if not isinstance(raw, str):
        raise TypeError(f"旧版缓存的值必须是字符串，实际为 {type(raw).__name__}")
    return json.loads(raw)


async def migrate(
    directory: Union[str, "os.PathLike[str]"],
    box: Box,
    legacy_filename: str = LEGACY_FILENAME,
) -> MigrationReport:
    """
    把旧版JSON缓存导入box，然后删除旧文件

    Args:
        directory: 存储目录
        box: 已打开的目标box
        legacy_filename: 旧版缓存文件名

    Returns:
        MigrationReport: 迁移结果

    Raises:
        MigrationError: 旧文件删除失败
    """
    file_path = legacy_file_path(directory, legacy_filename)
    report = MigrationReport()
    loop = asyncio.get_event_loop()

    if not await loop.run_in_executor(None, file_path.exists):
        return report

    report.file_found = True
    logger.info(f"发现旧版缓存文件，开始迁移: {file_path}")

    cache: Dict[str, Any] = {}
    try:
        cache = await loop.run_in_executor(None, _read_legacy_cache, file_path)
    except Exception as e:
        report.parse_failed = True
        logger.warning(f"旧版缓存文件解析失败，跳过全部键 {file_path}: {e}")

    for key, raw in cache.items():
        try:
            await box.put(key, _decode_entry(raw))
        except Exception as e:
            report.skipped.append(key)
            logger.debug(f"跳过无法迁移的键 {key}: {e}")
            continue
        report.migrated.append(key)

    try:
        await loop.run_in_executor(None, file_path.unlink)
    except FileNotFoundError:
        pass
    except OSError as e:
        raise MigrationError(f"无法删除旧版缓存文件 {file_path}: {e}") from e

    logger.info(
        f"旧版缓存迁移完成: 成功 {len(report.migrated)} 个, 跳过 {len(report.skipped)} 个"
    )
    return report
