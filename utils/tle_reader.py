"""
TLE文本读取

支持三行格式（名称 + 两行根数）与两行格式（无名称，以编目号命名）。
格式错误的条目在此处被拒绝并记录日志，不会进入预报引擎。
"""

import logging
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from core.models.orbital_object import OrbitalObject

logger = logging.getLogger(__name__)


def iter_tle_records(text: str) -> Iterator[Tuple[str, str, str]]:
    """
    按记录拆分TLE文本

    Yields:
        (name, line1, line2): 两行格式时name为空字符串
    """
    lines = [line.rstrip() for line in text.splitlines() if line.strip()]
    name = ""
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("1 ") and i + 1 < len(lines) and lines[i + 1].startswith("2 "):
            yield name, line, lines[i + 1]
            name = ""
            i += 2
            continue
        if line.startswith(("1 ", "2 ")):
            logger.warning(f"Skipping orphan TLE line: {line[:20]}...")
            name = ""
        else:
            name = line[2:].strip() if line.startswith("0 ") else line.strip()
        i += 1


def parse_tle_text(text: str, std_mags: Optional[Dict[str, float]] = None) -> List[OrbitalObject]:
    """
    解析TLE文本为轨道目标列表

    Args:
        text: TLE文本
        std_mags: 编目号 -> 标准星等

    Returns:
        List[OrbitalObject]: 有效目标（按文本顺序）
    """
    std_mags = std_mags or {}
    objects = []
    rejected = 0
    for name, line1, line2 in iter_tle_records(text):
        catalog_id = line1[2:7].strip()
        obj = OrbitalObject.from_tle(name or catalog_id, line1, line2,
                                     std_mag=std_mags.get(catalog_id))
        if obj is None:
            rejected += 1
            continue
        objects.append(obj)

    if rejected:
        logger.warning(f"Rejected {rejected} malformed TLE records")
    logger.info(f"Parsed {len(objects)} orbital objects")
    return objects


def load_tle_file(path: Union[str, Path],
                  std_mags: Optional[Dict[str, float]] = None) -> List[OrbitalObject]:
    """
    读取TLE文件

    Raises:
        FileNotFoundError: 文件不存在
    """
    with open(path, "r", encoding="utf-8") as f:
        return parse_tle_text(f.read(), std_mags)
