"""JSON读写工具

配置文件读取与预报结果导出共用。
"""
import dataclasses
import enum
import json
from pathlib import Path
from typing import Any, Union

import numpy as np


def load_json(file_path: Union[str, Path]) -> Any:
    """
    Load JSON from a file.

    Raises:
        FileNotFoundError: If file does not exist
        json.JSONDecodeError: If JSON is malformed or the file is empty
    """
    path = Path(file_path)

    with open(path, "r", encoding="utf-8") as f:
        content = f.read()
        if not content.strip():
            raise json.JSONDecodeError("File is empty", content, 0)
        return json.loads(content)


def _default(obj: Any) -> Any:
    """dataclass / Enum / numpy 值的JSON编码"""
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def dumps(data: Any, indent: int = 2) -> str:
    """序列化为JSON字符串"""
    return json.dumps(data, indent=indent, ensure_ascii=False, default=_default)


def save_json(data: Any, file_path: Union[str, Path], indent: int = 2) -> None:
    """
    Save data to a JSON file, creating parent directories.

    Raises:
        TypeError: If data cannot be serialized to JSON
    """
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    content = dumps(data, indent=indent)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
