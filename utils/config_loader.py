"""
配置加载器

功能：
- 加载JSON/YAML配置文件
- 环境变量覆盖（前缀 PASSPREDICT_，双下划线分隔层级）
- schema验证
- 组装为EngineConfig（预报引擎参数 + 形状缓存参数 + 日志参数）
"""

import dataclasses
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from core.orbit.visibility.pass_predictor import PredictorConfig
from simulator.orbit_shape_cache import ShapeCacheConfig
from .json_utils import load_json

ENV_PREFIX = "PASSPREDICT_"
ENV_SEPARATOR = "__"

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "default.yaml"


class ConfigLoadError(Exception):
    """配置加载错误"""
    pass


class ConfigValidationError(Exception):
    """配置验证错误"""
    pass


def _section_schema(config_cls) -> Dict[str, Any]:
    """由配置dataclass字段类型生成schema"""
    type_names = {int: "integer", float: "number", str: "string", bool: "boolean"}
    properties = {}
    for f in dataclasses.fields(config_cls):
        type_name = type_names.get(f.type)
        if type_name:
            properties[f.name] = {"type": type_name}
    return {"type": "object", "properties": properties}


ENGINE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "propagator": {"type": "string"},
        "predictor": _section_schema(PredictorConfig),
        "shape_cache": _section_schema(ShapeCacheConfig),
        "logging": {
            "type": "object",
            "properties": {
                "level": {"type": "string"},
                "format": {"type": "string"},
                "file": {"type": "string"},
            },
        },
    },
}

PROPAGATOR_STRATEGIES = ("sgp4", "analytic")


@dataclass
class LoggingConfig:
    """日志参数"""
    level: str = "INFO"
    format: str = "text"
    file: Optional[str] = None


@dataclass
class EngineConfig:
    """
    引擎总配置

    Attributes:
        propagator: 传播策略（"sgp4" / "analytic"）
        predictor: 过境预报引擎参数
        shape_cache: 轨道形状缓存参数
        logging: 日志参数
    """
    propagator: str = "sgp4"
    predictor: PredictorConfig = field(default_factory=PredictorConfig)
    shape_cache: ShapeCacheConfig = field(default_factory=ShapeCacheConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    SECTIONS = {
        "predictor": PredictorConfig,
        "shape_cache": ShapeCacheConfig,
        "logging": LoggingConfig,
    }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'EngineConfig':
        """
        从配置字典构造

        Raises:
            ConfigValidationError: 未知字段、类型错误或取值无效
        """
        data = data or {}
        valid, errors = ConfigLoader().validate(data, ENGINE_SCHEMA)
        if not valid:
            raise ConfigValidationError("; ".join(errors))

        unknown = set(data) - set(cls.SECTIONS) - {"propagator"}
        if unknown:
            raise ConfigValidationError(f"Unknown config sections: {sorted(unknown)}")

        kwargs: Dict[str, Any] = {}
        if "propagator" in data:
            if data["propagator"] not in PROPAGATOR_STRATEGIES:
                raise ConfigValidationError(
                    f"Unknown propagator '{data['propagator']}', expected one of {PROPAGATOR_STRATEGIES}"
                )
            kwargs["propagator"] = data["propagator"]

        for name, section_cls in cls.SECTIONS.items():
            section = data.get(name) or {}
            known = {f.name for f in dataclasses.fields(section_cls)}
            unknown_keys = set(section) - known
            if unknown_keys:
                raise ConfigValidationError(f"Unknown keys in '{name}': {sorted(unknown_keys)}")
            kwargs[name] = section_cls(**section)

        config = cls(**kwargs)
        config._check_ranges()
        return config

    def _check_ranges(self):
        p = self.predictor
        if p.bisection_iterations < 1:
            raise ConfigValidationError("predictor.bisection_iterations must be >= 1")
        if p.max_backtrack_steps < 0:
            raise ConfigValidationError("predictor.max_backtrack_steps must be >= 0")
        if p.fine_step_seconds <= 0:
            raise ConfigValidationError("predictor.fine_step_seconds must be positive")
        if p.sky_path_points < 0:
            raise ConfigValidationError("predictor.sky_path_points must be >= 0")
        s = self.shape_cache
        if s.segments_normal < 3 or s.segments_large < 3:
            raise ConfigValidationError("shape_cache segments must be >= 3")
        if s.shape_drift_threshold_km < 0:
            raise ConfigValidationError("shape_cache.shape_drift_threshold_km must be >= 0")

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


class ConfigLoader:
    """
    配置加载器

    支持JSON/YAML配置文件与环境变量覆盖
    """

    def __init__(self):
        self._loaded_config: Optional[Dict[str, Any]] = None
        self._file_path: Optional[str] = None

    def load(self, path: str, format: str = "auto") -> Dict[str, Any]:
        """
        加载配置文件

        Args:
            path: 配置文件路径
            format: 文件格式 ("auto", "json", "yaml")

        Returns:
            Dict[str, Any]: 配置字典（空文件返回空字典）

        Raises:
            ConfigLoadError: 文件不存在、格式不支持或解析失败
        """
        if not os.path.exists(path):
            raise ConfigLoadError(f"Config file not found: {path}")

        if format == "auto":
            format = self._detect_format(path)

        if format == "json":
            config = self._load_json(path)
        elif format == "yaml":
            config = self._load_yaml(path)
        else:
            raise ConfigLoadError(f"Unsupported config format: {format}")

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ConfigLoadError(f"Config root must be a mapping: {path}")

        self._loaded_config = config
        self._file_path = path
        return config

    def _detect_format(self, path: str) -> str:
        ext = Path(path).suffix.lower()
        format_map = {
            ".json": "json",
            ".yaml": "yaml",
            ".yml": "yaml",
        }
        if ext in format_map:
            return format_map[ext]
        raise ConfigLoadError(f"Cannot detect config format from extension: {ext}")

    def _load_json(self, path: str) -> Dict[str, Any]:
        try:
            return load_json(path)
        except json.JSONDecodeError as e:
            raise ConfigLoadError(f"JSON parse error: {e}")

    def _load_yaml(self, path: str) -> Dict[str, Any]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigLoadError(f"YAML parse error: {e}")

    def load_from_env(self, prefix: str = ENV_PREFIX,
                      environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        从环境变量加载配置

        PASSPREDICT_PREDICTOR__FINE_STEP_SECONDS=5 -> {"predictor": {"fine_step_seconds": 5}}
        取值按YAML标量解析（数字、布尔、字符串）。

        Args:
            prefix: 环境变量前缀
            environ: 环境变量字典（默认os.environ）

        Returns:
            Dict[str, Any]: 嵌套配置字典
        """
        environ = os.environ if environ is None else environ
        result: Dict[str, Any] = {}
        prefix_lower = prefix.lower()

        for key, value in environ.items():
            key_lower = key.lower()
            if not key_lower.startswith(prefix_lower):
                continue
            path = key_lower[len(prefix_lower):].split(ENV_SEPARATOR)
            node = result
            for part in path[:-1]:
                node = node.setdefault(part, {})
            try:
                node[path[-1]] = yaml.safe_load(value)
            except yaml.YAMLError:
                node[path[-1]] = value

        return result

    def validate(self, config: Dict[str, Any], schema: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """
        验证配置

        Returns:
            Tuple[bool, List[str]]: (是否有效, 错误列表)
        """
        if not schema:
            return True, []
        return self._validate_property(config, schema, "root")

    def _validate_type(self, value: Any, expected_type: str, path: str) -> Tuple[bool, List[str]]:
        type_map = {
            "string": str,
            "integer": int,
            "number": (int, float),
            "boolean": bool,
            "object": dict,
        }
        if expected_type not in type_map:
            return True, []

        # bool是int的子类，数值字段不接受布尔
        if expected_type in ("integer", "number") and isinstance(value, bool):
            return False, [f"Field '{path}' type error: expected {expected_type}, got bool"]

        if not isinstance(value, type_map[expected_type]):
            actual_type = type(value).__name__
            return False, [f"Field '{path}' type error: expected {expected_type}, got {actual_type}"]
        return True, []

    def _validate_property(self, value: Any, schema: Dict[str, Any], path: str) -> Tuple[bool, List[str]]:
        errors = []

        if "type" in schema:
            type_valid, type_errors = self._validate_type(value, schema["type"], path)
            if not type_valid:
                return False, type_errors

        # 递归验证嵌套对象
        if isinstance(value, dict) and "properties" in schema:
            for prop, prop_schema in schema["properties"].items():
                if prop in value and value[prop] is not None:
                    child = prop if path == "root" else f"{path}.{prop}"
                    _, prop_errors = self._validate_property(value[prop], prop_schema, child)
                    errors.extend(prop_errors)

        return len(errors) == 0, errors

    def get_loaded_config(self) -> Optional[Dict[str, Any]]:
        return self._loaded_config

    def get_file_path(self) -> Optional[str]:
        return self._file_path


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_engine_config(path: Optional[str] = None, use_env: bool = True,
                       environ: Optional[Dict[str, str]] = None) -> EngineConfig:
    """
    加载引擎配置：默认配置文件 < 指定配置文件 < 环境变量

    Args:
        path: 配置文件路径
        use_env: 是否应用环境变量覆盖
        environ: 环境变量字典（默认os.environ）

    Raises:
        ConfigLoadError: 文件加载失败
        ConfigValidationError: 配置无效
    """
    loader = ConfigLoader()
    data: Dict[str, Any] = {}
    if DEFAULT_CONFIG_PATH.exists():
        data = loader.load(str(DEFAULT_CONFIG_PATH))
    if path:
        data = _deep_merge(data, loader.load(path))
    if use_env:
        data = _deep_merge(data, loader.load_from_env(ENV_PREFIX, environ))
    return EngineConfig.from_dict(data)
