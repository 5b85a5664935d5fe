"""
轨道形状缓存

为可视化预计算整个目标群的轨道椭圆折线，避免每帧重复三角函数计算：
- 形状（近焦点坐标点）只取决于半长轴和偏心率，不受长期漂移影响
- 指向（3-1-3旋转矩阵）随J2长期漂移变化

两级失效策略，两套独立计时器：
- 指向刷新：墙钟节流 + 仿真时间间隔同时满足才刷新（分钟级漂移）
- 形状检查：更粗的仿真时间间隔，半长轴衰减超过阈值才重建（小时级漂移）
"""

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from core.models.orbital_object import OrbitalObject
from core.orbit.epoch import epoch_diff_seconds
from core.orbit.utils import rotation_matrix_313

logger = logging.getLogger(__name__)


@dataclass
class ShapeCacheConfig:
    """
    形状缓存参数

    Attributes:
        segments_normal: 常规分段数
        segments_large: 大规模目标群分段数
        large_population: 超过该数量视为大规模
        min_wall_interval_s: 指向刷新的最小墙钟间隔（秒）
        orientation_interval_s: 指向刷新的仿真时间间隔（秒）
        shape_check_interval_s: 形状检查的仿真时间间隔（秒）
        shape_drift_threshold_km: 触发形状重建的半长轴漂移（千米）
    """
    segments_normal: int = 90
    segments_large: int = 30
    large_population: int = 500
    min_wall_interval_s: float = 1.0
    orientation_interval_s: float = 900.0
    shape_check_interval_s: float = 21600.0
    shape_drift_threshold_km: float = 1.0


@dataclass
class OrbitShapeEntry:
    """
    单个目标的形状缓存

    Attributes:
        catalog_id: 编目号
        perifocal: 近焦点坐标点 (segments+1, 2)，真近点角均匀分布
        semi_major_axis_used: 构建时使用的半长轴（千米）
        eccentricity: 构建时使用的偏心率
        orientation_epoch: 最近一次指向刷新的纪元
        valid: 根数是否物理可行
    """
    catalog_id: str
    perifocal: np.ndarray = field(repr=False)
    semi_major_axis_used: float
    eccentricity: float
    orientation_epoch: float
    valid: bool = True


def build_perifocal_points(semi_major_axis: float, eccentricity: float,
                           segments: int) -> np.ndarray:
    """
    近焦点坐标系中的椭圆点

    Returns:
        np.ndarray: (segments+1, 2)，首尾点重合
    """
    nu = np.linspace(0.0, 2.0 * math.pi, segments + 1)
    p = semi_major_axis * (1.0 - eccentricity * eccentricity)
    r = p / (1.0 + eccentricity * np.cos(nu))
    return np.column_stack((r * np.cos(nu), r * np.sin(nu)))


class OrbitShapeCache:
    """
    轨道形状缓存

    线段缓冲区形状为 (N, segments, 2, 3)，float32，惯性系千米。
    只由渲染/更新线程原地修改，过境预报不访问。
    """

    def __init__(self, config: Optional[ShapeCacheConfig] = None, j2_enabled: bool = True,
                 clock: Callable[[], float] = time.monotonic):
        """
        Args:
            config: 缓存参数
            j2_enabled: 指向是否计入J2长期漂移
            clock: 墙钟函数（秒）
        """
        self.config = config or ShapeCacheConfig()
        self._j2_enabled = j2_enabled
        self._clock = clock

        # 与线段缓冲区逐行对齐（编目号可能重复）
        self._entries: List[OrbitShapeEntry] = []
        self._order: Tuple[str, ...] = ()
        self._buffer = np.zeros((0, self.config.segments_normal, 2, 3), dtype=np.float32)
        self._segments = self.config.segments_normal

        self._last_orientation_epoch: Optional[float] = None
        self._last_orientation_wall: Optional[float] = None
        self._last_shape_check_epoch: Optional[float] = None
        self._force_orientation = False

        # 统计信息
        self._precompute_count = 0
        self._orientation_refreshes = 0
        self._shape_checks = 0
        self._shape_rebuilds = 0

    @property
    def segments(self) -> int:
        return self._segments

    @property
    def j2_enabled(self) -> bool:
        return self._j2_enabled

    @j2_enabled.setter
    def j2_enabled(self, enabled: bool):
        if enabled != self._j2_enabled:
            self._j2_enabled = enabled
            self._force_orientation = True

    def segments_for(self, population: int) -> int:
        """目标群规模对应的分段数"""
        if population > self.config.large_population:
            return self.config.segments_large
        return self.config.segments_normal

    def precompute(self, objects: Sequence[OrbitalObject], epoch: float,
                   wall_time: Optional[float] = None) -> None:
        """
        重建全部形状与指向（目标群加载或变化时调用）

        Args:
            objects: 目标群
            epoch: 当前纪元
            wall_time: 当前墙钟（秒），None时取clock()
        """
        self._segments = self.segments_for(len(objects))
        self._order = tuple(obj.catalog_id for obj in objects)
        self._entries = []
        self._buffer = np.zeros((len(objects), self._segments, 2, 3), dtype=np.float32)

        for index, obj in enumerate(objects):
            entry = self._build_entry(obj, epoch)
            self._entries.append(entry)
            self._orient(index, entry, obj, epoch)

        self._last_orientation_epoch = epoch
        self._last_orientation_wall = self._clock() if wall_time is None else wall_time
        self._last_shape_check_epoch = epoch
        self._force_orientation = False
        self._precompute_count += 1

        logger.info(f"Precomputed {len(objects)} orbit shapes with {self._segments} segments")

    def _build_entry(self, obj: OrbitalObject, epoch: float) -> OrbitShapeEntry:
        a = obj.semi_major_axis_at(epoch) if obj.is_physical() else 0.0
        valid = a > 0 and obj.is_physical()
        if valid:
            perifocal = build_perifocal_points(a, obj.eccentricity, self._segments)
        else:
            logger.debug(f"Orbit shape for {obj.name} unavailable (non-physical elements)")
            perifocal = np.zeros((self._segments + 1, 2))
        return OrbitShapeEntry(
            catalog_id=obj.catalog_id,
            perifocal=perifocal,
            semi_major_axis_used=a,
            eccentricity=obj.eccentricity,
            orientation_epoch=epoch,
            valid=valid,
        )

    def _orient(self, index: int, entry: OrbitShapeEntry, obj: OrbitalObject, epoch: float) -> None:
        """将近焦点点旋转到惯性系写入线段缓冲区"""
        if not entry.valid:
            self._buffer[index] = 0.0
            entry.orientation_epoch = epoch
            return

        if self._j2_enabled:
            raan, arg_perigee = obj.corrected_elements(epoch)
        else:
            raan, arg_perigee = obj.raan, obj.arg_perigee

        matrix = np.asarray(rotation_matrix_313(raan, obj.inclination, arg_perigee))
        points = entry.perifocal @ matrix[:, :2].T
        self._buffer[index, :, 0, :] = points[:-1]
        self._buffer[index, :, 1, :] = points[1:]
        entry.orientation_epoch = epoch

    def _population_changed(self, objects: Sequence[OrbitalObject]) -> bool:
        if len(objects) != len(self._order):
            return True
        return any(obj.catalog_id != cid for obj, cid in zip(objects, self._order))

    def update(self, objects: Sequence[OrbitalObject], epoch: float,
               wall_time: Optional[float] = None) -> bool:
        """
        按两级失效策略刷新

        Args:
            objects: 目标群（顺序与precompute一致）
            epoch: 当前仿真纪元
            wall_time: 当前墙钟（秒），None时取clock()

        Returns:
            bool: 线段缓冲区是否被修改
        """
        if self._last_orientation_epoch is None or self._population_changed(objects):
            self.precompute(objects, epoch, wall_time)
            return True

        wall = self._clock() if wall_time is None else wall_time
        changed = False

        # 指向刷新：墙钟节流 且 仿真时间间隔
        wall_elapsed = wall - self._last_orientation_wall
        sim_elapsed = abs(epoch_diff_seconds(epoch, self._last_orientation_epoch))
        if self._force_orientation or (
            wall_elapsed >= self.config.min_wall_interval_s
            and sim_elapsed >= self.config.orientation_interval_s
        ):
            self.refresh_orientation(objects, epoch, wall)
            changed = True

        # 形状检查：独立的仿真时间间隔
        if abs(epoch_diff_seconds(epoch, self._last_shape_check_epoch)) >= self.config.shape_check_interval_s:
            if self.check_shapes(objects, epoch) > 0:
                changed = True

        return changed

    def refresh_orientation(self, objects: Sequence[OrbitalObject], epoch: float,
                            wall_time: Optional[float] = None) -> None:
        """只刷新指向（形状不变）"""
        for index, obj in enumerate(objects):
            self._orient(index, self._entries[index], obj, epoch)
        self._last_orientation_epoch = epoch
        self._last_orientation_wall = self._clock() if wall_time is None else wall_time
        self._force_orientation = False
        self._orientation_refreshes += 1
        logger.debug(f"Refreshed orbit orientation for {len(objects)} objects")

    def check_shapes(self, objects: Sequence[OrbitalObject], epoch: float) -> int:
        """
        检查半长轴衰减，超过阈值的目标重建形状

        Returns:
            int: 重建数量
        """
        rebuilt = 0
        threshold = self.config.shape_drift_threshold_km
        for index, obj in enumerate(objects):
            entry = self._entries[index]
            if not entry.valid:
                continue
            a_now = obj.semi_major_axis_at(epoch)
            if abs(a_now - entry.semi_major_axis_used) > threshold:
                new_entry = self._build_entry(obj, epoch)
                self._entries[index] = new_entry
                self._orient(index, new_entry, obj, epoch)
                rebuilt += 1

        self._last_shape_check_epoch = epoch
        self._shape_checks += 1
        self._shape_rebuilds += rebuilt
        if rebuilt:
            logger.info(f"Rebuilt {rebuilt} orbit shapes after semi-major axis decay")
        return rebuilt

    def segment_buffer(self) -> np.ndarray:
        """线段缓冲区 (N, segments, 2, 3)"""
        return self._buffer

    def entry(self, catalog_id: str) -> Optional[OrbitShapeEntry]:
        """按编目号查询（重复时返回第一个）"""
        for entry in self._entries:
            if entry.catalog_id == catalog_id:
                return entry
        return None

    def entries(self) -> List[OrbitShapeEntry]:
        return list(self._entries)

    def statistics(self) -> Dict[str, float]:
        """缓存统计"""
        return {
            'objects': len(self._order),
            'segments': self._segments,
            'buffer_bytes': int(self._buffer.nbytes),
            'precomputes': self._precompute_count,
            'orientation_refreshes': self._orientation_refreshes,
            'shape_checks': self._shape_checks,
            'shape_rebuilds': self._shape_rebuilds,
        }

    def clear(self) -> None:
        """清空缓存"""
        self._entries.clear()
        self._order = ()
        self._buffer = np.zeros((0, self._segments, 2, 3), dtype=np.float32)
        self._last_orientation_epoch = None
        self._last_orientation_wall = None
        self._last_shape_check_epoch = None
