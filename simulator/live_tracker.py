"""
实时跟踪

组合时间系统、位置跟踪器与轨道形状缓存：每帧推进时间并刷新位置，
轨道折线按形状缓存自身的失效策略刷新。
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from core.models.orbital_object import OrbitalObject
from core.orbit.apsis import ApsisInfo, compute_apsis
from core.orbit.epoch import epoch_to_gmst_rad
from core.orbit.visibility.geometry import GroundPoint, footprint_half_angle, subsatellite_point
from .orbit_shape_cache import OrbitShapeCache, ShapeCacheConfig
from .position_tracker import PositionTracker
from .time_system import TimeSystem

logger = logging.getLogger(__name__)


@dataclass
class FrameResult:
    """单帧更新结果"""
    epoch: float
    sim_seconds: float
    failures: int
    orbits_changed: bool


@dataclass
class SelectionInfo:
    """选中目标的附加几何"""
    catalog_id: str
    ground_point: GroundPoint
    footprint_half_angle_deg: Optional[float]
    apsis: Optional[ApsisInfo]


class LiveTracker:
    """
    实时跟踪器

    Attributes:
        time_system: 仿真时钟
        tracker: 位置跟踪器
        shape_cache: 轨道形状缓存
    """

    def __init__(self, objects: Sequence[OrbitalObject], start_epoch: Optional[float] = None,
                 strategy: str = "sgp4", shape_config: Optional[ShapeCacheConfig] = None,
                 j2_enabled: bool = True, max_batch: int = 1):
        self.time_system = TimeSystem(start_epoch)
        self.objects = list(objects)
        self.tracker = PositionTracker(self.objects, strategy=strategy,
                                       j2_enabled=j2_enabled, max_batch=max_batch)
        self.shape_cache = OrbitShapeCache(shape_config, j2_enabled=j2_enabled)
        self.shape_cache.precompute(self.objects, self.time_system.current_epoch)
        self.tracker.update(self.time_system.current_epoch)

    def set_objects(self, objects: Sequence[OrbitalObject]) -> None:
        """替换目标群，形状缓存在下一帧整体重建"""
        self.objects = list(objects)
        self.tracker.set_objects(self.objects)
        logger.info(f"Tracking {len(self.objects)} objects")

    def step(self, dt_wall: float, wall_time: Optional[float] = None) -> FrameResult:
        """
        推进一帧

        Args:
            dt_wall: 墙钟增量（秒）
            wall_time: 当前墙钟（秒），None时由形状缓存自行取时

        Returns:
            FrameResult
        """
        sim_seconds = self.time_system.update(dt_wall)
        epoch = self.time_system.current_epoch
        failures = self.tracker.update(epoch, sim_dt_per_frame=sim_seconds)
        orbits_changed = self.shape_cache.update(self.objects, epoch, wall_time)
        return FrameResult(epoch=epoch, sim_seconds=sim_seconds,
                           failures=failures, orbits_changed=orbits_changed)

    def selection_info(self, catalog_id: str) -> Optional[SelectionInfo]:
        """
        选中目标的星下点、覆盖区半角与下一次近/远地点

        Returns:
            SelectionInfo，目标不存在或本帧位置无效时返回None
        """
        for index, obj in enumerate(self.tracker.objects):
            if obj.catalog_id != catalog_id:
                continue
            if not self.tracker.valid[index]:
                return None
            epoch = self.time_system.current_epoch
            position = tuple(self.tracker.positions[index])
            half_angle = footprint_half_angle(position)
            return SelectionInfo(
                catalog_id=catalog_id,
                ground_point=subsatellite_point(*position, epoch_to_gmst_rad(epoch)),
                footprint_half_angle_deg=None if half_angle is None else math.degrees(half_angle),
                apsis=compute_apsis(obj, self.tracker.propagator_at(index), epoch),
            )
        return None
