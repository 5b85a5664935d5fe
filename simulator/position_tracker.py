"""
位置跟踪器

每帧为整个目标群求当前位置，是OrbitalObject.current_position的唯一写入者：
- 位置存放在 (N, 3) 的numpy数组中，并带有效性掩码
- 传播失败的目标本帧标记为无效（不渲染），不会中断整帧
- 可选分批：每帧只更新 1/N 的目标，保证仿真时间上的位置陈旧度约在1秒以内
"""

import logging
from typing import Iterable, List, Optional, Sequence, Set

import numpy as np

from core.models.orbital_object import OrbitalObject
from core.orbit.propagator import Propagator, create_propagator

logger = logging.getLogger(__name__)

# 分批更新允许的最大仿真时间陈旧度（秒）
MAX_STALENESS_S = 1.0


class PositionTracker:
    """
    目标群位置跟踪器

    Attributes:
        objects: 目标群
        positions: (N, 3) 惯性系位置（千米）
        valid: (N,) 本帧位置是否可用
    """

    def __init__(self, objects: Sequence[OrbitalObject], strategy: str = "sgp4",
                 j2_enabled: bool = True, max_batch: int = 1):
        """
        Args:
            objects: 目标群
            strategy: 传播策略
            j2_enabled: 解析模型是否启用J2漂移
            max_batch: 最大分批数（1为每帧全部更新）
        """
        self.strategy = strategy
        self.j2_enabled = j2_enabled
        self.max_batch = max(1, max_batch)
        self._frame = 0
        self.set_objects(objects)

    def set_objects(self, objects: Sequence[OrbitalObject]) -> None:
        """替换目标群（重建传播器与数组）"""
        self.objects: List[OrbitalObject] = list(objects)
        self._propagators: List[Propagator] = [
            create_propagator(obj, self.strategy, self.j2_enabled) for obj in self.objects
        ]
        self.positions = np.zeros((len(self.objects), 3), dtype=np.float64)
        self.valid = np.zeros(len(self.objects), dtype=bool)
        self._frame = 0

    def batch_count(self, sim_dt_per_frame: float) -> int:
        """
        每帧更新比例的分母

        仿真时间推进越慢，允许分越多批；推进越快，每帧全部更新。
        """
        if self.max_batch <= 1:
            return 1
        per_frame = max(abs(sim_dt_per_frame), 0.001)
        return max(1, min(self.max_batch, int(MAX_STALENESS_S / per_frame)))

    def update(self, epoch: float, sim_dt_per_frame: float = 0.0,
               always_update: Optional[Set[str]] = None) -> int:
        """
        更新当前位置

        Args:
            epoch: 当前纪元
            sim_dt_per_frame: 每帧仿真时间增量（秒），用于分批
            always_update: 每帧必须更新的编目号（如选中目标）

        Returns:
            int: 本帧传播失败的目标数
        """
        batches = self.batch_count(sim_dt_per_frame)
        batch = self._frame % batches
        self._frame += 1
        always_update = always_update or set()

        failures = 0
        for index, (obj, propagator) in enumerate(zip(self.objects, self._propagators)):
            if index % batches != batch and obj.catalog_id not in always_update:
                continue

            position = propagator.position(epoch)
            if position is None:
                self.valid[index] = False
                obj.current_position = None
                failures += 1
                continue

            self.positions[index] = position
            self.valid[index] = True
            obj.current_position = tuple(position)

        if failures:
            logger.debug(f"{failures} objects have no usable position at epoch {epoch:.6f}")
        return failures

    def position_of(self, catalog_id: str) -> Optional[tuple]:
        """按编目号查询当前位置（无效时返回None）"""
        for index, obj in enumerate(self.objects):
            if obj.catalog_id == catalog_id:
                return tuple(self.positions[index]) if self.valid[index] else None
        return None

    def propagator_at(self, index: int) -> Propagator:
        return self._propagators[index]

    def valid_positions(self) -> np.ndarray:
        """本帧可用的位置 (M, 3)"""
        return self.positions[self.valid]

    def iter_valid(self) -> Iterable[OrbitalObject]:
        return (obj for obj, ok in zip(self.objects, self.valid) if ok)
