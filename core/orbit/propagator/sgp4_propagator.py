"""
SGP4轨道传播器

基于sgp4库实现高精度的卫星轨道传播
"""

import logging
import math
from typing import List, Optional, Tuple

from sgp4.api import Satrec

from core.orbit.epoch import epoch_to_julian_date, epoch_add_seconds, epoch_diff_seconds
from .base import Propagator, StateVector

logger = logging.getLogger(__name__)


class SGP4Propagator(Propagator):
    """
    SGP4轨道传播器

    使用两行轨道根数(TLE)进行高精度轨道传播。
    内部模型失效（轨道衰减、非物理根数）时返回None而不抛异常。
    """

    def __init__(self, satrec: Satrec, satellite_id: str = ""):
        """
        初始化传播器

        Args:
            satrec: SGP4卫星记录
            satellite_id: 卫星标识
        """
        self.satrec = satrec
        self.satellite_id = satellite_id

    @classmethod
    def from_tle(cls, line1: str, line2: str, satellite_id: str = "") -> 'SGP4Propagator':
        """从TLE创建传播器"""
        satrec = Satrec.twoline2rv(line1, line2)
        return cls(satrec, satellite_id)

    @classmethod
    def from_object(cls, orbital_object) -> Optional['SGP4Propagator']:
        """从轨道目标模型创建传播器，无SGP4句柄时返回None"""
        if orbital_object.satrec is not None:
            return cls(orbital_object.satrec, orbital_object.catalog_id)
        if orbital_object.tle_line1 and orbital_object.tle_line2:
            return cls.from_tle(orbital_object.tle_line1, orbital_object.tle_line2,
                                orbital_object.catalog_id)
        return None

    def propagate(self, epoch: float) -> Optional[StateVector]:
        """
        传播到指定纪元

        Args:
            epoch: 目标纪元

        Returns:
            StateVector（TEME，千米、km/s），失败返回None
        """
        jd, fr = _julian_date_pair(epoch)
        error, position, velocity = self.satrec.sgp4(jd, fr)

        if error != 0:
            logger.debug(f"SGP4 error code {error} for {self.satellite_id} at epoch {epoch:.6f}")
            return None

        if not all(math.isfinite(c) for c in position) or not all(math.isfinite(c) for c in velocity):
            logger.debug(f"SGP4 returned non-finite state for {self.satellite_id}")
            return None

        return StateVector(position=tuple(position), velocity=tuple(velocity))

    def propagate_range(self, start_epoch: float, end_epoch: float,
                        step_seconds: float = 60.0) -> List[Tuple[float, StateVector]]:
        """
        传播时间序列

        Args:
            start_epoch: 开始纪元
            end_epoch: 结束纪元
            step_seconds: 时间步长（秒）

        Returns:
            List[(epoch, StateVector)]: 状态序列（跳过传播失败的点）
        """
        states = []
        total = epoch_diff_seconds(end_epoch, start_epoch)
        # 容忍纪元舍入误差，终点恰好落在步长上时包含终点
        steps = int(math.floor(total / step_seconds + 1e-6))

        for i in range(steps + 1):
            epoch = epoch_add_seconds(start_epoch, i * step_seconds)
            state = self.propagate(epoch)
            if state is not None:
                states.append((epoch, state))

        return states


def _julian_date_pair(epoch: float) -> Tuple[float, float]:
    """将纪元拆分为(整数儒略日, 日内小数)以保留精度"""
    jd = epoch_to_julian_date(epoch)
    whole = math.floor(jd - 0.5) + 0.5
    return whole, jd - whole
