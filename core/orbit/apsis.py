"""
近地点/远地点预报

由当前平近点角推算下一次经过近地点（M=0）与远地点（M=π）的纪元，
并用传播器求该时刻的位置。
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from core.models.orbital_object import OrbitalObject
from core.orbit.epoch import epoch_add_seconds
from core.orbit.propagator import Propagator
from core.orbit.utils import EARTH_RADIUS_KM, TWO_PI, Vector3, vector_norm

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApsisInfo:
    """
    下一次近地点/远地点

    Attributes:
        perigee_epoch: 近地点纪元
        apogee_epoch: 远地点纪元
        perigee_position: 近地点惯性系位置（千米）
        apogee_position: 远地点惯性系位置（千米）
    """
    perigee_epoch: float
    apogee_epoch: float
    perigee_position: Vector3
    apogee_position: Vector3

    @property
    def perigee_altitude_km(self) -> float:
        return vector_norm(self.perigee_position) - EARTH_RADIUS_KM

    @property
    def apogee_altitude_km(self) -> float:
        return vector_norm(self.apogee_position) - EARTH_RADIUS_KM


def seconds_until_mean_anomaly(current: float, target: float, mean_motion: float) -> float:
    """
    平近点角从current推进到target所需的秒数（[0, 周期)）

    Args:
        current: 当前平近点角（弧度）
        target: 目标平近点角（弧度）
        mean_motion: 平均运动（rad/s，> 0）
    """
    diff = (target - current) % TWO_PI
    return diff / mean_motion


def compute_apsis(obj: OrbitalObject, propagator: Propagator, epoch: float) -> Optional[ApsisInfo]:
    """
    下一次近地点与远地点

    Args:
        obj: 轨道目标
        propagator: 该目标的传播器
        epoch: 当前纪元

    Returns:
        ApsisInfo，根数非物理或传播失败时返回None
    """
    if not obj.is_physical():
        return None
    n = obj.mean_motion_at(epoch)
    if n <= 0:
        return None

    m_now = obj.mean_anomaly_at(epoch)
    perigee_epoch = epoch_add_seconds(epoch, seconds_until_mean_anomaly(m_now, 0.0, n))
    apogee_epoch = epoch_add_seconds(epoch, seconds_until_mean_anomaly(m_now, math.pi, n))

    perigee = propagator.position(perigee_epoch)
    apogee = propagator.position(apogee_epoch)
    if perigee is None or apogee is None:
        logger.debug(f"Apsis propagation failed for {obj.name}")
        return None

    return ApsisInfo(
        perigee_epoch=perigee_epoch,
        apogee_epoch=apogee_epoch,
        perigee_position=tuple(perigee),
        apogee_position=tuple(apogee),
    )
