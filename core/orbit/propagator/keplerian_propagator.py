"""
解析开普勒传播器

快速解析求值：
- 形状（a, e）取根数纪元值，不随时间修正
- 指向（Ω, ω）按J2长期摄动率随时间线性漂移
- 平近点角计入平均运动衰减
- 近焦点坐标经3-1-3旋转矩阵转入惯性系
"""

import logging
import math
from typing import Optional

from core.orbit.utils import (
    MU_KM,
    TWO_PI,
    perifocal_to_eci,
    rotation_matrix_313,
)
from .base import Propagator, StateVector
from .sgp4_propagator import SGP4Propagator

logger = logging.getLogger(__name__)

KEPLER_MAX_ITERATIONS = 20
KEPLER_TOLERANCE = 1e-12


def solve_kepler(mean_anomaly: float, eccentricity: float) -> float:
    """
    牛顿迭代求解开普勒方程 M = E - e·sin(E)

    Args:
        mean_anomaly: 平近点角（弧度）
        eccentricity: 偏心率（0 <= e < 1）

    Returns:
        偏近点角E（弧度）
    """
    ecc_anomaly = mean_anomaly if eccentricity < 0.8 else math.pi
    for _ in range(KEPLER_MAX_ITERATIONS):
        f = ecc_anomaly - eccentricity * math.sin(ecc_anomaly) - mean_anomaly
        delta = f / (1.0 - eccentricity * math.cos(ecc_anomaly))
        ecc_anomaly -= delta
        if abs(delta) < KEPLER_TOLERANCE:
            break
    return ecc_anomaly


def true_anomaly_from_mean(mean_anomaly: float, eccentricity: float) -> float:
    """由平近点角计算真近点角（弧度）"""
    ecc_anomaly = solve_kepler(mean_anomaly, eccentricity)
    half = ecc_anomaly / 2.0
    nu = 2.0 * math.atan2(
        math.sqrt(1.0 + eccentricity) * math.sin(half),
        math.sqrt(1.0 - eccentricity) * math.cos(half),
    )
    return nu % TWO_PI


class KeplerianPropagator(Propagator):
    """
    解析开普勒传播器（J2长期漂移 + 平均运动衰减）

    Attributes:
        orbital_object: 轨道目标
        j2_enabled: 是否启用J2指向漂移
    """

    def __init__(self, orbital_object, j2_enabled: bool = True):
        self.orbital_object = orbital_object
        self.j2_enabled = j2_enabled

    def propagate(self, epoch: float) -> Optional[StateVector]:
        obj = self.orbital_object
        if not obj.is_physical():
            return None

        # 衰减后平均运动非物理（已再入）
        if obj.mean_motion_at(epoch) <= 0:
            logger.debug(f"Mean motion decayed below zero for {obj.name}")
            return None

        a = obj.semi_major_axis
        e = obj.eccentricity
        p = a * (1.0 - e * e)

        nu = true_anomaly_from_mean(obj.mean_anomaly_at(epoch), e)

        if self.j2_enabled:
            raan, arg_perigee = obj.corrected_elements(epoch)
        else:
            raan, arg_perigee = obj.raan, obj.arg_perigee

        matrix = rotation_matrix_313(raan, obj.inclination, arg_perigee)

        cos_nu, sin_nu = math.cos(nu), math.sin(nu)
        r = p / (1.0 + e * cos_nu)

        # 近焦点坐标系位置与速度
        position = perifocal_to_eci(matrix, r * cos_nu, r * sin_nu)
        vel_factor = math.sqrt(MU_KM / p)
        velocity = perifocal_to_eci(matrix, -vel_factor * sin_nu, vel_factor * (e + cos_nu))

        return StateVector(position=position, velocity=velocity)


def create_propagator(orbital_object, strategy: str = "sgp4", j2_enabled: bool = True) -> Propagator:
    """
    传播器工厂

    Args:
        orbital_object: 轨道目标
        strategy: "sgp4" 或 "analytic"
        j2_enabled: 解析模型是否启用J2漂移

    Returns:
        Propagator: sgp4策略下若目标无SGP4句柄则退回解析模型

    Raises:
        ValueError: 未知策略
    """
    if strategy == "sgp4":
        propagator = SGP4Propagator.from_object(orbital_object)
        if propagator is not None:
            return propagator
        return KeplerianPropagator(orbital_object, j2_enabled=j2_enabled)
    if strategy == "analytic":
        return KeplerianPropagator(orbital_object, j2_enabled=j2_enabled)
    raise ValueError(f"Unknown propagator strategy: {strategy}")
