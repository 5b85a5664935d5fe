"""
多普勒频移分析

由传播器直接给出的速度解析计算距离变化率，不使用两次传播的有限差分。
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from core.models.observer import ObserverLocation
from core.orbit.epoch import epoch_to_gmst_rad
from core.orbit.propagator.base import Propagator, StateVector
from core.orbit.utils import SPEED_OF_LIGHT_KM_S, calculate_ecef_velocity, eci_to_ecef
from .geometry import observer_ecef

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DopplerResult:
    """
    多普勒计算结果

    Attributes:
        frequency: 频移后频率（Hz）
        range_km: 斜距（千米）
        range_rate_km_s: 距离变化率（km/s，正值为远离）
    """
    frequency: float
    range_km: float
    range_rate_km_s: float


def calculate_doppler_shift(
    state: StateVector,
    epoch: float,
    observer: ObserverLocation,
    base_freq_hz: float,
) -> Optional[DopplerResult]:
    """
    计算指定纪元的多普勒频移

    距离变化率 dr/dt = v_ecef · r_hat，其中v_ecef为扣除地球自转后的地固系速度，
    r_hat为观测者指向卫星的单位向量。使用经典（非相对论）公式 f·c/(c+ṙ)。

    Args:
        state: 卫星惯性系状态向量
        epoch: 纪元
        observer: 观测者位置
        base_freq_hz: 标称频率（Hz）

    Returns:
        DopplerResult，零距离时返回None
    """
    gmst_rad = epoch_to_gmst_rad(epoch)

    px, py, pz = state.position
    vx, vy, vz = state.velocity
    sat_x, sat_y, sat_z = eci_to_ecef(px, py, pz, gmst_rad)
    sat_vx, sat_vy, sat_vz = calculate_ecef_velocity(vx, vy, vz, sat_x, sat_y, gmst_rad)

    obs_x, obs_y, obs_z = observer_ecef(observer.latitude, observer.longitude, observer.altitude)

    dx = sat_x - obs_x
    dy = sat_y - obs_y
    dz = sat_z - obs_z
    range_km = (dx * dx + dy * dy + dz * dz) ** 0.5
    if range_km == 0:
        return None

    range_rate = (sat_vx * dx + sat_vy * dy + sat_vz * dz) / range_km
    frequency = base_freq_hz * (SPEED_OF_LIGHT_KM_S / (SPEED_OF_LIGHT_KM_S + range_rate))

    return DopplerResult(frequency=frequency, range_km=range_km, range_rate_km_s=range_rate)


def doppler_curve(
    propagator: Propagator,
    epochs: Iterable[float],
    observer: ObserverLocation,
    base_freq_hz: float,
) -> List[Tuple[float, DopplerResult]]:
    """
    沿时间序列计算多普勒曲线

    传播失败或零距离的采样点被跳过。

    Returns:
        List[(epoch, DopplerResult)]
    """
    curve = []
    skipped = 0
    for epoch in epochs:
        state = propagator.propagate(epoch)
        if state is None:
            skipped += 1
            continue
        result = calculate_doppler_shift(state, epoch, observer, base_freq_hz)
        if result is None:
            skipped += 1
            continue
        curve.append((epoch, result))

    if skipped:
        logger.debug(f"Doppler curve skipped {skipped} samples")
    return curve
