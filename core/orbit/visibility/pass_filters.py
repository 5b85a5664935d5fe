"""
过境过滤器

候选过境按代价从低到高依次过滤：
1. 最大仰角上限
2. 空间过滤（方位窗口 + 地平遮挡掩膜）
3. 太阳背景 + 可见性等级
4. 最短可见时长

任一过滤失败即整体丢弃该过境。
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from core.models.pass_models import HorizonMask, PassRequest, VisibilityClass
from .magnitude import NAKED_EYE_LIMIT_MAG

# 可观测的太阳高度角上限（度），即航海晨昏蒙影结束
OBSERVABLE_SUN_ALT_DEG = -12.0


@dataclass(frozen=True, slots=True)
class SunContext:
    """
    最高点处的太阳背景

    Attributes:
        sun_alt: 观测者处太阳高度角（度）
        eclipsed: 卫星是否被遮挡
        elongation: 太阳角距（度）
        magnitude: 估计视星等，未知时为None
    """
    sun_alt: float
    eclipsed: bool
    elongation: float
    magnitude: Optional[float]


def azimuth_in_window(az: float, az_min: float, az_max: float) -> bool:
    """
    方位角是否在窗口内

    az_min > az_max 时窗口跨越0°，例如[350°, 10°]。
    """
    if az_max - az_min >= 360.0:
        return True
    az = az % 360.0
    lo = az_min % 360.0
    hi = az_max % 360.0
    if lo <= hi:
        return lo <= az <= hi
    return az >= lo or az <= hi


def above_horizon_mask(az: float, el: float, mask: Optional[HorizonMask]) -> bool:
    """仰角是否高于该方位处的掩膜仰角"""
    if mask is None:
        return el >= 0.0
    return el >= max(0.0, mask.elevation_at(az))


def passes_elevation_ceiling(max_el: float, request: PassRequest) -> bool:
    """最大仰角是否不超过上限"""
    return max_el <= request.max_elevation


def spatial_sample_ok(az: float, el: float, request: PassRequest) -> bool:
    """单个采样点是否满足空间过滤"""
    return (azimuth_in_window(az, request.az_min, request.az_max)
            and above_horizon_mask(az, el, request.horizon_mask))


def spatial_intervals(samples: Sequence[Tuple[float, float, float]],
                      request: PassRequest) -> Tuple[bool, float]:
    """
    空间过滤与可见时长

    Args:
        samples: 精细采样序列 [(t_seconds, az, el), ...]，按时间递增
        request: 预报请求

    Returns:
        (accepted, visible_seconds): 是否有任一采样满足空间过滤，
            以及两端都满足的相邻采样区间的累计时长
    """
    flags: List[bool] = [spatial_sample_ok(az, el, request) for _, az, el in samples]
    accepted = any(flags)

    visible = 0.0
    for i in range(1, len(samples)):
        if flags[i] and flags[i - 1]:
            visible += samples[i][0] - samples[i - 1][0]
    return accepted, visible


def is_observable(context: SunContext) -> bool:
    """观测者处于天文晨昏蒙影或更暗，且卫星未被遮挡"""
    return context.sun_alt <= OBSERVABLE_SUN_ALT_DEG and not context.eclipsed


def passes_visibility_class(context: SunContext, visibility: VisibilityClass,
                            magnitude_limit: float = NAKED_EYE_LIMIT_MAG) -> bool:
    """
    可见性等级过滤

    肉眼等级要求可观测且星等不超过极限；星等未知视为不满足。
    """
    if visibility == VisibilityClass.ANY:
        return True
    if not is_observable(context):
        return False
    if visibility == VisibilityClass.NAKED_EYE:
        return context.magnitude is not None and context.magnitude <= magnitude_limit
    return True


def passes_min_duration(visible_seconds: float, request: PassRequest) -> bool:
    """累计可见时长是否达到下限"""
    return visible_seconds >= request.min_duration_sec
