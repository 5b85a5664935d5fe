"""
卫星视星等估计

朗伯（漫反射）球模型：
- 标准星等约定：1000km距离、90°相位角（McCants）
- 大气消光使用Kasten-Young (1989) 大气质量公式

模型精度约±1-2等，仅作近似估计。
"""

import math

from core.orbit.utils import Vector3, clamp

REFERENCE_RANGE_KM = 1000.0
REFERENCE_PHASE_DEG = 90.0

# 肉眼可见极限星等
NAKED_EYE_LIMIT_MAG = 5.0

# 每单位大气质量的消光（星等）
EXTINCTION_PER_AIRMASS = 0.2

# 相位函数低于该值时视为不可见，施加星等惩罚
MIN_PHASE_FUNCTION = 1e-9
INVISIBLE_PHASE_PENALTY = 10.0


def phase_function(phase_angle_deg: float) -> float:
    """
    朗伯球相位函数 F(φ) = (sin φ + (π − φ)·cos φ) / π

    F(0°) = 1，F(90°) = 1/π，F(180°) = 0
    """
    phi = math.radians(clamp(phase_angle_deg, 0.0, 180.0))
    return (math.sin(phi) + (math.pi - phi) * math.cos(phi)) / math.pi


def airmass(elevation_deg: float) -> float:
    """
    Kasten-Young大气质量：X = 1 / (sin h + 0.50572·(h + 6.07995)^-1.6364)

    天顶为1.0，地平约38；低于0°按0°处理。
    """
    if elevation_deg >= 90.0:
        return 1.0
    if elevation_deg < 0.0:
        elevation_deg = 0.0
    sin_h = math.sin(math.radians(elevation_deg))
    correction = 0.50572 * math.pow(elevation_deg + 6.07995, -1.6364)
    return 1.0 / (sin_h + correction)


def compute_phase_angle(sat: Vector3, sun_dir: Vector3, obs: Vector3) -> float:
    """
    卫星处太阳方向与观测者方向的夹角（度）

    0° = 观测者背对太阳（全照），180° = 卫星位于观测者与太阳之间（逆光）。
    卫星与观测者重合时返回90°。
    """
    ox = obs[0] - sat[0]
    oy = obs[1] - sat[1]
    oz = obs[2] - sat[2]
    length = math.sqrt(ox * ox + oy * oy + oz * oz)
    if length == 0:
        return REFERENCE_PHASE_DEG

    dot = (sun_dir[0] * ox + sun_dir[1] * oy + sun_dir[2] * oz) / length
    return math.degrees(math.acos(clamp(dot, -1.0, 1.0)))


def estimate_visual_magnitude(std_mag: float, range_km: float,
                              phase_angle_deg: float, elevation_deg: float) -> float:
    """
    估计视星等（越小越亮）

    Args:
        std_mag: 标准星等
        range_km: 斜距（千米）
        phase_angle_deg: 相位角（度）
        elevation_deg: 仰角（度）

    Returns:
        float: 视星等
    """
    # 距离项：亮度随距离平方衰减
    range_mag = 5.0 * math.log10(max(range_km, 1.0) / REFERENCE_RANGE_KM)

    # 相位项：相对于90°参考相位
    ref_phase = phase_function(REFERENCE_PHASE_DEG)
    cur_phase = phase_function(phase_angle_deg)
    if cur_phase > MIN_PHASE_FUNCTION:
        phase_mag = -2.5 * math.log10(cur_phase / ref_phase)
    else:
        phase_mag = INVISIBLE_PHASE_PENALTY

    extinction = EXTINCTION_PER_AIRMASS * airmass(elevation_deg)

    return std_mag + range_mag + phase_mag + extinction
