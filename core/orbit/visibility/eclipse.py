"""
地影计算

实现圆柱形阴影模型：
- 地球阴影（本影判断 + 连续的半影过渡因子）
- 月球阴影（日食），仅在日月近似共线时计算
- 观测者处太阳高度角、太阳角距
"""

import math

from core.orbit.ephemeris import sun_direction_eci
from core.orbit.utils import EARTH_RADIUS_KM, MOON_RADIUS_KM, Vector3, clamp, vector_norm
from .geometry import get_az_el

# 半影过渡带宽度（千米），以地球半径为中心线性过渡
DEFAULT_PENUMBRA_WIDTH_KM = 100.0

# 日月角距预筛阈值（度），超过则不可能发生日食
MOON_ALIGNMENT_DEG = 3.0

# 太阳视为位于"无穷远"的缩放距离（千米）
SUN_DISTANCE_SCALE_KM = 1e6


def _perpendicular_distance(rel: Vector3, axis: Vector3, dot: float) -> float:
    """相对位置到（单位）轴线的垂直距离"""
    px = rel[0] - dot * axis[0]
    py = rel[1] - dot * axis[1]
    pz = rel[2] - dot * axis[2]
    return math.sqrt(px * px + py * py + pz * pz)


def is_eclipsed(sat: Vector3, sun_dir: Vector3) -> bool:
    """
    判断卫星是否在地影中（圆柱近似模型）

    圆柱模型：
    - 以日地连线为轴
    - 地球阴影投影为半径等于地球半径的圆柱
    - 卫星位于背日侧且在圆柱内即为地影

    Args:
        sat: 卫星ECI位置（千米）
        sun_dir: 太阳方向单位向量

    Returns:
        bool: 是否在地影中
    """
    # 投影为正：卫星在向日侧，总是被照亮
    dot = sat[0] * sun_dir[0] + sat[1] * sun_dir[1] + sat[2] * sun_dir[2]
    if dot > 0:
        return False

    return _perpendicular_distance(sat, sun_dir, dot) < EARTH_RADIUS_KM


def shadow_factor(sat: Vector3, sun_dir: Vector3,
                  penumbra_width_km: float = DEFAULT_PENUMBRA_WIDTH_KM) -> float:
    """
    连续阴影因子：0 = 全影，1 = 全照

    在以地球半径为中心、宽度为penumbra_width_km的带内线性过渡，用于平滑渲染。
    """
    dot = sat[0] * sun_dir[0] + sat[1] * sun_dir[1] + sat[2] * sun_dir[2]
    if dot > 0:
        return 1.0

    perp = _perpendicular_distance(sat, sun_dir, dot)
    if penumbra_width_km <= 0:
        return 0.0 if perp < EARTH_RADIUS_KM else 1.0

    inner = EARTH_RADIUS_KM - penumbra_width_km / 2.0
    return clamp((perp - inner) / penumbra_width_km, 0.0, 1.0)


def moon_sun_separation(moon_pos: Vector3, sun_dir: Vector3) -> float:
    """地心看日月角距（度）"""
    dist = vector_norm(moon_pos)
    if dist == 0:
        return 180.0
    dot = (moon_pos[0] * sun_dir[0] + moon_pos[1] * sun_dir[1] + moon_pos[2] * sun_dir[2]) / dist
    return math.degrees(math.acos(clamp(dot, -1.0, 1.0)))


def is_solar_eclipsed(sat: Vector3, sun_dir: Vector3, moon_pos: Vector3,
                      alignment_deg: float = MOON_ALIGNMENT_DEG) -> bool:
    """
    判断卫星是否处于月球阴影中（日食）

    同样使用圆柱模型，以月球位置和月球半径代替地球。
    日月角距超过alignment_deg时直接判定未被遮挡（廉价预筛）。

    Args:
        sat: 卫星ECI位置（千米）
        sun_dir: 太阳方向单位向量
        moon_pos: 月球ECI位置（千米）
        alignment_deg: 预筛阈值（度）
    """
    if moon_sun_separation(moon_pos, sun_dir) > alignment_deg:
        return False

    rel = (sat[0] - moon_pos[0], sat[1] - moon_pos[1], sat[2] - moon_pos[2])
    dot = rel[0] * sun_dir[0] + rel[1] * sun_dir[1] + rel[2] * sun_dir[2]
    if dot > 0:
        return False

    return _perpendicular_distance(rel, sun_dir, dot) < MOON_RADIUS_KM


def is_satellite_eclipsed(sat: Vector3, sun_dir: Vector3, moon_pos: Vector3 = None) -> bool:
    """地影或月影任一成立即视为被遮挡"""
    if is_eclipsed(sat, sun_dir):
        return True
    if moon_pos is not None:
        return is_solar_eclipsed(sat, sun_dir, moon_pos)
    return False


def sun_altitude(epoch: float, obs_lat_deg: float, obs_lon_deg: float,
                 obs_alt_m: float, gmst_rad: float) -> float:
    """
    观测者处太阳高度角（度），正值在地平线以上

    太阳方向缩放到远距离后复用方位角/仰角计算。
    """
    sun = sun_direction_eci(epoch)
    return get_az_el(
        sun[0] * SUN_DISTANCE_SCALE_KM,
        sun[1] * SUN_DISTANCE_SCALE_KM,
        sun[2] * SUN_DISTANCE_SCALE_KM,
        gmst_rad, obs_lat_deg, obs_lon_deg, obs_alt_m,
    ).el


def solar_elongation(sat: Vector3, sun_dir: Vector3, obs: Vector3) -> float:
    """
    太阳角距：观测者看卫星与太阳的夹角（度）

    角距小（< ~20°）时卫星靠近太阳，即使在晨昏蒙影中也难以观测。
    """
    tx = sat[0] - obs[0]
    ty = sat[1] - obs[1]
    tz = sat[2] - obs[2]
    length = math.sqrt(tx * tx + ty * ty + tz * tz)
    if length == 0:
        return 0.0
    dot = (tx * sun_dir[0] + ty * sun_dir[1] + tz * sun_dir[2]) / length
    return math.degrees(math.acos(clamp(dot, -1.0, 1.0)))


def sun_label(alt: float) -> str:
    """太阳高度角对应的光照阶段"""
    if alt > 0:
        return 'Daylight'
    if alt > -6:
        return 'Civil twilight'
    if alt > -12:
        return 'Nautical twilight'
    if alt > -18:
        return 'Astronomical twilight'
    return 'Night'
