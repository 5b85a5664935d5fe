"""
观测几何

球形地球模型下的方位角/仰角、观测者位置和斜距计算。纯函数，无状态，可并发使用。
"""

import math
from typing import NamedTuple, Optional

import numpy as np

from core.orbit.utils import EARTH_RADIUS_KM, Vector3, eci_to_ecef, vector_norm


class AzEl(NamedTuple):
    """方位角（0°=北，顺时针）与仰角（0°=地平）"""
    az: float
    el: float


class LookAngles(NamedTuple):
    """方位角、仰角（度）与斜距（千米）"""
    az: float
    el: float
    range_km: float


class GroundPoint(NamedTuple):
    """星下点：地心纬度、经度（度，[-180, 180)）与地心距以上高度（千米）"""
    lat: float
    lon: float
    alt_km: float
    lon: float
    alt_km: float


def observer_ecef(lat_deg: float, lon_deg: float, alt_m: float) -> Vector3:
    """观测者ECEF位置（千米，球形地球）"""
    lat = math.radians(lat_deg)
    lon = math.radians(lon_deg)
    r = EARTH_RADIUS_KM + alt_m / 1000.0
    return (
        r * math.cos(lat) * math.cos(lon),
        r * math.cos(lat) * math.sin(lon),
        r * math.sin(lat),
    )


def observer_eci(lat_deg: float, lon_deg: float, alt_m: float, gmst_rad: float) -> Vector3:
    """
    观测者ECI位置（千米，球形地球）

    Args:
        lat_deg: 纬度（度）
        lon_deg: 经度（度）
        alt_m: 海拔（米）
        gmst_rad: 格林尼治恒星时（弧度）
    """
    lat = math.radians(lat_deg)
    theta = gmst_rad + math.radians(lon_deg)
    r = EARTH_RADIUS_KM + alt_m / 1000.0
    return (
        r * math.cos(lat) * math.cos(theta),
        r * math.cos(lat) * math.sin(theta),
        r * math.sin(lat),
    )


def slant_range(sat: Vector3, obs: Vector3) -> float:
    """卫星与观测者之间的斜距（千米）"""
    dx = sat[0] - obs[0]
    dy = sat[1] - obs[1]
    dz = sat[2] - obs[2]
    return math.sqrt(dx * dx + dy * dy + dz * dz)


def look_angles(
    eci_x: float, eci_y: float, eci_z: float,
    gmst_rad: float,
    obs_lat_deg: float, obs_lon_deg: float, obs_alt_m: float,
) -> LookAngles:
    """
    计算地面观测者看卫星的方位角、仰角和斜距

    卫星与观测者都转到地固系，构造站心东-北-天（ENU）距离向量。

    Args:
        eci_x, eci_y, eci_z: 卫星ECI位置（千米）
        gmst_rad: 格林尼治恒星时（弧度）
        obs_lat_deg: 观测者纬度（度）
        obs_lon_deg: 观测者经度（度）
        obs_alt_m: 观测者海拔（米）

    Returns:
        LookAngles: 零距离（退化）时返回仰角-90°
    """
    sx, sy, sz = eci_to_ecef(eci_x, eci_y, eci_z, gmst_rad)
    ox, oy, oz = observer_ecef(obs_lat_deg, obs_lon_deg, obs_alt_m)

    dx = sx - ox
    dy = sy - oy
    dz = sz - oz
    range_km = math.sqrt(dx * dx + dy * dy + dz * dz)
    if range_km == 0:
        return LookAngles(0.0, -90.0, 0.0)

    lat = math.radians(obs_lat_deg)
    lon = math.radians(obs_lon_deg)
    clat, slat = math.cos(lat), math.sin(lat)
    clon, slon = math.cos(lon), math.sin(lon)

    east = -slon * dx + clon * dy
    north = -slat * clon * dx - slat * slon * dy + clat * dz
    up = clat * clon * dx + clat * slon * dy + slat * dz

    el = math.degrees(math.atan2(up, math.sqrt(east * east + north * north)))
    az = math.degrees(math.atan2(east, north))
    if az < 0:
        az += 360.0

    return LookAngles(az, el, range_km)


def get_az_el(
    eci_x: float, eci_y: float, eci_z: float,
    gmst_rad: float,
    obs_lat_deg: float, obs_lon_deg: float, obs_alt_m: float,
) -> AzEl:
    """
    方位角/仰角（度）

    Az: 0=北, 90=东, 180=南, 270=西；El: 0=地平, 90=天顶
    """
    angles = look_angles(eci_x, eci_y, eci_z, gmst_rad, obs_lat_deg, obs_lon_deg, obs_alt_m)
    return AzEl(angles.az, angles.el)


def subsatellite_point(eci_x: float, eci_y: float, eci_z: float, gmst_rad: float) -> GroundPoint:
    """
    星下点（球形地球）

    Args:
        eci_x, eci_y, eci_z: 卫星ECI位置（千米）
        gmst_rad: 格林尼治恒星时（弧度）
    """
    x, y, z = eci_to_ecef(eci_x, eci_y, eci_z, gmst_rad)
    r = math.sqrt(x * x + y * y + z * z)
    if r == 0:
        return GroundPoint(0.0, 0.0, -EARTH_RADIUS_KM)
    lat = math.degrees(math.asin(max(-1.0, min(1.0, z / r))))
    lon = math.degrees(math.atan2(y, x))
    if lon >= 180.0:
        lon -= 360.0
    return GroundPoint(lat, lon, r - EARTH_RADIUS_KM)


def footprint_half_angle(position: Vector3) -> Optional[float]:
    """
    可视覆盖区的地心半角 acos(Re/r)（弧度），卫星不在地表以上时返回None
    """
    r = vector_norm(position)
    if r <= EARTH_RADIUS_KM:
        return None
    return math.acos(EARTH_RADIUS_KM / r)


def footprint_grid(position: Vector3, rings: int = 12, points: int = 120) -> Optional[np.ndarray]:
    """
    覆盖区网格：以星下点为中心、地心角从0到半角等分的同心圆

    Args:
        position: 卫星位置（千米，ECI或ECEF，结果与输入同一坐标系）
        rings: 圆环数（不含中心）
        points: 每环点数

    Returns:
        np.ndarray: (rings+1, points, 3) 地表点（千米），最外环为覆盖区边界；
        卫星不在地表以上时返回None
    """
    theta = footprint_half_angle(position)
    if theta is None:
        return None

    s = np.asarray(position, dtype=float)
    s /= np.linalg.norm(s)
    # 与星下方向正交的基
    up = np.array([1.0, 0.0, 0.0]) if abs(s[2]) > 0.99 else np.array([0.0, 0.0, 1.0])
    u = np.cross(up, s)
    u /= np.linalg.norm(u)
    v = np.cross(s, u)

    angles = theta * np.arange(rings + 1) / rings
    alpha = 2.0 * math.pi * np.arange(points) / points
    d_plane = EARTH_RADIUS_KM * np.cos(angles)[:, None, None]
    r_circle = EARTH_RADIUS_KM * np.sin(angles)[:, None, None]
    ring_dirs = np.cos(alpha)[:, None] * u + np.sin(alpha)[:, None] * v
    return d_plane * s + r_circle * ring_dirs[None, :, :]
