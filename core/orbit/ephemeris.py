"""
低精度太阳/月球星历

使用近似公式计算太阳方向和月球位置（惯性系），精度足够用于地影和亮度判断。
参考：Meeus《Astronomical Algorithms》低精度太阳位置及截断月球级数。
"""

import math

from .epoch import epoch_to_julian_date, J2000_JD
from .utils import Vector3, vector_norm, clamp


def sun_direction_eci(epoch: float) -> Vector3:
    """
    计算太阳在ECI坐标系中的单位方向向量

    Args:
        epoch: 纪元

    Returns:
        Vector3: 太阳方向单位向量
    """
    # 从J2000起算的天数
    n = epoch_to_julian_date(epoch) - J2000_JD

    # 平黄经（mean longitude）
    mean_longitude = (280.460 + 0.9856474 * n) % 360.0

    # 平近点角（mean anomaly）
    mean_anomaly = math.radians((357.528 + 0.9856003 * n) % 360.0)

    # 黄经 = 平黄经 + 中心差（一阶和二阶谐波）
    ecliptic_longitude = math.radians(
        mean_longitude
        + 1.915 * math.sin(mean_anomaly)
        + 0.020 * math.sin(2.0 * mean_anomaly)
    )

    # 黄道倾角（obliquity of ecliptic）
    obliquity = math.radians(23.439 - 0.0000004 * n)

    # 黄道坐标转赤道坐标（ECI），只需方向
    x = math.cos(ecliptic_longitude)
    y = math.sin(ecliptic_longitude) * math.cos(obliquity)
    z = math.sin(ecliptic_longitude) * math.sin(obliquity)

    length = math.sqrt(x * x + y * y + z * z)
    return (x / length, y / length, z / length)


def moon_position_eci(epoch: float) -> Vector3:
    """
    计算月球在ECI坐标系中的位置（千米）

    截断级数，精度约0.3°，距离误差约几百千米。

    Args:
        epoch: 纪元

    Returns:
        Vector3: 月球位置（千米）
    """
    d = epoch_to_julian_date(epoch) - J2000_JD

    # 月球平黄经、平近点角、升交角距
    mean_longitude = math.radians((218.316 + 13.176396 * d) % 360.0)
    mean_anomaly = math.radians((134.963 + 13.064993 * d) % 360.0)
    latitude_argument = math.radians((93.272 + 13.229350 * d) % 360.0)

    longitude = mean_longitude + math.radians(6.289) * math.sin(mean_anomaly)
    latitude = math.radians(5.128) * math.sin(latitude_argument)
    distance = 385001.0 - 20905.0 * math.cos(mean_anomaly)

    x_ecl = distance * math.cos(latitude) * math.cos(longitude)
    y_ecl = distance * math.cos(latitude) * math.sin(longitude)
    z_ecl = distance * math.sin(latitude)

    eps = math.radians(23.439)
    return (
        x_ecl,
        y_ecl * math.cos(eps) - z_ecl * math.sin(eps),
        y_ecl * math.sin(eps) + z_ecl * math.cos(eps),
    )


def moon_illumination(epoch: float) -> float:
    """
    月面照亮百分比（0-100）

    由地心看日月角距估计：(1 - cos(elongation)) / 2
    """
    moon = moon_position_eci(epoch)
    sun = sun_direction_eci(epoch)
    dist = vector_norm(moon)
    if dist == 0:
        return 0.0
    dot = (moon[0] * sun[0] + moon[1] * sun[1] + moon[2] * sun[2]) / dist
    elongation = math.acos(clamp(dot, -1.0, 1.0))
    return (1.0 - math.cos(elongation)) / 2.0 * 100.0
