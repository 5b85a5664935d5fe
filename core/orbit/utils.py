"""
轨道工具函数

提供轨道计算相关的共享工具函数和常量（统一使用千米、秒、弧度）
"""

import math
from typing import Tuple

# =============================================================================
# 轨道常数
# =============================================================================

# 地球J2项系数（扁率）
EARTH_J2 = 1.08263e-3

# 球形地球模型半径（千米），用于观测几何
EARTH_RADIUS_KM = 6371.0

# WGS-84赤道半径（千米），用于J2摄动
EARTH_RADIUS_EQ_KM = 6378.137

# 地球引力常数（km^3/s^2）
MU_KM = 398600.4418

# 地球自转角速度（rad/s）
EARTH_ROTATION_RATE = 7.2921159e-5

# 月球半径（千米）
MOON_RADIUS_KM = 1737.4

# 光速（km/s）
SPEED_OF_LIGHT_KM_S = 299792.458

DEG2RAD = math.pi / 180.0
RAD2DEG = 180.0 / math.pi
TWO_PI = 2.0 * math.pi

Vector3 = Tuple[float, float, float]
Matrix3 = Tuple[Vector3, Vector3, Vector3]


# =============================================================================
# 通用工具函数
# =============================================================================

def clamp(value: float, min_val: float, max_val: float) -> float:
    """
    将值限制在指定范围内

    Args:
        value: 输入值
        min_val: 最小值
        max_val: 最大值

    Returns:
        限制在[min_val, max_val]范围内的值
    """
    return max(min_val, min(max_val, value))


def vector_norm(v: Vector3) -> float:
    """向量模长"""
    return math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])


def wrap_two_pi(angle: float) -> float:
    """将角度（弧度）归一化到[0, 2π)"""
    angle = math.fmod(angle, TWO_PI)
    if angle < 0:
        angle += TWO_PI
    # 极小负值加2π后舍入为2π
    if angle >= TWO_PI:
        angle = 0.0
    return angle


# =============================================================================
# J2摄动计算
# =============================================================================

def calculate_j2_perturbations(
    semi_major_axis: float,
    inclination: float,
    eccentricity: float,
    mean_motion: float
) -> Tuple[float, float]:
    """
    计算J2摄动引起的轨道参数长期变化率

    公式来源（p = a(1-e^2)为半通径）：
    - RAAN进动率: dRAAN/dt = -3/2 * n * J2 * (Re/p)^2 * cos(i)
    - 近地点幅角变化率: dω/dt = 3/2 * n * J2 * (Re/p)^2 * (2 - 5/2 * sin^2(i))

    Args:
        semi_major_axis: 轨道半长轴（千米）
        inclination: 轨道倾角（弧度）
        eccentricity: 轨道偏心率
        mean_motion: 平均运动（rad/s）

    Returns:
        (raan_dot, arg_perigee_dot): RAAN进动率和近地点幅角变化率（rad/s）
    """
    p = semi_major_axis * (1 - eccentricity**2)

    # 避免除零
    if p <= 0 or mean_motion <= 0:
        return 0.0, 0.0

    j2_factor = EARTH_J2 * (EARTH_RADIUS_EQ_KM / p)**2
    sin_i = math.sin(inclination)

    raan_dot = -1.5 * mean_motion * j2_factor * math.cos(inclination)
    arg_perigee_dot = 1.5 * mean_motion * j2_factor * (2.0 - 2.5 * sin_i * sin_i)

    return raan_dot, arg_perigee_dot


def apply_j2_perturbations(
    raan: float,
    arg_of_perigee: float,
    delta_t: float,
    raan_dot: float,
    arg_perigee_dot: float
) -> Tuple[float, float]:
    """
    应用J2摄动修正，计算指定时间后的轨道指向

    Args:
        raan: 初始升交点赤经（弧度）
        arg_of_perigee: 初始近地点幅角（弧度）
        delta_t: 时间偏移（秒）
        raan_dot: RAAN进动率（rad/s）
        arg_perigee_dot: 近地点幅角变化率（rad/s）

    Returns:
        (raan_corrected, arg_perigee_corrected): 修正后的RAAN和近地点幅角（弧度，[0, 2π)）
    """
    return (
        wrap_two_pi(raan + raan_dot * delta_t),
        wrap_two_pi(arg_of_perigee + arg_perigee_dot * delta_t),
    )


# =============================================================================
# 轨道几何计算
# =============================================================================

def calculate_orbital_period(semi_major_axis: float) -> float:
    """
    计算轨道周期

    Args:
        semi_major_axis: 轨道半长轴（千米）

    Returns:
        轨道周期（秒）
    """
    return 2 * math.pi * math.sqrt(semi_major_axis**3 / MU_KM)


def calculate_mean_motion(semi_major_axis: float) -> float:
    """
    计算平均运动 n = sqrt(μ/a³)

    Args:
        semi_major_axis: 轨道半长轴（千米）

    Returns:
        平均运动（rad/s），非物理半长轴返回0
    """
    if semi_major_axis <= 0:
        return 0.0
    return math.sqrt(MU_KM / semi_major_axis**3)


def semi_major_axis_from_mean_motion(mean_motion: float) -> float:
    """由平均运动（rad/s）反算半长轴（千米）"""
    if mean_motion <= 0:
        return 0.0
    return (MU_KM / (mean_motion * mean_motion)) ** (1.0 / 3.0)


def rotation_matrix_313(raan: float, inclination: float, arg_perigee: float) -> Matrix3:
    """
    近焦点坐标系到惯性系的3-1-3旋转矩阵

    R = Rz(-Ω) · Rx(-i) · Rz(-ω)

    Args:
        raan: 升交点赤经（弧度）
        inclination: 轨道倾角（弧度）
        arg_perigee: 近地点幅角（弧度）

    Returns:
        3x3旋转矩阵（行优先元组）
    """
    cos_o, sin_o = math.cos(raan), math.sin(raan)
    cos_i, sin_i = math.cos(inclination), math.sin(inclination)
    cos_w, sin_w = math.cos(arg_perigee), math.sin(arg_perigee)

    return (
        (cos_o * cos_w - sin_o * sin_w * cos_i,
         -cos_o * sin_w - sin_o * cos_w * cos_i,
         sin_o * sin_i),
        (sin_o * cos_w + cos_o * sin_w * cos_i,
         -sin_o * sin_w + cos_o * cos_w * cos_i,
         -cos_o * sin_i),
        (sin_w * sin_i,
         cos_w * sin_i,
         cos_i),
    )


def perifocal_to_eci(matrix: Matrix3, x_pf: float, y_pf: float) -> Vector3:
    """将近焦点坐标（z_pf = 0）旋转到惯性系"""
    return (
        matrix[0][0] * x_pf + matrix[0][1] * y_pf,
        matrix[1][0] * x_pf + matrix[1][1] * y_pf,
        matrix[2][0] * x_pf + matrix[2][1] * y_pf,
    )


def eci_to_ecef(
    x_eci: float,
    y_eci: float,
    z_eci: float,
    theta: float
) -> Vector3:
    """
    将ECI坐标转换为ECEF坐标

    Args:
        x_eci, y_eci, z_eci: ECI坐标
        theta: 格林尼治恒星时角（rad）

    Returns:
        (x, y, z): ECEF坐标
    """
    x = x_eci * math.cos(theta) + y_eci * math.sin(theta)
    y = -x_eci * math.sin(theta) + y_eci * math.cos(theta)
    z = z_eci

    return x, y, z


def calculate_ecef_velocity(
    vx_eci: float,
    vy_eci: float,
    vz_eci: float,
    x_ecef: float,
    y_ecef: float,
    theta: float
) -> Vector3:
    """
    将ECI速度转换为ECEF速度（扣除地球自转 ω×r）

    Args:
        vx_eci, vy_eci, vz_eci: ECI速度（km/s）
        x_ecef, y_ecef: ECEF位置（千米）
        theta: 格林尼治恒星时角（rad）

    Returns:
        (vx, vy, vz): ECEF速度（km/s）
    """
    vx = vx_eci * math.cos(theta) + vy_eci * math.sin(theta) + EARTH_ROTATION_RATE * y_ecef
    vy = -vx_eci * math.sin(theta) + vy_eci * math.cos(theta) - EARTH_ROTATION_RATE * x_ecef
    vz = vz_eci

    return vx, vy, vz
