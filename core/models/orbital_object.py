"""
轨道目标模型 - 由两行轨道根数（TLE）派生的经典轨道根数

每组解析后的TLE对应一个OrbitalObject：
- 六根数（参考纪元处）
- 平均运动及其一阶导数（衰减率）
- J2长期摄动率（构造时计算一次）
- 不透明的SGP4传播句柄
- 当前位置缓存（仅由位置跟踪器单一写入）
"""

import dataclasses
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

from sgp4.api import Satrec

from core.orbit.epoch import epoch_diff_seconds
from core.orbit.utils import (
    Vector3,
    TWO_PI,
    apply_j2_perturbations,
    calculate_j2_perturbations,
    calculate_mean_motion,
    calculate_orbital_period,
    semi_major_axis_from_mean_motion,
    wrap_two_pi,
)

logger = logging.getLogger(__name__)

SECONDS_PER_MINUTE = 60.0


@dataclass
class OrbitalObject:
    """
    轨道目标

    Attributes:
        catalog_id: 编目号
        name: 显示名称
        epoch: 根数参考纪元（YY*1000 + 年积日）
        semi_major_axis: 半长轴（千米）
        eccentricity: 偏心率
        inclination: 轨道倾角（弧度）
        raan: 升交点赤经（弧度）
        arg_perigee: 近地点幅角（弧度）
        mean_anomaly: 平近点角（弧度）
        mean_motion_dot: 平均运动一阶导数（rad/s²），大气阻力导致的衰减
        satrec: SGP4卫星记录（可选）
        std_mag: 标准星等（1000km、90°相位），未知时为None
    """
    catalog_id: str
    name: str
    epoch: float
    semi_major_axis: float
    eccentricity: float
    inclination: float
    raan: float
    arg_perigee: float
    mean_anomaly: float
    mean_motion_dot: float = 0.0
    satrec: Optional[Any] = field(default=None, repr=False, compare=False)
    tle_line1: Optional[str] = None
    tle_line2: Optional[str] = None
    std_mag: Optional[float] = None

    # 派生量（构造时计算）
    mean_motion: float = field(init=False)  # rad/s
    raan_rate: float = field(init=False)  # rad/s
    arg_perigee_rate: float = field(init=False)  # rad/s

    # 当前位置缓存（ECI，千米），由PositionTracker每帧写入
    current_position: Optional[Vector3] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        """计算平均运动与J2长期摄动率"""
        if self.is_physical():
            self.mean_motion = calculate_mean_motion(self.semi_major_axis)
            self.raan_rate, self.arg_perigee_rate = calculate_j2_perturbations(
                self.semi_major_axis, self.inclination, self.eccentricity, self.mean_motion
            )
        else:
            logger.debug(f"Non-physical elements for {self.name}: "
                         f"a={self.semi_major_axis}, e={self.eccentricity}")
            self.mean_motion = 0.0
            self.raan_rate = 0.0
            self.arg_perigee_rate = 0.0

    @classmethod
    def from_tle(cls, name: str, line1: str, line2: str,
                 std_mag: Optional[float] = None) -> Optional['OrbitalObject']:
        """
        从TLE创建轨道目标

        Args:
            name: 名称（三行格式中的第0行）
            line1: TLE第一行
            line2: TLE第二行
            std_mag: 标准星等

        Returns:
            OrbitalObject，格式错误时返回None
        """
        try:
            satrec = Satrec.twoline2rv(line1, line2)
        except (ValueError, IndexError, TypeError) as e:
            logger.warning(f"Rejected malformed TLE for {name.strip()}: {e}")
            return None

        if satrec.error != 0 or satrec.no_kozai <= 0:
            logger.warning(f"Rejected TLE for {name.strip()}: sgp4 init error {satrec.error}")
            return None

        # 平均运动 rad/min -> rad/s
        mean_motion = satrec.no_kozai / SECONDS_PER_MINUTE
        catalog_id = getattr(satrec, 'satnum_str', None) or str(satrec.satnum)

        return cls(
            catalog_id=catalog_id.strip(),
            name=name.strip() or catalog_id.strip(),
            epoch=satrec.epochyr * 1000.0 + satrec.epochdays,
            semi_major_axis=semi_major_axis_from_mean_motion(mean_motion),
            eccentricity=satrec.ecco,
            inclination=satrec.inclo,
            raan=satrec.nodeo,
            arg_perigee=satrec.argpo,
            mean_anomaly=satrec.mo,
            # TLE中ndot字段为 n'/2（rad/min²）
            mean_motion_dot=2.0 * satrec.ndot / (SECONDS_PER_MINUTE ** 2),
            satrec=satrec,
            tle_line1=line1,
            tle_line2=line2,
            std_mag=std_mag,
        )

    @classmethod
    def from_elements(
        cls,
        catalog_id: str,
        name: str,
        epoch: float,
        semi_major_axis: float,
        eccentricity: float = 0.0,
        inclination: float = 0.0,
        raan: float = 0.0,
        arg_perigee: float = 0.0,
        mean_anomaly: float = 0.0,
        mean_motion_dot: float = 0.0,
        std_mag: Optional[float] = None,
    ) -> 'OrbitalObject':
        """从六根数创建（无SGP4句柄，仅支持解析传播）"""
        return cls(
            catalog_id=catalog_id,
            name=name,
            epoch=epoch,
            semi_major_axis=semi_major_axis,
            eccentricity=eccentricity,
            inclination=inclination,
            raan=raan,
            arg_perigee=arg_perigee,
            mean_anomaly=mean_anomaly,
            mean_motion_dot=mean_motion_dot,
            std_mag=std_mag,
        )

    def with_elements(self, **changes) -> 'OrbitalObject':
        """根数变化时生成新对象，长期摄动率随之重新计算"""
        return dataclasses.replace(self, **changes)

    def is_physical(self) -> bool:
        """根数是否物理可行（a > 0, 0 <= e < 1）"""
        return self.semi_major_axis > 0 and 0.0 <= self.eccentricity < 1.0

    def has_sgp4(self) -> bool:
        """是否带有SGP4句柄"""
        return self.satrec is not None

    def elapsed_seconds(self, epoch: float) -> float:
        """从根数纪元到指定纪元经过的秒数"""
        return epoch_diff_seconds(epoch, self.epoch)

    def corrected_elements(self, epoch: float) -> Tuple[float, float]:
        """
        J2长期漂移修正后的升交点赤经和近地点幅角

        Args:
            epoch: 目标纪元

        Returns:
            (raan, arg_perigee): 弧度
        """
        return apply_j2_perturbations(
            self.raan, self.arg_perigee, self.elapsed_seconds(epoch),
            self.raan_rate, self.arg_perigee_rate
        )

    def mean_motion_at(self, epoch: float) -> float:
        """衰减后的平均运动（rad/s）"""
        return self.mean_motion + self.mean_motion_dot * self.elapsed_seconds(epoch)

    def mean_anomaly_at(self, epoch: float) -> float:
        """平近点角 M = M0 + n·dt + ½·ṅ·dt²（弧度，[0, 2π)）"""
        dt = self.elapsed_seconds(epoch)
        return wrap_two_pi(
            self.mean_anomaly + self.mean_motion * dt + 0.5 * self.mean_motion_dot * dt * dt
        )

    def semi_major_axis_at(self, epoch: float) -> float:
        """衰减后的半长轴（千米），平均运动非物理时返回0"""
        return semi_major_axis_from_mean_motion(self.mean_motion_at(epoch))

    def period_seconds(self) -> float:
        """轨道周期（秒）"""
        if not self.is_physical():
            return math.inf
        return calculate_orbital_period(self.semi_major_axis)

    def revolutions_per_day(self) -> float:
        """每日圈数"""
        return self.mean_motion * 86400.0 / TWO_PI
