"""
过境预报数据模型

- PassSkyPoint / Pass: 预报结果（不可变）
- PassTarget / HorizonMask / VisibilityClass / PassRequest: 预报请求（不可变值数据）
- ProgressMessage / PartialMessage / ResultMessage: 流式输出消息

请求与结果均为纯值数据，可安全地跨进程传递（pickle）。
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from core.orbit.epoch import epoch_to_datetime_str
from .observer import ObserverLocation
from .orbital_object import OrbitalObject


@dataclass(frozen=True, slots=True)
class PassSkyPoint:
    """
    天空轨迹采样点

    Attributes:
        az: 方位角（度，0-360）
        el: 仰角（度）
        t: 纪元
        eclipsed: 是否在地影/月影中
        magnitude: 估计视星等（标准星等未知时为None）
        range_km: 斜距（千米）
    """
    az: float
    el: float
    t: float
    eclipsed: bool = False
    magnitude: Optional[float] = None
    range_km: float = 0.0


@dataclass(frozen=True, slots=True)
class Pass:
    """
    一次过境（可见窗口）

    Attributes:
        sat_name: 卫星名称
        catalog_id: 编目号
        sat_color_index: 显示颜色索引
        aos_epoch: 升起（AOS）纪元
        los_epoch: 降落（LOS）纪元
        max_el_epoch: 最高点（TCA）纪元
        max_el: 最大仰角（度）
        aos_az: 升起方位角（度）
        max_el_az: 最高点方位角（度）
        los_az: 降落方位角（度）
        duration_sec: 持续时间（秒）
        sky_path: 天空轨迹
        eclipsed: 最高点处是否被遮挡
        peak_magnitude: 最高点估计视星等
        sun_alt: 最高点处观测者太阳高度角（度）
        sun_elongation: 最高点处太阳角距（度）
        visible_duration_sec: 满足空间过滤的累计时长（秒）
    """
    sat_name: str
    catalog_id: str
    sat_color_index: int
    aos_epoch: float
    los_epoch: float
    max_el_epoch: float
    max_el: float
    aos_az: float
    max_el_az: float
    los_az: float
    duration_sec: float
    sky_path: Tuple[PassSkyPoint, ...] = ()
    eclipsed: bool = False
    peak_magnitude: Optional[float] = None
    sun_alt: float = 0.0
    sun_elongation: float = 0.0
    visible_duration_sec: float = 0.0

    def __lt__(self, other):
        """按升起时间排序"""
        return self.aos_epoch < other.aos_epoch

    def to_dict(self, include_sky_path: bool = False) -> Dict[str, Any]:
        data = {
            'sat_name': self.sat_name,
            'catalog_id': self.catalog_id,
            'aos': epoch_to_datetime_str(self.aos_epoch),
            'tca': epoch_to_datetime_str(self.max_el_epoch),
            'los': epoch_to_datetime_str(self.los_epoch),
            'aos_epoch': self.aos_epoch,
            'max_el_epoch': self.max_el_epoch,
            'los_epoch': self.los_epoch,
            'max_el': round(self.max_el, 2),
            'aos_az': round(self.aos_az, 1),
            'max_el_az': round(self.max_el_az, 1),
            'los_az': round(self.los_az, 1),
            'duration_sec': round(self.duration_sec, 1),
            'eclipsed': self.eclipsed,
            'peak_magnitude': None if self.peak_magnitude is None else round(self.peak_magnitude, 2),
            'sun_alt': round(self.sun_alt, 2),
            'sun_elongation': round(self.sun_elongation, 2),
            'visible_duration_sec': round(self.visible_duration_sec, 1),
        }
        if include_sky_path:
            data['sky_path'] = [
                {'az': p.az, 'el': p.el, 't': p.t, 'eclipsed': p.eclipsed,
                 'magnitude': p.magnitude, 'range_km': p.range_km}
                for p in self.sky_path
            ]
        return data


class VisibilityClass(Enum):
    """可见性等级"""
    ANY = "any"                # 仅几何可见
    OBSERVABLE = "observable"  # 观测者处于天文晨昏蒙影或更暗，且卫星被照亮
    NAKED_EYE = "naked_eye"    # 可观测且估计星等不超过肉眼极限


@dataclass(frozen=True)
class HorizonMask:
    """
    地平遮挡掩膜

    8个方位（0°, 45°, ..., 315°）处的最低可见仰角，按方位角线性插值（跨0°环绕）。
    """
    elevations: Tuple[float, ...] = (0.0,) * 8

    SECTORS = 8
    SECTOR_WIDTH = 360.0 / 8

    def __post_init__(self):
        if len(self.elevations) != self.SECTORS:
            raise ValueError(f"Horizon mask needs {self.SECTORS} points, got {len(self.elevations)}")
        object.__setattr__(self, 'elevations', tuple(float(e) for e in self.elevations))

    def elevation_at(self, az: float) -> float:
        """指定方位角处的掩膜仰角（度）"""
        az = az % 360.0
        position = az / self.SECTOR_WIDTH
        index = int(math.floor(position)) % self.SECTORS
        frac = position - math.floor(position)
        low = self.elevations[index]
        high = self.elevations[(index + 1) % self.SECTORS]
        return low + (high - low) * frac

    def is_flat(self) -> bool:
        return all(e <= 0.0 for e in self.elevations)


@dataclass(frozen=True)
class PassTarget:
    """
    预报目标（可pickle的值数据）

    TLE行与六根数二选一：有TLE时用SGP4，否则用解析模型。

    Attributes:
        name: 名称
        line1, line2: TLE两行
        elements: 六根数字典（OrbitalObject.from_elements的参数）
        color_index: 显示颜色索引
        std_mag: 标准星等
    """
    name: str
    line1: Optional[str] = None
    line2: Optional[str] = None
    elements: Optional[Dict[str, Any]] = None
    color_index: int = 0
    std_mag: Optional[float] = None

    @classmethod
    def from_object(cls, obj: OrbitalObject, color_index: int = 0) -> 'PassTarget':
        """从轨道目标构造"""
        if obj.tle_line1 and obj.tle_line2:
            return cls(name=obj.name, line1=obj.tle_line1, line2=obj.tle_line2,
                       color_index=color_index, std_mag=obj.std_mag)
        elements = {
            'catalog_id': obj.catalog_id,
            'name': obj.name,
            'epoch': obj.epoch,
            'semi_major_axis': obj.semi_major_axis,
            'eccentricity': obj.eccentricity,
            'inclination': obj.inclination,
            'raan': obj.raan,
            'arg_perigee': obj.arg_perigee,
            'mean_anomaly': obj.mean_anomaly,
            'mean_motion_dot': obj.mean_motion_dot,
        }
        return cls(name=obj.name, elements=elements, color_index=color_index, std_mag=obj.std_mag)

    def build_object(self) -> Optional[OrbitalObject]:
        """重建轨道目标，TLE格式错误时返回None"""
        if self.line1 and self.line2:
            return OrbitalObject.from_tle(self.name, self.line1, self.line2, std_mag=self.std_mag)
        if self.elements is not None:
            params = dict(self.elements)
            params.setdefault('catalog_id', self.name)
            params.setdefault('name', self.name)
            params.setdefault('std_mag', self.std_mag)
            return OrbitalObject.from_elements(**params)
        return None


@dataclass(frozen=True)
class PassRequest:
    """
    过境预报请求

    一个请求完全决定输出；提交后不再修改。

    Attributes:
        observer: 观测者位置
        targets: 目标列表
        start_epoch: 开始纪元
        duration_days: 扫描时长（天）
        min_elevation: 最大仰角下限（度）
        max_elevation: 最大仰角上限（度）
        az_min, az_max: 方位窗口（度），az_min > az_max 表示跨0°
        horizon_mask: 地平遮挡掩膜
        min_duration_sec: 满足空间过滤的最短时长（秒）
        visibility: 可见性等级
        step_seconds: 粗扫描步长（秒）
        propagator: 传播策略（"sgp4" / "analytic"）
    """
    observer: ObserverLocation
    targets: Tuple[PassTarget, ...]
    start_epoch: float
    duration_days: float = 1.0
    min_elevation: float = 10.0
    max_elevation: float = 90.0
    az_min: float = 0.0
    az_max: float = 360.0
    horizon_mask: Optional[HorizonMask] = None
    min_duration_sec: float = 0.0
    visibility: VisibilityClass = VisibilityClass.ANY
    step_seconds: float = 60.0
    propagator: str = "sgp4"

    def __post_init__(self):
        if not self.duration_days > 0:
            raise ValueError(f"duration_days must be positive: {self.duration_days}")
        if not self.step_seconds > 0:
            raise ValueError(f"step_seconds must be positive: {self.step_seconds}")
        if self.min_elevation > self.max_elevation:
            raise ValueError(
                f"min_elevation {self.min_elevation} exceeds max_elevation {self.max_elevation}"
            )
        object.__setattr__(self, 'targets', tuple(self.targets))
        if isinstance(self.visibility, str):
            object.__setattr__(self, 'visibility', VisibilityClass(self.visibility))

    @property
    def has_azimuth_window(self) -> bool:
        return not (self.az_min <= 0.0 and self.az_max >= 360.0)

    @property
    def needs_spatial_filter(self) -> bool:
        return self.has_azimuth_window or (
            self.horizon_mask is not None and not self.horizon_mask.is_flat()
        )


@dataclass(frozen=True, slots=True)
class ProgressMessage:
    """进度消息（百分比，单调递增）"""
    percent: float


@dataclass(frozen=True, slots=True)
class PartialMessage:
    """部分结果批次（批次之间无序）"""
    passes: Tuple[Pass, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class ResultMessage:
    """终止消息：完整结果，按升起时间排序"""
    passes: Tuple[Pass, ...] = field(default_factory=tuple)
