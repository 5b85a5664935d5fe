"""
Pytest 配置文件

定义共享 fixtures：赤道观测者、合成圆轨道目标、ISS两行根数
"""

import math

import pytest

from core.models import ObserverLocation, OrbitalObject
from core.orbit.epoch import epoch_to_gmst_rad
from core.orbit.utils import MU_KM, wrap_two_pi

# 经典ISS示例根数（2008年第264天）
ISS_NAME = "ISS (ZARYA)"
ISS_LINE1 = "1 25544U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  2927"
ISS_LINE2 = "2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391563537"

# 2024-01-01 00:00 UTC
SCENARIO_EPOCH = 24001.0

# 90分钟周期圆轨道
NINETY_MINUTE_PERIOD_S = 5400.0


def semi_major_axis_for_period(period_s: float) -> float:
    """由周期反求半长轴（千米）"""
    return (MU_KM * (period_s / (2.0 * math.pi)) ** 2) ** (1.0 / 3.0)


def make_equatorial_object(epoch: float = SCENARIO_EPOCH, phase_offset_rad: float = 0.0,
                           period_s: float = NINETY_MINUTE_PERIOD_S,
                           name: str = "EQ-SAT", mean_motion_dot: float = 0.0) -> OrbitalObject:
    """
    赤道圆轨道目标，纪元时刻位于0°经度上空（再加phase_offset_rad）

    赤道圆轨道中 raan = argp = 0 时卫星惯性经度等于平近点角。
    """
    return OrbitalObject.from_elements(
        catalog_id=name,
        name=name,
        epoch=epoch,
        semi_major_axis=semi_major_axis_for_period(period_s),
        mean_anomaly=wrap_two_pi(epoch_to_gmst_rad(epoch) + phase_offset_rad),
        mean_motion_dot=mean_motion_dot,
    )


@pytest.fixture
def equator_observer():
    """赤道0°经度海平面观测者"""
    return ObserverLocation(latitude=0.0, longitude=0.0, altitude=0.0, name="equator")


@pytest.fixture
def midlatitude_observer():
    """中纬度观测者"""
    return ObserverLocation(latitude=40.0, longitude=-75.0, altitude=100.0, name="midlat")


@pytest.fixture
def equatorial_object():
    """纪元时刻位于观测者正上方的90分钟赤道圆轨道"""
    return make_equatorial_object()


@pytest.fixture
def iss_object():
    """ISS轨道目标（带SGP4句柄）"""
    obj = OrbitalObject.from_tle(ISS_NAME, ISS_LINE1, ISS_LINE2, std_mag=-1.8)
    assert obj is not None
    return obj
