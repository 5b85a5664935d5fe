"""
地影计算测试

圆柱阴影模型：地影、半影过渡因子、月影预筛、太阳高度与光照阶段
"""

import math

import pytest

from core.orbit.ephemeris import moon_illumination, moon_position_eci, sun_direction_eci
from core.orbit.utils import EARTH_RADIUS_KM, vector_norm
from core.orbit.visibility.eclipse import (
    is_eclipsed,
    is_satellite_eclipsed,
    is_solar_eclipsed,
    moon_sun_separation,
    shadow_factor,
    solar_elongation,
    sun_altitude,
    sun_label,
)
from core.orbit.epoch import epoch_to_gmst_rad

SUN_X = (1.0, 0.0, 0.0)


class TestEarthShadow:
    """测试地球阴影"""

    def test_sunward_side_is_lit(self):
        assert is_eclipsed((7000.0, 0.0, 0.0), SUN_X) is False

    def test_behind_earth_is_eclipsed(self):
        assert is_eclipsed((-7000.0, 0.0, 0.0), SUN_X) is True

    def test_behind_earth_outside_cylinder(self):
        """背日侧但在阴影圆柱外"""
        assert is_eclipsed((-7000.0, 0.0, 7000.0), SUN_X) is False

    def test_symmetric_about_shadow_axis(self):
        """阴影关于日地连线轴对称"""
        for offset in (1000.0, 6000.0, 6500.0):
            a = is_eclipsed((-8000.0, offset, 0.0), SUN_X)
            b = is_eclipsed((-8000.0, -offset, 0.0), SUN_X)
            c = is_eclipsed((-8000.0, 0.0, offset), SUN_X)
            assert a == b == c

    def test_terminator_plane(self):
        """晨昏面上（投影为0）位于地球半径内判为地影"""
        assert is_eclipsed((0.0, 6000.0, 0.0), SUN_X) is True
        assert is_eclipsed((0.0, 7000.0, 0.0), SUN_X) is False


class TestShadowFactor:
    """测试连续阴影因子"""

    def test_full_light_and_umbra(self):
        assert shadow_factor((7000.0, 0.0, 0.0), SUN_X) == 1.0
        assert shadow_factor((-7000.0, 0.0, 0.0), SUN_X) == 0.0

    def test_midpoint_of_band(self):
        """地球半径处为0.5"""
        assert shadow_factor((-7000.0, EARTH_RADIUS_KM, 0.0), SUN_X) == pytest.approx(0.5)

    def test_monotonic_across_band(self):
        values = [shadow_factor((-7000.0, EARTH_RADIUS_KM + d, 0.0), SUN_X)
                  for d in (-60.0, -25.0, 0.0, 25.0, 60.0)]
        assert values == sorted(values)
        assert values[0] == 0.0
        assert values[-1] == 1.0

    def test_zero_width_is_binary(self):
        assert shadow_factor((-7000.0, EARTH_RADIUS_KM - 1.0, 0.0), SUN_X, penumbra_width_km=0) == 0.0
        assert shadow_factor((-7000.0, EARTH_RADIUS_KM + 1.0, 0.0), SUN_X, penumbra_width_km=0) == 1.0


class TestMoonShadow:
    """测试月影（日食）"""

    MOON = (384400.0, 0.0, 0.0)

    def test_behind_moon_is_eclipsed(self):
        """卫星位于月球背日侧且在月影圆柱内"""
        assert is_solar_eclipsed((380000.0, 0.0, 0.0), SUN_X, self.MOON) is True

    def test_outside_moon_cylinder(self):
        assert is_solar_eclipsed((380000.0, 0.0, 5000.0), SUN_X, self.MOON) is False

    def test_misaligned_moon_prefilter(self):
        """日月角距过大时直接判为未遮挡"""
        moon = (0.0, 384400.0, 0.0)
        assert moon_sun_separation(moon, SUN_X) == pytest.approx(90.0)
        assert is_solar_eclipsed((0.0, 380000.0, 0.0), SUN_X, moon) is False

    def test_combined(self):
        assert is_satellite_eclipsed((-7000.0, 0.0, 0.0), SUN_X) is True
        assert is_satellite_eclipsed((380000.0, 0.0, 0.0), SUN_X, self.MOON) is True
        assert is_satellite_eclipsed((0.0, 7000.0, 0.0), SUN_X, self.MOON) is False


class TestSunContext:
    """测试太阳高度与光照阶段"""

    def test_sun_labels(self):
        assert sun_label(10.0) == 'Daylight'
        assert sun_label(-3.0) == 'Civil twilight'
        assert sun_label(-9.0) == 'Nautical twilight'
        assert sun_label(-15.0) == 'Astronomical twilight'
        assert sun_label(-30.0) == 'Night'

    def test_sun_altitude_noon_and_midnight(self):
        """2024年春分附近：0°经度正午太阳高，午夜太阳低"""
        noon = 24080.5
        midnight = 24080.0
        lat, lon = 0.0, 0.0
        noon_alt = sun_altitude(noon, lat, lon, 0.0, epoch_to_gmst_rad(noon))
        midnight_alt = sun_altitude(midnight, lat, lon, 0.0, epoch_to_gmst_rad(midnight))
        assert noon_alt > 80.0
        assert midnight_alt < -80.0

    def test_solar_elongation(self):
        obs = (EARTH_RADIUS_KM, 0.0, 0.0)
        assert solar_elongation((EARTH_RADIUS_KM + 500.0, 0.0, 0.0), SUN_X, obs) == pytest.approx(0.0)
        assert solar_elongation((EARTH_RADIUS_KM, 500.0, 0.0), SUN_X, obs) == pytest.approx(90.0)


class TestEphemeris:
    """测试低精度星历"""

    def test_sun_direction_unit_vector(self):
        assert vector_norm(sun_direction_eci(24100.0)) == pytest.approx(1.0)

    def test_sun_near_vernal_equinox(self):
        """春分附近太阳方向接近+x轴"""
        sun = sun_direction_eci(24080.125)
        assert math.degrees(math.acos(sun[0])) < 2.0

    def test_moon_distance(self):
        distance = vector_norm(moon_position_eci(24100.0))
        assert 356000.0 < distance < 407000.0

    def test_moon_illumination_range(self):
        assert 0.0 <= moon_illumination(24100.0) <= 100.0
