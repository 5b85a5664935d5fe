"""
过境过滤器测试
"""

import pytest

from core.models import HorizonMask, ObserverLocation, PassRequest, VisibilityClass
from core.orbit.visibility.pass_filters import (
    SunContext,
    above_horizon_mask,
    azimuth_in_window,
    is_observable,
    passes_elevation_ceiling,
    passes_min_duration,
    passes_visibility_class,
    spatial_intervals,
)


def _request(**kwargs):
    return PassRequest(observer=ObserverLocation(), targets=(), start_epoch=24001.0, **kwargs)


class TestAzimuthWindow:
    """测试方位窗口"""

    def test_full_circle(self):
        for az in (0.0, 90.0, 359.9):
            assert azimuth_in_window(az, 0.0, 360.0)

    def test_simple_window(self):
        assert azimuth_in_window(100.0, 90.0, 180.0)
        assert not azimuth_in_window(200.0, 90.0, 180.0)

    def test_wraparound_window(self):
        """[350°, 10°] 跨越正北"""
        assert azimuth_in_window(355.0, 350.0, 10.0)
        assert azimuth_in_window(5.0, 350.0, 10.0)
        assert azimuth_in_window(0.0, 350.0, 10.0)
        assert not azimuth_in_window(180.0, 350.0, 10.0)
        assert not azimuth_in_window(340.0, 350.0, 10.0)

    def test_boundaries_inclusive(self):
        assert azimuth_in_window(90.0, 90.0, 180.0)
        assert azimuth_in_window(180.0, 90.0, 180.0)


class TestHorizonMask:
    """测试地平遮挡掩膜"""

    MASK = HorizonMask((0.0, 10.0, 20.0, 30.0, 40.0, 50.0, 60.0, 70.0))

    def test_requires_eight_points(self):
        with pytest.raises(ValueError):
            HorizonMask((0.0, 10.0))

    def test_exact_sectors(self):
        assert self.MASK.elevation_at(0.0) == 0.0
        assert self.MASK.elevation_at(90.0) == 20.0

    def test_linear_interpolation(self):
        assert self.MASK.elevation_at(22.5) == pytest.approx(5.0)

    def test_interpolation_wraps(self):
        """315°与0°之间跨越正北插值"""
        assert self.MASK.elevation_at(337.5) == pytest.approx(35.0)
        assert self.MASK.elevation_at(360.0) == pytest.approx(0.0)

    def test_above_mask(self):
        assert above_horizon_mask(90.0, 25.0, self.MASK)
        assert not above_horizon_mask(90.0, 15.0, self.MASK)

    def test_no_mask_uses_geometric_horizon(self):
        assert above_horizon_mask(0.0, 0.0, None)
        assert not above_horizon_mask(0.0, -0.1, None)

    def test_flat(self):
        assert HorizonMask().is_flat()
        assert not self.MASK.is_flat()


class TestSpatialIntervals:
    """测试空间过滤与可见时长"""

    def test_all_samples_visible(self):
        samples = [(0.0, 10.0, 5.0), (10.0, 20.0, 20.0), (20.0, 30.0, 5.0)]
        accepted, visible = spatial_intervals(samples, _request())
        assert accepted
        assert visible == pytest.approx(20.0)

    def test_partial_window(self):
        """只有两端都在窗口内的相邻区间计入时长"""
        samples = [(0.0, 100.0, 5.0), (10.0, 150.0, 20.0), (20.0, 170.0, 20.0), (30.0, 200.0, 5.0)]
        accepted, visible = spatial_intervals(samples, _request(az_min=140.0, az_max=180.0))
        assert accepted
        assert visible == pytest.approx(10.0)

    def test_never_in_window(self):
        samples = [(0.0, 100.0, 5.0), (10.0, 110.0, 20.0)]
        accepted, visible = spatial_intervals(samples, _request(az_min=350.0, az_max=10.0))
        assert not accepted
        assert visible == 0.0

    def test_mask_blocks_low_samples(self):
        mask = HorizonMask((30.0,) * 8)
        samples = [(0.0, 10.0, 5.0), (10.0, 20.0, 40.0), (20.0, 30.0, 45.0)]
        accepted, visible = spatial_intervals(samples, _request(horizon_mask=mask))
        assert accepted
        assert visible == pytest.approx(10.0)


class TestVisibilityClass:
    """测试可见性等级过滤"""

    DARK_LIT = SunContext(sun_alt=-20.0, eclipsed=False, elongation=120.0, magnitude=2.0)

    def test_any_always_passes(self):
        daylight = SunContext(sun_alt=30.0, eclipsed=True, elongation=10.0, magnitude=None)
        assert passes_visibility_class(daylight, VisibilityClass.ANY)

    def test_observable(self):
        assert is_observable(self.DARK_LIT)
        assert passes_visibility_class(self.DARK_LIT, VisibilityClass.OBSERVABLE)

    def test_bright_sky_not_observable(self):
        twilight = SunContext(sun_alt=-8.0, eclipsed=False, elongation=120.0, magnitude=2.0)
        assert not passes_visibility_class(twilight, VisibilityClass.OBSERVABLE)

    def test_eclipsed_not_observable(self):
        shadow = SunContext(sun_alt=-20.0, eclipsed=True, elongation=120.0, magnitude=None)
        assert not passes_visibility_class(shadow, VisibilityClass.OBSERVABLE)

    def test_naked_eye_magnitude_limit(self):
        faint = SunContext(sun_alt=-20.0, eclipsed=False, elongation=120.0, magnitude=6.0)
        assert passes_visibility_class(self.DARK_LIT, VisibilityClass.NAKED_EYE)
        assert not passes_visibility_class(faint, VisibilityClass.NAKED_EYE)
        assert passes_visibility_class(faint, VisibilityClass.NAKED_EYE, magnitude_limit=6.5)

    def test_naked_eye_unknown_magnitude(self):
        """星等未知时不满足肉眼等级"""
        unknown = SunContext(sun_alt=-20.0, eclipsed=False, elongation=120.0, magnitude=None)
        assert passes_visibility_class(unknown, VisibilityClass.OBSERVABLE)
        assert not passes_visibility_class(unknown, VisibilityClass.NAKED_EYE)


class TestSimpleFilters:
    """测试仰角上限与最短时长"""

    def test_elevation_ceiling(self):
        request = _request(min_elevation=10.0, max_elevation=60.0)
        assert passes_elevation_ceiling(59.0, request)
        assert not passes_elevation_ceiling(61.0, request)

    def test_min_duration(self):
        request = _request(min_duration_sec=120.0)
        assert passes_min_duration(120.0, request)
        assert not passes_min_duration(119.0, request)
