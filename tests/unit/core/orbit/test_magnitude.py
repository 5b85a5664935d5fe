"""
视星等估计测试
"""

import math

import pytest

from core.orbit.visibility.magnitude import (
    EXTINCTION_PER_AIRMASS,
    INVISIBLE_PHASE_PENALTY,
    airmass,
    compute_phase_angle,
    estimate_visual_magnitude,
    phase_function,
)


class TestPhaseFunction:
    """测试朗伯球相位函数"""

    def test_reference_values(self):
        assert phase_function(0.0) == pytest.approx(1.0)
        assert phase_function(90.0) == pytest.approx(1.0 / math.pi)
        assert phase_function(180.0) == pytest.approx(0.0, abs=1e-12)

    def test_bounded(self):
        """相位函数在[0, 1]内"""
        for phase in range(0, 181, 5):
            assert 0.0 <= phase_function(phase) <= 1.0 + 1e-12

    def test_monotonic_decreasing(self):
        values = [phase_function(p) for p in range(0, 181, 10)]
        assert all(a >= b for a, b in zip(values, values[1:]))

    def test_out_of_range_clamped(self):
        assert phase_function(-20.0) == phase_function(0.0)
        assert phase_function(200.0) == phase_function(180.0)


class TestAirmass:
    """测试Kasten-Young大气质量"""

    def test_zenith(self):
        assert airmass(90.0) == 1.0

    def test_horizon(self):
        assert airmass(0.0) == pytest.approx(37.9, abs=0.2)

    def test_below_horizon_clamped(self):
        assert airmass(-5.0) == airmass(0.0)

    def test_thirty_degrees(self):
        """30°仰角约为2"""
        assert airmass(30.0) == pytest.approx(2.0, abs=0.01)


class TestVisualMagnitude:
    """测试视星等估计"""

    def test_reference_conditions(self):
        """参考距离、参考相位、天顶：只剩大气消光"""
        mag = estimate_visual_magnitude(-1.8, 1000.0, 90.0, 90.0)
        assert mag == pytest.approx(-1.8 + EXTINCTION_PER_AIRMASS)

    def test_range_dims(self):
        """距离加倍暗约1.5等"""
        near = estimate_visual_magnitude(0.0, 1000.0, 90.0, 90.0)
        far = estimate_visual_magnitude(0.0, 2000.0, 90.0, 90.0)
        assert far - near == pytest.approx(1.505, abs=0.01)

    def test_full_phase_brighter(self):
        assert estimate_visual_magnitude(0.0, 1000.0, 0.0, 90.0) < \
            estimate_visual_magnitude(0.0, 1000.0, 90.0, 90.0)

    def test_backlit_penalty(self):
        """相位180°时施加不可见惩罚"""
        mag = estimate_visual_magnitude(0.0, 1000.0, 180.0, 90.0)
        assert mag == pytest.approx(INVISIBLE_PHASE_PENALTY + EXTINCTION_PER_AIRMASS)

    def test_low_elevation_dimmer(self):
        assert estimate_visual_magnitude(0.0, 1000.0, 90.0, 10.0) > \
            estimate_visual_magnitude(0.0, 1000.0, 90.0, 60.0)


class TestPhaseAngle:
    """测试相位角计算"""

    def test_sun_behind_observer(self):
        """观测者与太阳同侧：相位角0°"""
        assert compute_phase_angle((7000.0, 0.0, 0.0), (1.0, 0.0, 0.0), (17000.0, 0.0, 0.0)) == pytest.approx(0.0)

    def test_backlit(self):
        assert compute_phase_angle((7000.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, 0.0)) == pytest.approx(180.0)

    def test_zero_range(self):
        assert compute_phase_angle((1.0, 2.0, 3.0), (1.0, 0.0, 0.0), (1.0, 2.0, 3.0)) == 90.0
