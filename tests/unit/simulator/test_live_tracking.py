"""
实时跟踪测试

时间系统、位置跟踪器与实时跟踪器组合
"""

import numpy as np
import pytest

from core.models import OrbitalObject
from core.orbit.epoch import SECONDS_PER_DAY
from simulator import LiveTracker, PositionTracker, TimeSystem
from tests.conftest import SCENARIO_EPOCH, make_equatorial_object


def _population():
    good = [make_equatorial_object(name=f"EQ-{i}", phase_offset_rad=0.5 * i) for i in range(3)]
    bad = OrbitalObject.from_elements("BAD", "BAD", SCENARIO_EPOCH, 7000.0, eccentricity=1.5)
    return good + [bad]


class TestTimeSystem:
    """测试仿真时钟"""

    def test_update_with_multiplier(self):
        ts = TimeSystem(SCENARIO_EPOCH, time_multiplier=60.0)
        sim = ts.update(1.0)
        assert sim == 60.0
        assert ts.current_epoch == pytest.approx(SCENARIO_EPOCH + 60.0 / SECONDS_PER_DAY)

    def test_pause(self):
        ts = TimeSystem(SCENARIO_EPOCH)
        ts.paused = True
        assert ts.update(10.0) == 0.0
        assert ts.current_epoch == SCENARIO_EPOCH

    def test_year_rollover(self):
        """跨年后纪元保持规范化"""
        ts = TimeSystem(23365.999, time_multiplier=3600.0)
        ts.update(1.0)
        assert ts.current_epoch == pytest.approx(24001.0 + 0.999 + 1.0 / 24.0 - 1.0, abs=1e-9)

    def test_reverse(self):
        ts = TimeSystem(24001.0, time_multiplier=-86400.0)
        ts.update(1.0)
        assert ts.current_epoch == pytest.approx(23365.0)

    def test_display(self):
        ts = TimeSystem(24001.5)
        assert ts.datetime_str() == "2024-01-01 12:00:00 UTC"
        assert 0.0 <= ts.gmst_deg() < 360.0


class TestPositionTracker:
    """测试位置跟踪器"""

    def test_update_writes_positions(self):
        objects = _population()
        tracker = PositionTracker(objects)
        failures = tracker.update(SCENARIO_EPOCH)

        assert failures == 1
        assert tracker.valid.tolist() == [True, True, True, False]
        assert tracker.valid_positions().shape == (3, 3)
        assert objects[0].current_position is not None
        assert objects[3].current_position is None
        assert tracker.position_of("BAD") is None
        assert [obj.name for obj in tracker.iter_valid()] == ["EQ-0", "EQ-1", "EQ-2"]

    def test_positions_match_radius(self):
        objects = _population()[:3]
        tracker = PositionTracker(objects)
        tracker.update(SCENARIO_EPOCH)
        radii = np.linalg.norm(tracker.positions, axis=1)
        np.testing.assert_allclose(radii, objects[0].semi_major_axis, rtol=1e-9)

    def test_batch_count(self):
        tracker = PositionTracker([], max_batch=8)
        assert tracker.batch_count(0.1) == 8
        assert tracker.batch_count(0.5) == 2
        assert tracker.batch_count(60.0) == 1
        assert PositionTracker([], max_batch=1).batch_count(0.001) == 1

    def test_batched_update_with_always_update(self):
        """分批更新时选中目标每帧都更新"""
        objects = _population()[:3]
        tracker = PositionTracker(objects, max_batch=3)
        tracker.update(SCENARIO_EPOCH, sim_dt_per_frame=0.1, always_update={"EQ-2"})

        assert tracker.valid.tolist() == [True, False, True]


class TestLiveTracker:
    """测试实时跟踪器"""

    def test_step(self):
        live = LiveTracker(_population(), start_epoch=SCENARIO_EPOCH)
        live.time_system.time_multiplier = 60.0

        frame = live.step(0.5, wall_time=1000.0)

        assert frame.sim_seconds == 30.0
        assert frame.failures == 1
        assert frame.epoch == pytest.approx(SCENARIO_EPOCH + 30.0 / SECONDS_PER_DAY)
        assert live.shape_cache.segment_buffer().shape[0] == 4

    def test_set_objects_rebuilds_cache_next_frame(self):
        live = LiveTracker(_population(), start_epoch=SCENARIO_EPOCH)
        live.set_objects(_population()[:2])
        frame = live.step(0.1, wall_time=1000.0)

        assert frame.orbits_changed
        assert live.shape_cache.segment_buffer().shape[0] == 2

    def test_selection_info(self):
        """选中目标：星下点位于0°经度赤道上空，覆盖区半角约16.75°"""
        live = LiveTracker(_population(), start_epoch=SCENARIO_EPOCH)
        info = live.selection_info("EQ-0")

        assert info is not None
        assert info.ground_point.lat == pytest.approx(0.0, abs=0.5)
        assert info.ground_point.lon == pytest.approx(0.0, abs=2.0)
        assert info.footprint_half_angle_deg == pytest.approx(16.75, abs=0.5)
        assert info.apsis is not None
        for apsis_epoch in (info.apsis.perigee_epoch, info.apsis.apogee_epoch):
            assert 0.0 <= (apsis_epoch - SCENARIO_EPOCH) * SECONDS_PER_DAY < 5400.0 + 1.0

    def test_selection_info_unavailable(self):
        """无效位置或未知编目号返回None"""
        live = LiveTracker(_population(), start_epoch=SCENARIO_EPOCH)
        assert live.selection_info("BAD") is None
        assert live.selection_info("NOPE") is None
