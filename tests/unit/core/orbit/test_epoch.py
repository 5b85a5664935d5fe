"""
纪元时间工具测试
"""

from datetime import datetime, timezone

import pytest

from core.orbit.epoch import (
    SECONDS_PER_DAY,
    datetime_to_epoch,
    epoch_add_seconds,
    epoch_diff_seconds,
    epoch_to_datetime,
    epoch_to_datetime_str,
    epoch_to_gmst,
    epoch_to_julian_date,
    epoch_to_unix,
    epoch_year,
    is_leap_year,
    normalize_epoch,
    unix_to_epoch,
)


class TestNormalizeEpoch:
    """测试纪元规范化"""

    def test_already_normalized_unchanged(self):
        """已规范化的纪元保持不变"""
        assert normalize_epoch(26051.5) == pytest.approx(26051.5)

    def test_idempotent(self):
        """规范化幂等"""
        for epoch in (24367.25, 23000.5, 99365.9, 0.5):
            once = normalize_epoch(epoch)
            assert normalize_epoch(once) == pytest.approx(once)

    def test_leap_year_day_366_valid(self):
        """闰年第366天合法"""
        assert normalize_epoch(24366.5) == pytest.approx(24366.5)

    def test_leap_year_rollover(self):
        """闰年第367天滚动到下一年第1天"""
        assert normalize_epoch(24367.5) == pytest.approx(25001.5)

    def test_common_year_rollover(self):
        """平年第366天滚动到下一年第1天"""
        assert normalize_epoch(23366.0) == pytest.approx(24001.0)

    def test_backward_rollover_into_leap_year(self):
        """年积日小于1时回退到上一年末（闰年）"""
        assert normalize_epoch(25000.5) == pytest.approx(24366.5)

    def test_backward_rollover_into_common_year(self):
        """年积日小于1时回退到上一年末（平年）"""
        assert normalize_epoch(24000.5) == pytest.approx(23365.5)

    def test_century_rollover(self):
        """1999年末滚动到2000年"""
        assert normalize_epoch(99366.0) == pytest.approx(1.0)


class TestEpochConversions:
    """测试纪元与其他时间表示的转换"""

    def test_year_pivot(self):
        """两位年份分界：57及以上为19YY"""
        assert epoch_year(56001.0) == 2056
        assert epoch_year(57001.0) == 1957
        assert epoch_year(8264.5) == 2008

    def test_leap_years(self):
        assert is_leap_year(2024)
        assert is_leap_year(2000)
        assert not is_leap_year(1900)
        assert not is_leap_year(2023)

    def test_unix_round_trip(self):
        """Unix时间往返转换"""
        epoch = 24123.456789
        assert unix_to_epoch(epoch_to_unix(epoch)) == pytest.approx(epoch, abs=1e-9)

    def test_day_one_is_january_first(self):
        """年积日1.0对应1月1日0时"""
        dt = epoch_to_datetime(24001.0)
        assert (dt.year, dt.month, dt.day, dt.hour) == (2024, 1, 1, 0)

    def test_datetime_round_trip(self):
        """datetime往返转换（无时区按UTC）"""
        dt = datetime(2024, 2, 29, 18, 30, 0)
        epoch = datetime_to_epoch(dt)
        assert epoch == pytest.approx(24060.0 + 18.5 / 24.0, abs=1e-9)
        back = epoch_to_datetime(epoch)
        assert abs((back - dt.replace(tzinfo=timezone.utc)).total_seconds()) < 1e-3

    def test_julian_date_j2000(self):
        """J2000.0 = 2000-01-01 12:00 UTC"""
        assert epoch_to_julian_date(1.5) == pytest.approx(2451545.0, abs=1e-9)

    def test_datetime_str(self):
        assert epoch_to_datetime_str(24001.5) == "2024-01-01 12:00:00 UTC"


class TestEpochArithmetic:
    """测试纪元加减"""

    def test_add_seconds_across_year(self):
        """跨年加秒数"""
        epoch = epoch_add_seconds(23365.75, 0.5 * SECONDS_PER_DAY)
        assert epoch == pytest.approx(24001.25, abs=1e-9)

    def test_diff_across_year(self):
        """跨年时间差"""
        assert epoch_diff_seconds(24001.25, 23365.75) == pytest.approx(0.5 * SECONDS_PER_DAY, abs=1e-3)

    def test_diff_is_antisymmetric(self):
        a, b = 24100.125, 24099.875
        assert epoch_diff_seconds(a, b) == pytest.approx(-epoch_diff_seconds(b, a))

    def test_add_then_diff(self):
        start = 24001.0
        later = epoch_add_seconds(start, 1234.5)
        assert epoch_diff_seconds(later, start) == pytest.approx(1234.5, abs=1e-4)


class TestGmst:
    """测试格林尼治平恒星时"""

    def test_gmst_at_j2000(self):
        """J2000.0时刻GMST = 280.46061837°"""
        assert epoch_to_gmst(1.5) == pytest.approx(280.46061837, abs=1e-6)

    def test_gmst_range(self):
        for epoch in (24001.0, 24100.3, 25200.9):
            gmst = epoch_to_gmst(epoch)
            assert 0.0 <= gmst < 360.0

    def test_gmst_sidereal_rate(self):
        """一个太阳日内GMST前进约0.9856°"""
        delta = (epoch_to_gmst(24002.0) - epoch_to_gmst(24001.0)) % 360.0
        assert delta == pytest.approx(0.98564736629, abs=1e-6)
