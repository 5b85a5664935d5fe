"""
纪元时间工具

纪元格式：YY * 1000 + 年积日.小数（例如 26051.5 = 2026年第51天正午）

所有其他时间表示（Unix秒、儒略日、格林尼治恒星时）均为规范化纪元的纯函数。
"""

import math
import time
from datetime import datetime, timedelta, timezone

SECONDS_PER_DAY = 86400.0

# 两位年份分界：YY < 57 视为20YY，否则为19YY
YEAR_PIVOT = 57

UNIX_EPOCH_JD = 2440587.5
J2000_JD = 2451545.0


def is_leap_year(year: int) -> bool:
    """判断是否闰年"""
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def days_in_year(year: int) -> int:
    """年内天数"""
    return 366 if is_leap_year(year) else 365


def _full_year(yy: int) -> int:
    return 2000 + yy if yy < YEAR_PIVOT else 1900 + yy


def _split(epoch: float):
    yy = int(math.floor(epoch / 1000.0))
    return yy, epoch - yy * 1000.0


def normalize_epoch(epoch: float) -> float:
    """
    规范化纪元，使年积日满足 1.0 <= doy < days_in_year + 1

    跨年（含闰年）向前/向后滚动。对已规范化的值幂等。

    Args:
        epoch: 纪元

    Returns:
        float: 规范化后的纪元
    """
    yy, day_of_year = _split(epoch)
    year = _full_year(yy)

    while True:
        if day_of_year >= days_in_year(year) + 1.0:
            day_of_year -= days_in_year(year)
            year += 1
        elif day_of_year < 1.0:
            year -= 1
            day_of_year += days_in_year(year)
        else:
            break

    return (year % 100) * 1000.0 + day_of_year


def epoch_year(epoch: float) -> int:
    """纪元对应的四位年份"""
    yy, _ = _split(normalize_epoch(epoch))
    return _full_year(yy)


def epoch_to_unix(epoch: float) -> float:
    """
    纪元转Unix时间（秒，UTC）

    年积日从1开始，1.0对应1月1日0时。
    """
    yy, day = _split(normalize_epoch(epoch))
    year = _full_year(yy)
    jan1 = datetime(year, 1, 1, tzinfo=timezone.utc).timestamp()
    return jan1 + (day - 1.0) * SECONDS_PER_DAY


def unix_to_epoch(unix_seconds: float) -> float:
    """Unix时间（秒）转纪元"""
    dt = datetime.fromtimestamp(math.floor(unix_seconds), tz=timezone.utc)
    year = dt.year
    jan1 = datetime(year, 1, 1, tzinfo=timezone.utc).timestamp()
    day_of_year = (unix_seconds - jan1) / SECONDS_PER_DAY + 1.0
    return (year % 100) * 1000.0 + day_of_year


def epoch_to_datetime(epoch: float) -> datetime:
    """纪元转UTC datetime"""
    return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=epoch_to_unix(epoch))


def datetime_to_epoch(dt: datetime) -> float:
    """
    datetime转纪元

    不带时区信息的datetime按UTC处理。
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return unix_to_epoch(dt.timestamp())


def current_epoch() -> float:
    """当前墙钟时间对应的纪元"""
    return unix_to_epoch(time.time())


def epoch_add_seconds(epoch: float, seconds: float) -> float:
    """返回偏移指定秒数后的规范化纪元"""
    return normalize_epoch(epoch + seconds / SECONDS_PER_DAY)


def epoch_diff_seconds(later: float, earlier: float) -> float:
    """两个纪元之间的时间差（秒），跨年安全"""
    return epoch_to_unix(later) - epoch_to_unix(earlier)


def epoch_to_julian_date(epoch: float) -> float:
    """纪元转儒略日"""
    return epoch_to_unix(epoch) / SECONDS_PER_DAY + UNIX_EPOCH_JD


def epoch_to_gmst(epoch: float) -> float:
    """
    格林尼治平恒星时（度，[0, 360)）

    GMST = 280.46061837 + 360.98564736629 * (JD - 2451545.0)
    """
    jd = epoch_to_julian_date(epoch)
    gmst = math.fmod(280.46061837 + 360.98564736629 * (jd - J2000_JD), 360.0)
    if gmst < 0:
        gmst += 360.0
    return gmst


def epoch_to_gmst_rad(epoch: float) -> float:
    """格林尼治平恒星时（弧度）"""
    return math.radians(epoch_to_gmst(epoch))


def epoch_to_datetime_str(epoch: float) -> str:
    """格式化为 'YYYY-MM-DD HH:MM:SS UTC'"""
    dt = epoch_to_datetime(epoch)
    dt = (dt + timedelta(microseconds=500000)).replace(microsecond=0)
    return dt.strftime("%Y-%m-%d %H:%M:%S UTC")
