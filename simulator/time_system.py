"""
仿真时间系统

维护当前仿真纪元，按墙钟增量乘以时间倍率推进，可暂停。
"""

from typing import Optional

from core.orbit.epoch import (
    SECONDS_PER_DAY,
    current_epoch,
    epoch_to_datetime_str,
    epoch_to_gmst,
    normalize_epoch,
)


class TimeSystem:
    """
    仿真时钟

    Attributes:
        current_epoch: 当前纪元
        time_multiplier: 时间倍率（负值倒放）
        paused: 是否暂停
    """

    def __init__(self, start_epoch: Optional[float] = None, time_multiplier: float = 1.0):
        self.current_epoch = normalize_epoch(start_epoch) if start_epoch is not None else current_epoch()
        self.time_multiplier = time_multiplier
        self.paused = False

    def update(self, dt_seconds: float) -> float:
        """
        按墙钟增量推进

        Args:
            dt_seconds: 墙钟增量（秒）

        Returns:
            float: 本次推进的仿真秒数
        """
        if self.paused:
            return 0.0
        sim_seconds = dt_seconds * self.time_multiplier
        self.current_epoch = normalize_epoch(self.current_epoch + sim_seconds / SECONDS_PER_DAY)
        return sim_seconds

    def reset_to_now(self) -> None:
        self.current_epoch = current_epoch()

    def gmst_deg(self) -> float:
        return epoch_to_gmst(self.current_epoch)

    def datetime_str(self) -> str:
        return epoch_to_datetime_str(self.current_epoch)
