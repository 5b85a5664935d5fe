"""
过境预报引擎

粗扫描 + 二分精化的过境检测：
- 粗扫描：固定步长（默认60秒）推进，维护"地平以下/过境中"两状态
- 精化：在穿越地平的最后一个步长内二分搜索（12次迭代约0.06秒精度）
- 过滤：仰角上限 → 空间过滤 → 太阳背景/可见性等级 → 最短时长
- 输出：流式进度/部分结果消息，最终结果按升起时间排序

引擎本身不做I/O、不访问共享状态，可在独立进程中运行。
"""

import logging
import time
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple, Union

from core.models.observer import ObserverLocation
from core.models.pass_models import (
    Pass,
    PassRequest,
    PassSkyPoint,
    PassTarget,
    PartialMessage,
    ProgressMessage,
    ResultMessage,
)
from core.orbit.ephemeris import moon_position_eci, sun_direction_eci
from core.orbit.epoch import epoch_add_seconds, epoch_to_gmst_rad
from core.orbit.propagator import Propagator, create_propagator
from core.orbit.utils import Vector3
from .eclipse import is_satellite_eclipsed, sun_altitude, solar_elongation
from .geometry import LookAngles, look_angles, observer_eci
from .magnitude import NAKED_EYE_LIMIT_MAG, compute_phase_angle, estimate_visual_magnitude
from .pass_filters import (
    SunContext,
    passes_elevation_ceiling,
    passes_min_duration,
    passes_visibility_class,
    spatial_intervals,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400.0

StreamMessage = Union[ProgressMessage, PartialMessage, ResultMessage]


@dataclass
class PredictorConfig:
    """
    预报引擎参数

    Attributes:
        bisection_iterations: 地平穿越二分迭代次数
        max_backtrack_steps: 起始处于过境中时最多回退的步数（也用于结尾延伸）
        fine_step_seconds: 精细重采样步长（秒）
        sky_path_points: 天空轨迹采样点数
        flush_interval_s: 进度/部分结果的墙钟刷新间隔（秒）
        magnitude_limit: 肉眼可见极限星等
    """
    bisection_iterations: int = 12
    max_backtrack_steps: int = 30
    fine_step_seconds: float = 10.0
    sky_path_points: int = 100
    flush_interval_s: float = 0.25
    magnitude_limit: float = NAKED_EYE_LIMIT_MAG


@dataclass
class _PassCandidate:
    """粗扫描过程中正在跟踪的过境（偏移量均为相对开始纪元的秒数）"""
    aos: float
    aos_az: float
    max_el: float
    max_el_t: float
    max_el_az: float
    last_t: float


class PassPredictionEngine:
    """
    过境预报引擎

    对每个目标独立扫描，单个目标失败不会中断整个批次。
    """

    def __init__(self, config: Optional[PredictorConfig] = None):
        self.config = config or PredictorConfig()

    # ------------------------------------------------------------------
    # 采样
    # ------------------------------------------------------------------

    @staticmethod
    def _observe(propagator: Propagator, epoch: float,
                 observer: ObserverLocation) -> Optional[Tuple[Vector3, LookAngles]]:
        """传播并计算观测角，传播失败返回None"""
        position = propagator.position(epoch)
        if position is None:
            return None
        angles = look_angles(
            position[0], position[1], position[2],
            epoch_to_gmst_rad(epoch),
            observer.latitude, observer.longitude, observer.altitude,
        )
        return position, angles

    def refine_crossing(self, propagator: Propagator, observer: ObserverLocation,
                        start_epoch: float, t_low: float, t_high: float,
                        rising: bool) -> float:
        """
        二分搜索地平穿越时刻

        Args:
            propagator: 传播器
            observer: 观测者
            start_epoch: 偏移量的参考纪元
            t_low: 区间下界（秒偏移，穿越前）
            t_high: 区间上界（秒偏移，穿越后）
            rising: True为升起，False为降落

        Returns:
            float: 升起返回上界（首个可见时刻），降落返回下界（最后可见时刻）
        """
        for _ in range(self.config.bisection_iterations):
            t_mid = (t_low + t_high) / 2.0
            sample = self._observe(propagator, epoch_add_seconds(start_epoch, t_mid), observer)
            if sample is None:
                # 中点传播失败时在区间内换一点重试一次
                t_mid = t_low + 0.75 * (t_high - t_low)
                sample = self._observe(propagator, epoch_add_seconds(start_epoch, t_mid), observer)
            if sample is None:
                break
            el = sample[1].el
            if rising:
                if el >= 0:
                    t_high = t_mid
                else:
                    t_low = t_mid
            else:
                if el < 0:
                    t_high = t_mid
                else:
                    t_low = t_mid
        return t_high if rising else t_low

    def _backtrack(self, propagator: Propagator, request: PassRequest) -> float:
        """开始时刻处于过境中时向前回退，返回扫描起点偏移（秒，<= 0）"""
        step = request.step_seconds
        sample = self._observe(propagator, request.start_epoch, request.observer)
        if sample is None or sample[1].el <= 0:
            return 0.0

        t = 0.0
        for _ in range(self.config.max_backtrack_steps):
            previous = self._observe(propagator, epoch_add_seconds(request.start_epoch, t - step),
                                     request.observer)
            if previous is None:
                break
            t -= step
            if previous[1].el <= 0:
                break
        return t

    # ------------------------------------------------------------------
    # 单目标扫描
    # ------------------------------------------------------------------

    def compute_passes_for_object(self, propagator: Propagator, target: PassTarget,
                                  request: PassRequest,
                                  catalog_id: str = "") -> List[Pass]:
        """
        计算单个目标的全部过境

        Args:
            propagator: 传播器
            target: 目标（名称、颜色、标准星等）
            request: 预报请求
            catalog_id: 编目号

        Returns:
            List[Pass]: 通过全部过滤的过境，按时间顺序
        """
        step = request.step_seconds
        start = request.start_epoch
        observer = request.observer

        t = self._backtrack(propagator, request)
        scan_end = round(request.duration_days * SECONDS_PER_DAY / step) * step
        extension_end = scan_end + self.config.max_backtrack_steps * step

        passes: List[Pass] = []
        candidate: Optional[_PassCandidate] = None
        last_good_t: Optional[float] = None

        while t < extension_end:
            if t >= scan_end and candidate is None:
                break

            sample = self._observe(propagator, epoch_add_seconds(start, t), observer)
            if sample is None:
                t += step
                continue

            az, el = sample[1].az, sample[1].el
            bracket_low = last_good_t if last_good_t is not None else t - step

            if el >= 0:
                if candidate is None:
                    aos = self.refine_crossing(propagator, observer, start, bracket_low, t, True)
                    candidate = _PassCandidate(
                        aos=aos, aos_az=az, max_el=el, max_el_t=t, max_el_az=az, last_t=t
                    )
                    aos_sample = self._observe(propagator, epoch_add_seconds(start, aos), observer)
                    if aos_sample is not None:
                        candidate.aos_az = aos_sample[1].az
                elif el > candidate.max_el:
                    candidate.max_el = el
                    candidate.max_el_t = t
                    candidate.max_el_az = az
                candidate.last_t = t
            elif candidate is not None:
                los = self.refine_crossing(propagator, observer, start, bracket_low, t, False)
                accepted = self._finalize(propagator, target, request, catalog_id, candidate, los)
                if accepted is not None:
                    passes.append(accepted)
                candidate = None

            last_good_t = t
            t += step

        if candidate is not None:
            logger.debug(f"Dropped unterminated pass for {target.name} starting at offset "
                         f"{candidate.aos:.0f}s")

        return passes

    def _fine_samples(self, propagator: Propagator, request: PassRequest,
                      candidate: _PassCandidate, los: float) -> List[Tuple[float, float, float]]:
        """以精细步长重采样 (t, az, el)，包括两端点"""
        start = request.start_epoch
        fine = self.config.fine_step_seconds
        times = [candidate.aos]
        t = candidate.aos + fine
        while t < los:
            times.append(t)
            t += fine
        if los > candidate.aos:
            times.append(los)

        samples = []
        for t in times:
            sample = self._observe(propagator, epoch_add_seconds(start, t), request.observer)
            if sample is not None:
                samples.append((t, sample[1].az, sample[1].el))
        return samples

    def _refine_peak(self, candidate: _PassCandidate, los: float,
                     samples: List[Tuple[float, float, float]]) -> Tuple[float, float, float]:
        """
        在精细采样中取最高点 (t, az, el)，只考虑严格位于(AOS, LOS)内的采样
        """
        best = None
        if candidate.aos < candidate.max_el_t < los:
            best = (candidate.max_el_t, candidate.max_el_az, candidate.max_el)
        for t, az, el in samples:
            if candidate.aos < t < los and (best is None or el > best[2]):
                best = (t, az, el)
        if best is None:
            mid = (candidate.aos + los) / 2.0
            best = (mid, candidate.max_el_az, candidate.max_el)
        return best

    def _sun_context(self, propagator: Propagator, request: PassRequest,
                     epoch: float, std_mag: Optional[float]) -> Optional[SunContext]:
        """最高点处的太阳高度、遮挡、太阳角距与估计星等"""
        observer = request.observer
        sample = self._observe(propagator, epoch, observer)
        if sample is None:
            return None
        position, angles = sample

        gmst_rad = epoch_to_gmst_rad(epoch)
        sun_dir = sun_direction_eci(epoch)
        obs = observer_eci(observer.latitude, observer.longitude, observer.altitude, gmst_rad)

        eclipsed = is_satellite_eclipsed(position, sun_dir, moon_position_eci(epoch))
        magnitude = None
        if std_mag is not None and not eclipsed:
            phase = compute_phase_angle(position, sun_dir, obs)
            magnitude = estimate_visual_magnitude(std_mag, angles.range_km, phase, angles.el)

        return SunContext(
            sun_alt=sun_altitude(epoch, observer.latitude, observer.longitude,
                                 observer.altitude, gmst_rad),
            eclipsed=eclipsed,
            elongation=solar_elongation(position, sun_dir, obs),
            magnitude=magnitude,
        )

    def _finalize(self, propagator: Propagator, target: PassTarget, request: PassRequest,
                  catalog_id: str, candidate: _PassCandidate, los: float) -> Optional[Pass]:
        """对候选过境依次过滤，通过后构造Pass"""
        if candidate.max_el < request.min_elevation or los <= candidate.aos:
            return None

        # (a) 仰角上限，粗扫描最大值已超限则直接拒绝
        if not passes_elevation_ceiling(candidate.max_el, request):
            logger.debug(f"{target.name}: rejected by elevation ceiling")
            return None

        samples = self._fine_samples(propagator, request, candidate, los)
        peak_t, peak_az, peak_el = self._refine_peak(candidate, los, samples)
        if not passes_elevation_ceiling(peak_el, request):
            logger.debug(f"{target.name}: rejected by elevation ceiling")
            return None

        # (b) 空间过滤
        accepted, visible_seconds = spatial_intervals(samples, request)
        if not accepted:
            logger.debug(f"{target.name}: rejected by azimuth window / horizon mask")
            return None
        if not request.needs_spatial_filter:
            visible_seconds = los - candidate.aos

        # (c) 太阳背景 + 可见性等级
        start = request.start_epoch
        peak_epoch = epoch_add_seconds(start, peak_t)
        context = self._sun_context(propagator, request, peak_epoch, target.std_mag)
        if context is None:
            return None
        if not passes_visibility_class(context, request.visibility, self.config.magnitude_limit):
            logger.debug(f"{target.name}: rejected by visibility class {request.visibility.value}")
            return None

        # (d) 最短时长
        if not passes_min_duration(visible_seconds, request):
            logger.debug(f"{target.name}: rejected by minimum duration "
                         f"({visible_seconds:.0f}s < {request.min_duration_sec:.0f}s)")
            return None

        los_az = samples[-1][1] if samples else peak_az
        los_sample = self._observe(propagator, epoch_add_seconds(start, los), request.observer)
        if los_sample is not None:
            los_az = los_sample[1].az

        return Pass(
            sat_name=target.name,
            catalog_id=catalog_id,
            sat_color_index=target.color_index,
            aos_epoch=epoch_add_seconds(start, candidate.aos),
            los_epoch=epoch_add_seconds(start, los),
            max_el_epoch=peak_epoch,
            max_el=peak_el,
            aos_az=candidate.aos_az,
            max_el_az=peak_az,
            los_az=los_az,
            duration_sec=los - candidate.aos,
            sky_path=self._sky_path(propagator, request, candidate.aos, los, target.std_mag),
            eclipsed=context.eclipsed,
            peak_magnitude=context.magnitude,
            sun_alt=context.sun_alt,
            sun_elongation=context.elongation,
            visible_duration_sec=visible_seconds,
        )

    def _sky_path(self, propagator: Propagator, request: PassRequest,
                  aos: float, los: float, std_mag: Optional[float]) -> Tuple[PassSkyPoint, ...]:
        """等间隔天空轨迹，逐点标注遮挡、星等与斜距"""
        points = self.config.sky_path_points
        if points < 2 or los <= aos:
            return ()

        observer = request.observer
        step = (los - aos) / (points - 1)
        path = []
        for k in range(points):
            epoch = epoch_add_seconds(request.start_epoch, aos + k * step)
            sample = self._observe(propagator, epoch, observer)
            if sample is None:
                continue
            position, angles = sample
            sun_dir = sun_direction_eci(epoch)
            eclipsed = is_satellite_eclipsed(position, sun_dir, moon_position_eci(epoch))
            magnitude = None
            if std_mag is not None and not eclipsed:
                obs = observer_eci(observer.latitude, observer.longitude, observer.altitude,
                                   epoch_to_gmst_rad(epoch))
                magnitude = estimate_visual_magnitude(
                    std_mag, angles.range_km, compute_phase_angle(position, sun_dir, obs), angles.el
                )
            path.append(PassSkyPoint(
                az=angles.az, el=angles.el, t=epoch,
                eclipsed=eclipsed, magnitude=magnitude, range_km=angles.range_km,
            ))
        return tuple(path)

    # ------------------------------------------------------------------
    # 批处理
    # ------------------------------------------------------------------

    def _passes_for_target(self, target: PassTarget, request: PassRequest) -> List[Pass]:
        obj = target.build_object()
        if obj is None:
            logger.warning(f"Skipping target {target.name}: invalid orbital elements")
            return []
        propagator = create_propagator(obj, request.propagator)
        return self.compute_passes_for_object(propagator, target, request, obj.catalog_id)

    def iter_messages(self, request: PassRequest) -> Iterator[StreamMessage]:
        """
        流式计算过境

        进度与部分结果按墙钟间隔刷新（而非逐目标），最后产出一条完整、
        按升起时间排序的ResultMessage。部分批次之间不保证有序。

        Args:
            request: 预报请求

        Yields:
            ProgressMessage / PartialMessage / ResultMessage
        """
        total = len(request.targets)
        started = time.monotonic()
        last_flush = started
        all_passes: List[Pass] = []
        pending: List[Pass] = []

        logger.info(f"Pass prediction started: {total} targets, "
                    f"{request.duration_days:g} days, min elevation {request.min_elevation:g} deg")

        for index, target in enumerate(request.targets):
            try:
                passes = self._passes_for_target(target, request)
            except Exception as e:
                logger.warning(f"Pass prediction failed for {target.name}: {e}")
                passes = []

            all_passes.extend(passes)
            pending.extend(passes)

            now = time.monotonic()
            if now - last_flush >= self.config.flush_interval_s:
                yield ProgressMessage(percent=(index + 1) / total * 100.0)
                if pending:
                    yield PartialMessage(passes=tuple(pending))
                    pending = []
                last_flush = now

        all_passes.sort(key=lambda p: p.aos_epoch)
        logger.info(f"Pass prediction finished: {len(all_passes)} passes "
                    f"in {time.monotonic() - started:.2f}s")

        yield ProgressMessage(percent=100.0)
        yield ResultMessage(passes=tuple(all_passes))

    def predict(self, request: PassRequest) -> List[Pass]:
        """同步计算，返回按升起时间排序的过境列表"""
        for message in self.iter_messages(request):
            if isinstance(message, ResultMessage):
                return list(message.passes)
        return []
