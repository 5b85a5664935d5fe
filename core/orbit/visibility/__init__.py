"""可见性计算与过境预报模块"""

from .geometry import (
    AzEl,
    GroundPoint,
    LookAngles,
    footprint_grid,
    footprint_half_angle,
    get_az_el,
    look_angles,
    observer_ecef,
    observer_eci,
    subsatellite_point,
)
from .eclipse import is_eclipsed, is_satellite_eclipsed, is_solar_eclipsed, shadow_factor
from .magnitude import NAKED_EYE_LIMIT_MAG, estimate_visual_magnitude, phase_function
from .doppler import DopplerResult, calculate_doppler_shift, doppler_curve
from .pass_filters import azimuth_in_window
from .pass_predictor import PassPredictionEngine, PredictorConfig
from .pass_worker import PassWorker

__all__ = [
    'AzEl',
    'GroundPoint',
    'LookAngles',
    'footprint_grid',
    'footprint_half_angle',
    'subsatellite_point',
    'get_az_el',
    'look_angles',
    'observer_ecef',
    'observer_eci',
    'is_eclipsed',
    'is_satellite_eclipsed',
    'is_solar_eclipsed',
    'shadow_factor',
    'NAKED_EYE_LIMIT_MAG',
    'estimate_visual_magnitude',
    'phase_function',
    'DopplerResult',
    'calculate_doppler_shift',
    'doppler_curve',
    'azimuth_in_window',
    'PassPredictionEngine',
    'PredictorConfig',
    'PassWorker',
]
