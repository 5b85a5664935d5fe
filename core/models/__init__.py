"""核心数据模型"""

from .orbital_object import OrbitalObject
from .observer import ObserverLocation
from .pass_models import (
    HorizonMask,
    Pass,
    PassRequest,
    PassSkyPoint,
    PassTarget,
    PartialMessage,
    ProgressMessage,
    ResultMessage,
    VisibilityClass,
)

__all__ = [
    'OrbitalObject',
    'ObserverLocation',
    'HorizonMask',
    'Pass',
    'PassRequest',
    'PassSkyPoint',
    'PassTarget',
    'PartialMessage',
    'ProgressMessage',
    'ResultMessage',
    'VisibilityClass',
]
