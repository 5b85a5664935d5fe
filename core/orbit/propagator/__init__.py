"""轨道传播器：高精度SGP4与解析开普勒两种可互换策略"""

from .base import Propagator, StateVector
from .sgp4_propagator import SGP4Propagator
from .keplerian_propagator import KeplerianPropagator, create_propagator

__all__ = [
    'Propagator',
    'StateVector',
    'SGP4Propagator',
    'KeplerianPropagator',
    'create_propagator',
]
