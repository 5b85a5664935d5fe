"""
轨道传播器基类

定义位置/速度求值接口。传播失败返回None（失败哨兵），调用方将其视为
"该时刻无可用位置"，而不是致命错误。
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from core.orbit.utils import Vector3, vector_norm


@dataclass(frozen=True, slots=True)
class StateVector:
    """
    惯性系状态向量

    Attributes:
        position: 位置 (x, y, z)，千米
        velocity: 速度 (vx, vy, vz)，km/s
    """
    position: Vector3
    velocity: Vector3

    @property
    def radius(self) -> float:
        """地心距（千米）"""
        return vector_norm(self.position)

    @property
    def speed(self) -> float:
        """速度大小（km/s）"""
        return vector_norm(self.velocity)


class Propagator(ABC):
    """
    传播器抽象基类

    两种可互换的实现：
    - SGP4Propagator: 高精度数值模型（外部可信函数）
    - KeplerianPropagator: 解析开普勒模型 + J2长期漂移 + 平均运动衰减
    """

    @abstractmethod
    def propagate(self, epoch: float) -> Optional[StateVector]:
        """
        求指定纪元的状态向量

        Args:
            epoch: 纪元

        Returns:
            StateVector，模型失效时返回None
        """

    def position(self, epoch: float) -> Optional[Vector3]:
        """求指定纪元的惯性系位置（千米），失败返回None"""
        state = self.propagate(epoch)
        if state is None:
            return None
        return state.position
