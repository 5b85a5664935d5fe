"""
实时可视化侧的状态维护

- TimeSystem: 仿真时钟
- PositionTracker: 每帧位置刷新（current_position的唯一写入者）
- OrbitShapeCache: 轨道椭圆折线缓存（两级失效策略）
- LiveTracker: 以上三者的组合
"""

from .time_system import TimeSystem
from .position_tracker import PositionTracker
from .orbit_shape_cache import OrbitShapeCache, OrbitShapeEntry, ShapeCacheConfig
from .live_tracker import FrameResult, LiveTracker, SelectionInfo

__all__ = [
    'TimeSystem',
    'PositionTracker',
    'OrbitShapeCache',
    'OrbitShapeEntry',
    'ShapeCacheConfig',
    'FrameResult',
    'LiveTracker',
    'SelectionInfo',
]
