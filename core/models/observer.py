"""
观测者模型 - 球形地球上的地面观测位置
"""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class ObserverLocation:
    """
    观测者位置

    Attributes:
        latitude: 纬度（度，-90~90）
        longitude: 经度（度，-180~180）
        altitude: 海拔高度（米）
        name: 名称
    """
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0
    name: str = ""

    def __post_init__(self):
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 360.0:
            raise ValueError(f"Longitude out of range: {self.longitude}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'altitude': self.altitude,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ObserverLocation':
        return cls(
            latitude=float(data.get('latitude', 0.0)),
            longitude=float(data.get('longitude', 0.0)),
            altitude=float(data.get('altitude', 0.0)),
            name=data.get('name', ''),
        )
