from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Tuple


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    IN_TRANSIT = "in-transit"
    DELIVERED = "delivered"


class SortKey(str, Enum):
    DISTANCE = "distance"
    DURATION = "duration"
    CREATED_AT = "created_at"

    @classmethod
    def parse(cls, value: "SortKey | str") -> "SortKey":
        """Accept a member, its value, or one of the legacy UI names."""
        if isinstance(value, SortKey):
            return value
        token = str(value).strip()
        aliases = {
            "createdAt": cls.CREATED_AT,
            "added": cls.CREATED_AT,
            "time": cls.DURATION,
        }
        if token in aliases:
            return aliases[token]
        try:
            return cls(token.lower())
        except ValueError:
            raise ValueError(f"unknown sort key: {value!r}") from None


@dataclass(frozen=True)
class GeoCoordinate:
    """Latitude/longitude pair in decimal degrees (WGS84)."""

    lat: float
    lng: float


@dataclass(frozen=True)
class RawMatch:
    """Unvalidated substring reported by a pattern strategy."""

    start: int
    text: str
    strategy: str


@dataclass(frozen=True)
class Delivery:
    identifier: str
    address: str
    coordinate: GeoCoordinate
    status: DeliveryStatus
    created_at: datetime
    estimated_minutes: Optional[int] = None

    def as_dict(self) -> Dict[str, object]:
        return {
            "identifier": self.identifier,
            "address": self.address,
            "lat": self.coordinate.lat,
            "lng": self.coordinate.lng,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "estimated_minutes": self.estimated_minutes,
        }


@dataclass(frozen=True)
class NewDelivery:
    """Notification emitted when an operator accepts a scan result."""

    identifier: str
    address: str
    coordinate: GeoCoordinate
    created_at: datetime
    status: DeliveryStatus = DeliveryStatus.PENDING


@dataclass(frozen=True)
class RecognitionResult:
    text: str
    confidence: float = 0.0

    def __post_init__(self) -> None:
        clamped = min(max(float(self.confidence), 0.0), 1.0)
        object.__setattr__(self, "confidence", clamped)


@dataclass(frozen=True)
class ScanResult:
    address: str
    coordinate: GeoCoordinate
    confidence: float
    raw_text: str = ""
    candidates: Tuple[str, ...] = ()
    diagnostics: Dict[str, str] = field(default_factory=dict)
