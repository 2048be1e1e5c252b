"""Location data types."""

from dataclasses import dataclass, field
import datetime as dt
from typing import Optional

from .constants import DEFAULT_UERE_M


@dataclass(frozen=True, slots=True)
class LocationSample:
    """One delivered position; the newest sample replaces the previous one."""

    latitude: float
    longitude: float
    accuracy_m: Optional[float] = None
    timestamp: dt.datetime = field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))


@dataclass(slots=True)
class GPSFix:
    """Receiver state accumulated across NMEA sentences."""

    timestamp: Optional[dt.datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude_m: Optional[float] = None
    speed_knots: Optional[float] = None
    speed_kmh: Optional[float] = None
    course_deg: Optional[float] = None
    fix_quality: Optional[int] = None
    fix_mode: Optional[str] = None
    satellites_in_use: Optional[int] = None
    satellites_in_view: Optional[int] = None
    hdop: Optional[float] = None
    vdop: Optional[float] = None
    pdop: Optional[float] = None
    fix_valid: bool = False
    last_sentence: Optional[str] = None
    last_update_monotonic: float = 0.0

    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None and self.fix_valid

    def accuracy_m(self, uere_m: float = DEFAULT_UERE_M) -> Optional[float]:
        if self.hdop is None:
            return None
        return self.hdop * uere_m

    def to_sample(self) -> LocationSample:
        if not self.has_position():
            raise ValueError("GPS fix has no valid position")
        return LocationSample(
            latitude=self.latitude,
            longitude=self.longitude,
            accuracy_m=self.accuracy_m(),
            timestamp=self.timestamp or dt.datetime.now(dt.timezone.utc),
        )
