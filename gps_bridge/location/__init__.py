"""GPS location source."""

from .constants import (
    FASTEST_LOCATION_UPDATE_INTERVAL,
    LOCATION_UPDATE_INTERVAL,
    MAX_LOCATION_UPDATE_DELAY,
)
from .location_source import LocationListener, LocationRequest, LocationSource
from .parsers import NMEAParser
from .transports import BaseLineTransport, SerialNMEATransport
from .types import GPSFix, LocationSample

__all__ = [
    "FASTEST_LOCATION_UPDATE_INTERVAL",
    "LOCATION_UPDATE_INTERVAL",
    "MAX_LOCATION_UPDATE_DELAY",
    "BaseLineTransport",
    "GPSFix",
    "LocationListener",
    "LocationRequest",
    "LocationSample",
    "LocationSource",
    "NMEAParser",
    "SerialNMEATransport",
]
