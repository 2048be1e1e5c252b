"""NMEA-0183 sentence parsing.

The parser is stateful: RMC, GGA, GLL, VTG, GSA and GSV sentences each
carry part of the picture, and every accepted sentence is merged into one
:class:`GPSFix`. Talker IDs are ignored, so ``$GNRMC`` and ``$GPRMC`` parse
the same way.
"""

from __future__ import annotations

import datetime as dt
import time
from typing import Any, Callable, Dict, Optional

from ..constants import FIX_MODE_MAP, KMH_PER_KNOT
from ..types import GPSFix

FixCallback = Callable[[GPSFix, Dict[str, Any]], None]


def _to_float(value: str | None) -> Optional[float]:
    try:
        return float(value) if value else None
    except ValueError:
        return None


def _to_int(value: str | None) -> Optional[int]:
    try:
        return int(value) if value else None
    except ValueError:
        return None


def parse_coordinate(value: str | None, hemisphere: str | None, *, is_lat: bool) -> Optional[float]:
    """Convert ``DDMM.MMMM`` / ``DDDMM.MMMM`` plus hemisphere to signed degrees."""
    if not value or not hemisphere:
        return None
    width = 2 if is_lat else 3
    if len(value) < width:
        return None
    try:
        degrees = int(value[:width]) + float(value[width:]) / 60.0
    except ValueError:
        return None
    return -degrees if hemisphere.upper() in ("S", "W") else degrees


def _parse_time(value: str | None) -> Optional[dt.time]:
    if not value or not value.strip():
        return None
    whole, _, fraction = value.strip().partition(".")
    whole = whole.rjust(6, "0")
    try:
        micros = int(fraction[:6].ljust(6, "0")) if fraction else 0
        return dt.time(
            int(whole[0:2]), int(whole[2:4]), int(whole[4:6]), micros,
            tzinfo=dt.timezone.utc,
        )
    except ValueError:
        return None


def _parse_date(value: str | None) -> Optional[dt.date]:
    if not value or len(value) != 6:
        return None
    try:
        return dt.date(2000 + int(value[4:6]), int(value[2:4]), int(value[0:2]))
    except ValueError:
        return None


def validate_checksum(sentence: str) -> bool:
    """Check the XOR checksum between ``$`` and ``*``."""
    if not sentence.startswith("$") or "*" not in sentence:
        return False
    body, _, checksum = sentence[1:].partition("*")
    try:
        expected = int(checksum[:2], 16)
    except ValueError:
        return False
    calculated = 0
    for char in body:
        calculated ^= ord(char)
    return calculated == expected


class NMEAParser:
    """Stateful NMEA parser that merges sentences into one fix."""

    def __init__(
        self,
        on_fix_update: Optional[FixCallback] = None,
        validate_checksums: bool = True,
    ):
        self._fix = GPSFix()
        self._last_date: Optional[dt.date] = None
        self._on_fix_update = on_fix_update
        self._validate_checksums = validate_checksums
        self._handlers: Dict[str, Callable[[list[str]], Optional[Dict[str, Any]]]] = {
            "RMC": self._parse_rmc,
            "GGA": self._parse_gga,
            "GLL": self._parse_gll,
            "VTG": self._parse_vtg,
            "GSA": self._parse_gsa,
            "GSV": self._parse_gsv,
        }

    @property
    def fix(self) -> GPSFix:
        return self._fix

    def reset(self) -> None:
        self._fix = GPSFix()
        self._last_date = None

    def parse_sentence(self, sentence: str) -> Optional[Dict[str, Any]]:
        """Parse one sentence, merge it into the fix and return its values.

        Returns None for sentences that are malformed, fail the checksum,
        or are of an unsupported type.
        """
        if not sentence or not sentence.startswith("$"):
            return None
        if self._validate_checksums and not validate_checksum(sentence):
            return None

        fields = sentence[1:].split("*", 1)[0].split(",")
        sentence_type = fields[0][-3:].upper()
        handler = self._handlers.get(sentence_type)
        if handler is None:
            return None

        data = handler(fields[1:])
        if data is None:
            return None

        data["sentence_type"] = sentence_type
        data["raw_sentence"] = sentence
        self._merge(data)

        if self._on_fix_update:
            self._on_fix_update(self._fix, data)
        return data

    def _timestamp(self, time_obj: Optional[dt.time]) -> Optional[dt.datetime]:
        if time_obj is None:
            return self._fix.timestamp
        date_obj = self._last_date
        if date_obj is None and self._fix.timestamp is not None:
            date_obj = self._fix.timestamp.date()
        if date_obj is None:
            date_obj = dt.datetime.now(dt.timezone.utc).date()
        return dt.datetime.combine(date_obj, time_obj)

    def _merge(self, data: Dict[str, Any]) -> None:
        fix = self._fix

        lat, lon = data.get("latitude"), data.get("longitude")
        if lat is not None and lon is not None:
            fix.latitude, fix.longitude = lat, lon

        if "fix_valid" in data:
            fix.fix_valid = bool(data["fix_valid"])
        if data.get("fix_mode"):
            fix.fix_mode = data["fix_mode"]

        for name in (
            "timestamp", "fix_quality", "satellites_in_use", "satellites_in_view",
            "altitude_m", "hdop", "pdop", "vdop", "course_deg",
        ):
            value = data.get(name)
            if value is not None:
                setattr(fix, name, value)

        if data.get("speed_knots") is not None:
            fix.speed_knots = data["speed_knots"]
            fix.speed_kmh = fix.speed_knots * KMH_PER_KNOT
        elif data.get("speed_kmh") is not None:
            fix.speed_kmh = data["speed_kmh"]
            fix.speed_knots = fix.speed_kmh / KMH_PER_KNOT

        fix.last_sentence = data["sentence_type"]
        fix.last_update_monotonic = time.monotonic()

    # ------------------------------------------------------------------
    # Sentence handlers; ``f`` excludes the header field
    # ------------------------------------------------------------------

    def _parse_rmc(self, f: list[str]) -> Optional[Dict[str, Any]]:
        if len(f) < 9:
            return None
        date_obj = _parse_date(f[8])
        if date_obj:
            self._last_date = date_obj
        return {
            "timestamp": self._timestamp(_parse_time(f[0])),
            "fix_valid": f[1].upper() == "A",
            "latitude": parse_coordinate(f[2], f[3], is_lat=True),
            "longitude": parse_coordinate(f[4], f[5], is_lat=False),
            "speed_knots": _to_float(f[6]),
            "course_deg": _to_float(f[7]),
        }

    def _parse_gga(self, f: list[str]) -> Optional[Dict[str, Any]]:
        if len(f) < 9:
            return None
        quality = _to_int(f[5])
        return {
            "timestamp": self._timestamp(_parse_time(f[0])),
            "latitude": parse_coordinate(f[1], f[2], is_lat=True),
            "longitude": parse_coordinate(f[3], f[4], is_lat=False),
            "fix_quality": quality,
            "fix_valid": (quality or 0) > 0,
            "satellites_in_use": _to_int(f[6]),
            "hdop": _to_float(f[7]),
            "altitude_m": _to_float(f[8]),
        }

    def _parse_gll(self, f: list[str]) -> Optional[Dict[str, Any]]:
        if len(f) < 5:
            return None
        status = f[5].upper() if len(f) > 5 else ""
        return {
            "latitude": parse_coordinate(f[0], f[1], is_lat=True),
            "longitude": parse_coordinate(f[2], f[3], is_lat=False),
            "timestamp": self._timestamp(_parse_time(f[4])),
            "fix_valid": status == "A",
        }

    def _parse_vtg(self, f: list[str]) -> Optional[Dict[str, Any]]:
        if len(f) < 7:
            return None
        return {
            "course_deg": _to_float(f[0]),
            "speed_knots": _to_float(f[4]),
            "speed_kmh": _to_float(f[6]),
        }

    def _parse_gsa(self, f: list[str]) -> Optional[Dict[str, Any]]:
        if len(f) < 17:
            return None
        return {
            "fix_mode": FIX_MODE_MAP.get(_to_int(f[1]) or 0),
            "pdop": _to_float(f[14]),
            "hdop": _to_float(f[15]),
            "vdop": _to_float(f[16]),
        }

    def _parse_gsv(self, f: list[str]) -> Optional[Dict[str, Any]]:
        if len(f) < 3:
            return None
        return {"satellites_in_view": _to_int(f[2])}
