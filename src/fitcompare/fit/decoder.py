"""
FIT decoder adapter: turns .fit bytes into a list of typed FitRecord values.

The binary decoding itself is done by fitparse. We only read the 'record'
messages (typically ~1 per second on a bike computer) and keep the fields
the comparison views care about.

Field mapping from FIT to FitRecord:
  FIT field             → our field
  timestamp             → timestamp (datetime, passed through)
  power                 → power (watts)
  cadence               → cadence (rpm)
  heart_rate            → heart_rate (bpm)
  speed/enhanced_speed  → speed (km/h, converted from m/s)
  altitude              → altitude (meters)
  enhanced_altitude     → enhanced_altitude (meters, higher precision)

No range checks happen here; the decoder is not trusted to validate ranges,
that is the normalizer's job.
"""
import io
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import fitparse


# fitparse reports speed in m/s; the comparison views work in km/h
_MS_TO_KMH = 3.6


class FitParseError(Exception):
    """Raised when FIT data cannot be decoded."""


@dataclass
class FitRecord:
    """
    One decoded FIT 'record' message.
    Every field is optional: devices only report what their sensors measure.
    """

    timestamp: Optional[datetime] = None
    power: Optional[float] = None              # watts
    cadence: Optional[float] = None            # rpm
    heart_rate: Optional[float] = None         # bpm
    speed: Optional[float] = None              # km/h
    altitude: Optional[float] = None           # meters
    enhanced_altitude: Optional[float] = None  # meters


def record_from_values(values: Dict[str, Any]) -> FitRecord:
    """Build a FitRecord from a fitparse ``get_values()`` dict."""
    raw_speed = values.get("speed")
    if raw_speed is None:
        raw_speed = values.get("enhanced_speed")
    speed_kmh: Optional[float] = None
    if raw_speed is not None:
        speed_kmh = float(raw_speed) * _MS_TO_KMH

    return FitRecord(
        timestamp=values.get("timestamp"),
        power=values.get("power"),
        cadence=values.get("cadence"),
        heart_rate=values.get("heart_rate"),
        speed=speed_kmh,
        altitude=values.get("altitude"),
        enhanced_altitude=values.get("enhanced_altitude"),
    )


def decode_fit_bytes(data: bytes) -> List[FitRecord]:
    """
    Decode raw .fit bytes into FitRecords, in file (time) order.

    Returns an empty list for a valid file without 'record' messages.

    Raises:
        FitParseError: if fitparse cannot read the data.
    """
    try:
        fit = fitparse.FitFile(io.BytesIO(data))
        messages = list(fit.get_messages("record"))
    except Exception as exc:
        raise FitParseError(f"Failed to decode FIT data: {exc}") from exc

    return [record_from_values(message.get_values()) for message in messages]


def decode_fit_file(path: Path) -> List[FitRecord]:
    """
    Decode a .fit file on disk.

    Raises:
        FitParseError: if the file doesn't exist or is not a valid FIT file.
    """
    if not path.exists():
        raise FitParseError(f"FIT file not found: {path}")
    return decode_fit_bytes(path.read_bytes())
