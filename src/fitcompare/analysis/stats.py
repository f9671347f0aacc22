"""
Aggregate statistics for one SampleSeries.

Zero is treated as "no reading": every metric array is filtered to drop
zeros before anything is averaged, so a coasting second (power 0) or a
heart-rate strap dropout does not drag the averages down. Downstream
numbers depend on this, keep it.

Weighted power is the familiar normalized-power heuristic:
  1. Rolling 30-sample mean of the (filtered) power array
  2. Raise each window mean to the 4th power
  3. Average those values and take the 4th root
Window starts run over 0 .. n-31, so the last 30 samples are never a window
start (they only appear inside earlier windows).

Insufficient data is reported as None instead of NaN: an empty filtered
array gives None for every average derived from it, and a power array with
30 or fewer non-zero samples has no windows, so weighted power is None.
"""
import math
from dataclasses import dataclass
from statistics import mean
from typing import List, Optional, Sequence

from fitcompare.analysis.samples import SampleSeries

WEIGHTED_POWER_WINDOW = 30

# Each sample is treated as one elapsed second (1 Hz recording)
SECONDS_PER_HOUR = 3600


@dataclass
class AggregateStatRow:
    """Summary statistics for one file. None = insufficient data."""

    file_name: str
    avg_power: Optional[int]        # watts
    weighted_power: Optional[int]   # watts
    max_power: Optional[int]        # watts
    avg_heart_rate: Optional[int]   # bpm
    avg_cadence: Optional[int]      # rpm
    avg_speed: Optional[float]      # km/h, 1 decimal
    distance: float                 # km, 2 decimals
    ascent: int                     # meters


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like the chart front-end does: .5 always rounds toward +inf."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _round_int(value: Optional[float]) -> Optional[int]:
    if value is None:
        return None
    return int(round_half_up(value))


def _nonzero(values: Sequence[float]) -> List[float]:
    return [v for v in values if v]


def _mean_or_none(values: Sequence[float]) -> Optional[float]:
    return mean(values) if values else None


def weighted_power(
    power: Sequence[float], window: int = WEIGHTED_POWER_WINDOW
) -> Optional[float]:
    """4th-power mean of rolling window averages; None if no window fits."""
    rolled = [
        (sum(power[i:i + window]) / window) ** 4
        for i in range(len(power) - window)
    ]
    if not rolled:
        return None
    return mean(rolled) ** 0.25


def total_ascent(altitude: Sequence[float]) -> float:
    """Sum of positive elevation changes; descents contribute nothing."""
    return sum(
        max(0.0, altitude[i] - altitude[i - 1]) for i in range(1, len(altitude))
    )


def total_distance_km(speed: Sequence[float]) -> float:
    """Distance assuming one sample per second at the given km/h."""
    return sum(s / SECONDS_PER_HOUR for s in speed)


def compute_stats(series: SampleSeries) -> AggregateStatRow:
    """Summarize one series for the stats table."""
    power = _nonzero([s.power for s in series.samples])
    heart_rate = _nonzero([s.heart_rate for s in series.samples])
    cadence = _nonzero([s.cadence for s in series.samples])
    speed = _nonzero([s.speed for s in series.samples])
    altitude = _nonzero([s.altitude for s in series.samples])

    avg_speed = _mean_or_none(speed)

    return AggregateStatRow(
        file_name=series.name,
        avg_power=_round_int(_mean_or_none(power)),
        weighted_power=_round_int(weighted_power(power)),
        max_power=_round_int(max(power) if power else None),
        avg_heart_rate=_round_int(_mean_or_none(heart_rate)),
        avg_cadence=_round_int(_mean_or_none(cadence)),
        avg_speed=round_half_up(avg_speed, 1) if avg_speed is not None else None,
        distance=round_half_up(total_distance_km(speed), 2),
        ascent=int(round_half_up(total_ascent(altitude))),
    )
