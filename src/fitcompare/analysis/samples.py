"""
Sample dataclass, record normalization and series assembly.

Sample is the universal in-memory representation used by the stats engine,
the chart exporter and the API. It is a plain Python dataclass with every
field filled in: missing readings become 0 rather than None, so consumers
never have to guard against absent values.

A SampleSeries is one file's samples; a comparison set is a list of series
in the order the caller asked for them.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Sequence, Tuple

from fitcompare.fit.decoder import FitParseError, FitRecord
from fitcompare.storage.local import StorageNotFoundError

logger = logging.getLogger(__name__)

# Speed outside this band is a unit-conversion glitch or GPS spike
SPEED_MIN_KMH = 0.0
SPEED_MAX_KMH = 100.0

# Earth's surface elevation range plus margin
ALTITUDE_MIN_M = -500.0
ALTITUDE_MAX_M = 9000.0

# Errors that mean "this file can't be part of the comparison"
SOURCE_ERRORS = (StorageNotFoundError, FitParseError)


@dataclass
class Sample:
    """One time-sampled observation from an activity."""

    index: int                 # position in the series, not a wall-clock time
    power: float = 0           # watts
    cadence: float = 0         # rpm
    heart_rate: float = 0      # bpm
    speed: float = 0           # km/h
    altitude: float = 0        # meters
    timestamp: Any = None      # decoder-supplied, never reinterpreted


@dataclass
class SampleSeries:
    """Ordered samples from one source file."""

    name: str
    samples: List[Sample] = field(default_factory=list)


RecordSource = Callable[[], Sequence[FitRecord]]


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def normalize_record(record: FitRecord, index: int) -> Sample:
    """
    Map one decoded record to a fixed-shape Sample.

    Absent (or zero) readings default to 0. Speed is clamped to
    [0, 100] km/h; altitude prefers the enhanced field and is clamped
    to [-500, 9000] m. Never raises.
    """
    altitude = record.enhanced_altitude
    if altitude is None:
        altitude = record.altitude

    return Sample(
        index=index,
        power=record.power or 0,
        cadence=record.cadence or 0,
        heart_rate=record.heart_rate or 0,
        speed=_clamp(record.speed, SPEED_MIN_KMH, SPEED_MAX_KMH) if record.speed else 0,
        altitude=_clamp(altitude, ALTITUDE_MIN_M, ALTITUDE_MAX_M) if altitude else 0,
        timestamp=record.timestamp,
    )


def assemble_series(name: str, records: Iterable[FitRecord]) -> SampleSeries:
    """Normalize records in input order; ``samples[i].index == i``."""
    return SampleSeries(
        name=name,
        samples=[normalize_record(record, i) for i, record in enumerate(records)],
    )


def assemble_comparison_set(
    requests: Iterable[Tuple[str, RecordSource]],
) -> List[SampleSeries]:
    """
    Build one SampleSeries per (name, record_source) pair, in request order.

    A source that raises StorageNotFoundError or FitParseError is skipped:
    one bad or missing file must not block viewing the others. Any other
    exception propagates.
    """
    comparison: List[SampleSeries] = []
    for name, source in requests:
        try:
            records = source()
        except SOURCE_ERRORS as exc:
            logger.warning("Skipping %r in comparison: %s", name, exc)
            continue
        comparison.append(assemble_series(name, records))
    return comparison
