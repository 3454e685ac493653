"""Visibility pass detection.

Groups a time-ordered series of look angles into passes: maximal runs of
consecutive samples at or above a minimum elevation. A pass is a sampled
approximation of the rise-to-set arc; its first and last samples are only
as close to the true rise and set times as the sampling step allows.

The scan is a two-state machine (IDLE / ACCUMULATING) exposed as
:class:`PassScanner`, so a caller can either hand it a full series via
:func:`find_passes` or feed it one sample at a time (e.g. a live tracking
loop that observes once per wall-clock tick).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum, auto
from typing import Iterable, Optional

import pandas as pd

from .geometry import ObservationAngles

logger = logging.getLogger(__name__)


class ScanState(Enum):
    """State of a :class:`PassScanner`."""
    IDLE = auto()
    ACCUMULATING = auto()


@dataclass(frozen=True, slots=True)
class Pass:
    """A contiguous run of samples at or above the elevation threshold.

    Attributes:
        samples: Look angles in time order. Never empty.
    """

    samples: tuple[ObservationAngles, ...]

    def __post_init__(self) -> None:
        if not self.samples:
            raise ValueError("A pass must contain at least one sample")

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def start(self):
        return self.samples[0].time

    @property
    def end(self):
        return self.samples[-1].time

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def culmination(self) -> ObservationAngles:
        """Sample with the highest elevation (earliest one on ties)."""
        return max(self.samples, key=lambda s: s.elevation)

    @property
    def max_elevation(self) -> float:
        return self.culmination.elevation

    @property
    def rise_azimuth(self) -> float:
        return self.samples[0].azimuth

    @property
    def set_azimuth(self) -> float:
        return self.samples[-1].azimuth

    def to_dict(self) -> dict:
        """Flatten to a summary dictionary suitable for DataFrame construction."""
        peak = self.culmination
        return {
            "start": self.start,
            "end": self.end,
            "duration_s": self.duration.total_seconds(),
            "max_elevation_deg": round(peak.elevation, 2),
            "culmination": peak.time,
            "rise_azimuth_deg": round(self.rise_azimuth, 2),
            "set_azimuth_deg": round(self.set_azimuth, 2),
            "min_range_km": round(min(s.range for s in self.samples), 2),
            "samples": len(self.samples),
        }


class PassScanner:
    """Incremental pass detector.

    Args:
        min_elevation: Elevation threshold (degrees). Samples with
            ``elevation >= min_elevation`` belong to a pass.

    Example:
        >>> scanner = PassScanner(10.0)
        >>> for sample in samples:
        ...     closed = scanner.feed(sample)
        ...     if closed:
        ...         print(closed.max_elevation)
        >>> last = scanner.finish()
    """

    def __init__(self, min_elevation: float) -> None:
        self.min_elevation = min_elevation
        self.state = ScanState.IDLE
        self._buffer: Optional[list[ObservationAngles]] = None

    def feed(self, sample: ObservationAngles) -> Optional[Pass]:
        """Advance the machine by one sample.

        Returns:
            The pass closed by this sample, or ``None``.
        """
        if sample.elevation >= self.min_elevation:
            if self.state is ScanState.IDLE:
                self.state = ScanState.ACCUMULATING
                self._buffer = []
            self._buffer.append(sample)
            return None

        if self.state is ScanState.ACCUMULATING:
            return self._close()
        return None

    def finish(self) -> Optional[Pass]:
        """Emit the open pass, if any, and return to IDLE."""
        if self.state is ScanState.ACCUMULATING:
            return self._close()
        return None

    @property
    def current(self) -> tuple[ObservationAngles, ...]:
        """Samples of the pass in progress (empty when IDLE)."""
        return tuple(self._buffer) if self._buffer else ()

    def _close(self) -> Pass:
        completed = Pass(tuple(self._buffer))
        self._buffer = None
        self.state = ScanState.IDLE
        logger.debug(
            "Pass closed: %s → %s, %d samples, max el %.1f°",
            completed.start,
            completed.end,
            len(completed),
            completed.max_elevation,
        )
        return completed


def find_passes(
    samples: Iterable[ObservationAngles],
    min_elevation: float,
) -> list[Pass]:
    """Split a time-ordered series of look angles into visibility passes.

    Input order is trusted; samples are not re-sorted. A pass still open
    when the input ends is returned as the last pass.

    Args:
        samples: Look angles in time order.
        min_elevation: Elevation threshold (degrees).

    Returns:
        Passes in input order.
    """
    scanner = PassScanner(min_elevation)
    passes: list[Pass] = []

    for sample in samples:
        closed = scanner.feed(sample)
        if closed is not None:
            passes.append(closed)

    last = scanner.finish()
    if last is not None:
        passes.append(last)

    return passes


def passes_to_frame(passes: list[Pass]) -> pd.DataFrame:
    """Summarize passes as a DataFrame, one row per pass."""
    if not passes:
        return pd.DataFrame()
    return pd.DataFrame([p.to_dict() for p in passes])
