"""SGP4 propagation adapter.

Wraps the ``sgp4`` package: runs SGP4 for an element set at a timestamp and
rotates the TEME output into the Earth-fixed frame expected by
:mod:`icu.geometry`. Also provides the time-stepping helpers that build
look-angle series for pass prediction.

A single failing sample (decayed object, diverging integration) is skipped
by the stepping helpers rather than aborting the whole series.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from functools import lru_cache

from sgp4.api import SGP4_ERRORS, WGS72, Satrec, jday

from .geometry import (
    DegenerateGeometryError,
    ObservationAngles,
    ObserverLocation,
    StateVector,
    observe,
)
from .passes import Pass, find_passes
from .tle_parser import TLE

logger = logging.getLogger(__name__)

EARTH_ROTATION_RATE = 7.292115146706979e-5
"""Earth rotation rate (rad/s)."""


class PropagationError(RuntimeError):
    """SGP4 could not produce a state for an element set at a given time."""

    def __init__(self, norad_id: int, timestamp: datetime, code: int, message: str):
        self.norad_id = norad_id
        self.timestamp = timestamp
        self.code = code
        super().__init__(
            f"SGP4 error {code} for NORAD {norad_id} at {timestamp:%Y-%m-%d %H:%M:%S}: "
            f"{message}"
        )


@lru_cache(maxsize=4096)
def _satrec(line1: str, line2: str) -> Satrec:
    return Satrec.twoline2rv(line1, line2, WGS72)


def _as_utc(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None or timestamp.utcoffset() is None:
        raise ValueError(f"Timestamp must be timezone-aware, got {timestamp!r}")
    return timestamp.astimezone(timezone.utc)


def _julian_date(timestamp: datetime) -> tuple[float, float]:
    t = _as_utc(timestamp)
    return jday(
        t.year, t.month, t.day, t.hour, t.minute, t.second + t.microsecond / 1e6
    )


def gmst(timestamp: datetime) -> float:
    """Greenwich Mean Sidereal Time (radians, IAU-82 model)."""
    jd, fr = _julian_date(timestamp)
    t = (jd - 2451545.0 + fr) / 36525.0
    gmst_sec = (
        67310.54841
        + (876600.0 * 3600.0 + 8640184.812866) * t
        + 0.093104 * t**2
        - 6.2e-6 * t**3
    )
    return (gmst_sec % 86400.0) / 86400.0 * 2.0 * math.pi


def teme_to_ecef(
    position: tuple[float, float, float],
    velocity: tuple[float, float, float],
    timestamp: datetime,
) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
    """Rotate a TEME state into ECEF (polar motion neglected).

    Returns:
        ``(position_km, velocity_km_s)`` in the Earth-fixed frame.
    """
    theta = gmst(timestamp)
    c, s = math.cos(theta), math.sin(theta)

    x = c * position[0] + s * position[1]
    y = -s * position[0] + c * position[1]
    z = position[2]

    # Velocity also picks up the frame rotation: v_ecef = R·v - ω × r_ecef
    vx = c * velocity[0] + s * velocity[1] + EARTH_ROTATION_RATE * y
    vy = -s * velocity[0] + c * velocity[1] - EARTH_ROTATION_RATE * x
    vz = velocity[2]

    return (x, y, z), (vx, vy, vz)


def propagate(tle: TLE, timestamp: datetime) -> StateVector:
    """Propagate an element set to a timestamp.

    Args:
        tle: Element set.
        timestamp: Timezone-aware target time.

    Returns:
        ECEF state vector at ``timestamp``.

    Raises:
        PropagationError: If SGP4 rejects the element set or fails to converge.
        ValueError: If ``timestamp`` is naive.
    """
    jd, fr = _julian_date(timestamp)

    try:
        sat = _satrec(tle.line1, tle.line2)
    except ValueError as e:
        raise PropagationError(tle.norad_id, timestamp, -1, str(e)) from e

    code, r_teme, v_teme = sat.sgp4(jd, fr)
    if code != 0:
        raise PropagationError(
            tle.norad_id,
            timestamp,
            code,
            SGP4_ERRORS.get(code, "unknown error"),
        )

    position, velocity = teme_to_ecef(r_teme, v_teme, timestamp)
    return StateVector(time=timestamp, position=position, velocity=velocity)


def _time_steps(start: datetime, end: datetime, step: timedelta):
    if end < start:
        raise ValueError("end time must be after start time")
    if step <= timedelta(0):
        raise ValueError(f"step must be positive, got {step}")

    t = start
    while t <= end:
        yield t
        t += step


def propagate_range(
    tle: TLE,
    start: datetime,
    end: datetime,
    step: timedelta,
) -> list[StateVector]:
    """Propagate over ``[start, end]`` at a fixed step.

    Samples that fail to propagate are logged and left out.
    """
    states: list[StateVector] = []
    for t in _time_steps(start, end, step):
        try:
            states.append(propagate(tle, t))
        except PropagationError as e:
            logger.debug("Skipping sample: %s", e)
    return states


def observe_range(
    tle: TLE,
    observer: ObserverLocation,
    start: datetime,
    end: datetime,
    step: timedelta,
) -> list[ObservationAngles]:
    """Build a look-angle series over ``[start, end]`` at a fixed step.

    A sample that fails to propagate, or whose geometry is degenerate, is
    skipped; the rest of the series is kept.
    """
    samples: list[ObservationAngles] = []
    skipped = 0

    for t in _time_steps(start, end, step):
        try:
            samples.append(observe(propagate(tle, t), observer))
        except (PropagationError, DegenerateGeometryError) as e:
            skipped += 1
            logger.debug("Skipping sample: %s", e)

    if skipped:
        logger.warning(
            "NORAD %d: skipped %d of %d samples",
            tle.norad_id,
            skipped,
            skipped + len(samples),
        )
    return samples


def predict_passes(
    tle: TLE,
    observer: ObserverLocation,
    start: datetime,
    end: datetime,
    step: timedelta = timedelta(seconds=30),
    min_elevation: float = 10.0,
) -> list[Pass]:
    """Predict visibility passes of an object over a time window.

    Args:
        tle: Element set.
        observer: Ground observer.
        start: Window start (timezone-aware).
        end: Window end (timezone-aware, inclusive).
        step: Sampling step; bounds the rise/set time accuracy.
        min_elevation: Elevation threshold (degrees).

    Returns:
        Passes in time order.
    """
    samples = observe_range(tle, observer, start, end, step)
    passes = find_passes(samples, min_elevation)
    logger.info(
        "NORAD %d: %d passes above %.1f° between %s and %s",
        tle.norad_id,
        len(passes),
        min_elevation,
        start,
        end,
    )
    return passes
