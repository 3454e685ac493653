"""Observer-relative geometry.

Converts Earth-fixed satellite state vectors into topocentric
(east, north, up) coordinates and the look angles derived from them:
azimuth, elevation, range and range-rate.

References:
    - NIMA TR8350.2, "Department of Defense World Geodetic System 1984".
    - Vallado, D. (2013). Fundamentals of Astrodynamics and Applications,
      section 3.4 (site-track coordinates).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime

import numpy as np

logger = logging.getLogger(__name__)

# ── WGS84 ellipsoid ──

WGS84_A = 6378.137
"""Semi-major axis (km)."""

WGS84_F = 1.0 / 298.257223563
"""Flattening."""

WGS84_E2 = 2.0 * WGS84_F - WGS84_F**2
"""First eccentricity squared."""

_HORIZONTAL_EPS_KM = 1e-9


class DegenerateGeometryError(ValueError):
    """The observer and the object coincide, so no look angles exist."""


Vector3 = tuple[float, float, float]


@dataclass(frozen=True, slots=True)
class StateVector:
    """Position and velocity of an object in the Earth-fixed frame.

    Attributes:
        time: Timezone-aware timestamp of the state.
        position: ECEF position (km).
        velocity: ECEF velocity (km/s).
    """

    time: datetime
    position: Vector3
    velocity: Vector3


@dataclass(frozen=True, slots=True)
class ObserverLocation:
    """Geodetic location of a ground observer.

    Attributes:
        latitude: Geodetic latitude (degrees, -90..90).
        longitude: Longitude (degrees, east positive).
        altitude: Height above the WGS84 ellipsoid (meters).
    """

    latitude: float
    longitude: float
    altitude: float = 0.0

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(
                f"Latitude must be within [-90, 90] degrees, got {self.latitude}"
            )


@dataclass(frozen=True, slots=True)
class ObservationAngles:
    """Look angles of an object as seen by an observer.

    Attributes:
        time: Timestamp of the underlying state vector.
        azimuth: Degrees clockwise from north, in [0, 360).
        elevation: Degrees above the local horizon, in [-90, 90].
        range: Slant range (km).
        range_rate: Rate of change of range (km/s); negative when approaching.
    """

    time: datetime
    azimuth: float
    elevation: float
    range: float
    range_rate: float

    def to_dict(self) -> dict:
        return {
            "time": self.time,
            "azimuth_deg": round(self.azimuth, 3),
            "elevation_deg": round(self.elevation, 3),
            "range_km": round(self.range, 3),
            "range_rate_km_s": round(self.range_rate, 4),
        }


def geodetic_to_ecef(observer: ObserverLocation) -> np.ndarray:
    """Convert a geodetic location to ECEF Cartesian coordinates (km)."""
    lat = math.radians(observer.latitude)
    lon = math.radians(observer.longitude)
    alt_km = observer.altitude / 1000.0

    sin_lat = math.sin(lat)
    cos_lat = math.cos(lat)
    n = WGS84_A / math.sqrt(1.0 - WGS84_E2 * sin_lat * sin_lat)

    return np.array([
        (n + alt_km) * cos_lat * math.cos(lon),
        (n + alt_km) * cos_lat * math.sin(lon),
        (n * (1.0 - WGS84_E2) + alt_km) * sin_lat,
    ])


def enu_rotation(observer: ObserverLocation) -> np.ndarray:
    """Rotation matrix taking ECEF vectors into the observer's ENU frame.

    Rows are the local east, north and up unit vectors expressed in ECEF.
    """
    lat = math.radians(observer.latitude)
    lon = math.radians(observer.longitude)
    sin_lat, cos_lat = math.sin(lat), math.cos(lat)
    sin_lon, cos_lon = math.sin(lon), math.cos(lon)

    return np.array([
        [-sin_lon, cos_lon, 0.0],
        [-sin_lat * cos_lon, -sin_lat * sin_lon, cos_lat],
        [cos_lat * cos_lon, cos_lat * sin_lon, sin_lat],
    ])


def to_topocentric(
    state: StateVector,
    observer: ObserverLocation,
) -> tuple[float, float, float]:
    """Express an object's position relative to an observer in ENU.

    Args:
        state: Object state in the Earth-fixed frame.
        observer: Ground observer.

    Returns:
        ``(east, north, up)`` components of the line of sight (km).
    """
    delta = np.asarray(state.position, dtype=float) - geodetic_to_ecef(observer)
    east, north, up = enu_rotation(observer) @ delta
    return float(east), float(north), float(up)


def observe(state: StateVector, observer: ObserverLocation) -> ObservationAngles:
    """Compute azimuth, elevation, range and range-rate of an object.

    The velocity is rotated with the same ECEF→ENU rotation as the
    position, and projected onto the line of sight to give range-rate.

    Args:
        state: Object state in the Earth-fixed frame.
        observer: Ground observer.

    Returns:
        Look angles at ``state.time``.

    Raises:
        DegenerateGeometryError: If the object sits exactly at the observer.
    """
    east, north, up = to_topocentric(state, observer)
    range_km = math.sqrt(east * east + north * north + up * up)
    if range_km == 0.0:
        raise DegenerateGeometryError(
            f"Object coincides with observer at "
            f"({observer.latitude}, {observer.longitude}, {observer.altitude} m)"
        )

    # Azimuth is undefined straight up or down; pin it to north.
    if math.hypot(east, north) < _HORIZONTAL_EPS_KM:
        azimuth = 0.0
    else:
        azimuth = math.degrees(math.atan2(east, north))
        if azimuth < 0.0:
            azimuth += 360.0
        if azimuth >= 360.0:
            azimuth = 0.0

    sin_el = max(-1.0, min(1.0, up / range_km))
    elevation = math.degrees(math.asin(sin_el))

    v_east, v_north, v_up = enu_rotation(observer) @ np.asarray(
        state.velocity, dtype=float
    )
    range_rate = float(east * v_east + north * v_north + up * v_up) / range_km

    return ObservationAngles(
        time=state.time,
        azimuth=azimuth,
        elevation=elevation,
        range=range_km,
        range_rate=range_rate,
    )
