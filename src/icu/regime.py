"""Coarse orbital regime classification from catalog parameters."""

from __future__ import annotations

from enum import Enum
from typing import Optional

R_EARTH_MEAN = 6371.0
"""Mean Earth radius (km). The regime bands were tuned against this value."""

GEO_ALTITUDE_KM = 35786.0
GEO_PERIOD_MIN = 1436.0

GEO_ALTITUDE_TOLERANCE_KM = 500.0
GEO_PERIOD_TOLERANCE_MIN = 30.0
GEO_INCLINATION_TOLERANCE_DEG = 5.0

LEO_CEILING_KM = 2000.0
HEO_ECCENTRICITY = 0.25


class OrbitalRegime(Enum):
    """Orbital regime tags. Values are the tags used in filters and JSON."""

    LEO = "LEO"
    MEO = "MEO"
    GEO = "GEO"
    HEO = "HEO"
    UNKNOWN = "UNKNOWN"


def classify(
    apogee_km: Optional[float],
    perigee_km: Optional[float],
    period_min: Optional[float],
    inclination_deg: Optional[float],
) -> OrbitalRegime:
    """Classify an orbit from its apogee, perigee, period and inclination.

    Eccentricity is tested before altitude: a highly elliptical orbit can
    have an average altitude inside the LEO or MEO band.

    Missing values count as zero. Non-positive apogee, perigee or period
    yield ``UNKNOWN``; this function never raises.

    Args:
        apogee_km: Apogee altitude (km).
        perigee_km: Perigee altitude (km).
        period_min: Orbital period (minutes).
        inclination_deg: Inclination (degrees).

    Returns:
        The orbital regime.
    """
    apogee = apogee_km or 0.0
    perigee = perigee_km or 0.0
    period = period_min or 0.0
    inclination = inclination_deg or 0.0

    if apogee <= 0 or perigee <= 0 or period <= 0:
        return OrbitalRegime.UNKNOWN

    semi_major_axis = ((apogee + R_EARTH_MEAN) + (perigee + R_EARTH_MEAN)) / 2.0
    avg_altitude = semi_major_axis - R_EARTH_MEAN

    eccentricity = (apogee - perigee) / (apogee + perigee + 2 * R_EARTH_MEAN)
    if eccentricity > HEO_ECCENTRICITY:
        return OrbitalRegime.HEO

    if (
        abs(avg_altitude - GEO_ALTITUDE_KM) < GEO_ALTITUDE_TOLERANCE_KM
        and abs(period - GEO_PERIOD_MIN) < GEO_PERIOD_TOLERANCE_MIN
        and abs(inclination) < GEO_INCLINATION_TOLERANCE_DEG
    ):
        return OrbitalRegime.GEO

    if avg_altitude < LEO_CEILING_KM:
        return OrbitalRegime.LEO
    if avg_altitude < GEO_ALTITUDE_KM:
        return OrbitalRegime.MEO

    # Drifting or transfer objects at/above GEO altitude
    return OrbitalRegime.GEO
