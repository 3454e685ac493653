"""Satellite catalog: merging, filtering, searching and visibility.

Joins element sets (TLE feed) with catalog metadata (SATCAT feed) into
:class:`Satellite` records keyed by NORAD id, classifies each record's
orbital regime, and answers "which of these is above my horizon right now".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import pandas as pd

from .geometry import (
    DegenerateGeometryError,
    ObservationAngles,
    ObserverLocation,
    observe,
)
from .propagate import PropagationError, propagate
from .regime import OrbitalRegime, classify
from .tle_parser import TLE

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SatcatRecord:
    """One SATCAT metadata entry. Missing numeric fields read as 0."""

    norad_id: int
    name: str = ""
    id: str = ""
    intl_id: str = ""
    launch_date: str = ""
    decay_date: str = ""
    object_type: str = ""
    owner: str = ""
    launch_site: str = ""
    period: float = 0.0
    inclination: float = 0.0
    apogee: float = 0.0
    perigee: float = 0.0
    rcs_size: str = ""

    @staticmethod
    def from_dict(data: dict) -> SatcatRecord:
        """Build a record from a SATCAT JSON object (camelCase keys)."""
        return SatcatRecord(
            norad_id=int(data.get("noradId") or 0),
            name=data.get("name") or "",
            id=str(data.get("id") or ""),
            intl_id=data.get("intlId") or "",
            launch_date=data.get("launchDate") or "",
            decay_date=data.get("decayDate") or "",
            object_type=data.get("objectType") or "",
            owner=data.get("owner") or "",
            launch_site=data.get("launchSite") or "",
            period=float(data.get("period") or 0.0),
            inclination=float(data.get("inclination") or 0.0),
            apogee=float(data.get("apogee") or 0.0),
            perigee=float(data.get("perigee") or 0.0),
            rcs_size=data.get("rcsSize") or "",
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "intlId": self.intl_id,
            "name": self.name,
            "noradId": self.norad_id,
            "launchDate": self.launch_date,
            "decayDate": self.decay_date,
            "objectType": self.object_type,
            "owner": self.owner,
            "launchSite": self.launch_site,
            "period": self.period,
            "inclination": self.inclination,
            "apogee": self.apogee,
            "perigee": self.perigee,
            "rcsSize": self.rcs_size,
        }


@dataclass(slots=True)
class Satellite:
    """An element set merged with its catalog metadata (if any)."""

    norad_id: int
    tle: Optional[TLE]
    satcat: Optional[SatcatRecord] = None
    name: str = ""
    intl_id: str = ""
    object_type: str = ""
    owner: str = ""
    launch_date: str = ""
    decay_date: str = ""
    launch_site: str = ""
    period: float = 0.0
    inclination: float = 0.0
    apogee: float = 0.0
    perigee: float = 0.0
    rcs_size: str = ""
    orbit_regime: OrbitalRegime = OrbitalRegime.UNKNOWN

    @property
    def display_name(self) -> str:
        return self.name or (self.tle.name if self.tle and self.tle.name else "UNKNOWN")


@dataclass
class SearchCriteria:
    """Multi-criteria search. Empty strings are ignored.

    Attributes:
        name: Partial, case-insensitive name match.
        owner: Partial, case-insensitive owner/country code match.
        object_type: Partial, case-insensitive type match.
        regime: Exact, case-insensitive regime tag.
    """
    name: str = ""
    owner: str = ""
    object_type: str = ""
    regime: str = ""


@dataclass
class VisibilityCriteria(SearchCriteria):
    """Search criteria plus an elevation window (degrees, inclusive)."""
    min_elevation: float = 10.0
    max_elevation: float = 90.0


@dataclass(slots=True)
class VisibleSatellite:
    satellite: Satellite
    angles: ObservationAngles

    def to_dict(self) -> dict:
        return {
            "norad_id": self.satellite.norad_id,
            "name": self.satellite.display_name,
            "regime": self.satellite.orbit_regime.value,
            **self.angles.to_dict(),
        }


@dataclass
class Catalog:
    """A catalog snapshot: raw feeds plus the time they were fetched.

    Attributes:
        tles: Element sets from the TLE feed.
        satcats: Metadata records from the SATCAT feed.
        fetched_at: Fetch time (UTC).
        satellites: Merged records, derived on construction.
    """
    tles: list[TLE]
    satcats: list[SatcatRecord]
    fetched_at: datetime
    satellites: list[Satellite] = field(init=False)

    def __post_init__(self) -> None:
        self.satellites = merge_satellite_data(self.tles, self.satcats)

    def to_dict(self) -> dict:
        return {
            "tles": [t.to_dict() for t in self.tles],
            "satcats": [s.to_dict() for s in self.satcats],
            "fetched_at": self.fetched_at.isoformat(),
        }

    @staticmethod
    def from_dict(data: dict) -> Catalog:
        return Catalog(
            tles=[TLE.from_dict(t) for t in data.get("tles") or []],
            satcats=[SatcatRecord.from_dict(s) for s in data.get("satcats") or []],
            fetched_at=datetime.fromisoformat(data["fetched_at"]),
        )


def merge_satellite_data(
    tles: list[TLE],
    satcats: list[SatcatRecord],
) -> list[Satellite]:
    """Join element sets with catalog metadata by NORAD id.

    The TLE feed is the primary key: metadata without an element set is
    dropped. Objects without metadata get an empty name and an UNKNOWN
    regime.

    Returns:
        Merged satellites sorted by NORAD id.
    """
    tle_map = {t.norad_id: t for t in tles if t.norad_id > 0}
    satcat_map = {s.norad_id: s for s in satcats}

    satellites: list[Satellite] = []
    for norad_id, tle in tle_map.items():
        satcat = satcat_map.get(norad_id)
        if satcat is None:
            satellites.append(Satellite(norad_id=norad_id, tle=tle))
            continue

        satellites.append(Satellite(
            norad_id=norad_id,
            tle=tle,
            satcat=satcat,
            name=satcat.name,
            intl_id=satcat.intl_id,
            object_type=satcat.object_type,
            owner=satcat.owner,
            launch_date=satcat.launch_date,
            decay_date=satcat.decay_date,
            launch_site=satcat.launch_site,
            period=satcat.period,
            inclination=satcat.inclination,
            apogee=satcat.apogee,
            perigee=satcat.perigee,
            rcs_size=satcat.rcs_size,
            orbit_regime=classify(
                satcat.apogee, satcat.perigee, satcat.period, satcat.inclination
            ),
        ))

    logger.debug(
        "Merged %d TLEs and %d SATCAT records into %d satellites",
        len(tles),
        len(satcats),
        len(satellites),
    )
    return sorted(satellites, key=lambda s: s.norad_id)


def filter_satellites(
    satellites: list[Satellite],
    norad_id: int = 0,
    name: str = "",
) -> list[Satellite]:
    """Select by exact NORAD id and/or exact, case-insensitive name.

    With neither given, every satellite is returned.
    """
    if not norad_id and not name:
        return satellites

    name_lower = name.lower()
    return [
        sat for sat in satellites
        if (not norad_id or sat.norad_id == norad_id)
        and (not name or sat.name.lower() == name_lower)
    ]


def search_satellites(
    satellites: list[Satellite],
    criteria: SearchCriteria,
) -> list[Satellite]:
    """Multi-criteria search, sorted by NORAD id."""
    name = criteria.name.lower()
    owner = criteria.owner.upper()
    object_type = criteria.object_type.lower()
    regime = criteria.regime.upper()

    results = [
        sat for sat in satellites
        if (not name or name in sat.name.lower())
        and (not owner or owner in sat.owner.upper())
        and (not object_type or object_type in sat.object_type.lower())
        and (not regime or sat.orbit_regime.value == regime)
    ]
    return sorted(results, key=lambda s: s.norad_id)


def find_visible_satellites(
    satellites: list[Satellite],
    observer: ObserverLocation,
    timestamp: datetime,
    criteria: Optional[VisibilityCriteria] = None,
) -> list[VisibleSatellite]:
    """Find satellites inside an elevation window at a given time.

    Search criteria are applied first. Objects that fail to propagate are
    skipped.

    Returns:
        Visible satellites, highest elevation first.
    """
    criteria = criteria or VisibilityCriteria()
    candidates = search_satellites(satellites, criteria)

    visible: list[VisibleSatellite] = []
    for sat in candidates:
        if sat.tle is None:
            continue
        try:
            angles = observe(propagate(sat.tle, timestamp), observer)
        except (PropagationError, DegenerateGeometryError) as e:
            logger.debug("NORAD %d skipped: %s", sat.norad_id, e)
            continue

        if criteria.min_elevation <= angles.elevation <= criteria.max_elevation:
            visible.append(VisibleSatellite(satellite=sat, angles=angles))

    visible.sort(key=lambda v: v.angles.elevation, reverse=True)
    logger.info(
        "%d of %d candidates visible at %s", len(visible), len(candidates), timestamp
    )
    return visible


def visible_to_frame(visible: list[VisibleSatellite]) -> pd.DataFrame:
    """Tabulate a visibility report, one row per satellite."""
    if not visible:
        return pd.DataFrame()
    return pd.DataFrame([v.to_dict() for v in visible])
