"""Two-Line Element set parsing.

Parses NORAD Two-Line Element sets as served by catalog feeds, keeping the
raw lines (the propagator consumes them directly) alongside the decoded
fields and a few derived quantities used for display.

References:
    - Kelso, T.S. "CelesTrak TLE Format Documentation"
      https://celestrak.org/columns/v04n03/
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

logger = logging.getLogger(__name__)

MU_EARTH = 398600.4418
"""Earth gravitational parameter (km³/s²)."""

R_EARTH = 6378.137
"""Earth equatorial radius (km)."""

MINUTES_PER_DAY = 1440.0


@dataclass(slots=True)
class TLE:
    """A parsed Two-Line Element set.

    Attributes:
        line1: Raw TLE line 1.
        line2: Raw TLE line 2.
        name: Object name from line 0 (if present).
        norad_id: NORAD catalog number.
        intl_designator: International designator.
        classification: Security classification (U/C/S).
        epoch: Element set epoch (UTC).
        mean_motion_dot: First derivative of mean motion / 2 (rev/day²).
        bstar: B* drag term (1/Earth radii).
        inclination: Inclination (degrees).
        raan: Right ascension of ascending node (degrees).
        eccentricity: Eccentricity.
        arg_perigee: Argument of perigee (degrees).
        mean_anomaly: Mean anomaly (degrees).
        mean_motion: Mean motion (rev/day).
        rev_number: Revolution number at epoch.
        semi_major_axis: Derived semi-major axis (km).
        period: Derived orbital period (minutes).
        apogee: Derived apogee altitude (km).
        perigee: Derived perigee altitude (km).
    """

    line1: str
    line2: str
    name: Optional[str]
    norad_id: int
    intl_designator: str
    classification: str
    epoch: datetime
    mean_motion_dot: float
    bstar: float
    inclination: float
    raan: float
    eccentricity: float
    arg_perigee: float
    mean_anomaly: float
    mean_motion: float
    rev_number: int

    semi_major_axis: float = field(init=False)
    period: float = field(init=False)
    apogee: float = field(init=False)
    perigee: float = field(init=False)

    def __post_init__(self) -> None:
        if self.mean_motion > 0:
            n_rad_s = self.mean_motion * 2.0 * math.pi / 86400.0
            self.semi_major_axis = (MU_EARTH / n_rad_s**2) ** (1.0 / 3.0)
            self.period = MINUTES_PER_DAY / self.mean_motion
        else:
            self.semi_major_axis = 0.0
            self.period = 0.0
        self.apogee = self.semi_major_axis * (1.0 + self.eccentricity) - R_EARTH
        self.perigee = self.semi_major_axis * (1.0 - self.eccentricity) - R_EARTH

    @property
    def altitude(self) -> float:
        """Mean altitude above the equatorial radius (km)."""
        return self.semi_major_axis - R_EARTH

    @staticmethod
    def parse(line1: str, line2: str, name: Optional[str] = None) -> TLE:
        """Parse a TLE from its two data lines.

        Args:
            line1: TLE line 1 (starts with '1').
            line2: TLE line 2 (starts with '2').
            name: Optional object name (line 0).

        Returns:
            Parsed element set.

        Raises:
            ValueError: If a line is malformed or the NORAD ids differ.
        """
        line1 = line1.rstrip()
        line2 = line2.rstrip()
        l1 = line1.ljust(69)
        l2 = line2.ljust(69)

        if l1[0] != "1":
            raise ValueError(f"Line 1 must start with '1', got '{l1[0]}'")
        if l2[0] != "2":
            raise ValueError(f"Line 2 must start with '2', got '{l2[0]}'")

        _verify_checksum(l1, 1)
        _verify_checksum(l2, 2)

        norad_id = _parse_catalog_number(l1[2:7])
        norad_id_2 = _parse_catalog_number(l2[2:7])
        if norad_id != norad_id_2:
            raise ValueError(f"NORAD ID mismatch: {norad_id} vs {norad_id_2}")

        epoch_year_2d = int(l1[18:20].strip())
        epoch_year = (
            1900 + epoch_year_2d if epoch_year_2d >= 57 else 2000 + epoch_year_2d
        )
        epoch = _epoch_to_datetime(epoch_year, float(l1[20:32].strip()))

        return TLE(
            line1=line1,
            line2=line2,
            name=name.strip() if name and name.strip() else None,
            norad_id=norad_id,
            intl_designator=l1[9:17].strip(),
            classification=l1[7],
            epoch=epoch,
            mean_motion_dot=float(l1[33:43].strip() or 0.0),
            bstar=_parse_implied_decimal(l1[53:61]),
            inclination=float(l2[8:16].strip()),
            raan=float(l2[17:25].strip()),
            eccentricity=float(f"0.{l2[26:33].strip()}"),
            arg_perigee=float(l2[34:42].strip()),
            mean_anomaly=float(l2[43:51].strip()),
            mean_motion=float(l2[52:63].strip()),
            rev_number=int(l2[63:68].strip() or "0"),
        )

    @staticmethod
    def parse_batch(text: str) -> list[TLE]:
        """Parse text holding any number of 2-line or 3-line element sets.

        Malformed sets are logged and skipped so a single bad entry does not
        discard a whole feed.
        """
        lines = [line.rstrip() for line in text.strip().splitlines() if line.strip()]
        tles: list[TLE] = []
        i = 0

        while i < len(lines):
            if (
                lines[i].startswith("1 ")
                and i + 1 < len(lines)
                and lines[i + 1].startswith("2 ")
            ):
                name, line1, line2 = None, lines[i], lines[i + 1]
                i += 2
            elif (
                i + 2 < len(lines)
                and lines[i + 1].startswith("1 ")
                and lines[i + 2].startswith("2 ")
            ):
                name, line1, line2 = _strip_name(lines[i]), lines[i + 1], lines[i + 2]
                i += 3
            else:
                logger.debug("Skipping unpaired TLE line: %r", lines[i])
                i += 1
                continue

            try:
                tles.append(TLE.parse(line1, line2, name=name))
            except ValueError as e:
                logger.warning("Skipping malformed TLE %r: %s", line1[:20], e)

        return tles

    @staticmethod
    def from_dict(data: dict) -> TLE:
        return TLE.parse(data["line1"], data["line2"], name=data.get("name"))

    def to_dict(self) -> dict:
        """Serialize to the raw-line form used in catalog snapshots."""
        return {"name": self.name, "line1": self.line1, "line2": self.line2}


# ── Private helpers ──


def _strip_name(line: str) -> str:
    # 3LE feeds prefix the name line with "0 "
    return line[2:] if line.startswith("0 ") else line


def _parse_catalog_number(s: str) -> int:
    """Parse a catalog number, including Alpha-5 (``A0000`` = 100000)."""
    s = s.strip()
    if s and s[0].isalpha():
        letter = s[0].upper()
        # Alpha-5 skips I and O
        offset = ord(letter) - ord("A") - (letter > "I") - (letter > "O")
        return (10 + offset) * 10000 + int(s[1:])
    return int(s)


def _parse_implied_decimal(s: str) -> float:
    """Parse TLE implied-decimal notation, e.g. ``16538-4`` → ``0.16538e-4``."""
    s = s.strip()
    if not s or s in ("00000-0", "00000+0"):
        return 0.0

    for i in range(len(s) - 1, 0, -1):
        if s[i] in "+-":
            mantissa = s[:i]
            exponent = s[i:]
            sign = "-" if mantissa.lstrip().startswith("-") else ""
            digits = mantissa.lstrip("+-").lstrip()
            return float(f"{sign}0.{digits}e{exponent}")

    sign = "-" if s.startswith("-") else ""
    digits = s.lstrip("+-").lstrip()
    return float(f"{sign}0.{digits}")


def _verify_checksum(line: str, line_num: int) -> None:
    """Warn on a modulo-10 checksum mismatch instead of rejecting the line."""
    if len(line) < 69 or not line[68].isdigit():
        return

    expected = int(line[68])
    total = 0
    for ch in line[:68]:
        if ch.isdigit():
            total += int(ch)
        elif ch == "-":
            total += 1

    computed = total % 10
    if computed != expected:
        logger.warning(
            "Checksum mismatch on line %d: expected %d, computed %d",
            line_num,
            expected,
            computed,
        )


def _epoch_to_datetime(year: int, day_of_year: float) -> datetime:
    """Convert a TLE epoch (year + fractional day-of-year) to a UTC datetime."""
    jan1 = datetime(year, 1, 1, tzinfo=timezone.utc)
    return jan1 + timedelta(days=day_of_year - 1.0)
