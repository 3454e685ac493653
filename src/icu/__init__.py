"""ICU: Internal Catalog Utility for satellite data.

Fetch and store TLE and SATCAT catalog data, then answer geometric
questions about it: where an object is as seen from a ground observer,
which orbital regime it flies in, and when it will be overhead.

Modules:
    geometry:   ECEF → topocentric look angles (azimuth, elevation, range, range-rate).
    regime:     Orbital regime classification (LEO/MEO/GEO/HEO).
    passes:     Visibility pass detection over look-angle series.
    propagate:  SGP4 propagation adapter and time-stepping helpers.
    tle_parser: Two-Line Element set parsing.
    catalog:    TLE/SATCAT merging, search and visibility queries.
    client:     HTTP client for the TLE and SATCAT feeds.
    storage:    On-disk catalog snapshot.
    config:     YAML configuration.
    viz:        Pass sky-track and elevation plots.
    cli:        Command-line interface.

Example:
    >>> from datetime import datetime, timedelta, timezone
    >>> from icu.geometry import ObserverLocation
    >>> from icu.propagate import predict_passes
    >>> from icu.tle_parser import TLE
    >>>
    >>> iss = TLE.parse(line1, line2, name="ISS (ZARYA)")
    >>> nyc = ObserverLocation(40.7128, -74.0060, 10.0)
    >>> start = datetime.now(timezone.utc)
    >>> for p in predict_passes(iss, nyc, start, start + timedelta(days=1)):
    ...     print(p.start, p.max_elevation)
"""

__version__ = "0.1.0"
