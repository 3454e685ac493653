#!/usr/bin/env python3
"""
ICU Example: List the LEO satellites currently above a ground observer.

Downloads the TLE and SATCAT feeds (network access required), merges them
and reports everything between 20° and 90° elevation right now.
"""
import sys
sys.path.insert(0, "src")

from datetime import datetime, timezone
from icu.catalog import VisibilityCriteria, find_visible_satellites, visible_to_frame
from icu.client import CatalogClient
from icu.geometry import ObserverLocation


def main():
    print("=" * 65)
    print("  ICU — Satellites Overhead")
    print("=" * 65)

    observer = ObserverLocation(latitude=51.4779, longitude=-0.0015, altitude=46.0)

    print("\nFetching TLE and SATCAT feeds...")
    catalog = CatalogClient().fetch_catalog()
    print(f"Merged {len(catalog.satellites)} satellites")

    now = datetime.now(timezone.utc)
    criteria = VisibilityCriteria(regime="LEO", min_elevation=20.0)
    visible = find_visible_satellites(catalog.satellites, observer, now, criteria)

    print(f"\n{len(visible)} LEO satellites above 20° at {now:%Y-%m-%d %H:%M:%S} UTC\n")
    print(f"{'NORAD':>6} {'NAME':25s} {'EL':>6} {'AZ':>6} {'RANGE':>8}")
    print("-" * 56)
    for v in visible[:25]:
        print(
            f"{v.satellite.norad_id:>6} "
            f"{v.satellite.display_name[:25]:25s} "
            f"{v.angles.elevation:>6.1f} "
            f"{v.angles.azimuth:>6.1f} "
            f"{v.angles.range:>8.0f}"
        )

    if visible:
        visible_to_frame(visible).to_csv("visible_now.csv", index=False)
        print("\nResults saved to visible_now.csv")


if __name__ == "__main__":
    main()
