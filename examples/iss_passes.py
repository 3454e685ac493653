"""
Example: Predict ISS passes over New York from a fixed element set.

Needs no network access: the TLE is embedded below. Passes are found by
sampling look angles every 30 s over two days and grouping the samples
above 10° elevation.
"""

import sys
sys.path.insert(0, "src")

from datetime import timedelta
from icu.geometry import ObserverLocation
from icu.passes import passes_to_frame
from icu.propagate import observe_range, predict_passes
from icu.tle_parser import TLE

ISS_LINE1 = "1 25544U 98067A   24001.50000000  .00016717  00000-0  10270-3 0  9009"
ISS_LINE2 = "2 25544  51.6400 208.5000 0007417  68.0000 292.1000 15.49560000400004"


def main():
    print("=" * 65)
    print("  ICU — ISS Pass Prediction Demo")
    print("=" * 65)

    iss = TLE.parse(ISS_LINE1, ISS_LINE2, name="ISS (ZARYA)")
    nyc = ObserverLocation(latitude=40.7128, longitude=-74.0060, altitude=10.0)

    start = iss.epoch
    end = start + timedelta(days=2)
    step = timedelta(seconds=30)

    print(f"\n{iss.name}: period {iss.period:.1f} min, "
          f"perigee {iss.perigee:.0f} km, apogee {iss.apogee:.0f} km")
    print(f"Window: {start:%Y-%m-%d %H:%M} → {end:%Y-%m-%d %H:%M} UTC\n")

    passes = predict_passes(iss, nyc, start, end, step=step, min_elevation=10.0)

    if not passes:
        print("No passes above 10°.")
        return

    print(f"{'RISE (UTC)':20s} {'DURATION':>9} {'MAX EL':>7} {'RISE AZ':>8} {'SET AZ':>7}")
    print("-" * 56)
    for p in passes:
        print(
            f"{p.start:%Y-%m-%d %H:%M:%S}  "
            f"{p.duration.total_seconds() / 60:>7.1f}m "
            f"{p.max_elevation:>6.1f}° "
            f"{p.rise_azimuth:>7.0f}° "
            f"{p.set_azimuth:>6.0f}°"
        )

    df = passes_to_frame(passes)
    print(f"\nBest pass: {df.loc[df['max_elevation_deg'].idxmax(), 'start']:%Y-%m-%d %H:%M} UTC")

    # ── Plots ──
    from icu.viz import plot_elevation_profile, plot_pass_skytrack

    plot_pass_skytrack(passes, title="ISS over New York", save_path="iss_skytrack.png")
    print("\nPlot saved to iss_skytrack.png")

    samples = observe_range(iss, nyc, start, start + timedelta(hours=12), step)
    plot_elevation_profile(
        samples,
        [p for p in passes if p.start < start + timedelta(hours=12)],
        min_elevation=10.0,
        title="ISS elevation from New York (first 12 h)",
        save_path="iss_elevation.png",
    )
    print("Plot saved to iss_elevation.png")


if __name__ == "__main__":
    main()
