#!/usr/bin/env python3
"""ICU command-line interface.

Usage::

    icu fetch
    icu stats
    icu get 25544 --verbose
    icu get --name "ISS (ZARYA)" --follow
    icu search --name starlink --regime LEO
    icu search visible --min-elevation 20 --limit 10
    icu passes 25544 --hours 48 --output passes.csv --plot passes.png
"""
from __future__ import annotations

import sys
import time
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import click
import requests
import yaml
from rich.console import Console, Group
from rich.live import Live
from rich.table import Table
from rich.panel import Panel
from rich.text import Text
from rich import box

from .catalog import (
    Catalog,
    Satellite,
    SearchCriteria,
    VisibilityCriteria,
    VisibleSatellite,
    filter_satellites,
    find_visible_satellites,
    search_satellites,
    visible_to_frame,
)
from .client import CatalogClient
from .config import Config, load_config
from .geometry import DegenerateGeometryError, ObservationAngles, ObserverLocation, observe
from .passes import PassScanner, find_passes, passes_to_frame
from .propagate import PropagationError, observe_range, propagate
from .storage import CatalogStore

console = Console()

TIME_FMT = "%Y-%m-%d %H:%M:%S %Z"
OBSERVER_HINT = (
    "Observer location not configured. Set observer_latitude, "
    "observer_longitude and observer_altitude in config.yaml"
)


@click.group(invoke_without_command=True)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--config", "config_path", type=click.Path(dir_okay=False),
              help="Config file (default: ~/.icu/config.yaml)")
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_path: str | None):
    """ICU: Internal Catalog Utility for satellite data."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(name)s: %(message)s")

    try:
        ctx.obj = load_config(config_path)
    except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
        console.print(f"[red]Error initializing config: {e}[/red]")
        sys.exit(1)

    if ctx.invoked_subcommand is None:
        ctx.invoke(stats)


@main.command()
@click.pass_obj
def fetch(cfg: Config):
    """Fetch TLE and SATCAT data and store the catalog locally."""
    _run_fetch(cfg)


@main.command()
@click.pass_obj
def stats(cfg: Config):
    """Display catalog statistics."""
    catalog = _load_catalog(cfg)

    if catalog is None:
        if cfg.auto_fetch:
            console.print("No catalog found. Fetching data...\n")
            _run_fetch(cfg)
        else:
            console.print("No catalog found. Run 'icu fetch' to download data.")
        return

    now = datetime.now(timezone.utc)
    if cfg.is_catalog_stale(catalog, now):
        console.print(
            f"Catalog is stale (age: {_fmt_age(now - catalog.fetched_at)}, "
            f"max: {cfg.max_catalog_age}h). Refreshing...\n"
        )
        _run_fetch(cfg)
        return

    age = now - catalog.fetched_at
    lines = [
        f"Satellites:    [bold]{len(catalog.satellites)}[/bold]",
        f"TLE entries:   {len(catalog.tles)}",
        f"SATCAT entries: {len(catalog.satcats)}",
        f"Last fetched:  {catalog.fetched_at:{TIME_FMT}}",
        f"Catalog age:   {_fmt_age(age)}",
    ]
    if cfg.max_catalog_age > 0:
        remaining = timedelta(hours=cfg.max_catalog_age) - age
        if remaining > timedelta(0):
            lines.append(f"Refresh in:    {_fmt_age(remaining)}")

    console.print(Panel("\n".join(lines), title="Catalog Statistics", box=box.ROUNDED))


@main.command()
@click.argument("norad", required=False, type=int)
@click.option("--norad", "-n", "norad_opt", type=int, help="NORAD catalog number")
@click.option("--name", "-m", default="", help="Satellite name (case-insensitive, exact)")
@click.option("--tle", "-t", "show_tle", is_flag=True, help="Display TLE")
@click.option("--position", "-p", "show_pos", is_flag=True, help="Display current position")
@click.option("--data", "-d", "show_data", is_flag=True, help="Display satellite metadata")
@click.option("--verbose", "-v", is_flag=True, help="Display TLE, position and metadata")
@click.option("--follow", "-f", is_flag=True, help="Update position every second")
@click.pass_obj
def get(
    cfg: Config,
    norad: int | None,
    norad_opt: int | None,
    name: str,
    show_tle: bool,
    show_pos: bool,
    show_data: bool,
    verbose: bool,
    follow: bool,
):
    """Get satellite information by NORAD ID or name."""
    catalog = _require_catalog(cfg)
    norad_id = norad_opt or norad or 0
    satellites = filter_satellites(catalog.satellites, norad_id, name)

    if not satellites:
        console.print("No satellites found matching the criteria.")
        return

    if follow:
        _follow(satellites, cfg.observer)
        return

    if verbose:
        show_tle = show_pos = show_data = True
    elif not (show_tle or show_pos or show_data):
        show_tle = True

    now = datetime.now(timezone.utc)
    for i, sat in enumerate(satellites):
        if i > 0:
            console.rule()
        if show_tle:
            _print_tle(sat)
        if show_pos:
            _print_position(sat, cfg.observer, now)
        if show_data:
            _print_metadata(sat)


@main.group(invoke_without_command=True)
@click.option("--name", "-n", default="", help="Name (partial match, case-insensitive)")
@click.option("--owner", "-o", default="", help="Owner/country code")
@click.option("--type", "-t", "object_type", default="",
              help="Object type (PAYLOAD, ROCKET BODY, DEBRIS)")
@click.option("--regime", "-r", default="", help="Orbital regime (LEO, MEO, GEO, HEO)")
@click.option("--limit", "-l", default=0, help="Maximum results to display (0 = no limit)")
@click.option("--verbose", "-v", is_flag=True, help="Display full metadata")
@click.pass_context
def search(
    ctx: click.Context,
    name: str,
    owner: str,
    object_type: str,
    regime: str,
    limit: int,
    verbose: bool,
):
    """Search the catalog by name, owner, type or regime."""
    if ctx.invoked_subcommand is not None:
        return

    catalog = _require_catalog(ctx.obj)
    results = search_satellites(
        catalog.satellites,
        SearchCriteria(name=name, owner=owner, object_type=object_type, regime=regime),
    )

    if not results:
        console.print("No satellites found matching the criteria.")
        return

    shown = results[:limit] if limit > 0 else results
    _print_found(len(results), len(shown))

    if verbose:
        for i, sat in enumerate(shown):
            if i > 0:
                console.rule()
            _print_metadata(sat)
    else:
        table = Table(box=box.SIMPLE_HEAVY)
        table.add_column("NORAD", justify="right", style="cyan")
        table.add_column("Name")
        table.add_column("Type")
        table.add_column("Owner")
        table.add_column("Regime", style="bold")
        for sat in shown:
            table.add_row(
                str(sat.norad_id),
                sat.display_name,
                sat.object_type,
                sat.owner,
                sat.orbit_regime.value,
            )
        console.print(table)

    if len(shown) < len(results):
        console.print(
            f"\n... {len(results) - len(shown)} more results. Use --limit to show more."
        )


@search.command()
@click.option("--name", "-n", default="", help="Name (partial match, case-insensitive)")
@click.option("--owner", "-o", default="", help="Owner/country code")
@click.option("--type", "-t", "object_type", default="", help="Object type")
@click.option("--regime", "-r", default="", help="Orbital regime (LEO, MEO, GEO, HEO)")
@click.option("--min-elevation", default=10.0, help="Minimum elevation (degrees)")
@click.option("--max-elevation", default=90.0, help="Maximum elevation (degrees)")
@click.option("--limit", "-l", default=0, help="Maximum results to display (0 = no limit)")
@click.option("--verbose", "-v", is_flag=True, help="Display full metadata")
@click.option("--output", type=click.Path(dir_okay=False), help="Save results to CSV")
@click.pass_context
def visible(
    ctx: click.Context,
    name: str,
    owner: str,
    object_type: str,
    regime: str,
    min_elevation: float,
    max_elevation: float,
    limit: int,
    verbose: bool,
    output: str | None,
):
    """Search for satellites currently visible from the observer location.

    Filters given to ``icu search`` itself apply here too unless the
    subcommand overrides them.
    """
    group = ctx.parent.params
    name = name or group["name"]
    owner = owner or group["owner"]
    object_type = object_type or group["object_type"]
    regime = regime or group["regime"]
    limit = limit or group["limit"]
    verbose = verbose or group["verbose"]

    cfg: Config = ctx.obj
    observer = cfg.observer
    if observer is None:
        console.print(f"[yellow]{OBSERVER_HINT}[/yellow]")
        return

    catalog = _require_catalog(cfg)
    criteria = VisibilityCriteria(
        name=name,
        owner=owner,
        object_type=object_type,
        regime=regime,
        min_elevation=min_elevation,
        max_elevation=max_elevation,
    )
    console.print(f"Checking {len(catalog.satellites)} satellites for visibility...")

    now = datetime.now(timezone.utc)
    found = find_visible_satellites(catalog.satellites, observer, now, criteria)

    if not found:
        console.print(
            f"\nNo satellites currently visible "
            f"(elevation between {min_elevation:.1f}° and {max_elevation:.1f}°)."
        )
        return

    shown = found[:limit] if limit > 0 else found
    _print_found(len(found), len(shown), what="visible satellites")
    console.print(f"Observer: {_fmt_observer(observer)}")
    console.print(f"Time: {now:{TIME_FMT}}\n")

    if verbose:
        for i, v in enumerate(shown):
            if i > 0:
                console.rule()
            _print_metadata(v.satellite, v.angles)
    else:
        _print_visible_table(shown)

    if output:
        visible_to_frame(found).to_csv(output, index=False)
        console.print(f"\nResults saved to {output}")


@main.command()
@click.argument("norad_id", type=int)
@click.option("--hours", default=24.0, help="Prediction window (hours)")
@click.option("--step", "-s", default=30.0, help="Sampling step (seconds)")
@click.option("--min-elevation", "-e", default=10.0, help="Minimum elevation (degrees)")
@click.option("--start", type=click.DateTime(), help="Window start, UTC (default: now)")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Save passes to CSV")
@click.option("--plot", type=click.Path(dir_okay=False), help="Save a sky-track plot (PNG)")
@click.pass_obj
def passes(
    cfg: Config,
    norad_id: int,
    hours: float,
    step: float,
    min_elevation: float,
    start: datetime | None,
    output: str | None,
    plot: str | None,
):
    """Predict visible passes of a satellite."""
    observer = cfg.observer
    if observer is None:
        console.print(f"[yellow]{OBSERVER_HINT}[/yellow]")
        return
    if step <= 0 or hours <= 0:
        console.print("[red]Error: --hours and --step must be positive[/red]")
        sys.exit(1)

    catalog = _require_catalog(cfg)
    matches = filter_satellites(catalog.satellites, norad_id) if norad_id > 0 else []
    if not matches or matches[0].tle is None:
        console.print(f"No TLE found for NORAD {norad_id}.")
        return
    sat = matches[0]

    begin = (start.replace(tzinfo=timezone.utc) if start
             else datetime.now(timezone.utc).replace(microsecond=0))
    end = begin + timedelta(hours=hours)

    samples = observe_range(sat.tle, observer, begin, end, timedelta(seconds=step))
    found = find_passes(samples, min_elevation)

    console.print(
        Panel(
            f"[bold]{sat.display_name}[/bold] (NORAD {sat.norad_id}, "
            f"{sat.orbit_regime.value})\n"
            f"Observer: {_fmt_observer(observer)}\n"
            f"Window: {begin:{TIME_FMT}} → {end:{TIME_FMT}}\n"
            f"Passes above {min_elevation:.1f}°: [bold green]{len(found)}[/bold green]",
            title="Pass Prediction",
            box=box.ROUNDED,
        )
    )

    if found:
        table = Table(box=box.SIMPLE_HEAVY)
        table.add_column("#", justify="right")
        table.add_column("Rise (UTC)", style="cyan")
        table.add_column("Culmination (UTC)")
        table.add_column("Set (UTC)")
        table.add_column("Duration", justify="right")
        table.add_column("Max El (°)", justify="right", style="bold")
        table.add_column("Rise Az (°)", justify="right")
        table.add_column("Set Az (°)", justify="right")
        for i, p in enumerate(found, 1):
            table.add_row(
                str(i),
                f"{p.start:%Y-%m-%d %H:%M:%S}",
                f"{p.culmination.time:%H:%M:%S}",
                f"{p.end:%H:%M:%S}",
                _fmt_age(p.duration, seconds=True),
                f"{p.max_elevation:.1f}",
                f"{p.rise_azimuth:.0f}",
                f"{p.set_azimuth:.0f}",
            )
        console.print(table)

    if output:
        passes_to_frame(found).to_csv(output, index=False)
        console.print(f"\nPasses saved to {output}")

    if plot:
        from .viz import plot_pass_skytrack
        plot_pass_skytrack(
            found,
            title=f"{sat.display_name} (NORAD {sat.norad_id})",
            save_path=plot,
        )
        console.print(f"Sky-track plot saved to {plot}")


# ── Helpers ──


def _open_store(cfg: Config) -> CatalogStore:
    try:
        return CatalogStore(cfg.data_dir)
    except OSError as e:
        console.print(f"[red]Failed to initialize storage: {e}[/red]")
        sys.exit(1)


def _load_catalog(cfg: Config) -> Optional[Catalog]:
    try:
        return _open_store(cfg).load()
    except (OSError, ValueError) as e:
        console.print(f"[red]Error loading catalog: {e}[/red]")
        sys.exit(1)


def _require_catalog(cfg: Config) -> Catalog:
    catalog = _load_catalog(cfg)
    if catalog is None:
        console.print("No catalog found. Run 'icu fetch' to download data.")
        sys.exit(1)
    return catalog


def _run_fetch(cfg: Config) -> Catalog:
    store = _open_store(cfg)
    client = CatalogClient(cfg.tle_endpoint, cfg.satcat_endpoint, cfg.api_timeout)

    try:
        with console.status("Fetching TLE and SATCAT data..."):
            catalog = client.fetch_catalog()
    except (ConnectionError, ValueError, requests.RequestException) as e:
        console.print(f"[red]Error fetching catalog: {e}[/red]")
        sys.exit(1)

    path = store.save(catalog)
    console.print(
        Panel(
            f"[green]✓ Data fetched successfully[/green]\n"
            f"TLE entries:    {len(catalog.tles)}\n"
            f"SATCAT entries: {len(catalog.satcats)}\n"
            f"Merged satellites (with TLEs): {len(catalog.satellites)}\n"
            f"Saved to {path}",
            title="Fetch",
            box=box.ROUNDED,
        )
    )
    return catalog


def _observe_now(
    sat: Satellite,
    observer: ObserverLocation,
    now: datetime,
) -> ObservationAngles:
    return observe(propagate(sat.tle, now), observer)


def _print_tle(sat: Satellite):
    if sat.tle is None:
        return
    console.print(f"0 {sat.display_name}", highlight=False)
    console.print(sat.tle.line1, highlight=False)
    console.print(sat.tle.line2, highlight=False)


def _position_table(angles: ObservationAngles) -> Table:
    table = Table(box=None, show_header=False, padding=(0, 2))
    table.add_column(style="bold")
    table.add_column(justify="right")
    table.add_row("Elevation", f"{angles.elevation:7.2f}°")
    table.add_row("Azimuth", f"{angles.azimuth:7.2f}°")
    table.add_row("Range", f"{angles.range:10.0f} km")
    table.add_row("Range Rate", f"{angles.range_rate:8.2f} km/s")
    return table


def _print_position(sat: Satellite, observer: Optional[ObserverLocation], now: datetime):
    if observer is None:
        console.print(f"[yellow]{OBSERVER_HINT}[/yellow]")
        return
    if sat.tle is None:
        return
    try:
        angles = _observe_now(sat, observer, now)
    except (PropagationError, DegenerateGeometryError) as e:
        console.print(f"[red]Error propagating satellite: {e}[/red]")
        return
    console.print(f"Current Position (as of {now:{TIME_FMT}}):")
    console.print(_position_table(angles))


def _print_metadata(sat: Satellite, angles: Optional[ObservationAngles] = None):
    table = Table(box=None, show_header=False, padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()

    table.add_row("Name", sat.display_name)
    table.add_row("NORAD ID", str(sat.norad_id))
    for label, value in (
        ("International", sat.intl_id),
        ("Type", sat.object_type),
        ("Owner", sat.owner),
        ("Orbit Regime", sat.orbit_regime.value),
        ("Launch Date", sat.launch_date),
        ("Decay Date", sat.decay_date),
        ("Launch Site", sat.launch_site),
    ):
        if value:
            table.add_row(label, value)

    if angles is not None:
        table.add_row("Elevation", f"{angles.elevation:.2f}°")
        table.add_row("Azimuth", f"{angles.azimuth:.2f}°")
        table.add_row("Range", f"{angles.range:.0f} km")
        table.add_row("Range Rate", f"{angles.range_rate:.2f} km/s")

    period, inclination = sat.period, sat.inclination
    apogee, perigee = sat.apogee, sat.perigee
    if sat.satcat is None and sat.tle is not None:
        # No SATCAT entry: fall back to the element set's own orbit
        period, inclination = sat.tle.period, sat.tle.inclination
        apogee, perigee = sat.tle.apogee, sat.tle.perigee
        table.add_row("Mean Altitude", f"{sat.tle.altitude:.0f} km (from TLE)")

    if period > 0:
        table.add_row("Period", f"{period:.2f} minutes")
    if inclination > 0:
        table.add_row("Inclination", f"{inclination:.2f}°")
    if apogee > 0:
        table.add_row("Apogee", f"{apogee:.0f} km")
    if perigee > 0:
        table.add_row("Perigee", f"{perigee:.0f} km")
    if sat.rcs_size:
        table.add_row("RCS Size", sat.rcs_size)

    console.print(table)


def _print_visible_table(shown: list[VisibleSatellite]):
    table = Table(box=box.SIMPLE_HEAVY)
    table.add_column("NORAD", justify="right", style="cyan")
    table.add_column("Name")
    table.add_column("El (°)", justify="right", style="bold")
    table.add_column("Az (°)", justify="right")
    table.add_column("Range (km)", justify="right")
    table.add_column("Regime")
    for v in shown:
        table.add_row(
            str(v.satellite.norad_id),
            v.satellite.display_name,
            f"{v.angles.elevation:.2f}",
            f"{v.angles.azimuth:.2f}",
            f"{v.angles.range:.0f}",
            v.satellite.orbit_regime.value,
        )
    console.print(table)


def _follow(satellites: list[Satellite], observer: Optional[ObserverLocation]):
    """Track one satellite live, reporting rise and set as they happen."""
    if len(satellites) > 1:
        console.print(
            "Follow mode only supports a single satellite. Please specify one satellite."
        )
        return
    sat = satellites[0]
    if sat.tle is None:
        console.print("No TLE data available for this satellite.")
        return
    if observer is None:
        console.print(f"[yellow]{OBSERVER_HINT}[/yellow]")
        return

    _print_tle(sat)
    console.print("\nPress Ctrl+C to exit\n")

    scanner = PassScanner(min_elevation=0.0)
    events: list[str] = []

    def render(now: datetime, angles: Optional[ObservationAngles], error: str = ""):
        parts = [Text(f"Current Position (as of {now:{TIME_FMT}}):")]
        if angles is not None:
            parts.append(_position_table(angles))
        if error:
            parts.append(Text(f"Error propagating satellite: {error}", style="red"))
        if scanner.current:
            rise = scanner.current[0]
            parts.append(Text(
                f"Above horizon since {rise.time:%H:%M:%S} (rise az {rise.azimuth:.0f}°)",
                style="green",
            ))
        else:
            parts.append(Text("Below horizon", style="dim"))
        parts.extend(Text(e) for e in events[-5:])
        return Group(*parts)

    with Live(console=console, refresh_per_second=4) as live:
        try:
            while True:
                now = datetime.now(timezone.utc)
                try:
                    angles = _observe_now(sat, observer, now)
                except (PropagationError, DegenerateGeometryError) as e:
                    live.update(render(now, None, str(e)))
                    time.sleep(1.0)
                    continue

                closed = scanner.feed(angles)
                if closed is not None:
                    events.append(
                        f"Pass {closed.start:%H:%M:%S} → {closed.end:%H:%M:%S}, "
                        f"max elevation {closed.max_elevation:.1f}°"
                    )
                live.update(render(now, angles))
                time.sleep(1.0)
        except KeyboardInterrupt:
            pass

    console.print("Exiting follow mode...")


def _print_found(total: int, shown: int, what: str = "satellites"):
    msg = f"Found {total} {what}"
    if shown < total:
        msg += f" (showing first {shown})"
    console.print(msg + "\n")


def _fmt_observer(observer: ObserverLocation) -> str:
    return (
        f"{observer.latitude:.4f}°N, {observer.longitude:.4f}°E, "
        f"{observer.altitude:.0f}m"
    )


def _fmt_age(delta: timedelta, seconds: bool = False) -> str:
    total = int(delta.total_seconds())
    sign = "-" if total < 0 else ""
    total = abs(total)
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    if seconds:
        return f"{sign}{hours}h{minutes:02d}m{secs:02d}s" if hours else f"{sign}{minutes}m{secs:02d}s"
    return f"{sign}{hours}h{minutes:02d}m"


if __name__ == "__main__":
    main()
