"""
Tests for the command-line interface (click CliRunner, no network).
"""
from datetime import datetime, timedelta, timezone

import pytest
import yaml
from click.testing import CliRunner

import icu.cli as cli_mod
from icu.catalog import Catalog, SatcatRecord
from icu.cli import main
from icu.geometry import ObservationAngles
from icu.storage import CatalogStore
from icu.tle_parser import TLE

ISS_LINE1 = "1 25544U 98067A   24001.50000000  .00016717  00000-0  10270-3 0  9009"
ISS_LINE2 = "2 25544  51.6400 208.5000 0007417  68.0000 292.1000 15.49560000400004"
HST_LINE1 = "1 20580U 90037B   24001.50000000  .00000764  00000-0  34340-4 0  9991"
HST_LINE2 = "2 20580  28.4700 100.2000 0002500 300.0000  60.0000 15.09000000400006"

START = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def home(tmp_path, monkeypatch):
    """An ICU home with an observer configured and a saved catalog."""
    monkeypatch.setenv("ICU_HOME", str(tmp_path))
    (tmp_path / "config.yaml").write_text(yaml.safe_dump({
        "data_dir": str(tmp_path),
        "auto_fetch": False,
        "max_catalog_age": 0,
        "observer_latitude": 40.7128,
        "observer_longitude": -74.006,
        "observer_altitude": 10.0,
    }))
    CatalogStore(tmp_path).save(Catalog(
        tles=[
            TLE.parse(ISS_LINE1, ISS_LINE2, name="ISS (ZARYA)"),
            # No SATCAT entry for HST
            TLE.parse(HST_LINE1, HST_LINE2, name="HST"),
        ],
        satcats=[SatcatRecord(
            norad_id=25544, name="ISS (ZARYA)", object_type="PAYLOAD", owner="ISS",
            period=92.9, inclination=51.64, apogee=420, perigee=415,
        )],
        fetched_at=START,
    ))
    return tmp_path


@pytest.fixture
def empty_home(tmp_path, monkeypatch):
    monkeypatch.setenv("ICU_HOME", str(tmp_path))
    (tmp_path / "config.yaml").write_text(yaml.safe_dump({
        "data_dir": str(tmp_path),
        "auto_fetch": False,
    }))
    return tmp_path


def _fake_samples(elevations, step_s=30):
    return [
        ObservationAngles(
            time=START + timedelta(seconds=i * step_s),
            azimuth=float(20 * i % 360),
            elevation=float(el),
            range=800.0,
            range_rate=0.0,
        )
        for i, el in enumerate(elevations)
    ]


class TestStats:
    def test_default_command(self, home):
        result = CliRunner().invoke(main, [])
        assert result.exit_code == 0
        assert "Catalog Statistics" in result.output
        assert "TLE entries" in result.output

    def test_no_catalog(self, empty_home):
        result = CliRunner().invoke(main, ["stats"])
        assert result.exit_code == 0
        assert "No catalog found" in result.output

    def test_config_created(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ICU_HOME", str(tmp_path))
        result = CliRunner().invoke(main, ["--config", str(tmp_path / "new.yaml"), "search"])
        assert (tmp_path / "new.yaml").exists()
        # auto_fetch defaults on, but search never fetches
        assert result.exit_code == 1
        assert "icu fetch" in result.output

    def test_invalid_observer_latitude(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ICU_HOME", str(tmp_path))
        (tmp_path / "config.yaml").write_text(yaml.safe_dump({
            "data_dir": str(tmp_path),
            "observer_latitude": 140.0,
            "observer_longitude": -74.006,
        }))
        result = CliRunner().invoke(main, ["search", "visible"])
        assert result.exit_code == 1
        assert result.exception is None or isinstance(result.exception, SystemExit)
        assert "Error initializing config" in result.output
        assert "observer_latitude" in result.output


class TestGet:
    def test_get_tle_by_default(self, home):
        result = CliRunner().invoke(main, ["get", "25544"])
        assert result.exit_code == 0
        assert ISS_LINE1 in result.output

    def test_get_metadata_by_name(self, home):
        result = CliRunner().invoke(main, ["get", "--name", "iss (zarya)", "--data"])
        assert result.exit_code == 0
        assert "PAYLOAD" in result.output
        assert "LEO" in result.output

    def test_get_missing(self, home):
        result = CliRunner().invoke(main, ["get", "-n", "99999"])
        assert result.exit_code == 0
        assert "No satellites found" in result.output

    def test_metadata_from_tle_without_satcat(self, home):
        result = CliRunner().invoke(main, ["get", "20580", "--data"])
        assert result.exit_code == 0
        assert "Mean Altitude" in result.output
        # 1440 / 15.09 rev/day
        assert "95.43 minutes" in result.output
        assert "28.47°" in result.output

    def test_requires_catalog(self, empty_home):
        result = CliRunner().invoke(main, ["get", "25544"])
        assert result.exit_code == 1
        assert "No catalog found" in result.output


class TestSearch:
    def test_search_by_name(self, home):
        result = CliRunner().invoke(main, ["search", "--name", "zarya"])
        assert result.exit_code == 0
        assert "Found 1 satellites" in result.output
        assert "25544" in result.output

    def test_search_no_match(self, home):
        result = CliRunner().invoke(main, ["search", "--regime", "GEO"])
        assert result.exit_code == 0
        assert "No satellites found" in result.output

    def test_visible_without_observer(self, empty_home):
        result = CliRunner().invoke(main, ["search", "visible"])
        assert result.exit_code == 0
        assert "Observer location not configured" in result.output

    def test_visible_inherits_group_filters(self, home, monkeypatch):
        seen = []

        def fake_find_visible(satellites, observer, timestamp, criteria):
            seen.append(criteria)
            return []

        monkeypatch.setattr(cli_mod, "find_visible_satellites", fake_find_visible)
        result = CliRunner().invoke(
            main, ["search", "--name", "zarya", "--regime", "LEO", "visible", "--owner", "ISS"]
        )
        assert result.exit_code == 0, result.output
        assert seen[0].name == "zarya"
        assert seen[0].regime == "LEO"
        assert seen[0].owner == "ISS"

    def test_visible_overrides_group_filters(self, home, monkeypatch):
        seen = []
        monkeypatch.setattr(
            cli_mod, "find_visible_satellites", lambda s, o, t, criteria: seen.append(criteria) or []
        )
        result = CliRunner().invoke(main, ["search", "--name", "hst", "visible", "--name", "zarya"])
        assert result.exit_code == 0, result.output
        assert seen[0].name == "zarya"


class TestPasses:
    def test_passes_table_and_csv(self, home, monkeypatch):
        samples = _fake_samples([0, 12, 40, 12, 0, 0, 15, 20, 0])
        monkeypatch.setattr(cli_mod, "observe_range", lambda *args: samples)
        out = home / "passes.csv"

        result = CliRunner().invoke(
            main, ["passes", "25544", "--start", "2024-01-01T12:00:00", "-o", str(out)]
        )

        assert result.exit_code == 0, result.output
        assert "Passes above 10.0°" in result.output
        csv = out.read_text()
        assert csv.count("\n") == 3  # header + 2 passes
        assert "40.0" in csv

    def test_window_arguments(self, home, monkeypatch):
        calls = []

        def fake_observe_range(tle, observer, start, end, step):
            calls.append((tle.norad_id, start, end, step))
            return []

        monkeypatch.setattr(cli_mod, "observe_range", fake_observe_range)
        result = CliRunner().invoke(
            main, ["passes", "25544", "--start", "2024-01-01T12:00:00", "--hours", "2", "-s", "60"]
        )
        assert result.exit_code == 0, result.output
        assert calls == [(25544, START, START + timedelta(hours=2), timedelta(seconds=60))]

    def test_unknown_object(self, home):
        result = CliRunner().invoke(main, ["passes", "99999"])
        assert result.exit_code == 0
        assert "No TLE found for NORAD 99999" in result.output

    def test_invalid_step(self, home):
        result = CliRunner().invoke(main, ["passes", "25544", "--step", "0"])
        assert result.exit_code == 1

    def test_zero_norad_id_rejected(self, home, monkeypatch):
        calls = []
        monkeypatch.setattr(cli_mod, "observe_range", lambda *args: calls.append(args) or [])
        result = CliRunner().invoke(main, ["passes", "0", "--hours", "1"])
        assert result.exit_code == 0
        assert "No TLE found for NORAD 0" in result.output
        assert "Pass Prediction" not in result.output
        assert calls == []
