"""
Tests for visibility pass detection.
"""
import random
from datetime import datetime, timedelta, timezone

import pytest

from icu.geometry import ObservationAngles
from icu.passes import Pass, PassScanner, ScanState, find_passes, passes_to_frame

T0 = datetime(2024, 6, 1, tzinfo=timezone.utc)


def _samples(elevations, step_s=60):
    return [
        ObservationAngles(
            time=T0 + timedelta(seconds=i * step_s),
            azimuth=(10.0 * i) % 360.0,
            elevation=float(el),
            range=1000.0 + i,
            range_rate=-1.0 + 0.1 * i,
        )
        for i, el in enumerate(elevations)
    ]


def _runs(flags):
    count, prev = 0, False
    for f in flags:
        if f and not prev:
            count += 1
        prev = f
    return count


class TestFindPasses:
    def test_empty_input(self):
        assert find_passes([], 10.0) == []

    def test_all_below(self):
        assert find_passes(_samples([-5, 0, 5, 9.99]), 10.0) == []

    def test_all_above(self):
        samples = _samples([10, 20, 45, 30, 11])
        passes = find_passes(samples, 10.0)
        assert len(passes) == 1
        assert list(passes[0].samples) == samples

    def test_threshold_is_inclusive(self):
        passes = find_passes(_samples([5, 10.0, 5]), 10.0)
        assert len(passes) == 1
        assert passes[0].samples[0].elevation == 10.0

    def test_two_passes(self):
        samples = _samples([0, 15, 30, 15, 0, -10, 0, 12, 25, 0])
        passes = find_passes(samples, 10.0)
        assert len(passes) == 2
        assert [s.elevation for s in passes[0].samples] == [15, 30, 15]
        assert [s.elevation for s in passes[1].samples] == [12, 25]

    def test_pass_open_at_end(self):
        passes = find_passes(_samples([0, 5, 20, 40]), 10.0)
        assert len(passes) == 1
        assert [s.elevation for s in passes[0].samples] == [20, 40]

    def test_pass_open_at_start(self):
        passes = find_passes(_samples([40, 20, 5, 0]), 10.0)
        assert len(passes) == 1
        assert passes[0].start == T0

    def test_single_sample_pass(self):
        passes = find_passes(_samples([0, 11, 0]), 10.0)
        assert len(passes) == 1
        assert len(passes[0]) == 1
        assert passes[0].duration == timedelta(0)

    def test_order_preserved_without_sorting(self):
        samples = _samples([20, 30, 0, 25])
        # Reverse the input: the scanner trusts the caller's order
        passes = find_passes(list(reversed(samples)), 10.0)
        assert [p.samples[0].elevation for p in passes] == [25, 30]

    def test_accepts_iterators(self):
        passes = find_passes(iter(_samples([0, 15, 0, 15])), 10.0)
        assert len(passes) == 2

    def test_no_sample_lost_or_duplicated(self):
        rng = random.Random(42)
        for _ in range(50):
            elevations = [rng.uniform(-90, 90) for _ in range(rng.randint(0, 200))]
            threshold = rng.uniform(-20, 40)
            samples = _samples(elevations)

            passes = find_passes(samples, threshold)

            flattened = [s for p in passes for s in p.samples]
            expected = [s for s in samples if s.elevation >= threshold]
            assert flattened == expected
            assert len(passes) == _runs([s.elevation >= threshold for s in samples])
            assert all(len(p) > 0 for p in passes)


class TestPassScanner:
    def test_state_transitions(self):
        scanner = PassScanner(10.0)
        low, high, low2 = _samples([0, 20, 0])

        assert scanner.state is ScanState.IDLE
        assert scanner.feed(low) is None
        assert scanner.state is ScanState.IDLE

        assert scanner.feed(high) is None
        assert scanner.state is ScanState.ACCUMULATING
        assert scanner.current == (high,)

        closed = scanner.feed(low2)
        assert closed is not None
        assert closed.samples == (high,)
        assert scanner.state is ScanState.IDLE
        assert scanner.current == ()

    def test_finish_flushes_open_pass(self):
        scanner = PassScanner(10.0)
        for s in _samples([20, 30]):
            scanner.feed(s)
        last = scanner.finish()
        assert last is not None and len(last) == 2
        assert scanner.state is ScanState.IDLE
        assert scanner.finish() is None

    def test_finish_when_idle(self):
        assert PassScanner(0.0).finish() is None

    def test_streaming_matches_batch(self):
        samples = _samples([-5, 3, 8, 2, -1, 6, 7, -3])
        scanner = PassScanner(0.0)
        streamed = [p for p in (scanner.feed(s) for s in samples) if p]
        tail = scanner.finish()
        if tail:
            streamed.append(tail)
        assert streamed == find_passes(samples, 0.0)


class TestPass:
    def test_empty_pass_rejected(self):
        with pytest.raises(ValueError, match="at least one sample"):
            Pass(())

    def test_summary_properties(self):
        (p,) = find_passes(_samples([0, 12, 35, 60, 35, 12, 0]), 10.0)
        assert p.start == T0 + timedelta(minutes=1)
        assert p.end == T0 + timedelta(minutes=5)
        assert p.duration == timedelta(minutes=4)
        assert p.max_elevation == 60
        assert p.culmination.time == T0 + timedelta(minutes=3)
        assert p.rise_azimuth == 10.0
        assert p.set_azimuth == 50.0

    def test_to_dict(self):
        (p,) = find_passes(_samples([0, 12, 35, 0]), 10.0)
        d = p.to_dict()
        assert d["samples"] == 2
        assert d["max_elevation_deg"] == 35.0
        assert d["duration_s"] == 60.0

    def test_passes_to_frame(self):
        passes = find_passes(_samples([0, 15, 0, 20, 25]), 10.0)
        df = passes_to_frame(passes)
        assert len(df) == 2
        assert "max_elevation_deg" in df.columns
        assert "rise_azimuth_deg" in df.columns

    def test_passes_to_frame_empty(self):
        assert passes_to_frame([]).empty
