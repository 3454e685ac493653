"""
Tests for the catalog feed client (HTTP session faked).
"""
import pytest

from icu.client import CatalogClient

ISS_LINE1 = "1 25544U 98067A   24001.50000000  .00016717  00000-0  10270-3 0  9009"
ISS_LINE2 = "2 25544  51.6400 208.5000 0007417  68.0000 292.1000 15.49560000400004"

TLE_URL = "https://example.test/tle"
SATCAT_URL = "https://example.test/satcat"


class FakeResponse:
    def __init__(self, status_code=200, text="", payload=None):
        self.status_code = status_code
        self.text = text
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        return self.responses[url]


def _client(responses, timeout=5.0):
    return CatalogClient(
        tle_url=TLE_URL, satcat_url=SATCAT_URL, timeout=timeout, session=FakeSession(responses)
    )


class TestCatalogClient:
    def test_fetch_tles(self):
        client = _client({TLE_URL: FakeResponse(text=f"ISS (ZARYA)\n{ISS_LINE1}\n{ISS_LINE2}\n")})
        tles = client.fetch_tles()
        assert [t.norad_id for t in tles] == [25544]
        assert client.session.calls == [(TLE_URL, 5.0)]

    def test_fetch_satcats(self):
        payload = [{"noradId": 25544, "name": "ISS (ZARYA)", "owner": "ISS"}]
        client = _client({SATCAT_URL: FakeResponse(payload=payload)})
        records = client.fetch_satcats()
        assert records[0].norad_id == 25544
        assert records[0].owner == "ISS"

    def test_bad_status(self):
        client = _client({TLE_URL: FakeResponse(status_code=503)})
        with pytest.raises(ConnectionError, match="503"):
            client.fetch_tles()

    def test_satcat_not_json(self):
        client = _client({SATCAT_URL: FakeResponse(text="<html>")})
        with pytest.raises(ValueError, match="Failed to decode SATCAT"):
            client.fetch_satcats()

    def test_satcat_not_a_list(self):
        client = _client({SATCAT_URL: FakeResponse(payload={"error": "rate limited"})})
        with pytest.raises(ValueError, match="JSON array"):
            client.fetch_satcats()

    def test_fetch_catalog(self):
        client = _client({
            TLE_URL: FakeResponse(text=f"ISS (ZARYA)\n{ISS_LINE1}\n{ISS_LINE2}\n"),
            SATCAT_URL: FakeResponse(payload=[{"noradId": 25544, "name": "ISS (ZARYA)"}]),
        })
        catalog = client.fetch_catalog()
        assert len(catalog.satellites) == 1
        assert catalog.satellites[0].name == "ISS (ZARYA)"
        assert catalog.fetched_at.tzinfo is not None
