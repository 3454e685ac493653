"""HTTP client for the TLE and SATCAT catalog feeds.

The TLE endpoint serves plain text (2-line or 3-line sets); the SATCAT
endpoint serves a JSON array of metadata objects. Endpoints default to
spacebook.com and are configurable in ``config.yaml``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import requests

from .catalog import Catalog, SatcatRecord
from .tle_parser import TLE

logger = logging.getLogger(__name__)

DEFAULT_TLE_URL = "https://spacebook.com/api/entity/tle"
DEFAULT_SATCAT_URL = "https://spacebook.com/api/entity/satcat"


class CatalogClient:
    """Client for the TLE and SATCAT feeds."""

    def __init__(
        self,
        tle_url: str = DEFAULT_TLE_URL,
        satcat_url: str = DEFAULT_SATCAT_URL,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        self.tle_url = tle_url
        self.satcat_url = satcat_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, url: str) -> requests.Response:
        logger.info(f"Fetching: {url}")
        resp = self.session.get(url, timeout=self.timeout)
        if resp.status_code != 200:
            raise ConnectionError(
                f"Unexpected status code from {url}: {resp.status_code}"
            )
        return resp

    def fetch_tles(self) -> list[TLE]:
        """Download and parse every element set in the TLE feed."""
        tles = TLE.parse_batch(self._get(self.tle_url).text)
        logger.info(f"Parsed {len(tles)} TLEs")
        return tles

    def fetch_satcats(self) -> list[SatcatRecord]:
        """Download and decode the SATCAT feed."""
        try:
            data = self._get(self.satcat_url).json()
        except ValueError as e:
            raise ValueError(f"Failed to decode SATCAT response: {e}") from e

        if not isinstance(data, list):
            raise ValueError(
                f"SATCAT response must be a JSON array, got {type(data).__name__}"
            )

        records = [SatcatRecord.from_dict(d) for d in data]
        logger.info(f"Parsed {len(records)} SATCAT records")
        return records

    def fetch_catalog(self) -> Catalog:
        """Fetch both feeds and merge them into a timestamped catalog."""
        tles = self.fetch_tles()
        satcats = self.fetch_satcats()
        return Catalog(
            tles=tles,
            satcats=satcats,
            fetched_at=datetime.now(timezone.utc),
        )
