"""User configuration (``~/.icu/config.yaml``).

The config directory defaults to ``~/.icu`` and can be moved with the
``ICU_HOME`` environment variable. A missing config file is created with
defaults on first load::

    data_dir: ~/.icu
    auto_fetch: true
    api_timeout: 30          # seconds
    max_catalog_age: 24      # hours, 0 = never stale
    tle_endpoint: https://spacebook.com/api/entity/tle
    satcat_endpoint: https://spacebook.com/api/entity/satcat
    observer_latitude: 0.0   # degrees
    observer_longitude: 0.0  # degrees
    observer_altitude: 0.0   # meters
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, fields
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import yaml

from .catalog import Catalog
from .client import DEFAULT_SATCAT_URL, DEFAULT_TLE_URL
from .geometry import ObserverLocation

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.yaml"


def config_home() -> Path:
    return Path(os.environ.get("ICU_HOME") or Path.home() / ".icu").expanduser()


@dataclass
class Config:
    """Application settings.

    Attributes:
        data_dir: Directory holding the catalog snapshot.
        auto_fetch: Fetch automatically when no snapshot exists.
        api_timeout: HTTP timeout (seconds).
        max_catalog_age: Hours before a snapshot is stale (0 = never).
        tle_endpoint: TLE feed URL.
        satcat_endpoint: SATCAT feed URL.
        observer_latitude: Observer latitude (degrees).
        observer_longitude: Observer longitude (degrees).
        observer_altitude: Observer altitude (meters).
    """
    data_dir: str = ""
    auto_fetch: bool = True
    api_timeout: int = 30
    max_catalog_age: int = 24
    tle_endpoint: str = DEFAULT_TLE_URL
    satcat_endpoint: str = DEFAULT_SATCAT_URL
    observer_latitude: float = 0.0
    observer_longitude: float = 0.0
    observer_altitude: float = 0.0

    def __post_init__(self) -> None:
        if not self.data_dir:
            self.data_dir = str(config_home())
        if not -90.0 <= self.observer_latitude <= 90.0:
            raise ValueError(
                "observer_latitude must be within [-90, 90] degrees, "
                f"got {self.observer_latitude}"
            )

    @property
    def observer(self) -> Optional[ObserverLocation]:
        """Configured observer, or ``None`` if latitude and longitude are both 0."""
        if self.observer_latitude == 0.0 and self.observer_longitude == 0.0:
            return None
        return ObserverLocation(
            latitude=self.observer_latitude,
            longitude=self.observer_longitude,
            altitude=self.observer_altitude,
        )

    def is_catalog_stale(
        self,
        catalog: Optional[Catalog],
        now: Optional[datetime] = None,
    ) -> bool:
        """Whether a snapshot should be refreshed.

        Never stale when ``max_catalog_age`` is 0; always stale when there
        is no snapshot.
        """
        if self.max_catalog_age == 0:
            return False
        if catalog is None:
            return True
        now = now or datetime.now(timezone.utc)
        return now - catalog.fetched_at > timedelta(hours=self.max_catalog_age)

    @staticmethod
    def from_dict(data: dict) -> Config:
        known = {f.name for f in fields(Config)}
        unknown = set(data) - known
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(unknown)))
        return Config(**{k: v for k, v in data.items() if k in known})


def load_config(path: Optional[str | Path] = None) -> Config:
    """Load the YAML config, creating it with defaults when missing.

    Args:
        path: Config file path. Defaults to ``<config_home>/config.yaml``.

    Raises:
        ValueError: If the file is not a YAML mapping or the observer latitude
            is outside [-90, 90].
    """
    path = Path(path).expanduser() if path else config_home() / CONFIG_FILENAME

    if not path.exists():
        cfg = Config()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(asdict(cfg), sort_keys=False))
        logger.info("Created default config at %s", path)
        return cfg

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a YAML mapping")

    return Config.from_dict(data)
