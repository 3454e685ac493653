"""On-disk catalog snapshot (``<data_dir>/catalog.json``)."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from .catalog import Catalog

logger = logging.getLogger(__name__)

CATALOG_FILENAME = "catalog.json"


class CatalogStore:
    """Persists a :class:`Catalog` as indented JSON."""

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir).expanduser()
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self.data_dir / CATALOG_FILENAME

    def save(self, catalog: Catalog) -> Path:
        self.path.write_text(json.dumps(catalog.to_dict(), indent=2))
        logger.info("Saved catalog to %s", self.path)
        return self.path

    def load(self) -> Optional[Catalog]:
        """Load the snapshot, or ``None`` if none has been saved yet.

        Raises:
            ValueError: If the file exists but cannot be decoded.
        """
        if not self.path.exists():
            return None

        try:
            data = json.loads(self.path.read_text())
            catalog = Catalog.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Failed to read catalog file {self.path}: {e}") from e

        logger.debug(
            "Loaded %d satellites from %s", len(catalog.satellites), self.path
        )
        return catalog

    def exists(self) -> bool:
        return self.path.exists()
