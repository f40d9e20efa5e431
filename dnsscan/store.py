"""
Persistence of the last completed scan.

The store only records scans; nothing read back from it influences
scoring. Reading back yields the last scan or None.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol

from .models import DNSBenchmarkResult


logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "last_scan.json"


@dataclass
class StoredScan:
    """A scan as read back from a store."""
    timestamp: datetime
    results: list[DNSBenchmarkResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "results": [r.to_dict() for r in self.results],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StoredScan":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            results=[DNSBenchmarkResult.from_dict(r) for r in data["results"]],
        )


class ResultStore(Protocol):
    """Where the scheduler saves a naturally completed scan."""

    def save(self, results: list[DNSBenchmarkResult], timestamp: datetime) -> None:
        ...

    def load_last(self) -> Optional[StoredScan]:
        ...


class MemoryResultStore:
    """Keeps the last scan in memory."""

    def __init__(self):
        self._last: Optional[StoredScan] = None
        self.save_count = 0

    def save(self, results: list[DNSBenchmarkResult], timestamp: datetime) -> None:
        self._last = StoredScan(timestamp=timestamp, results=list(results))
        self.save_count += 1

    def load_last(self) -> Optional[StoredScan]:
        return self._last


def default_store_path() -> Path:
    """Location of the JSON store ($DNSSCAN_HOME or ~/.dnsscan)."""
    home = os.environ.get("DNSSCAN_HOME")
    base = Path(home) if home else Path.home() / ".dnsscan"
    return base / DEFAULT_FILENAME


class JSONResultStore:
    """Keeps the last scan in a JSON file."""

    def __init__(self, path: Optional[Path] = None):
        """
        Initialize the store.

        Args:
            path: JSON file to use (default: default_store_path())
        """
        self.path = Path(path) if path else default_store_path()

    def save(self, results: list[DNSBenchmarkResult], timestamp: datetime) -> None:
        """Write the scan, replacing the previous one atomically."""
        data = StoredScan(timestamp=timestamp, results=list(results)).to_dict()

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug("Saved %d results to %s", len(results), self.path)

    def load_last(self) -> Optional[StoredScan]:
        """Read the last scan, or None if there is none or it is unreadable."""
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read %s: %s", self.path, e)
            return None

        try:
            return StoredScan.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring malformed scan history in %s: %s", self.path, e)
            return None
