"""
PoE Data - Cached Storage
TTL-gated, gzip-compressed JSON blob per named dataset.

One file per dataset at <cache_dir>/<ident>.json.gz. Freshness is the file's
mtime. Writes go to a temp file in the same directory and are renamed over
the target, so readers never see a truncated file.
"""

import gzip
import json
import os
import tempfile
import time
import zlib
import logging
from pathlib import Path
from typing import Any, Optional

from config import CACHE_DIR, CACHE_SUFFIX

logger = logging.getLogger(__name__)


class CachedStorage:
    """
    Disk cache for one dataset.

    Usage:
        store = CachedStorage("wiki")
        if not store.is_valid(60 * 24):
            store.write(fresh_data)
        data = store.read()   # None when absent or corrupt
    """

    def __init__(self, ident: str = "cache", cache_dir: Optional[Path] = None):
        self.ident = ident
        self.cache_dir = Path(cache_dir) if cache_dir is not None else CACHE_DIR

    @property
    def path(self) -> Path:
        return self.cache_dir / f"{self.ident}{CACHE_SUFFIX}"

    def exists(self) -> bool:
        return self.path.exists()

    def age_minutes(self) -> Optional[float]:
        """Minutes since the last write, or None if there is no record."""
        try:
            mtime = self.path.stat().st_mtime
        except OSError:
            return None
        return (time.time() - mtime) / 60

    def is_valid(self, ttl_minutes: float) -> bool:
        """True if the record exists and is younger than ``ttl_minutes``.

        A TTL of 0 means the record never expires.
        """
        age = self.age_minutes()
        if age is None:
            return False
        if ttl_minutes == 0:
            return True
        return age < ttl_minutes

    def read(self) -> Optional[Any]:
        """Return the cached payload, or None if missing or unreadable."""
        if not self.path.exists():
            return None
        try:
            with gzip.open(self.path, "rt", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, EOFError, ValueError, zlib.error) as e:
            logger.warning(f"CachedStorage: failed to read cached data for '{self.ident}': {e}")
            return None

    def write(self, payload: Any) -> None:
        """Serialize, compress and atomically replace the cache file."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")

        fd, tmp_path = tempfile.mkstemp(
            dir=self.cache_dir, prefix=f".{self.ident}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(gzip.compress(raw))
            os.replace(tmp_path, self.path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

        logger.info(
            f"CachedStorage: wrote '{self.ident}' "
            f"({self.path.stat().st_size / 1024:.0f} KB)"
        )
