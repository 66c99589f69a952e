"""
PoE Data - Data Reader base
Shared lifecycle for datasets backed by a CachedStorage file.

On construction the cached payload is loaded (empty default if missing or
corrupt). refresh() refetches only when the cache is stale, builds a fresh
structure, writes it through the cache and only then swaps it in, so a
failure partway through leaves the previous data untouched.
"""

import time
import logging
import threading
from typing import TYPE_CHECKING, Any, Optional

from cached_storage import CachedStorage
from callbacks import CallbackRegistry

if TYPE_CHECKING:
    from core.data_config import DataConfig

logger = logging.getLogger(__name__)


class RefreshInProgressError(RuntimeError):
    """refresh() was called while a refresh of the same data was running."""


class DataReader(CallbackRegistry):
    """Base class for cached datasets. Subclasses set ``ident`` and implement
    _empty(), _decode() and _fetch()."""

    ident = "cache"

    def __init__(self, config: "DataConfig", storage: Optional[CachedStorage] = None):
        super().__init__()
        self.config = config
        self.storage = storage if storage is not None else CachedStorage(
            self.ident, config.cache_dir)
        self._refresh_lock = threading.Lock()
        self._cache_loaded = False
        self.data = self._load_cache()

    @property
    def cache_lifetime(self) -> int:
        raise NotImplementedError

    def is_updating(self) -> bool:
        return self._refresh_lock.locked()

    # ─── Hooks ────────────────────────────────────

    def _empty(self) -> Any:
        raise NotImplementedError

    def _decode(self, payload: Any) -> Any:
        raise NotImplementedError

    def _fetch(self) -> Any:
        raise NotImplementedError

    # ─── Lifecycle ────────────────────────────────

    def _load_cache(self) -> Any:
        payload = self.storage.read()
        if payload is None:
            return self._empty()
        try:
            data = self._decode(payload)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"{type(self).__name__}: cached '{self.ident}' data "
                           f"has an unexpected shape, ignoring it: {e}")
            return self._empty()
        self._cache_loaded = True
        logger.debug(f"{type(self).__name__}: loaded '{self.ident}' from cache")
        return data

    def needs_refresh(self) -> bool:
        """True if the cache is stale or could not be loaded."""
        if not self._cache_loaded:
            return True
        return not self.storage.is_valid(self.cache_lifetime)

    def refresh(self, force: bool = False) -> bool:
        """Refetch the dataset if stale (or ``force``). Returns True if it did.

        Raises RefreshInProgressError if another refresh is running.
        """
        if not self._refresh_lock.acquire(blocking=False):
            raise RefreshInProgressError(
                f"{type(self).__name__}: refresh of '{self.ident}' already running")
        try:
            if not force and not self.needs_refresh():
                logger.debug(f"{type(self).__name__}: '{self.ident}' cache is fresh")
                return False

            self.invoke_callback("update-start")
            t0 = time.time()

            data = self._fetch()
            self.storage.write(data.to_dict())
            self.data = data
            self._cache_loaded = True

            elapsed = time.time() - t0
            logger.info(f"{type(self).__name__}: refreshed '{self.ident}' in {elapsed:.1f}s")
            self.invoke_callback("update-done")
            return True
        finally:
            self._refresh_lock.release()
