"""
PoE Data - Trade API Reader
Fetches the trade site's static data endpoints and caches them as TradeData.

Endpoints (GET <trade_data_url>/<type>):
- leagues  → {"result": [{"id": "Standard", "text": "Standard"}, ...]}
- static   → category entries (currency, cards, maps, elder_maps, ...)
- stats    → stat catalog grouped by label (Pseudo, Explicit, Implicit, ...)

The stat catalog is what the wiki reader's resolver maps mod text against,
so this reader must be refreshed first.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

import requests

from cached_storage import CachedStorage
from config import TRADE_DATA_TYPES
from data_reader import DataReader
from records import StatCatalog, TradeData

if TYPE_CHECKING:
    from core.data_config import DataConfig

logger = logging.getLogger(__name__)


class TradeApiError(Exception):
    """Trade data endpoint unreachable or returned an unusable body."""


def _entry_map(entries: Any, what: str) -> Dict[str, str]:
    if not isinstance(entries, list):
        raise ValueError(f"{what}: expected list, got {type(entries).__name__}")
    result = {}
    for entry in entries:
        if isinstance(entry, dict) and entry.get("id"):
            result[str(entry["id"])] = str(entry.get("text", ""))
    return result


class TradeApiReader(DataReader):
    """
    Cached reader for the trade site's data endpoints.

    Usage:
        reader = TradeApiReader(config)
        reader.refresh()
        reader.data.static["currency"]["alt"]   # "Orb of Alteration"
    """

    ident = "trade-api"

    def __init__(self, config: "DataConfig", storage: Optional[CachedStorage] = None,
                 session: Optional[requests.Session] = None):
        self._session = session if session is not None else requests.Session()
        super().__init__(config, storage)
        self.configure_session()

    def configure_session(self) -> None:
        self._session.headers.update({"User-Agent": self.config.user_agent})

    @property
    def cache_lifetime(self) -> int:
        return self.config.trade_cache_lifetime

    def _empty(self) -> TradeData:
        return TradeData()

    def _decode(self, payload: Any) -> TradeData:
        return TradeData.from_dict(payload)

    # ─── Download ─────────────────────────────────

    def fetch_api_data(self, data_type: str) -> dict:
        url = f"{self.config.trade_data_url.rstrip('/')}/{data_type}"
        logger.info(f"TradeApiReader: downloading {data_type}...")
        try:
            resp = self._session.get(url, timeout=self.config.request_timeout)
        except requests.RequestException as e:
            raise TradeApiError(f"request to {url} failed: {e}") from e

        if resp.status_code != 200:
            raise TradeApiError(f"Invalid status code <{resp.status_code}> for {url}")
        try:
            body = resp.json()
        except ValueError as e:
            raise TradeApiError(f"invalid JSON from {url}: {e}") from e
        if not isinstance(body, dict):
            raise TradeApiError(f"unexpected reply type {type(body).__name__} from {url}")
        return body

    # ─── Handlers ─────────────────────────────────

    @staticmethod
    def handle_leagues(api_data: dict) -> Dict[str, str]:
        return _entry_map(api_data.get("result"), "leagues.result")

    @staticmethod
    def handle_static(api_data: dict) -> Dict[str, Dict[str, str]]:
        """Category → {id → text}.

        Older replies key categories directly ({"currency": [...]}), newer
        ones group them ([{"id": "Currency", "entries": [...]}]).
        """
        result = api_data.get("result")
        if isinstance(result, dict):
            return {str(category): _entry_map(entries, f"static.{category}")
                    for category, entries in result.items()}
        if isinstance(result, list):
            static = {}
            for group in result:
                if not isinstance(group, dict) or not group.get("id"):
                    continue
                category = str(group["id"]).lower()
                static[category] = _entry_map(group.get("entries", []),
                                              f"static.{category}")
            return static
        raise ValueError(f"static.result: unexpected type {type(result).__name__}")

    @staticmethod
    def handle_stats(api_data: dict) -> StatCatalog:
        return StatCatalog.from_api(api_data)

    def _fetch(self) -> TradeData:
        replies = {data_type: self.fetch_api_data(data_type)
                   for data_type in TRADE_DATA_TYPES}
        try:
            data = TradeData(
                leagues=self.handle_leagues(replies["leagues"]),
                static=self.handle_static(replies["static"]),
                stats=self.handle_stats(replies["stats"]),
            )
        except (ValueError, AttributeError) as e:
            raise TradeApiError(f"unexpected trade data shape: {e}") from e

        logger.info(f"TradeApiReader: {len(data.leagues)} leagues, "
                    f"{len(data.static)} static categories, "
                    f"{len(data.stats)} stats")
        return data
