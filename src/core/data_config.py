"""
DataConfig — configuration for the PoE data readers.

Every value the readers need is a field here. Consumers create a DataConfig
(via create_poe_config in games/poe.py) and pass it to PoeData, which hands
it to the cache, wiki and trade components.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class DataConfig:
    """Complete configuration for one PoeData instance."""

    # ── Cache ───────────────────────────────────────────────
    cache_dir: Path                       # <cache_dir>/<ident>.json.gz
    # Minutes before a dataset is refetched (0 = never expire)
    wiki_cache_lifetime: int = 60 * 24 * 7
    trade_cache_lifetime: int = 60 * 24 * 7

    # ── Wiki cargo API ──────────────────────────────────────
    wiki_api_url: str = ""                # e.g. "https://www.poewiki.net/w/api.php"
    wiki_username: Optional[str] = None
    wiki_password: Optional[str] = None
    wiki_page_limit: int = 5000           # rows per query before server capping
    wiki_page_delay: float = 0.2          # seconds between full pages

    # ── Trade data API ──────────────────────────────────────
    trade_data_url: str = ""              # e.g. "https://www.pathofexile.com/api/trade/data"

    # ── HTTP ────────────────────────────────────────────────
    request_timeout: float = 30
    user_agent: str = "PoeData/1.0"

    @property
    def has_wiki_credentials(self) -> bool:
        return bool(self.wiki_username) and bool(self.wiki_password)
