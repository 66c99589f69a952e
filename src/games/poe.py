"""
Path of Exile data configuration factory.

Creates a DataConfig populated from config.py (which reads .env overrides).
"""

from pathlib import Path
from typing import Optional

from core.data_config import DataConfig


def create_poe_config(
    cache_dir: Optional[Path] = None,
    cache_lifetime: Optional[int] = None,
    wiki_username: Optional[str] = None,
    wiki_password: Optional[str] = None,
) -> DataConfig:
    """Create a DataConfig for Path of Exile.

    Args:
        cache_dir: Override cache directory. Defaults to config.CACHE_DIR.
        cache_lifetime: Override both cache lifetimes (minutes, 0 = never
            expire). Defaults to config.CACHE_LIFETIME.
        wiki_username: Override wiki login. Defaults to POE_WIKI_USERNAME.
        wiki_password: Override wiki password. Defaults to POE_WIKI_PASSWORD.

    Returns:
        Fully populated DataConfig.
    """
    from config import (
        CACHE_DIR,
        CACHE_LIFETIME,
        WIKI_API_URL,
        WIKI_USERNAME,
        WIKI_PASSWORD,
        WIKI_PAGE_LIMIT,
        WIKI_PAGE_DELAY,
        TRADE_DATA_URL,
        REQUEST_TIMEOUT,
        USER_AGENT,
    )

    _lifetime = CACHE_LIFETIME if cache_lifetime is None else cache_lifetime

    return DataConfig(
        # Cache
        cache_dir=Path(cache_dir) if cache_dir is not None else CACHE_DIR,
        wiki_cache_lifetime=_lifetime,
        trade_cache_lifetime=_lifetime,

        # Wiki
        wiki_api_url=WIKI_API_URL,
        wiki_username=wiki_username or WIKI_USERNAME or None,
        wiki_password=wiki_password or WIKI_PASSWORD or None,
        wiki_page_limit=WIKI_PAGE_LIMIT,
        wiki_page_delay=WIKI_PAGE_DELAY,

        # Trade
        trade_data_url=TRADE_DATA_URL,

        # HTTP
        request_timeout=REQUEST_TIMEOUT,
        user_agent=USER_AGENT,
    )
