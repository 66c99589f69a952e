"""
PoE Data - Configuration
All tunable constants in one place.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()


def _default_cache_dir() -> Path:
    """Per-machine data directory for the compressed dataset caches."""
    override = os.environ.get("POE_DATA_CACHE_DIR", "")
    if override:
        return Path(override).expanduser()
    home = Path(os.path.expanduser("~"))
    if os.name == "posix":
        return home / ".config" / "PoeData"
    return home / "AppData" / "Roaming" / "PoeData"


# ─────────────────────────────────────────────
# Cache
# ─────────────────────────────────────────────
CACHE_DIR = _default_cache_dir()

# Cache lifetime in minutes. 0 = never expire.
CACHE_LIFETIME = int(os.environ.get("POE_DATA_CACHE_LIFETIME", 60 * 24 * 7))  # 1 week

CACHE_SUFFIX = ".json.gz"

# ─────────────────────────────────────────────
# HTTP
# ─────────────────────────────────────────────
USER_AGENT = "PoeData/1.0"
REQUEST_TIMEOUT = 30  # seconds

# ─────────────────────────────────────────────
# Wiki cargo API
# ─────────────────────────────────────────────
WIKI_API_URL = "https://www.poewiki.net/w/api.php"

# Rows requested per cargo query. Lowered at runtime when the wiki
# reports a smaller cap ("... may not be over 500").
WIKI_PAGE_LIMIT = 5000

# Pause between consecutive pages of the same table (seconds)
WIKI_PAGE_DELAY = 0.2

WIKI_USERNAME = os.environ.get("POE_WIKI_USERNAME", "")
WIKI_PASSWORD = os.environ.get("POE_WIKI_PASSWORD", "")

# ─────────────────────────────────────────────
# Trade data API
# ─────────────────────────────────────────────
TRADE_DATA_URL = "https://www.pathofexile.com/api/trade/data"
TRADE_DATA_TYPES = ("leagues", "static", "stats")

# ─────────────────────────────────────────────
# Logging
# ─────────────────────────────────────────────
LOG_LEVEL = os.environ.get("POE_DATA_LOG_LEVEL", "INFO").upper()
LOG_FILE_NAME = "poe-data.log"
LOG_FILE = CACHE_DIR / LOG_FILE_NAME
