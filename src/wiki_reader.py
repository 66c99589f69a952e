"""
PoE Data - Wiki Reader
Pulls item and mod tables from the wiki's cargo API and indexes them.

Refresh order (child tables attach rows to parents loaded before them):
  items → item_mods → item_stats → mods → mod_stats → spawn_weights

Mod stat text is resolved to trade stat ids while the mods table streams in,
using the StatResolver handed in by the owner (normally PoeData, wired to the
trade reader's catalog).
"""

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from cached_storage import CachedStorage
from data_reader import DataReader
from records import (
    ItemRecord,
    ModRecord,
    SpawnWeight,
    StatCatalog,
    WikiData,
)
from trade_text import StatResolver
from wiki_client import WikiClient
from wiki_query import WikiQuery
from wiki_tables import ITEM_TABLES, MOD_TABLES, WIKI_TABLE_FIELDS

if TYPE_CHECKING:
    from core.data_config import DataConfig

logger = logging.getLogger(__name__)

# Progress label reported with update-status for each table
_SUB_TYPES = {
    "items": "items",
    "item_mods": "items-mods",
    "item_stats": "items-stats",
    "mods": "mods",
    "mod_stats": "mods-stats",
    "spawn_weights": "mods-spawns",
}


def _page_id(row: Dict[str, Any]) -> str:
    return str(row.get("page_id") or "")


class WikiReader(DataReader):
    """
    Cached reader for wiki items and mods.

    Usage:
        reader = WikiReader(config, resolver=StatResolver(lambda: catalog))
        reader.register_callback("update-status", lambda sub, i: print(sub, i))
        reader.refresh()
        reader.data.mods.by_mod_ident["IncreasedLife3"]
    """

    ident = "wiki"

    def __init__(self, config: "DataConfig", storage: Optional[CachedStorage] = None,
                 client: Optional[WikiClient] = None,
                 resolver: Optional[StatResolver] = None):
        self.client = client if client is not None else WikiClient(
            api_url=config.wiki_api_url,
            limit=config.wiki_page_limit,
            page_delay=config.wiki_page_delay,
            timeout=config.request_timeout,
            user_agent=config.user_agent,
        )
        if resolver is None:
            empty_catalog = StatCatalog()
            resolver = StatResolver(lambda: empty_catalog)
        self.resolver = resolver
        super().__init__(config, storage)

    @property
    def cache_lifetime(self) -> int:
        return self.config.wiki_cache_lifetime

    def _empty(self) -> WikiData:
        return WikiData()

    def _decode(self, payload: Any) -> WikiData:
        return WikiData.from_dict(payload)

    # ─── Wiki access ──────────────────────────────

    def configure_client(self) -> None:
        """Push the current config's connection settings onto the client."""
        self.client.configure(
            api_url=self.config.wiki_api_url,
            limit=self.config.wiki_page_limit,
            page_delay=self.config.wiki_page_delay,
            timeout=self.config.request_timeout,
            user_agent=self.config.user_agent,
        )

    def update_login(self) -> None:
        """Log in once per client if credentials are configured."""
        if self.client.login_token is not None:
            return
        if not self.config.has_wiki_credentials:
            return
        self.client.login(self.config.wiki_username, self.config.wiki_password)

    def build_query(self, table: str) -> WikiQuery:
        """Default field set for ``table``; observers of query-wiki-table may
        extend it before it is sent."""
        query = WikiQuery(table)
        query.add_fields(WIKI_TABLE_FIELDS.get(table, []))
        self.invoke_callback("query-wiki-table", table, query)
        return query

    def fetch_table(self, table: str,
                    reducer: Callable[[Dict[str, Any]], None]) -> int:
        """Stream every row of ``table`` through ``reducer``."""
        query = self.build_query(table)
        sub_type = _SUB_TYPES.get(table, table)

        def on_record(record: Dict[str, Any], index: int) -> None:
            self.invoke_callback("process-wiki-data", table, record)
            reducer(record)
            if index % self.client.limit == 0:
                self.invoke_callback("update-status", sub_type, index)

        return self.client.fetch_table(query, on_record)

    # ─── Reducers ─────────────────────────────────

    def update_items(self, data: WikiData) -> None:
        items = data.items
        orphans = {"item_mods": 0, "item_stats": 0}

        def add_item(row):
            if not _page_id(row):
                logger.debug(f"WikiReader: item row without page id: {row}")
                return
            items.add(ItemRecord.from_wiki(row))

        def attach_to_item(table, attr):
            def reducer(row):
                row = dict(row)
                item = items.by_id.get(str(row.pop("page_id", "")))
                if item is None:
                    orphans[table] += 1
                    return
                getattr(item, attr).append(row)
            return reducer

        reducers = {
            "items": add_item,
            "item_mods": attach_to_item("item_mods", "mods"),
            "item_stats": attach_to_item("item_stats", "stats"),
        }
        for table in ITEM_TABLES:
            self.fetch_table(table, reducers[table])

        for table, count in orphans.items():
            if count:
                logger.debug(f"WikiReader: dropped {count} {table} rows without a matching item")
        logger.info(f"WikiReader: {len(items)} items")

    def update_mods(self, data: WikiData) -> None:
        mods = data.mods
        orphans = {"mod_stats": 0, "spawn_weights": 0}
        unresolved = 0

        def add_mod(row):
            nonlocal unresolved
            if not _page_id(row):
                logger.debug(f"WikiReader: mod row without page id: {row}")
                return
            mod = ModRecord.from_wiki(row)
            resolution = self.resolver.resolve(mod.stat_text_raw)
            mod.trade_text = resolution.text
            mod.trade_limits = resolution.limits
            mod.trade_ids = resolution.ids
            if mod.trade_text and not mod.resolved:
                unresolved += 1
            mods.add(mod)

        def add_mod_stat(row):
            row = dict(row)
            mod = mods.by_id.get(str(row.pop("page_id", "")))
            if mod is None:
                orphans["mod_stats"] += 1
                return
            mod.stats.append(row)

        def add_spawn_weight(row):
            mod = mods.by_id.get(_page_id(row))
            if mod is None:
                orphans["spawn_weights"] += 1
                return
            mods.add_spawn_weight(mod, SpawnWeight.from_wiki(row))

        reducers = {
            "mods": add_mod,
            "mod_stats": add_mod_stat,
            "spawn_weights": add_spawn_weight,
        }
        for table in MOD_TABLES:
            self.fetch_table(table, reducers[table])

        for table, count in orphans.items():
            if count:
                logger.debug(f"WikiReader: dropped {count} {table} rows without a matching mod")
        logger.info(f"WikiReader: {len(mods)} mods, {unresolved} with no trade stat match")

    def _fetch(self) -> WikiData:
        self.update_login()
        data = WikiData()
        self.update_items(data)
        self.update_mods(data)
        return data
