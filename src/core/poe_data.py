"""
PoeData — facade over the trade and wiki readers.

Owns one TradeApiReader and one WikiReader built from a DataConfig, wires
the wiki reader's stat resolver to the trade catalog, re-emits reader events
tagged with their source and exposes read-only lookups.

Usage:
    from core import PoeData
    from games.poe import create_poe_config

    poe = PoeData(create_poe_config())
    poe.register_callback("update-status", print)
    poe.refresh()
    poe.get_currency_name("alt")        # "Orb of Alteration"
"""

import dataclasses
import logging
import threading
from typing import Dict, Iterable, List, Optional

from cached_storage import CachedStorage
from callbacks import CallbackRegistry
from core.data_config import DataConfig
from data_reader import RefreshInProgressError
from records import ItemRecord, ModRecord
from trade_api_reader import TradeApiReader
from trade_text import StatResolver
from wiki_reader import WikiReader

logger = logging.getLogger(__name__)

_MAP_CATEGORIES = {
    "Base": "maps",
    "Elder": "elder_maps",
}

_CREDENTIAL_FIELDS = ("wiki_username", "wiki_password")
_WIKI_CLIENT_FIELDS = ("wiki_api_url", "wiki_page_limit", "wiki_page_delay",
                       "request_timeout", "user_agent")


class PoeData(CallbackRegistry):
    """Path of Exile data facade.

    Events (all synchronous, registration order):
        update-start      (source)
        update-status     (source, sub_type, index)
        update-done       (source)
        process-wiki-data (table, record)
    where source is "trade-api" or "wiki".
    """

    def __init__(self, config: DataConfig,
                 trade_reader: Optional[TradeApiReader] = None,
                 wiki_reader: Optional[WikiReader] = None):
        super().__init__()
        self.config = config
        self.trade_reader = trade_reader if trade_reader is not None else TradeApiReader(config)
        self.wiki_reader = wiki_reader if wiki_reader is not None else WikiReader(config)
        self.wiki_reader.resolver = StatResolver(lambda: self.trade_reader.data.stats)

        self._refresh_lock = threading.Lock()
        self._update_active = False
        self._forward_events()

    def _forward_events(self) -> None:
        for source, reader in (("trade-api", self.trade_reader),
                               ("wiki", self.wiki_reader)):
            reader.register_callback(
                "update-start", lambda s=source: self.invoke_callback("update-start", s))
            reader.register_callback(
                "update-done", lambda s=source: self.invoke_callback("update-done", s))
            reader.register_callback(
                "update-status",
                lambda sub_type, index, s=source:
                    self.invoke_callback("update-status", s, sub_type, index))
        self.wiki_reader.register_callback(
            "process-wiki-data",
            lambda table, record: self.invoke_callback("process-wiki-data", table, record))

    # ── Lifecycle ───────────────────────────────────────────

    def refresh(self, force: bool = False) -> bool:
        """Refresh trade data, then wiki data. Returns True if either was
        refetched. Raises RefreshInProgressError if a refresh is running."""
        if not self._refresh_lock.acquire(blocking=False):
            raise RefreshInProgressError("PoeData: refresh already running")
        self._update_active = True
        try:
            trade_updated = self.trade_reader.refresh(force)
            wiki_updated = self.wiki_reader.refresh(force)
            return trade_updated or wiki_updated
        finally:
            self._update_active = False
            self._refresh_lock.release()

    def is_updating(self) -> bool:
        return self._update_active

    def change_settings(self, **overrides) -> DataConfig:
        """Replace config values, e.g. change_settings(wiki_cache_lifetime=0).

        Unknown names raise TypeError. Not allowed while a refresh runs.
        """
        if self._update_active:
            raise RefreshInProgressError("PoeData: cannot change settings during refresh")

        config = dataclasses.replace(self.config, **overrides)
        self.config = config
        for reader in (self.trade_reader, self.wiki_reader):
            reader.config = config
            if "cache_dir" in overrides:
                reader.storage = CachedStorage(reader.ident, config.cache_dir)

        if any(name in overrides for name in _WIKI_CLIENT_FIELDS):
            self.wiki_reader.configure_client()
        if "user_agent" in overrides:
            self.trade_reader.configure_session()

        if any(name in overrides for name in _CREDENTIAL_FIELDS + ("wiki_api_url",)):
            # Log in again with the new account on next refresh
            self.wiki_reader.client.login_token = None
            self.wiki_reader.client.logged_in = False

        logger.info(f"PoeData: settings changed ({', '.join(sorted(overrides))})")
        return config

    # ── Items ───────────────────────────────────────────────

    def get_item_base(self, name: Optional[str],
                      armour_tag: Optional[str] = None) -> Optional[ItemRecord]:
        """Item base for ``name``.

        Names with affixes ("Sturdy Iron Hat of the Bear") fall back to the
        longest known base name contained in them. When several bases share
        a name, ``armour_tag`` picks the one carrying that tag.
        """
        if not name:
            return None
        items = self.wiki_reader.data.items

        page_ids = items.by_name.get(name)
        if page_ids is None:
            best = ""
            for candidate in items.by_name:
                if candidate and candidate in name and len(candidate) > len(best):
                    best = candidate
            page_ids = items.by_name.get(best) if best else None
        if not page_ids:
            return None

        if len(page_ids) == 1:
            return items.by_id.get(page_ids[0])
        for page_id in page_ids:
            item = items.by_id.get(page_id)
            if item is None:
                continue
            if armour_tag is not None and armour_tag not in item.tags:
                continue
            return item
        return None

    # ── Mods ────────────────────────────────────────────────

    def get_mod_by_id(self, mod_id: str) -> Optional[ModRecord]:
        return self.wiki_reader.data.mods.by_id.get(mod_id)

    def get_mod_by_ident(self, mod_ident: str) -> Optional[ModRecord]:
        mod_id = self.wiki_reader.data.mods.by_mod_ident.get(mod_ident)
        return self.get_mod_by_id(mod_id) if mod_id is not None else None

    def get_mods_by_id(self, mod_ids: Iterable[str]) -> List[ModRecord]:
        """Mods for ``mod_ids`` in order; unknown ids are skipped."""
        by_id = self.wiki_reader.data.mods.by_id
        return [by_id[mod_id] for mod_id in mod_ids if mod_id in by_id]

    def get_mods_by_params(self, domains: Optional[Iterable[int]] = None,
                           generations: Optional[Iterable[int]] = None,
                           spawn_tags: Optional[Iterable[str]] = None) -> List[ModRecord]:
        """Mods matching every given filter (ModDomain values,
        ModGenerationType values, spawn tags with weight > 0).

        Each filter is a union over its values; filters are intersected.
        Unknown keys contribute nothing. No filters → [].
        """
        mods = self.wiki_reader.data.mods
        selections = []
        if domains is not None:
            selections.append([mod_id for domain in domains
                               for mod_id in mods.by_domain.get(int(domain), [])])
        if generations is not None:
            selections.append([mod_id for generation in generations
                               for mod_id in mods.by_generation.get(int(generation), [])])
        if spawn_tags is not None:
            selections.append([entry.mod_id for tag in spawn_tags
                               for entry in mods.by_spawn_tags.get(tag, [])])
        if not selections:
            return []

        mod_ids: Optional[List[str]] = None
        for selection in selections:
            unique = list(dict.fromkeys(selection))
            if mod_ids is None:
                mod_ids = unique
            else:
                keep = set(mod_ids)
                mod_ids = [mod_id for mod_id in unique if mod_id in keep]
        return self.get_mods_by_id(mod_ids)

    def get_mod_trade_by_id(self, trade_id: str, stat_type: str) -> Optional[Dict[str, str]]:
        """{"id": trade_id, "text": ...} from the trade stat catalog."""
        text = self.trade_reader.data.stats.get_text(stat_type, trade_id)
        if text is None:
            return None
        return {"id": trade_id, "text": text}

    # ── Trade static data ───────────────────────────────────

    def get_static(self, category: str) -> Dict[str, str]:
        return self.trade_reader.data.static.get(category, {})

    def get_leagues(self) -> Dict[str, str]:
        return self.trade_reader.data.leagues

    def get_maps(self, map_type: str = "Base") -> Dict[str, str]:
        """Map id → name. map_type "Base" or "Elder"; anything else is Base."""
        return self.get_static(_MAP_CATEGORIES.get(map_type, "maps"))

    def get_currency_name(self, ident: str) -> Optional[str]:
        return self.get_static("currency").get(ident)

    def get_currency_item_text(self, ident: str, amount: int,
                               stack_size: int = 10) -> Optional[str]:
        """In-game clipboard text for a currency stack, e.g.

            Rarity: Currency
            Orb of Alteration
            --------
            Stack Size: 3/10
            --------
            <description>
            --------
            <help text>
        """
        name = self.get_currency_name(ident)
        if name is None:
            return None

        lines = [
            "Rarity: Currency",
            name,
            "--------",
            f"Stack Size: {amount}/{stack_size}",
        ]
        item = self.get_item_base(name)
        if item is not None:
            lines += ["--------", item.description, "--------", item.help_text]
        return "\n".join(lines)
