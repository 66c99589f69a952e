"""
PoE Data - Typed records for cached datasets.

Wiki rows arrive as flat string dicts; they are turned into ItemRecord /
ModRecord here and indexed by ItemTable / ModTable. Trade data is kept in
TradeData with its StatCatalog.

Every container round-trips through to_dict() / from_dict(). from_dict()
raises ValueError when the cached shape does not match, so the owning reader
can fall back to an empty default.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from text_utils import decode_html, split_tags


# ─── Constants ───────────────────────────────────────

class ModDomain(IntEnum):
    """Wiki mod domains (where a mod can appear)."""
    ITEM = 1
    FLASK = 2
    MONSTER = 3
    CHEST = 4
    AREA = 5
    UNKNOWN6 = 6
    UNKNOWN7 = 7
    UNKNOWN8 = 8
    CRAFTED = 9
    JEWEL = 10
    ATLAS = 11
    LEAGUESTONE = 12
    ABYSS_JEWEL = 13
    MAP_DEVICE = 14
    UNKNOWN15 = 15
    DELVE = 16
    DELVE_AREA = 17
    SYNTHESIS18 = 18
    SYNTHESIS19 = 19
    SYNTHESIS20 = 20


class ModGenerationType(IntEnum):
    """Wiki mod generation types (how a mod is rolled)."""
    PREFIX = 1
    SUFFIX = 2
    UNIQUE = 3
    NEMESIS = 4
    CORRUPTED = 5
    BLOODLINES = 6
    TORMENT = 7
    TEMPEST = 8
    TALISMAN = 9
    ENCHANTMENT = 10
    ESSENCE = 11
    UNKNOWN12 = 12
    BESTIARY = 13
    DELVE = 14
    SYNTHESIS15 = 15
    SYNTHESIS16 = 16
    SYNTHESIS17 = 17


# ─── Validation helpers ──────────────────────────────

def _require_dict(value: Any, what: str) -> dict:
    if not isinstance(value, dict):
        raise ValueError(f"{what}: expected object, got {type(value).__name__}")
    return value


def _require_list(value: Any, what: str) -> list:
    if not isinstance(value, list):
        raise ValueError(f"{what}: expected list, got {type(value).__name__}")
    return value


def _to_int(value: Any, default: int = 0) -> int:
    """Wiki cargo returns numbers as strings ("12", "", None)."""
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _str_map(value: Any, what: str) -> Dict[str, str]:
    return {str(k): str(v) for k, v in _require_dict(value, what).items()}


# ─── Wiki records ────────────────────────────────────

@dataclass
class SpawnWeight:
    ordinal: int
    tag: str
    weight: int

    @classmethod
    def from_wiki(cls, row: dict) -> "SpawnWeight":
        return cls(
            ordinal=_to_int(row.get("ordinal")),
            tag=str(row.get("tag") or ""),
            weight=_to_int(row.get("weight")),
        )

    def to_dict(self) -> dict:
        return {"ordinal": self.ordinal, "tag": self.tag, "weight": self.weight}

    @classmethod
    def from_dict(cls, d: dict) -> "SpawnWeight":
        d = _require_dict(d, "spawn weight")
        return cls(ordinal=_to_int(d.get("ordinal")), tag=str(d.get("tag", "")),
                   weight=_to_int(d.get("weight")))


@dataclass
class SpawnTagEntry:
    mod_id: str
    ordinal: int
    weight: int

    def to_dict(self) -> dict:
        return {"mod_id": self.mod_id, "ordinal": self.ordinal, "weight": self.weight}

    @classmethod
    def from_dict(cls, d: dict) -> "SpawnTagEntry":
        d = _require_dict(d, "spawn tag entry")
        return cls(mod_id=str(d["mod_id"]), ordinal=_to_int(d.get("ordinal")),
                   weight=_to_int(d.get("weight")))


@dataclass
class ItemRecord:
    page_id: str
    name: str = ""
    item_class: str = ""
    tags: List[str] = field(default_factory=list)
    description: str = ""
    stat_text: str = ""
    help_text: str = ""
    flavour_text: str = ""
    mods: List[Dict[str, Any]] = field(default_factory=list)
    stats: List[Dict[str, Any]] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)  # other wiki columns

    @classmethod
    def from_wiki(cls, row: dict) -> "ItemRecord":
        row = dict(row)
        return cls(
            page_id=str(row.pop("page_id")),
            name=str(row.pop("name", "") or ""),
            item_class=str(row.pop("class", "") or ""),
            tags=split_tags(row.pop("tags", "")),
            description=decode_html(row.pop("description", "")),
            stat_text=decode_html(row.pop("stat text", "")),
            help_text=decode_html(row.pop("help text", "")),
            flavour_text=decode_html(row.pop("flavour text", "")),
            extra=row,
        )

    def to_dict(self) -> dict:
        return {
            "page_id": self.page_id,
            "name": self.name,
            "class": self.item_class,
            "tags": list(self.tags),
            "description": self.description,
            "stat_text": self.stat_text,
            "help_text": self.help_text,
            "flavour_text": self.flavour_text,
            "mods": self.mods,
            "stats": self.stats,
            "extra": self.extra,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ItemRecord":
        d = _require_dict(d, "item")
        return cls(
            page_id=str(d["page_id"]),
            name=str(d.get("name", "")),
            item_class=str(d.get("class", "")),
            tags=[str(t) for t in _require_list(d.get("tags", []), "item tags")],
            description=str(d.get("description", "")),
            stat_text=str(d.get("stat_text", "")),
            help_text=str(d.get("help_text", "")),
            flavour_text=str(d.get("flavour_text", "")),
            mods=_require_list(d.get("mods", []), "item mods"),
            stats=_require_list(d.get("stats", []), "item stats"),
            extra=_require_dict(d.get("extra", {}), "item extra"),
        )


@dataclass
class ModRecord:
    page_id: str
    mod_ident: str                      # "IncreasedLife3"
    name: str = ""
    domain: int = 0
    generation_type: int = 0
    stat_text_raw: str = ""
    tags: List[str] = field(default_factory=list)
    # Filled by the stat resolver, one entry per stat text line
    trade_text: str = ""
    trade_limits: List[List[List[str]]] = field(default_factory=list)
    trade_ids: List[List[str]] = field(default_factory=list)
    stats: List[Dict[str, Any]] = field(default_factory=list)
    spawn_weights: List[SpawnWeight] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_wiki(cls, row: dict) -> "ModRecord":
        row = dict(row)
        return cls(
            page_id=str(row.pop("page_id")),
            mod_ident=str(row.pop("id", "") or ""),
            name=str(row.pop("name", "") or ""),
            domain=_to_int(row.pop("domain", 0)),
            generation_type=_to_int(row.pop("generation type", 0)),
            stat_text_raw=str(row.pop("stat text raw", "") or ""),
            tags=split_tags(row.pop("tags", "")),
            extra=row,
        )

    @property
    def resolved(self) -> bool:
        """True if at least one stat line mapped to a trade id."""
        return any(self.trade_ids)

    def to_dict(self) -> dict:
        return {
            "page_id": self.page_id,
            "mod_ident": self.mod_ident,
            "name": self.name,
            "domain": self.domain,
            "generation_type": self.generation_type,
            "stat_text_raw": self.stat_text_raw,
            "tags": list(self.tags),
            "trade_text": self.trade_text,
            "trade_limits": self.trade_limits,
            "trade_ids": self.trade_ids,
            "stats": self.stats,
            "spawn_weights": [sw.to_dict() for sw in self.spawn_weights],
            "extra": self.extra,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ModRecord":
        d = _require_dict(d, "mod")
        return cls(
            page_id=str(d["page_id"]),
            mod_ident=str(d.get("mod_ident", "")),
            name=str(d.get("name", "")),
            domain=_to_int(d.get("domain")),
            generation_type=_to_int(d.get("generation_type")),
            stat_text_raw=str(d.get("stat_text_raw", "")),
            tags=[str(t) for t in _require_list(d.get("tags", []), "mod tags")],
            trade_text=str(d.get("trade_text", "")),
            trade_limits=_require_list(d.get("trade_limits", []), "trade limits"),
            trade_ids=_require_list(d.get("trade_ids", []), "trade ids"),
            stats=_require_list(d.get("stats", []), "mod stats"),
            spawn_weights=[SpawnWeight.from_dict(sw) for sw in
                           _require_list(d.get("spawn_weights", []), "spawn weights")],
            extra=_require_dict(d.get("extra", {}), "mod extra"),
        )


# ─── Wiki tables ─────────────────────────────────────

@dataclass
class ItemTable:
    by_id: Dict[str, ItemRecord] = field(default_factory=dict)
    by_name: Dict[str, List[str]] = field(default_factory=dict)

    def add(self, item: ItemRecord) -> None:
        self.by_name.setdefault(item.name, []).append(item.page_id)
        self.by_id[item.page_id] = item

    def __len__(self) -> int:
        return len(self.by_id)

    def to_dict(self) -> dict:
        return {
            "by_id": {pid: item.to_dict() for pid, item in self.by_id.items()},
            "by_name": self.by_name,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ItemTable":
        d = _require_dict(d, "items")
        by_id = {str(k): ItemRecord.from_dict(v)
                 for k, v in _require_dict(d.get("by_id", {}), "items.by_id").items()}
        by_name = {str(k): [str(pid) for pid in _require_list(v, "items.by_name")]
                   for k, v in _require_dict(d.get("by_name", {}), "items.by_name").items()}
        return cls(by_id=by_id, by_name=by_name)


@dataclass
class ModTable:
    by_id: Dict[str, ModRecord] = field(default_factory=dict)
    by_mod_ident: Dict[str, str] = field(default_factory=dict)
    by_domain: Dict[int, List[str]] = field(default_factory=dict)
    by_generation: Dict[int, List[str]] = field(default_factory=dict)
    by_spawn_tags: Dict[str, List[SpawnTagEntry]] = field(default_factory=dict)

    def add(self, mod: ModRecord) -> None:
        self.by_id[mod.page_id] = mod
        self.by_mod_ident[mod.mod_ident] = mod.page_id
        self.by_domain.setdefault(mod.domain, []).append(mod.page_id)
        self.by_generation.setdefault(mod.generation_type, []).append(mod.page_id)

    def add_spawn_weight(self, mod: ModRecord, spawn_weight: SpawnWeight) -> None:
        mod.spawn_weights.append(spawn_weight)
        if spawn_weight.weight > 0:
            self.by_spawn_tags.setdefault(spawn_weight.tag, []).append(
                SpawnTagEntry(mod_id=mod.page_id, ordinal=spawn_weight.ordinal,
                              weight=spawn_weight.weight))

    def __len__(self) -> int:
        return len(self.by_id)

    def to_dict(self) -> dict:
        return {
            "by_id": {pid: mod.to_dict() for pid, mod in self.by_id.items()},
            "by_mod_ident": self.by_mod_ident,
            "by_domain": {str(k): v for k, v in self.by_domain.items()},
            "by_generation": {str(k): v for k, v in self.by_generation.items()},
            "by_spawn_tags": {tag: [e.to_dict() for e in entries]
                              for tag, entries in self.by_spawn_tags.items()},
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ModTable":
        d = _require_dict(d, "mods")

        def int_index(key: str) -> Dict[int, List[str]]:
            raw = _require_dict(d.get(key, {}), f"mods.{key}")
            return {int(k): [str(pid) for pid in _require_list(v, f"mods.{key}")]
                    for k, v in raw.items()}

        return cls(
            by_id={str(k): ModRecord.from_dict(v)
                   for k, v in _require_dict(d.get("by_id", {}), "mods.by_id").items()},
            by_mod_ident=_str_map(d.get("by_mod_ident", {}), "mods.by_mod_ident"),
            by_domain=int_index("by_domain"),
            by_generation=int_index("by_generation"),
            by_spawn_tags={
                str(tag): [SpawnTagEntry.from_dict(e) for e in _require_list(v, "spawn tags")]
                for tag, v in _require_dict(d.get("by_spawn_tags", {}),
                                            "mods.by_spawn_tags").items()
            },
        )


@dataclass
class WikiData:
    items: ItemTable = field(default_factory=ItemTable)
    mods: ModTable = field(default_factory=ModTable)

    def to_dict(self) -> dict:
        return {"items": self.items.to_dict(), "mods": self.mods.to_dict()}

    @classmethod
    def from_dict(cls, d: Any) -> "WikiData":
        d = _require_dict(d, "wiki data")
        return cls(
            items=ItemTable.from_dict(d.get("items", {})),
            mods=ModTable.from_dict(d.get("mods", {})),
        )


# ─── Trade data ──────────────────────────────────────

class StatCatalog:
    """Trade stat catalog: stat type label → {stat id → display text}.

    Read-only once built. Keeps a flat entry list and an exact-text index
    for the resolver.
    """

    def __init__(self, by_type: Optional[Dict[str, Dict[str, str]]] = None):
        self.by_type: Dict[str, Dict[str, str]] = by_type or {}
        self._entries: Optional[List[Tuple[str, str, str]]] = None
        self._by_text: Optional[Dict[str, List[str]]] = None

    @classmethod
    def from_api(cls, api_data: dict) -> "StatCatalog":
        """Build from a /data/stats response:
        {"result": [{"label": "Explicit", "entries": [{"id": ..., "text": ...}]}]}
        """
        by_type: Dict[str, Dict[str, str]] = {}
        for group in _require_list(_require_dict(api_data, "stats").get("result"),
                                   "stats.result"):
            label = group.get("label", "")
            stats = by_type.setdefault(label, {})
            for entry in group.get("entries", []):
                stat_id = entry.get("id", "")
                if stat_id:
                    stats[stat_id] = entry.get("text", "")
        return cls(by_type)

    def entries(self) -> List[Tuple[str, str, str]]:
        """All (stat type, stat id, text) triples in catalog order."""
        if self._entries is None:
            self._entries = [
                (stat_type, stat_id, text)
                for stat_type, stats in self.by_type.items()
                for stat_id, text in stats.items()
            ]
        return self._entries

    def ids_for_text(self, text: str) -> List[str]:
        """Stat ids whose display text equals ``text`` exactly."""
        if self._by_text is None:
            index: Dict[str, List[str]] = {}
            for _, stat_id, stat_text in self.entries():
                index.setdefault(stat_text, []).append(stat_id)
            self._by_text = index
        return list(self._by_text.get(text, []))

    def get_text(self, stat_type: str, stat_id: str) -> Optional[str]:
        return self.by_type.get(stat_type, {}).get(stat_id)

    def __iter__(self) -> Iterator[Tuple[str, str, str]]:
        return iter(self.entries())

    def __len__(self) -> int:
        return sum(len(stats) for stats in self.by_type.values())

    def __eq__(self, other) -> bool:
        return isinstance(other, StatCatalog) and self.by_type == other.by_type

    def to_dict(self) -> dict:
        return self.by_type

    @classmethod
    def from_dict(cls, d: Any) -> "StatCatalog":
        d = _require_dict(d, "stats")
        return cls({str(label): _str_map(stats, f"stats.{label}")
                    for label, stats in d.items()})


@dataclass
class TradeData:
    leagues: Dict[str, str] = field(default_factory=dict)
    # category ("currency", "cards", "maps", "elder_maps", ...) → {id → text}
    static: Dict[str, Dict[str, str]] = field(default_factory=dict)
    stats: StatCatalog = field(default_factory=StatCatalog)

    def to_dict(self) -> dict:
        return {
            "leagues": self.leagues,
            "static": self.static,
            "stats": self.stats.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: Any) -> "TradeData":
        d = _require_dict(d, "trade data")
        return cls(
            leagues=_str_map(d.get("leagues", {}), "leagues"),
            static={str(cat): _str_map(entries, f"static.{cat}")
                    for cat, entries in _require_dict(d.get("static", {}), "static").items()},
            stats=StatCatalog.from_dict(d.get("stats", {})),
        )
