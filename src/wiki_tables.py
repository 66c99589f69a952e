"""
PoE Data - Default cargo field sets per wiki table.

Unaliased cargo fields come back with underscores turned into spaces
("items.stat_text" → "stat text"). Every table aliases _pageID to "page_id",
which the reducers use to link child rows to their parent.
"""

WIKI_TABLE_FIELDS = {
    "items": [
        "items._pageID=page_id",
        "items.name",
        "items.class_id",
        "items.class",
        "items.rarity",
        "items.tags",
        "items.drop_level",
        "items.required_level",
        "items.size_x",
        "items.size_y",
        "items.description",
        "items.stat_text",
        "items.help_text",
        "items.flavour_text",
        "items.metadata_id",
    ],
    "item_mods": [
        "item_mods._pageID=page_id",
        "item_mods.id",
        "item_mods.is_implicit",
        "item_mods.is_random",
    ],
    "item_stats": [
        "item_stats._pageID=page_id",
        "item_stats.id",
        "item_stats.min",
        "item_stats.max",
        "item_stats.avg",
        "item_stats.is_implicit",
        "item_stats.is_random",
    ],
    "mods": [
        "mods._pageID=page_id",
        "mods.id",
        "mods.name",
        "mods.mod_groups",
        "mods.mod_type",
        "mods.domain",
        "mods.generation_type",
        "mods.required_level",
        "mods.stat_text_raw",
        "mods.tier_text",
        "mods.tags",
    ],
    "mod_stats": [
        "mod_stats._pageID=page_id",
        "mod_stats.id",
        "mod_stats.min",
        "mod_stats.max",
    ],
    "spawn_weights": [
        "spawn_weights._pageID=page_id",
        "spawn_weights.ordinal",
        "spawn_weights.tag",
        "spawn_weights.weight",
    ],
}

# Fetch order matters: child tables attach rows to parents loaded earlier.
ITEM_TABLES = ("items", "item_mods", "item_stats")
MOD_TABLES = ("mods", "mod_stats", "spawn_weights")
