"""Tests for records.py — wiki row conversion, cache shape validation."""

import json

import pytest

from records import (
    ItemRecord,
    ModRecord,
    ModTable,
    SpawnWeight,
    StatCatalog,
    TradeData,
    WikiData,
)


def test_item_from_wiki_decodes_text():
    item = ItemRecord.from_wiki({
        "page_id": "5",
        "name": "Orb of Alteration",
        "class": "Stackable Currency",
        "tags": "currency,default",
        "description": "Reforges a magic item<br>with new random modifiers",
        "help text": "Right click &amp; apply",
        "stat text": "",
        "flavour text": "",
        "drop level": "1",
    })
    assert item.description == "Reforges a magic item\nwith new random modifiers"
    assert item.help_text == "Right click & apply"
    assert item.tags == ["currency", "default"]
    assert item.extra == {"drop level": "1"}


def test_mod_from_wiki_converts_numbers():
    mod = ModRecord.from_wiki({
        "page_id": "10", "id": "IncreasedLife3", "domain": "1",
        "generation type": "", "stat text raw": None, "tags": "",
    })
    assert mod.domain == 1
    assert mod.generation_type == 0
    assert mod.stat_text_raw == ""
    assert mod.tags == []


def test_spawn_weight_from_wiki():
    sw = SpawnWeight.from_wiki({"page_id": "1", "ordinal": "2", "tag": "ring", "weight": "250"})
    assert sw == SpawnWeight(ordinal=2, tag="ring", weight=250)


def test_mod_table_json_keys_restored_as_int():
    table = ModTable()
    table.add(ModRecord("10", "IncreasedLife3", domain=1, generation_type=2))
    restored = ModTable.from_dict(json.loads(json.dumps(table.to_dict())))
    assert restored.by_domain == {1: ["10"]}
    assert restored.by_generation == {2: ["10"]}
    assert restored == table


def test_wiki_data_rejects_wrong_shape():
    with pytest.raises(ValueError):
        WikiData.from_dict(["not", "a", "dict"])
    with pytest.raises(ValueError):
        WikiData.from_dict({"items": {"by_id": {"1": "not a record"}}})


def test_trade_data_round_trip():
    data = TradeData(
        leagues={"Standard": "Standard"},
        static={"currency": {"alt": "Orb of Alteration"}},
        stats=StatCatalog({"Explicit": {"explicit.stat_1": "+# to Strength"}}),
    )
    assert TradeData.from_dict(json.loads(json.dumps(data.to_dict()))) == data


def test_stat_catalog_lookups(stat_catalog):
    assert len(stat_catalog) == 10
    assert stat_catalog.get_text("Implicit", "implicit.stat_str") == "+# to Strength"
    assert stat_catalog.get_text("Crafted", "implicit.stat_str") is None
    assert stat_catalog.ids_for_text("+# to Strength") == [
        "explicit.stat_str", "implicit.stat_str"]
    assert ("Pseudo", "pseudo.total_life", "+# total maximum Life") in list(stat_catalog)


def test_stat_catalog_from_api_skips_entries_without_id():
    catalog = StatCatalog.from_api({"result": [
        {"label": "Explicit", "entries": [{"text": "orphan"}, {"id": "a", "text": "A"}]},
    ]})
    assert catalog.by_type == {"Explicit": {"a": "A"}}
