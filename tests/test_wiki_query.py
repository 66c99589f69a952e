"""Tests for wiki_query.py — cargo query building and duplicate detection."""

import pytest

from wiki_query import DuplicateQueryError, WikiQuery


def test_minimal_query():
    assert WikiQuery("items").build() == {"tables": "items"}


def test_full_query():
    q = WikiQuery("items")
    q.add_fields(["items._pageID=page_id", "items.name"])
    q.add_join("item_mods", "items._pageID=item_mods._pageID")
    q.add_where('items.class="Currency"').add_where("items.drop_level>1")
    q.add_group_by("items.name")
    q.add_having("COUNT(*)>1")
    q.add_order_by("items.name", "DESC").add_order_by("items._pageID")
    q.set_limit(500, 1000)

    assert q.build() == {
        "tables": "items,item_mods",
        "join_on": "items._pageID=item_mods._pageID",
        "fields": "items._pageID=page_id,items.name",
        "where": 'items.class="Currency" AND items.drop_level>1',
        "group_by": "items.name",
        "having": "COUNT(*)>1",
        "order_by": "items.name DESC,items._pageID",
        "limit": 500,
        "offset": 1000,
    }


def test_table_property():
    q = WikiQuery("mods").add_join("mod_stats", "mods._pageID=mod_stats._pageID")
    assert q.table == "mods"


# ── Fields ───────────────────────────────────────────────

def test_duplicate_alias_raises():
    q = WikiQuery("items").add_field("items._pageID", "page_id")
    with pytest.raises(DuplicateQueryError):
        q.add_field("items.other", "page_id")


def test_duplicate_name_raises():
    q = WikiQuery("items").add_field("items.name")
    with pytest.raises(DuplicateQueryError):
        q.add_field("items.name", "item_name")


def test_duplicate_tolerated_is_noop():
    q = WikiQuery("items").add_field("items._pageID", "page_id")
    q.add_field("items.other", "page_id", tolerate=True)
    assert q.build()["fields"] == "items._pageID=page_id"


def test_add_fields_tolerate():
    q = WikiQuery("items").add_fields(["items.name", "items.tags"])
    q.add_fields(["items.name", "items.class"], tolerate=True)
    assert q.build()["fields"] == "items.name,items.tags,items.class"


def test_has_field():
    q = WikiQuery("items").add_field("items._pageID", "page_id")
    assert q.has_field("items._pageID")
    assert q.has_field("x", "page_id")
    assert not q.has_field("items.name")


# ── Joins / grouping / ordering ──────────────────────────

def test_duplicate_join_raises():
    q = WikiQuery("items").add_join("item_mods", "a=b")
    with pytest.raises(DuplicateQueryError):
        q.add_join("item_mods", "c=d")
    q.add_join("item_mods", "c=d", tolerate=True)
    assert q.build()["join_on"] == "a=b"


def test_cannot_join_base_table():
    with pytest.raises(DuplicateQueryError):
        WikiQuery("items").add_join("items", "a=b")


def test_duplicate_group_by():
    q = WikiQuery("mods").add_group_by("mods.id")
    with pytest.raises(DuplicateQueryError):
        q.add_group_by("mods.id")
    q.add_group_by("mods.id", tolerate=True)
    assert q.build()["group_by"] == "mods.id"


def test_duplicate_order_by_ignores_direction():
    q = WikiQuery("mods").add_order_by("mods.id", "ASC")
    with pytest.raises(DuplicateQueryError):
        q.add_order_by("mods.id", "DESC")
    q.add_order_by("mods.id", "DESC", tolerate=True)
    assert q.build()["order_by"] == "mods.id ASC"


# ── Pagination ───────────────────────────────────────────

def test_set_limit_keeps_offset_when_omitted():
    q = WikiQuery("mods").set_limit(500, 1500)
    q.set_limit(250)
    assert q.build()["limit"] == 250
    assert q.build()["offset"] == 1500


def test_set_offset():
    q = WikiQuery("mods").set_offset(42)
    built = q.build()
    assert built["offset"] == 42
    assert "limit" not in built
