"""Tests for trade_api_reader.py — endpoint handling and cache lifecycle."""

import pytest
import requests

from data_reader import RefreshInProgressError
from records import StatCatalog, TradeData
from tests.conftest import FakeResponse, FakeSession
from trade_api_reader import TradeApiError, TradeApiReader


# ── Handlers ─────────────────────────────────────────────

def test_handle_leagues():
    leagues = TradeApiReader.handle_leagues({"result": [
        {"id": "Standard", "text": "Standard"},
        {"id": "Hardcore", "text": "Hardcore", "realm": "pc"},
    ]})
    assert leagues == {"Standard": "Standard", "Hardcore": "Hardcore"}


def test_handle_static_category_dict():
    static = TradeApiReader.handle_static({"result": {
        "currency": [{"id": "alt", "text": "Orb of Alteration"}],
        "cards": [],
    }})
    assert static == {"currency": {"alt": "Orb of Alteration"}, "cards": {}}


def test_handle_static_grouped_list():
    static = TradeApiReader.handle_static({"result": [
        {"id": "Currency", "label": "Currency",
         "entries": [{"id": "alt", "text": "Orb of Alteration"}]},
        {"id": "Maps", "label": "Maps", "entries": [{"id": "beach", "text": "Beach Map"}]},
    ]})
    assert static == {
        "currency": {"alt": "Orb of Alteration"},
        "maps": {"beach": "Beach Map"},
    }


def test_handle_static_skips_entries_without_id():
    static = TradeApiReader.handle_static({"result": {
        "currency": [{"text": "Separator"}, {"id": "chaos", "text": "Chaos Orb"}],
    }})
    assert static == {"currency": {"chaos": "Chaos Orb"}}


def test_handle_static_rejects_bad_shape():
    with pytest.raises(ValueError):
        TradeApiReader.handle_static({"result": "nope"})


def test_handle_stats():
    catalog = TradeApiReader.handle_stats({"result": [
        {"label": "Explicit", "entries": [
            {"id": "explicit.stat_1", "text": "+# to Strength"},
        ]},
        {"label": "Pseudo", "entries": []},
    ]})
    assert isinstance(catalog, StatCatalog)
    assert catalog.by_type == {"Explicit": {"explicit.stat_1": "+# to Strength"}, "Pseudo": {}}


# ── Refresh lifecycle ────────────────────────────────────

def test_refresh_fetches_and_caches(data_config, trade_session):
    reader = TradeApiReader(data_config, session=trade_session)
    events = []
    reader.register_callback("update-start", lambda: events.append("start"))
    reader.register_callback("update-done", lambda: events.append("done"))

    assert reader.refresh() is True
    assert events == ["start", "done"]
    assert reader.data.static["currency"]["alt"] == "Orb of Alteration"
    assert reader.data.leagues == {"Standard": "Standard", "Hardcore": "Hardcore"}
    assert len(reader.data.stats) == 2
    urls = [url for _, url, _ in trade_session.calls]
    assert urls == [
        "https://trade.test/api/trade/data/leagues",
        "https://trade.test/api/trade/data/static",
        "https://trade.test/api/trade/data/stats",
    ]
    assert reader.storage.exists()


def test_fresh_cache_skips_network(data_config, trade_session):
    TradeApiReader(data_config, session=trade_session).refresh()

    offline = FakeSession([])
    reader = TradeApiReader(data_config, session=offline)
    assert reader.data.static["currency"]["alt"] == "Orb of Alteration"
    assert reader.refresh() is False
    assert offline.calls == []


def test_force_refresh(data_config, trade_session):
    reader = TradeApiReader(data_config, session=trade_session)
    reader.refresh()
    assert reader.refresh(force=True) is True
    assert len(trade_session.calls) == 6


def test_expired_cache_refetches(data_config, trade_session):
    reader = TradeApiReader(data_config, session=trade_session)
    reader.refresh()
    reader.config.trade_cache_lifetime = 1
    reader.storage.age_minutes = lambda: 5.0
    assert reader.refresh() is True


def test_corrupt_cache_falls_back_to_empty(data_config):
    data_config.cache_dir.mkdir(parents=True)
    (data_config.cache_dir / "trade-api.json.gz").write_bytes(b"garbage")
    reader = TradeApiReader(data_config, session=FakeSession([]))
    assert reader.data == TradeData()
    assert reader.needs_refresh()


def test_damaged_cache_body_falls_back_to_empty(data_config):
    from cached_storage import CachedStorage
    store = CachedStorage("trade-api", data_config.cache_dir)
    store.write({"leagues": {str(i): f"League {i}" for i in range(200)}})
    data = bytearray(store.path.read_bytes())
    data[10:40] = b"\xff" * 30
    store.path.write_bytes(bytes(data))

    reader = TradeApiReader(data_config, session=FakeSession([]))
    assert reader.data == TradeData()
    assert reader.needs_refresh()


def test_wrong_shape_cache_falls_back_to_empty(data_config):
    from cached_storage import CachedStorage
    CachedStorage("trade-api", data_config.cache_dir).write({"leagues": ["not", "a", "map"]})
    reader = TradeApiReader(data_config, session=FakeSession([]))
    assert reader.data == TradeData()
    assert reader.needs_refresh()


def test_failure_keeps_previous_data(data_config, trade_session):
    reader = TradeApiReader(data_config, session=trade_session)
    reader.refresh()
    before = reader.data

    reader._session = FakeSession([
        FakeResponse({"result": []}),
        FakeResponse({}, status_code=500),
    ])
    with pytest.raises(TradeApiError, match="Invalid status code <500>"):
        reader.refresh(force=True)
    assert reader.data is before
    assert not reader.is_updating()


def test_network_error_wrapped(data_config):
    reader = TradeApiReader(data_config, session=FakeSession([requests.Timeout("slow")]))
    with pytest.raises(TradeApiError):
        reader.refresh()
    assert not reader.storage.exists()


def test_bad_payload_wrapped(data_config):
    def handler(method, url, params):
        if url.endswith("/stats"):
            return FakeResponse({"result": {"not": "a list"}})
        return FakeResponse({"result": []})

    reader = TradeApiReader(data_config, session=FakeSession(handler))
    with pytest.raises(TradeApiError, match="unexpected trade data shape"):
        reader.refresh()


def test_reentrant_refresh_rejected(data_config, trade_session):
    reader = TradeApiReader(data_config, session=trade_session)
    caught = []

    def nested():
        with pytest.raises(RefreshInProgressError):
            reader.refresh(force=True)
        caught.append(reader.is_updating())

    reader.register_callback("update-start", nested)
    reader.refresh()
    assert caught == [True]
    assert not reader.is_updating()
