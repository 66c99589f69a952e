"""Shared fixtures for the PoE Data test suite."""

import sys
import logging
from pathlib import Path

import pytest

# Ensure src/ is importable
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from core.data_config import DataConfig
from records import StatCatalog

logger = logging.getLogger(__name__)


# ── HTTP fakes ───────────────────────────────────────────

class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, body=None, status_code=200):
        self._body = body
        self.status_code = status_code

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


class FakeSession:
    """Records calls and answers from a queue (or a handler function).

    ``replies`` is a list of FakeResponse / Exception consumed in order, or a
    callable(method, url, params) returning one.
    """

    def __init__(self, replies=None):
        self.headers = {}
        self.calls = []
        self._replies = replies if replies is not None else []

    def _reply(self, method, url, params):
        self.calls.append((method, url, dict(params or {})))
        if callable(self._replies):
            reply = self._replies(method, url, dict(params or {}))
        else:
            reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def post(self, url, data=None, timeout=None):
        return self._reply("POST", url, data)

    def get(self, url, params=None, timeout=None):
        return self._reply("GET", url, params)

    @property
    def posted(self):
        return [params for method, _, params in self.calls if method == "POST"]


def cargo_rows(rows):
    """Wrap plain row dicts the way cargoquery returns them."""
    return {"cargoquery": [{"title": row} for row in rows]}


# ── Sample wiki tables ───────────────────────────────────

WIKI_TABLES = {
    "items": [
        {"page_id": "1", "name": "Iron Hat", "class": "Helmets",
         "tags": "helmet,armour,default", "description": "", "stat text": "",
         "help text": "", "flavour text": "", "drop level": "1"},
        {"page_id": "2", "name": "Orb of Alteration", "class": "Stackable Currency",
         "tags": "currency,default",
         "description": "Reforges a magic item with new random modifiers",
         "help text": "Right click this item then left click a magic item to apply it.",
         "stat text": "", "flavour text": ""},
    ],
    "item_mods": [
        {"page_id": "1", "id": "ArmourImplicit1", "is implicit": "1"},
        {"page_id": "99", "id": "OrphanMod"},
    ],
    "item_stats": [
        {"page_id": "1", "id": "base_armour", "min": "5", "max": "5"},
    ],
    "mods": [
        {"page_id": "10", "id": "IncreasedLife3", "name": "Hale", "domain": "1",
         "generation type": "1", "stat text raw": "+(40-49) to maximum Life",
         "tags": "life"},
        {"page_id": "11", "id": "MovementVelocity2", "name": "Runner's", "domain": "1",
         "generation type": "1", "stat text raw": "(15-19)% increased Movement Speed",
         "tags": ""},
        {"page_id": "12", "id": "CannotBeFrozenImplicit", "name": "", "domain": "1",
         "generation type": "3", "stat text raw": "Cannot be Frozen", "tags": ""},
    ],
    "mod_stats": [
        {"page_id": "10", "id": "base_maximum_life", "min": "40", "max": "49"},
        {"page_id": "77", "id": "orphan_stat", "min": "1", "max": "1"},
    ],
    "spawn_weights": [
        {"page_id": "10", "ordinal": "0", "tag": "helmet", "weight": "1000"},
        {"page_id": "10", "ordinal": "1", "tag": "default", "weight": "0"},
        {"page_id": "11", "ordinal": "0", "tag": "boots", "weight": "1000"},
    ],
}


def wiki_handler(tables, fail_table=None):
    """Serve cargo queries (and login requests) from ``tables``."""
    def handler(method, url, params):
        action = params.get("action")
        if action == "query":
            return FakeResponse({"query": {"tokens": {"logintoken": "tok"}}})
        if action == "login":
            return FakeResponse({"login": {"result": "Success"}})
        if params["tables"] == fail_table:
            return FakeResponse({}, status_code=500)
        rows = tables.get(params["tables"], [])
        offset, limit = params["offset"], params["limit"]
        return FakeResponse(cargo_rows(rows[offset:offset + limit]))
    return handler


# ── Fixtures ─────────────────────────────────────────────

@pytest.fixture
def data_config(tmp_path):
    """DataConfig pointing at a temporary cache with no page delay."""
    return DataConfig(
        cache_dir=tmp_path / "cache",
        wiki_api_url="https://wiki.test/api.php",
        trade_data_url="https://trade.test/api/trade/data",
        wiki_page_limit=500,
        wiki_page_delay=0,
        request_timeout=5,
    )


@pytest.fixture
def stat_catalog():
    """Small trade stat catalog covering the common matching cases."""
    return StatCatalog({
        "Explicit": {
            "explicit.stat_life_pct": "#% increased maximum Life",
            "explicit.stat_life": "+# to maximum Life",
            "explicit.stat_str": "+# to Strength",
            "explicit.stat_move": "#% increased Movement Speed",
            "explicit.stat_stun": "#% reduced Enemy Stun Threshold",
            "explicit.stat_phys_local": "#% increased Physical Damage (Local)",
            "explicit.stat_duration": "Buff lasts # seconds",
            "explicit.stat_adds_fire": "Adds # to # Fire Damage",
        },
        "Implicit": {
            "implicit.stat_str": "+# to Strength",
        },
        "Pseudo": {
            "pseudo.total_life": "+# total maximum Life",
        },
    })


@pytest.fixture
def trade_replies():
    """Replies for the three trade data endpoints, keyed by type."""
    return {
        "leagues": {"result": [
            {"id": "Standard", "text": "Standard"},
            {"id": "Hardcore", "text": "Hardcore"},
        ]},
        "static": {"result": {
            "currency": [
                {"id": "alt", "text": "Orb of Alteration", "image": "/alt.png"},
                {"id": "chaos", "text": "Chaos Orb"},
            ],
            "maps": [{"id": "beach", "text": "Beach Map"}],
            "elder_maps": [{"id": "elder-beach", "text": "Elder Beach Map"}],
        }},
        "stats": {"result": [
            {"label": "Explicit", "entries": [
                {"id": "explicit.stat_life", "text": "+# to maximum Life", "type": "explicit"},
                {"id": "explicit.stat_life_pct", "text": "#% increased maximum Life"},
            ]},
        ]},
    }


@pytest.fixture
def trade_session(trade_replies):
    """FakeSession answering GET <url>/<type> from trade_replies."""
    def handler(method, url, params):
        return FakeResponse(trade_replies[url.rsplit("/", 1)[-1]])
    return FakeSession(handler)
