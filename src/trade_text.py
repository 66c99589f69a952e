"""
PoE Data - Trade Text Resolver
Maps wiki mod stat text to trade API stat ids.

Wiki mods describe their rolls as ranges ("+(10-20)% increased Life"), the
trade stat catalog uses a '#' placeholder ("#% increased Life"). Each stat
line goes through three steps:

1. get_trade_text   "+(10-20)% increased Life" → "+#% increased Life"
2. get_trade_limits "+(10-20)% increased Life" → [["10", "20"]]
3. get_trade_ids    exact text match against the catalog first; if nothing
                    matches, a tolerant regex (numbers ↔ '#', optional '+',
                    increased ↔ reduced, optional "(Local)"-style suffix)

A line that matches nothing gets an empty id list. That is a normal result.
"""

import re
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from records import StatCatalog
from text_utils import decode_html

logger = logging.getLogger(__name__)

_NUMBER = r"-?\d+(?:\.\d+)?"
# "(10-20)", "(5)", "(-10--5)", "(0.2-0.4)"
_RANGE_RE = re.compile(r"\((" + _NUMBER + r")(?:-(" + _NUMBER + r"))?\)")

# Numeric literal or '#' placeholder after re.escape(), with optional "\+"
_ESCAPED_VALUE_RE = re.compile(r"(\\\+)?(\\#|\d+(?:\\\.\d+)?)")
_INCREASED_RE = re.compile(r"increased|reduced", re.IGNORECASE)
_SECONDS_RE = re.compile(r"seconds?", re.IGNORECASE)
# "(Local)", "(Shields)" and similar descriptors the catalog appends
_TRAILING_DESCRIPTOR = r"(?: \([^()]+\))?"


@dataclass
class TradeResolution:
    text: str                                              # "+#% increased Life"
    limits: List[List[List[str]]] = field(default_factory=list)  # per line
    ids: List[List[str]] = field(default_factory=list)     # per line, may be empty


def get_trade_text(raw_text: Optional[str]) -> str:
    """Decode wiki markup and replace every roll range with '#'."""
    return _RANGE_RE.sub("#", decode_html(raw_text))


def get_trade_limits(raw_text: Optional[str]) -> List[List[List[str]]]:
    """Roll ranges per line, in order of appearance.

    "+(10-20)% increased Life\\n+(5) to Strength" → [[["10", "20"]], [["5"]]]
    """
    result = []
    for line in decode_html(raw_text).split("\n"):
        line_limits = []
        for m in _RANGE_RE.finditer(line):
            low, high = m.group(1), m.group(2)
            line_limits.append([low, high] if high is not None else [low])
        result.append(line_limits)
    return result


def _escaped_value(m: re.Match) -> str:
    value = m.group(2)
    if value == "\\#":
        return r"\+?\#"
    return r"(?:\+?\#|\+?" + value + ")"


def tolerant_regex(line: str) -> re.Pattern:
    """Case-insensitive pattern that accepts catalog variants of ``line``.

    Example: "+15% increased Life" matches "#% increased Life",
    "#% reduced Life" and "+#% increased Life (Local)".
    """
    pattern = _ESCAPED_VALUE_RE.sub(_escaped_value, re.escape(line))
    pattern = _INCREASED_RE.sub("(?:increased|reduced)", pattern)
    pattern = _SECONDS_RE.sub("seconds?", pattern)
    return re.compile("^" + pattern + _TRAILING_DESCRIPTOR + "$", re.IGNORECASE)


def match_line(line: str, catalog: StatCatalog) -> List[str]:
    """Stat ids for one normalized line (exact pass, then tolerant pass)."""
    if not line.strip():
        return []

    ids = catalog.ids_for_text(line)
    if ids:
        return ids

    regex = tolerant_regex(line)
    return [stat_id for _, stat_id, stat_text in catalog.entries()
            if regex.match(stat_text)]


def get_trade_ids(text: Optional[str], catalog: StatCatalog) -> List[List[str]]:
    """Stat ids per line of normalized trade text. "" → []."""
    if not text:
        return []
    return [match_line(line, catalog) for line in text.split("\n")]


class StatResolver:
    """
    Resolves mod stat text against the current trade stat catalog.

    The catalog is fetched through ``catalog_fn`` on every call so the
    resolver follows trade data refreshes. Line matches are memoized per
    catalog instance.

    Usage:
        resolver = StatResolver(lambda: trade_reader.data.stats)
        res = resolver.resolve("+(10-20)% increased Life")
        res.text, res.limits, res.ids
    """

    def __init__(self, catalog_fn: Callable[[], StatCatalog]):
        self._catalog_fn = catalog_fn
        self._memo_catalog: Optional[StatCatalog] = None
        self._memo: Dict[str, List[str]] = {}

    @property
    def catalog(self) -> StatCatalog:
        return self._catalog_fn()

    def get_trade_ids(self, text: Optional[str]) -> List[List[str]]:
        if not text:
            return []
        catalog = self.catalog
        if catalog is not self._memo_catalog:
            logger.debug(f"StatResolver: stat catalog changed ({len(catalog)} stats)")
            self._memo_catalog = catalog
            self._memo = {}

        result = []
        for line in text.split("\n"):
            ids = self._memo.get(line)
            if ids is None:
                ids = match_line(line, catalog)
                self._memo[line] = ids
            result.append(list(ids))
        return result

    def resolve(self, raw_text: Optional[str]) -> TradeResolution:
        text = get_trade_text(raw_text)
        return TradeResolution(
            text=text,
            limits=get_trade_limits(raw_text),
            ids=self.get_trade_ids(text),
        )
