"""
PoE Data - Wiki Cargo Query Builder

Accumulates tables, joins, fields, filters, grouping and ordering for a
cargo query and renders them into the form parameters the wiki API expects.

Example:
    q = WikiQuery("items").add_fields(["items._pageID=page_id", "items.name"])
    q.add_where('items.class="Currency"').set_limit(500, 0)
    q.build()
    # {"tables": "items", "fields": "items._pageID=page_id,items.name",
    #  "where": 'items.class="Currency"', "limit": 500, "offset": 0}

Adding a duplicate field, join, group or order raises DuplicateQueryError
at that call. Pass tolerate=True to skip duplicates silently instead.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Union


class DuplicateQueryError(ValueError):
    """A field, table, group or order clause was added twice."""


@dataclass(frozen=True)
class QueryField:
    name: str                    # "items._pageID"
    alias: Optional[str] = None  # "page_id"

    @property
    def key(self) -> str:
        """Column name in the result rows."""
        return self.alias if self.alias else self.name

    def render(self) -> str:
        return f"{self.name}={self.alias}" if self.alias else self.name


@dataclass(frozen=True)
class QueryOrder:
    name: str
    direction: Optional[str] = None  # "ASC" / "DESC"

    def render(self) -> str:
        return f"{self.name} {self.direction}" if self.direction else self.name


class WikiQuery:
    """Mutable builder for one cargo query."""

    def __init__(self, table: str):
        self.tables: List[str] = [table]
        self.join_on: List[str] = []
        self.fields: List[QueryField] = []
        self.where: List[str] = []
        self.group_by: List[str] = []
        self.having: List[str] = []
        self.order_by: List[QueryOrder] = []
        self.limit: Optional[int] = None
        self.offset: Optional[int] = None

    @property
    def table(self) -> str:
        return self.tables[0]

    # ─── Fields ───────────────────────────────────

    def add_field(self, name: str, alias: Optional[str] = None,
                  tolerate: bool = False) -> "WikiQuery":
        field = QueryField(name=name, alias=alias or None)
        if self.has_field(field.name, field.alias):
            if tolerate:
                return self
            raise DuplicateQueryError(
                f"Duplicate field name in query! ({name} / {alias})")
        self.fields.append(field)
        return self

    def add_fields(self, field_list: Iterable[str],
                   tolerate: bool = False) -> "WikiQuery":
        """Add fields given as "name" or "name=alias" strings."""
        for entry in field_list:
            name, _, alias = entry.partition("=")
            self.add_field(name.strip(), alias.strip() or None, tolerate)
        return self

    def has_field(self, name: str, alias: Optional[str] = None) -> bool:
        """True if ``name`` or the output column it would produce is taken."""
        key = alias if alias else name
        for field in self.fields:
            if field.key == key or field.name == name:
                return True
        return False

    # ─── Joins ────────────────────────────────────

    def add_join(self, table: str, join_on: str,
                 tolerate: bool = False) -> "WikiQuery":
        if table in self.tables:
            if tolerate:
                return self
            raise DuplicateQueryError(f"Table '{table}' already joined!")
        self.tables.append(table)
        self.join_on.append(join_on)
        return self

    # ─── Filters ──────────────────────────────────

    def add_where(self, condition: str) -> "WikiQuery":
        self.where.append(condition)
        return self

    def add_having(self, condition: str) -> "WikiQuery":
        self.having.append(condition)
        return self

    # ─── Grouping / ordering ──────────────────────

    def add_group_by(self, field: str, tolerate: bool = False) -> "WikiQuery":
        if field in self.group_by:
            if tolerate:
                return self
            raise DuplicateQueryError(f"Already grouped by field '{field}'!")
        self.group_by.append(field)
        return self

    def add_order_by(self, field: str, direction: Optional[str] = None,
                     tolerate: bool = False) -> "WikiQuery":
        if any(order.name == field for order in self.order_by):
            if tolerate:
                return self
            raise DuplicateQueryError(f"Already ordered by field '{field}'!")
        self.order_by.append(QueryOrder(name=field, direction=direction or None))
        return self

    # ─── Pagination ───────────────────────────────

    def set_limit(self, limit: Optional[int],
                  offset: Optional[int] = None) -> "WikiQuery":
        self.limit = limit
        if offset is not None:
            self.offset = offset
        return self

    def set_offset(self, offset: Optional[int]) -> "WikiQuery":
        self.offset = offset
        return self

    # ─── Rendering ────────────────────────────────

    def build(self) -> Dict[str, Union[str, int]]:
        """Render wire parameters. Empty clauses are left out."""
        query: Dict[str, Union[str, int]] = {"tables": ",".join(self.tables)}
        if self.join_on:
            query["join_on"] = ",".join(self.join_on)
        if self.fields:
            query["fields"] = ",".join(f.render() for f in self.fields)
        if self.where:
            query["where"] = " AND ".join(self.where)
        if self.group_by:
            query["group_by"] = ",".join(self.group_by)
        if self.having:
            query["having"] = " AND ".join(self.having)
        if self.order_by:
            query["order_by"] = ",".join(o.render() for o in self.order_by)
        if self.limit is not None:
            query["limit"] = self.limit
        if self.offset is not None:
            query["offset"] = self.offset
        return query
