"""
PoE Data - Wiki API Client
Talks to the Path of Exile wiki's MediaWiki API: login handshake and
paginated cargo queries.

Pagination:
1. Send the query with limit=L, offset=O (POST form, action=cargoquery)
2. Hand each returned row to the caller with its absolute row index
3. A full page (L rows) means more may follow: sleep, advance O, repeat
4. A short page ends the table

When the wiki answers with a "... may not be over N" warning, the client
lowers its limit to N for every later query, not just the current table.
No page is retried on failure; errors propagate to the caller.
"""

import re
import time
import logging
from typing import Callable, Dict, List, Optional

import requests

from config import (
    WIKI_API_URL,
    WIKI_PAGE_LIMIT,
    WIKI_PAGE_DELAY,
    REQUEST_TIMEOUT,
    USER_AGENT,
)
from wiki_query import WikiQuery

logger = logging.getLogger(__name__)

_LIMIT_CAP_RE = re.compile(r"may not be over (\d+)", re.IGNORECASE)


class WikiError(Exception):
    """Base class for wiki API failures."""


class WikiTransportError(WikiError):
    """Network failure, non-200 status or unparseable body."""


class WikiApiError(WikiError):
    """The wiki answered with an error payload."""

    def __init__(self, code: str, info: str):
        super().__init__(f"{code}: {info}")
        self.code = code
        self.info = info


def _api_error(reply: dict) -> WikiApiError:
    error = reply.get("error") or {}
    return WikiApiError(str(error.get("code", "unknown")), str(error.get("info", "")))


class WikiClient:
    """
    MediaWiki/cargo client with an adaptive page size.

    Usage:
        wc = WikiClient()
        wc.login("user", "password")        # optional
        q = WikiQuery("mods").add_fields(["mods._pageID=page_id", "mods.id"])
        wc.fetch_table(q, lambda row, index: print(index, row))
    """

    def __init__(self, api_url: str = WIKI_API_URL, limit: int = WIKI_PAGE_LIMIT,
                 page_delay: float = WIKI_PAGE_DELAY,
                 timeout: float = REQUEST_TIMEOUT,
                 user_agent: str = USER_AGENT,
                 session: Optional[requests.Session] = None):
        self.api_url = api_url
        self.limit = limit
        self.page_delay = page_delay
        self.timeout = timeout
        self._session = session if session is not None else requests.Session()
        self._session.headers.update({"User-Agent": user_agent})
        self.login_token: Optional[str] = None
        self.logged_in = False

    def configure(self, api_url: str, limit: int, page_delay: float,
                  timeout: float, user_agent: str) -> None:
        """Apply new connection settings, keeping the session and login."""
        self.api_url = api_url
        self.limit = limit
        self.page_delay = page_delay
        self.timeout = timeout
        self._session.headers.update({"User-Agent": user_agent})

    # ─── Transport ────────────────────────────────

    def send_request(self, params: Dict) -> dict:
        """POST form parameters, return the decoded JSON reply."""
        try:
            resp = self._session.post(self.api_url, data=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise WikiTransportError(f"request to {self.api_url} failed: {e}") from e

        if resp.status_code != 200:
            raise WikiTransportError(f"Invalid status code <{resp.status_code}>")

        try:
            body = resp.json()
        except ValueError as e:
            raise WikiTransportError(f"invalid JSON reply: {e}") from e
        if not isinstance(body, dict):
            raise WikiTransportError(f"unexpected reply type {type(body).__name__}")
        return body

    # ─── Login ────────────────────────────────────

    def get_login_token(self) -> str:
        reply = self.send_request({
            "action": "query",
            "meta": "tokens",
            "type": "login",
            "format": "json",
        })
        if "error" in reply:
            raise _api_error(reply)
        try:
            token = reply["query"]["tokens"]["logintoken"]
        except (KeyError, TypeError):
            raise WikiApiError("invalid-response", "reply carries no login token")
        self.login_token = token
        return token

    def login(self, username: str, password: str) -> bool:
        """Authenticate the session. Returns True on success."""
        if self.login_token is None:
            self.get_login_token()

        reply = self.send_request({
            "action": "login",
            "lgname": username,
            "lgpassword": password,
            "lgtoken": self.login_token,
            "format": "json",
        })
        if "error" in reply:
            raise _api_error(reply)

        login = reply.get("login")
        result = login.get("result") if isinstance(login, dict) else reply.get("result")
        self.logged_in = result == "Success"
        if self.logged_in:
            logger.info(f"WikiClient: logged in as {username}")
        else:
            logger.warning(f"WikiClient: login for {username} failed ({result})")
        return self.logged_in

    # ─── Cargo queries ────────────────────────────

    def send_cargo_query(self, params: Dict) -> Optional[List[dict]]:
        """Run one cargo query.

        Returns the result rows, or None when the reply only told us to
        lower the page size (the caller should re-issue the page).
        """
        params = dict(params, action="cargoquery", format="json")
        reply = self.send_request(params)

        lowered = self._apply_limit_warning(reply)
        if "error" in reply:
            raise _api_error(reply)

        rows = reply.get("cargoquery")
        if rows is None:
            if lowered:
                return None
            raise WikiApiError("invalid-response", "reply has no cargoquery result")
        if not isinstance(rows, list):
            raise WikiApiError("invalid-response",
                               f"cargoquery is {type(rows).__name__}, expected list")
        return rows

    def _apply_limit_warning(self, reply: dict) -> bool:
        """Lower self.limit if the reply reports a smaller row cap."""
        warnings = reply.get("warnings")
        if not isinstance(warnings, dict):
            return False
        cargo_warning = warnings.get("cargoquery")
        if not isinstance(cargo_warning, dict):
            return False
        m = _LIMIT_CAP_RE.search(str(cargo_warning.get("*", "")))
        if not m:
            return False

        cap = int(m.group(1))
        if cap <= 0 or cap >= self.limit:
            return False
        logger.info(f"WikiClient: wiki caps queries at {cap} rows, "
                    f"lowering limit from {self.limit}")
        self.limit = cap
        return True

    def fetch_table(self, query: WikiQuery,
                    on_record: Callable[[dict, int], None]) -> int:
        """Page through ``query`` and feed every row to ``on_record``.

        Rows are delivered strictly in offset order. Returns the number of
        rows processed.
        """
        offset = 0
        while True:
            query.set_limit(self.limit, offset)
            rows = self.send_cargo_query(query.build())
            if rows is None:
                logger.debug(f"WikiClient: re-issuing {query.table}@{offset} "
                             f"with limit {self.limit}")
                continue

            for i, row in enumerate(rows):
                record = row.get("title", row) if isinstance(row, dict) else row
                on_record(record, offset + i)
            offset += len(rows)

            if len(rows) < self.limit:
                break
            # Throttle a bit between full pages
            if self.page_delay > 0:
                time.sleep(self.page_delay)

        logger.debug(f"WikiClient: fetched {offset} rows from {query.table}")
        return offset
