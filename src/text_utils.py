"""
PoE Data - Text helpers for wiki markup.
"""

import re
from typing import Optional

from bs4 import BeautifulSoup

_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)


def decode_html(text: Optional[str]) -> str:
    """Decode wiki HTML into plain text.

    "<br>" tags become newlines, entities are decoded and any other markup
    is stripped:  "Life<br/>Mana &amp; ES" → "Life\\nMana & ES".
    """
    if not text:
        return ""
    if "<" not in text and "&" not in text:
        return text
    text = _BR_RE.sub("\n", text)
    return BeautifulSoup(text, "html.parser").get_text()


def split_tags(value: Optional[str]) -> list:
    """Comma-separated wiki tag column → list ("" → [])."""
    if not value:
        return []
    return [tag for tag in value.split(",") if tag]
