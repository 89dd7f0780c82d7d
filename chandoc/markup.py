"""
Shared HTML helpers used by both comment renderers and the backlink indexer.

Quotelink classification lives here so that the tree renderer, the regex
renderer and the indexer agree on what a reference points to.
"""

from __future__ import annotations

import re
from typing import Optional

from chandoc.fragments import QuoteBlock, QuoteRelation

ANCHOR_RE = re.compile(r"<a\s([^>]*)>(.*?)</a>", re.IGNORECASE | re.DOTALL)
ATTR_RE = re.compile(r"""([\w-]+)\s*=\s*(?:"([^"]*)"|'([^']*)')""")

IN_PAGE_HREF_RE = re.compile(r"^#p(\d+)$")
CROSS_THREAD_HREF_RE = re.compile(r"^/(\w+)/thread/(\d+)(?:/[^#]*)?#p(\d+)$")
CROSS_BOARD_HREF_RE = re.compile(
    r"^(?:https?:)?//[^/]+/(\w+)/(?:thread/(\d+)(?:/[^#]*)?(?:#p(\d+))?)?$"
)
CATALOG_TEXT_RE = re.compile(r"^>>>/(\w+)/(?!\d+$)(.*)$", re.DOTALL)
ABSOLUTE_URL_RE = re.compile(r"^https?://\S+$", re.IGNORECASE)

# Order matters: "&amp;" goes last so "&amp;gt;" decodes to "&gt;", not ">".
ENTITIES: tuple[tuple[str, str], ...] = (
    ("&gt;", ">"),
    ("&lt;", "<"),
    ("&quot;", '"'),
    ("&#039;", "'"),
    ("&#39;", "'"),
    ("&#44;", ","),
    ("&amp;", "&"),
)


def decode_entities(text: str) -> str:
    for entity, char in ENTITIES:
        text = text.replace(entity, char)
    return text


def parse_attrs(raw: str) -> dict[str, str]:
    """Attributes of a start tag body, e.g. ``href="#p1" class="quotelink"``."""
    attrs: dict[str, str] = {}
    for m in ATTR_RE.finditer(raw):
        value = m.group(2) if m.group(2) is not None else m.group(3)
        attrs[m.group(1).lower()] = decode_entities(value)
    return attrs


def has_class(attrs: dict[str, str], name: str) -> bool:
    return name in attrs.get("class", "").split()


def classify_quotelink(href: str, text: str) -> Optional[QuoteBlock]:
    """
    Resolve a quotelink by href shape, first match wins:
    in-page, cross-thread, cross-board, catalog search.

    ``text`` is the decoded link text. Returns None when nothing matches.
    """
    href = href.strip()

    m = IN_PAGE_HREF_RE.match(href)
    if m:
        return QuoteBlock(text, QuoteRelation.IN_PAGE, post=int(m.group(1)))

    m = CROSS_THREAD_HREF_RE.match(href)
    if m:
        return QuoteBlock(
            text,
            QuoteRelation.CROSS_THREAD,
            board=m.group(1),
            thread=int(m.group(2)),
            post=int(m.group(3)),
        )

    m = CROSS_BOARD_HREF_RE.match(href)
    if m:
        return QuoteBlock(
            text,
            QuoteRelation.CROSS_BOARD,
            board=m.group(1),
            thread=int(m.group(2)) if m.group(2) else None,
            post=int(m.group(3)) if m.group(3) else None,
        )

    m = CATALOG_TEXT_RE.match(text)
    if m:
        return QuoteBlock(
            text,
            QuoteRelation.CATALOG,
            board=m.group(1),
            search=m.group(2).strip() or None,
        )

    return None


def in_page_targets(comment: Optional[str]) -> list[int]:
    """Post ids referenced by in-page quotelinks, in order, duplicates removed."""
    if not comment:
        return []
    seen: dict[int, None] = {}
    for m in ANCHOR_RE.finditer(comment):
        attrs = parse_attrs(m.group(1))
        if not has_class(attrs, "quotelink"):
            continue
        target = IN_PAGE_HREF_RE.match(attrs.get("href", "").strip())
        if target:
            seen.setdefault(int(target.group(1)), None)
    return list(seen)
