"""
Document fragment nodes produced by the comment renderers.

A fragment is a tuple of nodes. The node set is closed (``NodeKind``); every
consumer matches on ``node.kind`` and must handle each kind.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Union


class NodeKind(str, Enum):
    TEXT = "text"
    LINE_BREAK = "line-break"
    QUOTE = "quote-block"
    CODE = "code-block"
    SPOILER = "spoiler-block"
    LINK = "plain-link"


class TextStyle(str, Enum):
    PLAIN = "plain"
    VERBATIM = "verbatim"
    DEAD = "dead"


class QuoteRelation(str, Enum):
    IN_PAGE = "in-page"
    CROSS_THREAD = "cross-thread"
    CROSS_BOARD = "cross-board"
    CATALOG = "catalog"
    GREENTEXT = "greentext"


class GreentextMode(str, Enum):
    """How ``span.quote`` lines are rendered."""

    VERBATIM = "verbatim"
    BLOCK = "block"
    PASS = "pass"


@dataclass(frozen=True)
class Text:
    text: str
    style: TextStyle = TextStyle.PLAIN
    kind = NodeKind.TEXT


@dataclass(frozen=True)
class LineBreak:
    kind = NodeKind.LINE_BREAK


@dataclass(frozen=True)
class QuoteBlock:
    text: str
    relation: QuoteRelation
    board: Optional[str] = None
    thread: Optional[int] = None
    post: Optional[int] = None
    search: Optional[str] = None
    kind = NodeKind.QUOTE


@dataclass(frozen=True)
class CodeBlock:
    language: str
    body: str
    kind = NodeKind.CODE


@dataclass(frozen=True)
class SpoilerBlock:
    text: str
    kind = NodeKind.SPOILER


@dataclass(frozen=True)
class PlainLink:
    url: str
    kind = NodeKind.LINK


Node = Union[Text, LineBreak, QuoteBlock, CodeBlock, SpoilerBlock, PlainLink]
Fragment = tuple[Node, ...]


def trim_greentext(text: str) -> str:
    """Trailing whitespace is trimmed per line."""
    return "\n".join(line.rstrip() for line in text.split("\n"))


def normalize(nodes: Iterable[Node], mode: GreentextMode = GreentextMode.VERBATIM) -> Fragment:
    """
    Canonical form shared by both renderers.

    - adjacent Text nodes of the same style are merged, empty ones dropped
    - in block mode, greentext blocks separated by one line break are merged
    """
    out: list[Node] = []
    for node in nodes:
        if node.kind is NodeKind.TEXT:
            if not node.text:
                continue
            prev = out[-1] if out else None
            if prev is not None and prev.kind is NodeKind.TEXT and prev.style is node.style:
                out[-1] = Text(prev.text + node.text, node.style)
                continue
        elif mode is GreentextMode.BLOCK and _is_greentext(node):
            if len(out) >= 2 and out[-1].kind is NodeKind.LINE_BREAK and _is_greentext(out[-2]):
                out.pop()
                prev = out.pop()
                node = QuoteBlock(prev.text + "\n" + node.text, QuoteRelation.GREENTEXT)
        out.append(node)
    return tuple(out)


def plain_text(nodes: Iterable[Node]) -> str:
    """Flatten a fragment to text, e.g. for previews."""
    parts: list[str] = []
    for node in nodes:
        if node.kind is NodeKind.LINE_BREAK:
            parts.append("\n")
        elif node.kind is NodeKind.CODE:
            parts.append(node.body)
        elif node.kind is NodeKind.LINK:
            parts.append(node.url)
        else:
            parts.append(node.text)
    return "".join(parts)


def _is_greentext(node: Node) -> bool:
    return node.kind is NodeKind.QUOTE and node.relation is QuoteRelation.GREENTEXT
