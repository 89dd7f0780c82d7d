"""
Comment renderers: raw post HTML -> document fragment.

Two interchangeable strategies share the ``CommentRenderer`` interface:

- ``TreeRenderer`` walks a BeautifulSoup tree, dispatching on tag + class.
- ``RegexRenderer`` applies an ordered list of substitution rules to the raw
  string. Structured nodes are stashed aside and replaced by sentinel markers,
  so later rules (entity decoding in particular) never touch them twice.

Both end in ``fragments.normalize`` and agree for well-formed input.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from chandoc.fragments import (
    CodeBlock,
    Fragment,
    GreentextMode,
    LineBreak,
    Node,
    NodeKind,
    PlainLink,
    QuoteBlock,
    QuoteRelation,
    SpoilerBlock,
    Text,
    TextStyle,
    normalize,
    plain_text,
    trim_greentext,
)
from chandoc.html_tree import parse_fragment, structured_parser_available
from chandoc.language import guess_language
from chandoc.markup import (
    ABSOLUTE_URL_RE,
    classify_quotelink,
    decode_entities,
    has_class,
    parse_attrs,
)

logger = logging.getLogger(__name__)

LANG_DECLARATION_RE = re.compile(r"^\s*lang:\s*([\w+#.-]+)\s*$", re.IGNORECASE)

# Private sentinels; scrubbed from input before rendering.
_OPEN = "\x1e"
_CLOSE = "\x1f"
_MARKER_RE = re.compile(_OPEN + r"(\d+)" + _CLOSE)


@dataclass(frozen=True)
class RenderConfig:
    greentext_mode: GreentextMode = GreentextMode.VERBATIM
    default_language: str = "sh"


def code_block(body: str, default_language: str) -> CodeBlock:
    """
    Build a code block from its flattened body.

    An explicit ``lang: X`` first line wins and is stripped; otherwise the
    guesser decides, then ``default_language``.
    """
    first, _, rest = body.partition("\n")
    m = LANG_DECLARATION_RE.match(first)
    if m:
        return CodeBlock(m.group(1).lower(), rest)
    return CodeBlock(guess_language(body) or default_language, body)


def greentext(text: str, mode: GreentextMode) -> Node:
    text = trim_greentext(text)
    if mode is GreentextMode.BLOCK:
        return QuoteBlock(text, QuoteRelation.GREENTEXT)
    if mode is GreentextMode.VERBATIM:
        return Text(text, TextStyle.VERBATIM)
    return Text(text)


def _scrub(comment: Optional[str]) -> str:
    if not comment:
        return ""
    return comment.replace(_OPEN, "").replace(_CLOSE, "")


class CommentRenderer(ABC):
    def __init__(self, config: RenderConfig):
        self._cfg = config

    @property
    def config(self) -> RenderConfig:
        return self._cfg

    @abstractmethod
    def render(self, comment: Optional[str]) -> Fragment:
        """Render raw comment HTML. Never raises on malformed input."""


# -------------------------
# Tree strategy
# -------------------------


class ElementKind(Enum):
    BREAK = "br"
    WORD_BREAK = "wbr"
    GREENTEXT = "span.quote"
    CODE = "pre.prettyprint"
    QUOTELINK = "a.quotelink"
    DEADLINK = "deadlink"
    SPOILER = "s"
    ANCHOR = "a"
    OTHER = "other"


def element_kind(tag) -> ElementKind:
    name = (tag.name or "").lower()
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()

    if name == "br":
        return ElementKind.BREAK
    if name == "wbr":
        return ElementKind.WORD_BREAK
    if "deadlink" in classes and name in ("a", "span"):
        return ElementKind.DEADLINK
    if name == "span" and "quote" in classes:
        return ElementKind.GREENTEXT
    if name == "pre" and "prettyprint" in classes:
        return ElementKind.CODE
    if name == "a" and "quotelink" in classes:
        return ElementKind.QUOTELINK
    if name == "s":
        return ElementKind.SPOILER
    if name == "a":
        return ElementKind.ANCHOR
    return ElementKind.OTHER


class TreeRenderer(CommentRenderer):
    """Tag + class dispatch over a parsed comment tree."""

    def render(self, comment: Optional[str]) -> Fragment:
        root = parse_fragment(_scrub(comment))
        if root is None:
            logger.debug("Structured parser unavailable; using regex rules")
            return RegexRenderer(self._cfg).render(comment)
        return normalize(self._children(root), self._cfg.greentext_mode)

    def _children(self, tag) -> list[Node]:
        out: list[Node] = []
        for child in tag.children:
            out.extend(self._node(child))
        return out

    def _node(self, node) -> list[Node]:
        from bs4 import NavigableString, Tag

        if isinstance(node, NavigableString):
            # Comments, CDATA, doctypes: not content
            if type(node) is not NavigableString:
                return []
            return [Text(str(node))]
        if not isinstance(node, Tag):
            return []

        kind = element_kind(node)
        if kind is ElementKind.BREAK:
            return [LineBreak()]
        if kind is ElementKind.WORD_BREAK:
            return self._children(node)
        if kind is ElementKind.GREENTEXT:
            return [greentext(_flatten_tree(node), self._cfg.greentext_mode)]
        if kind is ElementKind.CODE:
            return [code_block(_flatten_tree(node), self._cfg.default_language)]
        if kind is ElementKind.QUOTELINK:
            block = classify_quotelink(node.get("href") or "", node.get_text())
            if block is None:
                return self._children(node)
            return [block]
        if kind is ElementKind.DEADLINK:
            return [Text(_flatten_tree(node), TextStyle.DEAD)]
        if kind is ElementKind.SPOILER:
            return [SpoilerBlock(_flatten_tree(node))]
        if kind is ElementKind.ANCHOR:
            href = (node.get("href") or "").strip()
            if ABSOLUTE_URL_RE.match(href) and not node.get("class"):
                return [PlainLink(href)]
            return self._children(node)
        if kind is ElementKind.OTHER:
            return self._children(node)
        raise AssertionError(f"unhandled element kind: {kind}")


def _flatten_tree(tag) -> str:
    """Text content with ``<br>`` as newline."""
    from bs4 import NavigableString, Tag

    parts: list[str] = []
    for node in tag.descendants:
        if isinstance(node, Tag):
            if (node.name or "").lower() == "br":
                parts.append("\n")
        elif type(node) is NavigableString:
            parts.append(str(node))
    return "".join(parts)


# -------------------------
# Regex strategy
# -------------------------

BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
TAG_RE = re.compile(r"<[^>]*>")

CODE_DECLARED_RE = re.compile(
    r'<pre\s+class="prettyprint">\s*lang:\s*([\w+#.-]+)[ \t]*(?:<br\s*/?>|(?=</pre>))(.*?)</pre>',
    re.IGNORECASE | re.DOTALL,
)
CODE_RE = re.compile(r'<pre\s+class="prettyprint">(.*?)</pre>', re.IGNORECASE | re.DOTALL)
CROSS_THREAD_LINK_RE = re.compile(
    r'<a\s+href="(/\w+/thread/\d+(?:/[^"#]*)?#p\d+)"\s+class="quotelink">(.*?)</a>',
    re.IGNORECASE | re.DOTALL,
)
IN_PAGE_LINK_RE = re.compile(
    r'<a\s+href="(#p\d+)"\s+class="quotelink">(.*?)</a>', re.IGNORECASE | re.DOTALL
)
ANCHOR_RE = re.compile(r"<a\s([^>]*)>(.*?)</a>", re.IGNORECASE | re.DOTALL)
SPAN_TAG_RE = re.compile(r"<(/?)span\b([^>]*)>", re.IGNORECASE)
SPOILER_RE = re.compile(r"<s>(.*?)</s>", re.IGNORECASE | re.DOTALL)
INLINE_TAG_RE = re.compile(r"</?(?:b|i|u|em|strong|small|wbr)\b[^>]*>", re.IGNORECASE)


def _flatten_html(inner: str) -> str:
    return decode_entities(TAG_RE.sub("", BR_RE.sub("\n", inner)))


def sub_balanced_spans(text: str, handle: Callable[[str, str], str]) -> str:
    """
    Replace each outermost ``<span ...>...</span>`` with ``handle(attrs, inner)``.

    Spans are paired by nesting depth, so an inner ``</span>`` never closes
    the outer one. Unclosed spans are left in place.
    """
    out: list[str] = []
    pos = 0
    depth = 0
    start: Optional[re.Match[str]] = None
    for token in SPAN_TAG_RE.finditer(text):
        if not token.group(1):
            if depth == 0:
                start = token
            depth += 1
            continue
        if depth == 0:
            continue
        depth -= 1
        if depth == 0 and start is not None:
            out.append(text[pos : start.start()])
            out.append(handle(start.group(2), text[start.end() : token.start()]))
            pos = token.end()
    out.append(text[pos:])
    return "".join(out)


class RegexRenderer(CommentRenderer):
    """Ordered pattern -> replacement rules over the raw string."""

    def render(self, comment: Optional[str]) -> Fragment:
        stash: list[Node] = []

        def put(node: Node) -> str:
            stash.append(node)
            return f"{_OPEN}{len(stash) - 1}{_CLOSE}"

        text = _scrub(comment)
        for rule in self._rules(put, stash):
            text = rule(text)

        nodes: list[Node] = []
        for i, piece in enumerate(_MARKER_RE.split(text)):
            if i % 2:
                nodes.append(stash[int(piece)])
            else:
                nodes.append(Text(piece))
        return normalize(nodes, self._cfg.greentext_mode)

    def _rules(
        self, put: Callable[[Node], str], stash: list[Node]
    ) -> list[Callable[[str], str]]:
        mode = self._cfg.greentext_mode
        default_language = self._cfg.default_language

        def flatten(inner: str) -> str:
            # Nodes stashed by earlier rules read back as their text
            return _MARKER_RE.sub(
                lambda m: plain_text((stash[int(m.group(1))],)), _flatten_html(inner)
            )

        def declared_code(m: re.Match[str]) -> str:
            return put(CodeBlock(m.group(1).lower(), _flatten_html(m.group(2))))

        def undeclared_code(m: re.Match[str]) -> str:
            return put(code_block(_flatten_html(m.group(1)), default_language))

        def known_quotelink(m: re.Match[str]) -> str:
            block = classify_quotelink(decode_entities(m.group(1)), flatten(m.group(2)))
            return put(block) if block is not None else m.group(2)

        def anchor(m: re.Match[str]) -> str:
            attrs = parse_attrs(m.group(1))
            inner = m.group(2)
            if has_class(attrs, "deadlink"):
                return put(Text(flatten(inner), TextStyle.DEAD))
            if has_class(attrs, "quotelink"):
                block = classify_quotelink(attrs.get("href", ""), flatten(inner))
                return put(block) if block is not None else inner
            href = attrs.get("href", "").strip()
            if "class" not in attrs and ABSOLUTE_URL_RE.match(href):
                return put(PlainLink(href))
            return inner

        def span(raw_attrs: str, inner: str) -> str:
            attrs = parse_attrs(raw_attrs)
            if has_class(attrs, "deadlink"):
                return put(Text(flatten(inner), TextStyle.DEAD))
            if has_class(attrs, "quote"):
                return put(greentext(flatten(inner), mode))
            return sub_balanced_spans(inner, span)

        merge_re = re.compile(
            _OPEN + r"(\d+)" + _CLOSE + r"<br\s*/?>" + _OPEN + r"(\d+)" + _CLOSE, re.IGNORECASE
        )

        def merge_quotes(m: re.Match[str]) -> str:
            first, second = stash[int(m.group(1))], stash[int(m.group(2))]
            if not (_is_greentext_block(first) and _is_greentext_block(second)):
                return m.group(0)
            return put(QuoteBlock(first.text + "\n" + second.text, QuoteRelation.GREENTEXT))

        def merge_adjacent(text: str) -> str:
            if mode is not GreentextMode.BLOCK:
                return text
            while True:
                merged = merge_re.sub(merge_quotes, text)
                if merged == text:
                    return text
                text = merged

        def spoiler(m: re.Match[str]) -> str:
            return put(SpoilerBlock(flatten(m.group(1))))

        def line_break(m: re.Match[str]) -> str:
            return put(LineBreak())

        return [
            lambda s: CODE_DECLARED_RE.sub(declared_code, s),
            lambda s: CODE_RE.sub(undeclared_code, s),
            lambda s: CROSS_THREAD_LINK_RE.sub(known_quotelink, s),
            lambda s: IN_PAGE_LINK_RE.sub(known_quotelink, s),
            lambda s: ANCHOR_RE.sub(anchor, s),
            lambda s: sub_balanced_spans(s, span),
            merge_adjacent,
            lambda s: SPOILER_RE.sub(spoiler, s),
            lambda s: INLINE_TAG_RE.sub("", s),
            lambda s: BR_RE.sub(line_break, s),
            lambda s: TAG_RE.sub("", s),
            decode_entities,
        ]


def _is_greentext_block(node: Node) -> bool:
    return node.kind is NodeKind.QUOTE and node.relation is QuoteRelation.GREENTEXT


def make_renderer(strategy: str, config: RenderConfig) -> CommentRenderer:
    """
    Pick a renderer: ``tree``, ``regex`` or ``auto`` (tree when a structured
    parser is installed).
    """
    strategy = (strategy or "auto").strip().lower()
    if strategy == "regex":
        return RegexRenderer(config)
    if strategy == "tree":
        return TreeRenderer(config)
    if strategy != "auto":
        raise ValueError(f"Unknown parser strategy: {strategy}")
    if structured_parser_available():
        return TreeRenderer(config)
    logger.info("No structured HTML parser installed; using regex renderer")
    return RegexRenderer(config)
