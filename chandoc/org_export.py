"""
Org-mode serializer for composed documents.
"""

from __future__ import annotations

from typing import Iterable, Optional

from chandoc.formatter import (
    AttachmentView,
    BoardListDocument,
    CatalogDocument,
    PostView,
    ThreadDocument,
)
from chandoc.fragments import Node, NodeKind, QuoteRelation, TextStyle

DEFAULT_WEB_BASE_URL = "https://boards.4chan.org"


def quote_target(node: Node, web_base_url: str = DEFAULT_WEB_BASE_URL) -> Optional[str]:
    """Org link target for a quote block, None for greentext."""
    base = web_base_url.rstrip("/")
    rel = node.relation
    if rel is QuoteRelation.IN_PAGE:
        return f"#p{node.post}"
    if rel is QuoteRelation.CATALOG:
        suffix = f"#s={node.search}" if node.search else ""
        return f"{base}/{node.board}/catalog{suffix}"
    if rel in (QuoteRelation.CROSS_THREAD, QuoteRelation.CROSS_BOARD):
        if node.thread is None:
            return f"{base}/{node.board}/"
        anchor = f"#p{node.post}" if node.post is not None else ""
        return f"{base}/{node.board}/thread/{node.thread}{anchor}"
    return None


def fragment_to_org(nodes: Iterable[Node], web_base_url: str = DEFAULT_WEB_BASE_URL) -> str:
    out: list[str] = []

    def at_line_start() -> None:
        if out and not out[-1].endswith("\n"):
            out.append("\n")

    for node in nodes:
        kind = node.kind
        if kind is NodeKind.TEXT:
            if node.style is TextStyle.VERBATIM:
                out.append("\n".join(f"={line}=" if line else "" for line in node.text.split("\n")))
            elif node.style is TextStyle.DEAD:
                out.append(f"+{node.text}+")
            else:
                out.append(node.text)
        elif kind is NodeKind.LINE_BREAK:
            out.append("\n")
        elif kind is NodeKind.QUOTE:
            target = quote_target(node, web_base_url)
            if target is None:
                at_line_start()
                out.append(f"#+begin_quote\n{node.text}\n#+end_quote\n")
            else:
                out.append(f"[[{target}][{node.text}]]")
        elif kind is NodeKind.CODE:
            at_line_start()
            out.append(f"#+begin_src {node.language}\n{node.body}\n#+end_src\n")
        elif kind is NodeKind.SPOILER:
            out.append(f"~{node.text}~")
        elif kind is NodeKind.LINK:
            out.append(f"[[{node.url}]]")
        else:
            raise AssertionError(f"unhandled node kind: {kind}")
    return "".join(out).rstrip("\n")


def _attachment_lines(att: AttachmentView) -> list[str]:
    if att.deleted:
        return ["/File deleted./"]
    lines: list[str] = []
    if att.thumbnail is not None:
        lines.append(f"[[file:{att.thumbnail}]]")
    label = f"{att.filename}{att.ext}"
    size_kb = att.fsize // 1024
    lines.append(f"[[{att.url}][{label}]] ({size_kb} KB, {att.w}x{att.h})")
    return lines


def _post_lines(post: PostView, level: int, web_base_url: str) -> list[str]:
    who = post.name + (f" {post.trip}" if post.trip else "")
    if post.capcode:
        who += f" ## {post.capcode.capitalize()}"
    if post.poster_id:
        who += f" (ID: {post.poster_id})"
    if post.flag:
        who += f" {post.flag}"
    lines = [
        f"{'*' * level} {who} {post.timestamp} No.{post.no}",
        ":PROPERTIES:",
        f":CUSTOM_ID: p{post.no}",
        ":END:",
    ]
    if post.attachment is not None:
        lines.extend(_attachment_lines(post.attachment))
    body = fragment_to_org(post.body, web_base_url)
    if body:
        lines.append(body)
    if post.backlinks:
        lines.append("Replies: " + " ".join(f"[[#p{no}][>>{no}]]" for no in post.backlinks))
    lines.append("")
    return lines


def thread_to_org(doc: ThreadDocument, web_base_url: str = DEFAULT_WEB_BASE_URL) -> str:
    lines = [f"#+TITLE: /{doc.board}/ - {doc.title}", ""]
    status = [
        name
        for name, on in (
            ("sticky", doc.sticky),
            ("closed", doc.closed),
            ("archived", doc.archived),
            ("bump limit", doc.bumplimit),
            ("image limit", doc.imagelimit),
        )
        if on
    ]
    summary = f"{doc.replies} replies, {doc.images} images"
    if status:
        summary += " [" + ", ".join(status) + "]"
    lines.extend([summary, ""])
    for post in doc.posts:
        lines.extend(_post_lines(post, 1, web_base_url))
    return "\n".join(lines).strip() + "\n"


def catalog_to_org(doc: CatalogDocument, web_base_url: str = DEFAULT_WEB_BASE_URL) -> str:
    lines = [f"#+TITLE: {doc.title}", ""]
    for page in doc.pages:
        lines.append(f"* Page {page.page}")
        for thread in page.threads:
            lines.append(
                f"** [[{web_base_url.rstrip('/')}/{doc.board}/thread/{thread.no}][{thread.title}]]"
                f" ({thread.replies} replies, {thread.images} images)"
            )
            for post in thread.posts:
                lines.extend(_post_lines(post, 3, web_base_url))
    return "\n".join(lines).strip() + "\n"


def boards_to_org(doc: BoardListDocument, web_base_url: str = DEFAULT_WEB_BASE_URL) -> str:
    lines = ["#+TITLE: Boards", ""]
    for board in doc.boards:
        nsfw = "" if board.ws_board else " (NSFW)"
        lines.append(f"- [[{web_base_url.rstrip('/')}/{board.code}/][/{board.code}/]] {board.title}{nsfw}")
    return "\n".join(lines).strip() + "\n"
