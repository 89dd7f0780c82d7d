"""
Composition of rendered posts into thread, catalog and board-list documents.

Documents are plain frozen dataclasses; turning them into editor markup is
the serializer's job (see ``org_export``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence

from chandoc.backlinks import attach_backlinks, build_backlinks
from chandoc.fragments import Fragment, plain_text
from chandoc.markup import decode_entities
from chandoc.models import Board, CatalogPage, Post, Thread
from chandoc.paths import (
    InvalidDigestError,
    InvalidLinkError,
    MediaKind,
    directory_chain,
    download_link,
    media_kind,
    media_url,
    save_destination,
    thumbnail_path,
)
from chandoc.renderer import CommentRenderer

logger = logging.getLogger(__name__)

REGIONAL_INDICATOR_A = 0x1F1E6
TITLE_PREVIEW_CHARS = 80


@dataclass(frozen=True)
class MediaConfig:
    site: str
    image_base_url: str
    cache_dir: str
    # Save-file chain; see paths.directory_chain
    video_dir: Optional[str] = None
    image_dir: Optional[str] = None
    download_dir: Optional[str] = None


@dataclass(frozen=True)
class AttachmentView:
    filename: str
    ext: str
    kind: MediaKind
    fsize: int
    w: int
    h: int
    spoiler: bool
    deleted: bool
    url: Optional[str]
    link: Optional[str]
    thumbnail: Optional[Path]
    # None -> no configured directory exists; prompt for one
    save_to: Optional[Path] = None


@dataclass(frozen=True)
class PostView:
    no: int
    name: str
    trip: Optional[str]
    capcode: Optional[str]
    poster_id: Optional[str]
    flag: Optional[str]
    flag_name: Optional[str]
    timestamp: str
    time: int
    subject: Optional[str]
    body: Fragment
    backlinks: tuple[int, ...]
    attachment: Optional[AttachmentView]


@dataclass(frozen=True)
class ThreadDocument:
    board: str
    no: int
    title: str
    replies: int
    images: int
    sticky: bool
    closed: bool
    archived: bool
    bumplimit: bool
    imagelimit: bool
    posts: tuple[PostView, ...]


@dataclass(frozen=True)
class CatalogPageView:
    page: int
    threads: tuple[ThreadDocument, ...]


@dataclass(frozen=True)
class CatalogDocument:
    board: str
    title: str
    pages: tuple[CatalogPageView, ...]


@dataclass(frozen=True)
class BoardListDocument:
    boards: tuple[Board, ...]


def country_flag(code: Optional[str]) -> Optional[str]:
    """
    Two-letter country code -> flag emoji (pair of Regional Indicator Symbols).

    Anything other than exactly two ASCII letters gives None.
    """
    if not code or len(code) != 2 or not code.isascii() or not code.isalpha():
        return None
    return "".join(chr(REGIONAL_INDICATOR_A + ord(c) - ord("A")) for c in code.upper())


def format_attachment(post: Post, board: str, media: MediaConfig) -> Optional[AttachmentView]:
    att = post.attachment
    if att is None:
        return None

    kind = media_kind(att.ext)
    if att.deleted:
        return AttachmentView(
            filename=att.filename, ext=att.ext, kind=kind, fsize=0, w=0, h=0,
            spoiler=att.spoiler, deleted=True, url=None, link=None, thumbnail=None,
        )

    thumb: Optional[Path] = None
    if att.md5:
        try:
            thumb = thumbnail_path(att.md5, Path(media.cache_dir).expanduser())
        except InvalidDigestError as e:
            logger.warning("No thumbnail: board=%s post=%s err=%s", board, post.no, e)

    save_to = save_destination(
        att, directory_chain(kind, media.video_dir, media.image_dir, media.download_dir)
    )

    link: Optional[str] = None
    try:
        link = download_link(media.site, board, att.tim, att.ext, dest=save_to)
    except InvalidLinkError as e:
        logger.warning("No download link: board=%s post=%s err=%s", board, post.no, e)

    return AttachmentView(
        filename=decode_entities(att.filename),
        ext=att.ext,
        kind=kind,
        fsize=att.fsize,
        w=att.w,
        h=att.h,
        spoiler=att.spoiler,
        deleted=False,
        url=media_url(media.image_base_url, board, att.tim, att.ext),
        link=link,
        thumbnail=thumb,
        save_to=save_to,
    )


def format_post(post: Post, board: str, renderer: CommentRenderer, media: MediaConfig) -> PostView:
    return PostView(
        no=post.no,
        name=decode_entities(post.name),
        trip=post.trip,
        capcode=post.capcode,
        poster_id=post.poster_id,
        flag=country_flag(post.country),
        flag_name=post.country_name or post.flag_name,
        timestamp=post.now,
        time=post.time,
        subject=decode_entities(post.sub) if post.sub else None,
        body=renderer.render(post.com),
        backlinks=post.backlinks,
        attachment=format_attachment(post, board, media),
    )


def format_thread(thread: Thread, renderer: CommentRenderer, media: MediaConfig) -> ThreadDocument:
    """
    Render every post of ``thread`` with backlinks attached.

    The backlink index is rebuilt from the posts on every call.
    """
    posts = attach_backlinks(thread.posts, build_backlinks(thread.posts))
    views = tuple(format_post(p, thread.board, renderer, media) for p in posts)
    op = thread.op
    return ThreadDocument(
        board=thread.board,
        no=op.no,
        title=_thread_title(thread.board, views[0]),
        replies=op.replies,
        images=op.images,
        sticky=op.sticky,
        closed=op.closed,
        archived=op.archived,
        bumplimit=op.bumplimit,
        imagelimit=op.imagelimit,
        posts=views,
    )


def format_catalog(
    board: str,
    pages: Sequence[CatalogPage],
    renderer: CommentRenderer,
    media: MediaConfig,
    boards: Optional[Mapping[str, Board]] = None,
) -> CatalogDocument:
    """Catalog pages in feed (bump) order; ``boards`` only supplies the title."""
    meta = (boards or {}).get(board)
    title = f"/{board}/ - {meta.title}" if meta and meta.title else f"/{board}/"
    return CatalogDocument(
        board=board,
        title=title,
        pages=tuple(
            CatalogPageView(
                page=page.page,
                threads=tuple(format_thread(t, renderer, media) for t in page.threads),
            )
            for page in pages
        ),
    )


def format_board_list(boards: Mapping[str, Board] | Iterable[Board]) -> BoardListDocument:
    values = boards.values() if isinstance(boards, Mapping) else boards
    return BoardListDocument(boards=tuple(values))


def _thread_title(board: str, op: PostView) -> str:
    if op.subject:
        return op.subject
    for line in plain_text(op.body).splitlines():
        line = line.strip()
        if line:
            if len(line) > TITLE_PREVIEW_CHARS:
                return line[: TITLE_PREVIEW_CHARS - 1] + "…"
            return line
    return f"/{board}/{op.no}"
