from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional


def _int(obj: Mapping[str, Any], key: str, default: int = 0) -> int:
    value = obj.get(key, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _str(obj: Mapping[str, Any], key: str) -> Optional[str]:
    value = obj.get(key)
    if value is None:
        return None
    return str(value)


def _flag(obj: Mapping[str, Any], key: str) -> bool:
    return bool(_int(obj, key))


@dataclass(frozen=True)
class Attachment:
    """File attached to a post."""

    filename: str
    ext: str
    tim: int
    md5: Optional[str] = None
    fsize: int = 0
    w: int = 0
    h: int = 0
    tn_w: int = 0
    tn_h: int = 0
    spoiler: bool = False
    deleted: bool = False

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> Optional["Attachment"]:
        if "tim" not in obj and not obj.get("filedeleted"):
            return None
        return cls(
            filename=_str(obj, "filename") or "",
            ext=_str(obj, "ext") or "",
            tim=_int(obj, "tim"),
            md5=_str(obj, "md5"),
            fsize=_int(obj, "fsize"),
            w=_int(obj, "w"),
            h=_int(obj, "h"),
            tn_w=_int(obj, "tn_w"),
            tn_h=_int(obj, "tn_h"),
            spoiler=_flag(obj, "spoiler"),
            deleted=_flag(obj, "filedeleted"),
        )


@dataclass(frozen=True)
class Post:
    """
    Single post as served by the feed.

    ``backlinks`` is derived by the backlink indexer and is empty in the raw
    feed. The origin-post fields keep their neutral defaults on replies.
    """

    no: int
    resto: int = 0
    name: str = "Anonymous"
    trip: Optional[str] = None
    capcode: Optional[str] = None
    poster_id: Optional[str] = None
    country: Optional[str] = None
    country_name: Optional[str] = None
    board_flag: Optional[str] = None
    flag_name: Optional[str] = None
    now: str = ""
    time: int = 0
    com: Optional[str] = None
    attachment: Optional[Attachment] = None
    backlinks: tuple[int, ...] = ()

    # origin post only
    sub: Optional[str] = None
    replies: int = 0
    images: int = 0
    bumplimit: bool = False
    imagelimit: bool = False
    sticky: bool = False
    closed: bool = False
    archived: bool = False
    last_replies: tuple["Post", ...] = field(default=(), repr=False)

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> "Post":
        return cls(
            no=_int(obj, "no"),
            resto=_int(obj, "resto"),
            name=_str(obj, "name") or "Anonymous",
            trip=_str(obj, "trip"),
            capcode=_str(obj, "capcode"),
            poster_id=_str(obj, "id"),
            country=_str(obj, "country"),
            country_name=_str(obj, "country_name"),
            board_flag=_str(obj, "board_flag"),
            flag_name=_str(obj, "flag_name"),
            now=_str(obj, "now") or "",
            time=_int(obj, "time"),
            com=_str(obj, "com"),
            attachment=Attachment.from_json(obj),
            sub=_str(obj, "sub"),
            replies=_int(obj, "replies"),
            images=_int(obj, "images"),
            bumplimit=_flag(obj, "bumplimit"),
            imagelimit=_flag(obj, "imagelimit"),
            sticky=_flag(obj, "sticky"),
            closed=_flag(obj, "closed"),
            archived=_flag(obj, "archived"),
            last_replies=tuple(
                cls.from_json(r) for r in obj.get("last_replies") or () if isinstance(r, Mapping)
            ),
        )


@dataclass(frozen=True)
class Thread:
    """Ordered posts of one thread; index 0 is the origin post."""

    board: str
    posts: tuple[Post, ...]

    @property
    def op(self) -> Post:
        return self.posts[0]

    @property
    def no(self) -> int:
        return self.op.no

    @classmethod
    def from_json(cls, board: str, obj: Mapping[str, Any]) -> "Thread":
        """Build from a thread feed (``{"posts": [...]}``)."""
        posts = tuple(Post.from_json(p) for p in obj.get("posts") or () if isinstance(p, Mapping))
        if not posts:
            raise ValueError(f"Thread feed for /{board}/ has no posts")
        return cls(board=board, posts=posts)

    @classmethod
    def from_catalog_entry(cls, board: str, obj: Mapping[str, Any]) -> "Thread":
        """Build from a catalog entry: the OP followed by its ``last_replies``."""
        op = Post.from_json(obj)
        return cls(board=board, posts=(op, *op.last_replies))


@dataclass(frozen=True)
class CatalogPage:
    page: int
    threads: tuple[Thread, ...]


@dataclass(frozen=True)
class Board:
    """Board metadata from ``boards.json``; ``code`` is the unique key."""

    code: str
    title: str
    description: str = ""
    ws_board: bool = False
    per_page: int = 0
    pages: int = 0
    max_filesize: int = 0
    max_comment_chars: int = 0
    bump_limit: int = 0
    image_limit: int = 0
    cooldowns: Mapping[str, int] = field(default_factory=dict)
    is_archived: bool = False
    spoilers: bool = False
    country_flags: bool = False
    user_ids: bool = False
    code_tags: bool = False

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> "Board":
        cooldowns = obj.get("cooldowns")
        return cls(
            code=_str(obj, "board") or "",
            title=_str(obj, "title") or "",
            description=_str(obj, "meta_description") or "",
            ws_board=_flag(obj, "ws_board"),
            per_page=_int(obj, "per_page"),
            pages=_int(obj, "pages"),
            max_filesize=_int(obj, "max_filesize"),
            max_comment_chars=_int(obj, "max_comment_chars"),
            bump_limit=_int(obj, "bump_limit"),
            image_limit=_int(obj, "image_limit"),
            cooldowns=(
                {str(k): _int(cooldowns, k) for k in cooldowns}
                if isinstance(cooldowns, Mapping)
                else {}
            ),
            is_archived=_flag(obj, "is_archived"),
            spoilers=_flag(obj, "spoilers"),
            country_flags=_flag(obj, "country_flags"),
            user_ids=_flag(obj, "user_ids"),
            code_tags=_flag(obj, "code_tags"),
        )


def parse_boards(obj: Mapping[str, Any]) -> dict[str, Board]:
    """``{"boards": [...]}`` -> boards keyed by code, feed order kept."""
    out: dict[str, Board] = {}
    for raw in obj.get("boards") or ():
        if not isinstance(raw, Mapping):
            continue
        board = Board.from_json(raw)
        if board.code:
            out[board.code] = board
    return out


def parse_catalog(board: str, obj: Any) -> list[CatalogPage]:
    """``[{"page": 1, "threads": [...]}, ...]`` -> pages; thread order kept (bump order)."""
    pages: list[CatalogPage] = []
    for i, raw in enumerate(obj or (), start=1):
        if not isinstance(raw, Mapping):
            continue
        threads = tuple(
            Thread.from_catalog_entry(board, t)
            for t in raw.get("threads") or ()
            if isinstance(t, Mapping)
        )
        pages.append(CatalogPage(page=_int(raw, "page", i), threads=threads))
    return pages
