from __future__ import annotations

from pathlib import Path

from chandoc.formatter import (
    MediaConfig,
    country_flag,
    format_board_list,
    format_catalog,
    format_thread,
)
from chandoc.fragments import CodeBlock, LineBreak, QuoteBlock, QuoteRelation, Text
from chandoc.models import Thread, parse_boards, parse_catalog
from chandoc.paths import MediaKind
from chandoc.renderer import RegexRenderer, RenderConfig, TreeRenderer

MEDIA = MediaConfig(site="4chan", image_base_url="https://i.4cdn.org", cache_dir="/cache")


def test_country_flag():
    assert country_flag("US") == "\U0001F1FA\U0001F1F8"
    assert country_flag("gb") == "\U0001F1EC\U0001F1E7"
    assert country_flag("USA") is None
    assert country_flag("U1") is None
    assert country_flag("") is None
    assert country_flag(None) is None


def test_format_thread_composes_posts_with_backlinks(thread_json):
    doc = format_thread(Thread.from_json("g", thread_json), TreeRenderer(RenderConfig()), MEDIA)

    assert doc.board == "g" and doc.no == 100
    assert doc.title == "Rust & you"
    assert doc.sticky is True and doc.closed is False
    assert doc.replies == 2 and doc.images == 1
    assert [p.no for p in doc.posts] == [100, 101, 102]

    op, reply, last = doc.posts
    assert op.body == (CodeBlock("rust", "fn main() {}"),)
    assert op.backlinks == (101, 102)
    assert op.flag == "\U0001F1FA\U0001F1F8"
    assert op.flag_name == "United States"

    assert reply.body == (
        QuoteBlock(">>100", QuoteRelation.IN_PAGE, post=100),
        LineBreak(),
        Text("May I ask why monke sad?"),
    )
    assert reply.backlinks == (102,)
    assert last.backlinks == ()
    assert last.trip == "!Ep8pui8Vw2"


def test_format_thread_attachment_view(thread_json):
    doc = format_thread(Thread.from_json("g", thread_json), TreeRenderer(RenderConfig()), MEDIA)
    att = doc.posts[0].attachment

    assert att.kind is MediaKind.IMAGE
    assert att.thumbnail == Path("/cache/thumbnails/X/Xwlkt3JiMaT_1yyw_0p5mw.jpg")
    assert att.link == "4chan/g/1792324800123.png"
    assert att.url == "https://i.4cdn.org/g/1792324800123.png"
    assert (att.w, att.h, att.fsize) == (640, 480, 20480)
    assert att.save_to is None
    assert doc.posts[1].attachment is None


def test_attachment_save_destination_is_carried_in_the_link(thread_json, tmp_path):
    media = MediaConfig(
        site="4chan",
        image_base_url="https://i.4cdn.org",
        cache_dir="/cache",
        image_dir=str(tmp_path / "missing"),
        download_dir=str(tmp_path),
    )
    doc = format_thread(Thread.from_json("g", thread_json), TreeRenderer(RenderConfig()), media)
    att = doc.posts[0].attachment

    assert att.save_to == tmp_path / "crab.png"
    assert att.link == "4chan/g/1792324800123.png::" + str(tmp_path / "crab.png")


def test_corrupt_digest_only_drops_the_thumbnail(thread_json):
    thread_json["posts"][0]["md5"] = "%%%"
    doc = format_thread(Thread.from_json("g", thread_json), TreeRenderer(RenderConfig()), MEDIA)
    att = doc.posts[0].attachment
    assert att.thumbnail is None
    assert att.link == "4chan/g/1792324800123.png"


def test_thread_title_falls_back_to_comment_text():
    thread = Thread.from_json("g", {"posts": [{"no": 5, "com": "<br>first words<br>more"}]})
    doc = format_thread(thread, RegexRenderer(RenderConfig()), MEDIA)
    assert doc.title == "first words"

    empty = Thread.from_json("g", {"posts": [{"no": 6}]})
    assert format_thread(empty, RegexRenderer(RenderConfig()), MEDIA).title == "/g/6"


def test_format_catalog_uses_board_title_and_keeps_order(catalog_json, boards_json):
    pages = parse_catalog("g", catalog_json)
    doc = format_catalog("g", pages, TreeRenderer(RenderConfig()), MEDIA, boards=parse_boards(boards_json))

    assert doc.title == "/g/ - Technology"
    assert [t.no for t in doc.pages[0].threads] == [300, 200]
    first = doc.pages[0].threads[0]
    assert first.title == "bumped last"
    assert first.posts[0].backlinks == (301,)
    assert doc.pages[0].threads[1].title == "older"

    assert format_catalog("x", pages, TreeRenderer(RenderConfig()), MEDIA).title == "/x/"


def test_format_board_list(boards_json):
    doc = format_board_list(parse_boards(boards_json))
    assert [b.code for b in doc.boards] == ["g", "b"]
