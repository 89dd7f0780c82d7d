from __future__ import annotations

from pathlib import Path

import pytest

from chandoc.models import Attachment
from chandoc.paths import (
    InvalidDigestError,
    InvalidLinkError,
    MediaKind,
    digest_token,
    directory_chain,
    download_link,
    media_kind,
    parse_download_link,
    save_destination,
    thumbnail_path,
)

MD5 = "Xwlkt3JiMaT/1yyw/0p5mw=="


def test_thumbnail_path_is_sharded_by_first_token_character():
    path = thumbnail_path(MD5, "/cache")
    assert path == Path("/cache/thumbnails/X/Xwlkt3JiMaT_1yyw_0p5mw.jpg")
    assert thumbnail_path(MD5, "/cache") == path


def test_hashes_sharing_first_character_share_a_shard():
    other = thumbnail_path("XAAAAAAAAAAAAAAAAAAAAA==", "/cache")
    assert other != thumbnail_path(MD5, "/cache")
    assert other.parent == thumbnail_path(MD5, "/cache").parent


def test_urlsafe_and_unpadded_input_canonicalize_to_same_token():
    assert digest_token("Xwlkt3JiMaT_1yyw_0p5mw") == digest_token(MD5)


@pytest.mark.parametrize("bad", [None, "", "not-a-hash!", "AAAA", "Xwlkt3JiMaT/1yyw/0p5mwXXXX=="])
def test_malformed_hash_raises(bad):
    with pytest.raises(InvalidDigestError):
        thumbnail_path(bad)


def test_download_link_and_parse():
    link = download_link("4chan", "g", 1700000000123, ".png")
    assert link == "4chan/g/1700000000123.png"
    assert parse_download_link(link) == ("4chan", "g", 1700000000123, ".png", None)

    with_dest = download_link("4chan", "g", 1700000000123, ".png", "/tmp/a::b.png")
    assert with_dest == "4chan/g/1700000000123.png::/tmp/a::b.png"
    assert parse_download_link(with_dest)[4] == "/tmp/a::b.png"


@pytest.mark.parametrize(
    "site, board, tim, ext",
    [
        ("4chan", "g::", 1, ".png"),
        ("4chan", "G/x", 1, ".png"),
        ("4chan", "g", -1, ".png"),
        ("4chan", "g", 1, "png"),
        ("4chan", "g", 1, ".p:g"),
        ("4::chan", "g", 1, ".png"),
    ],
)
def test_download_link_rejects_delimiter_prone_components(site, board, tim, ext):
    with pytest.raises(InvalidLinkError):
        download_link(site, board, tim, ext)


def test_parse_download_link_rejects_garbage():
    with pytest.raises(InvalidLinkError):
        parse_download_link("nothing here")


def test_media_kind():
    assert media_kind(".webm") is MediaKind.VIDEO
    assert media_kind(".JPG") is MediaKind.IMAGE
    assert media_kind(".pdf") is MediaKind.OTHER


def test_save_destination_walks_the_chain(tmp_path):
    att = Attachment(filename="cat", ext=".webm", tim=123)
    videos = tmp_path / "videos"
    downloads = tmp_path / "downloads"
    downloads.mkdir()

    chain = directory_chain(media_kind(att.ext), videos, None, downloads)
    assert chain == [videos, downloads]
    # videos dir missing -> falls through
    assert save_destination(att, chain) == downloads / "cat.webm"

    videos.mkdir()
    assert save_destination(att, chain) == videos / "cat.webm"


def test_save_destination_none_means_prompt(tmp_path):
    att = Attachment(filename="cat", ext=".png", tim=123)
    assert save_destination(att, [tmp_path / "missing"]) is None
    assert save_destination(att, []) is None


def test_save_destination_strips_directories_from_filename(tmp_path):
    att = Attachment(filename="../../etc/evil", ext=".png", tim=5)
    assert save_destination(att, [tmp_path]) == tmp_path / "evil.png"
