"""
Deterministic paths and identifiers derived from attachment metadata.
"""

from __future__ import annotations

import base64
import binascii
import re
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Union

from chandoc.models import Attachment

DIGEST_SIZE = 16  # md5

# Separates a link identity from an explicit destination. None of the
# identity components may contain ":" so the first occurrence always splits.
LINK_DEST_DELIMITER = "::"

SITE_RE = re.compile(r"^[a-z0-9][a-z0-9.-]*$")
BOARD_RE = re.compile(r"^[a-z0-9]+$")
EXT_RE = re.compile(r"^\.[a-z0-9]+$", re.IGNORECASE)
LINK_RE = re.compile(r"^([a-z0-9][a-z0-9.-]*)/([a-z0-9]+)/(\d+)(\.[a-z0-9]+)$", re.IGNORECASE)

VIDEO_EXTS = frozenset({".webm", ".mp4", ".mkv", ".mov"})
IMAGE_EXTS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp"})

PathLike = Union[str, Path]


class InvalidDigestError(ValueError):
    """Content hash that does not decode to a digest."""


class InvalidLinkError(ValueError):
    """Download link component or identity string that cannot be used."""


class MediaKind(str, Enum):
    VIDEO = "video"
    IMAGE = "image"
    OTHER = "other"


def digest_token(md5: Optional[str]) -> str:
    """
    Canonical filesystem-safe token for a base64 content hash.

    Accepts standard or urlsafe base64, padded or not, and returns urlsafe
    base64 without padding.

    Raises:
        InvalidDigestError: not base64, or wrong digest size
    """
    if not md5 or not isinstance(md5, str):
        raise InvalidDigestError(f"Empty content hash: {md5!r}")
    raw = md5.strip().replace("-", "+").replace("_", "/")
    raw += "=" * (-len(raw) % 4)
    try:
        digest = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidDigestError(f"Malformed content hash: {md5!r}") from e
    if len(digest) != DIGEST_SIZE:
        raise InvalidDigestError(f"Content hash has {len(digest)} bytes, expected {DIGEST_SIZE}: {md5!r}")
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def thumbnail_path(md5: Optional[str], root: PathLike = ".") -> Path:
    """``root/thumbnails/<c>/<token>.jpg``; ``<c>`` is the token's first character."""
    token = digest_token(md5)
    return Path(root) / "thumbnails" / token[0] / f"{token}.jpg"


def download_link(site: str, board: str, tim: int, ext: str, dest: Optional[PathLike] = None) -> str:
    """
    Link identity ``<site>/<board>/<tim><ext>``, optionally ``::<dest>``.

    Raises:
        InvalidLinkError: a component could carry the delimiter or a separator
    """
    if not SITE_RE.match(site or ""):
        raise InvalidLinkError(f"Invalid site: {site!r}")
    if not BOARD_RE.match(board or ""):
        raise InvalidLinkError(f"Invalid board code: {board!r}")
    if not isinstance(tim, int) or isinstance(tim, bool) or tim < 0:
        raise InvalidLinkError(f"Invalid timestamp id: {tim!r}")
    if not EXT_RE.match(ext or ""):
        raise InvalidLinkError(f"Invalid extension: {ext!r}")

    link = f"{site}/{board}/{tim}{ext}"
    if dest is not None:
        link += LINK_DEST_DELIMITER + str(dest)
    return link


def parse_download_link(link: str) -> tuple[str, str, int, str, Optional[str]]:
    """
    Reverse of ``download_link``: ``(site, board, tim, ext, dest)``.

    Raises:
        InvalidLinkError: identity part malformed
    """
    identity, sep, dest = (link or "").partition(LINK_DEST_DELIMITER)
    m = LINK_RE.match(identity)
    if not m:
        raise InvalidLinkError(f"Malformed download link: {link!r}")
    return m.group(1), m.group(2), int(m.group(3)), m.group(4), (dest if sep else None)


def media_url(image_base_url: str, board: str, tim: int, ext: str) -> str:
    return f"{image_base_url.rstrip('/')}/{board}/{tim}{ext}"


def thumbnail_url(image_base_url: str, board: str, tim: int) -> str:
    return f"{image_base_url.rstrip('/')}/{board}/{tim}s.jpg"


def media_kind(ext: str) -> MediaKind:
    ext = (ext or "").lower()
    if ext in VIDEO_EXTS:
        return MediaKind.VIDEO
    if ext in IMAGE_EXTS:
        return MediaKind.IMAGE
    return MediaKind.OTHER


def directory_chain(
    kind: MediaKind,
    video_dir: Optional[PathLike],
    image_dir: Optional[PathLike],
    download_dir: Optional[PathLike],
) -> list[Path]:
    """Kind-specific directory first, then the generic download directory."""
    chain: list[Optional[PathLike]] = []
    if kind is MediaKind.VIDEO:
        chain.append(video_dir)
    elif kind is MediaKind.IMAGE:
        chain.append(image_dir)
    chain.append(download_dir)
    return [Path(d).expanduser() for d in chain if d]


def save_destination(attachment: Attachment, directories: Iterable[PathLike]) -> Optional[Path]:
    """
    First existing directory in ``directories`` joined with the file name.

    Returns None when no directory exists; the caller should prompt the user.
    """
    name = Path(f"{attachment.filename}{attachment.ext}").name
    if not attachment.filename or not name:
        name = f"{attachment.tim}{attachment.ext}"
    for directory in directories:
        directory = Path(directory).expanduser()
        if directory.is_dir():
            return directory / name
    return None
