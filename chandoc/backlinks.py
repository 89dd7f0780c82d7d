from __future__ import annotations

import dataclasses
from typing import Iterable, Mapping, Sequence

from chandoc.markup import in_page_targets
from chandoc.models import Post


def build_backlinks(posts: Iterable[Post]) -> dict[int, list[int]]:
    """
    Reverse quote index for a thread: quoted id -> quoting ids.

    Posts are scanned in thread order; a post quoting the same target twice
    counts once, while two posts quoting it both appear, in ascending order.
    """
    index: dict[int, list[int]] = {}
    for post in posts:
        for target in in_page_targets(post.com):
            index.setdefault(target, []).append(post.no)
    return index


def attach_backlinks(posts: Sequence[Post], index: Mapping[int, Sequence[int]]) -> list[Post]:
    """
    Copies of ``posts`` with ``backlinks`` set from ``index``.

    Inputs are not mutated; the backlinks fully replace whatever a previous
    pass attached, so repeated refreshes do not accumulate.
    """
    return [dataclasses.replace(p, backlinks=tuple(index.get(p.no, ()))) for p in posts]
