from __future__ import annotations

import importlib.util
import logging
from typing import Optional

logger = logging.getLogger(__name__)


def structured_parser_available() -> bool:
    return importlib.util.find_spec("bs4") is not None


def _tree_builder() -> str:
    # lxml is faster and more forgiving; html.parser ships with Python
    return "lxml" if importlib.util.find_spec("lxml") is not None else "html.parser"


def parse_fragment(raw: Optional[str]):
    """
    Parse a comment into a navigable tree.

    The fragment is wrapped in a synthetic ``<div>`` so there is always exactly
    one root. Unclosed tags and stray entities are tolerated by the parser.

    Returns:
        the wrapping ``bs4.Tag``, or None when no structured parser is available
    """
    if not structured_parser_available():
        return None

    from bs4 import BeautifulSoup

    soup = BeautifulSoup(f"<div>{raw or ''}</div>", _tree_builder())
    root = soup.find("div")
    if root is None:
        logger.debug("Parser produced no root container; len=%s", len(raw or ""))
        return BeautifulSoup("<div></div>", "html.parser").div
    return root
