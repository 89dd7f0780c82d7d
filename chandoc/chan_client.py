from __future__ import annotations

import logging
import re

from chandoc.http_client import HttpClient
from chandoc.models import Board, CatalogPage, Thread, parse_boards, parse_catalog

logger = logging.getLogger(__name__)

BOARD_CODE_RE = re.compile(r"^[a-z0-9]+$")


class ChanClient:
    """
    Client for the read-only JSON API.

    Scope:
    - Board list: <api>/boards.json
    - Catalog:    <api>/<board>/catalog.json
    - Thread:     <api>/<board>/thread/<no>.json

    Each call performs exactly one request; failures raise FeedFetchError and
    are never retried here.
    """

    def __init__(self, api_base_url: str, http: HttpClient):
        self.api_base_url = api_base_url.rstrip("/")
        self.http = http

    def fetch_boards(self) -> dict[str, Board]:
        url = f"{self.api_base_url}/boards.json"
        logger.info("Fetching board list: url=%s", url)
        return parse_boards(self.http.get_json(url) or {})

    def fetch_catalog(self, board: str) -> list[CatalogPage]:
        """
        Raises:
            ValueError: invalid board code
            FeedFetchError: on HTTP failure
        """
        board = self._check_board(board)
        url = f"{self.api_base_url}/{board}/catalog.json"
        logger.info("Fetching catalog: board=%s url=%s", board, url)
        return parse_catalog(board, self.http.get_json(url))

    def fetch_thread(self, board: str, no: int) -> Thread:
        """
        Raises:
            ValueError: invalid board code or empty thread feed
            FeedFetchError: on HTTP failure
        """
        board = self._check_board(board)
        url = f"{self.api_base_url}/{board}/thread/{int(no)}.json"
        logger.info("Fetching thread: board=%s no=%s url=%s", board, no, url)
        data = self.http.get_json(url) or {}
        try:
            return Thread.from_json(board, data)
        except ValueError as e:
            raise ValueError(f"{e}: url={url}") from e

    def _check_board(self, board: str) -> str:
        board = (board or "").strip().strip("/")
        if not BOARD_CODE_RE.match(board):
            raise ValueError(f"Invalid board code: {board!r}")
        return board
