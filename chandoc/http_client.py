from __future__ import annotations

import logging
import os
import random
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)


class FeedFetchError(RuntimeError):
    """Network or HTTP failure for a single URL."""

    def __init__(self, url: str, cause: Exception):
        super().__init__(f"Failed to fetch {url}: {cause}")
        self.url = url
        self.cause = cause


@dataclass(frozen=True)
class HttpConfig:
    timeout_sec: float
    delay_sec: float
    user_agent: str


class HttpClient:
    """
    Thin HTTP client wrapper:
    - Timeout
    - Rate limiting (fixed delay + small jitter)
    - One attempt per call; retrying media is the download manager's job
    - Logs meaningful failures
    """

    def __init__(self, config: HttpConfig, session: Optional[requests.Session] = None):
        self._cfg = config
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "User-Agent": self._cfg.user_agent,
                "Accept": "application/json, */*;q=0.8",
            }
        )

    def get_json(self, url: str) -> Any:
        """
        GET an URL and decode the JSON body.

        Raises:
            FeedFetchError: network error, non-2xx response or invalid JSON
        """
        self._rate_limit()
        try:
            resp = self._session.get(url, timeout=self._cfg.timeout_sec)
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("HTTP GET failed: url=%s err=%s", url, e)
            raise FeedFetchError(url, e) from e

    def download(self, url: str, dest: Path) -> None:
        """
        Stream an URL into ``dest``.

        The body goes to a temp file in the destination directory first and is
        moved into place once complete, so ``dest`` never holds a partial file.

        Raises:
            FeedFetchError: network error or non-2xx response
            OSError: destination not writable
        """
        dest = Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        try:
            with self._session.get(url, timeout=self._cfg.timeout_sec, stream=True) as resp:
                resp.raise_for_status()
                fd, tmp_name = tempfile.mkstemp(dir=dest.parent, prefix=".part-")
                try:
                    with os.fdopen(fd, "wb") as fh:
                        for chunk in resp.iter_content(chunk_size=64 * 1024):
                            if chunk:
                                fh.write(chunk)
                    os.replace(tmp_name, dest)
                except BaseException:
                    Path(tmp_name).unlink(missing_ok=True)
                    raise
        except requests.RequestException as e:
            raise FeedFetchError(url, e) from e
        logger.debug("Downloaded: url=%s dest=%s", url, dest)

    def _rate_limit(self) -> None:
        # Fixed delay + jitter (avoid bursty patterns)
        if self._cfg.delay_sec <= 0:
            return
        jitter = random.uniform(0.0, 0.25)
        time.sleep(self._cfg.delay_sec + jitter)
