"""
Background media downloads with bounded retry.

Each batch gets its own worker thread. The only coordination point between
batches is the filesystem: a destination that already exists is done.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from pathlib import Path
from typing import Callable, Mapping, Optional, Union

from chandoc.http_client import FeedFetchError
from chandoc.models import Thread
from chandoc.paths import InvalidDigestError, thumbnail_path, thumbnail_url

logger = logging.getLogger(__name__)

Fetch = Callable[[str, Path], None]
Dispatch = Callable[[Callable[[], None]], None]


class CallbackQueue:
    """
    Hands callbacks from workers to the thread that owns this queue.

    Workers call ``post``; the owning thread calls ``run_pending`` from its
    own loop (e.g. a UI idle timer).
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[Callable[[], None]]" = queue.Queue()

    def post(self, callback: Callable[[], None]) -> None:
        self._queue.put(callback)

    def run_pending(self, timeout: Optional[float] = None) -> int:
        """
        Run queued callbacks; with ``timeout``, wait that long for the first one.

        Returns:
            number of callbacks run
        """
        ran = 0
        block = timeout is not None
        while True:
            try:
                callback = self._queue.get(block=block, timeout=timeout)
            except queue.Empty:
                return ran
            block = False
            callback()
            ran += 1


def download_batch(
    tasks: Mapping[str, Union[str, Path]],
    max_retries: int,
    retry_delay: float,
    on_complete: Callable[[], None],
    fetch: Fetch,
    dispatch: Dispatch,
    sleep: Callable[[float], None] = time.sleep,
) -> threading.Thread:
    """
    Fetch every missing destination of ``tasks`` (url -> path) in the background.

    Destinations that already exist are never fetched. After each pass the
    failed tasks are retried after ``retry_delay`` seconds while the retry
    budget lasts; each wait spends one retry. Tasks still failing after that
    are dropped. ``on_complete`` is handed to ``dispatch`` exactly once, after
    the worker has finished writing.

    Returns:
        the started worker thread
    """
    snapshot = {url: Path(dest) for url, dest in tasks.items()}

    def worker() -> None:
        try:
            _run_batch(snapshot, max_retries, retry_delay, fetch, sleep)
        finally:
            dispatch(on_complete)

    thread = threading.Thread(target=worker, name="chandoc-download", daemon=True)
    thread.start()
    return thread


def _run_batch(
    tasks: Mapping[str, Path],
    max_retries: int,
    retry_delay: float,
    fetch: Fetch,
    sleep: Callable[[float], None],
) -> None:
    pending = {url: dest for url, dest in tasks.items() if not dest.exists()}
    skipped = len(tasks) - len(pending)
    logger.info("Download batch: total=%s existing=%s pending=%s", len(tasks), skipped, len(pending))

    retries_left = max_retries
    while True:
        for url, dest in list(pending.items()):
            try:
                fetch(url, dest)
            except (FeedFetchError, OSError) as e:
                logger.warning("Download failed: url=%s dest=%s err=%s", url, dest, e)
                continue
            del pending[url]

        if not pending or retries_left <= 0:
            break
        logger.info(
            "Retrying downloads: pending=%s retries_left=%s sleep=%.2fs",
            len(pending),
            retries_left,
            retry_delay,
        )
        sleep(retry_delay)
        retries_left -= 1

    if pending:
        logger.warning("Giving up on downloads: count=%s", len(pending))


def thumbnail_tasks(thread: Thread, image_base_url: str, cache_dir: Union[str, Path]) -> dict[str, Path]:
    """url -> local thumbnail path for every post in ``thread`` with a usable attachment."""
    tasks: dict[str, Path] = {}
    for post in thread.posts:
        att = post.attachment
        if att is None or att.deleted or not att.md5:
            continue
        try:
            dest = thumbnail_path(att.md5, Path(cache_dir).expanduser())
        except InvalidDigestError as e:
            logger.warning("Skipping thumbnail: post=%s err=%s", post.no, e)
            continue
        tasks[thumbnail_url(image_base_url, thread.board, att.tim)] = dest
    return tasks
