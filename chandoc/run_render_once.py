from __future__ import annotations

import logging
import sys

from chandoc.chan_client import ChanClient
from chandoc.downloads import CallbackQueue, download_batch, thumbnail_tasks
from chandoc.formatter import MediaConfig, format_catalog, format_thread
from chandoc.fragments import GreentextMode
from chandoc.http_client import FeedFetchError, HttpClient, HttpConfig
from chandoc.org_export import catalog_to_org, thread_to_org
from chandoc.renderer import RenderConfig, make_renderer
from chandoc.settings import load_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)

logger = logging.getLogger(__name__)


def main() -> int:
    s = load_settings()

    http = HttpClient(
        HttpConfig(
            timeout_sec=s.request_timeout_sec,
            delay_sec=s.request_delay_sec,
            user_agent=s.user_agent,
        )
    )
    client = ChanClient(s.api_base_url, http)

    renderer = make_renderer(
        s.parser_strategy,
        RenderConfig(
            greentext_mode=GreentextMode(s.greentext_mode),
            default_language=s.default_code_language,
        ),
    )
    media = MediaConfig(
        site=s.site,
        image_base_url=s.image_base_url,
        cache_dir=s.cache_dir,
        video_dir=s.video_dir,
        image_dir=s.image_dir,
        download_dir=s.download_dir,
    )

    try:
        if s.thread_no is None:
            boards = client.fetch_boards()
            pages = client.fetch_catalog(s.board)
            doc = format_catalog(s.board, pages, renderer, media, boards=boards)
            print(catalog_to_org(doc))
            return 0

        thread = client.fetch_thread(s.board, s.thread_no)
    except FeedFetchError as e:
        logger.error("%s", e)
        return 1
    except ValueError as e:
        logger.error("Cannot render feed: board=%s thread=%s err=%s", s.board, s.thread_no, e)
        return 1

    doc = format_thread(thread, renderer, media)
    logger.info("Rendered thread: board=%s no=%s posts=%s", doc.board, doc.no, len(doc.posts))

    # Thumbnails download in the background; completion comes back through
    # the callback queue on this thread.
    callbacks = CallbackQueue()
    done: list[bool] = []
    worker = download_batch(
        thumbnail_tasks(thread, s.image_base_url, s.cache_dir),
        max_retries=s.download_max_retries,
        retry_delay=s.download_retry_delay_sec,
        on_complete=lambda: done.append(True),
        fetch=http.download,
        dispatch=callbacks.post,
    )
    while not done:
        callbacks.run_pending(timeout=0.5)
    worker.join()

    print(thread_to_org(doc))
    return 0


if __name__ == "__main__":
    sys.exit(main())
