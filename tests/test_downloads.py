from __future__ import annotations

import threading
from pathlib import Path

from chandoc.downloads import CallbackQueue, download_batch, thumbnail_tasks
from chandoc.http_client import FeedFetchError
from chandoc.models import Attachment, Post, Thread


class _FakeFetch:
    """Writes the destination, or fails ``failures[url]`` times first (-1: always)."""

    def __init__(self, failures: dict[str, int] | None = None):
        self.failures = dict(failures or {})
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def __call__(self, url: str, dest: Path) -> None:
        with self._lock:
            self.calls.append(url)
            left = self.failures.get(url, 0)
            if left != 0:
                self.failures[url] = left - 1 if left > 0 else left
                raise FeedFetchError(url, RuntimeError("boom"))
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(b"data")


def _run(tasks, fetch, max_retries=3, retry_delay=0.5):
    callbacks = CallbackQueue()
    completed: list[threading.Thread] = []
    sleeps: list[float] = []

    worker = download_batch(
        tasks,
        max_retries=max_retries,
        retry_delay=retry_delay,
        on_complete=lambda: completed.append(threading.current_thread()),
        fetch=fetch,
        dispatch=callbacks.post,
        sleep=sleeps.append,
    )
    worker.join(timeout=5)
    assert not worker.is_alive()
    ran = callbacks.run_pending()
    return ran, completed, sleeps


def test_existing_destinations_are_not_fetched(tmp_path):
    existing = tmp_path / "a.jpg"
    existing.write_bytes(b"old")
    tasks = {
        "http://x/a": existing,
        "http://x/b": tmp_path / "b.jpg",
        "http://x/c": tmp_path / "sub" / "c.jpg",
    }
    fetch = _FakeFetch()

    ran, completed, sleeps = _run(tasks, fetch)

    assert sorted(fetch.calls) == ["http://x/b", "http://x/c"]
    assert existing.read_bytes() == b"old"
    assert (tmp_path / "sub" / "c.jpg").exists()
    assert ran == 1 and len(completed) == 1
    assert sleeps == []


def test_permanent_failure_is_retried_max_retries_times(tmp_path):
    tasks = {"http://x/bad": tmp_path / "bad.jpg", "http://x/ok": tmp_path / "ok.jpg"}
    fetch = _FakeFetch({"http://x/bad": -1})

    ran, completed, sleeps = _run(tasks, fetch, max_retries=3, retry_delay=0.5)

    # first pass + one attempt per retry
    assert fetch.calls.count("http://x/bad") == 1 + 3
    assert fetch.calls.count("http://x/ok") == 1
    assert sleeps == [0.5, 0.5, 0.5]
    assert (tmp_path / "ok.jpg").exists()
    assert not (tmp_path / "bad.jpg").exists()
    assert ran == 1 and len(completed) == 1


def test_transient_failure_recovers(tmp_path):
    tasks = {"http://x/flaky": tmp_path / "flaky.jpg"}
    fetch = _FakeFetch({"http://x/flaky": 1})

    ran, completed, sleeps = _run(tasks, fetch, max_retries=5)

    assert fetch.calls == ["http://x/flaky", "http://x/flaky"]
    assert sleeps == [0.5]
    assert (tmp_path / "flaky.jpg").exists()
    assert len(completed) == 1


def test_zero_retries_means_single_pass(tmp_path):
    fetch = _FakeFetch({"http://x/bad": -1})
    ran, completed, sleeps = _run({"http://x/bad": tmp_path / "bad.jpg"}, fetch, max_retries=0)
    assert fetch.calls == ["http://x/bad"]
    assert sleeps == []
    assert len(completed) == 1


def test_completion_runs_on_the_draining_thread(tmp_path):
    _, completed, _ = _run({}, _FakeFetch())
    assert completed == [threading.current_thread()]


def test_empty_batch_still_completes_once():
    ran, completed, _ = _run({}, _FakeFetch())
    assert ran == 1
    assert len(completed) == 1


def test_thumbnail_tasks(tmp_path):
    thread = Thread(
        board="g",
        posts=(
            Post(no=1, attachment=Attachment(filename="a", ext=".png", tim=111, md5="Xwlkt3JiMaT/1yyw/0p5mw==")),
            Post(no=2),
            Post(no=3, attachment=Attachment(filename="b", ext=".png", tim=222, md5="garbage!")),
            Post(no=4, attachment=Attachment(filename="", ext="", tim=0, deleted=True)),
        ),
    )
    tasks = thumbnail_tasks(thread, "https://i.4cdn.org/", tmp_path)
    assert tasks == {
        "https://i.4cdn.org/g/111s.jpg": tmp_path / "thumbnails" / "X" / "Xwlkt3JiMaT_1yyw_0p5mw.jpg",
    }
