from __future__ import annotations

from chandoc.fragments import GreentextMode
from chandoc.settings import load_settings


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("CHANDOC_GREENTEXT_MODE", "block")
    monkeypatch.setenv("CHANDOC_DOWNLOAD_MAX_RETRIES", "7")
    monkeypatch.setenv("CHANDOC_THREAD_NO", "12345")

    s = load_settings()

    assert GreentextMode(s.greentext_mode) is GreentextMode.BLOCK
    assert s.download_max_retries == 7
    assert s.thread_no == 12345
    assert s.parser_strategy == "auto"
