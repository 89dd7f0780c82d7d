from __future__ import annotations

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class ChanSettings(BaseSettings):
    """
    Environment-driven settings for feed fetching, rendering and media downloads.
    """

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    # ---- Feed ----
    site: str = Field(default="4chan", alias="CHANDOC_SITE")
    api_base_url: str = Field(default="https://a.4cdn.org", alias="CHANDOC_API_BASE_URL")
    image_base_url: str = Field(default="https://i.4cdn.org", alias="CHANDOC_IMAGE_BASE_URL")

    request_timeout_sec: float = Field(default=15.0, alias="CHANDOC_REQUEST_TIMEOUT_SEC")
    request_delay_sec: float = Field(default=1.0, alias="CHANDOC_REQUEST_DELAY_SEC")

    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (X11; Linux x86_64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/120.0.0.0 Safari/537.36"
        ),
        alias="CHANDOC_USER_AGENT",
    )

    board: str = Field(default="g", alias="CHANDOC_BOARD")
    # Unset -> the run script renders the board catalog instead
    thread_no: Optional[int] = Field(default=None, alias="CHANDOC_THREAD_NO")

    # ---- Rendering ----
    # "auto" | "tree" | "regex"
    parser_strategy: str = Field(default="auto", alias="CHANDOC_PARSER_STRATEGY")

    # "verbatim" | "block" | "pass"
    greentext_mode: str = Field(default="verbatim", alias="CHANDOC_GREENTEXT_MODE")

    # Used for code blocks with no declaration and no guess
    default_code_language: str = Field(default="sh", alias="CHANDOC_DEFAULT_CODE_LANGUAGE")

    # ---- Media ----
    cache_dir: str = Field(default="~/.cache/chandoc", alias="CHANDOC_CACHE_DIR")

    # Save-file chain: kind-specific dir first, then generic download dir.
    # Empty everywhere -> caller prompts the user.
    video_dir: Optional[str] = Field(default=None, alias="CHANDOC_VIDEO_DIR")
    image_dir: Optional[str] = Field(default=None, alias="CHANDOC_IMAGE_DIR")
    download_dir: Optional[str] = Field(default="~/Downloads", alias="CHANDOC_DOWNLOAD_DIR")

    download_max_retries: int = Field(default=3, alias="CHANDOC_DOWNLOAD_MAX_RETRIES")
    download_retry_delay_sec: float = Field(default=5.0, alias="CHANDOC_DOWNLOAD_RETRY_DELAY_SEC")


def load_settings() -> ChanSettings:
    return ChanSettings()
