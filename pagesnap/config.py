"""Configuration objects and constants for the page cloner."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_CONCURRENCY = 8
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)
DOCUMENT_NAME = "index.html"
STYLESHEET_NAME = "styles.css"
RESERVED_NAMES = frozenset({DOCUMENT_NAME, STYLESHEET_NAME})


@dataclass
class CloneConfig:
    """Top-level settings that control rendering, fetching and output."""

    output_root: Path = Path(".")
    concurrency: int = DEFAULT_CONCURRENCY
    request_timeout: float = 15.0
    max_asset_bytes: int = 25 * 1024 * 1024
    user_agent: str = DEFAULT_USER_AGENT
    render_js: bool = True
    wait_after_load: float = 1.0
    navigation_timeout: float = 30.0
    indent: int = 2
    clone_timeout: Optional[float] = None
