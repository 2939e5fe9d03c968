"""Utility helpers for string normalization and path handling."""

from __future__ import annotations

import re
from urllib.parse import urlparse

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f\s]+')
MAX_FILENAME_CHARS = 120


def slugify(value: str, fallback: str = "page") -> str:
    """Generate a filesystem-friendly slug using ASCII characters only."""
    normalized = value.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def sanitize_filename(name: str, fallback: str = "asset") -> str:
    """Make a single path segment safe to use as a flat file name."""
    name = INVALID_FILENAME_CHARS.sub("_", name).strip("._")
    if not name:
        return fallback
    if len(name) > MAX_FILENAME_CHARS:
        stem, dot, ext = name.rpartition(".")
        if dot and len(ext) <= 10:
            name = stem[: MAX_FILENAME_CHARS - len(ext) - 1] + "." + ext
        else:
            name = name[:MAX_FILENAME_CHARS]
    return name


def default_folder_name(url: str) -> str:
    """``cloned-<host with dots replaced by dashes>`` for a page URL."""
    host = urlparse(url).hostname or "site"
    return "cloned-" + slugify(host.replace(".", "-"), fallback="site")
