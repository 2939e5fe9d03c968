"""Collision-safe local file names for a flat output directory."""

from __future__ import annotations

import hashlib
import posixpath
from typing import Dict, Iterable, Optional
from urllib.parse import unquote, urlsplit

from .config import RESERVED_NAMES
from .utils import sanitize_filename


def short_hash(url: str) -> str:
    return hashlib.sha1(url.encode("utf-8")).hexdigest()[:8]


def candidate_name(url: str) -> str:
    """Derive a file name from the final path segment of ``url``."""
    path = urlsplit(url).path
    segment = posixpath.basename(unquote(path))
    return sanitize_filename(segment)


def split_extension(name: str):
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem:
        return name, ""
    return stem, "." + ext


class NameAllocator:
    """Hands out unique names; the same URL always gets the same name back.

    Reserved names (the document and aggregate stylesheet) are never given
    to an asset. When a candidate is taken by a different URL, a short hash
    of the URL is appended before the extension, then a counter if needed.
    """

    def __init__(self, reserved: Iterable[str] = RESERVED_NAMES) -> None:
        self._reserved = {name.lower() for name in reserved}
        self._by_name: Dict[str, str] = {}
        self._by_url: Dict[str, str] = {}

    def _taken(self, name: str, url: str) -> bool:
        key = name.lower()
        if key in self._reserved:
            return True
        owner = self._by_name.get(key)
        return owner is not None and owner != url

    def allocate(self, url: str, candidate: Optional[str] = None) -> str:
        existing = self._by_url.get(url)
        if existing is not None:
            return existing
        name = candidate or candidate_name(url)
        if self._taken(name, url):
            stem, ext = split_extension(name)
            base = f"{stem}-{short_hash(url)}"
            name = base + ext
            counter = 2
            while self._taken(name, url):
                name = f"{base}-{counter}{ext}"
                counter += 1
        self._by_name[name.lower()] = url
        self._by_url[url] = name
        return name

    def rename(self, url: str, candidate: str) -> str:
        """Release the name held by ``url`` and allocate ``candidate`` instead."""
        previous = self._by_url.pop(url, None)
        if previous is not None:
            self._by_name.pop(previous.lower(), None)
        return self.allocate(url, candidate)
