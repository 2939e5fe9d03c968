"""HTML parsing helpers built on BeautifulSoup."""

from __future__ import annotations

import logging
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from .errors import ParseError

logger = logging.getLogger("pagesnap")


def parse_html(html: str) -> BeautifulSoup:
    """Parse rendered HTML into a mutable tree, tolerating malformed markup."""
    if not html or not html.strip():
        raise ParseError("rendered page is empty")
    try:
        soup = BeautifulSoup(html, "html.parser")
    except Exception as exc:  # pylint: disable=broad-except
        raise ParseError(f"unable to parse rendered HTML: {exc}") from exc
    if soup.find() is None:
        raise ParseError("rendered page contains no elements")
    return soup


def effective_base_url(soup: BeautifulSoup, fallback: str) -> str:
    """Return the document base, honouring a ``<base href>`` element."""
    tag = soup.find("base", href=True)
    if tag is None:
        return fallback
    href = tag["href"].strip()
    if not href:
        return fallback
    try:
        return urljoin(fallback, href)
    except ValueError:
        logger.debug("Ignoring malformed <base href=%r>", href)
        return fallback


def strip_base_elements(soup: BeautifulSoup) -> None:
    """Remove ``<base>`` so local file names resolve against the output folder."""
    for tag in soup.find_all("base"):
        tag.decompose()
