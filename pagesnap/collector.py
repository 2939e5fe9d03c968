"""Asset discovery across markup and CSS reference sites."""

from __future__ import annotations

import logging
import re
from typing import Iterator, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from .errors import URLResolutionError
from .models import (
    AssetReference,
    CloneManifest,
    CssBlock,
    CssBlockKind,
    ReferenceSite,
)
from .resolver import resolve

logger = logging.getLogger("pagesnap")

# Checked in order after ``src`` when an image carries no direct source.
LAZY_SOURCE_ATTRIBUTES = ("data-src", "data-lazy-src", "data-original", "data-lazy")
SVG_HREF_ATTRIBUTES = ("href", "xlink:href")
BACKGROUND_PROPERTIES = {"background", "background-image"}

CSS_URL_RE = re.compile(
    r"""url\(\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^)"'\s]*))\s*\)""",
    re.IGNORECASE,
)


def iter_css_urls(text: str) -> Iterator[Tuple[str, int, int]]:
    """Yield ``(value, start, end)`` for every ``url(...)`` in ``text``.

    Offsets delimit the value itself, excluding quotes and whitespace.
    """
    for match in CSS_URL_RE.finditer(text):
        for group in ("dq", "sq", "bare"):
            value = match.group(group)
            if value is not None:
                yield value, match.start(group), match.end(group)
                break


def _iter_declarations(style: str) -> Iterator[Tuple[str, int, int]]:
    """Yield ``(property, value_start, value_end)`` for a declaration list.

    Semicolons inside quotes or parentheses do not end a declaration, so
    ``url(data:image/png;base64,...)`` stays inside its value.
    """
    depth = 0
    quote: Optional[str] = None
    start = 0
    for index, char in enumerate(style + ";"):
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth = max(0, depth - 1)
        elif char == ";" and depth == 0:
            declaration = style[start:index]
            name, colon, _ = declaration.partition(":")
            if colon:
                value_start = start + len(name) + 1
                yield name.strip().lower(), value_start, index
            start = index + 1


def _make_reference(
    site: ReferenceSite,
    raw: str,
    base: str,
    owner,
    attribute: Optional[str] = None,
    span: Optional[Tuple[int, int]] = None,
) -> Optional[AssetReference]:
    try:
        resolved = resolve(raw, base)
    except URLResolutionError as exc:
        logger.debug("Dropping reference %r: %s", raw, exc)
        return None
    if resolved is None:
        return None
    return AssetReference(
        site=site,
        raw_value=raw,
        resolved_url=resolved,
        owner=owner,
        attribute=attribute,
        span=span,
    )


def collect_css_references(
    text: str,
    block_index: int,
    base: str,
    site: ReferenceSite = ReferenceSite.CSS_URL_FUNCTION,
) -> List[AssetReference]:
    """Collect every ``url(...)`` occurrence in one CSS block, in text order."""
    references: List[AssetReference] = []
    for value, start, end in iter_css_urls(text):
        reference = _make_reference(site, value, base, block_index, span=(start, end))
        if reference:
            references.append(reference)
    return references


def _is_stylesheet_link(tag: Tag) -> bool:
    rel = tag.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    return "stylesheet" in {value.lower() for value in rel}


def stylesheet_links(soup: BeautifulSoup) -> List[Tag]:
    """``<link rel="stylesheet" href=...>`` elements in document order."""
    return [
        tag
        for tag in soup.find_all("link", href=True)
        if _is_stylesheet_link(tag)
    ]


def _image_source(tag: Tag) -> Tuple[Optional[str], Optional[str]]:
    for attribute in ("src",) + LAZY_SOURCE_ATTRIBUTES:
        value = tag.get(attribute)
        if value and value.strip():
            return attribute, value
    return None, None


def _background_references(
    manifest: CloneManifest, tag: Tag, base: str
) -> List[AssetReference]:
    style = tag.get("style") or ""
    if "url(" not in style.lower():
        return []
    spans = []
    for name, value_start, value_end in _iter_declarations(style):
        if name not in BACKGROUND_PROPERTIES:
            continue
        for value, start, end in iter_css_urls(style[value_start:value_end]):
            spans.append((value, value_start + start, value_start + end))
    if not spans:
        return []
    block_index = manifest.add_block(
        CssBlock(
            kind=CssBlockKind.STYLE_ATTRIBUTE,
            text=style,
            base_url=base,
            element=tag,
        )
    )
    references = []
    for value, start, end in spans:
        reference = _make_reference(
            ReferenceSite.INLINE_STYLE_BACKGROUND,
            value,
            base,
            block_index,
            span=(start, end),
        )
        if reference:
            references.append(reference)
    return references


def collect_html_references(
    manifest: CloneManifest, base: str
) -> List[AssetReference]:
    """Walk the document and return references in collection order.

    Stylesheet links come first, then images, inline background styles, SVG
    images and finally ``url()`` values inside embedded ``<style>`` blocks.
    CSS owners are registered on ``manifest`` as they are found.
    """
    soup = manifest.soup
    references: List[AssetReference] = []

    for link in stylesheet_links(soup):
        reference = _make_reference(
            ReferenceSite.STYLESHEET_LINK, link["href"], base, link, attribute="href"
        )
        if reference:
            references.append(reference)

    for img in soup.find_all("img"):
        attribute, value = _image_source(img)
        if attribute is None:
            continue
        reference = _make_reference(
            ReferenceSite.IMG_ATTRIBUTE, value, base, img, attribute=attribute
        )
        if reference:
            references.append(reference)

    for tag in soup.find_all(style=True):
        references.extend(_background_references(manifest, tag, base))

    for image in soup.find_all("image"):
        for attribute in SVG_HREF_ATTRIBUTES:
            value = image.get(attribute)
            if value and value.strip():
                reference = _make_reference(
                    ReferenceSite.SVG_HREF, value, base, image, attribute=attribute
                )
                if reference:
                    references.append(reference)
                break

    for style in soup.find_all("style"):
        text = style.string
        if not text or "url(" not in text.lower():
            continue
        block_index = manifest.add_block(
            CssBlock(kind=CssBlockKind.STYLE_ELEMENT, text=str(text), base_url=base, element=style)
        )
        references.extend(collect_css_references(str(text), block_index, base))

    logger.debug("Collected %d reference(s) from markup", len(references))
    return references
