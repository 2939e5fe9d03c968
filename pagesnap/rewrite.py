"""Apply fetch outcomes back onto the document tree and CSS text."""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from .collector import LAZY_SOURCE_ATTRIBUTES
from .config import STYLESHEET_NAME
from .markup import strip_base_elements
from .models import (
    AssetReference,
    AssetStatus,
    CloneManifest,
    CssBlock,
    CssBlockKind,
    ReferenceSite,
)
from .resolver import is_absolute

logger = logging.getLogger("pagesnap")

# Removed from rewritten images so ``src`` is the only source left.
IMG_SOURCE_ATTRIBUTES = LAZY_SOURCE_ATTRIBUTES + ("srcset", "data-srcset")
CHARSET_RULE_RE = re.compile(r"""^\s*@charset\s+["'][^"']*["']\s*;""", re.IGNORECASE)

Replacement = Tuple[int, int, str]


def splice(text: str, replacements: Sequence[Replacement]) -> str:
    """Replace each ``(start, end)`` range of ``text`` with its new value.

    Ranges are applied right to left so earlier offsets stay valid; only the
    exact span recorded for a reference is touched.
    """
    result = text
    last_start = len(text) + 1
    for start, end, value in sorted(replacements, key=lambda item: item[0], reverse=True):
        if end > last_start:
            raise ValueError(f"overlapping replacement at {start}:{end}")
        result = result[:start] + value + result[end:]
        last_start = start
    return result


class RewriteEngine:
    """Rewrites one manifest in place and builds its aggregate stylesheet."""

    def __init__(self, manifest: CloneManifest) -> None:
        self.manifest = manifest
        self.rewritten = 0
        self.absolutized = 0

    def _local_name(self, reference: AssetReference) -> Optional[str]:
        record = self.manifest.record_for(reference)
        if record.is_local:
            return record.local_name
        return None

    def _absolute_value(self, reference: AssetReference) -> Optional[str]:
        """Absolute URL for an unavailable reference whose raw value is relative.

        The clone drops ``<base>`` and moves stylesheet bodies, so a relative
        value would otherwise point into the output directory.
        """
        if is_absolute(reference.raw_value):
            return None
        self.absolutized += 1
        return reference.resolved_url

    def _rewrite_markup(self, reference: AssetReference) -> None:
        tag = reference.owner
        name = self._local_name(reference)
        if name is None:
            absolute = self._absolute_value(reference)
            if absolute is not None:
                tag[reference.attribute] = absolute
            return
        if reference.site is ReferenceSite.IMG_ATTRIBUTE:
            tag["src"] = name
            for attribute in IMG_SOURCE_ATTRIBUTES:
                if attribute in tag.attrs:
                    del tag.attrs[attribute]
        else:
            tag[reference.attribute] = name
        self.rewritten += 1

    def _rewrite_block(self, block: CssBlock, references: List[AssetReference]) -> str:
        replacements: List[Replacement] = []
        for reference in references:
            value = self._local_name(reference)
            if value is not None:
                self.rewritten += 1
            else:
                value = self._absolute_value(reference)
            if value is not None:
                start, end = reference.span
                replacements.append((start, end, value))
        return splice(block.text, replacements) if replacements else block.text

    def _aggregate(self, sheets: List[Tuple[CssBlock, str]]) -> str:
        parts: List[str] = []
        for block, text in sheets:
            text = CHARSET_RULE_RE.sub("", text, count=1).strip()
            media = (block.media or "").strip()
            if media and media.lower() != "all":
                text = f"@media {media} {{\n{text}\n}}"
            parts.append(f"/* {block.base_url} */\n{text}")
        return "\n\n".join(parts) + ("\n" if parts else "")

    def _replace_stylesheet_links(self) -> None:
        fetched_links = []
        for reference in self.manifest.references:
            if reference.site is not ReferenceSite.STYLESHEET_LINK:
                continue
            if self.manifest.record_for(reference).status is AssetStatus.FETCHED:
                fetched_links.append(reference.owner)
                continue
            absolute = self._absolute_value(reference)
            if absolute is not None:
                reference.owner[reference.attribute] = absolute
        if not fetched_links:
            return
        soup = self.manifest.soup
        aggregate_link = soup.new_tag("link", rel="stylesheet", href=STYLESHEET_NAME)
        fetched_links[0].replace_with(aggregate_link)
        for link in fetched_links[1:]:
            link.decompose()

    def rewrite(self) -> str:
        """Rewrite every reference and return the aggregate stylesheet text."""
        by_block: Dict[int, List[AssetReference]] = defaultdict(list)
        for reference in self.manifest.references:
            if isinstance(reference.owner, int):
                by_block[reference.owner].append(reference)
            elif reference.site is not ReferenceSite.STYLESHEET_LINK:
                self._rewrite_markup(reference)

        sheets: List[Tuple[CssBlock, str]] = []
        for index, block in enumerate(self.manifest.css_blocks):
            text = self._rewrite_block(block, by_block.get(index, []))
            if block.kind is CssBlockKind.STYLESHEET:
                sheets.append((block, text))
            elif block.kind is CssBlockKind.STYLE_ATTRIBUTE:
                if text != block.text:
                    block.element["style"] = text
            elif text != block.text:
                # Keep bs4's stylesheet string type so CSS is not entity-escaped.
                string_type = type(block.element.string)
                block.element.string = string_type(text)

        self._replace_stylesheet_links()
        strip_base_elements(self.manifest.soup)
        self.manifest.aggregate_css = self._aggregate(sheets)
        logger.debug(
            "Rewrote %d reference(s), made %d unavailable one(s) absolute",
            self.rewritten,
            self.absolutized,
        )
        return self.manifest.aggregate_css
