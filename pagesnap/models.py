"""Data models used throughout the clone pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from bs4 import BeautifulSoup, Tag


class ReferenceSite(Enum):
    """Structural location an asset URL was found in."""

    STYLESHEET_LINK = "stylesheet-link"
    IMG_ATTRIBUTE = "img-attribute"
    INLINE_STYLE_BACKGROUND = "inline-style-background"
    SVG_HREF = "svg-href"
    CSS_URL_FUNCTION = "css-url-function"


class AssetStatus(Enum):
    PENDING = "pending"
    FETCHED = "fetched"
    FAILED = "failed"


class CssBlockKind(Enum):
    STYLESHEET = "stylesheet"
    STYLE_ELEMENT = "style-element"
    STYLE_ATTRIBUTE = "style-attribute"


@dataclass
class CssBlock:
    """A piece of CSS text whose ``url()`` references can be rewritten.

    ``element`` is the ``<link>`` for fetched stylesheets, the ``<style>``
    element for embedded blocks and the owning element for ``style``
    attributes. ``base_url`` is what relative ``url()`` values resolve against.
    """

    kind: CssBlockKind
    text: str
    base_url: str
    element: Optional[Tag] = None
    media: Optional[str] = None


@dataclass(frozen=True)
class AssetReference:
    """One occurrence of an asset URL at a reference site.

    ``owner`` is the element to mutate for markup sites, or the index of a
    :class:`CssBlock` in the manifest for CSS sites, in which case ``span``
    holds the offsets of ``raw_value`` inside that block's text.
    """

    site: ReferenceSite
    raw_value: str
    resolved_url: str
    owner: Union[Tag, int]
    attribute: Optional[str] = None
    span: Optional[Tuple[int, int]] = None


@dataclass
class AssetRecord:
    """Fetch state for one canonical URL, shared by every reference to it."""

    canonical_url: str
    local_name: Optional[str] = None
    status: AssetStatus = AssetStatus.PENDING
    content: Optional[bytes] = None
    content_type: Optional[str] = None
    error: Optional[str] = None
    written: bool = False

    def mark_fetched(self, content: bytes, content_type: Optional[str]) -> None:
        if self.status is not AssetStatus.PENDING:
            raise ValueError(
                f"{self.canonical_url} is already {self.status.value}"
            )
        self.status = AssetStatus.FETCHED
        self.content = content
        self.content_type = content_type

    def mark_failed(self, error: str) -> None:
        if self.status is not AssetStatus.PENDING:
            raise ValueError(
                f"{self.canonical_url} is already {self.status.value}"
            )
        self.status = AssetStatus.FAILED
        self.error = error

    @property
    def is_local(self) -> bool:
        """True when the asset exists on disk under its local name."""
        return self.status is AssetStatus.FETCHED and self.written


@dataclass
class CloneManifest:
    """In-memory state of a single clone call."""

    base_url: str
    soup: BeautifulSoup
    css_blocks: List[CssBlock] = field(default_factory=list)
    references: List[AssetReference] = field(default_factory=list)
    assets: Dict[str, AssetRecord] = field(default_factory=dict)
    aggregate_css: str = ""

    def add_block(self, block: CssBlock) -> int:
        self.css_blocks.append(block)
        return len(self.css_blocks) - 1

    def record_for(self, reference: AssetReference) -> AssetRecord:
        return self.assets[reference.resolved_url]


@dataclass
class CloneResult:
    """Structured outcome of a clone call."""

    success: bool
    output_dir: str
    assets_fetched: int = 0
    assets_failed: int = 0
    failed_assets: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def summary(self) -> str:
        """Human-readable one-paragraph summary for tool callers."""
        if not self.success:
            reason = self.errors[-1] if self.errors else "unknown error"
            return f"Error cloning website: {reason}"
        text = (
            f"Website cloned into {self.output_dir}/ "
            f"({self.assets_fetched} assets fetched, {self.assets_failed} failed)."
        )
        if self.failed_assets:
            text += " Unavailable: " + ", ".join(self.failed_assets)
        return text
