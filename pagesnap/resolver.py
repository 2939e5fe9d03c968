"""Resolve raw reference strings into canonical absolute URLs."""

from __future__ import annotations

from typing import Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

from .errors import URLResolutionError

EMBEDDED_SCHEMES = ("data:",)
NON_FETCHABLE_PREFIXES = EMBEDDED_SCHEMES + (
    "blob:",
    "javascript:",
    "about:",
    "mailto:",
    "tel:",
    "#",
)
FETCHABLE_SCHEMES = {"http", "https"}
DEFAULT_PORTS = {"http": 80, "https": 443}


def is_embedded(raw: str) -> bool:
    """True for inline payloads such as ``data:image/png;base64,...``."""
    return raw.strip().lower().startswith(EMBEDDED_SCHEMES)


def is_absolute(raw: str) -> bool:
    """True when ``raw`` carries its own scheme and needs no base to resolve."""
    try:
        return bool(urlsplit(raw.strip()).scheme)
    except ValueError:
        return False


def canonicalize(url: str) -> str:
    """Normalize an absolute URL into the form used as the dedup key.

    Scheme and host are lowercased, default ports and fragments dropped and
    an empty path becomes ``/``. Path and query are kept verbatim.
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as exc:
        raise URLResolutionError(f"malformed URL {url!r}: {exc}") from exc
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if not host:
        raise URLResolutionError(f"URL has no host: {url!r}")
    if ":" in host:
        host = f"[{host}]"
    netloc = host
    if port is not None and DEFAULT_PORTS.get(scheme) != port:
        netloc = f"{host}:{port}"
    if parts.username:
        userinfo = parts.username
        if parts.password:
            userinfo += f":{parts.password}"
        netloc = f"{userinfo}@{netloc}"
    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, ""))


def resolve(raw: Optional[str], base: str) -> Optional[str]:
    """Resolve ``raw`` against ``base`` into a canonical absolute URL.

    Returns ``None`` for values that never name a fetchable asset: embedded
    data, script URLs, fragment-only references and non-HTTP schemes. Raises
    :class:`URLResolutionError` for values that cannot be parsed.
    """
    value = raw.strip() if raw else ""
    if not value or value.lower().startswith(NON_FETCHABLE_PREFIXES):
        return None
    try:
        absolute = urljoin(base, value)
        scheme = urlsplit(absolute).scheme.lower()
    except ValueError as exc:
        raise URLResolutionError(
            f"cannot resolve {raw!r} against {base}: {exc}"
        ) from exc
    if scheme not in FETCHABLE_SCHEMES:
        return None
    return canonicalize(absolute)
