"""Blocking HTTP capability used for stylesheets and binary assets."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional

import requests

from .config import CloneConfig
from .errors import NetworkError

logger = logging.getLogger("pagesnap")

DEFAULT_ACCEPT = "text/css,image/avif,image/webp,image/*,*/*;q=0.8"


def charset_of(content_type: Optional[str]) -> Optional[str]:
    """Extract the ``charset`` parameter from a Content-Type header."""
    if not content_type:
        return None
    for param in content_type.split(";")[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset" and value.strip():
            return value.strip().strip("\"'")
    return None


def decode_text(content: bytes, content_type: Optional[str] = None) -> str:
    """Decode a text body, trusting a declared charset and defaulting to UTF-8."""
    encoding = charset_of(content_type) or "utf-8"
    try:
        text = content.decode(encoding, errors="replace")
    except LookupError:
        text = content.decode("utf-8", errors="replace")
    return text.lstrip("\ufeff")


@dataclass
class FetchResponse:
    """Body and metadata of a successful fetch."""

    url: str
    status: int
    content: bytes
    content_type: Optional[str] = None

    def text(self) -> str:
        return decode_text(self.content, self.content_type)


class HttpClient:
    """Thin wrapper over :class:`requests.Session` with size and status checks.

    ``get`` raises :class:`NetworkError` for transport failures, non-2xx
    responses and bodies larger than ``max_bytes``. It is safe to call from
    worker threads. ``close`` defers closing the session until requests still
    running in abandoned workers have returned.
    """

    def __init__(
        self,
        timeout: float = 15.0,
        max_bytes: int = 25 * 1024 * 1024,
        user_agent: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.session = session or requests.Session()
        self.session.headers.setdefault("Accept", DEFAULT_ACCEPT)
        if user_agent:
            self.session.headers["User-Agent"] = user_agent
        self._lock = threading.Lock()
        self._active = 0
        self._closing = False

    @classmethod
    def from_config(cls, config: CloneConfig) -> "HttpClient":
        return cls(
            timeout=config.request_timeout,
            max_bytes=config.max_asset_bytes,
            user_agent=config.user_agent,
        )

    def get(self, url: str) -> FetchResponse:
        with self._lock:
            if self._closing:
                raise NetworkError(f"{url}: client is closed")
            self._active += 1
        try:
            return self._get(url)
        finally:
            with self._lock:
                self._active -= 1
                release = self._closing and self._active == 0
            if release:
                self.session.close()

    def _get(self, url: str) -> FetchResponse:
        logger.debug("GET %s", url)
        try:
            resp = self.session.get(url, timeout=self.timeout, stream=True)
        except requests.RequestException as exc:
            raise NetworkError(f"{url}: {exc}") from exc
        try:
            if not 200 <= resp.status_code < 300:
                raise NetworkError(f"{url}: HTTP {resp.status_code}")
            declared = resp.headers.get("Content-Length")
            if declared and declared.isdigit() and int(declared) > self.max_bytes:
                raise NetworkError(f"{url}: body of {declared} bytes exceeds limit")
            chunks = []
            received = 0
            for chunk in resp.iter_content(chunk_size=64 * 1024):
                received += len(chunk)
                if received > self.max_bytes:
                    raise NetworkError(f"{url}: body exceeds {self.max_bytes} bytes")
                chunks.append(chunk)
            content_type = resp.headers.get("Content-Type") or ""
            return FetchResponse(
                url=url,
                status=resp.status_code,
                content=b"".join(chunks),
                content_type=content_type or None,
            )
        except requests.RequestException as exc:
            raise NetworkError(f"{url}: {exc}") from exc
        finally:
            resp.close()

    def close(self) -> None:
        with self._lock:
            self._closing = True
            release = self._active == 0
        if release:
            self.session.close()
