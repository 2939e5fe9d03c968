"""Deduplicated, bounded-concurrency asset fetching."""

from __future__ import annotations

import asyncio
import logging
import mimetypes
from typing import Dict, Iterable, List, Optional, Protocol

from filetype import guess

from .config import DEFAULT_CONCURRENCY
from .errors import NetworkError
from .http_client import FetchResponse
from .models import AssetRecord, AssetReference, AssetStatus
from .naming import NameAllocator, split_extension

logger = logging.getLogger("pagesnap")

CONTENT_TYPE_EXTENSIONS = {
    "text/css": ".css",
    "image/svg+xml": ".svg",
    "image/jpeg": ".jpg",
    "image/x-icon": ".ico",
    "image/vnd.microsoft.icon": ".ico",
    "font/woff": ".woff",
    "font/woff2": ".woff2",
    "font/ttf": ".ttf",
    "font/otf": ".otf",
    "application/javascript": ".js",
    "text/javascript": ".js",
}


class Client(Protocol):
    def get(self, url: str) -> FetchResponse:
        ...


def infer_extension(content_type: Optional[str], data: bytes) -> Optional[str]:
    """Guess a file extension from the body signature or HTTP metadata."""
    kind = guess(data) if data else None
    if kind is not None:
        ext = kind.extension.lower()
        return ".jpg" if ext == "jpeg" else "." + ext
    if not content_type:
        return None
    mime = content_type.split(";")[0].strip().lower()
    return CONTENT_TYPE_EXTENSIONS.get(mime) or mimetypes.guess_extension(mime)


class AssetFetcher:
    """Owns the fetch phase of one clone: one record and one request per URL."""

    def __init__(
        self,
        client: Client,
        concurrency: int = DEFAULT_CONCURRENCY,
        allocator: Optional[NameAllocator] = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.client = client
        self.concurrency = concurrency
        self.allocator = allocator or NameAllocator()

    def register(
        self,
        references: Iterable[AssetReference],
        assets: Dict[str, AssetRecord],
    ) -> List[AssetRecord]:
        """Create records for URLs not yet in ``assets``; returns the new ones."""
        created: List[AssetRecord] = []
        for reference in references:
            url = reference.resolved_url
            if url not in assets:
                record = AssetRecord(canonical_url=url)
                assets[url] = record
                created.append(record)
        return created

    def assign_names(self, records: Iterable[AssetRecord]) -> None:
        for record in records:
            if record.local_name is None:
                record.local_name = self.allocator.allocate(record.canonical_url)

    def finalize_names(self, records: Iterable[AssetRecord]) -> None:
        """Give extension-less names of fetched assets a sniffed extension."""
        for record in records:
            if record.status is not AssetStatus.FETCHED or not record.local_name:
                continue
            if split_extension(record.local_name)[1]:
                continue
            ext = infer_extension(record.content_type, record.content or b"")
            if ext:
                record.local_name = self.allocator.rename(
                    record.canonical_url, record.local_name + ext
                )

    async def _fetch_one(self, record: AssetRecord, semaphore: asyncio.Semaphore) -> None:
        async with semaphore:
            try:
                response = await asyncio.to_thread(self.client.get, record.canonical_url)
            except NetworkError as exc:
                logger.warning("Failed to fetch %s: %s", record.canonical_url, exc)
                record.mark_failed(str(exc))
                return
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning("Unexpected error fetching %s: %s", record.canonical_url, exc)
                record.mark_failed(f"{record.canonical_url}: {exc}")
                return
        record.mark_fetched(response.content, response.content_type)
        logger.debug("Fetched %s (%d bytes)", record.canonical_url, len(response.content))

    async def fetch_all(self, records: Iterable[AssetRecord]) -> None:
        """Fetch every pending record; returns once all are terminal."""
        pending = list(
            {r.canonical_url: r for r in records if r.status is AssetStatus.PENDING}.values()
        )
        if not pending:
            return
        semaphore = asyncio.Semaphore(self.concurrency)
        logger.info(
            "Fetching %d asset(s) with up to %d concurrent request(s)",
            len(pending),
            self.concurrency,
        )
        await asyncio.gather(*(self._fetch_one(record, semaphore) for record in pending))
