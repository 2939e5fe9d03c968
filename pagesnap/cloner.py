"""High-level orchestration: render, collect, fetch, rewrite and write a clone."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import List, Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .collector import collect_css_references, collect_html_references
from .config import CloneConfig
from .errors import CloneError
from .fetcher import AssetFetcher, Client
from .formatter import format_css, format_html
from .http_client import HttpClient, decode_text
from .markup import effective_base_url, parse_html
from .models import (
    AssetRecord,
    AssetStatus,
    CloneManifest,
    CloneResult,
    CssBlock,
    CssBlockKind,
    ReferenceSite,
)
from .renderer import Renderer, get_renderer
from .rewrite import RewriteEngine
from .utils import default_folder_name
from .writer import ensure_output_dir, write_assets, write_document

logger = logging.getLogger("pagesnap")


def _records_needing_files(manifest: CloneManifest) -> List[AssetRecord]:
    """Records cited by at least one non-stylesheet site, in first-use order."""
    seen = {}
    for reference in manifest.references:
        if reference.site is ReferenceSite.STYLESHEET_LINK:
            continue
        seen.setdefault(reference.resolved_url, manifest.record_for(reference))
    return list(seen.values())


async def _collect_stylesheets(manifest: CloneManifest, fetcher: AssetFetcher) -> None:
    """Fetch linked stylesheets and collect the ``url()`` values inside them."""
    links = [
        reference
        for reference in manifest.references
        if reference.site is ReferenceSite.STYLESHEET_LINK
    ]
    await fetcher.fetch_all(manifest.record_for(reference) for reference in links)
    for reference in links:
        record = manifest.record_for(reference)
        if record.status is not AssetStatus.FETCHED:
            continue
        text = decode_text(record.content or b"", record.content_type)
        block_index = manifest.add_block(
            CssBlock(
                kind=CssBlockKind.STYLESHEET,
                text=text,
                base_url=reference.resolved_url,
                element=reference.owner,
                media=reference.owner.get("media"),
            )
        )
        css_references = collect_css_references(
            text, block_index, reference.resolved_url
        )
        manifest.references.extend(css_references)
        fetcher.register(css_references, manifest.assets)


async def build_clone(
    url: str,
    output_dir: Path,
    config: CloneConfig,
    renderer: Renderer,
    client: Client,
) -> CloneResult:
    """Run the pipeline for one page; raises :class:`CloneError` on fatal failure."""
    start = time.perf_counter()
    html, final_url = await renderer.render(url)
    soup = parse_html(html)
    base_url = effective_base_url(soup, final_url or url)
    manifest = CloneManifest(base_url=base_url, soup=soup)
    fetcher = AssetFetcher(client, concurrency=config.concurrency)

    manifest.references.extend(collect_html_references(manifest, base_url))
    fetcher.register(manifest.references, manifest.assets)
    await _collect_stylesheets(manifest, fetcher)
    logger.info(
        "Collected %d reference(s) to %d unique asset(s)",
        len(manifest.references),
        len(manifest.assets),
    )

    file_records = _records_needing_files(manifest)
    fetcher.assign_names(file_records)
    await fetcher.fetch_all(manifest.assets.values())
    fetcher.finalize_names(file_records)

    # Every record is terminal from here on; nothing below awaits.
    ensure_output_dir(output_dir)
    errors = write_assets(output_dir, file_records)
    aggregate_css = RewriteEngine(manifest).rewrite()
    write_document(
        output_dir,
        format_html(manifest.soup, indent=config.indent),
        format_css(aggregate_css, indent=config.indent),
    )

    failed = [
        record.canonical_url
        for record in manifest.assets.values()
        if record.status is AssetStatus.FAILED
    ]
    fetched = sum(
        1 for record in manifest.assets.values() if record.status is AssetStatus.FETCHED
    )
    for record in manifest.assets.values():
        if record.status is AssetStatus.FAILED and record.error:
            errors.append(record.error)
    logger.info(
        "Cloned %s into %s in %.2fs (%d fetched, %d failed)",
        url,
        output_dir,
        time.perf_counter() - start,
        fetched,
        len(failed),
    )
    return CloneResult(
        success=True,
        output_dir=str(output_dir),
        assets_fetched=fetched,
        assets_failed=len(failed),
        failed_assets=failed,
        errors=errors,
    )


async def clone(
    url: str,
    output_folder_name: Optional[str] = None,
    *,
    config: Optional[CloneConfig] = None,
    renderer: Optional[Renderer] = None,
    client: Optional[Client] = None,
) -> CloneResult:
    """Clone ``url`` into ``<output_root>/<output_folder_name>``.

    Never raises for pipeline failures: the returned :class:`CloneResult`
    carries ``success=False`` and the reason instead.
    """
    config = config or CloneConfig()
    output_dir = Path(config.output_root) / (output_folder_name or default_folder_name(url))
    http_client: Optional[HttpClient] = None
    if client is None:
        http_client = HttpClient.from_config(config)
        client = http_client
    if renderer is None:
        renderer = get_renderer(config, client)

    def failure(message: str) -> CloneResult:
        return CloneResult(success=False, output_dir=str(output_dir), errors=[message])

    try:
        pipeline = build_clone(url, output_dir, config, renderer, client)
        if config.clone_timeout:
            return await asyncio.wait_for(pipeline, timeout=config.clone_timeout)
        return await pipeline
    except asyncio.TimeoutError:
        logger.error("Timed out cloning %s after %.1fs", url, config.clone_timeout)
        return failure(f"timed out after {config.clone_timeout}s")
    except PlaywrightTimeoutError as exc:
        logger.error("Timeout while loading %s: %s", url, exc)
        return failure(f"timeout while loading {url}: {exc}")
    except CloneError as exc:
        logger.error("Failed to clone %s: %s", url, exc)
        return failure(str(exc))
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Unexpected error cloning %s", url)
        return failure(f"unexpected error: {exc}")
    finally:
        if http_client is not None:
            http_client.close()


def clone_sync(url: str, output_folder_name: Optional[str] = None, **kwargs) -> CloneResult:
    """Blocking wrapper around :func:`clone`."""
    return asyncio.run(clone(url, output_folder_name, **kwargs))
