"""Persist the cloned document, stylesheet and assets as flat files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List

from .config import DOCUMENT_NAME, STYLESHEET_NAME
from .errors import FileSystemError
from .models import AssetRecord, AssetStatus

logger = logging.getLogger("pagesnap")


def ensure_output_dir(path: Path) -> Path:
    """Create ``path`` if needed; an existing directory is reused."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FileSystemError(f"cannot create output directory {path}: {exc}") from exc
    return path


def write_assets(output_dir: Path, records: Iterable[AssetRecord]) -> List[str]:
    """Write every fetched record that has a local name.

    Failures are kept on the record and returned as messages; they do not
    stop the remaining writes.
    """
    errors: List[str] = []
    for record in records:
        if record.status is not AssetStatus.FETCHED or not record.local_name:
            continue
        destination = output_dir / record.local_name
        try:
            destination.write_bytes(record.content or b"")
        except OSError as exc:
            message = f"failed to write {record.local_name}: {exc}"
            logger.warning("%s", message)
            record.error = message
            errors.append(message)
            continue
        record.written = True
    return errors


def write_document(output_dir: Path, html: str, css: str) -> None:
    """Write ``index.html`` and, when there is any CSS, ``styles.css``."""
    targets = [(output_dir / DOCUMENT_NAME, html)]
    stylesheet = output_dir / STYLESHEET_NAME
    if css.strip():
        targets.append((stylesheet, css))
    else:
        try:
            stylesheet.unlink(missing_ok=True)
        except OSError as exc:
            raise FileSystemError(f"cannot remove stale {stylesheet}: {exc}") from exc
    for path, text in targets:
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise FileSystemError(f"cannot write {path}: {exc}") from exc
        logger.info("Saved %s", path)
