"""Exception hierarchy for the clone pipeline."""

from __future__ import annotations


class CloneError(Exception):
    """Base class for failures raised inside the clone pipeline."""


class ParseError(CloneError):
    """Rendered HTML could not be turned into a document tree."""


class NetworkError(CloneError):
    """A single HTTP fetch failed (transport error, bad status, oversize body)."""


class URLResolutionError(CloneError):
    """A raw reference could not be resolved into an absolute URL."""


class FileSystemError(CloneError):
    """The output directory, document or stylesheet could not be written."""
