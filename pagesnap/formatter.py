"""Deterministic pretty-printing for the cloned document and stylesheet."""

from __future__ import annotations

import logging
import re
from typing import Iterator, List, Tuple

from bs4 import BeautifulSoup
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter
from cssutils.tokenize2 import Tokenizer

logger = logging.getLogger("pagesnap")

WHITESPACE_RE = re.compile(r"\s+")


def format_html(soup: BeautifulSoup, indent: int = 2) -> str:
    """Serialize the tree with a fixed indentation width."""
    formatter = HTMLFormatter(
        entity_substitution=EntitySubstitution.substitute_xml,
        indent=indent,
    )
    return soup.prettify(formatter=formatter)


def _css_tokens(text: str) -> Iterator[Tuple[str, str]]:
    """Yield ``(kind, source)`` pairs that cover ``text`` exactly.

    Token values from the tokenizer have escapes resolved, so each token's
    source is sliced from ``text`` using the reported line and column.
    """
    line_starts = [0]
    line_starts.extend(index + 1 for index, char in enumerate(text) if char == "\n")
    previous = None
    for kind, _value, line, col in Tokenizer().tokenize(text):
        offset = line_starts[line - 1] + col - 1
        if previous is not None:
            yield previous[0], text[previous[1]:offset]
        previous = (kind, offset)
    if previous is not None:
        yield previous[0], text[previous[1]:]


class _CssPrinter:
    """Collects output lines, indenting each by the block depth it opened at."""

    def __init__(self, indent: int) -> None:
        self.indent = " " * indent
        self.lines: List[str] = []
        self.current: List[str] = []
        self.depth = 0
        self.line_depth = 0
        self.space = False

    def emit(self, source: str) -> None:
        if not self.current:
            self.line_depth = self.depth
        elif self.space:
            self.current.append(" ")
        self.current.append(source)
        self.space = False

    def newline(self) -> None:
        if self.current:
            self.lines.append(self.indent * self.line_depth + "".join(self.current))
        self.current = []
        self.space = False

    def text(self) -> str:
        self.newline()
        return "\n".join(self.lines).strip("\n") + "\n"


def _reindent(text: str, indent: int) -> str:
    printer = _CssPrinter(indent)
    parens = 0
    for kind, source in _css_tokens(text):
        structural = kind == "CHAR" and parens == 0
        if kind == "S":
            printer.space = True
        elif structural and source == "{":
            printer.space = True
            printer.emit(source)
            printer.newline()
            printer.depth += 1
        elif structural and source == ";":
            printer.space = False
            printer.emit(source)
            printer.newline()
        elif structural and source == "}":
            printer.newline()
            printer.depth = max(printer.depth - 1, 0)
            printer.emit(source)
            printer.newline()
            if printer.depth == 0:
                printer.lines.append("")
        elif kind == "COMMENT" and not printer.current:
            printer.emit(source)
            printer.newline()
        else:
            if kind == "FUNCTION" or source in ("(", "["):
                parens += 1
            elif source in (")", "]") and parens:
                parens -= 1
            printer.emit(source)
    return printer.text()


def format_css(text: str, indent: int = 2) -> str:
    """Re-indent CSS one declaration per line.

    Only whitespace changes: every other character of the input is kept in
    order, so selectors, at-rules and values the tokenizer does not know
    survive as written. Input that cannot be re-indented is returned unchanged.
    """
    if not text.strip():
        return text
    try:
        formatted = _reindent(text, indent)
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Leaving stylesheet unformatted: %s", exc)
        return text
    if WHITESPACE_RE.sub("", formatted) != WHITESPACE_RE.sub("", text):
        logger.warning("Stylesheet formatter changed content; keeping original text")
        return text
    return formatted
