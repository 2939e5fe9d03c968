"""Command-line entry point for the page cloner."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Sequence

from .cloner import clone
from .config import DEFAULT_CONCURRENCY, CloneConfig

logger = logging.getLogger("pagesnap.cli")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Snapshot a web page into a static folder with index.html, "
            "styles.css and its downloaded assets."
        ),
    )
    parser.add_argument("url", help="Page to clone")
    parser.add_argument(
        "--name",
        default=None,
        help="Output folder name (default: cloned-<host>)",
    )
    parser.add_argument(
        "--output",
        default=".",
        type=Path,
        help="Directory in which the output folder is created",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=DEFAULT_CONCURRENCY,
        help="Maximum number of assets fetched at the same time",
    )
    parser.add_argument(
        "--request-timeout",
        type=float,
        default=15.0,
        help="Per-asset HTTP timeout in seconds",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Abort the whole clone after this many seconds",
    )
    parser.add_argument(
        "--wait",
        type=float,
        default=1.0,
        help="Seconds to wait after network idle before reading HTML",
    )
    parser.add_argument(
        "--navigation-timeout",
        type=float,
        default=30.0,
        help="Browser navigation timeout in seconds",
    )
    parser.add_argument(
        "--no-render",
        action="store_true",
        help="Fetch the raw HTML instead of rendering it in a headless browser",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="Indentation width for the formatted HTML and CSS",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    args = parser.parse_args(argv)
    if args.concurrency < 1:
        parser.error("--concurrency must be at least 1")
    return args


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    config = CloneConfig(
        output_root=Path(args.output).resolve(),
        concurrency=args.concurrency,
        request_timeout=args.request_timeout,
        render_js=not args.no_render,
        wait_after_load=args.wait,
        navigation_timeout=args.navigation_timeout,
        indent=args.indent,
        clone_timeout=args.timeout,
    )
    result = asyncio.run(clone(args.url, args.name, config=config))

    if args.verbose:
        for message in result.errors:
            logger.debug("%s", message)
    print(result.summary())
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
