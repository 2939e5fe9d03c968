"""MCP server exposing the page cloner as a tool."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .cloner import clone
from .config import CloneConfig

logger = logging.getLogger("pagesnap.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="pagesnap")


@mcp.tool()
async def clone_website(url: str, output_folder_name: Optional[str] = None) -> str:
    """Clone the UI of a web page into a local folder of HTML, CSS and assets."""
    config = CloneConfig(output_root=Path.cwd())
    result = await clone(url, output_folder_name, config=config)
    if not result.success:
        logger.error("clone_website failed for %s: %s", url, "; ".join(result.errors))
    return result.summary()


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
