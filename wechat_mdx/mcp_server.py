"""MCP server exposing wechat-mdx conversion tools."""

from __future__ import annotations

import logging
from typing import Any, Dict

from mcp.server.fastmcp import FastMCP

from .config import ConvertConfig
from .converter import convert_html
from .fetcher import fetch_article

logger = logging.getLogger("wechat_mdx.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="wechat-mdx")


@mcp.tool()
def convert(
    url: str,
    include_metadata: bool = False,
) -> str:
    """Fetch a WeChat article and return it as Markdown."""

    config = ConvertConfig(include_metadata=include_metadata)
    html = fetch_article(url)
    return convert_html(html, url, config=config).markdown


@mcp.tool()
def convert_page(
    html: str,
    source_url: str = "",
) -> Dict[str, Any]:
    """Convert WeChat article HTML; returns Markdown and the image manifest."""

    return convert_html(html, source_url).to_dict()


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
