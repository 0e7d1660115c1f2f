"""Retrieval of article pages over HTTP."""

from __future__ import annotations

import logging
from typing import Optional

import requests

from .config import DEFAULT_USER_AGENT
from .exceptions import FetchError

logger = logging.getLogger("wechat_mdx")


def fetch_article(
    url: str,
    timeout: float = 30.0,
    user_agent: str = DEFAULT_USER_AGENT,
    session: Optional[requests.Session] = None,
) -> str:
    """GET an article page with a desktop browser User-Agent."""
    session = session or requests.Session()
    logger.info("Fetching %s", url)
    try:
        resp = session.get(url, headers={"User-Agent": user_agent}, timeout=timeout)
    except requests.RequestException as exc:
        raise FetchError(f"Request failed: {exc}", url) from exc
    if resp.status_code >= 400:
        raise FetchError("Unexpected HTTP status", url, resp.status_code)
    # WeChat serves UTF-8 but does not always declare it in the header.
    if not resp.encoding or resp.encoding.lower() == "iso-8859-1":
        resp.encoding = resp.apparent_encoding or "utf-8"
    return resp.text
