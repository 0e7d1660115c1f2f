"""High-level orchestration for fetching articles and writing Markdown to disk."""

from __future__ import annotations

import hashlib
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union
from urllib.parse import urlparse

import requests

from .config import CrawlConfig
from .converter import convert_html
from .exceptions import FetchError, ParseError
from .fetcher import fetch_article
from .images import download_images
from .models import ConversionResult
from .utils import slugify

logger = logging.getLogger("wechat_mdx")


@dataclass
class ProcessResult:
    """Outcome and timing details for a processed article."""

    url: str
    output_path: Path
    markdown: str
    conversion: ConversionResult
    images_saved: int
    total_seconds: float


def _url_dir_name(source_url: str) -> str:
    """Directory name unique to one article URL.

    WeChat article links share the ``/s`` path and differ only in their
    query string, so a digest of the full URL is appended to the path slug.
    """
    if not source_url:
        return ""
    path_slug = slugify(urlparse(source_url).path, fallback="article")[:60]
    digest = hashlib.sha1(source_url.encode("utf-8")).hexdigest()[:10]
    return f"{path_slug}-{digest}"


def build_output_dir(
    config: CrawlConfig, result: ConversionResult, fallback_name: str = "article"
) -> Path:
    """Create an output directory based on the article title or source."""
    dir_name = slugify(result.title, fallback="")[:80]
    if not dir_name:
        # Chinese titles slugify to nothing.
        dir_name = _url_dir_name(result.source_url) or slugify(
            fallback_name, fallback="article"
        )[:80]
    output_dir = config.output_root / dir_name
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def write_result(
    result: ConversionResult,
    output_dir: Path,
    config: CrawlConfig,
    session: Optional[requests.Session] = None,
) -> Tuple[Path, int]:
    """Persist Markdown and, if enabled, the manifest images."""
    saved = 0
    if config.download_images and result.images:
        assets = download_images(
            result.images,
            output_dir,
            session=session,
            timeout=config.request_timeout,
            image_dir_name=config.convert.image_dir_name,
        )
        saved = len(assets)
        if saved < len(result.images):
            logger.warning(
                "Saved %d of %d image(s) for %s",
                saved,
                len(result.images),
                result.source_url or result.title,
            )

    output_path = output_dir / "index.md"
    markdown = result.markdown if result.markdown.endswith("\n") else result.markdown + "\n"
    output_path.write_text(markdown, encoding="utf-8")
    logger.info("Saved Markdown to %s", output_path)
    return output_path, saved


def process_html(
    html: Union[str, bytes],
    source_url: str,
    config: CrawlConfig,
    session: Optional[requests.Session] = None,
    start_time: Optional[float] = None,
    fallback_name: str = "article",
) -> Optional[ProcessResult]:
    """Convert already-retrieved markup and write it under the output root.

    ``fallback_name`` names the output directory when neither the title nor
    ``source_url`` yields one, e.g. the stem of a local file.
    """
    start = start_time if start_time is not None else time.perf_counter()
    try:
        result = convert_html(html, source_url, config=config.convert)
    except ParseError as exc:
        logger.error("Failed to parse %s: %s", source_url or "input", exc)
        return None

    output_dir = build_output_dir(config, result, fallback_name)
    output_path, saved = write_result(result, output_dir, config, session)
    return ProcessResult(
        url=source_url,
        output_path=output_path,
        markdown=result.markdown,
        conversion=result,
        images_saved=saved,
        total_seconds=time.perf_counter() - start,
    )


def process_url(
    url: str,
    config: CrawlConfig,
    session: Optional[requests.Session] = None,
) -> Optional[ProcessResult]:
    """Fetch, convert and save a single article; failures are logged, not raised."""
    start = time.perf_counter()
    session = session or requests.Session()
    try:
        html = fetch_article(
            url,
            timeout=config.request_timeout,
            user_agent=config.user_agent,
            session=session,
        )
    except FetchError as exc:
        logger.error("Failed to fetch %s: %s", url, exc)
        return None
    return process_html(html, url, config, session=session, start_time=start)


def run_crawler(urls: List[str], config: CrawlConfig) -> List[ProcessResult]:
    """Process each URL, one conversion per worker, keeping input order."""
    if config.workers <= 1:
        results = [process_url(url, config) for url in urls]
    else:
        with ThreadPoolExecutor(max_workers=config.workers) as pool:
            results = list(pool.map(lambda url: process_url(url, config), urls))
    return [result for result in results if result is not None]
