"""Conversion of one WeChat article page into Markdown and an image manifest."""

from __future__ import annotations

import logging
from typing import Iterator, Optional, Union

from .config import ConvertConfig
from .content import extract_metadata, find_content, parse_document
from .images import extract_images
from .markdown import compose_markdown, render_markdown
from .models import ConversionResult
from .normalizer import normalize_content
from .utils import uuid_identifiers

logger = logging.getLogger("wechat_mdx")


def convert_html(
    html: Union[str, bytes],
    source_url: str = "",
    *,
    config: Optional[ConvertConfig] = None,
    identifiers: Optional[Iterator[str]] = None,
) -> ConversionResult:
    """Convert a WeChat article page to Markdown.

    Args:
        html: Raw page markup, as text or undecoded bytes.
        source_url: Where the page came from; carried through to the result.
        config: Selectors and thresholds; defaults to ``ConvertConfig()``.
        identifiers: Source of unique tokens for image filenames. A fresh
            UUID4 sequence is used when omitted.

    Returns:
        The assembled ``ConversionResult``.

    Raises:
        ParseError: If the input is not parseable HTML. Every later stage is
            total, so no partial result is ever produced.
    """
    config = config or ConvertConfig()
    identifiers = identifiers if identifiers is not None else uuid_identifiers()

    soup = parse_document(html)
    metadata = extract_metadata(soup, config)

    content = find_content(soup, config)
    if content is None:
        logger.warning(
            "No %s container found in %s; producing an empty body",
            config.content_selector,
            source_url or "input",
        )
        body = ""
        images = []
    else:
        normalize_content(content, config)
        images = extract_images(content, identifiers, config)
        body = render_markdown(content, config)

    markdown = compose_markdown(
        metadata,
        body,
        source_url=source_url,
        include_metadata=config.include_metadata,
    )
    logger.debug(
        "Converted %r: %d characters of Markdown, %d image(s)",
        metadata.title,
        len(markdown),
        len(images),
    )
    return ConversionResult(
        title=metadata.title,
        author=metadata.author,
        publish_time=metadata.publish_time,
        markdown=markdown,
        images=tuple(images),
        source_url=source_url,
    )
