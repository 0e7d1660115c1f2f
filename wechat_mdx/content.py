"""HTML loading and metadata parsing utilities."""

from __future__ import annotations

from typing import Optional, Union

from bs4 import BeautifulSoup, Tag, UnicodeDammit
from bs4.builder import ParserRejectedMarkup

from .config import ConvertConfig
from .exceptions import ParseError
from .models import ArticleMetadata


def _decode_markup(html: Union[str, bytes]) -> str:
    if isinstance(html, str):
        return html
    if b"\x00" in html:
        raise ParseError("Input contains binary data and is not HTML")
    dammit = UnicodeDammit(html, ["utf-8"], is_html=True)
    if dammit.unicode_markup is None:
        raise ParseError("Unable to decode input as text")
    return dammit.unicode_markup


def parse_document(html: Union[str, bytes]) -> BeautifulSoup:
    """Parse raw page markup into a mutable tree, or raise ParseError."""
    markup = _decode_markup(html)
    if not markup.strip():
        raise ParseError("Input is empty")
    if "\x00" in markup:
        raise ParseError("Input contains binary data and is not HTML")
    try:
        soup = BeautifulSoup(markup, "html.parser")
    except ParserRejectedMarkup as exc:
        raise ParseError(f"Parser rejected markup: {exc}") from exc
    if soup.find() is None:
        raise ParseError("Input contains no HTML elements")
    return soup


def _select_text(soup: BeautifulSoup, selector: str) -> str:
    element = soup.select_one(selector)
    if element is None:
        return ""
    return element.get_text().strip()


def extract_metadata(
    soup: BeautifulSoup, config: Optional[ConvertConfig] = None
) -> ArticleMetadata:
    """Read title, author and publish time from the page header."""
    config = config or ConvertConfig()
    return ArticleMetadata(
        title=_select_text(soup, config.title_selector) or config.default_title,
        author=_select_text(soup, config.author_selector),
        publish_time=_select_text(soup, config.publish_time_selector),
    )


def find_content(
    soup: BeautifulSoup, config: Optional[ConvertConfig] = None
) -> Optional[Tag]:
    """Return the article body container, if the page has one."""
    config = config or ConvertConfig()
    return soup.select_one(config.content_selector)
