"""Markdown rendering for normalized WeChat article bodies."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, Tag
from markdownify import ATX, MarkdownConverter

from .config import HEADING_RATIO_THRESHOLD, ConvertConfig
from .models import ArticleMetadata

logger = logging.getLogger("wechat_mdx")

BR_PATTERN = re.compile(r"<br\s*/?>", re.IGNORECASE)
LANGUAGE_CLASS_PATTERN = re.compile(r"(?:lang-|language-)(\w+)")

# Checked in order against the combined class string when no explicit
# lang-/language- class is present. WeChat's highlighter tags shell
# snippets as "ruby", hence the first entry.
CODE_LANGUAGE_HINTS: Tuple[Tuple[str, str], ...] = (
    ("ruby", "bash"),
    ("python", "python"),
    ("javascript", "javascript"),
    ("cpp", "cpp"),
)

HEADING_PARENT_TAGS = frozenset({"p", "section", "div"})


def _class_string(element: Optional[Tag]) -> str:
    if element is None:
        return ""
    value = element.get("class") or []
    if isinstance(value, str):
        return value
    return " ".join(value)


def infer_code_language(pre: Tag) -> str:
    """Pick a fence language from the classes on ``pre`` and its ``code`` child."""
    combined = f"{_class_string(pre)} {_class_string(pre.find('code'))}"
    match = LANGUAGE_CLASS_PATTERN.search(combined)
    if match:
        return match.group(1)
    for hint, language in CODE_LANGUAGE_HINTS:
        if hint in combined:
            return language
    return ""


def extract_code_text(pre: Tag) -> str:
    """Plain text of a code block with ``<br>`` line breaks kept as newlines."""
    inner_html = BR_PATTERN.sub("\n", pre.decode_contents())
    return BeautifulSoup(inner_html, "html.parser").get_text()


class WeChatMarkdownConverter(MarkdownConverter):
    """markdownify converter with the WeChat code-block and emphasis rules.

    Rule priority is fixed: ``<pre>`` blocks go through ``convert_pre``,
    ``<strong>``/``<b>`` through ``convert_strong``, and every other tag
    falls back to markdownify's stock conversion.
    """

    def __init__(
        self,
        heading_ratio_threshold: float = HEADING_RATIO_THRESHOLD,
        **options,
    ) -> None:
        options.setdefault("heading_style", ATX)
        super().__init__(**options)
        self.heading_ratio_threshold = heading_ratio_threshold

    def convert_pre(self, el, text, parent_tags):
        code = extract_code_text(el)
        language = infer_code_language(el)
        return f"\n```{language}\n{code}\n```\n\n"

    def is_disguised_heading(self, el: Tag) -> bool:
        """True when bold text makes up most of its block-level parent."""
        parent = el.parent
        if parent is None or parent.name not in HEADING_PARENT_TAGS:
            return False
        strong_text = el.get_text().strip()
        if not strong_text:
            return False
        parent_text = parent.get_text().strip()
        return len(strong_text) / len(parent_text) > self.heading_ratio_threshold

    def convert_strong(self, el, text, parent_tags):
        if "_noformat" in parent_tags:
            return text
        content = text.strip()
        if not content:
            return ""
        if self.is_disguised_heading(el):
            return f"**{content}**\n\n"
        return f"**{content}**"

    convert_b = convert_strong


def render_markdown(content: Tag, config: Optional[ConvertConfig] = None) -> str:
    """Render the normalized article body to Markdown."""
    config = config or ConvertConfig()
    converter = WeChatMarkdownConverter(
        heading_ratio_threshold=config.heading_ratio_threshold
    )
    markdown = converter.convert_soup(content).strip()
    logger.debug("Rendered %d characters of Markdown", len(markdown))
    return markdown


def compose_markdown(
    metadata: ArticleMetadata,
    body: str,
    source_url: str = "",
    include_metadata: bool = False,
) -> str:
    """Prepend the title header (and optionally a byline quote) to the body."""
    header = f"# {metadata.title}\n\n"
    if include_metadata:
        quote_lines: List[str] = []
        if metadata.author:
            quote_lines.append(f"> 作者：{metadata.author}")
        if metadata.publish_time:
            quote_lines.append(f"> 发布时间：{metadata.publish_time}")
        if source_url:
            quote_lines.append(f"> 原文链接：{source_url}")
        if quote_lines:
            header += "\n>\n".join(quote_lines) + "\n\n"
    return header + body
