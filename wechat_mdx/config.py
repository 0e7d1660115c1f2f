"""Configuration objects and constants for the converter and crawler."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Tuple

DEFAULT_TITLE = "Untitled WeChat Article"

TITLE_SELECTOR = "#activity-name"
AUTHOR_SELECTOR = "#js_name"
PUBLISH_TIME_SELECTOR = "#publish_time"
CONTENT_SELECTOR = "#js_content"

# Attributes the WeChat editor sprinkles on content nodes.
VENDOR_ATTRIBUTES: Tuple[str, ...] = (
    "style",
    "data-tools",
    "data-brushtype",
    "data-ratio",
    "data-w",
    "data-default-width",
)
DIGEST_BLOCKQUOTE_CLASS = "js_blockquote_digest"
BOLD_FONT_WEIGHTS: FrozenSet[str] = frozenset(
    {"bold", "bolder", "600", "700", "800", "900"}
)

LAZY_SRC_ATTRIBUTE = "data-src"
ACCEPTED_IMAGE_EXTENSIONS: FrozenSet[str] = frozenset(
    {"jpg", "jpeg", "png", "gif", "webp"}
)
DEFAULT_IMAGE_EXTENSION = "jpg"
IMAGE_DIR_NAME = "images"

HEADING_RATIO_THRESHOLD = 0.6

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/89.0.4389.82 Safari/537.36"
)


@dataclass(frozen=True)
class ConvertConfig:
    """Read-only settings shared by every stage of a conversion."""

    title_selector: str = TITLE_SELECTOR
    author_selector: str = AUTHOR_SELECTOR
    publish_time_selector: str = PUBLISH_TIME_SELECTOR
    content_selector: str = CONTENT_SELECTOR
    default_title: str = DEFAULT_TITLE
    vendor_attributes: Tuple[str, ...] = VENDOR_ATTRIBUTES
    heading_ratio_threshold: float = HEADING_RATIO_THRESHOLD
    image_dir_name: str = IMAGE_DIR_NAME
    include_metadata: bool = False


@dataclass
class CrawlConfig:
    """Top-level settings that control fetching and file output."""

    output_root: Path
    request_timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    download_images: bool = True
    workers: int = 1
    convert: ConvertConfig = field(default_factory=ConvertConfig)
