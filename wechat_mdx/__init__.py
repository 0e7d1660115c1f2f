"""Convert WeChat public-account articles to Markdown."""

from .config import ConvertConfig, CrawlConfig
from .converter import convert_html
from .exceptions import FetchError, ParseError, WeChatMdxError
from .models import ArticleMetadata, ConversionResult, ImageRef

__all__ = [
    "ArticleMetadata",
    "ConversionResult",
    "ConvertConfig",
    "CrawlConfig",
    "FetchError",
    "ImageRef",
    "ParseError",
    "WeChatMdxError",
    "convert_html",
]
