"""Exceptions raised by the converter and its fetch helpers."""

from __future__ import annotations

from typing import Optional


class WeChatMdxError(Exception):
    """Base class for errors surfaced by wechat-mdx."""


class ParseError(WeChatMdxError):
    """Raised when the input cannot be parsed into an HTML document at all."""


class FetchError(WeChatMdxError):
    """Raised when an article page cannot be retrieved."""

    def __init__(
        self, message: str, url: str, status_code: Optional[int] = None
    ) -> None:
        self.message = message
        self.url = url
        self.status_code = status_code
        details = f"{message} (url: {url}"
        if status_code is not None:
            details += f", status: {status_code}"
        super().__init__(details + ")")
