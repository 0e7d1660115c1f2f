"""Data models used throughout the conversion pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class ArticleMetadata:
    """Header fields read from the article page, outside the content body."""

    title: str
    author: str
    publish_time: str


@dataclass(frozen=True)
class ImageRef:
    """Image discovered in the article body and the local name assigned to it."""

    source_url: str
    local_filename: str
    ordinal_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.source_url,
            "filename": self.local_filename,
            "index": self.ordinal_index,
        }


@dataclass(frozen=True)
class ConversionResult:
    """Final output of converting one article."""

    title: str
    author: str
    publish_time: str
    markdown: str
    images: Tuple[ImageRef, ...]
    source_url: str

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the JSON field names consumers expect."""
        return {
            "title": self.title,
            "author": self.author,
            "publishTime": self.publish_time,
            "markdown": self.markdown,
            "images": [image.to_dict() for image in self.images],
            "originalUrl": self.source_url,
        }


@dataclass
class ImageAsset:
    """Downloaded and validated image stored on disk."""

    source_url: str
    filename: str
    relative_path: str
    detected_type: str
