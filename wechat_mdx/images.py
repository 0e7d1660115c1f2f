"""Image manifest construction and downloading."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

import requests
from bs4 import Tag
from filetype import guess

from .config import (
    ACCEPTED_IMAGE_EXTENSIONS,
    DEFAULT_IMAGE_EXTENSION,
    DEFAULT_USER_AGENT,
    IMAGE_DIR_NAME,
    LAZY_SRC_ATTRIBUTE,
    ConvertConfig,
)
from .models import ImageAsset, ImageRef

logger = logging.getLogger("wechat_mdx")

MAX_IMAGE_BYTES = 10 * 1024 * 1024
MIN_IMAGE_BYTES = 512
LOCAL_IMAGE_SUFFIX = ".jpg"


def image_extension(url: str) -> str:
    """Return the lowercase extension of ``url``'s path, or ``jpg``."""
    path = url.split("?", 1)[0]
    extension = path.rsplit(".", 1)[-1].lower() if "." in path else ""
    if extension in ACCEPTED_IMAGE_EXTENSIONS:
        return extension
    return DEFAULT_IMAGE_EXTENSION


def effective_source(img: Tag) -> Optional[str]:
    """Prefer the lazy-load source WeChat uses over the placeholder ``src``."""
    return img.get(LAZY_SRC_ATTRIBUTE) or img.get("src") or None


def extract_images(
    content: Tag,
    identifiers: Iterator[str],
    config: Optional[ConvertConfig] = None,
) -> List[ImageRef]:
    """Assign local filenames to every sourced ``<img>`` and rewrite its ``src``.

    Ordinal indexes count every ``<img>`` in document order, including ones
    without a source, so gaps mark skipped nodes. Filenames always end in
    ``.jpg`` whatever the source format; downstream tooling relies on it.
    """
    config = config or ConvertConfig()
    manifest: List[ImageRef] = []
    for position, img in enumerate(content.find_all("img"), start=1):
        source = effective_source(img)
        if not source:
            logger.debug("Skipping image %d without a source", position)
            continue
        extension = image_extension(source)
        local_filename = f"{next(identifiers)}{LOCAL_IMAGE_SUFFIX}"
        img["src"] = f"./{config.image_dir_name}/{local_filename}"
        if LAZY_SRC_ATTRIBUTE in img.attrs:
            del img[LAZY_SRC_ATTRIBUTE]
        manifest.append(
            ImageRef(
                source_url=source,
                local_filename=local_filename,
                ordinal_index=position,
            )
        )
        logger.debug(
            "Image %d (%s) -> %s", position, extension, local_filename
        )
    return manifest


def detect_image_format(data: bytes) -> Optional[str]:
    """Detect image type using filetype; returns lowercase extension."""
    kind = guess(data)
    if kind and kind.mime.startswith("image/"):
        ext = kind.extension.lower()
        if ext == "jpeg":
            return "jpg"
        return ext
    return None


def download_images(
    images: Sequence[ImageRef],
    output_dir: Path,
    session: Optional[requests.Session] = None,
    timeout: float = 15.0,
    image_dir_name: str = IMAGE_DIR_NAME,
) -> List[ImageAsset]:
    """Fetch each manifest entry into ``output_dir/<image_dir_name>`` under its local name."""
    if not images:
        return []
    image_dir = output_dir / image_dir_name
    image_dir.mkdir(parents=True, exist_ok=True)

    session = session or requests.Session()
    assets: List[ImageAsset] = []

    for image in images:
        try:
            resp = session.get(
                image.source_url,
                headers={"User-Agent": DEFAULT_USER_AGENT},
                timeout=timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Failed to fetch image %s: %s", image.source_url, exc)
            continue

        data = resp.content
        if len(data) < MIN_IMAGE_BYTES:
            logger.warning("Skipping %s: response too small", image.source_url)
            continue
        if len(data) > MAX_IMAGE_BYTES:
            logger.warning(
                "Skipping %s: image larger than %s bytes",
                image.source_url,
                MAX_IMAGE_BYTES,
            )
            continue

        detected = detect_image_format(data)
        if not detected:
            logger.warning(
                "Skipping %s: response is not an image (Content-Type=%s)",
                image.source_url,
                resp.headers.get("Content-Type", ""),
            )
            continue
        if detected != DEFAULT_IMAGE_EXTENSION:
            logger.info(
                "Image %s is %s but is stored as %s",
                image.source_url,
                detected,
                image.local_filename,
            )

        destination = image_dir / image.local_filename
        try:
            destination.write_bytes(data)
        except OSError as exc:
            logger.warning("Failed to write image %s: %s", destination, exc)
            continue

        assets.append(
            ImageAsset(
                source_url=image.source_url,
                filename=image.local_filename,
                relative_path=str(Path(image_dir_name) / image.local_filename),
                detected_type=detected,
            )
        )
    return assets
