"""Utility helpers for string normalization and identifiers."""

from __future__ import annotations

import re
import uuid
from typing import Iterator

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def slugify(value: str, fallback: str = "page") -> str:
    """Generate a filesystem-friendly slug using ASCII characters only."""
    normalized = value.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def uuid_identifiers() -> Iterator[str]:
    """Yield fresh UUID4 strings forever; one iterator per conversion."""
    while True:
        yield str(uuid.uuid4())
