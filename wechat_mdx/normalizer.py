"""In-place repair of WeChat editor markup inside the article body.

The WeChat editor rarely emits semantic tags. Emphasis is expressed through
inline ``font-weight`` styles, quoted digests through a marker class and code
blocks through highlighter classes. Each quirk is one entry in
``NORMALIZATION_RULES``; adding support for another quirk means appending a
rule, not touching the traversal.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from .config import (
    BOLD_FONT_WEIGHTS,
    DIGEST_BLOCKQUOTE_CLASS,
    LAZY_SRC_ATTRIBUTE,
    ConvertConfig,
)

logger = logging.getLogger("wechat_mdx")

Attributes = Dict[str, Any]

FONT_WEIGHT_PATTERN = re.compile(r"font-weight\s*:\s*([a-z0-9]+)", re.IGNORECASE)
PRETTYPRINT_CLASS = "prettyprint"
CODE_LANG_ATTRIBUTE = "data-lang"


@dataclass(frozen=True)
class NormalizationRule:
    """A vendor quirk: a condition on the original attributes and its rewrite."""

    name: str
    matches: Callable[[Tag, Attributes], bool]
    rewrite: Callable[[Tag, Attributes], None]


def _classes(attrs: Attributes) -> List[str]:
    value = attrs.get("class") or []
    if isinstance(value, str):
        return value.split()
    return list(value)


def _new_tag(element: Tag, name: str) -> Tag:
    root = element
    while root.parent is not None:
        root = root.parent
    if isinstance(root, BeautifulSoup):
        return root.new_tag(name)
    return Tag(name=name)


def _wrap_contents(element: Tag, name: str) -> Tag:
    """Replace ``element`` with a new ``name`` tag holding the same children."""
    wrapper = _new_tag(element, name)
    for child in list(element.contents):
        wrapper.append(child.extract())
    element.replace_with(wrapper)
    return wrapper


def _declares_bold(element: Tag, attrs: Attributes) -> bool:
    style = attrs.get("style") or ""
    return any(
        weight.lower() in BOLD_FONT_WEIGHTS
        for weight in FONT_WEIGHT_PATTERN.findall(style)
    )


def _to_strong(element: Tag, attrs: Attributes) -> None:
    _wrap_contents(element, "strong")


def _is_digest_blockquote(element: Tag, attrs: Attributes) -> bool:
    return DIGEST_BLOCKQUOTE_CLASS in _classes(attrs)


def _to_blockquote(element: Tag, attrs: Attributes) -> None:
    _wrap_contents(element, "blockquote")


def _has_code_markers(element: Tag, attrs: Attributes) -> bool:
    if element.name != "pre":
        return False
    return PRETTYPRINT_CLASS in _classes(attrs) or CODE_LANG_ATTRIBUTE in attrs


def _canonicalize_code_block(element: Tag, attrs: Attributes) -> None:
    classes = [cls for cls in _classes(attrs) if cls != PRETTYPRINT_CLASS]
    language = (attrs.get(CODE_LANG_ATTRIBUTE) or "").strip()
    has_explicit = any(
        cls.startswith(("lang-", "language-")) for cls in classes
    )
    if language and not has_explicit:
        classes.append(f"language-{language}")
    if CODE_LANG_ATTRIBUTE in element.attrs:
        del element[CODE_LANG_ATTRIBUTE]
    if classes:
        element["class"] = classes
    elif "class" in element.attrs:
        del element["class"]


NORMALIZATION_RULES: Tuple[NormalizationRule, ...] = (
    NormalizationRule("css-bold", _declares_bold, _to_strong),
    NormalizationRule("digest-blockquote", _is_digest_blockquote, _to_blockquote),
    NormalizationRule("code-block", _has_code_markers, _canonicalize_code_block),
)


def strip_vendor_attributes(element: Tag, config: ConvertConfig) -> None:
    for name in config.vendor_attributes:
        if name in element.attrs:
            del element[name]


def settle_lazy_source(element: Tag) -> None:
    """Move a lazy-load ``data-src`` into ``src`` on non-image elements.

    Images keep the marker; the image extractor consumes it.
    """
    if element.name == "img" or LAZY_SRC_ATTRIBUTE not in element.attrs:
        return
    lazy_source = element[LAZY_SRC_ATTRIBUTE]
    del element[LAZY_SRC_ATTRIBUTE]
    if lazy_source and not element.get("src"):
        element["src"] = lazy_source


def normalize_content(
    content: Tag,
    config: Optional[ConvertConfig] = None,
    rules: Tuple[NormalizationRule, ...] = NORMALIZATION_RULES,
) -> int:
    """Rewrite vendor markup below ``content`` in place.

    Every element loses its vendor attributes; the first rule matching the
    element's original attributes is then applied. Returns the number of
    rewrites performed. Running it again on the result is a no-op.
    """
    config = config or ConvertConfig()
    strip_vendor_attributes(content, config)

    # Rewrites replace nodes, so snapshot the element list up front.
    elements = content.find_all(True)
    rewrites = 0
    for element in elements:
        original = dict(element.attrs)
        strip_vendor_attributes(element, config)
        settle_lazy_source(element)
        for rule in rules:
            if rule.matches(element, original):
                rule.rewrite(element, original)
                rewrites += 1
                logger.debug("Applied %s rule to <%s>", rule.name, element.name)
                break
    logger.debug("Normalized %d element(s) with %d rewrite(s)", len(elements), rewrites)
    return rewrites
