from __future__ import annotations

from pathlib import Path

import pytest
import requests
from bs4 import BeautifulSoup

from wechat_mdx.images import download_images, extract_images, image_extension
from wechat_mdx.models import ImageRef
from wechat_mdx.utils import uuid_identifiers

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 1024
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 1024


def _content(body: str):
    soup = BeautifulSoup(f'<div id="js_content">{body}</div>', "html.parser")
    return soup.select_one("#js_content")


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://example.com/a.PNG?wx=1", "png"),
        ("https://example.com/photo.webp", "webp"),
        ("https://example.com/anim.gif?x=y.png", "gif"),
        ("https://mmbiz.qpic.cn/mmbiz_png/abc/640?wx_fmt=png", "jpg"),
        ("https://example.com/image.bmp", "jpg"),
    ],
)
def test_image_extension(url: str, expected: str) -> None:
    assert image_extension(url) == expected


def test_extract_images_counts_skipped_nodes() -> None:
    content = _content(
        '<p><img data-src="https://cdn/a.png" src="data:image/gif;base64,AA"></p>'
        "<img>"
        '<img src="https://cdn/b.gif?x=1">'
    )
    refs = extract_images(content, iter(["id-1", "id-2"]))

    assert refs == [
        ImageRef("https://cdn/a.png", "id-1.jpg", 1),
        ImageRef("https://cdn/b.gif?x=1", "id-2.jpg", 3),
    ]
    first, skipped, last = content.find_all("img")
    assert first.attrs == {"src": "./images/id-1.jpg"}
    assert skipped.attrs == {}
    assert last["src"] == "./images/id-2.jpg"


def test_empty_lazy_source_falls_back_to_src() -> None:
    content = _content('<img data-src="" src="https://cdn/c.jpeg">')
    refs = extract_images(content, iter(["only"]))
    assert refs[0].source_url == "https://cdn/c.jpeg"


def test_filenames_are_unique_and_always_jpg() -> None:
    content = _content("".join(f'<img data-src="https://cdn/{i}.png">' for i in range(5)))
    refs = extract_images(content, uuid_identifiers())
    names = [ref.local_filename for ref in refs]
    assert len(set(names)) == 5
    assert all(name.endswith(".jpg") for name in names)
    assert [ref.ordinal_index for ref in refs] == [1, 2, 3, 4, 5]


class FakeResponse:
    def __init__(self, content: bytes, status_code: int = 200) -> None:
        self.content = content
        self.status_code = status_code
        self.headers = {"Content-Type": "image/png"}

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, responses) -> None:
        self.responses = responses
        self.requested = []

    def get(self, url, headers=None, timeout=None):
        self.requested.append(url)
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response


def test_download_images_writes_manifest_names(tmp_path: Path) -> None:
    refs = [
        ImageRef("https://cdn/a.png", "one.jpg", 1),
        ImageRef("https://cdn/b.jpg", "two.jpg", 2),
    ]
    session = FakeSession(
        {
            "https://cdn/a.png": FakeResponse(PNG_BYTES),
            "https://cdn/b.jpg": FakeResponse(JPEG_BYTES),
        }
    )

    assets = download_images(refs, tmp_path, session=session)

    assert [asset.filename for asset in assets] == ["one.jpg", "two.jpg"]
    assert [asset.detected_type for asset in assets] == ["png", "jpg"]
    assert (tmp_path / "images" / "one.jpg").read_bytes() == PNG_BYTES
    assert assets[1].relative_path == str(Path("images") / "two.jpg")


def test_download_images_skips_failures(tmp_path: Path) -> None:
    refs = [
        ImageRef("https://cdn/missing", "a.jpg", 1),
        ImageRef("https://cdn/html", "b.jpg", 2),
        ImageRef("https://cdn/tiny", "c.jpg", 3),
        ImageRef("https://cdn/down", "d.jpg", 4),
    ]
    session = FakeSession(
        {
            "https://cdn/missing": FakeResponse(b"", status_code=404),
            "https://cdn/html": FakeResponse(b"<html></html>" * 100),
            "https://cdn/tiny": FakeResponse(b"\x89PNG"),
            "https://cdn/down": requests.ConnectionError("unreachable"),
        }
    )

    assert download_images(refs, tmp_path, session=session) == []
    assert list((tmp_path / "images").iterdir()) == []


def test_download_images_no_refs_creates_nothing(tmp_path: Path) -> None:
    assert download_images([], tmp_path) == []
    assert not (tmp_path / "images").exists()
