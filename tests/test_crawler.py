from __future__ import annotations

from pathlib import Path

from wechat_mdx import crawler
from wechat_mdx.config import CrawlConfig
from wechat_mdx.exceptions import FetchError

PAGE = """
<h1 id="activity-name">Release Notes</h1>
<div id="js_content">
<p><span style="font-weight: bold">Highlights</span></p>
<p><img data-src="https://mmbiz.qpic.cn/a.png"></p>
</div>
"""

CHINESE_PAGE = '<h1 id="activity-name">发布说明</h1><div id="js_content"><p>内容</p></div>'


def _config(tmp_path: Path, **kwargs) -> CrawlConfig:
    return CrawlConfig(output_root=tmp_path, download_images=False, **kwargs)


def test_process_html_writes_markdown(tmp_path: Path) -> None:
    result = crawler.process_html(PAGE, "https://mp.weixin.qq.com/s/abc", _config(tmp_path))

    assert result is not None
    assert result.output_path == tmp_path / "release-notes" / "index.md"
    written = result.output_path.read_text(encoding="utf-8")
    assert written.startswith("# Release Notes\n\n**Highlights**")
    assert written.endswith("\n")
    assert result.images_saved == 0
    assert len(result.conversion.images) == 1


def test_output_dir_falls_back_to_url(tmp_path: Path) -> None:
    result = crawler.process_html(
        CHINESE_PAGE, "https://mp.weixin.qq.com/s/AbC123", _config(tmp_path)
    )
    assert result.output_path.parent.parent == tmp_path
    assert result.output_path.parent.name.startswith("s-abc123-")

    again = crawler.process_html(
        CHINESE_PAGE, "https://mp.weixin.qq.com/s/AbC123", _config(tmp_path)
    )
    assert again.output_path == result.output_path

    untitled = crawler.process_html(CHINESE_PAGE, "", _config(tmp_path))
    assert untitled.output_path.parent == tmp_path / "article"

    named = crawler.process_html(CHINESE_PAGE, "", _config(tmp_path), fallback_name="Notes 02")
    assert named.output_path.parent == tmp_path / "notes-02"


def test_query_string_urls_get_separate_dirs(tmp_path: Path) -> None:
    first_url = "https://mp.weixin.qq.com/s?__biz=MzA&mid=1&idx=1"
    second_url = "https://mp.weixin.qq.com/s?__biz=MzA&mid=2&idx=1"
    first = crawler.process_html(
        '<h1 id="activity-name">第一篇</h1><div id="js_content"><p>AAA</p></div>',
        first_url,
        _config(tmp_path),
    )
    second = crawler.process_html(
        '<h1 id="activity-name">第二篇</h1><div id="js_content"><p>BBB</p></div>',
        second_url,
        _config(tmp_path),
    )

    assert first.output_path != second.output_path
    assert first.output_path.read_text(encoding="utf-8") == "# 第一篇\n\nAAA\n"
    assert second.output_path.read_text(encoding="utf-8") == "# 第二篇\n\nBBB\n"


def test_process_html_parse_error_returns_none(tmp_path: Path) -> None:
    assert crawler.process_html(b"\x00\x00", "", _config(tmp_path)) is None
    assert list(tmp_path.iterdir()) == []


def test_process_html_downloads_images(tmp_path: Path, monkeypatch) -> None:
    calls = []

    def fake_download(images, output_dir, session=None, timeout=15.0, image_dir_name="images"):
        calls.append((list(images), output_dir, image_dir_name))
        return ["asset"] * len(images)

    monkeypatch.setattr(crawler, "download_images", fake_download)
    config = CrawlConfig(output_root=tmp_path)
    result = crawler.process_html(PAGE, "", config)

    assert result.images_saved == 1
    images, output_dir, image_dir_name = calls[0]
    assert images[0].source_url == "https://mmbiz.qpic.cn/a.png"
    assert output_dir == tmp_path / "release-notes"
    assert image_dir_name == "images"


def test_process_url_logs_fetch_errors(tmp_path: Path, monkeypatch) -> None:
    def failing_fetch(url, **kwargs):
        raise FetchError("Unexpected HTTP status", url, 404)

    monkeypatch.setattr(crawler, "fetch_article", failing_fetch)
    assert crawler.process_url("https://mp.weixin.qq.com/s/x", _config(tmp_path)) is None


def test_run_crawler_keeps_order_and_drops_failures(tmp_path: Path, monkeypatch) -> None:
    pages = {
        "https://mp.weixin.qq.com/s/one": '<h1 id="activity-name">One</h1><div id="js_content">1</div>',
        "https://mp.weixin.qq.com/s/two": '<h1 id="activity-name">Two</h1><div id="js_content">2</div>',
    }

    def fake_fetch(url, **kwargs):
        if url not in pages:
            raise FetchError("Request failed", url)
        return pages[url]

    monkeypatch.setattr(crawler, "fetch_article", fake_fetch)
    urls = [
        "https://mp.weixin.qq.com/s/one",
        "https://mp.weixin.qq.com/s/missing",
        "https://mp.weixin.qq.com/s/two",
    ]
    results = crawler.run_crawler(urls, _config(tmp_path, workers=2))
    assert [result.conversion.title for result in results] == ["One", "Two"]
