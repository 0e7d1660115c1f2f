"""Command-line entry point for wechat-mdx."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
import uuid
from pathlib import Path
from typing import Iterable, List, Sequence

from .config import ConvertConfig, CrawlConfig, DEFAULT_USER_AGENT
from .crawler import ProcessResult, process_html, run_crawler

logger = logging.getLogger("wechat_mdx.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return argv
    first = argv[0]
    if first in commands or first.startswith("-"):
        return argv
    return ("crawl", *argv)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output",
        default="output",
        type=Path,
        help="Directory where Markdown and images should be written",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="HTTP timeout in seconds for page and image requests",
    )
    parser.add_argument(
        "--no-images",
        action="store_true",
        help="Write Markdown only; do not download images in the manifest",
    )
    parser.add_argument(
        "--include-metadata",
        action="store_true",
        help="Add an author / publish time / source link quote under the title",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    output_mode = parser.add_mutually_exclusive_group()
    output_mode.add_argument(
        "--mcp",
        action="store_true",
        help="Emit converted Markdown to STDOUT (suitable for MCP)",
    )
    output_mode.add_argument(
        "--json",
        action="store_true",
        help="Emit each conversion result as a JSON object on STDOUT",
    )


def _add_crawl_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("urls", nargs="+", help="One or more article URLs to convert")
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of articles to convert concurrently",
    )
    parser.add_argument(
        "--user-agent",
        default=DEFAULT_USER_AGENT,
        help="User-Agent header sent when fetching pages",
    )
    _add_common_arguments(parser)


def _add_file_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Saved article HTML files to convert",
    )
    parser.add_argument(
        "--source-url",
        default="",
        help="Original article URL recorded in the result (single file only)",
    )
    _add_common_arguments(parser)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Convert WeChat public-account articles to Markdown with an image manifest.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    crawl_parser = subparsers.add_parser(
        "crawl", help="Fetch article URLs and convert them to Markdown"
    )
    _add_crawl_arguments(crawl_parser)

    file_parser = subparsers.add_parser(
        "file", help="Convert saved article HTML files"
    )
    _add_file_arguments(file_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def _configure_logging(args: argparse.Namespace) -> None:
    level = logging.DEBUG if args.verbose else logging.INFO
    if (args.mcp or args.json) and not args.verbose:
        level = logging.ERROR
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _build_config(args: argparse.Namespace) -> CrawlConfig:
    return CrawlConfig(
        output_root=Path(args.output).resolve(),
        request_timeout=args.timeout,
        user_agent=getattr(args, "user_agent", DEFAULT_USER_AGENT),
        download_images=not args.no_images,
        workers=max(1, getattr(args, "workers", 1)),
        convert=ConvertConfig(include_metadata=args.include_metadata),
    )


def _emit(args: argparse.Namespace, results: List[ProcessResult]) -> None:
    if args.mcp:
        for idx, result in enumerate(results):
            markdown = result.markdown
            if idx:
                if not markdown.startswith("\n"):
                    sys.stdout.write("\n")
            sys.stdout.write(markdown if markdown.endswith("\n") else markdown + "\n")
        sys.stdout.flush()
    elif args.json:
        for result in results:
            payload = {"id": str(uuid.uuid4()), **result.conversion.to_dict()}
            sys.stdout.write(json.dumps(payload, ensure_ascii=False) + "\n")
        sys.stdout.flush()


def _run_crawl(args: argparse.Namespace) -> List[ProcessResult]:
    config = _build_config(args)
    overall_start = time.perf_counter()
    results = run_crawler(args.urls, config)
    total_elapsed = time.perf_counter() - overall_start

    successes = len(results)
    total_urls = len(args.urls)
    logger.info(
        "Finished in %.2fs (%d/%d succeeded, %d failed)",
        total_elapsed,
        successes,
        total_urls,
        total_urls - successes,
    )
    if args.verbose:
        for result in results:
            logger.debug(
                "Timing for %s -> total: %.2fs | images: %d/%d",
                result.url,
                result.total_seconds,
                result.images_saved,
                len(result.conversion.images),
            )
    return results


def _run_files(args: argparse.Namespace) -> List[ProcessResult]:
    config = _build_config(args)
    if args.source_url and len(args.paths) > 1:
        logger.warning("--source-url is ignored when converting several files")
    results: List[ProcessResult] = []
    for path in args.paths:
        try:
            html = path.read_bytes()
        except OSError as exc:
            logger.error("Skipping %s: %s", path, exc)
            continue
        source_url = args.source_url if len(args.paths) == 1 else ""
        result = process_html(html, source_url, config, fallback_name=path.stem)
        if result:
            results.append(result)

    logger.info(
        "Converted %d/%d file(s)", len(results), len(args.paths)
    )
    return results


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    _configure_logging(args)
    if args.command == "crawl":
        results = _run_crawl(args)
    else:
        results = _run_files(args)
    _emit(args, results)
    if not results:
        sys.exit(1)


if __name__ == "__main__":
    main()
