"""Command line entry-point for the URL content cache."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from .cache import CacheState, UrlContentCache
from .config import BASE_DIR_ENV, DEFAULT_TAG, base_dir_from_env
from .errors import (
    CacheFileError,
    ConfigurationError,
    CorruptionError,
    DirectoryCreationError,
    FetchError,
    InvalidUrlError,
    UrlCacheError,
)
from .fetcher import Fetcher, HttpFetcher
from .keys import derive_key, derive_path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="urlcache",
        description="Fetch URLs through a disk cache that survives restarts.",
    )
    parser.add_argument(
        "--base-dir",
        type=Path,
        default=None,
        help=f"Directory holding all caches (default: ${BASE_DIR_ENV})",
    )
    parser.add_argument(
        "--tag",
        default=DEFAULT_TAG,
        help=f"Cache namespace below the base directory (default: {DEFAULT_TAG})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log cache activity to stderr.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    get_parser = commands.add_parser("get", help="Write the raw content of URL to stdout.")
    get_parser.add_argument("url")
    get_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the content to this file instead of stdout.",
    )

    text_parser = commands.add_parser("text", help="Print the content of URL as text.")
    text_parser.add_argument("url")
    text_parser.add_argument(
        "--encoding",
        default=None,
        help="Text encoding (default: the platform encoding).",
    )

    delete_parser = commands.add_parser("delete", help="Remove URL from the cache.")
    delete_parser.add_argument("url")

    path_parser = commands.add_parser("path", help="Print where URL is stored, without fetching it.")
    path_parser.add_argument("url")
    return parser


def run(args: argparse.Namespace, cache: UrlContentCache) -> int:
    if args.command == "get":
        content = cache.get(args.url)
        if args.output is not None:
            args.output.write_bytes(content)
        else:
            sys.stdout.buffer.write(content)
            sys.stdout.flush()
        return 0
    if args.command == "text":
        sys.stdout.write(cache.get_text(args.url, encoding=args.encoding))
        return 0
    if args.command == "delete":
        if cache.delete(args.url):
            return 0
        print(f"Not cached: {args.url}", file=sys.stderr)
        return 1
    print(cache.path_for(args.url))
    return 0


def main(argv: Sequence[str] | None = None, *, fetcher: Fetcher | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    base_dir = args.base_dir if args.base_dir is not None else base_dir_from_env()
    try:
        with UrlContentCache(args.tag, base_dir=base_dir, fetcher=fetcher) as cache:
            code = run(args, cache)
    except (ConfigurationError, CorruptionError) as exc:
        print(exc, file=sys.stderr)
        raise SystemExit(2)
    except UrlCacheError as exc:
        print(exc, file=sys.stderr)
        raise SystemExit(1)
    if code:
        raise SystemExit(code)


__all__ = [
    "CacheFileError",
    "CacheState",
    "ConfigurationError",
    "CorruptionError",
    "DirectoryCreationError",
    "FetchError",
    "Fetcher",
    "HttpFetcher",
    "InvalidUrlError",
    "UrlCacheError",
    "UrlContentCache",
    "build_parser",
    "derive_key",
    "derive_path",
    "main",
]
