"""Derive cache keys and on-disk locations from URLs."""

from __future__ import annotations

import hashlib
import re
from pathlib import Path
from urllib.parse import SplitResult, urlsplit

from .errors import CorruptionError, InvalidUrlError

NON_WORD_PATTERN = re.compile(r"\W", re.ASCII)
QUERY_SEPARATOR = "__"
# Keeps "<32 hex key>.<suffix>" well below the usual 255 byte NAME_MAX.
MAX_SUFFIX_LENGTH = 200


def _split(url: str) -> SplitResult:
    try:
        parsed = urlsplit(url)
    except ValueError as exc:
        raise InvalidUrlError(f"Malformed URL {url!r}: {exc}") from exc
    if not parsed.scheme or not parsed.hostname:
        raise InvalidUrlError(f"Expected an absolute URL with a host, got {url!r}")
    return parsed


def validate_url(url: str) -> str:
    _split(url)
    return url


def derive_key(url: str) -> str:
    """Return the MD5 hex digest of the full URL string."""

    return hashlib.md5(url.encode("utf-8")).hexdigest()


def sanitize(fragment: str) -> str:
    return NON_WORD_PATTERN.sub("_", fragment)


def host_of(parsed: SplitResult) -> str:
    """Return the host as written in the URL, without credentials or port."""

    host = parsed.netloc.rpartition("@")[2]
    if host.startswith("["):
        return host[: host.index("]") + 1]
    return host.partition(":")[0]


def derive_path(url: str) -> Path:
    """Return ``<host>/<shard>/<key>.<path and query>`` relative to a cache root.

    Only the key is needed to find an entry again; the host directory and the
    file name suffix make the tree browsable by hand, so the suffix is cut
    to :data:`MAX_SUFFIX_LENGTH` characters.
    """

    parsed = _split(url)
    key = derive_key(url)
    suffix = parsed.path.lstrip("/")
    if parsed.query:
        suffix = f"{suffix}{QUERY_SEPARATOR}{parsed.query}"
    suffix = sanitize(suffix)[:MAX_SUFFIX_LENGTH]
    return Path(sanitize(host_of(parsed)), key[0], f"{key}.{suffix}")


def split_file_name(path: Path) -> tuple[str, str]:
    """Split a cache file name into its key and suffix."""

    parts = path.name.split(".", 1)
    if len(parts) != 2:
        raise CorruptionError(path)
    return parts[0], parts[1]


__all__ = [
    "MAX_SUFFIX_LENGTH",
    "derive_key",
    "derive_path",
    "host_of",
    "sanitize",
    "split_file_name",
    "validate_url",
]
