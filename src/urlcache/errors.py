"""Exceptions raised by the URL content cache."""

from __future__ import annotations

from pathlib import Path


class UrlCacheError(RuntimeError):
    """Base class for every error raised by :mod:`urlcache`."""


class ConfigurationError(UrlCacheError):
    """Raised when the cache base directory or tag is missing or unusable."""


class InvalidUrlError(UrlCacheError, ValueError):
    """Raised when a URL has no scheme or host."""


class CorruptionError(UrlCacheError):
    """Raised when a file under the cache root is not named ``<key>.<suffix>``."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Corrupted cache file: {path}")
        self.path = path


class DirectoryCreationError(UrlCacheError):
    """Raised when a directory for a new cache entry cannot be created."""

    def __init__(self, directory: Path) -> None:
        super().__init__(f"Can't create cache dir: {directory}")
        self.directory = directory


class CacheFileError(UrlCacheError):
    """Raised when a cache file cannot be read or written."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"{message}: {path}")
        self.path = path


class FetchError(UrlCacheError):
    """Raised by :class:`~urlcache.fetcher.HttpFetcher` when a download fails."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"Failed to fetch {url}: {message}")
        self.url = url


__all__ = [
    "CacheFileError",
    "ConfigurationError",
    "CorruptionError",
    "DirectoryCreationError",
    "FetchError",
    "InvalidUrlError",
    "UrlCacheError",
]
