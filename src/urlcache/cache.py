"""Disk cache mapping URLs to previously downloaded content."""

from __future__ import annotations

import enum
import locale
import logging
import threading
from pathlib import Path
from typing import Mapping

from .config import base_dir_from_env, resolve_root
from .errors import CacheFileError, CorruptionError, DirectoryCreationError
from .fetcher import Fetcher, HttpFetcher
from .index import CacheIndex
from .keys import derive_key, derive_path, validate_url

logger = logging.getLogger(__name__)


class CacheState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"


class UrlContentCache:
    """Return URL content from disk, downloading it on the first request.

    Files live under ``<base_dir>/<tag>``. The index of cached URLs is built
    lazily by scanning that directory on the first call; the scan runs at
    most once per instance, even when it fails.
    """

    def __init__(
        self,
        tag: str,
        *,
        base_dir: str | Path | None = None,
        fetcher: Fetcher | None = None,
    ) -> None:
        self.tag = tag
        self.base_dir = base_dir
        self._fetcher_owner = fetcher is None
        self._fetcher = fetcher or HttpFetcher()
        self._index = CacheIndex()
        self._root: Path | None = None
        self._state = CacheState.UNINITIALIZED
        self._failure: CorruptionError | None = None
        self._init_lock = threading.Lock()

    @classmethod
    def for_class(cls, owner: type, **kwargs) -> "UrlContentCache":
        return cls(owner.__name__, **kwargs)

    @classmethod
    def from_environment(
        cls,
        tag: str,
        *,
        environ: Mapping[str, str] | None = None,
        fetcher: Fetcher | None = None,
    ) -> "UrlContentCache":
        return cls(tag, base_dir=base_dir_from_env(environ), fetcher=fetcher)

    def __enter__(self) -> "UrlContentCache":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def close(self) -> None:
        if self._fetcher_owner:
            self._fetcher.close()

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def root_dir(self) -> Path:
        self._ensure_initialized()
        assert self._root is not None
        return self._root

    def __len__(self) -> int:
        self._ensure_initialized()
        return len(self._index)

    def _ensure_initialized(self) -> None:
        if self._state is CacheState.READY:
            return
        with self._init_lock:
            if self._state is CacheState.UNINITIALIZED:
                self._initialize()
            if self._state is CacheState.FAILED:
                assert self._failure is not None
                raise CorruptionError(self._failure.path) from self._failure

    def _initialize(self) -> None:
        logger.info("Init cache %r...", self.tag)
        root = resolve_root(self.base_dir, self.tag)
        if not root.exists():
            logger.info("Create base dir: %s", root)
            try:
                root.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise DirectoryCreationError(root) from exc
        self._root = root

        try:
            self._index.scan(root)
        except CorruptionError as exc:
            self._failure = exc
            self._state = CacheState.FAILED
            raise
        finally:
            if self._state is CacheState.UNINITIALIZED:
                self._state = CacheState.READY
        logger.info("Init completed. Total urls in cache: %d", len(self._index))

    def contains(self, url: str) -> bool:
        """Return whether *url* is cached, without downloading it."""

        self._ensure_initialized()
        return derive_key(validate_url(url)) in self._index

    def path_for(self, url: str) -> Path:
        """Return the location *url* is (or would be) stored at."""

        self._ensure_initialized()
        existing = self._index.lookup(derive_key(validate_url(url)))
        if existing is not None:
            return existing
        return self.root_dir / derive_path(url)

    def get(self, url: str) -> bytes:
        self._ensure_initialized()
        validate_url(url)

        path = self._index.lookup(derive_key(url))
        if path is None:
            logger.info("Cache not found: %s", url)
            path = self.put(url)
        else:
            logger.debug("Cache hit: %s -> %s", url, path)

        try:
            return path.read_bytes()
        except OSError as exc:
            raise CacheFileError(path, f"Can't read cache file ({exc})") from exc

    def get_text(self, url: str, encoding: str | None = None) -> str:
        """Return the content of *url* as text; undecodable bytes become U+FFFD."""

        return self.get(url).decode(encoding or locale.getpreferredencoding(False), errors="replace")

    def put(self, url: str) -> Path:
        """Download *url* into its cache file and index it.

        A write failure can leave a partially written file behind; it is not
        indexed until the next scan.
        """

        self._ensure_initialized()
        validate_url(url)
        destination = self.root_dir / derive_path(url)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DirectoryCreationError(destination.parent) from exc

        payload = self._fetcher.fetch(url)

        try:
            with destination.open("xb") as handle:
                handle.write(payload)
        except OSError as exc:
            raise CacheFileError(destination, f"Can't write cache file ({exc})") from exc

        self._index.insert(derive_key(url), destination)
        logger.info("Download to %s", destination)
        return destination

    def delete(self, url: str) -> bool:
        """Forget *url* and remove its file.

        The index entry is dropped even when the file cannot be removed.
        """

        self._ensure_initialized()
        path = self._index.remove(derive_key(validate_url(url)))
        if path is None:
            return False
        try:
            path.unlink()
        except OSError as exc:
            logger.warning("Failed to delete cache file %s: %s", path, exc)
            return False
        return True


__all__ = ["CacheState", "UrlContentCache"]
