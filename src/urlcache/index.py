"""In-memory map from cache keys to the files holding their content."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Iterator

from .keys import split_file_name


class CacheIndex:
    """Key to file mapping rebuilt from disk on every start."""

    def __init__(self) -> None:
        self._files: dict[str, Path] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._files)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._files

    def lookup(self, key: str) -> Path | None:
        with self._lock:
            return self._files.get(key)

    def insert(self, key: str, path: Path) -> None:
        with self._lock:
            self._files[key] = path

    def remove(self, key: str) -> Path | None:
        with self._lock:
            return self._files.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._files)

    def scan(self, root: Path) -> int:
        """Index every regular file below *root* and return how many were added.

        Raises :class:`~urlcache.errors.CorruptionError` on the first file
        whose name has no ``.``; entries found before it stay indexed.
        """

        added = 0
        for path in _iter_files(root):
            key, _ = split_file_name(path)
            self.insert(key, path)
            added += 1
        return added


def _iter_files(root: Path) -> Iterator[Path]:
    for path in sorted(root.rglob("*")):
        if path.is_file():
            yield path


__all__ = ["CacheIndex"]
