"""Resolve where a cache keeps its files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

from .errors import ConfigurationError

BASE_DIR_ENV = "URL_CONTENT_CACHE_BASE_DIR"
DEFAULT_TAG = "default"


def base_dir_from_env(environ: Mapping[str, str] | None = None) -> str | None:
    """Return the base directory configured through :data:`BASE_DIR_ENV`, if any."""

    env = os.environ if environ is None else environ
    value = env.get(BASE_DIR_ENV, "").strip()
    return value or None


def resolve_root(base_dir: str | Path | None, tag: str) -> Path:
    if base_dir is None or not str(base_dir).strip():
        raise ConfigurationError(
            f"Cache base dir expected (pass base_dir or set {BASE_DIR_ENV})"
        )
    if not tag or not tag.strip():
        raise ConfigurationError("Cache tag must not be empty")
    if "/" in tag or "\\" in tag or tag in {".", ".."}:
        raise ConfigurationError(f"Cache tag must be a single directory name, got {tag!r}")
    return Path(base_dir) / tag


__all__ = ["BASE_DIR_ENV", "DEFAULT_TAG", "base_dir_from_env", "resolve_root"]
