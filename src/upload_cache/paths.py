from __future__ import annotations

import os
from pathlib import Path

from .errors import InvalidParameter
from .identifier import CacheIdentifier

_SEPARATORS = tuple({"/", "\\", os.sep})


def build_cache_name(identifier: CacheIdentifier | str, filename: str) -> str:
    return f"{identifier}/{filename}"


def split_cache_name(cache_name: object) -> tuple[str, str]:
    raw = "" if cache_name is None else str(cache_name)
    identifier, separator, filename = raw.partition("/")
    if not separator or not identifier or not filename:
        raise InvalidParameter(f"invalid cache name: {raw!r}")
    return identifier, filename


def resolve_cache_dir(root: str | os.PathLike[str], cache_dir: str | os.PathLike[str]) -> Path:
    base = Path(os.path.expanduser(os.fspath(root)))
    return (base / os.path.expanduser(os.fspath(cache_dir))).resolve()


def resolve_cache_path(
    root: str | os.PathLike[str],
    cache_dir: str | os.PathLike[str],
    identifier: CacheIdentifier | str,
    filename: str,
) -> Path:
    """Returns ``<root>/<cache_dir>/<identifier>/<filename>`` as an absolute path.

    Raises InvalidParameter when either segment carries a path separator or
    the normalized result falls outside the cache directory.
    """
    for segment in (str(identifier), filename):
        if not segment or segment in {".", ".."} or any(sep in segment for sep in _SEPARATORS):
            raise InvalidParameter(f"invalid cache path segment: {segment!r}")

    cache_root = resolve_cache_dir(root, cache_dir)
    candidate = (cache_root / str(identifier) / filename).resolve()
    if cache_root not in candidate.parents:
        raise InvalidParameter(f"cache path escapes cache directory: {candidate}")
    return candidate
