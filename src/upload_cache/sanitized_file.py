from __future__ import annotations

import logging
import mimetypes
import os
import re
import shutil
from collections.abc import Mapping
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

SANITIZE_REGEXP = re.compile(r"[^a-zA-Z0-9.\-+_]")
_ONLY_DOTS = re.compile(r"\.+")


class SanitizedFile:
    """Wraps a path, byte buffer, open handle or upload mapping.

    The wrapped value is never copied on construction. ``filename`` is the
    basename with every unsafe character replaced by ``_``.
    """

    SANITIZE_REGEXP = SANITIZE_REGEXP

    def __init__(
        self,
        file: Any = None,
        *,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> None:
        if isinstance(file, SanitizedFile):
            filename = filename or file._given_filename
            content_type = content_type or file._given_content_type
            file = file._file
        elif isinstance(file, Mapping):
            filename = filename or file.get("filename")
            content_type = content_type or file.get("content_type")
            file = file.get("tempfile")

        self._file = file
        self._given_filename = filename
        self._given_content_type = content_type

    def __repr__(self) -> str:
        return f"SanitizedFile(filename={self.filename!r}, path={self.path!r})"

    @staticmethod
    def is_unsafe_filename(name: object) -> bool:
        if not isinstance(name, str) or not name:
            return True
        if _ONLY_DOTS.fullmatch(name):
            return True
        return SANITIZE_REGEXP.search(name) is not None

    @staticmethod
    def sanitize(name: str) -> str:
        basename = re.split(r"[\\/]", name.strip())[-1]
        sanitized = SANITIZE_REGEXP.sub("_", basename)
        if _ONLY_DOTS.fullmatch(sanitized):
            sanitized = f"_{sanitized}"
        return sanitized or "unnamed"

    @property
    def is_path(self) -> bool:
        return isinstance(self._file, (str, os.PathLike))

    @property
    def path(self) -> Path | None:
        if self._file is None:
            return None
        if self.is_path:
            return Path(os.path.abspath(os.path.expanduser(os.fspath(self._file))))
        if isinstance(self._file, (bytes, bytearray)):
            return None

        for attribute in ("path", "name"):
            candidate = getattr(self._file, attribute, None)
            if isinstance(candidate, (str, os.PathLike)) and os.path.isfile(candidate):
                return Path(os.path.abspath(os.fspath(candidate)))
        return None

    @property
    def exists(self) -> bool:
        path = self.path
        return path is not None and path.is_file()

    @property
    def size(self) -> int | None:
        if self._file is None:
            return None
        if self.is_path:
            return self.path.stat().st_size if self.exists else None
        if isinstance(self._file, (bytes, bytearray)):
            return len(self._file)

        declared = getattr(self._file, "size", None)
        if isinstance(declared, int):
            return declared
        if not self._is_seekable():
            self._buffer()
            return len(self._file)

        position = self._file.tell()
        self._file.seek(0, os.SEEK_END)
        size = self._file.tell()
        self._file.seek(position)
        return size

    @property
    def is_empty(self) -> bool:
        if self._file is None:
            return True
        size = self.size
        return size is None or (size == 0 and not self.exists)

    @property
    def original_filename(self) -> str | None:
        if self._given_filename:
            return self._given_filename
        if self.is_path:
            return os.path.basename(os.fspath(self._file))
        if isinstance(self._file, (bytes, bytearray)) or self._file is None:
            return None

        for attribute in ("original_filename", "filename"):
            candidate = getattr(self._file, attribute, None)
            if isinstance(candidate, str) and candidate:
                return candidate
        name = getattr(self._file, "name", None)
        if isinstance(name, (str, os.PathLike)):
            return os.path.basename(os.fspath(name))
        return None

    @property
    def filename(self) -> str | None:
        original = self.original_filename
        if original is None:
            return None
        return self.sanitize(original)

    @property
    def content_type(self) -> str | None:
        if self._given_content_type:
            return self._given_content_type
        declared = getattr(self._file, "content_type", None)
        if isinstance(declared, str) and declared:
            return declared

        guess_from = self.original_filename or (str(self.path) if self.path else None)
        if guess_from is None:
            return None
        guessed, _ = mimetypes.guess_type(guess_from)
        return guessed

    def read(self) -> bytes:
        if self._file is None:
            return b""
        if self.is_path:
            return self.path.read_bytes()
        if isinstance(self._file, (bytes, bytearray)):
            return bytes(self._file)

        if self._is_seekable():
            self._file.seek(0)
        content = self._file.read()
        if isinstance(content, str):
            content = content.encode("utf-8")
        return content

    def move_to(
        self,
        new_path: str | os.PathLike[str],
        permissions: int | None = None,
        directory_permissions: int | None = None,
    ) -> SanitizedFile:
        """Moves the file to ``new_path`` and rebinds this wrapper to it."""
        destination = _expand(new_path)
        _mkdir(destination.parent, directory_permissions)

        source = self.path
        if source is not None and source == destination:
            _chmod(destination, permissions)
            return self
        if source is not None:
            shutil.move(os.fspath(source), os.fspath(destination))
        else:
            destination.write_bytes(self.read())
        _chmod(destination, permissions)

        logger.debug("sanitized_file move path=%s", destination)
        self._given_content_type = self.content_type
        self._given_filename = None
        self._file = destination
        return self

    def copy_to(
        self,
        new_path: str | os.PathLike[str],
        permissions: int | None = None,
        directory_permissions: int | None = None,
    ) -> SanitizedFile:
        """Copies the file to ``new_path`` and returns a wrapper for the copy."""
        destination = _expand(new_path)
        _mkdir(destination.parent, directory_permissions)

        source = self.path
        if source is not None and source != destination:
            shutil.copyfile(os.fspath(source), os.fspath(destination))
        elif source is None:
            destination.write_bytes(self.read())
        _chmod(destination, permissions)

        logger.debug("sanitized_file copy path=%s", destination)
        return SanitizedFile(destination, content_type=self.content_type)

    def _is_seekable(self) -> bool:
        seekable = getattr(self._file, "seekable", None)
        if callable(seekable):
            return bool(seekable())
        return hasattr(self._file, "seek") and hasattr(self._file, "tell")

    def _buffer(self) -> None:
        # Non-seekable streams can only be read once.
        filename = self.original_filename
        content = self._file.read()
        if isinstance(content, str):
            content = content.encode("utf-8")
        self._given_filename = filename
        self._file = content


def wrap(file: Any) -> SanitizedFile:
    if isinstance(file, SanitizedFile):
        return file
    return SanitizedFile(file)


def is_unsafe_filename(name: object) -> bool:
    return SanitizedFile.is_unsafe_filename(name)


def _expand(path: str | os.PathLike[str]) -> Path:
    return Path(os.path.abspath(os.path.expanduser(os.fspath(path))))


def _mkdir(directory: Path, mode: int | None) -> None:
    if directory.exists():
        return
    directory.mkdir(parents=True, exist_ok=True)
    if mode is not None:
        directory.chmod(mode)


def _chmod(path: Path, mode: int | None) -> None:
    if mode is not None:
        path.chmod(mode)
