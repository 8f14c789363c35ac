from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from .callbacks import CallbackEvent
from .errors import FormNotMultipart, InvalidParameter
from .identifier import generate
from .sanitized_file import SanitizedFile, is_unsafe_filename, wrap
from .storage import StorageAdapter

if TYPE_CHECKING:
    from .uploader import Uploader

logger = logging.getLogger(__name__)


class CacheWriter:
    def cache(self, uploader: Uploader, new_file: Any) -> SanitizedFile | None:
        """Persists ``new_file`` into the uploader's cache slot.

        Empty input is a no-op. The session keeps its identifier across
        calls, so caching again overwrites the same slot. When validation,
        persistence or a hook fails, session state is rolled back and the
        bytes previously held by the slot are put back.
        """
        sanitized = wrap(new_file)
        if sanitized.is_empty:
            logger.info("cache skipped reason=empty")
            return None

        if sanitized.is_path and uploader.ensure_multipart_form:
            raise FormNotMultipart()

        session = uploader.session
        snapshot = session.snapshot()
        stash: _Stash | None = None
        try:
            with uploader.callbacks.wrap(CallbackEvent.CACHE, uploader, sanitized):
                if session.cache_id is None:
                    session.cache_id = generate(uploader.identifier_source)

                filename = sanitized.filename
                if is_unsafe_filename(filename):
                    raise InvalidParameter("invalid filename")
                session.filename = filename
                session.original_filename = filename

                stash = self._stash(uploader, sanitized)
                session.file = self._persist(uploader, sanitized)
        except Exception:
            if stash is not None:
                stash.restore()
            session.restore(snapshot)
            raise

        if stash is not None:
            stash.discard()

        logger.info("cache stored name=%s", uploader.cache_name)
        return session.file

    def _persist(self, uploader: Uploader, sanitized: SanitizedFile) -> SanitizedFile:
        storage = uploader.storage
        if storage is not None:
            data = sanitized.read()
            storage.store(uploader.cache_name, data)
            return SanitizedFile(
                data,
                filename=uploader.filename,
                content_type=sanitized.content_type,
            )

        if uploader.move_to_cache:
            return sanitized.move_to(
                uploader.cache_path,
                uploader.permissions,
                uploader.directory_permissions,
            )
        return sanitized.copy_to(
            uploader.cache_path,
            uploader.permissions,
            uploader.directory_permissions,
        )

    @staticmethod
    def _stash(uploader: Uploader, sanitized: SanitizedFile) -> _Stash | None:
        storage = uploader.storage
        name = uploader.cache_name
        if storage is not None:
            if not storage.exists(name):
                return None
            return _StorageStash(storage, name, storage.fetch(name))

        path = uploader.cache_path
        if not path.is_file() or sanitized.path == path:
            return None
        # "~" is outside the sanitized filename set, so no upload can land here.
        backup = path.with_name(f"{path.name}~previous")
        os.replace(path, backup)
        return _FileStash(path, backup)


class _Stash(Protocol):
    def restore(self) -> None: ...

    def discard(self) -> None: ...


@dataclass(slots=True, frozen=True)
class _FileStash:
    path: Path
    backup: Path

    def restore(self) -> None:
        os.replace(self.backup, self.path)
        logger.info("cache restored path=%s", self.path)

    def discard(self) -> None:
        self.backup.unlink(missing_ok=True)


@dataclass(slots=True, frozen=True)
class _StorageStash:
    storage: StorageAdapter
    name: str
    data: bytes

    def restore(self) -> None:
        self.storage.store(self.name, self.data)
        logger.info("cache restored name=%s", self.name)

    def discard(self) -> None:
        return None
