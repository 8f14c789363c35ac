from __future__ import annotations

from pathlib import Path
from typing import Any

from .callbacks import CallbackRegistry
from .config import CacheConfig, build_storage
from .errors import InvalidParameter
from .identifier import CacheIdentifier, IdentifierSource
from .paths import build_cache_name, resolve_cache_path
from .reader import CacheReader
from .sanitized_file import SanitizedFile
from .session import UploadSession
from .storage import StorageAdapter
from .writer import CacheWriter


class Uploader:
    """One upload session: configuration, callbacks and the cache slot state."""

    def __init__(
        self,
        config: CacheConfig | None = None,
        *,
        callbacks: CallbackRegistry | None = None,
        storage: StorageAdapter | None = None,
        identifier_source: IdentifierSource | None = None,
    ) -> None:
        self.config = config or CacheConfig()
        self.callbacks = callbacks or CallbackRegistry()
        self.storage = storage if storage is not None else build_storage(self.config)
        self.identifier_source = identifier_source
        self.session = UploadSession()
        self._writer = CacheWriter()
        self._reader = CacheReader()

    def cache(self, new_file: Any) -> SanitizedFile | None:
        return self._writer.cache(self, new_file)

    def retrieve_from_cache(self, cache_name: str) -> SanitizedFile:
        return self._reader.retrieve_from_cache(self, cache_name)

    def cache_stored_file(self) -> SanitizedFile | None:
        """Re-caches the current file's content, e.g. before processing it locally."""
        current = self.session.file
        if current is None:
            raise InvalidParameter("no file to cache")
        sanitized = SanitizedFile(
            current.read(),
            filename=self.filename or current.filename,
            content_type=current.content_type,
        )
        return self.cache(sanitized)

    def read(self) -> bytes | None:
        if self.session.file is None:
            return None
        return self.session.file.read()

    @property
    def is_cached(self) -> bool:
        return self.session.is_cached

    @property
    def cache_id(self) -> CacheIdentifier | None:
        return self.session.cache_id

    @property
    def file(self) -> SanitizedFile | None:
        return self.session.file

    @property
    def filename(self) -> str | None:
        return self.session.filename

    @property
    def original_filename(self) -> str | None:
        return self.session.original_filename

    @property
    def cache_name(self) -> str | None:
        if self.cache_id is None or self.original_filename is None:
            return None
        return build_cache_name(self.cache_id, self.original_filename)

    @property
    def cache_path(self) -> Path | None:
        if self.cache_id is None or self.original_filename is None:
            return None
        return resolve_cache_path(
            self.root, self.cache_dir, self.cache_id, self.original_filename
        )

    @property
    def root(self) -> Path:
        return Path(self.config.root)

    @property
    def cache_dir(self) -> Path:
        return Path(self.config.cache_dir)

    @property
    def permissions(self) -> int | None:
        return self.config.permissions

    @property
    def directory_permissions(self) -> int | None:
        return self.config.directory_permissions

    @property
    def move_to_cache(self) -> bool:
        return self.config.move_to_cache

    @property
    def ensure_multipart_form(self) -> bool:
        return self.config.ensure_multipart_form
