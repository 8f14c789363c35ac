from __future__ import annotations

from dataclasses import dataclass, replace

from .identifier import CacheIdentifier
from .sanitized_file import SanitizedFile


@dataclass(slots=True)
class UploadSession:
    cache_id: CacheIdentifier | None = None
    filename: str | None = None
    original_filename: str | None = None
    file: SanitizedFile | None = None

    @property
    def is_cached(self) -> bool:
        return self.cache_id is not None

    def snapshot(self) -> UploadSession:
        return replace(self)

    def restore(self, snapshot: UploadSession) -> None:
        self.cache_id = snapshot.cache_id
        self.filename = snapshot.filename
        self.original_filename = snapshot.original_filename
        self.file = snapshot.file
