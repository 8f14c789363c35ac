from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .callbacks import CallbackEvent
from .errors import InvalidParameter
from .identifier import parse
from .paths import build_cache_name, resolve_cache_path, split_cache_name
from .sanitized_file import SanitizedFile, is_unsafe_filename

if TYPE_CHECKING:
    from .uploader import Uploader

logger = logging.getLogger(__name__)


class CacheReader:
    def retrieve_from_cache(self, uploader: Uploader, cache_name: str) -> SanitizedFile:
        """Points the uploader at the file cached under ``cache_name``.

        With a storage adapter the bytes are fetched into the local cache
        path first. Either every session field is updated or none is.
        """
        session = uploader.session
        snapshot = session.snapshot()
        try:
            with uploader.callbacks.wrap(
                CallbackEvent.RETRIEVE_FROM_CACHE, uploader, cache_name
            ):
                raw_identifier, original_filename = split_cache_name(cache_name)
                cache_id = parse(raw_identifier)
                if is_unsafe_filename(original_filename):
                    raise InvalidParameter("invalid filename")

                path = resolve_cache_path(
                    uploader.root, uploader.cache_dir, cache_id, original_filename
                )
                storage = uploader.storage
                if storage is not None:
                    data = storage.fetch(build_cache_name(cache_id, original_filename))
                    SanitizedFile(data).copy_to(
                        path,
                        uploader.permissions,
                        uploader.directory_permissions,
                    )
                elif not path.is_file():
                    raise FileNotFoundError(f"cached file not found: {path}")

                session.cache_id = cache_id
                session.filename = original_filename
                session.original_filename = original_filename
                session.file = SanitizedFile(path)
        except Exception:
            session.restore(snapshot)
            raise

        logger.info("cache retrieved name=%s", uploader.cache_name)
        return session.file
