from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable
from urllib.parse import quote

import requests

from .paths import resolve_cache_path, split_cache_name

logger = logging.getLogger(__name__)


@runtime_checkable
class StorageAdapter(Protocol):
    """Backend that keeps cached bytes keyed by cache name."""

    def store(self, name: str, data: bytes) -> None: ...

    def fetch(self, name: str) -> bytes: ...

    def exists(self, name: str) -> bool: ...


class DirectoryStorage:
    """Keeps cached bytes in a directory separate from the local cache."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def store(self, name: str, data: bytes) -> None:
        path = self._path(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info("storage store name=%s bytes=%d", name, len(data))

    def fetch(self, name: str) -> bytes:
        path = self._path(name)
        if not path.is_file():
            raise FileNotFoundError(f"cached entry not found: {name}")
        logger.info("storage fetch name=%s", name)
        return path.read_bytes()

    def exists(self, name: str) -> bool:
        return self._path(name).is_file()

    def _path(self, name: str) -> Path:
        identifier, filename = split_cache_name(name)
        return resolve_cache_path(self.directory, ".", identifier, filename)


class HttpStorage:
    """Remote object store addressed as ``<base_url>/<identifier>/<filename>``."""

    def __init__(
        self,
        base_url: str,
        *,
        session: requests.Session | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        if not base_url.strip():
            raise ValueError("base_url must not be empty")
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")

        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds

    def store(self, name: str, data: bytes) -> None:
        response = self.session.put(self._url(name), data=data, timeout=self.timeout_seconds)
        response.raise_for_status()
        logger.info("storage store name=%s bytes=%d status=%s", name, len(data), response.status_code)

    def fetch(self, name: str) -> bytes:
        response = self.session.get(self._url(name), timeout=self.timeout_seconds)
        if response.status_code == 404:
            raise FileNotFoundError(f"cached entry not found: {name}")
        response.raise_for_status()
        logger.info("storage fetch name=%s status=%s", name, response.status_code)
        return response.content

    def exists(self, name: str) -> bool:
        response = self.session.head(self._url(name), timeout=self.timeout_seconds)
        if response.status_code == 404:
            return False
        response.raise_for_status()
        return True

    def _url(self, name: str) -> str:
        identifier, filename = split_cache_name(name)
        return f"{self.base_url}/{quote(identifier)}/{quote(filename)}"
