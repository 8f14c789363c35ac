"""Temporary upload cache: identifiers, cache paths and cache/retrieve transitions."""

from .callbacks import CallbackEvent, CallbackKind, CallbackRegistry
from .config import CacheConfig, build_storage, load_config
from .errors import FormNotMultipart, InvalidIdentifier, InvalidParameter, UploadError
from .identifier import CacheIdentifier, IdentifierSource, generate, parse
from .paths import build_cache_name, resolve_cache_path, split_cache_name
from .sanitized_file import SanitizedFile
from .storage import DirectoryStorage, HttpStorage, StorageAdapter
from .uploader import Uploader

__all__ = [
    "CacheConfig",
    "CacheIdentifier",
    "CallbackEvent",
    "CallbackKind",
    "CallbackRegistry",
    "DirectoryStorage",
    "FormNotMultipart",
    "HttpStorage",
    "IdentifierSource",
    "InvalidIdentifier",
    "InvalidParameter",
    "SanitizedFile",
    "StorageAdapter",
    "UploadError",
    "Uploader",
    "build_cache_name",
    "build_storage",
    "generate",
    "load_config",
    "parse",
    "resolve_cache_path",
    "split_cache_name",
]
