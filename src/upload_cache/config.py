from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .storage import DirectoryStorage, HttpStorage, StorageAdapter


class DirectoryStorageConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["directory"] = "directory"
    directory: str

    @field_validator("directory")
    @classmethod
    def validate_directory(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("storage.directory must not be empty")
        return normalized


class HttpStorageConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["http"] = "http"
    base_url: str
    timeout_seconds: float = Field(default=10.0, gt=0.0)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized.startswith(("http://", "https://")):
            raise ValueError("storage.base_url must be an http(s) URL")
        return normalized


StorageConfig = Annotated[
    DirectoryStorageConfig | HttpStorageConfig,
    Field(discriminator="type"),
]


class CacheConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    root: str = "."
    cache_dir: str = "uploads/tmp"
    permissions: int | None = Field(default=0o644, ge=0, le=0o777)
    directory_permissions: int | None = Field(default=0o755, ge=0, le=0o777)
    move_to_cache: bool = False
    ensure_multipart_form: bool = True
    storage: StorageConfig | None = None

    @field_validator("root", "cache_dir")
    @classmethod
    def validate_directories(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("root and cache_dir must not be empty")
        return normalized

    @field_validator("permissions", "directory_permissions", mode="before")
    @classmethod
    def parse_octal_string(cls, value: Any) -> Any:
        # YAML already reads unquoted 0644 as octal; quoted "0644" is parsed here.
        # A bare 644 is decimal and fails the 0o777 bound.
        if isinstance(value, str):
            try:
                return int(value.strip(), 8)
            except ValueError as exc:
                raise ValueError(f"invalid octal mode: {value}") from exc
        return value


def build_storage(config: CacheConfig) -> StorageAdapter | None:
    storage = config.storage
    if storage is None:
        return None
    if isinstance(storage, DirectoryStorageConfig):
        return DirectoryStorage(Path(config.root) / storage.directory)
    return HttpStorage(storage.base_url, timeout_seconds=storage.timeout_seconds)


def load_config(path: str | Path) -> CacheConfig:
    raw = Path(path).read_text(encoding="utf-8")
    payload = _parse_yaml_or_json(raw)
    try:
        return CacheConfig.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc


def _parse_yaml_or_json(raw: str) -> dict[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        parsed = _parse_yaml(raw)
    if not isinstance(parsed, dict):
        raise ValueError("Configuration root must be an object.")
    return parsed


def _parse_yaml(raw: str) -> dict[str, Any]:
    import yaml

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ValueError("Configuration root must be an object.")
    return parsed
