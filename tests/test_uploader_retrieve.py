from __future__ import annotations

import pytest

from upload_cache import (
    CacheConfig,
    DirectoryStorage,
    InvalidIdentifier,
    InvalidParameter,
    SanitizedFile,
    Uploader,
)

CACHE_NAME = "20240102-0304-555-0042/photo.jpg"


def _uploader(tmp_path, **kwargs: object) -> Uploader:
    return Uploader(CacheConfig(root=str(tmp_path)), **kwargs)


def test_cache_then_retrieve_on_fresh_session(tmp_path) -> None:
    payload = bytes(range(256))
    writer = _uploader(tmp_path)
    writer.cache(SanitizedFile(payload, filename="photo.jpg"))

    reader = _uploader(tmp_path)
    cached = reader.retrieve_from_cache(writer.cache_name)

    assert reader.cache_id == writer.cache_id
    assert reader.original_filename == writer.original_filename == "photo.jpg"
    assert reader.filename == "photo.jpg"
    assert reader.cache_name == writer.cache_name
    assert cached.path == writer.cache_path
    assert reader.read() == payload


def test_retrieve_runs_hooks_with_cache_name(tmp_path) -> None:
    writer = _uploader(tmp_path)
    writer.cache(SanitizedFile(b"x", filename="a.txt"))
    reader = _uploader(tmp_path)
    calls: list[tuple[str, object, bool]] = []
    reader.callbacks.before(
        "retrieve_from_cache", lambda up, name: calls.append(("before", name, up.is_cached))
    )
    reader.callbacks.after(
        "retrieve_from_cache", lambda up, name: calls.append(("after", name, up.is_cached))
    )

    reader.retrieve_from_cache(writer.cache_name)

    assert calls == [
        ("before", writer.cache_name, False),
        ("after", writer.cache_name, True),
    ]


@pytest.mark.parametrize(
    "cache_name",
    [
        "not-an-id/photo.jpg",
        "20240102-0304-555-42/photo.jpg",
        "../../etc/passwd",
        "20240102-0304-555-0042",
        "20240102-0304-555-0042/../../../etc/passwd",
        "20240102-0304-555-0042/..",
        "20240102-0304-555-0042/has space.txt",
    ],
)
def test_retrieve_rejects_malformed_cache_names(tmp_path, cache_name: str) -> None:
    reader = _uploader(tmp_path)
    after_calls: list[object] = []
    reader.callbacks.after("retrieve_from_cache", lambda up, name: after_calls.append(name))

    with pytest.raises(InvalidParameter):
        reader.retrieve_from_cache(cache_name)

    assert after_calls == []
    assert reader.cache_id is None
    assert reader.original_filename is None
    assert reader.file is None


def test_retrieve_reports_bad_identifier_as_invalid_identifier(tmp_path) -> None:
    with pytest.raises(InvalidIdentifier):
        _uploader(tmp_path).retrieve_from_cache("2024-01-02/photo.jpg")


def test_retrieve_missing_local_file(tmp_path) -> None:
    reader = _uploader(tmp_path)

    with pytest.raises(FileNotFoundError):
        reader.retrieve_from_cache(CACHE_NAME)

    assert reader.cache_id is None
    assert reader.file is None


def test_failed_retrieve_keeps_previous_state(tmp_path) -> None:
    uploader = _uploader(tmp_path)
    uploader.cache(SanitizedFile(b"kept", filename="kept.txt"))
    previous_name = uploader.cache_name

    with pytest.raises(InvalidParameter):
        uploader.retrieve_from_cache("garbage")

    assert uploader.cache_name == previous_name
    assert uploader.read() == b"kept"


def test_retrieve_replaces_identifier(tmp_path) -> None:
    other = _uploader(tmp_path)
    other.cache(SanitizedFile(b"other", filename="other.txt"))
    uploader = _uploader(tmp_path)
    uploader.cache(SanitizedFile(b"mine", filename="mine.txt"))

    uploader.retrieve_from_cache(other.cache_name)

    assert uploader.cache_id == other.cache_id
    assert uploader.read() == b"other"


def test_retrieve_fetches_from_storage_into_local_cache(tmp_path) -> None:
    storage = DirectoryStorage(tmp_path / "store")
    writer = Uploader(CacheConfig(root=str(tmp_path / "web-1")), storage=storage)
    writer.cache(SanitizedFile(b"shared bytes", filename="shared.txt"))

    reader = Uploader(CacheConfig(root=str(tmp_path / "web-2")), storage=storage)
    cached = reader.retrieve_from_cache(writer.cache_name)

    expected = (tmp_path / "web-2" / "uploads" / "tmp" / writer.cache_name).resolve()
    assert cached.path == expected
    assert expected.read_bytes() == b"shared bytes"
    assert expected.stat().st_mode & 0o777 == 0o644
    assert reader.original_filename == "shared.txt"


def test_retrieve_missing_storage_entry_leaves_state_unset(tmp_path) -> None:
    reader = Uploader(
        CacheConfig(root=str(tmp_path)),
        storage=DirectoryStorage(tmp_path / "store"),
    )

    with pytest.raises(FileNotFoundError):
        reader.retrieve_from_cache(CACHE_NAME)

    assert reader.cache_id is None
    assert reader.file is None


def test_retrieve_rejects_non_ascii_digits_in_identifier(tmp_path) -> None:
    cache_name = "２０２４０１０２-0304-555-0042/a.txt"
    planted = tmp_path / "uploads" / "tmp" / cache_name
    planted.parent.mkdir(parents=True)
    planted.write_bytes(b"planted")
    reader = _uploader(tmp_path)

    with pytest.raises(InvalidIdentifier):
        reader.retrieve_from_cache(cache_name)

    assert reader.cache_id is None
    assert reader.file is None
