from __future__ import annotations

from datetime import datetime

import pytest

import upload_cache.identifier as identifier_module
from upload_cache.errors import InvalidIdentifier, InvalidParameter
from upload_cache.identifier import (
    CACHE_ID_PATTERN,
    CacheIdentifier,
    IdentifierSource,
    generate,
    parse,
)


def _fixed_source(*, suffix: int = 42) -> IdentifierSource:
    return IdentifierSource(
        now=lambda: datetime(2024, 1, 2, 3, 4, 59),
        pid=lambda: 555,
        randint=lambda: suffix,
    )


def test_generate_with_fixed_clock_pid_and_random() -> None:
    assert str(generate(_fixed_source())) == "20240102-0304-555-0042"


def test_generate_zero_pads_random_suffix() -> None:
    assert str(generate(_fixed_source(suffix=0))) == "20240102-0304-555-0000"
    assert str(generate(_fixed_source(suffix=9999))) == "20240102-0304-555-9999"


def test_generate_rejects_out_of_range_suffix() -> None:
    with pytest.raises(ValueError):
        generate(_fixed_source(suffix=10_000))


def test_default_source_uses_process_state(monkeypatch) -> None:
    monkeypatch.setattr(identifier_module.random, "randint", lambda low, high: 7)

    generated = generate()

    assert str(generated).endswith("-0007")
    assert CACHE_ID_PATTERN.fullmatch(str(generated))


def test_generated_identifiers_parse_back_to_equal_values() -> None:
    for _ in range(50):
        generated = generate()
        assert parse(str(generated)) == generated


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "2024010-0304-555-0042",
        "20240102-034-555-0042",
        "20240102-0304--0042",
        "20240102-0304-555-42",
        "20240102-0304-555-00420",
        "20240102-0304-abc-0042",
        "20240102-0304-555-0042\n",
        " 20240102-0304-555-0042",
        "../20240102-0304-555-0042",
        "20240102-0304-555-0042/photo.jpg",
        "٢٠٢٤٠١٠٢-0304-555-0042",
        "２０２４０１０２-0304-555-0042",
        "20240102-0304-٥٥٥-0042",
        None,
        20240102,
    ],
)
def test_parse_rejects_malformed_identifiers(raw: object) -> None:
    with pytest.raises(InvalidIdentifier):
        parse(raw)


def test_invalid_identifier_is_an_invalid_parameter() -> None:
    with pytest.raises(InvalidParameter):
        CacheIdentifier("not-an-id")


def test_identifier_is_hashable_value() -> None:
    first = parse("20240102-0304-555-0042")
    second = CacheIdentifier("20240102-0304-555-0042")

    assert first == second
    assert len({first, second}) == 1
    assert parse(first) is first
