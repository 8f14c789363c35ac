from __future__ import annotations

import os
import random
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from .errors import InvalidIdentifier

CACHE_ID_PATTERN = re.compile(r"[0-9]{8}-[0-9]{4}-[0-9]+-[0-9]{4}")
RANDOM_SUFFIX_MAX = 9999


@dataclass(slots=True, frozen=True)
class CacheIdentifier:
    """Names one cache slot: ``YYYYMMDD-HHMM-PID-RAND``."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or CACHE_ID_PATTERN.fullmatch(self.value) is None:
            raise InvalidIdentifier(f"invalid cache id: {self.value!r}")

    def __str__(self) -> str:
        return self.value


def _default_randint() -> int:
    return random.randint(0, RANDOM_SUFFIX_MAX)


@dataclass(slots=True)
class IdentifierSource:
    now: Callable[[], datetime] = datetime.now
    pid: Callable[[], int] = os.getpid
    randint: Callable[[], int] = _default_randint


def generate(source: IdentifierSource | None = None) -> CacheIdentifier:
    # Uniqueness is best effort: two sessions in the same minute and process
    # only differ by the random suffix.
    source = source or IdentifierSource()
    suffix = source.randint()
    if not 0 <= suffix <= RANDOM_SUFFIX_MAX:
        raise ValueError(f"random suffix must be between 0 and {RANDOM_SUFFIX_MAX}")
    timestamp = source.now().strftime("%Y%m%d-%H%M")
    return CacheIdentifier(f"{timestamp}-{source.pid()}-{suffix:04d}")


def parse(raw: object) -> CacheIdentifier:
    if isinstance(raw, CacheIdentifier):
        return raw
    if not isinstance(raw, str):
        raise InvalidIdentifier(f"invalid cache id: {raw!r}")
    return CacheIdentifier(raw)
