from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import StrEnum
from typing import Any

Hook = Callable[[Any, Any], None]


class CallbackEvent(StrEnum):
    CACHE = "cache"
    RETRIEVE_FROM_CACHE = "retrieve_from_cache"


class CallbackKind(StrEnum):
    BEFORE = "before"
    AFTER = "after"


class CallbackRegistry:
    """Ordered before/after hooks for the cache transitions.

    Hooks are called synchronously as ``hook(uploader, payload)``. Whatever a
    hook raises propagates unchanged and aborts the transition.
    """

    def __init__(self) -> None:
        self._hooks: dict[tuple[CallbackKind, CallbackEvent], list[Hook]] = {
            (kind, event): [] for kind in CallbackKind for event in CallbackEvent
        }

    def register(self, kind: str, event: str, func: Hook) -> Hook:
        if not callable(func):
            raise ValueError("callback must be callable")
        self._hooks[self._key(kind, event)].append(func)
        return func

    def before(self, event: str, func: Hook) -> Hook:
        return self.register(CallbackKind.BEFORE, event, func)

    def after(self, event: str, func: Hook) -> Hook:
        return self.register(CallbackKind.AFTER, event, func)

    def hooks(self, kind: str, event: str) -> list[Hook]:
        return list(self._hooks[self._key(kind, event)])

    def run(self, kind: str, event: str, uploader: Any, payload: Any) -> None:
        for hook in self.hooks(kind, event):
            hook(uploader, payload)

    @contextmanager
    def wrap(self, event: str, uploader: Any, payload: Any) -> Iterator[None]:
        self.run(CallbackKind.BEFORE, event, uploader, payload)
        yield
        self.run(CallbackKind.AFTER, event, uploader, payload)

    @staticmethod
    def _key(kind: str, event: str) -> tuple[CallbackKind, CallbackEvent]:
        try:
            return CallbackKind(kind), CallbackEvent(event)
        except ValueError as exc:
            raise ValueError(f"unknown callback: {kind}_{event}") from exc
