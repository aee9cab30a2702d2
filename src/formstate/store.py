"""Store — key-based Observable container with reaction lifecycle.

Fields and forms keep their status flags in a Store: each key is its own
Observable, so reading `field.dirty` inside an autorun subscribes to exactly
that flag. The store also owns the reactions that watch it and tears them
down on dispose().
"""

from __future__ import annotations

from typing import Any

from formstate.observable import Observable
from formstate.action import action


class Store:
    """Key-based Observable container with reaction lifecycle."""

    def __init__(self, schema: dict[str, object], initial: dict | None = None) -> None:
        self._observables: dict[str, Observable] = {}
        self._disposers: list = []
        for key, default in schema.items():
            value = initial.get(key, default) if initial else default
            self._observables[key] = Observable(value)

    def get(self, key: str) -> Any:
        obs = self._observables.get(key)
        return obs.get() if obs is not None else None

    def set(self, key: str, value: object) -> None:
        obs = self._observables.get(key)
        if obs is not None:
            obs.set(value)

    @action
    def update(self, values: dict) -> None:
        for key, value in values.items():
            self.set(key, value)

    def own(self, disposable):
        """Tie a reaction (or anything with dispose()) to this store's lifetime."""
        self._disposers.append(disposable)
        return disposable

    def dispose(self) -> None:
        for d in self._disposers:
            d.dispose()
        self._disposers.clear()


def store_property(key: str, doc: str | None = None, *, readonly: bool = False) -> property:
    """Expose a key of `self._state` (a Store) as a property."""

    def fget(self):
        return self._state.get(key)

    def fset(self, value):
        self._state.set(key, value)

    return property(fget, None if readonly else fset, doc=doc)
