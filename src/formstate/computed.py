"""Computed values — derived state with automatic dependency tracking.

A Computed wraps a function. When evaluated, it tracks which observables
the function reads and caches the result. When any dependency changes,
the cached value is invalidated. On next read, it re-evaluates.

Computed values are lazy — they only recompute when read. Form.values is
one of these: a read view over every field's value.
"""

from __future__ import annotations

from typing import TypeVar, Generic, Callable
from formstate._tracking import current_derivation, schedule_all

T = TypeVar("T")

_UNSET = object()


class Computed(Generic[T]):
    """A derived value that auto-tracks dependencies and caches the result."""

    __slots__ = ("_fn", "_cached", "_dirty", "_dependencies", "_observers")

    def __init__(self, fn: Callable[[], T]) -> None:
        self._fn = fn
        self._cached: object = _UNSET
        self._dirty = True
        self._dependencies: set = set()
        self._observers: set = set()

    def get(self) -> T:
        """Read the computed value. Recomputes if dirty."""
        derivation = current_derivation.get()
        if derivation is not None:
            self._observers.add(derivation)
            derivation._dependencies.add(self)

        if self._dirty:
            self._recompute()

        return self._cached

    def _recompute(self) -> None:
        """Re-evaluate the function, tracking dependencies."""
        self._clear_dependencies()

        token = current_derivation.set(self)
        try:
            self._cached = self._fn()
        finally:
            current_derivation.reset(token)

        self._dirty = False

    def _clear_dependencies(self) -> None:
        for dep in self._dependencies:
            dep._remove_observer(self)
        self._dependencies.clear()

    def _run(self) -> None:
        """Called by the scheduler when a dependency changed.

        Mark dirty and propagate to our own observers; the recompute itself
        waits for the next .get().
        """
        if not self._dirty:
            self._dirty = True
            schedule_all(self._observers)

    def _remove_observer(self, observer) -> None:
        self._observers.discard(observer)

    def dispose(self) -> None:
        """Disconnect from all dependencies. The computed becomes inert."""
        self._clear_dependencies()
        self._observers.clear()
        self._dirty = True
        self._cached = _UNSET

    def __repr__(self) -> str:
        state = "dirty" if self._dirty else f"cached={self._cached!r}"
        return f"Computed({self._fn.__name__}, {state})"


def computed(fn: Callable[[], T]) -> Computed[T]:
    """Decorator/factory to create a Computed from a function.

    Usage:
        total = Observable(0)

        @computed
        def doubled():
            return total.get() * 2

        doubled.get()  # 0
        total.set(5)
        doubled.get()  # 10
    """
    return Computed(fn)
