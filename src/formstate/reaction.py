"""Reactions — side effects triggered by observable state changes.

Unlike Computed (which is lazy and only evaluates on read), a Reaction
eagerly re-runs whenever its tracked dependencies change.

Two flavors:
- autorun(fn): runs fn immediately, re-runs when any observable it read changes.
- reaction(data_fn, effect_fn): tracks data_fn, calls effect_fn with the new
  value when `equals` says the result changed. The effect itself is not
  tracked.

Form fields watch their value through reaction(..., equals=never_equal):
an in-place mutation followed by re-assignment yields an equal (often the
very same) object, and must still count as a change.
"""

from __future__ import annotations

import operator
from typing import TypeVar, Callable
from formstate._tracking import current_derivation, untracked

T = TypeVar("T")


def never_equal(_old: object, _new: object) -> bool:
    """Comparer that treats every notification as a change."""
    return False


class Reaction:
    """A reactive side effect that re-runs when its dependencies change."""

    __slots__ = ("_fn", "_dependencies", "_disposed")

    def __init__(self, fn: Callable[[], None]) -> None:
        self._fn = fn
        self._dependencies: set = set()
        self._disposed = False

    def _track(self, fn: Callable[[], T]) -> T:
        """Drop the old dependencies and evaluate fn, recording new ones."""
        for dep in self._dependencies:
            dep._remove_observer(self)
        self._dependencies.clear()

        token = current_derivation.set(self)
        try:
            return fn()
        finally:
            current_derivation.reset(token)

    def _run(self) -> None:
        if self._disposed:
            return
        self._track(self._fn)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Stop this reaction. Disconnects from all dependencies."""
        self._disposed = True
        for dep in self._dependencies:
            dep._remove_observer(self)
        self._dependencies.clear()

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "active"
        return f"{type(self).__name__}({self._fn.__name__}, {state})"


class _DataReaction(Reaction):
    """Internal: reaction(data_fn, effect_fn) implementation."""

    __slots__ = ("_effect_fn", "_equals", "_last_value", "_initialized")

    def __init__(
        self,
        data_fn: Callable[[], T],
        effect_fn: Callable[[T], None],
        equals: Callable[[T, T], bool],
    ) -> None:
        super().__init__(data_fn)
        self._effect_fn = effect_fn
        self._equals = equals
        self._last_value = None
        self._initialized = False

    def _run(self) -> None:
        if self._disposed:
            return
        new_value = self._track(self._fn)
        if not self._initialized or not self._equals(self._last_value, new_value):
            self._last_value = new_value
            self._initialized = True
            with untracked():
                self._effect_fn(new_value)

    def _prime(self) -> None:
        """Establish dependencies and the baseline value without firing."""
        self._last_value = self._track(self._fn)
        self._initialized = True


def autorun(fn: Callable[[], None]) -> Reaction:
    """Run fn immediately, then re-run whenever any observable it reads changes.

    Returns the Reaction (call .dispose() to stop).

    Usage:
        form = initialize_form({"email": ""})
        log = []

        r = autorun(lambda: log.append(form["email"].dirty))
        # log == [False]

        form["email"].value = "a@b.c"
        # log == [False, True]

        r.dispose()
    """
    r = Reaction(fn)
    r._run()
    return r


def reaction(
    data_fn: Callable[[], T],
    effect_fn: Callable[[T], None],
    *,
    fire_immediately: bool = False,
    equals: Callable[[T, T], bool] | None = None,
) -> _DataReaction:
    """Track data_fn's observables; call effect_fn when the result changes.

    `equals(old, new)` decides whether a re-evaluated result is the same as
    before. Defaults to ==; pass never_equal to fire on every notification.

    Returns the reaction (call .dispose() to stop).

    Usage:
        first = Observable("Alice")
        last = Observable("Smith")

        effects = []
        r = reaction(
            lambda: f"{first.get()} {last.get()}",
            lambda name: effects.append(name),
        )
        # effects == []; data_fn ran to establish deps, effect waits

        first.set("Bob")
        # effects == ["Bob Smith"]
    """
    r = _DataReaction(data_fn, effect_fn, equals or operator.eq)
    if fire_immediately:
        r._run()
    else:
        r._prime()
    return r
