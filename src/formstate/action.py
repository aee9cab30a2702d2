"""Actions and transactions — batched state mutations.

Wrapping mutations in an @action or `with transaction()` defers all
reaction/computed invalidation until the outermost scope exits. A form
relies on this to apply several field writes (set_fields, reset) as one
change, so the change-driven validation pass runs once.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Callable, Iterator, ParamSpec, TypeVar

from formstate._tracking import begin_batch, end_batch

P = ParamSpec("P")
R = TypeVar("R")


@contextmanager
def transaction() -> Iterator[None]:
    """Batch every observable write in the block.

    Usage:
        with transaction():
            form["first"].value = "Ada"
            form["last"].value = "Lovelace"
            # one validation pass, after both are set
    """
    begin_batch()
    try:
        yield
    finally:
        end_batch()


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator form of transaction(): fn's writes are flushed when it returns."""

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        with transaction():
            return fn(*args, **kwargs)

    return wrapper
