"""Dependency tracking engine.

Uses contextvars to track which observables are read during a computed/reaction
evaluation, building the dependency graph automatically.

Batching: mutations inside an @action or `with transaction()` accumulate
invalidations and flush them once at the end. The moment the outermost batch
has flushed is the quiescent point; callbacks registered with after_flush()
run there, after every pending derivation has settled.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from formstate.computed import Computed
    from formstate.reaction import Reaction

    Derivation = Computed | Reaction

# The currently-evaluating derivation (computed or reaction).
# When set, any Observable.get() call registers itself as a dependency.
current_derivation: contextvars.ContextVar[Derivation | None] = contextvars.ContextVar(
    "current_derivation", default=None
)

# Batch depth counter. When > 0, invalidations are deferred.
_batch_depth: int = 0

# Derivations invalidated during a batch, in scheduling order.
_pending: dict[Derivation, None] = {}

# Callbacks waiting for the quiescent point.
_after_flush: list[Callable[[], None]] = []


def begin_batch() -> None:
    """Enter a batching scope. Nested batches are supported."""
    global _batch_depth
    _batch_depth += 1


def end_batch() -> None:
    """Exit a batching scope. When the outermost scope exits, flush."""
    global _batch_depth
    _batch_depth -= 1
    if _batch_depth == 0:
        _flush_pending()


def in_batch() -> bool:
    return _batch_depth > 0


def schedule(derivation: Derivation) -> None:
    """Schedule a derivation for re-evaluation.

    If inside a batch, defers. Otherwise, runs immediately.
    """
    if _batch_depth > 0:
        _pending[derivation] = None
    else:
        derivation._run()


def schedule_all(derivations) -> None:
    """Schedule each derivation, even if an earlier one raises.

    The first exception is re-raised after all of them were scheduled.
    """
    first_error: BaseException | None = None
    for derivation in list(derivations):
        try:
            schedule(derivation)
        except Exception as exc:
            if first_error is None:
                first_error = exc
    if first_error is not None:
        raise first_error


def after_flush(callback: Callable[[], None]) -> None:
    """Run callback at the next quiescent point.

    Outside a batch the reactive graph is already quiescent, so the callback
    runs immediately.
    """
    if _batch_depth > 0:
        _after_flush.append(callback)
    else:
        callback()


def _flush_pending() -> None:
    """Run pending derivations, then quiescent-point callbacks, until both drain.

    A derivation or callback that raises does not stop the drain; the first
    exception is re-raised once both queues are empty.
    """
    first_error: BaseException | None = None
    while _pending or _after_flush:
        while _pending:
            batch = list(_pending)
            _pending.clear()
            for derivation in batch:
                try:
                    derivation._run()
                except Exception as exc:
                    if first_error is None:
                        first_error = exc
        if _after_flush:
            callbacks = list(_after_flush)
            _after_flush.clear()
            for callback in callbacks:
                try:
                    callback()
                except Exception as exc:
                    if first_error is None:
                        first_error = exc
    if first_error is not None:
        raise first_error


@contextmanager
def untracked():
    """Suspend dependency tracking for the enclosed block.

    Anything started inside (including asyncio tasks, which copy the current
    context) reads observables without subscribing the enclosing derivation.
    """
    token = current_derivation.set(None)
    try:
        yield
    finally:
        current_derivation.reset(token)


def get_pending_count() -> int:
    """Number of derivations waiting to run. Useful for testing."""
    return len(_pending)
