"""Rule evaluation and result normalization.

A rule may return nothing, a boolean, an error value (usually a string, but
any object is carried through untouched), a list of those, or an awaitable
resolving to any of them. evaluate_all() / evaluate_all_async() run a list of
rules and fold whatever comes back into a ValidationResult.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from formstate.rules import Rule

logger = logging.getLogger("formstate.evaluation")

NOT_VALID_MESSAGE = "not valid"


@dataclass
class ValidationResult:
    valid: bool = True
    errors: list = field(default_factory=list)


def is_async_callable(fn: Any) -> bool:
    """True for coroutine functions, partials of them and async __call__."""
    if inspect.iscoroutinefunction(fn):
        return True
    call = getattr(fn, "__call__", None)
    return call is not None and inspect.iscoroutinefunction(call)


def _discard(awaitable: Any) -> None:
    # A coroutine that is never awaited would warn on garbage collection.
    if inspect.iscoroutine(awaitable):
        awaitable.close()


def evaluate_one(rule: Rule, args: Sequence[Any], should_validate: bool, allow_async: bool) -> Any:
    """Invoke one rule, or skip it.

    Skipped (returns None without calling) when the rule has no callable,
    when it is manual-only (auto_validate False) and this pass was not
    explicitly requested, or when it is asynchronous and the pass is
    synchronous. A synchronous callable that hands back an awaitable during a
    synchronous pass has its result dropped.
    """
    fn = rule.rule
    if fn is None:
        return None
    if not rule.runs_automatically and not should_validate:
        return None
    if not allow_async and is_async_callable(fn):
        return None

    result = fn(*args)
    if not allow_async and inspect.isawaitable(result):
        _discard(result)
        return None
    return result


def _flatten(raw: Any) -> list:
    if not isinstance(raw, list):
        return [raw]
    flat = []
    for item in raw:
        if isinstance(item, list):
            flat.extend(item)
        else:
            flat.append(item)
    return flat


def to_validation_result(raw: Any) -> ValidationResult:
    """Fold a raw rule outcome (single value or list) into a ValidationResult.

    True and None contribute nothing, False contributes NOT_VALID_MESSAGE,
    anything else is an error as-is. Lists are flattened one level.
    """
    errors = []
    for item in _flatten(raw):
        if item is False:
            errors.append(NOT_VALID_MESSAGE)
        elif item is True or item is None:
            continue
        else:
            errors.append(item)
    return ValidationResult(valid=not errors, errors=errors)


def evaluate_all(
    rules: Iterable[Rule] | None,
    args: Sequence[Any] = (),
    *,
    always_validate: bool = False,
) -> ValidationResult:
    """Synchronous pass: asynchronous rules are skipped, nothing is awaited."""
    if rules is None:
        return ValidationResult()
    raw = [evaluate_one(rule, args, always_validate, False) for rule in rules]
    return to_validation_result(raw)


def start_all(
    rules: Iterable[Rule] | None,
    args: Sequence[Any] = (),
    *,
    always_validate: bool = False,
) -> list:
    """Invoke every rule now and return the raw outcomes, awaitables unresolved."""
    if rules is None:
        return []
    raw = []
    try:
        for rule in rules:
            raw.append(evaluate_one(rule, args, always_validate, True))
    except BaseException:
        for item in raw:
            _discard(item)
        raise
    return raw


async def settle(raw: list) -> ValidationResult:
    """Await the awaitables among raw outcomes and fold everything.

    If any awaited result fails, the whole pass resolves valid with no
    errors, including the results of rules that did succeed.
    """
    raw = list(raw)
    waiting = [index for index, item in enumerate(raw) if inspect.isawaitable(item)]
    if waiting:
        settled = await asyncio.gather(*(raw[index] for index in waiting), return_exceptions=True)
        failures = [item for item in settled if isinstance(item, BaseException)]
        if failures:
            logger.warning(
                "%d asynchronous rule(s) failed; treating the pass as valid",
                len(failures),
                exc_info=failures[0],
            )
            return ValidationResult()
        for index, item in zip(waiting, settled):
            raw[index] = item

    return to_validation_result(raw)


async def evaluate_all_async(
    rules: Iterable[Rule] | None,
    args: Sequence[Any] = (),
    *,
    always_validate: bool = False,
) -> ValidationResult:
    """Asynchronous pass: awaitable results are awaited concurrently.

    A synchronous rule that raises propagates; a failed awaitable is handled
    by settle().
    """
    return await settle(start_all(rules, args, always_validate=always_validate))
