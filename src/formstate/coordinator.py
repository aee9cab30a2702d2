"""Validation passes and the staleness guard.

Every pass takes a fresh token from the form's coordinator. Results are
written back only while that token is still the current one; a pass that
was overtaken by a newer one runs to completion but its writes are dropped.
There is no real cancellation of an in-flight rule.

Passes come in three forms:
- change-driven: started by the form's value watcher, covers only the fields
  whose value really changed, skips manual-only rules. The field rules are
  called right away with the new values; when a loop is running their
  awaitables are resolved in an asyncio task, otherwise the pass completes
  synchronously with async rules skipped.
- whole form: Form.validate_form(), every field, every rule.
- single field: Field.validate(), one field, followed by form rules.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Sequence

from formstate._tracking import untracked
from formstate.aggregate import FormValidationResult, collect_errors
from formstate.evaluation import ValidationResult, evaluate_all, evaluate_all_async, settle, start_all
from formstate.rules import Rule

if TYPE_CHECKING:
    from formstate.field import Field
    from formstate.form import Form

logger = logging.getLogger("formstate.coordinator")


class ValidationCoordinator:
    """Issues pass tokens for one form and applies results that are still current."""

    def __init__(self, form: Form) -> None:
        self._form = form
        self._counter = itertools.count(1)
        self._token: int | None = None
        self._tasks: set[asyncio.Task] = set()

    # --- Tokens ---

    @property
    def token(self) -> int | None:
        return self._token

    def begin(self) -> int:
        """Start a pass. Every pass started earlier becomes stale."""
        self._token = next(self._counter)
        return self._token

    def invalidate(self) -> None:
        """Make every in-flight pass stale without starting a new one."""
        self._token = None

    def is_current(self, token: int) -> bool:
        return token == self._token

    # --- Change-driven passes ---

    def schedule(self, fields: Sequence[Field], token: int) -> None:
        """Run a change-driven pass for fields under token.

        Fields and form are marked pending before this returns.
        """
        logger.debug("Pass %d: %d changed field(s)", token, len(fields))
        self._open(fields)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._settle_sync(fields, token)
            return

        try:
            started = [(leaf, start_all(leaf.rules, (leaf.value, leaf.name, self._form))) for leaf in fields]
        except BaseException:
            self._close(fields)
            raise

        with untracked():
            task = loop.create_task(self._settle_started(started, token))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Automatic validation pass failed", exc_info=exc)

    async def wait(self) -> None:
        """Wait until no change-driven pass is in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # --- Explicit passes ---

    async def validate_form(self) -> FormValidationResult:
        token = self.begin()
        fields = [leaf for _, leaf in self._form.iter_fields()]
        logger.debug("Pass %d: validating the whole form", token)
        self._open(fields)
        return await self._settle(fields, token, explicit=True)

    async def validate_field(self, field: Field, rules: list[Rule]) -> ValidationResult:
        token = self.begin()
        logger.debug("Pass %d: validating field %r", token, field.name)
        self._open([field])
        with self._running():
            result = await self._validate_field(field, rules, token, explicit=True)
            await self._validate_form_rules(token, explicit=False)
        return result

    # --- Internals ---

    def _open(self, fields: Sequence[Field]) -> None:
        self._form._adjust_running(1)
        for leaf in fields:
            leaf._begin_pass()

    def _close(self, fields: Sequence[Field]) -> None:
        for leaf in fields:
            leaf._end_pass()
        self._form._adjust_running(-1)

    @contextmanager
    def _running(self):
        """Release the form's share of the pass opened by _open()."""
        try:
            yield
        finally:
            self._form._adjust_running(-1)

    async def _settle(self, fields: Sequence[Field], token: int, *, explicit: bool) -> FormValidationResult:
        with self._running():
            await asyncio.gather(
                *(self._validate_field(leaf, leaf.rules, token, explicit=explicit) for leaf in fields)
            )
            return await self._validate_form_rules(token, explicit=explicit)

    async def _settle_started(self, started, token: int) -> FormValidationResult:
        with self._running():
            await asyncio.gather(*(self._finish_field(leaf, raw, token) for leaf, raw in started))
            return await self._validate_form_rules(token, explicit=False)

    def _settle_sync(self, fields: Sequence[Field], token: int) -> FormValidationResult:
        with self._running():
            try:
                for leaf in fields:
                    result = evaluate_all(leaf.rules, (leaf.value, leaf.name, self._form))
                    self._write_field(leaf, result, token)
            finally:
                for leaf in fields:
                    leaf._end_pass()
            result = evaluate_all(self._form.form_rules, (self._form,))
            return self._write_form(result, token)

    async def _validate_field(self, field: Field, rules: list[Rule], token: int, *, explicit: bool) -> ValidationResult:
        try:
            raw = start_all(rules, (field.value, field.name, self._form), always_validate=explicit)
        except BaseException:
            field._end_pass()
            raise
        return await self._finish_field(field, raw, token)

    async def _finish_field(self, field: Field, raw: list, token: int) -> ValidationResult:
        try:
            result = await settle(raw)
            self._write_field(field, result, token)
        finally:
            field._end_pass()
        return result

    async def _validate_form_rules(self, token: int, *, explicit: bool) -> FormValidationResult:
        result = await evaluate_all_async(
            self._form.form_rules, (self._form,), always_validate=explicit
        )
        return self._write_form(result, token)

    def _write_field(self, field: Field, result: ValidationResult, token: int) -> None:
        if not self.is_current(token):
            logger.debug("Pass %d is stale; dropping result for %r", token, field.name)
            return
        field._apply(result)

    def _write_form(self, result: ValidationResult, token: int) -> FormValidationResult:
        aggregate = collect_errors(self._form, result)
        if self.is_current(token):
            self._form._apply(aggregate)
        else:
            logger.debug("Pass %d is stale; dropping form result", token)
        return aggregate
