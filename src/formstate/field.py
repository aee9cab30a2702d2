"""Form fields: one runtime record per leaf value.

An initial state entry is either a bare value or a descriptor
``{"value": ..., "rules": [...]}``; FieldSpec.from_entry() turns both into
the same shape. Any mapping with a "value" key is a descriptor, and keys
other than "value" and "rules" are ignored. A non-empty list whose every element is a mapping is a
repeated group instead: each element expands into its own set of fields.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from formstate.action import transaction
from formstate.clone import clone_deep
from formstate.evaluation import ValidationResult
from formstate.reaction import never_equal, reaction
from formstate.rules import Rule, normalize_rules
from formstate.store import Store, store_property

if TYPE_CHECKING:
    from formstate.form import Form


@dataclass(frozen=True)
class FieldSpec:
    """Normalized initial state of one field."""

    value: Any = None
    rules: Any = None

    @classmethod
    def from_entry(cls, entry: Any) -> FieldSpec:
        if isinstance(entry, FieldSpec):
            return entry
        if isinstance(entry, Mapping) and "value" in entry:
            return cls(entry["value"], entry.get("rules"))
        return cls(entry)


def is_group_list(value: Any) -> bool:
    """Is value a repeated group (a non-empty list of mappings)?"""
    return isinstance(value, list) and bool(value) and all(isinstance(item, Mapping) for item in value)


def parse_group(record: Mapping) -> dict[str, FieldSpec]:
    return {key: FieldSpec.from_entry(entry) for key, entry in record.items()}


def _status(value: Any) -> dict[str, object]:
    return {
        "value": value,
        "dirty": False,
        "touched": False,
        "focused": False,
        "valid": True,
        "errors": [],
        "pending": False,
    }


class Field:
    """Live state of one form input.

    Status attributes are observable: reading them inside autorun()/reaction()
    subscribes to changes. Assigning ``value`` marks the field and its form
    dirty and starts a change-driven validation pass.
    """

    value = store_property("value")
    dirty = store_property("dirty")
    touched = store_property("touched")
    focused = store_property("focused")
    valid = store_property("valid")
    errors = store_property("errors")
    pending = store_property("pending", "True while a validation pass covers this field.", readonly=True)

    def __init__(self, form: Form, name: str, spec: FieldSpec) -> None:
        self._form = form
        self._name = name
        self._state = Store(_status(spec.value))
        self._rules: list[Rule] = normalize_rules(spec.rules)
        self._initial_value = clone_deep(spec.value)
        self._previous_value = clone_deep(spec.value)
        self._in_flight = 0
        self._state.own(reaction(lambda: self.value, self._on_value_changed, equals=never_equal))

    @property
    def name(self) -> str:
        return self._name

    @property
    def rules(self) -> list[Rule]:
        return self._rules

    @rules.setter
    def rules(self, rules) -> None:
        self._rules = normalize_rules(rules)

    @property
    def error(self) -> Any:
        """First error, or None."""
        errors = self.errors
        return errors[0] if errors else None

    def focus(self, event: Any = None) -> None:
        self.focused = True

    def blur(self, event: Any = None) -> None:
        with transaction():
            self.touched = True
            self.focused = False
            self._form.touched = True

    async def validate(self, rules=None) -> ValidationResult:
        """Run this field's rules (or `rules`, normalized) including manual-only ones.

        Form rules run afterwards so the form's errors stay in sync.
        """
        rules = self._rules if rules is None else normalize_rules(rules)
        return await self._form._coordinator.validate_field(self, rules)

    def reset(self) -> None:
        """Restore the construction-time value and clear every status flag."""
        form = self._form
        form._suppress_dirty = True
        form._suppress_validation = True
        form._coordinator.invalidate()
        with transaction():
            form._release_after_flush(collect=True)
            self._restore()

    def dispose(self) -> None:
        self._state.dispose()

    # --- Internal ---

    def _on_value_changed(self, _value: Any) -> None:
        if self._form._suppress_dirty:
            return
        with transaction():
            self.dirty = True
            self._form.dirty = True

    def _take_snapshot(self) -> bool:
        """Refresh the previous-value snapshot; report whether the value really changed."""
        value = self.value
        if value == self._previous_value:
            return False
        self._previous_value = clone_deep(value)
        return True

    def _restore(self) -> None:
        self._state.update(
            {
                "value": clone_deep(self._initial_value),
                "dirty": False,
                "touched": False,
                "focused": False,
                "valid": True,
                "errors": [],
            }
        )

    def _begin_pass(self) -> None:
        self._in_flight += 1
        self._state.set("pending", True)

    def _end_pass(self) -> None:
        self._in_flight = max(self._in_flight - 1, 0)
        self._state.set("pending", self._in_flight > 0)

    def _apply(self, result: ValidationResult) -> None:
        self._state.update({"valid": result.valid, "errors": list(result.errors)})

    def __repr__(self) -> str:
        return (
            f"Field({self._name!r}, value={self.value!r}, valid={self.valid}, "
            f"dirty={self.dirty}, errors={self.errors!r})"
        )
