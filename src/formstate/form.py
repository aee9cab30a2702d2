"""The form handle: fields, form-level state and the imperative API."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, Iterator

from formstate._tracking import after_flush
from formstate.action import transaction
from formstate.aggregate import FormValidationResult, collect_errors
from formstate.clone import clone_deep
from formstate.computed import Computed
from formstate.coordinator import ValidationCoordinator
from formstate.errors import MissingInitialStateError, ReservedKeyError
from formstate.field import Field, FieldSpec, is_group_list, parse_group
from formstate.observable import ObservableList
from formstate.reaction import never_equal, reaction
from formstate.rules import Rule, normalize_rules
from formstate.store import Store, store_property

logger = logging.getLogger("formstate.form")

RESERVED_KEYS = ("formState", "values", "context")
FORM_RULES_KEYS = ("form_rules", "formRules")

_GROUP_PATH = re.compile(r"^(?P<key>[^\[\]]+)\[(?P<index>\d+)\]\.(?P<name>.+)$")


def parse_initial_state(initial_state: Mapping | None) -> dict[str, FieldSpec | list[dict[str, FieldSpec]]]:
    """Validate the constructor input and normalize every entry."""
    if initial_state is None:
        raise MissingInitialStateError()
    if not isinstance(initial_state, Mapping):
        raise TypeError(f"The initial state must be a mapping, got {type(initial_state).__name__}")

    parsed: dict[str, FieldSpec | list[dict[str, FieldSpec]]] = {}
    for key, entry in initial_state.items():
        if key in RESERVED_KEYS:
            raise ReservedKeyError(key)
        if is_group_list(entry):
            parsed[key] = [parse_group(record) for record in entry]
        else:
            parsed[key] = FieldSpec.from_entry(entry)
    return parsed


class Form:
    """A set of named fields plus cross-field rules.

    Usage:
        form = Form({"email": {"value": "", "rules": [required]}, "age": 18})
        form["email"].value = "a@b.c"      # dirty + change-driven validation
        result = await form.validate_form()
        form.reset_form()
    """

    valid = store_property("valid")
    dirty = store_property("dirty")
    touched = store_property("touched")
    errors = store_property("errors")
    error_fields = store_property("error_fields")

    def __init__(
        self,
        initial_state: Mapping | None,
        *,
        context: Any = None,
        form_rules=None,
    ) -> None:
        specs = parse_initial_state(initial_state)
        self.initial_fields = clone_deep(dict(initial_state))
        self.context = {} if context is None else context

        self._suppress_dirty = False
        self._suppress_validation = False
        self._state = Store(
            {
                "valid": True,
                "dirty": False,
                "touched": False,
                "errors": [],
                "error_fields": {},
                "running": 0,
            }
        )
        self._form_rules: list[Rule] = normalize_rules(form_rules)
        self._coordinator = ValidationCoordinator(self)

        self.fields: dict[str, Field | ObservableList] = {}
        self._initial_groups: dict[str, list[dict[str, Field]]] = {}
        for key, spec in specs.items():
            if isinstance(spec, list):
                groups = [self._build_group(group) for group in spec]
                self._initial_groups[key] = groups
                self.fields[key] = ObservableList(groups)
            else:
                self.fields[key] = Field(self, key, spec)

        self._values = self._state.own(Computed(self._read_values))
        self._state.own(reaction(self._values.get, self._on_values_changed, equals=never_equal))

    # --- Read views ---

    @property
    def values(self) -> dict[str, Any]:
        """Current value of every field; repeated groups as lists of dicts."""
        return dict(self._values.get())

    @property
    def pending(self) -> bool:
        """True while any validation pass is in flight for the form or one of its fields."""
        if self._state.get("running") > 0:
            return True
        return any(leaf.pending for _, leaf in self.iter_fields())

    @property
    def form_rules(self) -> list[Rule]:
        return self._form_rules

    @form_rules.setter
    def form_rules(self, rules) -> None:
        self._form_rules = normalize_rules(rules)

    def __getitem__(self, key: str) -> Field | ObservableList:
        return self.fields[key]

    def __contains__(self, key: str) -> bool:
        return key in self.fields

    def iter_fields(self) -> Iterator[tuple[str, Field]]:
        """Yield (path, field) for every leaf, in declaration order."""
        for key, entry in self.fields.items():
            if isinstance(entry, Field):
                yield key, entry
                continue
            for index, group in enumerate(entry):
                for name, leaf in group.items():
                    yield f"{key}[{index}].{name}", leaf

    def field(self, path: str) -> Field:
        """Resolve "name" or "group[index].name" to a leaf field."""
        entry = self.fields.get(path)
        if isinstance(entry, Field):
            return entry
        match = _GROUP_PATH.match(path)
        if match is not None:
            groups = self.fields.get(match["key"])
            index = int(match["index"])
            if isinstance(groups, ObservableList) and index < len(groups):
                leaf = groups[index].get(match["name"])
                if leaf is not None:
                    return leaf
        raise KeyError(path)

    # --- Imperative API ---

    def set_rules(self, rules: Mapping[str, Any]) -> None:
        """Replace rules per field path; the "form_rules" key sets the form rules."""
        for key, value in rules.items():
            if key in FORM_RULES_KEYS:
                self.form_rules = value
            else:
                self.field(key).rules = value

    def set_fields(self, values: Mapping[str, Any], *, set_dirty: bool = True, validate: bool = False) -> None:
        """Assign several values as one change.

        By default the fields become dirty but are not validated. The
        suppression applies to this write only.
        """
        self._suppress_validation = not validate
        self._suppress_dirty = not set_dirty
        with transaction():
            self._release_after_flush()
            for path, value in values.items():
                self.field(path).value = value

    def reset_form(self) -> None:
        """Restore every field (and every repeated group) to the initial state."""
        self._suppress_dirty = True
        self._suppress_validation = True
        self._coordinator.invalidate()
        with transaction():
            self._release_after_flush(collect=True)
            self._restore_groups()
            for _, leaf in self.iter_fields():
                leaf._restore()
            self._state.update({"dirty": False, "touched": False})

    async def validate_form(self) -> FormValidationResult:
        """Validate every field with every rule, then the form rules."""
        return await self._coordinator.validate_form()

    async def wait_for_validation(self) -> None:
        """Wait for change-driven passes started by value assignments."""
        await self._coordinator.wait()

    def push_group(self, key: str, record: Mapping) -> dict[str, Field]:
        """Append an element to the repeated group `key`."""
        groups = self._groups(key)
        group = self._build_group(parse_group(record))
        with transaction():
            groups.append(group)
            self._mark_dirty()
        return group

    def remove_group(self, key: str, index: int) -> dict[str, Field]:
        """Remove element `index` of the repeated group `key`."""
        groups = self._groups(key)
        with transaction():
            group = groups.pop(index)
            self._mark_dirty()
        if group not in self._initial_groups[key]:
            self._dispose_group(group)
        return group

    def dispose(self) -> None:
        """Stop every reaction owned by the form and its fields."""
        self._state.dispose()
        for _, leaf in self.iter_fields():
            leaf.dispose()
        for groups in self._initial_groups.values():
            for group in groups:
                self._dispose_group(group)

    # --- Internal ---

    def _build_group(self, specs: dict[str, FieldSpec]) -> dict[str, Field]:
        return {name: Field(self, name, spec) for name, spec in specs.items()}

    def _dispose_group(self, group: dict[str, Field]) -> None:
        for leaf in group.values():
            leaf.dispose()

    def _groups(self, key: str) -> ObservableList:
        groups = self.fields.get(key)
        if not isinstance(groups, ObservableList):
            raise ValueError(f"{key!r} is not a repeated group")
        return groups

    def _restore_groups(self) -> None:
        for key, initial in self._initial_groups.items():
            groups = self.fields[key]
            current = list(groups)
            if current == initial:
                continue
            for group in current:
                if group not in initial:
                    self._dispose_group(group)
            groups.replace(initial)

    def _read_values(self) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for key, entry in self.fields.items():
            if isinstance(entry, Field):
                values[key] = entry.value
            else:
                values[key] = [{name: leaf.value for name, leaf in group.items()} for group in entry]
        return values

    def _on_values_changed(self, _values: dict[str, Any]) -> None:
        token = self._coordinator.begin()
        changed = [leaf for _, leaf in self.iter_fields() if leaf._take_snapshot()]
        if self._suppress_validation:
            self._suppress_validation = False
            logger.debug("Pass %d suppressed (%d changed field(s))", token, len(changed))
            return
        self._coordinator.schedule(changed, token)

    def _mark_dirty(self) -> None:
        if not self._suppress_dirty:
            self.dirty = True

    def _release_after_flush(self, *, collect: bool = False) -> None:
        """Lift dirty/validation suppression once the current batch has settled."""

        def release() -> None:
            if collect:
                self._apply(collect_errors(self))
            self._suppress_dirty = False
            self._suppress_validation = False

        after_flush(release)

    def _adjust_running(self, delta: int) -> None:
        self._state.set("running", self._state.get("running") + delta)

    def _apply(self, result: FormValidationResult) -> None:
        self._state.update(
            {
                "valid": result.valid,
                "errors": list(result.errors),
                "error_fields": dict(result.error_fields),
            }
        )

    def __repr__(self) -> str:
        return f"Form(fields={list(self.fields)!r}, valid={self.valid}, dirty={self.dirty})"
