"""Rule normalization.

Rules reach a form in several shapes: a bare callable, a mapping such as
``{"rule": fn, "auto_validate": False}``, or an already normalized Rule.
normalize_rules() converts all of them into a list of Rule at the boundary
so the rest of the engine only ever sees one representation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Iterable

RuleFunction = Callable[..., Any]

_AUTO_VALIDATE_KEYS = ("auto_validate", "autoValidate")


@dataclass(frozen=True)
class Rule:
    """A validation callable plus its gating flag.

    Field rules are called as ``rule(value, field_name, form)``, form rules as
    ``rule(form)``. ``auto_validate`` is kept exactly as given; ``None`` means
    "not specified" and behaves as True when the rule is evaluated.
    """

    rule: RuleFunction | None
    auto_validate: bool | None = None

    @property
    def runs_automatically(self) -> bool:
        return self.auto_validate is not False


def to_rule(entry: Any) -> Rule:
    """Normalize a single rule entry."""
    if isinstance(entry, Rule):
        return entry
    if isinstance(entry, Mapping) and "rule" in entry:
        auto_validate = None
        for key in _AUTO_VALIDATE_KEYS:
            if key in entry:
                auto_validate = entry[key]
                break
        return Rule(entry["rule"], auto_validate)
    if callable(entry):
        return Rule(entry)
    raise TypeError(
        f"A rule must be a callable, a Rule or a mapping with a 'rule' key, got {entry!r}"
    )


def _is_single(rules: Any) -> bool:
    return isinstance(rules, (Rule, Mapping)) or callable(rules)


def normalize_rules(rules: Iterable[Any] | Any | None) -> list[Rule]:
    """Convert any accepted rule shape into a list of Rule.

    ``None`` gives an empty list, a lone rule is treated as a list of one.
    Normalizing an already normalized list returns an equal list.
    """
    if rules is None:
        return []
    if _is_single(rules):
        return [to_rule(rules)]
    return [to_rule(entry) for entry in rules]
