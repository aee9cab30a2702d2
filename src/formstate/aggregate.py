"""Form-level view of field errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from formstate.evaluation import ValidationResult

if TYPE_CHECKING:
    from formstate.form import Form


@dataclass
class FormValidationResult:
    valid: bool = True
    errors: list = field(default_factory=list)
    error_fields: dict = field(default_factory=dict)


def collect_errors(form: Form, form_result: ValidationResult | None = None) -> FormValidationResult:
    """Merge every field's errors with the form-rule result.

    Field errors come first, in declaration order, followed by the form-rule
    errors. error_fields maps the path of each invalid field to its errors.
    Nothing is written back to the form; the caller decides whether the
    result is still current.
    """
    if form_result is None:
        form_result = ValidationResult()

    errors = []
    error_fields = {}
    valid = form_result.valid
    for path, leaf in form.iter_fields():
        errors.extend(leaf.errors)
        if not leaf.valid:
            valid = False
            error_fields[path] = list(leaf.errors)
    errors.extend(form_result.errors)
    return FormValidationResult(valid=valid, errors=errors, error_fields=error_fields)
