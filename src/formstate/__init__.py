"""formstate: reactive form state and validation for Python."""

from importlib.metadata import version as _version

__version__ = _version("formstate")

from formstate._tracking import after_flush, get_pending_count, untracked
from formstate.observable import Observable, ObservableList, ObservableDict
from formstate.computed import Computed, computed
from formstate.reaction import Reaction, autorun, never_equal, reaction
from formstate.action import action, transaction
from formstate.store import Store, store_property
from formstate.clone import clone_deep
from formstate.rules import Rule, normalize_rules
from formstate.evaluation import NOT_VALID_MESSAGE, ValidationResult, to_validation_result
from formstate.aggregate import FormValidationResult, collect_errors
from formstate.field import Field, FieldSpec
from formstate.form import Form
from formstate.registry import FormRegistry, default_registry, initialize_form
from formstate.errors import (
    FormError,
    FormNotFoundError,
    MissingInitialStateError,
    ReservedKeyError,
)

__all__ = [
    "Observable",
    "ObservableList",
    "ObservableDict",
    "Computed",
    "computed",
    "Reaction",
    "autorun",
    "reaction",
    "never_equal",
    "action",
    "transaction",
    "after_flush",
    "untracked",
    "get_pending_count",
    "Store",
    "store_property",
    "clone_deep",
    "Rule",
    "normalize_rules",
    "NOT_VALID_MESSAGE",
    "ValidationResult",
    "to_validation_result",
    "FormValidationResult",
    "collect_errors",
    "Field",
    "FieldSpec",
    "Form",
    "FormRegistry",
    "default_registry",
    "initialize_form",
    "FormError",
    "FormNotFoundError",
    "MissingInitialStateError",
    "ReservedKeyError",
]
