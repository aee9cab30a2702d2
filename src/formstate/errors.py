"""Exceptions raised for misuse of the form API.

Invalid field values are never exceptions: they surface as data on
`Field.errors` / `Form.errors`.
"""

from __future__ import annotations


class FormError(RuntimeError):
    """Base exception for form construction and lookup."""


class MissingInitialStateError(FormError):
    """Raised when a form is built without an initial state."""

    def __init__(self) -> None:
        super().__init__("You must provide an initial state")


class ReservedKeyError(FormError):
    """Raised when the initial state uses a name reserved by the form handle."""

    def __init__(self, key: str) -> None:
        super().__init__(f"You cannot use the reserved key: {key}")
        self.key = key


class FormNotFoundError(FormError, KeyError):
    """Raised when a named form is requested before it was initialized."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Form with name {name} does not exist. Did you forget to initialize it?"
        )
        self.name = name

    def __str__(self) -> str:
        return self.args[0]


__all__ = [
    "FormError",
    "MissingInitialStateError",
    "ReservedKeyError",
    "FormNotFoundError",
]
