"""Structural copy of plain form data."""

from __future__ import annotations

from typing import Any


def clone_deep(value: Any) -> Any:
    """Copy dicts, lists and tuples recursively; share everything else.

    Only plain data is copied. Callables, rule objects and arbitrary class
    instances are carried over by reference, so snapshotting an initial state
    that holds validation functions never tries to copy them.
    """
    if isinstance(value, dict):
        return {key: clone_deep(item) for key, item in value.items()}
    if isinstance(value, list):
        return [clone_deep(item) for item in value]
    if isinstance(value, tuple):
        return tuple(clone_deep(item) for item in value)
    return value
