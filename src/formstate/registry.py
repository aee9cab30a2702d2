"""Named forms shared across a process.

A form initialized under a name can be fetched again anywhere by that name.
The registry lives as long as the process; server-side code that renders one
request after another clears it explicitly between requests.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from formstate.errors import FormNotFoundError
from formstate.form import Form
from formstate.observable import ObservableDict

logger = logging.getLogger("formstate.registry")


class FormRegistry:
    """Name -> Form store."""

    def __init__(self) -> None:
        self._forms: ObservableDict[str, Form] = ObservableDict()

    def get(self, name: str) -> Form:
        if name not in self._forms:
            raise FormNotFoundError(name)
        return self._forms[name]

    def register(self, name: str, form: Form) -> Form:
        """Store form under name, replacing any earlier registration."""
        self._forms[name] = form
        logger.debug("Registered form %r", name)
        return form

    def __contains__(self, name: str) -> bool:
        return name in self._forms

    def __len__(self) -> int:
        return len(self._forms)

    def clear(self) -> None:
        """Forget every named form."""
        self._forms.clear()
        logger.debug("Cleared form registry")


default_registry = FormRegistry()


def initialize_form(
    *args: Any,
    context: Any = None,
    form_rules=None,
    registry: FormRegistry | None = None,
) -> Form:
    """Create a form, or fetch a named one.

        initialize_form(initial_state)          # anonymous form
        initialize_form("signup", initial_state)  # create and register
        initialize_form("signup")               # fetch the registered form

    Raises MissingInitialStateError without an initial state,
    ReservedKeyError for a reserved key and FormNotFoundError when a name is
    fetched before it was registered.
    """
    if not args or not isinstance(args[0], str):
        args = (None, *args)
    if len(args) > 2:
        raise TypeError("initialize_form() takes at most a name and an initial state")
    name, initial_state = (*args, None)[:2]
    if registry is None:
        registry = default_registry

    if initial_state is None and name is not None:
        return registry.get(name)

    form = Form(initial_state, context=context, form_rules=form_rules)
    if name is not None:
        registry.register(name, form)
    return form
