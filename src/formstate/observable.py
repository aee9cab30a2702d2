"""Observable values — state that tracks its readers.

When an Observable is read inside a Computed or Reaction evaluation,
the dependency is automatically registered. When the Observable changes,
all dependents are scheduled for re-evaluation.

Form values are plain Python data, and lists or dicts can be mutated in
place without going through set(). Assigning a mutable container therefore
always notifies, even when it is the same object; readers that care about
real change compare against their own snapshot.

Not thread-safe: a form and its observables belong to one thread (or one
asyncio event loop). Writes from elsewhere must be handed over, e.g. with
loop.call_soon_threadsafe(), so a batch is never split across threads.
"""

from __future__ import annotations

from typing import TypeVar, Generic, Iterator
from formstate._tracking import current_derivation, schedule_all

T = TypeVar("T")
KT = TypeVar("KT")
VT = TypeVar("VT")

_MUTABLE = (list, dict, set)


def has_changed(old: object, new: object) -> bool:
    """Would assigning new over old be a change worth notifying?"""
    if isinstance(new, _MUTABLE):
        return True
    return old is not new and old != new


class _Atom:
    """Observer bookkeeping shared by every observable flavor."""

    __slots__ = ("_observers",)

    def __init__(self) -> None:
        self._observers: set = set()

    def _track(self) -> None:
        """Register the current derivation as an observer."""
        derivation = current_derivation.get()
        if derivation is not None:
            self._observers.add(derivation)
            derivation._dependencies.add(self)

    def _notify(self) -> None:
        """Schedule all observers for re-evaluation."""
        schedule_all(self._observers)

    def _remove_observer(self, observer) -> None:
        """Remove an observer. Called during dependency cleanup."""
        self._observers.discard(observer)


class Observable(_Atom, Generic[T]):
    """A single observable value with automatic dependency tracking."""

    __slots__ = ("_value",)

    def __init__(self, value: T) -> None:
        super().__init__()
        self._value = value

    def get(self) -> T:
        """Read the value. If inside a derivation, registers the dependency."""
        self._track()
        return self._value

    def set(self, value: T) -> None:
        """Write a new value; observers are notified if it changed."""
        if has_changed(self._value, value):
            self._value = value
            self._notify()

    def __repr__(self) -> str:
        return f"Observable({self._value!r})"


class ObservableList(_Atom, Generic[T]):
    """An observable list that tracks reads and notifies on mutation.

    Repeated field groups live in one of these, so adding or removing a group
    invalidates everything derived from the form's values.
    """

    __slots__ = ("_items",)

    def __init__(self, items: list[T] | None = None) -> None:
        super().__init__()
        self._items: list[T] = list(items) if items else []

    def __getitem__(self, index: int) -> T:
        self._track()
        return self._items[index]

    def __len__(self) -> int:
        self._track()
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        self._track()
        return iter(self._items)

    def __contains__(self, item: T) -> bool:
        self._track()
        return item in self._items

    def __bool__(self) -> bool:
        self._track()
        return bool(self._items)

    def append(self, item: T) -> None:
        self._items.append(item)
        self._notify()

    def extend(self, items) -> None:
        self._items.extend(items)
        self._notify()

    def pop(self, index: int = -1) -> T:
        result = self._items.pop(index)
        self._notify()
        return result

    def clear(self) -> None:
        self._items.clear()
        self._notify()

    def replace(self, items) -> None:
        """Swap the whole content with a single notification."""
        self._items[:] = items
        self._notify()

    def __repr__(self) -> str:
        return f"ObservableList({self._items!r})"


class ObservableDict(_Atom, Generic[KT, VT]):
    """An observable dict that tracks reads and notifies on mutation."""

    __slots__ = ("_data",)

    def __init__(self, data: dict[KT, VT] | None = None) -> None:
        super().__init__()
        self._data: dict[KT, VT] = dict(data) if data else {}

    def __getitem__(self, key: KT) -> VT:
        self._track()
        return self._data[key]

    def get(self, key: KT, default: VT | None = None) -> VT | None:
        self._track()
        return self._data.get(key, default)

    def __contains__(self, key: KT) -> bool:
        self._track()
        return key in self._data

    def __len__(self) -> int:
        self._track()
        return len(self._data)

    def __iter__(self) -> Iterator[KT]:
        self._track()
        return iter(self._data)

    def keys(self):
        self._track()
        return self._data.keys()

    def items(self):
        self._track()
        return self._data.items()

    def __setitem__(self, key: KT, value: VT) -> None:
        self._data[key] = value
        self._notify()

    def __delitem__(self, key: KT) -> None:
        del self._data[key]
        self._notify()

    def clear(self) -> None:
        self._data.clear()
        self._notify()

    def __repr__(self) -> str:
        return f"ObservableDict({self._data!r})"
