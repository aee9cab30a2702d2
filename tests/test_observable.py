"""Tests for Observable, ObservableList and ObservableDict."""

import pytest

from formstate import Observable, ObservableList, ObservableDict, autorun
from formstate.observable import has_changed


class TestObservable:
    def test_get_set(self):
        o = Observable(42)
        assert o.get() == 42
        o.set(100)
        assert o.get() == 100

    def test_dedup_scalars(self):
        """Setting an equal scalar should not trigger observers."""
        o = Observable("hello")
        log = []
        autorun(lambda: log.append(o.get()))
        o.set("hello")
        assert log == ["hello"]

    def test_containers_always_notify(self):
        """A list may have been mutated in place, so re-assigning it notifies."""
        items = [1]
        o = Observable(items)
        log = []
        autorun(lambda: log.append(list(o.get())))
        items.append(2)
        o.set(items)
        assert log == [[1], [1, 2]]

    def test_notifies_observers(self):
        o = Observable("hello")
        log = []
        autorun(lambda: log.append(o.get()))
        o.set("world")
        assert log == ["hello", "world"]

    def test_every_observer_runs_when_one_raises(self):
        o = Observable(0)
        log = []

        def broken():
            if o.get():
                raise ValueError("broken observer")

        autorun(broken)
        autorun(lambda: log.append(o.get()))
        with pytest.raises(ValueError):
            o.set(1)
        assert log == [0, 1]

    def test_repr(self):
        assert "Observable(5)" in repr(Observable(5))


class TestHasChanged:
    def test_scalars(self):
        assert has_changed(1, 2)
        assert not has_changed("a", "a")
        assert not has_changed(None, None)

    def test_containers(self):
        assert has_changed([1], [1])
        assert has_changed({"a": 1}, {"a": 1})


class TestObservableList:
    def test_basic_operations(self):
        lst = ObservableList([1, 2, 3])
        assert len(lst) == 3
        assert lst[0] == 1
        assert list(lst) == [1, 2, 3]
        assert 2 in lst
        assert bool(lst) is True

    def test_mutations_notify(self):
        lst = ObservableList([1, 2])
        log = []
        autorun(lambda: log.append(list(lst)))
        lst.append(3)
        lst.pop(0)
        assert log == [[1, 2], [1, 2, 3], [2, 3]]

    def test_replace_notifies_once(self):
        lst = ObservableList([1, 2])
        log = []
        autorun(lambda: log.append(list(lst)))
        lst.replace([9])
        assert log == [[1, 2], [9]]

    def test_extend_clear(self):
        lst = ObservableList()
        lst.extend([1, 2])
        assert list(lst) == [1, 2]
        lst.clear()
        assert list(lst) == []


class TestObservableDict:
    def test_basic_operations(self):
        d = ObservableDict({"a": 1, "b": 2})
        assert d["a"] == 1
        assert d.get("c", 99) == 99
        assert "a" in d
        assert len(d) == 2
        assert set(d) == {"a", "b"}
        assert set(d.keys()) == {"a", "b"}
        assert set(d.items()) == {("a", 1), ("b", 2)}

    def test_mutations_notify(self):
        d = ObservableDict({"a": 1})
        log = []
        autorun(lambda: log.append(dict(d.items())))
        d["b"] = 2
        del d["a"]
        assert log == [{"a": 1}, {"a": 1, "b": 2}, {"b": 2}]

    def test_clear(self):
        d = ObservableDict({"a": 1})
        d.clear()
        assert len(d) == 0
