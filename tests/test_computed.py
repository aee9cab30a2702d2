"""Tests for Computed values."""

from formstate import Observable, ObservableList, Computed, computed, autorun


class TestComputed:
    def test_lazy_eval(self):
        call_count = 0
        o = Observable(5)

        def fn():
            nonlocal call_count
            call_count += 1
            return o.get() * 2

        c = Computed(fn)
        assert call_count == 0
        assert c.get() == 10
        c.get()
        assert call_count == 1

    def test_invalidation(self):
        o = Observable(5)
        c = Computed(lambda: o.get() * 2)
        assert c.get() == 10
        o.set(10)
        assert c.get() == 20

    def test_dependency_tracking(self):
        """Computed tracks dependencies dynamically."""
        flag = Observable(True)
        a = Observable(1)
        b = Observable(2)

        c = Computed(lambda: a.get() if flag.get() else b.get())
        assert c.get() == 1
        flag.set(False)
        assert c.get() == 2

    def test_tracks_list_membership(self):
        groups = ObservableList([Observable("a")])
        names = Computed(lambda: [g.get() for g in groups])
        assert names.get() == ["a"]
        groups.append(Observable("b"))
        assert names.get() == ["a", "b"]

    def test_dispose(self):
        o = Observable(5)
        c = Computed(lambda: o.get() * 2)
        c.get()
        c.dispose()
        o.set(10)
        assert c.get() == 20

    def test_propagates_to_reactions(self):
        o = Observable(5)
        c = Computed(lambda: o.get() * 2)
        log = []
        autorun(lambda: log.append(c.get()))
        o.set(10)
        assert log == [10, 20]


class TestComputedDecorator:
    def test_decorator_factory(self):
        o = Observable(7)

        @computed
        def doubled():
            return o.get() * 2

        assert doubled.get() == 14
        o.set(3)
        assert doubled.get() == 6
