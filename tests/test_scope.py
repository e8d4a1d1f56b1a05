"""Tests for Scope and module mounting."""

import logging

import pytest

from scopefx import InvalidNameError, NotFoundError, Registry, Scope, ScopeDisposedError, ScopeError, Value, module


@module
def histogram(scope, data, rendered):
    bins = scope.input("bins", 10, label="Number of bins")
    scope.output(
        "plot",
        lambda: (len(data.get()), bins.get()),
        lambda v: rendered.append((scope.id, v)),
    )
    return bins


class TestModules:
    def test_two_instances_do_not_collide(self):
        registry = Registry()
        root = Scope(registry)
        data = Value([1, 2, 3])
        rendered = []

        bins1 = histogram(root, "hist1", data, rendered)
        bins2 = histogram(root, "hist2", data, rendered)

        assert bins1.fqn == "hist1-bins"
        assert bins2.fqn == "hist2-bins"
        assert registry.names() == ["hist1-bins", "hist1-plot", "hist2-bins", "hist2-plot"]
        assert root.children["hist1"].resolve("bins") is bins1.target
        assert root.children["hist2"].resolve("bins") is bins2.target
        assert rendered == [("hist1", (3, 10)), ("hist2", (3, 10))]

    def test_input_change_rerenders_only_its_instance(self):
        root = Scope(Registry())
        data = Value([1, 2, 3])
        rendered = []
        bins1 = histogram(root, "hist1", data, rendered)
        histogram(root, "hist2", data, rendered)
        rendered.clear()

        bins1.target.set(20)
        assert rendered == [("hist1", (3, 20))]

        data.set([1])
        assert rendered == [("hist1", (3, 20)), ("hist1", (1, 20)), ("hist2", (1, 10))]

    def test_scope_cannot_resolve_sibling_names(self):
        root = Scope(Registry())
        histogram(root, "hist1", Value([]), [])
        hist2 = root.child("hist2")
        with pytest.raises(NotFoundError):
            hist2.resolve("bins")
        with pytest.raises(NotFoundError):
            root.resolve("bins")

    def test_nested_modules(self):
        @module
        def dashboard(scope, data, rendered):
            return histogram(scope, "hist", data, rendered)

        root = Scope(Registry())
        bins = dashboard(root, "left", Value([1]), [])
        assert bins.fqn == "left-hist-bins"
        assert bins.scope_path == ("left", "hist")

    def test_label_is_kept(self):
        root = Scope(Registry())
        bins = histogram(root, "hist1", Value([]), [])
        assert bins.label == "Number of bins"
        assert bins.kind == "input"

    def test_module_preserves_name(self):
        assert histogram.__name__ == "histogram"


class TestChildren:
    def test_duplicate_sibling_id(self):
        root = Scope(Registry())
        root.child("hist1")
        with pytest.raises(InvalidNameError):
            root.child("hist1")

    def test_invalid_child_id(self):
        root = Scope(Registry())
        with pytest.raises(InvalidNameError):
            root.child("a-b")

    def test_paths_and_ids(self):
        root = Scope(Registry())
        inner = root.child("outer").child("inner")
        assert inner.path == ("outer", "inner")
        assert inner.id == "inner"
        assert inner.ns() == "outer-inner"
        assert inner.ns("x") == "outer-inner-x"
        assert inner.parent.parent is root
        assert root.id == ""

    def test_failed_mount_is_torn_down(self):
        root = Scope(Registry())

        def broken(scope):
            scope.input("x", 1)
            raise ValueError("boom")

        with pytest.raises(ValueError):
            root.mount("bad", broken)
        assert "bad" not in root.children
        assert "bad-x" not in root.registry
        root.mount("bad", lambda scope: None)  # id is free again


class TestDeclarations:
    def test_cell(self):
        root = Scope(Registry())
        n = root.input("n", 2)
        sq = root.cell("square", lambda: n.get() ** 2)
        assert sq.get() == 4
        n.target.set(3)
        assert root.resolve("square").get() == 9

    def test_redeclare_replaces_and_disposes(self, caplog):
        root = Scope(Registry())
        v = Value(1)
        first = []
        second = []
        old = root.output("plot", v.get, first.append)
        with caplog.at_level(logging.DEBUG, logger="scopefx.registry"):
            root.output("plot", v.get, second.append)
        assert old.target.disposed
        v.set(2)
        assert first == [1]
        assert second == [1, 2]

    def test_failed_first_render_rolls_back(self):
        registry = Registry()
        scope = Scope(registry).child("hist1")
        v = Value(1)

        def _render(value):
            raise RuntimeError("widget missing")

        with pytest.raises(RuntimeError):
            scope.output("plot", v.get, _render)
        assert "hist1-plot" not in registry
        assert v.dependents == frozenset()

    def test_failed_data_fn_rolls_back(self):
        registry = Registry()
        scope = Scope(registry).child("hist1")
        with pytest.raises(NotFoundError):
            scope.output("plot", lambda: scope.resolve("missing").get(), print)
        assert "hist1-plot" not in registry

    def test_failed_redeclare_keeps_previous_output(self):
        registry = Registry()
        root = Scope(registry)
        v = Value(1)
        rendered = []
        old = root.output("plot", v.get, rendered.append)

        def _render(value):
            raise RuntimeError("widget missing")

        with pytest.raises(RuntimeError):
            root.output("plot", v.get, _render)
        assert registry.get(old) is old.target
        assert not old.target.disposed
        v.set(2)
        assert rendered == [1, 2]


class TestDispose:
    def test_removes_bindings_and_stops_outputs(self):
        registry = Registry()
        root = Scope(registry)
        data = Value([1])
        rendered = []
        histogram(root, "hist1", data, rendered)
        hist1 = root.children["hist1"]
        rendered.clear()

        hist1.dispose()

        assert hist1.disposed
        assert "hist1" not in root.children
        assert len(registry) == 0
        data.set([1, 2])
        assert rendered == []

    def test_children_torn_down_first(self):
        registry = Registry()
        root = Scope(registry)
        outer = root.child("outer")
        outer.input("x", 1)
        outer.child("inner").input("y", 2)
        outer.dispose()
        assert registry.names() == []
        assert outer.children == {}

    def test_plain_callback_targets(self):
        registry = Registry()
        scope = Scope(registry).child("hist1")
        rendered = []
        binding = scope.declare("on_render", rendered.append, kind="callback")
        scope.resolve("on_render")("drawn")
        assert rendered == ["drawn"]
        assert binding.kind == "callback"
        scope.dispose()
        assert "hist1-on_render" not in registry

    def test_context_manager(self):
        registry = Registry()
        with Scope(registry).child("tmp") as tmp:
            tmp.input("x", 1)
            assert "tmp-x" in registry
        assert "tmp-x" not in registry

    def test_declare_after_dispose(self):
        root = Scope(Registry())
        child = root.child("c")
        child.dispose()
        with pytest.raises(ScopeDisposedError) as excinfo:
            child.input("x", 1)
        assert isinstance(excinfo.value, ScopeError)

    def test_dispose_is_idempotent(self):
        root = Scope(Registry())
        child = root.child("c")
        child.dispose()
        child.dispose()
        assert child.disposed

    def test_logs_lifecycle(self, caplog):
        root = Scope(Registry())
        with caplog.at_level(logging.DEBUG, logger="scopefx.scope"):
            root.child("hist1").dispose()
        assert "Scope hist1 created" in caplog.text
        assert "Scope hist1 disposed" in caplog.text
