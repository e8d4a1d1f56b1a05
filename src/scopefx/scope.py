"""Scopes — namespaced module instances with their own bindings.

A Scope owns a path and shares a Registry with its ancestors. Everything it
declares is qualified under its path, so two instances of the same module
never collide, and resolve() only sees the scope's own names.

Usage:
    @module
    def histogram(scope, data):
        bins = scope.input("bins", 10, label="Number of bins")
        scope.output("plot", lambda: draw(data.get(), bins.get()), show)
        return bins

    root = Scope(Registry())
    bins1 = histogram(root, "hist1", data)   # declares "hist1-bins", "hist1-plot"
    bins2 = histogram(root, "hist2", data)   # declares "hist2-bins", "hist2-plot"

Teardown (dispose) releases children first, then the scope's own cells and
outputs, then its registry entries.
"""

from __future__ import annotations

import functools
import logging
from typing import Callable, Concatenate, ParamSpec, TypeVar

from scopefx import _tracking
from scopefx.computed import Cell
from scopefx.errors import InvalidNameError, ScopeDisposedError
from scopefx.namespace import NS, PathLike, ScopePath, as_path, validate_name
from scopefx.observable import Value
from scopefx.reaction import Output
from scopefx.registry import Binding, Registry

logger = logging.getLogger("scopefx.scope")

T = TypeVar("T")
P = ParamSpec("P")
R = TypeVar("R")


class Scope:
    """One node of the scope tree."""

    def __init__(self, registry: Registry, path: PathLike = None, *, parent: Scope | None = None) -> None:
        self._registry = registry
        self._path = as_path(path)
        self._ns = NS(self._path)
        self._parent = parent
        self._children: dict[str, Scope] = {}
        self._disposed = False

    @property
    def path(self) -> ScopePath:
        return self._path

    @property
    def id(self) -> str:
        """This scope's own id; empty for the root."""
        return self._path[-1] if self._path else ""

    @property
    def registry(self) -> Registry:
        return self._registry

    @property
    def parent(self) -> Scope | None:
        return self._parent

    @property
    def children(self) -> dict[str, Scope]:
        return dict(self._children)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def ns(self, name: str | None = None) -> str:
        """Qualify name under this scope. ns() alone returns the scope's own prefix."""
        return self._ns(name)

    # --- Nesting ---

    def child(self, scope_id: str) -> Scope:
        """Create a nested scope. Ids are unique among live siblings."""
        self._check_live()
        validate_name(scope_id, "scope id")
        if scope_id in self._children:
            raise InvalidNameError(f"scope {scope_id!r} already exists in {self.ns() or '<root>'}")
        scope = Scope(self._registry, self._path + (scope_id,), parent=self)
        self._children[scope_id] = scope
        logger.debug("Scope %s created", scope.ns())
        return scope

    def mount(
        self,
        scope_id: str,
        server_fn: Callable[Concatenate[Scope, P], R],
        *args: P.args,
        **kwargs: P.kwargs,
    ) -> R:
        """Create child scope_id and run server_fn(child, *args, **kwargs) in it."""
        scope = self.child(scope_id)
        try:
            return server_fn(scope, *args, **kwargs)
        except Exception:
            scope.dispose()
            raise

    # --- Declarations ---

    def declare(self, name: str, target: T, *, kind: str = "value", label: str | None = None) -> Binding[T]:
        """Register target under this scope. Redeclaring a name replaces it."""
        self._check_live()
        previous = self._current(name)
        binding = self._registry.declare(self.ns(name), target, kind=kind, label=label)
        if previous is not None and previous.target is not target:
            _release(previous.target)
        return binding

    def input(self, name: str, initial: T, *, label: str | None = None) -> Binding[Value[T]]:
        """Declare a settable input value."""
        return self.declare(name, Value(initial), kind="input", label=label)

    def cell(self, name: str, fn: Callable[[], T]) -> Binding[Cell[T]]:
        """Declare a named memoized cell."""
        return self.declare(name, Cell(fn), kind="cell")

    def output(
        self,
        name: str,
        data_fn: Callable[[], T],
        render_fn: Callable[[T], None],
    ) -> Binding[Output[T]]:
        """Declare an output and render it once immediately.

        If the first render fails, the declaration is rolled back: any
        output previously bound to name stays in place.
        """
        self._check_live()
        out = Output(data_fn, render_fn)
        previous = self._current(name)
        binding = self._registry.declare(self.ns(name), out, kind="output")
        try:
            out._run()
        except Exception:
            out.dispose()
            if previous is not None:
                self._registry.restore(previous)
            else:
                self._registry.remove(binding)
            raise
        if previous is not None:
            _release(previous.target)
        _tracking.flush()
        return binding

    def resolve(self, name: str):
        """Find a binding declared in this scope. Other scopes are invisible."""
        return self._registry.resolve(self._path, name)

    def bindings(self) -> list[Binding]:
        return self._registry.bindings(self._path)

    # --- Teardown ---

    def dispose(self) -> None:
        if self._disposed:
            return
        for child in list(self._children.values()):
            child.dispose()
        for binding in self._registry.remove_scope(self._path):
            _release(binding.target)
        self._disposed = True
        if self._parent is not None:
            self._parent._children.pop(self.id, None)
        logger.debug("Scope %s disposed", self.ns() or "<root>")

    def __enter__(self) -> Scope:
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()

    def _current(self, name: str) -> Binding | None:
        if self.ns(name) in self._registry:
            return self._registry.binding(self._path, name)
        return None

    def _check_live(self) -> None:
        if self._disposed:
            raise ScopeDisposedError(f"scope {self.ns() or '<root>'} has been disposed")

    def __repr__(self) -> str:
        return f"Scope({self.ns() or '<root>'})"


def module(server_fn: Callable[Concatenate[Scope, P], R]) -> Callable[Concatenate[Scope, str, P], R]:
    """Decorator: turn server_fn(scope, ...) into mount(parent, scope_id, ...).

    Each call mounts a fresh child scope under parent, so the same module can
    be instantiated any number of times with different ids.
    """

    @functools.wraps(server_fn)
    def mount(parent: Scope, scope_id: str, *args: P.args, **kwargs: P.kwargs) -> R:
        return parent.mount(scope_id, server_fn, *args, **kwargs)

    return mount


def _release(target) -> None:
    # Render callbacks and other plain targets have nothing to release.
    dispose = getattr(target, "dispose", None)
    if dispose is not None:
        dispose()
