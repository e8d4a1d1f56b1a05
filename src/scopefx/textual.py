"""Textual integration for scopefx. Opt-in — requires textual.

Qualified names double as widget ids (the separator is a hyphen), so a
scope's outputs and inputs map one-to-one onto widgets in the DOM.

Guard, NoMatches handling and thread marshalling are enforced here rather
than at call sites; core scopefx stays unaware of Textual.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, TypeVar

from textual.css.query import NoMatches

from scopefx.observable import Value
from scopefx.reaction import Output
from scopefx.registry import Binding
from scopefx.scope import Scope

T = TypeVar("T")

# Module-owned pause state, keyed by id(app) so multiple apps work in tests.
# Invariant: id present <-> inside a pause() block for that app.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded renders during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def widget_id(scope: Scope, name: str) -> str:
    """DOM id for a binding: the binding's qualified name."""
    return scope.ns(name)


def query(app, scope: Scope, name: str, widget_type=None):
    """Find the widget bound to name within scope."""
    return app.query_one(f"#{widget_id(scope, name)}", widget_type)


def output(
    app,
    scope: Scope,
    name: str,
    data_fn: Callable[[], T],
    render_fn: Callable[[T], None],
) -> Binding[Output[T]]:
    """scope.output() whose render safely reaches Textual widgets.

    Skips renders while paused or not running, ignores NoMatches from widget
    queries, and marshals cross-thread renders via call_from_thread.
    """
    _main = threading.get_ident()

    def _guarded(value):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, value)
        else:
            _safe(value)

    def _safe(value):
        try:
            render_fn(value)
        except NoMatches:
            pass

    return scope.output(name, data_fn, _guarded)


def input(scope: Scope, name: str, initial: T, *, label: str | None = None):
    """Declare an input and return (binding, handler).

    Attach handler to the widget's change message, e.g. from an
    ``on_input_changed`` method: ``handler(event)`` writes ``event.value``
    into the bound Value.
    """
    binding: Binding[Value[T]] = scope.input(name, initial, label=label)

    def handler(event) -> None:
        binding.target.set(event.value)

    return binding, handler
