"""Reactions and outputs — side effects triggered by state changes.

Unlike Cell (which is lazy and only evaluates on read), reactions and
outputs eagerly re-run in the next pass whenever a tracked dependency
changes.

Two flavors:
- autorun(fn): runs fn immediately, re-runs when anything it read changes.
- reaction(data_fn, render_fn): tracks data_fn, calls render_fn with the new
  value only when data_fn's result changes. Scope outputs are built on this.

Within a pass every data function is evaluated before any render is
committed (see _tracking._run_pass).
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

from scopefx import _tracking
from scopefx._tracking import next_order, run_tracked

T = TypeVar("T")


class Reaction:
    """A reactive side effect that re-runs when its dependencies change."""

    __slots__ = ("_order", "_fn", "_dependencies", "_disposed")

    def __init__(self, fn: Callable[[], None]) -> None:
        self._order = next_order()
        self._fn = fn
        self._dependencies: set = set()
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def dependencies(self) -> frozenset:
        return frozenset(self._dependencies)

    def _mark_dirty(self, wave: int) -> None:
        if not self._disposed:
            _tracking.schedule(self)

    def _evaluate(self) -> None:
        run_tracked(self, self._fn)

    def _commit(self, value) -> None:
        pass

    def _run(self) -> None:
        if self._disposed:
            return
        self._commit(self._evaluate())

    def dispose(self) -> None:
        """Stop this reaction. Disconnects from all dependencies."""
        self._disposed = True
        for dep in self._dependencies:
            dep._remove_observer(self)
        self._dependencies.clear()

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "active"
        return f"Reaction({getattr(self._fn, '__name__', 'fn')}, {state})"


class Output(Generic[T]):
    """Tracks data_fn; renders through render_fn when its result changes."""

    __slots__ = (
        "_order",
        "_data_fn",
        "_render_fn",
        "_dependencies",
        "_disposed",
        "_last_value",
        "_initialized",
    )

    def __init__(self, data_fn: Callable[[], T], render_fn: Callable[[T], None]) -> None:
        self._order = next_order()
        self._data_fn = data_fn
        self._render_fn = render_fn
        self._dependencies: set = set()
        self._disposed = False
        self._last_value = None
        self._initialized = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def dependencies(self) -> frozenset:
        return frozenset(self._dependencies)

    @property
    def last_value(self) -> T | None:
        """The most recent value data_fn produced and committed."""
        return self._last_value

    def _mark_dirty(self, wave: int) -> None:
        if not self._disposed:
            _tracking.schedule(self)

    def _evaluate(self) -> T:
        return run_tracked(self, self._data_fn)

    def _commit(self, value: T) -> None:
        if not self._initialized or value != self._last_value:
            self._last_value = value
            self._initialized = True
            self._render_fn(value)

    def _run(self) -> None:
        if self._disposed:
            return
        self._commit(self._evaluate())

    def dispose(self) -> None:
        self._disposed = True
        for dep in self._dependencies:
            dep._remove_observer(self)
        self._dependencies.clear()

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "active"
        return f"Output({getattr(self._data_fn, '__name__', 'fn')}, {state})"


def autorun(fn: Callable[[], None]) -> Reaction:
    """Run fn immediately, then re-run whenever anything it reads changes.

    Returns the Reaction (call .dispose() to stop).

    Usage:
        counter = Value(0)
        log = []

        r = autorun(lambda: log.append(counter.get()))
        # log == [0], ran immediately

        counter.set(1)
        # log == [0, 1]

        r.dispose()
        counter.set(2)
        # log == [0, 1], stopped
    """
    r = Reaction(fn)
    r._run()  # Initial run to establish dependencies
    _tracking.flush()
    return r


def reaction(
    data_fn: Callable[[], T],
    render_fn: Callable[[T], None],
    *,
    fire_immediately: bool = False,
) -> Output[T]:
    """Track data_fn; call render_fn when the result changes.

    Unlike autorun, render_fn only fires when data_fn's *return value*
    changes, not on every dependency notification.

    Usage:
        first = Value("Alice")
        last = Value("Smith")

        rendered = []
        out = reaction(
            lambda: f"{first.get()} {last.get()}",
            rendered.append,
        )
        # rendered == [], data_fn only established deps

        first.set("Bob")
        # rendered == ["Bob Smith"]

        out.dispose()
    """
    out = Output(data_fn, render_fn)
    if fire_immediately:
        out._run()
    else:
        # Establish deps, but suppress the initial render
        out._last_value = out._evaluate()
        out._initialized = True
    _tracking.flush()
    return out
