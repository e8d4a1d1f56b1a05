"""Values — input cells that track their readers.

When a Value is read inside a Cell or Output evaluation, the dependency is
automatically registered. When the Value changes, every dependent is marked
dirty and affected outputs are re-run in the next pass.

Thread safety: call set_scheduler() once from the main thread. After that,
any .set() from a background thread is auto-marshaled. Main-thread .set()
remains synchronous.
"""

from __future__ import annotations

import threading
from typing import Generic, TypeVar

from scopefx._tracking import CellState, invalidate, next_order, next_wave, track

T = TypeVar("T")

# ─── Auto-marshal ────────────────────────────────────────────────────────────
_scheduler = None
_scheduler_thread = None


def set_scheduler(scheduler) -> None:
    """Set the global thread scheduler for cross-thread Value mutations.

    Call once from the main/UI thread:
        scopefx.set_scheduler(app.call_from_thread)

    After this, any Value.set() from a background thread is automatically
    marshaled. Main-thread mutations remain synchronous.
    """
    global _scheduler, _scheduler_thread
    _scheduler = scheduler
    _scheduler_thread = threading.current_thread()


class Value(Generic[T]):
    """A settable reactive value. Always clean; it has nothing to compute."""

    __slots__ = ("_order", "_value", "_observers")

    def __init__(self, value: T) -> None:
        self._order = next_order()
        self._value = value
        self._observers: set = set()

    @property
    def state(self) -> CellState:
        return CellState.CLEAN

    @property
    def dependents(self) -> frozenset:
        return frozenset(self._observers)

    def get(self) -> T:
        """Read the value. If inside a computation, registers the dependency."""
        track(self)
        return self._value

    def set(self, value: T) -> None:
        """Write a new value. Auto-marshals from background threads."""
        if _scheduler is not None and threading.current_thread() != _scheduler_thread:
            _scheduler(lambda v=value: self._set_direct(v))
        else:
            self._set_direct(value)

    def _set_direct(self, value: T) -> None:
        old = self._value
        if old is not value and old != value:
            self._value = value
            invalidate(self)

    def _invalidate(self) -> None:
        wave = next_wave()
        for observer in list(self._observers):
            observer._mark_dirty(wave)

    def _remove_observer(self, observer) -> None:
        self._observers.discard(observer)

    def dispose(self) -> None:
        """Forget all readers. The value itself stays readable."""
        self._observers.clear()

    def __repr__(self) -> str:
        return f"Value({self._value!r})"
