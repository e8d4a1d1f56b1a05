"""Cells — memoized derived values with automatic dependency tracking.

A Cell wraps a function. When evaluated, it tracks which values and cells
the function reads and caches the result. When any dependency changes, the
cell is marked dirty; it recomputes on its next read.

States: CLEAN -> DIRTY on upstream invalidation, DIRTY -> COMPUTING on read,
COMPUTING -> CLEAN on success. Reading a cell that is already COMPUTING is a
circular dependency and raises CycleError.
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

from scopefx import _tracking
from scopefx._tracking import CellState, current_derivation, next_order, next_wave, run_tracked, track
from scopefx.errors import CycleError

T = TypeVar("T")

_UNSET = object()


class Cell(Generic[T]):
    """A derived value that auto-tracks dependencies and caches the result."""

    __slots__ = ("_order", "_fn", "_value", "_state", "_wave", "_dependencies", "_observers")

    def __init__(self, fn: Callable[[], T]) -> None:
        self._order = next_order()
        self._fn = fn
        self._value = _UNSET
        self._state = CellState.DIRTY
        self._wave = 0
        self._dependencies: set = set()
        self._observers: set = set()

    @property
    def state(self) -> CellState:
        return self._state

    @property
    def dependencies(self) -> frozenset:
        return frozenset(self._dependencies)

    @property
    def dependents(self) -> frozenset:
        return frozenset(self._observers)

    def get(self) -> T:
        """Read the cell. Recomputes first if dirty."""
        if self._state is CellState.COMPUTING:
            raise CycleError(f"circular dependency: {self!r} read while computing")
        track(self)
        if self._state is CellState.DIRTY:
            self._recompute()
        return self._value

    def _recompute(self) -> None:
        self._state = CellState.COMPUTING
        try:
            value = run_tracked(self, self._fn)
        except BaseException:
            self._state = CellState.DIRTY
            raise
        self._value = value
        self._state = CellState.CLEAN
        if current_derivation.get() is None:
            # Outermost computation: apply anything it invalidated.
            _tracking.flush()

    def _mark_dirty(self, wave: int) -> None:
        """Called when an upstream dependency changed.

        Dependents are reached even if this cell is already dirty: a failed
        recompute leaves it dirty, and its readers must still hear about
        the next upstream change.
        """
        if self._wave == wave:
            return
        self._wave = wave
        if self._state is CellState.COMPUTING:
            _tracking.defer(self)
            return
        self._state = CellState.DIRTY
        for observer in list(self._observers):
            observer._mark_dirty(wave)

    def _invalidate(self) -> None:
        """Explicit invalidation: dirty this cell and push to every dependent."""
        self._mark_dirty(next_wave())

    def _remove_observer(self, observer) -> None:
        self._observers.discard(observer)

    def dispose(self) -> None:
        """Disconnect from all dependencies. The cell recomputes from scratch if read again."""
        for dep in self._dependencies:
            dep._remove_observer(self)
        self._dependencies.clear()
        self._observers.clear()
        self._state = CellState.DIRTY
        self._value = _UNSET

    def __repr__(self) -> str:
        name = getattr(self._fn, "__name__", "cell")
        state = f"cached={self._value!r}" if self._state is CellState.CLEAN else self._state.value
        return f"Cell({name}, {state})"


def computed(fn: Callable[[], T]) -> Cell[T]:
    """Decorator/factory to create a Cell from a function.

    Usage:
        bins = Value(10)

        @computed
        def edges():
            return [i / bins.get() for i in range(bins.get() + 1)]

        edges.get()  # recomputed once, then memoized
        bins.set(20)
        edges.get()  # recomputed
    """
    return Cell(fn)
