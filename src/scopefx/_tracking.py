"""Dependency tracking and the pass loop — the heart of scopefx.

Uses contextvars to track which cells are read during a computation,
building the dependency graph automatically.

Invalidation is push (mark dirty, schedule outputs); recomputation is pull
(a dirty Cell recomputes on its next read, after its own dependencies have
been pulled clean). Scheduled outputs run in passes:

- a pass evaluates every pending output in declaration order, then commits
  all renders; an error during evaluation aborts the pass before any render
- invalidations raised during a pass, and invalidations of cells that were
  mid-computation, are applied after the pass and start a new one
- batches (@action / transaction()) hold passes until the outermost exits
"""

from __future__ import annotations

import contextvars
import enum
import itertools
import logging
from typing import TYPE_CHECKING, Callable, TypeVar

from scopefx.config import get_settings
from scopefx.errors import CycleError

if TYPE_CHECKING:
    from scopefx.computed import Cell
    from scopefx.reaction import Output, Reaction

    Derivation = Cell | Output | Reaction

logger = logging.getLogger("scopefx.tracking")

T = TypeVar("T")


class CellState(enum.Enum):
    CLEAN = "clean"
    DIRTY = "dirty"
    COMPUTING = "computing"


# The currently-evaluating derivation (cell or output).
# When set, any get() call registers itself as a dependency.
current_derivation: contextvars.ContextVar[Derivation | None] = contextvars.ContextVar(
    "current_derivation", default=None
)

# Creation sequence. Pending outputs run in this order within a pass.
_order_counter = itertools.count(1)

# Invalidation waves. One wave per invalidated node; a wave visits each cell
# at most once but always reaches every dependent, dirty or not.
_wave_counter = itertools.count(1)

# Batch depth counter. When > 0, passes are deferred.
_batch_depth: int = 0

_in_pass: bool = False

# Outputs scheduled for the next pass.
_pending: set[Output | Reaction] = set()

# Cells invalidated while COMPUTING, re-invalidated after the current pass.
_deferred: list[Cell] = []


def next_order() -> int:
    return next(_order_counter)


def next_wave() -> int:
    return next(_wave_counter)


def track(node) -> None:
    """Record an edge from node to the current derivation, if any."""
    derivation = current_derivation.get()
    if derivation is not None:
        node._observers.add(derivation)
        derivation._dependencies.add(node)


def run_tracked(derivation, fn: Callable[[], T]) -> T:
    """Call fn with derivation as the tracking target.

    Edges recorded by fn replace the derivation's previous dependencies.
    If fn raises, the previous edges are kept so the derivation still hears
    about changes to whatever it depended on before.
    """
    old = derivation._dependencies
    derivation._dependencies = set()
    token = current_derivation.set(derivation)
    try:
        result = fn()
    except BaseException:
        derivation._dependencies |= old
        raise
    finally:
        current_derivation.reset(token)
    for dep in old - derivation._dependencies:
        dep._remove_observer(derivation)
    return result


def begin_batch() -> None:
    """Enter a batching scope. Nested batches are supported."""
    global _batch_depth
    _batch_depth += 1


def end_batch(abort: bool = False) -> None:
    """Exit a batching scope. When the outermost scope exits, run pending passes.

    With abort=True the outermost exit drops the queued work instead, so
    nothing from the failed batch is rendered. A nested abort leaves the
    decision to the enclosing batch.
    """
    global _batch_depth
    _batch_depth -= 1
    if _batch_depth > 0:
        return
    if abort:
        logger.debug("Batch aborted; dropped %d pending outputs", len(_pending))
        _pending.clear()
        _deferred.clear()
    else:
        flush()


def schedule(derivation: Output | Reaction) -> None:
    """Queue an output for the next pass."""
    _pending.add(derivation)


def defer(cell: Cell) -> None:
    if cell not in _deferred:
        _deferred.append(cell)


def invalidate(node) -> None:
    """Mark node and everything downstream of it dirty, then run a pass.

    node may be a Value or a Cell. A Cell that is currently computing is
    invalidated only after the running pass completes.
    """
    node._invalidate()
    flush()


def flush() -> None:
    """Run passes until nothing is pending.

    No-op inside a batch, inside a running pass, or while a computation is
    on the stack; the outermost of those flushes when it finishes.
    """
    global _in_pass
    if _batch_depth > 0 or _in_pass or current_derivation.get() is not None:
        return
    if not _pending and not _deferred:
        return

    limit = get_settings().max_passes
    passes = 0
    _in_pass = True
    try:
        while _pending or _deferred:
            passes += 1
            if passes > limit:
                raise CycleError(f"reactive graph did not settle after {limit} passes")
            _release_deferred()
            batch = sorted(_pending, key=lambda d: d._order)
            _pending.clear()
            _run_pass(batch)
    except Exception as exc:
        logger.debug("Reactive pass %d aborted: %r", passes, exc)
        _pending.clear()
        _deferred.clear()
        raise
    finally:
        _in_pass = False


def _release_deferred() -> None:
    cells = list(_deferred)
    _deferred.clear()
    for cell in cells:
        cell._invalidate()


def _run_pass(batch: list) -> None:
    # Evaluate everything first so a failure leaves every render untouched.
    results = [(d, d._evaluate()) for d in batch if not d.disposed]
    for derivation, value in results:
        derivation._commit(value)


def get_pending_count() -> int:
    """Number of outputs waiting to run. Useful for testing."""
    return len(_pending)
