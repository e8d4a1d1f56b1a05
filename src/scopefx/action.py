"""Actions and transactions — batched state mutations.

Wrapping mutations in an @action or `with transaction()` defers every
reactive pass until the outermost scope exits, so outputs see all the
changes of one external event at once.

If the outermost batch exits with an exception, no pass runs: outputs keep
their last rendering instead of showing a half-applied update. The values
already set stay set, and the next change to them re-renders as usual.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Callable, Iterator, ParamSpec, TypeVar

from scopefx._tracking import begin_batch, end_batch

P = ParamSpec("P")
R = TypeVar("R")


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: batch all value mutations inside fn.

    Outputs only re-render after fn returns, not during, and not at all if
    fn raises.

    Usage:
        lo = Value(0)
        hi = Value(10)

        @action
        def set_range(a, b):
            lo.set(a)
            hi.set(b)
            # outputs see both changes at once
    """

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        with transaction():
            return fn(*args, **kwargs)

    return wrapper


@contextmanager
def transaction() -> Iterator[None]:
    """Context manager for batching mutations.

    Usage:
        with transaction():
            lo.set(1)
            hi.set(2)
            # outputs re-render here, after both are set
    """
    begin_batch()
    try:
        yield
    except BaseException:
        end_batch(abort=True)
        raise
    end_batch()
