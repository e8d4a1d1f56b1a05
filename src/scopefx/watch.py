"""watch() — long-running work outside the reactive graph.

Computations must not block, so slow work (polling, I/O) runs in a managed
daemon thread and reports back by setting Values. Value.set() auto-marshals
cross-thread mutations (see set_scheduler), so every pass still runs on the
scheduler thread.
"""

from __future__ import annotations

from threading import Thread
from typing import Callable


class WatchHandle:
    """Disposable handle for a managed daemon thread."""

    __slots__ = ("_disposed", "_thread")

    def __init__(self) -> None:
        self._disposed = False
        self._thread: Thread | None = None

    @property
    def disposed(self) -> bool:
        return self._disposed

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def dispose(self) -> None:
        """Signal the thread to stop. Check .disposed in your loop."""
        self._disposed = True


def watch(fn: Callable[[WatchHandle], None]) -> WatchHandle:
    """Run fn(handle) in a daemon thread. Returns the handle.

    Usage:
        status = scope.input("status", "idle").target

        def poll(handle):
            while not handle.disposed and not job_done():
                time.sleep(2)
            status.set("done")

        handle = watch(poll)
    """
    handle = WatchHandle()
    handle._thread = Thread(target=fn, args=(handle,), daemon=True)
    handle._thread.start()
    return handle
