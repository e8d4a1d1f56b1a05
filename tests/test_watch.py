"""Tests for watch() — managed daemon threads with auto-marshaled Value.set()."""

import threading
import time

import scopefx.observable as _obs_mod
from scopefx import Registry, Scope, Value, reaction, watch


class _SyncScheduler:
    """Install a scheduler that runs marshaled calls inline, recording them."""

    def __init__(self, thread=None):
        self.calls = []
        self._thread = thread or threading.current_thread()

    def __enter__(self):
        self._old = _obs_mod._scheduler, _obs_mod._scheduler_thread
        _obs_mod._scheduler = self._run
        _obs_mod._scheduler_thread = self._thread
        return self

    def __exit__(self, *exc_info):
        _obs_mod._scheduler, _obs_mod._scheduler_thread = self._old

    def _run(self, fn):
        self.calls.append(fn)
        fn()


class TestAutoMarshal:
    """Value.set() auto-marshals from background threads."""

    def test_main_thread_is_synchronous(self):
        with _SyncScheduler() as sched:
            v = Value(0)
            v.set(42)
            assert v.get() == 42
            assert sched.calls == []

    def test_background_thread_marshals(self):
        with _SyncScheduler() as sched:
            v = Value(0)
            done = threading.Event()

            def bg():
                v.set(99)
                done.set()

            threading.Thread(target=bg).start()
            done.wait(timeout=2)
            assert len(sched.calls) == 1
            assert v.get() == 99

    def test_no_scheduler_is_direct(self):
        old = _obs_mod._scheduler, _obs_mod._scheduler_thread
        _obs_mod._scheduler, _obs_mod._scheduler_thread = None, None
        try:
            v = Value(0)
            v.set(42)
            assert v.get() == 42
        finally:
            _obs_mod._scheduler, _obs_mod._scheduler_thread = old


class TestWatch:
    """watch() runs a function in a daemon thread."""

    def test_function_runs(self):
        ran = threading.Event()
        watch(lambda handle: ran.set())
        assert ran.wait(timeout=2)

    def test_receives_handle(self):
        got = []
        handle = watch(got.append)
        handle.join(timeout=2)
        assert got == [handle]

    def test_dispose_flag(self):
        handle = watch(lambda handle: None)
        assert not handle.disposed
        handle.dispose()
        assert handle.disposed

    def test_loop_exits_on_dispose(self):
        with _SyncScheduler(threading.main_thread()):
            running = Value(True)

            def poll(handle):
                while not handle.disposed:
                    time.sleep(0.01)
                running.set(False)

            handle = watch(poll)
            assert running.get() is True
            handle.dispose()
            handle.join(timeout=2)
            assert running.get() is False


class TestWatchWithOutputs:
    """Integration: watch + scoped input + output."""

    def test_output_renders_on_watch_update(self):
        with _SyncScheduler(threading.main_thread()):
            scope = Scope(Registry()).child("job")
            status = scope.input("status", "running")
            rendered = []
            scope.output("banner", lambda: status.get().upper(), rendered.append)

            handle = watch(lambda handle: status.target.set("done"))
            handle.join(timeout=2)
            assert rendered == ["RUNNING", "DONE"]

    def test_reaction_fires_on_watch_update(self):
        with _SyncScheduler(threading.main_thread()):
            health = Value(True)
            effects = []
            reaction(lambda: health.get(), effects.append)

            handle = watch(lambda handle: health.set(False))
            handle.join(timeout=2)
            assert effects == [False]
