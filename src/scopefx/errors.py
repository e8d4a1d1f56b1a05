"""Exceptions raised by scopefx. None of them are recovered internally."""


class ScopeError(Exception):
    """Base class for all scopefx errors."""


class InvalidNameError(ScopeError, ValueError):
    """A scope id or local name is empty, not a string, or contains the separator."""


class NotFoundError(ScopeError, LookupError):
    """A name is unknown, or lies outside the scope that tried to resolve it."""


class ScopeDisposedError(ScopeError, RuntimeError):
    """A declaration or mount was attempted on a scope that has been torn down."""


class CycleError(ScopeError, RuntimeError):
    """A cell was read while already computing, or the graph never settled."""
