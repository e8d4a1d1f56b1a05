"""Namespace allocation — turning (scope path, local name) into one identifier.

A scope path is a tuple of scope ids, outermost first. Qualified names join
the path and the local name with SEPARATOR, which is reserved: it may not
appear inside any id or name, so qualification is injective and split()
recovers the original pair.

    qualify("hist1", "bins")            -> "hist1-bins"
    qualify(("app", "hist1"), "bins")   -> "app-hist1-bins"
    qualify((), "bins")                 -> "bins"
"""

from __future__ import annotations

from typing import Iterable, Union

from scopefx.errors import InvalidNameError

SEPARATOR = "-"

ScopePath = tuple[str, ...]
PathLike = Union[str, Iterable[str], None]


def validate_name(name: object, what: str = "name") -> str:
    """Return name unchanged if it is usable as a scope id or local name."""
    if not isinstance(name, str):
        raise InvalidNameError(f"{what} must be a string, got {type(name).__name__}")
    if not name:
        raise InvalidNameError(f"{what} must not be empty")
    if SEPARATOR in name:
        raise InvalidNameError(f"{what} {name!r} must not contain {SEPARATOR!r}")
    return name


def as_path(scope_path: PathLike) -> ScopePath:
    """Normalize a scope path.

    Accepts None or "" (top level), a qualified string ("app-hist1"),
    or an iterable of scope ids.
    """
    if scope_path is None:
        return ()
    if isinstance(scope_path, str):
        if scope_path == "":
            return ()
        parts = scope_path.split(SEPARATOR)
    else:
        parts = list(scope_path)
    return tuple(validate_name(p, "scope id") for p in parts)


def qualify(scope_path: PathLike, local_name: str) -> str:
    """Fully qualify local_name under scope_path."""
    path = as_path(scope_path)
    validate_name(local_name, "local name")
    return SEPARATOR.join(path + (local_name,))


def split(fqn: str) -> tuple[ScopePath, str]:
    """Inverse of qualify(): fqn -> (scope path, local name)."""
    if not isinstance(fqn, str) or not fqn:
        raise InvalidNameError(f"qualified name must be a non-empty string, got {fqn!r}")
    *path, local = fqn.split(SEPARATOR)
    return as_path(path), validate_name(local, "local name")


class NS:
    """Callable namespace bound to one scope path.

    Usage:
        ns = NS("hist1")
        ns("bins")   # "hist1-bins"
        ns()         # "hist1"
    """

    __slots__ = ("_path",)

    def __init__(self, scope_path: PathLike = None) -> None:
        self._path = as_path(scope_path)

    @property
    def path(self) -> ScopePath:
        return self._path

    def __call__(self, local_name: str | None = None) -> str:
        if local_name is None:
            return SEPARATOR.join(self._path)
        return qualify(self._path, local_name)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, NS) and other._path == self._path

    def __hash__(self) -> int:
        return hash(self._path)

    def __repr__(self) -> str:
        return f"NS({self()!r})"
