"""Binding registry — qualified names mapped to live cells and outputs.

A Registry is an ordinary object. Create one per session and hand it to the
root Scope; scopes are the only code that declares into it or removes from
it, and each scope only touches names qualified under its own path.

declare() returns a typed Binding handle. Prefer holding on to the handle
over looking names up again by string.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Generic, Iterator, TypeVar

from scopefx.errors import InvalidNameError, NotFoundError
from scopefx.namespace import PathLike, ScopePath, as_path, qualify, split

logger = logging.getLogger("scopefx.registry")

T = TypeVar("T")


@dataclass(frozen=True)
class Binding(Generic[T]):
    """Handle for one registry entry."""

    scope_path: ScopePath
    name: str
    target: T
    kind: str = "value"
    label: str | None = None

    @property
    def fqn(self) -> str:
        return qualify(self.scope_path, self.name)

    def get(self):
        """Shortcut for target.get() on value-like targets."""
        return self.target.get()


class Registry:
    """Mapping from fully-qualified names to bindings."""

    def __init__(self) -> None:
        self._entries: dict[str, Binding] = {}

    def declare(
        self,
        fqn: str,
        target: T,
        *,
        kind: str = "value",
        label: str | None = None,
    ) -> Binding[T]:
        """Register target under fqn. An existing entry is replaced."""
        scope_path, name = split(fqn)
        binding = Binding(scope_path, name, target, kind, label)
        if fqn in self._entries:
            logger.debug("Binding %s redeclared; previous %s entry replaced", fqn, self._entries[fqn].kind)
        self._entries[fqn] = binding
        return binding

    def resolve(self, scope_path: PathLike, local_name: str):
        """Look up local_name among the bindings declared directly in scope_path."""
        try:
            fqn = qualify(scope_path, local_name)
        except InvalidNameError as exc:
            raise NotFoundError(f"{local_name!r} cannot be resolved from scope {scope_path!r}: {exc}") from exc
        binding = self._entries.get(fqn)
        if binding is None:
            raise NotFoundError(f"no binding {local_name!r} in scope {as_path(scope_path)!r}")
        return binding.target

    def get(self, binding: Binding[T]) -> T:
        """Return the live target for a handle obtained from declare()."""
        current = self._entries.get(binding.fqn)
        if current is not binding:
            raise NotFoundError(f"binding {binding.fqn!r} is no longer registered")
        return binding.target

    def binding(self, scope_path: PathLike, local_name: str) -> Binding:
        """Like resolve(), but returns the Binding handle."""
        self.resolve(scope_path, local_name)
        return self._entries[qualify(scope_path, local_name)]

    def bindings(self, scope_path: PathLike = None) -> list[Binding]:
        """Bindings declared directly in scope_path, in declaration order."""
        path = as_path(scope_path)
        return [b for b in self._entries.values() if b.scope_path == path]

    def names(self) -> list[str]:
        return list(self._entries)

    def remove(self, binding: Binding) -> None:
        """Drop binding if it is still the live entry for its name."""
        if self._entries.get(binding.fqn) is binding:
            del self._entries[binding.fqn]

    def restore(self, binding: Binding) -> None:
        """Make a previously declared handle the live entry again."""
        self._entries[binding.fqn] = binding

    def remove_scope(self, scope_path: PathLike) -> list[Binding]:
        """Drop every binding declared directly in scope_path and return them."""
        removed = self.bindings(scope_path)
        for binding in removed:
            del self._entries[binding.fqn]
        return removed

    def __contains__(self, fqn: object) -> bool:
        return fqn in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Binding]:
        return iter(list(self._entries.values()))

    def __repr__(self) -> str:
        return f"Registry({len(self._entries)} bindings)"
