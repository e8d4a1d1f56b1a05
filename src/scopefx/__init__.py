"""scopefx: namespaced scopes and dependency-tracked reactive cells for Python."""

from importlib.metadata import version as _version

__version__ = _version("scopefx")

from scopefx._tracking import CellState, get_pending_count, invalidate
from scopefx.errors import ScopeError, ScopeDisposedError, InvalidNameError, NotFoundError, CycleError
from scopefx.config import Settings, configure, get_settings
from scopefx.namespace import NS, SEPARATOR, qualify, split
from scopefx.observable import Value, set_scheduler
from scopefx.computed import Cell, computed
from scopefx.reaction import Reaction, Output, autorun, reaction
from scopefx.action import action, transaction
from scopefx.registry import Binding, Registry
from scopefx.scope import Scope, module
from scopefx.watch import watch, WatchHandle
# textual bridge NOT auto-imported: opt-in only

__all__ = [
    "CellState",
    "get_pending_count",
    "invalidate",
    "ScopeError",
    "ScopeDisposedError",
    "InvalidNameError",
    "NotFoundError",
    "CycleError",
    "Settings",
    "configure",
    "get_settings",
    "NS",
    "SEPARATOR",
    "qualify",
    "split",
    "Value",
    "set_scheduler",
    "Cell",
    "computed",
    "Reaction",
    "Output",
    "autorun",
    "reaction",
    "action",
    "transaction",
    "Binding",
    "Registry",
    "Scope",
    "module",
    "watch",
    "WatchHandle",
]
