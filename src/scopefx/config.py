"""Library settings, read once from the environment.

Override at runtime with configure(); tests should restore the previous
settings afterwards.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    """Tunable limits for the reactive pass loop."""

    # Consecutive passes allowed per external event before the graph is
    # considered cyclic (an output that keeps re-invalidating its inputs).
    max_passes: int = 100

    def __post_init__(self) -> None:
        if self.max_passes < 1:
            raise ValueError(f"max_passes must be >= 1, got {self.max_passes}")

    @classmethod
    def from_env(cls) -> Settings:
        return cls(max_passes=_env_int("SCOPEFX_MAX_PASSES", cls.max_passes))


_settings = Settings.from_env()


def get_settings() -> Settings:
    return _settings


def configure(**overrides) -> Settings:
    """Replace individual settings. Returns the previous settings.

    Usage:
        old = configure(max_passes=10)
        ...
        configure(**dataclasses.asdict(old))
    """
    global _settings
    previous = _settings
    _settings = replace(_settings, **overrides)
    return previous
