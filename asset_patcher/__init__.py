from __future__ import annotations

"""Migrate ripped game assets into a project layout and sort them by type."""

from importlib import import_module
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - type checking helper
    from .config import PatcherConfig, load_config
    from .migration import migrate
    from .pipeline import PatcherPipeline

__all__ = ["PatcherConfig", "PatcherPipeline", "load_config", "migrate"]


def __getattr__(name: str) -> Any:  # pragma: no cover - dispatch helper
    if name in {"PatcherConfig", "load_config"}:
        module = import_module(".config", __name__)
    elif name == "migrate":
        module = import_module(".migration", __name__)
    elif name == "PatcherPipeline":
        module = import_module(".pipeline", __name__)
    else:
        raise AttributeError(name)

    value = getattr(module, name)
    globals()[name] = value
    return value
