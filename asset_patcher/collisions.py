"""Case-insensitive filesystem emulation for destination paths.

The ripper writes its output on a case-insensitive filesystem, where
``Foo.asset`` and ``foo.asset`` are the same file and the second write gets a
numbered name.  On a case-sensitive host both names would survive, so the
tracker reproduces the numbering: the first writer keeps its name, and each
later writer to the same folded path gets ``_0``, ``_1``, ... inserted before
the extension chain.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path, PurePath
from typing import Dict, Optional, TypeVar

from .errors import CaseCollisionError

LOGGER = logging.getLogger("asset_patcher.collisions")

P = TypeVar("P", bound=PurePath)


def fold(path: PurePath) -> str:
    return path.as_posix().lower()


def split_name(name: str) -> tuple[str, str]:
    """Split ``name`` at its first dot into stem and extension chain."""

    stem, dot, extension = name.partition(".")
    return stem, extension if dot else ""


def suffixed(path: P, counter: int) -> P:
    stem, extension = split_name(path.name)
    name = f"{stem}_{counter}.{extension}" if extension else f"{stem}_{counter}"
    return path.with_name(name)


class CollisionTracker:
    """Run-scoped registry of destination paths.

    With ``enabled=False`` the tracker is a passthrough, which is the right
    behaviour on a host whose filesystem already folds case.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._counters: Dict[str, int] = {}
        self._files: Dict[str, PurePath] = {}
        self._directories: Dict[str, PurePath] = {}

    def register(self, candidate: P) -> P:
        if not self.enabled:
            return candidate
        key = fold(candidate)
        existing_dir = self._directories.get(key)
        if existing_dir is not None:
            raise CaseCollisionError(candidate, existing_dir)
        count = self._counters.get(key)
        if count is None:
            self._claim(key, candidate)
            return candidate
        while True:
            final = suffixed(candidate, count)
            count += 1
            final_key = fold(final)
            if final_key not in self._counters and final_key not in self._directories:
                break
        self._counters[key] = count
        # synthesized names are registered like real ones
        self._claim(final_key, final)
        LOGGER.debug("case collision: %s -> %s", candidate.as_posix(), final.name)
        return final

    def _claim(self, key: str, path: P) -> None:
        self._counters[key] = 0
        self._files[key] = path

    def check_directory(self, directory: PurePath) -> None:
        """Raise :class:`CaseCollisionError` if ``directory`` or a parent folds onto a file."""

        if not self.enabled:
            return
        for current in (directory, *directory.parents):
            existing_file = self._files.get(fold(current))
            if existing_file is not None:
                raise CaseCollisionError(existing_file, current)

    def register_directory(self, directory: PurePath) -> None:
        """Remember ``directory`` and each of its parents as folders."""

        if not self.enabled:
            return
        self.check_directory(directory)
        for current in (directory, *directory.parents):
            key = fold(current)
            if key in self._directories:
                break
            self._directories[key] = current

    def count_for(self, candidate: PurePath) -> Optional[int]:
        return self._counters.get(fold(candidate))

    def reset(self) -> None:
        self._counters.clear()
        self._files.clear()
        self._directories.clear()

    def __len__(self) -> int:
        return len(self._counters)


def host_is_case_sensitive(probe_dir: Optional[Path] = None) -> bool:
    """Return whether ``probe_dir`` (default: cwd) sits on a case-sensitive filesystem.

    Falls back to the platform convention when the directory name has no
    letters to swap.
    """

    probe = Path(probe_dir) if probe_dir is not None else Path.cwd()
    if not probe.name:
        return sys.platform.startswith("linux")
    swapped = probe.with_name(probe.name.swapcase())
    if swapped == probe or not probe.exists():
        return sys.platform.startswith("linux")
    try:
        return not (swapped.exists() and swapped.samefile(probe))
    except OSError:  # pragma: no cover - unreadable parent
        return sys.platform.startswith("linux")


__all__ = [
    "CollisionTracker",
    "fold",
    "host_is_case_sensitive",
    "split_name",
    "suffixed",
]
