"""Exception hierarchy shared by the migration and foldering engines."""

from __future__ import annotations

from pathlib import PurePath


class PatcherError(RuntimeError):
    """Base class for every error raised by :mod:`asset_patcher`."""


class ConfigError(PatcherError):
    """Raised when a configuration file or type catalog is malformed."""


class MissingSourceError(PatcherError):
    """Raised when the ripper output root does not exist."""

    def __init__(self, path: PurePath):
        super().__init__(f"Source root not found: {PurePath(path).as_posix()}")
        self.path = path


class MissingReferenceError(PatcherError):
    """Raised when an asset the operation depends on cannot be located."""

    def __init__(self, what: str, where: PurePath | str | None = None):
        message = f"Could not find {what}"
        if where is not None:
            message = f"{message} in {PurePath(where).as_posix()}"
        super().__init__(message)
        self.what = what
        self.where = where


class CaseCollisionError(PatcherError):
    """Raised when a file name folds onto an existing directory name."""

    def __init__(self, path: PurePath, existing: PurePath):
        message = (
            f"{PurePath(path).as_posix()} collides with directory "
            f"{PurePath(existing).as_posix()} on a case-insensitive filesystem"
        )
        super().__init__(message)
        self.path = path
        self.existing = existing


class AssetStoreError(PatcherError):
    """Raised by asset stores when a single move, delete or folder call fails."""


__all__ = [
    "AssetStoreError",
    "CaseCollisionError",
    "ConfigError",
    "MissingReferenceError",
    "MissingSourceError",
    "PatcherError",
]
