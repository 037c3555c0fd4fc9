"""Copy ripper output categories into the project's folder layout.

The ripper exports one folder per asset category (``AudioClip``,
``Texture2D``, ...).  Each category is copied under the project folder that
the mapping table names for it; categories without a mapping are skipped.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Iterable, Iterator, List, Mapping, Optional

from .collisions import CollisionTracker, host_is_case_sensitive
from .config import DEFAULT_EXCLUDED_CATEGORIES, DEFAULT_MINIMAL_EXCLUSIONS
from .errors import CaseCollisionError, MissingSourceError
from .mapping import MappingResolver, normalize_relative

LOGGER = logging.getLogger("asset_patcher.migration")


@dataclass(frozen=True)
class FileEntry:
    source_path: Path
    category_folder: Path
    relative_path: PurePosixPath


@dataclass(frozen=True)
class MigrationFailure:
    source: Path
    destination: Optional[Path]
    error: str


@dataclass
class MigrationReport:
    copied: List[tuple[Path, Path]] = field(default_factory=list)
    migrated_categories: List[str] = field(default_factory=list)
    unmapped_categories: List[str] = field(default_factory=list)
    excluded_categories: List[str] = field(default_factory=list)
    minimal_skipped: List[str] = field(default_factory=list)
    renamed: List[tuple[Path, Path]] = field(default_factory=list)
    failures: List[MigrationFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def summary(self) -> str:
        return (
            f"{len(self.copied)} file(s) from {len(self.migrated_categories)} categories, "
            f"{len(self.renamed)} renamed, {len(self.unmapped_categories)} unmapped, "
            f"{len(self.failures)} failed"
        )


def iter_category_files(category_folder: Path) -> Iterator[FileEntry]:
    """Yield every file below ``category_folder`` in lexicographic order."""

    for path in sorted(p for p in category_folder.rglob("*") if p.is_file()):
        relative = PurePosixPath(path.relative_to(category_folder).as_posix())
        yield FileEntry(source_path=path, category_folder=category_folder, relative_path=relative)


class MigrationEngine:
    def __init__(
        self,
        resolver: MappingResolver,
        *,
        excluded_categories: Iterable[str] = DEFAULT_EXCLUDED_CATEGORIES,
        minimal_copy: bool = False,
        minimal_exclusions: Iterable[str] = DEFAULT_MINIMAL_EXCLUSIONS,
        emulate_case_insensitive: Optional[bool] = None,
    ) -> None:
        self.resolver = resolver
        self.excluded_categories = frozenset(excluded_categories)
        self.minimal_copy = minimal_copy
        self.minimal_exclusions = frozenset(normalize_relative(item) for item in minimal_exclusions)
        self.emulate_case_insensitive = emulate_case_insensitive

    def migrate(self, source_root: Path, destination_root: Path) -> MigrationReport:
        source_root = Path(source_root)
        destination_root = Path(destination_root)
        if not source_root.is_dir():
            raise MissingSourceError(source_root)

        emulate = self.emulate_case_insensitive
        if emulate is None:
            emulate = host_is_case_sensitive(destination_root if destination_root.exists() else None)
        tracker = CollisionTracker(enabled=emulate)
        report = MigrationReport()

        categories = sorted(p for p in source_root.iterdir() if p.is_dir())
        for category_folder in categories:
            name = category_folder.name
            if name in self.excluded_categories:
                report.excluded_categories.append(name)
                continue
            destination = self.resolver.resolve(name)
            if destination is None:
                LOGGER.debug("no mapping for category %s; skipping", name)
                report.unmapped_categories.append(name)
                continue
            if self.minimal_copy and destination in self.minimal_exclusions:
                LOGGER.info("minimal copy: skipping %s (%s)", name, destination)
                report.minimal_skipped.append(name)
                continue
            self._copy_category(category_folder, destination_root / destination, tracker, report)
            report.migrated_categories.append(name)

        LOGGER.info("migration finished: %s", report.summary())
        return report

    def _copy_category(
        self,
        category_folder: Path,
        target_root: Path,
        tracker: CollisionTracker,
        report: MigrationReport,
    ) -> None:
        for entry in iter_category_files(category_folder):
            raw = target_root.joinpath(*entry.relative_path.parts)
            try:
                tracker.check_directory(raw.parent)
                final = tracker.register(raw)
                tracker.register_directory(final.parent)
            except CaseCollisionError as exc:
                LOGGER.error("%s", exc)
                report.failures.append(MigrationFailure(entry.source_path, raw, str(exc)))
                continue
            if final != raw:
                report.renamed.append((raw, final))
            try:
                final.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(entry.source_path, final)
            except OSError as exc:
                LOGGER.error("Failed to copy %s to %s: %s", entry.source_path, final, exc)
                report.failures.append(MigrationFailure(entry.source_path, final, str(exc)))
                continue
            report.copied.append((entry.source_path, final))


def migrate(
    source_root: Path,
    destination_root: Path,
    mappings: MappingResolver | Mapping[str, str],
    excluded_categories: Iterable[str] = DEFAULT_EXCLUDED_CATEGORIES,
    minimal_exclusions: Iterable[str] = DEFAULT_MINIMAL_EXCLUSIONS,
    *,
    minimal_copy: bool = False,
    emulate_case_insensitive: Optional[bool] = None,
) -> MigrationReport:
    resolver = mappings if isinstance(mappings, MappingResolver) else MappingResolver(mappings)
    engine = MigrationEngine(
        resolver,
        excluded_categories=excluded_categories,
        minimal_copy=minimal_copy,
        minimal_exclusions=minimal_exclusions,
        emulate_case_insensitive=emulate_case_insensitive,
    )
    return engine.migrate(source_root, destination_root)


@dataclass
class CleanupReport:
    deleted: List[Path] = field(default_factory=list)
    kept: List[Path] = field(default_factory=list)
    failures: List[MigrationFailure] = field(default_factory=list)


def clear_destination(root: Path, keep_suffixes: Iterable[str] = (".dll",)) -> CleanupReport:
    """Delete every file below ``root`` except those ending in ``keep_suffixes``.

    Used before a fresh migration so stale copies from an earlier run do not
    linger.  A missing ``root`` is a no-op.
    """

    root = Path(root)
    report = CleanupReport()
    if not root.is_dir():
        return report
    keep = tuple(suffix.lower() for suffix in keep_suffixes)
    for path in sorted(p for p in root.rglob("*") if p.is_file()):
        if path.name.lower().endswith(keep):
            report.kept.append(path)
            continue
        try:
            path.unlink()
        except OSError as exc:
            LOGGER.warning("Could not delete %s: %s", path, exc)
            report.failures.append(MigrationFailure(path, None, str(exc)))
            continue
        report.deleted.append(path)
    return report


def remove_subtree(path: Path) -> bool:
    """Remove ``path`` and its ``.meta`` sidecar; returns ``False`` when absent."""

    path = Path(path)
    if not path.is_dir():
        LOGGER.debug("nothing to remove at %s", path)
        return False
    LOGGER.info("removing %s", path)
    shutil.rmtree(path)
    sidecar = path.with_name(path.name + ".meta")
    if sidecar.is_file():
        sidecar.unlink()
    return True


__all__ = [
    "CleanupReport",
    "FileEntry",
    "MigrationEngine",
    "MigrationFailure",
    "MigrationReport",
    "clear_destination",
    "iter_category_files",
    "migrate",
    "remove_subtree",
]
