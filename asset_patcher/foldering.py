"""Move classified records into per-type folders and back.

Both directions run inside one bulk-edit scope of the asset store so the host
only re-indexes once, and the scope is closed even when a step raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import List, Set

from .classify import FolderPlan
from .errors import AssetStoreError
from .store.interfaces import AssetRecord, AssetStoreProtocol, bulk_edit

LOGGER = logging.getLogger("asset_patcher.foldering")


@dataclass(frozen=True)
class FolderingFailure:
    path: PurePath
    error: str


@dataclass
class FolderingReport:
    moved: List[tuple[PurePath, PurePath]] = field(default_factory=list)
    unchanged: int = 0
    created_folders: List[PurePath] = field(default_factory=list)
    deleted_folders: List[PurePath] = field(default_factory=list)
    failures: List[FolderingFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def summary(self) -> str:
        return (
            f"{len(self.moved)} moved, {self.unchanged} already in place, "
            f"{len(self.created_folders)} folder(s) created, "
            f"{len(self.deleted_folders)} deleted, {len(self.failures)} failed"
        )


class FolderingEngine:
    def __init__(self, store: AssetStoreProtocol) -> None:
        self.store = store

    def apply_plan(self, plan: FolderPlan) -> FolderingReport:
        report = FolderingReport()
        visited: Set[PurePath] = set()
        with bulk_edit(self.store):
            for group in plan.foldered_groups():
                LOGGER.info("%s -> %d", group.type.full_name, len(group.members))
                try:
                    self._ensure_folder(plan.root, group.folder, visited, report)
                except AssetStoreError as exc:
                    LOGGER.error("%s", exc)
                    report.failures.append(FolderingFailure(group.folder, str(exc)))
                    continue
                for record in group.members:
                    self._move_into(record, group.folder, report)
        LOGGER.info("sorted %s: %s", plan.root, report.summary())
        return report

    def revert_plan(self, root: PurePath, query: str) -> FolderingReport:
        """Move every ``query`` record below ``root`` back to ``root`` and drop subfolders.

        A subfolder that still holds a record which failed to move is kept so
        nothing is deleted along with it.
        """

        report = FolderingReport()
        with bulk_edit(self.store):
            records = self.store.find_assets(query, root)
            for record in records:
                self._move_into(record, root, report)
            blocked = [failure.path for failure in report.failures]
            for folder in self.store.get_sub_folders(root):
                if any(folder in path.parents for path in blocked):
                    LOGGER.warning("keeping %s: it still holds unmoved assets", folder)
                    continue
                try:
                    self.store.delete_asset(folder)
                except AssetStoreError as exc:
                    LOGGER.error("%s", exc)
                    report.failures.append(FolderingFailure(folder, str(exc)))
                    continue
                report.deleted_folders.append(folder)
        LOGGER.info("unsorted %s: %s", root, report.summary())
        return report

    def _ensure_folder(
        self,
        root: PurePath,
        folder: PurePath,
        visited: Set[PurePath],
        report: FolderingReport,
    ) -> None:
        current = root
        for part in folder.relative_to(root).parts:
            parent, current = current, current / part
            if current in visited:
                continue
            visited.add(current)
            if not self.store.is_valid_folder(current):
                LOGGER.debug("creating folder %s in %s", part, parent)
                self.store.create_folder(parent, part)
                report.created_folders.append(current)

    def _move_into(self, record: AssetRecord, folder: PurePath, report: FolderingReport) -> None:
        try:
            source = self.store.get_path(record)
            destination = folder / source.name
            if source == destination:
                report.unchanged += 1
                return
            self.store.move_asset(source, destination)
        except (AssetStoreError, OSError) as exc:
            LOGGER.error("%s", exc)
            failed_path = self._safe_path(record)
            report.failures.append(FolderingFailure(failed_path, str(exc)))
            return
        LOGGER.debug("%s -> %s", source, destination)
        report.moved.append((source, destination))

    def _safe_path(self, record: AssetRecord) -> PurePath:
        try:
            return self.store.get_path(record)
        except AssetStoreError:
            return PurePath(record.guid)


__all__ = ["FolderingEngine", "FolderingFailure", "FolderingReport"]
