"""Run the patcher steps against a configured project."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .classify import Classifier, FolderPlan
from .config import PatcherConfig
from .errors import MissingReferenceError
from .foldering import FolderingEngine, FolderingReport
from .logging_utils import RunLogger, create_logger
from .mapping import MappingResolver, normalize_relative
from .migration import CleanupReport, MigrationEngine, MigrationReport, clear_destination, remove_subtree
from .patchers import (
    DIAGETIC_MIXER,
    ES3_DEFAULTS_ASSET,
    ES3_DEFAULTS_SCRIPT_META,
    PatchReport,
    bypass_mixer_effect,
    collect_scenes,
    order_scene_list,
    patch_guid_reference,
)
from .store.catalog import TypeCatalog
from .store.filesystem import FileSystemAssetStore
from .store.interfaces import AssetStoreProtocol


@dataclass
class PatcherPipeline:
    config: PatcherConfig
    store: AssetStoreProtocol
    logger: RunLogger

    @classmethod
    def from_config(
        cls,
        config: PatcherConfig,
        *,
        store: Optional[AssetStoreProtocol] = None,
        logger: Optional[RunLogger] = None,
    ) -> "PatcherPipeline":
        if store is None:
            catalog_path = config.paths.type_catalog
            catalog = TypeCatalog.load(catalog_path) if catalog_path else TypeCatalog()
            store = FileSystemAssetStore(catalog)
        if logger is None:
            logger = create_logger(config.logging.level, config.logging.logfile)
        return cls(config=config, store=store, logger=logger)

    @property
    def resolver(self) -> MappingResolver:
        return MappingResolver(self.config.migration.mappings)

    def category_root(self, category: str) -> Path:
        return self.config.paths.project_root / self.resolver.resolve_or_default(category)

    # ------------------------------------------------------------------
    def clear(self) -> CleanupReport:
        root = self.config.paths.project_root
        return self.logger.timed(
            "clear",
            lambda report: f"deleted {len(report.deleted)} file(s), kept {len(report.kept)}",
            clear_destination,
            root,
            self.config.migration.keep_suffixes,
        )

    def drop(self, relative: str) -> List[Path]:
        """Remove a vendored subtree from both the ripper output and the project."""

        relative = normalize_relative(relative)
        removed = [
            root / relative
            for root in (self.config.paths.source_root, self.config.paths.project_root)
            if remove_subtree(root / relative)
        ]
        self.logger.log("drop", f"{relative}: removed {len(removed)} folder(s)")
        return removed

    def migrate(self) -> MigrationReport:
        migration = self.config.migration
        engine = MigrationEngine(
            self.resolver,
            excluded_categories=migration.excluded_categories,
            minimal_copy=migration.minimal_copy,
            minimal_exclusions=migration.minimal_exclusions,
            emulate_case_insensitive=migration.emulate_case_insensitive,
        )
        report = self.logger.timed(
            "migrate",
            lambda result: result.summary(),
            engine.migrate,
            self.config.paths.source_root,
            self.config.paths.project_root,
        )
        for failure in report.failures:
            self.logger.log("migrate", f"{failure.source}: {failure.error}", level="ERROR")
        return report

    def plan(self, kind: str) -> FolderPlan:
        sort_cfg = self.config.sort_config(kind)
        root = self.category_root(sort_cfg.category)
        records = self.store.find_assets(sort_cfg.query, root)
        return Classifier.from_config(sort_cfg).classify(records, root)

    def sort(self, kind: str) -> FolderingReport:
        plan = self.plan(kind)
        report = self.logger.timed(
            "sort",
            lambda result: f"{kind}: {result.summary()}",
            FolderingEngine(self.store).apply_plan,
            plan,
        )
        self._log_failures("sort", report)
        return report

    def unsort(self, kind: str) -> FolderingReport:
        sort_cfg = self.config.sort_config(kind)
        root = self.category_root(sort_cfg.category)
        report = self.logger.timed(
            "unsort",
            lambda result: f"{kind}: {result.summary()}",
            FolderingEngine(self.store).revert_plan,
            root,
            sort_cfg.query,
        )
        self._log_failures("unsort", report)
        return report

    def patch(self) -> PatchReport:
        """Apply the post-migration fixes to known project files.

        Each fix runs independently; a missing input is logged and recorded
        without stopping the others.
        """

        return self.logger.timed("patch", lambda result: result.summary(), self._apply_patches)

    def _apply_patches(self) -> PatchReport:
        report = PatchReport()
        project_root = self.config.paths.project_root
        scene_list = self.config.paths.scene_list

        try:
            scenes = collect_scenes(self.category_root("Scenes"), project_root)
            report.scenes = order_scene_list(scenes)
        except MissingReferenceError as exc:
            self._patch_failed(report, exc)
        else:
            if scene_list is not None:
                scene_list.parent.mkdir(parents=True, exist_ok=True)
                scene_list.write_text("\n".join(report.scenes) + "\n", encoding="utf-8")

        try:
            report.guid = patch_guid_reference(
                self.category_root("Scripts").joinpath(*ES3_DEFAULTS_SCRIPT_META.parts),
                self.category_root("Resources").joinpath(*ES3_DEFAULTS_ASSET.parts),
            )
        except MissingReferenceError as exc:
            self._patch_failed(report, exc)

        try:
            report.bypassed_effects = bypass_mixer_effect(
                self.category_root("AudioMixerController") / DIAGETIC_MIXER
            )
        except MissingReferenceError as exc:
            self._patch_failed(report, exc)
        return report

    def _patch_failed(self, report: PatchReport, exc: MissingReferenceError) -> None:
        self.logger.log("patch", str(exc), level="ERROR")
        report.failures.append(str(exc))

    def _log_failures(self, step: str, report: FolderingReport) -> None:
        for failure in report.failures:
            self.logger.log(step, f"{failure.path}: {failure.error}", level="ERROR")


__all__ = ["PatcherPipeline"]
