"""Group asset records by type and decide which folder each group gets.

Simple records group under their own type.  Composite records (prefabs)
group under their first meaningful component: the trivial host component is
skipped, components outside the reserved host namespace win, and a reserved
namespace component is used only when nothing else is attached.

A type with a single record does not get a folder of its own when its base
type already has a family of records; the record joins the base type's
folder instead.  The lookup goes one level up the hierarchy only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Dict, Iterable, List, Optional, Sequence

from .config import (
    DEFAULT_IGNORED_BASE_TYPES,
    DEFAULT_RESERVED_PREFIX,
    DEFAULT_TRIVIAL_COMPONENTS,
    SortConfig,
)
from .descriptors import TypeDescriptor
from .store.interfaces import AssetRecord

LOGGER = logging.getLogger("asset_patcher.classify")


@dataclass
class PlanGroup:
    type: TypeDescriptor
    members: List[AssetRecord]
    folder: PurePath
    folded: bool = False

    @property
    def needs_folder(self) -> bool:
        return len(self.members) > 1 or self.folded


@dataclass
class FolderPlan:
    root: PurePath
    groups: List[PlanGroup] = field(default_factory=list)
    unclassified: List[AssetRecord] = field(default_factory=list)
    unplaced: List[AssetRecord] = field(default_factory=list)

    def group_for(self, type_: TypeDescriptor | str) -> Optional[PlanGroup]:
        name = type_.full_name if isinstance(type_, TypeDescriptor) else type_
        for group in self.groups:
            if name in (group.type.full_name, group.type.name):
                return group
        return None

    def foldered_groups(self) -> List[PlanGroup]:
        return [group for group in self.groups if group.needs_folder]

    def destination_of(self, record: AssetRecord) -> PurePath:
        """Folder the record ends up in (the root for records left in place)."""

        for group in self.foldered_groups():
            if any(member.guid == record.guid for member in group.members):
                return group.folder
        return self.root


@dataclass
class Classifier:
    trivial_components: tuple[str, ...] = DEFAULT_TRIVIAL_COMPONENTS
    reserved_prefix: str = DEFAULT_RESERVED_PREFIX
    fold_to_base: bool = False
    namespace_folders: bool = False
    ignored_base_types: tuple[str, ...] = DEFAULT_IGNORED_BASE_TYPES

    @classmethod
    def from_config(cls, config: SortConfig) -> "Classifier":
        return cls(
            trivial_components=tuple(config.trivial_components),
            reserved_prefix=config.reserved_prefix,
            fold_to_base=config.fold_to_base,
            namespace_folders=config.namespace_folders,
            ignored_base_types=tuple(config.ignored_base_types),
        )

    def grouping_type(self, record: AssetRecord) -> Optional[TypeDescriptor]:
        if not record.is_composite:
            return record.type
        return self.first_component(record.components)

    def first_component(self, components: Sequence[TypeDescriptor]) -> Optional[TypeDescriptor]:
        reserved_fallback: Optional[TypeDescriptor] = None
        for component in components:
            if component.full_name in self.trivial_components:
                continue
            namespace = component.namespace or ""
            if self.reserved_prefix and namespace.startswith(self.reserved_prefix):
                if reserved_fallback is None:
                    reserved_fallback = component
                continue
            return component
        return reserved_fallback

    def classify(self, records: Iterable[AssetRecord], root: PurePath) -> FolderPlan:
        plan = FolderPlan(root=root)
        typed: List[tuple[AssetRecord, TypeDescriptor]] = []
        for record in records:
            type_ = self.grouping_type(record)
            if type_ is None:
                plan.unclassified.append(record)
                continue
            typed.append((record, type_))

        by_type: Dict[str, tuple[TypeDescriptor, List[AssetRecord]]] = {}
        for record, type_ in typed:
            by_type.setdefault(type_.full_name, (type_, []))[1].append(record)

        all_types = [type_ for _, type_ in typed]
        merged: Dict[str, PlanGroup] = {}
        for type_, members in by_type.values():
            target, folded = type_, False
            if self.fold_to_base and len(members) == 1 and type_.base is not None:
                base = type_.base
                family = sum(1 for other in all_types if other.is_subtype_of(base))
                if family > 1:
                    LOGGER.debug("%s folds into %s (%d related)", type_.full_name, base.full_name, family)
                    target, folded = base, True
            if target.full_name in self.ignored_base_types:
                plan.unplaced.extend(members)
                continue
            group = merged.get(target.full_name)
            if group is None:
                group = PlanGroup(type=target, members=[], folder=self.folder_for(root, target))
                merged[target.full_name] = group
                plan.groups.append(group)
            group.members.extend(members)
            group.folded = group.folded or folded

        for group in plan.groups:
            LOGGER.debug("%s -> %d member(s)", group.type.full_name, len(group.members))
        return plan

    def folder_for(self, root: PurePath, type_: TypeDescriptor) -> PurePath:
        namespace_root = type_.root_namespace if self.namespace_folders else None
        if namespace_root:
            return root / namespace_root / type_.name
        return root / type_.name


def classify(
    records: Iterable[AssetRecord],
    root: PurePath,
    classifier: Classifier | None = None,
) -> FolderPlan:
    return (classifier or Classifier()).classify(records, root)


__all__ = ["Classifier", "FolderPlan", "PlanGroup", "classify"]
