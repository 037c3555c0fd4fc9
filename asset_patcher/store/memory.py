"""Dictionary-backed asset store for tests and dry runs."""

from __future__ import annotations

import itertools
import logging
from pathlib import PurePath, PurePosixPath
from typing import Dict, Iterable, List, Sequence

from ..descriptors import TypeDescriptor
from ..errors import AssetStoreError
from .interfaces import AssetRecord, AssetStoreProtocol

LOGGER = logging.getLogger("asset_patcher.store.memory")


def _is_under(path: PurePath, root: PurePath) -> bool:
    return path == root or root in path.parents


class InMemoryAssetStore(AssetStoreProtocol):
    """Keeps records, their paths and the folder set in plain dictionaries.

    ``move_count`` and ``editing_depth`` are exposed so callers can assert on
    idempotence and on the bulk-edit scope being closed.
    """

    def __init__(self, root: PurePath | str = "Assets") -> None:
        self.root = PurePosixPath(root)
        self._records: Dict[str, AssetRecord] = {}
        self._paths: Dict[str, PurePosixPath] = {}
        self._folders: set[PurePosixPath] = {self.root}
        self._ids = itertools.count(1)
        self.editing_depth = 0
        self.move_count = 0
        self.refresh_count = 0
        self.fail_moves: set[PurePosixPath] = set()

    # ------------------------------------------------------------------
    # Seeding helpers
    def add(
        self,
        path: PurePath | str,
        type_: TypeDescriptor,
        components: Iterable[TypeDescriptor] = (),
    ) -> AssetRecord:
        path = PurePosixPath(path)
        if path in self._paths.values():
            raise AssetStoreError(f"Asset already exists at {path}")
        self._ensure_parents(path.parent)
        record = AssetRecord(guid=f"{next(self._ids):032x}", type=type_, components=tuple(components))
        self._records[record.guid] = record
        self._paths[record.guid] = path
        return record

    def _ensure_parents(self, folder: PurePosixPath) -> None:
        for current in (folder, *folder.parents):
            if current in self._folders or current == PurePosixPath("."):
                break
            self._folders.add(current)

    def asset_paths(self) -> List[PurePosixPath]:
        return sorted(self._paths.values())

    def folders(self) -> List[PurePosixPath]:
        return sorted(self._folders)

    # ------------------------------------------------------------------
    # AssetStoreProtocol
    def find_assets(self, query: str, root: PurePath) -> Sequence[AssetRecord]:
        root = PurePosixPath(root)
        found = [
            (path, self._records[guid])
            for guid, path in self._paths.items()
            if _is_under(path, root) and self._records[guid].type.is_subtype_of(query)
        ]
        found.sort(key=lambda item: item[0])
        return [record for _, record in found]

    def get_path(self, record: AssetRecord) -> PurePosixPath:
        try:
            return self._paths[record.guid]
        except KeyError:
            raise AssetStoreError(f"Unknown asset {record.guid}") from None

    def move_asset(self, source: PurePath, destination: PurePath) -> None:
        source = PurePosixPath(source)
        destination = PurePosixPath(destination)
        if source in self.fail_moves:
            raise AssetStoreError(f"Move rejected for {source}")
        guid = self._guid_at(source)
        if destination.parent not in self._folders:
            raise AssetStoreError(f"Destination folder does not exist: {destination.parent}")
        if destination in self._paths.values():
            raise AssetStoreError(f"Destination already exists: {destination}")
        self._paths[guid] = destination
        self.move_count += 1
        LOGGER.debug("moved %s -> %s", source, destination)

    def delete_asset(self, path: PurePath) -> None:
        path = PurePosixPath(path)
        if path in self._folders:
            if path == self.root:
                raise AssetStoreError("Refusing to delete the store root")
            self._folders = {folder for folder in self._folders if not _is_under(folder, path)}
            doomed = [guid for guid, asset_path in self._paths.items() if _is_under(asset_path, path)]
        else:
            doomed = [self._guid_at(path)]
        for guid in doomed:
            del self._paths[guid]
            del self._records[guid]

    def create_folder(self, parent: PurePath, name: str) -> PurePosixPath:
        parent = PurePosixPath(parent)
        if parent not in self._folders:
            raise AssetStoreError(f"Parent folder does not exist: {parent}")
        folder = parent / name
        self._folders.add(folder)
        return folder

    def is_valid_folder(self, path: PurePath) -> bool:
        return PurePosixPath(path) in self._folders

    def get_sub_folders(self, path: PurePath) -> Sequence[PurePosixPath]:
        path = PurePosixPath(path)
        return sorted(folder for folder in self._folders if folder.parent == path and folder != path)

    def start_asset_editing(self) -> None:
        self.editing_depth += 1

    def stop_asset_editing(self) -> None:
        if self.editing_depth == 0:
            raise AssetStoreError("stop_asset_editing called without a matching start")
        self.editing_depth -= 1
        if self.editing_depth == 0:
            self.refresh_count += 1

    # ------------------------------------------------------------------
    def _guid_at(self, path: PurePosixPath) -> str:
        for guid, asset_path in self._paths.items():
            if asset_path == path:
                return guid
        raise AssetStoreError(f"No asset at {path}")


__all__ = ["InMemoryAssetStore"]
