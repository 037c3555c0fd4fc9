"""Asset store backed by a real project folder.

Record types come from a :class:`~asset_patcher.store.catalog.TypeCatalog`.
Every move and delete carries the asset's ``.meta`` sidecar along, so the
host editor keeps its references intact when it next imports the folder.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path, PurePath
from typing import Dict, List, Optional, Sequence

from ..errors import AssetStoreError
from ..patchers import read_guid
from .catalog import TypeCatalog
from .interfaces import AssetRecord, AssetStoreProtocol

LOGGER = logging.getLogger("asset_patcher.store.filesystem")

META_SUFFIX = ".meta"


def meta_path(path: Path) -> Path:
    return path.with_name(path.name + META_SUFFIX)


class FileSystemAssetStore(AssetStoreProtocol):
    def __init__(self, catalog: TypeCatalog) -> None:
        self.catalog = catalog
        self._paths: Dict[str, Path] = {}
        self.editing_depth = 0
        self._pending: List[str] = []

    def find_assets(self, query: str, root: PurePath) -> Sequence[AssetRecord]:
        root = Path(root)
        if not root.is_dir():
            return []
        records: List[AssetRecord] = []
        for path in sorted(root.rglob("*")):
            if not path.is_file() or path.name.endswith(META_SUFFIX):
                continue
            described = self.catalog.describe(path)
            if described is None:
                continue
            type_, components = described
            if not type_.is_subtype_of(query):
                continue
            guid = self._guid_for(path)
            self._paths[guid] = path
            records.append(AssetRecord(guid=guid, type=type_, components=components))
        return records

    def _guid_for(self, path: Path) -> str:
        sidecar = meta_path(path)
        guid: Optional[str] = None
        if sidecar.is_file():
            guid = read_guid(sidecar.read_text(encoding="utf-8", errors="replace"))
        if guid is None or (guid in self._paths and self._paths[guid] != path):
            guid = path.resolve().as_posix()
        return guid

    def get_path(self, record: AssetRecord) -> Path:
        try:
            return self._paths[record.guid]
        except KeyError:
            raise AssetStoreError(f"Unknown asset {record.guid}") from None

    def move_asset(self, source: PurePath, destination: PurePath) -> None:
        source = Path(source)
        destination = Path(destination)
        if not source.is_file():
            raise AssetStoreError(f"No asset at {source}")
        if not destination.parent.is_dir():
            raise AssetStoreError(f"Destination folder does not exist: {destination.parent}")
        if destination.exists():
            raise AssetStoreError(f"Destination already exists: {destination}")
        try:
            shutil.move(str(source), str(destination))
            sidecar = meta_path(source)
            if sidecar.exists():
                shutil.move(str(sidecar), str(meta_path(destination)))
        except OSError as exc:
            raise AssetStoreError(f"Failed to move {source} -> {destination}: {exc}") from exc
        for guid, path in self._paths.items():
            if path == source:
                self._paths[guid] = destination
                break
        self._pending.append(destination.as_posix())

    def delete_asset(self, path: PurePath) -> None:
        path = Path(path)
        try:
            if path.is_dir():
                shutil.rmtree(path)
                self._paths = {
                    guid: asset for guid, asset in self._paths.items() if path not in asset.parents
                }
            elif path.is_file():
                path.unlink()
                self._paths = {guid: asset for guid, asset in self._paths.items() if asset != path}
            else:
                raise AssetStoreError(f"Nothing to delete at {path}")
            sidecar = meta_path(path)
            if sidecar.exists():
                sidecar.unlink()
        except OSError as exc:
            raise AssetStoreError(f"Failed to delete {path}: {exc}") from exc
        self._pending.append(path.as_posix())

    def create_folder(self, parent: PurePath, name: str) -> Path:
        parent = Path(parent)
        if not parent.is_dir():
            raise AssetStoreError(f"Parent folder does not exist: {parent}")
        folder = parent / name
        try:
            folder.mkdir(exist_ok=True)
        except OSError as exc:
            raise AssetStoreError(f"Failed to create {folder}: {exc}") from exc
        return folder

    def is_valid_folder(self, path: PurePath) -> bool:
        return Path(path).is_dir()

    def get_sub_folders(self, path: PurePath) -> Sequence[Path]:
        path = Path(path)
        if not path.is_dir():
            return []
        return sorted(child for child in path.iterdir() if child.is_dir())

    def start_asset_editing(self) -> None:
        self.editing_depth += 1

    def stop_asset_editing(self) -> None:
        if self.editing_depth == 0:
            raise AssetStoreError("stop_asset_editing called without a matching start")
        self.editing_depth -= 1
        if self.editing_depth == 0 and self._pending:
            LOGGER.info("bulk edit closed: %d path(s) changed", len(self._pending))
            self._pending.clear()


__all__ = ["FileSystemAssetStore", "META_SUFFIX", "meta_path"]
