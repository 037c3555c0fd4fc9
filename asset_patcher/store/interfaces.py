from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import PurePath
from typing import Iterator, Protocol, Sequence, TypeVar

from ..descriptors import TypeDescriptor

S = TypeVar("S", bound="AssetStoreProtocol")


@dataclass(frozen=True)
class AssetRecord:
    """An asset known to the store.

    ``guid`` identifies the record across moves; ``components`` is non-empty
    only for composite records such as prefabs.
    """

    guid: str
    type: TypeDescriptor
    components: tuple[TypeDescriptor, ...] = ()

    @property
    def is_composite(self) -> bool:
        return bool(self.components)


class AssetStoreProtocol(Protocol):
    def find_assets(self, query: str, root: PurePath) -> Sequence[AssetRecord]:
        """Return records below ``root`` whose type derives from ``query``."""

    def get_path(self, record: AssetRecord) -> PurePath:
        ...

    def move_asset(self, source: PurePath, destination: PurePath) -> None:
        ...

    def delete_asset(self, path: PurePath) -> None:
        ...

    def create_folder(self, parent: PurePath, name: str) -> PurePath:
        ...

    def is_valid_folder(self, path: PurePath) -> bool:
        ...

    def get_sub_folders(self, path: PurePath) -> Sequence[PurePath]:
        ...

    def start_asset_editing(self) -> None:
        """Defer indexing until the matching :meth:`stop_asset_editing`."""

    def stop_asset_editing(self) -> None:
        ...


@contextmanager
def bulk_edit(store: S) -> Iterator[S]:
    """Bracket a batch of store mutations; the scope is closed on every exit path."""

    store.start_asset_editing()
    try:
        yield store
    finally:
        store.stop_asset_editing()


__all__ = ["AssetRecord", "AssetStoreProtocol", "bulk_edit"]
