"""Asset store capability and its host-free implementations."""

from .catalog import AssetTypeEntry, TypeCatalog
from .filesystem import FileSystemAssetStore
from .interfaces import AssetRecord, AssetStoreProtocol, bulk_edit
from .memory import InMemoryAssetStore

__all__ = [
    "AssetRecord",
    "AssetStoreProtocol",
    "AssetTypeEntry",
    "FileSystemAssetStore",
    "InMemoryAssetStore",
    "TypeCatalog",
    "bulk_edit",
]
