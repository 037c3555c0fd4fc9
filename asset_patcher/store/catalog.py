"""Type manifests describing the assets in a migrated project folder.

A host editor knows the runtime type of every asset; outside of it we read the
same facts from a manifest::

    types:
      Game.Items.ItemData: {base: UnityEngine.ScriptableObject}
      UnityEngine.ScriptableObject: {base: UnityEngine.Object}
    assets:
      Sword.asset: {type: Game.Items.ItemData}
      Enemy.prefab:
        type: UnityEngine.GameObject
        components: [UnityEngine.Transform, Game.AI.EnemyAI]

Asset keys are file names; a key containing ``/`` is matched against the end
of the asset's posix path instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Any, Dict, Mapping, Optional

from ..config import read_document
from ..descriptors import TypeDescriptor
from ..errors import ConfigError


@dataclass(frozen=True)
class AssetTypeEntry:
    type: str
    components: tuple[str, ...] = ()


@dataclass
class TypeCatalog:
    bases: Dict[str, Optional[str]] = field(default_factory=dict)
    assets: Dict[str, AssetTypeEntry] = field(default_factory=dict)
    _cache: Dict[str, TypeDescriptor] = field(default_factory=dict, init=False, repr=False)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "TypeCatalog":
        if not raw:
            return cls()
        if not isinstance(raw, Mapping):
            raise ConfigError("Type catalog must be a mapping")
        types = raw.get("types") or {}
        asset_specs = raw.get("assets") or {}
        if not isinstance(types, Mapping) or not isinstance(asset_specs, Mapping):
            raise ConfigError("Type catalog sections 'types' and 'assets' must be mappings")
        bases: Dict[str, Optional[str]] = {}
        for name, spec in types.items():
            base = spec.get("base") if isinstance(spec, Mapping) else spec
            bases[str(name)] = str(base) if base else None
        assets: Dict[str, AssetTypeEntry] = {}
        for key, spec in asset_specs.items():
            if isinstance(spec, str):
                assets[str(key)] = AssetTypeEntry(type=spec)
                continue
            if not isinstance(spec, Mapping) or not spec.get("type"):
                raise ConfigError(f"Asset entry {key!r} must declare a type")
            components = tuple(str(item) for item in spec.get("components") or ())
            assets[str(key)] = AssetTypeEntry(type=str(spec["type"]), components=components)
        return cls(bases=bases, assets=assets)

    @classmethod
    def load(cls, path: Path) -> "TypeCatalog":
        return cls.from_mapping(read_document(path, "Type catalog"))

    def resolve(self, full_name: str) -> TypeDescriptor:
        """Return the descriptor for ``full_name`` with its base chain attached."""

        cached = self._cache.get(full_name)
        if cached is not None:
            return cached
        chain: list[str] = []
        current: Optional[str] = full_name
        while current is not None and current not in self._cache:
            if current in chain:
                raise ConfigError(f"Type hierarchy cycle through {current!r}")
            chain.append(current)
            current = self.bases.get(current)
        base = self._cache.get(current) if current is not None else None
        for name in reversed(chain):
            base = TypeDescriptor.parse(name, base=base)
            self._cache[name] = base
        return self._cache[full_name]

    def entry_for(self, path: PurePath) -> Optional[AssetTypeEntry]:
        entry = self.assets.get(path.name)
        if entry is not None:
            return entry
        posix = path.as_posix()
        for key, candidate in self.assets.items():
            if "/" in key and posix.endswith("/" + key.lstrip("/")):
                return candidate
        return None

    def describe(self, path: PurePath) -> Optional[tuple[TypeDescriptor, tuple[TypeDescriptor, ...]]]:
        entry = self.entry_for(path)
        if entry is None:
            return None
        components = tuple(self.resolve(name) for name in entry.components)
        return self.resolve(entry.type), components


__all__ = ["AssetTypeEntry", "TypeCatalog"]
