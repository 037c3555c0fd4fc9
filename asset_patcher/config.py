from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import json
import re
import yaml

from .errors import ConfigError


DEFAULT_CATEGORY_MAPPINGS: Dict[str, str] = {
    "AnimationClip": "Animations/AnimationClips",
    "AnimatorController": "Animations/AnimatorControllers",
    "AudioClip": "Audio/AudioClips",
    "AudioMixerController": "Audio/AudioMixerControllers",
    "Cubemap": "Textures/Cubemaps",
    "Font": "Fonts",
    "Material": "Materials",
    "Mesh": "Meshes",
    "MonoBehaviour": "MonoBehaviour",
    "PhysicMaterial": "PhysicsMaterials",
    "PrefabInstance": "Prefabs",
    "RenderTexture": "Textures/RenderTextures",
    "Resources": "Resources",
    "Scenes": "Scenes",
    "Sprite": "Sprites",
    "Terrain": "Terrain",
    "Texture2D": "Textures/Texture2Ds",
    "Texture3D": "Textures/Texture3Ds",
    "VideoClip": "Videos",
}
DEFAULT_EXCLUDED_CATEGORIES: tuple[str, ...] = ("Scripts", "Shader")
DEFAULT_MINIMAL_EXCLUSIONS: tuple[str, ...] = (
    "Videos",
    "Audio/AudioClips",
    "Textures/Texture2Ds",
    "Textures/Texture3Ds",
)
DEFAULT_TRIVIAL_COMPONENTS: tuple[str, ...] = ("UnityEngine.Transform",)
DEFAULT_RESERVED_PREFIX = "Unity"
DEFAULT_IGNORED_BASE_TYPES: tuple[str, ...] = ("UnityEngine.Component", "UnityEngine.Object")


@dataclass
class PathsConfig:
    source_root: Path
    project_root: Path
    type_catalog: Path | None = None
    scene_list: Path | None = None


@dataclass
class MigrationConfig:
    mappings: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_CATEGORY_MAPPINGS))
    excluded_categories: tuple[str, ...] = DEFAULT_EXCLUDED_CATEGORIES
    minimal_copy: bool = False
    minimal_exclusions: tuple[str, ...] = DEFAULT_MINIMAL_EXCLUSIONS
    emulate_case_insensitive: Optional[bool] = None
    keep_suffixes: tuple[str, ...] = (".dll",)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "MigrationConfig":
        if not raw:
            return cls()
        mappings_raw = raw.get("mappings")
        if mappings_raw is None:
            mappings = dict(DEFAULT_CATEGORY_MAPPINGS)
        elif isinstance(mappings_raw, Mapping):
            mappings = {str(key): str(value) for key, value in mappings_raw.items()}
            if raw.get("extend_default_mappings", False):
                mappings = {**DEFAULT_CATEGORY_MAPPINGS, **mappings}
        else:
            raise ConfigError("migration.mappings must be a mapping of category -> folder")
        emulate = raw.get("emulate_case_insensitive")
        return cls(
            mappings=mappings,
            excluded_categories=_str_tuple(raw.get("excluded_categories"), DEFAULT_EXCLUDED_CATEGORIES),
            minimal_copy=bool(raw.get("minimal_copy", False)),
            minimal_exclusions=_str_tuple(raw.get("minimal_exclusions"), DEFAULT_MINIMAL_EXCLUSIONS),
            emulate_case_insensitive=None if emulate in (None, "auto") else bool(emulate),
            keep_suffixes=_str_tuple(raw.get("keep_suffixes"), (".dll",)),
        )


@dataclass
class SortConfig:
    """How one asset kind is queried and grouped into folders."""

    category: str
    query: str
    namespace_folders: bool = False
    fold_to_base: bool = False
    trivial_components: tuple[str, ...] = DEFAULT_TRIVIAL_COMPONENTS
    reserved_prefix: str = DEFAULT_RESERVED_PREFIX
    ignored_base_types: tuple[str, ...] = DEFAULT_IGNORED_BASE_TYPES

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None, defaults: "SortConfig") -> "SortConfig":
        if not raw:
            return defaults
        return cls(
            category=str(raw.get("category", defaults.category)),
            query=str(raw.get("query", defaults.query)),
            namespace_folders=bool(raw.get("namespace_folders", defaults.namespace_folders)),
            fold_to_base=bool(raw.get("fold_to_base", defaults.fold_to_base)),
            trivial_components=_str_tuple(raw.get("trivial_components"), defaults.trivial_components),
            reserved_prefix=str(raw.get("reserved_prefix", defaults.reserved_prefix)),
            ignored_base_types=_str_tuple(raw.get("ignored_base_types"), defaults.ignored_base_types),
        )


SCRIPTABLE_OBJECT_DEFAULTS = SortConfig(
    category="MonoBehaviour",
    query="ScriptableObject",
    namespace_folders=True,
)
PREFAB_DEFAULTS = SortConfig(
    category="PrefabInstance",
    query="GameObject",
    fold_to_base=True,
)


@dataclass
class LoggingConfig:
    level: str = "INFO"
    logfile: Path | None = None


@dataclass
class PatcherConfig:
    paths: PathsConfig
    migration: MigrationConfig
    scriptable_objects: SortConfig
    prefabs: SortConfig
    logging: LoggingConfig

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], base_dir: Path | None = None) -> "PatcherConfig":
        base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        paths_data = raw.get("paths", {}) or {}
        sorting_data = raw.get("sorting", {}) or {}
        logging_data = raw.get("logging", {}) or {}

        source_root = paths_data.get("source_root")
        project_root = paths_data.get("project_root")
        if not source_root or not project_root:
            raise ConfigError("paths.source_root and paths.project_root are required")

        paths = PathsConfig(
            source_root=_resolve(base_dir, source_root),
            project_root=_resolve(base_dir, project_root),
            type_catalog=_optional_path(base_dir, paths_data.get("type_catalog")),
            scene_list=_optional_path(base_dir, paths_data.get("scene_list")),
        )

        logging_cfg = LoggingConfig(
            level=str(logging_data.get("level", "INFO")).upper(),
            logfile=_optional_path(base_dir, logging_data.get("logfile")),
        )

        return cls(
            paths=paths,
            migration=MigrationConfig.from_mapping(raw.get("migration")),
            scriptable_objects=SortConfig.from_mapping(
                sorting_data.get("scriptable_objects"), SCRIPTABLE_OBJECT_DEFAULTS
            ),
            prefabs=SortConfig.from_mapping(sorting_data.get("prefabs"), PREFAB_DEFAULTS),
            logging=logging_cfg,
        )

    def sort_config(self, kind: str) -> SortConfig:
        if kind in {"scriptable_objects", "scriptable-objects", "so"}:
            return self.scriptable_objects
        if kind in {"prefabs", "prefab"}:
            return self.prefabs
        raise ConfigError(f"Unknown asset kind {kind!r}")


def read_document(path: Path, what: str = "Configuration file") -> Any:
    """Parse a YAML or JSON(C) document; read and parse failures become :class:`ConfigError`."""

    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"{what} not found: {path}") from None
    except OSError as exc:
        raise ConfigError(f"Could not read {path}: {exc}") from exc
    try:
        if path.suffix.lower() in {".json", ".jsonc"}:
            return json.loads(_strip_jsonc(text))
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Could not parse {path}: {exc}") from exc


def load_config(path: Path) -> PatcherConfig:
    path = Path(path)
    data = read_document(path)
    if not isinstance(data, dict):
        raise ConfigError("Configuration file must contain a mapping at the top level")
    return PatcherConfig.from_dict(data, base_dir=path.parent)


# string literals are matched first so comment markers inside them survive
_JSONC_TOKEN = re.compile(r'"(?:\\.|[^"\\])*"|//[^\r\n]*|/\*.*?(?:\*/|\Z)', re.DOTALL)


def _strip_jsonc(payload: str) -> str:
    return _JSONC_TOKEN.sub(lambda match: match.group(0) if match.group(0).startswith('"') else "", payload)


def _resolve(base_dir: Path, value: Any) -> Path:
    path = Path(str(value)).expanduser()
    return path if path.is_absolute() else base_dir / path


def _optional_path(base_dir: Path, value: Any) -> Path | None:
    if value in (None, "", False):
        return None
    return _resolve(base_dir, value)


def _str_tuple(value: Any, default: tuple[str, ...]) -> tuple[str, ...]:
    if value is None:
        return default
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, (list, tuple)):
        raise ConfigError(f"Expected a list of strings, got {type(value).__name__}")
    return tuple(str(item) for item in value)
