"""Line-oriented fixes applied to known files after migration.

These are plain text transforms over the serialized assets; none of them
needs to understand the asset format beyond a couple of ``key: value`` lines.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional

from .errors import MissingReferenceError

LOGGER = logging.getLogger("asset_patcher.patchers")

GUID_PATTERN = re.compile(r"guid:\s*(?P<guid>[0-9a-fA-F]{32})")

INIT_SCENE = "InitSceneLaunchOptions"
SCENE_SUFFIX = ".unity"
ES3_DEFAULTS_SCRIPT_META = PurePosixPath("es3/ES3Defaults.cs.meta")
ES3_DEFAULTS_ASSET = PurePosixPath("es3/ES3Defaults.asset")
DIAGETIC_MIXER = "Diagetic.mixer"


@dataclass
class PatchReport:
    scenes: List[str] = field(default_factory=list)
    guid: Optional[str] = None
    bypassed_effects: int = 0
    failures: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def summary(self) -> str:
        return (
            f"{len(self.scenes)} scene(s) ordered, guid {self.guid or 'unchanged'}, "
            f"{self.bypassed_effects} effect(s) bypassed, {len(self.failures)} failed"
        )


def read_guid(text: str) -> Optional[str]:
    match = GUID_PATTERN.search(text)
    return match.group("guid") if match else None


def collect_scenes(scenes_root: Path, relative_to: Path) -> List[str]:
    """Scene files below ``scenes_root`` as sorted posix paths relative to ``relative_to``."""

    scenes_root = Path(scenes_root)
    if not scenes_root.is_dir():
        return []
    return sorted(
        path.relative_to(relative_to).as_posix()
        for path in scenes_root.rglob(f"*{SCENE_SUFFIX}")
        if path.is_file()
    )


def order_scene_list(scenes: Iterable[str], first: str = INIT_SCENE) -> List[str]:
    """Return ``scenes`` with the launch scene moved to the front.

    The remaining scenes keep their relative order.
    """

    scenes = list(scenes)
    launch = next((scene for scene in scenes if first in scene), None)
    if launch is None:
        raise MissingReferenceError(f"scene {first}")
    return [launch, *(scene for scene in scenes if scene != launch)]


def patch_guid_reference(meta_path: Path, asset_path: Path) -> str:
    """Point every ``guid:`` reference in ``asset_path`` at the guid in ``meta_path``.

    Used when a serialized asset still references the script guid from the
    original build instead of the freshly imported script.  Returns the guid.
    """

    meta_path = Path(meta_path)
    asset_path = Path(asset_path)
    if not meta_path.is_file():
        raise MissingReferenceError(meta_path.name, meta_path.parent)
    if not asset_path.is_file():
        raise MissingReferenceError(asset_path.name, asset_path.parent)
    guid = read_guid(meta_path.read_text(encoding="utf-8"))
    if guid is None:
        raise MissingReferenceError(f"guid in {meta_path.name}", meta_path.parent)
    text = asset_path.read_text(encoding="utf-8")
    patched = GUID_PATTERN.sub(f"guid: {guid}", text)
    if patched != text:
        asset_path.write_text(patched, encoding="utf-8")
        LOGGER.info("patched guid reference in %s -> %s", asset_path.name, guid)
    return guid


def bypass_mixer_effect(mixer_path: Path, effect: str = "Echo") -> int:
    """Set ``m_Bypass: 1`` on each ``effect`` in an audio mixer file.

    For every ``m_EffectName: <effect>`` line, the next ``m_Bypass:`` line is
    replaced.  Trailing whitespace is stripped from every line.  Returns the
    number of effects bypassed.
    """

    mixer_path = Path(mixer_path)
    if not mixer_path.is_file():
        raise MissingReferenceError(mixer_path.name, mixer_path.parent)
    lines = mixer_path.read_text(encoding="utf-8").split("\n")
    marker = f"m_EffectName: {effect}"
    output: List[str] = []
    patched = 0
    i = 0
    while i < len(lines):
        output.append(lines[i].rstrip())
        if marker in lines[i]:
            j = i + 1
            while j < len(lines):
                if "m_Bypass:" in lines[j]:
                    output.append("  m_Bypass: 1")
                    patched += 1
                    break
                output.append(lines[j].rstrip())
                j += 1
            i = j
        i += 1
    mixer_path.write_text("\n".join(output), encoding="utf-8")
    LOGGER.info("bypassed %d %s effect(s) in %s", patched, effect, mixer_path.name)
    return patched


__all__ = [
    "DIAGETIC_MIXER",
    "ES3_DEFAULTS_ASSET",
    "ES3_DEFAULTS_SCRIPT_META",
    "GUID_PATTERN",
    "INIT_SCENE",
    "PatchReport",
    "bypass_mixer_effect",
    "collect_scenes",
    "order_scene_list",
    "patch_guid_reference",
    "read_guid",
]
