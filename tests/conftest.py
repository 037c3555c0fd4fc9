from __future__ import annotations

from pathlib import Path, PurePosixPath
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from asset_patcher.descriptors import TypeDescriptor
from asset_patcher.store.memory import InMemoryAssetStore


@pytest.fixture()
def unity_types() -> dict[str, TypeDescriptor]:
    obj = TypeDescriptor.parse("UnityEngine.Object")
    component = TypeDescriptor.parse("UnityEngine.Component", base=obj)
    behaviour = TypeDescriptor.parse("UnityEngine.MonoBehaviour", base=component)
    scriptable = TypeDescriptor.parse("UnityEngine.ScriptableObject", base=obj)
    enemy_ai = TypeDescriptor.parse("EnemyAI", base=behaviour)
    return {
        "Object": obj,
        "Component": component,
        "MonoBehaviour": behaviour,
        "ScriptableObject": scriptable,
        "Transform": TypeDescriptor.parse("UnityEngine.Transform", base=component),
        "Rigidbody": TypeDescriptor.parse("UnityEngine.Rigidbody", base=component),
        "GameObject": TypeDescriptor.parse("UnityEngine.GameObject", base=obj),
        "EnemyAI": enemy_ai,
        "FlowermanAI": TypeDescriptor.parse("FlowermanAI", base=enemy_ai),
        "CrawlerAI": TypeDescriptor.parse("CrawlerAI", base=enemy_ai),
        "PufferAI": TypeDescriptor.parse("PufferAI", base=enemy_ai),
        "Item": TypeDescriptor.parse("Item", base=scriptable),
        "VolumeProfile": TypeDescriptor.parse("UnityEngine.Rendering.VolumeProfile", base=scriptable),
        "SpawnTable": TypeDescriptor.parse("Game.Spawning.SpawnTable", base=scriptable),
    }


@pytest.fixture()
def memory_store() -> InMemoryAssetStore:
    return InMemoryAssetStore(PurePosixPath("Assets"))
