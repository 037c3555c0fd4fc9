from __future__ import annotations

from pathlib import Path, PurePosixPath
import sys

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from asset_patcher.classify import Classifier
from asset_patcher.foldering import FolderingEngine
from asset_patcher.store.memory import InMemoryAssetStore

SO_ROOT = PurePosixPath("Assets/MonoBehaviour")


def _seed(store: InMemoryAssetStore, types) -> None:
    store.add(SO_ROOT / "Flashlight.asset", types["Item"])
    store.add(SO_ROOT / "Shovel.asset", types["Item"])
    store.add(SO_ROOT / "Spawns1.asset", types["SpawnTable"])
    store.add(SO_ROOT / "Spawns2.asset", types["SpawnTable"])
    store.add(SO_ROOT / "Sky.asset", types["VolumeProfile"])


def _plan(store: InMemoryAssetStore):
    records = store.find_assets("ScriptableObject", SO_ROOT)
    return Classifier(namespace_folders=True).classify(records, SO_ROOT)


def test_apply_plan_moves_groups_into_type_folders(memory_store, unity_types) -> None:
    _seed(memory_store, unity_types)

    report = FolderingEngine(memory_store).apply_plan(_plan(memory_store))

    assert [p.as_posix() for p in memory_store.asset_paths()] == [
        "Assets/MonoBehaviour/Game/SpawnTable/Spawns1.asset",
        "Assets/MonoBehaviour/Game/SpawnTable/Spawns2.asset",
        "Assets/MonoBehaviour/Item/Flashlight.asset",
        "Assets/MonoBehaviour/Item/Shovel.asset",
        "Assets/MonoBehaviour/Sky.asset",
    ]
    assert len(report.moved) == 4
    assert SO_ROOT / "Game" in report.created_folders
    assert memory_store.editing_depth == 0


def test_apply_plan_twice_performs_no_moves(memory_store, unity_types) -> None:
    _seed(memory_store, unity_types)
    engine = FolderingEngine(memory_store)
    engine.apply_plan(_plan(memory_store))
    moves_after_first = memory_store.move_count

    second = engine.apply_plan(_plan(memory_store))

    assert second.moved == []
    assert second.unchanged == 4
    assert second.created_folders == []
    assert memory_store.move_count == moves_after_first


def test_revert_restores_flat_layout(memory_store, unity_types) -> None:
    _seed(memory_store, unity_types)
    before = memory_store.asset_paths()
    engine = FolderingEngine(memory_store)
    engine.apply_plan(_plan(memory_store))

    report = engine.revert_plan(SO_ROOT, "ScriptableObject")

    assert memory_store.asset_paths() == before
    assert memory_store.get_sub_folders(SO_ROOT) == []
    assert sorted(report.deleted_folders) == [SO_ROOT / "Game", SO_ROOT / "Item"]


def test_revert_on_flat_tree_is_a_no_op(memory_store, unity_types) -> None:
    _seed(memory_store, unity_types)

    report = FolderingEngine(memory_store).revert_plan(SO_ROOT, "ScriptableObject")

    assert report.moved == []
    assert report.deleted_folders == []
    assert report.unchanged == 5


def test_single_move_failure_is_reported_and_batch_continues(memory_store, unity_types) -> None:
    _seed(memory_store, unity_types)
    memory_store.fail_moves.add(SO_ROOT / "Shovel.asset")

    report = FolderingEngine(memory_store).apply_plan(_plan(memory_store))

    assert len(report.failures) == 1
    assert report.failures[0].path == SO_ROOT / "Shovel.asset"
    assert len(report.moved) == 3
    assert memory_store.editing_depth == 0


def test_revert_keeps_folders_holding_unmoved_assets(memory_store, unity_types) -> None:
    _seed(memory_store, unity_types)
    engine = FolderingEngine(memory_store)
    engine.apply_plan(_plan(memory_store))
    stuck = SO_ROOT / "Item" / "Shovel.asset"
    memory_store.fail_moves.add(stuck)

    report = engine.revert_plan(SO_ROOT, "ScriptableObject")

    assert stuck in memory_store.asset_paths()
    assert SO_ROOT / "Item" not in report.deleted_folders
    assert SO_ROOT / "Game" in report.deleted_folders


class _ExplodingStore(InMemoryAssetStore):
    def move_asset(self, source, destination) -> None:
        raise RuntimeError("host crashed")


def test_bulk_edit_scope_is_closed_when_a_step_raises(unity_types) -> None:
    store = _ExplodingStore(SO_ROOT.parent)
    _seed(store, unity_types)

    with pytest.raises(RuntimeError):
        FolderingEngine(store).apply_plan(_plan(store))

    assert store.editing_depth == 0
    assert store.refresh_count == 1


def test_prefab_sort_and_unsort_round_trip(memory_store, unity_types) -> None:
    prefabs = PurePosixPath("Assets/Prefabs")
    go = unity_types["GameObject"]
    t = unity_types["Transform"]
    memory_store.add(prefabs / "Flowerman.prefab", go, (t, unity_types["FlowermanAI"]))
    memory_store.add(prefabs / "Flowerman2.prefab", go, (t, unity_types["FlowermanAI"]))
    memory_store.add(prefabs / "Crawler.prefab", go, (t, unity_types["CrawlerAI"]))
    memory_store.add(prefabs / "Empty.prefab", go, (t,))
    before = memory_store.asset_paths()
    engine = FolderingEngine(memory_store)

    records = memory_store.find_assets("GameObject", prefabs)
    engine.apply_plan(Classifier(fold_to_base=True).classify(records, prefabs))

    assert prefabs / "EnemyAI" / "Crawler.prefab" in memory_store.asset_paths()
    assert prefabs / "FlowermanAI" / "Flowerman2.prefab" in memory_store.asset_paths()
    assert prefabs / "Empty.prefab" in memory_store.asset_paths()

    engine.revert_plan(prefabs, "GameObject")

    assert memory_store.asset_paths() == before
    assert memory_store.get_sub_folders(prefabs) == []
